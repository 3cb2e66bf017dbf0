"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from schoolbooks.domain.entities import (
    Account,
    AccountCategory,
    AccountMapping,
    AccountType,
    AssetStatus,
    BankAccount,
    BankTransaction,
    BankTransactionType,
    DepreciationMethod,
    DepreciationRecord,
    EntryStatus,
    Expense,
    ExpenseStatus,
    FeeAllocation,
    FeeAssignment,
    FixedAsset,
    JournalEntry,
    JournalLine,
    MappingType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    PostingStatus,
    ReferenceType,
    SalaryComponent,
    SalaryPayment,
    StatutoryDeductions,
    Transfer,
    TransferStatus,
    TrialBalanceLine,
)


class Database(ABC):
    """Abstract database interface for schoolbooks.

    ``update_*`` methods take a ``changes`` mapping of field name to new value.
    When ``expected_version`` is given and does not match the stored version,
    they raise ``ConflictError`` instead of overwriting.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Chart of accounts operations
    @abstractmethod
    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        category: AccountCategory,
        parent_code: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a ledger account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get ledger account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get ledger account by code."""
        pass

    @abstractmethod
    def list_accounts(
        self, account_type: Optional[AccountType] = None, active_only: bool = False
    ) -> list[Account]:
        """List ledger accounts ordered by code."""
        pass

    @abstractmethod
    def update_account(
        self, account_id: int, changes: dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        """Update mutable account fields (never the account type)."""
        pass

    # Account mapping operations
    @abstractmethod
    def create_account_mapping(
        self,
        mapping_type: MappingType,
        source_type: str,
        source_name: str,
        account_code: str,
        is_default: bool = False,
    ) -> int:
        """Create an active account mapping. Returns mapping ID."""
        pass

    @abstractmethod
    def get_account_mapping(self, mapping_id: int) -> Optional[AccountMapping]:
        """Get account mapping by ID."""
        pass

    @abstractmethod
    def list_account_mappings(
        self,
        mapping_type: Optional[MappingType] = None,
        source_type: Optional[str] = None,
        active_only: bool = True,
    ) -> list[AccountMapping]:
        """List mappings, newest ``updated_at`` first (ties by highest ID)."""
        pass

    @abstractmethod
    def update_account_mapping(
        self, mapping_id: int, changes: dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        """Update an account mapping."""
        pass

    # Journal operations
    @abstractmethod
    def create_journal_entry(
        self,
        entry_number: str,
        entry_date: date,
        description: str,
        lines: list[JournalLine],
        reference_type: ReferenceType,
        reference_id: Optional[str],
        status: EntryStatus,
        created_by: str,
        posted_at: Optional[datetime] = None,
        posted_by: Optional[str] = None,
        reversal_of_id: Optional[int] = None,
    ) -> int:
        """Create a journal entry with its lines. Returns entry ID."""
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get journal entry (with lines) by ID."""
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[EntryStatus] = None,
        reference_type: Optional[ReferenceType] = None,
        reference_id: Optional[str] = None,
    ) -> list[JournalEntry]:
        """List journal entries ordered by entry date then ID."""
        pass

    @abstractmethod
    def update_journal_entry(
        self, entry_id: int, changes: dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        """Update journal entry header fields."""
        pass

    @abstractmethod
    def delete_journal_entry(self, entry_id: int) -> None:
        """Delete a journal entry and its lines."""
        pass

    @abstractmethod
    def sum_posted_lines(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[TrialBalanceLine]:
        """Sum debits and credits of posted lines per account code."""
        pass

    # Fee assignment operations
    @abstractmethod
    def create_fee_assignment(
        self,
        student_id: str,
        student_name: str,
        term: Optional[str],
        allocations: list[FeeAllocation],
        total_amount: Decimal,
        assignment_date: date,
        assigned_by: str,
    ) -> int:
        """Create a fee assignment. Returns assignment ID."""
        pass

    @abstractmethod
    def get_fee_assignment(self, assignment_id: int) -> Optional[FeeAssignment]:
        """Get fee assignment by ID."""
        pass

    @abstractmethod
    def list_fee_assignments(
        self, student_id: Optional[str] = None, posting_status: Optional[PostingStatus] = None
    ) -> list[FeeAssignment]:
        """List fee assignments."""
        pass

    @abstractmethod
    def update_fee_assignment(self, assignment_id: int, changes: dict[str, Any]) -> None:
        """Update a fee assignment."""
        pass

    # Payment operations
    @abstractmethod
    def create_payment(
        self,
        reference: str,
        student_id: str,
        student_name: str,
        amount: Decimal,
        payment_method: PaymentMethod,
        payment_date: date,
        status: PaymentStatus,
        allocations: list[FeeAllocation],
        recorded_by: str,
        paid_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a payment with its allocations. Returns payment ID."""
        pass

    @abstractmethod
    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """Get payment by ID."""
        pass

    @abstractmethod
    def get_payment_by_reference(self, reference: str) -> Optional[Payment]:
        """Get payment by reference."""
        pass

    @abstractmethod
    def list_payments(
        self,
        student_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        payment_method: Optional[PaymentMethod] = None,
        status: Optional[PaymentStatus] = None,
        posting_status: Optional[PostingStatus] = None,
    ) -> list[Payment]:
        """List payments, newest first."""
        pass

    @abstractmethod
    def update_payment(
        self, payment_id: int, changes: dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        """Update a payment."""
        pass

    # Expense operations
    @abstractmethod
    def create_expense(
        self,
        reference: str,
        category: str,
        description: str,
        amount: Decimal,
        vendor: Optional[str],
        expense_date: date,
        payment_method: PaymentMethod,
        status: ExpenseStatus,
        recorded_by: str,
    ) -> int:
        """Create an expense. Returns expense ID."""
        pass

    @abstractmethod
    def get_expense(self, expense_id: int) -> Optional[Expense]:
        """Get expense by ID."""
        pass

    @abstractmethod
    def list_expenses(
        self,
        status: Optional[ExpenseStatus] = None,
        category: Optional[str] = None,
        vendor: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        posting_status: Optional[PostingStatus] = None,
    ) -> list[Expense]:
        """List expenses, newest first."""
        pass

    @abstractmethod
    def update_expense(
        self, expense_id: int, changes: dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        """Update an expense."""
        pass

    # Salary operations
    @abstractmethod
    def create_salary_payment(
        self,
        reference: str,
        staff_id: str,
        staff_name: str,
        staff_number: Optional[str],
        month: int,
        year: int,
        basic_salary: Decimal,
        allowances: list[SalaryComponent],
        deductions: list[SalaryComponent],
        gross_salary: Decimal,
        total_deductions: Decimal,
        net_pay: Decimal,
        statutory: Optional[StatutoryDeductions],
        payment_date: date,
        payment_method: PaymentMethod,
        recorded_by: str,
    ) -> int:
        """Create a salary payment.

        Raises ConflictError when the staff member already has a payment for
        the same year and month.
        """
        pass

    @abstractmethod
    def get_salary_payment(self, salary_id: int) -> Optional[SalaryPayment]:
        """Get salary payment by ID."""
        pass

    @abstractmethod
    def list_salary_payments(
        self,
        staff_id: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        posting_status: Optional[PostingStatus] = None,
    ) -> list[SalaryPayment]:
        """List salary payments."""
        pass

    @abstractmethod
    def update_salary_payment(self, salary_id: int, changes: dict[str, Any]) -> None:
        """Update a salary payment."""
        pass

    # Fixed asset operations
    @abstractmethod
    def create_fixed_asset(
        self,
        asset_code: str,
        name: str,
        asset_type: str,
        purchase_date: date,
        purchase_price: Decimal,
        residual_value: Decimal,
        useful_life_years: Optional[int],
        depreciation_rate: Optional[Decimal],
        depreciation_method: DepreciationMethod,
        payment_method: PaymentMethod,
        created_by: str,
        vendor: Optional[str] = None,
        location: Optional[str] = None,
    ) -> int:
        """Create a fixed asset. Returns asset ID."""
        pass

    @abstractmethod
    def get_fixed_asset(self, asset_id: int) -> Optional[FixedAsset]:
        """Get fixed asset by ID."""
        pass

    @abstractmethod
    def get_fixed_asset_by_code(self, asset_code: str) -> Optional[FixedAsset]:
        """Get fixed asset by asset code."""
        pass

    @abstractmethod
    def list_fixed_assets(
        self,
        status: Optional[AssetStatus] = None,
        asset_type: Optional[str] = None,
        posting_status: Optional[PostingStatus] = None,
    ) -> list[FixedAsset]:
        """List fixed assets ordered by asset code."""
        pass

    @abstractmethod
    def update_fixed_asset(
        self, asset_id: int, changes: dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        """Update a fixed asset."""
        pass

    @abstractmethod
    def create_depreciation_record(
        self,
        asset_id: int,
        year: int,
        month: int,
        amount: Decimal,
        accumulated_after: Decimal,
        book_value_after: Decimal,
    ) -> int:
        """Record monthly depreciation and update the asset in one commit.

        Raises ConflictError when the asset was already depreciated for the month.
        """
        pass

    @abstractmethod
    def get_depreciation_record(self, record_id: int) -> Optional[DepreciationRecord]:
        """Get depreciation record by ID."""
        pass

    @abstractmethod
    def list_depreciation_records(
        self,
        asset_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        posting_status: Optional[PostingStatus] = None,
    ) -> list[DepreciationRecord]:
        """List depreciation records."""
        pass

    @abstractmethod
    def update_depreciation_record(self, record_id: int, changes: dict[str, Any]) -> None:
        """Update a depreciation record."""
        pass

    # Banking operations
    @abstractmethod
    def create_bank_account(
        self,
        account_name: str,
        bank_name: str,
        account_number: str,
        account_type: str = "current",
        currency: str = "NGN",
        opening_balance: Decimal = Decimal("0"),
        gl_account_code: Optional[str] = None,
    ) -> int:
        """Create a bank account. Returns bank account ID."""
        pass

    @abstractmethod
    def get_bank_account(self, bank_account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID."""
        pass

    @abstractmethod
    def list_bank_accounts(self, active_only: bool = True) -> list[BankAccount]:
        """List bank accounts."""
        pass

    @abstractmethod
    def update_bank_account(
        self, bank_account_id: int, changes: dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        """Update a bank account."""
        pass

    @abstractmethod
    def create_bank_transaction(
        self,
        bank_account_id: int,
        transaction_date: date,
        transaction_type: BankTransactionType,
        description: str,
        debit_amount: Decimal,
        credit_amount: Decimal,
        created_by: str,
        reference: Optional[str] = None,
    ) -> int:
        """Create a bank transaction and apply it to the account balance.

        Returns transaction ID.
        """
        pass

    @abstractmethod
    def get_bank_transaction(self, transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        pass

    @abstractmethod
    def list_bank_transactions(
        self,
        bank_account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        is_reconciled: Optional[bool] = None,
        posting_status: Optional[PostingStatus] = None,
    ) -> list[BankTransaction]:
        """List bank transactions ordered by date then ID."""
        pass

    @abstractmethod
    def update_bank_transaction(self, transaction_id: int, changes: dict[str, Any]) -> None:
        """Update a bank transaction."""
        pass

    @abstractmethod
    def create_transfer(
        self,
        reference: str,
        from_account_id: int,
        to_account_id: int,
        amount: Decimal,
        transfer_date: date,
        description: str,
        status: TransferStatus,
        created_by: str,
    ) -> int:
        """Create a transfer. Returns transfer ID."""
        pass

    @abstractmethod
    def get_transfer(self, transfer_id: int) -> Optional[Transfer]:
        """Get transfer by ID."""
        pass

    @abstractmethod
    def list_transfers(
        self, status: Optional[TransferStatus] = None, posting_status: Optional[PostingStatus] = None
    ) -> list[Transfer]:
        """List transfers."""
        pass

    @abstractmethod
    def update_transfer(
        self, transfer_id: int, changes: dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        """Update a transfer."""
        pass

    @abstractmethod
    def complete_transfer(self, transfer_id: int, executed_at: datetime) -> None:
        """Move the transfer amount between both balances and mark it completed."""
        pass
