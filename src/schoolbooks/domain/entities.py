"""Domain model entities for schoolbooks.

These are pure data classes representing accounting and school-finance
concepts, independent of the database schema. Services and reports work
exclusively with these types.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


ZERO = Decimal("0")
BALANCE_TOLERANCE = Decimal("0.01")


class AccountType(str, Enum):
    """Top-level account classification."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class AccountCategory(str, Enum):
    """Report classification tag carried by every account."""

    CASH = "cash"
    CURRENT_ASSET = "current_asset"
    FIXED_ASSET = "fixed_asset"
    CURRENT_LIABILITY = "current_liability"
    LONG_TERM_LIABILITY = "long_term_liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @classmethod
    def from_code(cls, code: str, account_type: AccountType) -> "AccountCategory":
        """Derive the default category for an account code.

        Used once, when an account is created without an explicit category.
        """
        if account_type == AccountType.ASSET:
            if code.startswith(("111", "112")):
                return cls.CASH
            if code.startswith("12"):
                return cls.FIXED_ASSET
            return cls.CURRENT_ASSET
        if account_type == AccountType.LIABILITY:
            if code.startswith("22"):
                return cls.LONG_TERM_LIABILITY
            return cls.CURRENT_LIABILITY
        if account_type == AccountType.EQUITY:
            return cls.EQUITY
        if account_type == AccountType.REVENUE:
            return cls.REVENUE
        return cls.EXPENSE


class MappingType(str, Enum):
    """Kinds of business concept that map onto ledger accounts."""

    REVENUE = "revenue"
    EXPENSE = "expense"
    ASSET = "asset"
    LIABILITY = "liability"


class EntryStatus(str, Enum):
    DRAFT = "draft"
    POSTED = "posted"


class ReferenceType(str, Enum):
    """Business event that produced a journal entry."""

    PAYMENT = "payment"
    FEE_ASSIGNMENT = "fee_assignment"
    EXPENSE = "expense"
    SALARY = "salary"
    ASSET_PURCHASE = "asset_purchase"
    DEPRECIATION = "depreciation"
    BANK_TRANSACTION = "bank_transaction"
    TRANSFER = "transfer"
    MANUAL = "manual"
    REVERSAL = "reversal"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    POS = "pos"
    ONLINE = "online"
    CHEQUE = "cheque"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class ExpenseStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PostingStatus(str, Enum):
    """State of the ledger shadow entry of a business record."""

    PENDING = "pending"
    POSTED = "posted"
    FAILED = "failed"
    SKIPPED = "skipped"


class BankTransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    FEE = "fee"
    CHARGE = "charge"
    INTEREST = "interest"
    OTHER = "other"


class TransferStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AssetStatus(str, Enum):
    ACTIVE = "active"
    DISPOSED = "disposed"


class DepreciationMethod(str, Enum):
    STRAIGHT_LINE = "straight_line"
    NONE = "none"


@dataclass(frozen=True)
class Account:
    """Ledger account in the chart of accounts."""

    id: int
    code: str
    name: str
    account_type: AccountType
    category: AccountCategory
    parent_code: Optional[str]
    description: Optional[str]
    is_active: bool
    created_at: datetime
    version: int = 1


@dataclass(frozen=True)
class AccountMapping:
    """Association from a business concept to a ledger account."""

    id: int
    mapping_type: MappingType
    source_type: str
    source_name: str
    account_code: str
    is_default: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime
    version: int = 1


@dataclass(frozen=True)
class JournalLine:
    """One debit or credit line of a journal entry."""

    account_code: str
    account_name: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: Optional[str] = None


@dataclass(frozen=True)
class JournalEntry:
    """Balanced set of journal lines recording one economic event."""

    id: int
    entry_number: str
    entry_date: date
    description: str
    lines: tuple[JournalLine, ...]
    reference_type: ReferenceType
    reference_id: Optional[str]
    status: EntryStatus
    created_by: str
    created_at: datetime
    posted_at: Optional[datetime] = None
    posted_by: Optional[str] = None
    reversal_of_id: Optional[int] = None
    reversed_by_id: Optional[int] = None
    version: int = 1

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_debit - self.total_credit) <= BALANCE_TOLERANCE


@dataclass(frozen=True)
class TrialBalanceLine:
    """Debit and credit totals for one account."""

    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal

    @property
    def balance(self) -> Decimal:
        """Debit minus credit."""
        return self.debit - self.credit


@dataclass(frozen=True)
class TrialBalance:
    as_of_date: Optional[date]
    accounts: list[TrialBalanceLine]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool


@dataclass(frozen=True)
class StatutoryDeductions:
    """Nigerian statutory payroll deductions for one month."""

    nhf: Decimal
    pension_employee: Decimal
    pension_employer: Decimal
    nhis: Decimal
    paye: Decimal
    total_employee_deductions: Decimal
    total_employer_contributions: Decimal


@dataclass(frozen=True)
class FeeAllocation:
    """Portion of a fee assignment or payment attributed to one fee type."""

    fee_type: str
    amount: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class FeeAssignment:
    id: int
    student_id: str
    student_name: str
    term: Optional[str]
    allocations: tuple[FeeAllocation, ...]
    total_amount: Decimal
    assignment_date: date
    assigned_by: str
    created_at: datetime
    journal_entry_id: Optional[int] = None
    posting_status: PostingStatus = PostingStatus.PENDING
    posting_error: Optional[str] = None


@dataclass(frozen=True)
class Payment:
    """Student fee payment."""

    id: int
    reference: str
    student_id: str
    student_name: str
    amount: Decimal
    payment_method: PaymentMethod
    payment_date: date
    status: PaymentStatus
    allocations: tuple[FeeAllocation, ...]
    recorded_by: str
    created_at: datetime
    paid_by: Optional[str] = None
    notes: Optional[str] = None
    receipt_number: Optional[str] = None
    journal_entry_id: Optional[int] = None
    posting_status: PostingStatus = PostingStatus.PENDING
    posting_error: Optional[str] = None
    version: int = 1


@dataclass(frozen=True)
class Expense:
    id: int
    reference: str
    category: str
    description: str
    amount: Decimal
    vendor: Optional[str]
    expense_date: date
    payment_method: PaymentMethod
    status: ExpenseStatus
    recorded_by: str
    created_at: datetime
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    journal_entry_id: Optional[int] = None
    posting_status: PostingStatus = PostingStatus.PENDING
    posting_error: Optional[str] = None
    version: int = 1


@dataclass(frozen=True)
class SalaryComponent:
    """Named allowance or deduction on a payslip."""

    name: str
    amount: Decimal


@dataclass(frozen=True)
class SalaryPayment:
    id: int
    reference: str
    staff_id: str
    staff_name: str
    staff_number: Optional[str]
    month: int
    year: int
    basic_salary: Decimal
    allowances: tuple[SalaryComponent, ...]
    deductions: tuple[SalaryComponent, ...]
    gross_salary: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    payment_date: date
    payment_method: PaymentMethod
    recorded_by: str
    created_at: datetime
    statutory: Optional[StatutoryDeductions] = None
    journal_entry_id: Optional[int] = None
    posting_status: PostingStatus = PostingStatus.PENDING
    posting_error: Optional[str] = None

    @property
    def total_allowances(self) -> Decimal:
        return sum((a.amount for a in self.allowances), ZERO)


@dataclass(frozen=True)
class FixedAsset:
    """Registered fixed asset."""

    id: int
    asset_code: str
    name: str
    asset_type: str
    purchase_date: date
    purchase_price: Decimal
    residual_value: Decimal
    useful_life_years: Optional[int]
    depreciation_rate: Optional[Decimal]
    depreciation_method: DepreciationMethod
    accumulated_depreciation: Decimal
    current_value: Decimal
    status: AssetStatus
    payment_method: PaymentMethod
    created_by: str
    created_at: datetime
    vendor: Optional[str] = None
    location: Optional[str] = None
    disposal_date: Optional[date] = None
    disposal_value: Optional[Decimal] = None
    journal_entry_id: Optional[int] = None
    posting_status: PostingStatus = PostingStatus.PENDING
    posting_error: Optional[str] = None
    version: int = 1

    @property
    def depreciable_amount(self) -> Decimal:
        return self.purchase_price - self.residual_value


@dataclass(frozen=True)
class DepreciationRecord:
    """Monthly depreciation charged to one asset."""

    id: int
    asset_id: int
    year: int
    month: int
    amount: Decimal
    accumulated_after: Decimal
    book_value_after: Decimal
    created_at: datetime
    journal_entry_id: Optional[int] = None
    posting_status: PostingStatus = PostingStatus.PENDING
    posting_error: Optional[str] = None


@dataclass(frozen=True)
class BankAccount:
    id: int
    account_name: str
    bank_name: str
    account_number: str
    balance: Decimal
    is_active: bool
    created_at: datetime
    gl_account_code: Optional[str] = None
    account_type: str = "current"
    currency: str = "NGN"
    version: int = 1


@dataclass(frozen=True)
class BankTransaction:
    """Line on a bank account.

    ``credit_amount`` increases the bank balance (deposits), ``debit_amount``
    decreases it (withdrawals), following bank-statement convention.
    """

    id: int
    bank_account_id: int
    transaction_date: date
    transaction_type: BankTransactionType
    description: str
    debit_amount: Decimal
    credit_amount: Decimal
    balance_after: Decimal
    created_by: str
    created_at: datetime
    reference: Optional[str] = None
    is_reconciled: bool = False
    reconciled_at: Optional[datetime] = None
    journal_entry_id: Optional[int] = None
    posting_status: PostingStatus = PostingStatus.PENDING
    posting_error: Optional[str] = None


@dataclass(frozen=True)
class Transfer:
    """Inter-account bank transfer."""

    id: int
    reference: str
    from_account_id: int
    to_account_id: int
    amount: Decimal
    transfer_date: date
    description: str
    status: TransferStatus
    created_by: str
    created_at: datetime
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    executed_at: Optional[datetime] = None
    journal_entry_id: Optional[int] = None
    posting_status: PostingStatus = PostingStatus.PENDING
    posting_error: Optional[str] = None
    version: int = 1


@dataclass(frozen=True)
class UnpostedRecord:
    """Business record whose ledger entry has not been posted."""

    record_type: str
    record_id: int
    reference: str
    posting_status: PostingStatus
    posting_error: Optional[str] = None
    details: dict = field(default_factory=dict)
