"""Bank accounts, bank transactions and inter-account transfers."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from schoolbooks.database.base import Database
from schoolbooks.domain.auto_posting import AutoPostingService, attempt_posting
from schoolbooks.domain.bank_posting import BankingAutoPostService
from schoolbooks.domain.entities import (
    BALANCE_TOLERANCE,
    ZERO,
    AccountType,
    BankAccount,
    BankTransaction,
    BankTransactionType,
    Transfer,
    TransferStatus,
)
from schoolbooks.domain.errors import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
    account_not_found,
    record_not_found,
)
from schoolbooks.utils.clock import Clock, utcnow
from schoolbooks.utils.money import Number, to_money
from schoolbooks.utils.references import ReferenceGenerator

logger = logging.getLogger(__name__)

# Checked in order; the first keyword found in a description wins
TRANSACTION_TYPE_KEYWORDS = [
    (BankTransactionType.INTEREST, ("interest",)),
    (BankTransactionType.FEE, ("sms alert", "maintenance fee", "commission", "fee")),
    (BankTransactionType.CHARGE, ("charge", "stamp duty", "vat")),
    (BankTransactionType.TRANSFER, ("transfer", "trf")),
    (BankTransactionType.DEPOSIT, ("deposit", "lodgement", "credit")),
    (BankTransactionType.WITHDRAWAL, ("withdrawal", "cheque", "atm", "debit")),
]

# Bank fees and charges only ever take money out
MONEY_OUT_ONLY = {BankTransactionType.FEE, BankTransactionType.CHARGE}


def infer_transaction_type(description: str, money_in: bool = False) -> BankTransactionType:
    """Guess a transaction type from bank statement wording.

    For money coming in, fee and charge wording is ignored, so a
    "School fees deposit" is a deposit rather than a bank fee.
    """
    lowered = description.lower()
    for transaction_type, keywords in TRANSACTION_TYPE_KEYWORDS:
        if money_in and transaction_type in MONEY_OUT_ONLY:
            continue
        if any(keyword in lowered for keyword in keywords):
            return transaction_type
    return BankTransactionType.OTHER


@dataclass
class GLReconciliation:
    """Bank balance compared with the linked ledger account."""

    bank_account_id: int
    gl_account_code: str
    bank_balance: Decimal
    gl_balance: Decimal
    difference: Decimal
    is_reconciled: bool
    unreconciled_count: int


class BankingService:
    """Service for bank accounts, their transactions and transfers."""

    def __init__(
        self,
        db: Database,
        engine: Optional[AutoPostingService] = None,
        clock: Optional[Clock] = None,
        references: Optional[ReferenceGenerator] = None,
    ):
        """Initialize banking service.

        Args:
            db: Database instance
            engine: Auto-posting engine shared with the bank posting service
            clock: Callable returning the current time
            references: Reference generator
        """
        self.db = db
        self.engine = engine or AutoPostingService(db, clock=clock, references=references)
        self.posting = BankingAutoPostService(db, engine=self.engine)
        self.clock = clock or utcnow
        self.references = references or ReferenceGenerator()

    def _validate_gl_account(self, gl_account_code: str) -> None:
        account = self.engine.chart.get_by_code(gl_account_code)
        if account is None:
            raise NotFoundError(account_not_found(gl_account_code))
        if account.account_type != AccountType.ASSET:
            raise ValidationError(
                f"Bank accounts can only be linked to asset accounts; "
                f"{gl_account_code} is {account.account_type.value}"
            )
        if not account.is_active:
            raise ValidationError(f"Account {gl_account_code} is inactive")

    def create_bank_account(
        self,
        account_name: str,
        bank_name: str,
        account_number: str,
        opening_balance: Number = 0,
        gl_account_code: Optional[str] = None,
        account_type: str = "current",
        currency: str = "NGN",
    ) -> BankAccount:
        """Create a bank account, optionally linked to a ledger asset account.

        Raises:
            ValidationError: If a field is missing or the ledger account is not an asset
            ConflictError: If the account number already exists
        """
        if not account_name or not bank_name or not account_number:
            raise ValidationError("Account name, bank name and account number are required")
        if gl_account_code is not None:
            self._validate_gl_account(gl_account_code)
        bank_account_id = self.db.create_bank_account(
            account_name=account_name,
            bank_name=bank_name,
            account_number=account_number,
            account_type=account_type,
            currency=currency,
            opening_balance=to_money(opening_balance),
            gl_account_code=gl_account_code,
        )
        return self.db.get_bank_account(bank_account_id)

    def get_bank_account(self, bank_account_id: int) -> BankAccount:
        bank_account = self.db.get_bank_account(bank_account_id)
        if bank_account is None:
            raise NotFoundError(record_not_found("Bank account", bank_account_id))
        return bank_account

    def list_bank_accounts(self, active_only: bool = True) -> list[BankAccount]:
        return self.db.list_bank_accounts(active_only=active_only)

    def link_gl_account(self, bank_account_id: int, gl_account_code: str) -> BankAccount:
        bank_account = self.get_bank_account(bank_account_id)
        self._validate_gl_account(gl_account_code)
        self.db.update_bank_account(
            bank_account_id, {"gl_account_code": gl_account_code}, expected_version=bank_account.version
        )
        return self.db.get_bank_account(bank_account_id)

    def record_transaction(
        self,
        bank_account_id: int,
        transaction_date: date,
        description: str,
        created_by: str,
        debit_amount: Number = 0,
        credit_amount: Number = 0,
        transaction_type: Optional[BankTransactionType] = None,
        reference: Optional[str] = None,
    ) -> BankTransaction:
        """Record a bank transaction, update the balance and post it.

        ``credit_amount`` is money in (deposit), ``debit_amount`` is money out.

        Raises:
            ValidationError: For negative, two-sided or zero amounts
            NotFoundError: If the bank account does not exist
        """
        debit = to_money(debit_amount)
        credit = to_money(credit_amount)
        if debit < 0 or credit < 0:
            raise ValidationError("Transaction amounts cannot be negative")
        if debit > 0 and credit > 0:
            raise ValidationError("Transaction cannot have both debit and credit amounts")
        if debit == 0 and credit == 0:
            raise ValidationError("Transaction must have a debit or credit amount")
        if not description or not description.strip():
            raise ValidationError("Transaction description is required")

        bank_account = self.get_bank_account(bank_account_id)
        if not bank_account.is_active:
            raise InvalidStateError(f"Bank account {bank_account.account_name} is inactive")
        if transaction_type is None:
            transaction_type = infer_transaction_type(description, money_in=credit > 0)

        transaction_id = self.db.create_bank_transaction(
            bank_account_id=bank_account_id,
            transaction_date=transaction_date,
            transaction_type=BankTransactionType(transaction_type),
            description=description.strip(),
            debit_amount=debit,
            credit_amount=credit,
            created_by=created_by,
            reference=reference,
        )
        self.post_transaction(self.db.get_bank_transaction(transaction_id))
        return self.db.get_bank_transaction(transaction_id)

    def post_transaction(self, transaction: BankTransaction):
        """(Re)post a bank transaction against its account's ledger link."""
        bank_account = self.get_bank_account(transaction.bank_account_id)
        return attempt_posting(
            lambda: self.posting.post_bank_transaction(transaction, bank_account, transaction.created_by),
            lambda changes: self.db.update_bank_transaction(transaction.id, changes),
            f"bank transaction {transaction.id}",
        )

    def list_transactions(
        self,
        bank_account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[BankTransaction]:
        return self.db.list_bank_transactions(
            bank_account_id=bank_account_id, start_date=start_date, end_date=end_date
        )

    def create_transfer(
        self,
        from_account_id: int,
        to_account_id: int,
        amount: Number,
        transfer_date: date,
        description: str,
        created_by: str,
        requires_approval: bool = False,
    ) -> Transfer:
        """Create a transfer between two bank accounts.

        Without ``requires_approval`` the transfer is executed straight away;
        otherwise it waits for approve_transfer and execute_transfer.

        Raises:
            NotFoundError: If either account does not exist
            ValidationError: For the same account, a non-positive amount or
                insufficient balance in the source account
        """
        value = to_money(amount)
        if value <= 0:
            raise ValidationError("Transfer amount must be greater than zero")
        source = self.db.get_bank_account(from_account_id)
        destination = self.db.get_bank_account(to_account_id)
        if source is None or destination is None:
            raise NotFoundError("One or both accounts not found")
        if from_account_id == to_account_id:
            raise ValidationError("Cannot transfer to same account")
        if source.balance < value:
            raise ValidationError("Insufficient balance in source account")

        transfer_id = self.db.create_transfer(
            reference=self.references.transfer(transfer_date.year),
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=value,
            transfer_date=transfer_date,
            description=description,
            status=TransferStatus.PENDING,
            created_by=created_by,
        )
        transfer = self.db.get_transfer(transfer_id)
        logger.info(
            "Created transfer %s of %s from %s to %s",
            transfer.reference,
            value,
            source.account_name,
            destination.account_name,
        )
        if requires_approval:
            return transfer
        return self.execute_transfer(transfer_id, executed_by=created_by)

    def _require_transfer(self, transfer_id: int) -> Transfer:
        transfer = self.db.get_transfer(transfer_id)
        if transfer is None:
            raise NotFoundError(record_not_found("Transfer", transfer_id))
        return transfer

    def approve_transfer(self, transfer_id: int, approved_by: str) -> Transfer:
        transfer = self._require_transfer(transfer_id)
        if transfer.status != TransferStatus.PENDING:
            raise InvalidStateError("Only pending transfers can be approved")
        if approved_by == transfer.created_by:
            raise ValidationError("A transfer cannot be approved by the person who created it")
        self.db.update_transfer(
            transfer_id,
            {"status": TransferStatus.APPROVED, "approved_by": approved_by, "approved_at": self.clock()},
            expected_version=transfer.version,
        )
        return self.db.get_transfer(transfer_id)

    def execute_transfer(self, transfer_id: int, executed_by: str = "system") -> Transfer:
        """Move the balances and post the transfer entry.

        Raises:
            InvalidStateError: If the transfer is completed or cancelled
            ValidationError: If the source account no longer covers the amount
        """
        transfer = self._require_transfer(transfer_id)
        if transfer.status not in (TransferStatus.PENDING, TransferStatus.APPROVED):
            raise InvalidStateError(f"Transfer {transfer.reference} is {transfer.status.value}")
        source = self.get_bank_account(transfer.from_account_id)
        destination = self.get_bank_account(transfer.to_account_id)
        if source.balance < transfer.amount:
            raise ValidationError("Insufficient balance in source account")

        self.db.complete_transfer(transfer_id, self.clock())
        self.post_transfer(self.db.get_transfer(transfer_id), source, destination, executed_by)
        return self.db.get_transfer(transfer_id)

    def post_transfer(
        self,
        transfer: Transfer,
        source: Optional[BankAccount] = None,
        destination: Optional[BankAccount] = None,
        posted_by: str = "system",
    ):
        """(Re)post the ledger entry for a completed transfer."""
        source = source or self.get_bank_account(transfer.from_account_id)
        destination = destination or self.get_bank_account(transfer.to_account_id)
        return attempt_posting(
            lambda: self.posting.post_transfer(
                source,
                destination,
                transfer.amount,
                transfer.description,
                transfer.transfer_date,
                transfer.reference,
                posted_by,
            ),
            lambda changes: self.db.update_transfer(transfer.id, changes),
            f"transfer {transfer.reference}",
        )

    def cancel_transfer(self, transfer_id: int) -> Transfer:
        transfer = self._require_transfer(transfer_id)
        if transfer.status not in (TransferStatus.PENDING, TransferStatus.APPROVED):
            raise InvalidStateError("Only pending or approved transfers can be cancelled")
        self.db.update_transfer(
            transfer_id, {"status": TransferStatus.CANCELLED}, expected_version=transfer.version
        )
        return self.db.get_transfer(transfer_id)

    def list_transfers(self, status: Optional[TransferStatus] = None) -> list[Transfer]:
        return self.db.list_transfers(status=status)

    def mark_reconciled(self, transaction_ids: list[int]) -> int:
        """Mark bank transactions as reconciled with the statement.

        Returns:
            Number of transactions newly marked
        """
        marked = 0
        now = self.clock()
        for transaction_id in transaction_ids:
            transaction = self.db.get_bank_transaction(transaction_id)
            if transaction is None:
                raise NotFoundError(record_not_found("Bank transaction", transaction_id))
            if transaction.is_reconciled:
                continue
            self.db.update_bank_transaction(
                transaction_id, {"is_reconciled": True, "reconciled_at": now}
            )
            marked += 1
        return marked

    def get_unreconciled(self, bank_account_id: int) -> list[BankTransaction]:
        return self.db.list_bank_transactions(bank_account_id=bank_account_id, is_reconciled=False)

    def reconcile_with_gl(
        self, bank_account_id: int, as_of_date: Optional[date] = None
    ) -> GLReconciliation:
        """Compare a bank account's balance with its linked ledger account.

        The ledger account may be shared by several bank accounts, in which
        case the combined bank balance is compared.
        """
        bank_account = self.get_bank_account(bank_account_id)
        if not bank_account.gl_account_code:
            raise ValidationError(
                f"Bank account {bank_account.account_name} is not linked to a ledger account"
            )
        linked = [
            b
            for b in self.db.list_bank_accounts(active_only=False)
            if b.gl_account_code == bank_account.gl_account_code
        ]
        bank_balance = sum((b.balance for b in linked), ZERO)
        gl_balance = self.engine.journal.get_account_balance(
            bank_account.gl_account_code, as_of_date=as_of_date
        )
        difference = bank_balance - gl_balance
        return GLReconciliation(
            bank_account_id=bank_account_id,
            gl_account_code=bank_account.gl_account_code,
            bank_balance=bank_balance,
            gl_balance=gl_balance,
            difference=difference,
            is_reconciled=abs(difference) < BALANCE_TOLERANCE,
            unreconciled_count=len(self.get_unreconciled(bank_account_id)),
        )
