"""Finds business records whose journal entry never got posted and re-posts them."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from schoolbooks.database.base import Database
from schoolbooks.domain.assets import AssetService
from schoolbooks.domain.auto_posting import AutoPostingService
from schoolbooks.domain.bank_posting import bank_transaction_reference
from schoolbooks.domain.banking import BankingService
from schoolbooks.domain.entities import (
    ExpenseStatus,
    PaymentStatus,
    PostingStatus,
    TransferStatus,
    UnpostedRecord,
)
from schoolbooks.domain.errors import ValidationError
from schoolbooks.domain.expenses import ExpenseService
from schoolbooks.domain.payments import FeeService, PaymentService, fee_assignment_reference
from schoolbooks.domain.payroll import PayrollService
from schoolbooks.utils.references import depreciation_reference

logger = logging.getLogger(__name__)

RECORD_TYPES = (
    "fee_assignment",
    "payment",
    "expense",
    "salary",
    "asset",
    "depreciation",
    "bank_transaction",
    "transfer",
)

UNPOSTED_STATUSES = (PostingStatus.PENDING, PostingStatus.FAILED, PostingStatus.SKIPPED)


@dataclass
class RetryResult:
    attempted: int = 0
    posted: int = 0
    still_unposted: list[UnpostedRecord] = field(default_factory=list)


class PostingReconciliationService:
    """Lists and re-drives records left unposted by a failed auto-post."""

    def __init__(self, db: Database, engine: Optional[AutoPostingService] = None):
        self.db = db
        self.engine = engine or AutoPostingService(db)
        self.fees = FeeService(db, engine=self.engine)
        self.payments = PaymentService(db, engine=self.engine)
        self.expenses = ExpenseService(db, engine=self.engine)
        self.payroll = PayrollService(db, engine=self.engine)
        self.assets = AssetService(db, engine=self.engine)
        self.banking = BankingService(db, engine=self.engine)

    def _fetch(self, record_type: str, status: PostingStatus) -> list:
        if record_type == "fee_assignment":
            return self.db.list_fee_assignments(posting_status=status)
        if record_type == "payment":
            return self.db.list_payments(posting_status=status, status=PaymentStatus.CONFIRMED)
        if record_type == "expense":
            return self.db.list_expenses(posting_status=status, status=ExpenseStatus.APPROVED)
        if record_type == "salary":
            return self.db.list_salary_payments(posting_status=status)
        if record_type == "asset":
            return self.db.list_fixed_assets(posting_status=status)
        if record_type == "depreciation":
            return self.db.list_depreciation_records(posting_status=status)
        if record_type == "bank_transaction":
            return self.db.list_bank_transactions(posting_status=status)
        if record_type == "transfer":
            return self.db.list_transfers(posting_status=status, status=TransferStatus.COMPLETED)
        raise ValidationError(
            f"Unknown record type '{record_type}'. Expected one of: {', '.join(RECORD_TYPES)}"
        )

    def _describe(self, record_type: str, record) -> UnpostedRecord:
        if record_type == "fee_assignment":
            reference = fee_assignment_reference(record.id)
            details = {"student": record.student_name, "amount": record.total_amount}
        elif record_type == "payment":
            reference = record.reference
            details = {"student": record.student_name, "amount": record.amount}
        elif record_type == "expense":
            reference = record.reference
            details = {"category": record.category, "amount": record.amount}
        elif record_type == "salary":
            reference = record.reference
            details = {"staff": record.staff_name, "amount": record.net_pay}
        elif record_type == "asset":
            reference = record.asset_code
            details = {"name": record.name, "amount": record.purchase_price}
        elif record_type == "depreciation":
            asset = self.db.get_fixed_asset(record.asset_id)
            reference = depreciation_reference(record.year, record.month, asset.asset_code)
            details = {"asset": asset.name, "amount": record.amount}
        elif record_type == "bank_transaction":
            reference = bank_transaction_reference(record.id)
            details = {
                "description": record.description,
                "amount": record.credit_amount or record.debit_amount,
            }
        else:
            reference = record.reference
            details = {"amount": record.amount}
        return UnpostedRecord(
            record_type=record_type,
            record_id=record.id,
            reference=reference,
            posting_status=record.posting_status,
            posting_error=record.posting_error,
            details=details,
        )

    def _collect(self, record_type: str) -> list[tuple[UnpostedRecord, object]]:
        """Unposted records of one type, each paired with its domain object."""
        found = []
        for status in UNPOSTED_STATUSES:
            for record in self._fetch(record_type, status):
                found.append((self._describe(record_type, record), record))
        return sorted(found, key=lambda pair: pair[0].record_id)

    def list_unposted(self, record_type: Optional[str] = None) -> list[UnpostedRecord]:
        """Records that should have a posted journal entry but do not.

        Pending expenses, cancelled payments and transfers that have not
        completed are not expected to post and are left out.
        """
        types = [record_type] if record_type else list(RECORD_TYPES)
        return [unposted for t in types for unposted, _ in self._collect(t)]

    def _repost(self, record_type: str, record) -> None:
        if record_type == "fee_assignment":
            self.fees.post_assignment(record)
        elif record_type == "payment":
            self.payments.post_payment(record)
        elif record_type == "expense":
            self.expenses.post_expense(record)
        elif record_type == "salary":
            self.payroll.post_salary(record)
        elif record_type == "asset":
            self.assets.post_purchase(record)
        elif record_type == "depreciation":
            self.assets.post_depreciation(record, self.db.get_fixed_asset(record.asset_id))
        elif record_type == "bank_transaction":
            self.banking.post_transaction(record)
        elif record_type == "transfer":
            self.banking.post_transfer(record)

    def retry_unposted(self, record_type: Optional[str] = None) -> RetryResult:
        """Re-post every unposted record.

        Posting is idempotent per reference, so a record whose entry was
        created but not recorded is linked to that entry instead of posted twice.
        """
        types = [record_type] if record_type else list(RECORD_TYPES)
        result = RetryResult()
        for current in types:
            for _, record in self._collect(current):
                result.attempted += 1
                self._repost(current, record)
        result.still_unposted = self.list_unposted(record_type)
        result.posted = result.attempted - len(result.still_unposted)
        logger.info(
            "Retried %d unposted records: %d posted, %d still unposted",
            result.attempted,
            result.posted,
            len(result.still_unposted),
        )
        return result
