"""Expense recording and approval service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from schoolbooks.database.base import Database
from schoolbooks.domain.account_mapping import normalize_source_type
from schoolbooks.domain.auto_posting import AutoPostingService, PostingContext, attempt_posting
from schoolbooks.domain.entities import (
    ZERO,
    Expense,
    ExpenseStatus,
    PaymentMethod,
    ReferenceType,
)
from schoolbooks.domain.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    record_not_found,
)
from schoolbooks.utils.clock import Clock, utcnow
from schoolbooks.utils.money import Number, to_money
from schoolbooks.utils.references import ReferenceGenerator

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service for the expense workflow: record, approve (posts) or reject."""

    def __init__(
        self,
        db: Database,
        engine: Optional[AutoPostingService] = None,
        clock: Optional[Clock] = None,
        references: Optional[ReferenceGenerator] = None,
    ):
        self.db = db
        self.engine = engine or AutoPostingService(db, clock=clock, references=references)
        self.clock = clock or utcnow
        self.references = references or ReferenceGenerator()

    def record_expense(
        self,
        category: str,
        description: str,
        amount: Number,
        expense_date: date,
        method: PaymentMethod | str,
        recorded_by: str,
        vendor: Optional[str] = None,
    ) -> Expense:
        """Record a pending expense.

        Args:
            category: Expense category (resolved through the expense mappings)
            description: What was bought or paid for
            amount: Amount spent
            expense_date: Date of the expense
            method: Payment method
            recorded_by: User recording the expense
            vendor: Optional vendor name

        Returns:
            Created expense awaiting approval

        Raises:
            ValidationError: If the amount, category or method is invalid
            ConflictError: If an expense with the same vendor, amount and date exists
        """
        value = to_money(amount)
        if value <= 0:
            raise ValidationError("Expense amount must be greater than zero")
        if not category or not category.strip():
            raise ValidationError("Expense category is required")
        if not description or not description.strip():
            raise ValidationError("Expense description is required")
        try:
            payment_method = PaymentMethod(method)
        except ValueError as e:
            raise ValidationError(f"Invalid payment method: {method}") from e

        if vendor:
            for existing in self.db.list_expenses(
                vendor=vendor, start_date=expense_date, end_date=expense_date
            ):
                if existing.amount == value and existing.status != ExpenseStatus.REJECTED:
                    raise ConflictError(
                        f"Possible duplicate of expense {existing.reference}: "
                        f"same vendor, amount and date"
                    )

        expense_id = self.db.create_expense(
            reference=self.references.expense(expense_date.year),
            category=normalize_source_type(category),
            description=description.strip(),
            amount=value,
            vendor=vendor,
            expense_date=expense_date,
            payment_method=payment_method,
            status=ExpenseStatus.PENDING,
            recorded_by=recorded_by,
        )
        expense = self.db.get_expense(expense_id)
        logger.info("Recorded expense %s (%s) for %s", expense.reference, expense.category, value)
        return expense

    def _require(self, expense_id: int) -> Expense:
        expense = self.db.get_expense(expense_id)
        if expense is None:
            raise NotFoundError(record_not_found("Expense", expense_id))
        return expense

    def get_expense(self, expense_id: int) -> Optional[Expense]:
        return self.db.get_expense(expense_id)

    def approve_expense(self, expense_id: int, approved_by: str) -> Expense:
        """Approve a pending expense and post it.

        Raises:
            InvalidStateError: If the expense is not pending
            ValidationError: If the approver recorded the expense
        """
        expense = self._require(expense_id)
        if expense.status != ExpenseStatus.PENDING:
            raise InvalidStateError("Only pending expenses can be approved.")
        if approved_by == expense.recorded_by:
            raise ValidationError("An expense cannot be approved by the person who recorded it")

        self.db.update_expense(
            expense_id,
            {
                "status": ExpenseStatus.APPROVED,
                "approved_by": approved_by,
                "approved_at": self.clock(),
            },
            expected_version=expense.version,
        )
        logger.info("Expense %s approved by %s", expense.reference, approved_by)
        self.post_expense(self.db.get_expense(expense_id))
        return self.db.get_expense(expense_id)

    def post_expense(self, expense: Expense):
        """(Re)post the entry for an approved expense."""
        ctx = PostingContext(
            description=f"Expense {expense.reference}: {expense.description}",
            entry_date=expense.expense_date,
            reference_type=ReferenceType.EXPENSE,
            reference_id=expense.reference,
            created_by=expense.approved_by or expense.recorded_by,
        )
        return attempt_posting(
            lambda: self.engine.post_expense(
                expense.amount, expense.category, expense.payment_method, expense.vendor, ctx
            ),
            lambda changes: self.db.update_expense(expense.id, changes),
            f"expense {expense.reference}",
        )

    def reject_expense(self, expense_id: int, rejected_by: str, reason: str) -> Expense:
        """Reject a pending expense. Nothing is posted."""
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")
        expense = self._require(expense_id)
        if expense.status != ExpenseStatus.PENDING:
            raise InvalidStateError("Only pending expenses can be rejected.")
        self.db.update_expense(
            expense_id,
            {
                "status": ExpenseStatus.REJECTED,
                "approved_by": rejected_by,
                "approved_at": self.clock(),
                "rejection_reason": reason.strip(),
            },
            expected_version=expense.version,
        )
        return self.db.get_expense(expense_id)

    def list_expenses(
        self,
        status: Optional[ExpenseStatus] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Expense]:
        return self.db.list_expenses(
            status=status,
            category=normalize_source_type(category) if category else None,
            start_date=start_date,
            end_date=end_date,
        )

    def get_pending(self) -> list[Expense]:
        return self.list_expenses(status=ExpenseStatus.PENDING)

    def get_totals_by_category(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> dict[str, Decimal]:
        """Approved spending per category."""
        totals: dict[str, Decimal] = {}
        for expense in self.list_expenses(
            status=ExpenseStatus.APPROVED, start_date=start_date, end_date=end_date
        ):
            totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
        return dict(sorted(totals.items()))
