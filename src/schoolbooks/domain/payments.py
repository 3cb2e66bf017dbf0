"""Fee billing and student payment services."""

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from schoolbooks.database.base import Database
from schoolbooks.domain.auto_posting import AutoPostingService, PostingContext, attempt_posting
from schoolbooks.domain.entities import (
    BALANCE_TOLERANCE,
    ZERO,
    FeeAllocation,
    FeeAssignment,
    Payment,
    PaymentMethod,
    PaymentStatus,
    ReferenceType,
)
from schoolbooks.domain.errors import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
    record_not_found,
)
from schoolbooks.utils.clock import Clock, utcnow
from schoolbooks.utils.money import Number, to_money
from schoolbooks.utils.references import ReferenceGenerator

logger = logging.getLogger(__name__)

DEFAULT_CASH_PAYMENT_LIMIT = Decimal("500000")


def cash_payment_limit() -> Decimal:
    """Largest cash payment accepted, from SCHOOLBOOKS_CASH_PAYMENT_LIMIT."""
    value = os.getenv("SCHOOLBOOKS_CASH_PAYMENT_LIMIT")
    if not value:
        return DEFAULT_CASH_PAYMENT_LIMIT
    return to_money(value)


def fee_assignment_reference(assignment_id: int) -> str:
    return f"FEE-{assignment_id}"


def _clean_allocations(allocations: Sequence[FeeAllocation]) -> list[FeeAllocation]:
    if not allocations:
        raise ValidationError("At least one fee allocation is required")
    cleaned = []
    for allocation in allocations:
        if not allocation.fee_type or not allocation.fee_type.strip():
            raise ValidationError("Fee allocation is missing a fee type")
        amount = to_money(allocation.amount)
        if amount <= 0:
            raise ValidationError(f"Allocation for {allocation.fee_type} must be greater than zero")
        cleaned.append(
            FeeAllocation(
                fee_type=allocation.fee_type.strip().lower(),
                amount=amount,
                description=allocation.description,
            )
        )
    return cleaned


class FeeService:
    """Bills fees to students and posts the receivable."""

    def __init__(
        self,
        db: Database,
        engine: Optional[AutoPostingService] = None,
    ):
        self.db = db
        self.engine = engine or AutoPostingService(db)

    def assign_fees(
        self,
        student_id: str,
        student_name: str,
        allocations: Sequence[FeeAllocation],
        assigned_by: str,
        entry_date: date,
        term: Optional[str] = None,
    ) -> FeeAssignment:
        """Bill fees to a student.

        Debits accounts receivable and credits the revenue account mapped to
        each fee type.

        Args:
            student_id: Student identifier
            student_name: Student display name
            allocations: Fee amounts per fee type
            assigned_by: User billing the fees
            entry_date: Billing date
            term: Optional academic term label

        Returns:
            The stored assignment with its posting outcome
        """
        if not student_id:
            raise ValidationError("Student is required")
        cleaned = _clean_allocations(allocations)
        total = sum((a.amount for a in cleaned), ZERO)

        assignment_id = self.db.create_fee_assignment(
            student_id=student_id,
            student_name=student_name,
            term=term,
            allocations=cleaned,
            total_amount=total,
            assignment_date=entry_date,
            assigned_by=assigned_by,
        )
        self.post_assignment(self.db.get_fee_assignment(assignment_id))
        return self.db.get_fee_assignment(assignment_id)

    def post_assignment(self, assignment: FeeAssignment):
        """(Re)post the receivable entry for an assignment."""
        term = f" ({assignment.term})" if assignment.term else ""
        ctx = PostingContext(
            description=f"Fees billed to {assignment.student_name}{term}",
            entry_date=assignment.assignment_date,
            reference_type=ReferenceType.FEE_ASSIGNMENT,
            reference_id=fee_assignment_reference(assignment.id),
            created_by=assignment.assigned_by,
        )
        return attempt_posting(
            lambda: self.engine.post_fee_assignment(
                assignment.allocations, assignment.student_name, ctx
            ),
            lambda changes: self.db.update_fee_assignment(assignment.id, changes),
            f"fee assignment {assignment.id}",
        )

    def get_assignments(self, student_id: Optional[str] = None) -> list[FeeAssignment]:
        return self.db.list_fee_assignments(student_id=student_id)

    def get_outstanding_balance(self, student_id: str) -> Decimal:
        """Fees billed less confirmed payments for a student."""
        billed = sum((a.total_amount for a in self.get_assignments(student_id)), ZERO)
        paid = sum(
            (
                p.amount
                for p in self.db.list_payments(
                    student_id=student_id, status=PaymentStatus.CONFIRMED
                )
            ),
            ZERO,
        )
        return billed - paid


@dataclass
class PaymentAnalytics:
    """Payment totals over a period."""

    start_date: Optional[date]
    end_date: Optional[date]
    total_amount: Decimal = ZERO
    payment_count: int = 0
    by_method: dict[str, Decimal] = field(default_factory=dict)
    by_fee_type: dict[str, Decimal] = field(default_factory=dict)
    average_payment: Decimal = ZERO


class PaymentService:
    """Records student payments and posts them to cash or bank."""

    def __init__(
        self,
        db: Database,
        engine: Optional[AutoPostingService] = None,
        clock: Optional[Clock] = None,
        references: Optional[ReferenceGenerator] = None,
    ):
        """Initialize payment service.

        Args:
            db: Database instance
            engine: Auto-posting engine
            clock: Callable returning the current time
            references: Reference generator
        """
        self.db = db
        self.engine = engine or AutoPostingService(db, clock=clock, references=references)
        self.clock = clock or utcnow
        self.references = references or ReferenceGenerator()

    def record_payment(
        self,
        student_id: str,
        student_name: str,
        amount: Number,
        method: PaymentMethod | str,
        payment_date: date,
        allocations: Sequence[FeeAllocation],
        recorded_by: str,
        paid_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        """Record a confirmed student payment and post it.

        Args:
            student_id: Student identifier
            student_name: Student display name
            amount: Amount received
            method: Payment method
            payment_date: Date received
            allocations: How the amount splits across fee types
            recorded_by: User recording the payment
            paid_by: Name of the payer, if not the student
            notes: Free-form notes

        Returns:
            The stored payment with its posting outcome

        Raises:
            ValidationError: If the amount, method or allocations are invalid,
                or a cash payment exceeds the cash limit
        """
        if not student_id:
            raise ValidationError("Student is required")
        value = to_money(amount)
        if value <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        try:
            payment_method = PaymentMethod(method)
        except ValueError as e:
            raise ValidationError(f"Invalid payment method: {method}") from e

        cleaned = _clean_allocations(allocations)
        allocated = sum((a.amount for a in cleaned), ZERO)
        if abs(allocated - value) > BALANCE_TOLERANCE:
            raise ValidationError(
                f"Payment allocations do not match payment amount ({allocated} vs {value})"
            )

        limit = cash_payment_limit()
        if payment_method == PaymentMethod.CASH and value > limit:
            raise ValidationError(
                f"Cash payments above {limit:,.2f} are not allowed; use a bank transfer"
            )

        payment_id = self.db.create_payment(
            reference=self.references.payment(payment_date.year),
            student_id=student_id,
            student_name=student_name,
            amount=value,
            payment_method=payment_method,
            payment_date=payment_date,
            status=PaymentStatus.CONFIRMED,
            allocations=cleaned,
            recorded_by=recorded_by,
            paid_by=paid_by,
            notes=notes,
        )
        payment = self.db.get_payment(payment_id)
        logger.info("Recorded payment %s of %s from %s", payment.reference, value, student_name)
        self.post_payment(payment)
        return self.db.get_payment(payment_id)

    def post_payment(self, payment: Payment):
        """(Re)post the cash/receivable entry for a payment."""
        ctx = PostingContext(
            description=f"Fee payment {payment.reference} - {payment.student_name}",
            entry_date=payment.payment_date,
            reference_type=ReferenceType.PAYMENT,
            reference_id=payment.reference,
            created_by=payment.recorded_by,
        )
        return attempt_posting(
            lambda: self.engine.post_student_payment(
                payment.amount, payment.payment_method, payment.paid_by or payment.student_name, ctx
            ),
            lambda changes: self.db.update_payment(payment.id, changes),
            f"payment {payment.reference}",
        )

    def _require(self, payment_id: int) -> Payment:
        payment = self.db.get_payment(payment_id)
        if payment is None:
            raise NotFoundError(record_not_found("Payment", payment_id))
        return payment

    def get_payment(self, payment_id: int) -> Optional[Payment]:
        return self.db.get_payment(payment_id)

    def cancel_payment(self, payment_id: int, reason: str, cancelled_by: str = "system") -> Payment:
        """Cancel a confirmed payment and reverse its journal entry.

        Raises:
            ValidationError: If no reason is given
            InvalidStateError: If the payment is not confirmed
        """
        if not reason or not reason.strip():
            raise ValidationError("A cancellation reason is required")
        payment = self._require(payment_id)
        if payment.status != PaymentStatus.CONFIRMED:
            raise InvalidStateError(
                f"Only confirmed payments can be cancelled (payment is {payment.status.value})"
            )

        notes = f"{payment.notes}\n" if payment.notes else ""
        self.db.update_payment(
            payment_id,
            {"status": PaymentStatus.CANCELLED, "notes": f"{notes}Cancelled: {reason.strip()}"},
            expected_version=payment.version,
        )

        entry = self.engine.journal.find_posted_entry(ReferenceType.PAYMENT, payment.reference)
        if entry is not None:
            self.engine.journal.reverse_journal_entry(
                entry.id, reversed_by=cancelled_by, reason=f"payment cancelled: {reason.strip()}"
            )
        logger.info("Cancelled payment %s", payment.reference)
        return self.db.get_payment(payment_id)

    def generate_receipt(self, payment_id: int) -> Payment:
        """Assign a receipt number to a confirmed payment (once)."""
        payment = self._require(payment_id)
        if payment.status != PaymentStatus.CONFIRMED:
            raise InvalidStateError("Receipts can only be issued for confirmed payments")
        if payment.receipt_number:
            return payment
        self.db.update_payment(
            payment_id,
            {"receipt_number": self.references.receipt(payment.payment_date.year)},
            expected_version=payment.version,
        )
        return self.db.get_payment(payment_id)

    def list_payments(
        self,
        student_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        method: Optional[PaymentMethod] = None,
        status: Optional[PaymentStatus] = None,
    ) -> list[Payment]:
        return self.db.list_payments(
            student_id=student_id,
            start_date=start_date,
            end_date=end_date,
            payment_method=method,
            status=status,
        )

    def get_by_student(self, student_id: str) -> list[Payment]:
        return self.list_payments(student_id=student_id)

    def get_by_date_range(self, start_date: date, end_date: date) -> list[Payment]:
        return self.list_payments(start_date=start_date, end_date=end_date)

    def get_payment_analytics(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> PaymentAnalytics:
        """Totals of confirmed payments by method and fee type."""
        payments = self.list_payments(
            start_date=start_date, end_date=end_date, status=PaymentStatus.CONFIRMED
        )
        analytics = PaymentAnalytics(start_date=start_date, end_date=end_date)
        for payment in payments:
            analytics.total_amount += payment.amount
            analytics.payment_count += 1
            method = payment.payment_method.value
            analytics.by_method[method] = analytics.by_method.get(method, ZERO) + payment.amount
            for allocation in payment.allocations:
                analytics.by_fee_type[allocation.fee_type] = (
                    analytics.by_fee_type.get(allocation.fee_type, ZERO) + allocation.amount
                )
        if analytics.payment_count:
            analytics.average_payment = to_money(analytics.total_amount / analytics.payment_count)
        return analytics
