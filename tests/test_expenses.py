"""Tests for the expense workflow."""

from datetime import date
from decimal import Decimal

import pytest

from schoolbooks.domain.entities import ExpenseStatus, PostingStatus
from schoolbooks.domain.errors import ConflictError, InvalidStateError, ValidationError


def _record(service, amount="45000", category="Utilities", vendor="PHCN", **kwargs):
    return service.record_expense(
        category=category,
        description=kwargs.pop("description", "January electricity"),
        amount=amount,
        expense_date=kwargs.pop("expense_date", date(2024, 1, 20)),
        method=kwargs.pop("method", "bank_transfer"),
        recorded_by=kwargs.pop("recorded_by", "clerk"),
        vendor=vendor,
    )


class TestExpenseService:
    """Tests for ExpenseService."""

    def test_record_is_pending_and_unposted(self, expense_service, journal_service):
        expense = _record(expense_service)

        assert expense.status == ExpenseStatus.PENDING
        assert expense.category == "utilities"
        assert expense.reference.startswith("EXP-2024-")
        assert expense.posting_status == PostingStatus.PENDING
        assert journal_service.list_entries() == []

    def test_approve_posts(self, expense_service, journal_service):
        expense = _record(expense_service)
        approved = expense_service.approve_expense(expense.id, "principal")

        assert approved.status == ExpenseStatus.APPROVED
        assert approved.approved_by == "principal"
        assert approved.approved_at is not None
        assert approved.posting_status == PostingStatus.POSTED
        assert journal_service.get_account_balance("5200") == Decimal("45000.00")
        assert journal_service.get_account_balance("1120") == Decimal("-45000.00")

    def test_unmapped_category_posts_to_other_expenses(self, expense_service, journal_service):
        expense = _record(expense_service, category="Gardening", vendor=None)
        expense_service.approve_expense(expense.id, "principal")

        assert journal_service.get_account_balance("5900") == Decimal("45000.00")

    def test_recorder_cannot_approve(self, expense_service):
        expense = _record(expense_service)
        with pytest.raises(ValidationError, match="person who recorded it"):
            expense_service.approve_expense(expense.id, "clerk")

    def test_only_pending_can_be_approved(self, expense_service):
        expense = _record(expense_service)
        expense_service.approve_expense(expense.id, "principal")

        with pytest.raises(InvalidStateError, match="Only pending expenses can be approved."):
            expense_service.approve_expense(expense.id, "principal")

    def test_reject(self, expense_service, journal_service):
        expense = _record(expense_service)
        rejected = expense_service.reject_expense(expense.id, "principal", "No receipt")

        assert rejected.status == ExpenseStatus.REJECTED
        assert rejected.rejection_reason == "No receipt"
        assert journal_service.list_entries() == []
        with pytest.raises(InvalidStateError):
            expense_service.approve_expense(expense.id, "principal")

    def test_reject_requires_reason(self, expense_service):
        expense = _record(expense_service)
        with pytest.raises(ValidationError):
            expense_service.reject_expense(expense.id, "principal", "")

    def test_duplicate_vendor_amount_date(self, expense_service):
        _record(expense_service)
        with pytest.raises(ConflictError, match="Possible duplicate"):
            _record(expense_service)

    def test_rejected_expense_is_not_a_duplicate(self, expense_service):
        first = _record(expense_service)
        expense_service.reject_expense(first.id, "principal", "Wrong amount")

        assert _record(expense_service).status == ExpenseStatus.PENDING

    @pytest.mark.parametrize("amount", ["0", "-100"])
    def test_amount_must_be_positive(self, expense_service, amount):
        with pytest.raises(ValidationError, match="greater than zero"):
            _record(expense_service, amount=amount)

    def test_category_required(self, expense_service):
        with pytest.raises(ValidationError, match="category"):
            _record(expense_service, category=" ")

    def test_posting_failure_recorded(self, expense_service, chart_service):
        chart_service.deactivate_account("5200")
        expense = _record(expense_service)
        approved = expense_service.approve_expense(expense.id, "principal")

        assert approved.status == ExpenseStatus.APPROVED
        assert approved.posting_status == PostingStatus.FAILED
        assert "inactive" in approved.posting_error

    def test_pending_and_totals(self, expense_service):
        first = _record(expense_service, amount="1000")
        _record(expense_service, amount="2000", category="maintenance", vendor="Fixit")
        third = _record(expense_service, amount="500", vendor="Other")
        expense_service.approve_expense(first.id, "principal")
        expense_service.approve_expense(third.id, "principal")

        assert len(expense_service.get_pending()) == 1
        assert expense_service.get_totals_by_category() == {"utilities": Decimal("1500.00")}
        assert len(expense_service.list_expenses(category="Utilities")) == 2
