"""Tests for finding and re-posting unposted records."""

from datetime import date
from decimal import Decimal

import pytest

from schoolbooks.domain.banking import BankingService
from schoolbooks.domain.entities import BankTransactionType, FeeAllocation, PostingStatus
from schoolbooks.domain.errors import ValidationError
from schoolbooks.domain.expenses import ExpenseService
from schoolbooks.domain.payments import PaymentService


def _initialize(engine):
    engine.chart.initialize_defaults()
    engine.mappings.initialize_defaults()


class TestPostingReconciliation:
    """Tests for PostingReconciliationService."""

    def test_failed_payment_is_listed_and_retried(self, temp_db, engine, reconciliation_service):
        payments = PaymentService(temp_db, engine=engine)
        payment = payments.record_payment(
            "STU001",
            "Ada Obi",
            "25000",
            "cash",
            date(2024, 1, 15),
            [FeeAllocation("tuition", Decimal("25000"))],
            "bursar",
        )
        assert payment.posting_status == PostingStatus.FAILED

        unposted = reconciliation_service.list_unposted()
        assert [(u.record_type, u.reference) for u in unposted] == [("payment", payment.reference)]
        assert unposted[0].details["amount"] == Decimal("25000.00")

        _initialize(engine)
        result = reconciliation_service.retry_unposted()

        assert result.attempted == 1
        assert result.posted == 1
        assert result.still_unposted == []
        assert payments.get_payment(payment.id).posting_status == PostingStatus.POSTED
        assert engine.journal.get_account_balance("1110") == Decimal("25000.00")

    def test_retry_leaves_failures_listed(self, temp_db, engine, reconciliation_service):
        PaymentService(temp_db, engine=engine).record_payment(
            "STU001",
            "Ada Obi",
            "1000",
            "cash",
            date(2024, 1, 15),
            [FeeAllocation("tuition", Decimal("1000"))],
            "bursar",
        )
        result = reconciliation_service.retry_unposted("payment")

        assert result.attempted == 1
        assert result.posted == 0
        assert len(result.still_unposted) == 1

    def test_skipped_bank_transaction_posts_once_linked(self, temp_db, engine, reconciliation_service):
        _initialize(engine)
        banking = BankingService(temp_db, engine=engine)
        account = banking.create_bank_account("Main", "First Bank", "3012345678")
        transaction = banking.record_transaction(
            account.id,
            date(2024, 1, 10),
            "Lodgement",
            "bursar",
            credit_amount="5000",
            transaction_type=BankTransactionType.DEPOSIT,
        )
        assert transaction.posting_status == PostingStatus.SKIPPED
        assert [u.record_type for u in reconciliation_service.list_unposted()] == ["bank_transaction"]

        banking.link_gl_account(account.id, "1120")
        result = reconciliation_service.retry_unposted("bank_transaction")

        assert result.posted == 1
        assert engine.journal.get_account_balance("1120") == Decimal("5000.00")

    def test_pending_expenses_are_not_unposted(self, temp_db, engine, reconciliation_service):
        _initialize(engine)
        ExpenseService(temp_db, engine=engine).record_expense(
            "utilities", "Diesel", "30000", date(2024, 1, 5), "cash", "clerk"
        )
        assert reconciliation_service.list_unposted() == []

    def test_retry_is_idempotent(self, temp_db, engine, reconciliation_service):
        _initialize(engine)
        PaymentService(temp_db, engine=engine).record_payment(
            "STU001",
            "Ada Obi",
            "1000",
            "cash",
            date(2024, 1, 15),
            [FeeAllocation("tuition", Decimal("1000"))],
            "bursar",
        )
        result = reconciliation_service.retry_unposted()

        assert result.attempted == 0
        assert len(engine.journal.list_entries()) == 1

    def test_unknown_record_type(self, reconciliation_service):
        with pytest.raises(ValidationError, match="Unknown record type"):
            reconciliation_service.list_unposted("invoice")
