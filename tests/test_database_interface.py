"""Tests for the Database interface returning domain models."""

from datetime import date, datetime
from pathlib import Path
from decimal import Decimal

import pytest

from schoolbooks.database.factories import create_sqlite_database, default_database_path
from schoolbooks.domain import entities
from schoolbooks.domain.errors import ConflictError, NotFoundError, ValidationError


def _create_cash_account(db):
    return db.create_account(
        code="1110",
        name="Cash",
        account_type=entities.AccountType.ASSET,
        category=entities.AccountCategory.CASH,
    )


class TestDatabaseInterface:
    """Tests to verify the Database interface returns domain models."""

    def test_get_account_returns_domain_model(self, temp_db):
        """Test that get_account returns a domain Account entity."""
        account_id = _create_cash_account(temp_db)

        account = temp_db.get_account(account_id)

        assert isinstance(account, entities.Account)
        assert account.code == "1110"
        assert account.account_type == entities.AccountType.ASSET
        assert account.category == entities.AccountCategory.CASH
        assert account.is_active
        assert isinstance(account.created_at, datetime)
        assert account.version == 1

    def test_duplicate_code_is_conflict(self, temp_db):
        _create_cash_account(temp_db)
        with pytest.raises(ConflictError):
            _create_cash_account(temp_db)

    def test_journal_entry_round_trip(self, temp_db):
        """Test that entries come back with typed lines in order."""
        entry_id = temp_db.create_journal_entry(
            entry_number="JE-2024-TEST0001",
            entry_date=date(2024, 1, 5),
            description="Opening cash",
            lines=[
                entities.JournalLine("1110", "Cash", debit=Decimal("500")),
                entities.JournalLine("3200", "Capital", credit=Decimal("500")),
            ],
            reference_type=entities.ReferenceType.MANUAL,
            reference_id=None,
            status=entities.EntryStatus.DRAFT,
            created_by="tester",
        )

        entry = temp_db.get_journal_entry(entry_id)
        assert isinstance(entry, entities.JournalEntry)
        assert isinstance(entry.lines, tuple)
        assert [line.account_code for line in entry.lines] == ["1110", "3200"]
        assert entry.lines[0].debit == Decimal("500.00")
        assert entry.status == entities.EntryStatus.DRAFT

    def test_update_increments_version(self, temp_db):
        account_id = _create_cash_account(temp_db)

        temp_db.update_account(account_id, {"name": "Cash in Hand"}, expected_version=1)

        account = temp_db.get_account(account_id)
        assert account.name == "Cash in Hand"
        assert account.version == 2

    def test_stale_version_is_conflict(self, temp_db):
        account_id = _create_cash_account(temp_db)
        temp_db.update_account(account_id, {"name": "Petty Cash"})

        with pytest.raises(ConflictError, match="modified by another operation"):
            temp_db.update_account(account_id, {"name": "Cash Box"}, expected_version=1)
        assert temp_db.get_account(account_id).name == "Petty Cash"

    def test_immutable_field_rejected(self, temp_db):
        account_id = _create_cash_account(temp_db)

        with pytest.raises(ValidationError, match="account_type"):
            temp_db.update_account(
                account_id, {"name": "Renamed", "account_type": entities.AccountType.EXPENSE}
            )

        account = temp_db.get_account(account_id)
        assert account.name == "Cash"
        assert account.account_type == entities.AccountType.ASSET

    def test_update_missing_record(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.update_account(404, {"name": "Ghost"})

    def test_payment_returns_allocations(self, temp_db):
        payment_id = temp_db.create_payment(
            reference="PAY-2024-TEST0001",
            student_id="STU001",
            student_name="Ada Obi",
            amount=Decimal("30000"),
            payment_method=entities.PaymentMethod.CASH,
            payment_date=date(2024, 1, 15),
            status=entities.PaymentStatus.CONFIRMED,
            allocations=[
                entities.FeeAllocation("tuition", Decimal("20000")),
                entities.FeeAllocation("books", Decimal("10000")),
            ],
            recorded_by="bursar",
        )

        payment = temp_db.get_payment(payment_id)
        assert isinstance(payment, entities.Payment)
        assert payment.payment_method == entities.PaymentMethod.CASH
        assert payment.posting_status == entities.PostingStatus.PENDING
        assert [a.fee_type for a in payment.allocations] == ["tuition", "books"]
        assert temp_db.get_payment_by_reference("PAY-2024-TEST0001").id == payment_id

    def test_missing_records_return_none(self, temp_db):
        assert temp_db.get_account(1) is None
        assert temp_db.get_journal_entry(1) is None
        assert temp_db.get_payment(1) is None
        assert temp_db.get_bank_account(1) is None


class TestFactories:
    """Tests for locating the ledger file."""

    def test_path_from_environment(self, monkeypatch, tmp_path):
        target = str(tmp_path / "ledger.db")
        monkeypatch.setenv("SCHOOLBOOKS_DB_PATH", target)
        assert default_database_path() == target

    def test_default_under_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SCHOOLBOOKS_DB_PATH", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

        assert default_database_path() == str(tmp_path / ".schoolbooks" / "schoolbooks.db")
        assert (tmp_path / ".schoolbooks").is_dir()

    def test_explicit_path_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCHOOLBOOKS_DB_PATH", str(tmp_path / "ignored.db"))
        db = create_sqlite_database(str(tmp_path / "chosen.db"))

        assert db.database_url == f"sqlite:///{tmp_path / 'chosen.db'}"
