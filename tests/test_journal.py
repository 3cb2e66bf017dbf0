"""Tests for the journal service."""

from datetime import date
from decimal import Decimal

import pytest

from schoolbooks.domain.entities import EntryStatus, JournalLine, ReferenceType
from schoolbooks.domain.errors import (
    InvalidStateError,
    NotFoundError,
    UnbalancedEntryError,
    ValidationError,
)


def _lines(amount="1000", debit_code="1110", credit_code="3200"):
    return [
        JournalLine(account_code=debit_code, account_name="Debit side", debit=Decimal(amount)),
        JournalLine(account_code=credit_code, account_name="Credit side", credit=Decimal(amount)),
    ]


class TestJournalService:
    """Tests for JournalService."""

    def test_create_draft(self, ledger, journal_service):
        entry = journal_service.create_journal_entry(
            _lines(), date(2024, 1, 5), "Capital introduced"
        )

        assert entry.status == EntryStatus.DRAFT
        assert entry.entry_number.startswith("JE-2024-")
        assert entry.reference_type == ReferenceType.MANUAL
        assert entry.total_debit == entry.total_credit == Decimal("1000.00")
        assert entry.posted_at is None

    def test_draft_post_round_trip(self, ledger, journal_service):
        entry = journal_service.create_journal_entry(_lines(), date(2024, 1, 5), "Capital")
        posted = journal_service.post_journal_entry(entry.id, posted_by="bursar")

        assert posted.status == EntryStatus.POSTED
        assert posted.posted_by == "bursar"
        assert posted.posted_at is not None
        assert posted.lines == entry.lines

    def test_double_post_rejected(self, ledger, journal_service):
        entry = journal_service.create_journal_entry(
            _lines(), date(2024, 1, 5), "Capital", status=EntryStatus.POSTED
        )
        with pytest.raises(InvalidStateError, match="already posted"):
            journal_service.post_journal_entry(entry.id)

    def test_unbalanced_entry_not_stored(self, ledger, journal_service):
        lines = [
            JournalLine(account_code="1110", account_name="Cash", debit=Decimal("1000")),
            JournalLine(account_code="3200", account_name="Capital", credit=Decimal("900")),
        ]
        with pytest.raises(UnbalancedEntryError, match="not balanced"):
            journal_service.create_journal_entry(lines, date(2024, 1, 5), "Lopsided")
        assert journal_service.list_entries() == []

    def test_kobo_tolerance(self, ledger, journal_service):
        lines = [
            JournalLine(account_code="1110", account_name="Cash", debit=Decimal("1000.01")),
            JournalLine(account_code="3200", account_name="Capital", credit=Decimal("1000.00")),
        ]
        entry = journal_service.create_journal_entry(lines, date(2024, 1, 5), "Near enough")
        assert entry.is_balanced

    @pytest.mark.parametrize(
        "lines, message",
        [
            ([JournalLine("1110", "Cash", debit=Decimal("10"))], "at least two lines"),
            (
                [
                    JournalLine("1110", "Cash", debit=Decimal("10"), credit=Decimal("10")),
                    JournalLine("3200", "Capital", credit=Decimal("10")),
                ],
                "both debit and credit",
            ),
            (
                [
                    JournalLine("1110", "Cash", debit=Decimal("-10")),
                    JournalLine("3200", "Capital", credit=Decimal("-10")),
                ],
                "negative",
            ),
            (
                [
                    JournalLine("1110", "Cash"),
                    JournalLine("3200", "Capital"),
                ],
                "no amount",
            ),
        ],
    )
    def test_malformed_lines(self, ledger, journal_service, lines, message):
        with pytest.raises(ValidationError, match=message):
            journal_service.create_journal_entry(lines, date(2024, 1, 5), "Bad")

    def test_description_required(self, ledger, journal_service):
        with pytest.raises(ValidationError, match="description"):
            journal_service.create_journal_entry(_lines(), date(2024, 1, 5), "  ")

    def test_post_missing_entry(self, ledger, journal_service):
        with pytest.raises(NotFoundError):
            journal_service.post_journal_entry(999)

    def test_reversal_mirrors_lines(self, ledger, journal_service):
        entry = journal_service.create_journal_entry(
            _lines("2500"), date(2024, 2, 1), "Capital", status=EntryStatus.POSTED
        )
        reversal = journal_service.reverse_journal_entry(entry.id, "bursar", reason="keyed twice")

        assert reversal.status == EntryStatus.POSTED
        assert reversal.reference_type == ReferenceType.REVERSAL
        assert reversal.reversal_of_id == entry.id
        assert "keyed twice" in reversal.description
        assert [(line.account_code, line.debit, line.credit) for line in reversal.lines] == [
            ("1110", Decimal("0.00"), Decimal("2500.00")),
            ("3200", Decimal("2500.00"), Decimal("0.00")),
        ]
        assert journal_service.get_entry(entry.id).reversed_by_id == reversal.id
        assert journal_service.get_account_balance("1110") == 0

    def test_reverse_twice_rejected(self, ledger, journal_service):
        entry = journal_service.create_journal_entry(
            _lines(), date(2024, 2, 1), "Capital", status=EntryStatus.POSTED
        )
        journal_service.reverse_journal_entry(entry.id, "bursar")
        with pytest.raises(InvalidStateError, match="already been reversed"):
            journal_service.reverse_journal_entry(entry.id, "bursar")

    def test_reverse_draft_rejected(self, ledger, journal_service):
        entry = journal_service.create_journal_entry(_lines(), date(2024, 2, 1), "Capital")
        with pytest.raises(InvalidStateError):
            journal_service.reverse_journal_entry(entry.id, "bursar")

    def test_delete_draft_only(self, ledger, journal_service):
        draft = journal_service.create_journal_entry(_lines(), date(2024, 2, 1), "Draft")
        posted = journal_service.create_journal_entry(
            _lines(), date(2024, 2, 1), "Posted", status=EntryStatus.POSTED
        )

        journal_service.delete_draft(draft.id)
        assert journal_service.get_entry(draft.id) is None
        with pytest.raises(InvalidStateError):
            journal_service.delete_draft(posted.id)

    def test_trial_balance_ignores_drafts(self, ledger, journal_service):
        journal_service.create_journal_entry(
            _lines("1000"), date(2024, 1, 5), "Posted", status=EntryStatus.POSTED
        )
        journal_service.create_journal_entry(_lines("400"), date(2024, 1, 6), "Draft")

        trial = journal_service.get_trial_balance()
        assert trial.is_balanced
        assert trial.total_debit == trial.total_credit == Decimal("1000.00")

    def test_trial_balance_as_of_date(self, ledger, journal_service):
        journal_service.create_journal_entry(
            _lines("1000"), date(2024, 1, 5), "January", status=EntryStatus.POSTED
        )
        journal_service.create_journal_entry(
            _lines("300"), date(2024, 2, 5), "February", status=EntryStatus.POSTED
        )

        assert journal_service.get_trial_balance(date(2024, 1, 31)).total_debit == Decimal("1000.00")
        assert journal_service.get_trial_balance().total_debit == Decimal("1300.00")
        assert journal_service.get_account_balance("3200") == Decimal("-1300.00")
        assert journal_service.get_account_balance(
            "3200", start_date=date(2024, 2, 1)
        ) == Decimal("-300.00")

    def test_trial_balance_is_idempotent(self, ledger, journal_service):
        journal_service.create_journal_entry(
            _lines(), date(2024, 1, 5), "Capital", status=EntryStatus.POSTED
        )
        assert journal_service.get_trial_balance() == journal_service.get_trial_balance()

    def test_find_posted_entry_skips_reversed(self, ledger, journal_service):
        entry = journal_service.create_journal_entry(
            _lines(),
            date(2024, 1, 5),
            "Payment",
            reference_type=ReferenceType.PAYMENT,
            reference_id="PAY-2024-TEST0001",
            status=EntryStatus.POSTED,
        )
        assert journal_service.find_posted_entry(ReferenceType.PAYMENT, "PAY-2024-TEST0001").id == entry.id

        journal_service.reverse_journal_entry(entry.id, "bursar")
        assert journal_service.find_posted_entry(ReferenceType.PAYMENT, "PAY-2024-TEST0001") is None
