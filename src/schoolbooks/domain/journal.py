"""Journal ledger domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from schoolbooks.database.base import Database
from schoolbooks.domain.entities import (
    BALANCE_TOLERANCE,
    ZERO,
    EntryStatus,
    JournalEntry,
    JournalLine,
    ReferenceType,
    TrialBalance,
)
from schoolbooks.domain.errors import (
    InvalidStateError,
    NotFoundError,
    UnbalancedEntryError,
    ValidationError,
    entry_not_found,
    unbalanced_entry,
)
from schoolbooks.utils.clock import Clock, utcnow
from schoolbooks.utils.money import to_money
from schoolbooks.utils.references import ReferenceGenerator

logger = logging.getLogger(__name__)


def validate_lines(lines: Sequence[JournalLine]) -> None:
    """Check line-level rules and the balance invariant.

    Raises:
        ValidationError: For empty, negative, two-sided or zero lines
        UnbalancedEntryError: If total debits and credits differ by more than 0.01
    """
    if len(lines) < 2:
        raise ValidationError("Journal entry must have at least two lines")
    for line in lines:
        if not line.account_code:
            raise ValidationError("Journal line is missing an account code")
        if line.debit < 0 or line.credit < 0:
            raise ValidationError(f"Journal line for account {line.account_code} has a negative amount")
        if line.debit > 0 and line.credit > 0:
            raise ValidationError(
                f"Journal line for account {line.account_code} cannot have both debit and credit"
            )
        if line.debit == 0 and line.credit == 0:
            raise ValidationError(f"Journal line for account {line.account_code} has no amount")

    total_debit = sum((line.debit for line in lines), ZERO)
    total_credit = sum((line.credit for line in lines), ZERO)
    if abs(total_debit - total_credit) > BALANCE_TOLERANCE:
        raise UnbalancedEntryError(unbalanced_entry(total_debit, total_credit))


def _normalize(line: JournalLine) -> JournalLine:
    return JournalLine(
        account_code=line.account_code,
        account_name=line.account_name,
        debit=to_money(line.debit),
        credit=to_money(line.credit),
        description=line.description,
    )


class JournalService:
    """Service for creating, posting and querying journal entries."""

    def __init__(
        self,
        db: Database,
        clock: Optional[Clock] = None,
        references: Optional[ReferenceGenerator] = None,
    ):
        """Initialize journal service.

        Args:
            db: Database instance
            clock: Callable returning the current time (UTC by default)
            references: Entry number generator
        """
        self.db = db
        self.clock = clock or utcnow
        self.references = references or ReferenceGenerator()

    def create_journal_entry(
        self,
        lines: Sequence[JournalLine],
        entry_date: date,
        description: str,
        reference_type: ReferenceType = ReferenceType.MANUAL,
        reference_id: Optional[str] = None,
        created_by: str = "system",
        status: EntryStatus = EntryStatus.DRAFT,
        reversal_of_id: Optional[int] = None,
    ) -> JournalEntry:
        """Create a journal entry.

        Args:
            lines: Debit and credit lines
            entry_date: Accounting date of the entry
            description: Entry description
            reference_type: Business event type
            reference_id: Identifier of the business record
            created_by: User creating the entry
            status: Draft (default) or posted

        Returns:
            Created journal entry

        Raises:
            ValidationError: If the lines are malformed
            UnbalancedEntryError: If debits and credits do not agree; nothing is stored
        """
        normalized = [_normalize(line) for line in lines]
        validate_lines(normalized)
        if not description or not description.strip():
            raise ValidationError("Journal entry description is required")

        posted_at = None
        posted_by = None
        if status == EntryStatus.POSTED:
            posted_at = self.clock()
            posted_by = created_by

        entry_id = self.db.create_journal_entry(
            entry_number=self.references.journal_entry(entry_date.year),
            entry_date=entry_date,
            description=description.strip(),
            lines=normalized,
            reference_type=reference_type,
            reference_id=reference_id,
            status=status,
            created_by=created_by,
            posted_at=posted_at,
            posted_by=posted_by,
            reversal_of_id=reversal_of_id,
        )
        entry = self.db.get_journal_entry(entry_id)
        logger.info(
            "Created %s journal entry %s (%s %s) for %s",
            entry.status.value,
            entry.entry_number,
            entry.reference_type.value,
            entry.reference_id or "-",
            entry.total_debit,
        )
        return entry

    def get_entry(self, entry_id: int) -> Optional[JournalEntry]:
        return self.db.get_journal_entry(entry_id)

    def _require(self, entry_id: int) -> JournalEntry:
        entry = self.db.get_journal_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        return entry

    def post_journal_entry(self, entry_id: int, posted_by: Optional[str] = None) -> JournalEntry:
        """Post a draft entry.

        Raises:
            NotFoundError: If the entry does not exist
            InvalidStateError: If the entry is already posted
            UnbalancedEntryError: If the stored lines no longer balance
        """
        entry = self._require(entry_id)
        if entry.status == EntryStatus.POSTED:
            raise InvalidStateError(f"Journal entry {entry.entry_number} already posted")
        if not entry.is_balanced:
            raise UnbalancedEntryError("Cannot post unbalanced journal entry")

        self.db.update_journal_entry(
            entry_id,
            {
                "status": EntryStatus.POSTED,
                "posted_at": self.clock(),
                "posted_by": posted_by or entry.created_by,
            },
            expected_version=entry.version,
        )
        logger.info("Posted journal entry %s", entry.entry_number)
        return self.db.get_journal_entry(entry_id)

    def reverse_journal_entry(
        self,
        entry_id: int,
        reversed_by: str,
        entry_date: Optional[date] = None,
        reason: Optional[str] = None,
    ) -> JournalEntry:
        """Correct a posted entry by posting its mirror image.

        Debits and credits are swapped; the original stays untouched apart
        from the link to its reversal.

        Args:
            entry_id: Entry to reverse
            reversed_by: User performing the reversal
            entry_date: Date of the reversing entry (defaults to the original date)
            reason: Optional reason, added to the description

        Returns:
            The posted reversing entry

        Raises:
            NotFoundError: If the entry does not exist
            InvalidStateError: If the entry is a draft or already reversed
        """
        entry = self._require(entry_id)
        if entry.status != EntryStatus.POSTED:
            raise InvalidStateError("Only posted journal entries can be reversed; delete the draft instead")
        if entry.reversed_by_id is not None:
            raise InvalidStateError(f"Journal entry {entry.entry_number} has already been reversed")

        mirrored = [
            JournalLine(
                account_code=line.account_code,
                account_name=line.account_name,
                debit=line.credit,
                credit=line.debit,
                description=line.description,
            )
            for line in entry.lines
        ]
        description = f"Reversal of {entry.entry_number}: {entry.description}"
        if reason:
            description = f"{description} ({reason})"
        reversal = self.create_journal_entry(
            lines=mirrored,
            entry_date=entry_date or entry.entry_date,
            description=description,
            reference_type=ReferenceType.REVERSAL,
            reference_id=entry.entry_number,
            created_by=reversed_by,
            status=EntryStatus.POSTED,
            reversal_of_id=entry.id,
        )
        self.db.update_journal_entry(
            entry.id, {"reversed_by_id": reversal.id}, expected_version=entry.version
        )
        return reversal

    def delete_draft(self, entry_id: int) -> None:
        """Delete a draft entry. Posted entries can only be reversed."""
        entry = self._require(entry_id)
        if entry.status != EntryStatus.DRAFT:
            raise InvalidStateError("Posted journal entries cannot be deleted; reverse them instead")
        self.db.delete_journal_entry(entry_id)

    def list_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[EntryStatus] = None,
    ) -> list[JournalEntry]:
        return self.db.list_journal_entries(start_date=start_date, end_date=end_date, status=status)

    def get_by_status(self, status: EntryStatus) -> list[JournalEntry]:
        return self.db.list_journal_entries(status=status)

    def get_by_date_range(self, start_date: date, end_date: date) -> list[JournalEntry]:
        return self.db.list_journal_entries(start_date=start_date, end_date=end_date)

    def get_by_reference(
        self, reference_type: ReferenceType, reference_id: Optional[str] = None
    ) -> list[JournalEntry]:
        return self.db.list_journal_entries(reference_type=reference_type, reference_id=reference_id)

    def find_posted_entry(
        self, reference_type: ReferenceType, reference_id: str
    ) -> Optional[JournalEntry]:
        """Posted, unreversed entry recorded for a business reference, if any."""
        for entry in self.get_by_reference(reference_type, reference_id):
            if entry.status == EntryStatus.POSTED and entry.reversed_by_id is None:
                return entry
        return None

    def get_trial_balance(self, as_of_date: Optional[date] = None) -> TrialBalance:
        """Sum posted lines per account up to and including ``as_of_date``.

        Returns:
            TrialBalance; ``is_balanced`` when total debits and credits differ by less than 0.01
        """
        accounts = self.db.sum_posted_lines(end_date=as_of_date)
        total_debit = sum((a.debit for a in accounts), ZERO)
        total_credit = sum((a.credit for a in accounts), ZERO)
        return TrialBalance(
            as_of_date=as_of_date,
            accounts=accounts,
            total_debit=total_debit,
            total_credit=total_credit,
            is_balanced=abs(total_debit - total_credit) < BALANCE_TOLERANCE,
        )

    def get_account_balance(
        self,
        account_code: str,
        as_of_date: Optional[date] = None,
        start_date: Optional[date] = None,
    ) -> Decimal:
        """Posted debits minus credits for one account."""
        for line in self.db.sum_posted_lines(start_date=start_date, end_date=as_of_date):
            if line.account_code == account_code:
                return line.balance
        return ZERO
