"""Auto-posting engine.

Translates business events into balanced journal entries. Every method
resolves its accounts through the chart of accounts and the account mapping
resolver, validates the balance invariant before anything is stored, and is
idempotent per (reference type, reference id).
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Sequence

from schoolbooks.database.base import Database
from schoolbooks.domain.account_mapping import AccountMappingService
from schoolbooks.domain.chart_of_accounts import (
    ACCOUNTS_RECEIVABLE_CODE,
    ACCUMULATED_DEPRECIATION_CODE,
    BANK_CODE,
    CASH_CODE,
    DEPRECIATION_EXPENSE_CODE,
    NHF_PAYABLE_CODE,
    NHIS_PAYABLE_CODE,
    PAYE_PAYABLE_CODE,
    PENSION_EXPENSE_CODE,
    PENSION_PAYABLE_CODE,
    SALARIES_PAYABLE_CODE,
    SALARY_EXPENSE_CODE,
    ChartOfAccountsService,
)
from schoolbooks.domain.entities import (
    BALANCE_TOLERANCE,
    ZERO,
    EntryStatus,
    FeeAllocation,
    JournalEntry,
    JournalLine,
    MappingType,
    PaymentMethod,
    PostingStatus,
    ReferenceType,
    StatutoryDeductions,
)
from schoolbooks.domain.errors import ValidationError
from schoolbooks.domain.journal import JournalService
from schoolbooks.utils.clock import Clock
from schoolbooks.utils.money import Number, to_money
from schoolbooks.utils.references import ReferenceGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostingContext:
    """Metadata shared by every journal entry the engine creates."""

    description: str
    entry_date: date
    reference_type: ReferenceType
    reference_id: Optional[str] = None
    created_by: str = "system"
    auto_post: bool = True


def _positive(amount: Number, label: str) -> Decimal:
    value = to_money(amount)
    if value <= 0:
        raise ValidationError(f"{label} must be greater than zero")
    return value


def _non_negative(amount: Number, label: str) -> Decimal:
    value = to_money(amount)
    if value < 0:
        raise ValidationError(f"{label} cannot be negative")
    return value


class AutoPostingService:
    """Builds and posts the journal entry for each business event."""

    def __init__(
        self,
        db: Database,
        clock: Optional[Clock] = None,
        references: Optional[ReferenceGenerator] = None,
        chart: Optional[ChartOfAccountsService] = None,
        mappings: Optional[AccountMappingService] = None,
    ):
        """Initialize auto-posting service.

        Args:
            db: Database instance
            clock: Callable returning the current time
            references: Entry number generator
            chart: Chart of accounts service (shares its cache when given)
            mappings: Account mapping service (shares its cache when given)
        """
        self.db = db
        self.journal = JournalService(db, clock=clock, references=references)
        self.chart = chart or ChartOfAccountsService(db)
        self.mappings = mappings or AccountMappingService(db)

    def line(
        self,
        account_code: str,
        debit: Number = 0,
        credit: Number = 0,
        description: Optional[str] = None,
    ) -> JournalLine:
        """Build a journal line for an existing, active account."""
        account = self.chart.require(account_code)
        if not account.is_active:
            raise ValidationError(f"Account {account_code} ({account.name}) is inactive")
        return JournalLine(
            account_code=account.code,
            account_name=account.name,
            debit=to_money(debit),
            credit=to_money(credit),
            description=description,
        )

    @staticmethod
    def cash_or_bank_code(method: PaymentMethod | str) -> str:
        """Cash payments hit the cash account, everything else the bank account."""
        return CASH_CODE if PaymentMethod(method) == PaymentMethod.CASH else BANK_CODE

    def post_lines(self, lines: Sequence[JournalLine], ctx: PostingContext) -> JournalEntry:
        """Persist a balanced entry for a business reference.

        If an unreversed entry already exists for the reference it is reused:
        a posted one is returned unchanged and a draft is posted when
        ``ctx.auto_post`` is set.
        """
        if ctx.reference_id is not None:
            for existing in self.journal.get_by_reference(ctx.reference_type, ctx.reference_id):
                if existing.reversed_by_id is not None:
                    continue
                if existing.status == EntryStatus.DRAFT and ctx.auto_post:
                    return self.journal.post_journal_entry(existing.id, posted_by=ctx.created_by)
                logger.info(
                    "Journal entry %s already exists for %s %s",
                    existing.entry_number,
                    ctx.reference_type.value,
                    ctx.reference_id,
                )
                return existing

        return self.journal.create_journal_entry(
            lines=lines,
            entry_date=ctx.entry_date,
            description=ctx.description,
            reference_type=ctx.reference_type,
            reference_id=ctx.reference_id,
            created_by=ctx.created_by,
            status=EntryStatus.POSTED if ctx.auto_post else EntryStatus.DRAFT,
        )

    def post_student_payment(
        self, amount: Number, method: PaymentMethod | str, payer: str, ctx: PostingContext
    ) -> JournalEntry:
        """Debit cash or bank, credit accounts receivable."""
        value = _positive(amount, "Payment amount")
        lines = [
            self.line(self.cash_or_bank_code(method), debit=value, description=f"Payment from {payer}"),
            self.line(ACCOUNTS_RECEIVABLE_CODE, credit=value, description=f"Fees settled by {payer}"),
        ]
        return self.post_lines(lines, ctx)

    def post_fee_assignment(
        self, allocations: Sequence[FeeAllocation], student_name: str, ctx: PostingContext
    ) -> JournalEntry:
        """Debit receivables for the total, credit one revenue line per fee type."""
        if not allocations:
            raise ValidationError("Fee assignment must have at least one allocation")

        credit_lines = []
        total = ZERO
        for allocation in allocations:
            value = _positive(allocation.amount, f"Fee amount for {allocation.fee_type}")
            total += value
            revenue_code = self.mappings.resolve(MappingType.REVENUE, allocation.fee_type)
            credit_lines.append(
                self.line(
                    revenue_code,
                    credit=value,
                    description=allocation.description or f"{allocation.fee_type} - {student_name}",
                )
            )

        lines = [
            self.line(ACCOUNTS_RECEIVABLE_CODE, debit=total, description=f"Fees billed to {student_name}"),
            *credit_lines,
        ]
        return self.post_lines(lines, ctx)

    def post_expense(
        self,
        amount: Number,
        category: str,
        method: PaymentMethod | str,
        vendor: Optional[str],
        ctx: PostingContext,
    ) -> JournalEntry:
        """Debit the mapped expense account, credit cash or bank."""
        value = _positive(amount, "Expense amount")
        expense_code = self.mappings.resolve(MappingType.EXPENSE, category)
        paid_to = f" to {vendor}" if vendor else ""
        lines = [
            self.line(expense_code, debit=value, description=ctx.description),
            self.line(self.cash_or_bank_code(method), credit=value, description=f"Payment{paid_to}"),
        ]
        return self.post_lines(lines, ctx)

    def _liability_code(self, source_type: str, default_code: str) -> str:
        mapping = self.mappings.get_mapping(MappingType.LIABILITY, source_type)
        return mapping.account_code if mapping is not None else default_code

    def post_salary_payment(
        self,
        staff_name: str,
        gross_salary: Number,
        total_deductions: Number,
        net_pay: Number,
        tax: Number,
        method: PaymentMethod | str,
        ctx: PostingContext,
        statutory: Optional[StatutoryDeductions] = None,
    ) -> JournalEntry:
        """Post a salary payment.

        Debits salary expense for the gross and pension expense for the
        employer's share. Credits cash or bank for net pay, one liability per
        statutory amount withheld, pension payable for the employer's share and
        salaries payable for any remaining non-statutory deductions. Balances
        whenever net pay equals gross less deductions. A zero gross is
        rejected, since its entry would hold only zero lines.

        Args:
            staff_name: Staff member paid
            gross_salary: Gross salary (basic plus allowances)
            total_deductions: All employee deductions, statutory included
            net_pay: Amount paid out
            tax: PAYE withheld, used when ``statutory`` is not given
            method: Payment method
            ctx: Posting context
            statutory: Statutory deductions included in ``total_deductions``

        Raises:
            ValidationError: For non-positive gross, negative amounts, net pay
                that does not match, or statutory withholdings exceeding total deductions
        """
        gross = _positive(gross_salary, "Gross salary")
        deductions = _non_negative(total_deductions, "Total deductions")
        net = _non_negative(net_pay, "Net pay")
        paye = _non_negative(tax, "Tax")
        if abs(gross - deductions - net) > BALANCE_TOLERANCE:
            raise ValidationError(
                f"Net pay {net} does not equal gross salary {gross} less deductions {deductions}"
            )

        lines = [self.line(SALARY_EXPENSE_CODE, debit=gross, description=f"Gross salary - {staff_name}")]
        if net > 0:
            lines.append(
                self.line(self.cash_or_bank_code(method), credit=net, description=f"Net pay - {staff_name}")
            )

        if statutory is not None:
            withholdings = [
                ("nhf_payable", NHF_PAYABLE_CODE, to_money(statutory.nhf), "NHF"),
                ("pension_payable", PENSION_PAYABLE_CODE, to_money(statutory.pension_employee), "Employee pension"),
                ("nhis_payable", NHIS_PAYABLE_CODE, to_money(statutory.nhis), "NHIS"),
                ("tax_payable", PAYE_PAYABLE_CODE, to_money(statutory.paye), "PAYE"),
            ]
            withheld = ZERO
            for source_type, default_code, amount, label in withholdings:
                if amount < 0:
                    raise ValidationError(f"{label} cannot be negative")
                if amount > 0:
                    lines.append(
                        self.line(
                            self._liability_code(source_type, default_code),
                            credit=amount,
                            description=f"{label} - {staff_name}",
                        )
                    )
                    withheld += amount

            employer_pension = _non_negative(statutory.pension_employer, "Employer pension")
            if employer_pension > 0:
                lines.append(
                    self.line(
                        PENSION_EXPENSE_CODE,
                        debit=employer_pension,
                        description=f"Employer pension - {staff_name}",
                    )
                )
                lines.append(
                    self.line(
                        self._liability_code("pension_payable", PENSION_PAYABLE_CODE),
                        credit=employer_pension,
                        description=f"Employer pension - {staff_name}",
                    )
                )
        else:
            withheld = paye
            if paye > 0:
                lines.append(
                    self.line(
                        self._liability_code("tax_payable", PAYE_PAYABLE_CODE),
                        credit=paye,
                        description=f"PAYE - {staff_name}",
                    )
                )

        other_deductions = deductions - withheld
        if other_deductions < -BALANCE_TOLERANCE:
            raise ValidationError(
                f"Statutory withholdings {withheld} exceed total deductions {deductions}"
            )
        if other_deductions > 0:
            lines.append(
                self.line(
                    self._liability_code("salary_payable", SALARIES_PAYABLE_CODE),
                    credit=other_deductions,
                    description=f"Other deductions - {staff_name}",
                )
            )

        return self.post_lines(lines, ctx)

    def post_asset_purchase(
        self,
        price: Number,
        method: PaymentMethod | str,
        vendor: Optional[str],
        asset_name: str,
        asset_type: str,
        ctx: PostingContext,
    ) -> JournalEntry:
        """Debit the mapped asset account, credit cash or bank."""
        value = _positive(price, "Purchase price")
        asset_code = self.mappings.resolve(MappingType.ASSET, asset_type)
        bought_from = f" from {vendor}" if vendor else ""
        lines = [
            self.line(asset_code, debit=value, description=f"Purchase of {asset_name}"),
            self.line(self.cash_or_bank_code(method), credit=value, description=f"Payment{bought_from}"),
        ]
        return self.post_lines(lines, ctx)

    def post_depreciation(
        self, amount: Number, asset_name: str, asset_code: str, ctx: PostingContext
    ) -> JournalEntry:
        """Debit depreciation expense, credit accumulated depreciation."""
        value = _positive(amount, "Depreciation amount")
        lines = [
            self.line(
                DEPRECIATION_EXPENSE_CODE,
                debit=value,
                description=f"Depreciation - {asset_name} ({asset_code})",
            ),
            self.line(
                ACCUMULATED_DEPRECIATION_CODE,
                credit=value,
                description=f"Accumulated depreciation - {asset_code}",
            ),
        ]
        return self.post_lines(lines, ctx)


def attempt_posting(
    post: Callable[[], Optional[JournalEntry]],
    record: Callable[[dict], None],
    label: str,
) -> Optional[JournalEntry]:
    """Run a posting call and store its outcome on the business record.

    The business record is already committed, so a failure here is logged
    and recorded (``posting_status=failed``) instead of raised. A posting
    call that returns None is recorded as skipped.

    Args:
        post: Callable creating the journal entry
        record: Callable applying posting field changes to the record
        label: Record description for log messages

    Returns:
        The posted entry, or None when posting failed or was skipped
    """
    try:
        entry = post()
    except Exception as e:
        logger.exception("Auto-posting failed for %s", label)
        record({"posting_status": PostingStatus.FAILED, "posting_error": str(e)})
        return None

    if entry is None:
        record(
            {
                "posting_status": PostingStatus.SKIPPED,
                "posting_error": "No general ledger account linked",
            }
        )
        return None

    record(
        {
            "journal_entry_id": entry.id,
            "posting_status": PostingStatus.POSTED,
            "posting_error": None,
        }
    )
    return entry
