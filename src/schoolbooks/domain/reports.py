"""Financial statements generated from posted journal lines."""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from schoolbooks.database.base import Database
from schoolbooks.domain.assets import monthly_depreciation
from schoolbooks.domain.entities import (
    BALANCE_TOLERANCE,
    ZERO,
    Account,
    AccountCategory,
    AccountType,
    AssetStatus,
    EntryStatus,
    FixedAsset,
    ReferenceType,
)
from schoolbooks.utils.clock import Clock, utcnow
from schoolbooks.utils.date_parser import month_end

logger = logging.getLogger(__name__)

CURRENT_YEAR_EARNINGS = "Current Year Earnings"

OPERATING_LABELS = {
    ReferenceType.PAYMENT: "Fee collections",
    ReferenceType.FEE_ASSIGNMENT: "Fee collections",
    ReferenceType.EXPENSE: "Operating expenses paid",
    ReferenceType.SALARY: "Salaries paid",
    ReferenceType.BANK_TRANSACTION: "Bank transactions",
}


@dataclass
class ReportLine:
    account_code: str
    account_name: str
    amount: Decimal


@dataclass
class ReportSection:
    """Titled group of report lines."""

    title: str
    lines: list[ReportLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.lines), ZERO)


@dataclass
class IncomeStatement:
    start_date: date
    end_date: date
    revenue: list[ReportLine]
    expenses: list[ReportLine]
    revenue_groups: list[ReportSection]
    expense_groups: list[ReportSection]
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal


@dataclass
class BalanceSheet:
    as_of_date: date
    current_assets: ReportSection
    fixed_assets: ReportSection
    current_liabilities: ReportSection
    long_term_liabilities: ReportSection
    equity: ReportSection
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    is_balanced: bool


@dataclass
class CashFlowStatement:
    start_date: date
    end_date: date
    operating: ReportSection
    investing: ReportSection
    financing: ReportSection
    net_operating: Decimal
    net_investing: Decimal
    net_financing: Decimal
    net_change: Decimal
    beginning_cash: Decimal
    ending_cash: Decimal


@dataclass
class TrialBalanceReportLine:
    account_code: str
    account_name: str
    account_type: Optional[AccountType]
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass
class TrialBalanceReport:
    as_of_date: Optional[date]
    lines: list[TrialBalanceReportLine]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool


@dataclass
class AssetRegisterLine:
    asset_code: str
    name: str
    asset_type: str
    purchase_date: date
    cost: Decimal
    residual_value: Decimal
    accumulated_depreciation: Decimal
    book_value: Decimal
    recorded_depreciation: Decimal
    status: AssetStatus


@dataclass
class AssetRegister:
    as_of_date: date
    lines: list[AssetRegisterLine]
    total_cost: Decimal
    total_accumulated_depreciation: Decimal
    total_book_value: Decimal


@dataclass
class DepreciationScheduleLine:
    asset_code: str
    name: str
    year: int
    month: int
    amount: Decimal
    accumulated: Decimal
    book_value: Decimal


@dataclass
class DepreciationSchedule:
    start_date: date
    end_date: date
    lines: list[DepreciationScheduleLine]
    total_depreciation: Decimal


def _month_index(value: date) -> int:
    return value.year * 12 + value.month


def months_charged(asset: FixedAsset, as_of: date) -> int:
    """Months of depreciation due by ``as_of``, counting the purchase month.

    A month counts once its last day has been reached.
    """
    months = _month_index(as_of) - _month_index(asset.purchase_date)
    if as_of == month_end(as_of.year, as_of.month):
        months += 1
    return max(months, 0)


def scheduled_accumulated(asset: FixedAsset, months: int) -> Decimal:
    """Straight-line accumulated depreciation after a number of months."""
    return min(monthly_depreciation(asset) * months, asset.depreciable_amount)


class ReportsService:
    """Builds financial statements. Holds no state between reports."""

    def __init__(self, db: Database, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or utcnow

    def _today(self) -> date:
        return self.clock().date()

    def _accounts(self) -> dict[str, Account]:
        return {a.code: a for a in self.db.list_accounts()}

    def _balances(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[tuple[Account, Decimal]]:
        """(account, debit minus credit) for every account with posted lines."""
        accounts = self._accounts()
        result = []
        for line in self.db.sum_posted_lines(start_date=start_date, end_date=end_date):
            account = accounts.get(line.account_code)
            if account is None:
                logger.warning("Posted lines reference unknown account %s", line.account_code)
                continue
            result.append((account, line.balance))
        return result

    def _group(self, lines: list[tuple[Account, ReportLine]]) -> list[ReportSection]:
        accounts = self._accounts()
        groups: dict[str, ReportSection] = {}
        for account, line in lines:
            parent = accounts.get(account.parent_code) if account.parent_code else None
            title = parent.name if parent is not None else account.name
            groups.setdefault(title, ReportSection(title)).lines.append(line)
        return list(groups.values())

    def generate_income_statement(self, start_date: date, end_date: date) -> IncomeStatement:
        """Revenue and expenses for a period.

        Args:
            start_date: First day of the period
            end_date: Last day of the period (inclusive)

        Returns:
            IncomeStatement with lines sorted by account code
        """
        revenue: list[tuple[Account, ReportLine]] = []
        expenses: list[tuple[Account, ReportLine]] = []
        for account, balance in self._balances(start_date, end_date):
            if account.account_type == AccountType.REVENUE and balance != 0:
                revenue.append((account, ReportLine(account.code, account.name, -balance)))
            elif account.account_type == AccountType.EXPENSE and balance != 0:
                expenses.append((account, ReportLine(account.code, account.name, balance)))

        total_revenue = sum((line.amount for _, line in revenue), ZERO)
        total_expenses = sum((line.amount for _, line in expenses), ZERO)
        return IncomeStatement(
            start_date=start_date,
            end_date=end_date,
            revenue=[line for _, line in revenue],
            expenses=[line for _, line in expenses],
            revenue_groups=self._group(revenue),
            expense_groups=self._group(expenses),
            total_revenue=total_revenue,
            total_expenses=total_expenses,
            net_income=total_revenue - total_expenses,
        )

    def generate_balance_sheet(self, as_of_date: Optional[date] = None) -> BalanceSheet:
        """Assets, liabilities and equity at a date.

        Revenue less expenses to date is shown as a current year earnings
        line under equity, since no closing entries are made.
        """
        as_of = as_of_date or self._today()
        sections = {
            AccountCategory.CASH: ReportSection("Current Assets"),
            AccountCategory.FIXED_ASSET: ReportSection("Fixed Assets"),
            AccountCategory.CURRENT_LIABILITY: ReportSection("Current Liabilities"),
            AccountCategory.LONG_TERM_LIABILITY: ReportSection("Long-term Liabilities"),
            AccountCategory.EQUITY: ReportSection("Equity"),
        }
        sections[AccountCategory.CURRENT_ASSET] = sections[AccountCategory.CASH]
        earnings = ZERO

        for account, balance in self._balances(end_date=as_of):
            if account.account_type in (AccountType.REVENUE, AccountType.EXPENSE):
                earnings -= balance
                continue
            if balance == 0:
                continue
            amount = balance if account.account_type == AccountType.ASSET else -balance
            section = sections.get(account.category)
            if section is None:
                logger.warning(
                    "Account %s has category %s outside the balance sheet",
                    account.code,
                    account.category.value,
                )
                continue
            section.lines.append(ReportLine(account.code, account.name, amount))

        equity = sections[AccountCategory.EQUITY]
        if earnings != 0:
            equity.lines.append(ReportLine("", CURRENT_YEAR_EARNINGS, earnings))

        total_assets = sections[AccountCategory.CASH].total + sections[AccountCategory.FIXED_ASSET].total
        total_liabilities = (
            sections[AccountCategory.CURRENT_LIABILITY].total
            + sections[AccountCategory.LONG_TERM_LIABILITY].total
        )
        return BalanceSheet(
            as_of_date=as_of,
            current_assets=sections[AccountCategory.CASH],
            fixed_assets=sections[AccountCategory.FIXED_ASSET],
            current_liabilities=sections[AccountCategory.CURRENT_LIABILITY],
            long_term_liabilities=sections[AccountCategory.LONG_TERM_LIABILITY],
            equity=equity,
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            total_equity=equity.total,
            is_balanced=abs(total_assets - (total_liabilities + equity.total)) < BALANCE_TOLERANCE,
        )

    def _cash_balance(self, as_of: date) -> Decimal:
        return sum(
            (
                balance
                for account, balance in self._balances(end_date=as_of)
                if account.category == AccountCategory.CASH
            ),
            ZERO,
        )

    def generate_cash_flow_statement(self, start_date: date, end_date: date) -> CashFlowStatement:
        """Cash movements for a period, by activity.

        Each posted entry touching a cash account is classified: asset
        purchases are investing, entries against equity or long-term
        liabilities are financing and everything else is operating. Entries
        that only move money between cash accounts net to zero and are left out.
        """
        accounts = self._accounts()
        operating: dict[str, Decimal] = {}
        investing: dict[str, Decimal] = {}
        financing: dict[str, Decimal] = {}

        for entry in self.db.list_journal_entries(
            start_date=start_date, end_date=end_date, status=EntryStatus.POSTED
        ):
            cash_change = ZERO
            other_categories = set()
            for line in entry.lines:
                account = accounts.get(line.account_code)
                if account is not None and account.category == AccountCategory.CASH:
                    cash_change += line.debit - line.credit
                elif account is not None:
                    other_categories.add(account.category)
            if cash_change == 0:
                continue

            if entry.reference_type == ReferenceType.ASSET_PURCHASE:
                bucket, label = investing, "Purchase of fixed assets"
            elif other_categories & {AccountCategory.EQUITY, AccountCategory.LONG_TERM_LIABILITY}:
                bucket, label = financing, "Capital and long-term financing"
            else:
                bucket = operating
                label = OPERATING_LABELS.get(entry.reference_type, "Other operating activities")
            bucket[label] = bucket.get(label, ZERO) + cash_change

        def section(title: str, amounts: dict[str, Decimal]) -> ReportSection:
            return ReportSection(title, [ReportLine("", label, amount) for label, amount in amounts.items()])

        operating_section = section("Operating Activities", operating)
        investing_section = section("Investing Activities", investing)
        financing_section = section("Financing Activities", financing)
        net_change = operating_section.total + investing_section.total + financing_section.total
        return CashFlowStatement(
            start_date=start_date,
            end_date=end_date,
            operating=operating_section,
            investing=investing_section,
            financing=financing_section,
            net_operating=operating_section.total,
            net_investing=investing_section.total,
            net_financing=financing_section.total,
            net_change=net_change,
            beginning_cash=self._cash_balance(start_date - timedelta(days=1)),
            ending_cash=self._cash_balance(end_date),
        )

    def generate_trial_balance(self, as_of_date: Optional[date] = None) -> TrialBalanceReport:
        accounts = self._accounts()
        lines = []
        for line in self.db.sum_posted_lines(end_date=as_of_date):
            account = accounts.get(line.account_code)
            lines.append(
                TrialBalanceReportLine(
                    account_code=line.account_code,
                    account_name=line.account_name,
                    account_type=account.account_type if account is not None else None,
                    debit=line.debit,
                    credit=line.credit,
                    balance=line.balance,
                )
            )
        total_debit = sum((line.debit for line in lines), ZERO)
        total_credit = sum((line.credit for line in lines), ZERO)
        return TrialBalanceReport(
            as_of_date=as_of_date,
            lines=lines,
            total_debit=total_debit,
            total_credit=total_credit,
            is_balanced=abs(total_debit - total_credit) < BALANCE_TOLERANCE,
        )

    def generate_asset_register(self, as_of_date: Optional[date] = None) -> AssetRegister:
        """Assets held at a date with straight-line depreciation to that date."""
        as_of = as_of_date or self._today()
        lines = []
        for asset in self.db.list_fixed_assets():
            if asset.purchase_date > as_of:
                continue
            if asset.disposal_date is not None and asset.disposal_date <= as_of:
                continue
            accumulated = scheduled_accumulated(asset, months_charged(asset, as_of))
            lines.append(
                AssetRegisterLine(
                    asset_code=asset.asset_code,
                    name=asset.name,
                    asset_type=asset.asset_type,
                    purchase_date=asset.purchase_date,
                    cost=asset.purchase_price,
                    residual_value=asset.residual_value,
                    accumulated_depreciation=accumulated,
                    book_value=asset.purchase_price - accumulated,
                    recorded_depreciation=asset.accumulated_depreciation,
                    status=asset.status,
                )
            )
        return AssetRegister(
            as_of_date=as_of,
            lines=lines,
            total_cost=sum((line.cost for line in lines), ZERO),
            total_accumulated_depreciation=sum((line.accumulated_depreciation for line in lines), ZERO),
            total_book_value=sum((line.book_value for line in lines), ZERO),
        )

    def generate_depreciation_schedule(self, start_date: date, end_date: date) -> DepreciationSchedule:
        """Month-by-month straight-line depreciation for every asset held in the period."""
        lines = []
        for asset in self.db.list_fixed_assets():
            if asset.purchase_date > end_date:
                continue
            first = max(start_date, asset.purchase_date)
            year, month = first.year, first.month
            while (year, month) <= (end_date.year, end_date.month):
                period_end = month_end(year, month)
                held = asset.purchase_date <= period_end and (
                    asset.disposal_date is None or asset.disposal_date > period_end
                )
                if held:
                    months = months_charged(asset, period_end)
                    accumulated = scheduled_accumulated(asset, months)
                    amount = accumulated - scheduled_accumulated(asset, months - 1)
                    if amount > 0:
                        lines.append(
                            DepreciationScheduleLine(
                                asset_code=asset.asset_code,
                                name=asset.name,
                                year=year,
                                month=month,
                                amount=amount,
                                accumulated=accumulated,
                                book_value=asset.purchase_price - accumulated,
                            )
                        )
                month += 1
                if month > 12:
                    year, month = year + 1, 1
        return DepreciationSchedule(
            start_date=start_date,
            end_date=end_date,
            lines=lines,
            total_depreciation=sum((line.amount for line in lines), ZERO),
        )
