"""Tests for financial statements."""

from datetime import date
from decimal import Decimal

import pytest

from schoolbooks.domain.entities import EntryStatus, FeeAllocation, JournalLine
from schoolbooks.domain.reports import CURRENT_YEAR_EARNINGS, months_charged


@pytest.fixture
def january(ledger, journal_service, fee_service, payment_service, expense_service, asset_service):
    """One month of activity: capital, fees, a payment, an expense and an asset."""
    journal_service.create_journal_entry(
        [
            JournalLine("1120", "Bank Accounts", debit=Decimal("1000000")),
            JournalLine("3200", "Capital Contributions", credit=Decimal("1000000")),
        ],
        date(2024, 1, 2),
        "Proprietor's capital",
        status=EntryStatus.POSTED,
    )
    fee_service.assign_fees(
        "STU001", "Ada Obi", [FeeAllocation("tuition", Decimal("150000"))], "bursar", date(2024, 1, 8)
    )
    payment_service.record_payment(
        "STU001",
        "Ada Obi",
        "150000",
        "bank_transfer",
        date(2024, 1, 15),
        [FeeAllocation("tuition", Decimal("150000"))],
        "bursar",
    )
    expense = expense_service.record_expense(
        "utilities", "Electricity", "45000", date(2024, 1, 20), "bank_transfer", "clerk", vendor="PHCN"
    )
    expense_service.approve_expense(expense.id, "principal")
    asset = asset_service.register_asset(
        "Photocopier", "equipment", date(2024, 1, 10), "600000", "bank_transfer", "bursar", useful_life_years=5
    )
    asset_service.post_monthly_depreciation(2024, 1)
    return asset


class TestIncomeStatement:
    """Tests for the income statement."""

    def test_january_income(self, january, reports_service):
        statement = reports_service.generate_income_statement(date(2024, 1, 1), date(2024, 1, 31))

        assert [(line.account_code, line.amount) for line in statement.revenue] == [
            ("4100", Decimal("150000.00"))
        ]
        assert {line.account_code: line.amount for line in statement.expenses} == {
            "5200": Decimal("45000.00"),
            "5500": Decimal("10000.00"),
        }
        assert statement.total_revenue == Decimal("150000.00")
        assert statement.total_expenses == Decimal("55000.00")
        assert statement.net_income == Decimal("95000.00")
        assert [group.title for group in statement.revenue_groups] == ["Revenue"]
        assert statement.expense_groups[0].total == Decimal("55000.00")

    def test_empty_period(self, january, reports_service):
        statement = reports_service.generate_income_statement(date(2024, 2, 1), date(2024, 2, 29))
        assert statement.revenue == []
        assert statement.net_income == 0


class TestBalanceSheet:
    """Tests for the balance sheet."""

    def test_balances_with_current_year_earnings(self, january, reports_service):
        sheet = reports_service.generate_balance_sheet(date(2024, 1, 31))

        assert {line.account_code: line.amount for line in sheet.current_assets.lines} == {
            "1120": Decimal("505000.00")
        }
        assert {line.account_code: line.amount for line in sheet.fixed_assets.lines} == {
            "1220": Decimal("600000.00"),
            "1250": Decimal("-10000.00"),
        }
        assert sheet.total_assets == Decimal("1095000.00")
        assert sheet.total_liabilities == 0
        earnings = [line for line in sheet.equity.lines if line.account_name == CURRENT_YEAR_EARNINGS]
        assert earnings[0].amount == Decimal("95000.00")
        assert sheet.total_equity == Decimal("1095000.00")
        assert sheet.is_balanced

    def test_before_any_activity(self, january, reports_service):
        sheet = reports_service.generate_balance_sheet(date(2023, 12, 31))
        assert sheet.total_assets == 0
        assert sheet.is_balanced

    def test_balanced_with_liabilities(self, january, payroll_service, reports_service):
        payroll_service.pay_salary(
            "STF001", "Musa Bello", "100000", 1, 2024, date(2024, 1, 28), "bank_transfer", "bursar"
        )
        sheet = reports_service.generate_balance_sheet(date(2024, 1, 31))

        assert sheet.total_liabilities > 0
        assert sheet.is_balanced


class TestCashFlow:
    """Tests for the cash flow statement."""

    def test_activities(self, january, reports_service):
        flow = reports_service.generate_cash_flow_statement(date(2024, 1, 1), date(2024, 1, 31))

        assert flow.net_operating == Decimal("105000.00")
        assert flow.net_investing == Decimal("-600000.00")
        assert flow.net_financing == Decimal("1000000.00")
        assert flow.net_change == Decimal("505000.00")
        assert flow.beginning_cash == 0
        assert flow.ending_cash == Decimal("505000.00")
        assert {line.account_name: line.amount for line in flow.operating.lines} == {
            "Fee collections": Decimal("150000.00"),
            "Operating expenses paid": Decimal("-45000.00"),
        }

    def test_beginning_cash_carries_forward(self, january, reports_service):
        flow = reports_service.generate_cash_flow_statement(date(2024, 2, 1), date(2024, 2, 29))
        assert flow.beginning_cash == Decimal("505000.00")
        assert flow.net_change == 0


class TestTrialBalanceReport:
    """Tests for the trial balance report."""

    def test_totals(self, january, reports_service):
        trial = reports_service.generate_trial_balance(date(2024, 1, 31))

        assert trial.total_debit == Decimal("1955000.00")
        assert trial.total_credit == Decimal("1955000.00")
        assert trial.is_balanced
        assert [line.account_code for line in trial.lines] == sorted(line.account_code for line in trial.lines)


class TestAssetReports:
    """Tests for the asset register and depreciation schedule."""

    def test_register_at_month_end(self, january, reports_service):
        register = reports_service.generate_asset_register(date(2024, 1, 31))

        line = register.lines[0]
        assert line.accumulated_depreciation == Decimal("10000.00")
        assert line.book_value == Decimal("590000.00")
        assert line.recorded_depreciation == Decimal("10000.00")
        assert register.total_cost == Decimal("600000.00")

    def test_register_mid_month(self, january, reports_service):
        register = reports_service.generate_asset_register(date(2024, 3, 15))
        assert register.lines[0].accumulated_depreciation == Decimal("20000.00")

    def test_register_excludes_later_purchases(self, january, reports_service):
        assert reports_service.generate_asset_register(date(2024, 1, 5)).lines == []

    def test_depreciation_schedule(self, january, reports_service):
        schedule = reports_service.generate_depreciation_schedule(date(2024, 1, 1), date(2024, 3, 31))

        assert [(line.month, line.amount) for line in schedule.lines] == [
            (1, Decimal("10000.00")),
            (2, Decimal("10000.00")),
            (3, Decimal("10000.00")),
        ]
        assert schedule.lines[-1].accumulated == Decimal("30000.00")
        assert schedule.lines[-1].book_value == Decimal("570000.00")
        assert schedule.total_depreciation == Decimal("30000.00")

    def test_months_charged(self, january):
        assert months_charged(january, date(2024, 1, 15)) == 0
        assert months_charged(january, date(2024, 1, 31)) == 1
        assert months_charged(january, date(2024, 12, 31)) == 12
        assert months_charged(january, date(2023, 6, 30)) == 0
