"""Tests for salary payments."""

from datetime import date
from decimal import Decimal

import pytest

from schoolbooks.domain.entities import PostingStatus, SalaryComponent
from schoolbooks.domain.errors import ConflictError, ValidationError
from schoolbooks.domain.payroll import is_statutory_name


def _pay(service, basic="100000", allowances=None, deductions=None, **kwargs):
    return service.pay_salary(
        staff_id=kwargs.pop("staff_id", "STF001"),
        staff_name=kwargs.pop("staff_name", "Musa Bello"),
        basic_salary=basic,
        month=kwargs.pop("month", 1),
        year=kwargs.pop("year", 2024),
        payment_date=kwargs.pop("payment_date", date(2024, 1, 28)),
        method=kwargs.pop("method", "bank_transfer"),
        recorded_by="bursar",
        allowances=allowances,
        deductions=deductions,
        **kwargs,
    )


class TestPayrollService:
    """Tests for PayrollService."""

    def test_pay_with_statutory(self, payroll_service, journal_service):
        salary = _pay(
            payroll_service,
            allowances=[
                SalaryComponent("Housing", Decimal("30000")),
                SalaryComponent("Transport", Decimal("20000")),
            ],
        )

        assert salary.gross_salary == Decimal("150000.00")
        assert salary.total_allowances == Decimal("50000.00")
        assert salary.statutory.paye == Decimal("15848")
        assert salary.total_deductions == Decimal("35348.00")
        assert salary.net_pay == Decimal("114652.00")
        assert salary.reference.startswith("SAL-2024-01-")
        assert salary.posting_status == PostingStatus.POSTED

        entry = journal_service.get_entry(salary.journal_entry_id)
        assert entry.is_balanced
        assert journal_service.get_account_balance("5100") == Decimal("150000.00")
        assert journal_service.get_account_balance("5110") == Decimal("15000.00")
        assert journal_service.get_account_balance("2150") == Decimal("-27000.00")

    def test_statutory_looking_deductions_dropped(self, payroll_service):
        salary = _pay(
            payroll_service,
            deductions=[
                SalaryComponent("PAYE Tax", Decimal("9999")),
                SalaryComponent("Cooperative", Decimal("5000")),
            ],
        )

        assert [d.name for d in salary.deductions] == ["Cooperative"]
        assert salary.total_deductions == salary.statutory.total_employee_deductions + Decimal("5000")

    def test_without_statutory_tax_deduction_goes_to_paye_payable(self, payroll_service, journal_service):
        salary = _pay(
            payroll_service,
            basic="80000",
            deductions=[
                SalaryComponent("PAYE", Decimal("4000")),
                SalaryComponent("Loan repayment", Decimal("6000")),
            ],
            apply_statutory=False,
        )

        assert salary.statutory is None
        assert salary.net_pay == Decimal("70000.00")
        assert journal_service.get_account_balance("2130") == Decimal("-4000.00")
        assert journal_service.get_account_balance("2120") == Decimal("-6000.00")
        assert journal_service.get_trial_balance().is_balanced

    def test_one_payment_per_staff_per_month(self, payroll_service):
        _pay(payroll_service)
        with pytest.raises(ConflictError):
            _pay(payroll_service)

        # A different month is fine
        assert _pay(payroll_service, month=2, payment_date=date(2024, 2, 28)).month == 2

    def test_negative_net_pay_rejected(self, payroll_service):
        with pytest.raises(ValidationError, match="exceed gross salary"):
            _pay(
                payroll_service,
                basic="50000",
                deductions=[SalaryComponent("Advance", Decimal("60000"))],
                apply_statutory=False,
            )

    @pytest.mark.parametrize("method", ["pos", "online"])
    def test_unsupported_method(self, payroll_service, method):
        with pytest.raises(ValidationError, match="cannot be paid by"):
            _pay(payroll_service, method=method)

    def test_invalid_month(self, payroll_service):
        with pytest.raises(ValidationError, match="Invalid payroll month"):
            _pay(payroll_service, month=13)

    def test_negative_component_rejected(self, payroll_service):
        with pytest.raises(ValidationError, match="cannot be negative"):
            _pay(payroll_service, allowances=[SalaryComponent("Housing", Decimal("-1"))])

    def test_payroll_totals(self, payroll_service):
        _pay(payroll_service, basic="100000", apply_statutory=False)
        _pay(payroll_service, basic="60000", staff_id="STF002", staff_name="Ngozi", apply_statutory=False)

        totals = payroll_service.get_payroll_total(2024, 1)
        assert totals == {
            "gross": Decimal("160000.00"),
            "deductions": Decimal("0.00"),
            "net": Decimal("160000.00"),
        }
        assert len(payroll_service.list_salaries(staff_id="STF002")) == 1

    @pytest.mark.parametrize(
        "name, expected",
        [("PAYE", True), ("Income tax", True), ("NHF", True), ("Pension", True), ("Union dues", False)],
    )
    def test_is_statutory_name(self, name, expected):
        assert is_statutory_name(name) is expected
