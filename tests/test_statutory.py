"""Tests for PAYE and statutory payroll deductions."""

from decimal import Decimal

import pytest

from schoolbooks.domain.statutory import PAYE_BANDS, PAYECalculator, StatutoryDeductionsCalculator


@pytest.fixture
def paye():
    return PAYECalculator()


@pytest.fixture
def statutory():
    return StatutoryDeductionsCalculator()


class TestPAYE:
    """Tests for the PAYE band computation."""

    def test_cra_minimum_applies_to_low_income(self, paye):
        assert paye.calculate_cra(500000) == Decimal("200000")

    def test_cra_percentage_applies_to_high_income(self, paye):
        assert paye.calculate_cra(2000000) == Decimal("420000.00")

    def test_annual_paye_on_one_million(self, paye):
        breakdown = paye.calculate_annual_paye(1000000)

        assert breakdown.cra == Decimal("210000.00")
        assert breakdown.taxable_income == Decimal("790000.00")
        assert [b.tax for b in breakdown.brackets] == [
            Decimal("21000"),
            Decimal("33000"),
            Decimal("28500"),
        ]
        assert breakdown.total_tax == Decimal("82500")
        assert breakdown.monthly_tax == Decimal("6875")

    def test_income_below_cra_pays_no_tax(self, paye):
        breakdown = paye.calculate_annual_paye(150000)
        assert breakdown.taxable_income == 0
        assert breakdown.total_tax == 0
        assert breakdown.brackets == []

    def test_top_band_is_open_ended(self, paye):
        breakdown = paye.calculate_annual_paye(10000000)
        assert breakdown.brackets[-1].rate == Decimal("0.24")
        # 7,900,000 taxable: 560,000 in the first five bands, 4,700,000 at 24%
        assert breakdown.total_tax == Decimal("560000") + Decimal("4700000") * Decimal("0.24")

    def test_monthly_paye_annualizes(self, paye):
        assert paye.calculate_paye(150000) == Decimal("15848")
        assert paye.calculate_paye(1000000, is_annual=True) == Decimal("82500")

    def test_paye_is_monotonic(self, paye):
        previous = Decimal("0")
        for monthly in range(0, 1500001, 25000):
            tax = paye.calculate_paye(monthly)
            assert tax >= previous
            previous = tax

    @pytest.mark.parametrize(
        "gross, taxable, total_tax, bands_used",
        [
            (500000, Decimal("300000"), Decimal("21000"), 1),
            (800000, Decimal("600000"), Decimal("54000"), 2),
        ],
    )
    def test_taxable_income_on_band_edge(self, paye, gross, taxable, total_tax, bands_used):
        breakdown = paye.calculate_annual_paye(gross)

        assert breakdown.taxable_income == taxable
        assert breakdown.total_tax == total_tax
        assert len(breakdown.brackets) == bands_used
        assert breakdown.brackets[-1].taxable_amount == Decimal("300000")

    def test_top_band_starts_above_three_point_two_million(self):
        edge = Decimal("3200000")
        in_bands = [band.taxable_in_band(edge) for band in PAYE_BANDS]

        assert in_bands == [
            Decimal("300000"),
            Decimal("300000"),
            Decimal("500000"),
            Decimal("500000"),
            Decimal("1600000"),
            Decimal("0"),
        ]
        assert sum(amount * band.rate for amount, band in zip(in_bands, PAYE_BANDS)) == Decimal("560000")
        assert PAYE_BANDS[-1].taxable_in_band(edge + 1) == Decimal("1")

    def test_zero_income_pays_no_tax(self, paye):
        breakdown = paye.calculate_annual_paye(0)

        assert breakdown.taxable_income == 0
        assert breakdown.total_tax == 0
        assert breakdown.brackets == []
        assert breakdown.monthly_tax == 0

    def test_effective_rate_zero_for_zero_income(self, paye):
        assert paye.get_effective_tax_rate(0) == 0

    def test_tax_bracket_description(self, paye):
        assert "7%" in paye.get_tax_bracket(250000)
        assert "24%" in paye.get_tax_bracket(5000000)


class TestStatutoryDeductions:
    """Tests for NHF, pension and NHIS."""

    def test_nhf_threshold(self, statutory):
        assert statutory.calculate_nhf(29999) == 0
        assert statutory.calculate_nhf(30000) == Decimal("750")

    def test_pension_rates(self, statutory):
        pension = statutory.calculate_pension(150000)
        assert pension.employee == Decimal("12000")
        assert pension.employer == Decimal("15000")
        assert pension.total == Decimal("27000")

    def test_nhis_is_capped(self, statutory):
        assert statutory.calculate_nhis(100000) == Decimal("5000")
        assert statutory.calculate_nhis(1000000) == Decimal("20000")

    def test_amounts_round_to_whole_naira(self, statutory):
        assert statutory.calculate_nhf(30010) == Decimal("750")
        assert statutory.calculate_nhf(30020) == Decimal("751")

    def test_calculate_all(self, statutory):
        deductions = statutory.calculate_all(100000, 50000)

        assert deductions.nhf == Decimal("2500")
        assert deductions.pension_employee == Decimal("12000")
        assert deductions.pension_employer == Decimal("15000")
        assert deductions.nhis == Decimal("5000")
        assert deductions.paye == Decimal("15848")
        assert deductions.total_employee_deductions == Decimal("35348")
        assert deductions.total_employer_contributions == Decimal("15000")

    def test_detailed_breakdown_net_salary(self, statutory):
        detail = statutory.get_detailed_breakdown(100000, 50000)
        assert detail["gross_salary"] == Decimal("150000")
        assert detail["net_salary"] == Decimal("114652")
