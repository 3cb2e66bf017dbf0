"""Nigerian PAYE and statutory payroll deduction calculators.

PAYE bands (annual taxable income):
- First ₦300,000: 7%
- Next ₦300,000: 11%
- Next ₦500,000: 15%
- Next ₦500,000: 19%
- Next ₦1,600,000: 21%
- Above ₦3,200,000: 24%

Consolidated Relief Allowance (CRA) = max(₦200,000, 21% of gross annual income).

Statutory deductions (monthly):
- NHF: 2.5% of basic salary, only when basic salary is at least ₦30,000
- Pension: 8% employee and 10% employer of basic salary plus allowances
- NHIS: 5% of basic salary, capped at ₦20,000

Everything here is pure arithmetic on Decimal; amounts withheld from pay are
rounded to whole naira, halves rounded up.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from schoolbooks.domain.entities import StatutoryDeductions
from schoolbooks.utils.money import Number, round_naira

MONTHS_PER_YEAR = Decimal("12")


@dataclass(frozen=True)
class PAYETaxBand:
    """Tax band definition."""

    lower: Decimal
    upper: Optional[Decimal]
    rate: Decimal
    name: str

    def taxable_in_band(self, taxable_income: Decimal) -> Decimal:
        """Portion of taxable income falling inside this band."""
        if taxable_income <= self.lower:
            return Decimal("0")
        if self.upper is None:
            return taxable_income - self.lower
        return min(taxable_income, self.upper) - self.lower


PAYE_BANDS = [
    PAYETaxBand(Decimal("0"), Decimal("300000"), Decimal("0.07"), "First ₦300,000"),
    PAYETaxBand(Decimal("300000"), Decimal("600000"), Decimal("0.11"), "Next ₦300,000"),
    PAYETaxBand(Decimal("600000"), Decimal("1100000"), Decimal("0.15"), "Next ₦500,000"),
    PAYETaxBand(Decimal("1100000"), Decimal("1600000"), Decimal("0.19"), "Next ₦500,000"),
    PAYETaxBand(Decimal("1600000"), Decimal("3200000"), Decimal("0.21"), "Next ₦1,600,000"),
    PAYETaxBand(Decimal("3200000"), None, Decimal("0.24"), "Above ₦3,200,000"),
]

CRA_MINIMUM = Decimal("200000")
CRA_RATE = Decimal("0.21")

NHF_RATE = Decimal("0.025")
NHF_MINIMUM_BASIC = Decimal("30000")
PENSION_EMPLOYEE_RATE = Decimal("0.08")
PENSION_EMPLOYER_RATE = Decimal("0.10")
NHIS_RATE = Decimal("0.05")
NHIS_MONTHLY_CAP = Decimal("20000")


@dataclass(frozen=True)
class BandTax:
    """Tax charged within one band."""

    name: str
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal


@dataclass(frozen=True)
class PAYEBreakdown:
    """Annual PAYE computation."""

    gross_income: Decimal
    cra: Decimal
    taxable_income: Decimal
    brackets: list[BandTax]
    total_tax: Decimal
    net_income: Decimal
    monthly_tax: Decimal


@dataclass(frozen=True)
class MonthlyPAYE:
    gross_salary: Decimal
    paye: Decimal
    net_salary: Decimal
    annual: PAYEBreakdown


def _decimal(value: Number) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    return Decimal(value)


class PAYECalculator:
    """PAYE (Pay As You Earn) calculator for the Nigerian personal income tax bands."""

    def __init__(self, tax_bands: Optional[list[PAYETaxBand]] = None):
        self.tax_bands = tax_bands or PAYE_BANDS

    def calculate_cra(self, gross_annual_income: Number) -> Decimal:
        """Consolidated Relief Allowance: the higher of ₦200,000 and 21% of gross."""
        return max(CRA_MINIMUM, _decimal(gross_annual_income) * CRA_RATE)

    def calculate_annual_paye(self, gross_annual_income: Number) -> PAYEBreakdown:
        """Calculate annual PAYE band by band.

        Args:
            gross_annual_income: Gross income for the year

        Returns:
            PAYEBreakdown with per-band tax. ``monthly_tax`` is the annual
            total divided by twelve, rounded to whole naira.
        """
        gross = _decimal(gross_annual_income)
        cra = self.calculate_cra(gross)
        taxable = max(Decimal("0"), gross - cra)

        brackets = []
        total_tax = Decimal("0")
        for band in self.tax_bands:
            in_band = band.taxable_in_band(taxable)
            if in_band <= 0:
                break
            tax = in_band * band.rate
            brackets.append(BandTax(band.name, band.rate, in_band, tax))
            total_tax += tax

        return PAYEBreakdown(
            gross_income=gross,
            cra=cra,
            taxable_income=taxable,
            brackets=brackets,
            total_tax=total_tax,
            net_income=gross - total_tax,
            monthly_tax=round_naira(total_tax / MONTHS_PER_YEAR),
        )

    def calculate_monthly_paye(self, monthly_gross: Number) -> Decimal:
        """Annualize a monthly gross, compute PAYE and return the monthly share."""
        return self.calculate_annual_paye(_decimal(monthly_gross) * MONTHS_PER_YEAR).monthly_tax

    def calculate_paye(self, gross_amount: Number, is_annual: bool = False) -> Decimal:
        """PAYE for a monthly (default) or annual gross, rounded to whole naira."""
        if is_annual:
            return round_naira(self.calculate_annual_paye(gross_amount).total_tax)
        return self.calculate_monthly_paye(gross_amount)

    def get_detailed_breakdown(self, monthly_gross: Number) -> MonthlyPAYE:
        gross = _decimal(monthly_gross)
        annual = self.calculate_annual_paye(gross * MONTHS_PER_YEAR)
        return MonthlyPAYE(
            gross_salary=gross,
            paye=annual.monthly_tax,
            net_salary=gross - annual.monthly_tax,
            annual=annual,
        )

    def get_tax_bracket(self, annual_income: Number) -> str:
        """Describe the band an annual amount falls in."""
        income = _decimal(annual_income)
        for band in self.tax_bands:
            if band.upper is not None and income <= band.upper:
                return f"{band.name} - {band.rate * 100:.0f}% tax rate"
        top = self.tax_bands[-1]
        return f"{top.name} - {top.rate * 100:.0f}% tax rate"

    def get_effective_tax_rate(self, monthly_gross: Number) -> Decimal:
        """Annual tax as a percentage of annual gross for a monthly salary."""
        breakdown = self.calculate_annual_paye(_decimal(monthly_gross) * MONTHS_PER_YEAR)
        if breakdown.gross_income == 0:
            return Decimal("0")
        return breakdown.total_tax / breakdown.gross_income * 100


@dataclass(frozen=True)
class PensionContribution:
    employee: Decimal
    employer: Decimal

    @property
    def total(self) -> Decimal:
        return self.employee + self.employer


class StatutoryDeductionsCalculator:
    """Computes NHF, pension, NHIS and PAYE for one month's pay."""

    def __init__(self, paye_calculator: Optional[PAYECalculator] = None):
        self.paye_calculator = paye_calculator or PAYECalculator()

    def is_eligible_for_nhf(self, basic_salary: Number) -> bool:
        return _decimal(basic_salary) >= NHF_MINIMUM_BASIC

    def calculate_nhf(self, basic_salary: Number) -> Decimal:
        """National Housing Fund: 2.5% of basic, zero below the ₦30,000 threshold."""
        if not self.is_eligible_for_nhf(basic_salary):
            return Decimal("0")
        return round_naira(_decimal(basic_salary) * NHF_RATE)

    def calculate_pension(self, monthly_emoluments: Number) -> PensionContribution:
        """Contributory pension on basic salary plus allowances."""
        emoluments = _decimal(monthly_emoluments)
        return PensionContribution(
            employee=round_naira(emoluments * PENSION_EMPLOYEE_RATE),
            employer=round_naira(emoluments * PENSION_EMPLOYER_RATE),
        )

    def calculate_nhis(self, basic_salary: Number) -> Decimal:
        """National Health Insurance Scheme: 5% of basic, capped at ₦20,000."""
        return min(round_naira(_decimal(basic_salary) * NHIS_RATE), NHIS_MONTHLY_CAP)

    def calculate_all(self, basic_salary: Number, allowances: Number = 0) -> StatutoryDeductions:
        """Compose every statutory deduction for a month.

        Args:
            basic_salary: Monthly basic salary
            allowances: Total monthly allowances

        Returns:
            StatutoryDeductions with employee and employer totals
        """
        basic = _decimal(basic_salary)
        emoluments = basic + _decimal(allowances)

        nhf = self.calculate_nhf(basic)
        pension = self.calculate_pension(emoluments)
        nhis = self.calculate_nhis(basic)
        paye = self.paye_calculator.calculate_monthly_paye(emoluments)

        return StatutoryDeductions(
            nhf=nhf,
            pension_employee=pension.employee,
            pension_employer=pension.employer,
            nhis=nhis,
            paye=paye,
            total_employee_deductions=nhf + pension.employee + nhis + paye,
            total_employer_contributions=pension.employer,
        )

    def get_detailed_breakdown(self, basic_salary: Number, allowances: Number = 0) -> dict:
        """Deductions with rates and descriptions, for payslips and the CLI."""
        deductions = self.calculate_all(basic_salary, allowances)
        gross = _decimal(basic_salary) + _decimal(allowances)
        return {
            "gross_salary": gross,
            "nhf": {
                "rate": NHF_RATE * 100,
                "amount": deductions.nhf,
                "description": "National Housing Fund (2.5% of basic salary)",
            },
            "pension": {
                "employee_rate": PENSION_EMPLOYEE_RATE * 100,
                "employee_amount": deductions.pension_employee,
                "employer_rate": PENSION_EMPLOYER_RATE * 100,
                "employer_amount": deductions.pension_employer,
                "description": "Pension (Employee: 8%, Employer: 10% of gross)",
            },
            "nhis": {
                "rate": NHIS_RATE * 100,
                "amount": deductions.nhis,
                "description": "National Health Insurance Scheme (5% of basic, max ₦20,000)",
            },
            "paye": {
                "amount": deductions.paye,
                "description": "PAYE Tax (calculated on annual gross income)",
            },
            "total_employee_deductions": deductions.total_employee_deductions,
            "total_employer_contributions": deductions.total_employer_contributions,
            "net_salary": gross - deductions.total_employee_deductions,
        }
