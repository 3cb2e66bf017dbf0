"""Payroll service: salary payments with Nigerian statutory deductions."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from schoolbooks.database.base import Database
from schoolbooks.domain.auto_posting import AutoPostingService, PostingContext, attempt_posting
from schoolbooks.domain.entities import (
    ZERO,
    PaymentMethod,
    ReferenceType,
    SalaryComponent,
    SalaryPayment,
)
from schoolbooks.domain.errors import NotFoundError, ValidationError, record_not_found
from schoolbooks.domain.statutory import StatutoryDeductionsCalculator
from schoolbooks.utils.money import Number, to_money
from schoolbooks.utils.references import ReferenceGenerator

logger = logging.getLogger(__name__)

SALARY_PAYMENT_METHODS = (PaymentMethod.CASH, PaymentMethod.BANK_TRANSFER, PaymentMethod.CHEQUE)

STATUTORY_KEYWORDS = ("paye", "tax", "pension", "nhf", "housing fund", "nhis", "health insurance")
TAX_KEYWORDS = ("paye", "tax")


def is_statutory_name(name: str) -> bool:
    """Whether a deduction name looks like a statutory deduction."""
    lowered = name.lower()
    return any(keyword in lowered for keyword in STATUTORY_KEYWORDS)


def _components(items: Optional[Sequence[SalaryComponent]], label: str) -> list[SalaryComponent]:
    cleaned = []
    for item in items or ():
        amount = to_money(item.amount)
        if amount < 0:
            raise ValidationError(f"{label} '{item.name}' cannot be negative")
        if amount > 0:
            cleaned.append(SalaryComponent(name=item.name.strip(), amount=amount))
    return cleaned


class PayrollService:
    """Pays staff salaries and posts them to the ledger."""

    def __init__(
        self,
        db: Database,
        engine: Optional[AutoPostingService] = None,
        references: Optional[ReferenceGenerator] = None,
        calculator: Optional[StatutoryDeductionsCalculator] = None,
    ):
        self.db = db
        self.engine = engine or AutoPostingService(db, references=references)
        self.references = references or ReferenceGenerator()
        self.calculator = calculator or StatutoryDeductionsCalculator()

    def pay_salary(
        self,
        staff_id: str,
        staff_name: str,
        basic_salary: Number,
        month: int,
        year: int,
        payment_date: date,
        method: PaymentMethod | str,
        recorded_by: str,
        allowances: Optional[Sequence[SalaryComponent]] = None,
        deductions: Optional[Sequence[SalaryComponent]] = None,
        staff_number: Optional[str] = None,
        apply_statutory: bool = True,
    ) -> SalaryPayment:
        """Pay one month's salary to a staff member.

        With ``apply_statutory`` the NHF, pension, NHIS and PAYE amounts are
        computed here and any user deduction that looks statutory is dropped
        so it is not charged twice.

        Args:
            staff_id: Staff identifier
            staff_name: Staff display name
            basic_salary: Monthly basic salary
            month: Payroll month (1-12)
            year: Payroll year
            payment_date: Date paid
            method: Cash, bank transfer or cheque
            recorded_by: User recording the payment
            allowances: Allowances added to the basic salary
            deductions: Other deductions
            staff_number: Optional employee number
            apply_statutory: Compute statutory deductions

        Returns:
            The stored salary payment with its posting outcome

        Raises:
            ValidationError: For invalid amounts, period or method, or negative net pay
            ConflictError: If the staff member was already paid for the period
        """
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid payroll month: {month}")
        try:
            payment_method = PaymentMethod(method)
        except ValueError as e:
            raise ValidationError(f"Invalid payment method: {method}") from e
        if payment_method not in SALARY_PAYMENT_METHODS:
            raise ValidationError(
                f"Salaries cannot be paid by {payment_method.value}; "
                "use cash, bank transfer or cheque"
            )

        basic = to_money(basic_salary)
        if basic <= 0:
            raise ValidationError("Basic salary must be greater than zero")
        allowance_items = _components(allowances, "Allowance")
        deduction_items = _components(deductions, "Deduction")
        total_allowances = sum((a.amount for a in allowance_items), ZERO)
        gross = basic + total_allowances

        statutory = None
        if apply_statutory:
            dropped = [d.name for d in deduction_items if is_statutory_name(d.name)]
            if dropped:
                logger.warning(
                    "Ignoring statutory-looking deductions for %s: %s", staff_name, ", ".join(dropped)
                )
            deduction_items = [d for d in deduction_items if not is_statutory_name(d.name)]
            statutory = self.calculator.calculate_all(basic, total_allowances)

        other_deductions = sum((d.amount for d in deduction_items), ZERO)
        total_deductions = other_deductions + (
            statutory.total_employee_deductions if statutory is not None else ZERO
        )
        net_pay = gross - total_deductions
        if net_pay < 0:
            raise ValidationError(
                f"Deductions {total_deductions} exceed gross salary {gross} for {staff_name}"
            )

        salary_id = self.db.create_salary_payment(
            reference=self.references.salary(year, month),
            staff_id=staff_id,
            staff_name=staff_name,
            staff_number=staff_number,
            month=month,
            year=year,
            basic_salary=basic,
            allowances=allowance_items,
            deductions=deduction_items,
            gross_salary=gross,
            total_deductions=total_deductions,
            net_pay=net_pay,
            statutory=statutory,
            payment_date=payment_date,
            payment_method=payment_method,
            recorded_by=recorded_by,
        )
        salary = self.db.get_salary_payment(salary_id)
        logger.info(
            "Paid salary %s to %s for %d-%02d: net %s", salary.reference, staff_name, year, month, net_pay
        )
        self.post_salary(salary)
        return self.db.get_salary_payment(salary_id)

    def post_salary(self, salary: SalaryPayment):
        """(Re)post the entry for a salary payment."""
        tax = sum(
            (d.amount for d in salary.deductions if any(k in d.name.lower() for k in TAX_KEYWORDS)),
            ZERO,
        )
        ctx = PostingContext(
            description=f"Salary {salary.reference} - {salary.staff_name} ({salary.year}-{salary.month:02d})",
            entry_date=salary.payment_date,
            reference_type=ReferenceType.SALARY,
            reference_id=salary.reference,
            created_by=salary.recorded_by,
        )
        return attempt_posting(
            lambda: self.engine.post_salary_payment(
                staff_name=salary.staff_name,
                gross_salary=salary.gross_salary,
                total_deductions=salary.total_deductions,
                net_pay=salary.net_pay,
                tax=ZERO if salary.statutory is not None else tax,
                method=salary.payment_method,
                ctx=ctx,
                statutory=salary.statutory,
            ),
            lambda changes: self.db.update_salary_payment(salary.id, changes),
            f"salary {salary.reference}",
        )

    def get_salary_payment(self, salary_id: int) -> SalaryPayment:
        salary = self.db.get_salary_payment(salary_id)
        if salary is None:
            raise NotFoundError(record_not_found("Salary payment", salary_id))
        return salary

    def list_salaries(
        self,
        staff_id: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> list[SalaryPayment]:
        return self.db.list_salary_payments(staff_id=staff_id, year=year, month=month)

    def get_payroll_total(self, year: int, month: int) -> dict[str, Decimal]:
        """Gross, deductions and net pay totals for one payroll period."""
        salaries = self.list_salaries(year=year, month=month)
        return {
            "gross": sum((s.gross_salary for s in salaries), ZERO),
            "deductions": sum((s.total_deductions for s in salaries), ZERO),
            "net": sum((s.net_pay for s in salaries), ZERO),
        }
