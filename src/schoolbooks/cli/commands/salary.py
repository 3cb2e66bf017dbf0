"""Payroll commands."""

from datetime import date

import click

from schoolbooks.cli.date_filters import parse_pairs, resolve_cli_amount, resolve_cli_date
from schoolbooks.cli.error_handling import echo_posting_outcome, handle_domain_error
from schoolbooks.domain.entities import SalaryComponent
from schoolbooks.domain.payroll import SALARY_PAYMENT_METHODS, PayrollService
from schoolbooks.utils.money import format_naira


@click.group()
def salary_group():
    """Pay staff salaries."""
    pass


@salary_group.command("pay")
@click.argument("staff_id")
@click.argument("staff_name")
@click.argument("basic_salary")
@click.option("--month", type=click.IntRange(1, 12), help="Payroll month (defaults to the current month)")
@click.option("--year", type=int, help="Payroll year (defaults to the current year)")
@click.option("--allowance", "allowances", multiple=True, help="NAME=AMOUNT allowance (repeatable)")
@click.option("--deduction", "deductions", multiple=True, help="NAME=AMOUNT deduction (repeatable)")
@click.option(
    "--method",
    type=click.Choice([m.value for m in SALARY_PAYMENT_METHODS]),
    default="bank_transfer",
    show_default=True,
)
@click.option("--date", "payment_date", help="Payment date (defaults to today)")
@click.option("--staff-number", help="Employee number")
@click.option("--no-statutory", is_flag=True, help="Do not compute PAYE, pension, NHF and NHIS")
@click.option("--by", "recorded_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User recording the payment")
@click.pass_context
def pay_salary(
    ctx,
    staff_id: str,
    staff_name: str,
    basic_salary: str,
    month: int | None,
    year: int | None,
    allowances: tuple[str, ...],
    deductions: tuple[str, ...],
    method: str,
    payment_date: str | None,
    staff_number: str | None,
    no_statutory: bool,
    recorded_by: str,
):
    """Pay one month's salary and post it to the ledger.

    Examples:
        schoolbooks salary pay T001 "Mrs Adeyemi" 150000 --allowance housing=50000 --month 3 --year 2024
    """
    service = PayrollService(ctx.obj["db"])
    basic = resolve_cli_amount(ctx, basic_salary, "basic salary")
    when = resolve_cli_date(ctx, payment_date) or date.today()
    try:
        salary = service.pay_salary(
            staff_id=staff_id,
            staff_name=staff_name,
            basic_salary=basic,
            month=month or when.month,
            year=year or when.year,
            payment_date=when,
            method=method,
            recorded_by=recorded_by,
            allowances=[SalaryComponent(n, a) for n, a in parse_pairs(ctx, allowances, "--allowance")],
            deductions=[SalaryComponent(n, a) for n, a in parse_pairs(ctx, deductions, "--deduction")],
            staff_number=staff_number,
            apply_statutory=not no_statutory,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Paid salary {salary.reference} to {salary.staff_name}")
    click.echo(f"  Gross:      {format_naira(salary.gross_salary):>15s}")
    if salary.statutory is not None:
        click.echo(f"  PAYE:       {format_naira(salary.statutory.paye):>15s}")
        click.echo(f"  Pension:    {format_naira(salary.statutory.pension_employee):>15s}")
        click.echo(f"  NHF:        {format_naira(salary.statutory.nhf):>15s}")
        click.echo(f"  NHIS:       {format_naira(salary.statutory.nhis):>15s}")
    click.echo(f"  Deductions: {format_naira(salary.total_deductions):>15s}")
    click.echo(f"  Net pay:    {format_naira(salary.net_pay):>15s}")
    echo_posting_outcome(salary)


@salary_group.command("list")
@click.option("--staff", "staff_id", help="Staff ID")
@click.option("--year", type=int, help="Payroll year")
@click.option("--month", type=click.IntRange(1, 12), help="Payroll month")
@click.pass_context
def list_salaries(ctx, staff_id: str | None, year: int | None, month: int | None):
    """List salary payments."""
    service = PayrollService(ctx.obj["db"])
    salaries = service.list_salaries(staff_id=staff_id, year=year, month=month)
    if not salaries:
        click.echo("No salary payments found.")
        return

    for s in salaries:
        click.echo(
            f"ID: {s.id:4d} | {s.year}-{s.month:02d} | {s.reference:20s} | {s.staff_name:20s} | "
            f"gross {format_naira(s.gross_salary):>14s} | net {format_naira(s.net_pay):>14s}"
        )


def register_commands(cli):
    """Register salary commands with main CLI."""
    cli.add_command(salary_group, name="salary")
