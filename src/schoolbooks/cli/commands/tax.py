"""Nigerian payroll tax calculators."""

import click

from schoolbooks.cli.date_filters import resolve_cli_amount
from schoolbooks.domain.statutory import PAYECalculator, StatutoryDeductionsCalculator
from schoolbooks.utils.money import format_naira


@click.group()
def tax_group():
    """Calculate PAYE and statutory deductions."""
    pass


@tax_group.command("paye")
@click.argument("gross")
@click.option("--annual", is_flag=True, help="GROSS is an annual amount (default: monthly)")
@click.pass_context
def paye(ctx, gross: str, annual: bool):
    """Show the PAYE computation for a gross income.

    Examples:
        schoolbooks tax paye 250000
        schoolbooks tax paye 3000000 --annual
    """
    calculator = PAYECalculator()
    amount = resolve_cli_amount(ctx, gross, "gross income")
    breakdown = calculator.calculate_annual_paye(amount if annual else amount * 12)

    click.echo(f"Annual gross income:  {format_naira(breakdown.gross_income):>16s}")
    click.echo(f"Consolidated relief:  {format_naira(breakdown.cra):>16s}")
    click.echo(f"Taxable income:       {format_naira(breakdown.taxable_income):>16s}")
    click.echo("-" * 40)
    for band in breakdown.brackets:
        click.echo(f"  {band.name:24s} {band.rate * 100:>4.0f}%  {format_naira(band.tax):>14s}")
    click.echo("-" * 40)
    click.echo(f"Annual PAYE:          {format_naira(breakdown.total_tax):>16s}")
    click.echo(f"Monthly PAYE:         {format_naira(breakdown.monthly_tax):>16s}")
    click.echo(calculator.get_tax_bracket(breakdown.taxable_income))


@tax_group.command("deductions")
@click.argument("basic_salary")
@click.option("--allowances", default="0", help="Total monthly allowances")
@click.pass_context
def deductions(ctx, basic_salary: str, allowances: str):
    """Show every statutory deduction for a monthly salary."""
    calculator = StatutoryDeductionsCalculator()
    detail = calculator.get_detailed_breakdown(
        resolve_cli_amount(ctx, basic_salary, "basic salary"),
        resolve_cli_amount(ctx, allowances, "allowances"),
    )

    click.echo(f"Gross salary:        {format_naira(detail['gross_salary']):>15s}")
    click.echo(f"NHF:                 {format_naira(detail['nhf']['amount']):>15s}")
    click.echo(f"Pension (employee):  {format_naira(detail['pension']['employee_amount']):>15s}")
    click.echo(f"NHIS:                {format_naira(detail['nhis']['amount']):>15s}")
    click.echo(f"PAYE:                {format_naira(detail['paye']['amount']):>15s}")
    click.echo("-" * 37)
    click.echo(f"Total deductions:    {format_naira(detail['total_employee_deductions']):>15s}")
    click.echo(f"Net salary:          {format_naira(detail['net_salary']):>15s}")
    click.echo(f"Employer pension:    {format_naira(detail['total_employer_contributions']):>15s}")


def register_commands(cli):
    """Register tax commands with main CLI."""
    cli.add_command(tax_group, name="tax")
