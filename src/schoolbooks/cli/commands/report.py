"""Financial report commands."""

from datetime import date

import click

from schoolbooks.cli.date_filters import resolve_cli_date, resolve_cli_date_range
from schoolbooks.domain.reports import ReportSection, ReportsService
from schoolbooks.utils.money import format_naira

WIDTH = 64


@click.group()
def report_group():
    """Generate financial statements."""
    pass


def _period_options(func):
    func = click.option("--end-date", help="End date")(func)
    func = click.option("--start-date", help="Start date")(func)
    func = click.option(
        "--period",
        help="Period (this-month, last-month, this-year, last-year, YYYY-MM, YYYY); default this-year",
    )(func)
    return func


def _echo_row(label: str, amount, indent: int = 2) -> None:
    click.echo(f"{' ' * indent}{label:{WIDTH - 18 - indent}s}{format_naira(amount):>18s}")


def _echo_section(section: ReportSection) -> None:
    click.echo(section.title)
    for line in section.lines:
        label = f"{line.account_code} {line.account_name}".strip()
        _echo_row(label, line.amount, indent=4)
    _echo_row(f"Total {section.title}", section.total)


@report_group.command("trial-balance")
@click.option("--as-of", help="As-of date (defaults to all posted entries)")
@click.pass_context
def trial_balance(ctx, as_of: str | None):
    """Debit and credit totals per account."""
    report = ReportsService(ctx.obj["db"]).generate_trial_balance(resolve_cli_date(ctx, as_of, "as-of date"))
    click.echo(f"\nTrial Balance{f' as of {report.as_of_date}' if report.as_of_date else ''}")
    click.echo("=" * 78)
    for line in report.lines:
        debit = format_naira(line.debit) if line.debit else ""
        credit = format_naira(line.credit) if line.credit else ""
        click.echo(f"{line.account_code:6s} {line.account_name:35s} {debit:>17s} {credit:>17s}")
    click.echo("-" * 78)
    click.echo(f"{'Total':42s} {format_naira(report.total_debit):>17s} {format_naira(report.total_credit):>17s}")
    click.echo("Balanced" if report.is_balanced else "NOT BALANCED")


@report_group.command("income-statement")
@_period_options
@click.pass_context
def income_statement(ctx, period: str | None, start_date: str | None, end_date: str | None):
    """Revenue, expenses and net income for a period."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period, default_period="this-year"
    )
    report = ReportsService(ctx.obj["db"]).generate_income_statement(start or date(1900, 1, 1), end or date.today())
    click.echo(f"\nIncome Statement {report.start_date} to {report.end_date}")
    click.echo("=" * WIDTH)
    click.echo("Revenue")
    for section in report.revenue_groups:
        for line in section.lines:
            _echo_row(f"{line.account_code} {line.account_name}", line.amount, indent=4)
    _echo_row("Total Revenue", report.total_revenue)
    click.echo("Expenses")
    for section in report.expense_groups:
        for line in section.lines:
            _echo_row(f"{line.account_code} {line.account_name}", line.amount, indent=4)
    _echo_row("Total Expenses", report.total_expenses)
    click.echo("-" * WIDTH)
    _echo_row("Net Income", report.net_income, indent=0)


@report_group.command("balance-sheet")
@click.option("--as-of", help="As-of date (defaults to today)")
@click.pass_context
def balance_sheet(ctx, as_of: str | None):
    """Assets, liabilities and equity at a date."""
    report = ReportsService(ctx.obj["db"]).generate_balance_sheet(resolve_cli_date(ctx, as_of, "as-of date"))
    click.echo(f"\nBalance Sheet as of {report.as_of_date}")
    click.echo("=" * WIDTH)
    _echo_section(report.current_assets)
    _echo_section(report.fixed_assets)
    _echo_row("TOTAL ASSETS", report.total_assets, indent=0)
    click.echo("-" * WIDTH)
    _echo_section(report.current_liabilities)
    _echo_section(report.long_term_liabilities)
    _echo_section(report.equity)
    _echo_row("TOTAL LIABILITIES AND EQUITY", report.total_liabilities + report.total_equity, indent=0)
    click.echo("Balanced" if report.is_balanced else "NOT BALANCED")


@report_group.command("cash-flow")
@_period_options
@click.pass_context
def cash_flow(ctx, period: str | None, start_date: str | None, end_date: str | None):
    """Cash movements by operating, investing and financing activity."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period, default_period="this-year"
    )
    report = ReportsService(ctx.obj["db"]).generate_cash_flow_statement(
        start or date(1900, 1, 1), end or date.today()
    )
    click.echo(f"\nCash Flow Statement {report.start_date} to {report.end_date}")
    click.echo("=" * WIDTH)
    _echo_section(report.operating)
    _echo_section(report.investing)
    _echo_section(report.financing)
    click.echo("-" * WIDTH)
    _echo_row("Net change in cash", report.net_change, indent=0)
    _echo_row("Cash at beginning of period", report.beginning_cash, indent=0)
    _echo_row("Cash at end of period", report.ending_cash, indent=0)


@report_group.command("asset-register")
@click.option("--as-of", help="As-of date (defaults to today)")
@click.pass_context
def asset_register(ctx, as_of: str | None):
    """Assets held with cost, depreciation and book value."""
    report = ReportsService(ctx.obj["db"]).generate_asset_register(resolve_cli_date(ctx, as_of, "as-of date"))
    click.echo(f"\nAsset Register as of {report.as_of_date}")
    click.echo("=" * 96)
    for line in report.lines:
        click.echo(
            f"{line.asset_code:15s} {line.name:25s} {format_naira(line.cost):>17s} "
            f"{format_naira(line.accumulated_depreciation):>17s} {format_naira(line.book_value):>17s}"
        )
    click.echo("-" * 96)
    click.echo(
        f"{'Total':41s} {format_naira(report.total_cost):>17s} "
        f"{format_naira(report.total_accumulated_depreciation):>17s} {format_naira(report.total_book_value):>17s}"
    )


@report_group.command("depreciation-schedule")
@_period_options
@click.pass_context
def depreciation_schedule(ctx, period: str | None, start_date: str | None, end_date: str | None):
    """Month-by-month depreciation per asset."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period, default_period="this-year"
    )
    report = ReportsService(ctx.obj["db"]).generate_depreciation_schedule(
        start or date(1900, 1, 1), end or date.today()
    )
    click.echo(f"\nDepreciation Schedule {report.start_date} to {report.end_date}")
    click.echo("=" * 90)
    for line in report.lines:
        click.echo(
            f"{line.year}-{line.month:02d} {line.asset_code:15s} {line.name:22s} {format_naira(line.amount):>14s} "
            f"{format_naira(line.accumulated):>16s} {format_naira(line.book_value):>16s}"
        )
    click.echo("-" * 90)
    _echo_row("Total depreciation", report.total_depreciation, indent=0)


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
