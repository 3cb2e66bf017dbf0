"""Expense commands."""

from datetime import date

import click

from schoolbooks.cli.date_filters import resolve_cli_amount, resolve_cli_date, resolve_cli_date_range
from schoolbooks.cli.error_handling import handle_domain_error
from schoolbooks.domain.entities import ExpenseStatus, PaymentMethod
from schoolbooks.domain.expenses import ExpenseService
from schoolbooks.utils.money import format_naira


@click.group()
def expense_group():
    """Record, approve and reject expenses."""
    pass


@expense_group.command("record")
@click.argument("category")
@click.argument("description")
@click.argument("amount")
@click.option("--vendor", help="Vendor name")
@click.option(
    "--method",
    type=click.Choice([m.value for m in PaymentMethod]),
    default="bank_transfer",
    show_default=True,
)
@click.option("--date", "expense_date", help="Expense date (defaults to today)")
@click.option("--by", "recorded_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User recording the expense")
@click.pass_context
def record_expense(
    ctx,
    category: str,
    description: str,
    amount: str,
    vendor: str | None,
    method: str,
    expense_date: str | None,
    recorded_by: str,
):
    """Record a pending expense. It is posted when approved.

    Examples:
        schoolbooks expense record utilities "PHCN bill for March" 45000 --vendor PHCN
    """
    service = ExpenseService(ctx.obj["db"])
    value = resolve_cli_amount(ctx, amount)
    when = resolve_cli_date(ctx, expense_date) or date.today()
    try:
        expense = service.record_expense(
            category=category,
            description=description,
            amount=value,
            expense_date=when,
            method=method,
            recorded_by=recorded_by,
            vendor=vendor,
        )
        click.echo(f"Recorded expense {expense.reference} of {format_naira(expense.amount)} (ID: {expense.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@expense_group.command("approve")
@click.argument("expense_id", type=int)
@click.option("--by", "approved_by", required=True, help="Approver (must differ from the recorder)")
@click.pass_context
def approve_expense(ctx, expense_id: int, approved_by: str):
    """Approve a pending expense and post it to the ledger."""
    service = ExpenseService(ctx.obj["db"])
    try:
        expense = service.approve_expense(expense_id, approved_by)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Approved expense {expense.reference} (posting: {expense.posting_status.value})")
    if expense.posting_error:
        click.echo(f"Posting error: {expense.posting_error}", err=True)


@expense_group.command("reject")
@click.argument("expense_id", type=int)
@click.option("--reason", required=True, help="Reason for rejecting")
@click.option("--by", "rejected_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User rejecting")
@click.pass_context
def reject_expense(ctx, expense_id: int, reason: str, rejected_by: str):
    """Reject a pending expense."""
    service = ExpenseService(ctx.obj["db"])
    try:
        expense = service.reject_expense(expense_id, rejected_by, reason)
        click.echo(f"Rejected expense {expense.reference}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@expense_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in ExpenseStatus]), help="Expense status")
@click.option("--category", help="Expense category")
@click.option("--period", help="Period (this-month, last-month, this-year, YYYY-MM, YYYY)")
@click.option("--start-date", help="Start date")
@click.option("--end-date", help="End date")
@click.pass_context
def list_expenses(
    ctx,
    status: str | None,
    category: str | None,
    period: str | None,
    start_date: str | None,
    end_date: str | None,
):
    """List expenses, newest first."""
    service = ExpenseService(ctx.obj["db"])
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    expenses = service.list_expenses(
        status=ExpenseStatus(status) if status else None,
        category=category,
        start_date=start,
        end_date=end,
    )
    if not expenses:
        click.echo("No expenses found.")
        return

    for e in expenses:
        click.echo(
            f"ID: {e.id:4d} | {e.expense_date} | {e.reference:17s} | {e.category:15s} | "
            f"{format_naira(e.amount):>14s} | {e.status.value:8s} | {e.description}"
        )


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
