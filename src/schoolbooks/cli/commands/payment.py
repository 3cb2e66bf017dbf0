"""Student payment commands."""

from datetime import date

import click

from schoolbooks.cli.date_filters import (
    parse_pairs,
    resolve_cli_amount,
    resolve_cli_date,
    resolve_cli_date_range,
)
from schoolbooks.cli.error_handling import echo_posting_outcome, handle_domain_error
from schoolbooks.domain.entities import FeeAllocation, PaymentMethod, PaymentStatus
from schoolbooks.domain.payments import FeeService, PaymentService
from schoolbooks.utils.money import format_naira

PAYMENT_METHODS = [m.value for m in PaymentMethod]


@click.group()
def payment_group():
    """Record and manage student fee payments."""
    pass


@payment_group.command("record")
@click.argument("student_id")
@click.argument("student_name")
@click.argument("amount")
@click.option("--method", type=click.Choice(PAYMENT_METHODS), default="bank_transfer", show_default=True)
@click.option("--fee", "fees", multiple=True, help="FEE_TYPE=AMOUNT allocation (repeatable; default: all tuition)")
@click.option("--date", "payment_date", help="Payment date (defaults to today)")
@click.option("--paid-by", help="Name of the payer, if not the student")
@click.option("--notes", help="Notes")
@click.option("--by", "recorded_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User recording the payment")
@click.pass_context
def record_payment(
    ctx,
    student_id: str,
    student_name: str,
    amount: str,
    method: str,
    fees: tuple[str, ...],
    payment_date: str | None,
    paid_by: str | None,
    notes: str | None,
    recorded_by: str,
):
    """Record a student payment and post it to the ledger.

    Examples:
        schoolbooks payment record STU001 "Ada Obi" 150000 --method cash
        schoolbooks payment record STU002 "Tunde Bello" "₦250,000" --fee tuition=200000 --fee books=50000
    """
    service = PaymentService(ctx.obj["db"])
    value = resolve_cli_amount(ctx, amount)
    when = resolve_cli_date(ctx, payment_date) or date.today()
    pairs = parse_pairs(ctx, fees, "--fee") or [("tuition", value)]
    allocations = [FeeAllocation(fee_type=name, amount=fee_amount) for name, fee_amount in pairs]

    try:
        payment = service.record_payment(
            student_id=student_id,
            student_name=student_name,
            amount=value,
            method=method,
            payment_date=when,
            allocations=allocations,
            recorded_by=recorded_by,
            paid_by=paid_by,
            notes=notes,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recorded payment {payment.reference} of {format_naira(payment.amount)} (ID: {payment.id})")
    echo_posting_outcome(payment)


@payment_group.command("bill")
@click.argument("student_id")
@click.argument("student_name")
@click.option("--fee", "fees", multiple=True, required=True, help="FEE_TYPE=AMOUNT (repeatable)")
@click.option("--term", help="Academic term label")
@click.option("--date", "entry_date", help="Billing date (defaults to today)")
@click.option("--by", "assigned_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User billing the fees")
@click.pass_context
def bill_fees(
    ctx,
    student_id: str,
    student_name: str,
    fees: tuple[str, ...],
    term: str | None,
    entry_date: str | None,
    assigned_by: str,
):
    """Bill fees to a student (debits receivables, credits revenue).

    Examples:
        schoolbooks payment bill STU001 "Ada Obi" --fee tuition=150000 --fee uniform=20000 --term "2024/25 First Term"
    """
    service = FeeService(ctx.obj["db"])
    allocations = [
        FeeAllocation(fee_type=name, amount=amount) for name, amount in parse_pairs(ctx, fees, "--fee")
    ]
    when = resolve_cli_date(ctx, entry_date) or date.today()
    try:
        assignment = service.assign_fees(student_id, student_name, allocations, assigned_by, when, term=term)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Billed {format_naira(assignment.total_amount)} to {student_name} "
        f"(posting: {assignment.posting_status.value})"
    )


@payment_group.command("list")
@click.option("--student", "student_id", help="Student ID")
@click.option("--period", help="Period (this-month, last-month, this-year, YYYY-MM, YYYY)")
@click.option("--start-date", help="Start date")
@click.option("--end-date", help="End date")
@click.option("--method", type=click.Choice(PAYMENT_METHODS), help="Payment method")
@click.option("--status", type=click.Choice([s.value for s in PaymentStatus]), help="Payment status")
@click.pass_context
def list_payments(
    ctx,
    student_id: str | None,
    period: str | None,
    start_date: str | None,
    end_date: str | None,
    method: str | None,
    status: str | None,
):
    """List payments, newest first."""
    service = PaymentService(ctx.obj["db"])
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    payments = service.list_payments(
        student_id=student_id,
        start_date=start,
        end_date=end,
        method=PaymentMethod(method) if method else None,
        status=PaymentStatus(status) if status else None,
    )
    if not payments:
        click.echo("No payments found.")
        return

    total = sum(p.amount for p in payments if p.status == PaymentStatus.CONFIRMED)
    for p in payments:
        click.echo(
            f"ID: {p.id:4d} | {p.payment_date} | {p.reference:17s} | {p.student_name:20s} | "
            f"{format_naira(p.amount):>14s} | {p.payment_method.value:13s} | {p.status.value:9s} | "
            f"{p.posting_status.value}"
        )
    click.echo(f"\nConfirmed total: {format_naira(total)}")


@payment_group.command("cancel")
@click.argument("payment_id", type=int)
@click.option("--reason", required=True, help="Reason for cancelling")
@click.option("--by", "cancelled_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User cancelling the payment")
@click.pass_context
def cancel_payment(ctx, payment_id: int, reason: str, cancelled_by: str):
    """Cancel a confirmed payment and reverse its journal entry."""
    service = PaymentService(ctx.obj["db"])
    try:
        payment = service.cancel_payment(payment_id, reason, cancelled_by=cancelled_by)
        click.echo(f"Cancelled payment {payment.reference}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@payment_group.command("receipt")
@click.argument("payment_id", type=int)
@click.pass_context
def issue_receipt(ctx, payment_id: int):
    """Issue a receipt number for a payment."""
    service = PaymentService(ctx.obj["db"])
    try:
        payment = service.generate_receipt(payment_id)
        click.echo(f"Receipt {payment.receipt_number} for payment {payment.reference}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(payment_group, name="payment")
