"""Bank account, transaction and transfer commands."""

from datetime import date

import click

from schoolbooks.cli.date_filters import resolve_cli_amount, resolve_cli_date
from schoolbooks.cli.error_handling import handle_domain_error
from schoolbooks.domain.banking import BankingService
from schoolbooks.domain.entities import BankTransactionType
from schoolbooks.utils.money import format_naira


@click.group()
def bank_group():
    """Manage bank accounts, transactions and transfers."""
    pass


@bank_group.command("account-create")
@click.argument("account_name")
@click.argument("bank_name")
@click.argument("account_number")
@click.option("--opening-balance", default="0", help="Opening balance")
@click.option("--gl-code", "gl_account_code", help="Ledger asset account to post against (e.g. 1120)")
@click.pass_context
def create_bank_account(
    ctx,
    account_name: str,
    bank_name: str,
    account_number: str,
    opening_balance: str,
    gl_account_code: str | None,
):
    """Create a bank account.

    Transactions on accounts without --gl-code are recorded but not posted.

    Examples:
        schoolbooks bank account-create "School Fees Account" "GTBank" 0123456789 --gl-code 1120
    """
    service = BankingService(ctx.obj["db"])
    try:
        bank_account = service.create_bank_account(
            account_name=account_name,
            bank_name=bank_name,
            account_number=account_number,
            opening_balance=resolve_cli_amount(ctx, opening_balance, "opening balance"),
            gl_account_code=gl_account_code,
        )
        click.echo(f"Created bank account '{bank_account.account_name}' (ID: {bank_account.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bank_group.command("account-list")
@click.pass_context
def list_bank_accounts(ctx):
    """List bank accounts with balances."""
    service = BankingService(ctx.obj["db"])
    accounts = service.list_bank_accounts()
    if not accounts:
        click.echo("No bank accounts found.")
        return

    for b in accounts:
        link = b.gl_account_code or "-"
        click.echo(
            f"ID: {b.id:3d} | {b.account_name:25s} | {b.bank_name:15s} | {b.account_number:12s} | "
            f"GL {link:6s} | {format_naira(b.balance):>15s}"
        )


@bank_group.command("record")
@click.argument("bank_account_id", type=int)
@click.argument("description")
@click.option("--deposit", help="Amount paid into the account")
@click.option("--withdrawal", help="Amount paid out of the account")
@click.option(
    "--type",
    "transaction_type",
    type=click.Choice([t.value for t in BankTransactionType]),
    help="Transaction type (guessed from the description when omitted)",
)
@click.option("--reference", help="Bank reference")
@click.option("--date", "transaction_date", help="Transaction date (defaults to today)")
@click.option("--by", "created_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User recording it")
@click.pass_context
def record_transaction(
    ctx,
    bank_account_id: int,
    description: str,
    deposit: str | None,
    withdrawal: str | None,
    transaction_type: str | None,
    reference: str | None,
    transaction_date: str | None,
    created_by: str,
):
    """Record a bank transaction and post it.

    Examples:
        schoolbooks bank record 1 "SMS alert charges" --withdrawal 400 --type charge
        schoolbooks bank record 1 "Interest earned" --deposit 1250
    """
    if bool(deposit) == bool(withdrawal):
        click.echo("Error: Give exactly one of --deposit or --withdrawal", err=True)
        ctx.exit(1)

    service = BankingService(ctx.obj["db"])
    try:
        transaction = service.record_transaction(
            bank_account_id=bank_account_id,
            transaction_date=resolve_cli_date(ctx, transaction_date) or date.today(),
            description=description,
            created_by=created_by,
            credit_amount=resolve_cli_amount(ctx, deposit) if deposit else 0,
            debit_amount=resolve_cli_amount(ctx, withdrawal) if withdrawal else 0,
            transaction_type=BankTransactionType(transaction_type) if transaction_type else None,
            reference=reference,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Recorded {transaction.transaction_type.value} (ID: {transaction.id}); "
        f"balance {format_naira(transaction.balance_after)}; posting: {transaction.posting_status.value}"
    )


@bank_group.command("transfer")
@click.argument("from_account_id", type=int)
@click.argument("to_account_id", type=int)
@click.argument("amount")
@click.option("--description", default="Inter-account transfer", help="Transfer description")
@click.option("--date", "transfer_date", help="Transfer date (defaults to today)")
@click.option("--by", "created_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User making the transfer")
@click.pass_context
def transfer(
    ctx,
    from_account_id: int,
    to_account_id: int,
    amount: str,
    description: str,
    transfer_date: str | None,
    created_by: str,
):
    """Transfer money between two bank accounts."""
    service = BankingService(ctx.obj["db"])
    try:
        result = service.create_transfer(
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=resolve_cli_amount(ctx, amount),
            transfer_date=resolve_cli_date(ctx, transfer_date) or date.today(),
            description=description,
            created_by=created_by,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Transfer {result.reference} of {format_naira(result.amount)} {result.status.value} "
        f"(posting: {result.posting_status.value})"
    )


@bank_group.command("reconcile")
@click.argument("bank_account_id", type=int)
@click.pass_context
def reconcile(ctx, bank_account_id: int):
    """Compare a bank account balance with its ledger account."""
    service = BankingService(ctx.obj["db"])
    try:
        result = service.reconcile_with_gl(bank_account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Bank balance:   {format_naira(result.bank_balance)}")
    click.echo(f"Ledger balance: {format_naira(result.gl_balance)} ({result.gl_account_code})")
    click.echo(f"Difference:     {format_naira(result.difference)}")
    click.echo(f"Unreconciled transactions: {result.unreconciled_count}")


def register_commands(cli):
    """Register bank commands with main CLI."""
    cli.add_command(bank_group, name="bank")
