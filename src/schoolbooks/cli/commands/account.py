"""Chart of accounts commands."""

import click

from schoolbooks.cli.error_handling import handle_domain_error
from schoolbooks.domain.chart_of_accounts import ChartOfAccountsService
from schoolbooks.domain.entities import AccountType

ACCOUNT_TYPES = [t.value for t in AccountType]


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("list")
@click.option("--type", "account_type", type=click.Choice(ACCOUNT_TYPES), help="Only this account type")
@click.option("--all", "show_all", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, account_type: str | None, show_all: bool):
    """List accounts as a tree."""
    service = ChartOfAccountsService(ctx.obj["db"])

    rows = service.get_hierarchy()
    if account_type:
        rows = [(a, depth) for a, depth in rows if a.account_type.value == account_type]
    if not show_all:
        rows = [(a, depth) for a, depth in rows if a.is_active]
    if not rows:
        click.echo("No accounts found. Run 'schoolbooks init' to create the default chart.")
        return

    click.echo("\nChart of Accounts:")
    click.echo("-" * 70)
    for account, depth in rows:
        name = "  " * depth + account.name
        status = "" if account.is_active else " (inactive)"
        click.echo(f"{account.code:6s} | {name:40s} | {account.account_type.value:9s}{status}")


@account_group.command("create")
@click.argument("code")
@click.argument("name")
@click.option("--type", "account_type", type=click.Choice(ACCOUNT_TYPES), required=True, help="Account type")
@click.option("--parent", "parent_code", help="Parent account code")
@click.option("--description", help="Account description")
@click.pass_context
def create_account(ctx, code: str, name: str, account_type: str, parent_code: str | None, description: str | None):
    """Create a ledger account.

    Examples:
        schoolbooks account create 4500 "Donations" --type revenue --parent 4000
        schoolbooks account create 1121 "GTBank Current" --type asset --parent 1100
    """
    service = ChartOfAccountsService(ctx.obj["db"])
    try:
        account = service.create_account(
            code=code,
            name=name,
            account_type=AccountType(account_type),
            parent_code=parent_code,
            description=description,
        )
        click.echo(f"Created account {account.code} '{account.name}' ({account.category.value})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("deactivate")
@click.argument("code")
@click.pass_context
def deactivate_account(ctx, code: str):
    """Deactivate an account. Accounts are never deleted."""
    service = ChartOfAccountsService(ctx.obj["db"])
    try:
        account = service.deactivate_account(code)
        click.echo(f"Deactivated account {account.code} '{account.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
