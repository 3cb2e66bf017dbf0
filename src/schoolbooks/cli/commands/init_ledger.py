"""Initialize the default chart of accounts and account mappings."""

import click

from schoolbooks.domain.account_mapping import AccountMappingService
from schoolbooks.domain.chart_of_accounts import ChartOfAccountsService


@click.command("init")
@click.pass_context
def init_ledger(ctx):
    """Create the default school chart of accounts and account mappings.

    Safe to run again: existing accounts and mappings are left alone.
    """
    db = ctx.obj["db"]
    chart = ChartOfAccountsService(db)
    mappings = AccountMappingService(db)

    created_accounts = chart.initialize_defaults()
    created_mappings = mappings.initialize_defaults()

    click.echo(f"Chart of accounts: {len(created_accounts)} accounts created")
    for mapping_type, created in created_mappings.items():
        click.echo(f"{mapping_type.value.capitalize()} mappings: {len(created)} created")


def register_commands(cli):
    """Register init command with main CLI."""
    cli.add_command(init_ledger)
