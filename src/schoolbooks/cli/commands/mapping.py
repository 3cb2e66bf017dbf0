"""Account mapping commands."""

import click

from schoolbooks.cli.error_handling import handle_domain_error
from schoolbooks.domain.account_mapping import AccountMappingService
from schoolbooks.domain.entities import MappingType

MAPPING_TYPES = [t.value for t in MappingType]


@click.group()
def mapping_group():
    """Manage how fee types, expense categories and asset types map to accounts."""
    pass


@mapping_group.command("list")
@click.option("--type", "mapping_type", type=click.Choice(MAPPING_TYPES), help="Only this mapping type")
@click.pass_context
def list_mappings(ctx, mapping_type: str | None):
    """List active account mappings."""
    service = AccountMappingService(ctx.obj["db"])
    mappings = service.list_mappings(MappingType(mapping_type) if mapping_type else None)
    if not mappings:
        click.echo("No mappings found. Run 'schoolbooks init' to create the defaults.")
        return

    click.echo("\nAccount Mappings:")
    click.echo("-" * 60)
    for mapping in mappings:
        click.echo(
            f"{mapping.mapping_type.value:9s} | {mapping.source_type:20s} | "
            f"{mapping.account_code:6s} | {mapping.source_name}"
        )


@mapping_group.command("set")
@click.argument("mapping_type", type=click.Choice(MAPPING_TYPES))
@click.argument("source_type")
@click.argument("account_code")
@click.option("--name", "source_name", help="Display name for the source type")
@click.pass_context
def set_mapping(ctx, mapping_type: str, source_type: str, account_code: str, source_name: str | None):
    """Map a source type to an account, replacing the current mapping.

    Examples:
        schoolbooks mapping set revenue feeding 4200
        schoolbooks mapping set expense generator_fuel 5200 --name "Generator Fuel"
    """
    service = AccountMappingService(ctx.obj["db"])
    try:
        mapping = service.upsert_mapping(
            MappingType(mapping_type), source_type, account_code, source_name=source_name
        )
        click.echo(f"Mapped {mapping.mapping_type.value} '{mapping.source_type}' to {mapping.account_code}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@mapping_group.command("dedupe")
@click.pass_context
def dedupe_mappings(ctx):
    """Deactivate duplicate active mappings, keeping the newest."""
    service = AccountMappingService(ctx.obj["db"])
    removed = service.remove_duplicates()
    click.echo(f"Deactivated {removed} duplicate mapping{'s' if removed != 1 else ''}")


def register_commands(cli):
    """Register mapping commands with main CLI."""
    cli.add_command(mapping_group, name="mapping")
