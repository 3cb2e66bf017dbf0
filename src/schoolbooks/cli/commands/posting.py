"""Commands for records whose ledger posting failed or was skipped."""

import click

from schoolbooks.cli.error_handling import handle_domain_error
from schoolbooks.domain.reconciliation import RECORD_TYPES, PostingReconciliationService


@click.group()
def posting_group():
    """Find and retry unposted business records."""
    pass


@posting_group.command("unposted")
@click.option("--type", "record_type", type=click.Choice(RECORD_TYPES), help="Only this record type")
@click.pass_context
def list_unposted(ctx, record_type: str | None):
    """List records without a posted journal entry."""
    service = PostingReconciliationService(ctx.obj["db"])
    records = service.list_unposted(record_type)
    if not records:
        click.echo("All records are posted.")
        return

    for record in records:
        error = f" | {record.posting_error}" if record.posting_error else ""
        click.echo(
            f"{record.record_type:16s} | ID: {record.record_id:4d} | {record.reference:20s} | "
            f"{record.posting_status.value}{error}"
        )


@posting_group.command("retry")
@click.option("--type", "record_type", type=click.Choice(RECORD_TYPES), help="Only this record type")
@click.pass_context
def retry_unposted(ctx, record_type: str | None):
    """Re-post every unposted record."""
    service = PostingReconciliationService(ctx.obj["db"])
    try:
        result = service.retry_unposted(record_type)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Retried {result.attempted} records: {result.posted} posted")
    for record in result.still_unposted:
        click.echo(f"Still unposted: {record.record_type} {record.reference}: {record.posting_error}", err=True)


def register_commands(cli):
    """Register posting commands with main CLI."""
    cli.add_command(posting_group, name="posting")
