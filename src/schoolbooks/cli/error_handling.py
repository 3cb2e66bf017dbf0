"""CLI helpers for reporting failures and posting outcomes."""

import click

from schoolbooks.domain.entities import PostingStatus
from schoolbooks.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def echo_posting_outcome(record) -> None:
    """Show how a business record's auto-post went.

    A failed post does not fail the command: the record is saved and can be
    re-posted with ``schoolbooks posting retry``.
    """
    click.echo(f"Posting: {record.posting_status.value}")
    if record.posting_error:
        click.echo(f"Posting error: {record.posting_error}", err=True)
    if record.posting_status == PostingStatus.FAILED:
        click.echo("Run 'schoolbooks posting retry' once the problem is fixed.", err=True)
