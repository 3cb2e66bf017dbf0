"""Journal entry commands."""

from datetime import date

import click

from schoolbooks.cli.date_filters import parse_pairs, resolve_cli_date, resolve_cli_date_range
from schoolbooks.cli.error_handling import handle_domain_error
from schoolbooks.domain.auto_posting import AutoPostingService
from schoolbooks.domain.entities import EntryStatus, JournalEntry
from schoolbooks.domain.journal import JournalService
from schoolbooks.utils.money import format_naira


@click.group()
def journal_group():
    """View, create, post and reverse journal entries."""
    pass


def _echo_entry(entry: JournalEntry) -> None:
    click.echo(f"\n{entry.entry_number}  {entry.entry_date}  [{entry.status.value}]")
    click.echo(f"{entry.description}")
    ref = f"{entry.reference_type.value} {entry.reference_id or ''}".strip()
    click.echo(f"Reference: {ref}")
    if entry.reversed_by_id:
        click.echo(f"Reversed by entry ID {entry.reversed_by_id}")
    click.echo("-" * 70)
    for line in entry.lines:
        debit = format_naira(line.debit) if line.debit else ""
        credit = format_naira(line.credit) if line.credit else ""
        click.echo(f"{line.account_code:6s} {line.account_name:30s} {debit:>15s} {credit:>15s}")
    click.echo("-" * 70)
    click.echo(f"{'Total':37s} {format_naira(entry.total_debit):>15s} {format_naira(entry.total_credit):>15s}")


@journal_group.command("list")
@click.option("--period", help="Period (this-month, last-month, this-year, YYYY-MM, YYYY)")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--status", type=click.Choice([s.value for s in EntryStatus]), help="Only this status")
@click.pass_context
def list_entries(ctx, period: str | None, start_date: str | None, end_date: str | None, status: str | None):
    """List journal entries."""
    service = JournalService(ctx.obj["db"])
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    entries = service.list_entries(
        start_date=start, end_date=end, status=EntryStatus(status) if status else None
    )
    if not entries:
        click.echo("No journal entries found.")
        return

    for entry in entries:
        click.echo(
            f"ID: {entry.id:4d} | {entry.entry_date} | {entry.entry_number:16s} | "
            f"{entry.status.value:6s} | {format_naira(entry.total_debit):>15s} | {entry.description}"
        )


@journal_group.command("show")
@click.argument("entry_id", type=int)
@click.pass_context
def show_entry(ctx, entry_id: int):
    """Show a journal entry with its lines."""
    service = JournalService(ctx.obj["db"])
    entry = service.get_entry(entry_id)
    if entry is None:
        click.echo(f"Error: Journal entry {entry_id} not found", err=True)
        ctx.exit(1)
    _echo_entry(entry)


@journal_group.command("create")
@click.argument("description")
@click.option("--debit", "debits", multiple=True, help="CODE=AMOUNT debit line (repeatable)")
@click.option("--credit", "credits", multiple=True, help="CODE=AMOUNT credit line (repeatable)")
@click.option("--date", "entry_date", help="Entry date (defaults to today)")
@click.option("--post", "post_now", is_flag=True, help="Post immediately instead of saving a draft")
@click.option("--by", "created_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User creating the entry")
@click.pass_context
def create_entry(
    ctx,
    description: str,
    debits: tuple[str, ...],
    credits: tuple[str, ...],
    entry_date: str | None,
    post_now: bool,
    created_by: str,
):
    """Create a manual journal entry.

    Examples:
        schoolbooks journal create "Owner capital" --debit 1120=1000000 --credit 3200=1000000
    """
    db = ctx.obj["db"]
    engine = AutoPostingService(db)
    when = resolve_cli_date(ctx, entry_date) or date.today()

    try:
        lines = [engine.line(code, debit=amount) for code, amount in parse_pairs(ctx, debits, "--debit")]
        lines += [engine.line(code, credit=amount) for code, amount in parse_pairs(ctx, credits, "--credit")]
        entry = engine.journal.create_journal_entry(
            lines=lines,
            entry_date=when,
            description=description,
            created_by=created_by,
            status=EntryStatus.POSTED if post_now else EntryStatus.DRAFT,
        )
        click.echo(f"Created {entry.status.value} journal entry {entry.entry_number} (ID: {entry.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@journal_group.command("post")
@click.argument("entry_id", type=int)
@click.option("--by", "posted_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User posting the entry")
@click.pass_context
def post_entry(ctx, entry_id: int, posted_by: str):
    """Post a draft journal entry."""
    service = JournalService(ctx.obj["db"])
    try:
        entry = service.post_journal_entry(entry_id, posted_by=posted_by)
        click.echo(f"Posted journal entry {entry.entry_number}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@journal_group.command("reverse")
@click.argument("entry_id", type=int)
@click.option("--reason", help="Reason for the reversal")
@click.option("--date", "entry_date", help="Date of the reversing entry (defaults to the original date)")
@click.option("--by", "reversed_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User reversing the entry")
@click.pass_context
def reverse_entry(ctx, entry_id: int, reason: str | None, entry_date: str | None, reversed_by: str):
    """Reverse a posted journal entry with a mirror entry."""
    service = JournalService(ctx.obj["db"])
    when = resolve_cli_date(ctx, entry_date)
    try:
        reversal = service.reverse_journal_entry(entry_id, reversed_by, entry_date=when, reason=reason)
        click.echo(f"Posted reversing entry {reversal.entry_number} (ID: {reversal.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register journal commands with main CLI."""
    cli.add_command(journal_group, name="journal")
