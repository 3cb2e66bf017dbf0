"""Main CLI entry point."""

import logging

import click

from schoolbooks.database.factories import create_sqlite_database

# Import and register all commands at module level
from schoolbooks.cli.commands import (
    account,
    asset,
    bank,
    expense,
    init_ledger,
    journal,
    mapping,
    payment,
    posting,
    report,
    salary,
    tax,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SCHOOLBOOKS_DB_PATH environment variable)",
    envvar="SCHOOLBOOKS_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="SCHOOLBOOKS_LOG_LEVEL",
    help="Logging level",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Schoolbooks - double-entry accounting for schools.

    Fee billing, payments, expenses, payroll, fixed assets and banking are
    posted automatically to a general ledger with a Nigerian school chart of
    accounts.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(level=getattr(logging, log_level.upper()), format=LOG_FORMAT)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
init_ledger.register_commands(cli)
account.register_commands(cli)
mapping.register_commands(cli)
journal.register_commands(cli)
payment.register_commands(cli)
expense.register_commands(cli)
salary.register_commands(cli)
asset.register_commands(cli)
bank.register_commands(cli)
report.register_commands(cli)
tax.register_commands(cli)
posting.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
