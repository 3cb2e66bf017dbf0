"""CLI helpers for parsing dates, periods and key=value options."""

from datetime import date
from decimal import Decimal

import click

from schoolbooks.utils.amount_parser import parse_amount
from schoolbooks.utils.date_parser import parse_date, parse_period


def resolve_cli_date(ctx, value: str | None, label: str = "date") -> date | None:
    """Parse an optional date option, exiting on bad input."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    default_period: str | None = None,
) -> tuple[date | None, date | None]:
    """Resolve a date range from --period or explicit --start-date/--end-date."""
    if period and (start_date or end_date):
        click.echo(
            "Error: --period cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period is None and start_date is None and end_date is None:
        period = default_period

    if period:
        try:
            return parse_period(period)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

    return (
        resolve_cli_date(ctx, start_date, "start date"),
        resolve_cli_date(ctx, end_date, "end date"),
    )


def resolve_cli_amount(ctx, value: str, label: str = "amount") -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_pairs(ctx, values: tuple[str, ...], option: str) -> list[tuple[str, Decimal]]:
    """Parse repeated NAME=AMOUNT options."""
    pairs = []
    for value in values:
        name, sep, amount = value.partition("=")
        if not sep or not name.strip():
            click.echo(f"Error: {option} must look like NAME=AMOUNT, got '{value}'", err=True)
            ctx.exit(1)
        pairs.append((name.strip(), resolve_cli_amount(ctx, amount, f"{option} amount")))
    return pairs
