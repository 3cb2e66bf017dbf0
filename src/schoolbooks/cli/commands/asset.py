"""Fixed asset commands."""

from datetime import date

import click

from schoolbooks.cli.date_filters import resolve_cli_amount, resolve_cli_date
from schoolbooks.cli.error_handling import echo_posting_outcome, handle_domain_error
from schoolbooks.domain.assets import AssetService
from schoolbooks.domain.entities import AssetStatus, DepreciationMethod, PaymentMethod
from schoolbooks.utils.date_parser import parse_period
from schoolbooks.utils.money import format_naira


@click.group()
def asset_group():
    """Register, list and depreciate fixed assets."""
    pass


@asset_group.command("register")
@click.argument("name")
@click.argument("asset_type")
@click.argument("price")
@click.option("--date", "purchase_date", help="Purchase date (defaults to today)")
@click.option(
    "--method",
    type=click.Choice([m.value for m in PaymentMethod]),
    default="bank_transfer",
    show_default=True,
)
@click.option("--life", "useful_life_years", type=int, help="Useful life in years")
@click.option("--rate", "depreciation_rate", help="Annual depreciation rate in percent of cost")
@click.option("--residual", "residual_value", default="0", help="Residual value")
@click.option("--no-depreciation", is_flag=True, help="Asset does not depreciate (e.g. land)")
@click.option("--vendor", help="Vendor name")
@click.option("--location", help="Where the asset is kept")
@click.option("--by", "created_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User registering the asset")
@click.pass_context
def register_asset(
    ctx,
    name: str,
    asset_type: str,
    price: str,
    purchase_date: str | None,
    method: str,
    useful_life_years: int | None,
    depreciation_rate: str | None,
    residual_value: str,
    no_depreciation: bool,
    vendor: str | None,
    location: str | None,
    created_by: str,
):
    """Register a purchased asset and post the purchase.

    Examples:
        schoolbooks asset register "School Bus" vehicle 12000000 --life 5 --residual 2000000
        schoolbooks asset register "Desks (40)" furniture 800000 --rate 20
    """
    service = AssetService(ctx.obj["db"])
    try:
        asset = service.register_asset(
            name=name,
            asset_type=asset_type,
            purchase_date=resolve_cli_date(ctx, purchase_date) or date.today(),
            purchase_price=resolve_cli_amount(ctx, price, "price"),
            method=method,
            created_by=created_by,
            residual_value=resolve_cli_amount(ctx, residual_value, "residual value"),
            useful_life_years=useful_life_years,
            depreciation_rate=resolve_cli_amount(ctx, depreciation_rate, "rate") if depreciation_rate else None,
            depreciation_method=DepreciationMethod.NONE if no_depreciation else DepreciationMethod.STRAIGHT_LINE,
            vendor=vendor,
            location=location,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Registered asset {asset.asset_code} '{asset.name}' at {format_naira(asset.purchase_price)}")
    echo_posting_outcome(asset)


@asset_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in AssetStatus]), help="Asset status")
@click.option("--type", "asset_type", help="Asset type")
@click.pass_context
def list_assets(ctx, status: str | None, asset_type: str | None):
    """List fixed assets."""
    service = AssetService(ctx.obj["db"])
    assets = service.list_assets(status=AssetStatus(status) if status else None, asset_type=asset_type)
    if not assets:
        click.echo("No assets found.")
        return

    for a in assets:
        click.echo(
            f"{a.asset_code:15s} | {a.name:25s} | {a.asset_type:10s} | cost {format_naira(a.purchase_price):>15s} | "
            f"book {format_naira(a.current_value):>15s} | {a.status.value}"
        )


@asset_group.command("depreciate")
@click.option("--period", "period", required=True, help="Month to depreciate (YYYY-MM, this-month, last-month)")
@click.option("--by", "posted_by", envvar="SCHOOLBOOKS_USER", default="admin", help="User running depreciation")
@click.pass_context
def depreciate(ctx, period: str, posted_by: str):
    """Post one month's depreciation for every active asset."""
    try:
        start, end = parse_period(period)
    except ValueError as e:
        handle_domain_error(ctx, e)
    if (start.year, start.month) != (end.year, end.month):
        click.echo("Error: Depreciation runs one month at a time; use YYYY-MM", err=True)
        ctx.exit(1)

    service = AssetService(ctx.obj["db"])
    try:
        result = service.post_monthly_depreciation(start.year, start.month, posted_by)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Depreciation for {result.year}-{result.month:02d}:")
    click.echo(f"  Assets processed: {result.assets_processed}")
    click.echo(f"  Entries posted:   {result.entries_created}")
    click.echo(f"  Total:            {format_naira(result.total_depreciation)}")
    for error in result.errors:
        click.echo(f"  Error: {error}", err=True)


def register_commands(cli):
    """Register asset commands with main CLI."""
    cli.add_command(asset_group, name="asset")
