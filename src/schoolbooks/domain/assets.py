"""Fixed asset register and monthly depreciation."""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from schoolbooks.database.base import Database
from schoolbooks.domain.auto_posting import AutoPostingService, PostingContext, attempt_posting
from schoolbooks.domain.entities import (
    ZERO,
    AssetStatus,
    DepreciationMethod,
    DepreciationRecord,
    FixedAsset,
    PaymentMethod,
    ReferenceType,
)
from schoolbooks.domain.errors import (
    DomainError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    record_not_found,
)
from schoolbooks.utils.date_parser import month_end
from schoolbooks.utils.money import Number, to_money
from schoolbooks.utils.references import ReferenceGenerator, depreciation_reference

logger = logging.getLogger(__name__)


@dataclass
class DepreciationRunResult:
    """Outcome of one monthly depreciation run."""

    year: int
    month: int
    total_depreciation: Decimal = ZERO
    assets_processed: int = 0
    entries_created: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class AssetSummary:
    total_assets: int
    active_assets: int
    disposed_assets: int
    total_cost: Decimal
    total_accumulated_depreciation: Decimal
    total_book_value: Decimal
    by_type: dict[str, Decimal]


def monthly_depreciation(asset: FixedAsset) -> Decimal:
    """Full monthly straight-line charge for an asset, before capping.

    A depreciation rate (percent of cost per year) takes precedence over the
    useful life. Assets with no rate and no life do not depreciate.
    """
    if asset.depreciation_method == DepreciationMethod.NONE:
        return ZERO
    if asset.depreciation_rate:
        return to_money(asset.purchase_price * asset.depreciation_rate / Decimal(100) / 12)
    if asset.useful_life_years:
        return to_money(asset.depreciable_amount / asset.useful_life_years / 12)
    return ZERO


class AssetService:
    """Service for registering, depreciating and disposing fixed assets."""

    def __init__(
        self,
        db: Database,
        engine: Optional[AutoPostingService] = None,
        references: Optional[ReferenceGenerator] = None,
    ):
        self.db = db
        self.engine = engine or AutoPostingService(db, references=references)
        self.references = references or ReferenceGenerator()

    def register_asset(
        self,
        name: str,
        asset_type: str,
        purchase_date: date,
        purchase_price: Number,
        method: PaymentMethod | str,
        created_by: str,
        residual_value: Number = 0,
        useful_life_years: Optional[int] = None,
        depreciation_rate: Optional[Number] = None,
        depreciation_method: DepreciationMethod = DepreciationMethod.STRAIGHT_LINE,
        vendor: Optional[str] = None,
        location: Optional[str] = None,
    ) -> FixedAsset:
        """Register a purchased asset and post the purchase.

        Args:
            name: Asset name
            asset_type: Asset type (resolved through the asset mappings)
            purchase_date: Date of purchase
            purchase_price: Cost
            method: Payment method
            created_by: User registering the asset
            residual_value: Expected value at the end of its life
            useful_life_years: Useful life in years
            depreciation_rate: Annual depreciation rate as a percentage of cost
            depreciation_method: Straight line or none
            vendor: Optional vendor name
            location: Optional location

        Returns:
            The stored asset with its posting outcome
        """
        price = to_money(purchase_price)
        residual = to_money(residual_value)
        if not name or not name.strip():
            raise ValidationError("Asset name is required")
        if price <= 0:
            raise ValidationError("Purchase price must be greater than zero")
        if residual < 0 or residual > price:
            raise ValidationError("Residual value must be between zero and the purchase price")
        if useful_life_years is not None and useful_life_years <= 0:
            raise ValidationError("Useful life must be a positive number of years")
        rate = to_money(depreciation_rate) if depreciation_rate is not None else None
        if rate is not None and not ZERO < rate <= 100:
            raise ValidationError("Depreciation rate must be between 0 and 100 percent")
        try:
            payment_method = PaymentMethod(method)
        except ValueError as e:
            raise ValidationError(f"Invalid payment method: {method}") from e

        asset_id = self.db.create_fixed_asset(
            asset_code=self.references.asset(purchase_date.year),
            name=name.strip(),
            asset_type=asset_type.strip().lower(),
            purchase_date=purchase_date,
            purchase_price=price,
            residual_value=residual,
            useful_life_years=useful_life_years,
            depreciation_rate=rate,
            depreciation_method=DepreciationMethod(depreciation_method),
            payment_method=payment_method,
            created_by=created_by,
            vendor=vendor,
            location=location,
        )
        asset = self.db.get_fixed_asset(asset_id)
        logger.info("Registered asset %s (%s) at %s", asset.asset_code, asset.name, price)
        self.post_purchase(asset)
        return self.db.get_fixed_asset(asset_id)

    def post_purchase(self, asset: FixedAsset):
        """(Re)post the purchase entry for an asset."""
        ctx = PostingContext(
            description=f"Purchase of asset {asset.asset_code}: {asset.name}",
            entry_date=asset.purchase_date,
            reference_type=ReferenceType.ASSET_PURCHASE,
            reference_id=asset.asset_code,
            created_by=asset.created_by,
        )
        return attempt_posting(
            lambda: self.engine.post_asset_purchase(
                asset.purchase_price, asset.payment_method, asset.vendor, asset.name, asset.asset_type, ctx
            ),
            lambda changes: self.db.update_fixed_asset(asset.id, changes),
            f"asset {asset.asset_code}",
        )

    def get_asset(self, asset_id: int) -> FixedAsset:
        asset = self.db.get_fixed_asset(asset_id)
        if asset is None:
            raise NotFoundError(record_not_found("Asset", asset_id))
        return asset

    def list_assets(
        self, status: Optional[AssetStatus] = None, asset_type: Optional[str] = None
    ) -> list[FixedAsset]:
        return self.db.list_fixed_assets(status=status, asset_type=asset_type)

    def calculate_monthly_depreciation(self, asset: FixedAsset) -> Decimal:
        """Depreciation due for one month, capped at the remaining depreciable amount."""
        remaining = asset.depreciable_amount - asset.accumulated_depreciation
        if remaining <= 0:
            return ZERO
        return min(monthly_depreciation(asset), remaining)

    def post_monthly_depreciation(
        self, year: int, month: int, posted_by: str = "system"
    ) -> DepreciationRunResult:
        """Depreciate every active asset for one month.

        Assets bought after the month, already depreciated for it, or fully
        depreciated are skipped. Errors for one asset are collected and the
        run carries on with the next.
        """
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month: {month}")
        period_end = month_end(year, month)
        result = DepreciationRunResult(year=year, month=month)

        for asset in self.db.list_fixed_assets(status=AssetStatus.ACTIVE):
            if asset.purchase_date > period_end:
                continue
            if self.db.list_depreciation_records(asset_id=asset.id, year=year, month=month):
                logger.info("Asset %s already depreciated for %d-%02d", asset.asset_code, year, month)
                continue
            amount = self.calculate_monthly_depreciation(asset)
            if amount <= 0:
                continue

            result.assets_processed += 1
            try:
                record = self._record_depreciation(asset, year, month, amount)
            except DomainError as e:
                logger.warning("Depreciation failed for asset %s: %s", asset.asset_code, e)
                result.errors.append(f"{asset.asset_code}: {e}")
                continue

            result.total_depreciation += amount
            entry = self.post_depreciation(record, asset, posted_by)
            if entry is not None:
                result.entries_created += 1
            else:
                refreshed = self.db.get_depreciation_record(record.id)
                result.errors.append(f"{asset.asset_code}: {refreshed.posting_error}")

        logger.info(
            "Depreciation %d-%02d: %s across %d assets (%d errors)",
            year,
            month,
            result.total_depreciation,
            result.assets_processed,
            len(result.errors),
        )
        return result

    def _record_depreciation(
        self, asset: FixedAsset, year: int, month: int, amount: Decimal
    ) -> DepreciationRecord:
        accumulated = asset.accumulated_depreciation + amount
        record_id = self.db.create_depreciation_record(
            asset_id=asset.id,
            year=year,
            month=month,
            amount=amount,
            accumulated_after=accumulated,
            book_value_after=asset.purchase_price - accumulated,
        )
        return self.db.get_depreciation_record(record_id)

    def post_depreciation(self, record: DepreciationRecord, asset: FixedAsset, posted_by: str = "system"):
        """(Re)post the entry for a depreciation record."""
        ctx = PostingContext(
            description=f"Depreciation {record.year}-{record.month:02d}: {asset.name}",
            entry_date=month_end(record.year, record.month),
            reference_type=ReferenceType.DEPRECIATION,
            reference_id=depreciation_reference(record.year, record.month, asset.asset_code),
            created_by=posted_by,
        )
        return attempt_posting(
            lambda: self.engine.post_depreciation(record.amount, asset.name, asset.asset_code, ctx),
            lambda changes: self.db.update_depreciation_record(record.id, changes),
            f"depreciation of {asset.asset_code} for {record.year}-{record.month:02d}",
        )

    def get_depreciation_history(self, asset_id: int) -> list[DepreciationRecord]:
        return self.db.list_depreciation_records(asset_id=asset_id)

    def dispose_asset(
        self,
        asset_id: int,
        disposal_date: date,
        disposal_value: Number = 0,
    ) -> FixedAsset:
        """Mark an asset disposed. Disposed assets stop depreciating."""
        asset = self.get_asset(asset_id)
        if asset.status == AssetStatus.DISPOSED:
            raise InvalidStateError(f"Asset {asset.asset_code} is already disposed")
        value = to_money(disposal_value)
        if value < 0:
            raise ValidationError("Disposal value cannot be negative")
        if disposal_date < asset.purchase_date:
            raise ValidationError("Disposal date cannot be before the purchase date")
        self.db.update_fixed_asset(
            asset_id,
            {
                "status": AssetStatus.DISPOSED,
                "disposal_date": disposal_date,
                "disposal_value": value,
            },
            expected_version=asset.version,
        )
        logger.info("Disposed asset %s for %s", asset.asset_code, value)
        return self.db.get_fixed_asset(asset_id)

    def get_asset_summary(self) -> AssetSummary:
        assets = self.list_assets()
        active = [a for a in assets if a.status == AssetStatus.ACTIVE]
        by_type: dict[str, Decimal] = {}
        for asset in active:
            by_type[asset.asset_type] = by_type.get(asset.asset_type, ZERO) + asset.current_value
        return AssetSummary(
            total_assets=len(assets),
            active_assets=len(active),
            disposed_assets=len(assets) - len(active),
            total_cost=sum((a.purchase_price for a in active), ZERO),
            total_accumulated_depreciation=sum((a.accumulated_depreciation for a in active), ZERO),
            total_book_value=sum((a.current_value for a in active), ZERO),
            by_type=dict(sorted(by_type.items())),
        )
