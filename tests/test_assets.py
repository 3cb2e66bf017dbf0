"""Tests for the fixed asset register and depreciation."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from schoolbooks.domain.assets import monthly_depreciation
from schoolbooks.domain.entities import AssetStatus, DepreciationMethod, PostingStatus, ReferenceType
from schoolbooks.domain.errors import InvalidStateError, ValidationError
from schoolbooks.utils.references import depreciation_reference


@pytest.fixture
def laptops(asset_service):
    return asset_service.register_asset(
        name="Staff laptops",
        asset_type="Computer",
        purchase_date=date(2024, 1, 10),
        purchase_price="1200000",
        method="bank_transfer",
        created_by="bursar",
        useful_life_years=5,
        vendor="Dell",
    )


class TestAssetRegistration:
    """Tests for registering assets."""

    def test_register_posts_purchase(self, laptops, journal_service):
        assert laptops.asset_code.startswith("AST-2024-")
        assert laptops.asset_type == "computer"
        assert laptops.current_value == Decimal("1200000.00")
        assert laptops.status == AssetStatus.ACTIVE
        assert laptops.posting_status == PostingStatus.POSTED
        assert journal_service.get_account_balance("1220") == Decimal("1200000.00")
        assert journal_service.get_account_balance("1120") == Decimal("-1200000.00")

    def test_vehicle_mapping(self, asset_service, journal_service):
        asset_service.register_asset(
            "School bus", "vehicle", date(2024, 1, 3), "8000000", "cheque", "bursar", useful_life_years=8
        )
        assert journal_service.get_account_balance("1240") == Decimal("8000000.00")

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"purchase_price": "0"}, "greater than zero"),
            ({"residual_value": "2000000"}, "Residual value"),
            ({"useful_life_years": 0}, "Useful life"),
            ({"depreciation_rate": "150"}, "Depreciation rate"),
            ({"method": "barter"}, "Invalid payment method"),
        ],
    )
    def test_invalid_registration(self, asset_service, kwargs, message):
        values = {
            "name": "Projector",
            "asset_type": "equipment",
            "purchase_date": date(2024, 1, 10),
            "purchase_price": "500000",
            "method": "cash",
            "created_by": "bursar",
            "useful_life_years": 5,
        }
        values.update(kwargs)
        with pytest.raises(ValidationError, match=message):
            asset_service.register_asset(**values)


class TestDepreciation:
    """Tests for monthly depreciation."""

    def test_monthly_amount_from_useful_life(self, laptops, asset_service):
        assert asset_service.calculate_monthly_depreciation(laptops) == Decimal("20000.00")

    def test_rate_gives_same_charge(self, laptops):
        by_rate = replace(laptops, useful_life_years=None, depreciation_rate=Decimal("20"))
        assert monthly_depreciation(by_rate) == Decimal("20000.00")

    def test_rate_takes_precedence(self, laptops):
        both = replace(laptops, depreciation_rate=Decimal("10"))
        assert monthly_depreciation(both) == Decimal("10000.00")

    def test_no_depreciation_method(self, laptops):
        assert monthly_depreciation(replace(laptops, depreciation_method=DepreciationMethod.NONE)) == 0

    def test_charge_capped_at_remaining(self, laptops, asset_service):
        nearly_done = replace(laptops, accumulated_depreciation=Decimal("1195000"))
        assert asset_service.calculate_monthly_depreciation(nearly_done) == Decimal("5000.00")

        done = replace(laptops, accumulated_depreciation=Decimal("1200000"))
        assert asset_service.calculate_monthly_depreciation(done) == 0

    def test_run_posts_entries(self, laptops, asset_service, journal_service):
        result = asset_service.post_monthly_depreciation(2024, 1)

        assert result.total_depreciation == Decimal("20000.00")
        assert result.assets_processed == 1
        assert result.entries_created == 1
        assert result.errors == []

        asset = asset_service.get_asset(laptops.id)
        assert asset.accumulated_depreciation == Decimal("20000.00")
        assert asset.current_value == Decimal("1180000.00")

        reference = depreciation_reference(2024, 1, laptops.asset_code)
        entries = journal_service.get_by_reference(ReferenceType.DEPRECIATION, reference)
        assert len(entries) == 1
        assert entries[0].entry_date == date(2024, 1, 31)
        assert journal_service.get_account_balance("5500") == Decimal("20000.00")
        assert journal_service.get_account_balance("1250") == Decimal("-20000.00")

    def test_run_is_idempotent(self, laptops, asset_service):
        asset_service.post_monthly_depreciation(2024, 1)
        again = asset_service.post_monthly_depreciation(2024, 1)

        assert again.assets_processed == 0
        assert again.total_depreciation == 0
        assert len(asset_service.get_depreciation_history(laptops.id)) == 1

    def test_asset_bought_after_month_skipped(self, laptops, asset_service):
        result = asset_service.post_monthly_depreciation(2023, 12)
        assert result.assets_processed == 0

    def test_consecutive_months_accumulate(self, laptops, asset_service):
        for month in (1, 2, 3):
            asset_service.post_monthly_depreciation(2024, month)

        history = asset_service.get_depreciation_history(laptops.id)
        assert [r.accumulated_after for r in history] == [
            Decimal("20000.00"),
            Decimal("40000.00"),
            Decimal("60000.00"),
        ]
        assert history[-1].book_value_after == Decimal("1140000.00")

    def test_invalid_month(self, asset_service):
        with pytest.raises(ValidationError, match="Invalid month"):
            asset_service.post_monthly_depreciation(2024, 0)

    def test_posting_failure_collected(self, laptops, asset_service, chart_service):
        chart_service.deactivate_account("5500")
        result = asset_service.post_monthly_depreciation(2024, 1)

        assert result.entries_created == 0
        assert len(result.errors) == 1
        assert laptops.asset_code in result.errors[0]
        record = asset_service.get_depreciation_history(laptops.id)[0]
        assert record.posting_status == PostingStatus.FAILED


class TestDisposal:
    """Tests for disposing assets."""

    def test_disposed_asset_stops_depreciating(self, laptops, asset_service):
        disposed = asset_service.dispose_asset(laptops.id, date(2024, 1, 20), "900000")

        assert disposed.status == AssetStatus.DISPOSED
        assert disposed.disposal_value == Decimal("900000.00")
        assert asset_service.post_monthly_depreciation(2024, 1).assets_processed == 0

    def test_dispose_twice_rejected(self, laptops, asset_service):
        asset_service.dispose_asset(laptops.id, date(2024, 1, 20))
        with pytest.raises(InvalidStateError, match="already disposed"):
            asset_service.dispose_asset(laptops.id, date(2024, 1, 21))

    def test_disposal_before_purchase_rejected(self, laptops, asset_service):
        with pytest.raises(ValidationError):
            asset_service.dispose_asset(laptops.id, date(2023, 12, 31))

    def test_summary(self, laptops, asset_service):
        projector = asset_service.register_asset(
            "Projector", "equipment", date(2024, 1, 5), "300000", "cash", "bursar", useful_life_years=3
        )
        asset_service.post_monthly_depreciation(2024, 1)
        asset_service.dispose_asset(projector.id, date(2024, 2, 1))

        summary = asset_service.get_asset_summary()
        assert summary.total_assets == 2
        assert summary.active_assets == 1
        assert summary.disposed_assets == 1
        assert summary.total_cost == Decimal("1200000.00")
        assert summary.total_accumulated_depreciation == Decimal("20000.00")
        assert summary.total_book_value == Decimal("1180000.00")
        assert summary.by_type == {"computer": Decimal("1180000.00")}
