"""Tests for the chart of accounts service."""

import pytest

from schoolbooks.domain.chart_of_accounts import DEFAULT_ACCOUNTS, ChartOfAccountsService
from schoolbooks.domain.entities import AccountCategory, AccountType
from schoolbooks.domain.errors import ConflictError, NotFoundError, ValidationError


class TestChartOfAccounts:
    """Tests for ChartOfAccountsService."""

    def test_initialize_defaults(self, chart_service):
        created = chart_service.initialize_defaults()

        assert len(created) == len(DEFAULT_ACCOUNTS)
        cash = chart_service.get_by_code("1110")
        assert cash.name == "Cash"
        assert cash.category == AccountCategory.CASH
        assert chart_service.get_by_code("1220").category == AccountCategory.FIXED_ASSET
        assert chart_service.get_by_code("2210").category == AccountCategory.LONG_TERM_LIABILITY

    def test_initialize_defaults_is_idempotent(self, chart_service):
        chart_service.initialize_defaults()
        assert chart_service.initialize_defaults() == []
        assert len(chart_service.get_active_accounts()) == len(DEFAULT_ACCOUNTS)

    def test_create_account_derives_category(self, ledger, chart_service):
        account = chart_service.create_account(
            "1125", "Savings Account", AccountType.ASSET, parent_code="1100"
        )
        assert account.category == AccountCategory.CASH
        assert account.parent_code == "1100"
        assert chart_service.get_by_code("1125") == account

    def test_create_duplicate_code(self, ledger, chart_service):
        with pytest.raises(ConflictError, match="already exists"):
            chart_service.create_account("1110", "Petty Cash", AccountType.ASSET)

    def test_create_non_numeric_code(self, ledger, chart_service):
        with pytest.raises(ValidationError, match="must be numeric"):
            chart_service.create_account("CASH", "Cash", AccountType.ASSET)

    def test_create_with_missing_parent(self, ledger, chart_service):
        with pytest.raises(NotFoundError):
            chart_service.create_account("1999", "Orphan", AccountType.ASSET, parent_code="1998")

    def test_require_missing_account(self, chart_service):
        with pytest.raises(NotFoundError, match="initialize the chart of accounts"):
            chart_service.require("1110")

    def test_deactivate_hides_from_active_lists(self, ledger, chart_service):
        chart_service.deactivate_account("5900")

        assert not chart_service.get_by_code("5900").is_active
        assert "5900" not in [a.code for a in chart_service.get_by_type(AccountType.EXPENSE)]

        chart_service.activate_account("5900")
        assert chart_service.get_by_code("5900").is_active

    def test_writes_through_another_service_are_cached(self, ledger, chart_service):
        chart_service.get_by_code("1110")
        other = ChartOfAccountsService(ledger)
        other.rename_account("1110", "Cash in Hand")

        # Stale until this service's cache is cleared
        assert chart_service.get_by_code("1110").name == "Cash"
        chart_service.cache.clear()
        assert chart_service.get_by_code("1110").name == "Cash in Hand"

    def test_hierarchy_depths(self, ledger, chart_service):
        depths = {account.code: depth for account, depth in chart_service.get_hierarchy()}
        assert depths["1000"] == 0
        assert depths["1100"] == 1
        assert depths["1110"] == 2
        assert depths["5110"] == 2

    def test_find_by_name(self, ledger, chart_service):
        assert chart_service.find_by_name("bank charges").code == "5700"
        assert chart_service.find_by_name("interest income").code == "4400"
        assert chart_service.find_by_name("nothing like this") is None
