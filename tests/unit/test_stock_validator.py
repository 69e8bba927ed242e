from unittest.mock import MagicMock

import pytest

from storefront.inventory import repository as inventory_repo
from storefront.inventory.service import StockLookupPolicy, StockValidator, is_available


def test_untracked_product_is_always_available():
    assert is_available({"track_quantity": False, "stock_quantity": 0}, 50) is True


def test_backorder_product_is_available():
    assert is_available({"track_quantity": True, "allow_backorder": True, "stock_quantity": 0}, 3) is True


def test_tracked_product_compares_stock():
    product = {"track_quantity": True, "allow_backorder": False, "stock_quantity": 3}
    assert is_available(product, 3) is True
    assert is_available(product, 4) is False


@pytest.mark.asyncio
async def test_check_uses_lookup():
    seen = []

    def fetch(product_id):
        seen.append(product_id)
        return {"track_quantity": True, "allow_backorder": False, "stock_quantity": 2}

    validator = StockValidator(fetch_stock=fetch)
    assert await validator.check("ring-1", "size-7", 2) is True
    assert await validator.check("ring-1", "size-7", 3) is False
    assert seen == ["ring-1", "ring-1"]


@pytest.mark.asyncio
async def test_lookup_error_fails_open_by_default():
    def fetch(product_id):
        raise RuntimeError("network down")

    assert await StockValidator(fetch_stock=fetch).check("ring-1", None, 1) is True


@pytest.mark.asyncio
async def test_lookup_error_fails_closed_when_configured():
    def fetch(product_id):
        raise RuntimeError("network down")

    validator = StockValidator(policy="fail_closed", fetch_stock=fetch)
    assert validator.policy is StockLookupPolicy.FAIL_CLOSED
    assert await validator.check("ring-1", None, 1) is False


@pytest.mark.asyncio
async def test_missing_product_follows_policy():
    assert await StockValidator(fetch_stock=lambda pid: None).check("ghost", None, 1) is True
    assert await StockValidator(StockLookupPolicy.FAIL_CLOSED, fetch_stock=lambda pid: None).check("ghost", None, 1) is False


@pytest.mark.asyncio
async def test_default_lookup_goes_through_repository(monkeypatch):
    monkeypatch.setattr(
        inventory_repo,
        "fetch_product_stock",
        lambda pid: {"track_quantity": True, "allow_backorder": False, "stock_quantity": 0},
    )
    assert await StockValidator().check("ring-1", None, 1) is False


def test_repository_reads_products_table(monkeypatch):
    client = MagicMock()
    chain = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    chain.execute.return_value.data = [{"stock_quantity": 4, "track_quantity": True, "allow_backorder": False}]
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: client)

    row = inventory_repo.fetch_product_stock("ring-1")

    assert row["stock_quantity"] == 4
    client.table.assert_called_with("products")
    client.table.return_value.select.assert_called_with(inventory_repo.STOCK_COLUMNS)


def test_repository_returns_none_on_error(monkeypatch):
    def _boom():
        raise RuntimeError("supabase unreachable")

    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", _boom)
    assert inventory_repo.fetch_product_stock("ring-1") is None
