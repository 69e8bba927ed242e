from unittest.mock import MagicMock

from storefront.checkout.models import ShippingInfo
from storefront.users import repository as users_repo
from storefront.users import service as users_service

USER = {"id": "user-1", "email": "ada@example.com", "token": "token-1"}


def test_profile_row_maps_to_shipping_fields():
    row = {
        "shipping_address1": "1 Main St",
        "shipping_address2": None,
        "shipping_city": "Springfield",
        "shipping_state": "IL",
        "shipping_zip_code": "62701",
        "shipping_country": "US",
        "phone": "555-0100",
    }
    assert users_service.profile_to_shipping(row) == {
        "address1": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "US",
        "phone": "555-0100",
    }


def test_shipping_maps_to_profile_columns():
    info = ShippingInfo(address1="1 Main St", city="Springfield", state="IL", zip_code="62701")
    cols = users_service.shipping_to_profile(info)
    assert cols["shipping_address1"] == "1 Main St"
    assert cols["shipping_zip_code"] == "62701"
    assert cols["shipping_address2"] is None
    assert cols["shipping_country"] == "US"


def test_guest_profile_is_never_read_or_written(monkeypatch):
    def _unexpected(*args):
        raise AssertionError("no profile access for guests")

    monkeypatch.setattr(users_repo, "fetch_shipping_profile", _unexpected)
    monkeypatch.setattr(users_repo, "update_shipping_profile", _unexpected)
    assert users_service.load_shipping_profile(None) == {}
    assert users_service.save_shipping_profile({"id": "user-1"}, ShippingInfo()) is False


def test_save_updates_user_profiles_row(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr("storefront.infra.supabase_client.get_user_supabase", lambda token: client)

    assert users_service.save_shipping_profile(USER, ShippingInfo(city="Springfield")) is True
    client.table.assert_called_with("user_profiles")
    client.table.return_value.update.return_value.eq.assert_called_with("id", "user-1")


def test_save_failure_returns_false(monkeypatch):
    def _boom(token):
        raise RuntimeError("RLS denied")

    monkeypatch.setattr("storefront.infra.supabase_client.get_user_supabase", _boom)
    assert users_service.save_shipping_profile(USER, ShippingInfo()) is False


def test_load_reads_profile(monkeypatch):
    client = MagicMock()
    chain = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    chain.execute.return_value.data = [{"shipping_city": "Paris", "phone": None}]
    monkeypatch.setattr("storefront.infra.supabase_client.get_user_supabase", lambda token: client)

    assert users_service.load_shipping_profile(USER) == {"city": "Paris"}
