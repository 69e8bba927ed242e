import json
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from storefront.cart.models import CartLine, line_key
from storefront.cart.storage import RedisCartStorage, dumps_lines, loads_lines


def _line(**overrides) -> CartLine:
    data = {
        "id": "ring-1-default",
        "product_id": "ring-1",
        "name": "Gold Ring",
        "slug": "gold-ring",
        "unit_price": Decimal("49.90"),
        "quantity": 1,
    }
    data.update(overrides)
    return CartLine(**data)


def test_line_key_defaults_variant():
    assert line_key("ring-1") == "ring-1-default"
    assert line_key("ring-1", "") == "ring-1-default"
    assert line_key("ring-1", "size-7") == "ring-1-size-7"


def test_dumps_lines_keeps_decimal_literal_and_omits_absent_fields():
    payload = json.loads(dumps_lines([_line()]))
    assert payload == [{
        "productId": "ring-1",
        "name": "Gold Ring",
        "slug": "gold-ring",
        "unitPrice": "49.90",
        "id": "ring-1-default",
        "quantity": 1,
    }]


def test_loads_lines_accepts_camel_case():
    raw = '[{"id": "ring-1-default", "productId": "ring-1", "name": "Gold Ring", "unitPrice": "49.90", "quantity": 2, "maxQuantity": 5}]'
    (line,) = loads_lines(raw)
    assert line.unit_price == Decimal("49.90")
    assert line.max_quantity == 5
    assert line.quantity == 2


def test_loads_lines_rejects_invalid_quantity():
    raw = '[{"id": "a-default", "productId": "a", "name": "A", "unitPrice": "1", "quantity": 0}]'
    with pytest.raises(PydanticValidationError):
        loads_lines(raw)


def test_key_uses_prefix(fake_redis):
    assert RedisCartStorage(fake_redis, key_prefix="fj-cart").key_for("abc") == "fj-cart:abc"


@pytest.mark.asyncio
async def test_load_missing_slot_is_empty(storage):
    assert await storage.load("nobody") == []


@pytest.mark.asyncio
async def test_save_then_erase(storage, fake_redis):
    await storage.save("c1", [_line(quantity=3)])
    loaded = await storage.load("c1")
    assert loaded[0].quantity == 3

    await storage.erase("c1")
    assert await fake_redis.get("fj-cart:c1") is None


@pytest.mark.asyncio
async def test_ping(storage):
    assert await storage.ping() is True
