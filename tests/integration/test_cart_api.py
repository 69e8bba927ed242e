RING = {
    "productId": "ring-1",
    "name": "Gold Ring",
    "slug": "gold-ring",
    "unitPrice": "49.99",
    "compareAtPrice": "59.99",
    "image": "/images/gold-ring.jpg",
}


def test_empty_cart(client):
    res = client.get("/api/v1/cart")
    assert res.status_code == 200
    data = res.json()
    assert data["lines"] == []
    assert data["totalItems"] == 0
    assert data["isOpen"] is False
    assert res.headers["Cache-Control"].startswith("no-store")


def test_add_item_updates_totals_and_persists_in_session(client):
    res = client.post("/api/v1/cart/items", json={**RING, "quantity": 2})
    assert res.status_code == 200
    body = res.json()
    assert body["line"]["id"] == "ring-1-default"
    assert body["cart"]["totalItems"] == 2
    assert body["cart"]["totalPrice"] == "99.98"
    assert body["cart"]["totalSavings"] == "20.00"

    # même cookie de session -> même panier
    again = client.get("/api/v1/cart").json()
    assert again["totalItems"] == 2


def test_merge_and_variant_lines(client):
    client.post("/api/v1/cart/items", json={**RING, "quantity": 1})
    client.post("/api/v1/cart/items", json={**RING, "quantity": 1})
    data = client.post("/api/v1/cart/items", json={**RING, "variantId": "size-7", "variantOptions": {"size": "7"}}).json()

    ids = [line["id"] for line in data["cart"]["lines"]]
    assert ids == ["ring-1-default", "ring-1-size-7"]
    assert data["cart"]["lines"][0]["quantity"] == 2
    assert data["cart"]["lines"][1]["variantOptions"] == {"size": "7"}


def test_out_of_stock_is_conflict(client, stock):
    stock.stock["ring-1"] = 1
    res = client.post("/api/v1/cart/items", json={**RING, "quantity": 2})
    assert res.status_code == 409
    assert res.json()["code"] == "stock_unavailable"
    assert client.get("/api/v1/cart").json()["totalItems"] == 0


def test_invalid_quantity_is_unprocessable(client):
    res = client.post("/api/v1/cart/items", json={**RING, "quantity": 0})
    assert res.status_code == 422
    assert res.json()["fields"] == ["quantity"]


def test_negative_price_is_rejected(client):
    res = client.post("/api/v1/cart/items", json={**RING, "unitPrice": "-1"})
    assert res.status_code == 422


def test_set_quantity_and_remove(client):
    client.post("/api/v1/cart/items", json=RING)

    data = client.patch("/api/v1/cart/items/ring-1-default", json={"quantity": 4}).json()
    assert data["totalItems"] == 4

    data = client.patch("/api/v1/cart/items/ring-1-default", json={"quantity": 0}).json()
    assert data["lines"] == []

    client.post("/api/v1/cart/items", json=RING)
    data = client.delete("/api/v1/cart/items/ring-1-default").json()
    assert data["totalItems"] == 0
    assert client.delete("/api/v1/cart/items/ring-1-default").status_code == 200


def test_clear_cart(client):
    client.post("/api/v1/cart/items", json={**RING, "quantity": 3})
    data = client.delete("/api/v1/cart").json()
    assert data["totalItems"] == 0
    assert data["totalPrice"] == "0"


def test_validate_reports_unavailable_lines(client, stock):
    client.post("/api/v1/cart/items", json={**RING, "quantity": 2})
    assert client.get("/api/v1/cart/validate").json() == {"valid": True, "errors": []}

    stock.stock["ring-1"] = 1
    data = client.get("/api/v1/cart/validate").json()
    assert data["valid"] is False
    assert data["errors"] == ["Gold Ring is no longer available in the requested quantity"]
    assert client.get("/api/v1/cart").json()["totalItems"] == 2


def test_toggle_visibility(client):
    assert client.post("/api/v1/cart/toggle").json()["isOpen"] is True
    assert client.post("/api/v1/cart/toggle").json()["isOpen"] is False
    assert client.post("/api/v1/cart/toggle", json={"open": True}).json()["isOpen"] is True
    assert client.post("/api/v1/cart/toggle", json={"open": False}).json()["isOpen"] is False


def test_carts_are_isolated_per_session(client):
    client.post("/api/v1/cart/items", json=RING)
    client.cookies.clear()
    assert client.get("/api/v1/cart").json()["totalItems"] == 0


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
    res = client.get("/health/redis")
    assert res.status_code == 200
    assert res.json()["ok"] is True
    assert res.json()["rate_limit"]["enabled"] is False
