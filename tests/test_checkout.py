# tests/test_checkout.py
from app.database import InMemoryStore
from app.main import app, get_store

from conftest import add_product


def _only_order(store):
    assert len(store.orders) == 1
    return next(iter(store.orders.values()))


def test_snapshot_price_used_when_product_unknown(client, store):
    r = client.post("/api/cart/checkout", json={"items": [{"id": "p1", "qty": 2, "price": 50}]})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 100
    assert body["itemCount"] == 1
    assert body["paymentMethod"] == "gcash"
    assert body["pickup"] == "Gate 2.5"
    order = _only_order(store)
    assert order["id"] == body["orderId"]
    assert order["items"][0]["productId"] == "p1"
    assert order["items"][0]["price"] == 50
    assert order["items"][0]["qty"] == 2


def test_catalog_price_wins(client, store):
    add_product(store, "p2", 40)
    r = client.post("/api/cart/checkout", json=[{"productId": "p2", "quantity": 3}])
    assert r.status_code == 200
    assert r.json()["total"] == 120

    r = client.post("/api/cart/checkout", json=[{"productId": "p2", "quantity": 1, "price": 1}])
    assert r.json()["total"] == 40


def test_cart_wrapper_and_zero_quantity(client, store):
    r = client.post("/api/cart/checkout", json={"cart": [{"name": "x", "qty": 0, "price": 10}]})
    assert r.status_code == 200
    assert r.json()["total"] == 10
    item = _only_order(store)["items"][0]
    assert item["qty"] == 1
    assert item["productId"] == "x"


def test_missing_price_and_unknown_product_is_zero(client, store):
    r = client.post("/api/cart/checkout", json={"items": [{"id": "ghost"}]})
    assert r.status_code == 200
    assert r.json()["total"] == 0
    assert _only_order(store)["items"][0]["price"] == 0


def test_empty_identifier_stored_as_unknown(client, store):
    r = client.post("/api/cart/checkout", json={"items": [{"qty": 2, "price": 15}]})
    assert r.status_code == 200
    assert r.json()["total"] == 30
    assert _only_order(store)["items"][0]["productId"] == "UNKNOWN"


def test_mixed_cart_total(client, store):
    add_product(store, "book", 120)
    add_product(store, "mouse", 180)
    payload = {
        "campus": "UPD",
        "pickup": "AS Steps",
        "items": [
            {"productId": "book", "qty": 2, "price": 1},
            {"id": "mouse"},
            {"name": "lab gown", "quantity": "2", "price": "37.25"},
        ],
    }
    r = client.post("/api/cart/checkout", json=payload)
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 495
    assert body["itemCount"] == 3
    order = _only_order(store)
    assert order["campus"] == "UPD"
    assert order["pickup"] == "AS Steps"


def test_empty_payload_rejected(client, store):
    r = client.post("/api/cart/checkout", json={})
    assert r.status_code == 422
    body = r.json()
    assert body["error"] == "No items received"
    assert "hint" in body
    assert body["received"] == {}
    assert store.orders == {}


def test_empty_list_and_no_body_rejected(client, store):
    assert client.post("/api/cart/checkout", json=[]).status_code == 422
    r = client.post("/api/cart/checkout")
    assert r.status_code == 422
    assert r.json()["received"] is None
    assert store.orders == {}


def test_non_utf8_body_rejected_as_empty(client, store):
    r = client.post("/api/cart/checkout", content=b"\xff\xfe", headers={"Content-Type": "text/plain"})
    assert r.status_code == 422
    body = r.json()
    assert body["error"] == "No items received"
    assert body["received"] == "\ufffd\ufffd"
    assert store.orders == {}


def test_oversized_quantity_and_price(client, store):
    huge = 10 ** 400
    r = client.post("/api/cart/checkout", json={"items": [{"id": "a", "qty": huge, "price": 5}]})
    assert r.status_code == 200
    assert r.json()["total"] == 5

    r = client.post("/api/cart/checkout", json={"items": [{"id": "a", "qty": 1, "price": huge}]})
    assert r.status_code == 200
    assert r.json()["total"] == 0
    assert len(store.orders) == 2


def test_gcash_number_stored_only_for_gcash(client, store):
    r = client.post("/api/cart/checkout", json={"paymentMethod": "gcash", "gcashNumber": "09171234567", "items": [{"id": "a", "price": 5}]})
    order = store.orders[r.json()["orderId"]]
    assert order["gcashNumber"] == "09171234567"

    r = client.post("/api/cart/checkout", json={"paymentMethod": "cash", "gcashNumber": "09171234567", "items": [{"id": "a", "price": 5}]})
    assert r.json()["paymentMethod"] == "cash"
    order = store.orders[r.json()["orderId"]]
    assert order["gcashNumber"] is None


def test_strict_policy_rejects_unpriced_orders(client, store, strict_settings):
    r = client.post("/api/cart/checkout", json={"items": [{"id": "ghost", "price": 10}]})
    assert r.status_code == 422
    assert r.json()["error"] == "No items match the catalog"
    assert store.orders == {}

    add_product(store, "real", 25)
    r = client.post("/api/cart/checkout", json={"items": [{"id": "real"}, {"id": "ghost", "price": 10}]})
    assert r.status_code == 200
    assert r.json()["total"] == 35


class BrokenStore(InMemoryStore):
    def create_order(self, order, items):
        raise RuntimeError("database is locked")


def test_store_failure_is_500_and_nothing_persisted(client):
    broken = BrokenStore()
    app.dependency_overrides[get_store] = lambda: broken
    r = client.post("/api/cart/checkout", json={"items": [{"id": "a", "price": 5}]})
    assert r.status_code == 500
    assert r.json() == {"error": "Checkout failed", "message": "database is locked"}
    assert broken.orders == {}


def test_order_lookup(client, store):
    r = client.post("/api/cart/checkout", json={"items": [{"id": "a", "qty": 2, "price": 5}]})
    oid = r.json()["orderId"]
    r = client.get(f"/api/orders/{oid}")
    assert r.status_code == 200
    order = r.json()
    assert order["id"] == oid
    assert order["total"] == 10
    assert order["items"][0]["orderId"] == oid
    assert order["items"][0]["productId"] == "a"

    r = client.get("/api/orders/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"error": "Order not found"}
