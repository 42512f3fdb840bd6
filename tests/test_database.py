# tests/test_database.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.database import SqlStore
from app.main import app, get_store
from app.models import Order, OrderItem

ORDER = {"campus": "ADMU", "pickup": "Regis", "paymentMethod": "gcash", "gcashNumber": "0917", "total": 95}


@pytest.fixture
def sql_store():
    s = SqlStore("sqlite://")
    s.open()
    yield s
    s.close()


def _count(store, model):
    with store._session() as session:
        return session.scalar(select(func.count()).select_from(model))


def test_create_and_find_order(sql_store):
    created = sql_store.create_order(ORDER, [
        {"productId": "abc", "qty": 2, "price": 40},
        {"productId": "UNKNOWN", "qty": 1, "price": 15},
    ])
    assert created["total"] == 95
    assert [it["productId"] for it in created["items"]] == ["abc", "UNKNOWN"]

    found = sql_store.find_order(created["id"])
    assert found["gcashNumber"] == "0917"
    assert found["paymentMethod"] == "gcash"
    assert [(it["qty"], it["price"]) for it in found["items"]] == [(2, 40), (1, 15)]
    assert all(it["orderId"] == created["id"] for it in found["items"])
    assert sql_store.find_order("missing") is None


def test_fractional_values_survive(sql_store):
    created = sql_store.create_order(ORDER, [{"productId": "x", "qty": 1.5, "price": 37.25}])
    item = sql_store.find_order(created["id"])["items"][0]
    assert item["qty"] == 1.5
    assert item["price"] == 37.25


def test_create_order_is_all_or_nothing(sql_store):
    with pytest.raises(IntegrityError):
        sql_store.create_order(ORDER, [
            {"productId": "ok", "qty": 1, "price": 10},
            {"productId": "bad", "qty": None, "price": 10},
        ])
    assert _count(sql_store, Order) == 0
    assert _count(sql_store, OrderItem) == 0


def test_products_roundtrip(sql_store):
    assert sql_store.count_products() == 0
    sql_store.create_products([
        {"name": "Calculus Textbook", "price": 200, "campus": "ADMU", "category": "Books"},
        {"name": "Wireless Mouse", "price": 180, "campus": "UPD", "category": "Gadgets"},
    ])
    assert sql_store.count_products() == 2

    upd = sql_store.list_products(campus="UPD")
    assert [p["name"] for p in upd] == ["Wireless Mouse"]
    assert sql_store.list_products(price_min=190)[0]["price"] == 200
    assert sql_store.list_products(category="Books", price_max=100) == []

    ids = [p["id"] for p in sql_store.list_products()]
    found = sql_store.find_products_by_ids(ids + ["nope"])
    assert sorted(p["price"] for p in found) == [180, 200]
    assert sql_store.find_products_by_ids([]) == []


def test_closed_store_raises():
    s = SqlStore("sqlite://")
    with pytest.raises(RuntimeError):
        s.count_products()


def test_checkout_through_sql_store(sql_store):
    app.dependency_overrides[get_store] = lambda: sql_store
    try:
        client = TestClient(app)
        client.get("/api/seed")
        hoodie = client.get("/api/products", params={"category": "Preloved"}).json()[0]

        r = client.post("/api/cart/checkout", json={
            "paymentMethod": "cash",
            "items": [
                {"productId": hoodie["id"], "qty": 2, "price": 1},
                {"name": "zine", "quantity": 3, "price": 12.5},
            ],
        })
        assert r.status_code == 200
        body = r.json()
        assert body["total"] == 298  # 260 + 37.5 rounds half up
        assert body["itemCount"] == 2

        order = client.get(f"/api/orders/{body['orderId']}").json()
        assert order["gcashNumber"] is None
        assert [(it["productId"], it["qty"], it["price"]) for it in order["items"]] == [
            (hoodie["id"], 2, 130),
            ("zine", 3, 12.5),
        ]

        r = client.post("/api/cart/checkout", json={"items": []})
        assert r.status_code == 422
        assert _count(sql_store, Order) == 1
    finally:
        app.dependency_overrides.clear()
