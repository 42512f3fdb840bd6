# tests/conftest.py
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import InMemoryStore
from app.main import app, get_settings, get_store


@pytest.fixture
def store():
    s = InMemoryStore()
    app.dependency_overrides[get_store] = lambda: s
    yield s
    app.dependency_overrides.clear()


@pytest.fixture
def client(store):
    return TestClient(app)


@pytest.fixture
def strict_settings():
    cfg = Settings(REJECT_UNPRICED_ORDERS=True)
    app.dependency_overrides[get_settings] = lambda: cfg
    return cfg


def add_product(store, pid, price, name="Item", campus="ADMU", category="Books", created_at=None):
    store.products[pid] = {
        "id": pid,
        "name": name,
        "description": "",
        "price": price,
        "campus": campus,
        "category": category,
        "imageUrl": None,
        "createdAt": created_at or datetime.now(timezone.utc),
    }
    return store.products[pid]
