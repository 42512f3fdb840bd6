"""
Persistence layer for products and orders.

Two interchangeable stores share the same interface:

- SqlStore: SQLAlchemy over DATABASE_URL (SQLite by default)
- InMemoryStore: plain dicts, for tests and demos

Both return API-shaped dicts (camelCase keys) so route handlers never see ORM
objects. A store is created once, opened at startup and closed at shutdown.
"""
import copy
import itertools
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base, Order, OrderItem, Product
from .pricing import plain_number

logger = logging.getLogger(__name__)


def _product_dict(p: Product) -> Dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "price": p.price,
        "campus": p.campus,
        "category": p.category,
        "imageUrl": p.image_url,
        "createdAt": p.created_at,
    }


def _order_dict(o: Order) -> Dict[str, Any]:
    return {
        "id": o.id,
        "campus": o.campus,
        "pickup": o.pickup,
        "paymentMethod": o.payment_method,
        "gcashNumber": o.gcash_number,
        "total": o.total,
        "createdAt": o.created_at,
        "items": [
            {
                "id": it.id,
                "orderId": it.order_id,
                "productId": it.product_id,
                "qty": plain_number(it.qty),
                "price": plain_number(it.price),
            }
            for it in o.items
        ],
    }


class Store:
    """Interface shared by every store implementation."""

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def count_products(self) -> int:
        raise NotImplementedError

    def create_products(self, rows: Iterable[Dict[str, Any]]) -> int:
        raise NotImplementedError

    def find_products_by_ids(self, ids: Iterable[str]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def list_products(
        self,
        campus: Optional[str] = None,
        category: Optional[str] = None,
        price_min: Optional[float] = None,
        price_max: Optional[float] = None,
        limit: int = 60,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def create_order(self, order: Dict[str, Any], items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Persist an order together with its items, all or nothing."""
        raise NotImplementedError

    def find_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


# ---------------------------
# SQLAlchemy store
# ---------------------------
class SqlStore(Store):
    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = None
        self._session_factory = None

    def open(self) -> None:
        kwargs: Dict[str, Any] = {"pool_pre_ping": True}
        if self.database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                # one shared connection, otherwise every session sees an empty db
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(self.database_url, **kwargs)
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        logger.info(f"Database ready at {self.engine.url.render_as_string(hide_password=True)}")

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database connections closed")
        self.engine = None
        self._session_factory = None

    def _session(self):
        if self._session_factory is None:
            raise RuntimeError("SqlStore is not open")
        return self._session_factory()

    def count_products(self) -> int:
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(Product)) or 0

    def create_products(self, rows: Iterable[Dict[str, Any]]) -> int:
        products = [
            Product(
                id=uuid.uuid4().hex,
                name=r["name"],
                description=r.get("description", ""),
                price=r["price"],
                campus=r.get("campus"),
                category=r.get("category"),
                image_url=r.get("imageUrl"),
                created_at=datetime.now(timezone.utc),
            )
            for r in rows
        ]
        with self._session() as session, session.begin():
            session.add_all(products)
        return len(products)

    def find_products_by_ids(self, ids: Iterable[str]) -> List[Dict[str, Any]]:
        wanted = list(set(ids))
        if not wanted:
            return []
        with self._session() as session:
            rows = session.scalars(select(Product).where(Product.id.in_(wanted))).all()
            return [_product_dict(p) for p in rows]

    def list_products(self, campus=None, category=None, price_min=None, price_max=None, limit=60):
        stmt = select(Product)
        if campus:
            stmt = stmt.where(Product.campus == campus)
        if category:
            stmt = stmt.where(Product.category == category)
        if price_min is not None:
            stmt = stmt.where(Product.price >= price_min)
        if price_max is not None:
            stmt = stmt.where(Product.price <= price_max)
        stmt = stmt.order_by(Product.created_at.desc()).limit(limit)
        with self._session() as session:
            return [_product_dict(p) for p in session.scalars(stmt).all()]

    def create_order(self, order, items):
        row = Order(
            id=uuid.uuid4().hex,
            campus=order["campus"],
            pickup=order["pickup"],
            payment_method=order["paymentMethod"],
            gcash_number=order.get("gcashNumber"),
            total=order["total"],
            created_at=datetime.now(timezone.utc),
            items=[
                OrderItem(product_id=it["productId"], qty=it["qty"], price=it["price"])
                for it in items
            ],
        )
        # session.begin() commits on success and rolls back on any exception
        with self._session() as session, session.begin():
            session.add(row)
            session.flush()
            return _order_dict(row)

    def find_order(self, order_id):
        with self._session() as session:
            row = session.get(Order, order_id)
            if row is None:
                return None
            return _order_dict(row)


# ---------------------------
# In-memory store
# ---------------------------
class InMemoryStore(Store):
    def __init__(self):
        self.products: Dict[str, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self._item_ids = itertools.count(1)

    def close(self) -> None:
        self.products.clear()
        self.orders.clear()

    def count_products(self) -> int:
        return len(self.products)

    def create_products(self, rows):
        created = {}
        for r in rows:
            pid = uuid.uuid4().hex
            created[pid] = {
                "id": pid,
                "name": r["name"],
                "description": r.get("description", ""),
                "price": r["price"],
                "campus": r.get("campus"),
                "category": r.get("category"),
                "imageUrl": r.get("imageUrl"),
                "createdAt": datetime.now(timezone.utc),
            }
        self.products.update(created)
        return len(created)

    def find_products_by_ids(self, ids):
        return [copy.deepcopy(self.products[i]) for i in set(ids) if i in self.products]

    def list_products(self, campus=None, category=None, price_min=None, price_max=None, limit=60):
        out = []
        for p in self.products.values():
            if campus and p["campus"] != campus:
                continue
            if category and p["category"] != category:
                continue
            if price_min is not None and p["price"] < price_min:
                continue
            if price_max is not None and p["price"] > price_max:
                continue
            out.append(copy.deepcopy(p))
        out.sort(key=lambda p: p["createdAt"], reverse=True)
        return out[:limit]

    def create_order(self, order, items):
        oid = uuid.uuid4().hex
        record = {
            "id": oid,
            "campus": order["campus"],
            "pickup": order["pickup"],
            "paymentMethod": order["paymentMethod"],
            "gcashNumber": order.get("gcashNumber"),
            "total": order["total"],
            "createdAt": datetime.now(timezone.utc),
            "items": [
                {
                    "id": next(self._item_ids),
                    "orderId": oid,
                    "productId": it["productId"],
                    "qty": it["qty"],
                    "price": it["price"],
                }
                for it in items
            ],
        }
        # record is fully built before it becomes visible
        self.orders[oid] = record
        return copy.deepcopy(record)

    def find_order(self, order_id):
        o = self.orders.get(order_id)
        return copy.deepcopy(o) if o else None
