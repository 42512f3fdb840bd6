# app/models.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    price = Column(Integer, nullable=False)
    campus = Column(String(32), index=True)
    category = Column(String(64), index=True)
    image_url = Column(String(512))
    created_at = Column(DateTime(timezone=True), default=_now, index=True)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=_new_id)
    campus = Column(String(32), nullable=False)
    pickup = Column(String(128), nullable=False)
    payment_method = Column(String(32), nullable=False)
    gcash_number = Column(String(32), nullable=True)
    total = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    # Price snapshot at checkout; product_id is not a foreign key because
    # unknown products are stored as "UNKNOWN" or the raw client identifier.
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(String(255), nullable=False)
    qty = Column(Float, nullable=False)
    price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
