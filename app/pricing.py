"""
Cart normalization and order pricing.

Everything here is pure: no I/O and no framework imports. The checkout handler
detects the payload shape once, normalizes each raw entry, and prices the
normalized items against the catalog prices it looked up.
"""
import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel

UNKNOWN_PRODUCT_ID = "UNKNOWN"


class CartShape(str, Enum):
    BARE_LIST = "list"
    ITEMS = "items"
    CART = "cart"
    NONE = "none"


class NormalizedItem(BaseModel):
    product_id: str = ""
    qty: float = 1
    price_snap: float = 0


class PricedLine(BaseModel):
    product_id: str
    qty: float
    price: float
    matched: bool


# ---------------------------
# Coercion helpers
# ---------------------------
def to_number(value: Any) -> float:
    """
    Convert a JSON value to a float, or NaN when it is not numeric.

    Booleans count as 0/1, numeric strings are parsed and a blank string is 0.
    Integers too large for a float become infinite.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def plain_number(value: float):
    """2.0 -> 2, 2.5 stays 2.5"""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _identifier_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _first_truthy(record: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        v = record.get(k)
        if v:
            return v
    return None


def _first_present(record: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        v = record.get(k)
        if v is not None:
            return v
    return None


def text_or_default(value: Any, default: str) -> str:
    """Falsy values (missing, null, "", 0, false) take the default."""
    if not value:
        return default
    return _identifier_text(value)


# ---------------------------
# Payload shape + normalization
# ---------------------------
def detect_cart_shape(payload: Any) -> Tuple[CartShape, List[Any]]:
    """Return which accepted shape the payload has and its raw item list."""
    if isinstance(payload, list):
        return CartShape.BARE_LIST, payload
    if isinstance(payload, dict):
        if isinstance(payload.get("items"), list):
            return CartShape.ITEMS, payload["items"]
        if isinstance(payload.get("cart"), list):
            return CartShape.CART, payload["cart"]
    return CartShape.NONE, []


def normalize_item(raw: Any) -> NormalizedItem:
    """
    Map one untrusted cart entry to a NormalizedItem.

    identifier: first truthy of productId, id, name; stringified and trimmed
    quantity:   first non-null of qty, quantity; 1 unless finite and > 0
    price:      price as a number; 0 unless finite
    """
    record = raw if isinstance(raw, dict) else {}

    ident = _first_truthy(record, "productId", "id", "name")
    product_id = _identifier_text(ident).strip() if ident is not None else ""

    raw_qty = _first_present(record, "qty", "quantity")
    qty = to_number(raw_qty) if raw_qty is not None else 1.0
    if not (math.isfinite(qty) and qty > 0):
        qty = 1.0

    raw_price = record.get("price")
    price = to_number(raw_price) if raw_price is not None else 0.0
    if not math.isfinite(price):
        price = 0.0

    return NormalizedItem(product_id=product_id, qty=qty, price_snap=price)


def normalize_cart(payload: Any) -> Tuple[CartShape, List[NormalizedItem]]:
    shape, raw_items = detect_cart_shape(payload)
    return shape, [normalize_item(i) for i in raw_items]


# ---------------------------
# Pricing
# ---------------------------
def catalog_ids(items: List[NormalizedItem]) -> List[str]:
    return [i.product_id for i in items if i.product_id]


def resolve_unit_price(item: NormalizedItem, catalog_prices: Mapping[str, Any]) -> float:
    db_price = catalog_prices.get(item.product_id) if item.product_id else None
    if is_finite_number(db_price):
        return float(db_price)
    if is_finite_number(item.price_snap):
        return float(item.price_snap)
    return 0.0


def effective_qty(item: NormalizedItem) -> float:
    if is_finite_number(item.qty) and item.qty > 0:
        return float(item.qty)
    return 1.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def price_items(items: List[NormalizedItem], catalog_prices: Mapping[str, Any]) -> List[PricedLine]:
    lines = []
    for item in items:
        matched = bool(item.product_id) and is_finite_number(catalog_prices.get(item.product_id))
        lines.append(PricedLine(
            product_id=item.product_id or UNKNOWN_PRODUCT_ID,
            qty=effective_qty(item),
            price=resolve_unit_price(item, catalog_prices),
            matched=matched,
        ))
    return lines


def order_total(lines: List[PricedLine]) -> int:
    total = sum(line.price * line.qty for line in lines)
    return max(0, round_half_up(total))


def catalog_price_map(products: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {p["id"]: p.get("price") for p in products}


def gcash_number_for(payment_method: str, gcash_number: str) -> Optional[str]:
    # Only GCash payments carry an account number
    return gcash_number if payment_method == "gcash" else None
