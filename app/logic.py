import logging
from typing import Optional, Dict, Any, List

from .core import CheckoutRequest, CheckoutResult, EmptyCartError, UnpricedOrderError, _make_product_dict
from .database import Store
from .pricing import catalog_ids, catalog_price_map, gcash_number_for, order_total, plain_number, price_items

# This file contains the core logic behind the API endpoints.

logger = logging.getLogger(__name__)

DEMO_PRODUCTS: List[Dict[str, Any]] = [
    {
        "name": "GE Book: Ethics",
        "description": "Lightly used GE book. Minimal highlights. Perfect for Term 2.",
        "price": 120,
        "campus": "ADMU",
        "category": "Books",
        "imageUrl": "https://picsum.photos/seed/book/400/300",
    },
    {
        "name": "A4 Bond Paper (500s)",
        "description": "Brand new, sealed pack. Great for printing reports.",
        "price": 180,
        "campus": "ADMU",
        "category": "School Supplies",
        "imageUrl": "https://picsum.photos/seed/paper/400/300",
    },
    {
        "name": "Preloved Hoodie",
        "description": "Size M. Slight fading but very comfy. No holes.",
        "price": 130,
        "campus": "ADMU",
        "category": "Preloved",
        "imageUrl": "https://picsum.photos/seed/hood/400/300",
    },
    {
        "name": "Wired Earphones",
        "description": "Working condition. Good bass. Includes case.",
        "price": 150,
        "campus": "UPD",
        "category": "Gadgets",
        "imageUrl": "https://picsum.photos/seed/ear/400/300",
    },
    {
        "name": "Calculus Textbook",
        "description": "Complete with solution manual. Barely used.",
        "price": 200,
        "campus": "ADMU",
        "category": "Books",
        "imageUrl": "https://picsum.photos/seed/calc/400/300",
    },
    {
        "name": "Wireless Mouse",
        "description": "Logitech M170. Battery included. Works perfectly.",
        "price": 180,
        "campus": "UPD",
        "category": "Gadgets",
        "imageUrl": "https://picsum.photos/seed/mouse/400/300",
    },
]


# Seeding
def seed_logic(store: Store) -> Dict[str, Any]:
    count = store.count_products()
    if count > 0:
        return {"ok": True, "count": count, "message": "Products already seeded"}
    created = store.create_products(_make_product_dict(p) for p in DEMO_PRODUCTS)
    logger.info(f"Seeded {created} demo products")
    return {"ok": True, "message": "Products seeded successfully"}


# Products
def list_products_logic(
    store: Store,
    campus: Optional[str] = None,
    category: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    limit: int = 60,
) -> List[Dict[str, Any]]:
    return store.list_products(
        campus=campus or None,
        category=category or None,
        price_min=price_min,
        price_max=price_max,
        limit=limit,
    )


# Checkout
def checkout_logic(store: Store, payload: Any, reject_unpriced: bool = False) -> CheckoutResult:
    """
    Price a cart payload against the catalog and record the order.

    Raises EmptyCartError when no items could be read from the payload, and
    UnpricedOrderError when reject_unpriced is set and no item is in the catalog.
    Store failures propagate unchanged.
    """
    req = CheckoutRequest.from_payload(payload)
    if not req.items:
        raise EmptyCartError(received=payload)

    found = store.find_products_by_ids(catalog_ids(req.items))
    lines = price_items(req.items, catalog_price_map(found))

    if reject_unpriced and not any(line.matched for line in lines):
        raise UnpricedOrderError(received=payload)

    total = order_total(lines)
    order = store.create_order(
        {
            "campus": req.campus,
            "pickup": req.pickup,
            "paymentMethod": req.payment_method,
            "gcashNumber": gcash_number_for(req.payment_method, req.gcash_number),
            "total": total,
        },
        [
            {"productId": line.product_id, "qty": plain_number(line.qty), "price": plain_number(line.price)}
            for line in lines
        ],
    )
    logger.info(f"Order {order['id']} placed: {len(order['items'])} item(s), total {order['total']} ({req.shape.value} payload)")

    return CheckoutResult(
        orderId=order["id"],
        total=order["total"],
        paymentMethod=order["paymentMethod"],
        pickup=order["pickup"],
        itemCount=len(order["items"]),
    )


# Orders
def get_order_logic(store: Store, order_id: str) -> Optional[Dict[str, Any]]:
    return store.find_order(order_id)
