from pydantic import BaseModel
from typing import Optional, Dict, Any, List, Union

from .pricing import CartShape, NormalizedItem, normalize_cart, text_or_default

# Request/response schemas and checkout errors shared by the logic and routes.

DEFAULT_CAMPUS = "ADMU"
DEFAULT_PICKUP = "Gate 2.5"
DEFAULT_PAYMENT_METHOD = "gcash"


class CheckoutError(Exception):
    """A checkout the client has to fix; answered with 422."""
    error = "Checkout rejected"

    def __init__(self, received: Any = None, hint: Optional[str] = None):
        super().__init__(self.error)
        if isinstance(received, (bytes, bytearray)):
            # non-JSON bodies arrive raw and may not be valid UTF-8
            received = received.decode("utf-8", errors="replace")
        self.received = received
        self.hint = hint

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.hint:
            body["hint"] = self.hint
        body["received"] = self.received
        return body


class EmptyCartError(CheckoutError):
    error = "No items received"

    def __init__(self, received: Any = None):
        super().__init__(received, hint="Check Content-Type: application/json and request body shape")


class UnpricedOrderError(CheckoutError):
    error = "No items match the catalog"

    def __init__(self, received: Any = None):
        super().__init__(received, hint="Use product ids returned by /api/products")


class CheckoutRequest(BaseModel):
    campus: str = DEFAULT_CAMPUS
    pickup: str = DEFAULT_PICKUP
    payment_method: str = DEFAULT_PAYMENT_METHOD
    gcash_number: str = ""
    shape: CartShape = CartShape.NONE
    items: List[NormalizedItem] = []

    @classmethod
    def from_payload(cls, payload: Any) -> "CheckoutRequest":
        """Translate any accepted body shape into one canonical request."""
        shape, items = normalize_cart(payload)
        opts = payload if isinstance(payload, dict) else {}
        return cls(
            campus=text_or_default(opts.get("campus"), DEFAULT_CAMPUS),
            pickup=text_or_default(opts.get("pickup"), DEFAULT_PICKUP),
            payment_method=text_or_default(opts.get("paymentMethod"), DEFAULT_PAYMENT_METHOD),
            gcash_number=text_or_default(opts.get("gcashNumber"), ""),
            shape=shape,
            items=items,
        )


class CheckoutResult(BaseModel):
    orderId: str
    total: int
    paymentMethod: str
    pickup: str
    itemCount: int


class Estimate(BaseModel):
    meters: Union[int, float]
    minutes: int
    fee: int
    note: Optional[str] = None


def _make_product_dict(p: Dict[str, Any]) -> Dict[str, Any]:
    # seed rows only carry the writable fields
    return {
        "name": p["name"],
        "description": p.get("description", ""),
        "price": int(p["price"]),
        "campus": p.get("campus", DEFAULT_CAMPUS),
        "category": p.get("category", "General"),
        "imageUrl": p.get("imageUrl"),
    }
