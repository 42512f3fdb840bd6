# sdk/thriftclient.py
import requests
import httpx
from typing import Any, Dict, List, Optional


class ThriftClient:
    def __init__(self, base_url: str = "http://localhost:8000", timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout

    def health(self) -> str:
        r = self.session.get(f"{self.base_url}/", timeout=self.timeout)
        r.raise_for_status()
        return r.text

    def seed(self):
        r = self.session.get(f"{self.base_url}/api/seed", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Products
    def list_products(self, campus: Optional[str] = None, category: Optional[str] = None,
                      price_min: Optional[int] = None, price_max: Optional[int] = None):
        params: Dict[str, Any] = {}
        if campus:
            params["campus"] = campus
        if category:
            params["category"] = category
        if price_min is not None:
            params["priceMin"] = price_min
        if price_max is not None:
            params["priceMax"] = price_max
        r = self.session.get(f"{self.base_url}/api/products", params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Delivery estimate
    def estimate(self, origin: str, destination: str):
        r = self.session.get(f"{self.base_url}/api/estimate", params={"from": origin, "to": destination}, timeout=self.timeout)
        if r.status_code == 400:
            # unknown pickup point: hand back the error body
            return r.json()
        r.raise_for_status()
        return r.json()

    # Checkout
    def _checkout_payload(self, items: List[Dict[str, Any]], campus: Optional[str], pickup: Optional[str],
                          payment_method: Optional[str], gcash_number: Optional[str]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"items": items}
        if campus:
            payload["campus"] = campus
        if pickup:
            payload["pickup"] = pickup
        if payment_method:
            payload["paymentMethod"] = payment_method
        if gcash_number:
            payload["gcashNumber"] = gcash_number
        return payload

    def checkout(self, items: List[Dict[str, Any]], campus: Optional[str] = None, pickup: Optional[str] = None,
                 payment_method: Optional[str] = None, gcash_number: Optional[str] = None):
        payload = self._checkout_payload(items, campus, pickup, payment_method, gcash_number)
        r = self.session.post(f"{self.base_url}/api/cart/checkout", json=payload, timeout=self.timeout)
        # no raise_for_status: 422/500 bodies carry error details callers want to show
        return r.json()

    async def checkout_async(self, items: List[Dict[str, Any]], campus: Optional[str] = None, pickup: Optional[str] = None,
                             payment_method: Optional[str] = None, gcash_number: Optional[str] = None):
        payload = self._checkout_payload(items, campus, pickup, payment_method, gcash_number)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(f"{self.base_url}/api/cart/checkout", json=payload)
            return r.json()

    # Orders
    def get_order(self, order_id: str):
        r = self.session.get(f"{self.base_url}/api/orders/{order_id}", timeout=self.timeout)
        if r.status_code == 404:
            return None
        r.raise_for_status()
        return r.json()


if __name__ == "__main__":
    import argparse
    from rich import print_json

    parser = argparse.ArgumentParser(description="UniThrift CLI")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000", help="API base URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("seed", help="Seed demo products")

    lp = subparsers.add_parser("list-products", help="List products")
    lp.add_argument("--campus", help="Filter by campus (ADMU, UPD)")
    lp.add_argument("--category", help="Filter by category")
    lp.add_argument("--price-min", type=int, help="Minimum price")
    lp.add_argument("--price-max", type=int, help="Maximum price")

    es = subparsers.add_parser("estimate", help="Estimate delivery between pickup points")
    es.add_argument("--from", dest="origin", required=True, help="Origin pickup point")
    es.add_argument("--to", dest="destination", required=True, help="Destination pickup point")

    co = subparsers.add_parser("checkout", help="Check out a list of items")
    co.add_argument("--item", action="append", required=True, metavar="PRODUCT_ID[:QTY]",
                    help="Product id with optional quantity; repeat for more items")
    co.add_argument("--campus", help="Campus")
    co.add_argument("--pickup", help="Pickup point")
    co.add_argument("--payment-method", help="Payment method (default gcash)")
    co.add_argument("--gcash-number", help="GCash account number")

    go = subparsers.add_parser("get-order", help="Show an order")
    go.add_argument("--order-id", required=True)

    args = parser.parse_args()
    c = ThriftClient(base_url=args.base_url)

    if args.command == "seed":
        out = c.seed()
    elif args.command == "list-products":
        out = c.list_products(args.campus, args.category, args.price_min, args.price_max)
    elif args.command == "estimate":
        out = c.estimate(args.origin, args.destination)
    elif args.command == "checkout":
        items = []
        for entry in args.item:
            pid, _, qty = entry.partition(":")
            items.append({"productId": pid, "qty": int(qty) if qty else 1})
        out = c.checkout(items, args.campus, args.pickup, args.payment_method, args.gcash_number)
    elif args.command == "get-order":
        out = c.get_order(args.order_id)

    print_json(data=out)
