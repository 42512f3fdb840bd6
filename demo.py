#!/usr/bin/env python
from rich import print

from sdk.thriftclient import ThriftClient


def main():
    c = ThriftClient(base_url="http://127.0.0.1:8000")

    # -----------------------------
    # Seed demo products
    # -----------------------------
    print("Seeding products...")
    print(c.seed())

    # -----------------------------
    # List products
    # -----------------------------
    print("\nListing ADMU products...")
    products = c.list_products(campus="ADMU")
    print(products)

    print("\nListing books under 150...")
    print(c.list_products(category="Books", price_max=150))

    # -----------------------------
    # Delivery estimate
    # -----------------------------
    print("\nEstimating delivery from Regis to Gate 2.5...")
    print(c.estimate("Regis", "Gate 2.5"))

    # -----------------------------
    # Checkout: one catalog item, one off-catalog item priced by the client
    # -----------------------------
    print("\nChecking out...")
    items = [
        {"productId": products[0]["id"], "qty": 2},
        {"name": "Borrowed lab gown", "quantity": 1, "price": 75},
    ]
    result = c.checkout(items, campus="ADMU", pickup="Gate 2.5", payment_method="gcash", gcash_number="09171234567")
    print(result)

    # -----------------------------
    # Empty cart is rejected
    # -----------------------------
    print("\nChecking out an empty cart...")
    print(c.checkout([]))

    # -----------------------------
    # Order details
    # -----------------------------
    print("\nFetching order...")
    print(c.get_order(result["orderId"]))


if __name__ == "__main__":
    main()
