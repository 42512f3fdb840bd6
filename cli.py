# cli.py
import os
import sys
from datetime import datetime
from typing import List, Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from app.geo import PICKUP_POINTS
from sdk.thriftclient import ThriftClient

console = Console()
c = ThriftClient(base_url=os.getenv("UNITHRIFT_API_URL", "http://127.0.0.1:8000"))

# Session state: status line, product cache and the cart being built
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []
cart: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def peso(amount: Any) -> str:
    return f"₱{float(amount or 0):,.2f}"


def show_products(products: List[Dict[str, Any]]):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title="📦 UniThrift Listings",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=12)
    table.add_column("Name", style="bold", width=24)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Campus", width=8)
    table.add_column("Category", width=16)
    table.add_column("Description", width=36)

    for p in products:
        table.add_row(
            (p.get("id") or "N/A")[:12],
            p.get("name", "N/A"),
            peso(p.get("price")),
            p.get("campus") or "-",
            p.get("category") or "-",
            p.get("description") or "",
        )
    console.print(table)


def _product_name(product_id: str) -> str:
    for p in product_cache:
        if p.get("id") == product_id:
            return p.get("name", product_id)
    return product_id


def show_cart():
    title = Text()
    title.append("🛒 Cart", style="bold")
    if not cart:
        console.print(Panel("Your cart is empty 🛍️", title=title, style="blue"))
        return

    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("Product", style="bold", width=30)
    table.add_column("Qty", justify="right", width=6)
    table.add_column("Price", justify="right", width=12)
    table.add_column("Subtotal", justify="right", width=12)

    total = 0
    for it in cart:
        line = it["price"] * it["qty"]
        total += line
        table.add_row(_product_name(it["productId"]), str(it["qty"]), peso(it["price"]), peso(line))

    title.append(f" - Estimated total: {peso(total)}", style="bold green")
    console.print(Panel(table, title=title, border_style="blue"))


def show_estimate(est: Dict[str, Any], origin: str, destination: str):
    if "error" in est:
        console.print(Panel.fit(f"[red]{est['error']}[/red]", title="❌ Estimate"))
        return
    body = (
        f"📏 Distance: [bold]{est.get('meters')} m[/bold]\n"
        f"⏱️ Walking time: [bold]{est.get('minutes')} min[/bold]\n"
        f"💸 Delivery fee: [bold green]{peso(est.get('fee'))}[/bold green]"
    )
    if est.get("note"):
        body += f"\n[dim]{est['note']}[/dim]"
    console.print(Panel.fit(body, title=f"🚶 {origin} → {destination}", border_style="green"))


def show_order(order: Dict[str, Any]):
    table = Table(
        title=f"📋 Order {order.get('id', 'N/A')}",
        box=box.ROUNDED,
        header_style="bold yellow",
        title_style="bold yellow",
        show_lines=True
    )
    table.add_column("Product", width=30)
    table.add_column("Qty", justify="right", width=6)
    table.add_column("Unit price", justify="right", width=12)

    for it in order.get("items", []):
        table.add_row(_product_name(it.get("productId", "?")), str(it.get("qty")), peso(it.get("price")))

    console.print(table)
    payment = order.get("paymentMethod", "N/A")
    if order.get("gcashNumber"):
        payment += f" ({order['gcashNumber']})"
    console.print(Panel.fit(
        f"Campus: [bold]{order.get('campus')}[/bold]\n"
        f"Pickup: [bold]{order.get('pickup')}[/bold]\n"
        f"Payment: [bold]{payment}[/bold]\n"
        f"Total: [bold green]{peso(order.get('total'))}[/bold green]",
        title="🧾 Summary"
    ))


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper with exception handling
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Returns the result, or None after printing the error.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        status_message = f"Error: {e}"
        console.print(show_status(f"Error: {e}", False))
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def get_product_completer():
    global product_cache
    if not product_cache:
        product_cache = try_api(c.list_products) or []
    ids = [p.get("id", "") for p in product_cache]
    return WordCompleter([i for i in ids if i], ignore_case=True)


def get_pickup_completer():
    return WordCompleter(list(PICKUP_POINTS.keys()), ignore_case=True, sentence=True)


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_optional_int(message: str) -> Optional[int]:
    while True:
        raw = Prompt.ask(message, default="")
        if not raw.strip():
            return None
        try:
            return int(raw)
        except ValueError:
            console.print("[red]Please enter a whole number.[/red]")


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🎒 UniThrift",
        "[bold blue]Campus Marketplace CLI[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Menu actions
# ---------------------------
def add_to_cart():
    pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer()).strip()
    if not pid:
        return
    qty = IntPrompt.ask("Quantity", default=1)
    known = next((p for p in product_cache if p.get("id") == pid), None)
    price = known["price"] if known else IntPrompt.ask("Price (not in catalog)", default=0)
    for it in cart:
        if it["productId"] == pid:
            it["qty"] += qty
            break
    else:
        cart.append({"productId": pid, "qty": qty, "price": price})
    show_cart()


def checkout():
    global cart
    if not cart:
        console.print("[italic yellow]Cart is empty, add items first[/italic yellow]")
        return
    campus = Prompt.ask("Campus", choices=["ADMU", "UPD"], default="ADMU")
    pickup = prompt_with_autocomplete("Pickup point", completer=get_pickup_completer(), default="Gate 2.5")
    method = Prompt.ask("Payment method", choices=["gcash", "cash"], default="gcash")
    gcash_number = Prompt.ask("GCash number") if method == "gcash" else None

    resp = try_api(c.checkout, cart, campus, pickup, method, gcash_number)
    if not resp:
        return
    if "orderId" in resp:
        console.print(Panel.fit(
            f"[green]Order placed![/green]\n"
            f"Order ID: [bold]{resp['orderId']}[/bold]\n"
            f"Items: [bold]{resp['itemCount']}[/bold]\n"
            f"Pickup: [bold]{resp['pickup']}[/bold]\n"
            f"Total: [bold]{peso(resp['total'])}[/bold] via {resp['paymentMethod']}",
            title="✅ Order Confirmation"
        ))
        cart = []
    else:
        console.print(Panel.fit(f"[red]Checkout failed:[/red] {resp}", title="❌ Checkout Failed"))


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message, product_cache, cart

    console.clear()
    console.print(create_header())

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "5", "🛒 View cart"),
            ("2", "🔍 Filter products", "6", "✅ Checkout"),
            ("3", "🌱 Seed demo data", "7", "🧾 View order"),
            ("4", "➕ Add to cart", "8", "🚶 Delivery estimate"),
            ("", "", "q", "👋 Quit")
        ]
        for row in options:
            menu_table.add_row(*row)

        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 9)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(c.list_products, success_msg="Products loaded")
            if products is not None:
                product_cache = products
                show_products(products)

        elif choice == "2":
            campus = Prompt.ask("Campus", choices=["", "ADMU", "UPD"], default="")
            category = Prompt.ask("Category", default="")
            price_min = ask_optional_int("Min price")
            price_max = ask_optional_int("Max price")
            products = try_api(c.list_products, campus or None, category or None, price_min, price_max,
                               success_msg="Filtered products loaded")
            if products is not None:
                show_products(products)

        elif choice == "3":
            resp = try_api(c.seed)
            if resp:
                console.print(show_status(resp.get("message", "Seeded"), bool(resp.get("ok"))))
                product_cache = try_api(c.list_products) or []

        elif choice == "4":
            add_to_cart()

        elif choice == "5":
            show_cart()
            if cart and Confirm.ask("Clear cart?", default=False):
                cart = []

        elif choice == "6":
            checkout()

        elif choice == "7":
            oid = prompt_with_autocomplete("Enter order ID").strip()
            order = try_api(c.get_order, oid)
            if order:
                show_order(order)
            else:
                console.print(f"[italic yellow]No order to show for {oid}[/italic yellow]")

        elif choice == "8":
            origin = prompt_with_autocomplete("From", completer=get_pickup_completer())
            destination = prompt_with_autocomplete("To", completer=get_pickup_completer())
            est = try_api(c.estimate, origin, destination)
            if est:
                show_estimate(est, origin, destination)

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Thanks for using UniThrift! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n\n[bold red]Unexpected error: {e}[/bold red]")
        sys.exit(1)
