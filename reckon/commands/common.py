"""Shared console helpers for CLI commands."""

import sqlite3
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.table import Table

from reckon.config import Settings
from reckon.dates import format_date
from reckon.domain.attachments import format_file_size, truncate
from reckon.domain.errors import ReceiptError
from reckon.domain.ledger import LineItem, make_line_item
from reckon.domain.models import Status
from reckon.domain.money import parse_amount, to_display_string
from reckon.domain.receipts import Receipt, total
from reckon.store.schema import database_exists, get_db_path

console = Console()

VENDOR_WIDTH = 30

# status -> (label, rich style)
STATUS_DISPLAY: dict[Status, tuple[str, str]] = {
    Status.APPROVED: ("Approved", "green"),
    Status.PENDING: ("Pending", "yellow"),
    Status.NEEDS_REVIEW: ("Needs Review", "red"),
    Status.REJECTED: ("Rejected", "dim red"),
}


def status_badge(status: Status) -> str:
    """Rich markup for a status label."""
    label, style = STATUS_DISPLAY.get(status, ("Unknown", "dim"))
    return f"[{style}]{label}[/{style}]"


def require_database() -> Path:
    """Return the database path, exiting if it has not been initialized."""
    db_path = get_db_path()
    if not database_exists(db_path):
        console.print("[red]Database not found. Run 'reckon init' first.[/red]", style="bold")
        sys.exit(1)
    return db_path


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print domain and database errors in red and exit with status 1."""
    try:
        yield
    except ReceiptError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]", style="bold")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Invalid input: {e}[/red]", style="bold")
        sys.exit(1)
    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)


def parse_item_spec(spec: str, currency: str) -> LineItem:
    """Parse "description:quantity:unit_price" into a line item.

    The description may itself contain colons; quantity and price are taken
    from the right.

    Raises:
        ValueError: If the text does not have three parts or numbers are malformed.
        InvalidLineItem: If description or quantity is invalid.
    """
    parts = spec.rsplit(":", 2)
    if len(parts) != 3:
        raise ValueError(f"Line item must look like 'description:quantity:price', got {spec!r}")
    description, raw_quantity, raw_price = parts
    try:
        quantity = int(raw_quantity.strip())
    except ValueError as e:
        raise ValueError(f"Quantity must be a whole number, got {raw_quantity!r}") from e
    return make_line_item(description, quantity, parse_amount(raw_price, currency))


def render_receipt_table(receipts: list[Receipt], title: str, settings: Settings) -> Table:
    """Build the receipt list table."""
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Vendor", style="white")
    table.add_column("Project")
    table.add_column("Category", style="magenta")
    table.add_column("Amount", justify="right")
    table.add_column("Status", justify="center")

    for receipt in receipts:
        table.add_row(
            receipt.id,
            receipt.date.isoformat(),
            truncate(receipt.vendor, VENDOR_WIDTH),
            receipt.project or "[dim]-[/dim]",
            receipt.category or "[dim]-[/dim]",
            to_display_string(total(receipt), settings.locale),
            status_badge(receipt.status),
        )

    return table


def render_receipt_detail(receipt: Receipt, settings: Settings) -> None:
    """Print one receipt with its line items, totals and history."""
    locale = settings.locale
    number = receipt.receipt_number or receipt.id

    console.print("─" * 80, style="dim")
    console.print(f"[bold]Receipt #{number}[/bold]  {status_badge(receipt.status)}")
    console.print(f"[dim]{format_date(receipt.date)}[/dim]\n")

    console.print(f"[bold]Vendor:[/bold] {receipt.vendor}")
    console.print(f"[bold]Project:[/bold] {receipt.project or '-'}")
    console.print(f"[bold]Category:[/bold] {receipt.category or '-'}")
    console.print(f"[bold]Payment Method:[/bold] {receipt.payment_method.value.title()}")
    if receipt.description:
        console.print(f"[bold]Description:[/bold] {receipt.description}")
    if receipt.attachment:
        attachment = Path(receipt.attachment).expanduser()
        size = f" [dim]({format_file_size(attachment.stat().st_size)})[/dim]" if attachment.is_file() else ""
        console.print(f"[bold]Attachment:[/bold] {receipt.attachment}{size}")
    console.print()

    items = Table(title="Line Items")
    items.add_column("#", justify="right", style="dim")
    items.add_column("Description")
    items.add_column("Qty", justify="right")
    items.add_column("Unit Price", justify="right")
    items.add_column("Amount", justify="right")
    for index, item in enumerate(receipt.line_items):
        items.add_row(
            str(index),
            item.description,
            str(item.quantity),
            to_display_string(item.unit_price, locale),
            to_display_string(item.amount, locale),
        )
    console.print(items)

    console.print(f"Subtotal: {to_display_string(receipt.subtotal, locale)}")
    console.print(f"Tax: {to_display_string(receipt.tax, locale)}")
    console.print(f"[bold]Total: {to_display_string(total(receipt), locale)}[/bold]\n")

    console.print("[cyan]History:[/cyan]")
    for change in receipt.status_history:
        console.print(f"  {change.timestamp:%Y-%m-%d %H:%M} {status_badge(change.status)} by {change.actor}")
    if receipt.exported_at:
        console.print(f"  [dim]Exported {receipt.exported_at:%Y-%m-%d %H:%M}[/dim]")
