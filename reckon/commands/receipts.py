"""Receipt management commands (add, show, list, edit, delete)."""

from reckon import api
from reckon.commands.common import (
    console,
    handle_errors,
    parse_item_spec,
    render_receipt_detail,
    render_receipt_table,
    require_database,
)
from reckon.config import load_settings
from reckon.dates import parse_date
from reckon.domain.models import Actor, PaymentMethod, Status
from reckon.domain.money import parse_amount, to_display_string
from reckon.domain.query import Page, ReceiptFilter, SortOrder
from reckon.domain.receipts import ReceiptDraft, total


def add_command(
    vendor: str,
    date: str,
    items: list[str],
    tax: str,
    actor: str,
    currency: str | None = None,
    payment_method: str = "other",
    project: str = "",
    category: str = "",
    description: str = "",
    receipt_number: str | None = None,
    attachment: str | None = None,
) -> None:
    """Add a receipt manually.

    Args:
        vendor: Vendor name.
        date: Receipt date (YYYY-MM-DD, DD/MM/YYYY, or other formats).
        items: Line items as "description:quantity:unit_price".
        tax: Tax amount in major units (e.g., "15.12").
        actor: Who is adding the receipt.
        currency: Currency code. If None, uses the configured currency.
        payment_method: cash, credit, debit, transfer or other.
        project: Project the expense belongs to.
        category: Expense category.
        description: Free-text description.
        receipt_number: Vendor's receipt/invoice number.
        attachment: Filename of the scanned receipt.
    """
    db_path = require_database()
    settings = load_settings()
    currency = (currency or settings.currency).upper()

    with handle_errors():
        draft = ReceiptDraft(
            vendor=vendor,
            date=parse_date(date),
            tax=parse_amount(tax, currency),
            line_items=[parse_item_spec(spec, currency) for spec in items],
            payment_method=PaymentMethod(payment_method.lower()),
            project=project,
            category=category,
            description=description,
            receipt_number=receipt_number,
            attachment=attachment,
        )
        receipt = api.create_receipt(draft, Actor(actor), db_path)

    console.print("[green]✓[/green] Receipt added:")
    console.print(f"  ID: {receipt.id}")
    console.print(f"  Vendor: {receipt.vendor}")
    console.print(f"  Date: {receipt.date.isoformat()}")
    console.print(f"  Line items: {len(receipt.line_items)}")
    console.print(f"  Total: {to_display_string(total(receipt), settings.locale)}")
    console.print("[dim]Receipt is pending review (use 'reckon approve' or 'reckon check')[/dim]")


def show_command(receipt_id: str) -> None:
    """Show one receipt in detail."""
    db_path = require_database()
    settings = load_settings()

    with handle_errors():
        receipt = api.get_receipt(receipt_id, db_path)

    render_receipt_detail(receipt, settings)


def list_command(
    status: str | None = None,
    vendor: str | None = None,
    category: str | None = None,
    since: str | None = None,
    until: str | None = None,
    sort: str = "newest",
    offset: int = 0,
    limit: int | None = None,
    include_deleted: bool = False,
) -> None:
    """List receipts with filters, sorting and paging."""
    db_path = require_database()
    settings = load_settings()

    with handle_errors():
        receipt_filter = ReceiptFilter(
            status=Status(status) if status and status != "all" else None,
            vendor_contains=vendor,
            date_from=parse_date(since) if since else None,
            date_to=parse_date(until) if until else None,
            category=category,
            include_deleted=include_deleted,
        )
        page = Page(offset=offset, limit=limit or settings.default_page_limit)
        result = api.list_receipts(receipt_filter, SortOrder(sort), page, db_path, settings)

    if not result.items:
        console.print("[yellow]No receipts found[/yellow]")
        return

    first = result.offset + 1
    last = result.offset + len(result.items)
    title = f"Receipts ({first}-{last} of {result.total_count})"
    console.print(render_receipt_table(result.items, title, settings))

    if result.has_more:
        console.print(f"[dim]More receipts available (use --offset {last})[/dim]")


def item_add_command(receipt_id: str, spec: str) -> None:
    """Append a line item to a receipt."""
    db_path = require_database()
    settings = load_settings()

    with handle_errors():
        current = api.get_receipt(receipt_id, db_path)
        receipt = api.add_line_item(receipt_id, parse_item_spec(spec, current.currency), db_path)

    console.print(f"[green]✓[/green] Added line item #{len(receipt.line_items) - 1}")
    console.print(f"  New total: {to_display_string(total(receipt), settings.locale)}")


def item_update_command(receipt_id: str, index: int, spec: str) -> None:
    """Replace a line item on a receipt."""
    db_path = require_database()
    settings = load_settings()

    with handle_errors():
        current = api.get_receipt(receipt_id, db_path)
        receipt = api.update_line_item(receipt_id, index, parse_item_spec(spec, current.currency), db_path)

    console.print(f"[green]✓[/green] Updated line item #{index}")
    console.print(f"  New total: {to_display_string(total(receipt), settings.locale)}")


def item_remove_command(receipt_id: str, index: int) -> None:
    """Remove a line item from a receipt."""
    db_path = require_database()
    settings = load_settings()

    with handle_errors():
        receipt = api.remove_line_item(receipt_id, index, db_path)

    console.print(f"[green]✓[/green] Removed line item #{index}")
    console.print(f"  New total: {to_display_string(total(receipt), settings.locale)}")
    if not receipt.line_items:
        console.print("[yellow]Receipt has no line items and cannot be approved until one is added[/yellow]")


def edit_command(
    receipt_id: str,
    vendor: str | None = None,
    date: str | None = None,
    project: str | None = None,
    category: str | None = None,
    description: str | None = None,
    payment_method: str | None = None,
    tax: str | None = None,
) -> None:
    """Change descriptive fields of a receipt."""
    db_path = require_database()

    with handle_errors():
        current = api.get_receipt(receipt_id, db_path)
        changes: dict[str, object] = {}
        if vendor is not None:
            changes["vendor"] = vendor
        if date is not None:
            changes["date"] = parse_date(date)
        if project is not None:
            changes["project"] = project
        if category is not None:
            changes["category"] = category
        if description is not None:
            changes["description"] = description
        if payment_method is not None:
            changes["payment_method"] = PaymentMethod(payment_method.lower())
        if tax is not None:
            changes["tax"] = parse_amount(tax, current.currency)

        if not changes:
            console.print("[yellow]Nothing to change[/yellow]")
            return

        api.update_details(receipt_id, db_path, **changes)

    console.print(f"[green]✓[/green] Updated {', '.join(sorted(changes))} on receipt {receipt_id}")


def delete_command(receipt_id: str, actor: str) -> None:
    """Delete a receipt (tombstoned if it was ever approved)."""
    db_path = require_database()

    with handle_errors():
        tombstoned = api.delete_receipt(receipt_id, Actor(actor), db_path)

    if tombstoned:
        console.print(f"[green]✓[/green] Receipt {receipt_id} archived (kept for audit history)")
    else:
        console.print(f"[green]✓[/green] Receipt {receipt_id} deleted")
