"""Pure functions for a receipt's line items.

This module contains the functional core for line item operations:
- No I/O operations (no database, no console, no files)
- No side effects: every function returns a new Receipt
- Line item amounts are always recomputed from unit price and quantity

All monetary amounts are Money values in minor units.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from reckon.domain import money
from reckon.domain.errors import CurrencyMismatch, InvalidLineItem, NotFound
from reckon.domain.models import Status
from reckon.domain.money import Money

if TYPE_CHECKING:
    from reckon.domain.receipts import Receipt

EDITABLE_STATUSES = frozenset({Status.PENDING, Status.NEEDS_REVIEW})


def validate_line_item(description: str, quantity: int, receipt_id: str | None = None) -> None:
    """Check the structural rules for a line item.

    Raises:
        InvalidLineItem: If the description is empty or quantity is not a positive integer.
    """
    if not isinstance(description, str) or not description.strip():
        raise InvalidLineItem("Line item description must not be empty", receipt_id, "description")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidLineItem(f"Line item quantity must be a positive integer, got {quantity!r}", receipt_id, "quantity")


@dataclass(frozen=True)
class LineItem:
    """Immutable line item. ``amount`` is derived, never stored."""

    description: str
    quantity: int
    unit_price: Money

    def __post_init__(self) -> None:
        validate_line_item(self.description, self.quantity)

    @property
    def amount(self) -> Money:
        return money.multiply(self.unit_price, self.quantity)


def make_line_item(description: str, quantity: int, unit_price: Money, amount: Money | None = None) -> LineItem:
    """Build a validated line item.

    Args:
        description: Item description (non-empty).
        quantity: Positive integer quantity.
        unit_price: Price of one unit.
        amount: Caller-supplied line amount. Ignored; the amount is always
            recomputed as unit_price * quantity.

    Returns:
        LineItem.

    Raises:
        InvalidLineItem: If description or quantity is invalid.
    """
    validate_line_item(description, quantity)
    return LineItem(description=description.strip(), quantity=quantity, unit_price=unit_price)


def subtotal(receipt: "Receipt") -> Money:
    """Sum of all line item amounts.

    Raises:
        CurrencyMismatch: If line items carry mixed currencies.
    """
    try:
        return money.sum_money((item.amount for item in receipt.line_items), receipt.currency)
    except CurrencyMismatch as e:
        raise CurrencyMismatch(e.message, receipt.id, "line_items") from e


def ensure_editable(receipt: "Receipt") -> None:
    """Raise unless the receipt is live and still open for edits."""
    if receipt.deleted_at is not None:
        raise NotFound("Receipt has been deleted", receipt.id)
    if receipt.status not in EDITABLE_STATUSES:
        raise InvalidLineItem(f"Line items cannot be changed once a receipt is {receipt.status}", receipt.id, "status")


def _check_item(receipt: "Receipt", item: LineItem) -> LineItem:
    validate_line_item(item.description, item.quantity, receipt.id)
    if item.unit_price.currency != receipt.currency:
        raise CurrencyMismatch(
            f"Line item is in {item.unit_price.currency} but receipt is in {receipt.currency}",
            receipt.id,
            "unit_price",
        )
    return item


def _check_index(receipt: "Receipt", index: int) -> None:
    if not 0 <= index < len(receipt.line_items):
        raise InvalidLineItem(f"No line item at position {index}", receipt.id, "index")


def add_line_item(receipt: "Receipt", item: LineItem) -> "Receipt":
    """Append a line item to a receipt.

    Returns:
        New Receipt with the item appended (entry order is preserved).
    """
    ensure_editable(receipt)
    checked = _check_item(receipt, item)
    return replace(receipt, line_items=(*receipt.line_items, checked))


def update_line_item(receipt: "Receipt", index: int, item: LineItem) -> "Receipt":
    """Replace the line item at ``index``, keeping its position."""
    ensure_editable(receipt)
    _check_index(receipt, index)
    checked = _check_item(receipt, item)
    items = list(receipt.line_items)
    items[index] = checked
    return replace(receipt, line_items=tuple(items))


def remove_line_item(receipt: "Receipt", index: int) -> "Receipt":
    """Remove the line item at ``index``.

    Removing the last item is allowed; the subtotal then becomes zero.
    """
    ensure_editable(receipt)
    _check_index(receipt, index)
    items = receipt.line_items[:index] + receipt.line_items[index + 1 :]
    return replace(receipt, line_items=items)
