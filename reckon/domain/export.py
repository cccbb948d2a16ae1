"""Pure functions for turning approval events into accounting export rows.

Replays are idempotent: events are keyed by receipt id, target status and
timestamp, and keys already exported are skipped.
"""

from collections.abc import Iterable, Mapping
from typing import TypedDict

from reckon.domain.models import ReceiptId, Status
from reckon.domain.money import to_decimal
from reckon.domain.receipts import Receipt, StatusEvent, total

EXPORT_COLUMNS = [
    "receipt_id",
    "receipt_number",
    "date",
    "vendor",
    "project",
    "category",
    "payment_method",
    "currency",
    "subtotal",
    "tax",
    "total",
    "approved_by",
    "approved_at",
]


class ExportRow(TypedDict):
    """One line of the accounting export."""

    receipt_id: str
    receipt_number: str
    date: str
    vendor: str
    project: str
    category: str
    payment_method: str
    currency: str
    subtotal: str
    tax: str
    total: str
    approved_by: str
    approved_at: str


def select_exportable(events: Iterable[StatusEvent], exported_keys: Iterable[str]) -> list[StatusEvent]:
    """Approval events that have not been exported yet, oldest first.

    Duplicate events in the input (same key) are collapsed.
    """
    seen = set(exported_keys)
    selected: list[StatusEvent] = []
    for event in sorted(events, key=lambda e: (e.timestamp, e.receipt_id)):
        if event.to_status != Status.APPROVED or event.key in seen:
            continue
        seen.add(event.key)
        selected.append(event)
    return selected


def build_export_row(event: StatusEvent, receipt: Receipt) -> ExportRow:
    """Build an export row from an approval event and the receipt it refers to."""
    return ExportRow(
        receipt_id=receipt.id,
        receipt_number=receipt.receipt_number or "",
        date=receipt.date.isoformat(),
        vendor=receipt.vendor,
        project=receipt.project,
        category=receipt.category,
        payment_method=str(receipt.payment_method),
        currency=receipt.currency,
        subtotal=str(to_decimal(receipt.subtotal)),
        tax=str(to_decimal(receipt.tax)),
        total=str(to_decimal(total(receipt))),
        approved_by=event.actor,
        approved_at=event.timestamp.isoformat(),
    )


def build_export_rows(
    events: Iterable[StatusEvent], receipts: Mapping[ReceiptId, Receipt]
) -> tuple[list[ExportRow], list[StatusEvent]]:
    """Build rows for events whose receipts are still approved.

    Args:
        events: Unexported approval events.
        receipts: Current receipts by id.

    Returns:
        Tuple of (rows, exported_events). Events for receipts that were
        reversed or deleted since approval are left out of both.
    """
    rows: list[ExportRow] = []
    exported: list[StatusEvent] = []
    for event in events:
        receipt = receipts.get(event.receipt_id)
        if receipt is None or receipt.deleted_at is not None or receipt.status != Status.APPROVED:
            continue
        rows.append(build_export_row(event, receipt))
        exported.append(event)
    return rows, exported
