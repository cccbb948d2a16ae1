"""Receipt entity and review status state machine.

This module contains the functional core for receipt lifecycle operations:
- No I/O operations (no database, no console, no files)
- No side effects: transitions return a new Receipt plus the emitted event
- Totals are always derived from line items, never stored

Timestamps and actor identity are passed in by the caller.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any

from reckon.domain import ledger, money
from reckon.domain.attachments import is_supported_attachment
from reckon.domain.errors import CurrencyMismatch, EmptyReceipt, InvalidTransition, NotFound, StaleState
from reckon.domain.ledger import LineItem
from reckon.domain.models import Actor, CurrencyCode, PaymentMethod, ReceiptId, Status
from reckon.domain.money import Money

DEFAULT_CORRECTION_WINDOW = timedelta(hours=72)

ALLOWED_TRANSITIONS: dict[Status, frozenset[Status]] = {
    Status.PENDING: frozenset({Status.NEEDS_REVIEW, Status.APPROVED, Status.REJECTED}),
    Status.NEEDS_REVIEW: frozenset({Status.APPROVED, Status.REJECTED}),
    Status.APPROVED: frozenset({Status.REJECTED}),
    Status.REJECTED: frozenset(),
}

# Fields that revise_details() may change
REVISABLE_FIELDS = frozenset(
    {"vendor", "date", "project", "category", "description", "payment_method", "tax", "receipt_number"}
)


@dataclass(frozen=True)
class StatusChange:
    """One entry in a receipt's status history."""

    status: Status
    timestamp: datetime
    actor: Actor


@dataclass(frozen=True)
class StatusEvent:
    """Domain event emitted by every successful status transition."""

    receipt_id: ReceiptId
    from_status: Status
    to_status: Status
    actor: Actor
    timestamp: datetime

    @property
    def key(self) -> str:
        """Replay key for idempotent consumers."""
        return f"{self.receipt_id}:{self.to_status}:{self.timestamp.isoformat()}"


@dataclass(frozen=True)
class Receipt:
    """Immutable receipt.

    ``version`` is owned by the store and used for optimistic concurrency.
    """

    id: ReceiptId
    vendor: str
    date: date
    currency: CurrencyCode
    tax: Money
    project: str = ""
    category: str = ""
    description: str = ""
    payment_method: PaymentMethod = PaymentMethod.OTHER
    line_items: tuple[LineItem, ...] = ()
    status: Status = Status.PENDING
    status_history: tuple[StatusChange, ...] = ()
    version: int = 0
    receipt_number: str | None = None
    attachment: str | None = None
    created_at: datetime | None = None
    deleted_at: datetime | None = None
    exported_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.tax.currency != self.currency:
            raise CurrencyMismatch(
                f"Tax is in {self.tax.currency} but receipt is in {self.currency}", self.id, "tax"
            )

    @property
    def subtotal(self) -> Money:
        return ledger.subtotal(self)

    @property
    def total(self) -> Money:
        return total(self)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a status transition. ``event`` is None for no-ops."""

    receipt: Receipt
    event: StatusEvent | None = None


@dataclass(frozen=True)
class ReceiptDraft:
    """Initial receipt data supplied by the upload/parse step."""

    vendor: str
    date: date
    tax: Money
    line_items: Sequence[LineItem] = field(default_factory=tuple)
    payment_method: PaymentMethod = PaymentMethod.OTHER
    project: str = ""
    category: str = ""
    description: str = ""
    receipt_number: str | None = None
    attachment: str | None = None


def total(receipt: Receipt) -> Money:
    """Receipt total: subtotal of line items plus tax."""
    return money.add(ledger.subtotal(receipt), receipt.tax)


def new_receipt(receipt_id: ReceiptId, draft: ReceiptDraft, actor: Actor, at: datetime) -> Receipt:
    """Create a pending receipt from an upload draft.

    Args:
        receipt_id: Identifier for the new receipt.
        draft: Data produced by the upload collaborator.
        actor: Who uploaded the receipt.
        at: Creation time.

    Returns:
        Receipt in Pending status with one history entry.

    Raises:
        ValueError: If the attachment is not an image or PDF.
        InvalidLineItem: If any line item is invalid.
        CurrencyMismatch: If line items are not in the tax currency.
    """
    _require_actor(actor, receipt_id)
    if draft.attachment is not None and not is_supported_attachment(draft.attachment):
        raise ValueError(f"Unsupported attachment type: {draft.attachment}")

    receipt = Receipt(
        id=receipt_id,
        vendor=draft.vendor.strip(),
        date=draft.date,
        currency=draft.tax.currency,
        tax=draft.tax,
        project=draft.project.strip(),
        category=draft.category.strip(),
        description=draft.description.strip(),
        payment_method=draft.payment_method,
        status=Status.PENDING,
        status_history=(StatusChange(Status.PENDING, at, actor),),
        receipt_number=draft.receipt_number,
        attachment=draft.attachment,
        created_at=at,
    )
    for item in draft.line_items:
        receipt = ledger.add_line_item(receipt, item)
    return receipt


def _require_actor(actor: str, receipt_id: str | None) -> None:
    if not isinstance(actor, str) or not actor.strip():
        raise InvalidTransition("An actor is required for receipt changes", receipt_id, "actor")


def approved_at(receipt: Receipt) -> datetime | None:
    """Timestamp of the most recent approval, if any."""
    for change in reversed(receipt.status_history):
        if change.status == Status.APPROVED:
            return change.timestamp
    return None


def was_ever_approved(receipt: Receipt) -> bool:
    return approved_at(receipt) is not None


def can_transition(from_status: Status, to_status: Status) -> bool:
    """Whether the state machine lists ``from_status -> to_status`` at all."""
    return to_status in ALLOWED_TRANSITIONS[from_status]


def transition_status(
    receipt: Receipt,
    to_status: Status,
    actor: Actor,
    at: datetime,
    expected_status: Status | None = None,
    correction_window: timedelta = DEFAULT_CORRECTION_WINDOW,
) -> TransitionResult:
    """Move a receipt to a new status.

    Args:
        receipt: Current receipt.
        to_status: Target status.
        actor: Who performs the change.
        at: When the change happens.
        expected_status: Status the caller believes is current. Checked first.
        correction_window: How long after approval a reversal to Rejected is allowed.

    Returns:
        TransitionResult with the new receipt and emitted event. Transitioning
        into the current status returns the receipt unchanged and no event.

    Raises:
        NotFound: If the receipt has been deleted.
        StaleState: If expected_status does not match the current status.
        InvalidTransition: If the transition is not allowed.
        EmptyReceipt: If approving a receipt with no line items.
    """
    if receipt.deleted_at is not None:
        raise NotFound("Receipt has been deleted", receipt.id)
    _require_actor(actor, receipt.id)

    if expected_status is not None and expected_status != receipt.status:
        raise StaleState(
            f"Expected status {expected_status} but receipt is {receipt.status}", receipt.id, "status"
        )

    if to_status == receipt.status:
        return TransitionResult(receipt=receipt, event=None)

    if not can_transition(receipt.status, to_status):
        raise InvalidTransition(f"Cannot move from {receipt.status} to {to_status}", receipt.id, "status")

    if receipt.status == Status.APPROVED:
        if receipt.exported_at is not None:
            raise InvalidTransition("Exported receipts cannot be reversed", receipt.id, "status")
        approval_time = approved_at(receipt)
        if approval_time is None or at - approval_time > correction_window:
            raise InvalidTransition("Correction window for this approval has closed", receipt.id, "status")

    if to_status == Status.APPROVED and not receipt.line_items:
        raise EmptyReceipt("Cannot approve a receipt with no line items", receipt.id, "line_items")

    updated = replace(
        receipt,
        status=to_status,
        status_history=(*receipt.status_history, StatusChange(to_status, at, actor)),
    )
    event = StatusEvent(
        receipt_id=receipt.id,
        from_status=receipt.status,
        to_status=to_status,
        actor=actor,
        timestamp=at,
    )
    return TransitionResult(receipt=updated, event=event)


def review_flags(receipt: Receipt, today: date | None = None) -> list[str]:
    """Find missing or inconsistent data that needs a reviewer's attention.

    Args:
        receipt: Receipt to check.
        today: Reference date for the future-date check. Skipped if None.

    Returns:
        List of human-readable problems (empty if the receipt looks fine).
    """
    flags: list[str] = []

    if not receipt.vendor:
        flags.append("Vendor is missing")
    if not receipt.category:
        flags.append("Category is missing")
    if today is not None and receipt.date > today:
        flags.append("Receipt date is in the future")
    if not receipt.line_items:
        flags.append("Receipt has no line items")

    try:
        receipt_total = total(receipt)
    except CurrencyMismatch:
        flags.append("Line items use mixed currencies")
    else:
        if receipt.line_items and receipt_total.minor_units <= 0:
            flags.append("Total must be positive")

    return flags


def flag_for_review(receipt: Receipt, actor: Actor, at: datetime) -> TransitionResult:
    """Move a pending receipt to NeedsReview if automated checks find problems.

    Receipts that are not pending, or have no flags, are returned unchanged.
    """
    if receipt.status != Status.PENDING or not review_flags(receipt, at.date()):
        return TransitionResult(receipt=receipt, event=None)
    return transition_status(receipt, Status.NEEDS_REVIEW, actor, at)


def revise_details(receipt: Receipt, **changes: Any) -> Receipt:
    """Change descriptive fields (vendor, date, category, tax, ...).

    Raises:
        ValueError: If an unknown or read-only field is given.
        NotFound: If the receipt has been deleted.
        InvalidLineItem: If the receipt is no longer editable.
        CurrencyMismatch: If the new tax is in another currency.
    """
    unknown = set(changes) - REVISABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot revise fields: {', '.join(sorted(unknown))}")

    ledger.ensure_editable(receipt)

    for name in ("vendor", "project", "category", "description"):
        if name in changes and isinstance(changes[name], str):
            changes[name] = changes[name].strip()

    return replace(receipt, **changes)


def requires_tombstone(receipt: Receipt) -> bool:
    """Receipts that were ever approved or exported keep an audit trail."""
    return receipt.exported_at is not None or was_ever_approved(receipt)


def tombstone(receipt: Receipt, at: datetime) -> Receipt:
    """Soft-delete a receipt, keeping its history."""
    if receipt.deleted_at is not None:
        return receipt
    return replace(receipt, deleted_at=at)


def mark_exported(receipt: Receipt, at: datetime) -> Receipt:
    """Record that the receipt was synced to the accounting system."""
    return replace(receipt, exported_at=at)
