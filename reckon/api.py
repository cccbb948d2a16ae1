"""Programmatic API for receipts.

Each function loads the current receipt from the store, applies a pure domain
operation, and saves the result with an optimistic version check. The actor is
always passed in explicitly by the caller.
"""

import uuid
from collections.abc import Callable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from reckon.config import Settings, load_settings
from reckon.dates import month_of
from reckon.domain import ledger, receipts
from reckon.domain.errors import NotFound, ReceiptError
from reckon.domain.export import EXPORT_COLUMNS, build_export_rows, select_exportable
from reckon.domain.ledger import LineItem
from reckon.domain.models import Actor, Month, ReceiptId, Status
from reckon.domain.query import Page, QueryResult, ReceiptFilter, SortOrder, query
from reckon.domain.receipts import Receipt, ReceiptDraft, TransitionResult
from reckon.domain.report import DashboardStats, compute_stats
from reckon.logging_setup import get_logger
from reckon.store import queries

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


def new_receipt_id() -> ReceiptId:
    """Generate an opaque receipt id."""
    return ReceiptId(f"rcpt_{uuid.uuid4().hex[:12]}")


def create_receipt(
    draft: ReceiptDraft,
    actor: Actor,
    db_path: Path | None = None,
    receipt_id: ReceiptId | None = None,
    at: datetime | None = None,
) -> Receipt:
    """Create a pending receipt from an upload draft.

    Args:
        draft: Vendor, date, line items, tax and payment method from the upload step.
        actor: Who uploaded the receipt.
        db_path: Path to the database file. If None, uses default location.
        receipt_id: Id to use. If None, a new one is generated.
        at: Creation time. If None, uses the current time.

    Returns:
        The stored receipt.

    Raises:
        ReceiptError: If the draft fails validation.
        ValueError: If the attachment is not an image or PDF.
        sqlite3.Error: If database operation fails.
    """
    receipt = receipts.new_receipt(receipt_id or new_receipt_id(), draft, actor, at or _now())
    stored = queries.save_receipt(receipt, expected_version=None, db_path=db_path)
    logger.info("Created receipt %s for %s by %s", stored.id, stored.vendor, actor)
    return stored


def get_receipt(receipt_id: str, db_path: Path | None = None) -> Receipt:
    """Get a live receipt by id.

    Raises:
        NotFound: If the receipt does not exist or has been deleted.
    """
    receipt = queries.fetch_receipt(receipt_id, db_path)
    if receipt.deleted_at is not None:
        raise NotFound("Receipt has been deleted", receipt_id)
    return receipt


def list_receipts(
    receipt_filter: ReceiptFilter | None = None,
    order: SortOrder = SortOrder.NEWEST,
    page: Page | None = None,
    db_path: Path | None = None,
    settings: Settings | None = None,
) -> QueryResult:
    """List receipts matching a filter, sorted and paginated.

    Args:
        receipt_filter: Constraints to apply. None matches every live receipt.
        order: Sort order.
        page: Offset/limit. None uses the configured default page size.
        db_path: Path to the database file. If None, uses default location.
        settings: Ledger settings. If None, loads them from the config file.

    Returns:
        QueryResult with the requested page and total matching count.

    Raises:
        InvalidPage: If the page is out of range.
    """
    settings = settings or load_settings()
    receipt_filter = receipt_filter or ReceiptFilter()
    page = page or Page(limit=settings.default_page_limit)

    collection = queries.fetch_all_receipts(db_path, include_deleted=receipt_filter.include_deleted)
    result = query(collection, receipt_filter, order, page, max_limit=settings.max_page_limit)
    logger.debug("Query %s %s %s matched %d receipts", receipt_filter, order, page, result.total_count)
    return result


def _apply(
    receipt_id: str,
    operation: Callable[[Receipt], Receipt | TransitionResult],
    db_path: Path | None,
    description: str,
) -> TransitionResult:
    """Load, transform and save one receipt. Failures leave the store unchanged."""
    current = get_receipt(receipt_id, db_path)
    try:
        outcome = operation(current)
    except ReceiptError as e:
        logger.warning("Rejected %s on receipt %s: %s", description, receipt_id, e)
        raise

    result = outcome if isinstance(outcome, TransitionResult) else TransitionResult(receipt=outcome)
    if result.receipt == current:
        return TransitionResult(receipt=current, event=None)

    stored = queries.save_receipt(result.receipt, expected_version=current.version, event=result.event, db_path=db_path)
    return TransitionResult(receipt=stored, event=result.event)


def transition_status(
    receipt_id: str,
    to_status: Status,
    actor: Actor,
    expected_status: Status | None = None,
    db_path: Path | None = None,
    settings: Settings | None = None,
    at: datetime | None = None,
) -> TransitionResult:
    """Move a receipt to a new review status.

    Args:
        receipt_id: Receipt ID.
        to_status: Target status.
        actor: Who performs the change.
        expected_status: Status the caller last saw; StaleState if it has changed.
        db_path: Path to the database file. If None, uses default location.
        settings: Ledger settings (correction window). If None, loads them.
        at: Time of the change. If None, uses the current time.

    Returns:
        TransitionResult with the stored receipt and emitted event (None for no-ops).

    Raises:
        InvalidTransition, EmptyReceipt, StaleState, NotFound.
    """
    settings = settings or load_settings()
    when = at or _now()

    result = _apply(
        receipt_id,
        lambda r: receipts.transition_status(
            r, to_status, actor, when, expected_status, correction_window=settings.correction_window
        ),
        db_path,
        f"transition to {to_status}",
    )
    if result.event is not None:
        logger.info(
            "Receipt %s moved %s -> %s by %s", receipt_id, result.event.from_status, result.event.to_status, actor
        )
    return result


def check_receipt(
    receipt_id: str, actor: Actor, db_path: Path | None = None, at: datetime | None = None
) -> tuple[TransitionResult, list[str]]:
    """Run automated checks and flag a pending receipt for review if needed.

    Returns:
        Tuple of (result, flags). The receipt is unchanged when there are no flags.
    """
    when = at or _now()
    current = get_receipt(receipt_id, db_path)
    flags = receipts.review_flags(current, when.date())

    result = _apply(receipt_id, lambda r: receipts.flag_for_review(r, actor, when), db_path, "review check")
    if result.event is not None:
        logger.info("Receipt %s flagged for review: %s", receipt_id, "; ".join(flags))
    return result, flags


def add_line_item(receipt_id: str, item: LineItem, db_path: Path | None = None) -> Receipt:
    """Append a line item to a receipt."""
    return _apply(receipt_id, lambda r: ledger.add_line_item(r, item), db_path, "add line item").receipt


def update_line_item(receipt_id: str, index: int, item: LineItem, db_path: Path | None = None) -> Receipt:
    """Replace the line item at ``index`` (0-based)."""
    return _apply(receipt_id, lambda r: ledger.update_line_item(r, index, item), db_path, "update line item").receipt


def remove_line_item(receipt_id: str, index: int, db_path: Path | None = None) -> Receipt:
    """Remove the line item at ``index`` (0-based)."""
    return _apply(receipt_id, lambda r: ledger.remove_line_item(r, index), db_path, "remove line item").receipt


def update_details(receipt_id: str, db_path: Path | None = None, **changes: Any) -> Receipt:
    """Change descriptive fields such as vendor, category or tax."""
    return _apply(
        receipt_id, lambda r: receipts.revise_details(r, **changes), db_path, "update details"
    ).receipt


def delete_receipt(receipt_id: str, actor: Actor, db_path: Path | None = None, at: datetime | None = None) -> bool:
    """Delete a receipt.

    Receipts that were ever approved or exported are tombstoned so their audit
    trail survives; all others are removed physically.

    Returns:
        True if the receipt was tombstoned, False if it was removed.

    Raises:
        NotFound: If the receipt does not exist or is already deleted.
    """
    current = get_receipt(receipt_id, db_path)

    if receipts.requires_tombstone(current):
        queries.save_receipt(
            receipts.tombstone(current, at or _now()), expected_version=current.version, db_path=db_path
        )
        logger.info("Tombstoned receipt %s by %s", receipt_id, actor)
        return True

    queries.purge_receipt(receipt_id, current.version, db_path)
    logger.info("Deleted receipt %s by %s", receipt_id, actor)
    return False


def export_approved(output_path: Path, db_path: Path | None = None, at: datetime | None = None) -> int:
    """Write approved receipts not yet exported to a CSV file.

    Replaying the export is idempotent: events already exported are skipped.
    Nothing is written when there is nothing new.

    Args:
        output_path: CSV file to write.
        db_path: Path to the database file. If None, uses default location.
        at: Export time. If None, uses the current time.

    Returns:
        Number of receipts exported.
    """
    events = queries.get_events(db_path, to_status=Status.APPROVED, unexported_only=True)
    pending = select_exportable(events, queries.get_exported_event_keys(db_path))
    if not pending:
        logger.info("Nothing to export")
        return 0

    by_id = {r.id: r for r in queries.fetch_all_receipts(db_path)}
    rows, exported = build_export_rows(pending, by_id)
    if not rows:
        return 0

    output_path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows, columns=EXPORT_COLUMNS).to_csv(output_path, index=False)

    queries.mark_events_exported(exported, at or _now(), db_path)
    logger.info("Exported %d approved receipts to %s", len(rows), output_path)
    return len(rows)


def receipt_stats(month: Month | None = None, db_path: Path | None = None, today: date | None = None) -> DashboardStats:
    """Dashboard statistics for live receipts.

    Args:
        month: Month for month-over-month changes. If None, uses the current month.
        db_path: Path to the database file. If None, uses default location.
        today: Reference date when month is None.
    """
    month = month or month_of(today or _now().date())
    return compute_stats(queries.fetch_all_receipts(db_path, include_deleted=False), month)
