"""Database query functions."""

import sqlite3
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any

from reckon.domain.errors import NotFound, ReceiptError, StaleState
from reckon.domain.ledger import LineItem
from reckon.domain.models import Actor, CurrencyCode, PaymentMethod, ReceiptId, Status
from reckon.domain.money import Money
from reckon.domain.receipts import Receipt, StatusChange, StatusEvent
from reckon.store.schema import get_db_path

_RECEIPT_COLUMNS = (
    "id, vendor, date, currency, tax, project, category, description, payment_method, status, "
    "version, receipt_number, attachment, created_at, deleted_at, exported_at"
)


def _connect(db_path: Path | None = None) -> sqlite3.Connection:
    """Create a database connection with row factory.

    Args:
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Database connection with row_factory configured.
    """
    if db_path is None:
        db_path = get_db_path()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _build_receipt(row: sqlite3.Row, items: list[sqlite3.Row], history: list[sqlite3.Row]) -> Receipt:
    currency = CurrencyCode(row["currency"])
    return Receipt(
        id=ReceiptId(row["id"]),
        vendor=row["vendor"],
        date=date.fromisoformat(row["date"]),
        currency=currency,
        tax=Money(row["tax"], currency),
        project=row["project"],
        category=row["category"],
        description=row["description"],
        payment_method=PaymentMethod(row["payment_method"]),
        line_items=tuple(
            LineItem(
                description=item["description"],
                quantity=item["quantity"],
                unit_price=Money(item["unit_price"], currency),
            )
            for item in items
        ),
        status=Status(row["status"]),
        status_history=tuple(
            StatusChange(
                status=Status(change["status"]),
                timestamp=datetime.fromisoformat(change["timestamp"]),
                actor=Actor(change["actor"]),
            )
            for change in history
        ),
        version=row["version"],
        receipt_number=row["receipt_number"],
        attachment=row["attachment"],
        created_at=_parse_ts(row["created_at"]),
        deleted_at=_parse_ts(row["deleted_at"]),
        exported_at=_parse_ts(row["exported_at"]),
    )


def _event_from_row(row: sqlite3.Row) -> StatusEvent:
    return StatusEvent(
        receipt_id=ReceiptId(row["receipt_id"]),
        from_status=Status(row["from_status"]),
        to_status=Status(row["to_status"]),
        actor=Actor(row["actor"]),
        timestamp=datetime.fromisoformat(row["timestamp"]),
    )


def fetch_receipt(receipt_id: str, db_path: Path | None = None) -> Receipt:
    """Get one receipt by id, including deleted (tombstoned) receipts.

    Args:
        receipt_id: Receipt ID.
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Receipt with line items and status history.

    Raises:
        NotFound: If no receipt has this id.
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("BEGIN")
        cursor.execute(f"SELECT {_RECEIPT_COLUMNS} FROM receipts WHERE id = ?", (receipt_id,))
        row = cursor.fetchone()
        if row is None:
            raise NotFound("Receipt not found", receipt_id)

        cursor.execute(
            "SELECT description, quantity, unit_price FROM line_items WHERE receipt_id = ? ORDER BY position",
            (receipt_id,),
        )
        items = cursor.fetchall()

        cursor.execute(
            "SELECT status, timestamp, actor FROM status_history WHERE receipt_id = ? ORDER BY position",
            (receipt_id,),
        )
        history = cursor.fetchall()

        return _build_receipt(row, items, history)


def fetch_all_receipts(db_path: Path | None = None, include_deleted: bool = True) -> list[Receipt]:
    """Load every receipt from one consistent snapshot.

    Args:
        db_path: Path to the database file. If None, uses default location.
        include_deleted: Whether to include tombstoned receipts.

    Returns:
        List of receipts ordered by id.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("BEGIN")

        query = f"SELECT {_RECEIPT_COLUMNS} FROM receipts"
        if not include_deleted:
            query += " WHERE deleted_at IS NULL"
        query += " ORDER BY id"
        cursor.execute(query)
        rows = cursor.fetchall()

        items_by_receipt: dict[str, list[sqlite3.Row]] = {}
        cursor.execute(
            "SELECT receipt_id, description, quantity, unit_price FROM line_items ORDER BY receipt_id, position"
        )
        for item in cursor.fetchall():
            items_by_receipt.setdefault(item["receipt_id"], []).append(item)

        history_by_receipt: dict[str, list[sqlite3.Row]] = {}
        cursor.execute("SELECT receipt_id, status, timestamp, actor FROM status_history ORDER BY receipt_id, position")
        for change in cursor.fetchall():
            history_by_receipt.setdefault(change["receipt_id"], []).append(change)

        return [
            _build_receipt(row, items_by_receipt.get(row["id"], []), history_by_receipt.get(row["id"], []))
            for row in rows
        ]


def _receipt_params(receipt: Receipt) -> dict[str, Any]:
    return {
        "id": receipt.id,
        "vendor": receipt.vendor,
        "date": receipt.date.isoformat(),
        "currency": receipt.currency,
        "tax": receipt.tax.minor_units,
        "project": receipt.project,
        "category": receipt.category,
        "description": receipt.description,
        "payment_method": str(receipt.payment_method),
        "status": str(receipt.status),
        "receipt_number": receipt.receipt_number,
        "attachment": receipt.attachment,
        "created_at": _ts(receipt.created_at),
        "deleted_at": _ts(receipt.deleted_at),
        "exported_at": _ts(receipt.exported_at),
    }


def _write_children(cursor: sqlite3.Cursor, receipt: Receipt) -> None:
    cursor.execute("DELETE FROM line_items WHERE receipt_id = ?", (receipt.id,))
    cursor.executemany(
        "INSERT INTO line_items (receipt_id, position, description, quantity, unit_price) VALUES (?, ?, ?, ?, ?)",
        [
            (receipt.id, position, item.description, item.quantity, item.unit_price.minor_units)
            for position, item in enumerate(receipt.line_items)
        ],
    )

    cursor.execute("DELETE FROM status_history WHERE receipt_id = ?", (receipt.id,))
    cursor.executemany(
        "INSERT INTO status_history (receipt_id, position, status, timestamp, actor) VALUES (?, ?, ?, ?, ?)",
        [
            (receipt.id, position, str(change.status), change.timestamp.isoformat(), change.actor)
            for position, change in enumerate(receipt.status_history)
        ],
    )


def _insert_event(cursor: sqlite3.Cursor, event: StatusEvent) -> None:
    # Replays of the same event are ignored
    cursor.execute(
        """
        INSERT OR IGNORE INTO status_events (event_key, receipt_id, from_status, to_status, actor, timestamp)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            event.key,
            event.receipt_id,
            str(event.from_status),
            str(event.to_status),
            event.actor,
            event.timestamp.isoformat(),
        ),
    )


def _check_version(cursor: sqlite3.Cursor, receipt_id: str, expected_version: int) -> None:
    cursor.execute("SELECT version FROM receipts WHERE id = ?", (receipt_id,))
    row = cursor.fetchone()
    if row is None:
        raise NotFound("Receipt not found", receipt_id)
    if row["version"] != expected_version:
        raise StaleState(
            f"Receipt was changed by someone else (version {row['version']}, expected {expected_version})",
            receipt_id,
            "version",
        )


def save_receipt(
    receipt: Receipt,
    expected_version: int | None,
    event: StatusEvent | None = None,
    db_path: Path | None = None,
) -> Receipt:
    """Insert or update a receipt with an optimistic version check.

    The receipt row, its line items, its history and the optional status event
    are written in one transaction.

    Args:
        receipt: Receipt to store.
        expected_version: Version the caller read. None means the receipt must not exist yet.
        event: Status event to record alongside the change.
        db_path: Path to the database file. If None, uses default location.

    Returns:
        The stored receipt carrying its new version.

    Raises:
        StaleState: If the stored version differs from expected_version, or
            a new receipt's id is already taken.
        NotFound: If updating a receipt that does not exist.
        sqlite3.Error: If database operation fails.
    """
    params = _receipt_params(receipt)

    with _connect(db_path) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute("BEGIN IMMEDIATE")

            if expected_version is None:
                cursor.execute("SELECT 1 FROM receipts WHERE id = ?", (receipt.id,))
                if cursor.fetchone() is not None:
                    raise StaleState("A receipt with this id already exists", receipt.id, "id")
                new_version = 1
                params["version"] = new_version
                cursor.execute(
                    f"""
                    INSERT INTO receipts ({_RECEIPT_COLUMNS})
                    VALUES (:id, :vendor, :date, :currency, :tax, :project, :category, :description,
                            :payment_method, :status, :version, :receipt_number, :attachment,
                            :created_at, :deleted_at, :exported_at)
                    """,
                    params,
                )
            else:
                _check_version(cursor, receipt.id, expected_version)
                new_version = expected_version + 1
                params["version"] = new_version
                cursor.execute(
                    """
                    UPDATE receipts SET vendor = :vendor, date = :date, currency = :currency, tax = :tax,
                        project = :project, category = :category, description = :description,
                        payment_method = :payment_method, status = :status, version = :version,
                        receipt_number = :receipt_number, attachment = :attachment,
                        created_at = :created_at, deleted_at = :deleted_at, exported_at = :exported_at
                    WHERE id = :id
                    """,
                    params,
                )

            _write_children(cursor, receipt)
            if event is not None:
                _insert_event(cursor, event)

            conn.commit()
        except (sqlite3.Error, ReceiptError):
            conn.rollback()
            raise

    return replace(receipt, version=new_version)


def purge_receipt(receipt_id: str, expected_version: int, db_path: Path | None = None) -> None:
    """Physically delete a receipt and everything attached to it.

    Args:
        receipt_id: Receipt ID.
        expected_version: Version the caller read.
        db_path: Path to the database file. If None, uses default location.

    Raises:
        StaleState: If the receipt changed since it was read.
        NotFound: If the receipt does not exist.
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute("BEGIN IMMEDIATE")
            _check_version(cursor, receipt_id, expected_version)
            cursor.execute("DELETE FROM line_items WHERE receipt_id = ?", (receipt_id,))
            cursor.execute("DELETE FROM status_history WHERE receipt_id = ?", (receipt_id,))
            cursor.execute("DELETE FROM status_events WHERE receipt_id = ?", (receipt_id,))
            cursor.execute("DELETE FROM receipts WHERE id = ?", (receipt_id,))
            conn.commit()
        except (sqlite3.Error, ReceiptError):
            conn.rollback()
            raise


def get_events(
    db_path: Path | None = None,
    receipt_id: str | None = None,
    to_status: Status | None = None,
    unexported_only: bool = False,
) -> list[StatusEvent]:
    """Get recorded status events, oldest first.

    Args:
        db_path: Path to the database file. If None, uses default location.
        receipt_id: Only events for this receipt.
        to_status: Only events moving into this status.
        unexported_only: Only events not yet consumed by the export.

    Returns:
        List of StatusEvent.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        query = "SELECT receipt_id, from_status, to_status, actor, timestamp FROM status_events WHERE 1 = 1"
        params: list[Any] = []

        if receipt_id is not None:
            query += " AND receipt_id = ?"
            params.append(receipt_id)
        if to_status is not None:
            query += " AND to_status = ?"
            params.append(str(to_status))
        if unexported_only:
            query += " AND exported_at IS NULL"

        query += " ORDER BY timestamp, receipt_id"

        cursor.execute(query, params)
        return [_event_from_row(row) for row in cursor.fetchall()]


def get_exported_event_keys(db_path: Path | None = None) -> set[str]:
    """Keys of events already consumed by the export.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT event_key FROM status_events WHERE exported_at IS NOT NULL")
        return {row[0] for row in cursor.fetchall()}


def mark_events_exported(events: Iterable[StatusEvent], at: datetime, db_path: Path | None = None) -> int:
    """Mark events as exported and stamp their receipts.

    Receipts are stamped only once; each stamped receipt's version is bumped so
    concurrent writers notice the change.

    Args:
        events: Events that were written to the export.
        at: Export time.
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Number of events newly marked.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    exported_at = at.isoformat()
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute("BEGIN IMMEDIATE")
            count = 0
            for event in events:
                cursor.execute(
                    "UPDATE status_events SET exported_at = ? WHERE event_key = ? AND exported_at IS NULL",
                    (exported_at, event.key),
                )
                count += cursor.rowcount
                cursor.execute(
                    "UPDATE receipts SET exported_at = ?, version = version + 1 WHERE id = ? AND exported_at IS NULL",
                    (exported_at, event.receipt_id),
                )
            conn.commit()
            return count
        except sqlite3.Error:
            conn.rollback()
            raise
