"""Database schema initialization and migrations."""

import os
import sqlite3
from pathlib import Path


def get_xdg_data_home() -> Path:
    """Get XDG data directory, with fallback to ~/.local/share."""
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data)
    return Path.home() / ".local" / "share"


def get_db_path() -> Path:
    """Get the database path: RECKON_DB if set, otherwise the XDG data location."""
    override = os.environ.get("RECKON_DB")
    if override:
        return Path(override).expanduser()
    return get_xdg_data_home() / "reckon" / "reckon.db"


def database_exists(db_path: Path | None = None) -> bool:
    """Check if the database file exists.

    Args:
        db_path: Path to check. If None, uses default location.

    Returns:
        True if database exists, False otherwise.
    """
    if db_path is None:
        db_path = get_db_path()
    return db_path.exists()


def init_database(db_path: Path | None = None) -> None:
    """Initialize the database with the required schema.

    Args:
        db_path: Path to the database file. If None, uses default location.

    Raises:
        sqlite3.Error: If database initialization fails.
    """
    if db_path is None:
        db_path = get_db_path()

    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    try:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS receipts (
                id TEXT PRIMARY KEY,
                vendor TEXT NOT NULL,
                date TEXT NOT NULL,
                currency TEXT NOT NULL,
                tax INTEGER NOT NULL,
                project TEXT NOT NULL DEFAULT '',
                category TEXT NOT NULL DEFAULT '',
                description TEXT NOT NULL DEFAULT '',
                payment_method TEXT NOT NULL,
                status TEXT NOT NULL,
                version INTEGER NOT NULL DEFAULT 1,
                receipt_number TEXT,
                created_at TEXT,
                deleted_at TEXT
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS line_items (
                receipt_id TEXT NOT NULL REFERENCES receipts(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                description TEXT NOT NULL,
                quantity INTEGER NOT NULL CHECK (quantity > 0),
                unit_price INTEGER NOT NULL,
                PRIMARY KEY (receipt_id, position)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS status_history (
                receipt_id TEXT NOT NULL REFERENCES receipts(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                status TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                actor TEXT NOT NULL,
                PRIMARY KEY (receipt_id, position)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS status_events (
                event_key TEXT PRIMARY KEY,
                receipt_id TEXT NOT NULL,
                from_status TEXT NOT NULL,
                to_status TEXT NOT NULL,
                actor TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                exported_at TEXT
            )
        """
        )

        # Migrations for older databases (must run before creating indexes on new columns)
        cursor.execute("PRAGMA table_info(receipts)")
        columns = [row[1] for row in cursor.fetchall()]

        # Migration: Add 'attachment' column if missing
        if "attachment" not in columns:
            cursor.execute("ALTER TABLE receipts ADD COLUMN attachment TEXT")

        # Migration: Add 'exported_at' column if missing
        if "exported_at" not in columns:
            cursor.execute("ALTER TABLE receipts ADD COLUMN exported_at TEXT")

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_receipt_date ON receipts(date)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_receipt_status ON receipts(status)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_event_pending ON status_events(to_status, exported_at)")

        conn.commit()

    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()
