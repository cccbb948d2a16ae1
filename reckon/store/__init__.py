"""Database store layer - provides persistence for the application.

This module re-exports all public database functions for easy importing.
"""

from reckon.store.queries import (
    fetch_all_receipts,
    fetch_receipt,
    get_events,
    get_exported_event_keys,
    mark_events_exported,
    purge_receipt,
    save_receipt,
)
from reckon.store.schema import database_exists, get_db_path, init_database

__all__ = [
    # Schema
    "database_exists",
    "get_db_path",
    "init_database",
    # Queries
    "fetch_all_receipts",
    "fetch_receipt",
    "get_events",
    "get_exported_event_keys",
    "mark_events_exported",
    "purge_receipt",
    "save_receipt",
]
