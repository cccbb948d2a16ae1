"""Shared fixtures for reckon tests."""

from collections.abc import Callable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import pytest

from reckon.config import Settings
from reckon.domain.ledger import LineItem, make_line_item
from reckon.domain.models import Actor, ReceiptId
from reckon.domain.money import create
from reckon.domain.receipts import Receipt, ReceiptDraft, new_receipt
from reckon.store.schema import init_database

NOW = datetime(2023, 4, 20, 9, 30, tzinfo=UTC)
ALICE = Actor("alice@example.com")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def alice() -> Actor:
    return ALICE


@pytest.fixture
def office_items() -> list[LineItem]:
    """Line items from the office supplies receipt: 2 x $25.99 and 3 x $12.99."""
    return [
        make_line_item("Premium Paper (10 reams)", 2, create(2599, "USD")),
        make_line_item("Ballpoint Pens (12 pack)", 3, create(1299, "USD")),
    ]


@pytest.fixture
def make_receipt(office_items: list[LineItem]) -> Callable[..., Receipt]:
    """Factory for pending receipts; keyword arguments override draft fields."""

    def factory(receipt_id: str = "r1", **overrides: Any) -> Receipt:
        fields: dict[str, Any] = {
            "vendor": "Office Supplies Inc.",
            "date": date(2023, 4, 15),
            "tax": create(1512, "USD"),
            "line_items": office_items,
            "project": "Office Supplies Q2",
            "category": "Office",
        }
        fields.update(overrides)
        return new_receipt(ReceiptId(receipt_id), ReceiptDraft(**fields), ALICE, NOW)

    return factory


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Fresh initialized database."""
    path = tmp_path / "reckon.db"
    init_database(path)
    return path


@pytest.fixture
def settings() -> Settings:
    return Settings()
