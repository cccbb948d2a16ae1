"""Domain models and types for reckon.

This package contains the functional core:
- Pure functions with no side effects
- No I/O operations
- Easy to test
- Business logic separated from infrastructure
"""

from reckon.domain.errors import (
    CurrencyMismatch,
    EmptyReceipt,
    InvalidLineItem,
    InvalidPage,
    InvalidTransition,
    NotFound,
    ReceiptError,
    StaleState,
)
from reckon.domain.ledger import LineItem, make_line_item
from reckon.domain.models import Actor, CurrencyCode, Month, PaymentMethod, ReceiptId, Status
from reckon.domain.money import Money
from reckon.domain.query import Page, QueryResult, ReceiptFilter, SortOrder
from reckon.domain.receipts import Receipt, ReceiptDraft, StatusChange, StatusEvent, TransitionResult

__all__ = [
    "Actor",
    "CurrencyCode",
    "CurrencyMismatch",
    "EmptyReceipt",
    "InvalidLineItem",
    "InvalidPage",
    "InvalidTransition",
    "LineItem",
    "Money",
    "Month",
    "NotFound",
    "Page",
    "PaymentMethod",
    "QueryResult",
    "Receipt",
    "ReceiptDraft",
    "ReceiptError",
    "ReceiptFilter",
    "ReceiptId",
    "SortOrder",
    "StaleState",
    "Status",
    "StatusChange",
    "StatusEvent",
    "TransitionResult",
    "make_line_item",
]
