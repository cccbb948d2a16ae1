"""Domain type definitions for reckon.

These NewTypes and enums provide semantic clarity and help with type checking:
- ReceiptId: Opaque receipt identifier
- Actor: Identity of whoever performs a change (supplied by the caller)
- CurrencyCode: ISO-4217 currency code (e.g., "USD")
- Month: Month in YYYY-MM format
- Status: Receipt review status
- PaymentMethod: How the receipt was paid
"""

from enum import StrEnum
from typing import NewType

# Receipt ids are opaque strings, compared only for equality and tie-breaking
ReceiptId = NewType("ReceiptId", str)

# Actor identity comes from the session/identity provider, never from global state
Actor = NewType("Actor", str)

# Currency code is always upper case (e.g., "USD", "GBP")
CurrencyCode = NewType("CurrencyCode", str)

# Month is always in YYYY-MM format (e.g., "2025-01")
Month = NewType("Month", str)


class Status(StrEnum):
    """Receipt review status."""

    PENDING = "pending"
    NEEDS_REVIEW = "needs_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentMethod(StrEnum):
    """Payment method recorded on a receipt."""

    CASH = "cash"
    CREDIT = "credit"
    DEBIT = "debit"
    TRANSFER = "transfer"
    OTHER = "other"
