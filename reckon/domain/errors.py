"""Validation failures raised by the domain core.

Every error carries enough context (receipt id, offending field) for a caller
to render a user-facing message. None of these are retried.
"""


class ReceiptError(Exception):
    """Base class for all receipt domain errors."""

    def __init__(self, message: str, receipt_id: str | None = None, field: str | None = None) -> None:
        self.message = message
        self.receipt_id = receipt_id
        self.field = field
        super().__init__(self.__str__())

    def __str__(self) -> str:
        parts = []
        if self.receipt_id:
            parts.append(f"receipt {self.receipt_id}")
        if self.field:
            parts.append(f"field '{self.field}'")
        if parts:
            return f"{self.message} ({', '.join(parts)})"
        return self.message


class CurrencyMismatch(ReceiptError):
    """Money values with different currencies were combined."""


class InvalidLineItem(ReceiptError):
    """A line item failed structural validation."""


class EmptyReceipt(ReceiptError):
    """A receipt without line items was about to be approved."""


class InvalidTransition(ReceiptError):
    """The requested status change is not allowed."""


class StaleState(ReceiptError):
    """The stored receipt changed since the caller last read it."""


class InvalidPage(ReceiptError):
    """Pagination parameters are out of range."""


class NotFound(ReceiptError):
    """No receipt exists with the given id."""
