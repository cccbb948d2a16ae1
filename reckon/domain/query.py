"""Filtering, sorting and pagination over a receipt collection.

Pure read functions: the input collection is never modified. Amount sorts use
the derived receipt total so they always reflect current line items.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from reckon.domain.errors import InvalidPage
from reckon.domain.models import ReceiptId, Status
from reckon.domain.receipts import Receipt, total

DEFAULT_MAX_LIMIT = 100


class SortOrder(StrEnum):
    """Receipt list orderings."""

    NEWEST = "newest"
    OLDEST = "oldest"
    AMOUNT_HIGH = "amount_high"
    AMOUNT_LOW = "amount_low"


@dataclass(frozen=True)
class ReceiptFilter:
    """Conjunctive filter. Fields left as None impose no constraint."""

    status: Status | None = None
    vendor_contains: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    category: str | None = None
    include_deleted: bool = False


@dataclass(frozen=True)
class Page:
    """Slice of results to return."""

    offset: int = 0
    limit: int = 20


@dataclass(frozen=True)
class QueryResult:
    """One page of receipts plus the number of receipts matching the filter."""

    items: list[Receipt]
    total_count: int
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total_count


def matches(receipt: Receipt, receipt_filter: ReceiptFilter) -> bool:
    """Check whether a receipt satisfies every constraint in the filter."""
    f = receipt_filter

    if receipt.deleted_at is not None and not f.include_deleted:
        return False
    if f.status is not None and receipt.status != f.status:
        return False
    if f.vendor_contains and f.vendor_contains.casefold() not in receipt.vendor.casefold():
        return False
    if f.date_from is not None and receipt.date < f.date_from:
        return False
    if f.date_to is not None and receipt.date > f.date_to:
        return False
    if f.category and receipt.category.casefold() != f.category.casefold():
        return False

    return True


def sort_receipts(receipts: Iterable[Receipt], order: SortOrder) -> list[Receipt]:
    """Sort receipts; ties are broken by id ascending.

    Sorting happens in two stable passes: first by id, then by the primary key.
    """
    by_id = sorted(receipts, key=lambda r: r.id)

    if order == SortOrder.NEWEST:
        return sorted(by_id, key=lambda r: r.date, reverse=True)
    if order == SortOrder.OLDEST:
        return sorted(by_id, key=lambda r: r.date)
    if order == SortOrder.AMOUNT_HIGH:
        return sorted(by_id, key=lambda r: total(r).minor_units, reverse=True)
    if order == SortOrder.AMOUNT_LOW:
        return sorted(by_id, key=lambda r: total(r).minor_units)

    raise ValueError(f"Unknown sort order: {order}")


def validate_page(page: Page, max_limit: int = DEFAULT_MAX_LIMIT) -> None:
    """Check page bounds that do not depend on the result count.

    Raises:
        InvalidPage: If offset is negative or limit is outside 1..max_limit.
    """
    if isinstance(page.offset, bool) or not isinstance(page.offset, int) or page.offset < 0:
        raise InvalidPage(f"Offset must be a non-negative integer, got {page.offset!r}", field="offset")
    if isinstance(page.limit, bool) or not isinstance(page.limit, int) or not 1 <= page.limit <= max_limit:
        raise InvalidPage(f"Limit must be between 1 and {max_limit}, got {page.limit!r}", field="limit")


def query(
    receipts: Mapping[ReceiptId, Receipt] | Iterable[Receipt],
    receipt_filter: ReceiptFilter | None = None,
    order: SortOrder = SortOrder.NEWEST,
    page: Page | None = None,
    max_limit: int = DEFAULT_MAX_LIMIT,
) -> QueryResult:
    """Filter, sort and paginate a receipt collection.

    Args:
        receipts: Collection keyed by id, or any iterable of receipts.
        receipt_filter: Constraints to apply. None matches every live receipt.
        order: Sort order.
        page: Offset/limit. None returns the first page with the default limit.
        max_limit: Largest page size accepted.

    Returns:
        QueryResult with the requested page and total matching count.

    Raises:
        InvalidPage: If the page is malformed, or offset is past the matching
            count while the collection is non-empty. Offset equal to the count,
            or any offset on an empty collection, returns an empty page.
    """
    receipt_filter = receipt_filter or ReceiptFilter()
    page = page or Page(limit=min(Page().limit, max_limit))
    validate_page(page, max_limit)

    collection = list(receipts.values() if isinstance(receipts, Mapping) else receipts)
    matched = [r for r in collection if matches(r, receipt_filter)]
    total_count = len(matched)

    if collection and page.offset > total_count:
        raise InvalidPage(f"Offset {page.offset} is past the last of {total_count} receipts", field="offset")

    ordered = sort_receipts(matched, order)
    items = ordered[page.offset : page.offset + page.limit]
    return QueryResult(items=items, total_count=total_count, offset=page.offset)
