"""Pure functions for dashboard statistics.

This module contains the functional core for reporting:
- No I/O operations (no database, no console, no files)
- No side effects
- Totals are derived from current line items

Month-over-month changes compare receipts dated in the chosen month with the
month before it.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from reckon.dates import month_range, previous_month
from reckon.domain import money
from reckon.domain.models import CurrencyCode, Month, Status
from reckon.domain.money import Money
from reckon.domain.query import SortOrder, sort_receipts
from reckon.domain.receipts import Receipt, total


@dataclass(frozen=True)
class StatLine:
    """One dashboard statistic with its change from the previous month."""

    name: str
    value: int
    change_percent: float | None


@dataclass(frozen=True)
class DashboardStats:
    """Immutable dashboard summary."""

    month: Month
    total_receipts: int
    by_status: dict[Status, int]
    totals_by_currency: dict[CurrencyCode, Money]
    lines: list[StatLine]
    recent: list[Receipt]


# (label, status filter); None counts every receipt
STAT_LINES: list[tuple[str, Status | None]] = [
    ("Total Receipts", None),
    ("Approved", Status.APPROVED),
    ("Pending Review", Status.PENDING),
    ("Needs Attention", Status.NEEDS_REVIEW),
]


def percentage_change(current: int, previous: int) -> float | None:
    """Percentage change from previous to current.

    Returns:
        Change rounded to one decimal place, or None if previous is zero.
    """
    if previous == 0:
        return None
    return round((current - previous) / previous * 100, 1)


def count_by_status(receipts: Iterable[Receipt]) -> dict[Status, int]:
    """Count receipts per status. Every status is present in the result."""
    counts = {status: 0 for status in Status}
    for receipt in receipts:
        counts[receipt.status] += 1
    return counts


def totals_by_currency(receipts: Iterable[Receipt]) -> dict[CurrencyCode, Money]:
    """Sum receipt totals, one entry per currency."""
    totals: dict[CurrencyCode, Money] = {}
    for receipt in receipts:
        receipt_total = total(receipt)
        current = totals.get(receipt_total.currency, money.zero(receipt_total.currency))
        totals[receipt_total.currency] = money.add(current, receipt_total)
    return totals


def receipts_in_month(receipts: Iterable[Receipt], month: Month) -> list[Receipt]:
    first_day, last_day, _ = month_range(month)
    return [r for r in receipts if first_day <= r.date <= last_day]


def _count(receipts: list[Receipt], status: Status | None) -> int:
    if status is None:
        return len(receipts)
    return sum(1 for r in receipts if r.status == status)


def compute_stats(receipts: Iterable[Receipt], month: Month, recent_limit: int = 5) -> DashboardStats:
    """Compute the dashboard summary.

    Args:
        receipts: All receipts. Deleted receipts are ignored.
        month: Month used for month-over-month changes (YYYY-MM).
        recent_limit: Number of newest receipts to include.

    Returns:
        DashboardStats.
    """
    live = [r for r in receipts if r.deleted_at is None]

    this_month = receipts_in_month(live, month)
    last_month = receipts_in_month(live, previous_month(month))

    lines = [
        StatLine(
            name=label,
            value=_count(live, status),
            change_percent=percentage_change(_count(this_month, status), _count(last_month, status)),
        )
        for label, status in STAT_LINES
    ]

    return DashboardStats(
        month=month,
        total_receipts=len(live),
        by_status=count_by_status(live),
        totals_by_currency=totals_by_currency(live),
        lines=lines,
        recent=sort_receipts(live, SortOrder.NEWEST)[:recent_limit],
    )


def category_totals(receipts: Iterable[Receipt], currency: str) -> list[tuple[str, Money]]:
    """Receipt totals per category in one currency, largest first.

    Receipts in other currencies and deleted receipts are skipped; ties are
    ordered by category name. Uncategorized receipts are grouped under "".
    """
    totals: dict[str, Money] = {}
    for receipt in receipts:
        if receipt.deleted_at is not None or receipt.currency != currency:
            continue
        current = totals.get(receipt.category, money.zero(currency))
        totals[receipt.category] = money.add(current, total(receipt))
    return sorted(totals.items(), key=lambda kv: (-kv[1].minor_units, kv[0]))


def calculate_histogram_bar_length(amount: int, max_amount: int, bar_width: int) -> int:
    """Calculate histogram bar length.

    Args:
        amount: Value to display.
        max_amount: Maximum value in dataset.
        bar_width: Maximum bar width in characters.

    Returns:
        Bar length in characters.
    """
    if max_amount <= 0:
        return 0
    return int(abs(amount) * bar_width // max_amount)
