"""Tests for reckon.domain.export pure functions."""

from collections.abc import Callable
from datetime import timedelta

from reckon.domain.export import EXPORT_COLUMNS, build_export_row, build_export_rows, select_exportable
from reckon.domain.models import Actor, Status
from reckon.domain.receipts import Receipt, StatusEvent, tombstone, transition_status

BOB = Actor("bob@example.com")


class TestSelectExportable:
    """Tests for select_exportable."""

    def test_only_approval_events(self, make_receipt: Callable[..., Receipt], now) -> None:
        """Should ignore events other than approvals."""
        flagged = transition_status(make_receipt(), Status.NEEDS_REVIEW, BOB, now)
        approved = transition_status(flagged.receipt, Status.APPROVED, BOB, now + timedelta(minutes=1))
        events = [flagged.event, approved.event]

        assert select_exportable(events, []) == [approved.event]

    def test_skips_exported_keys(self, make_receipt: Callable[..., Receipt], now) -> None:
        """Should not return events already exported."""
        event = transition_status(make_receipt(), Status.APPROVED, BOB, now).event
        assert event is not None

        assert select_exportable([event], [event.key]) == []

    def test_collapses_duplicates(self, make_receipt: Callable[..., Receipt], now) -> None:
        """Should return a replayed event once."""
        event = transition_status(make_receipt(), Status.APPROVED, BOB, now).event
        replay = StatusEvent(event.receipt_id, event.from_status, event.to_status, event.actor, event.timestamp)

        assert select_exportable([event, replay], []) == [event]

    def test_oldest_first(self, make_receipt: Callable[..., Receipt], now) -> None:
        """Should order by timestamp then receipt id."""
        late = transition_status(make_receipt("a"), Status.APPROVED, BOB, now + timedelta(hours=1)).event
        early_b = transition_status(make_receipt("b"), Status.APPROVED, BOB, now).event
        early_c = transition_status(make_receipt("c"), Status.APPROVED, BOB, now).event

        result = select_exportable([late, early_c, early_b], [])

        assert [e.receipt_id for e in result] == ["b", "c", "a"]


class TestBuildExportRows:
    """Tests for build_export_row and build_export_rows."""

    def test_row_contents(self, make_receipt: Callable[..., Receipt], now) -> None:
        """Should render amounts as decimal strings in major units."""
        result = transition_status(make_receipt(receipt_number="INV-1001"), Status.APPROVED, BOB, now)
        row = build_export_row(result.event, result.receipt)

        assert list(row) == EXPORT_COLUMNS
        assert row["receipt_number"] == "INV-1001"
        assert row["date"] == "2023-04-15"
        assert row["subtotal"] == "90.95"
        assert row["tax"] == "15.12"
        assert row["total"] == "106.07"
        assert row["approved_by"] == "bob@example.com"
        assert row["approved_at"] == now.isoformat()

    def test_skips_reversed_and_deleted(self, make_receipt: Callable[..., Receipt], now) -> None:
        """Should leave out receipts no longer approved."""
        kept = transition_status(make_receipt("r1"), Status.APPROVED, BOB, now)
        reversed_ = transition_status(make_receipt("r2"), Status.APPROVED, BOB, now)
        deleted = transition_status(make_receipt("r3"), Status.APPROVED, BOB, now)
        receipts = {
            "r1": kept.receipt,
            "r2": transition_status(reversed_.receipt, Status.REJECTED, BOB, now + timedelta(hours=1)).receipt,
            "r3": tombstone(deleted.receipt, now + timedelta(hours=1)),
        }

        rows, exported = build_export_rows([kept.event, reversed_.event, deleted.event], receipts)

        assert [row["receipt_id"] for row in rows] == ["r1"]
        assert exported == [kept.event]

    def test_missing_receipt_skipped(self, make_receipt: Callable[..., Receipt], now) -> None:
        """Should ignore events whose receipt is gone."""
        event = transition_status(make_receipt(), Status.APPROVED, BOB, now).event

        assert build_export_rows([event], {}) == ([], [])
