"""Tests for reckon.api against a temporary database."""

from datetime import date, timedelta
from pathlib import Path

import pandas as pd
import pytest

from reckon import api
from reckon.config import Settings
from reckon.domain.errors import EmptyReceipt, InvalidLineItem, InvalidPage, InvalidTransition, NotFound, StaleState
from reckon.domain.ledger import LineItem, make_line_item
from reckon.domain.models import Actor, Month, ReceiptId, Status
from reckon.domain.money import create
from reckon.domain.query import Page, ReceiptFilter, SortOrder
from reckon.domain.receipts import Receipt, ReceiptDraft
from reckon.store import queries

BOB = Actor("bob@example.com")


@pytest.fixture
def stored(db_path: Path, office_items: list[LineItem], alice, now) -> Receipt:
    """The office supplies receipt, saved as pending."""
    draft = ReceiptDraft(
        vendor="Office Supplies Inc.",
        date=date(2023, 4, 15),
        tax=create(1512, "USD"),
        line_items=office_items,
        project="Office Supplies Q2",
        category="Office",
    )
    return api.create_receipt(draft, alice, db_path=db_path, receipt_id=ReceiptId("r1"), at=now)


class TestCreateAndGet:
    """Tests for create_receipt and get_receipt."""

    def test_create(self, stored: Receipt, db_path: Path) -> None:
        """Should persist a pending receipt with version 1."""
        assert stored.status == Status.PENDING
        assert stored.version == 1
        assert api.get_receipt("r1", db_path) == stored

    def test_generated_id(self, db_path: Path, alice, now) -> None:
        """Should generate an id when none is given."""
        draft = ReceiptDraft(vendor="Team Lunch", date=date(2023, 4, 12), tax=create(0, "USD"))
        receipt = api.create_receipt(draft, alice, db_path=db_path, at=now)

        assert receipt.id.startswith("rcpt_")
        assert len(receipt.id) == len("rcpt_") + 12

    def test_missing(self, db_path: Path) -> None:
        """Should raise NotFound for unknown ids."""
        with pytest.raises(NotFound):
            api.get_receipt("nope", db_path)


class TestTransitions:
    """Tests for transition_status and check_receipt."""

    def test_approve(self, stored: Receipt, db_path: Path, settings: Settings, now) -> None:
        """Should approve, record history and store the event."""
        result = api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)

        assert result.receipt.status == Status.APPROVED
        assert result.receipt.version == 2
        assert queries.get_events(db_path, receipt_id="r1") == [result.event]

    def test_noop_does_not_write(self, stored: Receipt, db_path: Path, settings: Settings, now) -> None:
        """Should leave the version alone for a no-op transition."""
        result = api.transition_status("r1", Status.PENDING, BOB, db_path=db_path, settings=settings, at=now)

        assert result.event is None
        assert api.get_receipt("r1", db_path).version == 1

    def test_invalid_leaves_store_unchanged(self, stored: Receipt, db_path: Path, settings: Settings, now) -> None:
        """Should not write anything when the transition fails."""
        api.transition_status("r1", Status.REJECTED, BOB, db_path=db_path, settings=settings, at=now)

        with pytest.raises(InvalidTransition):
            api.transition_status("r1", Status.PENDING, BOB, db_path=db_path, settings=settings, at=now)

        receipt = api.get_receipt("r1", db_path)
        assert receipt.status == Status.REJECTED
        assert len(receipt.status_history) == 2

    def test_expected_status(self, stored: Receipt, db_path: Path, settings: Settings, now) -> None:
        """Should raise StaleState when another reviewer got there first."""
        api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)

        with pytest.raises(StaleState):
            api.transition_status(
                "r1", Status.REJECTED, BOB, expected_status=Status.PENDING, db_path=db_path, settings=settings, at=now
            )

    def test_correction_window_from_settings(self, stored: Receipt, db_path: Path, now) -> None:
        """Should use the configured correction window."""
        settings = Settings(correction_window_hours=1)
        api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)

        with pytest.raises(InvalidTransition):
            api.transition_status(
                "r1", Status.REJECTED, BOB, db_path=db_path, settings=settings, at=now + timedelta(hours=2)
            )

    def test_approve_empty(self, stored: Receipt, db_path: Path, settings: Settings, now) -> None:
        """Should refuse to approve after every line item is removed."""
        api.remove_line_item("r1", 0, db_path)
        api.remove_line_item("r1", 0, db_path)

        with pytest.raises(EmptyReceipt):
            api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)

    def test_check_flags_incomplete_receipt(self, db_path: Path, alice, now) -> None:
        """Should move a receipt with problems to NeedsReview."""
        draft = ReceiptDraft(vendor="City Taxi", date=date(2023, 4, 18), tax=create(0, "USD"))
        api.create_receipt(draft, alice, db_path=db_path, receipt_id=ReceiptId("r2"), at=now)

        result, flags = api.check_receipt("r2", BOB, db_path=db_path, at=now)

        assert "Category is missing" in flags
        assert result.receipt.status == Status.NEEDS_REVIEW

    def test_check_clean_receipt(self, stored: Receipt, db_path: Path, now) -> None:
        """Should leave a complete receipt pending."""
        result, flags = api.check_receipt("r1", BOB, db_path=db_path, at=now)

        assert flags == []
        assert result.event is None
        assert result.receipt.status == Status.PENDING


class TestLineItems:
    """Tests for line item editing through the API."""

    def test_add_updates_total(self, stored: Receipt, db_path: Path) -> None:
        """Should recompute the total from stored line items."""
        receipt = api.add_line_item("r1", make_line_item("Spiral Notebooks", 5, create(700, "USD")), db_path)

        assert receipt.total == create(14107, "USD")
        assert api.get_receipt("r1", db_path).total == create(14107, "USD")

    def test_update_and_remove(self, stored: Receipt, db_path: Path) -> None:
        """Should replace and drop items by position."""
        api.update_line_item("r1", 1, make_line_item("Gel Pens", 1, create(899, "USD")), db_path)
        receipt = api.remove_line_item("r1", 0, db_path)

        assert [i.description for i in receipt.line_items] == ["Gel Pens"]
        assert receipt.total == create(2411, "USD")

    def test_locked_after_approval(self, stored: Receipt, db_path: Path, settings: Settings, now) -> None:
        """Should refuse edits to approved receipts."""
        api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)

        with pytest.raises(InvalidLineItem):
            api.add_line_item("r1", make_line_item("Stapler", 1, create(1499, "USD")), db_path)

    def test_update_details(self, stored: Receipt, db_path: Path) -> None:
        """Should change descriptive fields."""
        receipt = api.update_details("r1", db_path=db_path, vendor="Office Depot", category="Supplies")

        assert receipt.vendor == "Office Depot"
        assert api.get_receipt("r1", db_path).category == "Supplies"


class TestListReceipts:
    """Tests for list_receipts."""

    def test_filters_and_pages(self, stored: Receipt, db_path: Path, alice, now) -> None:
        """Should filter, sort and page stored receipts."""
        for n, vendor in enumerate(["Team Lunch", "Office Depot", "City Taxi"], start=2):
            draft = ReceiptDraft(
                vendor=vendor,
                date=date(2023, 4, n),
                tax=create(0, "USD"),
                line_items=[make_line_item("Item", 1, create(n * 1000, "USD"))],
            )
            api.create_receipt(draft, alice, db_path=db_path, receipt_id=ReceiptId(f"r{n}"), at=now)

        settings = Settings(default_page_limit=2)
        first = api.list_receipts(order=SortOrder.OLDEST, db_path=db_path, settings=settings)
        office = api.list_receipts(ReceiptFilter(vendor_contains="office"), db_path=db_path, settings=settings)

        assert [r.id for r in first.items] == ["r2", "r3"]
        assert first.total_count == 4
        assert first.has_more
        assert [r.id for r in office.items] == ["r1", "r3"]

    def test_page_past_end(self, stored: Receipt, db_path: Path, settings: Settings) -> None:
        """Should raise InvalidPage."""
        with pytest.raises(InvalidPage):
            api.list_receipts(page=Page(offset=5, limit=10), db_path=db_path, settings=settings)


class TestDelete:
    """Tests for delete_receipt."""

    def test_pending_is_purged(self, stored: Receipt, db_path: Path, alice) -> None:
        """Should remove never-approved receipts."""
        assert api.delete_receipt("r1", alice, db_path=db_path) is False

        with pytest.raises(NotFound):
            queries.fetch_receipt("r1", db_path)

    def test_approved_is_tombstoned(self, stored: Receipt, db_path: Path, settings: Settings, alice, now) -> None:
        """Should keep approved receipts with a deletion marker."""
        api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)

        assert api.delete_receipt("r1", alice, db_path=db_path, at=now) is True

        with pytest.raises(NotFound):
            api.get_receipt("r1", db_path)
        assert queries.fetch_receipt("r1", db_path).deleted_at == now
        assert api.list_receipts(db_path=db_path, settings=settings).total_count == 0


class TestExport:
    """Tests for export_approved."""

    def test_export_is_idempotent(
        self, stored: Receipt, db_path: Path, settings: Settings, now, tmp_path: Path
    ) -> None:
        """Should export each approval once."""
        api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)
        output = tmp_path / "export.csv"

        assert api.export_approved(output, db_path=db_path, at=now) == 1
        frame = pd.read_csv(output, dtype=str)
        assert frame["receipt_id"].tolist() == ["r1"]
        assert frame["total"].tolist() == ["106.07"]

        assert api.export_approved(tmp_path / "again.csv", db_path=db_path, at=now) == 0
        assert not (tmp_path / "again.csv").exists()

    def test_exported_receipt_cannot_be_reversed(
        self, stored: Receipt, db_path: Path, settings: Settings, now, tmp_path: Path
    ) -> None:
        """Should lock the approval once exported."""
        api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)
        api.export_approved(tmp_path / "export.csv", db_path=db_path, at=now)

        with pytest.raises(InvalidTransition):
            api.transition_status(
                "r1", Status.REJECTED, BOB, db_path=db_path, settings=settings, at=now + timedelta(minutes=5)
            )

    def test_reversed_approval_not_exported(
        self, stored: Receipt, db_path: Path, settings: Settings, now, tmp_path: Path
    ) -> None:
        """Should skip approvals reversed before export."""
        api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)
        api.transition_status(
            "r1", Status.REJECTED, BOB, db_path=db_path, settings=settings, at=now + timedelta(hours=1)
        )

        assert api.export_approved(tmp_path / "export.csv", db_path=db_path, at=now) == 0


class TestStats:
    """Tests for receipt_stats."""

    def test_counts(self, stored: Receipt, db_path: Path, settings: Settings, now) -> None:
        """Should summarize live receipts."""
        api.transition_status("r1", Status.APPROVED, BOB, db_path=db_path, settings=settings, at=now)
        stats = api.receipt_stats(Month("2023-04"), db_path=db_path)

        assert stats.total_receipts == 1
        assert stats.by_status[Status.APPROVED] == 1
        assert stats.totals_by_currency == {"USD": create(10607, "USD")}

    def test_default_month(self, stored: Receipt, db_path: Path) -> None:
        """Should use the month of the reference date."""
        assert api.receipt_stats(db_path=db_path, today=date(2023, 4, 30)).month == "2023-04"
