"""Tests for receipt rendering in reckon.commands.common."""

from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console

from reckon.commands import common
from reckon.config import Settings
from reckon.domain.receipts import Receipt


@pytest.fixture
def recorder(monkeypatch: pytest.MonkeyPatch) -> Console:
    """Wide recording console in place of the shared one."""
    console = Console(record=True, width=200)
    monkeypatch.setattr(common, "console", console)
    return console


class TestRenderReceiptTable:
    """Tests for render_receipt_table."""

    def test_long_vendor_truncated(
        self, make_receipt: Callable[..., Receipt], settings: Settings, recorder: Console
    ) -> None:
        """Should cut vendor names longer than the column width."""
        vendor = "Consolidated International Office Supplies Incorporated"
        table = common.render_receipt_table([make_receipt(vendor=vendor)], "Receipts", settings)
        recorder.print(table)
        output = recorder.export_text()

        assert f"{vendor[: common.VENDOR_WIDTH]}..." in output
        assert vendor not in output

    def test_short_vendor_unchanged(
        self, make_receipt: Callable[..., Receipt], settings: Settings, recorder: Console
    ) -> None:
        """Should show short vendor names in full."""
        recorder.print(common.render_receipt_table([make_receipt()], "Receipts", settings))
        output = recorder.export_text()

        assert "Office Supplies Inc." in output
        assert "Office Supplies Inc...." not in output


class TestRenderReceiptDetail:
    """Tests for render_receipt_detail."""

    def test_attachment_size_shown(
        self, make_receipt: Callable[..., Receipt], settings: Settings, recorder: Console, tmp_path: Path
    ) -> None:
        """Should show the size of an attachment that exists on disk."""
        scan = tmp_path / "scan.pdf"
        scan.write_bytes(b"x" * 1536)

        common.render_receipt_detail(make_receipt(attachment=str(scan)), settings)

        assert f"Attachment: {scan} (1.5 KB)" in recorder.export_text()

    def test_missing_attachment_has_no_size(
        self, make_receipt: Callable[..., Receipt], settings: Settings, recorder: Console, tmp_path: Path
    ) -> None:
        """Should print only the path when the file is gone."""
        missing = tmp_path / "gone.pdf"

        common.render_receipt_detail(make_receipt(attachment=str(missing)), settings)
        output = recorder.export_text()

        assert f"Attachment: {missing}" in output
        assert "KB" not in output
