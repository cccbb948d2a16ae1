"""Tests for reckon.dates pure functions."""

from datetime import date

import pytest

from reckon.dates import format_date, month_of, month_range, parse_date, previous_month
from reckon.domain.models import Month


class TestParseDate:
    """Tests for parse_date."""

    def test_iso_date(self) -> None:
        """Should parse YYYY-MM-DD."""
        assert parse_date("2023-04-15") == date(2023, 4, 15)

    def test_day_first(self) -> None:
        """Should read ambiguous slashed dates day first."""
        assert parse_date("03/04/2023") == date(2023, 4, 3)

    def test_long_form(self) -> None:
        """Should parse written-out month names."""
        assert parse_date("April 15, 2023") == date(2023, 4, 15)

    def test_strips_whitespace(self) -> None:
        """Should ignore surrounding whitespace."""
        assert parse_date("  2023-04-15 ") == date(2023, 4, 15)

    @pytest.mark.parametrize("raw", ["", "   ", "not a date", "2023-13-45"])
    def test_invalid_raises_valueerror(self, raw: str) -> None:
        """Should raise ValueError for unparseable input."""
        with pytest.raises(ValueError):
            parse_date(raw)


class TestFormatting:
    """Tests for format_date and month helpers."""

    def test_format_date(self) -> None:
        """Should use the long display form."""
        assert format_date(date(2023, 4, 5)) == "April 5, 2023"

    def test_month_of(self) -> None:
        """Should return YYYY-MM."""
        assert month_of(date(2023, 4, 15)) == "2023-04"

    def test_previous_month(self) -> None:
        """Should step back one month."""
        assert previous_month(Month("2023-04")) == "2023-03"

    def test_previous_month_crosses_year(self) -> None:
        """Should handle January."""
        assert previous_month(Month("2024-01")) == "2023-12"


class TestMonthRange:
    """Tests for month_range."""

    def test_january_range(self) -> None:
        """Should calculate range for January."""
        first_day, last_day, label = month_range(Month("2025-01"))

        assert first_day == date(2025, 1, 1)
        assert last_day == date(2025, 1, 31)
        assert label == "January 2025"

    def test_december_range_stays_in_year(self) -> None:
        """Should end December on the 31st of the same year."""
        first_day, last_day, label = month_range(Month("2025-12"))

        assert first_day == date(2025, 12, 1)
        assert last_day == date(2025, 12, 31)
        assert label == "December 2025"

    def test_february_non_leap_year(self) -> None:
        """Should handle February in non-leap year."""
        _, last_day, _ = month_range(Month("2025-02"))
        assert last_day == date(2025, 2, 28)

    def test_february_leap_year(self) -> None:
        """Should handle February in leap year."""
        _, last_day, _ = month_range(Month("2024-02"))
        assert last_day == date(2024, 2, 29)

    def test_thirty_day_month(self) -> None:
        """Should handle 30-day months."""
        first_day, last_day, label = month_range(Month("2025-04"))

        assert first_day == date(2025, 4, 1)
        assert last_day == date(2025, 4, 30)
        assert label == "April 2025"

    def test_invalid_month_format_raises_valueerror(self) -> None:
        """Should raise ValueError for invalid month format."""
        with pytest.raises(ValueError):
            month_range(Month("invalid"))

    def test_invalid_month_number_raises_valueerror(self) -> None:
        """Should raise ValueError for invalid month number."""
        with pytest.raises(ValueError):
            month_range(Month("2025-13"))
