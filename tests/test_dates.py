"""Tests for cashmap.dates pure functions."""

from datetime import date

import pytest

from cashmap.dates import current_month, month_bounds, month_of, month_range, previous_month
from cashmap.domain.models import Month


class TestMonthRange:
    """Tests for month_range."""

    def test_january_range(self) -> None:
        """Should calculate range for January."""
        since, until, label = month_range(Month("2025-01"))

        assert since == "2025-01-01"
        assert until == "2025-02-01"
        assert label == "January 2025"

    def test_december_range_crosses_year(self) -> None:
        """Should handle December (crosses year boundary)."""
        since, until, label = month_range(Month("2025-12"))

        assert since == "2025-12-01"
        assert until == "2026-01-01"
        assert label == "December 2025"

    def test_february_leap_year(self) -> None:
        """Should handle February in leap year."""
        since, until, label = month_range(Month("2024-02"))

        assert since == "2024-02-01"
        assert until == "2024-03-01"
        assert label == "February 2024"

    def test_invalid_month_number_raises_valueerror(self) -> None:
        """Should raise ValueError for invalid month number."""
        with pytest.raises(ValueError):
            month_range(Month("2025-13"))


class TestMonthBounds:
    """Tests for month_bounds."""

    def test_thirty_day_month(self) -> None:
        """Should end on the 30th."""
        assert month_bounds(Month("2025-04")) == ("2025-04-01", "2025-04-30")

    def test_thirty_one_day_month(self) -> None:
        """Should end on the 31st."""
        assert month_bounds(Month("2025-03")) == ("2025-03-01", "2025-03-31")

    def test_february_non_leap_year(self) -> None:
        """Should end on the 28th in a non-leap year."""
        assert month_bounds(Month("2025-02")) == ("2025-02-01", "2025-02-28")

    def test_february_leap_year(self) -> None:
        """Should end on the 29th in a leap year."""
        assert month_bounds(Month("2024-02")) == ("2024-02-01", "2024-02-29")

    def test_invalid_month_format_raises_valueerror(self) -> None:
        """Should raise ValueError for invalid month format."""
        with pytest.raises(ValueError):
            month_bounds(Month("invalid"))


class TestPreviousMonth:
    """Tests for previous_month."""

    def test_mid_year(self) -> None:
        """Should step back one month."""
        assert previous_month(Month("2025-06")) == "2025-05"

    def test_january_rolls_back_a_year(self) -> None:
        """Should roll January back to December of the previous year."""
        assert previous_month(Month("2025-01")) == "2024-12"


class TestMonthHelpers:
    """Tests for month_of and current_month."""

    def test_month_of_iso_date(self) -> None:
        """Should take the YYYY-MM prefix."""
        assert month_of("2024-04-03") == "2024-04"

    def test_current_month_for_given_day(self) -> None:
        """Should format the given day's month."""
        assert current_month(date(2024, 11, 30)) == "2024-11"
