"""Tests for cashmap.domain.models."""

import pytest

from cashmap.domain.models import Month, ReportingWindow


class TestReportingWindow:
    """Tests for ReportingWindow."""

    def test_for_month(self) -> None:
        """Should span the first to the last day of the month."""
        assert ReportingWindow.for_month(Month("2024-02")) == ReportingWindow("2024-02-01", "2024-02-29")
        assert ReportingWindow.for_month(Month("2025-12")) == ReportingWindow("2025-12-01", "2025-12-31")

    def test_for_month_rejects_bad_month(self) -> None:
        """Should raise for a string that isn't YYYY-MM."""
        with pytest.raises(ValueError):
            ReportingWindow.for_month(Month("2025-13"))

    def test_contains_is_inclusive(self) -> None:
        """Should include both ends of the window."""
        window = ReportingWindow.for_month(Month("2025-03"))

        assert window.contains("2025-03-01")
        assert window.contains("2025-03-31")
        assert not window.contains("2025-04-01")
