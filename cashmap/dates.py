"""Date utilities for cashmap.

Pure functions for date range calculations and formatting.
"""

from datetime import date, datetime, timedelta

from cashmap.domain.models import Month, ReportingWindow


def month_range(month: Month) -> tuple[str, str, str]:
    """Calculate date range and label for a month.

    Args:
        month: Month in YYYY-MM format.

    Returns:
        Tuple of (since_date, until_date, label) where:
        - since_date: First day of month (YYYY-MM-DD)
        - until_date: First day of next month (YYYY-MM-DD)
        - label: Human-readable month (e.g., "January 2025")
    """
    dt = datetime.strptime(month, "%Y-%m")
    since = dt.strftime("%Y-%m-01")
    next_month = (dt.replace(day=28) + timedelta(days=4)).replace(day=1)
    until = next_month.strftime("%Y-%m-%d")
    label = dt.strftime("%B %Y")
    return since, until, label


def month_bounds(month: Month) -> tuple[str, str]:
    """Calculate the inclusive first and last day of a month.

    Args:
        month: Month in YYYY-MM format.

    Returns:
        Tuple of (first_day, last_day) as YYYY-MM-DD strings.

    Raises:
        ValueError: If month is not a valid YYYY-MM string.
    """
    window = ReportingWindow.for_month(month)
    return window.start, window.end


def previous_month(month: Month) -> Month:
    """Return the month before the given one (January rolls back a year)."""
    dt = datetime.strptime(month, "%Y-%m")
    first = dt.replace(day=1) - timedelta(days=1)
    return Month(first.strftime("%Y-%m"))


def month_of(iso_date: str) -> Month:
    """Extract the YYYY-MM month from an ISO date."""
    return Month(iso_date[:7])


def current_month(today: date | None = None) -> Month:
    """Month containing today (or the given date)."""
    today = today or date.today()
    return Month(today.strftime("%Y-%m"))


def today_iso() -> str:
    """Today's date as YYYY-MM-DD."""
    return date.today().isoformat()
