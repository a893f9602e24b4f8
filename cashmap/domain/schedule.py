"""Pure functions resolving a category's monthly target for a point in time.

A category carries a base monthly target plus a list of dated overrides.
The override with the latest effective date on or before the as-of date
wins outright; overrides are never merged.
"""

from dataclasses import dataclass, replace

from cashmap.domain.models import Category, Money, ScheduledChange, new_id


@dataclass(frozen=True)
class TargetStatus:
    """Resolved target and whether a scheduled change produced it."""

    amount: Money
    is_scheduled: bool
    change_id: str | None = None


def active_change(category: Category, as_of: str) -> ScheduledChange | None:
    """Find the scheduled change in effect on a date.

    Args:
        category: Category whose schedule to inspect.
        as_of: ISO date (YYYY-MM-DD).

    Returns:
        The change with the latest date <= as_of, or None. On equal dates
        the change inserted first wins.
    """
    winner: ScheduledChange | None = None
    for change in category.scheduled_changes:
        if change.date > as_of:
            continue
        if winner is None or change.date > winner.date:
            winner = change
    return winner


def effective_target(category: Category, as_of: str) -> Money:
    """Resolve the effective monthly target of a category.

    Args:
        category: Category to resolve.
        as_of: ISO date (YYYY-MM-DD).

    Returns:
        Target amount in minor units.
    """
    change = active_change(category, as_of)
    if change is None:
        return category.monthly_budget
    return change.amount


def target_status(category: Category, as_of: str) -> TargetStatus:
    """Resolve the target along with where it came from."""
    change = active_change(category, as_of)
    if change is None:
        return TargetStatus(amount=category.monthly_budget, is_scheduled=False)
    return TargetStatus(amount=change.amount, is_scheduled=True, change_id=change.id)


def add_scheduled_change(category: Category, date: str, amount: Money) -> tuple[Category, str | None]:
    """Append a dated target change.

    Args:
        category: Category to update.
        date: Effective date (YYYY-MM-DD).
        amount: New target in minor units.

    Returns:
        Tuple of (updated_category, error_message).
    """
    if amount < 0:
        return category, "Amount must be positive"

    change = ScheduledChange(id=new_id(), date=date, amount=amount)
    return replace(category, scheduled_changes=(*category.scheduled_changes, change)), None


def remove_scheduled_change(category: Category, change_id: str) -> Category:
    """Drop a scheduled change by id (no-op if it is not there)."""
    remaining = tuple(c for c in category.scheduled_changes if c.id != change_id)
    return replace(category, scheduled_changes=remaining)


def upcoming_changes(category: Category, as_of: str) -> list[ScheduledChange]:
    """Scheduled changes that take effect after as_of, soonest first."""
    return sorted((c for c in category.scheduled_changes if c.date > as_of), key=lambda c: c.date)
