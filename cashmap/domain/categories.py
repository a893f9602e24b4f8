"""Pure functions for creating and editing envelopes."""

from collections.abc import Iterable
from dataclasses import replace

from cashmap.domain.models import Category, CategoryId, CategoryKind, Money, new_id

CATEGORY_KINDS: tuple[CategoryKind, ...] = ("expense", "income", "investment")


def _name_taken(categories: Iterable[Category], name: str, exclude_id: str | None = None) -> bool:
    lowered = name.strip().lower()
    return any(c.name.lower() == lowered and c.id != exclude_id for c in categories)


def new_category(
    name: str,
    kind: CategoryKind,
    monthly_budget: Money,
    existing: Iterable[Category],
    start_date: str | None = None,
    linked_payment_index: int | None = None,
) -> tuple[Category | None, str | None]:
    """Create an envelope.

    Args:
        name: Display name (unique, case-insensitive).
        kind: "expense", "income" or "investment".
        monthly_budget: Base monthly target in minor units.
        existing: Current categories.
        start_date: Optional ISO date the envelope starts.
        linked_payment_index: Optional payment slot that funds it in full.

    Returns:
        Tuple of (category, error_message).
    """
    if not name.strip():
        return None, "Category name is required"
    if kind not in CATEGORY_KINDS:
        return None, f"Unknown category type: {kind}"
    if monthly_budget < 0:
        return None, "Amount must be positive"
    if _name_taken(existing, name):
        return None, f"Category '{name.strip()}' already exists"
    if linked_payment_index is not None and linked_payment_index < 1:
        return None, "Payment number must be 1 or more"

    category = Category(
        id=CategoryId(new_id()),
        name=name.strip(),
        kind=kind,
        monthly_budget=monthly_budget,
        start_date=start_date,
        linked_payment_index=linked_payment_index,
    )
    return category, None


def rename_category(
    category: Category, name: str, existing: Iterable[Category]
) -> tuple[Category, str | None]:
    if not name.strip():
        return category, "Category name is required"
    if _name_taken(existing, name, exclude_id=category.id):
        return category, f"Category '{name.strip()}' already exists"
    return replace(category, name=name.strip()), None


def set_linked_payment(category: Category, payment_index: int | None) -> tuple[Category, str | None]:
    """Link an envelope to one payment slot, or unlink it with None."""
    if payment_index is not None and payment_index < 1:
        return category, "Payment number must be 1 or more"
    return replace(category, linked_payment_index=payment_index), None


def replace_category(categories: Iterable[Category], updated: Category) -> tuple[Category, ...]:
    return tuple(updated if c.id == updated.id else c for c in categories)


def remove_category(categories: Iterable[Category], category_id: str) -> tuple[Category, ...]:
    """Drop a category; transactions keep their (now dangling) reference."""
    return tuple(c for c in categories if c.id != category_id)
