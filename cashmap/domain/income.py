"""Pure functions for configuring an income source and its payment slots.

Each payment slot is an AllocationRule. Percentages are rebalanced when
slots are added, removed or edited, but a total other than 100 is reported,
never corrected.
"""

import math
from collections.abc import Sequence
from dataclasses import replace

from cashmap.domain.models import AllocationRule, IncomeSource, Money, PaymentFrequency

SLOTS_PER_FREQUENCY: dict[str, int] = {
    "monthly": 1,
    "semi-monthly": 2,
    "weekly": 4,
}


def slot_count(frequency: PaymentFrequency) -> int:
    return SLOTS_PER_FREQUENCY.get(frequency, 1)


def even_percentages(rules: Sequence[AllocationRule]) -> list[AllocationRule]:
    """Split 100% evenly; the last slot takes the rounding remainder.

    Args:
        rules: Current slots.

    Returns:
        New rules with whole-number percentages summing to 100.
    """
    count = len(rules)
    if count == 0:
        return []
    share = 100 // count
    remainder = 100 - share * count
    return [
        replace(rule, percentage=float(share + remainder if i == count - 1 else share))
        for i, rule in enumerate(rules)
    ]


def recalculate_amounts(total: Money, rules: Sequence[AllocationRule]) -> list[AllocationRule]:
    """Set each slot's expected amount from the monthly total."""
    return [replace(rule, amount=Money(round(total * rule.percentage / 100))) for rule in rules]


def _renumber(rules: Sequence[AllocationRule]) -> list[AllocationRule]:
    return [replace(rule, payment_index=i + 1) for i, rule in enumerate(rules)]


def reset_for_frequency(source: IncomeSource, frequency: PaymentFrequency) -> IncomeSource:
    """Replace the slots with a fresh, evenly split set for a pay frequency.

    Args:
        source: Income source.
        frequency: New pay frequency.

    Returns:
        Updated income source.
    """
    rules = [
        AllocationRule(payment_index=i + 1, percentage=0.0, amount=Money(0), name=f"Paycheck {i + 1}")
        for i in range(slot_count(frequency))
    ]
    balanced = recalculate_amounts(source.estimated_amount, even_percentages(rules))
    return replace(source, frequency=frequency, allocations=tuple(balanced))


def add_payment(source: IncomeSource) -> IncomeSource:
    index = len(source.allocations) + 1
    rule = AllocationRule(payment_index=index, percentage=0.0, amount=Money(0), name=f"Paycheck #{index}")
    balanced = even_percentages([*source.allocations, rule])
    return replace(source, allocations=tuple(recalculate_amounts(source.estimated_amount, balanced)))


def remove_payment(source: IncomeSource, position: int) -> tuple[IncomeSource, str | None]:
    """Remove a slot by list position and rebalance the rest.

    Args:
        source: Income source.
        position: Zero-based position in source.allocations.

    Returns:
        Tuple of (updated_source, error_message).
    """
    if len(source.allocations) <= 1:
        return source, "An income source needs at least one payment"
    if not 0 <= position < len(source.allocations):
        return source, f"No payment at position {position + 1}"

    remaining = [rule for i, rule in enumerate(source.allocations) if i != position]
    balanced = even_percentages(_renumber(remaining))
    return replace(source, allocations=tuple(recalculate_amounts(source.estimated_amount, balanced))), None


def set_percentage(source: IncomeSource, payment_index: int, value: float) -> IncomeSource:
    """Set one slot's percentage and rebalance the others to fill 100.

    Others keep their relative weights (floored); the last one absorbs the
    remainder. If the others are all zero they split the remainder evenly.

    Args:
        source: Income source.
        payment_index: Slot to change.
        value: New percentage, clamped to 0..100.

    Returns:
        Updated income source (unchanged if there is only one slot or the
        slot does not exist).
    """
    value = min(100.0, max(0.0, value))
    rules = list(source.allocations)
    if len(rules) <= 1 or not any(r.payment_index == payment_index for r in rules):
        return source

    target_remainder = 100 - value
    others = [r for r in rules if r.payment_index != payment_index]
    others_sum = sum(r.percentage for r in others)

    new_percentages: dict[int, float] = {payment_index: value}
    if others_sum == 0:
        share = math.floor(target_remainder / len(others))
        remainder = target_remainder - share * len(others)
        for i, rule in enumerate(others):
            new_percentages[rule.payment_index] = share + remainder if i == len(others) - 1 else share
    else:
        assigned = 0.0
        for i, rule in enumerate(others):
            if i == len(others) - 1:
                new_percentages[rule.payment_index] = target_remainder - assigned
            else:
                pct = math.floor(target_remainder * rule.percentage / others_sum)
                new_percentages[rule.payment_index] = pct
                assigned += pct

    updated = [replace(r, percentage=float(new_percentages[r.payment_index])) for r in rules]
    return replace(source, allocations=tuple(recalculate_amounts(source.estimated_amount, updated)))


def set_estimated_amount(source: IncomeSource, total: Money) -> IncomeSource:
    return replace(
        source,
        estimated_amount=total,
        allocations=tuple(recalculate_amounts(total, source.allocations)),
    )


def percentage_total(rules: Sequence[AllocationRule]) -> float:
    return sum(r.percentage for r in rules)


def percentage_deviation(rules: Sequence[AllocationRule]) -> float:
    """How far the slot percentages are from 100 (positive means over)."""
    return percentage_total(rules) - 100


def default_income_source(source_id: str, currency: str = "USD") -> IncomeSource:
    """Income source used when none is configured yet."""
    return IncomeSource(
        id=source_id,
        name="Main Budget",
        currency=currency,
        estimated_amount=Money(0),
        frequency="monthly",
        allocations=(AllocationRule(payment_index=1, percentage=100.0, amount=Money(0), name="Salary 1"),),
    )
