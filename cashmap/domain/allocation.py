"""Pure functions for distributing the unallocated pool into envelopes.

This module contains the functional core for allocation:
- No I/O operations (no database, no console, no files)
- No side effects; callers append the returned transactions themselves
- Percentages are used as configured, even when they do not sum to 100

All monetary amounts are in minor units (Money type).
"""

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from cashmap.dates import month_bounds, previous_month
from cashmap.domain.balances import PeriodFunding, is_legacy_system_transaction
from cashmap.domain.models import (
    EPSILON,
    INCOME,
    AllocationRule,
    Category,
    CategoryId,
    Description,
    IncomeSource,
    Money,
    Month,
    ReportingWindow,
    Transaction,
    TransactionId,
    find_category,
    new_id,
)
from cashmap.domain.schedule import effective_target

AllocationMode = Literal["current", "previous"]

# Unfunded targets smaller than this don't trigger a gap-fill suggestion
GAP_FILL_THRESHOLD = Money(100)

# Absorbs float noise before flooring a share to whole minor units
_FLOOR_NUDGE = 1e-6

# Payment number at the end of an allocation description
_PAYMENT_TAG = re.compile(r"[Pp]ayment (\d+)\)$")


@dataclass(frozen=True)
class DistributionPlan:
    """Immutable result of a distribution run."""

    transactions: list[Transaction]
    pool: Money
    potential_total: Money
    ratio: float

    @property
    def scaled(self) -> bool:
        return self.ratio < 1.0

    @property
    def total(self) -> Money:
        return Money(sum(t.amount for t in self.transactions))

    @property
    def surplus(self) -> Money:
        return Money(self.pool - self.total)


def format_percentage(percentage: float) -> str:
    return f"{percentage:g}"


def is_linked(category: Category) -> bool:
    return category.linked_payment_index is not None and category.linked_payment_index > 0


def allocation_multiplier(category: Category, rule: AllocationRule) -> float:
    """Fraction of a category's target a rule funds.

    Args:
        category: Target envelope.
        rule: Allocation rule being run.

    Returns:
        1.0 or 0.0 for categories linked to a payment slot, otherwise the
        rule's percentage as a fraction.
    """
    if is_linked(category):
        return 1.0 if category.linked_payment_index == rule.payment_index else 0.0
    return rule.percentage / 100


def _floor_share(value: float) -> Money:
    return Money(math.floor(value + _FLOOR_NUDGE))


def _allocation_description(category: Category, rule: AllocationRule, manual: bool) -> str:
    if is_linked(category):
        return f"Allocated: {category.name} (100% via Linked Payment {rule.payment_index})"
    pct = format_percentage(rule.percentage)
    if manual:
        return f"Manual Allocation: {category.name} ({pct}%, payment {rule.payment_index})"
    return f"Allocated: {category.name} ({pct}%, payment {rule.payment_index})"


def distribute(
    pool: Money,
    rule: AllocationRule,
    categories: Iterable[Category],
    as_of: str,
    parent_transaction_id: TransactionId | None = None,
    manual: bool = False,
) -> tuple[DistributionPlan | None, str | None]:
    """Distribute a pool across envelopes according to an allocation rule.

    Each category's share is its effective target times its multiplier.
    If the shares add up to more than the pool they are all scaled down by
    the same ratio; otherwise they are used as-is and the surplus stays in
    the pool.

    Args:
        pool: Money available to distribute in minor units.
        rule: Allocation rule (payment slot) being run.
        categories: Envelopes to fund.
        as_of: Date of the allocation entries; also used to resolve targets.
        parent_transaction_id: Income transaction that funded this run, if any.
        manual: Whether the pool was entered by hand rather than taken from income.

    Returns:
        Tuple of (plan, error_message).
    """
    if pool <= 0:
        return None, "No funds available to distribute"

    shares: list[tuple[Category, float]] = []
    for category in categories:
        multiplier = allocation_multiplier(category, rule)
        shares.append((category, effective_target(category, as_of) * multiplier))

    potential_total = sum(share for _, share in shares)
    ratio = pool / potential_total if potential_total > pool else 1.0

    transactions: list[Transaction] = []
    for category, share in shares:
        amount = _floor_share(share * ratio)
        if amount <= EPSILON:
            continue
        transactions.append(
            Transaction(
                id=TransactionId(new_id()),
                date=as_of,
                description=Description(_allocation_description(category, rule, manual)),
                amount=amount,
                type=INCOME,
                category_id=category.id,
                parent_transaction_id=parent_transaction_id,
            )
        )

    plan = DistributionPlan(
        transactions=transactions,
        pool=pool,
        potential_total=Money(round(potential_total)),
        ratio=ratio,
    )
    return plan, None


def allocated_in_window(category: Category, transactions: Iterable[Transaction], window: ReportingWindow) -> Money:
    """Sum of income moved into an envelope during a window."""
    return Money(
        sum(t.amount for t in transactions if t.category_id == category.id and t.type == INCOME and window.contains(t.date))
    )


def gap_fill(
    pool: Money,
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    window: ReportingWindow,
) -> tuple[DistributionPlan | None, str | None]:
    """Top up envelopes that were under-funded in a past period.

    Every category is treated the same way: its deficit is its target at the
    end of the window minus what it was allocated during the window.
    Deficits are filled in full, or scaled down together if the pool is short.

    Args:
        pool: Money available in minor units.
        categories: Envelopes to consider.
        transactions: Full ledger.
        window: Period being filled; entries are dated on its last day.

    Returns:
        Tuple of (plan, error_message).
    """
    if pool <= 0:
        return None, "No funds available to distribute"

    ledger = list(transactions)
    deficits: list[tuple[Category, Money]] = []
    for category in categories:
        target = effective_target(category, window.end)
        deficit = target - allocated_in_window(category, ledger, window)
        if deficit > 0:
            deficits.append((category, Money(deficit)))

    total_deficit = sum(deficit for _, deficit in deficits)
    if total_deficit == 0:
        return None, "Period is already fully funded"

    ratio = min(1.0, pool / total_deficit)

    new_transactions: list[Transaction] = []
    for category, deficit in deficits:
        amount = _floor_share(deficit * ratio)
        if amount <= EPSILON:
            continue
        new_transactions.append(
            Transaction(
                id=TransactionId(new_id()),
                date=window.end,
                description=Description(f"Gap Fill: {category.name}"),
                amount=amount,
                type=INCOME,
                category_id=CategoryId(category.id),
            )
        )

    plan = DistributionPlan(
        transactions=new_transactions,
        pool=pool,
        potential_total=Money(total_deficit),
        ratio=ratio,
    )
    return plan, None


def rule_already_allocated(rule: AllocationRule, transactions: Iterable[Transaction], month: Month) -> bool:
    """Check whether a rule appears to have been run already this month.

    Args:
        rule: Allocation rule.
        transactions: Full ledger.
        month: Month in YYYY-MM format.

    Returns:
        True if an "Allocated:" entry for the rule's payment exists. Entries
        written without a payment number match on the percentage alone.
    """
    legacy_tag = f"({format_percentage(rule.percentage)}%)"
    for t in transactions:
        if t.type != INCOME or not t.date.startswith(month) or not t.description.startswith("Allocated:"):
            continue
        match = _PAYMENT_TAG.search(t.description)
        if match:
            if int(match.group(1)) == rule.payment_index:
                return True
        elif legacy_tag in t.description:
            return True
    return False


def next_unallocated_rule(
    source: IncomeSource, transactions: Iterable[Transaction], month: Month
) -> AllocationRule | None:
    """First rule of the income source not yet run this month, if any."""
    ledger = list(transactions)
    for rule in source.allocations:
        if not rule_already_allocated(rule, ledger, month):
            return rule
    return None


def has_linked_allocations(transactions: Iterable[Transaction], parent_id: str) -> bool:
    """Check whether an income transaction already funded some envelopes."""
    return any(t.parent_transaction_id == parent_id for t in transactions)


def income_candidates(
    transactions: Iterable[Transaction], categories: Iterable[Category], month: Month
) -> list[Transaction]:
    """This month's paychecks that a distribution run can be linked to.

    Args:
        transactions: Full ledger.
        categories: All categories.
        month: Month in YYYY-MM format.

    Returns:
        Income transactions tagged to an income category, newest first.
    """
    cats = list(categories)
    candidates = []
    for txn in transactions:
        if txn.type != INCOME or is_legacy_system_transaction(txn) or not txn.date.startswith(month):
            continue
        category = find_category(cats, txn.category_id)
        if category is not None and category.kind == "income":
            candidates.append(txn)
    return sorted(candidates, key=lambda t: t.date, reverse=True)


def suggest_mode(pool_before: Money, funding: PeriodFunding, month: Month) -> AllocationMode:
    """Recommend gap-filling last month when old money and an old gap both exist.

    Args:
        pool_before: Unallocated funds that predate the month.
        funding: Funding state of the previous month.
        month: Month being viewed (YYYY-MM); January never suggests gap-fill.

    Returns:
        "previous" or "current".
    """
    if month.endswith("-01"):
        return "current"
    if pool_before > 0 and funding.gap > GAP_FILL_THRESHOLD:
        return "previous"
    return "current"


def allocation_date(today: str, month: Month, mode: AllocationMode = "current") -> str:
    """Date to stamp allocation entries with.

    Args:
        today: Today's ISO date.
        month: Month being allocated (YYYY-MM).
        mode: "current" or "previous".

    Returns:
        Last day of the previous month in gap-fill mode; otherwise today when
        today falls inside the month, else the month's first day.
    """
    if mode == "previous":
        return month_bounds(previous_month(month))[1]
    if today.startswith(month):
        return today
    return f"{month}-01"


def top_up(
    category: Category, amount: Money, date: str, available: Money
) -> tuple[Transaction | None, str | None]:
    """Move money from the pool straight into one envelope.

    Args:
        category: Envelope to top up.
        amount: Amount in minor units.
        date: ISO date of the entry.
        available: Current unallocated pool.

    Returns:
        Tuple of (transaction, error_message).
    """
    if amount <= 0:
        return None, "Amount must be positive"

    if amount > available:
        return None, f"Not enough unallocated funds. Available: {available / 100:,.2f}"

    txn = Transaction(
        id=TransactionId(new_id()),
        date=date,
        description=Description(f"Manual Top-up: {category.name}"),
        amount=amount,
        type=INCOME,
        category_id=category.id,
    )
    return txn, None
