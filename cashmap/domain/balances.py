"""Pure functions for envelope balances and the unallocated pool.

This module contains the functional core for balance calculations:
- No I/O operations (no database, no console, no files)
- No cached state; every figure is recomputed from the ledger
- Reporting periods are passed in explicitly as a ReportingWindow

All monetary amounts are in minor units (Money type).
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from cashmap.domain.models import (
    EXPENSE,
    INCOME,
    TRANSFER,
    Account,
    BudgetDocument,
    Category,
    Money,
    ReportingWindow,
    Transaction,
    find_category,
)
from cashmap.domain.schedule import effective_target

# Descriptions written by older distribution flows; they are bookkeeping
# markers, not real income, and must never count toward the pool.
LEGACY_SYSTEM_DESCRIPTIONS = frozenset(
    {
        "Funds Distributed to Envelopes",
        "Unallocated Remainder",
        "Filled Envelopes",
    }
)

SYSTEM_CATEGORY_NAMES = frozenset({"other expenses (one time)", "other expenses", "transfers"})


@dataclass(frozen=True)
class CategoryBalance:
    """Immutable balance of one envelope for a reporting window."""

    category: Category
    carried_over: Money
    this_month_income: Money
    this_month_spent: Money
    total_available: Money
    remaining: Money
    target: Money


@dataclass(frozen=True)
class PoolSummary:
    """Immutable breakdown of the unallocated pool."""

    opening: Money
    gross_income: Money
    allocated: Money
    uncategorized_spent: Money
    available: Money


@dataclass(frozen=True)
class PeriodFunding:
    """How much of a period's expense targets has been funded."""

    target: Money
    allocated: Money
    gap: Money


@dataclass(frozen=True)
class AccountBalance:
    """Immutable current balance of an account."""

    account: Account
    balance: Money


def is_legacy_system_transaction(txn: Transaction) -> bool:
    return txn.description in LEGACY_SYSTEM_DESCRIPTIONS


def is_system_category(category: Category) -> bool:
    """Check whether a category is one of the built-in catch-all envelopes."""
    return category.name.lower() in SYSTEM_CATEGORY_NAMES


def _sum_amounts(transactions: Iterable[Transaction]) -> Money:
    return Money(sum(t.amount for t in transactions))


def category_balance(
    category: Category,
    transactions: Iterable[Transaction],
    window: ReportingWindow,
) -> CategoryBalance:
    """Compute an envelope's balance for a reporting window.

    Args:
        category: Envelope to compute.
        transactions: Full ledger.
        window: Inclusive reporting window.

    Returns:
        CategoryBalance with carried over, activity, and remaining amounts.
        Zero-target categories are computed the same way as any other.
    """
    own = [t for t in transactions if t.category_id == category.id]

    prev_income = _sum_amounts(t for t in own if t.type == INCOME and t.date < window.start)
    prev_spent = _sum_amounts(t for t in own if t.type == EXPENSE and t.date < window.start)
    carried_over = Money(category.rollover + prev_income - prev_spent)

    this_month_income = _sum_amounts(t for t in own if t.type == INCOME and window.contains(t.date))
    this_month_spent = _sum_amounts(t for t in own if t.type == EXPENSE and window.contains(t.date))

    total_available = Money(carried_over + this_month_income)
    remaining = Money(total_available - this_month_spent)

    return CategoryBalance(
        category=category,
        carried_over=carried_over,
        this_month_income=this_month_income,
        this_month_spent=this_month_spent,
        total_available=total_available,
        remaining=remaining,
        target=effective_target(category, window.end),
    )


def lifetime_balance(category: Category, transactions: Iterable[Transaction]) -> Money:
    """Compute an envelope's balance over the whole ledger.

    Args:
        category: Envelope to compute.
        transactions: Full ledger.

    Returns:
        Rollover plus all income minus all expenses in minor units.
    """
    income = 0
    spent = 0
    for txn in transactions:
        if txn.category_id != category.id:
            continue
        if txn.type == INCOME:
            income += txn.amount
        elif txn.type == EXPENSE:
            spent += txn.amount
    return Money(category.rollover + income - spent)


def envelope_balances(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    window: ReportingWindow,
) -> list[CategoryBalance]:
    """Compute balances for several envelopes.

    Args:
        categories: Envelopes to compute.
        transactions: Full ledger.
        window: Inclusive reporting window.

    Returns:
        Balances sorted alphabetically, with built-in catch-all envelopes last.
    """
    ledger = list(transactions)
    ordered = sorted(categories, key=lambda c: (is_system_category(c), c.name.lower()))
    return [category_balance(category, ledger, window) for category in ordered]


def opening_balance(document: BudgetDocument) -> Money:
    """Starting equity: account initial balances plus the income source's opening balance."""
    accounts_total = sum(a.initial_balance for a in document.accounts)
    source = document.income_source
    source_opening = source.opening_balance if source else 0
    return Money(accounts_total + source_opening)


def _counts_as_gross_income(txn: Transaction, categories: list[Category]) -> bool:
    if txn.type != INCOME or is_legacy_system_transaction(txn):
        return False
    if txn.category_id is None:
        return True
    category = find_category(categories, txn.category_id)
    return category is not None and category.kind == "income"


def _counts_as_allocated(txn: Transaction, categories: list[Category]) -> bool:
    if txn.type != INCOME or txn.category_id is None:
        return False
    category = find_category(categories, txn.category_id)
    return category is not None and category.kind in ("expense", "investment")


def _pool(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    opening: Money,
    in_range: Callable[[str], bool],
) -> PoolSummary:
    cats = list(categories)
    scoped = [t for t in transactions if in_range(t.date)]

    gross = _sum_amounts(t for t in scoped if _counts_as_gross_income(t, cats))
    allocated = _sum_amounts(t for t in scoped if _counts_as_allocated(t, cats))
    uncategorized = _sum_amounts(t for t in scoped if t.type == EXPENSE and t.category_id is None)

    return PoolSummary(
        opening=opening,
        gross_income=gross,
        allocated=allocated,
        uncategorized_spent=uncategorized,
        available=Money(opening + gross - allocated - uncategorized),
    )


def unallocated_pool(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    opening: Money,
    until: str,
) -> PoolSummary:
    """Compute the money not yet assigned to any envelope.

    Args:
        transactions: Full ledger.
        categories: All categories (dangling references are ignored).
        opening: Opening balance in minor units.
        until: Only transactions dated on or before this ISO date count.

    Returns:
        PoolSummary with the available amount and its components.
    """
    return _pool(transactions, categories, opening, lambda d: d <= until)


def unallocated_before(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    opening: Money,
    start: str,
) -> PoolSummary:
    """Compute the pool as it stood before a date (funds carried into a period)."""
    return _pool(transactions, categories, opening, lambda d: d < start)


def period_funding(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    window: ReportingWindow,
) -> PeriodFunding:
    """Compare expense targets against the allocations made in a period.

    Args:
        categories: All categories; only expense envelopes are considered.
        transactions: Full ledger.
        window: Period to inspect.

    Returns:
        PeriodFunding with target, allocated and the gap between them.
    """
    expense_cats = [c for c in categories if c.kind == "expense"]
    expense_ids = {c.id for c in expense_cats}

    target = Money(sum(effective_target(c, window.end) for c in expense_cats))
    allocated = _sum_amounts(
        t for t in transactions if t.type == INCOME and t.category_id in expense_ids and window.contains(t.date)
    )
    return PeriodFunding(target=target, allocated=allocated, gap=Money(target - allocated))


def account_balances(accounts: Iterable[Account], transactions: Iterable[Transaction]) -> list[AccountBalance]:
    """Compute each account's current balance.

    Args:
        accounts: Accounts to compute.
        transactions: Full ledger.

    Returns:
        List of AccountBalance in the same order as accounts.
    """
    ledger = list(transactions)
    balances: list[AccountBalance] = []

    for account in accounts:
        total = account.initial_balance
        for txn in ledger:
            if txn.account_id != account.id:
                continue
            if txn.type == INCOME:
                total += txn.amount
            elif txn.type == EXPENSE:
                total -= txn.amount
            elif txn.type == TRANSFER and txn.transfer_direction == "in":
                total += txn.amount
            elif txn.type == TRANSFER and txn.transfer_direction == "out":
                total -= txn.amount
        balances.append(AccountBalance(account=account, balance=Money(total)))

    return balances
