"""Pure functions for report calculations and aggregations.

This module contains the functional core for reporting operations:
- No I/O operations (no database, no console, no files)
- No side effects
- Pure data transformations
- Easy to test

All monetary amounts are in minor units (Money type).
"""

from collections.abc import Iterable
from dataclasses import dataclass

from cashmap.domain.balances import envelope_balances, is_legacy_system_transaction
from cashmap.domain.models import INCOME, Category, Money, ReportingWindow, Transaction, find_category

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class CategoryReport:
    """Immutable category report data."""

    category: str
    amount: Money
    budget: Money | None = None
    percentage: float | None = None


@dataclass(frozen=True)
class ExpenseReport:
    """Immutable expense report data."""

    categories: list[CategoryReport]
    total: Money
    total_budget: Money


@dataclass(frozen=True)
class IncomeReport:
    """Immutable income report data."""

    categories: list[CategoryReport]
    total: Money


@dataclass(frozen=True)
class FullReport:
    """Immutable full report with expenses, income, and net."""

    expenses: ExpenseReport
    income: IncomeReport
    net: Money


def calculate_budget_percentage(actual: Money, budget: Money) -> float:
    """Calculate percentage of budget used.

    Args:
        actual: Actual amount spent in minor units.
        budget: Budget amount in minor units.

    Returns:
        Percentage of budget used (0-100+).
    """
    if budget <= 0:
        return 0.0
    return (abs(actual) / budget) * 100


def create_category_report(
    category: str,
    amount: Money,
    budget: Money | None = None,
) -> CategoryReport:
    """Create category report with budget comparison.

    Args:
        category: Category name.
        amount: Amount in minor units.
        budget: Optional target in minor units.

    Returns:
        CategoryReport with calculations.
    """
    percentage = None
    if budget is not None and budget > 0:
        percentage = calculate_budget_percentage(amount, budget)

    return CategoryReport(
        category=category,
        amount=amount,
        budget=budget,
        percentage=percentage,
    )


def sort_breakdown(amounts: dict[str, Money], sort_by: str = "value") -> list[tuple[str, Money]]:
    """Sort a breakdown by value (largest first) or alphabetically.

    Args:
        amounts: Category name -> amount.
        sort_by: Sort method - "value" or "alpha".

    Returns:
        Sorted list of (category, amount) tuples.
    """
    if sort_by == "alpha":
        return sorted(amounts.items(), key=lambda x: x[0].lower())
    return sorted(amounts.items(), key=lambda x: x[1], reverse=True)


def spending_breakdown(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    window: ReportingWindow,
) -> tuple[dict[str, Money], dict[str, Money]]:
    """Collect spending and targets for envelopes with activity in a window.

    Args:
        categories: All categories; income categories are skipped.
        transactions: Full ledger.
        window: Reporting window.

    Returns:
        Tuple of (spent_by_name, target_by_name).
    """
    envelopes = [c for c in categories if c.kind != "income"]
    spent: dict[str, Money] = {}
    budgets: dict[str, Money] = {}
    for balance in envelope_balances(envelopes, transactions, window):
        if balance.this_month_spent == 0:
            continue
        spent[balance.category.name] = balance.this_month_spent
        budgets[balance.category.name] = balance.target
    return spent, budgets


def income_breakdown(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    window: ReportingWindow,
) -> dict[str, Money]:
    """Collect real income received in a window, by income category.

    Allocation entries (income into expense envelopes) are not income and are
    left out; uncategorized income is grouped under "Uncategorized".
    """
    cats = list(categories)
    income: dict[str, Money] = {}
    for txn in transactions:
        if txn.type != INCOME or not window.contains(txn.date) or is_legacy_system_transaction(txn):
            continue
        if txn.category_id is None:
            name = UNCATEGORIZED
        else:
            category = find_category(cats, txn.category_id)
            if category is None or category.kind != "income":
                continue
            name = category.name
        income[name] = Money(income.get(name, 0) + txn.amount)
    return income


def create_expense_report(
    expenses: dict[str, Money],
    budgets: dict[str, Money],
    sort_by: str = "value",
) -> ExpenseReport:
    """Create expense report with budget comparisons.

    Args:
        expenses: Category name -> amount spent.
        budgets: Category name -> target.
        sort_by: Sort method - "value" or "alpha".

    Returns:
        ExpenseReport with sorted categories and totals.
    """
    categories = [create_category_report(cat, amt, budgets.get(cat)) for cat, amt in sort_breakdown(expenses, sort_by)]

    total = Money(sum(expenses.values()))
    total_budget = Money(sum(budgets.get(cat, Money(0)) for cat in expenses.keys()))

    return ExpenseReport(
        categories=categories,
        total=total,
        total_budget=total_budget,
    )


def create_income_report(
    income: dict[str, Money],
    sort_by: str = "value",
) -> IncomeReport:
    categories = [create_category_report(cat, amt) for cat, amt in sort_breakdown(income, sort_by)]
    return IncomeReport(categories=categories, total=Money(sum(income.values())))


def create_full_report(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    window: ReportingWindow,
    sort_by: str = "value",
) -> FullReport:
    """Create full report with expenses, income, and net.

    Args:
        categories: All categories.
        transactions: Full ledger.
        window: Reporting window.
        sort_by: Sort method - "value" or "alpha".

    Returns:
        FullReport with all calculations.
    """
    cats = list(categories)
    ledger = list(transactions)

    spent, budgets = spending_breakdown(cats, ledger, window)
    expense_report = create_expense_report(spent, budgets, sort_by)
    income_report = create_income_report(income_breakdown(cats, ledger, window), sort_by)

    return FullReport(
        expenses=expense_report,
        income=income_report,
        net=Money(income_report.total - expense_report.total),
    )


def calculate_histogram_bar_length(
    amount: Money,
    max_amount: Money,
    bar_width: int,
) -> int:
    """Calculate histogram bar length.

    Args:
        amount: Amount to display.
        max_amount: Maximum amount in dataset.
        bar_width: Maximum bar width in characters.

    Returns:
        Bar length in characters.
    """
    if max_amount <= 0:
        return 0
    return int((abs(amount) / max_amount) * bar_width)
