"""Domain type definitions for cashmap.

These NewTypes provide semantic clarity and help with type checking:
- Money: Amount in minor units (cents/pence)
- Month: Month in YYYY-MM format
- CategoryId / TransactionId: Opaque uuid strings

Records are immutable. Relationships between them (category membership,
parent/child funding links, transfer peers) are plain id fields so that a
document is a flat, trivially serializable collection.
"""

import calendar
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, NewType

# Money amounts are stored as minor units to avoid floating point errors
Money = NewType("Money", int)

# Month is always in YYYY-MM format (e.g., "2025-01")
Month = NewType("Month", str)

CategoryId = NewType("CategoryId", str)

TransactionId = NewType("TransactionId", str)

# Transaction description text
Description = NewType("Description", str)

CategoryKind = Literal["expense", "income", "investment"]
TransactionType = Literal["income", "expense", "transfer"]
TransferDirection = Literal["in", "out"]
PaymentFrequency = Literal["monthly", "semi-monthly", "weekly"]
AccountType = Literal["checking", "savings", "credit", "cash", "investment"]

INCOME: TransactionType = "income"
EXPENSE: TransactionType = "expense"
TRANSFER: TransactionType = "transfer"

# One minor unit; shares and shortfalls at or below this are noise
EPSILON = Money(1)


def new_id() -> str:
    """Generate a fresh record id."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ScheduledChange:
    """A future change to a category's monthly target."""

    id: str
    date: str
    amount: Money


@dataclass(frozen=True)
class Category:
    """Immutable envelope definition."""

    id: CategoryId
    name: str
    kind: CategoryKind
    monthly_budget: Money
    rollover: Money = Money(0)
    scheduled_changes: tuple[ScheduledChange, ...] = ()
    linked_payment_index: int | None = None
    color: str = "#64748b"
    start_date: str | None = None


@dataclass(frozen=True)
class Transaction:
    """Immutable ledger entry."""

    id: TransactionId
    date: str
    description: Description
    amount: Money
    type: TransactionType
    category_id: CategoryId | None = None
    account_id: str | None = None
    parent_transaction_id: TransactionId | None = None
    transfer_direction: TransferDirection | None = None
    transfer_peer_id: TransactionId | None = None


@dataclass(frozen=True)
class Account:
    """Immutable bank account with its starting equity."""

    id: str
    name: str
    type: AccountType
    initial_balance: Money
    currency: str


@dataclass(frozen=True)
class AllocationRule:
    """Share of the budget funded by one paycheck slot."""

    payment_index: int  # 1-based
    percentage: float
    amount: Money
    name: str | None = None
    note: str | None = None
    is_uncertain: bool = False


@dataclass(frozen=True)
class IncomeSource:
    """Distribution policy for incoming pay."""

    id: str
    name: str
    currency: str
    estimated_amount: Money
    frequency: PaymentFrequency
    allocations: tuple[AllocationRule, ...]
    opening_balance: Money = Money(0)


@dataclass(frozen=True)
class BudgetDocument:
    """Everything that is persisted, replaced wholesale on save."""

    categories: tuple[Category, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    income_sources: tuple[IncomeSource, ...] = ()
    accounts: tuple[Account, ...] = ()
    last_updated: str | None = field(default=None, compare=False)

    @property
    def income_source(self) -> IncomeSource | None:
        """The active income source (the first one), if any."""
        return self.income_sources[0] if self.income_sources else None


@dataclass(frozen=True)
class ReportingWindow:
    """Inclusive date range a balance or report is computed for."""

    start: str
    end: str

    @classmethod
    def for_month(cls, month: Month) -> "ReportingWindow":
        """Build the window covering a whole calendar month.

        Args:
            month: Month in YYYY-MM format.

        Returns:
            Window from the first to the last day of the month.

        Raises:
            ValueError: If month is not a valid YYYY-MM string.
        """
        first = datetime.strptime(month, "%Y-%m")
        last_day = calendar.monthrange(first.year, first.month)[1]
        return cls(start=first.strftime("%Y-%m-01"), end=first.strftime(f"%Y-%m-{last_day:02d}"))

    def contains(self, date: str) -> bool:
        return self.start <= date <= self.end


def find_category(categories: "list[Category] | tuple[Category, ...]", category_id: str | None) -> Category | None:
    """Look up a category by id, tolerating dangling references.

    Args:
        categories: Categories to search.
        category_id: Id to look for (may be None).

    Returns:
        Matching category or None.
    """
    if category_id is None:
        return None
    for category in categories:
        if category.id == category_id:
            return category
    return None
