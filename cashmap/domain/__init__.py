"""Domain models and pure functions for cashmap.

This package contains the functional core:
- Pure functions with no side effects
- No I/O operations
- Easy to test
- Business logic separated from infrastructure
"""

from cashmap.domain.models import (
    Account,
    AllocationRule,
    BudgetDocument,
    Category,
    CategoryId,
    Description,
    IncomeSource,
    Money,
    Month,
    ReportingWindow,
    ScheduledChange,
    Transaction,
    TransactionId,
)

__all__ = [
    "Account",
    "AllocationRule",
    "BudgetDocument",
    "Category",
    "CategoryId",
    "Description",
    "IncomeSource",
    "Money",
    "Month",
    "ReportingWindow",
    "ScheduledChange",
    "Transaction",
    "TransactionId",
]
