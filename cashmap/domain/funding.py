"""Pure functions for funding an expense out of other envelopes.

Funding uses a debit + credit pair per source envelope, both children of
the funded expense:
- a negative income entry in the source envelope ("Covering: ...")
- a positive income entry in the expense's own category ("Funded from: ...")

Funding is always replaced wholesale: the existing children of the target
are dropped and the new set is inserted in the same transform. Whatever
the sources don't cover is understood to come from the unallocated pool and
is never stored as its own entry.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

from cashmap.domain.balances import lifetime_balance, unallocated_pool
from cashmap.domain.models import (
    EPSILON,
    EXPENSE,
    INCOME,
    Category,
    CategoryId,
    Description,
    Money,
    Transaction,
    TransactionId,
    find_category,
    new_id,
)

ONE_TIME_CATEGORY_NAME = "Other Expenses (One Time)"
LEGACY_ONE_TIME_CATEGORY_NAME = "Other Expenses"

# Upper bound for "the whole ledger" in lexical date comparisons
_END_OF_TIME = "9999-12-31"

RejectionReason = Literal[
    "invalid_amount",
    "missing_description",
    "uncategorized_target",
    "exceeds_target",
    "insufficient_envelope",
    "insufficient_pool",
]


@dataclass(frozen=True)
class FundingRejection:
    """Structured reason a funding request was refused."""

    reason: RejectionReason
    required: Money
    available: Money
    category_name: str | None = None

    @property
    def message(self) -> str:
        required = f"{self.required / 100:,.2f}"
        available = f"{self.available / 100:,.2f}"
        if self.reason == "invalid_amount":
            return "Amount must be positive"
        if self.reason == "missing_description":
            return "Description is required"
        if self.reason == "uncategorized_target":
            return "Only categorized expenses can be funded from envelopes"
        if self.reason == "exceeds_target":
            return f"Funding exceeds the expense. Requested: {required}, expense: {available}"
        if self.reason == "insufficient_envelope":
            return f"Not enough in {self.category_name}. Requested: {required}, available: {available}"
        return f"Insufficient funds. Needed from pool: {required}, available in pool: {available}"


@dataclass(frozen=True)
class FundingPlan:
    """Result of a re-funding: apply it with apply_funding."""

    updated_target: Transaction
    new_children: list[Transaction]
    ids_to_remove: frozenset[str]

    @property
    def funded_total(self) -> Money:
        return Money(sum(-c.amount for c in self.new_children if c.amount < 0))


@dataclass(frozen=True)
class OneTimeExpensePlan:
    """New catch-all category (if one had to be made), expense and its funding."""

    category: Category
    category_created: bool
    expense: Transaction
    funding: FundingPlan

    @property
    def transactions(self) -> list[Transaction]:
        return [self.expense, *self.funding.new_children]


def _positive_sources(sources: Mapping[CategoryId, Money]) -> dict[CategoryId, Money]:
    return {category_id: amount for category_id, amount in sources.items() if amount > 0}


def existing_funding(target: Transaction, transactions: Iterable[Transaction]) -> dict[CategoryId, Money]:
    """Read back the current funding of a transaction.

    Args:
        target: Funded expense.
        transactions: Full ledger.

    Returns:
        Source category id -> amount taken from it (positive minor units).
    """
    sources: dict[CategoryId, Money] = {}
    for txn in transactions:
        if txn.parent_transaction_id != target.id or txn.type != INCOME:
            continue
        if txn.amount < 0 and txn.category_id:
            sources[txn.category_id] = Money(sources.get(txn.category_id, 0) - txn.amount)
    return sources


def funding_remainder(target: Transaction, transactions: Iterable[Transaction]) -> Money:
    """Part of the target not covered by envelopes (taken from the pool)."""
    funded = sum(existing_funding(target, transactions).values())
    return Money(max(0, target.amount - funded))


def validate_funding(
    target: Transaction,
    sources: Mapping[CategoryId, Money],
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    opening: Money,
    until: str | None = None,
) -> FundingRejection | None:
    """Check a funding request before anything is changed.

    Balances are computed as if the target's current funding had already
    been removed, so re-funding with the same sources is always accepted.

    Args:
        target: Expense to fund.
        sources: Source category id -> amount in minor units.
        transactions: Full ledger.
        categories: All categories.
        opening: Opening balance used for the pool.
        until: Pool cut-off date (whole ledger when None).

    Returns:
        FundingRejection if the request cannot be honoured, else None.
    """
    cats = list(categories)
    requested = _positive_sources(sources)

    if target.category_id is None:
        return FundingRejection(reason="uncategorized_target", required=target.amount, available=Money(0))

    total = Money(sum(requested.values()))
    if total > target.amount + EPSILON:
        return FundingRejection(reason="exceeds_target", required=total, available=target.amount)

    ledger = [t for t in transactions if t.parent_transaction_id != target.id]

    for category_id, amount in requested.items():
        category = find_category(cats, category_id)
        if category is None:
            return FundingRejection(
                reason="insufficient_envelope", required=amount, available=Money(0), category_name=category_id
            )
        balance = lifetime_balance(category, ledger)
        if amount > balance + EPSILON:
            return FundingRejection(
                reason="insufficient_envelope", required=amount, available=balance, category_name=category.name
            )

    from_pool = Money(max(0, target.amount - total))
    pool = unallocated_pool(ledger, cats, opening, until or _END_OF_TIME).available
    if from_pool > pool + EPSILON:
        return FundingRejection(reason="insufficient_pool", required=from_pool, available=pool)

    return None


def refund(
    target: Transaction,
    sources: Mapping[CategoryId, Money],
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> FundingPlan:
    """Build a clean-slate funding configuration for a transaction.

    Run validate_funding first; this function does not check balances.

    Args:
        target: Categorized expense to fund.
        sources: Source category id -> amount; non-positive amounts are ignored.
        transactions: Full ledger.
        categories: All categories (for source names).

    Returns:
        FundingPlan removing every current child of target and adding one
        debit/credit pair per source.

    Raises:
        ValueError: If the target has no category.
    """
    if target.category_id is None:
        raise ValueError("Only categorized expenses can be funded from envelopes")

    cats = list(categories)
    ids_to_remove = frozenset(t.id for t in transactions if t.parent_transaction_id == target.id)

    new_children: list[Transaction] = []
    for category_id, amount in _positive_sources(sources).items():
        source = find_category(cats, category_id)
        source_name = source.name if source else "Unknown"
        new_children.append(
            Transaction(
                id=TransactionId(new_id()),
                date=target.date,
                description=Description(f"Covering: {target.description}"),
                amount=Money(-amount),
                type=INCOME,
                category_id=category_id,
                parent_transaction_id=target.id,
            )
        )
        new_children.append(
            Transaction(
                id=TransactionId(new_id()),
                date=target.date,
                description=Description(f"Funded from: {source_name}"),
                amount=amount,
                type=INCOME,
                category_id=target.category_id,
                parent_transaction_id=target.id,
            )
        )

    return FundingPlan(updated_target=target, new_children=new_children, ids_to_remove=ids_to_remove)


def apply_funding(transactions: Iterable[Transaction], plan: FundingPlan) -> list[Transaction]:
    """Apply a FundingPlan as a single transform of the ledger."""
    kept = [
        plan.updated_target if t.id == plan.updated_target.id else t
        for t in transactions
        if t.id not in plan.ids_to_remove
    ]
    return kept + plan.new_children


def find_one_time_category(categories: Iterable[Category]) -> Category | None:
    names = {ONE_TIME_CATEGORY_NAME.lower(), LEGACY_ONE_TIME_CATEGORY_NAME.lower()}
    return next((c for c in categories if c.name.lower() in names), None)


def create_one_time_expense(
    description: str,
    amount: Money,
    date: str,
    sources: Mapping[CategoryId, Money],
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    opening: Money,
    account_id: str | None = None,
) -> tuple[OneTimeExpensePlan | None, FundingRejection | None]:
    """Record an unbudgeted expense and fund it from envelopes.

    The expense is booked to the catch-all one-time category, created on
    first use. Any part not covered by the sources is taken from the pool.

    Args:
        description: What the expense was for.
        amount: Expense amount in minor units.
        date: ISO date.
        sources: Source category id -> amount in minor units.
        categories: All categories.
        transactions: Full ledger.
        opening: Opening balance used for the pool.
        account_id: Optional account the expense was paid from.

    Returns:
        Tuple of (plan, rejection).
    """
    if amount <= 0:
        return None, FundingRejection(reason="invalid_amount", required=amount, available=Money(0))
    if not description.strip():
        return None, FundingRejection(reason="missing_description", required=amount, available=Money(0))

    cats = list(categories)
    ledger = list(transactions)

    category = find_one_time_category(cats)
    created = category is None
    if category is None:
        category = Category(
            id=CategoryId(new_id()),
            name=ONE_TIME_CATEGORY_NAME,
            kind="expense",
            monthly_budget=Money(0),
            start_date=date,
        )
        cats.append(category)

    requested = _positive_sources(sources)
    source_names = []
    for category_id in requested:
        source = find_category(cats, category_id)
        if source is not None:
            source_names.append(source.name)
    final_description = description.strip()
    if source_names:
        final_description = f"{final_description} (Funded by: {', '.join(source_names)})"

    expense = Transaction(
        id=TransactionId(new_id()),
        date=date,
        description=Description(final_description),
        amount=amount,
        type=EXPENSE,
        category_id=category.id,
        account_id=account_id,
    )

    rejection = validate_funding(expense, requested, ledger, cats, opening)
    if rejection is not None:
        return None, rejection

    funding = refund(expense, requested, ledger, cats)
    return OneTimeExpensePlan(category=category, category_created=created, expense=expense, funding=funding), None
