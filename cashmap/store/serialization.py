"""Conversion between the persisted JSON document and domain records.

The document keeps the field names and major-unit amounts of existing
cashmap_data.json backups; domain records use minor units.
"""

from typing import Any

from cashmap.domain.models import (
    Account,
    AllocationRule,
    BudgetDocument,
    Category,
    CategoryId,
    Description,
    IncomeSource,
    Money,
    ScheduledChange,
    Transaction,
    TransactionId,
)

_TYPE_TO_JSON = {"income": "INCOME", "expense": "EXPENSE", "transfer": "TRANSFER"}
_TYPE_FROM_JSON = {value: key for key, value in _TYPE_TO_JSON.items()}


def to_minor(value: Any) -> Money:
    """Convert a major-unit JSON number to minor units."""
    if value is None or value == "":
        return Money(0)
    return Money(round(float(value) * 100))


def to_major(amount: Money) -> float | int:
    """Convert minor units to a JSON number (int when whole)."""
    if amount % 100 == 0:
        return amount // 100
    return amount / 100


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def category_from_json(data: dict[str, Any]) -> Category:
    changes = tuple(
        ScheduledChange(id=c["id"], date=c["date"], amount=to_minor(c.get("amount")))
        for c in data.get("scheduledChanges") or []
    )
    linked = data.get("linkedPaymentIndex")
    return Category(
        id=CategoryId(data["id"]),
        name=data.get("name", ""),
        kind=data.get("type", "expense"),
        monthly_budget=to_minor(data.get("monthlyBudget")),
        rollover=to_minor(data.get("rollover")),
        scheduled_changes=changes,
        linked_payment_index=int(linked) if linked else None,
        color=data.get("color") or "#64748b",
        start_date=data.get("startDate"),
    )


def category_to_json(category: Category) -> dict[str, Any]:
    return _drop_none(
        {
            "id": category.id,
            "name": category.name,
            "type": category.kind,
            "monthlyBudget": to_major(category.monthly_budget),
            "rollover": to_major(category.rollover),
            "allocationRule": 0,
            "color": category.color,
            "startDate": category.start_date,
            "scheduledChanges": [
                {"id": c.id, "date": c.date, "amount": to_major(c.amount)} for c in category.scheduled_changes
            ],
            "linkedPaymentIndex": category.linked_payment_index,
        }
    )


def transaction_from_json(data: dict[str, Any]) -> Transaction:
    raw_type = str(data.get("type", "EXPENSE")).upper()
    return Transaction(
        id=TransactionId(data["id"]),
        date=data["date"],
        description=Description(data.get("description", "")),
        amount=to_minor(data.get("amount")),
        type=_TYPE_FROM_JSON.get(raw_type, "expense"),
        category_id=data.get("categoryId") or None,
        account_id=data.get("accountId") or None,
        parent_transaction_id=data.get("parentTransactionId") or None,
        transfer_direction=data.get("transferDirection") or None,
        transfer_peer_id=data.get("transferPeerId") or None,
    )


def transaction_to_json(txn: Transaction) -> dict[str, Any]:
    return _drop_none(
        {
            "id": txn.id,
            "date": txn.date,
            "amount": to_major(txn.amount),
            "description": txn.description,
            "categoryId": txn.category_id,
            "accountId": txn.account_id,
            "type": _TYPE_TO_JSON[txn.type],
            "parentTransactionId": txn.parent_transaction_id,
            "transferDirection": txn.transfer_direction,
            "transferPeerId": txn.transfer_peer_id,
        }
    )


def account_from_json(data: dict[str, Any]) -> Account:
    return Account(
        id=data["id"],
        name=data.get("name", ""),
        type=data.get("type", "checking"),
        initial_balance=to_minor(data.get("initialBalance")),
        currency=data.get("currency", "USD"),
    )


def account_to_json(account: Account) -> dict[str, Any]:
    return {
        "id": account.id,
        "name": account.name,
        "type": account.type,
        "initialBalance": to_major(account.initial_balance),
        "currency": account.currency,
    }


def rule_from_json(data: dict[str, Any]) -> AllocationRule:
    return AllocationRule(
        payment_index=int(data.get("paymentIndex", 1)),
        percentage=float(data.get("percentage", 0)),
        amount=to_minor(data.get("amount")),
        name=data.get("name"),
        note=data.get("note"),
        is_uncertain=bool(data.get("isUncertain", False)),
    )


def rule_to_json(rule: AllocationRule) -> dict[str, Any]:
    return _drop_none(
        {
            "paymentIndex": rule.payment_index,
            "percentage": rule.percentage,
            "amount": to_major(rule.amount),
            "name": rule.name,
            "note": rule.note,
            "isUncertain": rule.is_uncertain,
        }
    )


def income_source_from_json(data: dict[str, Any]) -> IncomeSource:
    return IncomeSource(
        id=data["id"],
        name=data.get("name", "Main Budget"),
        currency=data.get("currency", "USD"),
        estimated_amount=to_minor(data.get("estimatedAmount")),
        frequency=data.get("frequency", "monthly"),
        allocations=tuple(rule_from_json(r) for r in data.get("allocations") or []),
        opening_balance=to_minor(data.get("openingBalance")),
    )


def income_source_to_json(source: IncomeSource) -> dict[str, Any]:
    return {
        "id": source.id,
        "name": source.name,
        "currency": source.currency,
        "estimatedAmount": to_major(source.estimated_amount),
        "frequency": source.frequency,
        "allocations": [rule_to_json(r) for r in source.allocations],
        "openingBalance": to_major(source.opening_balance),
    }


def document_from_json(data: dict[str, Any]) -> BudgetDocument:
    """Build a BudgetDocument from its JSON form.

    Args:
        data: Parsed JSON object. Missing collections are treated as empty.

    Returns:
        BudgetDocument.

    Raises:
        KeyError: If a record is missing its id.
    """
    sources = data.get("incomeSources")
    if sources is None and data.get("incomeSource"):
        sources = [data["incomeSource"]]

    return BudgetDocument(
        categories=tuple(category_from_json(c) for c in data.get("categories") or []),
        transactions=tuple(transaction_from_json(t) for t in data.get("transactions") or []),
        income_sources=tuple(income_source_from_json(s) for s in sources or []),
        accounts=tuple(account_from_json(a) for a in data.get("accounts") or []),
        last_updated=data.get("lastUpdated"),
    )


def document_to_json(document: BudgetDocument) -> dict[str, Any]:
    return _drop_none(
        {
            "categories": [category_to_json(c) for c in document.categories],
            "transactions": [transaction_to_json(t) for t in document.transactions],
            "incomeSources": [income_source_to_json(s) for s in document.income_sources],
            "accounts": [account_to_json(a) for a in document.accounts],
            "lastUpdated": document.last_updated,
        }
    )
