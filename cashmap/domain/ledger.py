"""Pure functions over the flat transaction ledger.

The ledger is a flat list of Transaction records. Parent/child links
(allocations and funding entries) and transfer peers are id fields only,
so every read rebuilds a small index instead of maintaining one.

Every mutation here returns a new list built in a single pass; a parent and
its children are always removed or rewritten together.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace

from cashmap.domain.models import (
    EXPENSE,
    INCOME,
    TRANSFER,
    Account,
    AccountType,
    CategoryId,
    Description,
    Money,
    Transaction,
    TransactionId,
    TransactionType,
    new_id,
)


@dataclass(frozen=True)
class LedgerIndex:
    """Lookup tables derived from a ledger snapshot."""

    by_id: dict[str, Transaction]
    children: dict[str, list[str]]


def build_index(transactions: Iterable[Transaction]) -> LedgerIndex:
    """Index a ledger by id and by parent id.

    Args:
        transactions: Ledger snapshot.

    Returns:
        LedgerIndex with id -> record and parent id -> child ids maps.
    """
    by_id: dict[str, Transaction] = {}
    children: dict[str, list[str]] = {}
    for txn in transactions:
        by_id[txn.id] = txn
        if txn.parent_transaction_id:
            children.setdefault(txn.parent_transaction_id, []).append(txn.id)
    return LedgerIndex(by_id=by_id, children=children)


def root_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """User-facing entries (no parent), newest first."""
    roots = [t for t in transactions if not t.parent_transaction_id]
    return sorted(roots, key=lambda t: t.date, reverse=True)


def children_of(transactions: Iterable[Transaction], parent_id: str) -> list[Transaction]:
    return [t for t in transactions if t.parent_transaction_id == parent_id]


def descendant_ids(index: LedgerIndex, txn_id: str) -> set[str]:
    """Collect the ids of every transaction derived from txn_id.

    Args:
        index: Ledger index.
        txn_id: Root of the subtree.

    Returns:
        Set of descendant ids (txn_id itself excluded).
    """
    found: set[str] = set()
    stack = list(index.children.get(txn_id, []))
    while stack:
        child_id = stack.pop()
        if child_id in found or child_id == txn_id:
            continue
        found.add(child_id)
        stack.extend(index.children.get(child_id, []))
    return found


def delete_transaction(
    transactions: Iterable[Transaction], txn_id: str
) -> tuple[list[Transaction], set[str]]:
    """Delete a transaction together with everything linked to it.

    Children (by parent id) are removed transitively; a transfer also takes
    its peer with it.

    Args:
        transactions: Ledger snapshot.
        txn_id: Transaction to delete.

    Returns:
        Tuple of (new_ledger, removed_ids). If txn_id is unknown the ledger
        is returned unchanged and removed_ids is empty.
    """
    ledger = list(transactions)
    index = build_index(ledger)
    target = index.by_id.get(txn_id)
    if target is None:
        return ledger, set()

    ids_to_delete = {txn_id} | descendant_ids(index, txn_id)

    if target.type == TRANSFER and target.transfer_peer_id:
        ids_to_delete.add(target.transfer_peer_id)

    return [t for t in ledger if t.id not in ids_to_delete], ids_to_delete


def replace_transaction(transactions: Iterable[Transaction], updated: Transaction) -> list[Transaction]:
    """Swap the record with updated.id for updated (whole-record replace)."""
    return [updated if t.id == updated.id else t for t in transactions]


def edit_transaction(
    transactions: Iterable[Transaction], updated: Transaction
) -> tuple[list[Transaction], str | None]:
    """Apply an edit, rescaling linked children if the amount changed.

    Args:
        transactions: Ledger snapshot.
        updated: Edited record (same id as the original).

    Returns:
        Tuple of (new_ledger, error_message).
    """
    ledger = list(transactions)
    original = next((t for t in ledger if t.id == updated.id), None)
    if original is None:
        return ledger, f"Transaction {updated.id} not found"

    if updated.amount < 0 and updated.parent_transaction_id is None:
        return ledger, "Amount must be positive"

    ratio = None
    if original.amount != updated.amount and original.amount != 0:
        ratio = updated.amount / original.amount

    result: list[Transaction] = []
    for txn in ledger:
        if txn.id == updated.id:
            result.append(updated)
        elif ratio is not None and txn.parent_transaction_id == updated.id:
            result.append(replace(txn, amount=Money(round(txn.amount * ratio))))
        else:
            result.append(txn)

    return result, None


def assign_category(
    transactions: Iterable[Transaction], txn_id: str, category_id: CategoryId | None
) -> list[Transaction]:
    return [replace(t, category_id=category_id) if t.id == txn_id else t for t in transactions]


def new_transaction(
    date: str,
    description: str,
    amount: Money,
    type: TransactionType = EXPENSE,
    category_id: CategoryId | None = None,
    account_id: str | None = None,
) -> tuple[Transaction | None, str | None]:
    """Create a manual income or expense entry.

    Args:
        date: ISO date.
        description: Free text.
        amount: Positive amount in minor units.
        type: "income" or "expense".
        category_id: Optional envelope.
        account_id: Optional account.

    Returns:
        Tuple of (transaction, error_message).
    """
    if type not in (INCOME, EXPENSE):
        return None, "Use create_transfer for transfers"
    if amount <= 0:
        return None, "Amount must be positive"
    if not description.strip():
        return None, "Description is required"

    txn = Transaction(
        id=TransactionId(new_id()),
        date=date,
        description=Description(description.strip()),
        amount=amount,
        type=type,
        category_id=category_id,
        account_id=account_id,
    )
    return txn, None


def create_transfer(
    from_account: Account,
    to_account: Account,
    amount: Money,
    date: str,
) -> tuple[tuple[Transaction, Transaction] | None, str | None]:
    """Create a linked out/in pair moving money between two accounts.

    Args:
        from_account: Account the money leaves.
        to_account: Account the money arrives in.
        amount: Positive amount in minor units.
        date: ISO date.

    Returns:
        Tuple of ((out_txn, in_txn), error_message).
    """
    if from_account.id == to_account.id:
        return None, "Please select two different accounts"
    if amount <= 0:
        return None, "Amount must be positive"

    out_id = TransactionId(new_id())
    in_id = TransactionId(new_id())

    out_txn = Transaction(
        id=out_id,
        date=date,
        description=Description(f"Transfer to {to_account.name}"),
        amount=amount,
        type=TRANSFER,
        account_id=from_account.id,
        transfer_direction="out",
        transfer_peer_id=in_id,
    )
    in_txn = Transaction(
        id=in_id,
        date=date,
        description=Description(f"Transfer from {from_account.name}"),
        amount=amount,
        type=TRANSFER,
        account_id=to_account.id,
        transfer_direction="in",
        transfer_peer_id=out_id,
    )
    return (out_txn, in_txn), None


ACCOUNT_TYPES: tuple[AccountType, ...] = ("checking", "savings", "credit", "cash", "investment")


def new_account(
    name: str, type: AccountType, initial_balance: Money, currency: str
) -> tuple[Account | None, str | None]:
    """Create a bank account.

    Args:
        name: Display name.
        type: One of ACCOUNT_TYPES.
        initial_balance: Starting equity in minor units (may be negative for credit).
        currency: ISO currency code.

    Returns:
        Tuple of (account, error_message).
    """
    if not name.strip():
        return None, "Account name is required"
    if type not in ACCOUNT_TYPES:
        return None, f"Unknown account type: {type}"
    return Account(id=new_id(), name=name.strip(), type=type, initial_balance=initial_balance, currency=currency), None
