"""Tests for cashmap.domain.ledger pure functions."""

from dataclasses import replace

from cashmap.domain.ledger import (
    assign_category,
    build_index,
    children_of,
    create_transfer,
    delete_transaction,
    descendant_ids,
    edit_transaction,
    new_account,
    new_transaction,
    root_transactions,
)
from cashmap.domain.models import (
    EXPENSE,
    INCOME,
    TRANSFER,
    Account,
    CategoryId,
    Description,
    Money,
    Transaction,
    TransactionId,
    TransactionType,
)


def _txn(
    txn_id: str,
    amount: int,
    type: TransactionType = INCOME,
    parent: str | None = None,
    date: str = "2025-03-01",
) -> Transaction:
    return Transaction(
        id=TransactionId(txn_id),
        date=date,
        description=Description(txn_id),
        amount=Money(amount),
        type=type,
        parent_transaction_id=TransactionId(parent) if parent else None,
    )


CHECKING = Account(id="chk", name="Checking", type="checking", initial_balance=Money(0), currency="USD")
SAVINGS = Account(id="sav", name="Savings", type="savings", initial_balance=Money(0), currency="USD")


class TestDeleteTransaction:
    """Tests for delete_transaction."""

    def test_cascades_to_children(self) -> None:
        """Should remove the transaction and everything linked to it."""
        ledger = [
            _txn("pay", 300000),
            _txn("alloc-1", 40000, parent="pay"),
            _txn("alloc-2", 60000, parent="pay"),
            _txn("other", 500, EXPENSE),
        ]

        result, removed = delete_transaction(ledger, "pay")

        assert [t.id for t in result] == ["other"]
        assert removed == {"pay", "alloc-1", "alloc-2"}

    def test_cascade_is_transitive(self) -> None:
        """Should follow grandchildren too."""
        ledger = [_txn("a", 1), _txn("b", 1, parent="a"), _txn("c", 1, parent="b")]

        result, removed = delete_transaction(ledger, "a")

        assert result == []
        assert removed == {"a", "b", "c"}

    def test_deleting_child_keeps_parent(self) -> None:
        """Should only remove the child's own subtree."""
        ledger = [_txn("a", 1), _txn("b", 1, parent="a")]

        result, _ = delete_transaction(ledger, "b")

        assert [t.id for t in result] == ["a"]

    def test_transfer_takes_peer(self) -> None:
        """Should delete both legs of a transfer."""
        pair, _ = create_transfer(CHECKING, SAVINGS, Money(1000), "2025-03-01")
        assert pair is not None
        ledger = [*pair, _txn("other", 1)]

        result, removed = delete_transaction(ledger, pair[0].id)

        assert [t.id for t in result] == ["other"]
        assert removed == {pair[0].id, pair[1].id}

    def test_unknown_id(self) -> None:
        """Should leave the ledger alone."""
        ledger = [_txn("a", 1)]

        result, removed = delete_transaction(ledger, "missing")

        assert result == ledger
        assert removed == set()

    def test_survives_cycles(self) -> None:
        """Should terminate on a corrupt parent cycle."""
        ledger = [_txn("a", 1, parent="b"), _txn("b", 1, parent="a")]

        assert descendant_ids(build_index(ledger), "a") == {"b"}


class TestEditTransaction:
    """Tests for edit_transaction."""

    def test_rescales_children(self) -> None:
        """Should scale linked entries by the amount change."""
        ledger = [_txn("pay", 100000), _txn("alloc", 40000, parent="pay")]

        result, error = edit_transaction(ledger, replace(ledger[0], amount=Money(50000)))

        assert error is None
        assert [t.amount for t in result] == [Money(50000), Money(20000)]

    def test_other_fields_leave_children_alone(self) -> None:
        """Should not touch children when the amount is unchanged."""
        ledger = [_txn("pay", 100000), _txn("alloc", 40000, parent="pay")]

        result, _ = edit_transaction(ledger, replace(ledger[0], description=Description("Paycheck")))

        assert result[0].description == "Paycheck"
        assert result[1] == ledger[1]

    def test_negative_root_amount_rejected(self) -> None:
        """Should refuse a negative amount on a user entry."""
        ledger = [_txn("pay", 100000)]

        result, error = edit_transaction(ledger, replace(ledger[0], amount=Money(-1)))

        assert error == "Amount must be positive"
        assert result == ledger

    def test_unknown_transaction(self) -> None:
        """Should report a missing record."""
        _, error = edit_transaction([], _txn("ghost", 1))

        assert error == "Transaction ghost not found"


class TestLedgerQueries:
    """Tests for root_transactions, children_of and assign_category."""

    def test_roots_newest_first(self) -> None:
        """Should hide children and sort by date descending."""
        ledger = [
            _txn("old", 1, date="2025-01-01"),
            _txn("new", 1, date="2025-03-01"),
            _txn("child", 1, parent="new"),
        ]

        assert [t.id for t in root_transactions(ledger)] == ["new", "old"]
        assert [t.id for t in children_of(ledger, "new")] == ["child"]

    def test_assign_category(self) -> None:
        """Should set the category of one transaction only."""
        ledger = [_txn("a", 1, EXPENSE), _txn("b", 1, EXPENSE)]

        result = assign_category(ledger, "a", CategoryId("groceries"))

        assert result[0].category_id == "groceries"
        assert result[1].category_id is None


class TestNewRecords:
    """Tests for new_transaction, create_transfer and new_account."""

    def test_new_expense(self) -> None:
        """Should build a trimmed expense entry."""
        txn, error = new_transaction("2025-03-01", "  Coffee  ", Money(450))

        assert error is None
        assert txn is not None
        assert txn.description == "Coffee"
        assert txn.type == EXPENSE

    def test_new_transaction_validation(self) -> None:
        """Should reject bad amounts, blank descriptions and transfers."""
        assert new_transaction("2025-03-01", "Coffee", Money(0))[1] == "Amount must be positive"
        assert new_transaction("2025-03-01", " ", Money(1))[1] == "Description is required"
        assert new_transaction("2025-03-01", "x", Money(1), TRANSFER)[1] == "Use create_transfer for transfers"

    def test_transfer_pair(self) -> None:
        """Should link out and in legs to each other."""
        pair, error = create_transfer(CHECKING, SAVINGS, Money(2500), "2025-03-05")

        assert error is None
        assert pair is not None
        out_txn, in_txn = pair
        assert out_txn.transfer_direction == "out"
        assert in_txn.transfer_direction == "in"
        assert out_txn.transfer_peer_id == in_txn.id
        assert in_txn.transfer_peer_id == out_txn.id
        assert out_txn.description == "Transfer to Savings"
        assert in_txn.description == "Transfer from Checking"

    def test_transfer_to_same_account(self) -> None:
        """Should refuse a transfer to the same account."""
        pair, error = create_transfer(CHECKING, CHECKING, Money(1), "2025-03-05")

        assert pair is None
        assert error == "Please select two different accounts"

    def test_new_account(self) -> None:
        """Should allow negative balances and reject unknown types."""
        account, error = new_account("Card", "credit", Money(-5000), "USD")

        assert error is None
        assert account is not None
        assert account.initial_balance == Money(-5000)
        assert new_account("Card", "crypto", Money(0), "USD")[1] == "Unknown account type: crypto"  # type: ignore[arg-type]
