"""Tests for cashmap.domain.income pure functions."""

from dataclasses import replace

from cashmap.domain.income import (
    add_payment,
    default_income_source,
    even_percentages,
    percentage_deviation,
    remove_payment,
    reset_for_frequency,
    set_estimated_amount,
    set_percentage,
    slot_count,
)
from cashmap.domain.models import AllocationRule, IncomeSource, Money


def _source(*percentages: float, total: int = 300000) -> IncomeSource:
    rules = tuple(
        AllocationRule(payment_index=i + 1, percentage=p, amount=Money(round(total * p / 100)))
        for i, p in enumerate(percentages)
    )
    return replace(default_income_source("src"), estimated_amount=Money(total), allocations=rules)


def _percentages(source: IncomeSource) -> list[float]:
    return [r.percentage for r in source.allocations]


class TestEvenPercentages:
    """Tests for even_percentages and slot_count."""

    def test_last_slot_takes_remainder(self) -> None:
        """Should split 100 into whole numbers with the remainder last."""
        rules = [AllocationRule(payment_index=i, percentage=0, amount=Money(0)) for i in (1, 2, 3)]

        assert [r.percentage for r in even_percentages(rules)] == [33.0, 33.0, 34.0]

    def test_slot_counts(self) -> None:
        """Should map pay frequencies to slot counts."""
        assert slot_count("monthly") == 1
        assert slot_count("semi-monthly") == 2
        assert slot_count("weekly") == 4


class TestResetForFrequency:
    """Tests for reset_for_frequency."""

    def test_weekly(self) -> None:
        """Should create four evenly split, numbered slots with amounts."""
        source = reset_for_frequency(_source(100.0, total=400000), "weekly")

        assert source.frequency == "weekly"
        assert _percentages(source) == [25.0] * 4
        assert [r.payment_index for r in source.allocations] == [1, 2, 3, 4]
        assert [r.name for r in source.allocations] == ["Paycheck 1", "Paycheck 2", "Paycheck 3", "Paycheck 4"]
        assert [r.amount for r in source.allocations] == [Money(100000)] * 4


class TestAddRemovePayment:
    """Tests for add_payment and remove_payment."""

    def test_add_rebalances(self) -> None:
        """Should add a numbered slot and split evenly."""
        source = add_payment(_source(100.0))

        assert _percentages(source) == [50.0, 50.0]
        assert source.allocations[1].name == "Paycheck #2"
        assert source.allocations[1].amount == Money(150000)

    def test_remove_renumbers_and_rebalances(self) -> None:
        """Should renumber the remaining slots from 1."""
        source, error = remove_payment(_source(33.0, 33.0, 34.0), 0)

        assert error is None
        assert [r.payment_index for r in source.allocations] == [1, 2]
        assert _percentages(source) == [50.0, 50.0]

    def test_cannot_remove_last_payment(self) -> None:
        """Should keep at least one slot."""
        original = _source(100.0)
        source, error = remove_payment(original, 0)

        assert source == original
        assert error == "An income source needs at least one payment"

    def test_bad_position(self) -> None:
        """Should report an unknown position."""
        _, error = remove_payment(_source(50.0, 50.0), 5)

        assert error == "No payment at position 6"


class TestSetPercentage:
    """Tests for set_percentage."""

    def test_two_slots(self) -> None:
        """Should give the other slot the rest."""
        source = set_percentage(_source(50.0, 50.0), 1, 70)

        assert _percentages(source) == [70.0, 30.0]
        assert [r.amount for r in source.allocations] == [Money(210000), Money(90000)]

    def test_proportional_rebalance(self) -> None:
        """Should keep the others' relative weights and floor all but the last."""
        source = set_percentage(_source(33.0, 33.0, 34.0), 1, 50)

        assert _percentages(source) == [50.0, 24.0, 26.0]
        assert sum(_percentages(source)) == 100

    def test_zero_others_split_evenly(self) -> None:
        """Should split the rest evenly when the others are all zero."""
        source = set_percentage(_source(100.0, 0.0, 0.0), 1, 40)

        assert _percentages(source) == [40.0, 30.0, 30.0]

    def test_clamped(self) -> None:
        """Should clamp the new value to 0..100."""
        source = set_percentage(_source(50.0, 50.0), 2, 150)

        assert _percentages(source) == [0.0, 100.0]

    def test_single_slot_unchanged(self) -> None:
        """Should not change a lone slot."""
        original = _source(100.0)

        assert set_percentage(original, 1, 40) == original


class TestEstimatedAmount:
    """Tests for set_estimated_amount and percentage_deviation."""

    def test_recalculates_amounts(self) -> None:
        """Should rederive each slot's expected amount."""
        source = set_estimated_amount(_source(60.0, 40.0), Money(500000))

        assert [r.amount for r in source.allocations] == [Money(300000), Money(200000)]

    def test_deviation_is_reported_not_fixed(self) -> None:
        """Should report how far the shares are from 100."""
        source = _source(60.0, 60.0)

        assert percentage_deviation(source.allocations) == 20.0
        assert _percentages(source) == [60.0, 60.0]


class TestDefaultIncomeSource:
    """Tests for default_income_source."""

    def test_defaults(self) -> None:
        """Should be a monthly source with one full-share payment."""
        source = default_income_source("src", "GBP")

        assert source.name == "Main Budget"
        assert source.currency == "GBP"
        assert source.frequency == "monthly"
        assert _percentages(source) == [100.0]
