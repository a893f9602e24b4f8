"""Tests for cashmap.domain.report pure functions."""

from cashmap.domain.models import (
    EXPENSE,
    INCOME,
    Category,
    CategoryId,
    Description,
    Money,
    Month,
    ReportingWindow,
    Transaction,
    TransactionId,
    TransactionType,
)
from cashmap.domain.report import (
    calculate_budget_percentage,
    calculate_histogram_bar_length,
    create_category_report,
    create_full_report,
    sort_breakdown,
)

MARCH = ReportingWindow.for_month(Month("2025-03"))
CATEGORIES = [
    Category(id=CategoryId("groceries"), name="Groceries", kind="expense", monthly_budget=Money(40000)),
    Category(id=CategoryId("rent"), name="Rent", kind="expense", monthly_budget=Money(120000)),
    Category(id=CategoryId("salary"), name="Salary", kind="income", monthly_budget=Money(0)),
]


def _txn(txn_id: str, amount: int, type: TransactionType, category_id: str | None, date: str = "2025-03-05") -> Transaction:
    return Transaction(
        id=TransactionId(txn_id),
        date=date,
        description=Description(txn_id),
        amount=Money(amount),
        type=type,
        category_id=CategoryId(category_id) if category_id else None,
    )


LEDGER = [
    _txn("shop-1", 12000, EXPENSE, "groceries"),
    _txn("shop-2", 3000, EXPENSE, "groceries"),
    _txn("rent", 120000, EXPENSE, "rent"),
    _txn("pay", 300000, INCOME, "salary"),
    _txn("gift", 5000, INCOME, None),
    _txn("alloc", 40000, INCOME, "groceries"),
    _txn("april", 99999, EXPENSE, "groceries", "2025-04-01"),
]


class TestCalculateBudgetPercentage:
    """Tests for calculate_budget_percentage."""

    def test_under_budget(self) -> None:
        """Should calculate percentage used."""
        assert calculate_budget_percentage(Money(15000), Money(40000)) == 37.5

    def test_zero_budget(self) -> None:
        """Should return 0 when there is no budget."""
        assert calculate_budget_percentage(Money(15000), Money(0)) == 0.0

    def test_category_report_without_budget(self) -> None:
        """Should leave percentage empty without a budget."""
        report = create_category_report("Misc", Money(500))

        assert report.percentage is None


class TestSortBreakdown:
    """Tests for sort_breakdown."""

    def test_by_value(self) -> None:
        """Should sort largest first."""
        result = sort_breakdown({"a": Money(1), "b": Money(3), "c": Money(2)})

        assert [name for name, _ in result] == ["b", "c", "a"]

    def test_alpha(self) -> None:
        """Should sort case-insensitively by name."""
        result = sort_breakdown({"beta": Money(1), "Alpha": Money(3)}, "alpha")

        assert [name for name, _ in result] == ["Alpha", "beta"]


class TestCreateFullReport:
    """Tests for create_full_report."""

    def test_expenses_against_targets(self) -> None:
        """Should list spending per envelope with its target."""
        report = create_full_report(CATEGORIES, LEDGER, MARCH)

        assert [(c.category, c.amount, c.budget) for c in report.expenses.categories] == [
            ("Rent", 120000, 120000),
            ("Groceries", 15000, 40000),
        ]
        assert report.expenses.categories[1].percentage == 37.5
        assert report.expenses.total == Money(135000)
        assert report.expenses.total_budget == Money(160000)

    def test_income_excludes_allocations(self) -> None:
        """Should count real income only, grouping uncategorized income."""
        report = create_full_report(CATEGORIES, LEDGER, MARCH)

        assert [(c.category, c.amount) for c in report.income.categories] == [
            ("Salary", 300000),
            ("Uncategorized", 5000),
        ]
        assert report.income.total == Money(305000)

    def test_net(self) -> None:
        """Should subtract expenses from income."""
        report = create_full_report(CATEGORIES, LEDGER, MARCH)

        assert report.net == Money(170000)

    def test_alpha_sort(self) -> None:
        """Should honour the sort option."""
        report = create_full_report(CATEGORIES, LEDGER, MARCH, sort_by="alpha")

        assert [c.category for c in report.expenses.categories] == ["Groceries", "Rent"]

    def test_empty_window(self) -> None:
        """Should produce an empty report for a quiet period."""
        report = create_full_report(CATEGORIES, LEDGER, ReportingWindow.for_month(Month("2024-01")))

        assert report.expenses.categories == []
        assert report.income.categories == []
        assert report.net == Money(0)


class TestHistogram:
    """Tests for calculate_histogram_bar_length."""

    def test_scales_to_width(self) -> None:
        """Should scale relative to the largest amount."""
        assert calculate_histogram_bar_length(Money(5000), Money(10000), 30) == 15

    def test_zero_max(self) -> None:
        """Should return 0 when there is nothing to scale against."""
        assert calculate_histogram_bar_length(Money(5000), Money(0), 30) == 0
