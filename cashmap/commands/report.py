"""Report and inspect commands for viewing spending and income."""

from dataclasses import replace

import typer
from rich.table import Table

from cashmap.commands.common import (
    colored_money,
    console,
    find_category_arg,
    handle_errors,
    money,
    open_document,
    resolve_month,
    short_id,
    store_document,
)
from cashmap.dates import month_range
from cashmap.domain.ledger import assign_category, root_transactions
from cashmap.domain.models import EXPENSE, Money, ReportingWindow
from cashmap.domain.report import CategoryReport, calculate_histogram_bar_length, create_full_report

ALL_TIME = ReportingWindow(start="0000-01-01", end="9999-12-31")


def compute_report_period(all: bool, month: str | None) -> tuple[ReportingWindow, str]:
    """Compute the reporting window and its display label.

    Args:
        all: Whether to report all time.
        month: Optional specific month (YYYY-MM format).

    Returns:
        Tuple of (window, period_display).
    """
    if all:
        return ALL_TIME, "All Time"

    report_month = resolve_month(month)
    _, _, label = month_range(report_month)
    return ReportingWindow.for_month(report_month), label


def format_budget_display_with_color(percentage: float) -> str:
    """Format budget display with color based on percentage.

    Args:
        percentage: Budget usage percentage.

    Returns:
        Colored string for budget display.
    """
    budget_text = f"({percentage:.0f}%)"
    if percentage > 100:
        return f"[red]{budget_text}[/red]"
    elif percentage > 90:
        return f"[yellow]{budget_text}[/yellow]"
    else:
        return f"[green]{budget_text}[/green]"


def render_expense_line(cat_report: CategoryReport, histogram: bool, max_amount: Money | None, bar_width: int) -> None:
    """Render single expense category line.

    Args:
        cat_report: CategoryReport with expense data.
        histogram: Whether to show histogram bars.
        max_amount: Maximum amount for histogram scaling.
        bar_width: Width of histogram bar in characters.
    """
    amount_display = money(cat_report.amount)
    percentage = cat_report.percentage or 0

    if cat_report.budget:
        budget_display = f"/ {money(cat_report.budget)} {format_budget_display_with_color(percentage)}"
    else:
        budget_display = ""

    if histogram and max_amount:
        bar_length = calculate_histogram_bar_length(cat_report.amount, max_amount, bar_width)
        bar = "█" * bar_length
        console.print(f"  {cat_report.category:20} {amount_display:>12} {budget_display:30} {bar}")
    elif cat_report.budget:
        console.print(f"  {cat_report.category}: {amount_display} / {money(cat_report.budget)} ({percentage:.0f}%)")
    else:
        console.print(f"  {cat_report.category}: {amount_display}")


def render_income_line(cat_report: CategoryReport, histogram: bool, max_amount: Money | None, bar_width: int) -> None:
    amount_display = money(cat_report.amount)

    if histogram and max_amount:
        bar_length = calculate_histogram_bar_length(cat_report.amount, max_amount, bar_width)
        bar = "█" * bar_length
        console.print(f"  {cat_report.category:20} {amount_display:>12} {bar}")
    else:
        console.print(f"  {cat_report.category}: {amount_display}")


def inspect_command(category: str, all: bool = False, month: str | None = None) -> None:
    """Inspect transactions for a specific category, optionally moving one elsewhere."""
    window, period = compute_report_period(all, month)

    with handle_errors():
        document = open_document()
        cat = find_category_arg(document, category)
        transactions = [
            t for t in root_transactions(document.transactions) if t.category_id == cat.id and window.contains(t.date)
        ]

        if not transactions:
            console.print(f"[yellow]No transactions found for category '{cat.name}'[/yellow]")
            return

        table = Table(title=f"{cat.name} - {period} ({len(transactions)} transactions)")
        table.add_column("#", style="dim", justify="right")
        table.add_column("ID", style="dim")
        table.add_column("Date", style="cyan")
        table.add_column("Description", style="white")
        table.add_column("Amount", justify="right")

        total = 0
        for idx, txn in enumerate(transactions, 1):
            signed = -txn.amount if txn.type == EXPENSE else txn.amount
            total += signed
            table.add_row(str(idx), short_id(txn.id), txn.date, txn.description, colored_money(Money(signed)))

        console.print(table)
        console.print(f"\n[bold]Total:[/bold] {colored_money(Money(total))}")

        choice = typer.prompt(
            f"\nSelect transaction to recategorize (1-{len(transactions)}, or q to quit)", type=str, default="q"
        )
        if choice.lower() == "q":
            return
        if not choice.isdigit() or not 1 <= int(choice) <= len(transactions):
            console.print("[red]Invalid selection[/red]")
            return

        selected = transactions[int(choice) - 1]
        new_name: str = typer.prompt("New category (name or number)")
        new_cat = find_category_arg(document, new_name)
        ledger = assign_category(document.transactions, selected.id, new_cat.id)
        store_document(replace(document, transactions=tuple(ledger)))
        console.print(f"[green]✓[/green] {selected.description} → {new_cat.name}")


def report_command(
    sort_by: str = "value",
    histogram: bool = True,
    all: bool = False,
    month: str | None = None,
) -> None:
    """Generate income and spending breakdown report."""
    window, period = compute_report_period(all, month)

    with handle_errors():
        document = open_document()
        report = create_full_report(document.categories, document.transactions, window, sort_by)

        if not report.expenses.categories and not report.income.categories:
            console.print("[dim]No categorized activity in this period[/dim]")
            return

        console.print(f"[bold cyan]{period}[/bold cyan]\n")

        if report.expenses.categories:
            console.print("[bold red]Expenses by category:[/bold red]\n")
            max_amount = Money(max(cat.amount for cat in report.expenses.categories)) if histogram else None

            for cat_report in report.expenses.categories:
                render_expense_line(cat_report, histogram, max_amount, 30)

            budget_display = f" / {money(report.expenses.total_budget)}" if report.expenses.total_budget > 0 else ""
            console.print(f"\n  [bold]Total expenses:[/bold] {money(report.expenses.total)}{budget_display}\n")

        if report.income.categories:
            console.print("[bold green]Income by category:[/bold green]\n")
            max_amount = Money(max(cat.amount for cat in report.income.categories)) if histogram else None

            for cat_report in report.income.categories:
                render_income_line(cat_report, histogram, max_amount, 40)

            console.print(f"\n  [bold]Total income:[/bold] {money(report.income.total)}\n")

        if report.expenses.categories and report.income.categories:
            console.print(f"[bold cyan]Net:[/bold cyan] {colored_money(report.net)}")
