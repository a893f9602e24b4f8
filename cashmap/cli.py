"""CLI entry point for cashmap."""

import typer

from cashmap.commands.admin import backup_command, init_command, list_command, restore_command
from cashmap.commands.allocate import distribute_command, expense_command, fund_command
from cashmap.commands.budget import (
    account_command,
    categories_command,
    category_command,
    schedule_command,
    status_command,
    top_up_command,
)
from cashmap.commands.income import income_command
from cashmap.commands.report import inspect_command, report_command
from cashmap.commands.sync import sync_command
from cashmap.commands.transactions import (
    add_command,
    categorize_command,
    delete_command,
    edit_command,
    transfer_command,
)
from cashmap.log import configure_logging

app = typer.Typer(
    name="cashmap",
    help="cashmap - envelope budgeting from the command line",
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """cashmap - envelope budgeting from the command line."""
    configure_logging(verbose)


@app.command(name="init")
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing database and config"),
    currency: str = typer.Option("USD", "--currency", help="Currency code for your budget"),
) -> None:
    """Initialize cashmap database and configuration."""
    init_command(force, currency)


@app.command(name="backup")
def backup(
    output_dir: str = typer.Option(None, "--output", "-o", help="Backup directory (default: ~/.cashmap/backups)"),
) -> None:
    """Backup your budget and configuration files."""
    backup_command(output_dir)


@app.command(name="restore")
def restore(
    path: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation"),
) -> None:
    """Replace your budget with a JSON backup."""
    restore_command(path, yes)


@app.command(name="list")
def list_transactions(
    limit: int = typer.Option(50, help="Maximum transactions to show"),
    all: bool = typer.Option(False, "--all", "-a", help="Show all your transactions"),
    month: str = typer.Option(None, "--month", help="Only this month (YYYY-MM)"),
    category: str = typer.Option(None, "--category", "-c", help="Only this category (name or number)"),
    account: str = typer.Option(None, "--account", help="Only this account (name or number)"),
    uncategorized: bool = typer.Option(False, "--uncategorized", "-u", help="Only uncategorized expenses"),
    children: bool = typer.Option(False, "--children", help="Show linked allocation and funding entries"),
) -> None:
    """List your transactions."""
    list_command(limit, all, month, category, account, uncategorized, children)


@app.command()
def add(
    description: str,
    amount: str,
    date: str = typer.Option(None, "--date", "-d", help="Transaction date (default: today)"),
    income: bool = typer.Option(False, "--income", help="Record as income"),
    category: str = typer.Option(None, "--category", "-c", help="Category (name or number)"),
    account: str = typer.Option(None, "--account", help="Account (name or number)"),
) -> None:
    """Add a transaction manually."""
    add_command(description, amount, date, income, category, account)


@app.command()
def edit(
    transaction_id: str,
    date: str = typer.Option(None, "--date", "-d", help="New date"),
    description: str = typer.Option(None, "--description", help="New description"),
    amount: str = typer.Option(None, "--amount", help="New amount"),
    category: str = typer.Option(None, "--category", "-c", help="New category (name or number)"),
    clear_category: bool = typer.Option(False, "--clear-category", help="Make the transaction uncategorized"),
) -> None:
    """Edit a transaction."""
    edit_command(transaction_id, date, description, amount, category, clear_category)


@app.command()
def delete(
    transaction_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation"),
) -> None:
    """Delete a transaction and everything linked to it."""
    delete_command(transaction_id, yes)


@app.command()
def transfer(
    from_account: str,
    to_account: str,
    amount: str,
    date: str = typer.Option(None, "--date", "-d", help="Transfer date (default: today)"),
) -> None:
    """Move money between two of your accounts."""
    transfer_command(from_account, to_account, amount, date)


@app.command()
def account(
    name: str = typer.Argument(None, help="Account name (omit to list accounts)"),
    type: str = typer.Option("checking", "--type", "-t", help="checking, savings, credit, cash or investment"),
    balance: str = typer.Option(None, "--balance", "-b", help="Initial balance"),
    remove: bool = typer.Option(False, "--remove", help="Remove the account"),
) -> None:
    """Add, update or list your accounts."""
    account_command(name, type, balance, remove)


@app.command()
def category(
    name: str,
    budget: str = typer.Option(None, "--budget", "-b", help="Monthly target"),
    kind: str = typer.Option("expense", "--type", "-t", help="expense, income or investment"),
    link: int = typer.Option(None, "--link", help="Fund in full from this payment number only"),
    unlink: bool = typer.Option(False, "--unlink", help="Fund from every payment again"),
    rename: str = typer.Option(None, "--rename", help="New name"),
    remove: bool = typer.Option(False, "--remove", help="Remove the category"),
) -> None:
    """Add or change an envelope."""
    category_command(name, budget, kind, link, unlink, rename, remove)


@app.command()
def schedule(
    category: str,
    date: str = typer.Option(None, "--date", "-d", help="Date the new target takes effect"),
    amount: str = typer.Option(None, "--amount", help="New monthly target"),
    remove: str = typer.Option(None, "--remove", help="Id of a scheduled change to remove"),
) -> None:
    """Schedule a future change to an envelope's target."""
    schedule_command(category, date, amount, remove)


@app.command()
def categories(
    month: str = typer.Option(None, "--month", help="Month to show (YYYY-MM)"),
    all: bool = typer.Option(False, "--all", "-a", help="Include empty system categories"),
) -> None:
    """Show your envelopes and their balances."""
    categories_command(month, all)


@app.command()
def income(
    name: str = typer.Option(None, "--name", help="Rename the income source"),
    frequency: str = typer.Option(None, "--frequency", "-f", help="monthly, semi-monthly or weekly"),
    amount: str = typer.Option(None, "--amount", help="Expected income per month"),
    opening: str = typer.Option(None, "--opening", help="Opening balance"),
    add: bool = typer.Option(False, "--add-payment", help="Add a payment"),
    remove: int = typer.Option(None, "--remove-payment", help="Remove the payment with this number"),
    payment: int = typer.Option(None, "--payment", "-p", help="Payment number to change"),
    percent: float = typer.Option(None, "--percent", help="Share of the budget for --payment"),
    label: str = typer.Option(None, "--label", help="Name for --payment"),
    note: str = typer.Option(None, "--note", help="Note for --payment"),
    uncertain: bool = typer.Option(None, "--uncertain/--certain", help="Mark --payment's amount as an estimate"),
) -> None:
    """Show or configure your income source and payments."""
    income_command(name, frequency, amount, opening, add, remove, payment, percent, label, note, uncertain)


@app.command()
def status(
    month: str = typer.Option(None, "--month", help="Month to show (YYYY-MM)"),
) -> None:
    """Show your unallocated money and funding progress."""
    status_command(month)


@app.command()
def distribute(
    payment: int = typer.Option(None, "--payment", "-p", help="Payment number to run"),
    income_id: str = typer.Option(None, "--income", help="Income transaction to link to"),
    amount: str = typer.Option(None, "--amount", help="Distribute this amount instead of the pool"),
    previous: bool = typer.Option(False, "--previous", help="Fill last month's gaps instead"),
    month: str = typer.Option(None, "--month", help="Month to allocate (YYYY-MM)"),
    force: bool = typer.Option(False, "--force", help="Run a payment again even if already allocated"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation"),
) -> None:
    """Distribute unallocated money across your envelopes."""
    distribute_command(payment, income_id, amount, previous, month, force, yes)


@app.command(name="top-up")
def top_up(
    category: str,
    amount: str,
    date: str = typer.Option(None, "--date", "-d", help="Date of the top-up (default: today)"),
) -> None:
    """Move unallocated money into one envelope."""
    top_up_command(category, amount, date)


@app.command()
def fund(
    transaction_id: str,
    sources: list[str] = typer.Option(None, "--from", help="CATEGORY=AMOUNT (repeatable)"),
    clear: bool = typer.Option(False, "--clear", help="Remove all funding"),
) -> None:
    """Pay for an expense out of your envelopes."""
    fund_command(transaction_id, sources, clear)


@app.command()
def expense(
    description: str,
    amount: str,
    sources: list[str] = typer.Option(None, "--from", help="CATEGORY=AMOUNT (repeatable)"),
    date: str = typer.Option(None, "--date", "-d", help="Expense date (default: today)"),
    account: str = typer.Option(None, "--account", help="Account it was paid from"),
) -> None:
    """Record a one-time expense funded from your envelopes."""
    expense_command(description, amount, sources, date, account)


@app.command()
def sync(
    source_name_or_path: str,
    account: str = typer.Option(None, "--account", help="Account to attach the transactions to"),
    save_as: str = typer.Option(None, "--save-as", help="Save the column mapping as a named source"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without importing"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept the detected column mapping"),
) -> None:
    """Import your transactions from a CSV file or configured source."""
    sync_command(source_name_or_path, account, save_as, dry_run, yes)


@app.command()
def categorize(
    transaction_id: str = typer.Argument(None, help="Transaction id (omit with --auto to file everything)"),
    category: str = typer.Argument(None, help="Category (name or number)"),
    auto: bool = typer.Option(False, "--auto", help="Let the classifier pick"),
) -> None:
    """Categorize your transactions by hand or with the classifier."""
    categorize_command(transaction_id, category, auto)


@app.command()
def inspect(
    category: str,
    all: bool = typer.Option(False, "--all", "-a", help="Show all time"),
    month: str = typer.Option(None, "--month", help="Specific month (YYYY-MM)"),
) -> None:
    """Inspect your transactions for a specific category."""
    inspect_command(category, all, month)


@app.command(name="report")
def report(
    sort_by: str = typer.Option("value", help="Sort by 'value' or 'alpha'"),
    histogram: bool = typer.Option(True, help="Show histogram of your spending"),
    all: bool = typer.Option(False, "--all", "-a", help="Show all time"),
    month: str = typer.Option(None, "--month", help="Specific month (YYYY-MM)"),
) -> None:
    """Show your income and spending breakdown."""
    report_command(sort_by, histogram, all, month)


if __name__ == "__main__":
    app()
