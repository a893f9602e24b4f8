"""Admin commands for init, backup, restore and listing transactions."""

import shutil
import sys
from datetime import datetime
from pathlib import Path

import typer
from rich.table import Table

from cashmap.commands.common import (
    colored_money,
    console,
    find_account_arg,
    find_category_arg,
    handle_errors,
    open_document,
    resolve_month,
    short_id,
    store_document,
)
from cashmap.config import create_default_config, get_config_path
from cashmap.dates import month_bounds
from cashmap.domain.income import default_income_source
from cashmap.domain.ledger import children_of, root_transactions
from cashmap.domain.models import EXPENSE, INCOME, BudgetDocument, Money, Transaction, find_category, new_id
from cashmap.store.documents import export_document, import_document
from cashmap.store.schema import get_db_path, init_database


def run_full_init(db_path: Path, config_path: Path, currency: str) -> None:
    """Initialize new database, empty document and config."""
    console.print(f"[cyan]Initializing database at {db_path}...[/cyan]")
    init_database(db_path)
    document = BudgetDocument(income_sources=(default_income_source(new_id(), currency),))
    store_document(document, db_path)
    console.print("[green]✓[/green] Database initialized")

    console.print(f"[cyan]Creating config file at {config_path}...[/cyan]")
    create_default_config(config_path)
    console.print("[green]✓[/green] Config file created (permissions: 600)")

    console.print("\n[green]Initialization complete![/green]", style="bold")
    console.print(f"[dim]Database: {db_path}[/dim]")
    console.print(f"[dim]Config: {config_path}[/dim]")


def init_command(force: bool = False, currency: str = "USD") -> None:
    """Initialize cashmap database and configuration."""
    db_path = get_db_path()
    config_path = get_config_path()

    db_exists = db_path.exists()
    config_exists = config_path.exists()

    with handle_errors():
        # Guard: refuse to overwrite without force flag
        if not force and (db_exists or config_exists):
            console.print("[red]Initialization failed:[/red]", style="bold")
            if db_exists:
                console.print(f"  Database already exists: {db_path}")
            if config_exists:
                console.print(f"  Config already exists: {config_path}")
            console.print("\n[yellow]Use 'cashmap init --force' to overwrite[/yellow]")
            sys.exit(1)

        if force and db_exists:
            db_path.unlink()

        run_full_init(db_path, config_path, currency.upper())


def backup_command(output_dir: str | None = None) -> None:
    """Export the budget document and config to a backup directory."""
    config_path = get_config_path()

    if output_dir:
        backup_dir = Path(output_dir).expanduser()
    else:
        backup_dir = Path.home() / ".cashmap" / "backups"

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    document_backup = backup_dir / f"cashmap_data_{timestamp}.json"
    config_backup = backup_dir / f"config_{timestamp}.toml"

    with handle_errors():
        document = open_document()
        export_document(document, document_backup)
        console.print(f"[green]✓[/green] Budget backed up to: {document_backup}")

        if config_path.exists():
            shutil.copy2(config_path, config_backup)
            console.print(f"[green]✓[/green] Config backed up to: {config_backup}")

        console.print("\n[green]Backup complete![/green]", style="bold")
        console.print(f"[dim]Backup directory: {backup_dir}[/dim]")


def restore_command(path: str, yes: bool = False) -> None:
    """Replace the stored document with a JSON backup."""
    backup_path = Path(path).expanduser()

    with handle_errors():
        try:
            document = import_document(backup_path)
        except ValueError as e:
            console.print(f"[red]Restore failed: {e}[/red]", style="bold")
            sys.exit(1)

        console.print(
            f"[cyan]Backup contains {len(document.transactions)} transactions, "
            f"{len(document.categories)} categories, {len(document.accounts)} accounts[/cyan]"
        )
        if document.last_updated:
            console.print(f"[dim]Last updated: {document.last_updated}[/dim]")

        if not yes and not typer.confirm("This will replace all current data. Continue?", default=False):
            console.print("[yellow]Restore cancelled[/yellow]")
            return

        db_path = get_db_path()
        init_database(db_path)
        store_document(document, db_path)
        console.print("[green]✓[/green] Restore complete")


def _type_display(txn: Transaction) -> str:
    if txn.type == INCOME:
        return "[green]in[/green]"
    if txn.type == EXPENSE:
        return "[red]out[/red]"
    return f"[blue]xfer {txn.transfer_direction or ''}[/blue]"


def list_command(
    limit: int = 50,
    all: bool = False,
    month: str | None = None,
    category: str | None = None,
    account: str | None = None,
    uncategorized: bool = False,
    children: bool = False,
) -> None:
    """List transactions (root entries only unless children are requested)."""
    with handle_errors():
        document = open_document()
        transactions = root_transactions(document.transactions)

        if month:
            start, end = month_bounds(resolve_month(month))
            transactions = [t for t in transactions if start <= t.date <= end]
        if category:
            cat = find_category_arg(document, category)
            transactions = [t for t in transactions if t.category_id == cat.id]
        if account:
            acc = find_account_arg(document, account)
            transactions = [t for t in transactions if t.account_id == acc.id]
        if uncategorized:
            transactions = [t for t in transactions if t.category_id is None and t.type == EXPENSE]

        if not transactions:
            console.print("[yellow]No transactions found[/yellow]")
            return

        total_found = len(transactions)
        if not all:
            transactions = transactions[:limit]

        title = f"Transactions (showing {len(transactions)} of {total_found})"
        table = Table(title=title)
        table.add_column("ID", style="dim")
        table.add_column("Date", style="cyan")
        table.add_column("Description", style="white")
        table.add_column("Type", justify="center")
        table.add_column("Amount", justify="right")
        table.add_column("Category", style="magenta")

        for txn in transactions:
            cat = find_category(document.categories, txn.category_id)
            category_display = cat.name if cat else "[dim]-[/dim]"
            sign = -1 if txn.type == EXPENSE else 1
            table.add_row(
                short_id(txn.id),
                txn.date,
                txn.description,
                _type_display(txn),
                colored_money(Money(txn.amount * sign)),
                category_display,
            )

            if children:
                for child in children_of(document.transactions, txn.id):
                    child_cat = find_category(document.categories, child.category_id)
                    table.add_row(
                        "",
                        "",
                        f"[dim]  ↳ {child.description}[/dim]",
                        "",
                        colored_money(child.amount),
                        f"[dim]{child_cat.name if child_cat else '-'}[/dim]",
                    )

        console.print(table)
