"""Sync command for importing transactions from bank CSV exports."""

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import typer
from rich.table import Table

from cashmap.commands.common import (
    colored_money,
    console,
    fail,
    find_account_arg,
    handle_errors,
    open_document,
    store_document,
)
from cashmap.config import add_source, get_config_path, load_config_or_default, mapping_from_source, source_from_mapping
from cashmap.dates import today_iso
from cashmap.domain.imports import (
    CsvMapping,
    build_history_map,
    decode_csv_bytes,
    detect_mapping,
    parse_rows,
    split_csv_text,
)
from cashmap.domain.models import EXPENSE, BudgetDocument, Money, Transaction, find_category

logger = logging.getLogger(__name__)


def resolve_sync_source(source_name_or_path: str) -> tuple[list[Path], dict[str, Any] | None]:
    """Resolve whether argument is a CSV file, a directory of CSVs or a configured source.

    Args:
        source_name_or_path: File path, directory path or source name from config.

    Returns:
        Tuple of (csv_files, source_config). source_config is None for plain paths.

    Raises:
        SystemExit: If nothing matches.
    """
    path = Path(source_name_or_path).expanduser()
    if path.is_file():
        return [path], None
    if path.is_dir():
        return sorted(path.glob("*.csv")), None

    config = load_config_or_default()
    sources = [s for s in config.get("sources", []) if isinstance(s, dict)]
    for source in sources:
        if source.get("name") == source_name_or_path:
            source_path = Path(source.get("path", "")).expanduser()
            if not source.get("path") or not source_path.exists():
                fail(f"Source '{source_name_or_path}' has no readable path (set 'path' in {get_config_path()})")
            files = sorted(source_path.glob("*.csv")) if source_path.is_dir() else [source_path]
            return files, source

    console.print(f"[red]'{source_name_or_path}' is not a CSV file or a configured source.[/red]", style="bold")
    if sources:
        console.print("\n[yellow]Available sources:[/yellow]")
        for src in sources:
            console.print(f"  • {src.get('name')}")
    else:
        console.print("[dim]No sources configured yet. Use --save-as NAME on a first import to add one.[/dim]")
    sys.exit(1)


def describe_mapping(mapping: CsvMapping, header: list[str]) -> None:
    """Print which column each field is read from."""

    def column(index: int) -> str:
        label = header[index] if 0 <= index < len(header) else "?"
        return f"{index + 1} ({label})"

    console.print("[bold cyan]Column mapping:[/bold cyan]")
    console.print(f"  Date: [yellow]{column(mapping.date_index)}[/yellow]")
    console.print(f"  Description: [yellow]{column(mapping.description_index)}[/yellow]")
    if mapping.mode == "single":
        console.print(f"  Amount: [yellow]{column(mapping.amount_index)}[/yellow] (negative = expense)")
    else:
        console.print(f"  Debit: [yellow]{column(mapping.debit_index)}[/yellow]")
        console.print(f"  Credit: [yellow]{column(mapping.credit_index)}[/yellow]")


def prompt_for_csv_mapping(header: list[str], suggested: CsvMapping) -> CsvMapping:
    """Interactively confirm or adjust a suggested column mapping.

    Args:
        header: First row of the file.
        suggested: Mapping from detect_mapping.

    Returns:
        CsvMapping with user-confirmed column positions.
    """
    console.print("[bold cyan]CSV columns detected:[/bold cyan]")
    for i, cell in enumerate(header, 1):
        console.print(f"  {i}. {cell}")
    console.print()
    describe_mapping(suggested, header)

    if typer.confirm("\nUse this mapping?", default=True):
        return suggested

    def ask(label: str, current: int) -> int:
        value: int = typer.prompt(f"{label} column number", default=current + 1, type=int)
        if not 1 <= value <= len(header):
            fail(f"Column {value} is out of range (1-{len(header)})")
        return value - 1

    date_index = ask("Date", suggested.date_index)
    description_index = ask("Description", suggested.description_index)
    split = typer.confirm("Are debits and credits in separate columns?", default=suggested.mode == "split")
    if split:
        return CsvMapping(
            date_index=date_index,
            description_index=description_index,
            mode="split",
            debit_index=ask("Debit", suggested.debit_index),
            credit_index=ask("Credit", suggested.credit_index),
        )
    return CsvMapping(
        date_index=date_index,
        description_index=description_index,
        mode="single",
        amount_index=ask("Amount", suggested.amount_index),
    )


def render_preview(document: BudgetDocument, transactions: list[Transaction], limit: int = 10) -> None:
    """Show the first few parsed rows."""
    table = Table(title=f"Preview (first {min(limit, len(transactions))} of {len(transactions)})")
    table.add_column("Date", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Amount", justify="right")
    table.add_column("Category", style="magenta")

    for txn in transactions[:limit]:
        sign = -1 if txn.type == EXPENSE else 1
        cat = find_category(document.categories, txn.category_id)
        table.add_row(txn.date, txn.description[:50], colored_money(Money(txn.amount * sign)), cat.name if cat else "-")

    console.print(table)


def sync_command(
    source_name_or_path: str,
    account: str | None = None,
    save_as: str | None = None,
    dry_run: bool = False,
    yes: bool = False,
) -> None:
    """Import transactions from a CSV file, a directory of CSVs or a configured source.

    Args:
        source_name_or_path: CSV path, directory, or source name from config.
        account: Account to attach imported entries to.
        save_as: Save the column mapping as a named source for next time.
        dry_run: Parse and preview without saving.
        yes: Accept the detected column mapping without asking.
    """
    csv_files, source = resolve_sync_source(source_name_or_path)
    if not csv_files:
        console.print(f"[yellow]No CSV files found in {source_name_or_path}[/yellow]")
        return

    with handle_errors():
        document = open_document()

        account_name = account or (source.get("account") if source else None)
        account_id = find_account_arg(document, account_name).id if account_name else None

        history = build_history_map(document.transactions)
        today = today_iso()
        mapping = mapping_from_source(source) if source else None

        imported: list[Transaction] = []
        skipped = 0
        auto_matched = 0

        for csv_file in csv_files:
            console.print(f"[cyan]Reading {csv_file.name}...[/cyan]")
            text, encoding = decode_csv_bytes(csv_file.read_bytes())
            if encoding != "utf-8-sig":
                console.print(f"[dim]  {csv_file.name} is not UTF-8, read as {encoding}[/dim]")
            rows = split_csv_text(text)
            if not rows:
                console.print(f"[yellow]  No rows in {csv_file.name}[/yellow]")
                continue

            if mapping is None:
                suggested = detect_mapping(rows[0])
                if yes:
                    describe_mapping(suggested, rows[0])
                    mapping = suggested
                else:
                    mapping = prompt_for_csv_mapping(rows[0], suggested)

            result = parse_rows(rows, mapping, history, today, account_id)
            logger.debug("%s: %d parsed, %d skipped", csv_file.name, result.imported, result.skipped)
            imported.extend(result.transactions)
            skipped += result.skipped
            auto_matched += result.auto_matched

        if not imported:
            console.print("[yellow]No transactions found[/yellow]")
            if skipped:
                console.print(f"[dim]Skipped {skipped} unreadable rows[/dim]")
            return

        render_preview(document, imported)

        if save_as and mapping is not None:
            add_source(source_from_mapping(save_as, mapping, account_name))
            console.print(f"[green]✓[/green] Saved source '{save_as}' to {get_config_path()}")

        if dry_run:
            console.print(f"\n[dim]Dry run: {len(imported)} transactions would be imported[/dim]")
            return

        store_document(replace(document, transactions=(*document.transactions, *imported)))

        console.print(f"\n[green]Successfully imported {len(imported)} transactions![/green]", style="bold")
        if auto_matched:
            console.print(f"[dim]Auto-categorized {auto_matched} from past transactions[/dim]")
        if skipped:
            console.print(f"[dim]Skipped {skipped} unreadable rows[/dim]")
        uncategorized = len(imported) - auto_matched
        if uncategorized:
            console.print(f"[dim]Use 'cashmap categorize --auto' to file the other {uncategorized}[/dim]")
