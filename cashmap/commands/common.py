"""Shared helpers for command modules: document access and argument lookup."""

import json
import logging
import sqlite3
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn, TypeVar

import pandas as pd
from rich.console import Console

from cashmap.config import get_currency, load_config_or_default
from cashmap.dates import current_month, month_bounds
from cashmap.domain.models import Account, BudgetDocument, Category, Money, Month, Transaction
from cashmap.domain.money import format_money, parse_money
from cashmap.store.documents import load_document, save_document
from cashmap.store.schema import get_db_path

console = Console()
logger = logging.getLogger(__name__)

T = TypeVar("T")


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]{message}[/red]", style="bold")
    sys.exit(1)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn storage and filesystem failures into a red message and exit 1."""
    try:
        yield
    except sqlite3.Error as e:
        logger.debug("Database error", exc_info=True)
        fail(f"Database error: {e}")
    except json.JSONDecodeError as e:
        fail(f"Corrupt document: {e}")
    except OSError as e:
        fail(f"Filesystem error: {e}")


def open_document(db_path: Path | None = None) -> BudgetDocument:
    """Load the stored document, exiting if cashmap hasn't been initialized."""
    if db_path is None:
        db_path = get_db_path()
    if not db_path.exists():
        fail("Database not found. Run 'cashmap init' first.")
    return load_document(db_path)


def store_document(document: BudgetDocument, db_path: Path | None = None) -> BudgetDocument:
    return save_document(document, db_path or get_db_path())


def currency() -> str:
    return get_currency(load_config_or_default())


def money(amount: Money, include_sign: bool = False) -> str:
    return format_money(amount, currency(), include_sign)


def colored_money(amount: Money) -> str:
    """Format an amount in green when positive and red when negative."""
    text = money(amount)
    if amount < 0:
        return f"[red]{text}[/red]"
    if amount > 0:
        return f"[green]{text}[/green]"
    return f"[dim]{text}[/dim]"


def require_money(value: str | float, allow_zero: bool = False) -> Money:
    """Parse a major-unit amount argument, exiting on bad input."""
    amount = parse_money(value)
    if amount is None:
        fail(f"Invalid amount: {value}")
    if amount < 0 or (amount == 0 and not allow_zero):
        fail("Amount must be positive")
    return amount


def parse_date_arg(value: str | None, default: str) -> str:
    """Normalize a date option to YYYY-MM-DD (day-first), exiting on bad input."""
    if not value:
        return default
    try:
        return pd.to_datetime(value, dayfirst=True).strftime("%Y-%m-%d")
    except (ValueError, pd.errors.ParserError) as e:
        console.print(f"[red]Invalid date format: {e}[/red]")
        console.print("[dim]Accepted formats: YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY, etc.[/dim]")
        sys.exit(1)


def resolve_month(month: str | None) -> Month:
    """Validate a --month option (defaults to the current month)."""
    if not month:
        return current_month()
    try:
        month_bounds(Month(month))
    except ValueError:
        fail(f"Invalid month: {month} (expected YYYY-MM)")
    return Month(month)


def _lookup(items: list[T], key: str, name_of: Callable[[T], str], id_of: Callable[[T], str], kind: str) -> T:
    if key.isdigit() and 1 <= int(key) <= len(items):
        return items[int(key) - 1]
    lowered = key.strip().lower()
    for item in items:
        if name_of(item).lower() == lowered or id_of(item) == key:
            return item
    fail(f"{kind} '{key}' not found")


def find_category_arg(document: BudgetDocument, key: str) -> Category:
    """Resolve a category by 1-based list number, name (case-insensitive) or id."""
    categories = sorted(document.categories, key=lambda c: c.name.lower())
    return _lookup(categories, key, lambda c: c.name, lambda c: c.id, "Category")


def find_account_arg(document: BudgetDocument, key: str) -> Account:
    """Resolve an account by 1-based list number, name (case-insensitive) or id."""
    return _lookup(list(document.accounts), key, lambda a: a.name, lambda a: a.id, "Account")


def find_transaction_arg(document: BudgetDocument, key: str) -> Transaction:
    """Resolve a transaction by id or unique id prefix."""
    matches = [t for t in document.transactions if t.id.startswith(key)]
    if not matches:
        fail(f"Transaction '{key}' not found")
    if len(matches) > 1:
        fail(f"Transaction id '{key}' is ambiguous ({len(matches)} matches)")
    return matches[0]


def short_id(txn_id: str) -> str:
    return txn_id[:8]
