"""Transaction management commands (add, edit, delete, transfer, categorize)."""

import logging
import sys
from dataclasses import replace

import requests
import typer

from cashmap.commands.common import (
    console,
    fail,
    find_account_arg,
    find_category_arg,
    find_transaction_arg,
    handle_errors,
    money,
    open_document,
    parse_date_arg,
    require_money,
    short_id,
    store_document,
)
from cashmap.config import get_classifier_settings, load_config_or_default
from cashmap.dates import today_iso
from cashmap.domain.imports import apply_category_matches, uncategorized_expense_descriptions
from cashmap.domain.ledger import (
    assign_category,
    children_of,
    create_transfer,
    delete_transaction,
    edit_transaction,
    new_transaction,
)
from cashmap.domain.models import EXPENSE, INCOME, TRANSFER, find_category
from cashmap.integrations.gemini import classify, classify_batch

logger = logging.getLogger(__name__)


def add_command(
    description: str,
    amount: str,
    date: str | None = None,
    income: bool = False,
    category: str | None = None,
    account: str | None = None,
) -> None:
    """Add a transaction manually.

    Args:
        description: Transaction description.
        amount: Amount in major units (always positive).
        date: Transaction date (YYYY-MM-DD, DD/MM/YYYY, or other formats). Defaults to today.
        income: Record as income instead of an expense.
        category: Optional category (name or number).
        account: Optional account (name or number).
    """
    normalized_date = parse_date_arg(date, today_iso())
    amount_minor = require_money(amount)

    with handle_errors():
        document = open_document()
        category_id = find_category_arg(document, category).id if category else None
        account_id = find_account_arg(document, account).id if account else None

        txn, error = new_transaction(
            normalized_date,
            description,
            amount_minor,
            INCOME if income else EXPENSE,
            category_id,
            account_id,
        )
        if error:
            fail(error)
        assert txn is not None

        store_document(replace(document, transactions=(*document.transactions, txn)))

        console.print("[green]✓[/green] Transaction added:")
        console.print(f"  ID: {short_id(txn.id)}")
        console.print(f"  Date: {txn.date}")
        console.print(f"  Description: {txn.description}")
        console.print(f"  Amount: {money(txn.amount)} ({txn.type})")
        if category_id:
            cat = find_category(document.categories, category_id)
            console.print(f"  Category: {cat.name if cat else category_id}")
        else:
            console.print("[dim]Uncategorized (use 'cashmap categorize' to file it)[/dim]")


def edit_command(
    transaction_id: str,
    date: str | None = None,
    description: str | None = None,
    amount: str | None = None,
    category: str | None = None,
    clear_category: bool = False,
) -> None:
    """Edit a transaction; linked allocation and funding entries follow amount changes."""
    with handle_errors():
        document = open_document()
        original = find_transaction_arg(document, transaction_id)

        updated = original
        if date:
            updated = replace(updated, date=parse_date_arg(date, original.date))
        if description:
            updated = replace(updated, description=description.strip())
        if amount is not None:
            updated = replace(updated, amount=require_money(amount, allow_zero=True))
        if clear_category:
            updated = replace(updated, category_id=None)
        elif category:
            updated = replace(updated, category_id=find_category_arg(document, category).id)

        if updated == original:
            console.print("[yellow]Nothing to change[/yellow]")
            return

        ledger, error = edit_transaction(document.transactions, updated)
        if error:
            fail(error)

        store_document(replace(document, transactions=tuple(ledger)))
        console.print(f"[green]✓[/green] Updated transaction {short_id(original.id)}")

        if updated.amount != original.amount:
            linked = children_of(ledger, original.id)
            if linked:
                console.print(f"[dim]Rescaled {len(linked)} linked entries to match the new amount[/dim]")


def delete_command(transaction_id: str, yes: bool = False) -> None:
    """Delete a transaction together with its linked entries."""
    with handle_errors():
        document = open_document()
        txn = find_transaction_arg(document, transaction_id)

        ledger, removed = delete_transaction(document.transactions, txn.id)
        linked = len(removed) - 1

        console.print(f"  {txn.date}  {txn.description}  {money(txn.amount)}")
        if linked:
            what = "transfer peer and linked entries" if txn.type == TRANSFER else "linked entries"
            console.print(f"[yellow]This also removes {linked} {what}[/yellow]")

        if not yes and not typer.confirm("Delete this transaction?", default=False):
            console.print("[dim]Cancelled[/dim]")
            return

        store_document(replace(document, transactions=tuple(ledger)))
        console.print(f"[green]✓[/green] Deleted {len(removed)} transaction(s)")


def transfer_command(from_account: str, to_account: str, amount: str, date: str | None = None) -> None:
    """Move money between two accounts."""
    amount_minor = require_money(amount)
    transfer_date = parse_date_arg(date, today_iso())

    with handle_errors():
        document = open_document()
        source = find_account_arg(document, from_account)
        target = find_account_arg(document, to_account)

        pair, error = create_transfer(source, target, amount_minor, transfer_date)
        if error:
            fail(error)
        assert pair is not None

        store_document(replace(document, transactions=(*document.transactions, *pair)))
        console.print(f"[green]✓[/green] Transferred {money(amount_minor)} from {source.name} to {target.name}")


def _require_api_key() -> tuple[str, str]:
    model, api_key = get_classifier_settings(load_config_or_default())
    if not api_key:
        console.print("[red]No API key found for the classifier.[/red]", style="bold")
        console.print("[dim]Set GEMINI_API_KEY (or the variable named in [classifier].api_key_env)[/dim]")
        sys.exit(1)
    return model, api_key


def categorize_command(
    transaction_id: str | None = None,
    category: str | None = None,
    auto: bool = False,
) -> None:
    """Assign a category by hand, or let the classifier suggest one.

    Args:
        transaction_id: Transaction to categorize. Without it, --auto files all
            uncategorized expenses in one batch.
        category: Category to assign (name or number).
        auto: Ask the classifier instead of naming a category.
    """
    with handle_errors():
        document = open_document()
        expense_categories = [c for c in document.categories if c.kind != "income"]

        if transaction_id and category:
            txn = find_transaction_arg(document, transaction_id)
            cat = find_category_arg(document, category)
            ledger = assign_category(document.transactions, txn.id, cat.id)
            store_document(replace(document, transactions=tuple(ledger)))
            console.print(f"[green]✓[/green] {txn.description} → {cat.name}")
            return

        if not auto:
            fail("Name a category, or pass --auto to use the classifier")

        model, api_key = _require_api_key()

        try:
            if transaction_id:
                txn = find_transaction_arg(document, transaction_id)
                console.print(f"[cyan]Classifying '{txn.description}'...[/cyan]")
                category_id = classify(txn.description, expense_categories, api_key, model)
                if not category_id:
                    console.print("[yellow]Couldn't confidently categorize this. Please select manually.[/yellow]")
                    return
                ledger = assign_category(document.transactions, txn.id, category_id)
                store_document(replace(document, transactions=tuple(ledger)))
                cat = find_category(document.categories, category_id)
                console.print(f"[green]✓[/green] {txn.description} → {cat.name if cat else category_id}")
                return

            descriptions = uncategorized_expense_descriptions(document.transactions)
            if not descriptions:
                console.print("[green]✓ Nothing to categorize[/green]")
                return

            console.print(f"[cyan]Classifying {len(descriptions)} unique descriptions...[/cyan]")
            matches = classify_batch(descriptions, expense_categories, api_key, model)
        except requests.RequestException as e:
            logger.debug("Classifier request failed", exc_info=True)
            fail(f"Classifier request failed: {e}")

        ledger, updated = apply_category_matches(document.transactions, matches)
        if updated:
            store_document(replace(document, transactions=tuple(ledger)))
        console.print(f"[green]✓[/green] Categorized {updated} transactions")
        unmatched = len(descriptions) - len(matches)
        if unmatched:
            console.print(f"[dim]{unmatched} descriptions left for manual review[/dim]")
