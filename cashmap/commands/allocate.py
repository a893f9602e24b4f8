"""Commands that move money between the pool and envelopes (distribute, fund, expense)."""

import logging
from dataclasses import replace

import typer
from rich.table import Table

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
    resolve_month,
    short_id,
    store_document,
)
from cashmap.dates import month_range, previous_month, today_iso
from cashmap.domain.allocation import (
    DistributionPlan,
    allocation_date,
    distribute,
    gap_fill,
    has_linked_allocations,
    income_candidates,
    next_unallocated_rule,
    rule_already_allocated,
)
from cashmap.domain.balances import opening_balance, unallocated_before, unallocated_pool
from cashmap.domain.funding import (
    apply_funding,
    create_one_time_expense,
    existing_funding,
    refund,
    validate_funding,
)
from cashmap.domain.models import (
    EXPENSE,
    BudgetDocument,
    CategoryId,
    Money,
    ReportingWindow,
    find_category,
)

logger = logging.getLogger(__name__)


def parse_sources(document: BudgetDocument, values: list[str] | None) -> dict[CategoryId, Money]:
    """Parse repeated CATEGORY=AMOUNT options into a source map.

    Args:
        document: Loaded document used to resolve category names.
        values: Raw option values, e.g. ["Groceries=20", "2=15.50"].

    Returns:
        Source category id -> amount in minor units. Repeated categories add up.
    """
    sources: dict[CategoryId, Money] = {}
    for value in values or []:
        name, sep, amount = value.rpartition("=")
        if not sep or not name.strip():
            fail(f"Invalid source '{value}' (expected CATEGORY=AMOUNT)")
        category = find_category_arg(document, name.strip())
        if category.kind == "income":
            fail(f"{category.name} is an income category and can't fund expenses")
        sources[category.id] = Money(sources.get(category.id, 0) + require_money(amount))
    return sources


def _show_plan(document: BudgetDocument, plan: DistributionPlan, title: str) -> None:
    table = Table(title=title)
    table.add_column("Category", style="magenta")
    table.add_column("Description", style="white")
    table.add_column("Amount", justify="right", style="green")

    for txn in plan.transactions:
        cat = find_category(document.categories, txn.category_id)
        table.add_row(cat.name if cat else "-", txn.description, money(txn.amount))

    console.print(table)
    console.print(f"[bold]Total:[/bold] {money(plan.total)} of {money(plan.pool)} available")
    if plan.surplus > 0:
        console.print(f"[dim]{money(plan.surplus)} stays unallocated[/dim]")


def _confirm_or_cancel(prompt: str, yes: bool) -> bool:
    if yes or typer.confirm(prompt, default=False):
        return True
    console.print("[dim]Cancelled[/dim]")
    return False


def distribute_command(
    payment: int | None = None,
    income_id: str | None = None,
    amount: str | None = None,
    previous: bool = False,
    month: str | None = None,
    force: bool = False,
    yes: bool = False,
) -> None:
    """Fund expense envelopes from the unallocated pool.

    Args:
        payment: Payment number whose allocation rule to run. Defaults to the
            first payment not yet run this month.
        income_id: Income transaction to link the allocations to.
        amount: Distribute this manual amount instead of the pool.
        previous: Fill last month's unfunded targets with carried-in money.
        month: Month to allocate (YYYY-MM). Defaults to the current month.
        force: Run the payment even if it looks already allocated.
        yes: Skip confirmation prompts.
    """
    target_month = resolve_month(month)
    window = ReportingWindow.for_month(target_month)
    manual_amount = require_money(amount) if amount is not None else None

    with handle_errors():
        document = open_document()
        expense_categories = [c for c in document.categories if c.kind == "expense"]
        if not expense_categories:
            fail("No expense categories to fund. Add one with 'cashmap category'.")

        opening = opening_balance(document)

        if previous:
            prior = previous_month(target_month)
            pool = unallocated_before(document.transactions, document.categories, opening, window.start).available
            plan, error = gap_fill(
                Money(manual_amount if manual_amount is not None else pool),
                expense_categories,
                document.transactions,
                ReportingWindow.for_month(prior),
            )
            if error:
                fail(error)
            assert plan is not None
            _, _, label = month_range(prior)
            title = f"Gap fill for {label}"
        else:
            source = document.income_source
            if source is None or not source.allocations:
                fail("No income source configured. Run 'cashmap income' first.")

            if payment is not None:
                rule = next((r for r in source.allocations if r.payment_index == payment), None)
                if rule is None:
                    fail(f"No payment number {payment} (have {len(source.allocations)})")
            else:
                rule = next_unallocated_rule(source, document.transactions, target_month) or source.allocations[0]

            if not force and rule_already_allocated(rule, document.transactions, target_month):
                console.print(
                    f"[yellow]Payment {rule.payment_index} ({rule.percentage:g}%) already looks allocated "
                    f"for {target_month}[/yellow]"
                )
                if not _confirm_or_cancel("Allocate it again?", yes):
                    return

            parent_id = None
            if manual_amount is None:
                if income_id:
                    parent_id = find_transaction_arg(document, income_id).id
                else:
                    candidates = income_candidates(document.transactions, document.categories, target_month)
                    if candidates:
                        parent_id = candidates[0].id
                        logger.debug("Linking allocation to income %s", parent_id)

                if parent_id and has_linked_allocations(document.transactions, parent_id):
                    console.print(
                        f"[yellow]Income {short_id(parent_id)} already has allocations linked to it[/yellow]"
                    )
                    if not _confirm_or_cancel("Add more allocations to it?", yes):
                        return

            entry_date = allocation_date(today_iso(), target_month)
            if manual_amount is not None:
                pool = manual_amount
            else:
                pool = unallocated_pool(document.transactions, document.categories, opening, window.end).available

            plan, error = distribute(
                Money(pool),
                rule,
                expense_categories,
                entry_date,
                parent_transaction_id=parent_id,
                manual=manual_amount is not None,
            )
            if error:
                fail(error)
            assert plan is not None

            if plan.scaled:
                console.print(
                    f"[yellow]Targets need {money(plan.potential_total)} but only {money(plan.pool)} "
                    f"is available[/yellow]"
                )
                if not _confirm_or_cancel("Distribute proportionally?", yes):
                    return
            title = f"Payment {rule.payment_index} ({rule.percentage:g}%)"

        if not plan.transactions:
            console.print("[yellow]Nothing to allocate[/yellow]")
            return

        _show_plan(document, plan, title)
        store_document(replace(document, transactions=(*document.transactions, *plan.transactions)))
        console.print(f"[green]✓[/green] Allocated {money(plan.total)} to {len(plan.transactions)} envelopes")


def fund_command(transaction_id: str, sources: list[str] | None = None, clear: bool = False) -> None:
    """Pay for an expense out of one or more envelopes.

    Replaces whatever funding the expense had before. Any part not covered by
    the named envelopes is taken from the unallocated pool.

    Args:
        transaction_id: Expense to fund (id or unique prefix).
        sources: CATEGORY=AMOUNT pairs.
        clear: Remove all existing funding instead.
    """
    with handle_errors():
        document = open_document()
        target = find_transaction_arg(document, transaction_id)
        if target.type != EXPENSE:
            fail("Only expenses can be funded from envelopes")

        requested = {} if clear else parse_sources(document, sources)
        if not requested and not clear:
            fail("Name at least one source with --from CATEGORY=AMOUNT, or pass --clear")

        rejection = validate_funding(
            target, requested, document.transactions, document.categories, opening_balance(document)
        )
        if rejection is not None:
            fail(rejection.message)

        previous = existing_funding(target, document.transactions)
        plan = refund(target, requested, document.transactions, document.categories)
        ledger = apply_funding(document.transactions, plan)
        store_document(replace(document, transactions=tuple(ledger)))

        if clear:
            console.print(f"[green]✓[/green] Cleared funding of {short_id(target.id)} ({len(previous)} sources)")
            return

        console.print(f"[green]✓[/green] Funded {target.description} ({money(target.amount)})")
        for category_id, amount in requested.items():
            cat = find_category(document.categories, category_id)
            console.print(f"  {cat.name if cat else category_id}: {money(amount)}")
        from_pool = target.amount - plan.funded_total
        if from_pool > 0:
            console.print(f"  [dim]Unallocated pool: {money(Money(from_pool))}[/dim]")


def expense_command(
    description: str,
    amount: str,
    sources: list[str] | None = None,
    date: str | None = None,
    account: str | None = None,
) -> None:
    """Record a one-time expense and fund it from envelopes."""
    amount_minor = require_money(amount)
    entry_date = parse_date_arg(date, today_iso())

    with handle_errors():
        document = open_document()
        requested = parse_sources(document, sources)
        account_id = find_account_arg(document, account).id if account else None

        plan, rejection = create_one_time_expense(
            description,
            amount_minor,
            entry_date,
            requested,
            document.categories,
            document.transactions,
            opening_balance(document),
            account_id=account_id,
        )
        if rejection is not None:
            fail(rejection.message)
        assert plan is not None

        categories = document.categories
        if plan.category_created:
            categories = (*categories, plan.category)
            console.print(f"[dim]Created category '{plan.category.name}'[/dim]")

        store_document(
            replace(document, categories=categories, transactions=(*document.transactions, *plan.transactions))
        )
        console.print(f"[green]✓[/green] Recorded {plan.expense.description}: {money(amount_minor)}")
        from_pool = amount_minor - plan.funding.funded_total
        if from_pool > 0:
            console.print(f"[dim]{money(Money(from_pool))} taken from the unallocated pool[/dim]")
