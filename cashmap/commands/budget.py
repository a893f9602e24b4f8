"""Budget commands: envelopes, scheduled targets, accounts, status and top-ups."""

from dataclasses import replace

from rich.table import Table

from cashmap.commands.common import (
    colored_money,
    console,
    currency,
    fail,
    find_account_arg,
    find_category_arg,
    handle_errors,
    money,
    open_document,
    parse_date_arg,
    require_money,
    resolve_month,
    store_document,
)
from cashmap.dates import month_range, previous_month, today_iso
from cashmap.domain.allocation import next_unallocated_rule, rule_already_allocated, suggest_mode, top_up
from cashmap.domain.balances import (
    account_balances,
    envelope_balances,
    is_system_category,
    opening_balance,
    period_funding,
    unallocated_before,
    unallocated_pool,
)
from cashmap.domain.categories import (
    new_category,
    remove_category,
    rename_category,
    replace_category,
    set_linked_payment,
)
from cashmap.domain.income import percentage_deviation
from cashmap.domain.ledger import ACCOUNT_TYPES, new_account
from cashmap.domain.models import Account, Money, ReportingWindow, Transaction
from cashmap.domain.money import parse_money
from cashmap.domain.schedule import (
    add_scheduled_change,
    remove_scheduled_change,
    target_status,
    upcoming_changes,
)


def account_command(
    name: str | None = None,
    type: str = "checking",
    balance: str | None = None,
    remove: bool = False,
) -> None:
    """Add, update, remove or list bank accounts."""
    with handle_errors():
        document = open_document()

        if name is None:
            show_accounts(document.accounts, document.transactions)
            return

        existing = next((a for a in document.accounts if a.name.lower() == name.strip().lower()), None)

        if remove:
            account = find_account_arg(document, name)
            accounts = tuple(a for a in document.accounts if a.id != account.id)
            store_document(replace(document, accounts=accounts))
            console.print(f"[green]✓[/green] Removed account: {account.name}")
            console.print("[dim]Existing transactions keep their reference to it[/dim]")
            return

        initial = Money(0)
        if balance is not None:
            parsed = parse_money(balance)
            if parsed is None:
                fail(f"Invalid amount: {balance}")
            initial = parsed

        if existing:
            if type not in ACCOUNT_TYPES:
                fail(f"Unknown account type: {type}")
            new_balance = initial if balance is not None else existing.initial_balance
            updated = replace(existing, type=type, initial_balance=new_balance)
            accounts = tuple(updated if a.id == existing.id else a for a in document.accounts)
            store_document(replace(document, accounts=accounts))
            console.print(f"[green]✓[/green] Updated account: {updated.name}")
            return

        account, error = new_account(name, type, initial, currency())
        if error:
            fail(error)
        assert account is not None

        store_document(replace(document, accounts=(*document.accounts, account)))
        console.print(f"[green]✓[/green] Added account: {account.name} ({account.type}, {money(initial)})")


def show_accounts(accounts: tuple[Account, ...], transactions: tuple[Transaction, ...]) -> None:
    if not accounts:
        console.print("[yellow]No accounts yet[/yellow]")
        console.print("[dim]Use 'cashmap account <name> --balance <amount>' to add one[/dim]")
        return

    table = Table(title="Accounts")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Account", style="white")
    table.add_column("Type", style="cyan")
    table.add_column("Opening", justify="right")
    table.add_column("Balance", justify="right")

    for idx, entry in enumerate(account_balances(accounts, transactions), 1):
        table.add_row(
            str(idx),
            entry.account.name,
            entry.account.type,
            money(entry.account.initial_balance),
            colored_money(entry.balance),
        )

    console.print(table)


def category_command(
    name: str,
    budget: str | None = None,
    kind: str = "expense",
    link: int | None = None,
    unlink: bool = False,
    rename: str | None = None,
    remove: bool = False,
) -> None:
    """Create or update an envelope."""
    with handle_errors():
        document = open_document()
        existing = next((c for c in document.categories if c.name.lower() == name.strip().lower()), None)
        if existing is None and (remove or rename or unlink) and name.isdigit():
            existing = find_category_arg(document, name)

        if existing is None:
            if remove or rename or unlink:
                fail(f"Category '{name}' not found")
            target = require_money(budget, allow_zero=True) if budget is not None else Money(0)
            category, error = new_category(
                name, kind, target, document.categories, start_date=today_iso(), linked_payment_index=link
            )
            if error:
                fail(error)
            assert category is not None
            store_document(replace(document, categories=(*document.categories, category)))
            console.print(f"[green]✓[/green] Created {category.kind} category: {category.name} ({money(target)}/month)")
            return

        if remove:
            store_document(replace(document, categories=remove_category(document.categories, existing.id)))
            console.print(f"[green]✓[/green] Removed category: {existing.name}")
            console.print("[dim]Its transactions are kept and show as uncategorized[/dim]")
            return

        updated = existing
        if budget is not None:
            updated = replace(updated, monthly_budget=require_money(budget, allow_zero=True))
        if rename:
            updated, error = rename_category(updated, rename, document.categories)
            if error:
                fail(error)
        if unlink:
            updated, _ = set_linked_payment(updated, None)
        elif link is not None:
            updated, error = set_linked_payment(updated, link)
            if error:
                fail(error)

        if updated == existing:
            console.print("[yellow]Nothing to change[/yellow]")
            return

        store_document(replace(document, categories=replace_category(document.categories, updated)))
        console.print(f"[green]✓[/green] Updated category: {updated.name}")


def schedule_command(
    category: str,
    date: str | None = None,
    amount: str | None = None,
    remove: str | None = None,
) -> None:
    """Schedule a future change to an envelope's monthly target, or list them."""
    with handle_errors():
        document = open_document()
        cat = find_category_arg(document, category)

        if remove:
            updated = remove_scheduled_change(cat, remove)
            if updated == cat:
                fail(f"Scheduled change '{remove}' not found")
            store_document(replace(document, categories=replace_category(document.categories, updated)))
            console.print(f"[green]✓[/green] Removed scheduled change from {cat.name}")
            return

        if date and amount is not None:
            effective = parse_date_arg(date, today_iso())
            updated, error = add_scheduled_change(cat, effective, require_money(amount, allow_zero=True))
            if error:
                fail(error)
            store_document(replace(document, categories=replace_category(document.categories, updated)))
            console.print(f"[green]✓[/green] {cat.name}: target becomes {money(updated.scheduled_changes[-1].amount)} from {effective}")
            return

        if date or amount is not None:
            fail("Both --date and --amount are needed to schedule a change")

        today = today_iso()
        status = target_status(cat, today)
        source = "scheduled" if status.is_scheduled else "base"
        console.print(f"[bold]{cat.name}[/bold]: {money(status.amount)}/month [dim]({source})[/dim]")

        changes = sorted(cat.scheduled_changes, key=lambda c: c.date)
        if not changes:
            console.print("[dim]No scheduled changes[/dim]")
            return

        upcoming_ids = {c.id for c in upcoming_changes(cat, today)}
        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", style="dim")
        table.add_column("From", style="cyan")
        table.add_column("Target", justify="right")
        table.add_column("State")
        for change in changes:
            if change.id == status.change_id:
                state = "[green]active[/green]"
            elif change.id in upcoming_ids:
                state = "[yellow]upcoming[/yellow]"
            else:
                state = "[dim]superseded[/dim]"
            table.add_row(change.id, change.date, money(change.amount), state)
        console.print(table)


def categories_command(month: str | None = None, all: bool = False) -> None:
    """Show every envelope's balance for a month."""
    target_month = resolve_month(month)
    _, _, label = month_range(target_month)
    window = ReportingWindow.for_month(target_month)

    with handle_errors():
        document = open_document()
        if not document.categories:
            console.print("[yellow]No categories yet[/yellow]")
            console.print("[dim]Use 'cashmap category <name> --budget <amount>' to add one[/dim]")
            return

        numbering = {c.id: i for i, c in enumerate(sorted(document.categories, key=lambda c: c.name.lower()), 1)}
        envelopes = [c for c in document.categories if c.kind != "income"]

        table = Table(title=f"Envelopes - {label}")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Category", style="white")
        table.add_column("Target", justify="right")
        table.add_column("Carried", justify="right")
        table.add_column("Funded", justify="right")
        table.add_column("Spent", justify="right")
        table.add_column("Remaining", justify="right")

        for balance in envelope_balances(envelopes, document.transactions, window):
            cat = balance.category
            if not all and is_system_category(cat) and balance.remaining == 0 and balance.this_month_spent == 0:
                continue
            name = cat.name
            if cat.linked_payment_index:
                name += f" [dim](payment {cat.linked_payment_index})[/dim]"
            if cat.kind == "investment":
                name += " [dim](investment)[/dim]"
            table.add_row(
                str(numbering[cat.id]),
                name,
                money(balance.target),
                money(balance.carried_over),
                money(balance.this_month_income),
                money(balance.this_month_spent),
                colored_money(balance.remaining),
            )

        console.print(table)

        income_cats = [c for c in document.categories if c.kind == "income"]
        if income_cats:
            names = ", ".join(f"{numbering[c.id]}. {c.name}" for c in sorted(income_cats, key=lambda c: c.name.lower()))
            console.print(f"[dim]Income categories: {names}[/dim]")


def status_command(month: str | None = None) -> None:
    """Show the unallocated pool, funding progress and what to do next."""
    target_month = resolve_month(month)
    _, _, label = month_range(target_month)
    window = ReportingWindow.for_month(target_month)

    with handle_errors():
        document = open_document()
        opening = opening_balance(document)
        pool = unallocated_pool(document.transactions, document.categories, opening, window.end)
        before = unallocated_before(document.transactions, document.categories, opening, window.start)
        funding = period_funding(document.categories, document.transactions, window)
        previous = previous_month(target_month)
        prev_funding = period_funding(document.categories, document.transactions, ReportingWindow.for_month(previous))

        console.print(f"[bold cyan]{label} Status[/bold cyan]\n")
        console.print(f"[bold]Opening balance:[/bold]   {money(pool.opening)}")
        console.print(f"[bold]Income received:[/bold]   {money(pool.gross_income)}")
        console.print(f"[bold]Allocated:[/bold]         {money(pool.allocated)}")
        console.print(f"[bold]Unfiled spending:[/bold]  {money(pool.uncategorized_spent)}")

        if pool.available > 0:
            console.print(f"[bold]Unallocated:[/bold]       [yellow]{money(pool.available)} (ready to distribute)[/yellow]")
        elif pool.available < 0:
            console.print(f"[bold]Over-allocated:[/bold]    [red]{money(Money(-pool.available))} (allocated more than you have!)[/red]")
        else:
            console.print(f"[bold]Unallocated:[/bold]       [green]{money(Money(0))} (fully allocated)[/green]")

        console.print(
            f"\n[bold]This month's targets:[/bold] {money(funding.allocated)} of {money(funding.target)} funded"
        )
        if funding.gap > 0:
            console.print(f"  [yellow]{money(funding.gap)} still to fund[/yellow]")

        if suggest_mode(before.available, prev_funding, target_month) == "previous":
            console.print(
                f"\n[yellow]{money(before.available)} was carried in unallocated and {previous} is short "
                f"{money(prev_funding.gap)}.[/yellow]"
            )
            console.print(f"[dim]Use 'cashmap distribute --previous --month {target_month}' to fill last month's gaps[/dim]")

        source = document.income_source
        if source and source.allocations:
            console.print("\n[bold]Payments:[/bold]")
            for rule in source.allocations:
                done = rule_already_allocated(rule, document.transactions, target_month)
                mark = "[green]✓[/green]" if done else "○"
                uncertain = " [dim](estimate)[/dim]" if rule.is_uncertain else ""
                console.print(
                    f"  {mark} {rule.payment_index}. {rule.name or f'Payment {rule.payment_index}'}: "
                    f"{rule.percentage:g}% ≈ {money(rule.amount)}{uncertain}"
                )
            deviation = percentage_deviation(source.allocations)
            if deviation:
                console.print(f"  [yellow]Payment percentages add up to {100 + deviation:g}%[/yellow]")

            upcoming = next_unallocated_rule(source, document.transactions, target_month)
            if upcoming and pool.available > 0:
                console.print(f"\n[dim]Next: 'cashmap distribute --payment {upcoming.payment_index}'[/dim]")


def top_up_command(category: str, amount: str, date: str | None = None) -> None:
    """Move money from the unallocated pool into one envelope."""
    amount_minor = require_money(amount)
    entry_date = parse_date_arg(date, today_iso())

    with handle_errors():
        document = open_document()
        cat = find_category_arg(document, category)
        if cat.kind == "income":
            fail("Income categories can't be topped up")

        pool = unallocated_pool(document.transactions, document.categories, opening_balance(document), entry_date)
        txn, error = top_up(cat, amount_minor, entry_date, pool.available)
        if error:
            fail(error)
        assert txn is not None

        store_document(replace(document, transactions=(*document.transactions, txn)))
        console.print(f"[green]✓[/green] Added {money(amount_minor)} to {cat.name}")
        console.print(f"[dim]Unallocated now: {money(Money(pool.available - amount_minor))}[/dim]")
