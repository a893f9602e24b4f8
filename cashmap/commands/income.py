"""Income source configuration command."""

from dataclasses import replace

from rich.table import Table

from cashmap.commands.common import (
    console,
    fail,
    handle_errors,
    money,
    open_document,
    require_money,
    store_document,
)
from cashmap.domain.income import (
    SLOTS_PER_FREQUENCY,
    add_payment,
    default_income_source,
    percentage_deviation,
    percentage_total,
    remove_payment,
    reset_for_frequency,
    set_estimated_amount,
    set_percentage,
)
from cashmap.domain.models import AllocationRule, IncomeSource, Money, new_id
from cashmap.domain.money import parse_money


def show_income_source(source: IncomeSource) -> None:
    """Print an income source and its payment slots."""
    console.print(f"[bold cyan]{source.name}[/bold cyan] [dim]({source.currency}, {source.frequency})[/dim]")
    console.print(f"[bold]Expected per month:[/bold] {money(source.estimated_amount)}")
    if source.opening_balance:
        console.print(f"[bold]Opening balance:[/bold]    {money(source.opening_balance)}")

    table = Table()
    table.add_column("#", justify="right", style="dim")
    table.add_column("Payment", style="white")
    table.add_column("Share", justify="right", style="cyan")
    table.add_column("Expected", justify="right")
    table.add_column("Note", style="dim")

    for rule in source.allocations:
        expected = money(rule.amount)
        if rule.is_uncertain:
            expected = f"[yellow]~{expected}[/yellow]"
        table.add_row(
            str(rule.payment_index),
            rule.name or f"Payment {rule.payment_index}",
            f"{rule.percentage:g}%",
            expected,
            rule.note or "",
        )
    console.print(table)

    deviation = percentage_deviation(source.allocations)
    if deviation:
        console.print(
            f"[yellow]Payment shares add up to {percentage_total(source.allocations):g}% "
            f"({deviation:+g}%)[/yellow]"
        )


def _update_rule(source: IncomeSource, payment: int, **changes: object) -> IncomeSource:
    rules: list[AllocationRule] = []
    for rule in source.allocations:
        rules.append(replace(rule, **changes) if rule.payment_index == payment else rule)  # type: ignore[arg-type]
    return replace(source, allocations=tuple(rules))


def income_command(
    name: str | None = None,
    frequency: str | None = None,
    amount: str | None = None,
    opening: str | None = None,
    add: bool = False,
    remove: int | None = None,
    payment: int | None = None,
    percent: float | None = None,
    label: str | None = None,
    note: str | None = None,
    uncertain: bool | None = None,
) -> None:
    """Configure the income source and how each payment is split.

    Without options, shows the current configuration.

    Args:
        name: Rename the income source.
        frequency: Pay frequency; resets the payment slots.
        amount: Expected total income per month.
        opening: Opening balance (may be negative).
        add: Add a payment slot.
        remove: Remove the payment with this number.
        payment: Payment number that --percent, --label, --note and
            --uncertain apply to.
        percent: New share for the payment; the others are rebalanced.
        label: Display name for the payment.
        note: Free-form note for the payment.
        uncertain: Mark the payment's amount as an estimate.
    """
    if frequency is not None and frequency not in SLOTS_PER_FREQUENCY:
        fail(f"Unknown frequency: {frequency} (choose from {', '.join(SLOTS_PER_FREQUENCY)})")

    slot_options = (percent, label, note, uncertain)
    if payment is None and any(option is not None for option in slot_options):
        fail("Choose a payment with --payment")

    with handle_errors():
        document = open_document()
        original = document.income_source or default_income_source(new_id())
        source = original

        if name:
            source = replace(source, name=name.strip())
        if frequency is not None:
            source = reset_for_frequency(source, frequency)  # type: ignore[arg-type]
            console.print(f"[dim]Payments reset to {len(source.allocations)} evenly split slots[/dim]")
        if amount is not None:
            source = set_estimated_amount(source, require_money(amount, allow_zero=True))
        if opening is not None:
            opening_minor = parse_money(opening)
            if opening_minor is None:
                fail(f"Invalid amount: {opening}")
            source = replace(source, opening_balance=opening_minor)
        if add:
            source = add_payment(source)
        if remove is not None:
            source, error = remove_payment(source, remove - 1)
            if error:
                fail(error)

        if payment is not None:
            if not any(r.payment_index == payment for r in source.allocations):
                fail(f"No payment number {payment} (have {len(source.allocations)})")
            if percent is not None:
                if len(source.allocations) == 1:
                    fail("A single payment always takes 100%")
                source = set_percentage(source, payment, percent)
            if label is not None:
                source = _update_rule(source, payment, name=label.strip() or None)
            if note is not None:
                source = _update_rule(source, payment, note=note.strip() or None)
            if uncertain is not None:
                source = _update_rule(source, payment, is_uncertain=uncertain)

        if source != original or document.income_source is None:
            others = document.income_sources[1:]
            store_document(replace(document, income_sources=(source, *others)))
            console.print("[green]✓[/green] Income source updated\n")

        show_income_source(source)
        if source.estimated_amount == Money(0):
            console.print("[dim]Set the expected monthly income with --amount[/dim]")
