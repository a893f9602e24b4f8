"""Pure helpers for reading and displaying money amounts."""

from decimal import Decimal, InvalidOperation

from cashmap.domain.models import Money

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "PKR": "Rs",
    "CAD": "C$",
    "AUD": "A$",
}


def currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.upper(), "$")


def parse_money(value: str | float) -> Money | None:
    """Convert a major-unit amount typed by the user to minor units.

    Args:
        value: Amount such as "12.50", "1,200" or 12.5.

    Returns:
        Amount in minor units, or None if it is not a number.
    """
    text = str(value).strip().replace(",", "")
    for symbol in CURRENCY_SYMBOLS.values():
        text = text.replace(symbol, "")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return Money(int((amount * 100).quantize(Decimal("1"))))


def format_money(amount: Money, currency: str = "USD", include_sign: bool = False) -> str:
    """Format money amount for display.

    Args:
        amount: Amount in minor units.
        currency: ISO currency code.
        include_sign: Whether to include + or - sign for non-negative amounts too.

    Returns:
        Formatted string (e.g., "-$123.45" or "$123.45").
    """
    formatted = f"{currency_symbol(currency)}{abs(amount) / 100:,.2f}"

    if amount < 0:
        return f"-{formatted}"
    if include_sign:
        return f"+{formatted}"
    return formatted
