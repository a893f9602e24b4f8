"""Tests for cashmap.domain.money pure functions."""

from cashmap.domain.models import Money
from cashmap.domain.money import currency_symbol, format_money, parse_money


class TestParseMoney:
    """Tests for parse_money."""

    def test_decimal_string(self) -> None:
        """Should convert major units to minor units exactly."""
        assert parse_money("12.50") == Money(1250)
        assert parse_money("0.29") == Money(29)

    def test_separators_and_symbols(self) -> None:
        """Should ignore thousands separators and currency symbols."""
        assert parse_money("$1,200") == Money(120000)
        assert parse_money("£3.10") == Money(310)

    def test_float(self) -> None:
        """Should accept floats."""
        assert parse_money(12.5) == Money(1250)

    def test_negative(self) -> None:
        """Should keep the sign."""
        assert parse_money("-20") == Money(-2000)

    def test_invalid(self) -> None:
        """Should return None for non-numbers."""
        assert parse_money("twelve") is None
        assert parse_money("nan") is None


class TestFormatMoney:
    """Tests for format_money."""

    def test_positive(self) -> None:
        """Should format with symbol and thousands separator."""
        assert format_money(Money(123456)) == "$1,234.56"

    def test_negative(self) -> None:
        """Should put the minus sign before the symbol."""
        assert format_money(Money(-450), "GBP") == "-£4.50"

    def test_include_sign(self) -> None:
        """Should prefix non-negative amounts with + when asked."""
        assert format_money(Money(100), "EUR", include_sign=True) == "+€1.00"

    def test_unknown_currency_uses_dollar(self) -> None:
        """Should fall back to $ for unknown codes."""
        assert currency_symbol("XYZ") == "$"
