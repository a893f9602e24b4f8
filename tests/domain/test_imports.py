"""Tests for cashmap.domain.imports pure functions."""

import pytest

from cashmap.domain.imports import (
    CsvMapping,
    apply_category_matches,
    build_history_map,
    decode_csv_bytes,
    detect_mapping,
    normalize_date,
    parse_amount,
    parse_rows,
    split_csv_text,
    uncategorized_expense_descriptions,
)
from cashmap.domain.models import EXPENSE, INCOME, CategoryId, Description, Money, Transaction, TransactionId

TODAY = "2025-03-20"


def _txn(txn_id: str, description: str, category_id: str | None = None, type: str = EXPENSE) -> Transaction:
    return Transaction(
        id=TransactionId(txn_id),
        date="2025-03-01",
        description=Description(description),
        amount=Money(100),
        type=type,  # type: ignore[arg-type]
        category_id=CategoryId(category_id) if category_id else None,
    )


class TestDecodeCsvBytes:
    """Tests for decode_csv_bytes."""

    def test_utf8_with_bom(self) -> None:
        """Should strip the byte order mark from UTF-8 exports."""
        assert decode_csv_bytes("﻿Date,Café".encode()) == ("Date,Café", "utf-8-sig")

    def test_windows_export(self) -> None:
        """Should read a non-UTF-8 export instead of failing."""
        text, encoding = decode_csv_bytes(b"03/04/2024,Caf\xe9,-4.50\n")

        assert encoding == "cp1252"
        assert split_csv_text(text) == [["03/04/2024", "Café", "-4.50"]]

    def test_bytes_undefined_in_cp1252(self) -> None:
        """Should fall back to latin-1, which accepts every byte."""
        assert decode_csv_bytes(b"\x81\xe9") == ("\x81é", "latin-1")


class TestSplitCsvText:
    """Tests for split_csv_text."""

    def test_quoted_commas_and_blank_lines(self) -> None:
        """Should keep commas inside quotes and drop blank lines."""
        text = 'Date,Description,Amount\n\n"03/04/2024","Smith, John",-4.50\n'

        assert split_csv_text(text) == [
            ["Date", "Description", "Amount"],
            ["03/04/2024", "Smith, John", "-4.50"],
        ]


class TestDetectMapping:
    """Tests for detect_mapping."""

    def test_single_amount_column(self) -> None:
        """Should find date, description and amount columns."""
        mapping = detect_mapping(["Amount", "Posted Date", "Details"])

        assert mapping.date_index == 1
        assert mapping.description_index == 2
        assert mapping.amount_index == 0
        assert mapping.mode == "single"

    def test_split_columns(self) -> None:
        """Should switch to split mode when debit and credit columns both exist."""
        mapping = detect_mapping(["Date", "Memo", "Withdrawal", "Deposit"])

        assert mapping.mode == "split"
        assert mapping.debit_index == 2
        assert mapping.credit_index == 3

    def test_unrecognised_header_keeps_defaults(self) -> None:
        """Should fall back to the default positions."""
        assert detect_mapping(["a", "b", "c"]) == CsvMapping()


class TestNormalizeDate:
    """Tests for normalize_date."""

    def test_iso_passes_through(self) -> None:
        """Should keep ISO dates as-is."""
        assert normalize_date("2024-04-03", TODAY) == "2024-04-03"

    def test_day_first(self) -> None:
        """Should read D/M/YYYY day-first with any common separator."""
        assert normalize_date("03/04/2024", TODAY) == "2024-04-03"
        assert normalize_date("3-4-2024", TODAY) == "2024-04-03"
        assert normalize_date("03.04.2024", TODAY) == "2024-04-03"

    def test_year_first(self) -> None:
        """Should read YYYY/M/D year-first rather than swapping day and month."""
        assert normalize_date("2024/04/03", TODAY) == "2024-04-03"
        assert normalize_date("2024.4.3", TODAY) == "2024-04-03"
        assert normalize_date("2024-04-03T10:15:00", TODAY) == "2024-04-03"

    def test_textual_date(self) -> None:
        """Should fall back to pandas for other formats."""
        assert normalize_date("3 Apr 2024", TODAY) == "2024-04-03"

    def test_unreadable_uses_today(self) -> None:
        """Should use today's date when nothing can be parsed."""
        assert normalize_date("not a date", TODAY) == TODAY

    def test_impossible_day_raises(self) -> None:
        """Should raise for a day that does not exist."""
        with pytest.raises(ValueError):
            normalize_date("31/02/2024", TODAY)


class TestParseAmount:
    """Tests for parse_amount."""

    def test_strips_symbols_and_separators(self) -> None:
        """Should ignore currency symbols and thousands separators."""
        assert parse_amount("$1,234.50") == 1234.50
        assert parse_amount("-4.50") == -4.50

    def test_non_numeric(self) -> None:
        """Should return None when nothing numeric is left."""
        assert parse_amount("n/a") is None
        assert parse_amount(None) is None


class TestParseRows:
    """Tests for parse_rows."""

    def test_single_column_expense(self) -> None:
        """Should turn a negative amount into an expense in minor units."""
        result = parse_rows([["03/04/2024", "Coffee Shop", "-4.50"]], CsvMapping(), {}, TODAY)

        [txn] = result.transactions
        assert txn.date == "2024-04-03"
        assert txn.description == "Coffee Shop"
        assert txn.amount == Money(450)
        assert txn.type == EXPENSE
        assert result.imported == 1
        assert result.skipped == 0

    def test_positive_amount_is_income(self) -> None:
        """Should record positive amounts as income."""
        result = parse_rows([["2024-04-01", "Payroll", "1500.00"]], CsvMapping(), {}, TODAY)

        assert result.transactions[0].type == INCOME
        assert result.transactions[0].amount == Money(150000)

    def test_header_row_is_skipped_silently(self) -> None:
        """Should skip a header row without counting it."""
        rows = [["Date", "Description", "Amount"], ["2024-04-01", "Coffee", "-3"]]

        result = parse_rows(rows, CsvMapping(), {}, TODAY)

        assert result.imported == 1
        assert result.skipped == 0

    def test_bad_rows_are_counted(self) -> None:
        """Should count short rows, blanks, bad amounts and bad dates as skipped."""
        rows = [
            ["only-one-cell"],
            ["", "No date", "-1"],
            ["2024-04-01", "No amount", ""],
            ["2024-04-01", "Words", "abc"],
            ["31/02/2024", "Bad day", "-1"],
            ["2024-04-01", "Good", "-1"],
        ]

        result = parse_rows(rows, CsvMapping(), {}, TODAY)

        assert result.imported == 1
        assert result.skipped == 5

    def test_split_mode(self) -> None:
        """Should read debits as expenses and credits as income."""
        mapping = CsvMapping(mode="split", debit_index=2, credit_index=3)
        rows = [
            ["2024-04-01", "Rent", "1200.00", ""],
            ["2024-04-02", "Refund", "", "25.00"],
            ["2024-04-03", "Nothing", "", ""],
        ]

        result = parse_rows(rows, mapping, {}, TODAY)

        assert [(t.type, t.amount) for t in result.transactions] == [(EXPENSE, 120000), (INCOME, 2500)]
        assert result.skipped == 1

    def test_auto_categorizes_from_history(self) -> None:
        """Should reuse the category of a known description."""
        history = build_history_map([_txn("old", "  COFFEE shop ", "coffee")])

        result = parse_rows([["2024-04-01", "Coffee Shop", "-3"]], CsvMapping(), history, TODAY, account_id="chk")

        assert result.transactions[0].category_id == "coffee"
        assert result.transactions[0].account_id == "chk"
        assert result.auto_matched == 1


class TestCategoryMatches:
    """Tests for uncategorized_expense_descriptions and apply_category_matches."""

    def test_unique_uncategorized_descriptions(self) -> None:
        """Should list each uncategorized expense description once."""
        ledger = [
            _txn("a", "Coffee"),
            _txn("b", "Coffee"),
            _txn("c", "Rent", "rent"),
            _txn("d", "Payroll", type=INCOME),
            _txn("e", "Fuel"),
        ]

        assert uncategorized_expense_descriptions(ledger) == ["Coffee", "Fuel"]

    def test_apply_matches(self) -> None:
        """Should only fill in uncategorized expenses."""
        ledger = [_txn("a", "Coffee"), _txn("b", "Coffee", "other"), _txn("c", "Fuel")]

        result, updated = apply_category_matches(ledger, {"Coffee": CategoryId("coffee")})

        assert updated == 1
        assert [t.category_id for t in result] == ["coffee", "other", None]
