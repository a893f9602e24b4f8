"""Pure functions for turning bank CSV exports into ledger entries.

This module contains the functional core for imports:
- No I/O operations (the caller reads the file and passes the text in)
- Bad rows are skipped and counted, never fatal to the batch
- Today's date is passed in, never read from the clock

All monetary amounts are in minor units (Money type).
"""

import csv
import io
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import date
from typing import Literal

import pandas as pd

from cashmap.domain.models import (
    EXPENSE,
    INCOME,
    CategoryId,
    Description,
    Money,
    Transaction,
    TransactionId,
    TransactionType,
    new_id,
)

MappingMode = Literal["single", "split"]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DAY_FIRST_DATE = re.compile(r"(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})")
_YEAR_FIRST_DATE = re.compile(r"^(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})(?!\d)")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")

# Tried in order before falling back to latin-1
CSV_ENCODINGS = ("utf-8-sig", "cp1252")


@dataclass(frozen=True)
class CsvMapping:
    """Column positions for a CSV layout."""

    date_index: int = 0
    description_index: int = 1
    mode: MappingMode = "single"
    amount_index: int = 2
    debit_index: int = 2
    credit_index: int = 3


@dataclass(frozen=True)
class ImportResult:
    """Immutable result of parsing a CSV batch."""

    transactions: list[Transaction]
    imported: int
    skipped: int
    auto_matched: int


def decode_csv_bytes(data: bytes) -> tuple[str, str]:
    """Decode a bank export whose encoding isn't declared.

    UTF-8 (with or without a byte order mark) is tried first, then the
    Windows and Latin-1 code pages most non-UTF-8 exports use. Latin-1 maps
    every byte, so decoding never fails.

    Args:
        data: Raw file contents.

    Returns:
        Tuple of (text, encoding_used).
    """
    for encoding in CSV_ENCODINGS:
        try:
            return data.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    return data.decode("latin-1"), "latin-1"


def split_csv_text(text: str) -> list[list[str]]:
    """Split CSV text into rows of trimmed cells.

    Args:
        text: Raw file contents.

    Returns:
        Rows with blank lines dropped; commas inside quotes are kept.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    reader = csv.reader(io.StringIO("\n".join(lines)), skipinitialspace=True)
    return [[cell.strip() for cell in row] for row in reader]


def _find_column(header: Sequence[str], keywords: Iterable[str]) -> int | None:
    words = tuple(keywords)
    for i, cell in enumerate(header):
        lowered = cell.lower()
        if any(word in lowered for word in words):
            return i
    return None


def detect_mapping(header_row: Sequence[str]) -> CsvMapping:
    """Suggest a column mapping from a header row.

    Args:
        header_row: First row of the file.

    Returns:
        CsvMapping. Columns that are not recognised keep their default
        position. Split mode is chosen only when distinct debit and credit
        columns are both found.
    """
    date_idx = _find_column(header_row, ["date"])
    desc_idx = _find_column(header_row, ["desc", "detail"])
    debit_idx = _find_column(header_row, ["debit", "dr", "withdrawal"])
    credit_idx = _find_column(header_row, ["credit", "cr", "deposit"])
    amount_idx = _find_column(header_row, ["amount"])

    mode: MappingMode = "single"
    if debit_idx is not None and credit_idx is not None and debit_idx != credit_idx:
        mode = "split"

    return CsvMapping(
        date_index=date_idx if date_idx is not None else 0,
        description_index=desc_idx if desc_idx is not None else 1,
        mode=mode,
        amount_index=amount_idx if amount_idx is not None else 2,
        debit_index=debit_idx if debit_idx is not None else 2,
        credit_index=credit_idx if credit_idx is not None else 3,
    )


def normalize_date(raw: str, today: str) -> str:
    """Normalize a CSV date to YYYY-MM-DD.

    ISO dates pass through. YYYY/M/D is read year-first and D/M/YYYY
    day-first, with "/", "-" or "." separators. Anything else goes through
    pandas (day-first); if that fails too, today's date is used.

    Args:
        raw: Raw date cell.
        today: Today's ISO date.

    Returns:
        Normalized date.

    Raises:
        ValueError: If a YYYY/M/D or D/M/YYYY date names a day that doesn't exist.
    """
    raw = raw.strip()
    if not raw:
        return today
    if _ISO_DATE.match(raw):
        return raw

    match = _YEAR_FIRST_DATE.match(raw)
    if match:
        year, month, day = int(match.group(1)), int(match.group(2)), int(match.group(3))
        return date(year, month, day).isoformat()

    match = _DAY_FIRST_DATE.search(raw)
    if match:
        day, month, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
        return date(year, month, day).isoformat()

    parsed = pd.to_datetime(raw, dayfirst=True, errors="coerce")
    if pd.isna(parsed):
        return today
    return parsed.strftime("%Y-%m-%d")


def parse_amount(raw: str | None) -> float | None:
    """Parse a money cell, ignoring currency symbols and thousands separators.

    Args:
        raw: Raw amount cell.

    Returns:
        Amount in major units, or None if nothing numeric is left.
    """
    if raw is None:
        return None
    cleaned = _NON_NUMERIC.sub("", raw)
    try:
        return float(cleaned)
    except ValueError:
        return None


def to_minor_units(value: float) -> Money:
    return Money(round(abs(value) * 100))


def history_key(description: str) -> str:
    return description.lower().strip()


def build_history_map(transactions: Iterable[Transaction]) -> dict[str, CategoryId]:
    """Map each known description to the category it was last filed under.

    Args:
        transactions: Existing ledger.

    Returns:
        Lower-cased trimmed description -> category id (last one wins).
    """
    history: dict[str, CategoryId] = {}
    for txn in transactions:
        if txn.category_id:
            history[history_key(txn.description)] = txn.category_id
    return history


def _cell(row: Sequence[str], index: int) -> str:
    if 0 <= index < len(row):
        return row[index]
    return ""


def _resolve_amount(row: Sequence[str], mapping: CsvMapping) -> tuple[Money, TransactionType] | None:
    if mapping.mode == "single":
        raw = _cell(row, mapping.amount_index)
        if not raw:
            return None
        value = parse_amount(raw)
        if value is None:
            return None
        return to_minor_units(value), INCOME if value > 0 else EXPENSE

    debit = parse_amount(_cell(row, mapping.debit_index) or "0")
    credit = parse_amount(_cell(row, mapping.credit_index) or "0")
    if debit is not None and debit > 0:
        return to_minor_units(debit), EXPENSE
    if credit is not None and credit > 0:
        return to_minor_units(credit), INCOME
    return None


def parse_rows(
    rows: Sequence[Sequence[str]],
    mapping: CsvMapping,
    history: Mapping[str, CategoryId],
    today: str,
    account_id: str | None = None,
) -> ImportResult:
    """Convert CSV rows into new transactions.

    Args:
        rows: Rows from split_csv_text.
        mapping: Column mapping.
        history: Description -> category map from build_history_map.
        today: Today's ISO date (fallback for unreadable dates).
        account_id: Account to attach the entries to.

    Returns:
        ImportResult with the new transactions and imported/skipped counts.
    """
    transactions: list[Transaction] = []
    skipped = 0
    auto_matched = 0

    for idx, row in enumerate(rows):
        if len(row) < 2:
            skipped += 1
            continue

        raw_date = _cell(row, mapping.date_index)
        raw_desc = _cell(row, mapping.description_index)
        if not raw_date or not raw_desc:
            skipped += 1
            continue

        # Header row
        if idx == 0 and "date" in raw_date.lower():
            continue

        try:
            txn_date = normalize_date(raw_date, today)
        except ValueError:
            skipped += 1
            continue

        resolved = _resolve_amount(row, mapping)
        if resolved is None:
            skipped += 1
            continue
        amount, txn_type = resolved

        category_id = history.get(history_key(raw_desc))
        if category_id:
            auto_matched += 1

        transactions.append(
            Transaction(
                id=TransactionId(new_id()),
                date=txn_date,
                description=Description(raw_desc),
                amount=amount,
                type=txn_type,
                category_id=category_id,
                account_id=account_id,
            )
        )

    return ImportResult(
        transactions=transactions,
        imported=len(transactions),
        skipped=skipped,
        auto_matched=auto_matched,
    )


def uncategorized_expense_descriptions(transactions: Iterable[Transaction]) -> list[str]:
    """Unique descriptions of uncategorized expenses, in ledger order."""
    seen: dict[str, None] = {}
    for txn in transactions:
        if txn.type == EXPENSE and txn.category_id is None:
            seen.setdefault(txn.description, None)
    return list(seen)


def apply_category_matches(
    transactions: Iterable[Transaction], matches: Mapping[str, CategoryId]
) -> tuple[list[Transaction], int]:
    """Apply description -> category matches to uncategorized expenses.

    Args:
        transactions: Full ledger.
        matches: Exact description -> category id.

    Returns:
        Tuple of (new_ledger, updated_count).
    """
    updated = 0
    result: list[Transaction] = []
    for txn in transactions:
        category_id = matches.get(txn.description)
        if txn.type == EXPENSE and txn.category_id is None and category_id:
            result.append(replace(txn, category_id=category_id))
            updated += 1
        else:
            result.append(txn)
    return result, updated
