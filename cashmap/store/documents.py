"""Document persistence: load, save, export and import the budget."""

import json
import logging
import sqlite3
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from cashmap.domain.models import BudgetDocument
from cashmap.store.schema import DOCUMENT_KEY, get_db_path
from cashmap.store.serialization import document_from_json, document_to_json

logger = logging.getLogger(__name__)


def _connect(db_path: Path | None = None) -> sqlite3.Connection:
    """Create a database connection with row factory.

    Args:
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Database connection with row_factory configured.
    """
    if db_path is None:
        db_path = get_db_path()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def load_document(db_path: Path | None = None, key: str = DOCUMENT_KEY) -> BudgetDocument:
    """Load the budget document.

    Args:
        db_path: Path to the database file. If None, uses default location.
        key: Document key.

    Returns:
        Stored document, or an empty one if nothing has been saved yet.

    Raises:
        sqlite3.Error: If database operation fails.
        json.JSONDecodeError: If the stored body is corrupt.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT body FROM documents WHERE key = ?", (key,))
        row = cursor.fetchone()

    if row is None:
        logger.debug("No document stored under %s", key)
        return BudgetDocument()

    return document_from_json(json.loads(row["body"]))


def save_document(document: BudgetDocument, db_path: Path | None = None, key: str = DOCUMENT_KEY) -> BudgetDocument:
    """Replace the stored document.

    Args:
        document: Document to store.
        db_path: Path to the database file. If None, uses default location.
        key: Document key.

    Returns:
        The document as stored (stamped with its new last_updated).

    Raises:
        sqlite3.Error: If database operation fails.
    """
    stamped = replace(document, last_updated=_timestamp())
    body = json.dumps(document_to_json(stamped))

    with _connect(db_path) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute(
                """
                INSERT INTO documents (key, body, last_updated) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET body = excluded.body, last_updated = excluded.last_updated
                """,
                (key, body, stamped.last_updated),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise

    logger.debug(
        "Saved document %s: %d transactions, %d categories",
        key,
        len(stamped.transactions),
        len(stamped.categories),
    )
    return stamped


def export_document(document: BudgetDocument, path: Path) -> None:
    """Write the document to a JSON backup file.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document_to_json(document), f, indent=2)
    logger.info("Exported backup to %s", path)


def import_document(path: Path) -> BudgetDocument:
    """Read a document from a JSON backup file.

    Args:
        path: Backup file (same format as the stored document).

    Returns:
        Parsed document.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the JSON is not a backup document or a record lacks its id.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict) or "transactions" not in data or "categories" not in data:
        raise ValueError(f"{path} is not a cashmap backup")

    try:
        return document_from_json(data)
    except KeyError as e:
        raise ValueError(f"{path} is not a cashmap backup (record missing {e})") from e
