"""Tests for cashmap.store.documents and cashmap.store.schema."""

import json
from pathlib import Path

import pytest

from cashmap.domain.models import BudgetDocument, Category, CategoryId, Money
from cashmap.store.documents import export_document, import_document, load_document, save_document
from cashmap.store.schema import database_exists, get_db_path, init_database

GROCERIES = Category(id=CategoryId("groceries"), name="Groceries", kind="expense", monthly_budget=Money(40000))


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "data" / "cashmap.db"
    init_database(path)
    return path


class TestSchema:
    """Tests for init_database and get_db_path."""

    def test_init_creates_file(self, db_path: Path) -> None:
        """Should create the database and its parent directory."""
        assert database_exists(db_path)

    def test_init_is_repeatable(self, db_path: Path) -> None:
        """Should not fail on an existing database."""
        init_database(db_path)

        assert database_exists(db_path)

    def test_xdg_data_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should honour XDG_DATA_HOME."""
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

        assert get_db_path() == tmp_path / "cashmap" / "cashmap.db"


class TestLoadSave:
    """Tests for load_document and save_document."""

    def test_empty_database(self, db_path: Path) -> None:
        """Should return an empty document when nothing was saved."""
        assert load_document(db_path) == BudgetDocument()

    def test_save_then_load(self, db_path: Path) -> None:
        """Should store the whole document and stamp last_updated."""
        stored = save_document(BudgetDocument(categories=(GROCERIES,)), db_path)

        loaded = load_document(db_path)

        assert loaded.categories == (GROCERIES,)
        assert stored.last_updated is not None
        assert stored.last_updated.endswith("Z")
        assert loaded.last_updated == stored.last_updated

    def test_save_replaces(self, db_path: Path) -> None:
        """Should replace the previous document wholesale."""
        save_document(BudgetDocument(categories=(GROCERIES,)), db_path)
        save_document(BudgetDocument(), db_path)

        assert load_document(db_path).categories == ()

    def test_separate_keys(self, db_path: Path) -> None:
        """Should keep documents under different keys apart."""
        save_document(BudgetDocument(categories=(GROCERIES,)), db_path, key="other")

        assert load_document(db_path).categories == ()
        assert load_document(db_path, key="other").categories == (GROCERIES,)


class TestExportImport:
    """Tests for export_document and import_document."""

    def test_export_then_import(self, tmp_path: Path) -> None:
        """Should write a JSON backup that reads back to the same document."""
        path = tmp_path / "backups" / "cashmap.json"
        document = BudgetDocument(categories=(GROCERIES,))

        export_document(document, path)

        assert import_document(path) == document

    def test_rejects_non_backup(self, tmp_path: Path) -> None:
        """Should refuse JSON that isn't a backup."""
        path = tmp_path / "other.json"
        path.write_text(json.dumps({"hello": "world"}), encoding="utf-8")

        with pytest.raises(ValueError):
            import_document(path)

    def test_rejects_record_without_id(self, tmp_path: Path) -> None:
        """Should report a record missing its id as a bad backup."""
        path = tmp_path / "broken.json"
        path.write_text(
            json.dumps({"categories": [], "transactions": [{"date": "2025-01-01", "amount": 5}]}),
            encoding="utf-8",
        )

        with pytest.raises(ValueError, match="not a cashmap backup"):
            import_document(path)
