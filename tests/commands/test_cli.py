"""End-to-end tests for cashmap commands run through the typer app."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cashmap.cli import app
from cashmap.store import get_db_path, init_database, load_document

runner = CliRunner()


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    init_database(get_db_path())
    return tmp_path


def _flat(output: str) -> str:
    return " ".join(output.split())


class TestSync:
    """Tests for the sync command."""

    def test_imports_non_utf8_export(self, home: Path) -> None:
        """Should import a Windows-encoded export instead of crashing."""
        csv_path = home / "statement.csv"
        csv_path.write_bytes(b"Date,Description,Amount\n03/04/2024,Caf\xe9,-4.50\n")

        result = runner.invoke(app, ["sync", str(csv_path), "--yes"])

        assert result.exit_code == 0, result.output
        [txn] = load_document(get_db_path()).transactions
        assert txn.description == "Café"
        assert txn.date == "2024-04-03"
        assert txn.amount == 450


class TestRestore:
    """Tests for the restore command."""

    def test_record_without_id(self, home: Path) -> None:
        """Should exit with a message when a backup record lacks its id."""
        backup = home / "broken.json"
        backup.write_text(json.dumps({"categories": [{"name": "Groceries"}], "transactions": []}), encoding="utf-8")

        result = runner.invoke(app, ["restore", str(backup), "--yes"])

        assert result.exit_code == 1
        assert "not a cashmap backup" in _flat(result.output)
        assert load_document(get_db_path()).categories == ()
