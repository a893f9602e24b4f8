"""Tests for cashmap.integrations.gemini with the HTTP layer stubbed out."""

import json
from typing import Any

import pytest
import requests

from cashmap.domain.models import Category, CategoryId, Money
from cashmap.integrations import gemini
from cashmap.integrations.gemini import classify, classify_batch, resolve_category

CATEGORIES = [
    Category(id=CategoryId("groceries"), name="Groceries", kind="expense", monthly_budget=Money(0)),
    Category(id=CategoryId("fuel"), name="Fuel", kind="expense", monthly_budget=Money(0)),
]


class FakeResponse:
    def __init__(self, body: Any, status_code: int = 200) -> None:
        self.body = body
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        return self.body


def _reply(payload: dict[str, Any]) -> FakeResponse:
    return FakeResponse({"candidates": [{"content": {"parts": [{"text": json.dumps(payload)}]}}]})


def _stub(monkeypatch: pytest.MonkeyPatch, response: FakeResponse) -> list[tuple[str, dict[str, Any]]]:
    recorded: list[tuple[str, dict[str, Any]]] = []

    def fake_post(url: str, **kwargs: Any) -> FakeResponse:
        recorded.append((url, kwargs))
        return response

    monkeypatch.setattr(gemini.requests, "post", fake_post)
    return recorded


class TestResolveCategory:
    """Tests for resolve_category."""

    def test_case_insensitive_match(self) -> None:
        """Should match names ignoring case and whitespace."""
        assert resolve_category(" groceries ", CATEGORIES) == "groceries"

    def test_uncategorized_and_unknown(self) -> None:
        """Should return None for "Uncategorized" and unknown names."""
        assert resolve_category("Uncategorized", CATEGORIES) is None
        assert resolve_category("Rent", CATEGORIES) is None
        assert resolve_category(None, CATEGORIES) is None


class TestClassify:
    """Tests for classify."""

    def test_single_match(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should post to the model and map the reply to a category id."""
        recorded = _stub(monkeypatch, _reply({"categoryName": "Fuel"}))

        assert classify("SHELL 123", CATEGORIES, "key", "test-model") == "fuel"

        url, kwargs = recorded[0]
        assert url.endswith("/models/test-model:generateContent")
        assert kwargs["params"] == {"key": "key"}
        assert "SHELL 123" in kwargs["json"]["contents"][0]["parts"][0]["text"]

    def test_no_categories_skips_request(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should not call the API with nothing to choose from."""
        recorded = _stub(monkeypatch, _reply({}))

        assert classify("SHELL", [], "key") is None
        assert recorded == []

    def test_garbled_reply(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should treat a reply without usable JSON as no match."""
        _stub(monkeypatch, FakeResponse({"candidates": []}))

        assert classify("SHELL", CATEGORIES, "key") is None

    def test_http_error_propagates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should raise request errors to the caller."""
        _stub(monkeypatch, FakeResponse({}, status_code=403))

        with pytest.raises(requests.HTTPError):
            classify("SHELL", CATEGORIES, "key")


class TestClassifyBatch:
    """Tests for classify_batch."""

    def test_keeps_confident_matches(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should return only descriptions matched to known categories."""
        _stub(
            monkeypatch,
            _reply(
                {
                    "matches": [
                        {"description": "TESCO", "categoryName": "Groceries"},
                        {"description": "SHELL", "categoryName": "fuel"},
                        {"description": "???", "categoryName": "Uncategorized"},
                        {"categoryName": "Groceries"},
                    ]
                }
            ),
        )

        result = classify_batch(["TESCO", "SHELL", "???"], CATEGORIES, "key")

        assert result == {"TESCO": "groceries", "SHELL": "fuel"}

    def test_nothing_to_classify(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should skip the request for an empty batch."""
        recorded = _stub(monkeypatch, _reply({}))

        assert classify_batch([], CATEGORIES, "key") == {}
        assert recorded == []
