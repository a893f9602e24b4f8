"""Gemini API interactions for transaction categorization."""

import json
import logging
from collections.abc import Iterable, Sequence
from typing import Any

import requests

from cashmap.domain.models import Category, CategoryId

logger = logging.getLogger(__name__)

API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-3-flash-preview"
REQUEST_TIMEOUT = 60

UNCATEGORIZED = "uncategorized"


def _generate(api_key: str, model: str, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
    """Call generateContent and decode the JSON reply.

    Args:
        api_key: Gemini API key.
        model: Model id.
        prompt: Prompt text.
        schema: Response schema the reply must follow.

    Returns:
        Decoded reply, or an empty dict if the model returned no usable JSON.

    Raises:
        requests.RequestException: If API request fails.
    """
    payload = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": schema,
        },
    }
    response = requests.post(
        f"{API_BASE_URL}/models/{model}:generateContent",
        params={"key": api_key},
        json=payload,
        timeout=REQUEST_TIMEOUT,
    )
    response.raise_for_status()

    try:
        text = response.json()["candidates"][0]["content"]["parts"][0]["text"]
        result = json.loads(text)
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning("Unexpected reply from %s: %s", model, e)
        return {}

    return result if isinstance(result, dict) else {}


def resolve_category(name: str | None, categories: Iterable[Category]) -> CategoryId | None:
    """Match a category name from the model against known categories.

    Args:
        name: Name returned by the model.
        categories: Known categories.

    Returns:
        Category id (case-insensitive exact name match), or None for
        "Uncategorized" and unknown names.
    """
    if not name or name.strip().lower() == UNCATEGORIZED:
        return None
    wanted = name.strip().lower()
    for category in categories:
        if category.name.lower() == wanted:
            return category.id
    return None


def classify(
    description: str,
    categories: Sequence[Category],
    api_key: str,
    model: str = DEFAULT_MODEL,
) -> CategoryId | None:
    """Suggest a category for one transaction description.

    Args:
        description: Transaction description.
        categories: Categories to choose from.
        api_key: Gemini API key.
        model: Model id.

    Returns:
        Category id or None if no confident match.

    Raises:
        requests.RequestException: If API request fails.
    """
    if not categories:
        return None

    names = ", ".join(c.name for c in categories)
    prompt = (
        f'Match this transaction description: "{description}" to one of these categories: [{names}]. '
        'Return only the exact category name. If no match is likely, return "Uncategorized".'
    )
    schema = {"type": "OBJECT", "properties": {"categoryName": {"type": "STRING"}}}

    result = _generate(api_key, model, prompt, schema)
    category_id = resolve_category(result.get("categoryName"), categories)
    logger.debug("Classified %r as %s", description, category_id)
    return category_id


def classify_batch(
    descriptions: Sequence[str],
    categories: Sequence[Category],
    api_key: str,
    model: str = DEFAULT_MODEL,
) -> dict[str, CategoryId]:
    """Suggest categories for many descriptions in one request.

    Args:
        descriptions: Unique transaction descriptions.
        categories: Categories to choose from.
        api_key: Gemini API key.
        model: Model id.

    Returns:
        Description -> category id for the descriptions that matched.

    Raises:
        requests.RequestException: If API request fails.
    """
    if not categories or not descriptions:
        return {}

    names = ", ".join(c.name for c in categories)
    prompt = (
        "You are a transaction classifier.\n"
        f"Categories: [{names}]\n\n"
        "Task: Map the following transaction descriptions to the best fitting category from the list above.\n"
        'If a transaction is ambiguous or doesn\'t fit well, return "Uncategorized".\n\n'
        f"Transactions:\n{json.dumps(list(descriptions))}"
    )
    schema = {
        "type": "OBJECT",
        "properties": {
            "matches": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "description": {"type": "STRING"},
                        "categoryName": {"type": "STRING"},
                    },
                },
            }
        },
    }

    result = _generate(api_key, model, prompt, schema)
    matches: dict[str, CategoryId] = {}
    items = result.get("matches")
    if not isinstance(items, list):
        return matches

    for item in items:
        if not isinstance(item, dict) or "description" not in item:
            continue
        category_id = resolve_category(item.get("categoryName"), categories)
        if category_id:
            matches[item["description"]] = category_id

    logger.debug("Batch classified %d of %d descriptions", len(matches), len(descriptions))
    return matches
