"""Lenient parsers for list-shaped store columns.

Profile and need rows hold their tag and availability lists in several
shapes depending on when and how they were written: native arrays, JSON text,
or (for very old gift selections) comma-separated text. These helpers turn
any of them into a clean list of strings and never raise.
"""

import json
from typing import Any, List, Optional


def _clean_items(items: Any) -> List[str]:
    """Keep non-blank string items, stripped, in their original order."""
    cleaned = []
    for item in items:
        if isinstance(item, str):
            stripped = item.strip()
            if stripped:
                cleaned.append(stripped)
    return cleaned


def _decode_json_list(text: str) -> Any:
    """Decode JSON text, returning None unless it holds a list."""
    try:
        decoded = json.loads(text)
    except (ValueError, TypeError):
        return None
    return decoded if isinstance(decoded, list) else None


def parse_tag_list(value: Any) -> List[str]:
    """Parse a gift or required-tag column.

    Accepted shapes, tried in order:
    1. Native list/tuple of strings
    2. JSON text encoding a list, e.g. '["Cooking", "Prayer"]'
    3. Comma-separated text, e.g. "Cooking, Prayer"

    Args:
        value: Raw column value

    Returns:
        List of stripped, non-empty tags (empty on anything unparseable)

    Example:
        >>> parse_tag_list('["Cooking", " Prayer "]')
        ['Cooking', 'Prayer']
        >>> parse_tag_list("Cooking, Prayer")
        ['Cooking', 'Prayer']
    """
    if isinstance(value, (list, tuple)):
        return _clean_items(value)

    if not isinstance(value, str) or not value.strip():
        return []

    decoded = _decode_json_list(value)
    if decoded is not None:
        return _clean_items(decoded)

    text = value.strip()
    if text.startswith("[") or text.startswith("{"):
        # Looks like broken JSON rather than a comma list
        return []

    return _clean_items(text.split(","))


def parse_availability(value: Any) -> List[str]:
    """Parse an availability column.

    Availability is always written as a JSON list of bucket labels, so
    comma-separated text is not accepted here.

    Args:
        value: Raw column value (native list or JSON text)

    Returns:
        List of bucket labels (empty on anything unparseable)

    Example:
        >>> parse_availability('["Mornings", "Anytime"]')
        ['Mornings', 'Anytime']
        >>> parse_availability("not json")
        []
    """
    if isinstance(value, (list, tuple)):
        return _clean_items(value)

    if not isinstance(value, str) or not value.strip():
        return []

    decoded = _decode_json_list(value)
    return _clean_items(decoded) if decoded is not None else []


def parse_optional_text(value: Any) -> Optional[str]:
    """Return stripped text, or None for blanks and non-string values."""
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def parse_flag(value: Any) -> bool:
    """Read a boolean column that may arrive as bool, int or text."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"true", "t", "yes", "y", "1"}
    return False
