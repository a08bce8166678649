"""Shared parsing helpers for configuration and CLI value normalization."""

from __future__ import annotations


_TRUE_BOOLEAN_TOKENS = frozenset({"1", "true", "yes", "on"})
_FALSE_BOOLEAN_TOKENS = frozenset({"0", "false", "no", "off"})


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_permissive_boolean(value: object) -> bool | None:
    """Parse a permissive boolean token and return `None` for invalid values."""

    if isinstance(value, bool):
        return value

    normalized = normalize_optional_string(value)
    if normalized is None:
        return None

    token = normalized.lower()
    if token in _TRUE_BOOLEAN_TOKENS:
        return True
    if token in _FALSE_BOOLEAN_TOKENS:
        return False
    return None


def parse_positive_int(value: object, field_name: str) -> int:
    """Parse a strictly positive integer, rejecting booleans and blank tokens.

    Raises:
        ValueError: If the value is not a positive integer.
    """

    message = f"`{field_name}` must be a positive integer."
    if isinstance(value, bool):
        raise ValueError(message)
    if isinstance(value, int):
        parsed = value
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError(message)
        try:
            parsed = int(normalized)
        except ValueError as exc:
            raise ValueError(message) from exc
    if parsed <= 0:
        raise ValueError(message)
    return parsed


def parse_non_negative_float(value: object, field_name: str) -> float:
    """Parse a float that must be zero or greater."""

    message = f"`{field_name}` must be a non-negative number."
    if isinstance(value, bool):
        raise ValueError(message)
    if isinstance(value, (int, float)):
        parsed = float(value)
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError(message)
        try:
            parsed = float(normalized)
        except ValueError as exc:
            raise ValueError(message) from exc
    if parsed < 0.0:
        raise ValueError(message)
    return parsed


def parse_language_list(value: object) -> tuple[str, ...]:
    """Parse a comma-separated or list value into unique language codes in input order."""

    if value is None:
        return ()
    if isinstance(value, str):
        raw_items: list[object] = list(value.split(","))
    elif isinstance(value, (list, tuple)):
        raw_items = list(value)
    else:
        raise ValueError("Language list must be a comma-separated string or a list.")

    languages: list[str] = []
    for raw_item in raw_items:
        normalized = normalize_optional_string(raw_item)
        if normalized is None or normalized in languages:
            continue
        languages.append(normalized)
    return tuple(languages)
