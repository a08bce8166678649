"""Reviewed article intake.

Responsibilities:
- Parse an article JSON document into a source-language content record.
- Reject unknown categories and missing required fields before anything is stored.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from ..errors import ValidationError
from ..languages import CATEGORIES
from ..models.datatypes import ContentItem, ReviewDecision, Stage
from ..parsing import normalize_optional_string


_ID_CHARACTERS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789-_")


def article_from_payload(payload: Mapping[str, Any], source_language: str) -> ContentItem:
    """Build a reviewed source-language record from an article payload.

    The body may be given as `content` or `body`.

    Raises:
        ValidationError: If required fields are missing or malformed.
    """

    content_id = normalize_optional_string(payload.get("id"))
    if content_id is None:
        raise ValidationError("Article is missing `id`.")
    if not set(content_id.lower()) <= _ID_CHARACTERS:
        raise ValidationError(
            f"Article id `{content_id}` may only contain letters, digits, `-`, and `_`."
        )

    category = normalize_optional_string(payload.get("category"))
    if category not in CATEGORIES:
        raise ValidationError(
            f"Article category `{category}` is not one of: {', '.join(CATEGORIES)}."
        )

    body = normalize_optional_string(payload.get("content", payload.get("body")))
    if body is None:
        raise ValidationError("Article is missing `content`.")

    language = normalize_optional_string(payload.get("language")) or source_language
    if language != source_language:
        raise ValidationError(
            f"Article language `{language}` must be the source language `{source_language}`."
        )

    raw_review = payload.get("review")
    review = None
    if isinstance(raw_review, Mapping):
        review = ReviewDecision(
            status=str(raw_review.get("status") or "accepted"),
            score=raw_review.get("score"),
            reviewer=raw_review.get("reviewer"),
            timestamp=raw_review.get("timestamp"),
            comments=raw_review.get("comments"),
        )

    return ContentItem(
        id=content_id,
        language=source_language,
        category=category,
        title=normalize_optional_string(payload.get("title")) or "",
        body=body,
        stage=Stage.REVIEWED,
        date=normalize_optional_string(payload.get("date")) or "",
        review=review,
    )


def load_article(path: Path, source_language: str) -> ContentItem:
    """Read an article JSON file into a reviewed source-language record."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Article file `{path}` is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ValidationError(f"Article file `{path}` must contain a JSON object.")
    return article_from_payload(payload, source_language)
