"""Content record store keyed by `(id, language)`.

Responsibilities:
- Define the store interface consumed by the stage executor and engine.
- Persist records as JSON files under `<root>/<language>/<category>/<id>.json`.
- Advance the canonical stage only through an optimistic compare-and-set.

Key types:
- `ContentStore`: protocol for record persistence.
- `FileContentStore`: JSON-file implementation with atomic writes.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
import json
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Mapping, Protocol

from ..errors import ContentNotFoundError
from ..models.datatypes import (
    ContentItem,
    LanguageAttempt,
    ReviewDecision,
    Stage,
    StreamingUrls,
)
from .storage import atomic_write_bytes


class ContentStore(Protocol):
    """Protocol for content record persistence."""

    def get(self, content_id: str, language: str) -> ContentItem:
        """Return one record or raise `ContentNotFoundError`."""

    def find(self, content_id: str, language: str) -> ContentItem | None:
        """Return one record or `None`."""

    def records(self, content_id: str) -> dict[str, ContentItem]:
        """Return every language record of a content id keyed by language."""

    def list_language(
        self,
        language: str,
        unreadable: dict[str, str] | None = None,
    ) -> list[ContentItem]:
        """Return every readable record of one language, reporting unreadable ids."""

    def save(self, item: ContentItem) -> ContentItem:
        """Persist stage artifacts of one record and return the stored record."""

    def advance_stage(
        self,
        content_id: str,
        language: str,
        expected: Stage,
        target: Stage,
    ) -> bool:
        """Move the canonical stage from `expected` to `target` if still `expected`."""


def _utc_now() -> datetime:
    """Return the current UTC time."""

    return datetime.now(timezone.utc)


class FileContentStore:
    """JSON-file content store with process-local locking and atomic replaces."""

    def __init__(self, root: Path, clock: Callable[[], datetime] = _utc_now) -> None:
        """Initialize the store root and timestamp clock."""

        self.root = root
        self.clock = clock
        self._lock = RLock()

    def _path(self, language: str, category: str, content_id: str) -> Path:
        """Return the record path for one language variant."""

        return self.root / language / category / f"{content_id}.json"

    def _locate(self, content_id: str, language: str) -> Path | None:
        """Find the record file for `(id, language)` in any category."""

        language_dir = self.root / language
        if not language_dir.is_dir():
            return None
        matches = sorted(language_dir.glob(f"*/{content_id}.json"))
        return matches[0] if matches else None

    def find(self, content_id: str, language: str) -> ContentItem | None:
        """Return one record or `None` when it does not exist."""

        with self._lock:
            path = self._locate(content_id, language)
            if path is None:
                return None
            return _read_item(path)

    def get(self, content_id: str, language: str) -> ContentItem:
        """Return one record or raise `ContentNotFoundError`."""

        item = self.find(content_id, language)
        if item is None:
            raise ContentNotFoundError(content_id, language)
        return item

    def records(self, content_id: str) -> dict[str, ContentItem]:
        """Return all language variants of a content id."""

        with self._lock:
            found: dict[str, ContentItem] = {}
            if not self.root.is_dir():
                return found
            for path in sorted(self.root.glob(f"*/*/{content_id}.json")):
                item = _read_item(path)
                found[item.language] = item
            return found

    def list_language(
        self,
        language: str,
        unreadable: dict[str, str] | None = None,
    ) -> list[ContentItem]:
        """Return every readable record stored for one language, sorted by path.

        Records that cannot be read are skipped; when `unreadable` is given it
        receives their content id mapped to the read error.
        """

        with self._lock:
            language_dir = self.root / language
            if not language_dir.is_dir():
                return []
            items: list[ContentItem] = []
            for path in sorted(language_dir.glob("*/*.json")):
                try:
                    items.append(_read_item(path))
                except (OSError, ValueError) as exc:
                    if unreadable is not None:
                        unreadable[path.stem] = f"{type(exc).__name__}: {exc}"
            return items

    def create(self, item: ContentItem) -> ContentItem:
        """Persist a new record exactly as given, including its stage."""

        with self._lock:
            if self._locate(item.id, item.language) is not None:
                raise ValueError(f"Content `{item.id}/{item.language}` already exists.")
            return self._write(item)

    def save(self, item: ContentItem) -> ContentItem:
        """Persist stage artifacts of a record.

        Stage and review fields of an existing record are preserved; the stage
        only moves through `advance_stage`.
        """

        with self._lock:
            path = self._locate(item.id, item.language)
            if path is not None:
                current = _read_item(path)
                item = replace(item, stage=current.stage, review=current.review)
            return self._write(item)

    def advance_stage(
        self,
        content_id: str,
        language: str,
        expected: Stage,
        target: Stage,
    ) -> bool:
        """Compare-and-set the canonical stage; never regresses.

        Returns:
            `True` when the stored stage was `expected` and now equals `target`.
        """

        if target.order <= expected.order:
            raise ValueError(
                f"Refusing to move `{content_id}` from `{expected.value}` to `{target.value}`."
            )
        with self._lock:
            current = self.get(content_id, language)
            if current.stage is not expected:
                return False
            self._write(replace(current, stage=target))
            return True

    def _write(self, item: ContentItem) -> ContentItem:
        """Stamp and atomically write one record."""

        stamped = replace(item, updated_at=self.clock().isoformat(timespec="seconds"))
        path = self._path(stamped.language, stamped.category, stamped.id)
        encoded = json.dumps(item_to_payload(stamped), ensure_ascii=False, indent=2)
        atomic_write_bytes(path, (encoded + "\n").encode("utf-8"))
        return stamped


def _read_item(path: Path) -> ContentItem:
    """Load one record file."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Content record `{path}` is not valid JSON.") from exc
    if not isinstance(payload, Mapping):
        raise ValueError(f"Content record `{path}` must contain a JSON object.")
    return item_from_payload(payload)


def item_to_payload(item: ContentItem) -> dict[str, Any]:
    """Serialize a content record into its JSON payload."""

    urls = item.streaming_urls
    review = item.review
    return {
        "id": item.id,
        "language": item.language,
        "category": item.category,
        "title": item.title,
        "body": item.body,
        "stage": item.stage.value,
        "date": item.date,
        "audio_path": item.audio_path,
        "hls_playlist_path": item.hls_playlist_path,
        "streaming_urls": None
        if urls is None
        else {"m3u8": urls.m3u8, "metadata": urls.metadata, "segments": list(urls.segments)},
        "social_hook": item.social_hook,
        "review": None
        if review is None
        else {
            "status": review.status,
            "score": review.score,
            "reviewer": review.reviewer,
            "timestamp": review.timestamp,
            "comments": review.comments,
        },
        "attempts": {
            stage: {
                "success": attempt.success,
                "attempted_at": attempt.attempted_at,
                "error": attempt.error,
                "failure_kind": attempt.failure_kind,
            }
            for stage, attempt in sorted(item.attempts.items())
        },
        "updated_at": item.updated_at,
    }


def item_from_payload(payload: Mapping[str, Any]) -> ContentItem:
    """Deserialize a content record payload.

    Raises:
        ValueError: If required keys are missing or the stage token is unknown.
    """

    missing = [key for key in ("id", "language", "category") if not payload.get(key)]
    if missing:
        raise ValueError(f"Content record is missing required key(s): {', '.join(missing)}.")

    raw_urls = payload.get("streaming_urls")
    raw_review = payload.get("review")
    raw_attempts = payload.get("attempts") or {}
    return ContentItem(
        id=str(payload["id"]),
        language=str(payload["language"]),
        category=str(payload["category"]),
        title=str(payload.get("title") or ""),
        body=str(payload.get("body") or ""),
        stage=Stage.parse(str(payload.get("stage") or Stage.REVIEWED.value)),
        date=str(payload.get("date") or ""),
        audio_path=payload.get("audio_path"),
        hls_playlist_path=payload.get("hls_playlist_path"),
        streaming_urls=None
        if not isinstance(raw_urls, Mapping)
        else StreamingUrls(
            m3u8=raw_urls.get("m3u8"),
            metadata=raw_urls.get("metadata"),
            segments=tuple(raw_urls.get("segments") or ()),
        ),
        social_hook=payload.get("social_hook"),
        review=None
        if not isinstance(raw_review, Mapping)
        else ReviewDecision(
            status=str(raw_review.get("status") or "pending"),
            score=raw_review.get("score"),
            reviewer=raw_review.get("reviewer"),
            timestamp=raw_review.get("timestamp"),
            comments=raw_review.get("comments"),
        ),
        attempts={
            str(stage): LanguageAttempt(
                success=bool(raw.get("success")),
                attempted_at=str(raw.get("attempted_at") or ""),
                error=raw.get("error"),
                failure_kind=raw.get("failure_kind"),
            )
            for stage, raw in raw_attempts.items()
            if isinstance(raw, Mapping)
        },
        updated_at=payload.get("updated_at"),
    )
