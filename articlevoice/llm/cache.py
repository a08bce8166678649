"""Deterministic response cache for provider-backed text operations.

Responsibilities:
- Build stable cache keys from provider/model/operation and identity input.
- Reuse responses for repeated prompts within one process, across worker threads.
- Track basic cache telemetry (hits/misses).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from hashlib import sha256
import json
from threading import Lock
from typing import Any


@dataclass(slots=True)
class ResponseCache:
    """In-memory cache keyed by provider/model/operation/input identity."""

    entries: dict[str, str] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0
    _lock: Lock = field(default_factory=Lock)

    @staticmethod
    def make_key(
        *,
        provider: str,
        model: str,
        operation: str,
        input_identity: Any,
    ) -> str:
        """Build a cache key with an identity hash suffix.

        Identity text is hashed verbatim because whitespace carries paragraph
        structure in article bodies.
        """

        canonical_identity = json.dumps(
            input_identity,
            sort_keys=True,
            ensure_ascii=True,
            separators=(",", ":"),
        )
        identity_hash = sha256(canonical_identity.encode("utf-8")).hexdigest()
        return (
            f"response:{provider.strip().lower()}:{model.strip()}:"
            f"{operation.strip().lower()}:{identity_hash}"
        )

    def get(self, cache_key: str) -> str | None:
        """Return a cached response and update hit/miss counters."""

        with self._lock:
            if cache_key in self.entries:
                self.hits += 1
                return self.entries[cache_key]
            self.misses += 1
            return None

    def set(self, cache_key: str, value: str) -> None:
        """Store a response payload under a cache key."""

        with self._lock:
            self.entries[cache_key] = value
