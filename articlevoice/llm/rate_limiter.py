"""Request pacing for provider calls.

Responsibilities:
- Provide a single hook to enforce minimum spacing between provider requests.
- Keep pacing policy independent from provider adapters and stage handlers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from time import monotonic, sleep
from typing import Callable


@dataclass(slots=True)
class RateLimiter:
    """Per-key minimum-interval limiter, safe to share across worker threads."""

    min_interval_seconds: float = 0.0
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _next_allowed_at: dict[str, float] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock)

    def acquire(self, key: str) -> None:
        """Block until the key is allowed under the interval policy."""

        if self.min_interval_seconds <= 0.0:
            return
        with self._lock:
            now = self.clock()
            next_allowed = self._next_allowed_at.get(key, 0.0)
            wait_seconds = next_allowed - now
            start_at = now if wait_seconds <= 0.0 else next_allowed
            self._next_allowed_at[key] = start_at + self.min_interval_seconds
        if wait_seconds > 0.0:
            self.sleeper(wait_seconds)
