"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Keep provider payloads and secrets out of log lines.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic phase logs for pipeline activity."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Initialize logger sink and configure deterministic formatting."""

        self._sink = sink or sys.stderr
        _loguru_logger.remove()
        _loguru_logger.add(self._sink, format="{message}", level=level, colorize=False)

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str, **context: object) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type, **context)

    def log_language_skipped(self, stage: str, content_id: str, language: str) -> None:
        """Emit an event for a language whose artifact already exists."""

        self._emit("INFO", "skip", stage, content_id=content_id, language=language)

    def log_language_failure(
        self,
        stage: str,
        content_id: str,
        language: str,
        failure_kind: str,
    ) -> None:
        """Emit a per-language failure event."""

        self._emit(
            "WARNING",
            "language_failure",
            stage,
            content_id=content_id,
            failure_kind=failure_kind,
            language=language,
        )

    def log_inconsistent_state(self, stage: str, content_id: str, language: str) -> None:
        """Emit an operator-facing event for a success record without its artifact."""

        self._emit(
            "WARNING",
            "inconsistent_state",
            stage,
            content_id=content_id,
            language=language,
        )

    def log_item_summary(
        self,
        content_id: str,
        outcome: str,
        final_stage: str,
        steps: int,
    ) -> None:
        """Emit the per-item summary after one engine run."""

        self._emit(
            "INFO",
            "item_summary",
            "engine",
            content_id=content_id,
            final_stage=final_stage,
            outcome=outcome,
            steps=steps,
        )

    def log_unreadable_record(self, content_id: str, error_type: str) -> None:
        """Emit an event for a stored record that could not be read."""

        self._emit(
            "ERROR",
            "unreadable_record",
            "engine",
            content_id=content_id,
            error_type=error_type,
        )

    def log_item_crash(self, content_id: str, error_type: str) -> None:
        """Emit an event for an item whose processing raised unexpectedly."""

        self._emit("ERROR", "item_crash", "engine", content_id=content_id, error_type=error_type)
