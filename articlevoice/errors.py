"""Domain exceptions for pipeline execution and CLI diagnostics.

Responsibilities:
- Separate fatal input/configuration errors from recoverable provider failures.
- Carry stage-scoped diagnostics for CLI rendering.
"""

from __future__ import annotations


class ValidationError(ValueError):
    """Raised for malformed chunking or audio-combination input."""


class ContentNotFoundError(LookupError):
    """Raised when a content record is missing from the store."""

    def __init__(self, content_id: str, language: str | None = None) -> None:
        """Initialize lookup metadata for a missing `(id, language)` record."""

        target = content_id if language is None else f"{content_id}/{language}"
        super().__init__(f"Content `{target}` not found.")
        self.content_id = content_id
        self.language = language


class ExternalServiceError(RuntimeError):
    """Raised when an external provider or CLI tool fails.

    Failures of this type are recorded per language and never abort a batch.
    """

    def __init__(
        self,
        message: str,
        *,
        service: str,
        failure_kind: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        """Initialize provider failure metadata for per-language outcome records."""

        super().__init__(message)
        self.service = service
        self.failure_kind = failure_kind
        self.status_code = status_code


class InconsistentStateError(RuntimeError):
    """Raised when a recorded success has no artifact to back it."""

    def __init__(self, *, content_id: str, language: str, stage: str) -> None:
        """Initialize the record coordinates of the inconsistent attempt."""

        super().__init__(
            f"Content `{content_id}` ({language}) recorded success for `{stage}` "
            "but its artifact is missing."
        )
        self.content_id = content_id
        self.language = language
        self.stage = stage


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage or command step fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
