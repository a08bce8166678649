"""Core datatypes shared across articlevoice modules.

Responsibilities:
- Represent content records and the closed stage/adapter enumerations.
- Represent per-language outcomes and the per-item audit trail.

Key types:
- `Stage`, `AdapterKind`, `StageTransition`, `ContentItem`, `LanguageAttempt`,
  `StreamingUrls`, `ReviewDecision`, `LanguageOutcome`, `StageResult`,
  `TransitionRecord`, `ItemRunReport`, `HlsPackage`, and `PendingItem`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping


class Stage(str, Enum):
    """Ordered pipeline stages; string values are the persisted contract."""

    REVIEWED = "reviewed"
    TRANSLATED = "translated"
    AUDIO_READY = "audio-ready"
    PACKAGED = "packaged"
    UPLOADED_AUDIO = "uploaded-audio"
    UPLOADED_METADATA = "uploaded-metadata"
    PUBLISHED = "published"

    @property
    def order(self) -> int:
        """Return the zero-based position of this stage in the chain."""

        return _STAGE_ORDER.index(self)

    @classmethod
    def parse(cls, value: str) -> Stage:
        """Parse a persisted stage token, raising `ValueError` for unknown values."""

        normalized = value.strip().lower()
        for stage in cls:
            if stage.value == normalized:
                return stage
        supported = ", ".join(stage.value for stage in cls)
        raise ValueError(f"Unknown stage `{value}`; supported: {supported}.")


_STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)


class AdapterKind(str, Enum):
    """External collaborator kinds invoked by stage handlers."""

    TRANSLATION = "translation"
    SYNTHESIS = "synthesis"
    PACKAGING = "packaging"
    UPLOAD_AUDIO = "upload-audio"
    UPLOAD_METADATA = "upload-metadata"
    SOCIAL_HOOK = "social-hook"


@dataclass(frozen=True, slots=True)
class StageTransition:
    """One entry of the static stage-transition table.

    Attributes:
        source: Stage the item must currently be in.
        target: Stage reached on success, or `None` for the terminal stage.
        adapter: Adapter kind that performs the work, or `None` when terminal.
        description: Human-readable step label used in the audit trail.
    """

    source: Stage
    target: Stage | None
    adapter: AdapterKind | None
    description: str

    @property
    def is_terminal(self) -> bool:
        """Return whether this entry marks the end of the chain."""

        return self.target is None


@dataclass(frozen=True, slots=True)
class StreamingUrls:
    """Public locations of uploaded artifacts for one language.

    Attributes:
        m3u8: Public HLS playlist URL after audio upload.
        metadata: Public content JSON URL after metadata upload.
        segments: Ordered remote segment keys uploaded with the playlist.
    """

    m3u8: str | None = None
    metadata: str | None = None
    segments: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ReviewDecision:
    """Reviewer verdict attached to the source-language record.

    The pipeline reads this record but never writes it.
    """

    status: str
    score: int | None = None
    reviewer: str | None = None
    timestamp: str | None = None
    comments: str | None = None


@dataclass(frozen=True, slots=True)
class LanguageAttempt:
    """Last recorded attempt of one stage for one language."""

    success: bool
    attempted_at: str
    error: str | None = None
    failure_kind: str | None = None


@dataclass(frozen=True, slots=True)
class ContentItem:
    """One article in one language.

    Attributes:
        id: Identity shared by every language variant of the same article.
        language: Language code of this record.
        category: Editorial category used in storage and upload paths.
        title: Article title.
        body: Article body text.
        stage: Canonical stage; authoritative only on the source-language record.
        date: Publication date (ISO) used for scheduling order.
        audio_path: Local WAV path written by synthesis.
        hls_playlist_path: Local playlist path written by packaging.
        streaming_urls: Public URLs written by the upload stages.
        social_hook: Short social-media hook text.
        review: Reviewer decision, read-only for the pipeline.
        attempts: Last attempt per stage value for this language.
        updated_at: ISO timestamp of the last write.
    """

    id: str
    language: str
    category: str
    title: str
    body: str
    stage: Stage = Stage.REVIEWED
    date: str = ""
    audio_path: str | None = None
    hls_playlist_path: str | None = None
    streaming_urls: StreamingUrls | None = None
    social_hook: str | None = None
    review: ReviewDecision | None = None
    attempts: Mapping[str, LanguageAttempt] = field(default_factory=dict)
    updated_at: str | None = None

    def last_attempt(self, stage: Stage) -> LanguageAttempt | None:
        """Return the last recorded attempt for a stage, if any."""

        return self.attempts.get(stage.value)


@dataclass(frozen=True, slots=True)
class HlsPackage:
    """Local HLS output of one packaging call."""

    playlist_path: Path
    segment_paths: tuple[Path, ...]


@dataclass(frozen=True, slots=True)
class LanguageOutcome:
    """Result of one language attempt within one stage run.

    Attributes:
        language: Language code attempted.
        success: Whether the stage artifact exists after this attempt.
        skipped: Whether the artifact already existed and no work was done.
        error: Concise failure message for failed attempts.
        failure_kind: Provider failure classification for failed attempts.
        inconsistent: Whether a recorded success was found without its artifact.
    """

    language: str
    success: bool
    skipped: bool = False
    error: str | None = None
    failure_kind: str | None = None
    inconsistent: bool = False


@dataclass(frozen=True, slots=True)
class StageResult:
    """Outcome of one executor pass over one content item.

    Attributes:
        content_id: Content identity.
        source: Stage the item was in when the pass started.
        target: Stage the pass tried to reach, `None` when terminal.
        success: Whether every required language succeeded.
        advanced: Whether this pass moved the stored canonical stage.
        outcomes: Per-language outcomes in required-language order.
        detail: Optional stage-level failure detail.
    """

    content_id: str
    source: Stage
    target: Stage | None
    success: bool
    advanced: bool = False
    outcomes: tuple[LanguageOutcome, ...] = field(default_factory=tuple)
    detail: str | None = None

    @property
    def failed_languages(self) -> tuple[str, ...]:
        """Return languages whose attempt failed in this pass."""

        return tuple(outcome.language for outcome in self.outcomes if not outcome.success)


@dataclass(frozen=True, slots=True)
class TransitionRecord:
    """One audit-trail entry: a transition attempted for an item."""

    source: Stage
    target: Stage | None
    description: str
    success: bool


@dataclass(frozen=True, slots=True)
class ItemRunReport:
    """Audit trail of one `process_item` call.

    Attributes:
        content_id: Content identity.
        start_stage: Canonical stage when processing began.
        final_stage: Canonical stage when processing stopped.
        transitions: Ordered transitions attempted in this run.
        error: Fatal error message when processing crashed.
    """

    content_id: str
    start_stage: Stage | None
    final_stage: Stage | None
    transitions: tuple[TransitionRecord, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def outcome(self) -> str:
        """Classify the run as `advanced`, `partial`, `stuck`, or `terminal`."""

        if not self.transitions:
            if self.error is None and self.final_stage is Stage.PUBLISHED:
                return "terminal"
            return "stuck"
        moved = any(record.success for record in self.transitions)
        if not moved:
            return "stuck"
        if self.transitions[-1].success and self.error is None:
            return "advanced"
        return "partial"

    def as_payload(self) -> dict[str, object]:
        """Return a JSON-serializable audit-trail payload."""

        return {
            "content_id": self.content_id,
            "start_stage": self.start_stage.value if self.start_stage else None,
            "final_stage": self.final_stage.value if self.final_stage else None,
            "outcome": self.outcome,
            "error": self.error,
            "steps": [
                {
                    "from": record.source.value,
                    "to": record.target.value if record.target else None,
                    "description": record.description,
                    "success": record.success,
                }
                for record in self.transitions
            ],
        }


@dataclass(frozen=True, slots=True)
class PendingItem:
    """Source-language record eligible for its next transition."""

    content_id: str
    category: str
    date: str
    title: str
    transition: StageTransition


@dataclass(frozen=True, slots=True)
class LanguageStatus:
    """Per-language artifact flags shown by the status command."""

    language: str
    has_body: bool
    has_audio: bool
    has_playlist: bool
    has_streaming_url: bool
    has_metadata_url: bool
    has_social_hook: bool
    last_error: str | None = None


@dataclass(frozen=True, slots=True)
class PipelineStatus:
    """Current pipeline position of one content item."""

    content_id: str
    stage: Stage
    next_transition: StageTransition | None
    languages: tuple[LanguageStatus, ...]
