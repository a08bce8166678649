"""Stage executor: one transition, fanned out per language and joined.

Responsibilities:
- Resolve the transition for an item's canonical stage and its handler.
- Run every required language, skipping languages whose artifact exists.
- Record a per-language attempt and keep failures isolated from other languages.
- Advance the canonical stage only when every required language succeeded.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Mapping, Sequence

from ..errors import ExternalServiceError, InconsistentStateError, ValidationError
from ..io.store import ContentStore
from ..models.datatypes import (
    AdapterKind,
    ContentItem,
    LanguageAttempt,
    LanguageOutcome,
    StageResult,
    StageTransition,
)
from ..telemetry.logger import RunLogger
from .stages import StageHandler
from .transitions import STAGE_TRANSITIONS, transition_for, validate_transition_table


def _utc_timestamp() -> str:
    """Return the current UTC time as an ISO timestamp."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class StageExecutor:
    """Execute the next transition of one content item."""

    def __init__(
        self,
        store: ContentStore,
        handlers: Mapping[AdapterKind, StageHandler],
        *,
        source_language: str,
        transitions: Sequence[StageTransition] = STAGE_TRANSITIONS,
        language_workers: int = 1,
        run_logger: RunLogger | None = None,
        clock: Callable[[], str] = _utc_timestamp,
    ) -> None:
        """Initialize store, handlers, and fan-out settings.

        Raises:
            ValueError: If the transition table is malformed or a handler is missing.
        """

        validate_transition_table(transitions)
        missing = [
            transition.adapter.value
            for transition in transitions
            if transition.adapter is not None and transition.adapter not in handlers
        ]
        if missing:
            raise ValueError(f"No stage handler registered for: {', '.join(missing)}.")
        if language_workers <= 0:
            raise ValueError("`language_workers` must be a positive integer.")

        self.store = store
        self.handlers = dict(handlers)
        self.source_language = source_language
        self.transitions = tuple(transitions)
        self.language_workers = language_workers
        self.run_logger = run_logger
        self.clock = clock

    def execute(self, content_id: str) -> StageResult:
        """Run the transition that applies to the item's current canonical stage.

        Provider failures are captured per language and never raised.

        Raises:
            ContentNotFoundError: If the source-language record does not exist.
            ValidationError: If a handler rejects malformed input.
        """

        source = self.store.get(content_id, self.source_language)
        transition = transition_for(source.stage, self.transitions)
        if transition.is_terminal:
            return StageResult(
                content_id=content_id,
                source=source.stage,
                target=None,
                success=True,
                detail="Item is already at the terminal stage.",
            )

        handler = self.handlers[transition.adapter]
        stage_label = transition.adapter.value
        records = self.store.records(content_id)
        languages = handler.required_languages(records)
        self._log_start(stage_label, content_id, languages)

        if not languages and not handler.allow_empty:
            detail = f"No languages are eligible for `{stage_label}`."
            if self.run_logger is not None:
                self.run_logger.log_stage_failure(
                    stage_label, "NoEligibleLanguages", content_id=content_id
                )
            return StageResult(
                content_id=content_id,
                source=transition.source,
                target=transition.target,
                success=False,
                detail=detail,
            )

        outcomes: dict[str, LanguageOutcome] = {}
        remaining = list(languages)
        if handler.source_first and self.source_language in remaining:
            remaining.remove(self.source_language)
            leading = self._attempt(handler, transition, content_id, self.source_language, records)
            outcomes[leading.language] = leading
            if leading.success:
                records = self.store.records(content_id)
            else:
                for language in remaining:
                    outcomes[language] = LanguageOutcome(
                        language=language,
                        success=False,
                        error=f"Waiting for {self.source_language} to succeed.",
                        failure_kind="dependency",
                    )
                remaining = []

        outcomes.update(self._fan_out(handler, transition, content_id, remaining, records))
        ordered = tuple(outcomes[language] for language in languages)
        success = all(outcome.success for outcome in ordered)

        advanced = False
        if success:
            advanced = self.store.advance_stage(
                content_id, self.source_language, transition.source, transition.target
            )
        self._log_finish(stage_label, content_id, ordered, success, advanced)
        return StageResult(
            content_id=content_id,
            source=transition.source,
            target=transition.target,
            success=success,
            advanced=advanced,
            outcomes=ordered,
            detail=None if advanced or not success else "Stage was advanced concurrently.",
        )

    def _fan_out(
        self,
        handler: StageHandler,
        transition: StageTransition,
        content_id: str,
        languages: Sequence[str],
        records: Mapping[str, ContentItem],
    ) -> dict[str, LanguageOutcome]:
        """Attempt languages sequentially or on a bounded thread pool."""

        if not languages:
            return {}
        workers = min(self.language_workers, len(languages))
        if workers == 1:
            return {
                language: self._attempt(handler, transition, content_id, language, records)
                for language in languages
            }
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                language: pool.submit(
                    self._attempt, handler, transition, content_id, language, records
                )
                for language in languages
            }
            return {language: future.result() for language, future in futures.items()}

    def _attempt(
        self,
        handler: StageHandler,
        transition: StageTransition,
        content_id: str,
        language: str,
        records: Mapping[str, ContentItem],
    ) -> LanguageOutcome:
        """Attempt one language and persist its attempt record."""

        stage_label = transition.adapter.value
        record = records.get(language)
        if handler.has_artifact(record):
            if self.run_logger is not None:
                self.run_logger.log_language_skipped(stage_label, content_id, language)
            return LanguageOutcome(language=language, success=True, skipped=True)

        inconsistent = False
        previous = record.last_attempt(transition.target) if record is not None else None
        if previous is not None and previous.success:
            inconsistent = True
            if self.run_logger is not None:
                self.run_logger.log_inconsistent_state(stage_label, content_id, language)

        try:
            updated = handler.run(language, records)
        except ValidationError:
            raise
        except ExternalServiceError as exc:
            failure_kind = exc.failure_kind
            message = str(exc)
        except Exception as exc:
            failure_kind = "unknown"
            message = f"{type(exc).__name__}: {exc}"
        else:
            self._record_attempt(updated, transition, LanguageAttempt(True, self.clock()))
            return LanguageOutcome(language=language, success=True, inconsistent=inconsistent)

        if inconsistent:
            state_error = InconsistentStateError(
                content_id=content_id,
                language=language,
                stage=transition.target.value,
            )
            message = f"{state_error} {message}"
        if self.run_logger is not None:
            self.run_logger.log_language_failure(stage_label, content_id, language, failure_kind)
        if record is None:
            record = self._placeholder_record(language, records)
        if record is not None:
            self._record_attempt(
                record,
                transition,
                LanguageAttempt(
                    success=False,
                    attempted_at=self.clock(),
                    error=message,
                    failure_kind=failure_kind,
                ),
            )
        return LanguageOutcome(
            language=language,
            success=False,
            error=message,
            failure_kind=failure_kind,
            inconsistent=inconsistent,
        )

    def _placeholder_record(
        self,
        language: str,
        records: Mapping[str, ContentItem],
    ) -> ContentItem | None:
        """Return an empty record for a language that failed before its first write."""

        source = records.get(self.source_language)
        if source is None:
            return None
        return ContentItem(
            id=source.id,
            language=language,
            category=source.category,
            title="",
            body="",
            stage=source.stage,
            date=source.date,
        )

    def _record_attempt(
        self,
        record: ContentItem,
        transition: StageTransition,
        attempt: LanguageAttempt,
    ) -> ContentItem:
        """Persist a record together with its latest attempt for the transition."""

        attempts = dict(record.attempts)
        attempts[transition.target.value] = attempt
        return self.store.save(replace(record, attempts=attempts))

    def _log_start(self, stage_label: str, content_id: str, languages: Sequence[str]) -> None:
        """Emit the stage-start event."""

        if self.run_logger is not None:
            self.run_logger.log_stage_start(
                stage_label,
                content_id=content_id,
                languages=",".join(languages) or "none",
            )

    def _log_finish(
        self,
        stage_label: str,
        content_id: str,
        outcomes: Sequence[LanguageOutcome],
        success: bool,
        advanced: bool,
    ) -> None:
        """Emit the stage-complete or stage-failure event."""

        if self.run_logger is None:
            return
        if success:
            self.run_logger.log_stage_complete(
                stage_label,
                advanced=advanced,
                content_id=content_id,
                skipped=sum(1 for outcome in outcomes if outcome.skipped),
            )
            return
        self.run_logger.log_stage_failure(
            stage_label,
            "LanguageFailures",
            content_id=content_id,
            failed=",".join(outcome.language for outcome in outcomes if not outcome.success),
        )
