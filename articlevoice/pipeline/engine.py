"""Pipeline engine: drives items through the stage chain.

Responsibilities:
- List items that still have a transition to run, in scheduling order.
- Step one item forward until it stops, hits the terminal stage, or the step cap.
- Run a batch where one item's crash never stops the others.
- Report per-language artifact status for one item.

Key types:
- `PipelineEngine`: single-item and batch entry points.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Mapping

from ..errors import PipelineStageError
from ..io.store import ContentStore
from ..models.datatypes import (
    ContentItem,
    ItemRunReport,
    LanguageStatus,
    PendingItem,
    PipelineStatus,
    Stage,
    TransitionRecord,
)
from ..telemetry.logger import RunLogger
from .executor import StageExecutor
from .transitions import transition_for


class PipelineEngine:
    """Coordinate stage execution for single items and batches."""

    def __init__(
        self,
        store: ContentStore,
        executor: StageExecutor,
        *,
        max_steps_per_item: int = 10,
        item_workers: int = 1,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize store, executor, and run limits."""

        if max_steps_per_item <= 0:
            raise ValueError("`max_steps_per_item` must be a positive integer.")
        if item_workers <= 0:
            raise ValueError("`item_workers` must be a positive integer.")
        self.store = store
        self.executor = executor
        self.max_steps_per_item = max_steps_per_item
        self.item_workers = item_workers
        self.run_logger = run_logger

    @property
    def source_language(self) -> str:
        """Return the language whose record carries the canonical stage."""

        return self.executor.source_language

    def pending_items(self) -> list[PendingItem]:
        """Return non-terminal source records ordered by date, then id."""

        return self._scan_pending()[0]

    def _scan_pending(self) -> tuple[list[PendingItem], dict[str, str]]:
        """Return pending items and unreadable source records keyed by content id."""

        unreadable: dict[str, str] = {}
        pending: list[PendingItem] = []
        for item in self.store.list_language(self.source_language, unreadable):
            transition = transition_for(item.stage, self.executor.transitions)
            if transition.is_terminal:
                continue
            pending.append(
                PendingItem(
                    content_id=item.id,
                    category=item.category,
                    date=item.date,
                    title=item.title,
                    transition=transition,
                )
            )
        if self.run_logger is not None:
            for content_id, error in sorted(unreadable.items()):
                self.run_logger.log_unreadable_record(content_id, error.partition(":")[0])
        ordered = sorted(pending, key=lambda entry: (entry.date, entry.content_id))
        return ordered, unreadable

    def process_item(self, content_id: str, start_from: Stage | None = None) -> ItemRunReport:
        """Advance one item step by step and return its audit trail.

        Processing stops when a step does not advance the stage, the terminal
        stage is reached, or `max_steps_per_item` transitions were attempted.

        Raises:
            ContentNotFoundError: If the source-language record does not exist.
            PipelineStageError: If `start_from` does not match the stored stage.
        """

        start_stage = self.store.get(content_id, self.source_language).stage
        if start_from is not None and start_from is not start_stage:
            raise PipelineStageError(
                stage="process",
                detail=(
                    f"Content `{content_id}` is at `{start_stage.value}`, "
                    f"not `{start_from.value}`."
                ),
                hint="Run `articlevoice status` to inspect the current stage.",
            )

        records: list[TransitionRecord] = []
        current = start_stage
        for _ in range(self.max_steps_per_item):
            transition = transition_for(current, self.executor.transitions)
            if transition.is_terminal:
                break
            result = self.executor.execute(content_id)
            records.append(
                TransitionRecord(
                    source=result.source,
                    target=result.target,
                    description=transition.description,
                    success=result.advanced,
                )
            )
            if not result.advanced:
                break
            stored = self.store.get(content_id, self.source_language).stage
            if stored.order <= current.order:
                break
            current = stored

        final_stage = self.store.get(content_id, self.source_language).stage
        report = ItemRunReport(
            content_id=content_id,
            start_stage=start_stage,
            final_stage=final_stage,
            transitions=tuple(records),
        )
        if self.run_logger is not None:
            self.run_logger.log_item_summary(
                content_id, report.outcome, final_stage.value, len(records)
            )
        return report

    def run_all(self, item_workers: int | None = None) -> list[ItemRunReport]:
        """Process every pending item and return reports in scheduling order.

        Source records that cannot be read are reported after the processed
        items as stuck reports carrying the read error.
        """

        pending, unreadable = self._scan_pending()
        content_ids = [entry.content_id for entry in pending]
        workers = min(item_workers or self.item_workers, len(content_ids) or 1)
        if workers == 1:
            reports = [self._process_isolated(content_id) for content_id in content_ids]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                reports = list(pool.map(self._process_isolated, content_ids))
        reports.extend(
            ItemRunReport(content_id=content_id, start_stage=None, final_stage=None, error=error)
            for content_id, error in sorted(unreadable.items())
        )
        return reports

    def _process_isolated(self, content_id: str) -> ItemRunReport:
        """Process one batch item, converting a crash into a stuck report."""

        try:
            return self.process_item(content_id)
        except Exception as exc:
            if self.run_logger is not None:
                self.run_logger.log_item_crash(content_id, type(exc).__name__)
            try:
                record = self.store.find(content_id, self.source_language)
            except (OSError, ValueError):
                record = None
            current = record.stage if record is not None else None
            return ItemRunReport(
                content_id=content_id,
                start_stage=current,
                final_stage=current,
                error=f"{type(exc).__name__}: {exc}",
            )

    def status(self, content_id: str) -> PipelineStatus:
        """Return the canonical stage, next transition, and per-language artifacts."""

        source = self.store.get(content_id, self.source_language)
        transition = transition_for(source.stage, self.executor.transitions)
        records = self.store.records(content_id)
        languages = tuple(
            LanguageStatus(
                language=language,
                has_body=bool(record.body.strip()),
                has_audio=bool(record.audio_path),
                has_playlist=bool(record.hls_playlist_path),
                has_streaming_url=bool(record.streaming_urls and record.streaming_urls.m3u8),
                has_metadata_url=bool(
                    record.streaming_urls and record.streaming_urls.metadata
                ),
                has_social_hook=bool((record.social_hook or "").strip()),
                last_error=_pending_error(record, transition.target),
            )
            for language, record in _source_first(records, self.source_language)
        )
        return PipelineStatus(
            content_id=content_id,
            stage=source.stage,
            next_transition=None if transition.is_terminal else transition,
            languages=languages,
        )


def _pending_error(record: ContentItem, target: Stage | None) -> str | None:
    """Return the failure message of the last attempt at the next stage, if it failed."""

    if target is None:
        return None
    attempt = record.last_attempt(target)
    if attempt is None or attempt.success:
        return None
    return attempt.error or attempt.failure_kind or "failed"


def _source_first(
    records: Mapping[str, ContentItem], source_language: str
) -> list[tuple[str, ContentItem]]:
    """Return `(language, record)` pairs with the source language first."""

    return sorted(records.items(), key=lambda pair: (pair[0] != source_language, pair[0]))
