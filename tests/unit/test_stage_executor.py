"""Unit tests for per-language stage execution."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest

from articlevoice.errors import ContentNotFoundError, ValidationError
from articlevoice.languages import default_language_catalog
from articlevoice.models.datatypes import AdapterKind, ContentItem, Stage
from articlevoice.pipeline.executor import StageExecutor
from articlevoice.telemetry.logger import RunLogger


def test_translation_creates_target_records_and_advances(harness) -> None:
    """A successful translation pass should write every target and advance the stage."""

    harness.add_article("a1")

    result = harness.executor().execute("a1")

    assert result.success
    assert result.advanced
    assert result.source is Stage.REVIEWED
    assert result.target is Stage.TRANSLATED
    assert [outcome.language for outcome in result.outcomes] == ["en-US", "ja-JP"]
    assert harness.stage_of("a1") is Stage.TRANSLATED
    english = harness.store.get("a1", "en-US")
    assert english.title == "[en-US] 比特幣創新高"
    assert english.body.startswith("[en-US] 比特幣今天創下新高。")
    assert english.category == "daily-news"
    assert english.date == "2026-07-01"
    attempt = english.last_attempt(Stage.TRANSLATED)
    assert attempt is not None and attempt.success


def test_partial_failure_keeps_stage_and_retry_skips_done_languages(harness) -> None:
    """One failing language should block advancement; a rerun only redoes that language."""

    harness.add_article("a1")
    harness.translator.fail_languages = {"ja-JP"}
    executor = harness.executor()

    first = executor.execute("a1")

    assert not first.success
    assert not first.advanced
    assert first.failed_languages == ("ja-JP",)
    failed = first.outcomes[1]
    assert failed.failure_kind == "server_error"
    assert "openai unavailable for ja-JP" in (failed.error or "")
    assert harness.stage_of("a1") is Stage.REVIEWED
    assert harness.store.find("a1", "en-US") is not None
    placeholder = harness.store.get("a1", "ja-JP")
    assert placeholder.body == ""
    assert placeholder.category == "daily-news"

    harness.translator.fail_languages = set()
    harness.translator.calls.clear()
    second = executor.execute("a1")

    assert second.advanced
    assert second.outcomes[0].skipped
    assert not second.outcomes[1].skipped
    assert {language for language, _ in harness.translator.calls} == {"ja-JP"}
    assert harness.stage_of("a1") is Stage.TRANSLATED


def test_first_translation_failure_is_recorded_on_placeholder(harness) -> None:
    """A target that never had a record should still keep its failed attempt."""

    harness.add_article("a1")
    harness.translator.fail_languages = {"ja-JP"}
    executor = harness.executor()

    executor.execute("a1")

    attempt = harness.store.get("a1", "ja-JP").last_attempt(Stage.TRANSLATED)
    assert attempt is not None
    assert not attempt.success
    assert attempt.failure_kind == "server_error"
    assert "openai unavailable for ja-JP" in (attempt.error or "")

    status = harness.engine().status("a1")
    by_language = {language.language: language for language in status.languages}
    assert not by_language["ja-JP"].has_body
    assert "openai unavailable for ja-JP" in (by_language["ja-JP"].last_error or "")
    assert by_language["en-US"].last_error is None

    harness.translator.fail_languages = set()
    executor.execute("a1")

    translated = harness.store.get("a1", "ja-JP")
    assert translated.body.startswith("[ja-JP] ")
    assert translated.last_attempt(Stage.TRANSLATED).success
    assert harness.stage_of("a1") is Stage.TRANSLATED


def test_failed_attempt_is_recorded_on_existing_record(harness) -> None:
    """Failures for languages with a record should persist the attempt outcome."""

    harness.add_article("a1")
    executor = harness.executor()
    executor.execute("a1")
    harness.speech.fail_languages = {"en-US"}

    result = executor.execute("a1")

    assert result.failed_languages == ("en-US",)
    attempt = harness.store.get("a1", "en-US").last_attempt(Stage.AUDIO_READY)
    assert attempt is not None
    assert not attempt.success
    assert attempt.failure_kind == "server_error"
    assert "google-tts unavailable" in (attempt.error or "")
    source_attempt = harness.store.get("a1", "zh-TW").last_attempt(Stage.AUDIO_READY)
    assert source_attempt is not None and source_attempt.success
    assert harness.stage_of("a1") is Stage.TRANSLATED


def test_success_record_without_artifact_is_rerun_and_flagged(harness) -> None:
    """A recorded success whose file vanished should be redone and reported."""

    harness.add_article("a1")
    executor = harness.executor()
    executor.execute("a1")
    harness.speech.fail_languages = {"ja-JP"}
    executor.execute("a1")
    english_audio = Path(harness.store.get("a1", "en-US").audio_path)
    english_audio.unlink()
    harness.speech.fail_languages = set()
    sink = io.StringIO()
    executor.run_logger = RunLogger(sink=sink)

    result = executor.execute("a1")

    assert result.advanced
    by_language = {outcome.language: outcome for outcome in result.outcomes}
    assert by_language["zh-TW"].skipped
    assert by_language["en-US"].inconsistent
    assert by_language["en-US"].success
    assert english_audio.is_file()
    assert "event=inconsistent_state" in sink.getvalue()
    assert "language=en-US" in sink.getvalue()


def test_inconsistent_failure_message_names_missing_artifact(harness) -> None:
    """A failed rerun of an inconsistent record should explain the missing artifact."""

    harness.add_article("a1")
    executor = harness.executor()
    executor.execute("a1")
    harness.speech.fail_languages = {"ja-JP"}
    executor.execute("a1")
    Path(harness.store.get("a1", "en-US").audio_path).unlink()
    harness.speech.fail_languages = {"en-US"}

    result = executor.execute("a1")

    english = next(outcome for outcome in result.outcomes if outcome.language == "en-US")
    assert english.inconsistent
    assert not english.success
    assert (english.error or "").startswith(
        "Content `a1` (en-US) recorded success for `audio-ready` but its artifact is missing."
    )


def test_no_eligible_languages_fails_stage(harness_factory: Callable) -> None:
    """A stage with no eligible languages should fail without advancing."""

    catalog = default_language_catalog().with_overrides(
        {code: {"generate_audio": False} for code in ("zh-TW", "en-US", "ja-JP")}
    )
    harness = harness_factory(catalog)
    harness.add_article("a1")
    executor = harness.executor()
    executor.execute("a1")

    result = executor.execute("a1")

    assert not result.success
    assert not result.advanced
    assert result.outcomes == ()
    assert result.detail == "No languages are eligible for `synthesis`."
    assert harness.stage_of("a1") is Stage.TRANSLATED


def test_social_stage_advances_with_no_eligible_languages(harness_factory: Callable) -> None:
    """The social stage should complete when every language has hooks disabled."""

    catalog = default_language_catalog().with_overrides(
        {code: {"generate_social_hooks": False} for code in ("zh-TW", "en-US", "ja-JP")}
    )
    harness = harness_factory(catalog)
    harness.add_article("a1", stage=Stage.UPLOADED_METADATA)

    result = harness.executor().execute("a1")

    assert result.success
    assert result.advanced
    assert result.outcomes == ()
    assert harness.stage_of("a1") is Stage.PUBLISHED
    assert harness.hooks.generated == []


def _add_translation(harness, content_id: str, language: str) -> None:
    """Store a translated record for a social-stage test."""

    harness.store.create(
        ContentItem(
            id=content_id,
            language=language,
            category="daily-news",
            title=f"{language} title",
            body=f"{language} body.",
            date="2026-07-01",
        )
    )


def test_social_targets_wait_for_source_hook(harness) -> None:
    """Targets should not run when the source hook fails, then localize it on retry."""

    harness.add_article("a1", stage=Stage.UPLOADED_METADATA)
    _add_translation(harness, "a1", "en-US")
    _add_translation(harness, "a1", "ja-JP")
    harness.hooks.fail_languages = {"zh-TW"}
    executor = harness.executor()

    blocked = executor.execute("a1")

    assert not blocked.success
    kinds = {outcome.language: outcome.failure_kind for outcome in blocked.outcomes}
    assert kinds == {"zh-TW": "server_error", "en-US": "dependency", "ja-JP": "dependency"}
    assert harness.hooks.generated == ["zh-TW"]
    assert harness.hooks.localized == []
    assert harness.stage_of("a1") is Stage.UPLOADED_METADATA

    harness.hooks.fail_languages = set()
    result = executor.execute("a1")

    assert result.advanced
    assert harness.hooks.localized == ["en-US", "ja-JP"]
    english_hook = harness.store.get("a1", "en-US").social_hook or ""
    assert english_hook.startswith("[en-US] Hook zh-TW: 比特幣創新高")
    assert "fromfedtochain://audio/a1" in english_hook
    assert harness.stage_of("a1") is Stage.PUBLISHED


def test_social_targets_write_native_hooks_without_source_hook(harness_factory: Callable) -> None:
    """Targets should generate their own hooks when the source has hooks disabled."""

    catalog = default_language_catalog().with_overrides(
        {"zh-TW": {"generate_social_hooks": False}}
    )
    harness = harness_factory(catalog)
    harness.add_article("a1", stage=Stage.UPLOADED_METADATA)
    _add_translation(harness, "a1", "en-US")
    _add_translation(harness, "a1", "ja-JP")

    result = harness.executor().execute("a1")

    assert result.advanced
    assert harness.hooks.generated == ["en-US", "ja-JP"]
    assert harness.hooks.localized == []
    assert (harness.store.get("a1", "ja-JP").social_hook or "").startswith(
        "Hook ja-JP: ja-JP title"
    )


def test_parallel_language_workers_keep_outcome_order(harness) -> None:
    """Concurrent fan-out should produce the same ordered outcomes."""

    harness.add_article("a1")

    result = harness.executor(language_workers=2).execute("a1")

    assert result.advanced
    assert [outcome.language for outcome in result.outcomes] == ["en-US", "ja-JP"]
    assert set(harness.store.records("a1")) == {"zh-TW", "en-US", "ja-JP"}


def test_unexpected_handler_error_is_recorded_as_unknown(harness, monkeypatch) -> None:
    """Non-provider exceptions should become per-language failures."""

    harness.add_article("a1")

    def _broken(text: str, source_language: str, target_language: str) -> str:
        raise RuntimeError("boom")

    monkeypatch.setattr(harness.translator, "translate", _broken)

    result = harness.executor().execute("a1")

    assert not result.success
    assert {outcome.failure_kind for outcome in result.outcomes} == {"unknown"}
    assert result.outcomes[0].error == "RuntimeError: boom"


def test_validation_error_propagates(harness, monkeypatch) -> None:
    """Malformed-input errors should abort the pass instead of being recorded."""

    harness.add_article("a1")

    def _invalid(text: str, source_language: str, target_language: str) -> str:
        raise ValidationError("bad input")

    monkeypatch.setattr(harness.translator, "translate", _invalid)

    with pytest.raises(ValidationError):
        harness.executor().execute("a1")


def test_terminal_item_returns_success_without_work(harness) -> None:
    """A published item should report success with no target."""

    harness.add_article("a1", stage=Stage.PUBLISHED)

    result = harness.executor().execute("a1")

    assert result.success
    assert result.target is None
    assert not result.advanced
    assert harness.translator.calls == []


def test_missing_item_raises_not_found(harness) -> None:
    """Executing an unknown id should raise a lookup error."""

    with pytest.raises(ContentNotFoundError):
        harness.executor().execute("missing")


def test_executor_rejects_missing_handler_and_bad_workers(harness) -> None:
    """Construction should validate handlers and worker count."""

    handlers = dict(harness.executor().handlers)
    with pytest.raises(ValueError, match="language_workers"):
        StageExecutor(harness.store, handlers, source_language="zh-TW", language_workers=0)

    del handlers[AdapterKind.PACKAGING]
    with pytest.raises(ValueError, match="packaging"):
        StageExecutor(harness.store, handlers, source_language="zh-TW")
