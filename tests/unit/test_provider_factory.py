"""Tests for provider factories and runtime engine wiring."""

from __future__ import annotations

from pathlib import Path

import pytest

from articlevoice.config import ArticlevoiceConfig, RuntimeConfigSources
from articlevoice.errors import PipelineStageError
from articlevoice.llm.openai_client import OpenAIChatClient
from articlevoice.llm.social_hooks import OpenAISocialHookGenerator
from articlevoice.llm.translator import OpenAITranslator
from articlevoice.models.datatypes import AdapterKind, ContentItem, Stage
from articlevoice.pipeline.runtime import build_engine, validate_runtime_config
from articlevoice.provider_factory import ProviderFactory
from articlevoice.tts.google_client import GoogleSpeechClient


def test_factory_builds_openai_and_google_adapters() -> None:
    """Known provider ids should resolve to concrete adapters with runtime limits."""

    chat = ProviderFactory.create_chat_client(
        "openai", " sk-test ", timeout_seconds=12.0, max_retries=4
    )
    translator = ProviderFactory.create_translator(chat, "gpt-test", {"en-US": "English"})
    hooks = ProviderFactory.create_hook_generator(chat, "gpt-test", {"en-US": "English"})
    synthesizer = ProviderFactory.create_speech_synthesizer(
        "google", "AIza-test", chunk_max_bytes=4800, pacing_seconds=0.25
    )

    assert isinstance(chat, OpenAIChatClient)
    assert chat.api_key == "sk-test"
    assert chat.timeout_seconds == 12.0
    assert chat.max_retries == 4
    assert isinstance(translator, OpenAITranslator)
    assert translator.model == "gpt-test"
    assert isinstance(hooks, OpenAISocialHookGenerator)
    assert isinstance(synthesizer.client, GoogleSpeechClient)
    assert synthesizer.chunk_max_bytes == 4800


def test_factory_rejects_unknown_provider_ids() -> None:
    """Unsupported provider ids should fail fast."""

    with pytest.raises(ValueError, match="Unsupported chat provider"):
        ProviderFactory.create_chat_client("anthropic", "key")
    with pytest.raises(ValueError, match="Unsupported speech provider"):
        ProviderFactory.create_speech_synthesizer("polly", "key", chunk_max_bytes=100)


def test_validate_runtime_config_maps_errors_to_config_stage() -> None:
    """Invalid config values should become config-stage pipeline errors."""

    config = ArticlevoiceConfig(max_steps_per_item=0)

    with pytest.raises(PipelineStageError) as exc_info:
        validate_runtime_config(config)

    assert exc_info.value.stage == "config"
    assert "max_steps_per_item" in exc_info.value.detail


class _RecordingFactory(ProviderFactory):
    """Factory recording the API keys handed to provider clients."""

    keys: dict[str, str | None] = {}

    @staticmethod
    def create_chat_client(provider_id, api_key, timeout_seconds=60.0, max_retries=2):
        """Record the chat key and delegate."""

        _RecordingFactory.keys["openai"] = api_key
        return ProviderFactory.create_chat_client(
            provider_id, api_key, timeout_seconds=timeout_seconds, max_retries=max_retries
        )

    @staticmethod
    def create_speech_synthesizer(provider_id, api_key, chunk_max_bytes, **kwargs):
        """Record the speech key and delegate."""

        _RecordingFactory.keys["google"] = api_key
        return ProviderFactory.create_speech_synthesizer(
            provider_id, api_key, chunk_max_bytes, **kwargs
        )


def test_build_engine_wires_config_limits_and_resolved_keys(tmp_path: Path) -> None:
    """The engine should honor worker limits, step cap, targets, and key precedence."""

    config = ArticlevoiceConfig(
        content_root=tmp_path / "content",
        audio_root=tmp_path / "audio",
        target_languages=("ja-JP",),
        language_workers=3,
        item_workers=2,
        max_steps_per_item=4,
        openai_api_key="sk-config",
        runtime_sources=RuntimeConfigSources(
            cli={"google_api_key": "AIza-cli"},
            env={"OPENAI_API_KEY": "sk-env", "GOOGLE_TTS_API_KEY": "AIza-env"},
        ),
    )

    engine = build_engine(config, factory=_RecordingFactory)

    assert engine.max_steps_per_item == 4
    assert engine.item_workers == 2
    assert engine.executor.language_workers == 3
    assert engine.source_language == "zh-TW"
    assert set(engine.executor.handlers) == set(AdapterKind)
    assert _RecordingFactory.keys == {"openai": "sk-env", "google": "AIza-cli"}


def test_built_engine_reports_missing_keys_per_language(tmp_path: Path) -> None:
    """Without API keys, translation should fail per language with `invalid_api_key`."""

    config = ArticlevoiceConfig(
        content_root=tmp_path / "content",
        audio_root=tmp_path / "audio",
        http_max_retries=0,
    )
    engine = build_engine(config)
    engine.store.create(
        ContentItem(
            id="a1",
            language="zh-TW",
            category="daily-news",
            title="標題",
            body="內容。",
            date="2026-07-01",
        )
    )

    result = engine.executor.execute("a1")

    assert not result.advanced
    assert set(result.failed_languages) == {"en-US", "ja-JP"}
    assert {
        outcome.failure_kind for outcome in result.outcomes if not outcome.success
    } == {"invalid_api_key"}
    assert engine.store.get("a1", "zh-TW").stage is Stage.REVIEWED
