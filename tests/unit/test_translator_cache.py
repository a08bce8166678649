"""Unit tests for cached OpenAI translation."""

from __future__ import annotations

from articlevoice.llm.cache import ResponseCache
from articlevoice.llm.translator import OpenAITranslator


class _CountingChatClient:
    """Chat client double that echoes a marker and counts calls."""

    def __init__(self) -> None:
        """Initialize call log."""

        self.prompts: list[str] = []

    def chat_completion_text(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
    ) -> str:
        """Return a deterministic translation marker."""

        self.prompts.append(user_prompt)
        return f"translation #{len(self.prompts)}"


def test_response_cache_key_is_deterministic_and_normalized() -> None:
    """Keys should normalize provider/operation case but keep text verbatim."""

    key_one = ResponseCache.make_key(
        provider="OpenAI",
        model="gpt-4.1-mini",
        operation="Translate",
        input_identity={"source_text": "Hello\n\nworld", "target_language": "ja-JP"},
    )
    key_two = ResponseCache.make_key(
        provider="openai",
        model="gpt-4.1-mini",
        operation="translate",
        input_identity={"target_language": "ja-JP", "source_text": "Hello\n\nworld"},
    )
    key_three = ResponseCache.make_key(
        provider="openai",
        model="gpt-4.1-mini",
        operation="translate",
        input_identity={"source_text": "Hello world", "target_language": "ja-JP"},
    )

    assert key_one == key_two
    assert key_one != key_three
    assert key_one.startswith("response:openai:gpt-4.1-mini:translate:")


def test_response_cache_counts_hits_and_misses() -> None:
    """Cache lookups should update telemetry counters."""

    cache = ResponseCache()

    assert cache.get("k") is None
    cache.set("k", "v")
    assert cache.get("k") == "v"
    assert (cache.hits, cache.misses) == (1, 1)


def test_translator_reuses_cached_translation() -> None:
    """Repeated identical requests should call the provider once."""

    client = _CountingChatClient()
    translator = OpenAITranslator(
        client, language_names={"zh-TW": "Traditional Chinese", "en-US": "English"}
    )

    first = translator.translate("比特幣創新高", "zh-TW", "en-US")
    second = translator.translate("比特幣創新高", "zh-TW", "en-US")
    other = translator.translate("比特幣創新高", "zh-TW", "ja-JP")

    assert first == second == "translation #1"
    assert other == "translation #2"
    assert len(client.prompts) == 2
    assert "Translate the following Traditional Chinese text into English" in client.prompts[0]
    assert client.prompts[0].endswith("比特幣創新高")
    assert "into ja-JP" in client.prompts[1]


def test_translator_returns_blank_text_without_provider_call() -> None:
    """Blank input should pass through untouched."""

    client = _CountingChatClient()

    assert OpenAITranslator(client).translate("  \n", "zh-TW", "en-US") == "  \n"
    assert client.prompts == []
