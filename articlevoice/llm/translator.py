"""Translation interfaces and provider integrations.

Responsibilities:
- Define a protocol for text translation implementations.
- Provide an OpenAI-backed translator with an in-memory response cache.
"""

from __future__ import annotations

from typing import Mapping, Protocol

from .cache import ResponseCache
from .openai_client import OpenAIChatClient
from .prompts import PromptLibrary


class Translator(Protocol):
    """Protocol for translation providers."""

    def translate(self, text: str, source_language: str, target_language: str) -> str:
        """Translate text from the source language into the target language."""


class OpenAITranslator:
    """OpenAI-backed translator for article titles, bodies, and hooks."""

    def __init__(
        self,
        client: OpenAIChatClient,
        model: str = "gpt-4.1-mini",
        language_names: Mapping[str, str] | None = None,
        response_cache: ResponseCache | None = None,
    ) -> None:
        """Initialize translator settings and OpenAI client dependencies."""

        self.client = client
        self.model = model
        self.language_names = dict(language_names or {})
        self.cache = response_cache if response_cache is not None else ResponseCache()
        self.prompts = PromptLibrary()

    def translate(self, text: str, source_language: str, target_language: str) -> str:
        """Translate text with OpenAI chat-completions, reusing cached responses."""

        if not text.strip():
            return text
        cache_key = self.cache.make_key(
            provider="openai",
            model=self.model,
            operation="translate",
            input_identity={
                "source_language": source_language,
                "target_language": target_language,
                "source_text": text,
            },
        )
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        translated = self.client.chat_completion_text(
            model=self.model,
            system_prompt=self.prompts.translation_system_prompt(),
            user_prompt=self.prompts.translate_prompt(
                source_text=text,
                source_language=self._language_name(source_language),
                target_language=self._language_name(target_language),
            ),
            temperature=0.0,
        )
        self.cache.set(cache_key, translated)
        return translated

    def _language_name(self, code: str) -> str:
        """Return a prompt-friendly language name for a code."""

        return self.language_names.get(code, code)
