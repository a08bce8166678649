"""Provider factory helpers for translation, social hook, and speech stages.

Responsibilities:
- Resolve provider identifiers to concrete adapter implementations.
- Keep pipeline wiring independent from concrete provider class construction.

Notes:
- `openai` backs translation and social hooks; `google` backs speech synthesis.
- Factory mappings are explicit to keep provider additions reviewable.
"""

from __future__ import annotations

from typing import Mapping

from .llm.cache import ResponseCache
from .llm.openai_client import OpenAIChatClient
from .llm.rate_limiter import RateLimiter
from .llm.social_hooks import OpenAISocialHookGenerator, SocialHookGenerator
from .llm.translator import OpenAITranslator, Translator
from .tts.google_client import GoogleSpeechClient
from .tts.synthesizer import SpeechSynthesizer


class ProviderFactory:
    """Factory for provider-backed stage adapters used by the pipeline."""

    @staticmethod
    def create_chat_client(
        provider_id: str,
        api_key: str | None,
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
    ) -> OpenAIChatClient:
        """Create a chat-completions client for a provider identifier."""

        if provider_id == "openai":
            return OpenAIChatClient(
                api_key=api_key,
                timeout_seconds=timeout_seconds,
                max_retries=max_retries,
            )
        raise ValueError(f"Unsupported chat provider `{provider_id}`.")

    @staticmethod
    def create_translator(
        client: OpenAIChatClient,
        model: str,
        language_names: Mapping[str, str],
        response_cache: ResponseCache | None = None,
    ) -> Translator:
        """Create a translator bound to a chat client."""

        return OpenAITranslator(
            client=client,
            model=model,
            language_names=language_names,
            response_cache=response_cache,
        )

    @staticmethod
    def create_hook_generator(
        client: OpenAIChatClient,
        model: str,
        language_names: Mapping[str, str],
    ) -> SocialHookGenerator:
        """Create a social hook generator bound to a chat client."""

        return OpenAISocialHookGenerator(
            client=client,
            model=model,
            language_names=language_names,
        )

    @staticmethod
    def create_speech_synthesizer(
        provider_id: str,
        api_key: str | None,
        chunk_max_bytes: int,
        pacing_seconds: float = 0.5,
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
    ) -> SpeechSynthesizer:
        """Create a chunked speech synthesizer for a provider identifier."""

        if provider_id == "google":
            client = GoogleSpeechClient(
                api_key=api_key,
                timeout_seconds=timeout_seconds,
                max_retries=max_retries,
            )
            return SpeechSynthesizer(
                client,
                chunk_max_bytes=chunk_max_bytes,
                pacer=RateLimiter(min_interval_seconds=pacing_seconds),
            )
        raise ValueError(f"Unsupported speech provider `{provider_id}`.")
