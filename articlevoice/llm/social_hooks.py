"""Social media hook generation and localization.

Responsibilities:
- Generate the master hook in the source language from title and lead paragraph.
- Localize the master hook into target languages with a dedicated prompt.
- Enforce per-language hook length limits and append listening deep links.
"""

from __future__ import annotations

from typing import Mapping, Protocol

from .openai_client import OpenAIChatClient
from .prompts import PromptLibrary


_LINK_BLOCK_PREFIX = "\n\n🎧 Listen: "
_LEAD_FALLBACK_CHARS = 200


def deep_link_block(content_id: str) -> str:
    """Return the app and web listening links appended to every hook."""

    return (
        f"{_LINK_BLOCK_PREFIX}fromfedtochain://audio/{content_id}"
        f"\n🌐 Web: https://fromfedtochain.com/audio/{content_id}"
    )


def strip_link_block(hook: str) -> str:
    """Return hook text without its appended listening links."""

    text, _, _ = hook.partition(_LINK_BLOCK_PREFIX)
    return text.strip()


def validate_hook_length(hook: str, max_length: int) -> str:
    """Truncate a hook to `max_length` characters, preferring a word boundary.

    A word boundary is used when it falls in the last fifth of the allowed
    length; otherwise the text is cut hard. Truncated hooks end with `...`.
    """

    if max_length <= 3:
        raise ValueError("Hook length limit must be greater than 3 characters.")
    if len(hook) <= max_length:
        return hook

    truncated = hook[: max_length - 3]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        truncated = truncated[:last_space]
    return f"{truncated.rstrip()}..."


def lead_paragraph(body: str) -> str:
    """Return the first paragraph of a body, or its first characters when unsplit."""

    first = body.split("\n\n", 1)[0].strip()
    return first or body[:_LEAD_FALLBACK_CHARS].strip()


class SocialHookGenerator(Protocol):
    """Protocol for social hook providers."""

    def generate_hook(
        self,
        *,
        content_id: str,
        title: str,
        body: str,
        language: str,
        max_length: int,
    ) -> str:
        """Generate a validated hook with links for the source language."""

    def localize_hook(
        self,
        *,
        content_id: str,
        hook: str,
        source_language: str,
        target_language: str,
        max_length: int,
    ) -> str:
        """Translate an existing hook and return it validated with links."""


class OpenAISocialHookGenerator:
    """OpenAI-backed hook writer and localizer."""

    def __init__(
        self,
        client: OpenAIChatClient,
        model: str = "gpt-4.1-mini",
        language_names: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize hook generation dependencies."""

        self.client = client
        self.model = model
        self.language_names = dict(language_names or {})
        self.prompts = PromptLibrary()

    def generate_hook(
        self,
        *,
        content_id: str,
        title: str,
        body: str,
        language: str,
        max_length: int,
    ) -> str:
        """Generate the master hook for the source-language record."""

        raw_hook = self.client.chat_completion_text(
            model=self.model,
            system_prompt=self.prompts.social_hook_system_prompt(),
            user_prompt=self.prompts.social_hook_prompt(
                title=title,
                key_insight=lead_paragraph(body),
                language_name=self.language_names.get(language, language),
                max_characters=max_length,
            ),
            temperature=0.7,
        )
        return validate_hook_length(raw_hook.strip(), max_length) + deep_link_block(content_id)

    def localize_hook(
        self,
        *,
        content_id: str,
        hook: str,
        source_language: str,
        target_language: str,
        max_length: int,
    ) -> str:
        """Translate the master hook text and re-apply length limits and links."""

        translated = self.client.chat_completion_text(
            model=self.model,
            system_prompt=self.prompts.translation_system_prompt(),
            user_prompt=self.prompts.hook_translation_prompt(
                strip_link_block(hook),
                self.language_names.get(source_language, source_language),
                self.language_names.get(target_language, target_language),
            ),
            temperature=0.0,
        )
        return validate_hook_length(translated.strip(), max_length) + deep_link_block(content_id)
