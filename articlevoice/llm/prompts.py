"""Prompt template library for LLM stages.

Responsibilities:
- Centralize prompt construction for article translation and social hooks.
- Keep prompts deterministic by template.
"""

from __future__ import annotations


class PromptLibrary:
    """Build prompt strings for supported LLM tasks."""

    def translation_system_prompt(self) -> str:
        """Return deterministic system prompt for strict translation behavior."""

        return (
            "You are a precise financial and crypto news translator. "
            "Return only translated text with no commentary."
        )

    def translate_prompt(
        self, source_text: str, source_language: str, target_language: str
    ) -> str:
        """Return translation prompt text for provider calls."""

        return (
            f"Translate the following {source_language} text into {target_language} while "
            "preserving meaning, tone, markdown formatting, tickers, and paragraph structure. "
            "Output only the translated text.\n\n"
            f"{source_text}"
        )

    def social_hook_system_prompt(self) -> str:
        """Return system prompt for social hook generation."""

        return (
            "You write short, accurate social media hooks for a finance and crypto podcast. "
            "Return only the hook text, no explanations."
        )

    def social_hook_prompt(
        self,
        *,
        title: str,
        key_insight: str,
        language_name: str,
        max_characters: int,
    ) -> str:
        """Return the hook prompt built from the article title and its first paragraph."""

        return (
            f'Create 1 engaging social media hook for "{title}" in {language_name}.\n\n'
            f"Key content: {key_insight}\n\n"
            "Requirements:\n"
            f"- Under {max_characters} characters (links will be added separately)\n"
            "- Compelling and shareable\n"
            f"- Match {language_name} social media style\n"
            "- Mention that Eng | 中 | 日 podcasts are available on Apple Podcasts and Spotify\n\n"
            "Return only the hook text, no explanations."
        )

    def hook_translation_prompt(
        self, hook: str, source_language: str, target_language: str
    ) -> str:
        """Return the prompt used to localize an existing hook."""

        return (
            f"Translate this {source_language} social media hook into {target_language}. "
            "Keep it punchy, keep emoji and hashtags, and output only the translated hook.\n\n"
            f"{hook}"
        )
