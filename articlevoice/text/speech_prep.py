"""Markdown-to-speech text preparation rules.

Responsibilities:
- Strip markdown syntax that a speech engine would read aloud.
- Normalize line breaks while keeping paragraph boundaries for chunking.
- Insert short spoken pauses between Latin-script sentences.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Protocol


class SpeechRule(Protocol):
    """Protocol for speech preparation rules."""

    def apply(self, text: str) -> str:
        """Apply a single speech preparation transformation."""


class RemoveCodeBlocks:
    """Remove fenced code blocks entirely."""

    def apply(self, text: str) -> str:
        """Drop triple-backtick blocks including their content."""

        return re.sub(r"```[\s\S]*?```", "", text)


class UnwrapEmphasis:
    """Keep the text of bold, italic, and inline-code spans."""

    def apply(self, text: str) -> str:
        """Remove emphasis and inline-code markers."""

        text = re.sub(r"\*\*(.*?)\*\*", r"\1", text)
        text = re.sub(r"\*(.*?)\*", r"\1", text)
        return re.sub(r"`([^`]*)`", r"\1", text)


class RemoveHeadingMarkers:
    """Remove `#` heading prefixes."""

    def apply(self, text: str) -> str:
        """Strip one to six leading hashes followed by whitespace."""

        return re.sub(r"#{1,6}\s+", "", text)


class UnwrapLinks:
    """Replace markdown links with their label."""

    def apply(self, text: str) -> str:
        """Convert `[label](url)` to `label`."""

        return re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", text)


class RemoveListMarkers:
    """Remove bullet markers at line starts."""

    def apply(self, text: str) -> str:
        """Strip `-`, `*`, or `+` list prefixes."""

        return re.sub(r"(?m)^[ \t]*[-*+][ \t]+", "", text)


class NormalizeLineBreaks:
    """Collapse line breaks inside paragraphs and keep one blank line between them."""

    def apply(self, text: str) -> str:
        """Normalize paragraph separators and flatten soft line breaks."""

        paragraphs = re.split(r"\n\s*\n", text)
        flattened = [re.sub(r"\s+", " ", paragraph).strip() for paragraph in paragraphs]
        return "\n\n".join(paragraph for paragraph in flattened if paragraph)


class InsertSentencePauses:
    """Insert a spoken pause between Latin sentences."""

    def apply(self, text: str) -> str:
        """Add ` ... ` between a terminator and the next capitalized sentence."""

        return re.sub(r"([.!?]) +([A-Z])", r"\1 ... \2", text)


@dataclass(slots=True)
class SpeechTextPreparer:
    """Ordered rule chain that turns article markdown into speakable text."""

    rules: list[SpeechRule] = field(
        default_factory=lambda: [
            RemoveCodeBlocks(),
            UnwrapEmphasis(),
            RemoveHeadingMarkers(),
            UnwrapLinks(),
            RemoveListMarkers(),
            NormalizeLineBreaks(),
            InsertSentencePauses(),
        ]
    )

    def prepare(self, text: str) -> str:
        """Apply every rule in order and return stripped text."""

        prepared = text
        for rule in self.rules:
            prepared = rule.apply(prepared)
        return prepared.strip()


def prepare_for_speech(text: str) -> str:
    """Prepare article markdown with the default rule chain."""

    return SpeechTextPreparer().prepare(text)
