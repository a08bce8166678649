"""Byte-bounded text chunking for speech synthesis requests.

Responsibilities:
- Split article bodies into chunks whose UTF-8 size stays under a ceiling.
- Prefer paragraph boundaries, then sentence boundaries, then forced cuts.
- Keep every non-whitespace character of the input, in order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from ..errors import ValidationError


_PARAGRAPH_BOUNDARY = re.compile(r"\n\s*\n")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+|(?<=[。！？])\s*")
_CJK_TERMINATORS = frozenset("。！？")


def byte_length(text: str) -> int:
    """Return the UTF-8 encoded size of `text`."""

    return len(text.encode("utf-8"))


def _fitting_prefix(text: str, budget: int) -> str:
    """Return the longest character prefix of `text` whose UTF-8 size is within `budget`."""

    if budget <= 0:
        return ""
    return text.encode("utf-8")[:budget].decode("utf-8", errors="ignore")


def _join_paragraphs(current: str, paragraph: str) -> str:
    """Join two paragraph blocks with a blank line."""

    return f"{current}\n\n{paragraph}"


def _join_sentences(current: str, sentence: str) -> str:
    """Join two sentences, omitting the space after CJK terminators."""

    if current and current[-1] in _CJK_TERMINATORS:
        return f"{current}{sentence}"
    return f"{current} {sentence}"


@dataclass(frozen=True, slots=True)
class TextChunker:
    """Greedy paragraph/sentence packer with a hard UTF-8 byte ceiling.

    Attributes:
        continuation_marker: Suffix appended to forced cuts that have a remainder.
    """

    continuation_marker: str = "..."

    def split(self, text: str, max_bytes: int) -> list[str]:
        """Split text into ordered chunks that each fit within `max_bytes`.

        Args:
            text: Body text to split.
            max_bytes: Positive UTF-8 byte ceiling for each chunk.

        Returns:
            Empty list for blank text, `[text]` when it already fits, otherwise
            the packed chunks in source order.

        Raises:
            ValidationError: If `max_bytes` is not positive, or is too small to
                hold a single character of the input.
        """

        if isinstance(max_bytes, bool) or not isinstance(max_bytes, int) or max_bytes <= 0:
            raise ValidationError(f"Chunk ceiling must be a positive integer, got `{max_bytes}`.")
        if not text or not text.strip():
            return []
        if byte_length(text) <= max_bytes:
            return [text]

        paragraphs = [
            block.strip() for block in _PARAGRAPH_BOUNDARY.split(text) if block.strip()
        ]
        chunks = self._pack(
            paragraphs,
            max_bytes,
            join=_join_paragraphs,
            split_oversized=lambda block: self._split_paragraph(block, max_bytes),
        )
        return [chunk for chunk in chunks if chunk.strip()]

    def _split_paragraph(self, paragraph: str, max_bytes: int) -> list[str]:
        """Split one oversized paragraph along sentence boundaries."""

        sentences = [
            sentence.strip()
            for sentence in _SENTENCE_BOUNDARY.split(paragraph)
            if sentence.strip()
        ]
        return self._pack(
            sentences,
            max_bytes,
            join=_join_sentences,
            split_oversized=lambda sentence: self._force_split(sentence, max_bytes),
        )

    def _pack(
        self,
        units: list[str],
        max_bytes: int,
        *,
        join: Callable[[str, str], str],
        split_oversized: Callable[[str], list[str]],
    ) -> list[str]:
        """Greedily pack units into chunks, delegating oversized units to a finer splitter."""

        chunks: list[str] = []
        current = ""
        for unit in units:
            if byte_length(unit) > max_bytes:
                if current:
                    chunks.append(current)
                    current = ""
                chunks.extend(split_oversized(unit))
                continue
            candidate = join(current, unit) if current else unit
            if byte_length(candidate) <= max_bytes:
                current = candidate
                continue
            chunks.append(current)
            current = unit
        if current:
            chunks.append(current)
        return chunks

    def _force_split(self, sentence: str, max_bytes: int) -> list[str]:
        """Cut an unpunctuated run into pieces, marking every piece that has a remainder."""

        marker = self.continuation_marker
        pieces: list[str] = []
        remaining = sentence.strip()
        while byte_length(remaining) > max_bytes:
            suffix = marker
            prefix = _fitting_prefix(remaining, max_bytes - byte_length(marker))
            if not prefix.strip():
                suffix = ""
                prefix = _fitting_prefix(remaining, max_bytes)
            if not prefix:
                raise ValidationError(
                    f"Chunk ceiling of {max_bytes} byte(s) cannot hold character "
                    f"`{remaining[0]}`."
                )
            word_break = prefix.rfind(" ")
            if word_break > len(prefix) // 2:
                prefix = prefix[:word_break]
            pieces.append(f"{prefix.rstrip()}{suffix}")
            remaining = remaining[len(prefix):].lstrip()
        if remaining:
            pieces.append(remaining)
        return pieces


_DEFAULT_CHUNKER = TextChunker()


def split_text_into_chunks(text: str, max_bytes: int) -> list[str]:
    """Split text with the default chunker configuration."""

    return _DEFAULT_CHUNKER.split(text, max_bytes)
