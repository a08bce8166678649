"""Speech synthesis over byte-bounded chunks.

Responsibilities:
- Define the chunk-level speech client protocol.
- Split long text under the provider ceiling, synthesize chunks in order, and combine WAVs.
- Abort the whole synthesis on the first failed chunk.
"""

from __future__ import annotations

from typing import Protocol

from ..audio.wav import WavCombiner
from ..errors import ValidationError
from ..llm.rate_limiter import RateLimiter
from ..text.chunking import TextChunker
from .voices import VoiceProfile


class SpeechClient(Protocol):
    """Protocol for chunk-level TTS providers."""

    def synthesize_chunk(self, text: str, voice: VoiceProfile) -> bytes:
        """Return one WAV buffer for a text chunk under the provider limit."""


class SpeechSynthesizer:
    """Synthesize arbitrarily long text as one WAV buffer."""

    def __init__(
        self,
        client: SpeechClient,
        *,
        chunk_max_bytes: int = 4800,
        pacer: RateLimiter | None = None,
        chunker: TextChunker | None = None,
        combiner: WavCombiner | None = None,
    ) -> None:
        """Initialize synthesis collaborators and the chunk ceiling."""

        self.client = client
        self.chunk_max_bytes = chunk_max_bytes
        self.pacer = pacer if pacer is not None else RateLimiter(min_interval_seconds=0.5)
        self.chunker = chunker if chunker is not None else TextChunker()
        self.combiner = combiner if combiner is not None else WavCombiner()

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Return one combined WAV buffer for `text`.

        Chunks are synthesized sequentially in source order with pacing between
        calls. The first provider error propagates and no further chunks are sent.

        Raises:
            ValidationError: If the text has no speakable content.
        """

        chunks = self.chunker.split(text, self.chunk_max_bytes)
        if not chunks:
            raise ValidationError("Cannot synthesize empty text.")

        buffers: list[bytes] = []
        for chunk in chunks:
            self.pacer.acquire(f"synthesis:{voice.language_code}")
            buffers.append(self.client.synthesize_chunk(chunk, voice))
        return self.combiner.combine(buffers)
