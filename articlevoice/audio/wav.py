"""Canonical PCM WAV buffer combination.

Responsibilities:
- Concatenate synthesized WAV buffers into one playable buffer.
- Rewrite RIFF and data size fields so readers see the real combined length.
- Parse declared header sizes for verification.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Sequence

from ..errors import ValidationError


HEADER_SIZE = 44
_RIFF_SIZE_OFFSET = 4
_DATA_SIZE_OFFSET = 40
_RIFF_SIZE_BASE = 8


@dataclass(frozen=True, slots=True)
class WavHeader:
    """Declared fields of a canonical 44-byte WAV header."""

    riff_size: int
    data_size: int
    channels: int
    sample_rate: int
    bits_per_sample: int


def parse_wav_header(buffer: bytes) -> WavHeader:
    """Parse the declared sizes and format of a canonical WAV header.

    Raises:
        ValidationError: If the buffer is shorter than a header or lacks RIFF/WAVE tags.
    """

    if len(buffer) < HEADER_SIZE:
        raise ValidationError(
            f"WAV buffer has {len(buffer)} byte(s); expected at least {HEADER_SIZE}."
        )
    if buffer[0:4] != b"RIFF" or buffer[8:12] != b"WAVE":
        raise ValidationError("WAV buffer is missing `RIFF`/`WAVE` tags.")

    riff_size = struct.unpack_from("<I", buffer, _RIFF_SIZE_OFFSET)[0]
    channels, sample_rate = struct.unpack_from("<HI", buffer, 22)
    bits_per_sample = struct.unpack_from("<H", buffer, 34)[0]
    data_size = struct.unpack_from("<I", buffer, _DATA_SIZE_OFFSET)[0]
    return WavHeader(
        riff_size=riff_size,
        data_size=data_size,
        channels=channels,
        sample_rate=sample_rate,
        bits_per_sample=bits_per_sample,
    )


class WavCombiner:
    """Merge same-format WAV buffers by keeping the first header and appending payloads."""

    def combine(self, buffers: Sequence[bytes]) -> bytes:
        """Combine ordered WAV buffers into one buffer with corrected size fields.

        The first buffer is copied whole and its header becomes the template.
        Later buffers contribute only the bytes after their header; a buffer
        shorter than a header is appended whole.

        Raises:
            ValidationError: If `buffers` is empty or the first buffer has no header.
        """

        if not buffers:
            raise ValidationError("Cannot combine an empty list of audio buffers.")
        if len(buffers) == 1:
            return buffers[0]

        first = buffers[0]
        if len(first) < HEADER_SIZE:
            raise ValidationError(
                f"First WAV buffer has {len(first)} byte(s); expected at least {HEADER_SIZE}."
            )

        combined = bytearray(first)
        for buffer in buffers[1:]:
            if len(buffer) >= HEADER_SIZE:
                combined.extend(buffer[HEADER_SIZE:])
            else:
                combined.extend(buffer)

        total = len(combined)
        struct.pack_into("<I", combined, _RIFF_SIZE_OFFSET, total - _RIFF_SIZE_BASE)
        struct.pack_into("<I", combined, _DATA_SIZE_OFFSET, total - HEADER_SIZE)
        return bytes(combined)


def combine_wav_buffers(buffers: Sequence[bytes]) -> bytes:
    """Combine WAV buffers with the default combiner."""

    return WavCombiner().combine(buffers)


def payload_length(buffer: bytes) -> int:
    """Return the number of bytes following the header of one buffer."""

    return max(0, len(buffer) - HEADER_SIZE)
