"""Audio buffer combination and HLS packaging components."""

from .hls import HlsPackager
from .wav import WavCombiner, combine_wav_buffers

__all__ = ["HlsPackager", "WavCombiner", "combine_wav_buffers"]
