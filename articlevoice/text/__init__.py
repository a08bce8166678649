"""Text preparation and segmentation components.

This package provides markdown-to-speech cleanup and byte-bounded chunking
used before the synthesis stage.
"""

from .chunking import TextChunker, split_text_into_chunks
from .speech_prep import SpeechTextPreparer, prepare_for_speech

__all__ = ["TextChunker", "split_text_into_chunks", "SpeechTextPreparer", "prepare_for_speech"]
