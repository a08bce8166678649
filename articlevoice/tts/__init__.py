"""Text-to-speech provider abstractions.

This package contains voice profile types, the Google speech client, and the
chunked synthesizer used by the pipeline synthesis stage.
"""

from .google_client import GoogleSpeechClient
from .synthesizer import SpeechClient, SpeechSynthesizer
from .voices import VoiceProfile

__all__ = ["VoiceProfile", "SpeechClient", "SpeechSynthesizer", "GoogleSpeechClient"]
