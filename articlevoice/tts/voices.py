"""Voice profile models for synthesis configuration.

Responsibilities:
- Represent provider voice identities and tuning metadata.
- Decouple stage handlers from provider-specific request payloads.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative voice profile used by TTS providers.

    Attributes:
        language_code: BCP-47 language code sent to the provider.
        voice_name: Provider-native voice identifier.
        speaking_rate: Relative speaking rate multiplier.
    """

    language_code: str
    voice_name: str
    speaking_rate: float = 1.0
