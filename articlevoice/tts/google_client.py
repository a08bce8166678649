"""Google Cloud Text-to-Speech REST client.

Responsibilities:
- Send `text:synthesize` requests for one bounded text chunk.
- Decode base64 LINEAR16 WAV audio from the provider response.
"""

from __future__ import annotations

import base64
import binascii

from ..llm.http_client import ProviderHttpClient
from ..llm.rate_limiter import RateLimiter
from .voices import VoiceProfile


class GoogleSpeechClient(ProviderHttpClient):
    """Minimal requests-based Google Text-to-Speech client returning WAV bytes."""

    service_name = "google-tts"

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://texttospeech.googleapis.com/v1",
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
        sample_rate_hertz: int = 16000,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize Google TTS client settings."""

        super().__init__(
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            rate_limiter=rate_limiter,
        )
        self.sample_rate_hertz = sample_rate_hertz

    def _auth_headers(self) -> dict[str, str]:
        """Return API-key authentication headers."""

        return {"X-Goog-Api-Key": self.api_key}

    def _missing_key_message(self) -> str:
        """Return the actionable message for a missing Google key."""

        return (
            "Missing Google Text-to-Speech API key. Set `GOOGLE_TTS_API_KEY`, pass "
            "`--google-api-key`, or run `articlevoice credentials --set --provider google`."
        )

    def synthesize_chunk(self, text: str, voice: VoiceProfile) -> bytes:
        """Synthesize one chunk and return a LINEAR16 WAV buffer."""

        payload = {
            "input": {"text": text},
            "voice": {
                "languageCode": voice.language_code,
                "name": voice.voice_name,
            },
            "audioConfig": {
                "audioEncoding": "LINEAR16",
                "sampleRateHertz": self.sample_rate_hertz,
                "speakingRate": voice.speaking_rate,
            },
        }
        response = self._post_json(endpoint_path="/text:synthesize", payload=payload)
        if not isinstance(response, dict):
            raise self._malformed("response is not a JSON object.")
        encoded = response.get("audioContent")
        if not isinstance(encoded, str) or not encoded:
            raise self._malformed("response missing `audioContent`.")
        try:
            audio = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise self._malformed("response `audioContent` is not valid base64.") from exc
        if not audio:
            raise self._malformed("response audio is empty.")
        return audio
