"""OpenAI chat-completions client used by translation and social-hook stages.

Responsibilities:
- Send minimal chat-completions requests to OpenAI's REST API.
- Normalize response extraction for deterministic stage integrations.
"""

from __future__ import annotations

from typing import Any

from .http_client import ProviderHttpClient
from .rate_limiter import RateLimiter


class OpenAIChatClient(ProviderHttpClient):
    """Minimal requests-based OpenAI chat-completions HTTP client."""

    service_name = "openai"

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
        retry_backoff_base_seconds: float = 0.5,
        retry_backoff_max_seconds: float = 8.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize OpenAI HTTP client settings."""

        super().__init__(
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            retry_backoff_base_seconds=retry_backoff_base_seconds,
            retry_backoff_max_seconds=retry_backoff_max_seconds,
            rate_limiter=rate_limiter,
        )

    def _auth_headers(self) -> dict[str, str]:
        """Return bearer-token authentication headers."""

        return {"Authorization": f"Bearer {self.api_key}"}

    def _missing_key_message(self) -> str:
        """Return the actionable message for a missing OpenAI key."""

        return (
            "Missing OpenAI API key. Set `OPENAI_API_KEY`, pass `--openai-api-key`, or run "
            "`articlevoice credentials --set --provider openai`."
        )

    def chat_completion_text(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
    ) -> str:
        """Return the first assistant text response from a chat-completions request."""

        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
        }
        response = self._post_json(endpoint_path="/chat/completions", payload=payload)
        return self._extract_message_text(response)

    def _extract_message_text(self, payload: Any) -> str:
        """Extract first assistant message text from a chat-completions payload."""

        if not isinstance(payload, dict):
            raise self._malformed("response is not a JSON object.")
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise self._malformed("response missing non-empty `choices` list.")

        first_choice = choices[0]
        message = first_choice.get("message") if isinstance(first_choice, dict) else None
        if not isinstance(message, dict):
            raise self._malformed("response missing `choices[0].message` object.")

        text = self._message_content_to_text(message.get("content")).strip()
        if not text:
            raise self._malformed("response message content is empty.")
        return text

    @staticmethod
    def _message_content_to_text(content: Any) -> str:
        """Convert OpenAI message content variants into a plain text string."""

        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                if not isinstance(item, dict):
                    continue
                if item.get("type") == "text" and isinstance(item.get("text"), str):
                    parts.append(item["text"])
            return "".join(parts)
        return ""
