"""Shared requests-based HTTP plumbing for provider clients.

Responsibilities:
- Send JSON POST requests with a timeout, pacing, and bounded retries.
- Classify HTTP and transport failures into deterministic failure kinds.
- Redact secrets from provider error bodies before they reach diagnostics.
"""

from __future__ import annotations

import json
import re
import socket
import time
from typing import Any

import requests

from ..errors import ExternalServiceError
from .rate_limiter import RateLimiter


_RETRYABLE_FAILURE_KINDS = frozenset({"timeout", "transport", "rate_limited", "server_error"})


class ProviderHttpClient:
    """Base HTTP client shared by the chat and speech provider adapters."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180
    service_name = "provider"

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
        retry_backoff_base_seconds: float = 0.5,
        retry_backoff_max_seconds: float = 8.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(0, max_retries)
        self.retry_backoff_base_seconds = retry_backoff_base_seconds
        self.retry_backoff_max_seconds = retry_backoff_max_seconds
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self.retry_attempt_count = 0

    def _auth_headers(self) -> dict[str, str]:
        """Return provider-specific authentication headers."""

        raise NotImplementedError

    def _missing_key_message(self) -> str:
        """Return the actionable message for a missing API key."""

        return f"Missing {self.service_name} API key."

    def _require_api_key(self) -> None:
        """Require API key presence before issuing provider requests."""

        if not self.api_key:
            raise ExternalServiceError(
                self._missing_key_message(),
                service=self.service_name,
                failure_kind="invalid_api_key",
            )

    def _post_json(self, *, endpoint_path: str, payload: dict[str, Any]) -> Any:
        """POST a JSON payload with retries and return the decoded JSON response."""

        self._require_api_key()
        attempt = 0
        while True:
            self.rate_limiter.acquire(f"{self.service_name}:{endpoint_path}")
            try:
                raw = self._execute_json_post_bytes(endpoint_path=endpoint_path, payload=payload)
            except ExternalServiceError as exc:
                if exc.failure_kind not in _RETRYABLE_FAILURE_KINDS or attempt >= self.max_retries:
                    raise
                time.sleep(self._backoff_seconds(attempt))
                attempt += 1
                self.retry_attempt_count += 1
                continue
            return self._decode_json(raw)

    def _backoff_seconds(self, attempt: int) -> float:
        """Return the exponential backoff delay for a zero-based retry attempt."""

        return min(
            self.retry_backoff_max_seconds,
            self.retry_backoff_base_seconds * (2**attempt),
        )

    def _execute_json_post_bytes(self, *, endpoint_path: str, payload: dict[str, Any]) -> bytes:
        """Execute one JSON POST request and map failures consistently."""

        endpoint = f"{self.base_url}{endpoint_path}"
        headers = {"Content-Type": "application/json", **self._auth_headers()}
        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_service_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = f"{self.service_name} request timed out."
            else:
                detail = (
                    f"{self.service_name} request transport error: "
                    f"{self._short_message(self._redact_sensitive_tokens(str(exc)))}"
                )
            raise ExternalServiceError(
                detail, service=self.service_name, failure_kind=failure_kind
            ) from exc
        except TimeoutError as exc:
            raise ExternalServiceError(
                f"{self.service_name} request timed out.",
                service=self.service_name,
                failure_kind="timeout",
            ) from exc

    def _decode_json(self, raw: bytes) -> Any:
        """Decode a JSON response body or raise a malformed-response error."""

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ExternalServiceError(
                f"{self.service_name} returned an invalid JSON payload.",
                service=self.service_name,
                failure_kind="malformed_response",
            ) from exc

    def _malformed(self, message: str) -> ExternalServiceError:
        """Build a malformed-response error for this provider."""

        return ExternalServiceError(
            f"{self.service_name} {message}",
            service=self.service_name,
            failure_kind="malformed_response",
        )

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        content = getattr(response, "content", b"") or b""
        return bytes(content).decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        redacted = re.sub(r"\bAIza[0-9A-Za-z_-]{20,}\b", "[redacted-key]", redacted)
        redacted = re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 3]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> str:
        """Extract a concise provider-facing message from an error body."""

        if not body:
            return ""
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body))

        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()
        if message is None:
            message = body
        return cls._short_message(cls._redact_sensitive_tokens(message))

    @staticmethod
    def _classify_http_failure(status_code: int, provider_message: str) -> str:
        """Classify HTTP errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        if status_code in {401, 403} or "api key" in message_lower:
            return "invalid_api_key"
        if status_code == 429:
            return "rate_limited"
        if status_code in {408, 504} or "timed out" in message_lower:
            return "timeout"
        if status_code >= 500:
            return "server_error"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, (TimeoutError, socket.timeout, requests.Timeout)):
            return "timeout"
        return "transport"

    def _http_error_to_service_error(self, exc: requests.HTTPError) -> ExternalServiceError:
        """Convert HTTP errors into normalized service exceptions with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        provider_message = self._extract_provider_message(self._decode_error_body(exc))
        failure_kind = self._classify_http_failure(status_code, provider_message)
        headline = {
            "invalid_api_key": f"{self.service_name} authentication failed",
            "rate_limited": f"{self.service_name} rate limit exceeded",
            "timeout": f"{self.service_name} request timed out",
        }.get(failure_kind, f"{self.service_name} request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."
        return ExternalServiceError(
            detail,
            service=self.service_name,
            failure_kind=failure_kind,
            status_code=status_code,
        )
