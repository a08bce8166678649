"""Configuration model and loaders for articlevoice.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Derive the synthesis chunk ceiling from the provider limit and a safety margin.
- Resolve provider API keys with deterministic source precedence.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `ArticlevoiceConfig`: normalized runtime settings for pipeline runs.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ProviderCredentials`: resolved provider API keys.
- `ConfigLoader`: static construction helpers for `ArticlevoiceConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .languages import LanguageCatalog, default_language_catalog
from .parsing import (
    normalize_optional_string,
    parse_language_list,
    parse_non_negative_float,
    parse_positive_int,
)


_DEFAULT_TRANSLATION_MODEL = "gpt-4.1-mini"
_DEFAULT_SOCIAL_MODEL = "gpt-4.1-mini"
_DEFAULT_BUCKET = "audio-streaming"
_DEFAULT_PUBLIC_BASE_URL = "https://audio.example.com"
_DEFAULT_RCLONE_REMOTE = "r2"


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderCredentials:
    """Resolved provider API keys for one run; never persisted."""

    openai_api_key: str | None = None
    google_api_key: str | None = None


@dataclass(slots=True)
class ArticlevoiceConfig:
    """Runtime configuration for pipeline runs.

    Attributes:
        content_root: Directory holding content records.
        audio_root: Directory receiving WAV and HLS artifacts.
        target_languages: Optional subset of translation targets, in order.
        language_overrides: Per-language setting overrides.
        provider_byte_limit: Hard per-request byte limit of the speech provider.
        chunk_safety_margin_bytes: Bytes kept free below the provider limit.
        synthesis_pacing_seconds: Delay between consecutive synthesis calls.
        request_timeout_seconds: Timeout for each HTTP provider call.
        command_timeout_seconds: Timeout for each ffmpeg/rclone invocation.
        http_max_retries: Retries for transient HTTP failures.
        language_workers: Concurrent per-language calls within one stage.
        item_workers: Concurrent items in batch mode.
        max_steps_per_item: Transition cap per item per invocation.
        translation_model: Chat model for article translation.
        social_model: Chat model for social hooks.
        rclone_remote: rclone remote name for object storage.
        bucket: Object-storage bucket for uploads.
        public_base_url: Public base URL mapped to the bucket root.
        openai_api_key: Optional OpenAI API key.
        google_api_key: Optional Google Text-to-Speech API key.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    content_root: Path = Path("content")
    audio_root: Path = Path("audio")
    target_languages: tuple[str, ...] | None = None
    language_overrides: dict[str, dict[str, Any]] = field(default_factory=dict)
    provider_byte_limit: int = 5000
    chunk_safety_margin_bytes: int = 200
    synthesis_pacing_seconds: float = 0.5
    request_timeout_seconds: float = 60.0
    command_timeout_seconds: float = 300.0
    http_max_retries: int = 2
    language_workers: int = 1
    item_workers: int = 1
    max_steps_per_item: int = 10
    translation_model: str = _DEFAULT_TRANSLATION_MODEL
    social_model: str = _DEFAULT_SOCIAL_MODEL
    rclone_remote: str = _DEFAULT_RCLONE_REMOTE
    bucket: str = _DEFAULT_BUCKET
    public_base_url: str = _DEFAULT_PUBLIC_BASE_URL
    openai_api_key: str | None = None
    google_api_key: str | None = None
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    @property
    def chunk_max_bytes(self) -> int:
        """Return the synthesis chunk ceiling kept below the provider limit."""

        return self.provider_byte_limit - self.chunk_safety_margin_bytes

    def validate(self) -> None:
        """Validate runtime configuration values before pipeline execution."""

        for name in (
            "provider_byte_limit",
            "language_workers",
            "item_workers",
            "max_steps_per_item",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or value <= 0:
                raise ValueError(f"`{name}` must be a positive integer.")
        if self.chunk_safety_margin_bytes < 0 or self.http_max_retries < 0:
            raise ValueError(
                "`chunk_safety_margin_bytes` and `http_max_retries` must not be negative."
            )
        if self.chunk_max_bytes <= 0:
            raise ValueError(
                "`chunk_safety_margin_bytes` must be smaller than `provider_byte_limit`."
            )
        if self.synthesis_pacing_seconds < 0.0:
            raise ValueError("`synthesis_pacing_seconds` must not be negative.")
        if self.request_timeout_seconds <= 0.0 or self.command_timeout_seconds <= 0.0:
            raise ValueError("Timeouts must be positive numbers of seconds.")
        for name in ("translation_model", "social_model", "rclone_remote", "bucket"):
            if normalize_optional_string(getattr(self, name)) is None:
                raise ValueError(f"`{name}` must be a non-empty string.")
        if not self.public_base_url.startswith(("http://", "https://")):
            raise ValueError("`public_base_url` must be an http(s) URL.")
        self.language_catalog()

    def language_catalog(self) -> LanguageCatalog:
        """Return the configured language catalog with overrides and target selection."""

        catalog = default_language_catalog().with_overrides(self.language_overrides)
        if self.target_languages is not None:
            catalog = catalog.restricted_to(self.target_languages)
        return catalog

    def resolved_credentials(
        self, sources: RuntimeConfigSources | None = None
    ) -> ProviderCredentials:
        """Resolve provider API keys with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field value.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        return ProviderCredentials(
            openai_api_key=self._resolve_optional_runtime_value(
                key="openai_api_key",
                env_key="OPENAI_API_KEY",
                default_value=self.openai_api_key,
                sources=resolved_sources,
            ),
            google_api_key=self._resolve_optional_runtime_value(
                key="google_api_key",
                env_key="GOOGLE_TTS_API_KEY",
                default_value=self.google_api_key,
                sources=resolved_sources,
            ),
        )

    def _resolve_optional_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional runtime value from sources in deterministic order."""

        for mapping, lookup_key in (
            (sources.cli, key),
            (sources.secure, key),
            (sources.env, env_key),
        ):
            if lookup_key in mapping:
                value = normalize_optional_string(mapping.get(lookup_key))
                if value is not None:
                    return value
        return normalize_optional_string(default_value)


class ConfigLoader:
    """Factory methods for creating `ArticlevoiceConfig` from external sources."""

    _PATH_KEYS = ("content_root", "audio_root")
    _POSITIVE_INT_KEYS = (
        "provider_byte_limit",
        "language_workers",
        "item_workers",
        "max_steps_per_item",
    )
    _NON_NEGATIVE_INT_KEYS = ("chunk_safety_margin_bytes", "http_max_retries")
    _FLOAT_KEYS = (
        "synthesis_pacing_seconds",
        "request_timeout_seconds",
        "command_timeout_seconds",
    )
    _STRING_KEYS = (
        "translation_model",
        "social_model",
        "rclone_remote",
        "bucket",
        "public_base_url",
        "openai_api_key",
        "google_api_key",
    )
    _SUPPORTED_YAML_KEYS = frozenset(
        {
            *_PATH_KEYS,
            *_POSITIVE_INT_KEYS,
            *_NON_NEGATIVE_INT_KEYS,
            *_FLOAT_KEYS,
            *_STRING_KEYS,
            "target_languages",
            "languages",
        }
    )
    _ENV_KEYS: Mapping[str, str] = {
        "ARTICLEVOICE_CONTENT_ROOT": "content_root",
        "ARTICLEVOICE_AUDIO_ROOT": "audio_root",
        "ARTICLEVOICE_TARGET_LANGUAGES": "target_languages",
        "ARTICLEVOICE_PROVIDER_BYTE_LIMIT": "provider_byte_limit",
        "ARTICLEVOICE_CHUNK_SAFETY_MARGIN_BYTES": "chunk_safety_margin_bytes",
        "ARTICLEVOICE_SYNTHESIS_PACING_SECONDS": "synthesis_pacing_seconds",
        "ARTICLEVOICE_REQUEST_TIMEOUT_SECONDS": "request_timeout_seconds",
        "ARTICLEVOICE_COMMAND_TIMEOUT_SECONDS": "command_timeout_seconds",
        "ARTICLEVOICE_HTTP_MAX_RETRIES": "http_max_retries",
        "ARTICLEVOICE_LANGUAGE_WORKERS": "language_workers",
        "ARTICLEVOICE_ITEM_WORKERS": "item_workers",
        "ARTICLEVOICE_MAX_STEPS_PER_ITEM": "max_steps_per_item",
        "ARTICLEVOICE_TRANSLATION_MODEL": "translation_model",
        "ARTICLEVOICE_SOCIAL_MODEL": "social_model",
        "ARTICLEVOICE_RCLONE_REMOTE": "rclone_remote",
        "R2_BUCKET": "bucket",
        "R2_PUBLIC_URL": "public_base_url",
    }
    _RUNTIME_ENV_KEYS = frozenset({"OPENAI_API_KEY", "GOOGLE_TTS_API_KEY"})

    @staticmethod
    def from_yaml(path: Path) -> ArticlevoiceConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        payload = ConfigLoader._parse_yaml_payload(path_text, path)
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> ArticlevoiceConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for env_key, config_key in ConfigLoader._ENV_KEYS.items():
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[config_key] = value

        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }
        config = ConfigLoader._build_config_from_mapping(payload, source_label="Environment")
        config.runtime_sources = RuntimeConfigSources(env=runtime_env)
        return config

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> ArticlevoiceConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        values: dict[str, Any] = {}
        try:
            for key in ConfigLoader._PATH_KEYS:
                text = ConfigLoader._optional_string(payload, key)
                if text is not None:
                    values[key] = Path(text)
            for key in ConfigLoader._POSITIVE_INT_KEYS:
                if ConfigLoader._optional_string(payload, key) is not None:
                    values[key] = parse_positive_int(payload[key], key)
            for key in ConfigLoader._NON_NEGATIVE_INT_KEYS:
                if ConfigLoader._optional_string(payload, key) is not None:
                    values[key] = ConfigLoader._parse_non_negative_int(payload[key], key)
            for key in ConfigLoader._FLOAT_KEYS:
                if ConfigLoader._optional_string(payload, key) is not None:
                    values[key] = parse_non_negative_float(payload[key], key)
            for key in ConfigLoader._STRING_KEYS:
                text = ConfigLoader._optional_string(payload, key)
                if text is not None:
                    values[key] = text.rstrip("/") if key == "public_base_url" else text
            if "target_languages" in payload and payload["target_languages"] is not None:
                values["target_languages"] = parse_language_list(payload["target_languages"])
            values["language_overrides"] = ConfigLoader._language_overrides(payload)

            config = ArticlevoiceConfig(**values)
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc
        return config

    @staticmethod
    def _optional_string(payload: Mapping[str, Any], key: str) -> str | None:
        """Read an optional scalar field and normalize blank values to `None`."""

        if key not in payload:
            return None
        return normalize_optional_string(payload[key])

    @staticmethod
    def _parse_non_negative_int(value: object, field_name: str) -> int:
        """Parse an integer that may be zero."""

        if isinstance(value, int) and not isinstance(value, bool) and value == 0:
            return 0
        if normalize_optional_string(value) == "0":
            return 0
        try:
            return parse_positive_int(value, field_name)
        except ValueError as exc:
            raise ValueError(f"`{field_name}` must be a non-negative integer.") from exc

    @staticmethod
    def _language_overrides(payload: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
        """Read the optional `languages` override mapping."""

        raw = payload.get("languages")
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError("`languages` must be a mapping of language code to settings.")

        overrides: dict[str, dict[str, Any]] = {}
        for raw_code, raw_settings in raw.items():
            code = normalize_optional_string(raw_code)
            if code is None:
                raise ValueError("`languages` contains a blank language code.")
            if not isinstance(raw_settings, Mapping):
                raise ValueError(f"`languages.{code}` must be a mapping.")
            overrides[code] = dict(raw_settings)
        return overrides
