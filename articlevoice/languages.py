"""Language catalog for translation, synthesis, packaging, and social hooks.

Responsibilities:
- Describe per-language provider settings and stage switches.
- Provide the default source/target catalog and override helpers.

Key types:
- `LanguageProfile`: settings for one supported language.
- `LanguageCatalog`: ordered source-first collection of profiles.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterator, Mapping

from .parsing import (
    normalize_optional_string,
    parse_non_negative_float,
    parse_permissive_boolean,
    parse_positive_int,
)
from .tts.voices import VoiceProfile


CATEGORIES: tuple[str, ...] = ("daily-news", "ethereum", "macro", "startup", "ai", "defi")


@dataclass(frozen=True, slots=True)
class LanguageProfile:
    """Settings for one supported content language.

    Attributes:
        code: Content language code (for example `en-US`).
        name: Human-readable language name used in prompts.
        is_source: Whether this is the authoring language.
        translation_code: Short code passed to translation prompts.
        voice_name: Provider voice identifier for synthesis.
        speaking_rate: Relative speaking rate multiplier.
        generate_audio: Whether synthesis runs for this language.
        generate_social_hooks: Whether social hooks are produced for this language.
        hls_enabled: Whether packaging produces HLS output for this language.
        segment_duration_seconds: Target HLS segment length.
        upload_enabled: Whether packaged audio is uploaded for this language.
        social_prefix: Emoji prefix used by social posts.
        hook_length: Maximum social hook length in characters.
    """

    code: str
    name: str
    is_source: bool
    translation_code: str
    voice_name: str
    speaking_rate: float = 1.0
    generate_audio: bool = True
    generate_social_hooks: bool = True
    hls_enabled: bool = True
    segment_duration_seconds: int = 10
    upload_enabled: bool = True
    social_prefix: str = ""
    hook_length: int = 180

    def voice_profile(self) -> VoiceProfile:
        """Return the synthesis voice profile for this language."""

        return VoiceProfile(
            language_code=self.code,
            voice_name=self.voice_name,
            speaking_rate=self.speaking_rate,
        )


DEFAULT_LANGUAGE_PROFILES: tuple[LanguageProfile, ...] = (
    LanguageProfile(
        code="zh-TW",
        name="Traditional Chinese",
        is_source=True,
        translation_code="zh",
        voice_name="cmn-TW-Wavenet-B",
        social_prefix="📰",
        hook_length=180,
    ),
    LanguageProfile(
        code="en-US",
        name="English",
        is_source=False,
        translation_code="en",
        voice_name="en-US-Wavenet-D",
        social_prefix="🚀",
        hook_length=150,
    ),
    LanguageProfile(
        code="ja-JP",
        name="Japanese",
        is_source=False,
        translation_code="ja",
        voice_name="ja-JP-Wavenet-C",
        social_prefix="🌸",
        hook_length=140,
    ),
)

_OVERRIDABLE_KEYS = frozenset(
    {
        "voice_name",
        "speaking_rate",
        "generate_audio",
        "generate_social_hooks",
        "hls_enabled",
        "segment_duration_seconds",
        "upload_enabled",
        "hook_length",
    }
)


class LanguageCatalog:
    """Ordered language profiles with exactly one source language first."""

    def __init__(self, profiles: tuple[LanguageProfile, ...]) -> None:
        """Validate and store profiles in source-first order."""

        sources = [profile for profile in profiles if profile.is_source]
        if len(sources) != 1:
            raise ValueError("Language catalog requires exactly one source language.")
        codes = [profile.code for profile in profiles]
        if len(set(codes)) != len(codes):
            raise ValueError("Language catalog contains duplicate language codes.")
        targets = [profile for profile in profiles if not profile.is_source]
        self._profiles = (sources[0], *targets)

    def __iter__(self) -> Iterator[LanguageProfile]:
        """Iterate profiles source-first."""

        return iter(self._profiles)

    def __contains__(self, code: object) -> bool:
        """Return whether a language code is configured."""

        return any(profile.code == code for profile in self._profiles)

    @property
    def source(self) -> LanguageProfile:
        """Return the source-language profile."""

        return self._profiles[0]

    @property
    def targets(self) -> tuple[LanguageProfile, ...]:
        """Return translation target profiles in configured order."""

        return self._profiles[1:]

    @property
    def codes(self) -> tuple[str, ...]:
        """Return all language codes source-first."""

        return tuple(profile.code for profile in self._profiles)

    def get(self, code: str) -> LanguageProfile:
        """Return the profile for a language code or raise `KeyError`."""

        for profile in self._profiles:
            if profile.code == code:
                return profile
        raise KeyError(f"Unsupported language `{code}`.")

    def restricted_to(self, target_codes: tuple[str, ...]) -> LanguageCatalog:
        """Return a catalog keeping the source and only the listed targets, in listed order."""

        known = {profile.code: profile for profile in self.targets}
        unknown = [code for code in target_codes if code not in known]
        if unknown:
            raise ValueError(f"Unsupported target language(s): {', '.join(unknown)}.")
        return LanguageCatalog((self.source, *(known[code] for code in target_codes)))

    def with_overrides(self, overrides: Mapping[str, Mapping[str, Any]]) -> LanguageCatalog:
        """Return a catalog with per-language setting overrides applied."""

        updated: list[LanguageProfile] = []
        for profile in self._profiles:
            raw = overrides.get(profile.code)
            updated.append(profile if raw is None else _apply_override(profile, raw))
        unknown = sorted(set(overrides).difference(self.codes))
        if unknown:
            raise ValueError(f"Overrides reference unknown language(s): {', '.join(unknown)}.")
        return LanguageCatalog(tuple(updated))


def _apply_override(profile: LanguageProfile, raw: Mapping[str, Any]) -> LanguageProfile:
    """Validate one language override mapping and apply it to a profile."""

    if not isinstance(raw, Mapping):
        raise ValueError(f"Language override for `{profile.code}` must be a mapping.")
    unknown = sorted(set(raw).difference(_OVERRIDABLE_KEYS))
    if unknown:
        raise ValueError(
            f"Language override for `{profile.code}` includes unsupported key(s): "
            f"{', '.join(unknown)}."
        )

    changes: dict[str, Any] = {}
    for key, value in raw.items():
        field_name = f"languages.{profile.code}.{key}"
        if key == "voice_name":
            voice_name = normalize_optional_string(value)
            if voice_name is None:
                raise ValueError(f"`{field_name}` must be a non-empty string.")
            changes[key] = voice_name
        elif key == "speaking_rate":
            changes[key] = parse_non_negative_float(value, field_name)
        elif key in {"segment_duration_seconds", "hook_length"}:
            changes[key] = parse_positive_int(value, field_name)
        else:
            parsed = parse_permissive_boolean(value)
            if parsed is None:
                raise ValueError(f"`{field_name}` must be a boolean value.")
            changes[key] = parsed
    return replace(profile, **changes)


def default_language_catalog() -> LanguageCatalog:
    """Return the built-in zh-TW source catalog with English and Japanese targets."""

    return LanguageCatalog(DEFAULT_LANGUAGE_PROFILES)
