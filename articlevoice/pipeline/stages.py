"""Per-adapter stage handlers used by the stage executor.

Responsibilities:
- Decide which languages a stage must cover for one content item.
- Detect already-produced artifacts so reruns skip finished languages.
- Run one language through its adapter and return the updated record.

Key types:
- `StageHandler`: protocol consumed by `StageExecutor`.
- One handler class per `AdapterKind`.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Callable, Mapping, Protocol

from ..audio.hls import HlsPackager, PLAYLIST_NAME
from ..errors import ExternalServiceError
from ..io.storage import ArtifactStore
from ..io.uploader import Uploader
from ..languages import LanguageCatalog
from ..llm.social_hooks import SocialHookGenerator
from ..llm.translator import Translator
from ..models.datatypes import AdapterKind, ContentItem, StreamingUrls
from ..text.speech_prep import prepare_for_speech
from ..tts.synthesizer import SpeechSynthesizer


class StageHandler(Protocol):
    """Protocol for the work behind one stage transition.

    Attributes:
        adapter: Adapter kind this handler implements.
        allow_empty: Whether the stage may advance with no required languages.
        source_first: Whether the source language must finish before the others start.
    """

    adapter: AdapterKind
    allow_empty: bool
    source_first: bool

    def required_languages(self, records: Mapping[str, ContentItem]) -> list[str]:
        """Return the languages this stage must cover, in catalog order."""

    def has_artifact(self, record: ContentItem | None) -> bool:
        """Return whether the stage output for one record already exists."""

    def run(self, language: str, records: Mapping[str, ContentItem]) -> ContentItem:
        """Produce the stage output for one language and return the updated record."""


class _CatalogHandler:
    """Shared catalog helpers for concrete handlers."""

    allow_empty = False
    source_first = False

    def __init__(self, catalog: LanguageCatalog) -> None:
        """Store the language catalog used for eligibility decisions."""

        self.catalog = catalog

    @property
    def source_language(self) -> str:
        """Return the authoring language code."""

        return self.catalog.source.code

    def _eligible(
        self,
        records: Mapping[str, ContentItem],
        predicate: Callable[[ContentItem], bool],
    ) -> list[str]:
        """Return catalog languages whose record exists and satisfies `predicate`."""

        return [
            code
            for code in self.catalog.codes
            if code in records and predicate(records[code])
        ]


class TranslationHandler(_CatalogHandler):
    """Translate the source title and body into every configured target language."""

    adapter = AdapterKind.TRANSLATION

    def __init__(self, translator: Translator, catalog: LanguageCatalog) -> None:
        """Initialize translator and catalog dependencies."""

        super().__init__(catalog)
        self.translator = translator

    def required_languages(self, records: Mapping[str, ContentItem]) -> list[str]:
        """Return every target language of the catalog."""

        return [profile.code for profile in self.catalog.targets]

    def has_artifact(self, record: ContentItem | None) -> bool:
        """A translation exists when the target record has body text."""

        return record is not None and bool(record.body.strip())

    def run(self, language: str, records: Mapping[str, ContentItem]) -> ContentItem:
        """Translate title and body separately and return the target record."""

        source = records[self.source_language]
        title = self.translator.translate(source.title, self.source_language, language)
        body = self.translator.translate(source.body, self.source_language, language)
        if not body.strip():
            raise ExternalServiceError(
                f"Translation into {language} returned empty text.",
                service="translation",
                failure_kind="malformed_response",
            )

        existing = records.get(language)
        if existing is not None:
            return replace(existing, title=title.strip(), body=body.strip())
        return ContentItem(
            id=source.id,
            language=language,
            category=source.category,
            title=title.strip(),
            body=body.strip(),
            stage=source.stage,
            date=source.date,
        )


class SynthesisHandler(_CatalogHandler):
    """Synthesize one WAV file per language with speakable body text."""

    adapter = AdapterKind.SYNTHESIS

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        artifacts: ArtifactStore,
        catalog: LanguageCatalog,
    ) -> None:
        """Initialize synthesizer, artifact store, and catalog dependencies."""

        super().__init__(catalog)
        self.synthesizer = synthesizer
        self.artifacts = artifacts

    def required_languages(self, records: Mapping[str, ContentItem]) -> list[str]:
        """Return audio-enabled languages whose body has speakable text."""

        return self._eligible(
            records,
            lambda record: self.catalog.get(record.language).generate_audio
            and bool(prepare_for_speech(record.body)),
        )

    def has_artifact(self, record: ContentItem | None) -> bool:
        """Audio exists when the recorded WAV path is present on disk."""

        return record is not None and ArtifactStore.exists(record.audio_path)

    def run(self, language: str, records: Mapping[str, ContentItem]) -> ContentItem:
        """Prepare speech text, synthesize it, and persist the WAV atomically."""

        record = records[language]
        profile = self.catalog.get(language)
        audio = self.synthesizer.synthesize(
            prepare_for_speech(record.body), profile.voice_profile()
        )
        path = self.artifacts.save_audio(
            self.artifacts.wav_path(language, record.category, record.id), audio
        )
        return replace(record, audio_path=str(path))


class PackagingHandler(_CatalogHandler):
    """Package synthesized audio as HLS for every language that has audio."""

    adapter = AdapterKind.PACKAGING

    def __init__(
        self,
        packager: HlsPackager,
        artifacts: ArtifactStore,
        catalog: LanguageCatalog,
    ) -> None:
        """Initialize packager, artifact store, and catalog dependencies."""

        super().__init__(catalog)
        self.packager = packager
        self.artifacts = artifacts

    def required_languages(self, records: Mapping[str, ContentItem]) -> list[str]:
        """Return HLS-enabled languages with a recorded audio path."""

        return self._eligible(
            records,
            lambda record: self.catalog.get(record.language).hls_enabled
            and bool(record.audio_path),
        )

    def has_artifact(self, record: ContentItem | None) -> bool:
        """A package exists when the recorded playlist is present on disk."""

        return record is not None and ArtifactStore.exists(record.hls_playlist_path)

    def run(self, language: str, records: Mapping[str, ContentItem]) -> ContentItem:
        """Package the WAV into the deterministic HLS directory."""

        record = records[language]
        package = self.packager.package(
            Path(record.audio_path or ""),
            self.artifacts.hls_dir(language, record.category, record.id),
            self.catalog.get(language).segment_duration_seconds,
        )
        return replace(record, hls_playlist_path=str(package.playlist_path))


def audio_prefix(record: ContentItem) -> str:
    """Return the bucket prefix for one record's HLS files."""

    return f"audio/{record.language}/{record.category}/{record.id}"


def metadata_key(record: ContentItem) -> str:
    """Return the bucket key for one record's content document."""

    return f"content/{record.language}/{record.category}/{record.id}/content.json"


class UploadAudioHandler(_CatalogHandler):
    """Upload packaged HLS output and record its public playlist URL."""

    adapter = AdapterKind.UPLOAD_AUDIO

    def __init__(self, uploader: Uploader, catalog: LanguageCatalog) -> None:
        """Initialize uploader and catalog dependencies."""

        super().__init__(catalog)
        self.uploader = uploader

    def required_languages(self, records: Mapping[str, ContentItem]) -> list[str]:
        """Return upload-enabled languages with a recorded playlist."""

        return self._eligible(
            records,
            lambda record: self.catalog.get(record.language).upload_enabled
            and bool(record.hls_playlist_path),
        )

    def has_artifact(self, record: ContentItem | None) -> bool:
        """Audio is uploaded when a playlist URL is recorded."""

        return (
            record is not None
            and record.streaming_urls is not None
            and bool(record.streaming_urls.m3u8)
        )

    def run(self, language: str, records: Mapping[str, ContentItem]) -> ContentItem:
        """Mirror playlist and segments to the bucket, dropping stale remote segments."""

        record = records[language]
        local_dir = Path(record.hls_playlist_path or "").parent
        prefix = audio_prefix(record)
        self.uploader.upload_directory(local_dir, prefix)
        segments = tuple(f"{prefix}/{name}" for name in self.uploader.list_segments(prefix))
        if not segments:
            raise ExternalServiceError(
                f"No uploaded segments found under `{prefix}`.",
                service="rclone",
                failure_kind="malformed_response",
            )
        previous = record.streaming_urls or StreamingUrls()
        urls = replace(
            previous,
            m3u8=self.uploader.public_url(f"{prefix}/{PLAYLIST_NAME}"),
            segments=segments,
        )
        return replace(record, streaming_urls=urls)


class UploadMetadataHandler(_CatalogHandler):
    """Write and upload the public content document for each uploaded language."""

    adapter = AdapterKind.UPLOAD_METADATA

    def __init__(
        self,
        uploader: Uploader,
        artifacts: ArtifactStore,
        catalog: LanguageCatalog,
    ) -> None:
        """Initialize uploader, artifact store, and catalog dependencies."""

        super().__init__(catalog)
        self.uploader = uploader
        self.artifacts = artifacts

    def required_languages(self, records: Mapping[str, ContentItem]) -> list[str]:
        """Return languages with a recorded playlist URL."""

        return self._eligible(
            records,
            lambda record: record.streaming_urls is not None and bool(record.streaming_urls.m3u8),
        )

    def has_artifact(self, record: ContentItem | None) -> bool:
        """Metadata is uploaded when its public URL is recorded."""

        return (
            record is not None
            and record.streaming_urls is not None
            and bool(record.streaming_urls.metadata)
        )

    def run(self, language: str, records: Mapping[str, ContentItem]) -> ContentItem:
        """Save the content document locally, then upload it to its bucket key."""

        record = records[language]
        urls = record.streaming_urls or StreamingUrls()
        path = self.artifacts.save_json(
            self.artifacts.metadata_path(language, record.category, record.id),
            content_document(record),
        )
        metadata_url = self.uploader.upload(path, metadata_key(record))
        return replace(record, streaming_urls=replace(urls, metadata=metadata_url))


def content_document(record: ContentItem) -> dict[str, object]:
    """Return the public JSON document published for one language record."""

    urls = record.streaming_urls or StreamingUrls()
    return {
        "id": record.id,
        "language": record.language,
        "category": record.category,
        "date": record.date,
        "title": record.title,
        "content": record.body,
        "streamingUrl": urls.m3u8,
        "updatedAt": record.updated_at,
    }


class SocialHookHandler(_CatalogHandler):
    """Generate the source hook first, then localize it for the other languages."""

    adapter = AdapterKind.SOCIAL_HOOK
    allow_empty = True
    source_first = True

    def __init__(self, generator: SocialHookGenerator, catalog: LanguageCatalog) -> None:
        """Initialize hook generator and catalog dependencies."""

        super().__init__(catalog)
        self.generator = generator

    def required_languages(self, records: Mapping[str, ContentItem]) -> list[str]:
        """Return hook-enabled languages that have a record."""

        return self._eligible(
            records,
            lambda record: self.catalog.get(record.language).generate_social_hooks,
        )

    def has_artifact(self, record: ContentItem | None) -> bool:
        """A hook exists when the record carries non-blank hook text."""

        return record is not None and bool((record.social_hook or "").strip())

    def run(self, language: str, records: Mapping[str, ContentItem]) -> ContentItem:
        """Localize the source hook when present, otherwise write a native hook."""

        record = records[language]
        max_length = self.catalog.get(language).hook_length
        source = records.get(self.source_language)
        master = source.social_hook if source is not None else None

        if language != self.source_language and master and master.strip():
            hook = self.generator.localize_hook(
                content_id=record.id,
                hook=master,
                source_language=self.source_language,
                target_language=language,
                max_length=max_length,
            )
        else:
            hook = self.generator.generate_hook(
                content_id=record.id,
                title=record.title,
                body=record.body,
                language=language,
                max_length=max_length,
            )
        return replace(record, social_hook=hook)


def build_stage_handlers(
    *,
    catalog: LanguageCatalog,
    translator: Translator,
    synthesizer: SpeechSynthesizer,
    packager: HlsPackager,
    uploader: Uploader,
    hook_generator: SocialHookGenerator,
    artifacts: ArtifactStore,
) -> dict[AdapterKind, StageHandler]:
    """Return one handler per adapter kind wired to the given collaborators."""

    return {
        AdapterKind.TRANSLATION: TranslationHandler(translator, catalog),
        AdapterKind.SYNTHESIS: SynthesisHandler(synthesizer, artifacts, catalog),
        AdapterKind.PACKAGING: PackagingHandler(packager, artifacts, catalog),
        AdapterKind.UPLOAD_AUDIO: UploadAudioHandler(uploader, catalog),
        AdapterKind.UPLOAD_METADATA: UploadMetadataHandler(uploader, artifacts, catalog),
        AdapterKind.SOCIAL_HOOK: SocialHookHandler(hook_generator, catalog),
    }
