"""Shared pytest fixtures and provider doubles for the Articlevoice test suite."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Sequence
import wave

import pytest

from articlevoice.audio.hls import PLAYLIST_NAME
from articlevoice.errors import ExternalServiceError
from articlevoice.io.storage import ArtifactStore
from articlevoice.io.store import FileContentStore
from articlevoice.languages import LanguageCatalog, default_language_catalog
from articlevoice.llm.rate_limiter import RateLimiter
from articlevoice.llm.social_hooks import deep_link_block, strip_link_block
from articlevoice.models.datatypes import ContentItem, HlsPackage, Stage
from articlevoice.pipeline.engine import PipelineEngine
from articlevoice.pipeline.executor import StageExecutor
from articlevoice.pipeline.stages import build_stage_handlers
from articlevoice.tts.synthesizer import SpeechSynthesizer
from articlevoice.tts.voices import VoiceProfile


def build_wav(payload: bytes, sample_rate: int = 16000) -> bytes:
    """Return a mono 16-bit WAV buffer whose frames are `payload` (padded to even length)."""

    frames = payload if len(payload) % 2 == 0 else payload + b"\x00"
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(frames)
    return buffer.getvalue()


@pytest.fixture
def make_wav() -> Callable[..., bytes]:
    """Provide the WAV buffer builder."""

    return build_wav


def _failure(service: str, language: str) -> ExternalServiceError:
    """Build a deterministic provider failure for one language."""

    return ExternalServiceError(
        f"{service} unavailable for {language}",
        service=service,
        failure_kind="server_error",
        status_code=503,
    )


class FakeTranslator:
    """Translator double prefixing text with the target language."""

    def __init__(self) -> None:
        """Initialize call log and failing languages."""

        self.calls: list[tuple[str, str]] = []
        self.fail_languages: set[str] = set()

    def translate(self, text: str, source_language: str, target_language: str) -> str:
        """Return `[target] text` or raise for configured languages."""

        self.calls.append((target_language, text))
        if target_language in self.fail_languages:
            raise _failure("openai", target_language)
        return f"[{target_language}] {text}"


class FakeSpeechClient:
    """Speech client double returning one WAV per chunk."""

    def __init__(self) -> None:
        """Initialize call log and failing languages."""

        self.calls: list[tuple[str, str]] = []
        self.fail_languages: set[str] = set()

    def synthesize_chunk(self, text: str, voice: VoiceProfile) -> bytes:
        """Return a WAV whose payload is the chunk text, or raise for configured languages."""

        self.calls.append((voice.language_code, text))
        if voice.language_code in self.fail_languages:
            raise _failure("google-tts", voice.language_code)
        return build_wav(text.encode("utf-8"))


class FakePackager:
    """HLS packager double writing a playlist and two segments."""

    def __init__(self) -> None:
        """Initialize call log."""

        self.calls: list[Path] = []

    def package(
        self,
        audio_path: Path,
        output_dir: Path,
        segment_duration_seconds: int,
    ) -> HlsPackage:
        """Write deterministic HLS files next to each other."""

        self.calls.append(audio_path)
        if not audio_path.is_file():
            raise ExternalServiceError(
                f"Audio file `{audio_path}` does not exist.",
                service="ffmpeg",
                failure_kind="missing_input",
            )
        output_dir.mkdir(parents=True, exist_ok=True)
        playlist = output_dir / PLAYLIST_NAME
        playlist.write_text("#EXTM3U\n", encoding="utf-8")
        segments = []
        for index in range(2):
            segment = output_dir / f"segment_{index:03d}.ts"
            segment.write_bytes(b"ts")
            segments.append(segment)
        return HlsPackage(playlist_path=playlist, segment_paths=tuple(segments))


class FakeUploader:
    """Uploader double recording uploads against an in-memory bucket."""

    public_base_url = "https://cdn.test"

    def __init__(self) -> None:
        """Initialize the in-memory bucket."""

        self.objects: dict[str, bytes] = {}
        self.directory_calls: list[str] = []
        self.fail_languages: set[str] = set()

    def public_url(self, remote_key: str) -> str:
        """Return the test CDN URL for a key."""

        return f"{self.public_base_url}/{remote_key.strip('/')}"

    def _check(self, remote_key: str) -> None:
        """Raise for keys that belong to failing languages."""

        for language in self.fail_languages:
            if f"/{language}/" in f"/{remote_key}":
                raise ExternalServiceError(
                    f"rclone failed for {language}", service="rclone", failure_kind="transport"
                )

    def upload(self, local_path: Path, remote_key: str) -> str:
        """Copy one file into the bucket."""

        self._check(remote_key)
        self.objects[remote_key] = local_path.read_bytes()
        return self.public_url(remote_key)

    def upload_directory(
        self,
        local_dir: Path,
        remote_prefix: str,
        includes: Sequence[str] = ("*.m3u8", "*.ts"),
    ) -> str:
        """Mirror matching files of a directory into the bucket, dropping stale ones."""

        self._check(remote_prefix)
        self.directory_calls.append(remote_prefix)
        prefix = f"{remote_prefix}/"
        for key in [key for key in self.objects if key.startswith(prefix)]:
            if any(Path(key).match(pattern) for pattern in includes):
                del self.objects[key]
        for path in sorted(local_dir.iterdir()):
            if any(path.match(pattern) for pattern in includes):
                self.objects[f"{remote_prefix}/{path.name}"] = path.read_bytes()
        return self.public_url(remote_prefix)

    def list_segments(self, remote_prefix: str) -> list[str]:
        """Return uploaded segment names under a prefix."""

        prefix = f"{remote_prefix}/"
        return sorted(
            key[len(prefix):]
            for key in self.objects
            if key.startswith(prefix) and key.endswith(".ts")
        )


class FakeHookGenerator:
    """Social hook generator double with deterministic output."""

    def __init__(self) -> None:
        """Initialize call logs."""

        self.generated: list[str] = []
        self.localized: list[str] = []
        self.fail_languages: set[str] = set()

    def generate_hook(
        self,
        *,
        content_id: str,
        title: str,
        body: str,
        language: str,
        max_length: int,
    ) -> str:
        """Return a native hook with links."""

        self.generated.append(language)
        if language in self.fail_languages:
            raise _failure("openai", language)
        return f"Hook {language}: {title}"[:max_length] + deep_link_block(content_id)

    def localize_hook(
        self,
        *,
        content_id: str,
        hook: str,
        source_language: str,
        target_language: str,
        max_length: int,
    ) -> str:
        """Return the master hook text prefixed with the target language."""

        self.localized.append(target_language)
        if target_language in self.fail_languages:
            raise _failure("openai", target_language)
        return f"[{target_language}] {strip_link_block(hook)}"[:max_length] + deep_link_block(
            content_id
        )


class PipelineHarness:
    """File-backed pipeline wired to provider doubles under a temp directory."""

    def __init__(self, root: Path, catalog: LanguageCatalog | None = None) -> None:
        """Create stores and doubles under `root`."""

        self.root = root
        self.catalog = catalog if catalog is not None else default_language_catalog()
        self.store = FileContentStore(root / "content")
        self.artifacts = ArtifactStore(root / "audio")
        self.translator = FakeTranslator()
        self.speech = FakeSpeechClient()
        self.packager = FakePackager()
        self.uploader = FakeUploader()
        self.hooks = FakeHookGenerator()

    def add_article(
        self,
        content_id: str,
        *,
        date: str = "2026-07-01",
        category: str = "daily-news",
        title: str = "比特幣創新高",
        body: str = "比特幣今天創下新高。市場情緒樂觀。\n\n分析師認為資金持續流入。",
        stage: Stage = Stage.REVIEWED,
    ) -> ContentItem:
        """Store a source-language record."""

        return self.store.create(
            ContentItem(
                id=content_id,
                language=self.catalog.source.code,
                category=category,
                title=title,
                body=body,
                stage=stage,
                date=date,
            )
        )

    def executor(self, language_workers: int = 1) -> StageExecutor:
        """Build a stage executor over the doubles."""

        handlers = build_stage_handlers(
            catalog=self.catalog,
            translator=self.translator,
            synthesizer=SpeechSynthesizer(
                self.speech,
                chunk_max_bytes=4800,
                pacer=RateLimiter(min_interval_seconds=0.0),
            ),
            packager=self.packager,
            uploader=self.uploader,
            hook_generator=self.hooks,
            artifacts=self.artifacts,
        )
        return StageExecutor(
            self.store,
            handlers,
            source_language=self.catalog.source.code,
            language_workers=language_workers,
        )

    def engine(
        self,
        *,
        max_steps_per_item: int = 10,
        language_workers: int = 1,
        item_workers: int = 1,
    ) -> PipelineEngine:
        """Build an engine over the doubles."""

        return PipelineEngine(
            self.store,
            self.executor(language_workers=language_workers),
            max_steps_per_item=max_steps_per_item,
            item_workers=item_workers,
        )

    def stage_of(self, content_id: str) -> Stage:
        """Return the canonical stage of an item."""

        return self.store.get(content_id, self.catalog.source.code).stage


@pytest.fixture
def harness(tmp_path: Path) -> PipelineHarness:
    """Provide a pipeline harness rooted in a temp directory."""

    return PipelineHarness(tmp_path)


@pytest.fixture
def harness_factory(tmp_path: Path) -> Callable[..., PipelineHarness]:
    """Provide a builder for harnesses with a custom language catalog."""

    def _build(catalog: LanguageCatalog | None = None) -> PipelineHarness:
        """Build a harness in a fresh subdirectory."""

        root = tmp_path / f"harness-{len(list(tmp_path.glob('harness-*')))}"
        root.mkdir()
        return PipelineHarness(root, catalog)

    return _build
