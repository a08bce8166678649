"""Runtime wiring of the pipeline engine from configuration.

Responsibilities:
- Validate configuration before any item is touched.
- Resolve provider credentials with precedence rules.
- Build stores, adapters, handlers, the stage executor, and the engine.
"""

from __future__ import annotations

from ..audio.hls import HlsPackager
from ..config import ArticlevoiceConfig
from ..errors import PipelineStageError
from ..io.storage import ArtifactStore
from ..io.store import FileContentStore
from ..io.uploader import RcloneUploader
from ..provider_factory import ProviderFactory
from ..telemetry.logger import RunLogger
from .engine import PipelineEngine
from .executor import StageExecutor
from .stages import build_stage_handlers


def validate_runtime_config(config: ArticlevoiceConfig) -> None:
    """Validate configuration and map failures to a stage-aware error."""

    try:
        config.validate()
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Fix the configuration values and rerun the command.",
        ) from exc


def build_engine(
    config: ArticlevoiceConfig,
    run_logger: RunLogger | None = None,
    factory: type[ProviderFactory] = ProviderFactory,
) -> PipelineEngine:
    """Build a ready-to-run engine for a validated configuration.

    Missing API keys are not fatal here; they surface as per-language
    `invalid_api_key` failures on the first provider call.
    """

    validate_runtime_config(config)
    catalog = config.language_catalog()
    credentials = config.resolved_credentials()
    language_names = {profile.code: profile.name for profile in catalog}

    chat_client = factory.create_chat_client(
        "openai",
        credentials.openai_api_key,
        timeout_seconds=config.request_timeout_seconds,
        max_retries=config.http_max_retries,
    )
    artifacts = ArtifactStore(config.audio_root)
    store = FileContentStore(config.content_root)
    handlers = build_stage_handlers(
        catalog=catalog,
        translator=factory.create_translator(
            chat_client, config.translation_model, language_names
        ),
        synthesizer=factory.create_speech_synthesizer(
            "google",
            credentials.google_api_key,
            chunk_max_bytes=config.chunk_max_bytes,
            pacing_seconds=config.synthesis_pacing_seconds,
            timeout_seconds=config.request_timeout_seconds,
            max_retries=config.http_max_retries,
        ),
        packager=HlsPackager(timeout_seconds=config.command_timeout_seconds),
        uploader=RcloneUploader(
            remote=config.rclone_remote,
            bucket=config.bucket,
            public_base_url=config.public_base_url,
            timeout_seconds=config.command_timeout_seconds,
        ),
        hook_generator=factory.create_hook_generator(
            chat_client, config.social_model, language_names
        ),
        artifacts=artifacts,
    )
    executor = StageExecutor(
        store,
        handlers,
        source_language=catalog.source.code,
        language_workers=config.language_workers,
        run_logger=run_logger,
    )
    return PipelineEngine(
        store,
        executor,
        max_steps_per_item=config.max_steps_per_item,
        item_workers=config.item_workers,
        run_logger=run_logger,
    )
