"""Command-line interface for Articlevoice.

Responsibilities:
- Expose user-facing commands for pipeline operations.
- Convert CLI arguments into `ArticlevoiceConfig` and run the pipeline engine.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Callable

import typer

from .cli_rendering import (
    echo_batch_summary,
    echo_json,
    echo_pending,
    echo_run_report,
    echo_status,
    exit_with_command_error,
    status_payload,
)
from .cli_runtime import load_command_config, resolve_runtime_sources
from .config import ArticlevoiceConfig
from .credentials import account_for_provider, create_credential_store
from .errors import PipelineStageError
from .io.articles import load_article
from .io.store import FileContentStore
from .models.datatypes import Stage
from .parsing import normalize_optional_string
from .pipeline.engine import PipelineEngine
from .pipeline.runtime import build_engine, validate_runtime_config
from .telemetry.logger import RunLogger
from .text.chunking import byte_length, split_text_into_chunks
from .text.speech_prep import prepare_for_speech

app = typer.Typer(
    name="articlevoice",
    no_args_is_help=True,
    help="Articlevoice CLI.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to a YAML config file."),
]
OpenAIKeyOption = Annotated[
    str | None,
    typer.Option("--openai-api-key", help="OpenAI API key for this run only."),
]
GoogleKeyOption = Annotated[
    str | None,
    typer.Option("--google-api-key", help="Google Text-to-Speech API key for this run only."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print machine-readable JSON output."),
]

engine_builder: Callable[[ArticlevoiceConfig, RunLogger | None], PipelineEngine] = build_engine


def _runtime_engine(
    config_file: Path | None,
    openai_api_key: str | None = None,
    google_api_key: str | None = None,
    with_credentials: bool = True,
) -> PipelineEngine:
    """Load config, attach runtime key sources, and build the engine."""

    config = load_command_config(config_file)
    if with_credentials:
        config = resolve_runtime_sources(config, openai_api_key, google_api_key)
    return engine_builder(config, RunLogger())


def _parse_stage_option(value: str | None) -> Stage | None:
    """Parse an optional `--start-from` stage token."""

    normalized = normalize_optional_string(value)
    if normalized is None:
        return None
    try:
        return Stage.parse(normalized)
    except ValueError as exc:
        raise PipelineStageError(
            stage="process",
            detail=str(exc),
            hint="Use one of the stage names shown by `articlevoice status`.",
        ) from exc


@app.command("add")
def add_command(
    article: Annotated[Path, typer.Argument(help="Path to a reviewed article JSON file.")],
    config_file: ConfigOption = None,
) -> None:
    """Register a reviewed source-language article for processing."""

    try:
        config = load_command_config(config_file)
        validate_runtime_config(config)
        source_language = config.language_catalog().source.code
        item = load_article(article, source_language)
        stored = FileContentStore(config.content_root).create(item)
    except FileNotFoundError:
        exit_with_command_error(
            "add",
            PipelineStageError(
                stage="add",
                detail=f"Article file not found: `{article}`.",
                hint="Pass an existing article JSON path.",
            ),
        )
    except Exception as exc:
        exit_with_command_error("add", exc)

    typer.echo(f"Added: {stored.id} ({stored.language}, {stored.category})")
    typer.echo(f"Stage: {stored.stage.value}")


@app.command("process")
def process_command(
    content_id: Annotated[str, typer.Argument(help="Content id to advance.")],
    start_from: Annotated[
        str | None,
        typer.Option(
            "--start-from",
            help="Expected current stage; the command fails when the item is elsewhere.",
        ),
    ] = None,
    config_file: ConfigOption = None,
    openai_api_key: OpenAIKeyOption = None,
    google_api_key: GoogleKeyOption = None,
    as_json: JsonOption = False,
) -> None:
    """Advance one content item through as many stages as possible."""

    try:
        expected_stage = _parse_stage_option(start_from)
        engine = _runtime_engine(config_file, openai_api_key, google_api_key)
        report = engine.process_item(content_id, start_from=expected_stage)
    except Exception as exc:
        exit_with_command_error("process", exc)

    if as_json:
        echo_json(report.as_payload())
    else:
        echo_run_report(report)


@app.command("run-all")
def run_all_command(
    item_workers: Annotated[
        int | None,
        typer.Option("--item-workers", min=1, help="Items processed concurrently."),
    ] = None,
    config_file: ConfigOption = None,
    openai_api_key: OpenAIKeyOption = None,
    google_api_key: GoogleKeyOption = None,
    as_json: JsonOption = False,
) -> None:
    """Advance every pending content item; one item's failure never stops the rest."""

    try:
        engine = _runtime_engine(config_file, openai_api_key, google_api_key)
        reports = engine.run_all(item_workers=item_workers)
    except Exception as exc:
        exit_with_command_error("run-all", exc)

    if as_json:
        echo_json([report.as_payload() for report in reports])
    else:
        for report in reports:
            echo_run_report(report)
        echo_batch_summary(reports)
    if any(report.error for report in reports):
        raise typer.Exit(code=1)


@app.command("pending")
def pending_command(
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """List items that still have a stage to run, oldest first."""

    try:
        engine = _runtime_engine(config_file, with_credentials=False)
        items = engine.pending_items()
    except Exception as exc:
        exit_with_command_error("pending", exc)

    if as_json:
        echo_json(
            [
                {
                    "content_id": item.content_id,
                    "category": item.category,
                    "date": item.date,
                    "title": item.title,
                    "stage": item.transition.source.value,
                    "next": item.transition.description,
                }
                for item in items
            ]
        )
    else:
        echo_pending(items)


@app.command("status")
def status_command(
    content_id: Annotated[str, typer.Argument(help="Content id to inspect.")],
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """Show the current stage and per-language artifacts of one item."""

    try:
        engine = _runtime_engine(config_file, with_credentials=False)
        status = engine.status(content_id)
    except Exception as exc:
        exit_with_command_error("status", exc)

    if as_json:
        echo_json(status_payload(status))
    else:
        echo_status(status)


@app.command("chunk")
def chunk_command(
    text_file: Annotated[Path, typer.Argument(help="Text or markdown file to split.")],
    max_bytes: Annotated[
        int | None,
        typer.Option("--max-bytes", help="Chunk ceiling in UTF-8 bytes (default from config)."),
    ] = None,
    speech: Annotated[
        bool,
        typer.Option("--speech/--raw", help="Apply speech preparation before splitting."),
    ] = True,
    config_file: ConfigOption = None,
) -> None:
    """Show how a text would be split for speech synthesis."""

    try:
        ceiling = max_bytes
        if ceiling is None:
            config = load_command_config(config_file)
            validate_runtime_config(config)
            ceiling = config.chunk_max_bytes
        text = text_file.read_text(encoding="utf-8")
        if speech:
            text = prepare_for_speech(text)
        chunks = split_text_into_chunks(text, ceiling)
    except Exception as exc:
        exit_with_command_error("chunk", exc)

    typer.echo(f"Chunks: {len(chunks)} (max bytes: {ceiling})")
    for index, chunk in enumerate(chunks, start=1):
        preview = chunk[:60].replace("\n", " ")
        typer.echo(f"{index}. {byte_length(chunk)} bytes: {preview}")


@app.command("credentials")
def credentials_command(
    provider: Annotated[
        str,
        typer.Option("--provider", help="Provider whose key is managed: openai or google."),
    ] = "openai",
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage securely stored provider credentials."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set` and `--clear` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )
    try:
        account_for_provider(provider)
    except ValueError as exc:
        exit_with_command_error("credentials", exc)

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                f"{provider} API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set`.",
                ),
            )
        try:
            credential_store.set_api_key(provider, prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo(f"{provider} API key stored in secure credential storage.")
        return

    if clear_api_key:
        removed = credential_store.clear_api_key(provider)
        if removed:
            typer.echo(f"Stored {provider} API key cleared from secure credential storage.")
        else:
            typer.echo(f"No stored {provider} API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    status = "present" if credential_store.get_api_key(provider) is not None else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored {provider} API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
