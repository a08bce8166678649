"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
per-item audit trails, batch summaries, pending queues, and item status.
"""

from __future__ import annotations

import json
from typing import NoReturn, Sequence

import typer

from .errors import PipelineStageError
from .models.datatypes import ItemRunReport, PendingItem, PipelineStatus


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_json(payload: object) -> None:
    """Print a payload as deterministic, human-readable JSON."""

    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True))


def echo_run_report(report: ItemRunReport) -> None:
    """Print one item's audit trail."""

    start = report.start_stage.value if report.start_stage else "unknown"
    final = report.final_stage.value if report.final_stage else "unknown"
    typer.echo(f"Content: {report.content_id}")
    typer.echo(f"Stage: {start} -> {final} ({report.outcome})")
    for index, record in enumerate(report.transitions, start=1):
        target = record.target.value if record.target else "-"
        status = "ok" if record.success else "failed"
        typer.echo(
            f"  {index}. {record.source.value} -> {target}: {record.description} [{status}]"
        )
    if report.error:
        typer.secho(f"  Error: {report.error}", fg=typer.colors.RED, err=True)


def echo_batch_summary(reports: Sequence[ItemRunReport]) -> None:
    """Print per-outcome counts for a batch run."""

    counts: dict[str, int] = {}
    for report in reports:
        counts[report.outcome] = counts.get(report.outcome, 0) + 1
    summary = ", ".join(f"{outcome}={counts[outcome]}" for outcome in sorted(counts))
    typer.echo(f"Processed items: {len(reports)}" + (f" ({summary})" if summary else ""))


def echo_pending(items: Sequence[PendingItem]) -> None:
    """Print pending items with their next step in scheduling order."""

    if not items:
        typer.echo("No pending items.")
        return
    for item in items:
        target = item.transition.target.value if item.transition.target else "-"
        typer.echo(
            f"{item.date or '-'} {item.content_id} [{item.category}] "
            f"{item.transition.source.value} -> {target}: {item.title}"
        )


def echo_status(status: PipelineStatus) -> None:
    """Print the canonical stage and per-language artifact flags of one item."""

    typer.echo(f"Content: {status.content_id}")
    typer.echo(f"Stage: {status.stage.value}")
    if status.next_transition is None:
        typer.echo("Next: (terminal)")
    else:
        typer.echo(f"Next: {status.next_transition.description}")
    for language in status.languages:
        flags = [
            ("body", language.has_body),
            ("audio", language.has_audio),
            ("hls", language.has_playlist),
            ("stream", language.has_streaming_url),
            ("metadata", language.has_metadata_url),
            ("hook", language.has_social_hook),
        ]
        rendered = " ".join(f"{name}={'yes' if present else 'no'}" for name, present in flags)
        typer.echo(f"  {language.language}: {rendered}")
        if language.last_error:
            typer.echo(f"    last error: {language.last_error}")


def status_payload(status: PipelineStatus) -> dict[str, object]:
    """Return a JSON-serializable status payload."""

    return {
        "content_id": status.content_id,
        "stage": status.stage.value,
        "next": None if status.next_transition is None else status.next_transition.description,
        "languages": {
            language.language: {
                "body": language.has_body,
                "audio": language.has_audio,
                "hls": language.has_playlist,
                "stream": language.has_streaming_url,
                "metadata": language.has_metadata_url,
                "hook": language.has_social_hook,
                "error": language.last_error,
            }
            for language in status.languages
        },
    }
