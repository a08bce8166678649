"""Deterministic runtime executable resolution and invocation helpers.

Responsibilities:
- Resolve external executable paths with env-override, then bundled, then PATH precedence.
- Run external tools with a timeout and map failures to `ExternalServiceError`.
"""

from __future__ import annotations

import os
from pathlib import Path
import shutil
import subprocess
import sys
from typing import Sequence

from .errors import ExternalServiceError
from .parsing import normalize_optional_string


_MAX_STDERR_CHARS = 300


def resolve_executable(command_name: str) -> str:
    """Resolve an executable with override-first precedence, then bundled, then PATH.

    Resolution order:
    1. `ARTICLEVOICE_<TOOL>_PATH` environment override.
    2. Bundled app directories (`./bin/<tool>` then `./<tool>` from app root).
    3. System `PATH`.
    4. Raw command name (allowing subprocess to raise a native missing-binary error).
    """

    normalized = command_name.strip()
    if not normalized:
        return command_name

    override = normalize_optional_string(
        os.environ.get(f"ARTICLEVOICE_{normalized.upper()}_PATH")
    )
    if override is not None:
        return override

    for candidate in _bundled_candidates(normalized):
        if candidate.is_file():
            return str(candidate)

    resolved_path = shutil.which(normalized)
    if resolved_path is not None:
        return resolved_path

    return normalized


def run_external_command(
    command: Sequence[str],
    *,
    service: str,
    timeout_seconds: float,
) -> subprocess.CompletedProcess[str]:
    """Run an external tool and map missing binaries, timeouts, and non-zero exits.

    Raises:
        ExternalServiceError: With `failure_kind` set to `missing_tool`, `timeout`,
            or `transport`.
    """

    try:
        return subprocess.run(
            list(command),
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
        )
    except FileNotFoundError as exc:
        raise ExternalServiceError(
            f"`{command[0]}` is not available on PATH.",
            service=service,
            failure_kind="missing_tool",
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise ExternalServiceError(
            f"`{Path(command[0]).name}` timed out after {timeout_seconds:g}s.",
            service=service,
            failure_kind="timeout",
        ) from exc
    except subprocess.CalledProcessError as exc:
        stderr = normalize_optional_string(exc.stderr) or "no stderr output"
        raise ExternalServiceError(
            f"`{Path(command[0]).name}` exited with status {exc.returncode}: "
            f"{_short_stderr(stderr)}",
            service=service,
            failure_kind="transport",
        ) from exc


def _short_stderr(stderr: str) -> str:
    """Keep the tail of tool stderr, where the actual error usually is."""

    compact = " ".join(stderr.split())
    if len(compact) <= _MAX_STDERR_CHARS:
        return compact
    return f"...{compact[-(_MAX_STDERR_CHARS - 3):]}"


def _bundled_candidates(command_name: str) -> list[Path]:
    """Return deterministic bundled candidate paths for one executable name."""

    app_root = _app_root()
    candidates: list[Path] = []
    for name in _candidate_names(command_name):
        candidates.append(app_root / "bin" / name)
        candidates.append(app_root / name)
    return candidates


def _candidate_names(command_name: str) -> tuple[str, ...]:
    """Return command name variants including Windows `.exe` fallback."""

    if command_name.lower().endswith(".exe"):
        return (command_name,)
    return (command_name, f"{command_name}.exe")


def _app_root() -> Path:
    """Resolve runtime application root for frozen and non-frozen execution."""

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]
