"""CLI runtime resolution helpers.

This module isolates config loading, runtime source assembly, and secure
API-key lookup from the command wiring layer.
"""

from __future__ import annotations

from dataclasses import replace
import os
from pathlib import Path
from typing import Callable, Mapping, Protocol

from .config import ArticlevoiceConfig, ConfigLoader, RuntimeConfigSources
from .credentials import create_credential_store
from .errors import PipelineStageError
from .parsing import normalize_optional_string


class CredentialStoreProtocol(Protocol):
    """Protocol for secure credential lookups used by CLI runtime resolution."""

    def secure_values(self) -> dict[str, str]:
        """Return stored API keys keyed by config field name."""


def load_command_config(
    config_path: Path | None,
    env: Mapping[str, str] | None = None,
) -> ArticlevoiceConfig:
    """Load YAML config when given, otherwise environment config, as stage errors."""

    env_map: Mapping[str, str] = os.environ if env is None else env
    if config_path is None:
        try:
            return ConfigLoader.from_env(env_map)
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=str(exc),
                hint="Fix the ARTICLEVOICE_* environment variables and rerun.",
            ) from exc

    try:
        config = ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to load config file `{config_path}`: {exc}",
            hint="Verify the file path and permissions.",
        ) from exc
    return replace(config, runtime_sources=RuntimeConfigSources(env=env_map))


def resolve_runtime_sources(
    config: ArticlevoiceConfig,
    openai_api_key: str | None,
    google_api_key: str | None,
    credential_store_factory: Callable[[], CredentialStoreProtocol] | None = None,
) -> ArticlevoiceConfig:
    """Attach CLI and secure-storage API key sources to a loaded config."""

    runtime_cli_values: dict[str, str] = {}
    for key, value in (("openai_api_key", openai_api_key), ("google_api_key", google_api_key)):
        normalized = normalize_optional_string(value)
        if normalized is not None:
            runtime_cli_values[key] = normalized

    factory = credential_store_factory or create_credential_store
    runtime_secure_values = factory().secure_values()
    return replace(
        config,
        runtime_sources=RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=runtime_secure_values,
            env=config.runtime_sources.env,
        ),
    )
