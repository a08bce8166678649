"""Integration-test fixtures wiring the CLI to provider doubles."""

from __future__ import annotations

from pathlib import Path

import pytest

from articlevoice.config import ArticlevoiceConfig
from articlevoice.credentials import CredentialStore, account_for_provider
from articlevoice.pipeline.engine import PipelineEngine
from articlevoice.telemetry.logger import RunLogger


class MemoryCredentialStore(CredentialStore):
    """In-memory credential store used instead of the OS keyring."""

    def __init__(self) -> None:
        """Initialize empty storage."""

        self.keys: dict[str, str] = {}

    def is_available(self) -> bool:
        """Report the store as usable."""

        return True

    def get_api_key(self, provider: str) -> str | None:
        """Return the stored key of a provider."""

        return self.keys.get(account_for_provider(provider))

    def set_api_key(self, provider: str, api_key: str) -> None:
        """Store a normalized key."""

        self.keys[account_for_provider(provider)] = api_key.strip()

    def clear_api_key(self, provider: str) -> bool:
        """Remove a key and report whether one existed."""

        return self.keys.pop(account_for_provider(provider), None) is not None


@pytest.fixture
def memory_credentials(monkeypatch: pytest.MonkeyPatch) -> MemoryCredentialStore:
    """Route CLI credential lookups to an in-memory store."""

    store = MemoryCredentialStore()
    monkeypatch.setattr("articlevoice.cli.create_credential_store", lambda: store)
    monkeypatch.setattr("articlevoice.cli_runtime.create_credential_store", lambda: store)
    return store


@pytest.fixture
def cli_harness(harness, memory_credentials, monkeypatch: pytest.MonkeyPatch):
    """Point CLI config at the harness directories and build engines over its doubles."""

    monkeypatch.setenv("ARTICLEVOICE_CONTENT_ROOT", str(harness.root / "content"))
    monkeypatch.setenv("ARTICLEVOICE_AUDIO_ROOT", str(harness.root / "audio"))
    for name in ("ARTICLEVOICE_MAX_STEPS_PER_ITEM", "ARTICLEVOICE_TARGET_LANGUAGES"):
        monkeypatch.delenv(name, raising=False)

    def _build(config: ArticlevoiceConfig, run_logger: RunLogger | None = None) -> PipelineEngine:
        """Return an engine over the harness doubles honoring the step cap."""

        assert config.content_root == Path(harness.root / "content")
        return harness.engine(max_steps_per_item=config.max_steps_per_item)

    monkeypatch.setattr("articlevoice.cli.engine_builder", _build)
    return harness
