"""CLI error-path tests for concise diagnostics and exit codes."""

from __future__ import annotations

from pathlib import Path

from pytest import MonkeyPatch
from typer.testing import CliRunner

from articlevoice.cli import app


def test_missing_config_file_fails_at_config_stage(cli_harness, tmp_path: Path) -> None:
    """A missing `--config` path should fail with a config-stage diagnostic."""

    missing = tmp_path / "missing.yaml"
    runner = CliRunner()

    result = runner.invoke(app, ["pending", "--config", str(missing)])

    assert result.exit_code == 1
    assert "pending failed at stage `config`: Config file not found" in result.output
    assert "Hint: Provide an existing path via `--config <path.yaml>`." in result.output


def test_invalid_config_values_fail_before_processing(cli_harness, tmp_path: Path) -> None:
    """Invalid YAML values should be reported without touching the store."""

    config_path = tmp_path / "articlevoice.yaml"
    config_path.write_text("max_steps_per_item: 0\n", encoding="utf-8")
    cli_harness.add_article("btc-high")
    runner = CliRunner()

    result = runner.invoke(app, ["process", "btc-high", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "process failed at stage `config`: Invalid config file" in result.output
    assert cli_harness.translator.calls == []


def test_invalid_environment_value_fails_at_config_stage(
    cli_harness, monkeypatch: MonkeyPatch
) -> None:
    """Malformed `ARTICLEVOICE_*` variables should fail with an environment hint."""

    monkeypatch.setenv("ARTICLEVOICE_MAX_STEPS_PER_ITEM", "many")
    runner = CliRunner()

    result = runner.invoke(app, ["run-all"])

    assert result.exit_code == 1
    assert "run-all failed at stage `config`" in result.output
    assert "ARTICLEVOICE_* environment variables" in result.output


def test_item_workers_option_rejects_zero(cli_harness) -> None:
    """`--item-workers` should be validated by the option parser."""

    runner = CliRunner()

    result = runner.invoke(app, ["run-all", "--item-workers", "0"])

    assert result.exit_code == 2


def test_add_rejects_unknown_category(cli_harness, tmp_path: Path) -> None:
    """Articles outside the known categories should not be stored."""

    article = tmp_path / "article.json"
    article.write_text(
        '{"id": "a1", "category": "gossip", "content": "Body."}', encoding="utf-8"
    )
    runner = CliRunner()

    result = runner.invoke(app, ["add", str(article)])

    assert result.exit_code == 1
    assert "add failed: Article category `gossip` is not one of" in result.output
    assert cli_harness.engine().pending_items() == []


def test_credentials_rejects_conflicting_flags_and_unknown_provider(
    memory_credentials,
) -> None:
    """`credentials` should reject `--set --clear` and unsupported providers."""

    runner = CliRunner()

    conflict = runner.invoke(app, ["credentials", "--set", "--clear"])
    unknown = runner.invoke(app, ["credentials", "--provider", "azure"])
    blank = runner.invoke(app, ["credentials", "--set"], input="\n")

    assert conflict.exit_code == 1
    assert "`--set` and `--clear` cannot be used together." in conflict.output
    assert unknown.exit_code == 1
    assert "Unsupported provider `azure`" in unknown.output
    assert blank.exit_code == 1
    assert "No API key entered." in blank.output
    assert memory_credentials.keys == {}
