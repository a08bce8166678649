"""Unit tests for the static stage-transition table."""

from __future__ import annotations

from dataclasses import replace

import pytest

from articlevoice.models.datatypes import AdapterKind, Stage
from articlevoice.pipeline.transitions import (
    STAGE_TRANSITIONS,
    transition_for,
    validate_transition_table,
)


def test_default_table_is_valid_forward_chain() -> None:
    """The built-in table should pass validation and cover every stage in order."""

    validate_transition_table(STAGE_TRANSITIONS)

    assert [transition.source for transition in STAGE_TRANSITIONS] == list(Stage)
    assert [transition.adapter for transition in STAGE_TRANSITIONS] == [
        AdapterKind.TRANSLATION,
        AdapterKind.SYNTHESIS,
        AdapterKind.PACKAGING,
        AdapterKind.UPLOAD_AUDIO,
        AdapterKind.UPLOAD_METADATA,
        AdapterKind.SOCIAL_HOOK,
        None,
    ]


def test_transition_for_resolves_each_stage() -> None:
    """Every stage should resolve to the entry that starts from it."""

    assert transition_for(Stage.REVIEWED).target is Stage.TRANSLATED
    assert transition_for(Stage.UPLOADED_METADATA).description == "Generate social hooks"
    assert transition_for(Stage.PUBLISHED).is_terminal


def test_transition_for_rejects_stage_missing_from_table() -> None:
    """Resolving against a table without the stage should fail."""

    with pytest.raises(ValueError, match="No transition"):
        transition_for(Stage.PUBLISHED, STAGE_TRANSITIONS[:-1])


def test_validate_rejects_missing_or_reordered_stage() -> None:
    """A table that skips or reorders a stage should be rejected."""

    with pytest.raises(ValueError, match="every stage"):
        validate_transition_table(STAGE_TRANSITIONS[1:])
    reordered = (STAGE_TRANSITIONS[1], STAGE_TRANSITIONS[0], *STAGE_TRANSITIONS[2:])
    with pytest.raises(ValueError, match="every stage"):
        validate_transition_table(reordered)


def test_validate_rejects_skipping_target() -> None:
    """A transition must target the immediately following stage."""

    table = list(STAGE_TRANSITIONS)
    table[0] = replace(table[0], target=Stage.AUDIO_READY)

    with pytest.raises(ValueError, match="next stage"):
        validate_transition_table(table)


def test_validate_rejects_missing_adapter_and_early_terminal() -> None:
    """Non-terminal entries need adapters and terminal entries must come last."""

    missing_adapter = list(STAGE_TRANSITIONS)
    missing_adapter[2] = replace(missing_adapter[2], adapter=None)
    with pytest.raises(ValueError, match="missing its adapter"):
        validate_transition_table(missing_adapter)

    early_terminal = list(STAGE_TRANSITIONS)
    early_terminal[3] = replace(early_terminal[3], target=None, adapter=None)
    with pytest.raises(ValueError, match="must be last"):
        validate_transition_table(early_terminal)


def test_validate_rejects_terminal_with_adapter_or_open_end() -> None:
    """The final entry must be terminal and carry no adapter."""

    with_adapter = list(STAGE_TRANSITIONS)
    with_adapter[-1] = replace(with_adapter[-1], adapter=AdapterKind.SOCIAL_HOOK)
    with pytest.raises(ValueError, match="must not declare an adapter"):
        validate_transition_table(with_adapter)

    open_end = list(STAGE_TRANSITIONS)
    open_end[-1] = replace(
        open_end[-1], target=Stage.PUBLISHED, adapter=AdapterKind.SOCIAL_HOOK
    )
    with pytest.raises(ValueError, match="terminal entry"):
        validate_transition_table(open_end)
