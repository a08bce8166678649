"""Static stage-transition table for the content pipeline.

Responsibilities:
- Declare the ordered chain from `reviewed` to the terminal `published` stage.
- Resolve the transition that applies to a stage.
- Reject malformed tables before any item is processed.
"""

from __future__ import annotations

from typing import Sequence

from ..models.datatypes import AdapterKind, Stage, StageTransition


STAGE_TRANSITIONS: tuple[StageTransition, ...] = (
    StageTransition(
        source=Stage.REVIEWED,
        target=Stage.TRANSLATED,
        adapter=AdapterKind.TRANSLATION,
        description="Translate article into target languages",
    ),
    StageTransition(
        source=Stage.TRANSLATED,
        target=Stage.AUDIO_READY,
        adapter=AdapterKind.SYNTHESIS,
        description="Synthesize speech audio",
    ),
    StageTransition(
        source=Stage.AUDIO_READY,
        target=Stage.PACKAGED,
        adapter=AdapterKind.PACKAGING,
        description="Package audio as HLS",
    ),
    StageTransition(
        source=Stage.PACKAGED,
        target=Stage.UPLOADED_AUDIO,
        adapter=AdapterKind.UPLOAD_AUDIO,
        description="Upload HLS audio",
    ),
    StageTransition(
        source=Stage.UPLOADED_AUDIO,
        target=Stage.UPLOADED_METADATA,
        adapter=AdapterKind.UPLOAD_METADATA,
        description="Upload content metadata",
    ),
    StageTransition(
        source=Stage.UPLOADED_METADATA,
        target=Stage.PUBLISHED,
        adapter=AdapterKind.SOCIAL_HOOK,
        description="Generate social hooks",
    ),
    StageTransition(
        source=Stage.PUBLISHED,
        target=None,
        adapter=None,
        description="Published",
    ),
)


def validate_transition_table(table: Sequence[StageTransition]) -> None:
    """Validate that a table is a forward-only chain covering every stage once.

    Raises:
        ValueError: If a stage is missing or duplicated, a target does not move
            forward, an adapter is missing, or the terminal entry is not last.
    """

    if [transition.source for transition in table] != list(Stage):
        raise ValueError("Transition table must list every stage exactly once, in order.")

    for index, transition in enumerate(table):
        is_last = index == len(table) - 1
        if transition.is_terminal:
            if not is_last:
                raise ValueError(
                    f"Terminal transition for `{transition.source.value}` must be last."
                )
            if transition.adapter is not None:
                raise ValueError("Terminal transition must not declare an adapter.")
            continue
        if is_last:
            raise ValueError("Transition table must end with a terminal entry.")
        if transition.adapter is None:
            raise ValueError(
                f"Transition from `{transition.source.value}` is missing its adapter."
            )
        if transition.target.order != transition.source.order + 1:
            raise ValueError(
                f"Transition from `{transition.source.value}` must target the next stage."
            )


def transition_for(
    stage: Stage,
    table: Sequence[StageTransition] = STAGE_TRANSITIONS,
) -> StageTransition:
    """Return the transition whose source is `stage`."""

    for transition in table:
        if transition.source is stage:
            return transition
    raise ValueError(f"No transition is defined for stage `{stage.value}`.")
