"""Articlevoice pipeline package.

This package contains the stage-transition table, per-adapter stage handlers,
the per-language stage executor, and the item/batch engine.
"""

from .engine import PipelineEngine
from .executor import StageExecutor
from .stages import StageHandler, build_stage_handlers
from .transitions import STAGE_TRANSITIONS, transition_for

__all__ = [
    "PipelineEngine",
    "StageExecutor",
    "StageHandler",
    "build_stage_handlers",
    "STAGE_TRANSITIONS",
    "transition_for",
]
