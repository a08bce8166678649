"""Shared typed data models for Articlevoice.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    AdapterKind,
    ContentItem,
    ItemRunReport,
    LanguageOutcome,
    Stage,
    StageResult,
    StageTransition,
)

__all__ = [
    "AdapterKind",
    "ContentItem",
    "ItemRunReport",
    "LanguageOutcome",
    "Stage",
    "StageResult",
    "StageTransition",
]
