"""Top-level package for Articlevoice.

This package turns reviewed articles into multilingual, streamable audio
content. The main orchestration entry point is `PipelineEngine`.
"""

from .pipeline import PipelineEngine, StageExecutor

__all__ = ["PipelineEngine", "StageExecutor", "__version__"]

__version__ = "0.1.0"
