"""Input/output components for Articlevoice.

This package contains the content record store, local artifact storage, and
object-storage uploads used by the pipeline.
"""

from .storage import ArtifactStore
from .store import ContentStore, FileContentStore
from .uploader import RcloneUploader, Uploader

__all__ = ["ArtifactStore", "ContentStore", "FileContentStore", "RcloneUploader", "Uploader"]
