"""Artifact storage for synthesized audio, HLS output, and metadata documents.

Responsibilities:
- Provide deterministic filesystem locations per `(language, category, id)`.
- Write audio and JSON artifacts atomically so readers never see partial files.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile


class ArtifactStore:
    """Filesystem-backed artifact store rooted at the audio directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root output directory."""

        self.root = root

    def wav_path(self, language: str, category: str, content_id: str) -> Path:
        """Return the WAV location for one content language."""

        return self.root / language / category / f"{content_id}.wav"

    def hls_dir(self, language: str, category: str, content_id: str) -> Path:
        """Return the HLS output directory for one content language."""

        return self.root / "m3u8" / language / category / content_id

    def metadata_path(self, language: str, category: str, content_id: str) -> Path:
        """Return the local content metadata document location."""

        return self.root / "metadata" / language / category / content_id / "content.json"

    def save_audio(self, path: Path, data: bytes) -> Path:
        """Atomically write audio bytes and return the final path."""

        atomic_write_bytes(path, data)
        return path

    def save_json(self, path: Path, payload: dict[str, object]) -> Path:
        """Atomically write a JSON document and return the final path."""

        encoded = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
        atomic_write_bytes(path, (encoded + "\n").encode("utf-8"))
        return path

    @staticmethod
    def exists(path: str | Path | None) -> bool:
        """Return whether an artifact path is set and present on disk."""

        if path is None:
            return False
        return Path(path).is_file()


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write bytes to a sibling temp file and rename it over the destination."""

    path.parent.mkdir(parents=True, exist_ok=True)
    handle, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(handle, "wb") as temp_file:
            temp_file.write(data)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
