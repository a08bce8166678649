"""Object-storage uploads through the rclone CLI.

Responsibilities:
- Copy single files and HLS directories to the configured bucket.
- Map remote keys to public CDN URLs.
- List uploaded segments in playback order.
"""

from __future__ import annotations

from pathlib import Path
import re
from typing import Protocol, Sequence

from ..errors import ExternalServiceError
from ..runtime_tools import resolve_executable, run_external_command


_LS_LINE = re.compile(r"^\s*\d+\s+(.+\.ts)$")
_FIRST_NUMBER = re.compile(r"(\d+)")


class Uploader(Protocol):
    """Protocol for object-storage uploaders."""

    def upload(self, local_path: Path, remote_key: str) -> str:
        """Upload one file and return its public URL."""

    def upload_directory(
        self,
        local_dir: Path,
        remote_prefix: str,
        includes: Sequence[str] = ("*.m3u8", "*.ts"),
    ) -> str:
        """Mirror matching files of a directory and return the public prefix URL."""

    def list_segments(self, remote_prefix: str) -> list[str]:
        """Return uploaded `.ts` segment names under a prefix in playback order."""

    def public_url(self, remote_key: str) -> str:
        """Return the public URL for a remote key."""


def parse_rclone_ls_output(output: str) -> list[str]:
    """Extract `.ts` file names from `rclone ls` output lines (`<size> <name>`)."""

    names: list[str] = []
    for line in output.splitlines():
        match = _LS_LINE.match(line)
        if match:
            names.append(match.group(1))
    return names


def sort_segment_names(names: Sequence[str]) -> list[str]:
    """Sort segment names by their first number, so `segment_10` follows `segment_9`."""

    def _key(name: str) -> tuple[int, str]:
        match = _FIRST_NUMBER.search(name)
        return (int(match.group(1)) if match else 0, name)

    return sorted(names, key=_key)


class RcloneUploader:
    """rclone-backed uploader for an S3-compatible bucket behind a public CDN."""

    def __init__(
        self,
        *,
        remote: str = "r2",
        bucket: str = "audio-streaming",
        public_base_url: str = "https://audio.example.com",
        timeout_seconds: float = 300.0,
    ) -> None:
        """Initialize remote destination and invocation timeout."""

        self.remote = remote
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _destination(self, remote_key: str) -> str:
        """Return the rclone destination for a bucket-relative key."""

        return f"{self.remote}:{self.bucket}/{remote_key.lstrip('/')}"

    def public_url(self, remote_key: str) -> str:
        """Return the public URL for a bucket-relative key."""

        return f"{self.public_base_url}/{remote_key.strip('/')}"

    def upload(self, local_path: Path, remote_key: str) -> str:
        """Copy one file to `remote_key`, overwriting any previous object."""

        if not local_path.is_file():
            raise ExternalServiceError(
                f"Upload source `{local_path}` does not exist.",
                service="rclone",
                failure_kind="missing_input",
            )
        command = [
            resolve_executable("rclone"),
            "copyto",
            str(local_path),
            self._destination(remote_key),
        ]
        run_external_command(command, service="rclone", timeout_seconds=self.timeout_seconds)
        return self.public_url(remote_key)

    def upload_directory(
        self,
        local_dir: Path,
        remote_prefix: str,
        includes: Sequence[str] = ("*.m3u8", "*.ts"),
    ) -> str:
        """Mirror matching files of `local_dir` under `remote_prefix`.

        `rclone sync` deletes matching remote files that no longer exist
        locally, so segments from an earlier packaging run do not linger.
        """

        if not local_dir.is_dir():
            raise ExternalServiceError(
                f"Upload source directory `{local_dir}` does not exist.",
                service="rclone",
                failure_kind="missing_input",
            )
        if not any(path.match(pattern) for path in local_dir.iterdir() for pattern in includes):
            raise ExternalServiceError(
                f"No files matching {', '.join(includes)} in `{local_dir}`.",
                service="rclone",
                failure_kind="missing_input",
            )

        prefix = remote_prefix.strip("/")
        command = [
            resolve_executable("rclone"),
            "sync",
            str(local_dir),
            self._destination(prefix) + "/",
        ]
        for pattern in includes:
            command.extend(["--include", pattern])
        command.append("-v")
        run_external_command(command, service="rclone", timeout_seconds=self.timeout_seconds)
        return self.public_url(prefix)

    def list_segments(self, remote_prefix: str) -> list[str]:
        """List uploaded segments with `rclone ls` and return them in playback order."""

        command = [
            resolve_executable("rclone"),
            "ls",
            self._destination(remote_prefix.strip("/")) + "/",
        ]
        completed = run_external_command(
            command, service="rclone", timeout_seconds=self.timeout_seconds
        )
        return sort_segment_names(parse_rclone_ls_output(completed.stdout or ""))
