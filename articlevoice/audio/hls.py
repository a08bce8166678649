"""HLS packaging of synthesized WAV audio with ffmpeg.

Responsibilities:
- Convert one WAV file into an AAC HLS playlist with fixed-length segments.
- Replace stale segments so re-packaging never mixes old and new output.
- Return the playlist and segment paths in playback order.
"""

from __future__ import annotations

from pathlib import Path
import re

from ..errors import ExternalServiceError
from ..models.datatypes import HlsPackage
from ..runtime_tools import resolve_executable, run_external_command


PLAYLIST_NAME = "audio.m3u8"
SEGMENT_PATTERN = "segment_%03d.ts"
_SEGMENT_INDEX = re.compile(r"(\d+)")


def segment_sort_key(path: Path) -> tuple[int, str]:
    """Sort segment files by their numeric index, then by name."""

    match = _SEGMENT_INDEX.search(path.stem)
    index = int(match.group(1)) if match else -1
    return index, path.name


class HlsPackager:
    """ffmpeg-backed HLS packager."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 300.0,
        audio_bitrate: str = "128k",
        sample_rate: int = 44100,
        channels: int = 2,
    ) -> None:
        """Initialize encoder profile and invocation timeout."""

        self.timeout_seconds = timeout_seconds
        self.audio_bitrate = audio_bitrate
        self.sample_rate = sample_rate
        self.channels = channels

    def package(
        self,
        audio_path: Path,
        output_dir: Path,
        segment_duration_seconds: int,
    ) -> HlsPackage:
        """Package one WAV file into `output_dir/audio.m3u8` plus ordered segments.

        Raises:
            ExternalServiceError: When the input is missing, ffmpeg fails, or no
                segments are produced.
        """

        if not audio_path.is_file():
            raise ExternalServiceError(
                f"Audio file `{audio_path}` does not exist.",
                service="ffmpeg",
                failure_kind="missing_input",
            )

        output_dir.mkdir(parents=True, exist_ok=True)
        for stale in output_dir.glob("*.ts"):
            stale.unlink()
        playlist_path = output_dir / PLAYLIST_NAME

        command = [
            resolve_executable("ffmpeg"),
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(audio_path),
            "-c:a",
            "aac",
            "-b:a",
            self.audio_bitrate,
            "-ac",
            str(self.channels),
            "-ar",
            str(self.sample_rate),
            "-f",
            "hls",
            "-hls_time",
            str(segment_duration_seconds),
            "-hls_list_size",
            "0",
            "-hls_segment_filename",
            str(output_dir / SEGMENT_PATTERN),
            str(playlist_path),
        ]
        run_external_command(command, service="ffmpeg", timeout_seconds=self.timeout_seconds)

        segment_paths = tuple(sorted(output_dir.glob("*.ts"), key=segment_sort_key))
        if not playlist_path.is_file() or not segment_paths:
            raise ExternalServiceError(
                f"ffmpeg produced no HLS output in `{output_dir}`.",
                service="ffmpeg",
                failure_kind="malformed_response",
            )
        return HlsPackage(playlist_path=playlist_path, segment_paths=segment_paths)
