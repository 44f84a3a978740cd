from __future__ import annotations

from pathlib import Path
from typing import List

from .probe import run_tool

FFMPEG_BINARY = "ffmpeg"
FAST_START_SUFFIX = ".processing"


def fast_start_path(input_path: Path) -> Path:
    """Return where the fast-start copy of ``input_path`` is written."""
    return input_path.with_name(input_path.name + FAST_START_SUFFIX)


def ffmpeg_fast_start_command(input_path: Path, output_path: Path) -> List[str]:
    # -c copy keeps the encoded streams; faststart moves the moov atom to the front.
    return [
        FFMPEG_BINARY,
        "-nostdin",
        "-i",
        str(input_path),
        "-c",
        "copy",
        "-movflags",
        "faststart",
        "-f",
        "mp4",
        str(output_path),
    ]


def remux_for_fast_start(input_path: Path) -> Path:
    """Rewrite ``input_path`` into a progressive-playback MP4 without re-encoding.

    The input is never modified. The caller owns both the input and the
    returned output and must remove them, including a partial output left
    behind when ffmpeg fails.

    Raises:
        ExternalToolFailure: ffmpeg could not be launched or exited non-zero.
    """
    output_path = fast_start_path(input_path)
    run_tool(ffmpeg_fast_start_command(input_path, output_path))
    return output_path


__all__ = [
    "FFMPEG_BINARY",
    "FAST_START_SUFFIX",
    "fast_start_path",
    "ffmpeg_fast_start_command",
    "remux_for_fast_start",
]
