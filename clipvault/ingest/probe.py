from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from clipvault.core.errors import ExternalToolFailure, MalformedOutput, NoStreamFound
from clipvault.core.logging import get_logger

FFPROBE_BINARY = "ffprobe"

logger = get_logger(component="media_prober")


@dataclass(slots=True, frozen=True)
class StreamGeometry:
    """Dimensions of the first stream reported by ffprobe."""

    width: Optional[int]
    height: Optional[int]
    display_aspect_ratio: str
    codec_type: Optional[str] = None


def ffprobe_command(path: Path) -> List[str]:
    """Build the ffprobe invocation: error-level logging, JSON output, stream enumeration."""
    return [
        FFPROBE_BINARY,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_streams",
        str(path),
    ]


def probe_media(path: Path) -> StreamGeometry:
    """Run ffprobe against ``path`` and return the geometry of its first stream.

    Args:
        path: Local file to analyse.

    Returns:
        The width, height and display aspect ratio of the first stream.

    Raises:
        ExternalToolFailure: ffprobe could not be launched or exited non-zero.
        MalformedOutput: ffprobe succeeded but did not print the expected JSON.
        NoStreamFound: the output lists zero streams.
    """
    command = ffprobe_command(path)
    output = run_tool(command)
    return parse_stream_geometry(output)


def run_tool(command: Sequence[str]) -> str:
    """Run an external tool, returning combined stdout+stderr.

    Args:
        command: The argv to execute; ``command[0]`` names the tool.

    Returns:
        The combined output of a zero-exit run.
    """
    tool = command[0]
    logger.debug("external_tool_run", tool=tool, command=list(command))
    try:
        proc = subprocess.run(
            list(command),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as exc:
        logger.error("external_tool_unavailable", tool=tool, error=str(exc))
        raise ExternalToolFailure(tool, f"unexpected error running {tool}: {exc}") from exc

    # Tools echo container metadata verbatim, which need not be UTF-8.
    output = (proc.stdout or b"").decode("utf-8", errors="replace")
    if proc.returncode != 0:
        logger.error("external_tool_failed", tool=tool, returncode=proc.returncode, output=output)
        raise ExternalToolFailure(tool, output, returncode=proc.returncode)
    return output


def parse_stream_geometry(output: str) -> StreamGeometry:
    """Parse ffprobe ``-show_streams`` JSON into a ``StreamGeometry``.

    Args:
        output: Raw text printed by ffprobe.

    Returns:
        Geometry of the first listed stream.
    """
    try:
        payload = json.loads(output)
    except ValueError as exc:
        raise MalformedOutput(FFPROBE_BINARY, "output is not JSON", output=output) from exc

    if not isinstance(payload, dict):
        raise MalformedOutput(FFPROBE_BINARY, "top-level value is not an object", output=output)

    streams = payload.get("streams")
    if streams is None:
        streams = []
    if not isinstance(streams, list):
        raise MalformedOutput(FFPROBE_BINARY, "'streams' is not a list", output=output)
    if not streams:
        raise NoStreamFound()

    first = streams[0]
    if not isinstance(first, dict):
        raise MalformedOutput(FFPROBE_BINARY, "stream entry is not an object", output=output)
    return _geometry_from_stream(first)


def _geometry_from_stream(stream: Dict[str, Any]) -> StreamGeometry:
    ratio = stream.get("display_aspect_ratio")
    return StreamGeometry(
        width=_int_or_none(stream.get("width")),
        height=_int_or_none(stream.get("height")),
        display_aspect_ratio=ratio if isinstance(ratio, str) else "",
        codec_type=stream.get("codec_type") if isinstance(stream.get("codec_type"), str) else None,
    )


def _int_or_none(value: Any) -> Optional[int]:
    if value in (None, "N/A", ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "FFPROBE_BINARY",
    "StreamGeometry",
    "ffprobe_command",
    "probe_media",
    "run_tool",
    "parse_stream_geometry",
]
