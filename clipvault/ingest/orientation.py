from __future__ import annotations

from typing import Literal, Optional

Orientation = Literal["landscape", "portrait", "other"]

ORIENTATIONS: tuple[Orientation, ...] = ("landscape", "portrait", "other")

# Exact string match only. ffprobe reports ratios in lowest terms, but
# near-16:9 sources (e.g. "427:240") land in "other"; there is no tolerance.
_RATIO_TO_ORIENTATION: dict[str, Orientation] = {
    "16:9": "landscape",
    "9:16": "portrait",
}


def classify_orientation(display_aspect_ratio: Optional[str]) -> Orientation:
    """Map a display aspect ratio string to a coarse orientation bucket."""
    if not isinstance(display_aspect_ratio, str):
        return "other"
    return _RATIO_TO_ORIENTATION.get(display_aspect_ratio, "other")


__all__ = ["Orientation", "ORIENTATIONS", "classify_orientation"]
