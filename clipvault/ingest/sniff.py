from __future__ import annotations

from typing import Callable, List, Tuple

SNIFF_LEN = 512
FALLBACK_MEDIA_TYPE = "application/octet-stream"


def _prefix(signature: bytes) -> Callable[[bytes], bool]:
    return lambda data: data.startswith(signature)


def _riff(form_type: bytes) -> Callable[[bytes], bool]:
    # "RIFF" <4-byte size> <form type>
    return lambda data: len(data) >= 12 and data[:4] == b"RIFF" and data[8:8 + len(form_type)] == form_type


def _is_mp4(data: bytes) -> bool:
    """ISO base media file whose ftyp box names an mp4 brand."""
    if len(data) < 12:
        return False
    box_size = int.from_bytes(data[:4], "big")
    if box_size < 12 or box_size % 4 != 0 or len(data) < box_size:
        return False
    if data[4:8] != b"ftyp":
        return False
    # major brand at 8, minor version at 12 (skipped), compatible brands after.
    for offset in range(8, box_size, 4):
        if offset == 12:
            continue
        if data[offset:offset + 3] == b"mp4":
            return True
    return False


_SIGNATURES: List[Tuple[str, Callable[[bytes], bool]]] = [
    ("image/png", _prefix(b"\x89PNG\r\n\x1a\n")),
    ("image/jpeg", _prefix(b"\xff\xd8\xff")),
    ("image/gif", _prefix(b"GIF87a")),
    ("image/gif", _prefix(b"GIF89a")),
    ("image/bmp", _prefix(b"BM")),
    ("image/webp", _riff(b"WEBPVP")),
    ("video/avi", _riff(b"AVI ")),
    ("audio/wave", _riff(b"WAVE")),
    ("video/webm", _prefix(b"\x1a\x45\xdf\xa3")),
    ("application/ogg", _prefix(b"OggS\x00")),
    ("video/mp4", _is_mp4),
]


def detect_content_type(header: bytes) -> str:
    """Classify a file from its leading bytes, ignoring anything the client declared.

    Only the first ``SNIFF_LEN`` bytes are considered. Unknown content maps to
    ``application/octet-stream``.
    """
    data = header[:SNIFF_LEN]
    for media_type, matches in _SIGNATURES:
        if matches(data):
            return media_type
    return FALLBACK_MEDIA_TYPE


__all__ = ["SNIFF_LEN", "FALLBACK_MEDIA_TYPE", "detect_content_type"]
