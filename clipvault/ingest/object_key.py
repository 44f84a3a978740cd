from __future__ import annotations

import base64
import secrets
from typing import Literal

from .orientation import ORIENTATIONS, Orientation

__all__ = [
    "KEY_ENTROPY_BYTES",
    "KeyEncoding",
    "random_token",
    "new_object_key",
]

KeyEncoding = Literal["hex", "base64url"]

# 256 bits of randomness per key.
KEY_ENTROPY_BYTES = 32


def random_token(*, nbytes: int = KEY_ENTROPY_BYTES, encoding: KeyEncoding = "hex") -> str:
    """Return ``nbytes`` of CSPRNG output encoded as lowercase hex or unpadded base64url.

    Args:
        nbytes: Number of random bytes.
        encoding: ``hex`` or ``base64url``.

    Returns:
        The encoded token; never contains ``/`` or ``,``.
    """
    raw = secrets.token_bytes(nbytes)
    if encoding == "hex":
        return raw.hex()
    if encoding == "base64url":
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    raise ValueError(f"Unsupported key encoding: {encoding}")


def new_object_key(orientation: Orientation, *, encoding: KeyEncoding = "hex", extension: str = "mp4") -> str:
    """Return a fresh ``<orientation>/<token>.<extension>`` object key.

    Args:
        orientation: Orientation bucket used as the key prefix.
        encoding: Token encoding.
        extension: File extension without the dot.

    Returns:
        The object key.
    """
    if orientation not in ORIENTATIONS:
        raise ValueError(f"Unknown orientation: {orientation}")
    return f"{orientation}/{random_token(encoding=encoding)}.{extension}"
