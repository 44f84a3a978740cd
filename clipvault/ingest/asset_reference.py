"""Codec for the single string column that locates a record's stored video.

Three encodings have been written to ``videos.video_url`` over time:

* ``pair``   -- ``"<bucket>,<key>"``, presigned when served.
* ``url``    -- ``"http://<bucket>.s3.<region>.amazonaws.com/<key>"``, public bucket.
* ``opaque`` -- ``"<key>"`` alone, bucket taken from configuration, presigned when served.

New values are written in the configured mode only. Decoding accepts all three
so that rows written under an earlier mode can still be retired; rows are not
migrated in place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import quote, unquote, urlparse

from clipvault.core.errors import AssetReferenceError

ReferenceKind = Literal["pair", "url", "opaque"]

PAIR_DELIMITER = ","

_S3_HOST = re.compile(r"^(?P<bucket>.+?)\.s3(?:[.-](?P<region>[a-z0-9-]+))?\.amazonaws\.com$")


@dataclass(slots=True, frozen=True)
class AssetReference:
    kind: ReferenceKind
    bucket: str
    key: str

    @property
    def presigned(self) -> bool:
        """Whether serving this reference requires a presigned URL."""
        return self.kind != "url"


def encode_reference(reference: AssetReference, *, region: str = "us-east-1") -> str:
    if not reference.key:
        raise AssetReferenceError("Asset reference key must not be empty")
    if reference.kind == "pair":
        if not reference.bucket or PAIR_DELIMITER in reference.bucket:
            raise AssetReferenceError(f"Bucket cannot be encoded as a pair: {reference.bucket!r}")
        return f"{reference.bucket}{PAIR_DELIMITER}{reference.key}"
    if reference.kind == "url":
        return f"http://{reference.bucket}.s3.{region}.amazonaws.com/{quote(reference.key, safe='/')}"
    if reference.kind == "opaque":
        return reference.key
    raise AssetReferenceError(f"Unknown asset reference kind: {reference.kind}")


def decode_reference(value: str, *, default_bucket: str) -> AssetReference:
    """Parse a stored reference in any of the known encodings.

    Args:
        value: The persisted string.
        default_bucket: Bucket assumed for opaque keys.

    Returns:
        The decoded reference, tagged with the encoding it was found in.

    Raises:
        AssetReferenceError: The value is empty or is a URL that does not point at S3.
    """
    if not value or not value.strip():
        raise AssetReferenceError("Asset reference is empty")

    parsed = urlparse(value)
    if parsed.scheme in {"http", "https"}:
        match = _S3_HOST.match(parsed.hostname or "")
        key = unquote(parsed.path.lstrip("/"))
        if not match or not key:
            raise AssetReferenceError(f"Unrecognised asset URL: {value}")
        return AssetReference(kind="url", bucket=match.group("bucket"), key=key)

    if PAIR_DELIMITER in value:
        bucket, key = value.split(PAIR_DELIMITER, 1)
        if not bucket or not key:
            raise AssetReferenceError(f"Invalid bucket,key pair: {value}")
        return AssetReference(kind="pair", bucket=bucket, key=key)

    return AssetReference(kind="opaque", bucket=default_bucket, key=value)


__all__ = [
    "ReferenceKind",
    "PAIR_DELIMITER",
    "AssetReference",
    "encode_reference",
    "decode_reference",
]
