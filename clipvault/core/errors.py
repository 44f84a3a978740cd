"""Exception taxonomy shared by the pipeline, the gateways and the HTTP layer.

Every error carries a machine readable ``code`` and the HTTP ``status_code``
it maps to. The API renders them as ``{"code": ..., "message": ...}``.
"""

from __future__ import annotations

from typing import Optional

# Only the tail of a tool's diagnostic output is echoed back to clients.
_DIAGNOSTIC_TAIL_CHARS = 2000


class ClipvaultError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ClipvaultError):
    status_code = 400
    code = "invalid_request"
    default_message = "Invalid request"


class InvalidVideoId(ValidationError):
    code = "invalid_video_id"
    default_message = "Invalid video ID"


class MissingUpload(ValidationError):
    code = "missing_upload"
    default_message = "Multipart form is missing the file field"


class UnsupportedMediaType(ValidationError):
    code = "unsupported_media_type"

    def __init__(self, media_type: str, *, expected: tuple[str, ...] = ()) -> None:
        self.media_type = media_type
        self.expected = expected
        wanted = ", ".join(expected) if expected else "a supported type"
        super().__init__(f"Unsupported media type {media_type}; expected {wanted}")


class RequestTooLarge(ValidationError):
    status_code = 413
    code = "request_too_large"

    def __init__(self, limit_bytes: int) -> None:
        self.limit_bytes = limit_bytes
        super().__init__(f"Request body exceeds {limit_bytes} bytes")


class AuthError(ClipvaultError):
    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required"


class ForbiddenError(AuthError):
    status_code = 403
    code = "forbidden"
    default_message = "You must be the video owner"


class NotFoundError(ClipvaultError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class ProcessingError(ClipvaultError):
    code = "processing_failed"
    default_message = "Media processing failed"


class ExternalToolFailure(ProcessingError):
    """An external binary exited non-zero or could not be launched."""

    code = "external_tool_failed"

    def __init__(self, tool: str, output: str, *, returncode: Optional[int] = None) -> None:
        self.tool = tool
        self.output = output
        self.returncode = returncode
        tail = output.strip()[-_DIAGNOSTIC_TAIL_CHARS:]
        super().__init__(f"{tool} failed: {tail}" if tail else f"{tool} failed")


class MalformedOutput(ProcessingError):
    """The tool succeeded but its output did not have the expected structure."""

    code = "malformed_tool_output"

    def __init__(self, tool: str, reason: str, *, output: str = "") -> None:
        self.tool = tool
        self.output = output
        super().__init__(f"unexpected {tool} output: {reason}")


class NoStreamFound(ProcessingError):
    code = "no_stream_found"
    default_message = "couldn't find a stream in ffprobe output"


class AssetReferenceError(ProcessingError):
    code = "invalid_asset_reference"
    default_message = "Stored asset reference could not be decoded"


class StoreUnavailable(ClipvaultError):
    code = "store_unavailable"

    def __init__(self, operation: str, bucket: str, key: str, reason: str = "") -> None:
        self.operation = operation
        self.bucket = bucket
        self.key = key
        message = f"object store {operation} failed for {bucket}/{key}"
        super().__init__(f"{message}: {reason}" if reason else message)


__all__ = [
    "ClipvaultError",
    "ValidationError",
    "InvalidVideoId",
    "MissingUpload",
    "UnsupportedMediaType",
    "RequestTooLarge",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "ProcessingError",
    "ExternalToolFailure",
    "MalformedOutput",
    "NoStreamFound",
    "AssetReferenceError",
    "StoreUnavailable",
]
