from __future__ import annotations

from starlette.requests import Request
from starlette.types import Message

from clipvault.core.errors import RequestTooLarge, ValidationError


def bounded_request(request: Request, limit_bytes: int) -> Request:
    """Return a view of ``request`` whose body stream fails once ``limit_bytes`` is exceeded.

    The ceiling is enforced on the ASGI receive channel itself, so the
    multipart parser never buffers more than the limit. A declared
    Content-Length above the limit is rejected before anything is read.
    """
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            declared_bytes = int(declared)
        except ValueError as exc:
            raise ValidationError("Invalid Content-Length header") from exc
        if declared_bytes > limit_bytes:
            raise RequestTooLarge(limit_bytes)

    receive = request.receive
    received = 0

    async def limited_receive() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit_bytes:
                raise RequestTooLarge(limit_bytes)
        return message

    return Request(request.scope, receive=limited_receive)


__all__ = ["bounded_request"]
