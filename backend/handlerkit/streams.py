"""Byte-capped access to request bodies."""
from typing import AsyncIterator, Optional

from starlette.requests import ClientDisconnect, Request

from handlerkit.exceptions import IncompleteBodyError, PayloadTooLargeError


def _declared_length(request: Request) -> Optional[int]:
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit():
        return int(declared)
    return None


def check_declared_length(request: Request, max_bytes: int) -> None:
    """Fail early when the client announces a body above ``max_bytes``."""
    declared = _declared_length(request)
    if declared is not None and declared > max_bytes:
        raise PayloadTooLargeError(max_bytes)


async def limited_stream(request: Request, max_bytes: int) -> AsyncIterator[bytes]:
    """Yield the request body, raising once more than ``max_bytes`` arrived.

    Raises:
        PayloadTooLargeError: The body is, or announces to be, above ``max_bytes``.
        IncompleteBodyError: The client disconnected, or the body is shorter
            or longer than its ``Content-Length``.
    """
    check_declared_length(request, max_bytes)
    declared = _declared_length(request)
    received = 0
    try:
        async for chunk in request.stream():
            received += len(chunk)
            if received > max_bytes:
                raise PayloadTooLargeError(max_bytes)
            yield chunk
    except ClientDisconnect as exc:
        raise IncompleteBodyError(
            f"client disconnected after {received} bytes of the request body"
        ) from exc

    if declared is not None and received != declared:
        raise IncompleteBodyError(
            f"request body has {received} bytes, Content-Length announced {declared}"
        )


async def read_body(request: Request, max_bytes: int) -> bytes:
    chunks = []
    async for chunk in limited_stream(request, max_bytes):
        chunks.append(chunk)
    return b"".join(chunks)
