"""Shared test fixtures and helpers for handlerkit tests."""
from typing import Iterable, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from handlerkit.config import ToolkitConfig, UploadSettings, reset_config, set_config
from handlerkit.main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + bytes(range(256))
TEXT_BYTES = b"just some plain text\n"


def encode_multipart(files) -> Tuple[bytes, str]:
    """Encode ``files`` (httpx ``files=`` format) as a multipart body.

    Returns:
        Tuple of (body, content type header with boundary).
    """
    request = httpx.Request("POST", "http://testserver/", files=files)
    return request.read(), request.headers["content-type"]


def build_request(
    body: bytes,
    content_type: str,
    declare_length: bool = True,
    chunk_size: Optional[int] = None,
    content_length: Optional[int] = None,
    disconnect: bool = False,
) -> Request:
    """Build a Starlette request whose body arrives in ASGI messages.

    ``content_length`` overrides the announced length. With ``disconnect`` the
    last chunk still promises more body and the client then goes away.
    """
    if chunk_size:
        chunks: List[bytes] = [body[i:i + chunk_size] for i in range(0, len(body), chunk_size)]
    else:
        chunks = [body]
    messages = [
        {"type": "http.request", "body": chunk, "more_body": disconnect or i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]

    async def receive():
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    headers = [(b"content-type", content_type.encode("latin-1"))]
    if declare_length:
        length = len(body) if content_length is None else content_length
        headers.append((b"content-length", str(length).encode("latin-1")))

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": headers,
        "query_string": b"",
    }
    return Request(scope, receive)


def multipart_request(files: Iterable, **kwargs) -> Request:
    body, content_type = encode_multipart(list(files))
    return build_request(body, content_type, **kwargs)


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def toolkit_config(upload_dir):
    """Install a config pointing uploads at a temp dir, PNG only."""
    config = ToolkitConfig(
        uploads=UploadSettings(
            upload_dir=str(upload_dir),
            allowed_content_types=["image/png"],
            rename=False,
        )
    )
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def api_client(toolkit_config):
    """Provide a TestClient for the handlerkit app with a temp config."""
    with TestClient(app) as client:
        yield client
