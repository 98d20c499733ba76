"""JSON request decoding and response encoding helpers.

decode_json / read_json accept exactly one JSON value no larger than a byte
ceiling and optionally validate it against a pydantic model, rejecting keys
the model does not declare unless told otherwise.
"""
import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Type

import httpx
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.requests import Request

from handlerkit.exceptions import (
    HandlerKitError,
    InvalidJSONError,
    PayloadTooLargeError,
    UploadError,
)
from handlerkit.streams import read_body

from .schemas import DEFAULT_MAX_JSON_BYTES, JSONPayload

logger = logging.getLogger(__name__)

_decoder = json.JSONDecoder()


def _known_keys(model: Type[BaseModel]) -> set:
    keys = set()
    for name, field in model.model_fields.items():
        keys.add(name)
        if field.alias:
            keys.add(field.alias)
    return keys


def _validate(value: Any, model: Type[BaseModel], allow_unknown_fields: bool) -> BaseModel:
    if not isinstance(value, dict):
        raise InvalidJSONError(
            f"body contains incorrect JSON type: expected an object, got {type(value).__name__}"
        )

    if not allow_unknown_fields:
        unknown = [key for key in value if key not in _known_keys(model)]
        if unknown:
            raise InvalidJSONError(f'body contains unknown key "{unknown[0]}"')

    try:
        return model.model_validate(value)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        if first["type"] == "missing":
            raise InvalidJSONError(f'body is missing required field "{field}"') from exc
        raise InvalidJSONError(f'body contains incorrect JSON type for field "{field}"') from exc


def decode_json(
    body: bytes,
    model: Optional[Type[BaseModel]] = None,
    max_bytes: int = DEFAULT_MAX_JSON_BYTES,
    allow_unknown_fields: bool = False,
) -> Any:
    """Decode a JSON request body.

    Args:
        body: Raw request body.
        model: Optional pydantic model to validate the value against.
        max_bytes: Largest accepted body.
        allow_unknown_fields: Accept object keys the model does not declare.

    Returns:
        The validated model instance, or the decoded value if no model given.

    Raises:
        PayloadTooLargeError: If the body is larger than ``max_bytes``.
        InvalidJSONError: If the body is empty, malformed, holds more than one
            JSON value, or does not fit ``model``.
    """
    if len(body) > max_bytes:
        raise PayloadTooLargeError(max_bytes)

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidJSONError(f"body is not valid UTF-8 (at byte {exc.start})") from exc

    start = len(text) - len(text.lstrip())
    if start == len(text):
        raise InvalidJSONError("body must not be empty")

    try:
        value, end = _decoder.raw_decode(text, start)
    except json.JSONDecodeError as exc:
        raise InvalidJSONError(f"body contains badly-formed JSON (at character {exc.pos})") from exc

    if text[end:].strip():
        raise InvalidJSONError("body must contain only one JSON value")

    if model is None:
        return value
    return _validate(value, model, allow_unknown_fields)


async def read_json(
    request: Request,
    model: Optional[Type[BaseModel]] = None,
    max_bytes: int = DEFAULT_MAX_JSON_BYTES,
    allow_unknown_fields: bool = False,
) -> Any:
    """Read and decode the JSON body of ``request``.

    The body is read through a byte cap, so an oversized body fails without
    being buffered whole. See decode_json for the accepted shapes.

    Raises:
        IncompleteBodyError: The client disconnected or the body does not
            match its Content-Length.
        (plus everything decode_json raises)
    """
    body = await read_body(request, max_bytes)
    return decode_json(
        body, model=model, max_bytes=max_bytes, allow_unknown_fields=allow_unknown_fields
    )


def write_json(
    data: Any,
    status_code: int = 200,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Encode ``data`` as an ``application/json`` response.

    Pydantic models, dataclasses and datetimes are converted the way FastAPI
    converts endpoint return values.
    """
    return JSONResponse(
        content=jsonable_encoder(data),
        status_code=status_code,
        headers=dict(headers) if headers else None,
    )


def error_json(exc: Exception, status_code: Optional[int] = None) -> JSONResponse:
    """Build a JSONPayload error response for ``exc``.

    The status defaults to the error's own status for toolkit errors and to
    400 otherwise. Upload errors include the files stored before the failure
    as ``data``.
    """
    if status_code is None:
        status_code = exc.status_code if isinstance(exc, HandlerKitError) else 400

    data = None
    uploaded = getattr(exc, "uploaded_files", None)
    if isinstance(exc, (UploadError, PayloadTooLargeError)) and uploaded:
        data = uploaded

    payload = JSONPayload(error=True, message=str(exc), data=data)
    return write_json(payload, status_code=status_code)


def push_json_to_remote(
    url: str,
    data: Any,
    client: Optional[httpx.Client] = None,
) -> Tuple[httpx.Response, int]:
    """POST ``data`` as JSON to ``url``.

    Args:
        url: Destination URL.
        data: Anything jsonable_encoder accepts.
        client: Client to send with; a short-lived one is used if omitted.

    Returns:
        Tuple of (response, status code).

    Raises:
        httpx.HTTPError: If the request could not be sent.
    """
    body = json.dumps(jsonable_encoder(data))
    headers: Dict[str, str] = {"Content-Type": "application/json"}

    if client is None:
        with httpx.Client() as own_client:
            response = own_client.post(url, content=body, headers=headers)
    else:
        response = client.post(url, content=body, headers=headers)

    logger.info("Pushed JSON to %s (status %d)", url, response.status_code)
    return response, response.status_code
