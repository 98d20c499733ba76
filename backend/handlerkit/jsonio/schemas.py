"""Pydantic schemas for JSON request/response helpers."""
from typing import Any, Optional

from pydantic import BaseModel, Field

# Default ceiling for JSON request bodies: 1MiB
DEFAULT_MAX_JSON_BYTES = 1024 * 1024


class JSONPayload(BaseModel):
    """Envelope used for JSON error (and simple success) responses."""
    error: bool = Field(False, description="True when the request failed")
    message: str = Field("", description="Human readable outcome")
    data: Optional[Any] = Field(None, description="Optional result data")
