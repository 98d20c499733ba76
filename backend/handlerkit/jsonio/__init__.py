"""JSON helpers for handlers: bounded request decoding and response encoding."""
from .schemas import DEFAULT_MAX_JSON_BYTES, JSONPayload
from .service import decode_json, error_json, push_json_to_remote, read_json, write_json

__all__ = [
    "DEFAULT_MAX_JSON_BYTES",
    "JSONPayload",
    "decode_json",
    "error_json",
    "push_json_to_remote",
    "read_json",
    "write_json",
]
