"""Content-type sniffing from leading file bytes.

Implements the signature table HTTP stacks use to guess a MIME type when the
client's declared type cannot be trusted (WHATWG MIME Sniffing). At most the
first 512 bytes are considered. Signatures are tried in order and the first
match wins; data without binary control bytes is reported as UTF-8 text and
anything else as ``application/octet-stream``.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from .schemas import SNIFF_LENGTH

DEFAULT_CONTENT_TYPE = "application/octet-stream"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

_WHITESPACE = b"\t\n\x0c\r "

# Bytes that never appear in text content
_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)


def _skip_whitespace(data: bytes) -> bytes:
    return data.lstrip(_WHITESPACE)


@dataclass(frozen=True)
class _ExactSig:
    prefix: bytes
    content_type: str

    def match(self, data: bytes) -> Optional[str]:
        return self.content_type if data.startswith(self.prefix) else None


@dataclass(frozen=True)
class _MaskedSig:
    pattern: bytes
    mask: bytes
    content_type: str
    skip_whitespace: bool = False

    def match(self, data: bytes) -> Optional[str]:
        if self.skip_whitespace:
            data = _skip_whitespace(data)
        if len(data) < len(self.pattern):
            return None
        for want, mask, got in zip(self.pattern, self.mask, data):
            if got & mask != want:
                return None
        return self.content_type


@dataclass(frozen=True)
class _HTMLSig:
    """An HTML tag: case-insensitive, followed by a space or ``>``."""
    tag: bytes

    def match(self, data: bytes) -> Optional[str]:
        data = _skip_whitespace(data)
        if len(data) < len(self.tag) + 1:
            return None
        for want, got in zip(self.tag, data):
            if ord("A") <= want <= ord("Z"):
                got &= 0xDF
            if want != got:
                return None
        if data[len(self.tag)] not in b" >":
            return None
        return "text/html; charset=utf-8"


class _MP4Sig:
    """An ISO base media file whose ``ftyp`` box lists an ``mp4`` brand."""

    def match(self, data: bytes) -> Optional[str]:
        if len(data) < 12:
            return None
        box_size = int.from_bytes(data[:4], "big")
        if len(data) < box_size or box_size % 4 != 0:
            return None
        if data[4:8] != b"ftyp":
            return None
        for start in range(8, box_size, 4):
            if start == 12:
                # minor version, not a brand
                continue
            if data[start:start + 3] == b"mp4":
                return "video/mp4"
        return None


class _TextSig:
    def match(self, data: bytes) -> Optional[str]:
        for byte in _skip_whitespace(data):
            if byte in _BINARY_BYTES:
                return None
        return TEXT_CONTENT_TYPE


def _masked(pattern: bytes, mask: bytes, content_type: str, skip_whitespace: bool = False) -> _MaskedSig:
    return _MaskedSig(pattern, mask, content_type, skip_whitespace)


SIGNATURES: Tuple = (
    _HTMLSig(b"<!DOCTYPE HTML"),
    _HTMLSig(b"<HTML"),
    _HTMLSig(b"<HEAD"),
    _HTMLSig(b"<SCRIPT"),
    _HTMLSig(b"<IFRAME"),
    _HTMLSig(b"<H1"),
    _HTMLSig(b"<DIV"),
    _HTMLSig(b"<FONT"),
    _HTMLSig(b"<TABLE"),
    _HTMLSig(b"<A"),
    _HTMLSig(b"<STYLE"),
    _HTMLSig(b"<TITLE"),
    _HTMLSig(b"<B"),
    _HTMLSig(b"<BODY"),
    _HTMLSig(b"<BR"),
    _HTMLSig(b"<P"),
    _HTMLSig(b"<!--"),
    _masked(b"<?xml", b"\xFF\xFF\xFF\xFF\xFF", "text/xml; charset=utf-8", skip_whitespace=True),
    _ExactSig(b"%PDF-", "application/pdf"),
    _ExactSig(b"%!PS-Adobe-", "application/postscript"),

    # UTF BOMs
    _masked(b"\xFE\xFF\x00\x00", b"\xFF\xFF\x00\x00", "text/plain; charset=utf-16be"),
    _masked(b"\xFF\xFE\x00\x00", b"\xFF\xFF\x00\x00", "text/plain; charset=utf-16le"),
    _masked(b"\xEF\xBB\xBF\x00", b"\xFF\xFF\xFF\x00", "text/plain; charset=utf-8"),

    # Images
    _ExactSig(b"\x00\x00\x01\x00", "image/x-icon"),
    _ExactSig(b"\x00\x00\x02\x00", "image/x-icon"),
    _ExactSig(b"BM", "image/bmp"),
    _ExactSig(b"GIF87a", "image/gif"),
    _ExactSig(b"GIF89a", "image/gif"),
    _masked(
        b"RIFF\x00\x00\x00\x00WEBPVP",
        b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF\xFF\xFF",
        "image/webp",
    ),
    _ExactSig(b"\x89PNG\x0D\x0A\x1A\x0A", "image/png"),
    _ExactSig(b"\xFF\xD8\xFF", "image/jpeg"),

    # Audio and video
    _masked(
        b"FORM\x00\x00\x00\x00AIFF",
        b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF",
        "audio/aiff",
    ),
    _masked(b"ID3", b"\xFF\xFF\xFF", "audio/mpeg"),
    _masked(b"OggS\x00", b"\xFF\xFF\xFF\xFF\xFF", "application/ogg"),
    _masked(
        b"MThd\x00\x00\x00\x06",
        b"\xFF\xFF\xFF\xFF\xFF\xFF\xFF\xFF",
        "audio/midi",
    ),
    _masked(
        b"RIFF\x00\x00\x00\x00AVI ",
        b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF",
        "video/avi",
    ),
    _masked(
        b"RIFF\x00\x00\x00\x00WAVE",
        b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF",
        "audio/wave",
    ),
    _MP4Sig(),
    _ExactSig(b"\x1A\x45\xDF\xA3", "video/webm"),

    # Fonts
    _masked(b"\x00" * 34 + b"LP", b"\x00" * 34 + b"\xFF\xFF", "application/vnd.ms-fontobject"),
    _ExactSig(b"\x00\x01\x00\x00", "font/ttf"),
    _ExactSig(b"OTTO", "font/otf"),
    _ExactSig(b"ttcf", "font/collection"),
    _ExactSig(b"wOFF", "font/woff"),
    _ExactSig(b"wOF2", "font/woff2"),

    # Archives
    _ExactSig(b"\x1F\x8B\x08", "application/x-gzip"),
    _ExactSig(b"PK\x03\x04", "application/zip"),
    _ExactSig(b"Rar!\x1A\x07\x00", "application/x-rar-compressed"),
    _ExactSig(b"Rar!\x1A\x07\x01\x00", "application/x-rar-compressed"),
    _ExactSig(b"\x00\x61\x73\x6D", "application/wasm"),

    _TextSig(),
)


def detect_content_type(data: bytes) -> str:
    """Guess the MIME type of ``data`` from its leading bytes.

    Always returns a valid MIME type; ``application/octet-stream`` when no
    signature matches. Empty input counts as text.

    Examples:
        >>> detect_content_type(b"\\x89PNG\\r\\n\\x1a\\n....")
        'image/png'
        >>> detect_content_type(b"hello")
        'text/plain; charset=utf-8'
    """
    data = bytes(data[:SNIFF_LENGTH])
    for sig in SIGNATURES:
        content_type = sig.match(data)
        if content_type:
            return content_type
    return DEFAULT_CONTENT_TYPE
