"""Error types raised by handlerkit operations.

Every error carries the HTTP status code a handler would normally answer with,
so callers can map an error kind to a response without inspecting messages.
"""
from typing import List, Optional


class HandlerKitError(Exception):
    """Base exception for all toolkit errors."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PayloadTooLargeError(HandlerKitError):
    """Raised when a request body exceeds its byte ceiling."""
    def __init__(self, limit: int):
        self.limit = limit
        self.uploaded_files: List = []
        super().__init__(
            f"request body too large: limit is {limit} bytes", status_code=413
        )


class UploadError(HandlerKitError):
    """Base for upload failures.

    ``uploaded_files`` holds the records stored before the failure. Those files
    stay on disk; cleaning them up is the caller's decision.
    """
    def __init__(self, message: str, status_code: int = 500):
        self.uploaded_files: List = []
        super().__init__(message, status_code=status_code)


class TypeNotAllowedError(UploadError):
    """Raised when a sniffed content type is rejected by the upload policy."""
    def __init__(self, filename: str, content_type: str):
        self.filename = filename
        self.content_type = content_type
        super().__init__(
            f"file type is not allowed: {filename} ({content_type})",
            status_code=415,
        )


class FilesystemError(UploadError):
    """Raised when opening, creating or copying a file fails.

    The original ``OSError`` is available as ``__cause__``.
    """
    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message, status_code=500)


class MalformedUploadError(UploadError):
    """Raised when a request body cannot be parsed as multipart form data."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class FileCountError(UploadError):
    """Raised by single-file upload when the body does not hold exactly one file."""
    def __init__(self, count: int):
        self.count = count
        super().__init__(
            f"exactly one file expected, got {count}", status_code=400
        )


class DirectoryCreateError(HandlerKitError):
    """Raised when a directory cannot be created."""
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            f"could not create directory {path}: {reason}", status_code=500
        )


class FileNotFoundInStorageError(HandlerKitError):
    """Raised when a file requested for download does not exist."""
    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"file not found: {file_name}", status_code=404)


class InvalidJSONError(HandlerKitError):
    """Raised when a JSON request body is rejected."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class SlugError(HandlerKitError):
    """Raised when a string cannot be turned into a slug."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class IncompleteBodyError(HandlerKitError):
    """Raised when a request body is cut off or does not match its Content-Length."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)
