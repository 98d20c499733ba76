"""Pydantic schemas for file upload handling.

- UploadPolicy: per-call limits (payload ceiling, allowed content types)
- UploadedFile: metadata reported for every stored file

A policy is immutable and passed into every upload call, so one handler can
serve concurrent requests with different policies without interference.
"""
from typing import FrozenSet

from pydantic import BaseModel, ConfigDict, Field


# Total multipart payload ceiling: 512MiB
DEFAULT_MAX_UPLOAD_BYTES = 512 * 1024 * 1024

# Number of leading bytes inspected when sniffing a file's content type
SNIFF_LENGTH = 512

# Length of generated file names (extension excluded)
RENAMED_FILENAME_LENGTH = 32

WILDCARD_CONTENT_TYPE = "*"


class UploadPolicy(BaseModel):
    """Limits applied to one upload call.

    An empty ``allowed_content_types`` set, or one containing ``"*"``,
    accepts every content type. Matching is case-insensitive.
    """
    model_config = ConfigDict(frozen=True)

    max_total_bytes: int = Field(
        default=DEFAULT_MAX_UPLOAD_BYTES, gt=0, description="Multipart payload ceiling in bytes"
    )
    allowed_content_types: FrozenSet[str] = Field(
        default_factory=frozenset, description="Accepted sniffed content types"
    )

    def allows(self, content_type: str) -> bool:
        """Return True if ``content_type`` may be stored under this policy.

        Examples:
            >>> UploadPolicy().allows("image/png")
            True
            >>> UploadPolicy(allowed_content_types={"image/jpeg"}).allows("image/png")
            False
        """
        if not self.allowed_content_types:
            return True
        wanted = content_type.lower()
        for allowed in self.allowed_content_types:
            if allowed == WILDCARD_CONTENT_TYPE or allowed.lower() == wanted:
                return True
        return False


class UploadedFile(BaseModel):
    """Metadata for a file stored by an upload call."""
    original_filename: str = Field(..., description="File name sent by the client")
    stored_filename: str = Field(..., description="File name on disk")
    size_bytes: int = Field(..., description="Number of bytes written")
    content_type: str = Field(..., description="Sniffed content type")
