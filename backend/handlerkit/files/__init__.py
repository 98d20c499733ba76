"""File upload and download module.

Handles multipart uploads into a local directory:
- content type sniffed from the first 512 bytes, checked against an UploadPolicy
- total payload capped (512MiB unless the policy says otherwise)
- optional random renaming that keeps the original extension

Also serves stored files back as attachments and creates directories on demand.
"""
from .schemas import DEFAULT_MAX_UPLOAD_BYTES, UploadedFile, UploadPolicy
from .service import download_file, ensure_dir, upload_file, upload_files
from .sniffing import detect_content_type

__all__ = [
    "DEFAULT_MAX_UPLOAD_BYTES",
    "UploadPolicy",
    "UploadedFile",
    "detect_content_type",
    "download_file",
    "ensure_dir",
    "upload_file",
    "upload_files",
]
