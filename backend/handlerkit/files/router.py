"""FastAPI router for file upload and download endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Request

from handlerkit.config import get_config

from .schemas import UploadedFile
from .service import download_file as serve_file
from .service import upload_file as store_one
from .service import upload_files as store_many

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


@router.post("/upload", response_model=List[UploadedFile])
async def upload_files(request: Request, rename: Optional[bool] = None):
    """Upload every file in a multipart form.

    Args:
        rename: Store under random names (defaults to ``uploads.rename``).

    Returns:
        Metadata for each stored file.

    Raises:
        413 if the body exceeds the configured ceiling, 415 if a file type is
        not allowed. Error bodies list the files stored before the failure.
    """
    settings = get_config().uploads
    if rename is None:
        rename = settings.rename

    uploaded = await store_many(
        request, settings.upload_dir, policy=settings.to_policy(), rename=rename
    )
    logger.info("Upload request stored %d file(s) in %s", len(uploaded), settings.upload_dir)
    return uploaded


@router.post("/upload-one", response_model=UploadedFile)
async def upload_one_file(request: Request, rename: Optional[bool] = None):
    """Upload a multipart form that must contain exactly one file."""
    settings = get_config().uploads
    if rename is None:
        rename = settings.rename

    return await store_one(
        request, settings.upload_dir, policy=settings.to_policy(), rename=rename
    )


@router.get("/download/{file_name}")
async def download_file(file_name: str, display_name: Optional[str] = None):
    """Download a stored file as an attachment.

    Args:
        file_name: Name of the file in the upload directory.
        display_name: File name the client should save it as.
    """
    return serve_file(get_config().uploads.upload_dir, file_name, display_name)
