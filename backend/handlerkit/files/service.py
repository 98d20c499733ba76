"""File upload, download and directory helpers.

Uploads are parsed from a multipart request with a total byte ceiling, each
file's content type is sniffed from its first 512 bytes and checked against
the caller's UploadPolicy, and accepted files are written to the target
directory, optionally under a random name:

    uploads/{32 random chars}{original extension}

Files are processed one at a time in the order they appear in the form. The
first failure stops the batch; files stored before it stay on disk and are
reported on the raised error's ``uploaded_files``.
"""
import logging
import os
import re
import shutil
from pathlib import Path, PurePosixPath
from typing import AsyncIterator, List, Optional, Union

from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser
from starlette.requests import Request

from handlerkit.exceptions import (
    DirectoryCreateError,
    FileCountError,
    FileNotFoundInStorageError,
    FilesystemError,
    IncompleteBodyError,
    MalformedUploadError,
    TypeNotAllowedError,
    UploadError,
)
from handlerkit.streams import limited_stream
from handlerkit.text.tokens import generate_random_string

from .schemas import RENAMED_FILENAME_LENGTH, SNIFF_LENGTH, UploadedFile, UploadPolicy
from .sniffing import detect_content_type

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

DEFAULT_DIR_MODE = 0o755

_BOUNDARY = re.compile(r'boundary=(?:"([^"]+)"|([^;\s]+))', re.IGNORECASE)

# Whitespace tolerated after the closing boundary
_EPILOGUE_SLACK = 64


def ensure_dir(path: PathLike, mode: int = DEFAULT_DIR_MODE) -> None:
    """Create ``path`` (and missing parents) unless it already exists.

    Calling it again on an existing directory does nothing.

    Raises:
        DirectoryCreateError: If the directory cannot be created, including
            when ``path`` exists but is not a directory.
    """
    directory = Path(path)
    if directory.is_dir():
        return
    try:
        directory.mkdir(mode=mode, parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreateError(str(directory), exc.strerror or str(exc)) from exc
    logger.debug("Created directory %s", directory)


def _base_name(filename: Optional[str]) -> str:
    """Strip client-side directories from an uploaded file name."""
    if not filename:
        return ""
    name = PurePosixPath(filename.replace("\\", "/")).name
    if name in (".", ".."):
        return ""
    return name


async def _terminated_stream(
    request: Request, policy: UploadPolicy, boundary: bytes
) -> AsyncIterator[bytes]:
    """Yield the capped body and check it ends with the closing boundary.

    The multipart parser stops quietly at end of input, so a body cut off in
    the middle of a part would otherwise parse as a shorter, valid form.
    """
    closing = b"--" + boundary + b"--"
    keep = len(closing) + _EPILOGUE_SLACK
    tail = b""
    async for chunk in limited_stream(request, policy.max_total_bytes):
        tail = (tail + chunk)[-keep:]
        yield chunk

    if not tail.rstrip(b" \t\r\n").endswith(closing):
        raise MalformedUploadError("multipart body ended before its closing boundary")


async def _parse_form(request: Request, policy: UploadPolicy) -> FormData:
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise MalformedUploadError(
            f"request content type must be multipart/form-data, got {content_type or 'none'}"
        )
    match = _BOUNDARY.search(content_type)
    if match is None:
        raise MalformedUploadError("multipart content type has no boundary")
    boundary = (match.group(1) or match.group(2)).encode("latin-1")

    parser = MultiPartParser(
        request.headers, _terminated_stream(request, policy, boundary)
    )
    try:
        return await parser.parse()
    except MultiPartException as exc:
        raise MalformedUploadError(exc.message) from exc
    except IncompleteBodyError as exc:
        raise MalformedUploadError(exc.message) from exc


def _file_parts(form: FormData) -> List[UploadFile]:
    """File parts in field first-encounter order, each field's files in order.

    Parts without a usable file name are plain form values and are skipped.
    """
    parts = []
    for field_name in form.keys():
        for value in form.getlist(field_name):
            if isinstance(value, UploadFile) and _base_name(value.filename):
                parts.append(value)
    return parts


def _extension(name: str) -> str:
    """Everything from the last dot on; a dotfile like ``.bashrc`` is all extension."""
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def _stored_name(original: str, rename: bool) -> str:
    if not rename:
        return original
    return generate_random_string(RENAMED_FILENAME_LENGTH) + _extension(original)


def _store_file(
    upload: UploadFile, target_dir: Path, policy: UploadPolicy, rename: bool
) -> UploadedFile:
    """Validate one file part and copy it into ``target_dir``.

    Blocking; called through the threadpool.
    """
    original = _base_name(upload.filename)
    source = upload.file

    try:
        source.seek(0)
        head = source.read(SNIFF_LENGTH)
    except OSError as exc:
        raise FilesystemError(f"could not read uploaded file {original}: {exc}") from exc

    content_type = detect_content_type(head)
    if not policy.allows(content_type):
        logger.warning("Rejected upload %s: content type %s not allowed", original, content_type)
        raise TypeNotAllowedError(original, content_type)

    stored = _stored_name(original, rename)
    destination = target_dir / stored
    try:
        source.seek(0)
        with destination.open("wb") as out:
            shutil.copyfileobj(source, out)
            size_bytes = out.tell()
    except OSError as exc:
        raise FilesystemError(
            f"could not store {original} as {destination}: {exc}", path=str(destination)
        ) from exc

    logger.info("Stored upload %s as %s (%d bytes, %s)", original, destination, size_bytes, content_type)
    return UploadedFile(
        original_filename=original,
        stored_filename=stored,
        size_bytes=size_bytes,
        content_type=content_type,
    )


async def upload_files(
    request: Request,
    target_dir: PathLike,
    policy: Optional[UploadPolicy] = None,
    rename: bool = True,
) -> List[UploadedFile]:
    """Store every file part of a multipart request in ``target_dir``.

    Args:
        request: Request carrying a ``multipart/form-data`` body.
        target_dir: Destination directory, created with mode 0755 if absent.
        policy: Payload ceiling and accepted content types. Defaults to
            512MiB and any type.
        rename: Store files under a random 32 character name that keeps the
            original extension. When False the client's file name is used
            as is and an existing file of that name is overwritten.

    Returns:
        One UploadedFile per stored file, in processing order.

    Raises:
        PayloadTooLargeError: The body exceeds ``policy.max_total_bytes``.
        MalformedUploadError: The body is not valid multipart form data.
        TypeNotAllowedError: A file's sniffed type is rejected by ``policy``.
        FilesystemError: A file could not be read, created or written.
        DirectoryCreateError: ``target_dir`` could not be created.

        Upload errors carry the files stored before the failure in
        ``uploaded_files``; files after the failing one are not attempted.
    """
    policy = policy or UploadPolicy()
    target = Path(target_dir)
    ensure_dir(target)

    form = await _parse_form(request, policy)
    uploaded: List[UploadedFile] = []
    try:
        for upload in _file_parts(form):
            record = await run_in_threadpool(_store_file, upload, target, policy, rename)
            uploaded.append(record)
    except UploadError as exc:
        exc.uploaded_files = uploaded
        raise
    finally:
        await form.close()

    return uploaded


async def upload_file(
    request: Request,
    target_dir: PathLike,
    policy: Optional[UploadPolicy] = None,
    rename: bool = True,
) -> UploadedFile:
    """Store the single file part of a multipart request in ``target_dir``.

    Same validation and storage as upload_files. The number of file parts is
    checked before anything is written.

    Raises:
        FileCountError: The body holds no file or more than one file.
        (plus everything upload_files raises)
    """
    policy = policy or UploadPolicy()
    target = Path(target_dir)
    ensure_dir(target)

    form = await _parse_form(request, policy)
    try:
        parts = _file_parts(form)
        if len(parts) != 1:
            raise FileCountError(len(parts))
        return await run_in_threadpool(_store_file, parts[0], target, policy, rename)
    finally:
        await form.close()


def download_file(
    directory: PathLike, file_name: str, display_name: Optional[str] = None
) -> FileResponse:
    """Serve ``directory/file_name`` as an attachment.

    The browser is told to save it as ``display_name`` (default: the stored
    name). Directory components in ``file_name`` are ignored.

    Raises:
        FileNotFoundInStorageError: If the file does not exist.
    """
    name = _base_name(file_name)
    path = Path(directory) / name
    if not name or not path.is_file():
        raise FileNotFoundInStorageError(file_name)

    return FileResponse(path=path, filename=display_name or name)
