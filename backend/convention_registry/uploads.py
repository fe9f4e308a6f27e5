"""Attachment storage in the managed uploads directory."""
from __future__ import annotations

import asyncio
import logging
import secrets
import time
from pathlib import Path, PurePosixPath
from typing import BinaryIO, List, Optional

from fastapi import UploadFile

from .errors import UploadRejected
from .schemas import StoredFile

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_FILES = 5
CHUNK_SIZE = 64 * 1024

ALLOWED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "image/jpeg",
        "image/png",
        "image/gif",
    }
)


def build_stored_name(original_name: str) -> str:
    """``<base>-<timestamp>-<random><ext>`` using only the client name's last component."""

    name = PurePosixPath((original_name or "").replace("\\", "/")).name or "file"
    suffix = PurePosixPath(name).suffix
    base = name[: -len(suffix)] if suffix else name
    base = "".join(ch for ch in base if ch.isalnum() or ch in "-_ .").strip() or "file"
    unique = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{base}-{unique}{suffix}"


def resolve_managed_path(upload_dir: Path, filename: str) -> Optional[Path]:
    """Resolve ``filename`` inside ``upload_dir``, or None if it would escape it."""

    if not filename or not isinstance(filename, str):
        return None
    normalized = PurePosixPath(filename.replace("\\", "/"))
    if normalized.is_absolute() or ".." in normalized.parts:
        return None
    root = upload_dir.resolve()
    candidate = (root / normalized).resolve()
    if candidate == root or not candidate.is_relative_to(root):
        return None
    return candidate


def validate_batch(files: List[UploadFile]) -> None:
    """Reject the request before anything touches the disk."""

    if not files:
        raise UploadRejected("لم يتم رفع أي ملفات", code="NO_FILES")
    if len(files) > MAX_FILES:
        raise UploadRejected(
            "عدد الملفات كبير جداً. الحد الأقصى هو 5 ملفات.", code="TOO_MANY_FILES"
        )
    for upload in files:
        if upload.content_type not in ALLOWED_MIME_TYPES:
            raise UploadRejected(
                "نوع الملف غير مسموح. يرجى رفع ملفات PDF, Word, Excel أو الصور فقط.",
                code="INVALID_FILE_TYPE",
                details={"filename": upload.filename},
            )


def copy_limited(source: BinaryIO, target: Path) -> int:
    """Copy ``source`` into ``target``, stopping once it passes the size cap."""

    size = 0
    with target.open("wb") as fh:
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > MAX_FILE_SIZE:
                break
            fh.write(chunk)
    return size


async def save_uploads(upload_dir: Path, files: List[UploadFile]) -> List[StoredFile]:
    """Store a validated batch. Oversized files reject the whole batch."""

    validate_batch(files)
    upload_dir.mkdir(parents=True, exist_ok=True)

    stored: List[StoredFile] = []
    written: List[Path] = []
    oversized: List[str] = []
    for upload in files:
        filename = build_stored_name(upload.filename or "")
        target = upload_dir / filename
        written.append(target)
        await upload.seek(0)
        size = await asyncio.to_thread(copy_limited, upload.file, target)
        if size > MAX_FILE_SIZE:
            oversized.append(upload.filename or filename)
            continue
        stored.append(
            StoredFile(
                original_name=upload.filename or filename,
                filename=filename,
                size=size,
                mimetype=upload.content_type or "",
                path=f"/uploads/{filename}",
            )
        )

    if oversized:
        for path in written:
            path.unlink(missing_ok=True)
        raise UploadRejected(
            "الملفات التالية كبيرة جداً (الحد الأقصى 10 ميجابايت): " + ", ".join(oversized),
            code="FILE_TOO_LARGE",
            details={"oversizedFiles": oversized},
        )

    logger.info("Stored %d uploaded files", len(stored))
    return stored


def delete_file(upload_dir: Path, filename: str) -> bool:
    """Remove a stored file. Paths outside the uploads directory are refused."""

    path = resolve_managed_path(upload_dir, filename)
    if path is None:
        logger.warning("Refused to delete %r: outside the uploads directory", filename)
        return False
    if not path.is_file():
        logger.warning("File not found for deletion: %s", filename)
        return False
    path.unlink()
    logger.info("File deleted: %s", filename)
    return True
