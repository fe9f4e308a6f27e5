"""Attachment upload, download and deletion endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from ..config import Settings
from ..dependencies import get_app_settings, get_current_user, require_editor
from ..errors import NotFound
from ..models import User
from ..schemas import MessageResponse, UploadResponse
from ..uploads import delete_file, resolve_managed_path, save_uploads

router = APIRouter(tags=["uploads"])


@router.post("/api/upload", response_model=UploadResponse)
async def upload_files(
    files: Optional[List[UploadFile]] = File(default=None),
    _: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
) -> UploadResponse:
    """Store up to five attachments and report their managed names."""

    return UploadResponse(files=await save_uploads(settings.upload_dir, files or []))


@router.delete("/api/upload/{filename:path}", response_model=MessageResponse)
async def remove_file(
    filename: str,
    _: User = Depends(require_editor),
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    # Missing or out-of-tree names are logged by delete_file and still answered with success.
    delete_file(settings.upload_dir, filename)
    return MessageResponse(message="تم حذف الملف بنجاح")


@router.get("/uploads/{filename:path}")
async def download_file(
    filename: str,
    _: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
) -> FileResponse:
    path = resolve_managed_path(settings.upload_dir, filename)
    if path is None or not path.is_file():
        raise NotFound("الملف غير موجود")
    return FileResponse(path)
