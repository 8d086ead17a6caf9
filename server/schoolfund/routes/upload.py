from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from schoolfund.auth import AuthUser
from schoolfund.config import Settings, get_settings
from schoolfund.dependencies import (
    get_current_user,
    get_upload_service,
    rate_limit,
    require_admin,
)
from schoolfund.errors import ValidationError
from schoolfund.schemas import MessageResponse, MultiUploadResponse, UploadResponse
from schoolfund.uploads import FileUploadService, UploadedFile

router = APIRouter(dependencies=[Depends(rate_limit)])


async def _read_upload(file: UploadFile, max_bytes: int) -> UploadedFile:
    # One byte past the limit is enough to reject an oversized file.
    data = await file.read(max_bytes + 1)
    return UploadedFile(
        filename=file.filename or "",
        content_type=file.content_type,
        data=data,
    )


@router.post("", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    folder: Optional[str] = Form(None),
    user: AuthUser = Depends(get_current_user),
    uploads: FileUploadService = Depends(get_upload_service),
    settings: Settings = Depends(get_settings),
):
    if file is None:
        raise ValidationError("No file provided")
    upload = await _read_upload(file, uploads.max_bytes)
    stored = uploads.upload_file(upload, folder or settings.upload_default_folder)
    return UploadResponse(
        url=stored.url, key=stored.key, message="File uploaded successfully"
    )


@router.post("/multiple", response_model=MultiUploadResponse)
async def upload_files(
    files: Optional[list[UploadFile]] = File(None),
    folder: Optional[str] = Form(None),
    user: AuthUser = Depends(get_current_user),
    uploads: FileUploadService = Depends(get_upload_service),
    settings: Settings = Depends(get_settings),
):
    if not files:
        raise ValidationError("No files provided")
    if len(files) > uploads.max_files:
        raise ValidationError(f"Too many files: at most {uploads.max_files} per request")
    batch = [await _read_upload(f, uploads.max_bytes) for f in files]
    stored = uploads.upload_files(batch, folder or settings.upload_default_folder)
    return MultiUploadResponse(
        urls=[s.url for s in stored], message="Files uploaded successfully"
    )


@router.get("/status")
def file_status(
    file_url: str = Query(..., alias="fileUrl", min_length=1),
    uploads: FileUploadService = Depends(get_upload_service),
):
    """Whether an uploaded object is visible yet, with its metadata if so."""
    return uploads.check_file_exists(file_url).as_dict()


@router.get("/metadata")
def file_metadata(
    file_url: str = Query(..., alias="fileUrl", min_length=1),
    uploads: FileUploadService = Depends(get_upload_service),
):
    return uploads.get_file_metadata(file_url)


@router.delete("", response_model=MessageResponse)
def delete_file(
    file_url: str = Query(..., alias="fileUrl", min_length=1),
    admin: AuthUser = Depends(require_admin),
    uploads: FileUploadService = Depends(get_upload_service),
):
    key = uploads.delete_file(file_url)
    return MessageResponse(message="File deleted successfully", id=key)
