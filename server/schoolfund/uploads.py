"""
Upload validation, storage-key naming and status reconciliation.

Uploaded objects are written under `folder/<ms-timestamp>_<sanitized name>`
(or `folder/<uuid4>.<ext>` with the uuid key style) and are later looked up
again by their public URL, e.g. when a campaign references an impact report
that may not be visible in the bucket yet.
"""

from __future__ import annotations

import logging
import posixpath
import re
import time
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from schoolfund.errors import UploadFailedError, ValidationError
from schoolfund.schemas import FileStatus
from schoolfund.storage import ObjectNotFoundError, StorageClient, StorageError
from shared.constants import (
    ALLOWED_UPLOAD_TYPES,
    CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
    MAX_UPLOAD_BYTES,
    MAX_UPLOAD_FILES,
)
from shared.types import KeyStyle

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_REPEATED_UNDERSCORES = re.compile(r"_+")
_TIMESTAMP_PREFIX = re.compile(r"^\d{13}_(?P<name>.+)$")
_UUID_PREFIX = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}_(?P<name>.+)$"
)
_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


@dataclass
class UploadedFile:
    """A file received from a client, before it is written to storage."""

    filename: str
    content_type: Optional[str]
    data: bytes


@dataclass
class StoredFile:
    key: str
    url: str
    content_type: str
    size: int


def file_extension(name: str) -> str:
    base = posixpath.basename(name or "")
    if "." not in base.strip("."):
        return ""
    return base.rsplit(".", 1)[-1].lower()


def content_type_for(name: str) -> str:
    return CONTENT_TYPES.get(file_extension(name), DEFAULT_CONTENT_TYPE)


def sanitize_filename(name: str) -> str:
    base = posixpath.basename((name or "").replace("\\", "/"))
    cleaned = _REPEATED_UNDERSCORES.sub("_", _UNSAFE_CHARS.sub("_", base))
    cleaned = cleaned.lstrip(".")
    return cleaned or "file"


def clean_filename(key: str) -> str:
    """Human-facing filename for a storage key, without the naming prefix."""
    base = posixpath.basename(key or "")
    for pattern in (_TIMESTAMP_PREFIX, _UUID_PREFIX):
        match = pattern.match(base)
        if match:
            return match.group("name")
    return base


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


def normalize_folder(folder: str) -> str:
    parts = [part for part in (folder or "").strip().strip("/").split("/")]
    if not parts or parts == [""]:
        raise ValidationError("Upload folder is required")
    for part in parts:
        if part in ("", ".", "..") or _UNSAFE_CHARS.search(part):
            raise ValidationError(f"Invalid upload folder: {folder}")
    return "/".join(parts)


def build_storage_key(
    folder: str,
    original_name: str,
    style: KeyStyle = KeyStyle.TIMESTAMP,
    *,
    now: Optional[float] = None,
) -> str:
    prefix = normalize_folder(folder)
    if style == KeyStyle.UUID:
        ext = file_extension(original_name)
        name = f"{uuid.uuid4()}.{ext}" if ext else str(uuid.uuid4())
    else:
        millis = int((time.time() if now is None else now) * 1000)
        name = f"{millis}_{sanitize_filename(original_name)}"
    return f"{prefix}/{name}"


def validate_upload(
    upload: UploadedFile,
    *,
    max_bytes: int = MAX_UPLOAD_BYTES,
    allowed_types: Iterable[str] = ALLOWED_UPLOAD_TYPES,
) -> None:
    if not upload.filename:
        raise ValidationError("No file provided")
    if not upload.data:
        raise ValidationError(f"File is empty: {upload.filename}")
    if len(upload.data) > max_bytes:
        raise ValidationError(
            f"File too large: {upload.filename} exceeds {format_file_size(max_bytes)}"
        )
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type not in allowed_types:
        raise ValidationError(f"Invalid file type: {content_type or 'unknown'}")


class FileUploadService:
    def __init__(
        self,
        storage: StorageClient,
        *,
        key_style: KeyStyle = KeyStyle.TIMESTAMP,
        max_bytes: int = MAX_UPLOAD_BYTES,
        max_files: int = MAX_UPLOAD_FILES,
        allowed_types: Iterable[str] = ALLOWED_UPLOAD_TYPES,
    ):
        self.storage = storage
        self.key_style = key_style
        self.max_bytes = max_bytes
        self.max_files = max_files
        self.allowed_types = frozenset(allowed_types)

    def validate(self, upload: UploadedFile) -> None:
        validate_upload(
            upload, max_bytes=self.max_bytes, allowed_types=self.allowed_types
        )

    def upload_file(self, upload: UploadedFile, folder: str) -> StoredFile:
        """Validate and store a single file; returns where it landed."""
        self.validate(upload)
        key = build_storage_key(folder, upload.filename, self.key_style)
        return self._put(upload, key)

    def upload_files(
        self, uploads: list[UploadedFile], folder: str
    ) -> list[StoredFile]:
        """
        Store several files. All of them are validated before the first
        write, so a bad file never leaves a partial batch behind.
        """
        if not uploads:
            raise ValidationError("No files provided")
        if len(uploads) > self.max_files:
            raise ValidationError(
                f"Too many files: at most {self.max_files} per request"
            )
        for upload in uploads:
            self.validate(upload)
        normalize_folder(folder)
        return [
            self._put(upload, build_storage_key(folder, upload.filename, self.key_style))
            for upload in uploads
        ]

    def _put(self, upload: UploadedFile, key: str) -> StoredFile:
        content_type = content_type_for(upload.filename)
        try:
            self.storage.put_object(key, upload.data, content_type)
        except StorageError as e:
            logger.error("Upload of %s failed: %s", key, e)
            raise UploadFailedError("Failed to upload file") from e
        logger.info("Uploaded %s (%d bytes)", key, len(upload.data))
        return StoredFile(
            key=key,
            url=self.storage.public_url(key),
            content_type=content_type,
            size=len(upload.data),
        )

    def resolve_key(self, url_or_key: str) -> str:
        value = (url_or_key or "").strip()
        if not value:
            raise ValidationError("fileUrl is required")
        if "://" not in value:
            return value.lstrip("/")
        key = self.storage.key_for_url(value)
        if not key:
            raise ValidationError("fileUrl does not point into the upload bucket")
        return key

    def check_file_exists(self, url_or_key: str) -> FileStatus:
        """
        HEAD the object behind a URL or key. A missing object is reported as
        `exists=False`; any other storage failure propagates.
        """
        key = self.resolve_key(url_or_key)
        try:
            info = self.storage.head_object(key)
        except ObjectNotFoundError:
            return FileStatus(exists=False, key=key)
        return FileStatus(
            exists=True,
            key=key,
            file_name=clean_filename(key),
            size=info.size,
            formatted_size=format_file_size(info.size),
            last_modified=info.last_modified.isoformat() if info.last_modified else None,
            content_type=info.content_type,
        )

    def get_file_metadata(self, url_or_key: str) -> dict:
        key = self.resolve_key(url_or_key)
        return {"key": key, "fileName": clean_filename(key)}

    def delete_file(self, url_or_key: str) -> str:
        key = self.resolve_key(url_or_key)
        try:
            self.storage.delete_object(key)
        except StorageError as e:
            logger.error("Delete of %s failed: %s", key, e)
            raise UploadFailedError("Failed to delete file") from e
        logger.info("Deleted %s", key)
        return key
