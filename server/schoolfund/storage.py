"""
Storage abstraction for S3 and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol
from urllib.parse import quote, unquote, urlsplit

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from shared.constants import DEFAULT_CONTENT_TYPE

NOT_FOUND_ERROR_CODES = frozenset(["404", "NoSuchKey", "NotFound"])


class StorageError(Exception):
    """Raised when the object store rejects or fails a request."""


class ObjectNotFoundError(StorageError):
    """Raised when the requested key does not exist."""


@dataclass(frozen=True)
class ObjectInfo:
    key: str
    size: int
    content_type: str
    last_modified: Optional[datetime] = None


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        ...

    def head_object(self, key: str) -> ObjectInfo:
        ...

    def delete_object(self, key: str) -> None:
        ...

    def public_url(self, key: str) -> str:
        ...

    def key_for_url(self, url: str) -> Optional[str]:
        ...


def _key_under_base(url: str, base_url: str) -> Optional[str]:
    base = base_url.rstrip("/") + "/"
    if not url.startswith(base):
        return None
    key = unquote(urlsplit(url[len(base) - 1 :]).path.lstrip("/"))
    return key or None


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = field(default_factory=dict)

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        self.stored_objects[key] = (
            bytes(body),
            content_type or DEFAULT_CONTENT_TYPE,
            datetime.now(timezone.utc),
        )

    def head_object(self, key: str) -> ObjectInfo:
        stored = self.stored_objects.get(key)
        if stored is None:
            raise ObjectNotFoundError(key)
        body, content_type, last_modified = stored
        return ObjectInfo(
            key=key,
            size=len(body),
            content_type=content_type,
            last_modified=last_modified,
        )

    def delete_object(self, key: str) -> None:
        # S3 deletes are idempotent; mirror that.
        self.stored_objects.pop(key, None)

    def get_bytes(self, key: str) -> bytes:
        stored = self.stored_objects.get(key)
        if stored is None:
            raise ObjectNotFoundError(key)
        return stored[0]

    def public_url(self, key: str) -> str:
        return f"{self.base_url.rstrip('/')}/{quote(key)}"

    def key_for_url(self, url: str) -> Optional[str]:
        return _key_under_base(url, self.base_url)


@dataclass
class S3StorageClient:
    """
    boto3-backed storage client. Objects are addressed by public
    virtual-hosted URLs unless `public_base_url` overrides them.
    """

    bucket: str
    region: str
    access_key_id: str
    secret_access_key: str
    endpoint: Optional[str] = None
    public_base_url: Optional[str] = None
    object_acl: Optional[str] = None

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    @property
    def base_url(self) -> str:
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com"

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type or DEFAULT_CONTENT_TYPE,
        }
        if self.object_acl:
            params["ACL"] = self.object_acl
        try:
            self._client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"put_object failed for {key}: {e}") from e

    def head_object(self, key: str) -> ObjectInfo:
        try:
            response = self._client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_ERROR_CODES:
                raise ObjectNotFoundError(key) from e
            raise StorageError(f"head_object failed for {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"head_object failed for {key}: {e}") from e
        return ObjectInfo(
            key=key,
            size=int(response.get("ContentLength", 0)),
            content_type=response.get("ContentType") or DEFAULT_CONTENT_TYPE,
            last_modified=response.get("LastModified"),
        )

    def delete_object(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"delete_object failed for {key}: {e}") from e

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{quote(key)}"

    def key_for_url(self, url: str) -> Optional[str]:
        return _key_under_base(url, self.base_url)
