"""
Configuration and settings for the SchoolFund API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.constants import (
    DEFAULT_UPLOAD_FOLDER,
    MAX_UPLOAD_BYTES,
    MAX_UPLOAD_FILES,
)
from shared.types import KeyStyle

DEFAULT_JWT_SECRET = "default-secret-key-change-in-production"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "APP_ENV"),
    )
    port: int = Field(default=5000)
    log_level: str = Field(default="INFO")
    log_dir: Optional[str] = Field(default=None)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Session tokens
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET)
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_in_seconds: int = Field(default=24 * 60 * 60, gt=0)

    # Firebase (Auth + Firestore)
    firebase_credentials_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "firebase_credentials_path", "GOOGLE_APPLICATION_CREDENTIALS"
        ),
    )
    firebase_project_id: Optional[str] = Field(default=None)

    # S3 storage
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    aws_region: str = Field(default="us-east-1")
    s3_bucket_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("s3_bucket_name", "AWS_S3_BUCKET_NAME"),
    )
    s3_endpoint_url: Optional[str] = Field(default=None)
    s3_public_base_url: Optional[str] = Field(default=None)
    s3_object_acl: Optional[str] = Field(default=None)

    # Uploads
    upload_max_bytes: int = Field(default=MAX_UPLOAD_BYTES, gt=0)
    upload_max_files: int = Field(default=MAX_UPLOAD_FILES, gt=0)
    upload_key_style: KeyStyle = Field(default=KeyStyle.TIMESTAMP)
    upload_default_folder: str = Field(default=DEFAULT_UPLOAD_FOLDER)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "use_in_memory_backends", "SCHOOLFUND_USE_IN_MEMORY_BACKENDS"
        ),
    )

    # Rate limiting (Redis makes the counters shared across processes)
    redis_url: Optional[str] = Field(default=None)
    rate_limit_window_seconds: int = Field(default=60, gt=0)
    rate_limit_max_requests: int = Field(default=100, gt=0)

    @model_validator(mode="after")
    def _check_production_secret(self) -> "Settings":
        if self.is_production and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def s3_configured(self) -> bool:
        return bool(
            self.s3_bucket_name
            and self.aws_access_key_id
            and self.aws_secret_access_key
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
