"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import firestore

from schoolfund.auth import (
    AuthUser,
    FirebaseIdentityProvider,
    IdentityProvider,
    InMemoryIdentityProvider,
    InvalidIdTokenError,
    TokenService,
    resolve_user,
)
from schoolfund.campaigns import CampaignService
from schoolfund.config import Settings, get_settings
from schoolfund.errors import ForbiddenError, UnauthorizedError, client_ip
from schoolfund.firebase import get_firebase_app
from schoolfund.rate_limit import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitStore,
    RedisRateLimitStore,
)
from schoolfund.schools import SchoolService
from schoolfund.storage import InMemoryStorageClient, S3StorageClient, StorageClient
from schoolfund.store import DocumentStore, FirestoreDocumentStore, InMemoryDocumentStore
from schoolfund.updates import UpdateService
from schoolfund.uploads import FileUploadService

logger = logging.getLogger(__name__)

_store: DocumentStore | None = None
_storage_client: StorageClient | None = None
_identity_provider: IdentityProvider | None = None
_rate_limit_store: RateLimitStore | None = None

bearer_scheme = HTTPBearer(auto_error=False)


def get_store() -> DocumentStore:
    """
    Return a singleton document store so in-memory state persists across requests.
    """
    global _store
    if _store:
        return _store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _store = InMemoryDocumentStore()
    else:
        _store = FirestoreDocumentStore(
            client=_firestore_client(settings),
        )
    return _store


def _firestore_client(settings: Settings):
    return firestore.client(app=get_firebase_app(settings))


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.s3_configured:
        if not settings.use_in_memory_backends:
            logger.warning(
                "AWS S3 configuration is incomplete; uploads are kept in memory."
            )
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.s3_bucket_name,
            region=settings.aws_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            endpoint=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_base_url,
            object_acl=settings.s3_object_acl,
        )
    return _storage_client


def get_identity_provider() -> IdentityProvider:
    global _identity_provider
    if _identity_provider:
        return _identity_provider

    settings = get_settings()
    if settings.use_in_memory_backends:
        _identity_provider = InMemoryIdentityProvider()
    else:
        _identity_provider = FirebaseIdentityProvider(app=get_firebase_app(settings))
    return _identity_provider


def get_rate_limit_store() -> RateLimitStore:
    global _rate_limit_store
    if _rate_limit_store:
        return _rate_limit_store

    settings = get_settings()
    if settings.redis_url:
        _rate_limit_store = RedisRateLimitStore(url=settings.redis_url)
    else:
        _rate_limit_store = InMemoryRateLimitStore()
    return _rate_limit_store


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in_seconds=settings.jwt_expires_in_seconds,
    )


def get_upload_service(
    settings: Settings = Depends(get_settings),
    storage: StorageClient = Depends(get_storage_client),
) -> FileUploadService:
    return FileUploadService(
        storage,
        key_style=settings.upload_key_style,
        max_bytes=settings.upload_max_bytes,
        max_files=settings.upload_max_files,
    )


def get_school_service(store: DocumentStore = Depends(get_store)) -> SchoolService:
    return SchoolService(store)


def get_campaign_service(
    store: DocumentStore = Depends(get_store),
    uploads: FileUploadService = Depends(get_upload_service),
) -> CampaignService:
    return CampaignService(store, uploads)


def get_update_service(store: DocumentStore = Depends(get_store)) -> UpdateService:
    return UpdateService(store)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AuthUser:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Unauthorized: No token provided")
    try:
        return resolve_user(credentials.credentials, tokens, identity)
    except InvalidIdTokenError as e:
        raise UnauthorizedError("Unauthorized: Invalid token") from e


def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.is_admin:
        raise ForbiddenError("Forbidden: Admin access required")
    return user


def rate_limit(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: RateLimitStore = Depends(get_rate_limit_store),
) -> None:
    RateLimiter(
        store,
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    ).check(client_ip(request), request.url.path)
