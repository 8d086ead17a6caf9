"""
Identity providers (Firebase Auth and an in-memory double) and the HS256
session tokens the API hands out after register/login.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import jwt
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from shared.types import UserRole

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Raised when the identity provider rejects a request."""


class AccountExistsError(IdentityError):
    pass


class InvalidIdTokenError(IdentityError):
    pass


class UserNotFoundError(IdentityError):
    pass


@dataclass
class UserRecord:
    uid: str
    email: Optional[str]
    display_name: Optional[str] = None
    custom_claims: dict = field(default_factory=dict)


@dataclass(frozen=True)
class AuthUser:
    """The caller behind a verified bearer token."""

    uid: str
    email: Optional[str] = None
    role: str = UserRole.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def as_dict(self) -> dict:
        return {"uid": self.uid, "email": self.email, "role": self.role}


class IdentityProvider(Protocol):
    """Operations the API needs from the account system."""

    def create_user(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> UserRecord:
        ...

    def set_custom_user_claims(self, uid: str, claims: dict) -> None:
        ...

    def verify_id_token(self, id_token: str) -> dict:
        ...

    def get_user(self, uid: str) -> UserRecord:
        ...


class InMemoryIdentityProvider:
    """Account store for development and tests. Can mint its own ID tokens."""

    MIN_PASSWORD_LENGTH = 6

    def __init__(self):
        self.users: dict[str, UserRecord] = {}
        self.passwords: dict[str, str] = {}
        self.id_tokens: dict[str, str] = {}

    def create_user(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> UserRecord:
        normalized = email.strip().lower()
        if any((u.email or "").lower() == normalized for u in self.users.values()):
            raise AccountExistsError(f"The user with the provided email already exists: {email}")
        if len(password or "") < self.MIN_PASSWORD_LENGTH:
            raise IdentityError("Password must be at least 6 characters long")
        record = UserRecord(uid=uuid.uuid4().hex, email=email, display_name=display_name)
        self.users[record.uid] = record
        self.passwords[record.uid] = password
        return record

    def set_custom_user_claims(self, uid: str, claims: dict) -> None:
        self.get_user(uid).custom_claims = dict(claims or {})

    def issue_id_token(self, uid: str) -> str:
        self.get_user(uid)
        token = f"test-id-token-{uuid.uuid4().hex}"
        self.id_tokens[token] = uid
        return token

    def verify_id_token(self, id_token: str) -> dict:
        uid = self.id_tokens.get(id_token)
        if uid is None or uid not in self.users:
            raise InvalidIdTokenError("Invalid ID token")
        user = self.users[uid]
        return {"uid": uid, "email": user.email, **user.custom_claims}

    def get_user(self, uid: str) -> UserRecord:
        user = self.users.get(uid)
        if user is None:
            raise UserNotFoundError(f"No user record found for uid: {uid}")
        return user


class FirebaseIdentityProvider:
    """firebase_admin.auth wrapper."""

    def __init__(self, app=None):
        self.app = app

    def create_user(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> UserRecord:
        try:
            user = firebase_auth.create_user(
                email=email, password=password, display_name=display_name, app=self.app
            )
        except firebase_auth.EmailAlreadyExistsError as e:
            raise AccountExistsError(str(e)) from e
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise IdentityError(str(e)) from e
        return self._to_record(user)

    def set_custom_user_claims(self, uid: str, claims: dict) -> None:
        try:
            firebase_auth.set_custom_user_claims(uid, claims, app=self.app)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise IdentityError(str(e)) from e

    def verify_id_token(self, id_token: str) -> dict:
        try:
            return firebase_auth.verify_id_token(id_token, app=self.app)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise InvalidIdTokenError(str(e)) from e

    def get_user(self, uid: str) -> UserRecord:
        try:
            user = firebase_auth.get_user(uid, app=self.app)
        except firebase_auth.UserNotFoundError as e:
            raise UserNotFoundError(str(e)) from e
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise IdentityError(str(e)) from e
        return self._to_record(user)

    @staticmethod
    def _to_record(user) -> UserRecord:
        return UserRecord(
            uid=user.uid,
            email=user.email,
            display_name=user.display_name,
            custom_claims=dict(user.custom_claims or {}),
        )


class TokenService:
    """Signs and verifies the API's own session tokens."""

    def __init__(
        self, secret: str, algorithm: str = "HS256", expires_in_seconds: int = 86400
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in_seconds = expires_in_seconds

    def issue(
        self, uid: str, email: Optional[str] = None, role: str = UserRole.USER.value
    ) -> str:
        now = int(time.time())
        payload = {
            "uid": uid,
            "email": email or "",
            "role": role,
            "iat": now,
            "exp": now + self.expires_in_seconds,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """Raises jwt.InvalidTokenError when the token is bad or expired."""
        payload = jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            options={"require": ["exp", "iat"]},
        )
        if not payload.get("uid"):
            raise jwt.InvalidTokenError("Token has no uid claim")
        return payload


def resolve_user(
    token: str, tokens: TokenService, identity: IdentityProvider
) -> AuthUser:
    """
    Accept either a session token issued by TokenService or a Firebase ID
    token. Session tokens are tried first since they verify locally.
    """
    try:
        payload = tokens.decode(token)
    except jwt.InvalidTokenError:
        try:
            payload = identity.verify_id_token(token)
        except InvalidIdTokenError as e:
            logger.info("Rejected bearer token: %s", e)
            raise
    return AuthUser(
        uid=payload["uid"],
        email=payload.get("email") or None,
        role=payload.get("role") or UserRole.USER.value,
    )
