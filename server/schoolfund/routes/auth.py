from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from schoolfund.auth import (
    AccountExistsError,
    AuthUser,
    IdentityError,
    IdentityProvider,
    InvalidIdTokenError,
    TokenService,
    UserNotFoundError,
)
from schoolfund.dependencies import (
    get_current_user,
    get_identity_provider,
    get_school_service,
    get_token_service,
    rate_limit,
)
from schoolfund.errors import ApiError, ConflictError, UnauthorizedError, ValidationError
from schoolfund.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserPayload,
)
from schoolfund.schools import SchoolService
from shared.types import UserRole

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(rate_limit)])


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    payload: RegisterRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
    tokens: TokenService = Depends(get_token_service),
):
    """Create the Firebase account, tag it with the default role, sign a session token."""
    try:
        record = identity.create_user(
            payload.email, payload.password, payload.display_name
        )
        identity.set_custom_user_claims(record.uid, {"role": UserRole.USER.value})
    except AccountExistsError as e:
        raise ConflictError("An account with this email already exists") from e
    except IdentityError as e:
        logger.error("Error registering user %s: %s", payload.email, e)
        raise ValidationError(f"Failed to register user: {e}") from e

    logger.info("Registered user %s", record.uid)
    return AuthResponse(
        message="User registered successfully",
        user=UserPayload(
            uid=record.uid,
            email=record.email,
            display_name=record.display_name,
            role=UserRole.USER.value,
        ),
        token=tokens.issue(record.uid, record.email, UserRole.USER.value),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
    tokens: TokenService = Depends(get_token_service),
):
    """Exchange a Firebase ID token for a session token."""
    try:
        decoded = identity.verify_id_token(payload.id_token)
    except InvalidIdTokenError as e:
        raise UnauthorizedError("Authentication failed") from e

    role = decoded.get("role") or UserRole.USER.value
    email = decoded.get("email")
    return AuthResponse(
        message="Login successful",
        user=UserPayload(uid=decoded["uid"], email=email, role=role),
        token=tokens.issue(decoded["uid"], email, role),
    )


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest):
    # The Firebase client SDK sends the reset mail; answer the same way for
    # every address so the endpoint does not reveal which accounts exist.
    logger.info("Password reset requested")
    return MessageResponse(message="Password reset instructions sent to email")


@router.get("/verify")
def verify_token(user: AuthUser = Depends(get_current_user)):
    return {"message": "Token is valid", "user": user.as_dict()}


@router.get("/me")
def me(
    user: AuthUser = Depends(get_current_user),
    identity: IdentityProvider = Depends(get_identity_provider),
    schools: SchoolService = Depends(get_school_service),
):
    profile = user.as_dict()
    try:
        profile["displayName"] = identity.get_user(user.uid).display_name
    except UserNotFoundError:
        profile["displayName"] = None
    except IdentityError as e:
        raise ApiError("Failed to load user profile") from e
    return {"user": profile, "school": schools.find_school(user.uid)}
