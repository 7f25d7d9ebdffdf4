"""Login, token refresh, profile, logout and password change endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from app.api.v1.dependencies import (
    AdminAuth,
    CurrentAuth,
    OptionalAuth,
    client_info,
)
from app.core.database import get_db
from app.schemas.auth import (
    AdminLoginRequest,
    AuthTokens,
    ChangePasswordRequest,
    LoginData,
    LogoutRequest,
    ParticipantLoginRequest,
    RefreshTokenRequest,
    UserProfile,
)
from app.schemas.common import ApiResponse
from app.schemas.health import AuthHealthData
from app.services import auth as auth_service

logger = logging.getLogger(__name__)
router = APIRouter()

AUTH_ENDPOINTS = {
    "admin_login": "POST /auth/admin/login",
    "participant_login": "POST /auth/participant/login",
    "refresh_token": "POST /auth/refresh",
    "profile": "GET /auth/me",
    "logout": "POST /auth/logout",
    "change_password": "PUT /auth/change-password",
    "get_sessions": "GET /auth/sessions",
    "revoke_session": "DELETE /auth/sessions/{session_id}",
    "revoke_other_sessions": "POST /auth/sessions/revoke-others",
}


@router.post("/admin/login", response_model=ApiResponse[LoginData])
def admin_login(
    body: AdminLoginRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[LoginData]:
    """
    Authenticate an admin with email or NIK and password.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    result = auth_service.admin_login(
        db, body.identifier, body.password, client_info(request)
    )
    return ApiResponse[LoginData](
        message="Admin login successful",
        data=LoginData(
            user=UserProfile.model_validate(result.user),
            tokens=result.tokens.to_schema(),
        ),
    )


@router.post("/participant/login", response_model=ApiResponse[LoginData])
def participant_login(
    body: ParticipantLoginRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[LoginData]:
    """Authenticate a test participant by registered phone number."""
    result = auth_service.participant_login(db, body.phone, client_info(request))
    return ApiResponse[LoginData](
        message="Participant login successful",
        data=LoginData(
            user=UserProfile.model_validate(result.user),
            tokens=result.tokens.to_schema(),
        ),
    )


@router.post("/refresh", response_model=ApiResponse[AuthTokens])
def refresh(
    body: RefreshTokenRequest,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[AuthTokens]:
    """Exchange a refresh token for a new token pair on the same session."""
    tokens = auth_service.refresh_tokens(db, body.refresh_token)
    return ApiResponse[AuthTokens](
        message="Token refreshed successfully",
        data=tokens.to_schema(),
    )


@router.get("/me", response_model=ApiResponse[UserProfile])
def me(auth: CurrentAuth) -> ApiResponse[UserProfile]:
    return ApiResponse[UserProfile](
        message="Profile retrieved successfully",
        data=UserProfile.model_validate(auth.user),
    )


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    auth: CurrentAuth,
    db: Annotated[Session, Depends(get_db)],
    body: Annotated[LogoutRequest | None, Body()] = None,
) -> ApiResponse[None]:
    """Log out the current session, or every session with {"all_devices": true}."""
    all_devices = bool(body and body.all_devices)
    auth_service.logout(db, auth.user.id, auth.session_id, all_devices)
    message = (
        "Logged out from all devices successfully"
        if all_devices
        else "Logged out successfully"
    )
    return ApiResponse[None](message=message)


@router.put("/change-password", response_model=ApiResponse[None])
def change_password(
    body: ChangePasswordRequest,
    auth: AdminAuth,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[None]:
    """Change the admin's password; every session of the user is revoked."""
    auth_service.change_password(db, auth.user, body.current_password, body.new_password)
    return ApiResponse[None](
        message="Password changed successfully. You have been logged out from all devices."
    )


@router.get("/health", response_model=ApiResponse[AuthHealthData])
def auth_health(auth: OptionalAuth) -> ApiResponse[AuthHealthData]:
    """Auth service liveness; reports whether the caller's token is currently valid."""
    return ApiResponse[AuthHealthData](
        message="Authentication service is healthy",
        data=AuthHealthData(authenticated=auth is not None, endpoints=AUTH_ENDPOINTS),
    )
