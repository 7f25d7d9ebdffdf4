"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AdminLoginRequest,
    AuthTokens,
    ChangePasswordRequest,
    LoginData,
    LogoutRequest,
    ParticipantLoginRequest,
    RefreshTokenRequest,
    RevokeOthersData,
    SessionInfo,
    SessionListData,
    UserProfile,
    UsersListData,
)
from app.schemas.common import ApiResponse, ErrorItem
from app.schemas.health import AuthHealthData, HealthResponse

__all__ = [
    "AdminLoginRequest",
    "ApiResponse",
    "AuthHealthData",
    "AuthTokens",
    "ChangePasswordRequest",
    "ErrorItem",
    "HealthResponse",
    "LoginData",
    "LogoutRequest",
    "ParticipantLoginRequest",
    "RefreshTokenRequest",
    "RevokeOthersData",
    "SessionInfo",
    "SessionListData",
    "UserProfile",
    "UsersListData",
]
