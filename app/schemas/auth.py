"""Request/response schemas for auth endpoints."""

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128
PHONE_MAX_LEN = 20

_PHONE_RE = re.compile(r"^[0-9+\-\s()]+$")
_PASSWORD_CLASSES = (
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"\d"), "one number"),
    (re.compile(r"[@$!%*?&]"), "one special character (@$!%*?&)"),
)


class AdminLoginRequest(BaseModel):
    """Admin credentials; identifier is an email address or a 16-digit NIK."""

    identifier: str = Field(..., min_length=1, max_length=255, description="Email or NIK")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class ParticipantLoginRequest(BaseModel):
    """Participants identify with their registered phone number only."""

    phone: str = Field(..., min_length=1, max_length=PHONE_MAX_LEN, description="Phone number")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Phone number is required")
        if not _PHONE_RE.match(v):
            raise ValueError("Phone number contains invalid characters")
        return v


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token from login")


class LogoutRequest(BaseModel):
    all_devices: bool = Field(default=False, description="Revoke every session of the user")


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    confirm_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("new_password")
    @classmethod
    def validate_strength(cls, v: str) -> str:
        missing = [label for pattern, label in _PASSWORD_CLASSES if not pattern.search(v)]
        if missing:
            raise ValueError("Password must contain at least " + ", ".join(missing))
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class AuthTokens(BaseModel):
    """Token pair issued by login and refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    expires_at: datetime = Field(..., description="Access token expiry (UTC)")


class UserProfile(BaseModel):
    """Public view of a user (no password hash, no lockout counters)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    role: str
    name: str
    nik: str | None = None
    email: str
    phone: str | None = None
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LoginData(BaseModel):
    user: UserProfile
    tokens: AuthTokens


class SessionInfo(BaseModel):
    """One active login as shown to its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime
    last_used: datetime
    expires_at: datetime
    is_current: bool = False


class SessionListData(BaseModel):
    active_sessions: list[SessionInfo]
    total_sessions: int
    current_session_id: uuid.UUID | None = None


class RevokeOthersData(BaseModel):
    revoked_count: int


class UsersListData(BaseModel):
    """Response data for GET /users (admin only)."""

    users: list[UserProfile]
