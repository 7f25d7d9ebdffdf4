"""Login, refresh, logout and password change orchestration.

Each login mints one session id (uuid4) up front and uses it for the access
token, the refresh token and the auth_sessions row, so a token can never exist
without the row that validates it. Refresh reuses the row's id.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import (
    AccountLockedError,
    AuthenticationError,
    AuthorizationError,
    InternalError,
    ValidationError,
)
from app.core.security import (
    REFRESH_TOKEN_TYPE,
    InvalidTokenError,
    access_token_ttl,
    create_access_token,
    create_refresh_token,
    hash_password,
    refresh_token_ttl,
    verify_password,
    verify_token,
)
from app.models import User, UserRole
from app.schemas.auth import AuthTokens
from app.services.auth_sessions import (
    AuthSessionData,
    create_auth_session,
    delete_all_user_sessions,
    delete_auth_session,
    find_active_session_by_refresh_token,
    rotate_session_tokens,
)
from app.services.lockout import is_account_locked, record_failed_login, reset_login_attempts
from app.services.session_manager import SessionManager

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NIK_RE = re.compile(r"^\d{16}$")

INVALID_CREDENTIALS = "INVALID_CREDENTIALS"


@dataclass(frozen=True)
class ClientInfo:
    """Where a login came from; stored on the session row."""

    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class IssuedTokens:
    session_id: uuid.UUID
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime

    def to_schema(self) -> AuthTokens:
        return AuthTokens(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            token_type="Bearer",
            expires_in=int(access_token_ttl().total_seconds()),
            expires_at=self.access_expires_at,
        )


@dataclass(frozen=True)
class LoginResult:
    user: User
    tokens: IssuedTokens


def parse_identifier(identifier: str) -> tuple[str, str]:
    """Classify an admin login identifier as ("email", v) or ("nik", v)."""
    value = (identifier or "").strip()
    if _EMAIL_RE.match(value):
        return "email", value.lower()
    if _NIK_RE.match(value):
        return "nik", value
    raise ValidationError(
        "Invalid identifier format",
        code=INVALID_CREDENTIALS,
        field="identifier",
        detail="Please provide a valid NIK (16 digits) or email address",
    )


def issue_token_pair(user: User, session_id: uuid.UUID) -> IssuedTokens:
    """Sign an access/refresh pair that both carry session_id."""
    now = datetime.now(UTC)
    access = create_access_token(
        {
            "sub": user.id,
            "role": user.role,
            "nik": user.nik,
            "email": user.email,
            "session_id": session_id,
        }
    )
    refresh = create_refresh_token(user.id, session_id)
    return IssuedTokens(
        session_id=session_id,
        access_token=access,
        refresh_token=refresh,
        access_expires_at=now + access_token_ttl(),
        refresh_expires_at=now + refresh_token_ttl(),
    )


def _ensure_can_login(user: User) -> None:
    if is_account_locked(user):
        raise AccountLockedError(
            "Account is locked",
            field="account",
            detail="Account is locked due to too many failed login attempts. Try again later.",
        )
    if not user.is_active:
        raise AuthenticationError(
            "Account is inactive",
            code="ACCOUNT_INACTIVE",
            field="account",
            detail="Your account has been deactivated",
        )


def _start_session(db: Session, user: User, client: ClientInfo) -> LoginResult:
    session_id = uuid.uuid4()
    tokens = issue_token_pair(user, session_id)
    create_auth_session(
        db,
        AuthSessionData(
            id=session_id,
            user_id=user.id,
            token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=tokens.refresh_expires_at,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        ),
    )
    reset_login_attempts(db, user.id)
    SessionManager(db).limit_user_sessions(
        user.id, get_settings().MAX_ACTIVE_SESSIONS_PER_USER
    )
    db.refresh(user)
    logger.info(
        "Login succeeded",
        extra={"user_id": str(user.id), "role": user.role, "session_id": str(session_id)},
    )
    return LoginResult(user=user, tokens=tokens)


def admin_login(
    db: Session, identifier: str, password: str, client: ClientInfo
) -> LoginResult:
    """Authenticate an admin by email/NIK and password."""
    kind, value = parse_identifier(identifier)
    column = User.email if kind == "email" else User.nik
    user = (
        db.query(User)
        .filter(column == value, User.role == UserRole.ADMIN.value)
        .first()
    )
    if user is None:
        raise AuthenticationError(
            "Invalid credentials",
            code=INVALID_CREDENTIALS,
            field="credentials",
            detail="Invalid identifier or user is not an admin",
        )
    _ensure_can_login(user)
    if not user.password_hash:
        raise InternalError(
            "Admin account not properly configured",
            code="ADMIN_PASSWORD_REQUIRED",
            field="password",
        )
    if not verify_password(user.password_hash, password):
        locked = record_failed_login(db, user)
        logger.warning(
            "Admin login failed: wrong password",
            extra={"user_id": str(user.id), "locked": locked},
        )
        raise AuthenticationError(
            "Invalid credentials",
            code=INVALID_CREDENTIALS,
            field="password",
            detail="Incorrect password",
        )
    return _start_session(db, user, client)


def participant_login(db: Session, phone: str, client: ClientInfo) -> LoginResult:
    """Authenticate a participant by registered phone number (no password)."""
    phone = (phone or "").strip()
    if not phone:
        raise ValidationError(
            "Phone number is required",
            code=INVALID_CREDENTIALS,
            field="phone",
            detail="Please provide a valid phone number",
        )
    user = (
        db.query(User)
        .filter(User.phone == phone, User.role == UserRole.PARTICIPANT.value)
        .first()
    )
    if user is None:
        raise AuthenticationError(
            "Invalid credentials",
            code=INVALID_CREDENTIALS,
            field="credentials",
            detail="No participant found with provided phone number",
        )
    _ensure_can_login(user)
    return _start_session(db, user, client)


def refresh_tokens(db: Session, refresh_token: str) -> IssuedTokens:
    """Exchange a refresh token for a new pair bound to the same session id."""
    try:
        claims = verify_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
    except InvalidTokenError as e:
        raise AuthenticationError(
            "Invalid refresh token",
            code="INVALID_TOKEN",
            field="refresh_token",
            detail="Refresh token is invalid or expired",
        ) from e

    session = find_active_session_by_refresh_token(db, refresh_token)
    if session is None or str(session.id) != claims["session_id"]:
        raise AuthenticationError(
            "Session not found",
            code="SESSION_NOT_FOUND",
            field="session",
            detail="Refresh token session not found or expired",
        )

    user = db.query(User).filter(User.id == session.user_id).first()
    if user is None or not user.is_active:
        raise AuthenticationError(
            "User not found or inactive",
            code="USER_NOT_FOUND",
            field="user",
        )

    tokens = issue_token_pair(user, session.id)
    rotate_session_tokens(
        db,
        session,
        token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_at=tokens.refresh_expires_at,
    )
    return tokens


def logout(
    db: Session, user_id: uuid.UUID, session_id: uuid.UUID, all_devices: bool
) -> int:
    """Delete the current session, or every session of the user; returns rows removed."""
    if all_devices:
        return delete_all_user_sessions(db, user_id)
    return delete_auth_session(db, session_id)


def change_password(
    db: Session, user: User, current_password: str, new_password: str
) -> int:
    """
    Replace an admin's password and revoke every session they hold.

    Returns the number of sessions removed.
    """
    if user.role != UserRole.ADMIN.value:
        raise AuthorizationError(
            "Access denied",
            field="authorization",
            detail="Only admin users can change password",
        )
    if not verify_password(user.password_hash, current_password):
        raise ValidationError(
            "Invalid current password",
            code=INVALID_CREDENTIALS,
            field="current_password",
            detail="Current password is incorrect",
        )
    user.password_hash = hash_password(new_password)
    db.commit()
    revoked = delete_all_user_sessions(db, user.id)
    logger.info(
        "Password changed; all sessions revoked",
        extra={"user_id": str(user.id), "sessions_deleted": revoked},
    )
    return revoked
