"""Password hashing and JWT creation/verification for authentication."""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# Claims every token must carry to be trusted at all.
REQUIRED_CLAIMS = ("sub", "session_id", "type", "exp", "iat")


class InvalidTokenError(Exception):
    """Token signature, expiry, payload or type check failed."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)
        self.message = message


def access_token_ttl() -> timedelta:
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def refresh_token_ttl() -> timedelta:
    return timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)


def _secret(secret: str | None) -> str:
    return secret if secret is not None else settings.JWT_SECRET.get_secret_value()


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(hashed: str | None, plain_password: str) -> bool:
    """Verify a plain password against a stored hash. Never raises."""
    if not hashed or plain_password is None:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(claims: dict[str, Any], secret: str | None = None) -> str:
    """
    Create a JWT access token.

    claims must contain sub (user id), role and session_id; nik and email are
    optional. iat/exp/type/jti are set here; jti keeps two tokens minted in
    the same second distinct.
    """
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(claims["sub"]),
        "role": claims["role"],
        "nik": claims.get("nik") or "",
        "email": claims.get("email") or "",
        "session_id": str(claims["session_id"]),
        "type": ACCESS_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + access_token_ttl(),
    }
    return jwt.encode(payload, _secret(secret), algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(
    user_id: Any, session_id: Any, secret: str | None = None
) -> str:
    """Create a JWT refresh token bound to a user and an auth session."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "session_id": str(session_id),
        "type": REFRESH_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + refresh_token_ttl(),
    }
    return jwt.encode(payload, _secret(secret), algorithm=settings.JWT_ALGORITHM)


def verify_token(
    token: str,
    secret: str | None = None,
    expected_type: str | None = None,
) -> dict[str, Any]:
    """
    Decode and validate a JWT; return its claims.
    Raises InvalidTokenError on invalid signature, expiry, missing claims or
    when the token type differs from expected_type.
    """
    try:
        payload = jwt.decode(
            token,
            _secret(secret),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token expired") from e
    except jwt.PyJWTError as e:
        raise InvalidTokenError("Invalid token") from e

    if expected_type is not None and payload.get("type") != expected_type:
        raise InvalidTokenError("Unexpected token type")
    return payload
