"""Per-request authentication and authorization dependencies.

authenticate_user walks a request through
NoToken -> TokenPresent -> TokenVerified -> SessionValidated -> UserLoaded
-> UserActive -> Authorized; the first failing step raises and the route never
runs. optional_auth runs the same steps but yields None instead of raising.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db, get_optional_db
from app.core.errors import AppError, AuthenticationError, AuthorizationError
from app.core.security import ACCESS_TOKEN_TYPE, InvalidTokenError, verify_token
from app.models import User, UserRole
from app.services.auth import ClientInfo
from app.services.auth_sessions import update_session_last_used, validate_session

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    """What a successful authentication attaches to the request."""

    user: User
    session_id: uuid.UUID

    @property
    def is_admin(self) -> bool:
        return self.user.role == UserRole.ADMIN.value


def client_info(request: Request) -> ClientInfo:
    """Best-effort caller address and user agent for the session row."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = (
        request.headers.get("CF-Connecting-IP")
        or forwarded.split(",")[0].strip()
        or (request.client.host if request.client else None)
        or "unknown"
    )
    return ClientInfo(
        ip_address=ip[:45],
        user_agent=request.headers.get("User-Agent") or "unknown",
    )


def _extract_bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header or not header.startswith(BEARER_PREFIX):
        raise AuthenticationError(
            "Authentication required",
            code="MISSING_TOKEN",
            field="authorization",
            detail="Bearer token is required",
        )
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError(
            "Invalid token format",
            code="EMPTY_TOKEN",
            field="authorization",
            detail="Token cannot be empty",
        )
    return token


def _invalid_token() -> AuthenticationError:
    return AuthenticationError(
        "Invalid or expired token",
        code="INVALID_TOKEN",
        field="authorization",
        detail="Token verification failed",
    )


def _resolve_auth(db: Session, token: str) -> AuthContext:
    try:
        claims = verify_token(token, expected_type=ACCESS_TOKEN_TYPE)
    except InvalidTokenError as e:
        raise _invalid_token() from e

    try:
        user_id = uuid.UUID(str(claims["sub"]))
        session_id = uuid.UUID(str(claims["session_id"]))
    except (KeyError, ValueError) as e:
        raise _invalid_token() from e

    if not validate_session(db, session_id, user_id):
        raise AuthenticationError(
            "Session expired or invalid",
            code="SESSION_EXPIRED",
            field="session",
            detail="Please login again",
        )

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationError(
            "User not found",
            code="USER_NOT_FOUND",
            field="user",
            detail="User associated with token does not exist",
        )
    if not user.is_active:
        raise AuthorizationError(
            "Account is deactivated",
            code="ACCOUNT_DEACTIVATED",
            field="user",
            detail="Your account has been deactivated",
        )
    return AuthContext(user=user, session_id=session_id)


def _attach(
    request: Request, background_tasks: BackgroundTasks, db: Session, ctx: AuthContext
) -> AuthContext:
    request.state.auth = ctx
    # Runs after the response is sent; never fails the request.
    background_tasks.add_task(update_session_last_used, db.get_bind(), ctx.session_id)
    return ctx


def authenticate_user(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
) -> AuthContext:
    """Dependency: require a valid Bearer access token backed by an active session."""
    token = _extract_bearer_token(request)
    ctx = _resolve_auth(db, token)
    return _attach(request, background_tasks, db, ctx)


def optional_auth(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Annotated[Session | None, Depends(get_optional_db)],
) -> AuthContext | None:
    """Dependency: AuthContext when the caller is authenticated, else None. Never raises."""
    if db is None:
        return None
    try:
        token = _extract_bearer_token(request)
        ctx = _resolve_auth(db, token)
    except AppError:
        return None
    except SQLAlchemyError:
        logger.warning("Optional authentication skipped after database error", exc_info=True)
        return None
    return _attach(request, background_tasks, db, ctx)


CurrentAuth = Annotated[AuthContext, Depends(authenticate_user)]
OptionalAuth = Annotated[AuthContext | None, Depends(optional_auth)]


def require_role(*roles: str) -> Callable[[AuthContext], AuthContext]:
    """Build a dependency that admits only users whose role is in roles."""
    allowed = tuple(str(r) for r in roles)

    def _require(auth: CurrentAuth) -> AuthContext:
        if auth.user.role not in allowed:
            raise AuthorizationError(
                "Access denied",
                code="INSUFFICIENT_PRIVILEGES",
                field="authorization",
                detail=f"Required role: {' or '.join(allowed)}",
            )
        return auth

    return _require


def require_admin(auth: CurrentAuth) -> AuthContext:
    """Dependency: require an authenticated admin. Raises 403 for everyone else."""
    if not auth.is_admin:
        raise AuthorizationError(
            "Access denied",
            code="INSUFFICIENT_PRIVILEGES",
            field="authorization",
            detail="Admin privileges required",
        )
    return auth


def require_ownership_or_admin(
    param: str = "user_id",
) -> Callable[[Request, AuthContext], AuthContext]:
    """Build a dependency admitting admins, or the user named by path parameter `param`."""

    def _require(request: Request, auth: CurrentAuth) -> AuthContext:
        if auth.is_admin:
            return auth
        target = request.path_params.get(param)
        if target is None or str(target).lower() != str(auth.user.id).lower():
            raise AuthorizationError(
                "Access denied",
                code="INSUFFICIENT_PRIVILEGES",
                field="authorization",
                detail="You can only access your own data",
            )
        return auth

    return _require


AdminAuth = Annotated[AuthContext, Depends(require_admin)]
