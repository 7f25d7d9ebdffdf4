"""Persistence helpers for auth_sessions rows (one row per login)."""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session

from app.models import AuthSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSessionData:
    """Values for a new auth session; id is minted by the caller."""

    id: uuid.UUID
    user_id: uuid.UUID
    token: str
    refresh_token: str
    expires_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None


def create_auth_session(db: Session, data: AuthSessionData) -> AuthSession:
    """Insert an active session row using the caller-supplied id."""
    now = datetime.now(UTC)
    row = AuthSession(
        id=data.id,
        user_id=data.user_id,
        token=data.token,
        refresh_token=data.refresh_token,
        expires_at=data.expires_at,
        ip_address=data.ip_address,
        user_agent=data.user_agent,
        is_active=True,
        created_at=now,
        updated_at=now,
        last_used=now,
    )
    db.add(row)
    db.commit()
    return row


def delete_auth_session(db: Session, session_id: uuid.UUID) -> int:
    """Remove exactly one session row; returns the number of rows deleted."""
    deleted = (
        db.query(AuthSession)
        .filter(AuthSession.id == session_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def delete_all_user_sessions(db: Session, user_id: uuid.UUID) -> int:
    """Remove every session row owned by user_id (logout everywhere)."""
    deleted = (
        db.query(AuthSession)
        .filter(AuthSession.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info(
            "Deleted all auth sessions for user",
            extra={"user_id": str(user_id), "sessions_deleted": deleted},
        )
    return deleted


def validate_session(db: Session, session_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """True iff the row exists, belongs to user_id, is active and has not expired."""
    found = (
        db.query(AuthSession.id)
        .filter(
            AuthSession.id == session_id,
            AuthSession.user_id == user_id,
            AuthSession.is_active.is_(True),
            AuthSession.expires_at > datetime.now(UTC),
        )
        .first()
    )
    return found is not None


def find_active_session_by_refresh_token(
    db: Session, refresh_token: str
) -> AuthSession | None:
    return (
        db.query(AuthSession)
        .filter(
            AuthSession.refresh_token == refresh_token,
            AuthSession.is_active.is_(True),
        )
        .first()
    )


def rotate_session_tokens(
    db: Session,
    session: AuthSession,
    token: str,
    refresh_token: str,
    expires_at: datetime,
) -> AuthSession:
    """Store a freshly issued token pair on the same row (session id unchanged)."""
    now = datetime.now(UTC)
    session.token = token
    session.refresh_token = refresh_token
    session.expires_at = expires_at
    session.last_used = now
    session.updated_at = now
    db.commit()
    return session


def update_session_last_used(bind: Engine | Connection, session_id: uuid.UUID) -> None:
    """
    Best-effort last_used bump on its own short-lived session.

    Runs after the response (FastAPI background task); failures are logged
    and never raised.
    """
    try:
        with Session(bind=bind) as db:
            db.query(AuthSession).filter(AuthSession.id == session_id).update(
                {AuthSession.last_used: datetime.now(UTC)},
                synchronize_session=False,
            )
            db.commit()
    except Exception:
        logger.warning(
            "Failed to update session last_used",
            extra={"session_id": str(session_id)},
            exc_info=True,
        )
