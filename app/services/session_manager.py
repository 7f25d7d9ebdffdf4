"""Listing, revocation and housekeeping of a user's auth sessions."""

import logging
import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from app.models import AuthSession

logger = logging.getLogger(__name__)

DEFAULT_MAX_ACTIVE_SESSIONS = 3
DEFAULT_INACTIVE_DAYS = 30


class SessionManager:
    """Operations over auth_sessions scoped to one DB session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _active_query(self, user_id: uuid.UUID):
        return self.db.query(AuthSession).filter(
            AuthSession.user_id == user_id,
            AuthSession.is_active.is_(True),
            AuthSession.expires_at > datetime.now(UTC),
        )

    def get_user_active_sessions(self, user_id: uuid.UUID) -> list[AuthSession]:
        """Active, unexpired sessions of a user, most recently used first."""
        return (
            self._active_query(user_id)
            .order_by(AuthSession.last_used.desc(), AuthSession.created_at.desc())
            .all()
        )

    def revoke_session(self, session_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """
        Deactivate session_id only if it belongs to user_id.

        Returns False when the session does not exist, is not owned by the
        user or was already revoked.
        """
        updated = (
            self.db.query(AuthSession)
            .filter(
                AuthSession.id == session_id,
                AuthSession.user_id == user_id,
                AuthSession.is_active.is_(True),
            )
            .update(
                {AuthSession.is_active: False, AuthSession.updated_at: datetime.now(UTC)},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated > 0

    def revoke_other_user_sessions(
        self, user_id: uuid.UUID, keep_session_id: uuid.UUID
    ) -> int:
        """Deactivate every active session of user_id except keep_session_id."""
        updated = (
            self.db.query(AuthSession)
            .filter(
                AuthSession.user_id == user_id,
                AuthSession.id != keep_session_id,
                AuthSession.is_active.is_(True),
            )
            .update(
                {AuthSession.is_active: False, AuthSession.updated_at: datetime.now(UTC)},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated

    def limit_user_sessions(
        self, user_id: uuid.UUID, max_sessions: int = DEFAULT_MAX_ACTIVE_SESSIONS
    ) -> int:
        """Keep only the max_sessions most recently used active sessions; returns deleted count."""
        sessions = self.get_user_active_sessions(user_id)
        if len(sessions) <= max_sessions:
            return 0
        stale_ids = [s.id for s in sessions[max_sessions:]]
        deleted = (
            self.db.query(AuthSession)
            .filter(AuthSession.user_id == user_id, AuthSession.id.in_(stale_ids))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info(
            "Trimmed old sessions for user",
            extra={"user_id": str(user_id), "sessions_deleted": deleted},
        )
        return deleted

    def cleanup_expired_sessions(self) -> int:
        deleted = (
            self.db.query(AuthSession)
            .filter(AuthSession.expires_at < datetime.now(UTC))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def cleanup_inactive_sessions(self, days: int = DEFAULT_INACTIVE_DAYS) -> int:
        """Delete sessions unused for more than `days` days, and revoked ones."""
        cutoff = datetime.now(UTC) - timedelta(days=days)
        deleted = (
            self.db.query(AuthSession)
            .filter(
                (AuthSession.last_used < cutoff) | AuthSession.is_active.is_(False)
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def get_session_stats(self) -> dict[str, int]:
        now = datetime.now(UTC)
        total = self.db.query(AuthSession).count()
        active = (
            self.db.query(AuthSession)
            .filter(AuthSession.is_active.is_(True), AuthSession.expires_at > now)
            .count()
        )
        expired = self.db.query(AuthSession).filter(AuthSession.expires_at < now).count()
        return {"total": total, "active": active, "expired": expired}

    def perform_maintenance_cleanup(
        self, inactive_days: int = DEFAULT_INACTIVE_DAYS
    ) -> dict[str, object]:
        """Run every cleanup step and report what was removed plus current stats."""
        expired_cleaned = self.cleanup_expired_sessions()
        inactive_cleaned = self.cleanup_inactive_sessions(inactive_days)
        stats = self.get_session_stats()
        logger.info(
            "Session maintenance: expired_cleaned=%s, inactive_cleaned=%s, stats=%s",
            expired_cleaned,
            inactive_cleaned,
            stats,
        )
        return {
            "expired_cleaned": expired_cleaned,
            "inactive_cleaned": inactive_cleaned,
            "session_stats": stats,
        }
