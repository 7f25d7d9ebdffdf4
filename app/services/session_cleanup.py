"""Auth session housekeeping: drop expired, idle and revoked sessions."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.services.session_manager import SessionManager

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_session_cleanup(session: Session, settings: "Settings") -> dict[str, object]:
    """
    Delete expired sessions and sessions idle for SESSION_INACTIVE_DAYS.

    Returns the maintenance report (counts plus current stats), or an empty
    report when SESSION_CLEANUP_ENABLED is false. Idempotent: safe to run repeatedly.
    """
    if not settings.SESSION_CLEANUP_ENABLED:
        logger.info("Session cleanup is disabled (SESSION_CLEANUP_ENABLED=false); skipping.")
        return {"expired_cleaned": 0, "inactive_cleaned": 0, "session_stats": None}

    return SessionManager(session).perform_maintenance_cleanup(
        inactive_days=settings.SESSION_INACTIVE_DAYS
    )
