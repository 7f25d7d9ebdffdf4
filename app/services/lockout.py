"""Failed-login counting and time-based account lockout."""

import logging
import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from app.models import User

logger = logging.getLogger(__name__)

MAX_LOGIN_ATTEMPTS = 5
ACCOUNT_LOCKOUT_DURATION = timedelta(minutes=30)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def increment_login_attempts(db: Session, user_id: uuid.UUID) -> int:
    """Atomically bump login_attempts in SQL and return the new count."""
    db.query(User).filter(User.id == user_id).update(
        {User.login_attempts: User.login_attempts + 1},
        synchronize_session=False,
    )
    db.commit()
    attempts = db.query(User.login_attempts).filter(User.id == user_id).scalar()
    return int(attempts or 0)


def reset_login_attempts(db: Session, user_id: uuid.UUID) -> None:
    """Zero the counter, clear any lock and stamp last_login. Safe to repeat."""
    db.query(User).filter(User.id == user_id).update(
        {
            User.login_attempts: 0,
            User.locked_until: None,
            User.last_login: datetime.now(UTC),
        },
        synchronize_session=False,
    )
    db.commit()


def lock_user_account(db: Session, user_id: uuid.UUID) -> datetime:
    """Set locked_until to now + ACCOUNT_LOCKOUT_DURATION and return it."""
    locked_until = datetime.now(UTC) + ACCOUNT_LOCKOUT_DURATION
    db.query(User).filter(User.id == user_id).update(
        {User.locked_until: locked_until},
        synchronize_session=False,
    )
    db.commit()
    logger.warning(
        "Account locked after repeated failed logins",
        extra={"user_id": str(user_id), "locked_until": locked_until.isoformat()},
    )
    return locked_until


def is_account_locked(user: User, now: datetime | None = None) -> bool:
    """True iff locked_until is set and still in the future."""
    if user.locked_until is None:
        return False
    now = now or datetime.now(UTC)
    return _as_utc(user.locked_until) > now


def record_failed_login(db: Session, user: User) -> bool:
    """
    Count a failed login and lock the account once MAX_LOGIN_ATTEMPTS is reached.

    Returns True when the account is locked as a result. Errors from the lock
    write propagate so a failed lock never turns into an allowed login.
    """
    attempts = increment_login_attempts(db, user.id)
    if attempts >= MAX_LOGIN_ATTEMPTS:
        lock_user_account(db, user.id)
        return True
    return False
