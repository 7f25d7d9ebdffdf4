"""Tests for the auth_sessions store and SessionManager housekeeping."""

import uuid
import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from app.models import AuthSession
from app.services.auth_sessions import (
    AuthSessionData,
    create_auth_session,
    delete_all_user_sessions,
    delete_auth_session,
    find_active_session_by_refresh_token,
    rotate_session_tokens,
    update_session_last_used,
    validate_session,
)
from app.services.session_manager import SessionManager
from tests.utils import add_admin, add_participant, make_engine, make_session_factory


def _new_session(db, user_id, *, expires_in=timedelta(days=7), **overrides) -> AuthSession:
    session_id = overrides.pop("id", uuid.uuid4())
    row = create_auth_session(
        db,
        AuthSessionData(
            id=session_id,
            user_id=user_id,
            token=f"access-{session_id}",
            refresh_token=f"refresh-{session_id}",
            expires_at=datetime.now(UTC) + expires_in,
            ip_address="10.0.0.1",
            user_agent="tests",
        ),
    )
    for key, value in overrides.items():
        setattr(row, key, value)
    db.commit()
    return row


class SessionStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.db = make_session_factory(self.engine)()
        self.admin = add_admin(self.db)
        self.participant = add_participant(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()


class TestSessionStore(SessionStoreTestCase):
    def test_create_uses_supplied_id(self) -> None:
        session_id = uuid.uuid4()
        row = _new_session(self.db, self.admin.id, id=session_id)
        self.assertEqual(row.id, session_id)
        self.assertTrue(row.is_active)
        self.assertTrue(validate_session(self.db, session_id, self.admin.id))

    def test_validate_unknown_session(self) -> None:
        self.assertFalse(validate_session(self.db, uuid.uuid4(), self.admin.id))

    def test_validate_rejects_expired(self) -> None:
        row = _new_session(self.db, self.admin.id, expires_in=timedelta(seconds=-1))
        self.assertFalse(validate_session(self.db, row.id, self.admin.id))

    def test_validate_rejects_revoked(self) -> None:
        row = _new_session(self.db, self.admin.id, is_active=False)
        self.assertFalse(validate_session(self.db, row.id, self.admin.id))

    def test_validate_rejects_other_owner(self) -> None:
        row = _new_session(self.db, self.admin.id)
        self.assertFalse(validate_session(self.db, row.id, self.participant.id))
        self.assertTrue(validate_session(self.db, row.id, self.admin.id))

    def test_delete_one(self) -> None:
        keep = _new_session(self.db, self.admin.id)
        gone_id = _new_session(self.db, self.admin.id).id
        self.assertEqual(delete_auth_session(self.db, gone_id), 1)
        self.assertEqual(delete_auth_session(self.db, gone_id), 0)
        self.assertTrue(validate_session(self.db, keep.id, self.admin.id))

    def test_delete_all_for_user_only(self) -> None:
        _new_session(self.db, self.admin.id)
        _new_session(self.db, self.admin.id)
        other = _new_session(self.db, self.participant.id)
        self.assertEqual(delete_all_user_sessions(self.db, self.admin.id), 2)
        self.assertEqual(self.db.query(AuthSession).count(), 1)
        self.assertTrue(validate_session(self.db, other.id, self.participant.id))

    def test_rotate_keeps_id(self) -> None:
        row = _new_session(self.db, self.admin.id)
        original_id = row.id
        found = find_active_session_by_refresh_token(self.db, row.refresh_token)
        self.assertEqual(found.id, original_id)
        rotate_session_tokens(
            self.db,
            found,
            token="new-access",
            refresh_token="new-refresh",
            expires_at=datetime.now(UTC) + timedelta(days=7),
        )
        self.assertIsNone(find_active_session_by_refresh_token(self.db, f"refresh-{original_id}"))
        self.assertEqual(
            find_active_session_by_refresh_token(self.db, "new-refresh").id, original_id
        )

    def test_refresh_lookup_ignores_revoked(self) -> None:
        row = _new_session(self.db, self.admin.id, is_active=False)
        self.assertIsNone(find_active_session_by_refresh_token(self.db, row.refresh_token))

    def test_update_last_used(self) -> None:
        old = datetime.now(UTC) - timedelta(days=2)
        row = _new_session(self.db, self.admin.id, last_used=old)
        update_session_last_used(self.engine, row.id)
        self.db.expire_all()
        refreshed = self.db.get(AuthSession, row.id)
        self.assertGreater(refreshed.last_used.replace(tzinfo=UTC), old)

    def test_update_last_used_swallows_errors(self) -> None:
        with patch("app.services.auth_sessions.Session", side_effect=RuntimeError("db down")):
            with self.assertLogs("app.services.auth_sessions", level="WARNING"):
                update_session_last_used(self.engine, uuid.uuid4())


class TestSessionManager(SessionStoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.manager = SessionManager(self.db)

    def test_active_sessions_most_recent_first(self) -> None:
        now = datetime.now(UTC)
        older = _new_session(self.db, self.admin.id, last_used=now - timedelta(hours=2))
        newer = _new_session(self.db, self.admin.id, last_used=now - timedelta(minutes=1))
        _new_session(self.db, self.admin.id, is_active=False)
        _new_session(self.db, self.admin.id, expires_in=timedelta(seconds=-1))
        ids = [s.id for s in self.manager.get_user_active_sessions(self.admin.id)]
        self.assertEqual(ids, [newer.id, older.id])

    def test_revoke_requires_ownership(self) -> None:
        row = _new_session(self.db, self.admin.id)
        self.assertFalse(self.manager.revoke_session(row.id, self.participant.id))
        self.assertTrue(validate_session(self.db, row.id, self.admin.id))
        self.assertTrue(self.manager.revoke_session(row.id, self.admin.id))
        self.assertFalse(validate_session(self.db, row.id, self.admin.id))
        self.assertFalse(self.manager.revoke_session(row.id, self.admin.id))

    def test_revoke_others_keeps_current(self) -> None:
        current = _new_session(self.db, self.admin.id)
        _new_session(self.db, self.admin.id)
        _new_session(self.db, self.admin.id)
        other_user = _new_session(self.db, self.participant.id)
        self.assertEqual(self.manager.revoke_other_user_sessions(self.admin.id, current.id), 2)
        self.assertTrue(validate_session(self.db, current.id, self.admin.id))
        self.assertTrue(validate_session(self.db, other_user.id, self.participant.id))
        self.assertEqual(len(self.manager.get_user_active_sessions(self.admin.id)), 1)

    def test_limit_user_sessions_drops_least_recent(self) -> None:
        now = datetime.now(UTC)
        rows = [
            _new_session(self.db, self.admin.id, last_used=now - timedelta(minutes=m))
            for m in (40, 30, 20, 10)
        ]
        self.assertEqual(self.manager.limit_user_sessions(self.admin.id, 3), 1)
        remaining = {s.id for s in self.manager.get_user_active_sessions(self.admin.id)}
        self.assertEqual(remaining, {r.id for r in rows[1:]})
        self.assertEqual(self.manager.limit_user_sessions(self.admin.id, 3), 0)

    def test_cleanup_expired(self) -> None:
        _new_session(self.db, self.admin.id, expires_in=timedelta(seconds=-1))
        live = _new_session(self.db, self.admin.id)
        self.assertEqual(self.manager.cleanup_expired_sessions(), 1)
        self.assertEqual([s.id for s in self.db.query(AuthSession).all()], [live.id])

    def test_cleanup_inactive_and_revoked(self) -> None:
        now = datetime.now(UTC)
        _new_session(self.db, self.admin.id, last_used=now - timedelta(days=31))
        _new_session(self.db, self.admin.id, is_active=False)
        live = _new_session(self.db, self.admin.id, last_used=now - timedelta(days=1))
        self.assertEqual(self.manager.cleanup_inactive_sessions(30), 2)
        self.assertEqual([s.id for s in self.db.query(AuthSession).all()], [live.id])

    def test_stats_and_maintenance(self) -> None:
        _new_session(self.db, self.admin.id, expires_in=timedelta(seconds=-1))
        _new_session(self.db, self.admin.id)
        _new_session(self.db, self.participant.id, is_active=False)
        self.assertEqual(
            self.manager.get_session_stats(), {"total": 3, "active": 1, "expired": 1}
        )
        report = self.manager.perform_maintenance_cleanup(30)
        self.assertEqual(report["expired_cleaned"], 1)
        self.assertEqual(report["inactive_cleaned"], 1)
        self.assertEqual(report["session_stats"], {"total": 1, "active": 1, "expired": 0})


if __name__ == "__main__":
    unittest.main()
