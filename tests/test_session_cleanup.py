"""Tests for the scheduled auth session cleanup."""

import unittest
import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

from app import session_cleanup
from app.models import AuthSession
from app.services.session_cleanup import run_session_cleanup
from tests.utils import add_participant, make_engine, make_session_factory


class TestCleanupDisabled(unittest.TestCase):
    """When SESSION_CLEANUP_ENABLED is False, run_session_cleanup does nothing."""

    def test_returns_zero_and_does_not_query(self) -> None:
        settings = MagicMock()
        settings.SESSION_CLEANUP_ENABLED = False
        settings.SESSION_INACTIVE_DAYS = 30
        session = MagicMock()
        report = run_session_cleanup(session, settings)
        self.assertEqual(report["expired_cleaned"], 0)
        self.assertEqual(report["inactive_cleaned"], 0)
        session.query.assert_not_called()


class TestCleanupNothingToDo(unittest.TestCase):
    def test_returns_zero(self) -> None:
        settings = MagicMock()
        settings.SESSION_CLEANUP_ENABLED = True
        settings.SESSION_INACTIVE_DAYS = 30
        session = MagicMock()
        session.query.return_value.filter.return_value.delete.return_value = 0
        session.query.return_value.count.return_value = 0
        session.query.return_value.filter.return_value.count.return_value = 0
        report = run_session_cleanup(session, settings)
        self.assertEqual(report["expired_cleaned"], 0)
        self.assertEqual(report["inactive_cleaned"], 0)
        self.assertEqual(report["session_stats"], {"total": 0, "active": 0, "expired": 0})
        self.assertEqual(session.commit.call_count, 2)


class TestCleanupAgainstDatabase(unittest.TestCase):
    """Expired, idle and revoked rows go; live ones stay."""

    def setUp(self) -> None:
        self.engine = make_engine()
        self.db = make_session_factory(self.engine)()
        self.user = add_participant(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def _add(self, *, expires_at, last_used, is_active=True) -> uuid.UUID:
        session_id = uuid.uuid4()
        self.db.add(
            AuthSession(
                id=session_id,
                user_id=self.user.id,
                token=f"a-{session_id}",
                refresh_token=f"r-{session_id}",
                expires_at=expires_at,
                last_used=last_used,
                is_active=is_active,
            )
        )
        self.db.commit()
        return session_id

    def test_removes_stale_sessions(self) -> None:
        now = datetime.now(UTC)
        live = self._add(expires_at=now + timedelta(days=5), last_used=now)
        self._add(expires_at=now - timedelta(hours=1), last_used=now - timedelta(days=7))
        self._add(expires_at=now + timedelta(days=5), last_used=now - timedelta(days=45))
        self._add(expires_at=now + timedelta(days=5), last_used=now, is_active=False)

        settings = MagicMock()
        settings.SESSION_CLEANUP_ENABLED = True
        settings.SESSION_INACTIVE_DAYS = 30
        report = run_session_cleanup(self.db, settings)

        self.assertEqual(report["expired_cleaned"], 1)
        self.assertEqual(report["inactive_cleaned"], 2)
        self.assertEqual([s.id for s in self.db.query(AuthSession).all()], [live])

        again = run_session_cleanup(self.db, settings)
        self.assertEqual(again["expired_cleaned"], 0)
        self.assertEqual(again["inactive_cleaned"], 0)


class TestCleanupEntrypoint(unittest.TestCase):
    def test_exits_nonzero_without_database(self) -> None:
        with patch.object(session_cleanup, "is_database_configured", return_value=False):
            self.assertEqual(session_cleanup.main(), 1)

    def test_runs_cleanup(self) -> None:
        db = MagicMock()
        report = {"expired_cleaned": 2, "inactive_cleaned": 1, "session_stats": {}}
        with (
            patch.object(session_cleanup, "is_database_configured", return_value=True),
            patch.object(session_cleanup, "SessionLocal", return_value=db),
            patch.object(session_cleanup, "run_session_cleanup", return_value=report) as run,
        ):
            self.assertEqual(session_cleanup.main(), 0)
        run.assert_called_once()
        db.close.assert_called_once()

    def test_failure_returns_nonzero(self) -> None:
        db = MagicMock()
        with (
            patch.object(session_cleanup, "is_database_configured", return_value=True),
            patch.object(session_cleanup, "SessionLocal", return_value=db),
            patch.object(session_cleanup, "run_session_cleanup", side_effect=RuntimeError("boom")),
        ):
            self.assertEqual(session_cleanup.main(), 1)
        db.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
