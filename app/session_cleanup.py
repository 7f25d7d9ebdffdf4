"""
CLI entrypoint for the auth session cleanup job. Run from cron, e.g.:

  python -m app.session_cleanup

Or daily: 0 3 * * * cd /path/to/psikotes-auth && .venv/bin/python -m app.session_cleanup
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal, is_database_configured
from app.services.session_cleanup import run_session_cleanup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run session cleanup against the configured database."""
    if not is_database_configured():
        logger.error("DATABASE_URL is not set; nothing to clean.")
        return 1
    settings = get_settings()
    db = SessionLocal()
    try:
        report = run_session_cleanup(db, settings)
        logger.info(
            "Session cleanup completed: expired_cleaned=%s, inactive_cleaned=%s",
            report["expired_cleaned"],
            report["inactive_cleaned"],
        )
        return 0
    except Exception as e:
        logger.exception("Session cleanup failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
