"""PostgreSQL connection and session management."""

from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.errors import ServiceUnavailableError

engine = (
    create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )
    if settings.database_configured
    else None
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def is_database_configured() -> bool:
    """True when DATABASE_URL was provided and an engine exists."""
    return engine is not None


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done.

    Raises ServiceUnavailableError (503) when no database is configured.
    """
    if not is_database_configured():
        raise ServiceUnavailableError(
            "Database not configured",
            code="DATABASE_NOT_CONFIGURED",
            field="database",
        )
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


def get_optional_db() -> Generator[Session | None, None, None]:
    """Like get_db, but yields None instead of failing when no database is configured."""
    if not is_database_configured():
        yield None
        return
    yield from get_db()
