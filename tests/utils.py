"""Shared fixtures for tests: in-memory SQLite database, seeded users, API client."""

import uuid

import bcrypt
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.database import get_db, get_optional_db
from app.main import app
from app.models import Base, User, UserRole

API = settings.API_V1_PREFIX

ADMIN_NIK = "1234567890123456"
ADMIN_EMAIL = "a@x.com"
ADMIN_PASSWORD = "secret123"
PARTICIPANT_PHONE = "081234567890"


def make_engine() -> Engine:
    """Fresh in-memory SQLite database shared across threads, schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _fast_hash(password: str) -> str:
    # Low cost keeps the suite quick; verify_password accepts any cost.
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


def add_admin(
    db: Session,
    *,
    email: str = ADMIN_EMAIL,
    nik: str | None = ADMIN_NIK,
    password: str | None = ADMIN_PASSWORD,
    is_active: bool = True,
) -> User:
    user = User(
        id=uuid.uuid4(),
        role=UserRole.ADMIN.value,
        name="Admin",
        email=email,
        nik=nik,
        password_hash=_fast_hash(password) if password else None,
        is_active=is_active,
        login_attempts=0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_participant(
    db: Session,
    *,
    phone: str = PARTICIPANT_PHONE,
    email: str = "participant@x.com",
    is_active: bool = True,
) -> User:
    user = User(
        id=uuid.uuid4(),
        role=UserRole.PARTICIPANT.value,
        name="Participant",
        email=email,
        phone=phone,
        is_active=is_active,
        login_attempts=0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_client(session_factory: sessionmaker) -> TestClient:
    """TestClient whose get_db/get_optional_db hand out sessions from session_factory."""

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_optional_db] = _get_db
    return TestClient(app)


def clear_overrides() -> None:
    app.dependency_overrides.clear()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
