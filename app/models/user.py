"""ORM model for platform users (admins and test participants)."""

import uuid
from enum import StrEnum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Uuid, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class UserRole(StrEnum):
    ADMIN = "admin"
    PARTICIPANT = "participant"


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    Admins log in with email or NIK plus password; participants log in with
    their phone number only, so password_hash is nullable. Users are never
    hard-deleted: is_active=False deactivates them.
    """

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    role = Column(String(32), nullable=False, default=UserRole.PARTICIPANT.value, index=True)
    name = Column(String(255), nullable=False)
    nik = Column(String(20), nullable=True, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=True, index=True)
    password_hash = Column(String(255), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    login_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    auth_sessions = relationship(
        "AuthSession",
        back_populates="user",
        passive_deletes=True,
    )
