"""
Provision a user (there is no registration endpoint). Run from project root:
  python -m app.scripts.create_user admin NAME EMAIL --password PASSWORD [--nik NIK]
  python -m app.scripts.create_user participant NAME EMAIL --phone PHONE [--nik NIK]
Example:
  python -m app.scripts.create_user admin "Site Admin" admin@example.com --password 'S3cure!pass' --nik 1234567890123456
"""
import argparse
import re
import sys

from sqlalchemy.orm import Session

from app.core.database import SessionLocal, is_database_configured
from app.core.errors import AppError, ConflictError, ValidationError
from app.core.security import hash_password
from app.models import User, UserRole
from app.schemas.auth import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN

_NIK_RE = re.compile(r"^\d{16}$")
_PHONE_RE = re.compile(r"^[0-9+\-\s()]{1,20}$")


def create_user(
    db: Session,
    *,
    role: str,
    name: str,
    email: str,
    password: str | None = None,
    nik: str | None = None,
    phone: str | None = None,
) -> User:
    """Validate and insert a user. Admins need a password; participants need a phone."""
    name = name.strip()
    email = email.strip().lower()
    nik = nik.strip() if nik else None
    phone = phone.strip() if phone else None

    if not name or len(name) > 255:
        raise ValidationError("Invalid name length.", field="name")
    if "@" not in email or len(email) > 255:
        raise ValidationError("Invalid email address.", field="email")
    if nik is not None and not _NIK_RE.match(nik):
        raise ValidationError("NIK must be exactly 16 digits.", field="nik")
    if role == UserRole.ADMIN.value:
        if not password or not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
            raise ValidationError(
                f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
                field="password",
            )
    elif role == UserRole.PARTICIPANT.value:
        if not phone or not _PHONE_RE.match(phone):
            raise ValidationError("Participants need a valid phone number.", field="phone")
        password = None
    else:
        raise ValidationError(f"Unknown role '{role}'.", field="role")

    if db.query(User).filter(User.email == email).first():
        raise ConflictError(f"User with email '{email}' already exists.", field="email")
    if nik and db.query(User).filter(User.nik == nik).first():
        raise ConflictError(f"User with NIK '{nik}' already exists.", field="nik")

    user = User(
        role=role,
        name=name,
        email=email,
        nik=nik,
        phone=phone,
        password_hash=hash_password(password) if password else None,
        is_active=True,
        login_attempts=0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a platform user (no registration UI).")
    parser.add_argument("role", choices=[r.value for r in UserRole])
    parser.add_argument("name", help="Display name")
    parser.add_argument("email", help="Email address (admin login identifier)")
    parser.add_argument("--password", help=f"Admin password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("--nik", help="16-digit NIK (optional)")
    parser.add_argument("--phone", help="Phone number (participant login identifier)")
    args = parser.parse_args()

    if not is_database_configured():
        print("DATABASE_URL is not set.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = create_user(
            db,
            role=args.role,
            name=args.name,
            email=args.email,
            password=args.password,
            nik=args.nik,
            phone=args.phone,
        )
        print(f"Created {user.role} '{user.email}' with id {user.id}.")
        return 0
    except AppError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
