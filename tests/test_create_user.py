"""Tests for the user provisioning script."""

import unittest

from app.core.errors import ConflictError, ValidationError
from app.core.security import verify_password
from app.models import UserRole
from app.scripts.create_user import create_user
from tests.utils import make_engine, make_session_factory


class TestCreateUser(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.db = make_session_factory(self.engine)()

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def test_admin_with_password(self) -> None:
        user = create_user(
            self.db,
            role=UserRole.ADMIN.value,
            name=" Site Admin ",
            email="Admin@Example.com",
            password="secret123",
            nik="1234567890123456",
        )
        self.assertEqual(user.email, "admin@example.com")
        self.assertEqual(user.name, "Site Admin")
        self.assertTrue(user.is_active)
        self.assertEqual(user.login_attempts, 0)
        self.assertTrue(verify_password(user.password_hash, "secret123"))

    def test_admin_requires_password(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            create_user(self.db, role="admin", name="A", email="a@x.com")
        self.assertEqual(ctx.exception.field, "password")

    def test_participant_gets_no_password(self) -> None:
        user = create_user(
            self.db,
            role="participant",
            name="P",
            email="p@x.com",
            password="ignored-password",
            phone="081234567890",
        )
        self.assertIsNone(user.password_hash)
        self.assertEqual(user.phone, "081234567890")

    def test_participant_requires_phone(self) -> None:
        with self.assertRaises(ValidationError):
            create_user(self.db, role="participant", name="P", email="p@x.com")

    def test_nik_must_be_sixteen_digits(self) -> None:
        with self.assertRaises(ValidationError):
            create_user(
                self.db, role="admin", name="A", email="a@x.com", password="secret123", nik="123"
            )

    def test_duplicate_email(self) -> None:
        create_user(self.db, role="participant", name="P", email="p@x.com", phone="0811")
        with self.assertRaises(ConflictError):
            create_user(self.db, role="participant", name="Q", email="P@x.com", phone="0812")

    def test_unknown_role(self) -> None:
        with self.assertRaises(ValidationError):
            create_user(self.db, role="owner", name="O", email="o@x.com")


if __name__ == "__main__":
    unittest.main()
