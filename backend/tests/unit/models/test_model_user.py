"""Tests for the User model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.models.user import User, UserRole, UserStatus
from tests.factories.user import FederatedUserFactory


class TestUser:
    def test_defaults(self, session):
        u = User(email="fresh@gmail.com", name="Fresh")
        session.add(u)
        session.flush()
        assert u.status == UserStatus.PENDING
        assert u.role == UserRole.USER
        assert u.is_active is False
        assert u.has_password is False

    def test_password_hashing(self, session):
        u = User(email="Test@gmail.com", name="tester")
        u.password = "secret123"
        session.add(u)
        session.commit()
        assert u.password_hash != "secret123"
        assert u.verify_password("secret123") is True
        assert u.verify_password("wrong") is False

    def test_password_is_write_only(self):
        u = User(email="a@gmail.com", name="u1")
        u.password = "x"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            User(email="a@gmail.com").set_password("")

    def test_passwordless_account_never_verifies(self):
        assert FederatedUserFactory.build().verify_password("") is False

    def test_email_normalized_and_unique(self, session):
        u1 = User(email="  Alice@Gmail.com ", name="alice")
        session.add(u1)
        session.commit()
        assert u1.email == "alice@gmail.com"

        session.add(User(email="alice@gmail.com", name="alice2"))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    @pytest.mark.parametrize("email", ["", "no-at-sign", "a@localhost"])
    def test_malformed_email_rejected(self, email):
        with pytest.raises(ValueError):
            User(email=email)

    def test_google_id_unique(self, session):
        FederatedUserFactory(google_id="sub-1")
        session.commit()

        session.add(User(email="other@gmail.com", google_id="sub-1"))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_name_is_trimmed(self):
        assert User(email="a@gmail.com", name="  Jamie  ").name == "Jamie"

    def test_role_flags(self):
        assert User(email="a@gmail.com", role=UserRole.ADMIN).is_admin is True
        assert User(email="b@gmail.com", role=UserRole.USER).is_admin is False
