"""Unit tests for UserRepository."""

import pytest

from storefront.core.security import MIN_BCRYPT_ROUNDS
from storefront.models.user import UserStatus
from storefront.repositories.user import UserRepository
from tests.factories.cart import CartFactory, CartItemFactory
from tests.factories.token import EphemeralTokenFactory
from tests.factories.user import FederatedUserFactory, PendingUserFactory, UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self):
        return UserRepository()

    def test_create_and_get_user(self, repo, session):
        """Create a user and fetch it by email to verify retrieval."""
        u = UserFactory(email="alice@gmail.com", name="Alice")
        session.commit()

        fetched = repo.get_by_email("  ALICE@gmail.com ")
        assert fetched is not None
        assert fetched.id == u.id
        assert fetched.name == "Alice"

    def test_get_by_google_id(self, repo, session):
        u = FederatedUserFactory(google_id="sub-123")
        session.commit()

        assert repo.get_by_google_id("sub-123").id == u.id
        assert repo.get_by_google_id("sub-999") is None

    def test_update_password(self, repo, session):
        """Update a user's password hash and verify authentication works."""
        u = UserFactory()
        session.commit()

        old_hash = u.password_hash
        repo.update_password(u.id, "newpass123", rounds=MIN_BCRYPT_ROUNDS)
        session.commit()

        refreshed = repo.get(u.id)
        assert refreshed.password_hash != old_hash
        assert refreshed.verify_password("newpass123")

    def test_update_password_unknown_user(self, repo):
        with pytest.raises(ValueError):
            repo.update_password(424242, "newpass123", rounds=MIN_BCRYPT_ROUNDS)

    def test_activate_only_once(self, repo, session):
        u = PendingUserFactory()
        session.commit()

        assert repo.activate(u.id) is True
        assert repo.activate(u.id) is False
        session.expire_all()
        assert repo.get(u.id).status == UserStatus.ACTIVE

    def test_safe_update_fields(self, repo, session):
        """Assign whitelisted fields and reject disallowed keys."""
        u = UserFactory()
        session.commit()

        updated = repo.assign_updates(u, {"name": "New Name"})
        assert updated.name == "New Name"

        with pytest.raises(ValueError):
            repo.assign_updates(u, {"password_hash": "x"})
        with pytest.raises(ValueError):
            repo.update(u, status=UserStatus.PENDING)


class TestHardDeletePending:
    @pytest.fixture()
    def repo(self):
        return UserRepository()

    def test_removes_user_and_owned_rows(self, repo, session):
        pending = PendingUserFactory()
        EphemeralTokenFactory(user=pending)
        CartItemFactory(cart=CartFactory(user=pending))
        session.commit()
        user_id = pending.id

        assert repo.hard_delete_pending(user_id) is True
        session.commit()

        assert not repo.exists(id=user_id)

    def test_refuses_active_user(self, repo, session):
        active = UserFactory()
        session.commit()

        assert repo.hard_delete_pending(active.id) is False
        assert repo.exists(id=active.id)

    def test_unknown_user(self, repo):
        assert repo.hard_delete_pending(424242) is False
