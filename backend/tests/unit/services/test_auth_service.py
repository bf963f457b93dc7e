# tests/unit/services/test_auth_service.py
from __future__ import annotations

import pytest
from sqlalchemy import select

from storefront.models.cart import Cart, CartStatus
from storefront.models.user import User, UserStatus
from storefront.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    ValidationError,
)
from storefront.services.auth.dto import FederatedLoginIn, LoginIn
from storefront.services.auth.service import INVALID_CREDENTIALS, AuthService
from tests.factories.user import (
    AdminFactory,
    FederatedUserFactory,
    PendingUserFactory,
    UserFactory,
)


@pytest.fixture()
def service(tokens, denylist, settings, clock) -> AuthService:
    return AuthService(tokens=tokens, denylist=denylist, settings=settings, clock=clock)


def _open_carts(session, user_id):
    stmt = select(Cart).filter_by(user_id=user_id, status=CartStatus.OPEN)
    return session.execute(stmt).scalars().all()


class TestLogin:
    def test_issues_verifiable_session(self, service, tokens, session):
        user = UserFactory(email="shopper@gmail.com", password="secret-pw")
        session.commit()

        out = service.login(LoginIn(email=" Shopper@gmail.com ", password="secret-pw"))

        claims = tokens.verify_session(out.token)
        assert claims.user_id == user.id
        assert claims.email == "shopper@gmail.com"
        assert claims.role == "user"
        assert out.expires_in == 24 * 3600
        assert out.user.has_password is True

    def test_provisions_open_cart(self, service, session):
        user = UserFactory(password="secret-pw")
        session.commit()

        service.login(LoginIn(email=user.email, password="secret-pw"))
        service.login(LoginIn(email=user.email, password="secret-pw"))

        assert len(_open_carts(session, user.id)) == 1

    def test_admin_role_in_token(self, service, tokens, session):
        admin = AdminFactory(password="secret-pw")
        session.commit()
        out = service.login(LoginIn(email=admin.email, password="secret-pw"))
        assert tokens.verify_session(out.token).role == "admin"

    def test_unknown_email_and_wrong_password_look_the_same(self, service, session):
        user = UserFactory(password="secret-pw")
        session.commit()

        with pytest.raises(AuthenticationError) as unknown:
            service.login(LoginIn(email="ghost@gmail.com", password="secret-pw"))
        with pytest.raises(AuthenticationError) as wrong:
            service.login(LoginIn(email=user.email, password="not-it"))

        assert unknown.value.code == wrong.value.code == "invalid_credentials"
        assert str(unknown.value) == str(wrong.value) == INVALID_CREDENTIALS

    def test_accounts_without_a_hash_still_pay_for_a_bcrypt_check(
        self, service, settings, session, monkeypatch
    ):
        federated = FederatedUserFactory()
        user = UserFactory(password="secret-pw")
        session.commit()
        checked = []

        def record(password, *, rounds):
            checked.append((password, rounds))
            return False

        monkeypatch.setattr("storefront.services.auth.service.verify_dummy_password", record)

        for email in ("ghost@gmail.com", federated.email):
            with pytest.raises(AuthenticationError):
                service.login(LoginIn(email=email, password="guess"))
        with pytest.raises(AuthenticationError):
            service.login(LoginIn(email=user.email, password="not-it"))

        assert checked == [("guess", settings.bcrypt_rounds)] * 2

    def test_pending_account_cannot_sign_in(self, service, session):
        user = PendingUserFactory(password="secret-pw")
        session.commit()

        with pytest.raises(AuthenticationError) as exc:
            service.login(LoginIn(email=user.email, password="secret-pw"))
        assert exc.value.code == "account_not_confirmed"

    def test_federated_account_has_no_password_login(self, service, session):
        user = FederatedUserFactory()
        session.commit()

        with pytest.raises(AuthenticationError):
            service.login(LoginIn(email=user.email, password="anything"))

    @pytest.mark.parametrize(("email", "password"), [("", "pw"), ("a@gmail.com", "")])
    def test_missing_fields(self, service, email, password):
        with pytest.raises(ValidationError) as exc:
            service.login(LoginIn(email=email, password=password))
        assert exc.value.code == "missing_field"


class TestLogoutAndMe:
    def test_logout_revokes_until_expiry(self, service, tokens, denylist, clock, session):
        user = UserFactory(password="secret-pw")
        session.commit()
        claims = tokens.verify_session(
            service.login(LoginIn(email=user.email, password="secret-pw")).token
        )

        ack = service.logout(jti=claims.jti, expires_at=claims.expires_at)
        service.logout(jti=claims.jti, expires_at=claims.expires_at)

        assert ack.message == "Signed out."
        assert denylist.is_revoked(claims.jti)
        clock.advance(hours=24)
        assert not denylist.is_revoked(claims.jti)

    def test_me(self, service, session):
        user = UserFactory(name="Jamie Lee")
        session.commit()
        out = service.me(user.id)
        assert (out.id, out.name, out.status) == (user.id, "Jamie Lee", "active")

    def test_me_unknown_subject(self, service):
        with pytest.raises(AuthenticationError) as exc:
            service.me(987654)
        assert exc.value.code == "unknown_subject"


class TestFederatedLogin:
    def test_first_login_creates_active_account(self, service, session):
        out = service.login_federated(
            FederatedLoginIn(google_id="g-1", email="New.Person@gmail.com", name="New Person")
        )

        user = session.get(User, out.user.id)
        assert user.email == "new.person@gmail.com"
        assert user.status == UserStatus.ACTIVE
        assert user.google_id == "g-1"
        assert out.user.has_password is False
        assert len(_open_carts(session, user.id)) == 1

    def test_name_defaults_to_local_part(self, service):
        out = service.login_federated(FederatedLoginIn(google_id="g-2", email="lee@gmail.com"))
        assert out.user.name == "lee"

    def test_repeat_login_reuses_account(self, service):
        first = service.login_federated(FederatedLoginIn(google_id="g-3", email="r@gmail.com"))
        second = service.login_federated(FederatedLoginIn(google_id="g-3", email="r@gmail.com"))
        assert first.user.id == second.user.id

    def test_links_passwordless_account_by_email(self, service, session):
        user = FederatedUserFactory(email="link@gmail.com", google_id=None)
        session.commit()

        out = service.login_federated(
            FederatedLoginIn(google_id="g-4", email="link@gmail.com", picture="https://img/x.png")
        )

        session.expire_all()
        linked = session.get(User, user.id)
        assert out.user.id == user.id
        assert linked.google_id == "g-4"
        assert linked.picture == "https://img/x.png"

    def test_password_account_is_not_taken_over(self, service, session):
        UserFactory(email="owner@gmail.com")
        session.commit()

        with pytest.raises(ConflictError) as exc:
            service.login_federated(FederatedLoginIn(google_id="g-5", email="owner@gmail.com"))
        assert exc.value.code == "email_already_registered"

    def test_incomplete_identity(self, service):
        with pytest.raises(ValidationError):
            service.login_federated(FederatedLoginIn(google_id="", email="x@gmail.com"))
