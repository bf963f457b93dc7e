"""Unit tests for EphemeralTokenRepository."""

from datetime import UTC, datetime, timedelta

import pytest

from storefront.models.ephemeral_token import TokenPurpose, TokenStatus
from storefront.repositories.ephemeral_token import EphemeralTokenRepository
from tests.factories.token import EphemeralTokenFactory, ResetTokenFactory, digest_of
from tests.factories.user import PendingUserFactory

T0 = datetime(2026, 3, 2, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def repo():
    return EphemeralTokenRepository()


class TestLookups:
    def test_get_by_digest(self, repo, session):
        token = EphemeralTokenFactory(token_digest=digest_of("raw"))
        session.commit()

        assert repo.get_by_digest(digest_of("raw")).id == token.id
        assert repo.get_by_digest(digest_of("other")) is None

    def test_latest_for_user_per_purpose(self, repo, session):
        user = PendingUserFactory()
        EphemeralTokenFactory(user=user, created_at=T0)
        newer = EphemeralTokenFactory(user=user, created_at=T0 + timedelta(minutes=1))
        ResetTokenFactory(user=user, created_at=T0 + timedelta(minutes=2))
        session.commit()

        latest = repo.get_latest_for_user(user.id, TokenPurpose.CONFIRM_REGISTRATION)
        assert latest.id == newer.id


class TestTransition:
    def test_single_winner(self, repo, session):
        token = EphemeralTokenFactory()
        session.commit()

        first = repo.transition(token.id, to_status=TokenStatus.CONFIRMED, resolved_at=T0)
        second = repo.transition(token.id, to_status=TokenStatus.EXPIRED, resolved_at=T0)
        session.commit()

        assert (first, second) == (True, False)
        assert repo.get(token.id).status == TokenStatus.CONFIRMED

    def test_expire_unresolved_skips_resolved_and_excluded(self, repo, session):
        user = PendingUserFactory()
        a = EphemeralTokenFactory(user=user)
        b = EphemeralTokenFactory(user=user)
        used = EphemeralTokenFactory(user=user, status=TokenStatus.USED)
        keep = EphemeralTokenFactory(user=user)
        session.commit()

        n = repo.expire_unresolved(
            user.id, TokenPurpose.CONFIRM_REGISTRATION, now=T0, exclude_id=keep.id
        )
        session.commit()

        assert n == 2
        statuses = {t.id: repo.get(t.id).status for t in (a, b, used, keep)}
        assert statuses == {
            a.id: TokenStatus.EXPIRED,
            b.id: TokenStatus.EXPIRED,
            used.id: TokenStatus.USED,
            keep.id: TokenStatus.UNCONFIRMED,
        }


class TestListStale:
    def test_strictly_older_unresolved_of_purpose(self, repo, session):
        old = EphemeralTokenFactory(created_at=T0 - timedelta(minutes=10))
        EphemeralTokenFactory(created_at=T0)
        EphemeralTokenFactory(created_at=T0 - timedelta(minutes=10), status=TokenStatus.CONFIRMED)
        ResetTokenFactory(created_at=T0 - timedelta(minutes=10))
        session.commit()

        stale = repo.list_stale(TokenPurpose.CONFIRM_REGISTRATION, older_than=T0)
        assert [t.id for t in stale] == [old.id]

    def test_limit(self, repo, session):
        for minutes in (30, 20, 10):
            EphemeralTokenFactory(created_at=T0 - timedelta(minutes=minutes))
        session.commit()

        stale = repo.list_stale(TokenPurpose.CONFIRM_REGISTRATION, older_than=T0, limit=2)
        assert len(stale) == 2
        assert stale[0].created_at <= stale[1].created_at
