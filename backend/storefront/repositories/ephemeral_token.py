"""Repository for confirmation and reset tokens."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select, update

from storefront.models.ephemeral_token import EphemeralToken, TokenPurpose, TokenStatus
from storefront.repositories.base import BaseRepository


class EphemeralTokenRepository(BaseRepository[EphemeralToken]):
    """Persistence for :class:`EphemeralToken`.

    Status changes go through conditional ``UPDATE`` statements guarded by the
    expected prior status, so concurrent resolvers get exactly one winner.
    """

    model = EphemeralToken

    def _sortable_fields(self):
        return {"id": EphemeralToken.id, "created_at": EphemeralToken.created_at}

    def get_by_digest(self, digest: str) -> EphemeralToken | None:
        """Exact-match lookup on the stored SHA-256 digest."""
        stmt = select(EphemeralToken).where(EphemeralToken.token_digest == digest)
        return cast(EphemeralToken | None, self.session.execute(stmt).scalars().first())

    def get_latest_for_user(self, user_id: int, purpose: TokenPurpose) -> EphemeralToken | None:
        stmt = (
            select(EphemeralToken)
            .where(EphemeralToken.user_id == user_id, EphemeralToken.purpose == purpose)
            .order_by(EphemeralToken.created_at.desc(), EphemeralToken.id.desc())
            .limit(1)
        )
        return cast(EphemeralToken | None, self.session.execute(stmt).scalars().first())

    def transition(
        self,
        token_id: int,
        *,
        to_status: TokenStatus,
        resolved_at: datetime,
        from_status: TokenStatus = TokenStatus.UNCONFIRMED,
    ) -> bool:
        """Move ``token_id`` from ``from_status`` to ``to_status``.

        :returns: ``True`` for the single caller whose update matched a row;
            ``False`` when the token already left ``from_status``.
        """
        stmt = (
            update(EphemeralToken)
            .where(EphemeralToken.id == token_id, EphemeralToken.status == from_status)
            .values(status=to_status, resolved_at=resolved_at)
        )
        return self.session.execute(stmt).rowcount == 1

    def expire_unresolved(
        self,
        user_id: int,
        purpose: TokenPurpose,
        *,
        now: datetime,
        exclude_id: int | None = None,
    ) -> int:
        """Mark every actionable token of ``(user_id, purpose)`` as expired.

        :returns: Number of tokens invalidated.
        """
        clauses = [
            EphemeralToken.user_id == user_id,
            EphemeralToken.purpose == purpose,
            EphemeralToken.status == TokenStatus.UNCONFIRMED,
        ]
        if exclude_id is not None:
            clauses.append(EphemeralToken.id != exclude_id)
        stmt = (
            update(EphemeralToken)
            .where(*clauses)
            .values(status=TokenStatus.EXPIRED, resolved_at=now)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def list_stale(
        self,
        purpose: TokenPurpose,
        *,
        older_than: datetime,
        limit: int | None = None,
    ) -> list[EphemeralToken]:
        """Unresolved tokens of ``purpose`` created strictly before ``older_than``."""
        stmt = (
            select(EphemeralToken)
            .where(
                EphemeralToken.purpose == purpose,
                EphemeralToken.status == TokenStatus.UNCONFIRMED,
                EphemeralToken.created_at < older_than,
            )
            .order_by(EphemeralToken.created_at.asc(), EphemeralToken.id.asc())
        )
        if limit is not None:
            stmt = stmt.limit(int(limit))
        return list(self.session.execute(stmt).scalars().unique().all())
