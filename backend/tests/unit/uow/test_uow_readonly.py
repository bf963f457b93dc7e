import pytest
from sqlalchemy import text

from storefront.models.user import User
from storefront.uow import (
    SQLAlchemyReadOnlyUnitOfWork as ROuow,
)
from storefront.uow import (
    SQLAlchemyUnitOfWork as RWuow,
)
from tests.factories.user import UserFactory


@pytest.fixture(autouse=True)
def _skip_if_sqlite(db):
    """
    Skip tests on SQLite since database-level READ ONLY transactional flags are
    not supported there and guards would be partially ineffective.
    """
    if db.engine.url.get_backend_name() == "sqlite":
        pytest.skip("Read-only write guards not supported on SQLite")


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_blocks_orm_flush_writes(self, app, db):
        """
        Ensure that attempting to flush ORM changes inside the RO UoW raises.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(UserFactory.build())
            uow.session.flush()

    def test_blocks_core_dml(self, app, db):
        """
        Ensure that raw SQL DML is blocked inside the RO UoW.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="SQL statement blocked"):
            uow.session.execute(
                text("UPDATE carts SET status = 'closed' WHERE user_id = :uid"), {"uid": 1}
            )

    def test_allows_reads(self, app, db):
        """
        Read operations should work normally within RO UoW.
        """
        with RWuow() as uow:
            uow.users.add(UserFactory.build())

        with ROuow() as uow:
            assert uow.users.count() >= 1

    def test_disallows_commit(self, app, db):
        """
        RO UoW must reject commit().
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_always_rolls_back_changes(self, app, db):
        """
        Any attempted modifications must not persist after RO UoW exits.
        """
        with RWuow() as uow:
            user = uow.users.add(UserFactory.build())
            user_id = user.id

        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            u = uow.users.get(user_id)
            original_name = u.name
            u.name = "mutated in read-only scope"
            uow.session.flush()

        with RWuow() as uow:
            assert uow.users.get(user_id).name == original_name
