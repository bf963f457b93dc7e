"""Unit tests for CartRepository."""

from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.models.cart import Cart, CartItem, CartStatus, OrderStatus
from storefront.repositories.base import Pagination
from storefront.repositories.cart import CartRepository
from tests.factories.cart import CartFactory, CartItemFactory, ClosedCartFactory
from tests.factories.product import ProductFactory
from tests.factories.user import UserFactory

T0 = datetime(2026, 3, 2, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def repo():
    return CartRepository()


class TestOpenCart:
    def test_create_open(self, repo, session):
        user = UserFactory()
        session.commit()

        cart, created = repo.create_open(user.id)
        assert created is True
        assert cart.status == CartStatus.OPEN
        assert repo.get_open_by_user(user.id).id == cart.id

    def test_create_open_returns_existing_on_conflict(self, repo, session):
        existing = CartFactory()
        session.commit()

        cart, created = repo.create_open(existing.user_id)

        assert created is False
        assert cart.id == existing.id

    def test_second_open_cart_is_rejected_by_the_database(self, session):
        cart = CartFactory()
        session.commit()

        session.add(Cart(user_id=cart.user_id, status=CartStatus.OPEN))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_many_closed_carts_are_allowed(self, repo, session):
        user = UserFactory()
        ClosedCartFactory(user=user)
        ClosedCartFactory(user=user)
        CartFactory(user=user)
        session.commit()

        assert repo.count_closed() == 2


class TestClose:
    def test_closes_exactly_once(self, repo, session):
        cart = CartFactory()
        session.commit()

        assert repo.close(cart.id, now=T0) is True
        assert repo.close(cart.id, now=T0) is False
        session.commit()

        closed = repo.get(cart.id)
        assert closed.status == CartStatus.CLOSED
        assert closed.order_status == OrderStatus.PROCESSING

    def test_get_latest_closed_by_user(self, repo, session):
        user = UserFactory()
        ClosedCartFactory(user=user, checked_out_at=datetime(2026, 1, 1, tzinfo=UTC))
        latest = ClosedCartFactory(user=user, checked_out_at=datetime(2026, 2, 1, tzinfo=UTC))
        session.commit()

        assert repo.get_latest_closed_by_user(user.id).id == latest.id

    def test_update_order_status_ignores_open_carts(self, repo, session):
        open_cart = CartFactory()
        order = ClosedCartFactory()
        session.commit()

        assert repo.update_order_status(open_cart.id, OrderStatus.SHIPPING) is False
        assert repo.update_order_status(order.id, OrderStatus.SHIPPING) is True


class TestListClosed:
    def test_filters_by_owner(self, repo, session):
        user = UserFactory()
        ClosedCartFactory(user=user)
        ClosedCartFactory()
        session.commit()

        mine = repo.list_closed(Pagination(page=1, limit=10, sort=[]), user_id=user.id)
        everyone = repo.list_closed(Pagination(page=1, limit=10, sort=[]))

        assert mine.total == 1
        assert everyone.total == 2

    def test_get_owned(self, repo, session):
        cart = CartFactory()
        other = UserFactory()
        session.commit()

        assert repo.get_owned(cart.id, cart.user_id).id == cart.id
        assert repo.get_owned(cart.id, other.id) is None


class TestMergeItem:
    def test_inserts_missing_line(self, repo, session):
        cart = CartFactory()
        product = ProductFactory()
        session.commit()

        item, created = repo.merge_item(cart, product.id, 2)

        assert created is True
        assert item.quantity == 2
        assert [line.id for line in cart.items] == [item.id]

    def test_increments_existing_line_in_sql(self, repo, session):
        line = CartItemFactory(quantity=2)
        session.commit()
        cart = line.cart

        item, created = repo.merge_item(cart, line.product_id, 3)

        assert created is False
        assert item.id == line.id
        assert item.quantity == 5
        assert len(cart.items) == 1

    def test_stale_in_memory_quantity_is_not_written_back(self, repo, session):
        line = CartItemFactory(quantity=2)
        session.commit()
        # Another request already raised the line to 4
        session.execute(
            CartItem.__table__.update().where(CartItem.id == line.id).values(quantity=4)
        )

        item, _ = repo.merge_item(line.cart, line.product_id, 2)

        assert item.quantity == 6

    def test_losing_insert_falls_back_to_increment(self, repo, session, monkeypatch):
        line = CartItemFactory(quantity=2)
        session.commit()
        original = CartRepository.increment_item
        calls = {"n": 0}

        def miss_first(self, cart_id, product_id, quantity):
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return original(self, cart_id, product_id, quantity)

        monkeypatch.setattr(CartRepository, "increment_item", miss_first)

        item, created = repo.merge_item(line.cart, line.product_id, 1)

        assert created is False
        assert item.id == line.id
        assert item.quantity == 3
