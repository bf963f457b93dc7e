"""Tests for the development seed pipeline."""

from __future__ import annotations

from sqlalchemy import select

from storefront.core.security import MIN_BCRYPT_ROUNDS
from storefront.models.user import User, UserRole, UserStatus
from storefront.seeds import seed_data


def test_run_all_is_idempotent(db, session) -> None:
    first = seed_data.run_all(db, rounds=MIN_BCRYPT_ROUNDS)
    second = seed_data.run_all(db, rounds=MIN_BCRYPT_ROUNDS)

    n_users = len(seed_data.USER_FIXTURES)
    n_products = len(seed_data.PRODUCT_FIXTURES)
    assert first["users"] == {"created": n_users, "existing": 0}
    assert first["products"] == {"created": n_products, "existing": 0}
    assert second["users"] == {"created": 0, "existing": n_users}
    assert second["carts"] == {"created": 0, "existing": n_users}


def test_seeded_admin_can_sign_in(db, session) -> None:
    seed_data.run_all(db, rounds=MIN_BCRYPT_ROUNDS)

    admin = session.execute(select(User).filter_by(email="admin@gmail.com")).scalar_one()
    assert admin.role == UserRole.ADMIN
    assert admin.status == UserStatus.ACTIVE
    assert admin.verify_password("adminPass123")


def test_seed_run_command_prints_summary(app, session) -> None:
    result = app.test_cli_runner().invoke(args=["seed", "run"])

    assert result.exit_code == 0, result.output
    assert "Seed summary:" in result.output
    assert "products  created= 5  existing= 0" in result.output
