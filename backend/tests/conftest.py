"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases.

Services commit and roll back through their unit of work, which in this
layer means releasing or rolling back the session's own SAVEPOINT. Tests that
expect a service call to fail should ``session.commit()`` their fixtures
first so the failure's rollback does not discard them.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from storefront.api.deps import EXTENSION_KEY
from storefront.core.config import TestingConfig
from storefront.core.extensions import db as _db  # Flask-SQLAlchemy instance
from storefront.factory import create_app  # application factory under test
from storefront.services._shared.ports.denylist_store import InMemorySessionDenylist
from storefront.services._shared.ports.email_sender import InMemoryEmailSender
from storefront.services._shared.settings import AccountSettings
from storefront.services.tokens.dto import SessionConfig
from storefront.services.tokens.service import TokenIssuer
from tests.helpers.clock import FrozenClock


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps email in memory and the sweep thread off.
    - Avoids hitting external services.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ALLOWED_EMAIL_DOMAINS = "gmail.com"
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Notes
    -----
    The fixture mirrors the SQLAlchemy 2.0 pattern for transactional tests: it
    begins a top-level transaction, starts a SAVEPOINT per test, and reinstalls
    the SAVEPOINT whenever SQLAlchemy ends one.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) Scoped session bound to the connection
    SessionFactory = sessionmaker(bind=connection, autoflush=False)
    scoped = scoped_session(SessionFactory)

    # 3) SAVEPOINT per test
    nested = connection.begin_nested()

    # 4) Re-create SAVEPOINT when the previous nested transaction ends
    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # 5) Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- Service doubles ------------------------------------------------------------
@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def settings() -> AccountSettings:
    """Account tunables matching :class:`TestConfig`."""
    config = {key: getattr(TestConfig, key) for key in dir(TestConfig) if key.isupper()}
    return AccountSettings.from_mapping(config)


@pytest.fixture()
def mailer() -> InMemoryEmailSender:
    return InMemoryEmailSender()


@pytest.fixture()
def denylist(clock) -> InMemorySessionDenylist:
    return InMemorySessionDenylist(clock=clock)


@pytest.fixture()
def tokens(clock) -> TokenIssuer:
    return TokenIssuer(SessionConfig(secret=TestConfig.JWT_SECRET_KEY), clock=clock)


# -- HTTP layer -----------------------------------------------------------------
@pytest.fixture(autouse=True)
def _fresh_wiring(app, clock):
    """Give each test its own in-memory mailbox, denylist and frozen clock."""
    app.extensions[EXTENSION_KEY] = {"clock": clock}
    yield
    app.extensions.pop(EXTENSION_KEY, None)


@pytest.fixture()
def client(app, session):
    with app.app_context():
        yield app.test_client()


@pytest.fixture()
def outbox(app) -> InMemoryEmailSender:
    """The email sender the HTTP layer dispatches through."""
    from storefront.api.deps import get_email_sender

    sender = get_email_sender()
    assert isinstance(sender, InMemoryEmailSender)
    return sender


@pytest.fixture()
def user(session):
    """Persist and return an active user."""
    from tests.factories.user import UserFactory

    account = UserFactory()
    session.commit()
    return account


@pytest.fixture()
def admin(session):
    """Persist and return an administrator."""
    from tests.factories.user import AdminFactory

    account = AdminFactory()
    session.commit()
    return account


@pytest.fixture()
def auth_header(user) -> dict[str, str]:
    """Authorization header carrying a fresh session for ``user``."""
    from tests.helpers.auth import bearer, issue_token

    return bearer(issue_token(user))


@pytest.fixture()
def admin_header(admin) -> dict[str, str]:
    from tests.helpers.auth import bearer, issue_token

    return bearer(issue_token(admin))
