"""Shared fixtures.

Database tests run inside a SAVEPOINT on one long-lived SQLite connection,
so units of work may commit freely and still leave nothing behind. Token
engine tests share a :class:`FrozenClock` and advance it explicitly.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from sessionguard.core.config import TestingConfig
from sessionguard.core.extensions import CLOCK_KEY, STORE_KEY
from sessionguard.core.extensions import db as _db
from sessionguard.factory import create_app
from sessionguard.services import AuthService
from sessionguard.services._shared.ports import FrozenClock, InMemoryRefreshTokenStore
from sessionguard.services.tokens import SigningKeys
from tests.helpers.clock import EPOCH


class MemoryBackendConfig(TestingConfig):
    REFRESH_TOKEN_BACKEND = "memory"


# -- Database -------------------------------------------------------------------
@pytest.fixture(scope="session")
def app():
    """Application on the SQLAlchemy backend, ignoring any ambient ``DATABASE_URL``."""
    os.environ.pop("DATABASE_URL", None)
    application = create_app(TestingConfig)
    application.logger.setLevel("WARNING")
    return application


@pytest.fixture(scope="session")
def db(app):
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture()
def session(db, connection):
    """
    Scoped session swapped in for ``db.session`` for one test.

    An outer transaction wraps the test and is rolled back at the end. A
    SAVEPOINT is reopened each time a unit of work commits (which only
    releases the SAVEPOINT).
    """
    outer = connection.begin()
    scoped = scoped_session(sessionmaker(bind=connection, future=True, autoflush=False))
    savepoint = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _reopen_savepoint(sess, trans):  # pragma: no cover
        nonlocal savepoint
        if trans.nested and not trans._parent.nested:
            savepoint = connection.begin_nested()

    flask_session = db.session
    db.session.remove()
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = flask_session
        outer.rollback()


@pytest.fixture(autouse=True)
def _factories_session(session):
    """Point Factory Boy at the per-test session."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- Token engine ---------------------------------------------------------------
@pytest.fixture()
def clock() -> FrozenClock:
    """Frozen clock starting at a fixed instant."""
    return FrozenClock(EPOCH)


@pytest.fixture()
def keys() -> SigningKeys:
    """Distinct access/refresh secrets matching :class:`TestingConfig`."""
    return SigningKeys.resolve(TestingConfig.JWT_SECRET_KEY, TestingConfig.JWT_REFRESH_SECRET_KEY)


@pytest.fixture()
def memory_store(clock) -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore(clock=clock)


@pytest.fixture()
def service(keys, memory_store, clock) -> AuthService:
    """AuthService wired to the in-memory store and the frozen clock."""
    return AuthService(keys=keys, refresh_store=memory_store, clock=clock)


# -- HTTP surface -----------------------------------------------------------------
@pytest.fixture()
def api_app(clock):
    """Application using the in-memory refresh store driven by ``clock``."""
    application = create_app(MemoryBackendConfig)
    application.logger.setLevel("WARNING")
    application.extensions[CLOCK_KEY] = clock
    application.extensions[STORE_KEY] = InMemoryRefreshTokenStore(clock=clock)
    return application


@pytest.fixture()
def api_store(api_app) -> InMemoryRefreshTokenStore:
    return api_app.extensions[STORE_KEY]


@pytest.fixture()
def client(api_app):
    """Return a Flask test client."""
    return api_app.test_client()


@pytest.fixture()
def issue_pair(api_app):
    """Issue an initial pair through the app-wired service."""
    from sessionguard.api.deps import get_auth_service

    def _issue(user_id: str = "42", email: str | None = "user42@example.com"):
        with api_app.app_context():
            return get_auth_service().issue_initial_pair(user_id, email)

    return _issue
