"""Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite database, a store on top of it and
a controllable clock shared by all workflow services.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from marketplace.core.access import VisibilityPolicy
from marketplace.core.accounts import AccountService, AdminStatsService
from marketplace.core.approval.machine import ApprovalStateMachine
from marketplace.core.approval.service import DeletionService, ListingService
from marketplace.core.config import Settings
from marketplace.core.entities import Role
from marketplace.core.files import FileService
from marketplace.core.nda import NdaTracker
from marketplace.db.session import create_db_engine, create_session_factory, init_db
from marketplace.db.store import SqlAlchemyStore

from tests.factories import FakeIdentityProvider, actor_for, create_account

TEST_JWT_SECRET = "test-identity-secret"


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        identity_jwt_secret=TEST_JWT_SECRET,
        nda_validity_days=90,
        nda_auto_approve_owner=True,
    )


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return SqlAlchemyStore(session_factory)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 1, 12, 0, 0))


@pytest.fixture
def machine(store, clock):
    return ApprovalStateMachine(store, clock=clock)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture
def listings(store, machine):
    return ListingService(store, machine=machine)


@pytest.fixture
def deletions(store, machine):
    return DeletionService(store, machine=machine)


@pytest.fixture
def ndas(store, settings, machine):
    return NdaTracker(store, settings, machine=machine)


@pytest.fixture
def policy(store, ndas):
    return VisibilityPolicy(store, ndas)


@pytest.fixture
def files(store, settings):
    return FileService(store, settings)


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider(TEST_JWT_SECRET)


@pytest.fixture
def accounts(store, identity_provider):
    return AccountService(store, identity_provider)


@pytest.fixture
def stats(store):
    return AdminStatsService(store)


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


@pytest.fixture
def owner_account(store):
    return create_account(store, email="owner@example.com")


@pytest.fixture
def owner(owner_account):
    return actor_for(owner_account)


@pytest.fixture
def member_account(store):
    return create_account(store, email="buyer@example.com")


@pytest.fixture
def member(member_account):
    return actor_for(member_account)


@pytest.fixture
def other_member(store):
    return actor_for(create_account(store, email="other-buyer@example.com"))


@pytest.fixture
def admin_account(store):
    return create_account(store, email="admin@example.com", role=Role.ADMIN)


@pytest.fixture
def admin(admin_account):
    return actor_for(admin_account)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@pytest.fixture
def client(store, settings, identity_provider):
    from marketplace.api.deps import get_identity_admin, get_store
    from marketplace.api.main import app
    from marketplace.core.config import get_settings

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_identity_admin] = lambda: identity_provider
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
