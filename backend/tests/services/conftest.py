"""Service test fixtures: fake upstreams, async DB and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with foreign keys enforced
    - Every test gets a fresh FakeUpstream; no request ever leaves the process
    - get_db and get_resolver dependencies overridden for route tests
    - db_manager patched for the readiness probe, which bypasses get_db

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for the store
      (ADR: PostgreSQL-specific features not exercised here)
    - Resolver built with the FakeUpstream transport: route tests run the real
      credential chain against stubbed endpoints
"""

import httpx
import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from politeshop.api.dependencies import get_resolver
from politeshop.db.base import Base
from politeshop.infrastructure.database import get_db, DatabaseSessionManager
from politeshop.infrastructure.politemall_client import PolitemallSession
from politeshop.services.credential_chain import CredentialChainResolver
from politeshop.services.store import PoliteStore
import politeshop.infrastructure.database as db_module
import politeshop.models  # noqa: F401  (registers tables on Base.metadata)
from politeshop.main import app
from tests.services.mock_brightspace import (
    SIGNING_KEY, TENANT, FakeUpstream, brightspace_jwt,
)
from tests.services.sqlite_helpers import enforce_foreign_keys


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def resolver(upstream):
    return CredentialChainResolver(SIGNING_KEY, transport=upstream.transport)


@pytest.fixture
async def politemall_session(upstream):
    """A fully resolved session for user u1, as the credential chain would produce."""
    http = httpx.AsyncClient(transport=upstream.transport)
    session = PolitemallSession(
        http=http,
        polite_domain="nplms",
        brightspace_token=brightspace_jwt("u1"),
        tenant_id=TENANT,
        user_id="u1",
    )
    async with session:
        yield session


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    enforce_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def store(test_db):
    return PoliteStore(test_db)


@pytest.fixture
async def client(test_engine, test_session_factory, resolver):
    """FastAPI test client with DB and upstream dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_resolver] = lambda: resolver

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
