"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bizledger.db.session import get_db, get_session_factory
from bizledger.main import app
from bizledger.models.base import Base
from bizledger.models.member import OrgRole
from bizledger.services.team_service import team_cache
from tests.factories import CustomerFactory, MemberFactory, OrganizationFactory


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """
    Create a test database engine.

    WHY: SQLite keeps tests free of external services. A file is used rather
    than :memory: so request sessions and background-task sessions opened
    on separate connections see the same tables.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Session used by factories and service tests.

    Yields:
        AsyncSession: Database session for the test
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client.

    WHY: Each request gets its own session that commits or rolls back like
    production, so a rejected operation is proven to leave nothing behind.

    Yields:
        AsyncClient: HTTP client for making test requests
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_team_cache():
    """The member-list cache is process-wide; start every test empty."""
    team_cache.clear()
    yield
    team_cache.clear()


# ============================================================================
# Organizations and members
# ============================================================================


@pytest_asyncio.fixture
async def test_org(db_session: AsyncSession):
    return await OrganizationFactory.create(db_session, name="Acme Interiors")


@pytest_asyncio.fixture
async def other_org(db_session: AsyncSession):
    """A second tenant, for isolation tests."""
    return await OrganizationFactory.create(db_session, name="Rival Studio")


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession, test_org):
    return await MemberFactory.create(db_session, org=test_org, role=OrgRole.OWNER, name="Olivia Owner")


@pytest_asyncio.fixture
async def manager(db_session: AsyncSession, test_org):
    return await MemberFactory.create(db_session, org=test_org, role=OrgRole.MANAGER)


@pytest_asyncio.fixture
async def accountant(db_session: AsyncSession, test_org):
    return await MemberFactory.create(db_session, org=test_org, role=OrgRole.ACCOUNTS)


@pytest_asyncio.fixture
async def sales(db_session: AsyncSession, test_org):
    return await MemberFactory.create(db_session, org=test_org, role=OrgRole.SALES_STAFF)


@pytest_asyncio.fixture
async def designer(db_session: AsyncSession, test_org):
    return await MemberFactory.create(db_session, org=test_org, role=OrgRole.DESIGNER)


@pytest_asyncio.fixture
async def employee(db_session: AsyncSession, test_org):
    return await MemberFactory.create(db_session, org=test_org, role=OrgRole.EMPLOYEE)


@pytest_asyncio.fixture
async def other_owner(db_session: AsyncSession, other_org):
    return await MemberFactory.create(db_session, org=other_org, role=OrgRole.OWNER)


@pytest_asyncio.fixture
async def customer(db_session: AsyncSession, test_org):
    return await CustomerFactory.create(db_session, org=test_org)
