"""
Database session management.

WHY: Every request gets one AsyncSession and therefore one transaction.
Multi-step mutations (quotation conversion, payment recording, bulk
operations) run inside that transaction and are committed together when
the handler returns, or rolled back together when it raises.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from bizledger.core.config import settings


# pool_pre_ping recycles connections the server has dropped
engine = create_async_engine(
    settings.async_database_url,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

# expire_on_commit=False: response models read attributes after commit
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    Commits when the request handler completes and rolls back if it raises,
    so a failed request leaves no partial writes behind.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def session_scope(session_factory=None) -> AsyncGenerator[AsyncSession, None]:
    """
    Transactional session for work outside a request (scheduler jobs).

    Args:
        session_factory: Optional factory (tests pass their own)
    """
    factory = session_factory or AsyncSessionLocal
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """
    Dependency returning the factory background tasks open sessions with.

    Background tasks outlive the request session, so they open their own.
    Tests override this to point at their database.
    """
    return AsyncSessionLocal
