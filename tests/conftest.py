"""
Pytest configuration.
Each test gets its own SQLite database; Redis and Kafka are replaced with in-memory fakes.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["TESTING"] = "1"

from typing import AsyncGenerator, Generator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from fyphub.db.base import Base  # noqa: E402
from fyphub.db.session import enable_sqlite_foreign_keys, get_db  # noqa: E402
from fyphub.main import app  # noqa: E402
from tests.mocks.services import MockKafkaProducer, MockRedisCache, patch_kafka, patch_redis  # noqa: E402


# Database fixtures
@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database file with all tables."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for arranging and checking test data."""
    async with session_factory() as session:
        yield session


# Mock service fixtures
@pytest.fixture(autouse=True)
def mock_redis() -> Generator[MockRedisCache, None, None]:
    """Provide a mock Redis cache and patch the cache functions."""
    mock_redis_instance, patches = patch_redis()
    for patch_item in patches:
        patch_item.start()

    yield mock_redis_instance

    for patch_item in patches:
        patch_item.stop()


@pytest.fixture(autouse=True)
def mock_kafka() -> Generator[MockKafkaProducer, None, None]:
    """Provide a mock Kafka producer and patch event publishing."""
    mock_kafka_instance, patches = patch_kafka()
    for patch_item in patches:
        patch_item.start()

    yield mock_kafka_instance

    for patch_item in patches:
        patch_item.stop()


# HTTP client fixture
@pytest_asyncio.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async client for testing API endpoints."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
