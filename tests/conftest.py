"""pytest configuration and shared fixtures

Test infrastructure:
- per-test database (SQLite file via aiosqlite, or TEST_DATABASE_URL)
- FastAPI async client
- ARQ pool mock
- test data fixtures
"""

import os
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import Settings
from app.core.database import Base, get_db
from app.core.security import create_access_token
from app.main import app
from app.models.suggestion import Suggestion
from app.models.user import User, UserRole
from tests.factories import create_suggestion


# ===== Test settings =====


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Test settings"""
    return Settings(
        app_env="test",
        debug=True,
        database_url=os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test.db"),
        arq_redis_url="redis://localhost:6379/1",
        jwt_secret_key="test-secret-key",
        openai_api_key="",
        minio_endpoint="localhost:9000",
        minio_access_key="minioadmin",
        minio_secret_key="minioadmin",
        minio_secure=False,
    )


# ===== Database fixtures =====


@pytest.fixture
async def test_engine(tmp_path):
    """Async engine with a fresh schema per test"""
    database_url = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(database_url, echo=False, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Test DB session"""
    async with session_maker() as session:
        yield session


@pytest.fixture
def override_get_db(db_session: AsyncSession):
    """DB dependency override"""

    async def _override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    return _override_get_db


# ===== FastAPI client =====


@pytest.fixture
async def async_client(override_get_db) -> AsyncGenerator[AsyncClient, None]:
    """Async FastAPI client"""
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def mock_arq_pool():
    """ARQ pool mock"""
    pool = MagicMock()
    pool.enqueue_job = AsyncMock(return_value=MagicMock(job_id="job-1"))
    pool.close = AsyncMock()
    return pool


# ===== Test data =====


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Submitter"""
    user = User(
        id=uuid4(),
        email="submitter@example.com",
        name="Test Submitter",
        role=UserRole.USER.value,
        provider_id="provider-submitter",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user2(db_session: AsyncSession) -> User:
    """Second submitter"""
    user = User(
        id=uuid4(),
        email="submitter2@example.com",
        name="Other Submitter",
        role=UserRole.USER.value,
        provider_id="provider-submitter-2",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_admin(db_session: AsyncSession) -> User:
    """Admin"""
    user = User(
        id=uuid4(),
        email="admin@example.com",
        name="Test Admin",
        role=UserRole.ADMIN.value,
        provider_id="provider-admin",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_suggestion(db_session: AsyncSession, test_user: User) -> Suggestion:
    """Pending suggestion with an empty conversation"""
    return await create_suggestion(db_session, test_user)


@pytest.fixture
def auth_headers(test_user: User) -> dict[str, str]:
    """Submitter auth header"""
    return {"Authorization": f"Bearer {create_access_token(str(test_user.id))}"}


@pytest.fixture
def admin_headers(test_admin: User) -> dict[str, str]:
    """Admin auth header"""
    token = create_access_token(str(test_admin.id), role=UserRole.ADMIN.value)
    return {"Authorization": f"Bearer {token}"}


# ===== Utilities =====


def assert_uuid(value: Any) -> UUID:
    """Validate and convert a UUID"""
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        return UUID(value)
    raise ValueError(f"Invalid UUID: {value}")
