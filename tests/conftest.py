"""
Pytest configuration and fixtures for PrivacyDesk API tests
"""
import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from privacydesk.main import app
from privacydesk.db.database import get_db, Base
from privacydesk.core.deadline import SlaPolicy
from tests.helpers import TENANT_ID, ACTOR_ID

# In-memory SQLite, one connection shared by everything in a test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False
    )
    async with session_factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database session override"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    """Identity headers for the default tenant and operator"""
    return {"X-Tenant-Id": TENANT_ID, "X-Actor-Id": ACTOR_ID}


@pytest.fixture
def policy():
    """Default 30 day calendar policy"""
    return SlaPolicy()


@pytest.fixture
async def created_case(client: AsyncClient, headers):
    """A fresh ACCESS request received now"""
    response = await client.post(
        "/api/v1/cases",
        json={"type": "ACCESS", "priority": "HIGH", "description": "Copy of all stored data"},
        headers=headers
    )
    assert response.status_code == 201
    return response.json()
