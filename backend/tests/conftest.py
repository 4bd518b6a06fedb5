"""
Pytest fixtures for the MongoDB stand-ins, connection manager and HTTP client.

No real MongoDB is needed: collections are AsyncMocks handed out by a
MagicMock database, and the connection manager gets a fake connector that
returns a client wrapping that database.
"""

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_db_manager
from app.core.config import Settings
from app.infrastructure.mongodb import MongoConnectionManager
from app.main import app

TEST_MONGODB_URI = "mongodb://localhost:27017/event_catalog_test"
TEST_DATABASE = "event_catalog_test"


@pytest.fixture
def collections() -> dict[str, AsyncMock]:
    """Collection mocks keyed by name, created on first access."""
    return {}


@pytest.fixture
def mock_db(collections: dict[str, AsyncMock]) -> MagicMock:
    """Mock Motor AsyncIOMotorDatabase."""
    db = MagicMock()
    db.name = TEST_DATABASE
    db.__getitem__.side_effect = lambda name: collections.setdefault(name, AsyncMock())
    return db


@pytest.fixture
def events_collection(mock_db: MagicMock) -> AsyncMock:
    return mock_db["events"]


@pytest.fixture
def bookings_collection(mock_db: MagicMock) -> AsyncMock:
    return mock_db["bookings"]


@pytest.fixture
def mock_client(mock_db: MagicMock) -> MagicMock:
    """Mock AsyncIOMotorClient whose default database is mock_db."""
    client = MagicMock()
    client.get_default_database.return_value = mock_db
    return client


@pytest.fixture
def connector(mock_client: MagicMock) -> AsyncMock:
    return AsyncMock(return_value=mock_client)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(MONGODB_URI=TEST_MONGODB_URI, MONGODB_DATABASE=TEST_DATABASE)


@pytest.fixture
def db_manager(test_settings: Settings, connector: AsyncMock) -> MongoConnectionManager:
    return MongoConnectionManager(settings_factory=lambda: test_settings, connector=connector)


@pytest_asyncio.fixture
async def client(db_manager: MongoConnectionManager) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the connection manager dependency."""
    app.dependency_overrides[get_db_manager] = lambda: db_manager

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    await db_manager.close()
