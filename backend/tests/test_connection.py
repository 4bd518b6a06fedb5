"""
Tests for the MongoDB connection manager: caching, joining an in-flight
attempt, configuration errors and retry after failure.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from app.core.config import Settings
from app.core.errors import ConfigurationError
from app.infrastructure.mongodb import MongoConnectionManager, connect_mongo


@pytest.mark.asyncio
async def test_acquire_returns_cached_client(db_manager, connector, mock_client):
    first = await db_manager.acquire()
    second = await db_manager.acquire()

    assert first is mock_client
    assert second is mock_client
    connector.assert_awaited_once()


@pytest.mark.asyncio
async def test_concurrent_acquire_joins_single_attempt(test_settings, mock_client):
    """Callers arriving before the first attempt resolves share its result."""
    gate = asyncio.Event()
    calls = 0

    async def slow_connector(uri, settings):
        nonlocal calls
        calls += 1
        await gate.wait()
        return mock_client

    manager = MongoConnectionManager(settings_factory=lambda: test_settings, connector=slow_connector)

    tasks = [asyncio.create_task(manager.acquire()) for _ in range(10)]
    await asyncio.sleep(0)
    assert not manager.is_connected

    gate.set()
    results = await asyncio.gather(*tasks)

    assert calls == 1
    assert all(result is mock_client for result in results)
    assert manager.is_connected


@pytest.mark.asyncio
async def test_concurrent_callers_all_see_failure(test_settings):
    gate = asyncio.Event()
    connector = AsyncMock()

    async def failing_connector(uri, settings):
        await connector(uri, settings)
        await gate.wait()
        raise ServerSelectionTimeoutError("no servers available")

    manager = MongoConnectionManager(settings_factory=lambda: test_settings, connector=failing_connector)

    tasks = [asyncio.create_task(manager.acquire()) for _ in range(5)]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert connector.await_count == 1
    assert all(isinstance(result, ServerSelectionTimeoutError) for result in results)
    assert not manager.is_connected


@pytest.mark.asyncio
async def test_failed_attempt_allows_retry(db_manager, connector, mock_client):
    connector.side_effect = [ServerSelectionTimeoutError("timed out"), mock_client]

    with pytest.raises(ServerSelectionTimeoutError):
        await db_manager.acquire()
    assert not db_manager.is_connected

    assert await db_manager.acquire() is mock_client
    assert connector.await_count == 2


@pytest.mark.asyncio
async def test_missing_uri_raises_configuration_error(connector):
    manager = MongoConnectionManager(
        settings_factory=lambda: Settings(MONGODB_URI=None),
        connector=connector,
    )

    for _ in range(2):
        with pytest.raises(ConfigurationError, match="MONGODB_URI"):
            await manager.acquire()

    connector.assert_not_awaited()
    assert not manager.is_connected


@pytest.mark.asyncio
async def test_uri_provided_later_connects(connector, mock_client):
    """Configuration is re-read on each attempt, so a missing URI isn't permanent."""
    current = {"settings": Settings(MONGODB_URI=None)}
    manager = MongoConnectionManager(settings_factory=lambda: current["settings"], connector=connector)

    with pytest.raises(ConfigurationError):
        await manager.acquire()

    current["settings"] = Settings(MONGODB_URI="mongodb://localhost:27017/late")
    assert await manager.acquire() is mock_client
    connector.assert_awaited_once_with("mongodb://localhost:27017/late", current["settings"])


@pytest.mark.asyncio
async def test_get_database_uses_configured_name(db_manager, mock_client, mock_db):
    db = await db_manager.get_database()

    assert db is mock_db
    mock_client.get_default_database.assert_called_with("event_catalog_test")


@pytest.mark.asyncio
async def test_initializers_run_once_on_connect(test_settings, connector, mock_db):
    initializer = AsyncMock()
    manager = MongoConnectionManager(
        settings_factory=lambda: test_settings,
        connector=connector,
        initializers=[initializer],
    )

    await manager.acquire()
    await manager.acquire()

    initializer.assert_awaited_once_with(mock_db)


@pytest.mark.asyncio
async def test_initializer_failure_closes_client_and_allows_retry(test_settings, connector, mock_client):
    initializer = AsyncMock(side_effect=[RuntimeError("index build failed"), None])
    manager = MongoConnectionManager(
        settings_factory=lambda: test_settings,
        connector=connector,
        initializers=[initializer],
    )

    with pytest.raises(RuntimeError):
        await manager.acquire()
    mock_client.close.assert_called_once()
    assert not manager.is_connected

    assert await manager.acquire() is mock_client
    assert connector.await_count == 2


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_attempt(test_settings, mock_client):
    gate = asyncio.Event()

    async def slow_connector(uri, settings):
        await gate.wait()
        return mock_client

    manager = MongoConnectionManager(settings_factory=lambda: test_settings, connector=slow_connector)

    impatient = asyncio.create_task(manager.acquire())
    patient = asyncio.create_task(manager.acquire())
    await asyncio.sleep(0)
    impatient.cancel()

    gate.set()
    assert await patient is mock_client
    with pytest.raises(asyncio.CancelledError):
        await impatient


@pytest.mark.asyncio
async def test_close_releases_client(db_manager, mock_client, connector):
    await db_manager.acquire()

    await db_manager.close()

    mock_client.close.assert_called_once()
    assert not db_manager.is_connected

    # A fresh acquire after close opens a new client
    await db_manager.acquire()
    assert connector.await_count == 2


@pytest.mark.asyncio
async def test_close_without_connection_is_noop(db_manager, mock_client):
    await db_manager.close()

    mock_client.close.assert_not_called()


@pytest.mark.asyncio
async def test_connect_mongo_pings_server(test_settings):
    motor_client = MagicMock()
    motor_client.admin.command = AsyncMock(return_value={"ok": 1.0})

    with patch("app.infrastructure.mongodb.AsyncIOMotorClient", return_value=motor_client) as factory:
        client = await connect_mongo(test_settings.MONGODB_URI, test_settings)

    assert client is motor_client
    motor_client.admin.command.assert_awaited_once_with("ping")
    factory.assert_called_once_with(
        test_settings.MONGODB_URI,
        serverSelectionTimeoutMS=test_settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        maxPoolSize=test_settings.MONGODB_MAX_POOL_SIZE,
        tz_aware=True,
    )


@pytest.mark.asyncio
async def test_connect_mongo_closes_client_when_ping_fails(test_settings):
    motor_client = MagicMock()
    motor_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("timed out"))

    with patch("app.infrastructure.mongodb.AsyncIOMotorClient", return_value=motor_client):
        with pytest.raises(ServerSelectionTimeoutError):
            await connect_mongo(test_settings.MONGODB_URI, test_settings)

    motor_client.close.assert_called_once()


@pytest.mark.asyncio
async def test_invalid_settings_raise_configuration_error(connector):
    """Unparseable settings surface as ConfigurationError and cache nothing."""
    manager = MongoConnectionManager(
        settings_factory=lambda: Settings(
            MONGODB_URI="mongodb://localhost:27017/event_catalog_test",
            MONGODB_SERVER_SELECTION_TIMEOUT_MS="five-seconds",
        ),
        connector=connector,
    )

    with pytest.raises(ConfigurationError):
        await manager.acquire()

    connector.assert_not_awaited()
    assert not manager.is_connected


@pytest.mark.asyncio
async def test_close_during_initialization_closes_client(test_settings, connector, mock_client):
    """Shutting down mid-connect doesn't leave the opened client behind."""
    started = asyncio.Event()
    gate = asyncio.Event()

    async def slow_initializer(db):
        started.set()
        await gate.wait()

    manager = MongoConnectionManager(
        settings_factory=lambda: test_settings,
        connector=connector,
        initializers=[slow_initializer],
    )

    waiter = asyncio.create_task(manager.acquire())
    await started.wait()

    await manager.close()

    mock_client.close.assert_called_once()
    assert not manager.is_connected
    with pytest.raises(asyncio.CancelledError):
        await waiter
