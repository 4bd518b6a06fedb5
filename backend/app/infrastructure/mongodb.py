"""
MongoDB connection manager.

Holds at most one live AsyncIOMotorClient, or one in-flight connection
attempt, for the lifetime of the process. The manager is created by the
application lifespan and handed to routes through FastAPI dependencies.

Acquisition rules:
  1. A cached client is returned immediately, no I/O.
  2. Callers arriving while an attempt is in flight await that same task,
     so concurrent requests never open a second client.
  3. MONGODB_URI is read on every uncached attempt. If it is missing we raise
     ConfigurationError and cache nothing, so setting it later works.
  4. A failed attempt clears the in-flight marker; the next caller retries.
"""

import asyncio
import contextlib
from typing import Awaitable, Callable, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pydantic import ValidationError

from app.core.config import Settings
from app.core.errors import ConfigurationError
from app.core.logging import get_logger
from app.core.metrics import record_connection_attempt

logger = get_logger(__name__)

Connector = Callable[[str, Settings], Awaitable[AsyncIOMotorClient]]
Initializer = Callable[[AsyncIOMotorDatabase], Awaitable[None]]


async def connect_mongo(uri: str, settings: Settings) -> AsyncIOMotorClient:
    """Open a client and ping the server so failures surface on connect."""
    client: AsyncIOMotorClient = AsyncIOMotorClient(
        uri,
        serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
        tz_aware=True,
    )
    try:
        await client.admin.command("ping")
    except Exception:
        client.close()
        raise
    return client


class MongoConnectionManager:
    """Process-wide, lazily connected MongoDB client."""

    def __init__(
        self,
        settings_factory: Callable[[], Settings] = Settings,
        connector: Connector = connect_mongo,
        initializers: Sequence[Initializer] = (),
    ) -> None:
        self._settings_factory = settings_factory
        self._connector = connector
        self._initializers = list(initializers)
        self._client: Optional[AsyncIOMotorClient] = None
        self._database_name: Optional[str] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def acquire(self) -> AsyncIOMotorClient:
        if self._client is not None:
            return self._client

        if self._pending is None:
            try:
                settings = self._settings_factory()
            except ValidationError as e:
                record_connection_attempt("misconfigured")
                raise ConfigurationError("MongoDB settings are invalid") from e
            if not settings.MONGODB_URI:
                record_connection_attempt("misconfigured")
                raise ConfigurationError("MONGODB_URI environment variable is not defined")
            self._pending = asyncio.ensure_future(self._connect(settings))

        # Shielded so one cancelled request does not cancel the shared attempt
        return await asyncio.shield(self._pending)

    async def get_database(self) -> AsyncIOMotorDatabase:
        client = await self.acquire()
        return client.get_default_database(self._database_name)

    async def _connect(self, settings: Settings) -> AsyncIOMotorClient:
        try:
            client = await self._connector(settings.MONGODB_URI, settings)
        except Exception as e:
            self._pending = None
            record_connection_attempt("failure")
            logger.error("mongodb_connection_failed", error=str(e))
            raise

        database = client.get_default_database(settings.MONGODB_DATABASE)
        try:
            for initializer in self._initializers:
                await initializer(database)
        except Exception as e:
            self._pending = None
            client.close()
            record_connection_attempt("failure")
            logger.error("mongodb_initialization_failed", error=str(e))
            raise
        except asyncio.CancelledError:
            client.close()
            raise

        self._client = client
        self._database_name = settings.MONGODB_DATABASE
        self._pending = None
        record_connection_attempt("success")
        logger.info("mongodb_connected", database=database.name)
        return client

    async def close(self) -> None:
        """Close the client on shutdown."""
        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await pending

        if self._client is not None:
            self._client.close()
            self._client = None
            self._database_name = None
            logger.info("mongodb_closed")

