"""MongoDB client wrapper using Motor (async driver)."""

from types import TracebackType
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConnectionFailure

from mongolayer.exceptions import NotConnectedError
from mongolayer.settings import MongoSettings
from mongolayer.utils.logger import get_logger

logger = get_logger(__name__)


class MongoClient:
    """Owns the Motor client and the configured database handle."""

    def __init__(self, settings: MongoSettings | None = None) -> None:
        """
        Initialize the client (connection happens in connect()).

        Args:
            settings: Connection settings; read from the environment if omitted
        """
        self.settings = settings or MongoSettings()
        self.client: AsyncIOMotorClient | None = None
        self._database: Any = None
        self._connected = False

    async def connect(self) -> None:
        """
        Create the Motor client and verify the server answers a ping.

        Raises:
            ConnectionFailure: If connection to MongoDB fails
        """
        if self._connected:
            logger.debug("MongoDB already connected")
            return

        try:
            logger.info("Connecting to MongoDB...")

            self.client = AsyncIOMotorClient(
                self.settings.uri,
                connectTimeoutMS=self.settings.connect_timeout_ms,
                serverSelectionTimeoutMS=self.settings.server_selection_timeout_ms,
                socketTimeoutMS=self.settings.socket_timeout_ms,
                maxPoolSize=self.settings.max_pool_size,
                minPoolSize=self.settings.min_pool_size,
            )
            self._database = self.client[self.settings.database]

            await self.client.admin.command("ping")

            logger.info(
                "✅ Connected to MongoDB [database=%s]", self.settings.database
            )
            self._connected = True

        except ConnectionFailure as e:
            logger.error("❌ Failed to connect to MongoDB: %s", e)
            raise
        except Exception as e:
            logger.error("❌ Unexpected error connecting to MongoDB: %s", e)
            raise ConnectionFailure(f"Failed to connect to MongoDB: {e}") from e

    async def ping(self) -> None:
        """
        Ping the primary.

        Raises:
            NotConnectedError: If connect() has not been called
            ConnectionFailure: If the server does not answer in time
        """
        if self.client is None:
            raise NotConnectedError("MongoDB client is not connected")
        await self.client.admin.command(
            "ping", maxTimeMS=self.settings.ping_timeout_ms
        )

    async def close(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            self._database = None
            self._connected = False
            logger.info("Closed MongoDB connection")

    async def __aenter__(self) -> "MongoClient":
        """Context manager entry."""
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Context manager exit."""
        await self.close()

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def database_name(self) -> str:
        return self.settings.database

    @property
    def database(self) -> Any:
        """Return the configured database handle."""
        if self._database is None:
            raise NotConnectedError("MongoDB client is not connected")
        return self._database

    def get_collection(self, name: str) -> Any:
        """Return a collection of the configured database."""
        return self.database[name]
