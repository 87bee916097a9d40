"""
Generic async MongoDB connection manager.

Wraps a Motor client and database handle. Indexes are declared by the
application at connection time, keeping database infrastructure separate
from application-specific collections.

Example:
    from common.database import MongoDB

    db = MongoDB()
    await db.connect(
        uri="mongodb://localhost:27017",
        database_name="childBooklet",
        indexes={"child_records": [([("healthId", 1)], {"unique": True})]},
    )
    records = db.db["child_records"]
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)

# collection name -> [(keys, index options)]
IndexSpec = Dict[str, List[Tuple[List[Tuple[str, int]], Dict[str, Any]]]]


def mask_uri(uri: str) -> str:
    """Strip credentials from a MongoDB URI for logging."""
    return uri.split("@")[-1] if "@" in uri else uri


class MongoDB:
    """Generic MongoDB connection manager - works with any database."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._database_name: Optional[str] = None
        self._initialized: bool = False

    async def connect(
        self,
        uri: str,
        database_name: str,
        indexes: Optional[IndexSpec] = None,
        server_selection_timeout_ms: int = 10000,
    ) -> None:
        """
        Connect to MongoDB, verify the server answers and create indexes.

        Args:
            uri: MongoDB connection string
            database_name: Name of the database to use
            indexes: Indexes to ensure, keyed by collection name
            server_selection_timeout_ms: How long to wait for a reachable server
        """
        logger.info(f"Connecting to MongoDB: {mask_uri(uri)}")
        logger.debug(f"Database name: {database_name}")

        try:
            self._client = AsyncIOMotorClient(
                uri,
                serverSelectionTimeoutMS=server_selection_timeout_ms,
            )
            self._database_name = database_name
            await self._client.admin.command("ping")

            for collection_name, specs in (indexes or {}).items():
                collection = self._client[database_name][collection_name]
                for keys, options in specs:
                    await collection.create_index(keys, **options)
                    logger.debug(f"Ensured index {keys} on {collection_name}")

            self._initialized = True
            logger.info(f"Successfully connected to MongoDB database: {database_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            if self._client:
                self._client.close()
            self._client = None
            self._database_name = None
            raise

    async def disconnect(self) -> None:
        """Close the MongoDB connection."""
        if self._client:
            logger.info(f"Disconnecting from MongoDB database: {self._database_name}")
            self._client.close()
            self._client = None
            self._database_name = None
            self._initialized = False
            logger.debug("MongoDB connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if database is connected and initialized."""
        return self._initialized

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """Get the underlying Motor database instance."""
        if not self._client or not self._database_name:
            raise RuntimeError("Database not connected")
        return self._client[self._database_name]
