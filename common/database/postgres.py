"""
Postgres connection manager for read-only lookups.

psycopg2 is blocking, so every call is pushed to a worker thread with
asyncio.to_thread. A single connection is cached and replaced when the
server drops it.

Example:
    from common.database import PostgresClient

    pg = PostgresClient(host="localhost", port=5455, user="postgres",
                        password="postgres", database="mosip_mockidentitysystem")
    await pg.connect()
    rows = await pg.fetch_all("SELECT 1 AS one")
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import psycopg2
import psycopg2.extras

logger = logging.getLogger(__name__)


class DatabaseUnavailableError(Exception):
    """Raised when a database cannot be reached after the allowed attempts."""


class PostgresClient:
    """
    Lazily connected Postgres client with bounded linear retry.

    Startup uses `connect_attempts` tries, sleeping `backoff_seconds * attempt`
    between them. Requests that find the cached connection closed reconnect
    with `request_attempts` tries so a dead server does not stall them.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: str,
        connect_attempts: int = 5,
        backoff_seconds: float = 2.0,
        request_attempts: int = 1,
        connect_timeout: int = 5,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._dsn = {
            "host": host,
            "port": port,
            "user": user,
            "password": password,
            "dbname": database,
            "connect_timeout": connect_timeout,
        }
        self._database = database
        self._connect_attempts = max(1, connect_attempts)
        self._request_attempts = max(1, request_attempts)
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._conn = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None and not self._conn.closed

    async def connect(self, attempts: Optional[int] = None):
        """
        Open a connection, retrying with a linear backoff.

        Raises:
            DatabaseUnavailableError: every attempt failed
        """
        attempts = attempts or self._connect_attempts
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            await self._close_quietly()
            try:
                conn = await asyncio.to_thread(psycopg2.connect, **self._dsn)
                conn.autocommit = True
                conn.set_session(readonly=True)
                self._conn = conn
                logger.info(f"Connected to Postgres database: {self._database}")
                return conn
            except psycopg2.Error as e:
                last_error = e
                logger.warning(
                    f"Postgres connect attempt {attempt}/{attempts} failed: {e}"
                )
                if attempt < attempts:
                    await self._sleep(self._backoff_seconds * attempt)

        raise DatabaseUnavailableError(f"Postgres unavailable: {last_error}")

    async def get_connection(self):
        """Return the cached connection, reconnecting if it went stale."""
        async with self._lock:
            if self.is_connected:
                return self._conn
            return await self.connect(attempts=self._request_attempts)

    async def fetch_all(
        self,
        query: str,
        params: Sequence[Any] = (),
    ) -> List[Dict[str, Any]]:
        """
        Run a read-only query and return rows as dicts.

        Raises:
            DatabaseUnavailableError: connection missing or lost mid-query
        """
        conn = await self.get_connection()

        def _run() -> List[Dict[str, Any]]:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                cursor.execute(query, tuple(params))
                return [dict(row) for row in cursor.fetchall()]

        try:
            return await asyncio.to_thread(_run)
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            logger.error(f"Postgres connection error: {e}")
            await self._close_quietly()
            raise DatabaseUnavailableError(f"Postgres connection lost: {e}") from e

    async def disconnect(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            logger.info(f"Disconnecting from Postgres database: {self._database}")
        await self._close_quietly()

    async def _close_quietly(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None or conn.closed:
            return
        try:
            await asyncio.to_thread(conn.close)
        except psycopg2.Error as e:
            logger.debug(f"Ignoring error while closing Postgres connection: {e}")
