"""
SQLite storage for tracking seen feed entries.

Provides an async, durable ledger of entry identifiers so that
each entry triggers at most one notification, across restarts.
"""

import asyncio
import logging
from pathlib import Path

import aiosqlite

from offer_notify.exceptions import StoreTransactionError

logger = logging.getLogger(__name__)


class SeenStore:
    """
    Async SQLite ledger of seen entry identifiers.

    Only the existence of a key matters: records carry no payload,
    are never updated and never deleted.
    """

    def __init__(self, database_path: str | Path):
        """
        Initialize storage with database path.

        Parameters
        ----------
        database_path : str | Path
            Path to the SQLite database file, or ":memory:".
        """
        self.database_path = Path(database_path)
        self._connection: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """
        Open the database connection and create the table.

        Creates the database file and parent directories if they don't exist.
        """
        if str(self.database_path) != ":memory:":
            self.database_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Opening seen-store at %s", self.database_path)

        self._connection = await aiosqlite.connect(self.database_path)
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS seen_entries (
                guid TEXT PRIMARY KEY
            )
        """)
        await self._connection.commit()
        logger.debug("Database table created/verified")

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("Database not initialized")
        return self._connection

    async def has_seen(self, identifier: str) -> bool:
        """
        Check if an entry has already been seen.

        Parameters
        ----------
        identifier : str
            Unique identifier of the entry.

        Returns
        -------
        bool
            True if the identifier is in the ledger.
        """
        connection = self._require_connection()

        cursor = await connection.execute(
            "SELECT 1 FROM seen_entries WHERE guid = ?",
            (identifier,),
        )
        result = await cursor.fetchone()
        return result is not None

    async def check_and_mark(self, identifier: str) -> bool:
        """
        Atomically test membership and record the identifier if absent.

        Parameters
        ----------
        identifier : str
            Unique identifier of the entry.

        Returns
        -------
        bool
            True if the identifier was not seen before and is now marked,
            False if it was already present.

        Raises
        ------
        StoreTransactionError
            If the transaction fails. It is rolled back, leaving the
            ledger unchanged.
        """
        connection = self._require_connection()

        async with self._lock:
            try:
                await connection.execute("BEGIN IMMEDIATE")
                cursor = await connection.execute(
                    "SELECT 1 FROM seen_entries WHERE guid = ?",
                    (identifier,),
                )
                if await cursor.fetchone() is not None:
                    await connection.rollback()
                    return False

                await connection.execute(
                    "INSERT INTO seen_entries (guid) VALUES (?)",
                    (identifier,),
                )
                await connection.commit()
            except aiosqlite.Error as e:
                await self._rollback_quietly(connection)
                raise StoreTransactionError(
                    f"Failed to mark entry {identifier!r} as seen: {e}"
                ) from e

        logger.debug("Marked entry as seen: %s", identifier[:50])
        return True

    async def _rollback_quietly(self, connection: aiosqlite.Connection) -> None:
        """Roll back after a failed transaction, keeping the original error."""
        try:
            await connection.rollback()
        except aiosqlite.Error as e:
            logger.warning("Rollback failed: %s", e)

    async def get_seen_count(self) -> int:
        """
        Get the number of seen entries.

        Returns
        -------
        int
            Number of identifiers in the ledger.
        """
        connection = self._require_connection()

        cursor = await connection.execute("SELECT COUNT(*) FROM seen_entries")
        result = await cursor.fetchone()
        return result[0] if result else 0

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            logger.debug("Database connection closed")

    async def __aenter__(self) -> "SeenStore":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
