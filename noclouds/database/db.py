"""
Notification state storage.
A store keeps exactly one value: the kind of the last alert sent. Two
persistent backends are available, a one-byte file and an SQLite row via
aiosqlite, plus an in-memory store.
"""

import asyncio
import aiosqlite
import logging
from pathlib import Path
from typing import Optional

from ..config import Config
from ..errors import StateIOError
from .models import NotificationState

logger = logging.getLogger(__name__)


class StateStore:
    """
    Interface of a notification state store.

    read() and write() raise StateIOError on storage failures. Callers
    decide how to recover.
    """

    async def initialize(self) -> None:
        """Reset the stored state to BAD."""
        await self.write(NotificationState.BAD)
        logger.info("Notification state initialized with BAD value")

    async def read(self) -> NotificationState:
        raise NotImplementedError

    async def write(self, state: NotificationState) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        pass


class MemoryStateStore(StateStore):
    """Keeps the state in memory, lost on restart."""

    def __init__(self, state: NotificationState = NotificationState.BAD):
        self.state = state

    async def read(self) -> NotificationState:
        return self.state

    async def write(self, state: NotificationState) -> None:
        self.state = state


class FileStateStore(StateStore):
    """
    Stores the state as a single "0"/"1" byte in a file.

    File access runs in a worker thread and is bounded by a timeout.
    """

    def __init__(self, path: str, timeout: float = 5.0):
        """
        Initialize file state store.

        Args:
            path: Path to the state file
            timeout: Seconds to wait for a read or write
        """
        self.path = Path(path)
        self.timeout = timeout

    async def read(self) -> NotificationState:
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(self.path.read_text, encoding="ascii"),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise StateIOError(f"Timed out reading state file {self.path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise StateIOError(f"Can't read state file {self.path}: {e}") from e
        return NotificationState.decode(raw)

    async def write(self, state: NotificationState) -> None:
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.path.write_text, state.value, encoding="ascii"),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise StateIOError(f"Timed out writing state file {self.path}") from e
        except OSError as e:
            raise StateIOError(f"Can't write state file {self.path}: {e}") from e
        logger.debug(f"State file updated with {state.name}")


class SQLiteStateStore(StateStore):
    """Stores the state as a key-value row in an SQLite database."""

    STATE_KEY = "notification_state"

    def __init__(self, db_path: str, timeout: float = 5.0):
        """
        Initialize SQLite state store.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait for a locked database
        """
        self.db_path = db_path
        self.timeout = timeout
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Connect to the database and create the table if needed."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._connection = await aiosqlite.connect(self.db_path, timeout=self.timeout)
            await self._connection.execute("""
                CREATE TABLE IF NOT EXISTS kv_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            await self._connection.commit()
        except aiosqlite.Error as e:
            raise StateIOError(f"Can't open state database {self.db_path}: {e}") from e
        logger.info(f"Connected to database: {self.db_path}")

    async def _get_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            await self.connect()
        return self._connection

    async def read(self) -> NotificationState:
        connection = await self._get_connection()
        try:
            async with connection.execute(
                "SELECT value FROM kv_state WHERE key = ?", (self.STATE_KEY,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StateIOError(f"Can't read state from {self.db_path}: {e}") from e

        if row is None:
            raise StateIOError(f"No state stored in {self.db_path}")
        return NotificationState.decode(row[0])

    async def write(self, state: NotificationState) -> None:
        connection = await self._get_connection()
        try:
            await connection.execute(
                """
                INSERT INTO kv_state (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (self.STATE_KEY, state.value)
            )
            await connection.commit()
        except aiosqlite.Error as e:
            raise StateIOError(f"Can't write state to {self.db_path}: {e}") from e
        logger.debug(f"State row updated with {state.name}")

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            logger.info("Database connection closed")


def create_state_store(config: Config) -> StateStore:
    """Build the state store selected by STATE_BACKEND."""
    if config.state_backend == "sqlite":
        return SQLiteStateStore(config.database_path)
    return FileStateStore(config.state_file_path)
