"""SQLite gateway: the single embedded connection the server owns.

Every call runs synchronously on one connection in autocommit mode. Calls are
serialized through an asyncio.Lock so a transport that pipelines requests
cannot interleave them.
"""
import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional

from sqlite_manager.config import config
from sqlite_manager.utils.errors import ExecutionError

logger = logging.getLogger(__name__)


class SqliteGateway:
    """Typed read/write/DDL execution and schema introspection over SQLite."""

    def __init__(self, database_path: Optional[str] = None):
        self._path = database_path or config.database_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> str:
        return self._path

    def connect(self):
        if self._conn is not None:
            return
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self._path, isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        logger.info(f"SQLite database opened at {self._path}")

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("SQLite database closed")

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    def _execute(self, sql: str) -> sqlite3.Cursor:
        try:
            return self._connection().execute(sql)
        except sqlite3.Error as e:
            raise ExecutionError(str(e), query=sql) from e

    async def execute_read(self, query: str) -> list[dict[str, Any]]:
        """Run a read statement and return every row as a dict."""
        async with self._lock:
            cur = self._execute(query)
            try:
                rows = cur.fetchall()
            except sqlite3.Error as e:
                raise ExecutionError(str(e), query=query) from e
            return [dict(row) for row in rows]

    async def execute_write(self, query: str) -> int:
        """Run an INSERT/UPDATE/DELETE and return the affected row count."""
        async with self._lock:
            cur = self._execute(query)
            return cur.rowcount

    async def execute_ddl(self, query: str) -> None:
        async with self._lock:
            self._execute(query)

    async def list_tables(self) -> list[str]:
        rows = await self.execute_read(
            "SELECT name FROM sqlite_master WHERE type = 'table'"
        )
        return [r["name"] for r in rows]

    async def describe_table(self, table_name: str) -> list[dict[str, Any]]:
        """Column descriptors from PRAGMA table_info, in declaration order.

        table_name is interpolated as-is; it is not quoted or escaped.
        """
        return await self.execute_read(f"PRAGMA table_info({table_name})")
