"""SQL statement tools: read-query, write-query and create-table.

Statement kind is gated by prefix in the argument schemas, so by the time a
handler runs its query is known to start with the right keyword.
"""
import logging

from sqlite_manager.db import SqliteGateway
from sqlite_manager.dispatcher import Dispatcher
from sqlite_manager.registry import CreateTableInput, ReadQueryInput, WriteQueryInput

logger = logging.getLogger(__name__)


def register_query_tools(dispatcher: Dispatcher, db: SqliteGateway):

    @dispatcher.tool("read-query")
    async def read_query(params: ReadQueryInput) -> list[dict]:
        """Execute a SELECT query and return the rows as JSON objects."""
        logger.info(f"Executing read query: {params.query}")
        rows = await db.execute_read(params.query)
        logger.debug(f"Read query returned {len(rows)} row(s)")
        return rows

    @dispatcher.tool("write-query")
    async def write_query(params: WriteQueryInput) -> dict:
        """Execute an INSERT, UPDATE or DELETE and report the affected row count."""
        logger.info(f"Executing write query: {params.query}")
        affected = await db.execute_write(params.query)
        logger.debug(f"Write query affected {affected} row(s)")
        return {"affected_rows": affected}

    @dispatcher.tool("create-table")
    async def create_table(params: CreateTableInput) -> str:
        logger.info(f"Creating table: {params.query}")
        await db.execute_ddl(params.query)
        logger.debug("Table created successfully")
        return "Table created successfully"
