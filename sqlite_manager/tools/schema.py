"""Schema discovery tools."""
import logging

from sqlite_manager.db import SqliteGateway
from sqlite_manager.dispatcher import Dispatcher
from sqlite_manager.registry import DescribeTableInput, ListTablesInput

logger = logging.getLogger(__name__)


def register_schema_tools(dispatcher: Dispatcher, db: SqliteGateway):

    @dispatcher.tool("list-tables")
    async def list_tables(params: ListTablesInput) -> list[dict]:
        """List every table in the database, in catalog order."""
        logger.debug("Listing tables")
        tables = await db.list_tables()
        logger.debug(f"Tables found: {len(tables)}")
        return [{"name": t} for t in tables]

    @dispatcher.tool("describe-table")
    async def describe_table(params: DescribeTableInput) -> list[dict]:
        """Column descriptors (cid, name, type, notnull, dflt_value, pk) for a table."""
        logger.debug(f"Describing table {params.table_name}")
        columns = await db.describe_table(params.table_name)
        logger.debug(f"Table schema has {len(columns)} column(s)")
        return columns
