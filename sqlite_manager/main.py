"""SQLite Manager MCP Server: main entry point.

6 tools, 1 prompt, 1 resource, served over stdio.
"""
import argparse
import asyncio
import functools
import logging
import sys
from contextlib import AsyncExitStack
from typing import Optional

from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import (
    CallToolRequest,
    CallToolResult,
    GetPromptResult,
    Prompt,
    Resource,
    ServerResult,
    Tool,
)
from pydantic import AnyUrl

from sqlite_manager.config import config
from sqlite_manager.db import SqliteGateway
from sqlite_manager.dispatcher import Dispatcher
from sqlite_manager.prompts.templates import register_prompts
from sqlite_manager.resources.insights import InsightStore, register_insight_resources
from sqlite_manager.tools.query import register_query_tools
from sqlite_manager.tools.schema import register_schema_tools
from sqlite_manager.utils.errors import (
    SqliteManagerError,
    TransportStartupFailure,
    handle_error,
    to_mcp_error,
)

logger = logging.getLogger(__name__)


def build_dispatcher(db: SqliteGateway, store: InsightStore) -> Dispatcher:
    """Register every tool, resource and prompt on a fresh dispatcher."""
    dispatcher = Dispatcher()
    register_query_tools(dispatcher, db)
    register_schema_tools(dispatcher, db)
    register_insight_resources(dispatcher, store)
    register_prompts(dispatcher)
    return dispatcher


def _protocol_errors(fn):
    """Re-raise dispatcher failures as MCP protocol errors."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except SqliteManagerError as e:
            raise to_mcp_error(e) from e

    return wrapper


def create_server(dispatcher: Dispatcher) -> Server:
    """Bind the dispatcher to an MCP low-level server."""
    server = Server(config.server_name, version=config.server_version)

    async def send_resource_updated(uri: str):
        await server.request_context.session.send_resource_updated(AnyUrl(uri))

    dispatcher.notifier = send_resource_updated

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        return await dispatcher.list_resources()

    @server.read_resource()
    @_protocol_errors
    async def read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        text = await dispatcher.read_resource(str(uri))
        return [ReadResourceContents(content=text, mime_type="text/plain")]

    @server.list_prompts()
    async def list_prompts() -> list[Prompt]:
        return await dispatcher.list_prompts()

    @server.get_prompt()
    @_protocol_errors
    async def get_prompt(name: str, arguments: Optional[dict[str, str]]) -> GetPromptResult:
        return await dispatcher.get_prompt(name, arguments)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return await dispatcher.list_tools()

    # Registered directly: the SDK's call_tool decorator turns every exception
    # into an isError text result, which drops the error code and payload.
    @_protocol_errors
    async def call_tool(req: CallToolRequest) -> ServerResult:
        content = await dispatcher.call_tool(req.params.name, req.params.arguments)
        return ServerResult(CallToolResult(content=content, isError=False))

    server.request_handlers[CallToolRequest] = call_tool

    return server


async def serve(database_path: Optional[str] = None):
    """Open the database, connect stdio and serve requests until the client goes away."""
    logger.info("Initializing server...")
    db = SqliteGateway(database_path)
    store = InsightStore()

    async with AsyncExitStack() as stack:
        try:
            db.connect()
            stack.callback(db.close)
            server = create_server(build_dispatcher(db, store))
            logger.info("Connecting to transport...")
            read_stream, write_stream = await stack.enter_async_context(stdio_server())
        except Exception as e:
            raise TransportStartupFailure(str(e)) from e

        logger.info(f"Server started successfully (database: {db.path})")
        await server.run(read_stream, write_stream, server.create_initialization_options())

    logger.info("SQLite Manager MCP Server stopped")


def main(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(description="SQLite Manager MCP Server (stdio)")
    parser.add_argument(
        "--db-path",
        default=None,
        help=f"SQLite database file (default: {config.database_path})",
    )
    args = parser.parse_args(argv)

    # stdout carries the protocol; logs go to stderr
    logging.basicConfig(
        level=config.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(serve(args.db_path))
    except TransportStartupFailure as e:
        logger.critical(handle_error(e), exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
