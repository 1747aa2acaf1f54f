"""Protocol dispatcher: routes validated resource, prompt and tool requests.

Tool, resource and prompt handlers are registered with decorators, the same
way FastMCP registers them, but every tool request is first validated against
the operation schemas in sqlite_manager.registry. Failures are logged here
and re-raised for the transport layer to encode.
"""
import json
import logging
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlsplit

from mcp.types import GetPromptResult, Prompt, PromptArgument, Resource, TextContent, Tool

from sqlite_manager.registry import (
    TOOL_OPERATIONS,
    OperationDescriptor,
    describe_tools,
    validate_prompt,
    validate_request,
)
from sqlite_manager.utils.errors import (
    SqliteManagerError,
    UnknownOperation,
    UnknownResource,
    UnsupportedProtocol,
    ValidationFailure,
    handle_error,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Awaitable[Any]]
ResourceHandler = Callable[[], Awaitable[str]]
PromptHandler = Callable[[Any], Awaitable[GetPromptResult]]
Notifier = Callable[[str], Awaitable[None]]


def _to_content(result: Any) -> list[TextContent]:
    if isinstance(result, str):
        return [TextContent(type="text", text=result)]
    return [TextContent(type="text", text=json.dumps(result, default=str))]


class Dispatcher:
    """Holds the handler tables for tools, resources and prompts."""

    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier
        self._tools: dict[str, ToolHandler] = {}
        self._resources: dict[tuple[str, str], tuple[Resource, ResourceHandler]] = {}
        self._prompts: dict[str, tuple[OperationDescriptor, PromptHandler]] = {}

    # ── Registration ──────────────────────────────────────────────────

    def tool(self, name: str):
        if name not in TOOL_OPERATIONS:
            raise ValueError(f"No operation schema registered for tool '{name}'")

        def decorator(fn: ToolHandler) -> ToolHandler:
            self._tools[name] = fn
            return fn

        return decorator

    def resource(self, descriptor: Resource, scheme: str, host: str):
        def decorator(fn: ResourceHandler) -> ResourceHandler:
            self._resources[(scheme, host)] = (descriptor, fn)
            return fn

        return decorator

    def prompt(self, descriptor: OperationDescriptor):
        def decorator(fn: PromptHandler) -> PromptHandler:
            self._prompts[descriptor.name] = (descriptor, fn)
            return fn

        return decorator

    async def notify_resource_updated(self, uri: str):
        if self.notifier is None:
            logger.debug(f"No notifier attached, dropping update for {uri}")
            return
        await self.notifier(uri)

    def _log_failure(self, operation: str, target: str, e: Exception):
        if isinstance(e, ValidationFailure):
            logger.error(
                f"Validation error in {operation} '{target}': {e.summary} "
                f"issues={e.payload()['issues']}"
            )
        elif isinstance(e, SqliteManagerError):
            logger.error(f"{operation} '{target}' failed: {handle_error(e)} payload={e.payload()}")
        else:
            logger.error(f"{operation} '{target}' raised unexpectedly: {e}", exc_info=True)

    # ── Resources ─────────────────────────────────────────────────────

    async def list_resources(self) -> list[Resource]:
        logger.debug("Handling ListResourcesRequest")
        return [descriptor for descriptor, _ in self._resources.values()]

    async def read_resource(self, uri: str) -> str:
        logger.debug(f"Handling ReadResourceRequest uri={uri}")
        try:
            parts = urlsplit(uri)
            scheme = parts.scheme
            host = parts.netloc
            if scheme not in {s for s, _ in self._resources}:
                raise UnsupportedProtocol(scheme)
            entry = self._resources.get((scheme, host))
            if entry is None:
                raise UnknownResource(uri)
            return await entry[1]()
        except Exception as e:
            self._log_failure("read_resource", uri, e)
            raise

    # ── Prompts ───────────────────────────────────────────────────────

    async def list_prompts(self) -> list[Prompt]:
        logger.debug("Handling ListPromptsRequest")
        prompts = []
        for descriptor, _ in self._prompts.values():
            prompts.append(
                Prompt(
                    name=descriptor.name,
                    description=descriptor.description,
                    arguments=[
                        PromptArgument(
                            name=field_name,
                            description=field.description,
                            required=field.is_required(),
                        )
                        for field_name, field in descriptor.input_model.model_fields.items()
                    ],
                )
            )
        return prompts

    async def get_prompt(
        self, name: str, arguments: Optional[dict[str, Any]] = None
    ) -> GetPromptResult:
        logger.debug(f"Handling GetPromptRequest name={name} arguments={arguments}")
        try:
            request = validate_prompt(name, arguments)
            _, handler = self._prompts[request.name]
            return await handler(request.arguments)
        except Exception as e:
            self._log_failure("get_prompt", name, e)
            raise

    # ── Tools ─────────────────────────────────────────────────────────

    async def list_tools(self) -> list[Tool]:
        logger.debug("Handling ListToolsRequest")
        return [Tool(**d) for d in describe_tools()]

    async def call_tool(
        self, name: str, arguments: Optional[dict[str, Any]] = None
    ) -> list[TextContent]:
        logger.debug(f"Handling CallToolRequest tool={name} args={arguments}")
        try:
            request = validate_request({"name": name, "arguments": arguments})
            handler = self._tools.get(request.name)
            if handler is None:
                raise UnknownOperation(request.name)
            result = await handler(request.arguments)
            return _to_content(result)
        except Exception as e:
            self._log_failure("call_tool", name, e)
            raise
