"""Error taxonomy and protocol error mapping.

Every per-request failure raised by the dispatcher is one of the closed set of
kinds in ErrorKind. The transport boundary maps each kind onto an MCP
ErrorData via to_error_data().
"""
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, ErrorData


class ErrorKind(str, Enum):
    VALIDATION_FAILURE = "validation_failure"
    UNSUPPORTED_PROTOCOL = "unsupported_protocol"
    UNKNOWN_RESOURCE = "unknown_resource"
    EXECUTION_ERROR = "execution_error"
    UNKNOWN_OPERATION = "unknown_operation"
    TRANSPORT_STARTUP_FAILURE = "transport_startup_failure"


@dataclass(frozen=True)
class Issue:
    """A single reason a request failed validation."""

    field: str
    expected: str
    actual: Any = None


class SqliteManagerError(Exception):
    """Base class for every failure the server reports to a client."""

    kind: ErrorKind

    def payload(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": str(self)}


class ValidationFailure(SqliteManagerError):
    """Request arguments do not match the operation's declared shape."""

    kind = ErrorKind.VALIDATION_FAILURE

    def __init__(self, summary: str, issues: Optional[list[Issue]] = None):
        super().__init__(summary)
        self.summary = summary
        self.issues = list(issues or [])

    def payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "summary": self.summary,
            "issues": [asdict(i) for i in self.issues],
        }


class UnsupportedProtocol(SqliteManagerError):
    kind = ErrorKind.UNSUPPORTED_PROTOCOL

    def __init__(self, scheme: str):
        super().__init__(f"Unsupported protocol: {scheme!r}")
        self.scheme = scheme

    def payload(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "scheme": self.scheme}


class UnknownResource(SqliteManagerError):
    kind = ErrorKind.UNKNOWN_RESOURCE

    def __init__(self, uri: str):
        super().__init__(f"Unknown resource: {uri}")
        self.uri = uri

    def payload(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "uri": self.uri}


class UnknownOperation(SqliteManagerError):
    kind = ErrorKind.UNKNOWN_OPERATION

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name

    def payload(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "name": self.name}


class ExecutionError(SqliteManagerError):
    """SQLite rejected a statement. The engine message is kept verbatim."""

    kind = ErrorKind.EXECUTION_ERROR

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.query = query

    def payload(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": str(self), "query": self.query}


class TransportStartupFailure(SqliteManagerError):
    kind = ErrorKind.TRANSPORT_STARTUP_FAILURE


def handle_error(e: Exception) -> str:
    """Return a human-readable message for a failure."""
    if isinstance(e, ValidationFailure):
        details = "; ".join(
            f"{i.field} must be {i.expected} (was {i.actual!r})" for i in e.issues
        )
        return f"Error: invalid arguments. {e.summary}" + (
            f" ({details})" if details else ""
        )
    if isinstance(e, UnsupportedProtocol):
        return f"Error: Unsupported protocol '{e.scheme}'. Only memo:// resources exist."
    if isinstance(e, UnknownResource):
        return f"Error: Unknown resource '{e.uri}'. The only resource is memo://insights."
    if isinstance(e, UnknownOperation):
        return f"Error: Unknown tool '{e.name}'. Use list_tools to see available tools."
    if isinstance(e, ExecutionError):
        return f"Error: SQLite rejected the statement: {e}"
    if isinstance(e, TransportStartupFailure):
        return f"Error: Failed to start server: {e}"
    return f"Error: {type(e).__name__}: {str(e)}"


def to_error_data(e: SqliteManagerError) -> ErrorData:
    """Map an error kind onto a JSON-RPC error object."""
    kind = e.kind
    if kind in (ErrorKind.VALIDATION_FAILURE, ErrorKind.UNKNOWN_OPERATION):
        code = INVALID_PARAMS
    elif kind in (ErrorKind.UNSUPPORTED_PROTOCOL, ErrorKind.UNKNOWN_RESOURCE):
        code = INVALID_REQUEST
    elif kind in (ErrorKind.EXECUTION_ERROR, ErrorKind.TRANSPORT_STARTUP_FAILURE):
        code = INTERNAL_ERROR
    else:
        raise AssertionError(f"Unhandled error kind: {kind}")
    return ErrorData(code=code, message=str(e), data=e.payload())


def to_mcp_error(e: SqliteManagerError) -> McpError:
    return McpError(to_error_data(e))
