"""Operation schemas for every tool and prompt the server exposes.

Each tool is a pydantic model of its arguments plus a request variant tagged
with the tool name. Incoming requests are validated against the discriminated
union of all variants, so a request is never routed before its arguments have
the declared shape.
"""
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from sqlite_manager.sql_guard import (
    DDL_TYPES,
    READ_TYPES,
    WRITE_TYPES,
    check_prefix,
    describe_allowed,
)
from sqlite_manager.utils.errors import Issue, UnknownOperation, ValidationFailure


def _ci_pattern(*prefixes: str) -> str:
    """JSON-schema pattern for a case-insensitive prefix match."""
    alternatives = [
        "".join(f"[{c.upper()}{c.lower()}]" if c.isalpha() else c for c in p)
        for p in prefixes
    ]
    if len(alternatives) == 1:
        return f"^{alternatives[0]}"
    return "^(" + "|".join(alternatives) + ")"


def _require_prefix(value: str, allowed: frozenset) -> str:
    if not check_prefix(value, allowed):
        raise ValueError(f"a statement starting with {describe_allowed(allowed)}")
    return value


# ── Tool arguments ────────────────────────────────────────────────────


class ReadQueryInput(BaseModel):
    query: str = Field(
        ...,
        description="a SELECT query",
        json_schema_extra={"pattern": _ci_pattern("SELECT")},
    )

    @field_validator("query")
    @classmethod
    def validate_select(cls, v: str) -> str:
        return _require_prefix(v, READ_TYPES)


class WriteQueryInput(BaseModel):
    query: str = Field(
        ...,
        description="an INSERT, UPDATE, or DELETE query",
        json_schema_extra={"pattern": _ci_pattern("INSERT", "UPDATE", "DELETE")},
    )

    @field_validator("query")
    @classmethod
    def validate_write(cls, v: str) -> str:
        return _require_prefix(v, WRITE_TYPES)


class CreateTableInput(BaseModel):
    query: str = Field(
        ...,
        description="a CREATE TABLE statement",
        json_schema_extra={"pattern": _ci_pattern("CREATE TABLE")},
    )

    @field_validator("query")
    @classmethod
    def validate_create_table(cls, v: str) -> str:
        return _require_prefix(v, DDL_TYPES)


class ListTablesInput(BaseModel):
    pass


class DescribeTableInput(BaseModel):
    table_name: str = Field(..., description="Name of the table to describe", min_length=1)


class AppendInsightInput(BaseModel):
    insight: str = Field(
        ...,
        description="Business insight discovered from data analysis",
        min_length=1,
    )


# ── Tagged request variants ───────────────────────────────────────────


class ReadQueryRequest(BaseModel):
    name: Literal["read-query"]
    arguments: ReadQueryInput


class WriteQueryRequest(BaseModel):
    name: Literal["write-query"]
    arguments: WriteQueryInput


class CreateTableRequest(BaseModel):
    name: Literal["create-table"]
    arguments: CreateTableInput


class ListTablesRequest(BaseModel):
    name: Literal["list-tables"]
    arguments: ListTablesInput = Field(default_factory=ListTablesInput)


class DescribeTableRequest(BaseModel):
    name: Literal["describe-table"]
    arguments: DescribeTableInput


class AppendInsightRequest(BaseModel):
    name: Literal["append-insight"]
    arguments: AppendInsightInput


ToolRequest = Annotated[
    Union[
        ReadQueryRequest,
        WriteQueryRequest,
        CreateTableRequest,
        ListTablesRequest,
        DescribeTableRequest,
        AppendInsightRequest,
    ],
    Field(discriminator="name"),
]

_tool_request_adapter: TypeAdapter = TypeAdapter(ToolRequest)


# ── Prompt arguments ──────────────────────────────────────────────────


class McpDemoPromptInput(BaseModel):
    topic: str = Field(
        ...,
        description="Topic to seed the database with initial data",
        min_length=1,
    )


class McpDemoPromptRequest(BaseModel):
    name: Literal["mcp-demo"]
    arguments: McpDemoPromptInput


# ── Descriptors ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class OperationDescriptor:
    """Name, description and argument shape of a registered operation."""

    name: str
    description: str
    input_model: type

    def input_schema(self) -> dict[str, Any]:
        return self.input_model.model_json_schema()


TOOL_OPERATIONS: dict[str, OperationDescriptor] = {
    d.name: d
    for d in (
        OperationDescriptor("read-query", "Execute a read-only SQL query", ReadQueryInput),
        OperationDescriptor("write-query", "Execute a write SQL query", WriteQueryInput),
        OperationDescriptor(
            "create-table", "Create a new table in the database", CreateTableInput
        ),
        OperationDescriptor("list-tables", "List all tables in the database", ListTablesInput),
        OperationDescriptor(
            "describe-table", "Get schema information for a table", DescribeTableInput
        ),
        OperationDescriptor(
            "append-insight", "Add a business insight to the memo", AppendInsightInput
        ),
    )
}

MCP_DEMO_PROMPT = OperationDescriptor(
    "mcp-demo", "A demo prompt for SQLite MCP Server", McpDemoPromptInput
)


# ── Validation ────────────────────────────────────────────────────────


def _to_validation_failure(name: str, err: ValidationError) -> ValidationFailure:
    issues = []
    for detail in err.errors():
        loc = [str(p) for p in detail["loc"]]
        # Tagged-union locations are prefixed with the tag and "arguments"
        if loc and loc[0] == name:
            loc = loc[1:]
        if loc and loc[0] == "arguments" and len(loc) > 1:
            loc = loc[1:]
        expected = detail["msg"]
        if expected.startswith("Value error, "):
            expected = expected[len("Value error, "):]
        issues.append(
            Issue(field=".".join(loc) or "arguments", expected=expected, actual=detail.get("input"))
        )
    summary = f"Invalid arguments for '{name}': {len(issues)} issue(s)"
    return ValidationFailure(summary, issues)


def validate_request(raw: dict[str, Any]):
    """Validate an untyped {name, arguments} mapping into a tool request variant.

    Raises UnknownOperation for a name no descriptor is registered under and
    ValidationFailure when the arguments do not fit the operation's shape.
    """
    name = raw.get("name")
    if name not in TOOL_OPERATIONS:
        raise UnknownOperation(str(name))
    arguments = raw.get("arguments")
    try:
        return _tool_request_adapter.validate_python(
            {"name": name, "arguments": {} if arguments is None else arguments}
        )
    except ValidationError as e:
        raise _to_validation_failure(name, e) from e


def validate(name: str, arguments: Optional[dict[str, Any]]) -> BaseModel:
    """Validate raw tool arguments and return the typed argument model."""
    return validate_request({"name": name, "arguments": arguments}).arguments


def validate_prompt(name: str, arguments: Optional[dict[str, Any]]) -> McpDemoPromptRequest:
    try:
        return McpDemoPromptRequest.model_validate(
            {"name": name, "arguments": {} if arguments is None else arguments}
        )
    except ValidationError as e:
        raise _to_validation_failure(name, e) from e


def describe_tools() -> list[dict[str, Any]]:
    """Discovery projection of every tool: name, description and input schema."""
    return [
        {
            "name": d.name,
            "description": d.description,
            "inputSchema": d.input_schema(),
        }
        for d in TOOL_OPERATIONS.values()
    ]
