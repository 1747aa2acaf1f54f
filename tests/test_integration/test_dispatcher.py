"""Integration tests: requests routed through the dispatcher to a real database."""
import json

import pytest

from sqlite_manager.resources.insights import MEMO_URI, NO_INSIGHTS_MEMO, synthesize_memo
from sqlite_manager.utils.errors import (
    ExecutionError,
    UnknownOperation,
    UnknownResource,
    UnsupportedProtocol,
    ValidationFailure,
)


async def call_text(dispatcher, name, arguments=None) -> str:
    content = await dispatcher.call_tool(name, arguments)
    assert len(content) == 1
    assert content[0].type == "text"
    return content[0].text


async def call_json(dispatcher, name, arguments=None):
    return json.loads(await call_text(dispatcher, name, arguments))


class TestResources:
    async def test_list_resources(self, dispatcher):
        resources = await dispatcher.list_resources()
        assert len(resources) == 1
        assert str(resources[0].uri) == MEMO_URI
        assert resources[0].name == "Business Insights Memo"
        assert resources[0].mimeType == "text/plain"

    async def test_read_empty_memo(self, dispatcher):
        assert await dispatcher.read_resource(MEMO_URI) == NO_INSIGHTS_MEMO

    async def test_read_matches_synthesized_memo(self, dispatcher, store):
        await dispatcher.call_tool("append-insight", {"insight": "A"})
        await dispatcher.call_tool("append-insight", {"insight": "B"})
        assert await dispatcher.read_resource(MEMO_URI) == synthesize_memo(store.snapshot())

    async def test_unsupported_protocol(self, dispatcher):
        with pytest.raises(UnsupportedProtocol):
            await dispatcher.read_resource("foo://insights")

    async def test_unknown_resource(self, dispatcher):
        with pytest.raises(UnknownResource):
            await dispatcher.read_resource("memo://other")

    async def test_host_match_is_case_sensitive(self, dispatcher):
        with pytest.raises(UnknownResource):
            await dispatcher.read_resource("memo://INSIGHTS")


class TestPrompts:
    async def test_list_prompts(self, dispatcher):
        prompts = await dispatcher.list_prompts()
        assert [p.name for p in prompts] == ["mcp-demo"]
        [topic] = prompts[0].arguments
        assert topic.name == "topic"
        assert topic.required is True

    async def test_get_prompt(self, dispatcher):
        result = await dispatcher.get_prompt("mcp-demo", {"topic": "coffee shops"})
        assert result.description == "Demo template for coffee shops"
        assert result.messages[0].role == "user"
        assert "coffee shops" in result.messages[0].content.text

    async def test_get_prompt_wrong_name(self, dispatcher):
        with pytest.raises(ValidationFailure):
            await dispatcher.get_prompt("other", {"topic": "x"})

    async def test_get_prompt_empty_topic(self, dispatcher):
        with pytest.raises(ValidationFailure):
            await dispatcher.get_prompt("mcp-demo", {"topic": ""})


class TestToolDiscovery:
    async def test_list_tools(self, dispatcher):
        tools = await dispatcher.list_tools()
        assert [t.name for t in tools] == [
            "read-query",
            "write-query",
            "create-table",
            "list-tables",
            "describe-table",
            "append-insight",
        ]
        describe = next(t for t in tools if t.name == "describe-table")
        assert describe.inputSchema["required"] == ["table_name"]


class TestTableTools:
    async def test_create_then_list(self, dispatcher, users_table_sql):
        text = await call_text(dispatcher, "create-table", {"query": users_table_sql})
        assert text == "Table created successfully"
        tables = await call_json(dispatcher, "list-tables", {})
        assert {"name": "users"} in tables

    async def test_list_tables_without_arguments(self, dispatcher):
        assert await call_json(dispatcher, "list-tables") == []

    async def test_describe_in_declaration_order(self, dispatcher, users_table_sql):
        await dispatcher.call_tool("create-table", {"query": users_table_sql})
        columns = await call_json(dispatcher, "describe-table", {"table_name": "users"})
        assert [c["name"] for c in columns] == ["id", "name", "email"]
        assert set(columns[0]) == {"cid", "name", "type", "notnull", "dflt_value", "pk"}

    async def test_create_table_rejects_alter(self, dispatcher, db):
        with pytest.raises(ValidationFailure):
            await dispatcher.call_tool("create-table", {"query": "ALTER TABLE t ADD x"})
        assert await db.list_tables() == []


class TestQueryTools:
    @pytest.fixture
    async def seeded(self, dispatcher, users_table_sql):
        await dispatcher.call_tool("create-table", {"query": users_table_sql})
        await dispatcher.call_tool(
            "write-query",
            {"query": "INSERT INTO users (name, email) VALUES ('Alice', 'a@x.com'), ('Bob', 'b@x.com')"},
        )
        return dispatcher

    async def test_write_reports_affected_rows(self, seeded):
        result = await call_json(
            seeded, "write-query", {"query": "UPDATE users SET email = NULL"}
        )
        assert result == {"affected_rows": 2}

    async def test_read_returns_rows(self, seeded):
        rows = await call_json(seeded, "read-query", {"query": "SELECT name FROM users ORDER BY id"})
        assert rows == [{"name": "Alice"}, {"name": "Bob"}]

    async def test_read_is_idempotent(self, seeded):
        query = {"query": "SELECT * FROM users ORDER BY id"}
        assert await call_text(seeded, "read-query", query) == await call_text(
            seeded, "read-query", query
        )

    async def test_read_rejects_non_select(self, seeded, db):
        with pytest.raises(ValidationFailure):
            await seeded.call_tool("read-query", {"query": "DELETE FROM users"})
        assert len(await db.execute_read("SELECT * FROM users")) == 2

    async def test_write_rejects_select(self, seeded):
        with pytest.raises(ValidationFailure):
            await seeded.call_tool("write-query", {"query": "SELECT 1"})

    async def test_execution_error_surfaces(self, dispatcher):
        with pytest.raises(ExecutionError, match="no such table"):
            await dispatcher.call_tool("read-query", {"query": "SELECT * FROM missing"})

    async def test_failure_does_not_affect_next_request(self, seeded):
        with pytest.raises(ExecutionError):
            await seeded.call_tool("write-query", {"query": "INSERT INTO nowhere VALUES (1)"})
        rows = await call_json(seeded, "read-query", {"query": "SELECT count(*) AS n FROM users"})
        assert rows == [{"n": 2}]


class TestAppendInsight:
    async def test_appends_and_notifies(self, dispatcher, store, notifications):
        text = await call_text(dispatcher, "append-insight", {"insight": "A"})
        assert text == "Insight added"
        assert store.snapshot() == ("A",)
        assert notifications == [MEMO_URI]

    async def test_length_grows_by_one_per_call(self, dispatcher, store):
        for n, insight in enumerate(["A", "B", "A"], start=1):
            await dispatcher.call_tool("append-insight", {"insight": insight})
            assert len(store) == n

    async def test_rejected_insight_leaves_store_unchanged(self, dispatcher, store, notifications):
        with pytest.raises(ValidationFailure):
            await dispatcher.call_tool("append-insight", {"insight": ""})
        assert len(store) == 0
        assert notifications == []

    async def test_memo_after_two_insights(self, dispatcher):
        await dispatcher.call_tool("append-insight", {"insight": "A"})
        await dispatcher.call_tool("append-insight", {"insight": "B"})
        memo = await dispatcher.read_resource(MEMO_URI)
        assert memo.index("- A") < memo.index("- B")
        assert "revealed 2 key business insights" in memo

    async def test_without_notifier(self, db, store):
        from sqlite_manager.main import build_dispatcher

        d = build_dispatcher(db, store)
        await d.call_tool("append-insight", {"insight": "A"})
        assert len(store) == 1


class TestUnknownOperation:
    async def test_unknown_tool_raises(self, dispatcher):
        with pytest.raises(UnknownOperation, match="drop-database"):
            await dispatcher.call_tool("drop-database", {})

    def test_cannot_register_unschemaed_tool(self, dispatcher):
        with pytest.raises(ValueError, match="No operation schema"):
            dispatcher.tool("not-a-tool")
