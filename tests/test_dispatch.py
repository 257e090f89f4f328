"""Tests for tool dispatch, tool results and the built-in tool_search handler."""

import json
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from flipagent.tools.dispatch import ToolContext, ToolExecutor, strip_nulls
from flipagent.tools.meta import ToolSearchHandler, builtin_handlers
from flipagent.tools.results import (
    ToolErr,
    ToolErrorKind,
    ToolOk,
    to_tool_result_block,
    validate_tool_result,
)

CONTEXT = ToolContext(user_id="u1", session_id="s1")


class EchoHandler:
    def __init__(self):
        self.calls = []

    async def execute(self, tool_input, context):
        self.calls.append((tool_input, context))
        return {"echo": tool_input}


class RaisingHandler:
    def __init__(self, exc):
        self.exc = exc

    async def execute(self, tool_input, context):
        raise self.exc


class TestStripNulls:
    def test_removes_none_values(self):
        assert strip_nulls({"a": 1, "b": None}) == {"a": 1}

    def test_empty_dict_becomes_none(self):
        assert strip_nulls({"a": None}) is None

    def test_nested_dict(self):
        assert strip_nulls({"a": {"b": None, "c": 1}}) == {"a": {"c": 1}}

    def test_list_preserved(self):
        assert strip_nulls([1, None, 3]) == [1, None, 3]


class TestToolExecutor:
    @pytest.mark.asyncio
    async def test_executes_registered_handler(self):
        handler = EchoHandler()
        executor = ToolExecutor({"echo": handler})

        result = await executor.execute("echo", {"q": "lamp", "skip": None}, CONTEXT)

        assert isinstance(result, ToolOk)
        assert result.payload == {"echo": {"q": "lamp"}}
        assert handler.calls == [({"q": "lamp"}, CONTEXT)]

    @pytest.mark.asyncio
    async def test_all_null_input_becomes_empty_dict(self):
        handler = EchoHandler()
        executor = ToolExecutor({"echo": handler})
        await executor.execute("echo", {"x": None}, CONTEXT)
        assert handler.calls[0][0] == {}

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        result = await ToolExecutor().execute("nope", {}, CONTEXT)
        assert isinstance(result, ToolErr)
        assert result.kind is ToolErrorKind.UNKNOWN_TOOL
        assert "Unknown tool: nope" in result.message

    @pytest.mark.asyncio
    async def test_non_dict_input(self):
        executor = ToolExecutor({"echo": EchoHandler()})
        result = await executor.execute("echo", "not a dict", CONTEXT)
        assert result.kind is ToolErrorKind.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_type_error_is_invalid_input(self):
        executor = ToolExecutor({"t": RaisingHandler(TypeError("unexpected keyword 'foo'"))})
        result = await executor.execute("t", {}, CONTEXT)
        assert result.kind is ToolErrorKind.INVALID_INPUT
        assert "unexpected keyword" in result.message

    @pytest.mark.asyncio
    async def test_not_implemented(self):
        executor = ToolExecutor({"t": RaisingHandler(NotImplementedError())})
        result = await executor.execute("t", {}, CONTEXT)
        assert result.kind is ToolErrorKind.NOT_IMPLEMENTED

    @pytest.mark.asyncio
    async def test_exception_becomes_execution_failed(self, caplog):
        executor = ToolExecutor({"t": RaisingHandler(ConnectionError("eBay API timed out"))})
        result = await executor.execute("t", {}, CONTEXT)
        assert result.kind is ToolErrorKind.EXECUTION_FAILED
        assert result.message == "Tool execution failed: eBay API timed out"
        assert "Tool execution failed: t" in caplog.text

    def test_register_and_has_handler(self):
        executor = ToolExecutor()
        assert executor.has_handler("echo") is False
        executor.register("echo", EchoHandler())
        assert executor.has_handler("echo") is True

    @pytest.mark.asyncio
    async def test_register_group_replaces(self):
        first, second = EchoHandler(), EchoHandler()
        executor = ToolExecutor({"echo": first})
        executor.register_group({"echo": second})
        await executor.execute("echo", {}, CONTEXT)
        assert first.calls == []
        assert len(second.calls) == 1

    @pytest.mark.asyncio
    async def test_unserializable_payload_is_execution_failed(self, caplog):
        handler = AsyncMock()
        handler.execute.return_value = {"tags": {"lamp"}}

        result = await ToolExecutor({"t": handler}).execute("t", {}, CONTEXT)

        assert isinstance(result, ToolErr)
        assert result.kind is ToolErrorKind.EXECUTION_FAILED
        assert "could not be serialized" in result.message
        assert "Tool result not serializable: t" in caplog.text

    @pytest.mark.asyncio
    async def test_async_mock_handler(self):
        handler = AsyncMock()
        handler.execute.return_value = "plain text"
        result = await ToolExecutor({"t": handler}).execute("t", {"a": 1}, CONTEXT)
        assert result.payload == "plain text"
        handler.execute.assert_awaited_once_with({"a": 1}, CONTEXT)


class TestToolResults:
    def test_ok_block(self):
        block = to_tool_result_block("tu_1", ToolOk(payload={"price": Decimal("9.99")}))
        assert block["type"] == "tool_result"
        assert block["tool_use_id"] == "tu_1"
        assert json.loads(block["content"]) == {"price": 9.99}
        assert "is_error" not in block

    def test_ok_datetime_payload(self):
        payload = {"listed_on": date(2026, 1, 31), "at": datetime(2026, 1, 31, 12, 0)}
        assert json.loads(ToolOk(payload=payload).to_content()) == {
            "listed_on": "2026-01-31",
            "at": "2026-01-31T12:00:00",
        }

    def test_ok_string_payload_passed_through(self):
        assert ToolOk(payload="done").to_content() == "done"

    def test_err_block(self):
        err = ToolErr(kind=ToolErrorKind.UNKNOWN_TOOL, message="Unknown tool: x")
        block = to_tool_result_block("tu_2", err)
        assert block["is_error"] is True
        assert json.loads(block["content"]) == {"error": "Unknown tool: x", "kind": "unknown_tool"}

    def test_validation_warns_but_returns_payload(self, caplog):
        payload = {"tools": "not a list"}
        assert validate_tool_result("tool_search", payload) is payload
        assert "validation failed" in caplog.text

    def test_validation_skips_unknown_tools(self):
        payload = {"anything": 1}
        assert validate_tool_result("scan_ebay", payload) is payload


class TestToolSearchHandler:
    @pytest.mark.asyncio
    async def test_free_text(self, index):
        result = await ToolSearchHandler(index).execute({"query": "tracking"}, CONTEXT)
        names = [t["name"] for t in result["tools"]]
        assert names[0] in {"update_tracking", "track_shipment"}
        assert result["total"] == len(index.search_text("tracking"))

    @pytest.mark.asyncio
    async def test_platform_filter_wins_over_query(self, index):
        result = await ToolSearchHandler(index).execute(
            {"query": "anything", "platform": "walmart"}, CONTEXT
        )
        assert {t["platform"] for t in result["tools"]} == {"walmart"}

    @pytest.mark.asyncio
    async def test_platform_and_category(self, index):
        result = await ToolSearchHandler(index).execute(
            {"query": "x", "platform": "ebay", "category": "listing"}, CONTEXT
        )
        assert "create_ebay_listing" in [t["name"] for t in result["tools"]]
        assert "scan_amazon" not in [t["name"] for t in result["tools"]]
        assert {t["platform"] for t in result["tools"]} == {"ebay"}

    @pytest.mark.asyncio
    async def test_results_capped_at_twenty(self, index):
        result = await ToolSearchHandler(index).execute({"query": "a e i o"}, CONTEXT)
        assert len(result["tools"]) <= 20
        assert result["total"] >= len(result["tools"])

    @pytest.mark.asyncio
    async def test_general_defaults(self, index):
        result = await ToolSearchHandler(index).execute({"query": "compare_prices"}, CONTEXT)
        entry = result["tools"][0]
        assert entry["name"] == "compare_prices"
        assert entry["platform"] == "general"

    @pytest.mark.asyncio
    async def test_via_executor(self, index):
        executor = ToolExecutor(builtin_handlers(index))
        result = await executor.execute("tool_search", {"query": "fee", "platform": None}, CONTEXT)
        assert isinstance(result, ToolOk)
        assert "fee_calculator" in [t["name"] for t in result.payload["tools"]]
