"""Tool dispatch: one registered handler per tool name.

Handlers are grouped per domain (``builtin_handlers`` in ``tools/meta.py``,
platform adapters supplied by the caller) and registered at startup.
``ToolExecutor.execute`` always returns a ``ToolResult``; handler failures
are converted to ``ToolErr`` here and never reach the agent loop.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from flipagent.tools.results import ToolErr, ToolErrorKind, ToolOk, ToolResult, validate_tool_result

logger = logging.getLogger(__name__)


def strip_nulls(value):
    """Recursively remove None values from dicts/lists.

    Empty dicts that result from stripping are collapsed to None so that
    handlers fall back to their own defaults.
    """
    if isinstance(value, dict):
        cleaned = {k: strip_nulls(v) for k, v in value.items() if v is not None}
        return cleaned or None
    if isinstance(value, list):
        return [strip_nulls(v) for v in value]
    return value


@dataclass(frozen=True)
class ToolContext:
    user_id: str
    session_id: str | None = None


class ToolHandler(Protocol):
    async def execute(self, tool_input: dict, context: ToolContext) -> Any: ...


class ToolExecutor:
    def __init__(self, handlers: dict[str, ToolHandler] | None = None):
        self._handlers: dict[str, ToolHandler] = {}
        if handlers:
            self.register_group(handlers)

    def register(self, name: str, handler: ToolHandler) -> None:
        if name in self._handlers:
            logger.warning("Replacing handler for tool %s", name, extra={"tool_name": name})
        self._handlers[name] = handler

    def register_group(self, handlers: dict[str, ToolHandler]) -> None:
        for name, handler in handlers.items():
            self.register(name, handler)

    def has_handler(self, name: str) -> bool:
        return name in self._handlers

    async def execute(self, name: str, tool_input: dict, context: ToolContext) -> ToolResult:
        if not isinstance(tool_input, dict):
            return ToolErr(
                kind=ToolErrorKind.INVALID_INPUT,
                message=f"Invalid tool input type for '{name}': expected dict",
            )

        handler = self._handlers.get(name)
        if handler is None:
            logger.warning("Unknown tool requested: %s", name, extra={"tool_name": name})
            return ToolErr(kind=ToolErrorKind.UNKNOWN_TOOL, message=f"Unknown tool: {name}")

        cleaned = strip_nulls(tool_input) or {}

        logger.debug(
            "Executing tool: %s with keys: %s",
            name,
            list(cleaned.keys()),
            extra={"tool_name": name},
        )

        try:
            payload = await handler.execute(cleaned, context)
        except TypeError as e:
            logger.warning(
                "Tool input validation failed: %s: %s", name, e, extra={"tool_name": name}
            )
            return ToolErr(
                kind=ToolErrorKind.INVALID_INPUT, message=f"Invalid arguments for '{name}': {e}"
            )
        except NotImplementedError:
            return ToolErr(
                kind=ToolErrorKind.NOT_IMPLEMENTED, message=f"Tool '{name}' is not yet implemented"
            )
        except Exception as e:
            logger.exception("Tool execution failed: %s", name, extra={"tool_name": name})
            return ToolErr(
                kind=ToolErrorKind.EXECUTION_FAILED, message=f"Tool execution failed: {e}"
            )

        result = ToolOk(payload=validate_tool_result(name, payload))
        try:
            result.to_content()
        except (TypeError, ValueError) as e:
            logger.warning(
                "Tool result not serializable: %s: %s", name, e, extra={"tool_name": name}
            )
            return ToolErr(
                kind=ToolErrorKind.EXECUTION_FAILED,
                message=f"Tool '{name}' returned a result that could not be serialized: {e}",
            )
        return result
