"""Tool result types and serialisation for tool_result blocks.

Every tool execution yields either ``ToolOk`` or ``ToolErr``; the orchestrator
never has to catch exceptions from tools.  Errors are fed back to Claude as
regular tool results (``is_error``) so it can adapt.

Result validation is warn-only: if a successful payload fails validation it
is logged and returned unchanged so the conversation loop is never broken.
"""

import enum
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


def _json_default(o: object) -> object:
    """JSON encoder fallback for Decimal amounts and timestamps in tool payloads."""
    if isinstance(o, Decimal):
        return float(o)
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


class ToolErrorKind(str, enum.Enum):
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_INPUT = "invalid_input"
    NOT_IMPLEMENTED = "not_implemented"
    EXECUTION_FAILED = "execution_failed"


class ToolOk(BaseModel):
    ok: Literal[True] = True
    payload: Any = None

    def to_content(self) -> str:
        if isinstance(self.payload, str):
            return self.payload
        return json.dumps(self.payload, ensure_ascii=False, default=_json_default)


class ToolErr(BaseModel):
    ok: Literal[False] = False
    kind: ToolErrorKind
    message: str

    def to_content(self) -> str:
        return json.dumps({"error": self.message, "kind": self.kind.value}, ensure_ascii=False)


ToolResult = ToolOk | ToolErr


def to_tool_result_block(tool_use_id: str, result: ToolResult) -> dict:
    """Build the ``tool_result`` content block sent back to Claude."""
    block = {
        "type": "tool_result",
        "tool_use_id": tool_use_id,
        "content": result.to_content(),
    }
    if not result.ok:
        block["is_error"] = True
    return block


# --- Payload schemas ---


class ToolPayload(BaseModel):
    """Base model for successful tool payloads.

    ``extra="allow"`` tolerates additional fields while still catching
    missing required fields and wrong types.
    """

    model_config = ConfigDict(extra="allow")


class ToolSearchEntry(ToolPayload):
    name: str
    description: str
    platform: str
    category: str


class ToolSearchResult(ToolPayload):
    tools: list[ToolSearchEntry]
    total: int


PAYLOAD_SCHEMAS: dict[str, type[ToolPayload]] = {
    "tool_search": ToolSearchResult,
}


def validate_tool_result(name: str, payload: Any) -> Any:
    """Validate a payload against its schema, if one is registered. Never raises."""
    schema = PAYLOAD_SCHEMAS.get(name)
    if schema is None or not isinstance(payload, dict):
        return payload
    try:
        schema.model_validate(payload)
    except ValidationError as e:
        logger.warning(
            "Tool result validation failed for %s: %s", name, e, extra={"tool_name": name}
        )
    return payload
