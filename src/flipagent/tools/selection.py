"""Per-message tool selection.

Sending every tool on every request is expensive, so each message gets the
core tools plus whatever the detected platform/category hints pull in, capped
at ``max_tools``.
"""

import logging

from flipagent.hints import detect_tool_hints
from flipagent.tools.index import ToolDescriptor, ToolIndex

logger = logging.getLogger(__name__)

MAX_TOOLS = 50


def select_tools(
    index: ToolIndex, message: str, max_tools: int = MAX_TOOLS
) -> list[ToolDescriptor]:
    """Return core tools followed by hint-matched tools, in insertion order.

    Core tools are added unconditionally; the cap only limits hint matches.
    """
    selected: dict[str, ToolDescriptor] = {t.name: t for t in index.core_tools()}

    hints = detect_tool_hints(message)

    for platform in hints.platforms:
        for tool in index.by_platform(platform):
            if len(selected) >= max_tools:
                break
            selected.setdefault(tool.name, tool)

    for category in hints.categories:
        for tool in index.by_category(category):
            if len(selected) >= max_tools:
                break
            selected.setdefault(tool.name, tool)

    logger.debug(
        "Tool selection: %d tools (platforms=%s, categories=%s)",
        len(selected),
        list(hints.platforms),
        list(hints.categories),
    )
    return list(selected.values())


def to_api_tools(tools: list[ToolDescriptor], cache_last: bool = True) -> list[dict]:
    """Tool schemas for the Messages API.

    Sets ``cache_control`` on the last tool for prompt caching.
    """
    api_tools = [t.to_api_schema() for t in tools]
    if api_tools and cache_last:
        api_tools[-1] = {**api_tools[-1], "cache_control": {"type": "ephemeral"}}
    return api_tools
