"""Built-in tools that operate on the agent itself rather than a platform."""

from flipagent.tools.dispatch import ToolContext
from flipagent.tools.index import SearchQuery, ToolIndex

MAX_SEARCH_RESULTS = 20


class ToolSearchHandler:
    """Lets Claude discover tools that were not preloaded for this message."""

    def __init__(self, index: ToolIndex):
        self.index = index

    async def execute(self, tool_input: dict, context: ToolContext) -> dict:
        results = self.index.search(
            SearchQuery(
                platform=tool_input.get("platform"),
                category=tool_input.get("category"),
                free_text=tool_input.get("query"),
            )
        )
        return {
            "tools": [
                {
                    "name": t.name,
                    "description": t.description,
                    "platform": t.metadata.platform or "general",
                    "category": t.metadata.primary_category or "general",
                }
                for t in results[:MAX_SEARCH_RESULTS]
            ],
            "total": len(results),
        }


def builtin_handlers(index: ToolIndex) -> dict:
    return {"tool_search": ToolSearchHandler(index)}
