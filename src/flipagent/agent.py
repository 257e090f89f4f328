import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import anthropic

from flipagent.config import Settings, get_settings
from flipagent.conversation import ensure_alternating_roles
from flipagent.model import ModelClient
from flipagent.retry import is_prompt_too_long
from flipagent.sessions import InMemorySessionManager, Session, SessionManager
from flipagent.tools.definitions import build_tool_index
from flipagent.tools.dispatch import ToolContext, ToolExecutor
from flipagent.tools.index import ToolDescriptor, ToolIndex
from flipagent.tools.meta import builtin_handlers
from flipagent.tools.results import to_tool_result_block
from flipagent.tools.selection import select_tools, to_api_tools

logger = logging.getLogger(__name__)

PROMPT_TOO_LONG_MESSAGE = (
    "I apologize, but the conversation has grown too long. "
    "Please start a new conversation with /new."
)
GENERIC_ERROR_MESSAGE = "Sorry, I encountered an error processing your request. Please try again."
MAX_ITERATIONS_NOTICE = "(Reached maximum tool call iterations.)"

SYSTEM_PROMPT = """You are FlipAgent, an AI assistant for e-commerce arbitrage.

You help users:
- Find price arbitrage opportunities across Amazon, eBay, Walmart, and AliExpress
- Auto-create optimized listings on selling platforms
- Monitor and fulfill orders via dropshipping
- Track profit, margins, and ROI across all operations
- Manage platform credentials and API keys

Be concise and direct. Use data when available. Format currency as $XX.XX.
When presenting margins, use percentage format (e.g., "32% margin").

{skills}

Available platforms: amazon, ebay, walmart, aliexpress

If you need a tool that is not available, use tool_search to find it.

Keep responses concise but informative."""

SUMMARY_ACK = "I understand the context from our previous conversation. How can I help?"


class LoopState(enum.Enum):
    """How the agent loop ended."""

    DONE = "done"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"
    FATAL_ERROR = "fatal_error"


@dataclass
class ToolCallRequest:
    id: str
    name: str
    input: dict


@dataclass
class AgentResponse:
    text: str
    state: LoopState
    iterations: int = 0
    tool_calls: int = 0
    messages: list[dict] = field(default_factory=list)


def _block_field(block, key: str):
    """Read a field from an SDK content block or a plain dict block."""
    if isinstance(block, dict):
        return block.get(key)
    return getattr(block, key, None)


def _partition_content(content) -> tuple[list[str], list[ToolCallRequest]]:
    """Split response content into text segments and tool calls, keeping order."""
    texts: list[str] = []
    tool_calls: list[ToolCallRequest] = []
    for block in content:
        block_type = _block_field(block, "type")
        if block_type == "text":
            texts.append(_block_field(block, "text") or "")
        elif block_type == "tool_use":
            tool_calls.append(
                ToolCallRequest(
                    id=_block_field(block, "id"),
                    name=_block_field(block, "name"),
                    input=_block_field(block, "input"),
                )
            )
    return texts, tool_calls


class Agent:
    def __init__(
        self,
        settings: Settings | None = None,
        index: ToolIndex | None = None,
        executor: ToolExecutor | None = None,
        model: ModelClient | None = None,
        session_manager: SessionManager | None = None,
        handlers: dict | None = None,
        client: anthropic.AsyncAnthropic | None = None,
        skill_context: Callable[[str], str] | None = None,
    ):
        self.settings = settings or get_settings()
        self.index = index if index is not None else build_tool_index()
        logger.info(
            "Tool index initialized: %d tools, %d core",
            len(self.index),
            len(self.index.core_tools()),
        )

        if executor is None:
            executor = ToolExecutor(builtin_handlers(self.index))
        if handlers:
            executor.register_group(handlers)
        self.executor = executor

        if model is None:
            if client is None:
                if not self.settings.anthropic_api_key:
                    logger.warning("ANTHROPIC_API_KEY not set, agent will not be able to respond")
                client = anthropic.AsyncAnthropic(
                    api_key=self.settings.anthropic_api_key or "missing"
                )
            model = ModelClient(
                client,
                model=self.settings.claude_model,
                max_tokens=self.settings.claude_max_tokens,
                max_attempts=self.settings.retry_max_attempts,
                base_delay=self.settings.retry_base_delay,
                debounce_interval=self.settings.stream_debounce_ms / 1000,
            )
        self.model = model

        self.session_manager = session_manager or InMemorySessionManager(
            max_history=self.settings.max_history_messages
        )
        self.skill_context = skill_context

    def _build_system(self, text: str) -> list[dict]:
        skills = self.skill_context(text) if self.skill_context else ""
        # Cache the system prompt (5-min TTL)
        return [
            {
                "type": "text",
                "text": SYSTEM_PROMPT.replace("{skills}", skills),
                "cache_control": {"type": "ephemeral"},
            }
        ]

    def _build_messages(self, session: Session) -> list[dict]:
        messages = []
        if session.context_summary:
            messages.append(
                {
                    "role": "user",
                    "content": f"[Previous conversation summary: {session.context_summary}]",
                }
            )
            messages.append({"role": "assistant", "content": SUMMARY_ACK})
        messages.extend(self.session_manager.get_history(session))
        return messages

    async def handle_message(
        self,
        message: str,
        session: Session,
        stream_callback: Callable[[str], None] | None = None,
    ) -> str | None:
        text = message.strip()
        if not text:
            return None

        log_extra = {"session_id": session.session_id, "user_id": session.user_id}
        self.session_manager.add_to_history(session, "user", text)

        tools = select_tools(self.index, text, self.settings.max_tools)
        logger.info("Tool filtering: %d tools selected", len(tools), extra=log_extra)

        response = await self.run_loop(
            self._build_messages(session),
            system=self._build_system(text),
            tools=tools,
            context=ToolContext(user_id=session.user_id, session_id=session.session_id),
            stream_callback=stream_callback,
        )
        logger.info(
            "handle_message finished: state=%s, iterations=%d, tool_calls=%d",
            response.state.value,
            response.iterations,
            response.tool_calls,
            extra=log_extra,
        )

        if not response.text:
            return None
        self.session_manager.add_to_history(session, "assistant", response.text)
        return response.text

    async def run_loop(
        self,
        messages: list[dict],
        system,
        tools: list[ToolDescriptor],
        context: ToolContext,
        stream_callback: Callable[[str], None] | None = None,
    ) -> AgentResponse:
        """Call Claude, execute requested tools, repeat until a text answer.

        Tool calls run one at a time in the order Claude returned them.  Stops
        after ``settings.max_iterations`` model calls.  Model failures end the
        loop with a fixed message instead of raising.
        """
        api_tools = to_api_tools(tools)
        max_iterations = self.settings.max_iterations
        iterations = 0
        tool_call_count = 0
        final_text = ""

        while iterations < max_iterations:
            iterations += 1
            current = ensure_alternating_roles(messages)

            try:
                response = await self.model.create(
                    system, current, api_tools, stream_callback=stream_callback
                )
            except Exception as e:
                logger.error(
                    "Model call failed at iteration %d: %s",
                    iterations,
                    e,
                    extra={"iteration": iterations, "user_id": context.user_id},
                )
                return AgentResponse(
                    text=PROMPT_TOO_LONG_MESSAGE if is_prompt_too_long(e) else GENERIC_ERROR_MESSAGE,
                    state=LoopState.FATAL_ERROR,
                    iterations=iterations,
                    tool_calls=tool_call_count,
                    messages=current,
                )

            texts, tool_calls = _partition_content(response.content)
            final_text = "\n".join(texts)

            if not tool_calls:
                return AgentResponse(
                    text=final_text,
                    state=LoopState.DONE,
                    iterations=iterations,
                    tool_calls=tool_call_count,
                    messages=current + [{"role": "assistant", "content": response.content}],
                )

            tool_call_count += len(tool_calls)
            tool_results = []
            for call in tool_calls:
                logger.info(
                    "Executing tool %s",
                    call.name,
                    extra={"tool_name": call.name, "iteration": iterations},
                )
                result = await self.executor.execute(call.name, call.input, context)
                if not result.ok:
                    logger.warning(
                        "Tool %s returned error (%s): %s",
                        call.name,
                        result.kind.value,
                        result.message,
                        extra={"tool_name": call.name, "iteration": iterations},
                    )
                tool_results.append(to_tool_result_block(call.id, result))

            messages = current + [
                {"role": "assistant", "content": response.content},
                {"role": "user", "content": tool_results},
            ]

        logger.warning(
            "Agent hit max iterations (%d)",
            max_iterations,
            extra={"iteration": iterations, "user_id": context.user_id},
        )
        return AgentResponse(
            text=f"{final_text}\n\n{MAX_ITERATIONS_NOTICE}" if final_text else MAX_ITERATIONS_NOTICE,
            state=LoopState.MAX_ITERATIONS_REACHED,
            iterations=iterations,
            tool_calls=tool_call_count,
            messages=messages,
        )
