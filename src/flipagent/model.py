"""Streaming Claude API client with retries."""

import logging

import anthropic

from flipagent.retry import call_with_retry
from flipagent.streaming import DEFAULT_INTERVAL, StreamDebouncer

logger = logging.getLogger(__name__)


def resolve_model_name(model: str) -> str:
    """Strip an ``anthropic/`` provider prefix from a configured model name."""
    return model.removeprefix("anthropic/")


class ModelClient:
    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        max_tokens: int = 4096,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        debounce_interval: float = DEFAULT_INTERVAL,
        sleep=None,
        debouncer_factory=StreamDebouncer,
    ):
        self.client = client
        self.model = resolve_model_name(model)
        self.max_tokens = max_tokens
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.debounce_interval = debounce_interval
        self._sleep = sleep
        self._debouncer_factory = debouncer_factory

    async def create(self, system, messages: list[dict], tools: list[dict], stream_callback=None):
        """Run one streamed Messages API call and return the final message.

        Partial text goes to ``stream_callback`` (debounced).  Each retry
        starts with an empty stream buffer so earlier partial text is not
        flushed twice.
        """
        debouncer = (
            self._debouncer_factory(stream_callback, self.debounce_interval)
            if stream_callback
            else None
        )

        async def attempt():
            if debouncer:
                debouncer.reset()
            logger.debug("API call: sending %d messages, %d tools", len(messages), len(tools))
            async with self.client.messages.stream(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=messages,
                tools=tools,
            ) as stream:
                async for event in stream:
                    if debouncer and event.type == "text":
                        debouncer.on_text_delta(event.snapshot)
                return await stream.get_final_message()

        try:
            response = await call_with_retry(
                attempt,
                max_attempts=self.max_attempts,
                base_delay=self.base_delay,
                sleep=self._sleep,
            )
        except Exception as e:
            if debouncer:
                debouncer.cancel()
            logger.error(
                "Claude API error: %s (status=%s): %s",
                type(e).__name__,
                getattr(e, "status_code", None),
                e,
            )
            raise

        if debouncer:
            debouncer.flush_now()

        usage = response.usage
        logger.info(
            "API call: input_tokens=%d, output_tokens=%d, "
            "cache_creation=%d, cache_read=%d, stop_reason=%s",
            usage.input_tokens,
            usage.output_tokens,
            getattr(usage, "cache_creation_input_tokens", 0) or 0,
            getattr(usage, "cache_read_input_tokens", 0) or 0,
            response.stop_reason,
        )
        return response
