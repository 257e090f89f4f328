"""Debounced delivery of streamed partial text.

The model streams text in small deltas; forwarding every delta to a chat
client (message edits) would hit rate limits.  ``StreamDebouncer`` coalesces
the deltas into at most one callback per interval.

State machine::

    IDLE --on_text_delta--> PENDING --timer/flush--> FIRED --on_text_delta--> PENDING
      ^                                                                         |
      +------------------------------- reset ----------------------------------+

Time and timers are injected (``clock``, ``call_later``) so tests can drive
the debouncer with a fake clock.
"""

import asyncio
import enum
import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.2  # seconds


class DebounceState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    FIRED = "fired"


def _loop_call_later(delay: float, fn: Callable[[], None]):
    return asyncio.get_running_loop().call_later(delay, fn)


class StreamDebouncer:
    def __init__(
        self,
        callback: Callable[[str], None],
        interval: float = DEFAULT_INTERVAL,
        *,
        clock: Callable[[], float] = time.monotonic,
        call_later=_loop_call_later,
    ):
        self.callback = callback
        self.interval = interval
        self._clock = clock
        self._call_later = call_later
        self.state = DebounceState.IDLE
        self.accumulated_text = ""
        self.last_flush: float | None = None
        self._delivered_text: str | None = None
        self._timer = None

    def on_text_delta(self, full_text: str) -> None:
        """Record the full text streamed so far and arm the timer if idle."""
        self.accumulated_text = full_text
        if self.state is not DebounceState.PENDING:
            self._schedule()

    def _schedule(self) -> None:
        if self.last_flush is None:
            delay = 0.0
        else:
            delay = max(0.0, self.interval - (self._clock() - self.last_flush))
        self._timer = self._call_later(delay, self._fire)
        self.state = DebounceState.PENDING

    def _fire(self) -> None:
        self._timer = None
        self.flush()

    def flush(self) -> None:
        """Deliver the accumulated text to the callback, if there is any new text."""
        self.state = DebounceState.FIRED
        text = self.accumulated_text
        if not text or text == self._delivered_text:
            return
        self.last_flush = self._clock()
        self._delivered_text = text
        try:
            self.callback(text)
        except Exception:
            logger.warning("Stream callback failed", exc_info=True)

    def flush_now(self) -> None:
        """Cancel any pending timer and deliver the latest text immediately."""
        self.cancel()
        self.flush()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.state is DebounceState.PENDING:
            self.state = DebounceState.IDLE

    def reset(self) -> None:
        """Drop pending work and buffered text (start of a new attempt)."""
        self.cancel()
        self.accumulated_text = ""
        self._delivered_text = None
        self.state = DebounceState.IDLE
