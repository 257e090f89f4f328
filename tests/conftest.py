import pytest

from flipagent.config import Settings
from flipagent.tools.definitions import build_tool_index


@pytest.fixture
def settings():
    """Test settings with dummy values."""
    return Settings(
        anthropic_api_key="test-key",
        claude_model="claude-sonnet-4-5-20250929",
        log_json=False,
    )


@pytest.fixture
def index():
    """Tool index built from the full catalog."""
    return build_tool_index()


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    def __init__(self, delay, fn):
        self.delay = delay
        self.fn = fn
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Stand-in for loop.call_later that records timers instead of running them."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, delay, fn):
        timer = FakeTimer(delay, fn)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def fire(self, timer: FakeTimer) -> None:
        timer.cancelled = True
        timer.fn()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return FakeScheduler()
