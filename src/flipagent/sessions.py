"""Session types and the history interface the agent depends on.

Durable storage lives outside this package; ``InMemorySessionManager`` is the
process-local default.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Protocol


@dataclass
class Session:
    session_id: str
    user_id: str
    context_summary: str = ""


class SessionManager(Protocol):
    def add_to_history(self, session: Session, role: str, content: str) -> None: ...

    def get_history(self, session: Session) -> list[dict]: ...


class InMemorySessionManager:
    """Keeps the last ``max_history`` turns per session in memory."""

    def __init__(self, max_history: int = 20):
        self.max_history = max_history
        self._history: dict[str, list[dict]] = defaultdict(list)

    def add_to_history(self, session: Session, role: str, content: str) -> None:
        history = self._history[session.session_id]
        history.append({"role": role, "content": content})
        if len(history) > self.max_history:
            del history[: len(history) - self.max_history]

    def get_history(self, session: Session) -> list[dict]:
        return [dict(turn) for turn in self._history[session.session_id]]

    def clear(self, session: Session) -> None:
        self._history.pop(session.session_id, None)
