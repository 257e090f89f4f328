"""Platform and category hints from a raw user message.

Used to preload relevant tools before the first model call.  Pure pattern
matching: no network and no tool index needed.
"""

import re
from dataclasses import dataclass

# Common spellings, typos and spacing variants of each platform name.
PLATFORM_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\bamazon\b|\bamzn\b|\bamzon\b|\bamazn\b", re.IGNORECASE), "amazon"),
    (re.compile(r"\be[\s._-]?bay\b", re.IGNORECASE), "ebay"),
    (re.compile(r"\bwal[\s._-]?ma?r?t\b|\bwallmart\b", re.IGNORECASE), "walmart"),
    (re.compile(r"\bali[\s._-]?express?\b|\baliexpres\b", re.IGNORECASE), "aliexpress"),
]

# Keep in sync with _CATEGORY_PATTERNS in tools/index.py.
CATEGORY_PATTERNS: list[tuple[re.Pattern, str]] = [
    (
        re.compile(
            r"\b(?:scan|search|find|compare|browse|discover|opportunity|opportunities"
            r"|arbitrage|arb|deals?)\b",
            re.IGNORECASE,
        ),
        "scanning",
    ),
    (re.compile(r"\b(?:list|create|publish|bulk|optimize|listing)\b", re.IGNORECASE), "listing"),
    (
        re.compile(
            r"\b(?:order|ship|track|fulfill|purchase|return|delivery|delivered)\b", re.IGNORECASE
        ),
        "fulfillment",
    ),
    (
        re.compile(
            r"\b(?:profit|revenue|report|dashboard|analytics?|margin|roi|earnings?)\b",
            re.IGNORECASE,
        ),
        "analytics",
    ),
    (
        re.compile(
            r"\b(?:prices?|reprice|fees?|costs?|calculate|calculator|cheap(?:er|est)?|budget)\b"
            r"|\$\s?\d",
            re.IGNORECASE,
        ),
        "pricing",
    ),
    (
        re.compile(
            r"\b(?:credentials?|api[\s._-]?key|setup|connect|config(?:ure)?|login)\b",
            re.IGNORECASE,
        ),
        "admin",
    ),
]


@dataclass(frozen=True)
class ToolHints:
    platforms: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()

    @property
    def has_intent(self) -> bool:
        return bool(self.categories)


def _matching_labels(message: str, patterns: list[tuple[re.Pattern, str]]) -> tuple[str, ...]:
    labels: dict[str, None] = {}
    for pattern, label in patterns:
        if pattern.search(message):
            labels[label] = None
    return tuple(labels)


def detect_tool_hints(message: str) -> ToolHints:
    """Return the platforms and categories mentioned in ``message``, in pattern order."""
    return ToolHints(
        platforms=_matching_labels(message, PLATFORM_PATTERNS),
        categories=_matching_labels(message, CATEGORY_PATTERNS),
    )
