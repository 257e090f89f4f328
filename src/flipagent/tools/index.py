"""In-memory tool catalog with lookup by platform, category and tag.

The index is built once per agent and is read-only afterwards, so a single
instance can be shared by concurrent conversations.  Every lookup returns
descriptors in registration order; free-text search ranks by score and breaks
ties by registration order.
"""

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ToolMetadata:
    platform: str | None = None
    primary_category: str | None = None
    categories: tuple[str, ...] = ()
    tags: frozenset[str] = frozenset()
    is_core: bool = False


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: dict
    metadata: ToolMetadata = field(default_factory=ToolMetadata)

    def to_api_schema(self) -> dict:
        """Tool definition as sent to Claude (internal metadata stripped)."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


@dataclass
class SearchQuery:
    platform: str | None = None
    category: str | None = None
    free_text: str | None = None


class ToolIndex:
    def __init__(self):
        self._tools: dict[str, ToolDescriptor] = {}
        self._position: dict[str, int] = {}
        self._by_platform: dict[str, set[str]] = {}
        self._by_category: dict[str, set[str]] = {}
        self._by_tag: dict[str, set[str]] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def register(self, descriptor: ToolDescriptor) -> None:
        """Add a descriptor. A duplicate name replaces the earlier one (last write wins)."""
        previous = self._tools.get(descriptor.name)
        if previous is not None:
            self._unindex(previous)
        else:
            self._position[descriptor.name] = len(self._position)
        self._tools[descriptor.name] = descriptor

        meta = descriptor.metadata
        if meta.platform:
            self._by_platform.setdefault(meta.platform.lower(), set()).add(descriptor.name)
        for cat in meta.categories:
            self._by_category.setdefault(cat.lower(), set()).add(descriptor.name)
        for tag in meta.tags:
            self._by_tag.setdefault(tag.lower(), set()).add(descriptor.name)

    def register_all(self, descriptors) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    def _unindex(self, descriptor: ToolDescriptor) -> None:
        meta = descriptor.metadata
        for index, keys in (
            (self._by_platform, [meta.platform] if meta.platform else []),
            (self._by_category, meta.categories),
            (self._by_tag, meta.tags),
        ):
            for key in keys:
                names = index.get(key.lower())
                if names is None:
                    continue
                names.discard(descriptor.name)
                if not names:
                    del index[key.lower()]

    def _ordered(self, names) -> list[ToolDescriptor]:
        return [self._tools[n] for n in sorted(names, key=self._position.__getitem__)]

    def get(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def core_tools(self) -> list[ToolDescriptor]:
        return [t for t in self._tools.values() if t.metadata.is_core]

    def by_platform(self, platform: str) -> list[ToolDescriptor]:
        return self._ordered(self._by_platform.get(platform.lower(), ()))

    def by_category(self, category: str) -> list[ToolDescriptor]:
        return self._ordered(self._by_category.get(category.lower(), ()))

    def by_platform_and_category(self, platform: str, category: str) -> list[ToolDescriptor]:
        """Tools matching BOTH the platform and the category."""
        platform_names = self._by_platform.get(platform.lower(), set())
        category_names = self._by_category.get(category.lower(), set())
        return self._ordered(platform_names & category_names)

    def search_text(self, query: str) -> list[ToolDescriptor]:
        """Rank tools against a free-text query.

        Per term: +3 for an exact tag, +2 for a substring of the name, +1 for
        a substring of the description, +2 for a substring of the platform.
        Zero scores are dropped; ties keep registration order.
        """
        terms = query.lower().split()
        if not terms:
            return []

        scores: dict[str, int] = {}
        for term in terms:
            for name in self._by_tag.get(term, ()):
                scores[name] = scores.get(name, 0) + 3

        for name, tool in self._tools.items():
            score = scores.get(name, 0)
            name_lower = name.lower()
            desc_lower = tool.description.lower()
            platform = (tool.metadata.platform or "").lower()
            for term in terms:
                if term in name_lower:
                    score += 2
                if term in desc_lower:
                    score += 1
                if platform and term in platform:
                    score += 2
            if score > 0:
                scores[name] = score

        ranked = sorted(scores, key=lambda n: (-scores[n], self._position[n]))
        return [self._tools[n] for n in ranked]

    def search(self, query: SearchQuery) -> list[ToolDescriptor]:
        """Dispatch a structured query to exactly one lookup."""
        if query.platform and query.category:
            return self.by_platform_and_category(query.platform, query.category)
        if query.platform:
            return self.by_platform(query.platform)
        if query.category:
            return self.by_category(query.category)
        if query.free_text:
            return self.search_text(query.free_text)
        return []

    def platforms(self) -> list[str]:
        return list(self._by_platform)

    def categories(self) -> list[str]:
        return list(self._by_category)


# --- Metadata inference from tool names ---

_PLATFORM_PREFIXES = [
    ("amazon_", "amazon"),
    ("ebay_", "ebay"),
    ("walmart_", "walmart"),
    ("aliexpress_", "aliexpress"),
]

# Tools whose platform is not a name prefix
_PLATFORM_EXACT = {
    "scan_amazon": "amazon",
    "scan_ebay": "ebay",
    "scan_walmart": "walmart",
    "scan_aliexpress": "aliexpress",
    "create_ebay_listing": "ebay",
    "create_amazon_listing": "amazon",
    "setup_amazon_credentials": "amazon",
    "setup_ebay_credentials": "ebay",
    "setup_walmart_credentials": "walmart",
    "setup_aliexpress_credentials": "aliexpress",
}

# Order matters: the first match becomes the primary category.
# Word boundaries treat "_" as a word character, so name parts are matched
# against the name with underscores turned into spaces.
_CATEGORY_PATTERNS = [
    (re.compile(r"\b(scan|search|find|compare|match|discover|browse)\b"), "scanning"),
    (re.compile(r"\b(listings?|optimize|publish|bulk)\b"), "listing"),
    (re.compile(r"\b(order|purchase|ship|track|fulfill|return)\b"), "fulfillment"),
    (re.compile(r"\b(report|dashboard|profit|analysis|revenue|margin)\b"), "analytics"),
    (re.compile(r"\b(prices?|reprice|fee|cost|calculate)\b"), "pricing"),
    (re.compile(r"\b(credentials?|api[\s._-]?key|config(?:ure)?|connect|setup)\b"), "admin"),
]

_DISCOVERY_PATTERN = re.compile(r"\b(get|info|status|stats|check|details)\b")

_DESCRIPTION_TAGS = [
    ("order", "order"),
    ("price", "price"),
    ("product", "product"),
    ("listing", "listing"),
    ("profit", "profit"),
    ("ship", "shipping"),
]


def infer_tool_metadata(
    name: str, description: str, is_core: bool = False, category: str | None = None
) -> ToolMetadata:
    """Derive platform, categories and tags from naming conventions.

    A tool can belong to several categories; the first match is the primary
    one.  Falls back to ``discovery`` (name only) and then ``general``.  A
    declared ``category`` replaces the inferred categories.
    """
    platform = None
    for prefix, candidate in _PLATFORM_PREFIXES:
        if name.startswith(prefix):
            platform = candidate
            break
    if platform is None:
        platform = _PLATFORM_EXACT.get(name)

    spaced_name = name.lower().replace("_", " ")
    combined = f"{spaced_name} {description.lower()}"
    if category:
        categories = [category.lower()]
    else:
        categories = [cat for pattern, cat in _CATEGORY_PATTERNS if pattern.search(combined)]
    if not categories and _DISCOVERY_PATTERN.search(spaced_name):
        categories.append("discovery")
    if not categories:
        categories.append("general")

    tags = {part for part in name.lower().split("_") if len(part) > 2}
    desc_lower = description.lower()
    for keyword, tag in _DESCRIPTION_TAGS:
        if keyword in desc_lower:
            tags.add(tag)

    return ToolMetadata(
        platform=platform,
        primary_category=categories[0],
        categories=tuple(categories),
        tags=frozenset(tags),
        is_core=is_core,
    )
