"""Tool definitions for the Claude API agent loop.

Each entry defines a tool name, category, description, and input schema.
The ``category`` key is internal and never sent to Claude.  Platform and tags
are inferred from the name and description (see ``infer_tool_metadata``), and
``CORE_TOOL_NAMES`` marks the tools that are sent with every request.

Optional parameters are omitted from ``required``.
"""

from flipagent.tools.index import ToolDescriptor, ToolIndex, infer_tool_metadata

PLATFORMS = ["amazon", "ebay", "walmart", "aliexpress"]

CATEGORIES = ["scanning", "listing", "fulfillment", "analytics", "pricing", "admin"]

# Shared sub-schemas
_PLATFORM = {"type": "string", "description": "Platform name", "enum": PLATFORMS}

_PLATFORM_LIST = {
    "type": "array",
    "items": {"type": "string", "enum": PLATFORMS},
    "description": "Platforms to include (default: all)",
}

_MAX_RESULTS = {
    "type": "number",
    "description": "Maximum number of results (default: 10)",
    "default": 10,
}

_LISTING_ID_ONLY = {
    "type": "object",
    "properties": {"listing_id": {"type": "string", "description": "Internal listing ID"}},
    "required": ["listing_id"],
}

_ORDER_ID_ONLY = {
    "type": "object",
    "properties": {"order_id": {"type": "string", "description": "Internal order ID"}},
    "required": ["order_id"],
}


def _scan_schema(platform_label: str) -> dict:
    return {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": 'Search query (e.g., "wireless earbuds", "yoga mat")',
            },
            "category": {
                "type": "string",
                "description": f"{platform_label} category to narrow results",
            },
            "max_results": _MAX_RESULTS,
        },
        "required": ["query"],
    }


TOOLS = [
    # --- Scanning ---
    {
        "name": "scan_amazon",
        "category": "scanning",
        "description": (
            "Search Amazon for products by keyword. "
            "Returns product listings with prices, ratings, and availability."
        ),
        "input_schema": _scan_schema("Amazon"),
    },
    {
        "name": "scan_ebay",
        "category": "scanning",
        "description": (
            "Search eBay for products by keyword. "
            "Returns listings with prices, seller ratings, and shipping info."
        ),
        "input_schema": _scan_schema("eBay"),
    },
    {
        "name": "scan_walmart",
        "category": "scanning",
        "description": (
            "Search Walmart for products by keyword. "
            "Returns product listings with prices and availability."
        ),
        "input_schema": _scan_schema("Walmart"),
    },
    {
        "name": "scan_aliexpress",
        "category": "scanning",
        "description": (
            "Search AliExpress for products by keyword. "
            "Returns listings with prices, seller ratings, and shipping times."
        ),
        "input_schema": _scan_schema("AliExpress"),
    },
    {
        "name": "compare_prices",
        "category": "scanning",
        "description": (
            "Compare prices for a product across all platforms. "
            "Finds the cheapest source and best selling price."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Product name or search query"},
                "upc": {"type": "string", "description": "UPC barcode for exact matching"},
                "asin": {"type": "string", "description": "Amazon ASIN for exact matching"},
                "platforms": _PLATFORM_LIST,
            },
            "required": ["query"],
        },
    },
    {
        "name": "find_arbitrage",
        "category": "scanning",
        "description": (
            "Find arbitrage opportunities with positive margins. "
            "Scans across platforms for price gaps."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "category": {"type": "string", "description": "Product category to focus on"},
                "min_margin": {
                    "type": "number",
                    "description": "Minimum profit margin % (default: 15)",
                    "default": 15,
                },
                "max_results": _MAX_RESULTS,
            },
        },
    },
    {
        "name": "match_products",
        "category": "scanning",
        "description": (
            "Match a product across platforms using UPC, title, or other identifiers. "
            "Returns the same product on different platforms."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Product name or identifier"},
                "upc": {"type": "string", "description": "UPC barcode for exact matching"},
                "platforms": _PLATFORM_LIST,
            },
            "required": ["query"],
        },
    },
    # --- Product info ---
    {
        "name": "get_product_details",
        "category": "scanning",
        "description": (
            "Get detailed product information from a specific platform including "
            "description, images, specifications, and current price."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "platform": _PLATFORM,
                "product_id": {
                    "type": "string",
                    "description": "Platform-specific product ID (ASIN, eBay item ID, etc.)",
                },
            },
            "required": ["platform", "product_id"],
        },
    },
    {
        "name": "check_stock",
        "category": "scanning",
        "description": "Check current stock availability for a product on a specific platform.",
        "input_schema": {
            "type": "object",
            "properties": {
                "platform": _PLATFORM,
                "product_id": {"type": "string", "description": "Platform-specific product ID"},
            },
            "required": ["platform", "product_id"],
        },
    },
    {
        "name": "get_price_history",
        "category": "pricing",
        "description": "Get historical price data for a product. Shows price trends over time.",
        "input_schema": {
            "type": "object",
            "properties": {
                "product_id": {"type": "string", "description": "Internal product ID"},
                "platform": _PLATFORM,
                "days": {
                    "type": "number",
                    "description": "Number of days of history (default: 30)",
                    "default": 30,
                },
            },
            "required": ["product_id"],
        },
    },
    # --- Listing ---
    {
        "name": "create_ebay_listing",
        "category": "listing",
        "description": (
            "Create a new eBay listing for a product. "
            "Auto-optimizes title and description for search visibility."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "product_id": {"type": "string", "description": "Internal product ID to list"},
                "title": {"type": "string", "description": "Listing title (max 80 chars)"},
                "price": {"type": "number", "description": "Listing price in USD"},
                "description": {"type": "string", "description": "HTML or plain text description"},
                "category": {"type": "string", "description": "eBay category ID or name"},
            },
            "required": ["product_id", "title", "price"],
        },
    },
    {
        "name": "create_amazon_listing",
        "category": "listing",
        "description": "Create a new Amazon listing or offer for an existing product.",
        "input_schema": {
            "type": "object",
            "properties": {
                "product_id": {"type": "string", "description": "Internal product ID"},
                "title": {"type": "string", "description": "Product title"},
                "price": {"type": "number", "description": "Listing price in USD"},
                "asin": {"type": "string", "description": "ASIN to list against"},
            },
            "required": ["product_id", "title", "price"],
        },
    },
    {
        "name": "update_listing_price",
        "category": "pricing",
        "description": "Update the price of an existing listing on any platform.",
        "input_schema": {
            "type": "object",
            "properties": {
                "listing_id": {"type": "string", "description": "Internal listing ID"},
                "new_price": {"type": "number", "description": "New price in USD"},
            },
            "required": ["listing_id", "new_price"],
        },
    },
    {
        "name": "optimize_listing",
        "category": "listing",
        "description": (
            "Optimize an existing listing by improving title, description, "
            "and keywords for better search ranking."
        ),
        "input_schema": _LISTING_ID_ONLY,
    },
    {
        "name": "bulk_list",
        "category": "listing",
        "description": "Create listings for multiple arbitrage opportunities at once.",
        "input_schema": {
            "type": "object",
            "properties": {
                "opportunity_ids": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Opportunity IDs to create listings for",
                },
            },
            "required": ["opportunity_ids"],
        },
    },
    {
        "name": "pause_listing",
        "category": "listing",
        "description": "Pause an active listing (temporarily hide from buyers).",
        "input_schema": _LISTING_ID_ONLY,
    },
    {
        "name": "resume_listing",
        "category": "listing",
        "description": "Resume a paused listing (make visible to buyers again).",
        "input_schema": _LISTING_ID_ONLY,
    },
    {
        "name": "delete_listing",
        "category": "listing",
        "description": "Permanently delete a listing from the selling platform.",
        "input_schema": _LISTING_ID_ONLY,
    },
    # --- Fulfillment ---
    {
        "name": "check_orders",
        "category": "fulfillment",
        "description": "Check current orders and their statuses. Filter by status or platform.",
        "input_schema": {
            "type": "object",
            "properties": {
                "status": {
                    "type": "string",
                    "description": "Filter by order status",
                    "enum": ["pending", "purchased", "shipped", "delivered", "returned"],
                },
                "platform": _PLATFORM,
            },
        },
    },
    {
        "name": "auto_purchase",
        "category": "fulfillment",
        "description": (
            "Automatically purchase a product from the source platform to fulfill an order."
        ),
        "input_schema": _ORDER_ID_ONLY,
    },
    {
        "name": "track_shipment",
        "category": "fulfillment",
        "description": "Get shipping tracking information for an order.",
        "input_schema": _ORDER_ID_ONLY,
    },
    {
        "name": "update_tracking",
        "category": "fulfillment",
        "description": "Update tracking information for an order on the selling platform.",
        "input_schema": {
            "type": "object",
            "properties": {
                "order_id": {"type": "string", "description": "Order ID to update"},
                "tracking_number": {"type": "string", "description": "Shipping tracking number"},
                "carrier": {
                    "type": "string",
                    "description": "Shipping carrier (e.g., USPS, UPS, FedEx)",
                },
            },
            "required": ["order_id", "tracking_number"],
        },
    },
    {
        "name": "handle_return",
        "category": "fulfillment",
        "description": "Process a return request for an order.",
        "input_schema": {
            "type": "object",
            "properties": {
                "order_id": {"type": "string", "description": "Order ID for the return"},
                "reason": {"type": "string", "description": "Reason for the return"},
            },
            "required": ["order_id"],
        },
    },
    {
        "name": "calculate_profit",
        "category": "analytics",
        "description": (
            "Calculate profit for a specific order or over a date range, "
            "accounting for all fees and costs."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "order_id": {"type": "string", "description": "Order ID to calculate profit for"},
                "date_range": {
                    "type": "string",
                    "description": 'Date range (e.g., "7d", "30d", "2024-01-01..2024-01-31")',
                },
            },
        },
    },
    # --- Analytics ---
    {
        "name": "daily_report",
        "category": "analytics",
        "description": (
            "Generate a daily summary report of all activity: scans, listings, orders, and profit."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "date": {
                    "type": "string",
                    "description": "Date for the report (YYYY-MM-DD, default: today)",
                },
            },
        },
    },
    {
        "name": "profit_dashboard",
        "category": "analytics",
        "description": (
            "Show profit dashboard with revenue, costs, fees, and net profit for a given period."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "period": {
                    "type": "string",
                    "description": 'Time period (e.g., "7d", "30d", "mtd", "ytd")',
                    "default": "7d",
                },
            },
        },
    },
    {
        "name": "top_opportunities",
        "category": "analytics",
        "description": (
            "Show the top current arbitrage opportunities ranked by estimated profit margin."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Number of opportunities to show (default: 10)",
                    "default": 10,
                },
                "min_margin": {
                    "type": "number",
                    "description": "Minimum margin % to include",
                    "default": 10,
                },
            },
        },
    },
    {
        "name": "category_analysis",
        "category": "analytics",
        "description": "Analyze profitability and opportunity density by product category.",
        "input_schema": {
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "description": "Category to analyze (default: all categories)",
                },
            },
        },
    },
    {
        "name": "competitor_watch",
        "category": "pricing",
        "description": "Monitor competitor pricing and activity for a product or across a platform.",
        "input_schema": {
            "type": "object",
            "properties": {
                "product_id": {"type": "string", "description": "Product ID to monitor"},
                "platform": _PLATFORM,
            },
        },
    },
    # --- Pricing ---
    {
        "name": "fee_calculator",
        "category": "pricing",
        "description": "Calculate estimated platform fees for selling a product at a given price.",
        "input_schema": {
            "type": "object",
            "properties": {
                "platform": _PLATFORM,
                "price": {"type": "number", "description": "Selling price in USD"},
                "category": {
                    "type": "string",
                    "description": "Product category (affects fee rates)",
                },
                "shipping": {
                    "type": "number",
                    "description": "Shipping cost in USD",
                    "default": 0,
                },
            },
            "required": ["platform", "price"],
        },
    },
    # --- Credentials ---
    {
        "name": "setup_amazon_credentials",
        "category": "admin",
        "description": (
            "Store Amazon Product Advertising API credentials for product scanning and listing."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "access_key_id": {"type": "string", "description": "PA-API Access Key ID"},
                "secret_access_key": {"type": "string", "description": "PA-API Secret Access Key"},
                "partner_tag": {"type": "string", "description": "Amazon Associates partner tag"},
                "marketplace": {
                    "type": "string",
                    "description": "Amazon marketplace (default: US)",
                    "default": "US",
                },
            },
            "required": ["access_key_id", "secret_access_key", "partner_tag"],
        },
    },
    {
        "name": "setup_ebay_credentials",
        "category": "admin",
        "description": "Store eBay API credentials for listing and order management.",
        "input_schema": {
            "type": "object",
            "properties": {
                "client_id": {"type": "string", "description": "eBay API Client ID (App ID)"},
                "client_secret": {
                    "type": "string",
                    "description": "eBay API Client Secret (Cert ID)",
                },
                "refresh_token": {"type": "string", "description": "eBay OAuth refresh token"},
                "environment": {
                    "type": "string",
                    "description": "API environment",
                    "enum": ["sandbox", "production"],
                    "default": "production",
                },
            },
            "required": ["client_id", "client_secret", "refresh_token"],
        },
    },
    {
        "name": "setup_walmart_credentials",
        "category": "admin",
        "description": "Store Walmart API credentials for product scanning.",
        "input_schema": {
            "type": "object",
            "properties": {
                "client_id": {"type": "string", "description": "Walmart API Client ID"},
                "client_secret": {"type": "string", "description": "Walmart API Client Secret"},
            },
            "required": ["client_id", "client_secret"],
        },
    },
    {
        "name": "setup_aliexpress_credentials",
        "category": "admin",
        "description": "Store AliExpress API credentials for product scanning and sourcing.",
        "input_schema": {
            "type": "object",
            "properties": {
                "app_key": {"type": "string", "description": "AliExpress App Key"},
                "app_secret": {"type": "string", "description": "AliExpress App Secret"},
            },
            "required": ["app_key", "app_secret"],
        },
    },
    {
        "name": "list_credentials",
        "category": "admin",
        "description": "List all configured platform credentials (shows platforms, not secrets).",
        "input_schema": {"type": "object", "properties": {}},
    },
    {
        "name": "delete_credentials",
        "category": "admin",
        "description": "Delete stored credentials for a platform.",
        "input_schema": {
            "type": "object",
            "properties": {"platform": _PLATFORM},
            "required": ["platform"],
        },
    },
    # --- Meta ---
    {
        "name": "tool_search",
        "category": "general",
        "description": (
            "Search for available tools by name, platform, or category. Use this when you "
            "need a specialized tool that is not in your current set."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query describing what you need",
                },
                "platform": {**_PLATFORM, "description": "Filter by platform"},
                "category": {
                    "type": "string",
                    "description": "Filter by category",
                    "enum": CATEGORIES,
                },
            },
            "required": ["query"],
        },
    },
]

# Tools sent with every API call, regardless of detected hints.
CORE_TOOL_NAMES = frozenset(
    {
        # Scanning
        "scan_amazon",
        "scan_ebay",
        "compare_prices",
        "find_arbitrage",
        # Product info
        "get_product_details",
        "check_orders",
        # Analytics
        "profit_dashboard",
        "top_opportunities",
        "daily_report",
        # Credentials
        "setup_amazon_credentials",
        "setup_ebay_credentials",
        "setup_walmart_credentials",
        "setup_aliexpress_credentials",
        "list_credentials",
        "delete_credentials",
        # Meta
        "tool_search",
    }
)


def to_descriptor(tool: dict, core_names=CORE_TOOL_NAMES) -> ToolDescriptor:
    return ToolDescriptor(
        name=tool["name"],
        description=tool["description"],
        input_schema=tool["input_schema"],
        metadata=infer_tool_metadata(
            tool["name"],
            tool["description"],
            is_core=tool["name"] in core_names,
            category=tool.get("category"),
        ),
    )


def build_tool_index(tools: list[dict] | None = None, core_names=CORE_TOOL_NAMES) -> ToolIndex:
    """Build a fresh index from tool definitions (defaults to ``TOOLS``)."""
    index = ToolIndex()
    index.register_all(to_descriptor(t, core_names) for t in (TOOLS if tools is None else tools))
    return index
