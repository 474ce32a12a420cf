"""Static tool catalog and server descriptor."""

from __future__ import annotations

from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field

from dflow_mcp import __version__
from dflow_mcp.api import ApiError
from dflow_mcp.config import Settings, get_settings
from dflow_mcp.utils import get_logger

_PAGE_LIMIT = {
    "type": "integer",
    "minimum": 0,
    "maximum": 100,
}

TOOL_DEFS: list[dict[str, Any]] = [
    {
        "name": "get_events",
        "description": "Get a paginated list of all events with optional filtering and sorting.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {**_PAGE_LIMIT, "description": "Maximum number of events to return (0-100)"},
                "cursor": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Pagination cursor for fetching next page",
                },
            },
            "required": [],
        },
    },
    {
        "name": "get_markets",
        "description": "Get a paginated list of markets with optional filtering.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {**_PAGE_LIMIT, "description": "Number of markets to return (0-100)"},
                "cursor": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Pagination cursor for fetching next page",
                },
            },
            "required": [],
        },
    },
    {
        "name": "get_trades",
        "description": "Get a paginated list of trades across markets with optional filtering.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {**_PAGE_LIMIT, "description": "Number of trades to return (0-100)"},
                "cursor": {"type": "string", "description": "Pagination cursor for fetching next page"},
            },
            "required": [],
        },
    },
    {
        "name": "get_market_by_mint",
        "description": "Get market details by token mint address.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "mint": {"type": "string", "description": "Token mint address to look up market"},
            },
            "required": ["mint"],
        },
    },
    {
        "name": "get_live_data",
        "description": "Get live data for events and markets.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "event_ticker": {"type": "string", "description": "Event ticker for live data"},
                "market_ticker": {"type": "string", "description": "Market ticker for live data"},
            },
            "required": [],
        },
    },
]


class ToolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    inputSchema: dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})

    @property
    def required(self) -> list[str]:
        return list(self.inputSchema.get("required") or [])

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.inputSchema}


class ToolCatalog:
    """Read-only, ordered set of tool descriptors."""

    def __init__(self, tools: list[ToolDescriptor]):
        names = [t.name for t in tools]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate tool names in catalog: {', '.join(duplicates)}")
        self._tools: tuple[ToolDescriptor, ...] = tuple(tools)
        self._by_name = {t.name: t for t in self._tools}

    @classmethod
    def default(cls) -> "ToolCatalog":
        return cls.from_defs(TOOL_DEFS)

    @classmethod
    def from_defs(cls, defs: list[dict[str, Any]]) -> "ToolCatalog":
        return cls([ToolDescriptor(**d) for d in defs])

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> ToolDescriptor | None:
        return self._by_name.get(name)

    @property
    def names(self) -> list[str]:
        return [t.name for t in self._tools]

    def as_list(self) -> list[dict[str, Any]]:
        return [t.to_dict() for t in self._tools]


def build_server_info(settings: Settings | None = None) -> dict[str, Any]:
    """ServerInfo/capabilities descriptor returned by ``initialize``."""
    settings = settings or get_settings()
    return {
        "protocolVersion": settings.protocol_version,
        "capabilities": {
            "tools": {"listChanged": False},
            "prompts": {},
            "resources": {},
        },
        "serverInfo": {
            "name": settings.server_name,
            "version": __version__,
            "description": settings.server_description,
        },
    }


async def load_tool_catalog(client: Any, settings: Settings | None = None) -> ToolCatalog:
    """Load the catalog once at startup.

    Uses ``settings.tool_catalog_url`` when configured; any fetch or validation
    problem keeps the built-in catalog.
    """
    settings = settings or get_settings()
    logger = get_logger("mcp.catalog")
    url = settings.tool_catalog_url
    if not url:
        return ToolCatalog.default()

    try:
        data = await client.fetch_json(url)
        defs = data.get("tools") if isinstance(data, dict) else None
        if not defs:
            raise ValueError("catalog document has no tools")
        catalog = ToolCatalog.from_defs(defs)
    except (ValueError, TypeError) as e:
        logger.warning("remote_catalog_invalid", url=url, error=str(e))
        return ToolCatalog.default()
    except ApiError as e:
        logger.warning("remote_catalog_unavailable", url=url, error=str(e))
        return ToolCatalog.default()

    logger.info("remote_catalog_loaded", url=url, tools=len(catalog))
    return catalog
