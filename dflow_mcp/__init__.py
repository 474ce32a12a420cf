"""DFlow prediction market MCP gateway."""

__version__ = "1.0.0"
