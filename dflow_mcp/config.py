"""Configuration management for the DFlow MCP gateway."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Server Settings
    mcp_host: str = Field(default="0.0.0.0", description="MCP Server host")
    mcp_port: int = Field(default=8022, description="MCP Server port")
    mcp_public_url: str = Field(
        default="https://dflow.opensvm.com/api/mcp",
        description=(
            "Public MCP URL echoed back by connectMCPServer when the client "
            "does not send its own server URL."
        ),
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    debug: bool = Field(default=False)

    # Server identity (initialize / server/info)
    server_name: str = Field(default="dflow-mcp-server")
    server_description: str = Field(
        default="Prediction Market Metadata API server for DFlow platform"
    )
    protocol_version: str = Field(default="2025-06-18")

    # DFlow backend API
    dflow_api_url: str = Field(default="https://api.llm.dflow.org")
    dflow_api_key: str | None = Field(default=None)
    dflow_request_timeout_sec: float = Field(default=30.0)

    # Tool catalog
    # When set, the catalog is fetched once at startup; the built-in catalog
    # stays in place if the fetch fails.
    tool_catalog_url: str | None = Field(
        default=None,
        description="URL of a JSON document with a `tools` array",
    )
    # Resolve unknown tool names as GET /api/v1/{name without leading get_}.
    # Disabled by default: unknown tools fail with "Unknown tool".
    tool_fallback_enabled: bool = Field(default=False)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get settings instance."""
    return settings
