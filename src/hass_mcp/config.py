"""
Configuration for the Home Assistant MCP server.

Settings are read from environment variables (and an optional .env file)
using pydantic-settings. Both the short ``HASS_*`` names and the longer
``HOMEASSISTANT_*`` names are accepted for the connection settings.
"""

import os
from functools import lru_cache
from typing import Literal
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TransportName = Literal["stdio", "sse", "streamablehttp"]


class Settings(BaseSettings):
    """Server configuration loaded from the environment."""

    model_config = SettingsConfigDict(
        env_file=os.getenv("HASS_MCP_ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Home Assistant connection
    homeassistant_url: str = Field(
        default="http://localhost:8123",
        description="Home Assistant URL (http(s):// or ws(s)://)",
        validation_alias=AliasChoices("HASS_URL", "HOMEASSISTANT_URL"),
    )
    homeassistant_token: str = Field(
        description="Home Assistant long-lived access token",
        validation_alias=AliasChoices("HASS_ACCESS_TOKEN", "HOMEASSISTANT_TOKEN"),
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        validation_alias=AliasChoices("HOMEASSISTANT_TIMEOUT", "timeout"),
    )

    # Capability presentation
    debug: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))
    resources_to_tools: bool = Field(
        default=False,
        description="Expose resource capabilities as tools",
        validation_alias=AliasChoices("RESOURCES_TO_TOOLS", "resources_to_tools"),
    )
    limit_resources: int = Field(
        default=-1,
        ge=-1,
        description="Maximum number of resource/tool registrations, -1 for no limit",
        validation_alias=AliasChoices("LIMIT_RESOURCES", "limit_resources"),
    )
    no_long_input_types: bool = Field(
        default=False,
        validation_alias=AliasChoices("NO_LONG_INPUT_TYPES", "no_long_input_types"),
    )
    no_long_output_types: bool = Field(
        default=False,
        validation_alias=AliasChoices("NO_LONG_OUTPUT_TYPES", "no_long_output_types"),
    )

    # Transport
    transport: TransportName = Field(
        default="stdio", validation_alias=AliasChoices("TRANSPORT", "transport")
    )
    host: str = Field(
        default="0.0.0.0", validation_alias=AliasChoices("MCP_HOST", "host")
    )
    port: int = Field(
        default=3000, validation_alias=AliasChoices("PORT", "MCP_PORT", "port")
    )
    mcp_path: str = Field(
        default="/mcp", validation_alias=AliasChoices("MCP_SECRET_PATH", "mcp_path")
    )

    # Server metadata
    mcp_server_name: str = "Another Home Assistant MCP Server"
    mcp_server_version: str = "1.0.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level")
    )

    @field_validator("transport", mode="before")
    @classmethod
    def _normalize_transport(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip().lower()
            if value in ("streamable-http", "streamable_http", "http"):
                return "streamablehttp"
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def effective_log_level(self) -> str:
        """Log level after applying the DEBUG flag."""
        return "DEBUG" if self.debug else self.log_level

    @property
    def http_base_url(self) -> str:
        """Base HTTP URL of the hub, converting ws(s):// schemes to http(s)://.

        A websocket endpoint path (``/api/websocket``) is dropped.
        """
        parsed = urlparse(self.homeassistant_url.rstrip("/"))
        scheme = {"ws": "http", "wss": "https"}.get(parsed.scheme, parsed.scheme)
        path = parsed.path
        for suffix in ("/websocket", "/api"):
            if path.endswith(suffix):
                path = path[: -len(suffix)]
        return parsed._replace(scheme=scheme, path=path).geturl()

    def obfuscated(self) -> dict:
        """Settings as a dict with the access token masked, for logging."""
        data = self.model_dump()
        data["homeassistant_token"] = "***"
        return data


@lru_cache(maxsize=1)
def get_global_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()  # type: ignore[call-arg]


def get_settings() -> Settings:
    """Alias of :func:`get_global_settings` used by the entry points."""
    return get_global_settings()
