"""Core Home Assistant MCP server implementation."""

import json
import logging

from fastmcp import FastMCP

from .client.hass_client import HassClientProvider
from .config import Settings, get_global_settings
from .tools.adapter import CapabilityRegistry, PresentationMode, RegistrationCeiling
from .tools.registry import ToolsRegistry

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "This server provides access to Home Assistant functionalities through Model "
    "Context Protocol. You can list entities, call services, manage automations, and more."
)


class HomeAssistantMCPServer:
    """Home Assistant MCP server: settings, hub connection and capability groups."""

    def __init__(
        self,
        settings: Settings | None = None,
        provider: HassClientProvider | None = None,
    ):
        self.settings = settings or get_global_settings()

        if self.settings.debug:
            logger.debug(
                "Initializing Home Assistant MCP Server with config: "
                + json.dumps(self.settings.obfuscated(), default=str)
            )

        # The hub connection is opened lazily on the first capability call
        self.provider = provider or HassClientProvider(self.settings)

        self.mcp = FastMCP(
            name=self.settings.mcp_server_name,
            instructions=INSTRUCTIONS,
            version=self.settings.mcp_server_version,
        )

        self.registry = CapabilityRegistry(
            self.mcp,
            mode=PresentationMode.from_flag(self.settings.resources_to_tools),
            ceiling=RegistrationCeiling(self.settings.limit_resources),
            debug=self.settings.debug,
        )

        self.tools_registry = ToolsRegistry(self)
        self.tools_registry.register_all_tools()

    async def start(self) -> None:
        """Run the server over stdio."""
        logger.info(
            f"Starting {self.settings.mcp_server_name} v{self.settings.mcp_server_version}"
        )
        await self.mcp.run_async(show_banner=False)

    async def close(self) -> None:
        """Close the hub connection."""
        await self.provider.close()
        logger.info("Home Assistant MCP Server closed")
