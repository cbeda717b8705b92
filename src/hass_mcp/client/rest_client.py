"""
Home Assistant REST client with bearer authentication and error mapping.

Used for the REST-only parts of the hub: automation and script configs,
config entry flows and config entries.
"""

import json
import logging
from typing import Any

import httpx

from ..errors import (
    HomeAssistantAPIError,
    HomeAssistantAuthError,
    HomeAssistantConnectionError,
)

logger = logging.getLogger(__name__)

AUTOMATION_CONFIG = "config/automation/config"
SCRIPT_CONFIG = "config/script/config"
CONFIG_ENTRIES_FLOW = "config/config_entries/flow"
CONFIG_ENTRIES_OPTIONS_FLOW = "config/config_entries/options/flow"
CONFIG_ENTRIES_FLOW_HANDLERS = "config/config_entries/flow_handlers"
CONFIG_ENTRY = "config/config_entries/entry"


class HomeAssistantRestClient:
    """Authenticated HTTP client for the Home Assistant REST API."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the REST client.

        Args:
            base_url: Home Assistant URL (http(s)://host:port)
            token: Long-lived access token
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mostly for tests
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

        self.httpx_client = httpx.AsyncClient(
            base_url=f"{self.base_url}/api/",
            headers={
                "Authorization": f"Bearer {self.token}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
        )

        logger.info(f"Initialized Home Assistant REST client for {self.base_url}")

    async def __aenter__(self) -> "HomeAssistantRestClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close HTTP client."""
        await self.httpx_client.aclose()
        logger.debug("Closed Home Assistant REST client")

    async def request(
        self,
        method: str,
        endpoint: str,
        message: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an authenticated request to the REST API.

        Args:
            method: HTTP method (GET, POST, DELETE)
            endpoint: Endpoint relative to ``/api/``
            message: Optional JSON body
            params: Optional query parameters

        Returns:
            Decoded JSON body, or an empty dict for empty responses

        Raises:
            HomeAssistantConnectionError: Connection failed
            HomeAssistantAuthError: Authentication failed
            HomeAssistantAPIError: Non-success status
        """
        endpoint = endpoint.lstrip("/")
        logger.debug(f"REST {method} {endpoint}")
        try:
            response = await self.httpx_client.request(
                method, endpoint, json=message, params=params
            )
        except httpx.TimeoutException as e:
            raise HomeAssistantConnectionError(f"Request timeout: {e}") from e
        except httpx.HTTPError as e:
            raise HomeAssistantConnectionError(
                f"Failed to connect to Home Assistant: {e}"
            ) from e

        if response.status_code == 401:
            raise HomeAssistantAuthError("Invalid authentication token")

        if response.status_code >= 400:
            try:
                error_data: Any = response.json()
            except json.JSONDecodeError:
                error_data = response.text
            raise HomeAssistantAPIError(
                f"API call failed: {response.status_code} {response.reason_phrase} - {response.text}",
                status_code=response.status_code,
                response_data=error_data,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except json.JSONDecodeError:
            return {}

    # Automation config

    async def get_automation_config(self, automation_id: str) -> dict[str, Any]:
        return await self.request("GET", f"{AUTOMATION_CONFIG}/{automation_id}")

    async def save_automation_config(
        self, automation_id: str, config: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.request("POST", f"{AUTOMATION_CONFIG}/{automation_id}", message=config)

    async def delete_automation_config(self, automation_id: str) -> dict[str, Any]:
        return await self.request("DELETE", f"{AUTOMATION_CONFIG}/{automation_id}")

    # Script config

    async def get_script_config(self, script_id: str) -> dict[str, Any]:
        return await self.request("GET", f"{SCRIPT_CONFIG}/{script_id}")

    async def save_script_config(
        self, script_id: str, config: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.request("POST", f"{SCRIPT_CONFIG}/{script_id}", message=config)

    async def delete_script_config(self, script_id: str) -> dict[str, Any]:
        return await self.request("DELETE", f"{SCRIPT_CONFIG}/{script_id}")

    # Config entry flows

    async def start_config_flow(self, handler: str) -> dict[str, Any]:
        """Start a config entry flow for an integration or helper handler."""
        return await self.request(
            "POST",
            CONFIG_ENTRIES_FLOW,
            message={"handler": handler, "show_advanced_options": True},
        )

    async def submit_config_flow_step(
        self, flow_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.request("POST", f"{CONFIG_ENTRIES_FLOW}/{flow_id}", message=data)

    async def start_options_flow(self, config_entry_id: str) -> dict[str, Any]:
        """Start an options flow for an existing config entry."""
        return await self.request(
            "POST",
            CONFIG_ENTRIES_OPTIONS_FLOW,
            message={"handler": config_entry_id, "show_advanced_options": True},
        )

    async def submit_options_flow_step(
        self, flow_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.request(
            "POST", f"{CONFIG_ENTRIES_OPTIONS_FLOW}/{flow_id}", message=data
        )

    async def get_flow_handlers(self, flow_type: str = "helper") -> Any:
        return await self.request(
            "GET", CONFIG_ENTRIES_FLOW_HANDLERS, params={"type": flow_type}
        )

    async def delete_config_entry(self, config_entry_id: str) -> dict[str, Any]:
        return await self.request("DELETE", f"{CONFIG_ENTRY}/{config_entry_id}")
