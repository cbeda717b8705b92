"""
Lovelace dashboard capabilities.
"""

import json
import logging
from typing import Annotated, Any, Literal

from pydantic import Field

from ..lovelace_models import DashboardConfig
from .adapter import CapabilityDescriptor, CapabilityRegistry, ResourceEntry

logger = logging.getLogger(__name__)

URL_PATH_RULES = (
    "The URL must contain a dash ('-') and must not contain spaces or special "
    "characters, except '_' and '-'"
)

CONFIG = CapabilityDescriptor(
    name="get-lovelace-config",
    uri="lovelace://config/{url_path}",
    title="Get Lovelace Config",
    description=f"Fetch Lovelace dashboard config by url_path. {URL_PATH_RULES}",
)
DASHBOARDS = CapabilityDescriptor(
    name="list-lovelace-dashboards",
    uri="lovelace://dashboards/list",
    title="List Lovelace Dashboards",
    description="List all Lovelace dashboards.",
)
RESOURCES = CapabilityDescriptor(
    name="get-lovelace-resources",
    uri="lovelace://resources",
    title="Get Lovelace Resources",
    description="Fetch Lovelace resources.",
)


def dashboard_uri(dashboard: dict[str, Any]) -> str:
    """Config URI of a dashboard: url_path, else id, else title, else ``unknown``."""
    key = (
        dashboard.get("url_path")
        or dashboard.get("id")
        or dashboard.get("title")
        or "unknown"
    )
    return CONFIG.expand(url_path=key)


def register_lovelace_tools(registry: CapabilityRegistry, provider: Any, **kwargs: Any) -> None:
    """Register dashboard read and management capabilities."""

    async def get_lovelace_config(
        url_path: Annotated[
            str,
            Field(
                description=(
                    "The URL path of the Lovelace dashboard config to fetch, e.g., "
                    f"'default-view' or 'dashboard-id'. {URL_PATH_RULES}"
                )
            ),
        ],
        force: Annotated[
            bool, Field(default=False, description="Bypass the hub's config cache")
        ] = False,
    ) -> list[ResourceEntry]:
        client = await provider.get_client()
        config = await client.get_lovelace_config(url_path, force)
        return [ResourceEntry.json(CONFIG.expand(url_path=url_path), config)]

    async def list_lovelace_dashboards() -> list[ResourceEntry]:
        client = await provider.get_client()
        dashboards = await client.list_lovelace_dashboards()
        if not isinstance(dashboards, list):
            return []
        return [
            ResourceEntry(uri=dashboard_uri(dashboard), text=json.dumps(dashboard, indent=2))
            for dashboard in dashboards
        ]

    async def get_lovelace_resources() -> list[ResourceEntry]:
        client = await provider.get_client()
        return [ResourceEntry.json(RESOURCES.uri, await client.get_lovelace_resources())]

    registry.register_resource_or_tool(CONFIG, get_lovelace_config)

    async def update_lovelace_config(
        url_path: Annotated[
            str, Field(description="The URL path of the Lovelace dashboard config to update")
        ],
        config: Annotated[
            DashboardConfig, Field(description="The updated Lovelace dashboard config")
        ],
    ) -> str:
        client = await provider.get_client()
        await client.update_lovelace_config(url_path, config)
        return "Lovelace config updated successfully"

    registry.register_tool(
        "update-lovelace-config",
        title="Update Lovelace Config",
        description="Update Lovelace dashboard config by url_path.",
        handler=update_lovelace_config,
        failure_prefix="Failed to update Lovelace config",
    )

    registry.register_resource_or_tool(DASHBOARDS, list_lovelace_dashboards)

    async def create_lovelace_dashboard(
        title: Annotated[str, Field(description="Dashboard title shown in the sidebar")],
        url_path: Annotated[str, Field(description=URL_PATH_RULES)],
        require_admin: Annotated[bool, Field(default=False)] = False,
        show_in_sidebar: Annotated[bool, Field(default=True)] = True,
    ) -> str:
        client = await provider.get_client()
        await client.create_lovelace_dashboard(title, url_path, require_admin, show_in_sidebar)
        return "Lovelace dashboard created successfully"

    registry.register_tool(
        "create-lovelace-dashboard",
        title="Create Lovelace Dashboard",
        description="Create a new Lovelace dashboard.",
        handler=create_lovelace_dashboard,
        failure_prefix="Failed to create Lovelace dashboard",
    )

    async def delete_lovelace_dashboard(
        dashboard_id: Annotated[str, Field(description="Dashboard id from list-lovelace-dashboards")],
    ) -> str:
        client = await provider.get_client()
        await client.delete_lovelace_dashboard(dashboard_id)
        return "Lovelace dashboard deleted successfully"

    registry.register_tool(
        "delete-lovelace-dashboard",
        title="Delete Lovelace Dashboard",
        description="Delete a Lovelace dashboard by dashboard_id.",
        handler=delete_lovelace_dashboard,
        failure_prefix="Failed to delete Lovelace dashboard",
        annotations={"destructiveHint": True},
    )

    registry.register_resource_or_tool(RESOURCES, get_lovelace_resources)

    async def update_lovelace_resource(
        resource_id: Annotated[str, Field(description="Resource id from get-lovelace-resources")],
        url: Annotated[str, Field(description="URL of the frontend resource, e.g. '/local/card.js'")],
        res_type: Annotated[
            Literal["module", "js", "css"], Field(description="Resource type")
        ],
    ) -> dict[str, Any]:
        client = await provider.get_client()
        return await client.update_lovelace_resource(resource_id, url, res_type)

    registry.register_tool(
        "update-lovelace-resource",
        title="Update Lovelace Resource",
        description="Change the URL or type of an existing Lovelace frontend resource.",
        handler=update_lovelace_resource,
        failure_prefix="Failed to update Lovelace resource",
    )
