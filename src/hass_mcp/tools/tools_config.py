"""
Hub-level capabilities: connection status, integration manifests, config
validation and service calls.
"""

import logging
from typing import Annotated, Any

from pydantic import Field

from ..errors import HomeAssistantError, get_error_code, get_error_message
from ..models import HassStatus, ValidateConfig
from .adapter import (
    CapabilityDescriptor,
    CapabilityRegistry,
    ResourceEntry,
    error_tool_result,
    text_tool_result,
)
from .util_helpers import parse_json_object

logger = logging.getLogger(__name__)

STATUS = CapabilityDescriptor(
    name="get-status",
    uri="config://status",
    title="Get Home Assistant connection status",
    description="Get Home Assistant connection status",
    output_schema=HassStatus.model_json_schema(),
)
MANIFEST = CapabilityDescriptor(
    name="get-manifest",
    uri="config://manifest/{integration}",
    title="Get Home Assistant integration manifest",
    description="Get the manifest of a Home Assistant integration",
)


def register_config_tools(registry: CapabilityRegistry, provider: Any, **kwargs: Any) -> None:
    """Register status, manifest, validation and service call capabilities."""
    debug = registry.debug

    async def get_status() -> list[ResourceEntry]:
        client = await provider.get_client()
        states = await client.get_states()
        status = HassStatus(connected=True, entityCount=len(states))
        return [ResourceEntry.json(STATUS.uri, status.model_dump())]

    async def get_manifest(
        integration: Annotated[str, Field(description="Integration name, e.g. 'light'")],
    ) -> list[ResourceEntry]:
        client = await provider.get_client()
        manifest = await client.get_manifest(integration)
        return [ResourceEntry.json(MANIFEST.expand(integration=integration), manifest)]

    registry.register_resource_or_tool(STATUS, get_status)

    async def validate_config(
        config: Annotated[
            ValidateConfig,
            Field(description="Object with optional 'triggers', 'conditions' and 'actions' lists"),
        ],
    ) -> Any:
        client = await provider.get_client()
        try:
            result = await client.validate_config(config)
        except HomeAssistantError as e:
            if debug:
                logger.debug(f"Config validation error: {e}")
            return error_tool_result(
                f"Config validation failed: {get_error_code(e)} : {get_error_message(e)}"
            )
        return text_tool_result(result.to_json_dict())

    registry.register_tool(
        "validate-config",
        title="Validate triggers, conditions and actions for any automation change",
        description=(
            "Validate triggers, conditions and actions configurations as if part of an "
            "automation. Any changes to automation should be checked with this tool"
        ),
        handler=validate_config,
        annotations={"readOnlyHint": True},
    )

    async def call_service(
        domain: Annotated[str, Field(description="Service domain (e.g., light, switch)")],
        service: Annotated[str, Field(description="Service name")],
        data: Annotated[
            dict[str, Any] | str | None,
            Field(default=None, description="Service data, e.g. {'entity_id': 'light.desk'}"),
        ] = None,
    ) -> dict[str, Any]:
        service_data = parse_json_object(data, "data")
        client = await provider.get_client()
        await client.call_service(domain, service, service_data or None)
        return {"success": True}

    registry.register_tool(
        "call-service",
        title="Call a Home Assistant service",
        description="Call a Home Assistant service",
        handler=call_service,
        failure_prefix="Failed to call service",
    )

    registry.register_resource_or_tool(MANIFEST, get_manifest)
