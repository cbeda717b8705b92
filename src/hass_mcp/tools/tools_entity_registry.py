"""
Entity registry, device, config entry flow and script capabilities.
"""

import logging
from typing import Annotated, Any

from pydantic import Field

from ..client.hass_client import SCRIPT_PREFIX, strip_prefix
from ..models import EntityRegistry
from .adapter import CapabilityDescriptor, CapabilityRegistry, ResourceEntry
from .util_helpers import parse_json_object, to_jsonable

logger = logging.getLogger(__name__)

EntityId = Annotated[str, Field(description="Entity ID, e.g. 'sensor.temperature'")]
ScriptAlias = Annotated[
    str, Field(description="Alias of the script, e.g. 'My Script' not 'script.script_entity_id'")
]
FlowId = Annotated[str, Field(description="The ID of the config entry flow")]
FlowOptions = Annotated[
    dict[str, Any] | str, Field(description="Parameters to submit to the flow step")
]

REGISTRY = CapabilityDescriptor(
    name="get-entity-registry-by-entity-id",
    uri="entity://registry/by-entity-id/{entityId}",
    title="Get entity registry by entity_id",
    description="Get registry info for a specific entity_id",
    output_schema={
        "type": "object",
        "properties": {"registry": EntityRegistry.model_json_schema()},
    },
)
DEVICE_ID = CapabilityDescriptor(
    name="get-device-id-by-entity-id",
    uri="device://by-entity-id/{entityId}",
    title="Get device_id by entity_id",
    description="Get the device_id for a given entity_id",
    output_schema={"type": "object", "properties": {"deviceId": {"type": ["string", "null"]}}},
)
CONFIG_ENTRY_ID = CapabilityDescriptor(
    name="get-config-entry-id-by-entity-id",
    uri="config_entry://by-entity-id/{entityId}",
    title="Get config_entry_id by entity_id",
    description=(
        "Get the config_entry_id for a given entity_id, useful for templated sensors "
        "and other config entry flows alike"
    ),
    output_schema={
        "type": "object",
        "properties": {"configEntryId": {"type": ["string", "null"]}},
    },
)
FLOWS_HELPERS = CapabilityDescriptor(
    name="list-config-entry-flows-helpers",
    uri="config-entry://flows_helpers",
    title="List helpers types",
    description="List available config entry flow handlers for helpers",
    output_schema={
        "type": "object",
        "properties": {"flows": {"type": "array", "items": {"type": "string"}}},
    },
)
SCRIPTS = CapabilityDescriptor(
    name="list-scripts",
    uri="script://all",
    title="List all scripts",
    description="List all scripts in Home Assistant, friendly_name = alias",
    output_schema={
        "type": "object",
        "properties": {"scripts": {"type": "array", "items": {"type": "object"}}},
    },
)
SCRIPT_BY_ENTITY_ID = CapabilityDescriptor(
    name="get-rest-script-by-entity-id",
    uri="script://by-entity-id/{entityId}",
    title="Get a script by entity_id",
    description="Get the details of a specific script by its entity_id",
    output_schema={"type": "object", "properties": {"script": {"type": ["object", "null"]}}},
)
SCRIPT_BY_ALIAS = CapabilityDescriptor(
    name="get-rest-script-by-alias",
    uri="script://{alias}",
    title="Get a script by alias",
    description="Get the details of a specific script by its alias, not script.entity_id",
    output_schema={"type": "object", "properties": {"script": {"type": ["object", "null"]}}},
)


def register_entity_registry_tools(
    registry: CapabilityRegistry, provider: Any, **kwargs: Any
) -> None:
    """Register registry, config entry flow and script capabilities."""

    async def get_entity_registry_by_entity_id(entityId: EntityId) -> list[ResourceEntry]:
        client = await provider.get_client()
        entry = await client.get_entity_registry_by_entity_id(entityId)
        return [
            ResourceEntry.json(REGISTRY.expand(entityId=entityId), {"registry": to_jsonable(entry)})
        ]

    async def get_device_id_by_entity_id(entityId: EntityId) -> list[ResourceEntry]:
        client = await provider.get_client()
        device_id = await client.get_device_id_by_entity_id(entityId)
        return [ResourceEntry.json(DEVICE_ID.expand(entityId=entityId), {"deviceId": device_id})]

    async def get_config_entry_id_by_entity_id(entityId: EntityId) -> list[ResourceEntry]:
        client = await provider.get_client()
        config_entry_id = await client.get_config_entry_id_by_entity_id(entityId)
        return [
            ResourceEntry.json(
                CONFIG_ENTRY_ID.expand(entityId=entityId), {"configEntryId": config_entry_id}
            )
        ]

    registry.register_resource_or_tool(REGISTRY, get_entity_registry_by_entity_id)
    registry.register_resource_or_tool(DEVICE_ID, get_device_id_by_entity_id)
    registry.register_resource_or_tool(CONFIG_ENTRY_ID, get_config_entry_id_by_entity_id)

    async def update_device_registry(
        device_id: Annotated[str, Field(description="Device ID, e.g. 'device_123'")],
        device_config: Annotated[
            dict[str, Any] | str,
            Field(description="Any device fields to update, e.g. {'area_id': 'kitchen'}"),
        ],
    ) -> str:
        fields = parse_json_object(device_config, "device_config")
        client = await provider.get_client()
        await client.update_device_registry(device_id, fields)
        return f"Device registry updated for device_id: {device_id}"

    registry.register_tool(
        "update-device-registry",
        title="Update device registry",
        description="Update the device registry for a specific device_id",
        handler=update_device_registry,
        failure_prefix=lambda device_id, **_: f"Failed to update device registry for {device_id}",
    )

    async def create_config_entry_flow(
        handler: Annotated[str, Field(description="The handler for the config entry flow")],
    ) -> dict[str, Any]:
        client = await provider.get_client()
        return await client.create_config_entry_flow(handler)

    registry.register_tool(
        "create-config-entry-flow",
        title="Create config entry flow with a handler helpers",
        description=(
            "Create a new config entry in the Home Assistant entity registry for a new "
            "config entry (new templated helpers for ex)"
        ),
        handler=create_config_entry_flow,
        failure_prefix="Failed to create entity flow",
    )

    async def continue_config_entry_flow(
        flow_id: FlowId,
        next_step_id: Annotated[str, Field(description="The ID of the next step to execute")],
    ) -> dict[str, Any]:
        client = await provider.get_client()
        return await client.continue_config_entry_flow(flow_id, next_step_id)

    registry.register_tool(
        "continue-config-entry-flow",
        title="Continue config entry flow",
        description="Continue an existing config entry flow with a next step Id",
        handler=continue_config_entry_flow,
        failure_prefix="Failed to continue config entry flow",
    )

    async def finish_config_entry_flow(flow_id: FlowId, options: FlowOptions) -> dict[str, Any]:
        client = await provider.get_client()
        return await client.update_config_entry_flow(
            flow_id, parse_json_object(options, "options")
        )

    registry.register_tool(
        "finish-config-entry-flow",
        title="Finish config entry flow",
        description="Finish an existing config entry flow",
        handler=finish_config_entry_flow,
        failure_prefix="Failed to finish config entry flow",
    )

    async def create_config_entry_options_flow(
        config_entry_id: Annotated[
            str, Field(description="The ID of the config entry to create options flow for")
        ],
    ) -> dict[str, Any]:
        client = await provider.get_client()
        return await client.create_config_entry_options_flow(config_entry_id)

    registry.register_tool(
        "create-config-entry-options-flow",
        title="Create config entry options flow for a config entry id",
        description=(
            "Create a new config entry options flow for a specific config entry "
            "(already existing config entry, templated helpers for ex)"
        ),
        handler=create_config_entry_options_flow,
        failure_prefix="Failed to create entity flow",
    )

    async def update_config_entry_options_flow(
        flow_id: FlowId, options: FlowOptions
    ) -> dict[str, Any]:
        client = await provider.get_client()
        return await client.update_config_entry_options_flow(
            flow_id, parse_json_object(options, "options")
        )

    registry.register_tool(
        "update-config-entry-options-flow",
        title="Update config entry options flow",
        description="Update an existing config entry options flow",
        handler=update_config_entry_options_flow,
        failure_prefix="Failed to update config entry options flow",
    )

    async def delete_config_entry(
        config_entry_id: Annotated[str, Field(description="The ID of the config entry to delete")],
    ) -> dict[str, Any]:
        client = await provider.get_client()
        await client.delete_config_entry(config_entry_id)
        return {"success": True}

    registry.register_tool(
        "delete-config-entry",
        title="Delete config entry",
        description="Delete a config entry, e.g. a helper created through a config entry flow",
        handler=delete_config_entry,
        failure_prefix="Failed to delete config entry",
        annotations={"destructiveHint": True},
    )

    async def list_config_entry_flows_helpers() -> list[ResourceEntry]:
        client = await provider.get_client()
        flows = await client.get_config_entries_flow_handlers()
        return [ResourceEntry.json(FLOWS_HELPERS.uri, {"flows": flows})]

    async def list_scripts() -> list[ResourceEntry]:
        client = await provider.get_client()
        scripts = await client.list_scripts()
        return [ResourceEntry.json(SCRIPTS.uri, {"scripts": scripts})]

    async def get_rest_script_by_entity_id(
        entityId: Annotated[str, Field(description="Entity ID of the script, e.g. 'my_script'")],
    ) -> list[ResourceEntry]:
        client = await provider.get_client()
        wanted = SCRIPT_PREFIX + strip_prefix(entityId, SCRIPT_PREFIX)
        script = None
        for state in await client.get_entities_by_prefix(wanted):
            if state.entityId == wanted:
                script = await client.get_script_rest_by_id(strip_prefix(wanted, SCRIPT_PREFIX))
                break
        return [ResourceEntry.json(SCRIPT_BY_ENTITY_ID.expand(entityId=entityId), {"script": script})]

    async def get_rest_script_by_alias(alias: ScriptAlias) -> list[ResourceEntry]:
        client = await provider.get_client()
        script = await client.get_script_rest(alias)
        return [ResourceEntry.json(SCRIPT_BY_ALIAS.expand(alias=alias), {"script": script})]

    registry.register_resource_or_tool(FLOWS_HELPERS, list_config_entry_flows_helpers)
    registry.register_resource_or_tool(SCRIPTS, list_scripts)
    registry.register_resource_or_tool(SCRIPT_BY_ENTITY_ID, get_rest_script_by_entity_id)
    registry.register_resource_or_tool(SCRIPT_BY_ALIAS, get_rest_script_by_alias)

    async def upsert_script_rest(
        alias: Annotated[str, Field(description="alias of the script, e.g. 'My Script'")],
        data: Annotated[
            dict[str, Any] | str,
            Field(description="The script configuration data to create/update"),
        ],
    ) -> str:
        client = await provider.get_client()
        await client.upsert_script_rest(alias, parse_json_object(data, "data"))
        return f"Script updated: {alias}"

    registry.register_tool(
        "upsertScriptRest-rest-script-by-alias",
        title="Create or Update a script by alias",
        description="Create or Update the details of a specific script by its alias",
        handler=upsert_script_rest,
        failure_prefix="Failed to update script",
    )

    async def delete_rest_script_by_alias(
        alias: Annotated[str, Field(description="Alias of the script, e.g. 'My Script'")],
    ) -> str:
        client = await provider.get_client()
        await client.delete_script_rest(alias)
        return f"Script deleted: {alias}"

    registry.register_tool(
        "delete-rest-script-by-alias",
        title="Delete a script by alias",
        description="Delete a specific script by its alias",
        handler=delete_rest_script_by_alias,
        failure_prefix=lambda alias, **_: f"Failed to delete script {alias}",
        annotations={"destructiveHint": True},
    )
