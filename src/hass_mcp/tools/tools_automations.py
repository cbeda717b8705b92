"""
Automation capabilities: listing, lookup by entity id or REST id, CRUD
through the REST config API, run traces and device triggers.
"""

import logging
from typing import Annotated, Any

from pydantic import Field, TypeAdapter

from ..models import (
    Automation,
    AutomationCreateRest,
    AutomationRest,
    AutomationRestShort,
    AutomationRestTrace,
)
from .adapter import CapabilityDescriptor, CapabilityRegistry, ResourceEntry
from .util_helpers import to_jsonable

logger = logging.getLogger(__name__)

RestId = Annotated[str, Field(description="Automation REST API id")]
AutomationEntityId = Annotated[
    str, Field(description="Automation entity_id, e.g. 'automation.my_automation'")
]

TRACE = CapabilityDescriptor(
    name="get-rest-automation-trace",
    uri="automation://rest/trace/{rest_id}/{run_id}",
    title="Get automation trace by rest_id and run_id",
    description="Fetches the trace for a specific automation run using its REST id and run id.",
    output_schema=AutomationRestTrace.model_json_schema(),
)
TRACES = CapabilityDescriptor(
    name="list-rest-automation-traces",
    uri="automation://rest/traces/{rest_id}",
    title="List automation traces by rest_id",
    description="List all traces for a specific automation using its REST id.",
    output_schema=TypeAdapter(list[AutomationRestShort]).json_schema(),
)
LIST = CapabilityDescriptor(
    name="list-automations",
    uri="automation://list",
    title="List all automations",
    description="List all automations",
    output_schema=TypeAdapter(list[Automation]).json_schema(),
)
BY_ENTITY_ID = CapabilityDescriptor(
    name="get-automation-by-entity-id",
    uri="automation://by-entity-id/{entity_id}",
    title="Get automation by entity_id",
    description="Find an automation entity using its entity_id (e.g. automation.my_automation).",
    output_schema=Automation.model_json_schema(),
)
REST_BY_ENTITY_ID = CapabilityDescriptor(
    name="get-rest-automation-by-entity-id",
    uri="automation://rest/by-entity-id/{entity_id}",
    title="Get REST automation by entity_id",
    description="Get an automation's REST definition using its entity_id (e.g. automation.my_automation).",
    output_schema=AutomationRest.model_json_schema(),
)
BY_REST_ID = CapabilityDescriptor(
    name="get-automation-by-rest-id",
    uri="automation://by-rest-id/{rest_id}",
    title="Get automation by rest_id",
    description="Find an automation entity using its REST API id (rest_id, not entity_id).",
    output_schema=Automation.model_json_schema(),
)
REST_BY_REST_ID = CapabilityDescriptor(
    name="get-rest-automation-by-rest-id",
    uri="automation://rest/by-rest-id/{rest_id}",
    title="Get REST automation by rest_id",
    description="Get an automation's REST definition using its rest_id (REST API id, not entity_id).",
    output_schema=AutomationRest.model_json_schema(),
)
DEVICE_TRIGGERS = CapabilityDescriptor(
    name="list-device-automation-triggers",
    uri="automation://device/{device_id}/triggers",
    title="List device automation triggers",
    description="List all triggers for a specific device's automations.",
)

SUCCESS = {"success": True}


def register_automation_tools(registry: CapabilityRegistry, provider: Any, **kwargs: Any) -> None:
    """Register automation capabilities."""

    async def get_rest_automation_trace(
        rest_id: RestId, run_id: Annotated[str, Field(description="Automation run id")]
    ) -> list[ResourceEntry]:
        client = await provider.get_client()
        trace = await client.get_automation_trace(rest_id, run_id)
        return [ResourceEntry.json(TRACE.expand(rest_id=rest_id, run_id=run_id), to_jsonable(trace))]

    async def list_rest_automation_traces(rest_id: RestId) -> list[ResourceEntry]:
        client = await provider.get_client()
        traces = await client.list_automation_traces(rest_id)
        return [ResourceEntry.json(TRACES.expand(rest_id=rest_id), to_jsonable(traces))]

    async def list_automations() -> list[ResourceEntry]:
        client = await provider.get_client()
        automations = await client.get_automations()
        return [ResourceEntry.json(LIST.uri, to_jsonable(automations))]

    async def get_automation_by_entity_id(entity_id: AutomationEntityId) -> list[ResourceEntry]:
        client = await provider.get_client()
        automation = await client.get_automation_by_entity_id(entity_id)
        return [ResourceEntry.json(BY_ENTITY_ID.expand(entity_id=entity_id), to_jsonable(automation))]

    async def get_rest_automation_by_entity_id(entity_id: AutomationEntityId) -> list[ResourceEntry]:
        client = await provider.get_client()
        automation = await client.get_automation_rest_by_entity_id(entity_id)
        return [ResourceEntry.json(REST_BY_ENTITY_ID.expand(entity_id=entity_id), to_jsonable(automation))]

    async def get_automation_by_rest_id(rest_id: RestId) -> list[ResourceEntry]:
        client = await provider.get_client()
        automation = await client.get_automation_by_rest_id(rest_id)
        return [ResourceEntry.json(BY_REST_ID.expand(rest_id=rest_id), to_jsonable(automation))]

    async def get_rest_automation_by_rest_id(rest_id: RestId) -> list[ResourceEntry]:
        client = await provider.get_client()
        automation = await client.get_automation_rest(rest_id)
        return [ResourceEntry.json(REST_BY_REST_ID.expand(rest_id=rest_id), to_jsonable(automation))]

    async def list_device_automation_triggers(
        device_id: Annotated[str, Field(description="Device ID")],
    ) -> list[ResourceEntry]:
        client = await provider.get_client()
        triggers = await client.list_device_automation_triggers(device_id)
        return [ResourceEntry.json(DEVICE_TRIGGERS.expand(device_id=device_id), triggers)]

    registry.register_resource_or_tool(TRACE, get_rest_automation_trace)
    registry.register_resource_or_tool(TRACES, list_rest_automation_traces)
    registry.register_resource_or_tool(LIST, list_automations)

    async def delete_automation(
        id: Annotated[str, Field(description="Automation unique ID")],
    ) -> dict[str, Any]:
        """Delete an automation by its entity id."""
        client = await provider.get_client()
        await client.delete_automation(id)
        return SUCCESS

    registry.register_tool(
        "delete-automation",
        title="Delete an automation",
        description="Delete an automation by id",
        handler=delete_automation,
        failure_prefix="Failed to delete automation",
        annotations={"destructiveHint": True},
    )

    registry.register_resource_or_tool(BY_ENTITY_ID, get_automation_by_entity_id)
    registry.register_resource_or_tool(REST_BY_ENTITY_ID, get_rest_automation_by_entity_id)

    async def update_automation_by_entity_id(
        entity_id: AutomationEntityId,
        automation: Annotated[AutomationCreateRest, Field(description="Full automation definition")],
    ) -> dict[str, Any]:
        client = await provider.get_client()
        await client.update_automation(entity_id, automation)
        return SUCCESS

    registry.register_tool(
        "update-automation-by-entity-id",
        title="Update automation by entity_id",
        description="Update an automation using its entity_id (e.g. automation.my_automation).",
        handler=update_automation_by_entity_id,
        failure_prefix="Failed to update automation",
    )

    registry.register_resource_or_tool(BY_REST_ID, get_automation_by_rest_id)
    registry.register_resource_or_tool(REST_BY_REST_ID, get_rest_automation_by_rest_id)

    async def update_rest_automation_by_rest_id(
        automation: Annotated[AutomationRest, Field(description="Full automation definition, including its id")],
    ) -> dict[str, Any]:
        client = await provider.get_client()
        await client.update_automation_rest(automation)
        return SUCCESS

    registry.register_tool(
        "update-rest-automation-by-rest-id",
        title="Update REST automation by rest_id",
        description="Update an automation using its rest_id (REST API id, not entity_id).",
        handler=update_rest_automation_by_rest_id,
        failure_prefix="Failed to update automation",
    )

    async def delete_rest_automation_by_rest_id(rest_id: RestId) -> dict[str, Any]:
        client = await provider.get_client()
        await client.delete_automation_rest(rest_id)
        return SUCCESS

    registry.register_tool(
        "delete-rest-automation-by-rest-id",
        title="Delete REST automation by rest_id",
        description="Delete an automation using its rest_id (REST API id, not entity_id).",
        handler=delete_rest_automation_by_rest_id,
        failure_prefix="Failed to delete automation",
        annotations={"destructiveHint": True},
    )

    async def create_rest_automation(
        automation: Annotated[AutomationCreateRest, Field(description="Automation definition without id")],
    ) -> dict[str, Any]:
        client = await provider.get_client()
        rest_id = await client.create_automation_rest(automation)
        return {"rest_id": rest_id}

    registry.register_tool(
        "create-rest-automation",
        title="Create REST automation",
        description="Create a new automation via the Home Assistant REST API. Returns the new rest_id.",
        handler=create_rest_automation,
        failure_prefix="Failed to create automation",
    )

    registry.register_resource_or_tool(DEVICE_TRIGGERS, list_device_automation_triggers)
