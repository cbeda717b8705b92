"""
Entity state capabilities: prefix and regex listings, single entity state,
integration domain, areas and related-item search.
"""

import json
import logging
import re
from typing import Annotated, Any

from pydantic import Field, TypeAdapter

from ..errors import InvalidInputError
from ..models import EntityState
from .adapter import JSON_MIME_TYPE, CapabilityDescriptor, CapabilityRegistry, ResourceEntry

logger = logging.getLogger(__name__)

EntityId = Annotated[str, Field(description="Entity ID, e.g. 'sensor.temperature'")]

# JavaScript regex flag letters accepted by list-entities-by-regex.
# u, g, y and d have no Python counterpart that changes matching here.
_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
    "g": 0,
    "y": 0,
    "d": 0,
}


def compile_regex(pattern: str, flags: str | None = "") -> re.Pattern[str]:
    """Compile ``pattern`` with JavaScript-style ``flags``.

    Raises:
        InvalidInputError: On an unknown or repeated flag, or a bad pattern
    """
    flags = flags or ""
    error = InvalidInputError(f"Invalid regex pattern or flags: {pattern} / {flags}")
    if len(set(flags)) != len(flags):
        raise error
    re_flags = 0
    for letter in flags:
        if letter not in _REGEX_FLAGS:
            raise error
        re_flags |= _REGEX_FLAGS[letter]
    try:
        return re.compile(pattern, re_flags)
    except re.error as e:
        raise error from e


def strip_schema_key(schema: dict[str, Any]) -> dict[str, Any]:
    """Copy of a JSON schema without its top-level ``$schema`` key."""
    return {key: value for key, value in schema.items() if key != "$schema"}


def _entity_mime_types(no_long_input_types: bool) -> tuple[str, str]:
    """MIME types for entity-list and single-entity resources.

    By default the MIME type carries the full JSON schema of the payload.
    """
    if no_long_input_types:
        return JSON_MIME_TYPE, JSON_MIME_TYPE
    list_schema = strip_schema_key(TypeAdapter(list[EntityState]).json_schema(by_alias=False))
    state_schema = strip_schema_key(EntityState.model_json_schema(by_alias=False))
    return json.dumps(list_schema), json.dumps(state_schema)


def register_entity_tools(registry: CapabilityRegistry, provider: Any, **kwargs: Any) -> None:
    """Register entity state, area and related-item capabilities."""
    settings = kwargs.get("settings")
    no_long_input = bool(settings and settings.no_long_input_types)
    no_long_output = bool(settings and settings.no_long_output_types)

    list_mime, state_mime = _entity_mime_types(no_long_input)
    list_schema = None if no_long_output else TypeAdapter(list[EntityState]).json_schema()
    state_schema = None if no_long_output else EntityState.model_json_schema()

    by_prefix = CapabilityDescriptor(
        name="list-entities-by-prefix",
        uri="entity://list/by-prefix/{prefix}",
        title="List all entities by prefix",
        description="List all Home Assistant entities by prefix",
        mime_type=list_mime,
        output_schema=list_schema,
    )
    by_regex = CapabilityDescriptor(
        name="list-entities-by-regex",
        uri="entity://list/by-regex/{pattern}/{flags}",
        title="List all entities by regex",
        description="List all Home Assistant entities matching a regex pattern",
        mime_type=list_mime,
        output_schema=list_schema,
    )
    state = CapabilityDescriptor(
        name="get-entity-state",
        uri="entity://state/{entityId}",
        title="Get state of a specific entity",
        description="Get state of a specific entity",
        mime_type=state_mime,
        output_schema=state_schema,
    )
    domain = CapabilityDescriptor(
        name="get-entity-domain",
        uri="entity://domain/by-entity-id/{entityId}",
        title="Get domain of a specific entity",
        description="Get the integration domain providing a specific entity",
        mime_type=state_mime,
        output_schema=None if no_long_output else {"type": ["string", "null"]},
    )
    areas = CapabilityDescriptor(
        name="list-areas",
        uri="area://list",
        title="List all areas",
        description="List all areas defined in Home Assistant",
    )
    related = CapabilityDescriptor(
        name="search-related",
        uri="search://related/{item_type}/{item_id}",
        title="Search related items",
        description=(
            "Find items related to an entity, device, area, automation, script or "
            "config entry. One result per related category."
        ),
    )

    async def list_entities_by_prefix(
        prefix: Annotated[str, Field(description="Prefix to filter entities, e.g. 'sensor.'")],
    ) -> list[ResourceEntry]:
        client = await provider.get_client()
        entities = await client.get_entities_by_prefix(prefix)
        return [
            ResourceEntry.json(
                by_prefix.expand(prefix=prefix), [entity.to_json_dict() for entity in entities]
            )
        ]

    async def list_entities_by_regex(
        pattern: Annotated[str, Field(description="Regex pattern for entity IDs, e.g. '^sensor\\.'")],
        flags: Annotated[str, Field(description="Regex flags, e.g. 'i' for ignore case")],
    ) -> list[ResourceEntry]:
        regex = compile_regex(pattern, flags)
        client = await provider.get_client()
        entities = await client.get_entities(regex)
        return [
            ResourceEntry.json(
                by_regex.expand(pattern=pattern, flags=flags),
                [entity.to_json_dict() for entity in entities],
            )
        ]

    async def get_entity_state(entityId: EntityId) -> list[ResourceEntry]:
        client = await provider.get_client()
        entity = await client.get_entity_state(entityId)
        return [ResourceEntry.json(state.expand(entityId=entityId), entity.to_json_dict())]

    async def get_entity_domain(entityId: EntityId) -> list[ResourceEntry]:
        client = await provider.get_client()
        entity_domain = await client.get_entity_domain(entityId)
        return [ResourceEntry.json(domain.expand(entityId=entityId), entity_domain)]

    async def list_areas() -> list[ResourceEntry]:
        client = await provider.get_client()
        return [ResourceEntry.json(areas.uri, await client.list_areas())]

    async def search_related(
        item_type: Annotated[
            str, Field(description="Item type, e.g. 'entity', 'device', 'area', 'automation'")
        ],
        item_id: Annotated[str, Field(description="Item id, e.g. 'light.kitchen'")],
    ) -> list[ResourceEntry]:
        client = await provider.get_client()
        result = await client.search_related(item_type, item_id)
        base_uri = related.expand(item_type=item_type, item_id=item_id)
        return [
            ResourceEntry.json(f"{base_uri}#{category}", {category: ids})
            for category, ids in result.items()
        ]

    registry.register_resource_or_tool(by_prefix, list_entities_by_prefix)
    registry.register_resource_or_tool(by_regex, list_entities_by_regex)
    registry.register_resource_or_tool(state, get_entity_state)
    registry.register_resource_or_tool(domain, get_entity_domain)
    registry.register_resource_or_tool(areas, list_areas)
    registry.register_resource_or_tool(related, search_related)
