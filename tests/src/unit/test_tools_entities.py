"""Unit tests for the entity capability group."""

import json
import re
from types import SimpleNamespace

import pytest

from hass_mcp.errors import HomeAssistantNotFoundError, InvalidInputError
from hass_mcp.tools.adapter import JSON_MIME_TYPE
from hass_mcp.tools.tools_entities import compile_regex, register_entity_tools

NAMES = {
    "list-entities-by-prefix",
    "list-entities-by-regex",
    "get-entity-state",
    "get-entity-domain",
    "list-areas",
    "search-related",
}


def _settings(**overrides):
    values = {"no_long_input_types": False, "no_long_output_types": False}
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def tools(tool_registry, mock_mcp, mock_provider):
    register_entity_tools(tool_registry, mock_provider, settings=_settings())
    return mock_mcp.tools


class TestCompileRegex:
    def test_flag_mapping(self):
        regex = compile_regex("^LIGHT\\.", "i")
        assert regex.flags & re.IGNORECASE
        assert regex.search("light.kitchen")

    @pytest.mark.parametrize("flags", ["", "g", "gimsuy", "d"])
    def test_accepted_flags(self, flags):
        assert compile_regex("^sensor\\.", flags).search("sensor.a")

    @pytest.mark.parametrize(
        "pattern, flags",
        [("^sensor\\.", "x"), ("^sensor\\.", "ii"), ("([", ""), ("light", "q")],
    )
    def test_rejected(self, pattern, flags):
        with pytest.raises(InvalidInputError) as exc:
            compile_regex(pattern, flags)
        assert str(exc.value) == f"Invalid regex pattern or flags: {pattern} / {flags}"


class TestEntityTools:
    def test_registered_names(self, tools):
        assert set(tools) == NAMES

    async def test_list_by_prefix(self, tools, mock_client, state_factory):
        mock_client.get_entities_by_prefix.return_value = [state_factory("sensor.temp", "21")]

        result = await tools["list-entities-by-prefix"](prefix="sensor.")

        payload = json.loads(result.content[0].text)
        assert payload[0]["entityId"] == "sensor.temp"
        assert payload[0]["lastChanged"] == "2025-01-01T00:00:00+00:00"
        assert payload[0]["context"]["id"] == "ctx-1"

    async def test_list_by_regex(self, tools, mock_client, state_factory):
        mock_client.get_entities.return_value = [state_factory("light.kitchen")]

        result = await tools["list-entities-by-regex"](pattern="^light\\.", flags="i")

        regex = mock_client.get_entities.await_args.args[0]
        assert regex.pattern == "^light\\."
        assert regex.flags & re.IGNORECASE
        assert json.loads(result.content[0].text)[0]["entityId"] == "light.kitchen"

    async def test_invalid_regex_makes_no_remote_call(self, tools, mock_client, mock_provider):
        result = await tools["list-entities-by-regex"](pattern="([", flags="i")

        assert result.is_error is True
        assert "Invalid regex pattern or flags: ([ / i" in result.content[0].text
        mock_provider.get_client.assert_not_awaited()
        mock_client.get_entities.assert_not_awaited()

    async def test_entity_state_not_found(self, tools, mock_client):
        mock_client.get_entity_state.side_effect = HomeAssistantNotFoundError(
            "Entity not found: light.nope"
        )

        result = await tools["get-entity-state"](entityId="light.nope")

        assert result.is_error is True
        assert "Entity not found: light.nope" in result.content[0].text

    async def test_entity_domain(self, tools, mock_client):
        mock_client.get_entity_domain.return_value = "hue"

        result = await tools["get-entity-domain"](entityId="light.kitchen")

        assert json.loads(result.content[0].text) == "hue"

    async def test_list_areas(self, tools, mock_client):
        mock_client.list_areas.return_value = [{"area_id": "kitchen", "name": "Kitchen"}]

        result = await tools["list-areas"]()

        assert json.loads(result.content[0].text)[0]["area_id"] == "kitchen"

    async def test_search_related_flattens_categories(self, tools, mock_client):
        mock_client.search_related.return_value = {
            "device": ["dev1"],
            "automation": ["automation.a", "automation.b"],
        }

        result = await tools["search-related"](item_type="entity", item_id="light.kitchen")

        assert json.loads(result.content[0].text) == [
            {"device": ["dev1"]},
            {"automation": ["automation.a", "automation.b"]},
        ]

    async def test_search_related_empty(self, tools, mock_client):
        mock_client.search_related.return_value = {}

        result = await tools["search-related"](item_type="area", item_id="attic")

        assert result.content[0].text == "No data found"


class TestEntityResources:
    async def test_search_related_entry_uris(
        self, resource_registry, mock_mcp, mock_provider, mock_client
    ):
        register_entity_tools(resource_registry, mock_provider, settings=_settings())
        mock_client.search_related.return_value = {"device": ["dev1"], "area": ["kitchen"]}

        result = await mock_mcp.resources["search-related"](
            item_type="entity", item_id="light.kitchen"
        )

        assert [content.meta["uri"] for content in result.contents] == [
            "search://related/entity/light.kitchen#device",
            "search://related/entity/light.kitchen#area",
        ]

    def test_long_mime_type_is_entity_schema(self, resource_registry, mock_mcp, mock_provider):
        register_entity_tools(resource_registry, mock_provider, settings=_settings())

        mime_type = mock_mcp.resource_options["list-entities-by-prefix"]["mime_type"]
        schema = json.loads(mime_type)
        assert schema["type"] == "array"
        assert "$schema" not in schema
        assert mock_mcp.resource_options["list-areas"]["mime_type"] == JSON_MIME_TYPE

    def test_no_long_types(self, resource_registry, mock_mcp, mock_provider):
        register_entity_tools(
            resource_registry,
            mock_provider,
            settings=_settings(no_long_input_types=True, no_long_output_types=True),
        )

        options = mock_mcp.resource_options["get-entity-state"]
        assert options["mime_type"] == JSON_MIME_TYPE
        assert options["meta"] is None
