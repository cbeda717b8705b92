"""Unit tests for the automation capability group."""

import json

import pytest

from hass_mcp.errors import HomeAssistantNotFoundError
from hass_mcp.models import Automation, AutomationCreateRest, AutomationRest
from hass_mcp.tools.tools_automations import register_automation_tools

RESOURCE_NAMES = {
    "get-rest-automation-trace",
    "list-rest-automation-traces",
    "list-automations",
    "get-automation-by-entity-id",
    "get-rest-automation-by-entity-id",
    "get-automation-by-rest-id",
    "get-rest-automation-by-rest-id",
    "list-device-automation-triggers",
}
TOOL_NAMES = {
    "delete-automation",
    "update-automation-by-entity-id",
    "update-rest-automation-by-rest-id",
    "delete-rest-automation-by-rest-id",
    "create-rest-automation",
}


def _automation(state_factory, entity_id="automation.morning", rest_id="1700000000000"):
    state = state_factory(entity_id, "on", id=rest_id, friendly_name="Morning")
    return Automation.model_validate(state.model_dump())


class TestRegistration:
    def test_resource_mode_splits_resources_and_tools(
        self, resource_registry, mock_mcp, mock_provider
    ):
        register_automation_tools(resource_registry, mock_provider)

        assert set(mock_mcp.resources) == RESOURCE_NAMES
        assert set(mock_mcp.tools) == TOOL_NAMES
        assert (
            mock_mcp.resource_options["get-rest-automation-trace"]["uri"]
            == "automation://rest/trace/{rest_id}/{run_id}"
        )

    def test_tool_mode_registers_everything_as_tools(
        self, tool_registry, mock_mcp, mock_provider
    ):
        register_automation_tools(tool_registry, mock_provider)

        assert set(mock_mcp.tools) == RESOURCE_NAMES | TOOL_NAMES
        assert not mock_mcp.resources


class TestAutomationTools:
    @pytest.fixture
    def tools(self, tool_registry, mock_mcp, mock_provider):
        register_automation_tools(tool_registry, mock_provider)
        return mock_mcp.tools

    async def test_list_automations(self, tools, mock_client, state_factory):
        mock_client.get_automations.return_value = [_automation(state_factory)]

        result = await tools["list-automations"]()
        payload = json.loads(result.content[0].text)

        assert payload[0]["entityId"] == "automation.morning"
        assert payload[0]["attributes"]["id"] == "1700000000000"

    async def test_get_automation_by_entity_id_missing_is_no_data(self, tools, mock_client):
        mock_client.get_automation_by_entity_id.return_value = None

        result = await tools["get-automation-by-entity-id"](entity_id="automation.nope")

        assert result.content[0].text == "No data found"
        assert result.is_error is False

    async def test_get_automation_by_rest_id_not_found_is_flagged(self, tools, mock_client):
        mock_client.get_automation_by_rest_id.side_effect = HomeAssistantNotFoundError(
            "Automation with id 999 not found"
        )

        result = await tools["get-automation-by-rest-id"](rest_id="999")

        assert result.is_error is True
        assert "Automation with id 999 not found" in result.content[0].text

    async def test_create_returns_rest_id(self, tools, mock_client):
        mock_client.create_automation_rest.return_value = "b5e3c1d2"
        automation = AutomationCreateRest(alias="Wake up", triggers=[{"trigger": "sun"}])

        result = await tools["create-rest-automation"](automation=automation)

        assert json.loads(result.content[0].text) == {"rest_id": "b5e3c1d2"}
        mock_client.create_automation_rest.assert_awaited_once_with(automation)

    async def test_update_by_entity_id(self, tools, mock_client):
        automation = AutomationCreateRest(alias="Morning")

        result = await tools["update-automation-by-entity-id"](
            entity_id="automation.morning", automation=automation
        )

        assert json.loads(result.content[0].text) == {"success": True}
        mock_client.update_automation.assert_awaited_once_with("automation.morning", automation)

    async def test_update_rest_by_rest_id(self, tools, mock_client):
        automation = AutomationRest(id="1700000000000", alias="Morning")

        result = await tools["update-rest-automation-by-rest-id"](automation=automation)

        assert json.loads(result.content[0].text) == {"success": True}
        mock_client.update_automation_rest.assert_awaited_once_with(automation)

    async def test_delete_unresolvable_entity_is_flagged(self, tools, mock_client):
        mock_client.delete_automation.side_effect = HomeAssistantNotFoundError(
            "Automation state or id not found for entity: automation.ghost"
        )

        result = await tools["delete-automation"](id="automation.ghost")

        assert result.is_error is True
        assert result.content[0].text == (
            "Failed to delete automation: "
            "Automation state or id not found for entity: automation.ghost"
        )

    async def test_trace(self, tools, mock_client):
        mock_client.get_automation_trace.return_value = None

        result = await tools["get-rest-automation-trace"](rest_id="abc", run_id="r1")

        assert result.content[0].text == "No data found"
        mock_client.get_automation_trace.assert_awaited_once_with("abc", "r1")


class TestAutomationResources:
    async def test_device_triggers_entry_uri(
        self, resource_registry, mock_mcp, mock_provider, mock_client
    ):
        register_automation_tools(resource_registry, mock_provider)
        mock_client.list_device_automation_triggers.return_value = [{"type": "turned_on"}]

        result = await mock_mcp.resources["list-device-automation-triggers"](device_id="dev1")

        content = result.contents[0]
        assert json.loads(content.content) == [{"type": "turned_on"}]
        assert content.meta == {"uri": "automation://device/dev1/triggers"}
