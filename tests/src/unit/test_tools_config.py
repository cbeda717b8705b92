"""Unit tests for the config capability group (status, manifest, validation, services)."""

import json

import pytest

from hass_mcp.client.websocket_client import HomeAssistantWebSocketClient
from hass_mcp.errors import HomeAssistantCommandError
from hass_mcp.models import ValidateConfig, ValidateConfigResponse
from hass_mcp.tools.tools_config import register_config_tools


class TestConfigTools:
    @pytest.fixture
    def tools(self, tool_registry, mock_mcp, mock_provider):
        register_config_tools(tool_registry, mock_provider)
        return mock_mcp.tools

    def test_registered_names(self, tools):
        assert set(tools) == {"get-status", "get-manifest", "validate-config", "call-service"}

    async def test_status_counts_entities(self, tools, mock_client, state_factory):
        mock_client.get_states.return_value = [
            state_factory("light.a"),
            state_factory("sensor.b", "21.5"),
        ]

        result = await tools["get-status"]()

        assert json.loads(result.content[0].text) == {"connected": True, "entityCount": 2}

    async def test_manifest(self, tools, mock_client):
        mock_client.get_manifest.return_value = {"domain": "light", "name": "Light"}

        result = await tools["get-manifest"](integration="light")

        assert json.loads(result.content[0].text)["domain"] == "light"
        mock_client.get_manifest.assert_awaited_once_with("light")

    async def test_validate_config_success(self, tools, mock_client):
        mock_client.validate_config.return_value = ValidateConfigResponse.model_validate(
            {"triggers": {"valid": True, "error": None}}
        )
        config = ValidateConfig(triggers=[{"trigger": "state", "entity_id": "light.a"}])

        result = await tools["validate-config"](config=config)

        assert result.is_error is False
        assert json.loads(result.content[0].text) == {"triggers": {"valid": True}}

    async def test_validate_config_invalid_keeps_hub_reason(self, tools, mock_client):
        mock_client.validate_config.return_value = ValidateConfigResponse.model_validate(
            {
                "triggers": {
                    "valid": False,
                    "error": "Integration 'mqtt' does not provide trigger support",
                },
                "conditions": {"valid": True, "error": None},
            }
        )
        config = ValidateConfig(
            triggers=[{"trigger": "device", "domain": "mqtt"}], conditions=[]
        )

        result = await tools["validate-config"](config=config)

        assert json.loads(result.content[0].text) == {
            "triggers": {
                "valid": False,
                "error": "Integration 'mqtt' does not provide trigger support",
            },
            "conditions": {"valid": True},
        }

    async def test_validate_config_rejected_command_uses_hub_message(self, tools, mock_client):
        response = {
            "id": 7,
            "type": "result",
            "success": False,
            "error": {"code": "invalid_format", "message": "Unexpected value for condition"},
        }
        with pytest.raises(HomeAssistantCommandError) as exc:
            HomeAssistantWebSocketClient._unwrap_result(response)
        mock_client.validate_config.side_effect = exc.value

        result = await tools["validate-config"](config=ValidateConfig(conditions=[{}]))

        assert result.content[0].text == (
            "Config validation failed: invalid_format : Unexpected value for condition"
        )

    async def test_validate_config_failure_is_flagged(self, tools, mock_client):
        mock_client.validate_config.side_effect = HomeAssistantCommandError(
            "Unexpected value for condition", code="invalid_format"
        )

        result = await tools["validate-config"](config=ValidateConfig(conditions=[{}]))

        assert result.is_error is True
        assert result.meta == {"error": True}
        assert result.content[0].text == (
            "Config validation failed: invalid_format : "
            "Unexpected value for condition"
        )

    async def test_call_service(self, tools, mock_client):
        result = await tools["call-service"](
            domain="light", service="turn_on", data={"entity_id": "light.a"}
        )

        assert json.loads(result.content[0].text) == {"success": True}
        mock_client.call_service.assert_awaited_once_with(
            "light", "turn_on", {"entity_id": "light.a"}
        )

    async def test_call_service_accepts_json_string_data(self, tools, mock_client):
        await tools["call-service"](
            domain="switch", service="toggle", data='{"entity_id": "switch.fan"}'
        )

        mock_client.call_service.assert_awaited_once_with(
            "switch", "toggle", {"entity_id": "switch.fan"}
        )

    async def test_call_service_without_data(self, tools, mock_client):
        await tools["call-service"](domain="homeassistant", service="restart")

        mock_client.call_service.assert_awaited_once_with("homeassistant", "restart", None)
