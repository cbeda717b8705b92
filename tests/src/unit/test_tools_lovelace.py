"""Unit tests for the Lovelace dashboard capability group."""

import json

import pytest

from hass_mcp.lovelace_models import DashboardConfig
from hass_mcp.tools.tools_lovelace import dashboard_uri, register_lovelace_tools

SIMPLE_DASHBOARD = {
    "views": [
        {
            "title": "Home",
            "type": "sections",
            "badges": [],
            "sections": [
                {
                    "type": "grid",
                    "cards": [
                        {"type": "heading", "heading": "Lights", "heading_style": "title"},
                        {"type": "tile", "entity": "light.kitchen"},
                    ],
                }
            ],
        }
    ]
}


@pytest.fixture
def tools(tool_registry, mock_mcp, mock_provider):
    register_lovelace_tools(tool_registry, mock_provider)
    return mock_mcp.tools


class TestDashboardUri:
    @pytest.mark.parametrize(
        "dashboard, expected",
        [
            ({"url_path": "dashboard-home", "id": "x"}, "lovelace://config/dashboard-home"),
            ({"id": "abc", "title": "T"}, "lovelace://config/abc"),
            ({"title": "Energy"}, "lovelace://config/Energy"),
            ({}, "lovelace://config/unknown"),
        ],
    )
    def test_fallbacks(self, dashboard, expected):
        assert dashboard_uri(dashboard) == expected


class TestLovelaceTools:
    def test_registered_names(self, tools):
        assert set(tools) == {
            "get-lovelace-config",
            "update-lovelace-config",
            "list-lovelace-dashboards",
            "create-lovelace-dashboard",
            "delete-lovelace-dashboard",
            "get-lovelace-resources",
            "update-lovelace-resource",
        }

    async def test_get_config_passes_force(self, tools, mock_client):
        mock_client.get_lovelace_config.return_value = {"views": []}

        result = await tools["get-lovelace-config"](url_path="dashboard-home", force=True)

        assert json.loads(result.content[0].text) == {"views": []}
        mock_client.get_lovelace_config.assert_awaited_once_with("dashboard-home", True)

    async def test_get_config_force_defaults_to_false(self, tools, mock_client):
        mock_client.get_lovelace_config.return_value = {"views": []}

        await tools["get-lovelace-config"](url_path="dashboard-home")

        mock_client.get_lovelace_config.assert_awaited_once_with("dashboard-home", False)

    async def test_list_dashboards_as_tool_is_array(self, tools, mock_client):
        mock_client.list_lovelace_dashboards.return_value = [
            {"id": "a", "url_path": "dash-a"},
            {"id": "b", "url_path": "dash-b"},
        ]

        result = await tools["list-lovelace-dashboards"]()

        assert [d["id"] for d in json.loads(result.content[0].text)] == ["a", "b"]

    async def test_list_dashboards_empty(self, tools, mock_client):
        mock_client.list_lovelace_dashboards.return_value = []

        result = await tools["list-lovelace-dashboards"]()

        assert result.content[0].text == "No data found"

    async def test_update_config(self, tools, mock_client):
        config = DashboardConfig.model_validate(SIMPLE_DASHBOARD)

        result = await tools["update-lovelace-config"](url_path="dashboard-home", config=config)

        assert result.content[0].text == "Lovelace config updated successfully"
        mock_client.update_lovelace_config.assert_awaited_once_with("dashboard-home", config)

    async def test_create_and_delete_dashboard(self, tools, mock_client):
        created = await tools["create-lovelace-dashboard"](
            title="Energy", url_path="dashboard-energy"
        )
        deleted = await tools["delete-lovelace-dashboard"](dashboard_id="dashboard_energy")

        assert created.content[0].text == "Lovelace dashboard created successfully"
        assert deleted.content[0].text == "Lovelace dashboard deleted successfully"
        mock_client.create_lovelace_dashboard.assert_awaited_once_with(
            "Energy", "dashboard-energy", False, True
        )

    async def test_update_resource(self, tools, mock_client):
        mock_client.update_lovelace_resource.return_value = {"id": "r1", "type": "module"}

        result = await tools["update-lovelace-resource"](
            resource_id="r1", url="/local/card.js", res_type="module"
        )

        assert json.loads(result.content[0].text)["id"] == "r1"
        mock_client.update_lovelace_resource.assert_awaited_once_with(
            "r1", "/local/card.js", "module"
        )


class TestLovelaceResources:
    async def test_one_entry_per_dashboard(
        self, resource_registry, mock_mcp, mock_provider, mock_client
    ):
        register_lovelace_tools(resource_registry, mock_provider)
        mock_client.list_lovelace_dashboards.return_value = [
            {"id": "a", "url_path": "dash-a"},
            {"id": "b", "title": "B"},
        ]

        result = await mock_mcp.resources["list-lovelace-dashboards"]()

        assert [content.meta["uri"] for content in result.contents] == [
            "lovelace://config/dash-a",
            "lovelace://config/b",
        ]
