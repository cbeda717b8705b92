"""Shared fixtures for the test suite."""

from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from hass_mcp.models import EntityState
from hass_mcp.tools.adapter import CapabilityRegistry, PresentationMode, RegistrationCeiling


class MockMCP:
    """Captures tool and resource registrations made through the decorators."""

    def __init__(self):
        self.tools: dict[str, Callable[..., Any]] = {}
        self.tool_options: dict[str, dict[str, Any]] = {}
        self.resources: dict[str, Callable[..., Any]] = {}
        self.resource_options: dict[str, dict[str, Any]] = {}

    def tool(self, *args, **kwargs):
        def wrapper(func):
            name = kwargs.get("name") or func.__name__
            self.tools[name] = func
            self.tool_options[name] = kwargs
            return func

        return wrapper

    def resource(self, uri, *args, **kwargs):
        def wrapper(func):
            name = kwargs.get("name") or func.__name__
            self.resources[name] = func
            self.resource_options[name] = {"uri": uri, **kwargs}
            return func

        return wrapper


def make_state(entity_id: str, state: str = "on", **attributes: Any) -> EntityState:
    """Build an entity state as the hub reports it."""
    return EntityState.model_validate(
        {
            "entity_id": entity_id,
            "state": state,
            "attributes": attributes,
            "last_changed": "2025-01-01T00:00:00+00:00",
            "last_updated": "2025-01-01T00:00:00+00:00",
            "context": {"id": "ctx-1", "user_id": None, "parent_id": None},
        }
    )


@pytest.fixture
def mock_mcp():
    return MockMCP()


@pytest.fixture
def mock_client():
    """HassClient stand-in; every operation is an AsyncMock."""
    client = MagicMock()
    for name in (
        "get_states",
        "get_entities_by_prefix",
        "get_entities",
        "get_entity_state",
        "get_automations",
        "get_automation_by_entity_id",
        "get_automation_by_rest_id",
        "get_automation_rest",
        "get_automation_rest_by_entity_id",
        "create_automation_rest",
        "update_automation_rest",
        "update_automation",
        "delete_automation_rest",
        "delete_automation",
        "get_automation_trace",
        "list_automation_traces",
        "list_device_automation_triggers",
        "call_service",
        "validate_config",
        "get_manifest",
        "get_entity_registry_by_entity_id",
        "get_device_id_by_entity_id",
        "get_config_entry_id_by_entity_id",
        "get_entity_domain",
        "update_device_registry",
        "list_areas",
        "search_related",
        "create_config_entry_flow",
        "continue_config_entry_flow",
        "update_config_entry_flow",
        "create_config_entry_options_flow",
        "update_config_entry_options_flow",
        "get_config_entries_flow_handlers",
        "delete_config_entry",
        "list_scripts",
        "get_script_rest",
        "get_script_rest_by_id",
        "upsert_script_rest",
        "delete_script_rest",
        "get_lovelace_config",
        "update_lovelace_config",
        "list_lovelace_dashboards",
        "create_lovelace_dashboard",
        "delete_lovelace_dashboard",
        "get_lovelace_resources",
        "update_lovelace_resource",
    ):
        setattr(client, name, AsyncMock())
    return client


@pytest.fixture
def mock_provider(mock_client):
    provider = MagicMock()
    provider.get_client = AsyncMock(return_value=mock_client)
    provider.close = AsyncMock()
    return provider


@pytest.fixture
def tool_registry(mock_mcp):
    """Capability registry exposing everything as tools."""
    return CapabilityRegistry(mock_mcp, mode=PresentationMode.TOOL, ceiling=RegistrationCeiling())


@pytest.fixture
def resource_registry(mock_mcp):
    """Capability registry exposing resource-capable capabilities as resources."""
    return CapabilityRegistry(
        mock_mcp, mode=PresentationMode.RESOURCE, ceiling=RegistrationCeiling()
    )


@pytest.fixture
def state_factory():
    return make_state
