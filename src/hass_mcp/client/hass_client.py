"""
Typed façade over the Home Assistant websocket and REST channels.

:class:`HassClient` exposes one method per hub operation. Each issues a
single remote call, or two when an identifier has to be resolved first
(entity id -> automation REST id, alias -> script id).

:class:`HassClientProvider` owns the only mutable state of the process: the
lazily created connection, guarded so concurrent first calls share one
connection attempt.
"""

import asyncio
import logging
import re
import uuid
from typing import Any

from ..config import Settings
from ..errors import HomeAssistantNotFoundError
from ..lovelace_models import DashboardConfig
from ..models import (
    Automation,
    AutomationCreateRest,
    AutomationRest,
    AutomationRestShort,
    AutomationRestTrace,
    EntityRegistry,
    EntityState,
    ValidateConfig,
    ValidateConfigResponse,
)
from .rest_client import HomeAssistantRestClient
from .websocket_client import HomeAssistantWebSocketClient

logger = logging.getLogger(__name__)

AUTOMATION_PREFIX = "automation."
SCRIPT_PREFIX = "script."


def new_automation_id() -> str:
    """Collision-resistant REST id for a new automation."""
    return uuid.uuid4().hex


def slugify(value: str) -> str:
    """Turn an alias into a hub object id (``"My Script"`` -> ``"my_script"``)."""
    slug = re.sub(r"[^a-z0-9]+", "_", value.strip().lower()).strip("_")
    return slug or "unnamed"


def strip_prefix(entity_id: str, prefix: str) -> str:
    return entity_id[len(prefix):] if entity_id.startswith(prefix) else entity_id


class HassClient:
    """Typed operations against one Home Assistant instance."""

    def __init__(self, ws: HomeAssistantWebSocketClient, rest: HomeAssistantRestClient):
        self.ws = ws
        self.rest = rest

    @property
    def is_connected(self) -> bool:
        return self.ws.is_connected

    async def close(self) -> None:
        await self.ws.disconnect()
        await self.rest.close()

    # States

    async def get_states(self) -> list[EntityState]:
        """All entity states, re-fetched on every call."""
        states = await self.ws.send_command("get_states") or []
        return [EntityState.model_validate(state) for state in states]

    async def get_entities_by_prefix(self, prefix: str) -> list[EntityState]:
        return [s for s in await self.get_states() if s.entityId.startswith(prefix)]

    async def get_entities(self, regex: re.Pattern[str]) -> list[EntityState]:
        return [s for s in await self.get_states() if regex.search(s.entityId)]

    async def get_entity_state(self, entity_id: str) -> EntityState:
        """Single entity state; absence is an error, not an empty result."""
        for state in await self.get_states():
            if state.entityId == entity_id:
                return state
        raise HomeAssistantNotFoundError(f"Entity not found: {entity_id}")

    # Automations

    async def get_automations(self) -> list[Automation]:
        return [
            Automation.model_validate(state.model_dump())
            for state in await self.get_entities_by_prefix(AUTOMATION_PREFIX)
        ]

    async def get_automation_by_entity_id(self, entity_id: str) -> Automation | None:
        """Find an automation by entity id, with or without the ``automation.`` prefix."""
        wanted = AUTOMATION_PREFIX + strip_prefix(entity_id, AUTOMATION_PREFIX)
        for automation in await self.get_automations():
            if automation.entityId == wanted:
                return automation
        return None

    async def get_automation_by_rest_id(self, rest_id: str) -> Automation:
        for automation in await self.get_automations():
            if automation.rest_id == rest_id:
                return automation
        raise HomeAssistantNotFoundError(f"Automation with id {rest_id} not found")

    async def _resolve_automation_rest_id(self, entity_id: str) -> str:
        automation = await self.get_automation_by_entity_id(entity_id)
        if automation is None or not automation.rest_id:
            raise HomeAssistantNotFoundError(
                f"Automation state or id not found for entity: {entity_id}"
            )
        return automation.rest_id

    async def get_automation_rest(self, rest_id: str) -> AutomationRest:
        config = await self.rest.get_automation_config(rest_id)
        return AutomationRest.model_validate({"id": rest_id, **config})

    async def get_automation_rest_by_entity_id(self, entity_id: str) -> AutomationRest:
        return await self.get_automation_rest(
            await self._resolve_automation_rest_id(entity_id)
        )

    async def create_automation_rest(self, automation: AutomationCreateRest) -> str:
        """Create an automation and return its new REST id."""
        rest_id = new_automation_id()
        await self.rest.save_automation_config(
            rest_id, {**automation.model_dump(mode="json"), "id": rest_id}
        )
        logger.info(f"Created automation {automation.alias!r} with id {rest_id}")
        return rest_id

    async def update_automation_rest(self, automation: AutomationRest) -> None:
        await self.rest.save_automation_config(
            automation.id, automation.model_dump(mode="json")
        )

    async def update_automation(self, entity_id: str, automation: AutomationCreateRest) -> None:
        """Update an automation addressed by entity id; its REST id wins over any supplied one."""
        rest_id = await self._resolve_automation_rest_id(entity_id)
        payload = {**automation.model_dump(mode="json"), "id": rest_id}
        await self.update_automation_rest(AutomationRest.model_validate(payload))

    async def delete_automation_rest(self, rest_id: str) -> None:
        await self.rest.delete_automation_config(rest_id)

    async def delete_automation(self, entity_id: str) -> None:
        await self.delete_automation_rest(await self._resolve_automation_rest_id(entity_id))

    async def get_automation_trace(self, rest_id: str, run_id: str) -> AutomationRestTrace | None:
        trace = await self.ws.send_command(
            "trace/get", domain="automation", item_id=rest_id, run_id=run_id
        )
        return AutomationRestTrace.model_validate(trace) if trace else None

    async def list_automation_traces(self, rest_id: str) -> list[AutomationRestShort]:
        traces = await self.ws.send_command(
            "trace/list", domain="automation", item_id=rest_id
        )
        return [AutomationRestShort.model_validate(t) for t in traces or []]

    async def list_device_automation_triggers(self, device_id: str) -> list[dict[str, Any]]:
        return await self.ws.send_command(
            "device_automation/trigger/list", device_id=device_id
        ) or []

    # Services and validation

    async def call_service(
        self, domain: str, service: str, data: dict[str, Any] | None = None
    ) -> Any:
        kwargs: dict[str, Any] = {"domain": domain, "service": service}
        if data:
            kwargs["service_data"] = data
        return await self.ws.send_command("call_service", **kwargs)

    async def validate_config(self, config: ValidateConfig) -> ValidateConfigResponse:
        result = await self.ws.send_command("validate_config", **config.to_command_fields())
        return ValidateConfigResponse.model_validate(result or {})

    async def get_manifest(self, integration: str) -> dict[str, Any]:
        return await self.ws.send_command("manifest/get", integration=integration)

    # Registries

    async def get_entities_registry(self) -> list[EntityRegistry]:
        entries = await self.ws.send_command("config/entity_registry/list") or []
        return [EntityRegistry.model_validate(entry) for entry in entries]

    async def get_entity_registry_by_entity_id(self, entity_id: str) -> EntityRegistry | None:
        entry = await self.ws.send_command("config/entity_registry/get", entity_id=entity_id)
        return EntityRegistry.model_validate(entry) if entry else None

    async def get_device_id_by_entity_id(self, entity_id: str) -> str | None:
        entry = await self.get_entity_registry_by_entity_id(entity_id)
        return entry.device_id if entry else None

    async def get_config_entry_id_by_entity_id(self, entity_id: str) -> str | None:
        entry = await self.get_entity_registry_by_entity_id(entity_id)
        return entry.config_entry_id if entry else None

    async def list_entities_source(self) -> dict[str, dict[str, Any]]:
        return await self.ws.send_command("entity/source") or {}

    async def get_entity_domain(self, entity_id: str) -> str | None:
        """Integration domain providing an entity, from the hub's entity source index."""
        source = (await self.list_entities_source()).get(entity_id)
        return source.get("domain") if source else None

    async def update_device_registry(self, device_id: str, fields: dict[str, Any]) -> Any:
        return await self.ws.send_command(
            "config/device_registry/update", device_id=device_id, **fields
        )

    async def list_areas(self) -> list[dict[str, Any]]:
        return await self.ws.send_command("config/area_registry/list") or []

    async def search_related(self, item_type: str, item_id: str) -> dict[str, list[str]]:
        return await self.ws.send_command(
            "search/related", item_type=item_type, item_id=item_id
        ) or {}

    # Config entry flows

    async def create_config_entry_flow(self, handler: str) -> dict[str, Any]:
        return await self.rest.start_config_flow(handler)

    async def continue_config_entry_flow(self, flow_id: str, next_step_id: str) -> dict[str, Any]:
        return await self.rest.submit_config_flow_step(flow_id, {"next_step_id": next_step_id})

    async def update_config_entry_flow(self, flow_id: str, options: dict[str, Any]) -> dict[str, Any]:
        return await self.rest.submit_config_flow_step(flow_id, options)

    async def create_config_entry_options_flow(self, config_entry_id: str) -> dict[str, Any]:
        return await self.rest.start_options_flow(config_entry_id)

    async def update_config_entry_options_flow(
        self, flow_id: str, options: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.rest.submit_options_flow_step(flow_id, options)

    async def get_config_entries_flow_handlers(self) -> Any:
        return await self.rest.get_flow_handlers("helper")

    async def delete_config_entry(self, config_entry_id: str) -> dict[str, Any]:
        return await self.rest.delete_config_entry(config_entry_id)

    # Scripts

    async def list_scripts(self) -> list[dict[str, Any]]:
        return [s.to_json_dict() for s in await self.get_entities_by_prefix(SCRIPT_PREFIX)]

    async def _resolve_script_id(self, alias: str) -> str:
        """Object id of the script whose friendly name is ``alias``, else its slug."""
        for state in await self.get_entities_by_prefix(SCRIPT_PREFIX):
            if state.attributes.get("friendly_name") == alias:
                return strip_prefix(state.entityId, SCRIPT_PREFIX)
        return slugify(alias)

    async def get_script_rest(self, alias: str) -> dict[str, Any]:
        return await self.rest.get_script_config(await self._resolve_script_id(alias))

    async def get_script_rest_by_id(self, script_id: str) -> dict[str, Any]:
        return await self.rest.get_script_config(script_id)

    async def upsert_script_rest(self, alias: str, data: dict[str, Any]) -> str:
        """Create or replace a script config; returns the script id used."""
        script_id = await self._resolve_script_id(alias)
        await self.rest.save_script_config(script_id, {**data, "alias": alias})
        return script_id

    async def delete_script_rest(self, alias: str) -> None:
        await self.rest.delete_script_config(await self._resolve_script_id(alias))

    # Lovelace

    async def get_lovelace_config(self, url_path: str, force: bool = False) -> dict[str, Any]:
        return await self.ws.send_command("lovelace/config", url_path=url_path, force=force)

    async def update_lovelace_config(self, url_path: str, config: DashboardConfig) -> None:
        await self.ws.send_command(
            "lovelace/config/save", url_path=url_path, config=config.to_hub_dict()
        )

    async def list_lovelace_dashboards(self) -> list[dict[str, Any]]:
        return await self.ws.send_command("lovelace/dashboards/list") or []

    async def create_lovelace_dashboard(
        self,
        title: str,
        url_path: str,
        require_admin: bool = False,
        show_in_sidebar: bool = True,
    ) -> dict[str, Any]:
        return await self.ws.send_command(
            "lovelace/dashboards/create",
            mode="storage",
            require_admin=require_admin,
            show_in_sidebar=show_in_sidebar,
            title=title,
            url_path=url_path,
        )

    async def delete_lovelace_dashboard(self, dashboard_id: str) -> None:
        await self.ws.send_command("lovelace/dashboards/delete", dashboard_id=dashboard_id)

    async def get_lovelace_resources(self) -> list[dict[str, Any]]:
        return await self.ws.send_command("lovelace/resources") or []

    async def update_lovelace_resource(
        self, resource_id: str, url: str | None = None, res_type: str | None = None
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        if url is not None:
            fields["url"] = url
        if res_type is not None:
            fields["res_type"] = res_type
        return await self.ws.send_command(
            "lovelace/resources/update", resource_id=resource_id, **fields
        )


class HassClientProvider:
    """Lazily creates and shares the process-wide :class:`HassClient`.

    The first caller connects; concurrent callers wait on the same lock and
    reuse the result. A dropped connection is replaced on the next call.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: HassClient | None = None
        self._lock = asyncio.Lock()

    async def get_client(self) -> HassClient:
        if self._client is not None and self._client.is_connected:
            return self._client

        async with self._lock:
            if self._client is not None and self._client.is_connected:
                return self._client

            if self._client is not None:
                logger.info("Home Assistant connection lost, reconnecting")
                await self._client.close()
                self._client = None

            self._client = await self._connect()
            return self._client

    async def _connect(self) -> HassClient:
        ws = HomeAssistantWebSocketClient(
            self.settings.homeassistant_url,
            self.settings.homeassistant_token,
            timeout=self.settings.timeout,
        )
        await ws.connect()
        rest = HomeAssistantRestClient(
            self.settings.http_base_url,
            self.settings.homeassistant_token,
            timeout=self.settings.timeout,
        )
        if self.settings.debug:
            logger.debug("Connected to Home Assistant")
        return HassClient(ws, rest)

    async def close(self) -> None:
        async with self._lock:
            if self._client is not None:
                await self._client.close()
                self._client = None
