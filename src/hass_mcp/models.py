"""
Typed records mirroring Home Assistant domain objects.

Hub payloads use snake_case keys; entity states are exposed in camelCase
(``entityId``, ``lastChanged``...) to keep the capability contract stable.
"""

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

AutomationMode = Literal["single", "parallel", "queued", "restart"]


class StateContext(BaseModel):
    """Causal context of a state change."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    userId: str | None = Field(
        default=None, validation_alias=AliasChoices("userId", "user_id")
    )
    parentId: str | None = Field(
        default=None, validation_alias=AliasChoices("parentId", "parent_id")
    )


class EntityState(BaseModel):
    """Snapshot of one entity's state."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    entityId: str = Field(validation_alias=AliasChoices("entityId", "entity_id"))
    state: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    lastChanged: str = Field(
        validation_alias=AliasChoices("lastChanged", "last_changed")
    )
    lastUpdated: str = Field(
        validation_alias=AliasChoices("lastUpdated", "last_updated")
    )
    context: StateContext

    @property
    def domain(self) -> str:
        return self.entityId.split(".", 1)[0]

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class AutomationAttributes(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    last_triggered: str | None = None
    mode: str | None = None
    current: int | None = None
    friendly_name: str | None = None


class Automation(EntityState):
    """Automation entity; ``attributes.id`` is its REST id."""

    attributes: AutomationAttributes = Field(default_factory=AutomationAttributes)  # type: ignore[assignment]

    @property
    def rest_id(self) -> str | None:
        return self.attributes.id


class AutomationCreateRest(BaseModel):
    """Automation definition without an id, used for creation."""

    model_config = ConfigDict(extra="allow")

    alias: str
    description: str = ""
    triggers: list[Any] = Field(default_factory=list)
    conditions: list[Any] = Field(default_factory=list)
    actions: list[Any] = Field(default_factory=list)
    mode: AutomationMode = "single"


class AutomationRest(AutomationCreateRest):
    """Automation definition as stored by the REST config API."""

    id: str


class EntityRegistry(BaseModel):
    """Entity registry record: static metadata, distinct from state."""

    model_config = ConfigDict(extra="allow")

    entity_id: str
    id: str | None = None
    unique_id: str | None = None
    platform: str | None = None
    area_id: str | None = None
    device_id: str | None = None
    config_entry_id: str | None = None
    config_subentry_id: str | None = None
    categories: dict[str, Any] = Field(default_factory=dict)
    labels: list[str] = Field(default_factory=list)
    aliases: list[str | None] = Field(default_factory=list)
    capabilities: Any = None
    disabled_by: str | None = None
    hidden_by: str | None = None
    entity_category: str | None = None
    has_entity_name: bool | None = None
    name: str | None = None
    original_name: str | None = None
    icon: str | None = None
    original_icon: str | None = None
    device_class: str | None = None
    original_device_class: str | None = None
    translation_key: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)
    created_at: float | None = None
    modified_at: float | None = None


class ValidateConfig(BaseModel):
    """Triggers, conditions and actions to check with the hub validator."""

    model_config = ConfigDict(extra="allow")

    triggers: list[Any] | None = None
    conditions: list[Any] | None = None
    actions: list[Any] | None = None

    def to_command_fields(self) -> dict[str, Any]:
        """Fields sent to ``validate_config``; unset keys are omitted."""
        fields = self.model_dump(exclude_none=True)
        return {
            key: value
            for key, value in fields.items()
            if key in ("triggers", "conditions", "actions")
        }


class ValidationResult(BaseModel):
    """Hub verdict for one key; ``error`` carries the hub's reason when invalid."""

    valid: bool
    error: str | None = None
    errors: list[str] | str | None = None


class ValidateConfigResponse(BaseModel):
    """Per-key validation results; keys that were not sent stay absent."""

    triggers: ValidationResult | None = None
    conditions: ValidationResult | None = None
    actions: ValidationResult | None = None

    @property
    def valid(self) -> bool:
        return all(
            result.valid
            for result in (self.triggers, self.conditions, self.actions)
            if result is not None
        )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class TraceTimestamp(BaseModel):
    start: str | None = None
    finish: str | None = None


class AutomationRestShort(BaseModel):
    """Summary of one automation run."""

    model_config = ConfigDict(extra="allow")

    run_id: str
    last_step: str | None = None
    state: str | None = None
    script_execution: str | None = None
    timestamp: TraceTimestamp | None = None
    domain: str | None = None
    item_id: str | None = None
    trigger: str | None = None


class AutomationRestTrace(AutomationRestShort):
    """Full trace of one automation run."""

    trace: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    config: dict[str, Any] | None = None
    blueprint_inputs: Any = None
    context: dict[str, Any] | None = None


class HassStatus(BaseModel):
    connected: bool
    entityCount: int

