"""
Lovelace dashboard schema.

A dashboard is a tree of views -> sections -> cards. Cards are a closed
discriminated union keyed by ``type``; ``vertical-stack`` and ``grid`` cards
nest further cards. Configs are validated against this schema before they
are sent to the hub.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

ActionName = Literal["none", "toggle", "more-info", "perform-action"]
Layout = Literal["horizontal", "vertical"]


class _Model(BaseModel):
    model_config = ConfigDict(extra="allow")


class ActionTarget(_Model):
    entity_id: str


class TapAction(_Model):
    action: ActionName
    perform_action: str | None = None
    target: ActionTarget | None = None
    data: dict[str, Any] | None = None


class DoubleTapAction(_Model):
    action: ActionName


class GridOptions(_Model):
    columns: int | float
    rows: int | float


class VisibilityCondition(_Model):
    condition: Literal["state"]
    entity: str
    state: str


class EntityReference(_Model):
    entity: str
    name: str | None = None


class EntitiesCardRow(_Model):
    entity: str
    name: str | None = None
    secondary_info: Literal["last-changed", "last-updated", "entity-id", "none"] | None = None


# Cards


class HeadingCard(_Model):
    type: Literal["heading"]
    heading: str
    heading_style: Literal["title", "subtitle"]
    icon: str | None = None


class MushroomLightCard(_Model):
    type: Literal["custom:mushroom-light-card"]
    entity: str
    layout: Layout | None = None
    use_light_color: bool | None = None
    show_brightness_control: bool | None = None
    show_color_temp_control: bool | None = None
    show_color_control: bool | None = None
    collapsible_controls: bool | None = None
    tap_action: TapAction | None = None
    hold_action: TapAction | None = None
    double_tap_action: DoubleTapAction | None = None
    name: str | None = None


class TileCard(_Model):
    type: Literal["tile"]
    entity: str
    features_position: Literal["top", "bottom", "left", "right"] | None = None
    vertical: bool | None = None
    show_entity_picture: bool | None = None
    hide_state: bool | None = None
    name: str | None = None
    state_content: list[str] | None = None
    hold_action: TapAction | None = None


class WebRTCCameraCard(_Model):
    type: Literal["custom:webrtc-camera"]
    url: str


class HistoryGraphCard(_Model):
    type: Literal["history-graph"]
    entities: list[EntityReference]
    logarithmic_scale: bool | None = None
    min_y_axis: float | None = None
    max_y_axis: float | None = None
    grid_options: GridOptions | None = None
    hours_to_show: float | None = None


class MushroomSelectCard(_Model):
    type: Literal["custom:mushroom-select-card"]
    entity: str
    name: str | None = None
    layout: Layout | None = None


class MushroomClimateCard(_Model):
    type: Literal["custom:mushroom-climate-card"]
    entity: str
    name: str | None = None
    layout: Layout | None = None
    fill_container: bool | None = None
    show_temperature_control: bool | None = None
    collapsible_controls: bool | None = None


class EntitiesCard(_Model):
    type: Literal["entities"]
    entities: list[str | EntitiesCardRow]
    state_color: bool | None = None


class MushroomNumberCard(_Model):
    type: Literal["custom:mushroom-number-card"]
    entity: str
    name: str | None = None
    layout: Layout | None = None
    fill_container: bool | None = None
    display_mode: Literal["slider", "buttons"] | None = None
    icon: str | None = None


class AutoEntitiesInclude(_Model):
    options: dict[str, Any]
    domain: str | None = None
    area: str | None = None


class AutoEntitiesExclude(_Model):
    options: dict[str, Any]
    attributes: dict[str, str] | None = None
    entity_id: str | None = None


class AutoEntitiesFilter(_Model):
    include: list[AutoEntitiesInclude]
    exclude: list[AutoEntitiesExclude] | None = None


class AutoEntitiesInnerCard(_Model):
    type: str


class AutoEntitiesCard(_Model):
    type: Literal["custom:auto-entities"]
    filter: AutoEntitiesFilter
    show_empty: bool | None = None
    card: AutoEntitiesInnerCard
    card_param: str | None = None


class VerticalStackCard(_Model):
    type: Literal["vertical-stack"]
    cards: list["LovelaceCard"] | None = None


class ApexChartsHeader(_Model):
    title: str
    show: bool


class ApexChartsSeries(_Model):
    entity: str
    name: str
    stroke_width: float | None = None
    type: Literal["line", "area", "column", "scatter"]
    group_by: dict[str, str] | None = None


class ApexChartsSpan(_Model):
    start: str
    offset: str


class ApexChartsCard(_Model):
    """ApexCharts card; the chart option blocks are passed through as-is."""

    type: Literal["custom:apexcharts-card"]
    header: ApexChartsHeader | None = None
    series: list[ApexChartsSeries]
    chart_type: Literal["line", "area", "column", "pie", "donut", "radialBar", "scatter"]
    span: ApexChartsSpan | None = None
    chart: dict[str, Any] | None = None
    plotOptions: dict[str, Any] | None = None
    dataLabels: dict[str, Any] | None = None
    xaxis: dict[str, Any] | None = None
    yaxis: dict[str, Any] | None = None
    fill: dict[str, Any] | None = None
    stroke: dict[str, Any] | None = None
    legend: dict[str, Any] | None = None
    tooltip: dict[str, Any] | None = None
    grid: dict[str, Any] | None = None
    annotations: dict[str, Any] | None = None
    responsive: list[dict[str, Any]] | None = None
    title: dict[str, Any] | None = None
    subtitle: dict[str, Any] | None = None
    labels: list[str] | None = None
    colors: list[str] | None = None


class GridCard(_Model):
    type: Literal["grid"]
    square: bool | None = None
    columns: int | None = None
    cards: list["LovelaceCard"]


LovelaceCard = Annotated[
    Union[
        HeadingCard,
        MushroomLightCard,
        TileCard,
        WebRTCCameraCard,
        HistoryGraphCard,
        MushroomSelectCard,
        MushroomClimateCard,
        EntitiesCard,
        MushroomNumberCard,
        AutoEntitiesCard,
        VerticalStackCard,
        ApexChartsCard,
        GridCard,
    ],
    Field(discriminator="type"),
]

VerticalStackCard.model_rebuild()
GridCard.model_rebuild()


class Badge(_Model):
    type: Literal["entity"]
    entity: str
    show_name: bool | None = None
    show_state: bool | None = None
    show_icon: bool | None = None
    show_entity_picture: bool | None = None
    name: str | None = None
    tap_action: TapAction | None = None
    icon: str | None = None
    color: str | None = None


class Section(_Model):
    type: Literal["grid"]
    cards: list[LovelaceCard]
    visibility: list[VisibilityCondition] | None = None


class View(_Model):
    title: str
    sections: list[Section]
    badges: list[Badge]
    type: Literal["sections"]
    max_columns: int | None = None
    dense_section_placement: bool | None = None
    cards: list[Any] = Field(default_factory=list)


class DashboardConfig(_Model):
    """Top-level Lovelace dashboard configuration."""

    views: list[View]

    def to_hub_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
