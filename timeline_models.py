from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Milliseconds, the unit every timestamp in the layout core is expressed in.
SECOND = 1000
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE
DAY = 24 * HOUR

MIN_ITEM_WIDTH_PX = 3

TimeUnit = Literal["second", "minute", "hour", "day", "month", "year"]
Timeframe = Literal["hour", "day", "week", "month", "quarter", "year"]
ResizeEdge = Literal["left", "right"]

DEFAULT_TIME_STEPS: Dict[str, int] = {
    "second": 1,
    "minute": 1,
    "hour": 1,
    "day": 1,
    "month": 1,
    "year": 1,
}


class Keys(BaseModel):
    """Field names used to read groups and items from caller data."""

    model_config = ConfigDict(frozen=True)

    group_id_key: str = "id"
    group_title_key: str = "title"
    item_id_key: str = "id"
    item_title_key: str = "title"
    item_group_key: str = "group"
    item_time_start_key: str = "start_time"
    item_time_end_key: str = "end_time"
    item_overlay_key: str = "is_overlay"


class InteractionState(BaseModel):
    """
    Drag/resize state owned by the interactive component.

    One value is captured per layout pass and handed to the dimension
    calculator; the stacking strategies never see it.
    """

    model_config = ConfigDict(frozen=True)

    dragging_item: Optional[Any] = None
    drag_time: Optional[float] = None
    new_group_order: Optional[int] = None

    resizing_item: Optional[Any] = None
    resizing_edge: Optional[ResizeEdge] = None
    resize_time: Optional[float] = None

    @model_validator(mode="after")
    def _overrides_present(self) -> "InteractionState":
        if self.dragging_item is not None and self.drag_time is None:
            raise ValueError("drag_time is required while an item is being dragged.")
        if self.resizing_item is not None and (self.resize_time is None or self.resizing_edge is None):
            raise ValueError("resize_time and resizing_edge are required while an item is being resized.")
        return self

    def is_dragging(self, item_id: Any) -> bool:
        return self.dragging_item is not None and item_id == self.dragging_item

    def is_resizing(self, item_id: Any) -> bool:
        return self.resizing_item is not None and item_id == self.resizing_item


NO_INTERACTION = InteractionState()


# ---------------------------------------------------------------------------
# Stacking mode (one variant chosen per timeline configuration)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FreeStacking:
    pass


@dataclass(frozen=True)
class NoStacking:
    pass


@dataclass(frozen=True)
class FixedHeightStacking:
    height: float


StackingMode = Union[FreeStacking, NoStacking, FixedHeightStacking]


class TimelineSettings(BaseModel):
    line_height: float = Field(default=30)
    item_height_ratio: float = Field(default=0.65)
    header_label_group_height: float = Field(default=30)
    header_label_height: float = Field(default=30)
    sidebar_width: float = Field(default=150)

    drag_snap: float = Field(default=15 * MINUTE)
    full_update: bool = Field(default=True)

    stack_items: bool = Field(default=False)
    group_height: Optional[float] = Field(default=None)  # fixed lane height; enables show-more
    fixed_item_height: float = Field(default=20)
    item_spacing: float = Field(default=3)

    timeframe: Timeframe = Field(default="day")
    time_steps: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_TIME_STEPS))

    min_zoom: float = Field(default=HOUR)
    max_zoom: float = Field(default=5 * 365.24 * DAY)

    timezone: str = Field(default="UTC")
    week_start_day: Literal["Mon", "Sun"] = Field(default="Mon")

    @field_validator("line_height", "header_label_group_height", "header_label_height", "fixed_item_height")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than 0.")
        return v

    @field_validator("item_height_ratio")
    @classmethod
    def _ratio_in_range(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("item_height_ratio must be in (0, 1].")
        return v

    @field_validator("drag_snap", "item_spacing", "sidebar_width")
    @classmethod
    def _not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must not be negative.")
        return v

    @field_validator("group_height")
    @classmethod
    def _group_height_positive(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("group_height must be greater than 0 when set.")
        return v

    @field_validator("time_steps")
    @classmethod
    def _steps_known(cls, v: Dict[str, int]) -> Dict[str, int]:
        unknown = set(v) - set(DEFAULT_TIME_STEPS)
        if unknown:
            raise ValueError(f"unknown time step unit(s): {', '.join(sorted(unknown))}.")
        if any(step < 1 for step in v.values()):
            raise ValueError("time steps must be >= 1.")
        return {**DEFAULT_TIME_STEPS, **v}

    @field_validator("timezone")
    @classmethod
    def _tz_valid(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("timezone is required.")
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {v}") from e
        return v

    @model_validator(mode="after")
    def _zoom_range_valid(self) -> "TimelineSettings":
        if self.min_zoom <= 0 or self.max_zoom < self.min_zoom:
            raise ValueError("zoom range must satisfy 0 < min_zoom <= max_zoom.")
        return self

    @property
    def header_height(self) -> float:
        return self.header_label_group_height + self.header_label_height

    @property
    def item_height(self) -> float:
        if self.group_height is not None:
            return self.fixed_item_height
        return self.line_height * self.item_height_ratio

    def stacking_mode(self) -> StackingMode:
        if not self.stack_items:
            return NoStacking()
        if self.group_height is not None:
            return FixedHeightStacking(height=self.group_height)
        return FreeStacking()


# ---------------------------------------------------------------------------
# Per-pass derived records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dimensions:
    left: float
    width: float
    collision_left: float
    collision_width: float
    original_left: float
    clipped_left: bool = False
    clipped_right: bool = False
    top: Optional[float] = None
    height: float = 0.0
    order: Optional[int] = None
    stack: bool = True
    hide: bool = False
    is_dragging: bool = False


@dataclass(frozen=True)
class DimensionItem:
    id: Any
    start_time: float
    end_time: float
    dimensions: Dimensions
    group_id: Any = None


@dataclass(frozen=True)
class CanvasWindow:
    """The 3x-oversized canvas plus the visible window inside it."""

    canvas_time_start: float
    canvas_time_end: float
    canvas_width: float
    visible_time_start: float
    visible_time_end: float
    width: float

    @property
    def zoom(self) -> float:
        return self.visible_time_end - self.visible_time_start

    @property
    def ratio(self) -> float:
        # time units per pixel
        return (self.canvas_time_end - self.canvas_time_start) / self.canvas_width


@dataclass(frozen=True)
class ShowMoreButton:
    id: str
    group_id: Any
    slot: str
    slot_time: float
    items: List[Any] = field(default_factory=list)
    left: Optional[float] = None
    top: Optional[float] = None


@dataclass(frozen=True)
class LayoutResult:
    height: float
    group_heights: List[float]
    group_tops: List[float]
    grouped_items: List[List[DimensionItem]]
    show_more_buttons: List[ShowMoreButton] = field(default_factory=list)
    warnings: Dict[str, List[str]] = field(default_factory=dict)
    # Group id per lane, in lane order.
    group_ids: List[Any] = field(default_factory=list)

    @property
    def items(self) -> List[DimensionItem]:
        return [it for lane in self.grouped_items for it in lane]

    def by_id(self) -> Dict[Any, DimensionItem]:
        return {it.id: it for it in self.items}
