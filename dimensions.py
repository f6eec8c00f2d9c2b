from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from accessors import DEFAULT_ACCESSOR, FieldAccessor, iter_collection
from date_utils import to_millis
from geometry import coordinate_to_time_ratio
from timeline_models import MIN_ITEM_WIDTH_PX, DimensionItem, Dimensions, Keys

DEFAULT_KEYS = Keys()


def select_visible(
    items: Any,
    canvas_time_start: float,
    canvas_time_end: float,
    keys: Keys = DEFAULT_KEYS,
    accessor: FieldAccessor = DEFAULT_ACCESSOR,
) -> List[Any]:
    """Items overlapping [canvas_time_start, canvas_time_end] (inclusive), in input order."""
    out: List[Any] = []
    for item in iter_collection(items, accessor):
        start = to_millis(accessor.get(item, keys.item_time_start_key))
        end = to_millis(accessor.get(item, keys.item_time_end_key))
        if start <= canvas_time_end and end >= canvas_time_start:
            out.append(item)
    return out


def build_group_order(
    groups: Any,
    keys: Keys = DEFAULT_KEYS,
    accessor: FieldAccessor = DEFAULT_ACCESSOR,
) -> Dict[Any, int]:
    """Group id -> lane order. Order is the position in the list on this call."""
    return {accessor.get(g, keys.group_id_key): i for i, g in enumerate(iter_collection(groups, accessor))}


def group_items_by_order(items: Iterable[DimensionItem], group_count: int) -> List[List[DimensionItem]]:
    """
    One bucket per lane. Records without a usable order (unknown group, or a
    drag target outside the lane range) are dropped.
    """
    grouped: List[List[DimensionItem]] = [[] for _ in range(group_count)]
    for it in items:
        order = it.dimensions.order
        if order is None or not 0 <= order < group_count:
            continue
        grouped[order].append(it)
    return grouped


def calculate_dimensions(
    *,
    item_time_start: float,
    item_time_end: float,
    canvas_time_start: float,
    canvas_time_end: float,
    canvas_width: float,
    drag_snap: float,
    visible_time_start: float,
    visible_time_end: float,
    is_dragging: bool = False,
    drag_time: Optional[float] = None,
    is_resizing: bool = False,
    resizing_edge: Optional[str] = None,
    resize_time: Optional[float] = None,
    full_update: bool = True,
) -> Optional[Dimensions]:
    """
    Pixel rectangle of one item on the current canvas.

    Rules:
      - resizing overrides only the active edge; dragging moves the start to
        drag_time and keeps the duration
      - time width is at least drag_snap, so point-like and inverted intervals
        stay visible
      - while dragging, the collision box sweeps from the original position to
        the dragged one
      - with full_update, items wholly outside the visible window return None
        (never the dragged item) and the rest are clipped to it
    """
    item_start = resize_time if is_resizing and resizing_edge == "left" else item_time_start
    item_end = resize_time if is_resizing and resizing_edge == "right" else item_time_end

    x = drag_time if is_dragging else item_start
    w = max(item_end - item_start, drag_snap)

    collision_x = item_start
    collision_w = w

    if is_dragging:
        if item_time_start >= drag_time:
            collision_x = drag_time
            collision_w = max(item_time_end - drag_time, drag_snap)
        else:
            collision_w = max(drag_time - item_time_start + w, drag_snap)

    clipped_left = False
    clipped_right = False

    if full_update:
        if not is_dragging and (visible_time_start > x + w or visible_time_end < x):
            return None

        if visible_time_start > x:
            w -= visible_time_start - x
            x = visible_time_start
            if is_dragging and w < 0:
                x += w
                w = 0
            clipped_left = True
        if x + w > visible_time_end:
            w -= (x + w) - visible_time_end
            if is_dragging and w < 0:
                x = visible_time_end
                w = 0
            clipped_right = True

    ratio = 1 / coordinate_to_time_ratio(canvas_time_start, canvas_time_end, canvas_width)

    return Dimensions(
        left=(x - canvas_time_start) * ratio,
        width=max(w * ratio, MIN_ITEM_WIDTH_PX),
        collision_left=collision_x,
        collision_width=collision_w,
        original_left=item_time_start,
        clipped_left=clipped_left,
        clipped_right=clipped_right,
    )
