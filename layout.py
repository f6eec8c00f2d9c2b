from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from accessors import DEFAULT_ACCESSOR, FieldAccessor, iter_collection
from date_utils import to_millis
from dimensions import DEFAULT_KEYS, build_group_order, calculate_dimensions, select_visible
from overflow import position_show_more_buttons
from scheduler import stack_items
from timeline_models import (
    NO_INTERACTION,
    CanvasWindow,
    DimensionItem,
    FixedHeightStacking,
    InteractionState,
    Keys,
    LayoutResult,
    TimelineSettings,
)

logger = logging.getLogger(__name__)


def compute_layout(
    items: Any,
    groups: Any,
    settings: TimelineSettings,
    window: CanvasWindow,
    interaction: InteractionState = NO_INTERACTION,
    *,
    keys: Keys = DEFAULT_KEYS,
    accessor: FieldAccessor = DEFAULT_ACCESSOR,
    group_accessor: Optional[FieldAccessor] = None,
    force: bool = False,
) -> LayoutResult:
    """
    One layout pass: visibility -> lane order -> dimensions -> stacking.

    Input items and groups are only read. `accessor` reads items; groups use
    `group_accessor` when given, else the same accessor.

    Returns a LayoutResult; warnings["unknown_group"] lists items whose group
    is not in `groups` (they are left out of the layout).
    """
    group_accessor = group_accessor or accessor
    if group_accessor.length(groups) == 0:
        return LayoutResult(height=0, group_heights=[], group_tops=[], grouped_items=[])

    visible = select_visible(items, window.canvas_time_start, window.canvas_time_end, keys, accessor)
    group_orders = build_group_order(groups, keys, group_accessor)
    group_ids = [group_accessor.get(g, keys.group_id_key) for g in iter_collection(groups, group_accessor)]

    warnings: Dict[str, List[str]] = {"unknown_group": []}
    dimension_items: List[DimensionItem] = []
    item_height = settings.item_height

    for item in visible:
        item_id = accessor.get(item, keys.item_id_key)
        group_id = accessor.get(item, keys.item_group_key)
        is_dragging = interaction.is_dragging(item_id)
        is_resizing = interaction.is_resizing(item_id)
        start = to_millis(accessor.get(item, keys.item_time_start_key))
        end = to_millis(accessor.get(item, keys.item_time_end_key))

        dims = calculate_dimensions(
            item_time_start=start,
            item_time_end=end,
            canvas_time_start=window.canvas_time_start,
            canvas_time_end=window.canvas_time_end,
            canvas_width=window.canvas_width,
            drag_snap=settings.drag_snap,
            visible_time_start=window.visible_time_start,
            visible_time_end=window.visible_time_end,
            is_dragging=is_dragging,
            drag_time=interaction.drag_time,
            is_resizing=is_resizing,
            resizing_edge=interaction.resizing_edge,
            resize_time=interaction.resize_time,
            full_update=settings.full_update,
        )
        if dims is None:
            continue

        if is_dragging and interaction.new_group_order is not None:
            order = interaction.new_group_order
        else:
            order = group_orders.get(group_id)
        if order is None:
            warnings["unknown_group"].append(f"{item_id}: group '{group_id}' is not in the group list.")
            continue

        dims = replace(
            dims,
            top=None,
            order=order,
            height=item_height,
            stack=not accessor.get_optional(item, keys.item_overlay_key, False),
            is_dragging=is_dragging,
        )
        lane_group_id = group_ids[order] if 0 <= order < len(group_ids) else group_id
        dimension_items.append(DimensionItem(id=item_id, start_time=start, end_time=end, dimensions=dims, group_id=lane_group_id))

    mode = settings.stacking_mode()
    result = stack_items(
        mode,
        dimension_items,
        group_count=len(group_ids),
        line_height=settings.line_height,
        header_height=settings.header_height,
        force=force,
        item_spacing=settings.item_spacing,
        group_ids=group_ids,
        timeframe=settings.timeframe,
        tz=settings.timezone,
        week_start_day=settings.week_start_day,
    )
    logger.debug(
        f"Layout pass: {len(visible)} of {accessor.length(items)} items in canvas, "
        f"{len(dimension_items)} rendered, height={result.height}"
    )
    if isinstance(mode, FixedHeightStacking) and result.show_more_buttons:
        buttons = position_show_more_buttons(
            result.show_more_buttons,
            window,
            header_height=settings.header_height,
            group_height=mode.height,
            group_ids=group_ids,
        )
        result = replace(result, show_more_buttons=buttons)
    return replace(result, warnings=warnings, group_ids=group_ids)
