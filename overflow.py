from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from date_utils import iter_periods
from geometry import time_to_pixel
from timeline_models import CanvasWindow, DimensionItem, ShowMoreButton

logger = logging.getLogger(__name__)

# Pixel offsets of the "show more" anchor inside its lane.
BUTTON_LEFT_OFFSET = 6
BUTTON_BOTTOM_OFFSET = 18


def bucket_hidden_items(
    hidden: Iterable[Tuple[Any, DimensionItem]],
    timeframe: str,
    *,
    tz: str = "UTC",
    week_start_day: str = "Mon",
) -> List[ShowMoreButton]:
    """
    Group hidden items into (group id, time slot) buckets.

    Every timeframe unit an item spans gets the item, so one item may appear
    in several buckets. Buckets come out in first-seen order.
    """
    buckets: Dict[Tuple[Any, str], List[Any]] = {}
    slot_times: Dict[Tuple[Any, str], float] = {}

    for group_id, it in hidden:
        for slot, slot_time in iter_periods(it.start_time, it.end_time, timeframe, tz=tz, week_start_day=week_start_day):
            key = (group_id, slot)
            bucket = buckets.setdefault(key, [])
            slot_times.setdefault(key, slot_time)
            if it.id not in bucket:
                bucket.append(it.id)

    buttons = [
        ShowMoreButton(
            id=f"{group_id}-{slot}",
            group_id=group_id,
            slot=slot,
            slot_time=slot_times[(group_id, slot)],
            items=item_ids,
        )
        for (group_id, slot), item_ids in buckets.items()
    ]
    logger.debug(f"Bucketed hidden items into {len(buttons)} show-more slot(s) by {timeframe}")
    return buttons


def position_show_more_buttons(
    buttons: Sequence[ShowMoreButton],
    window: CanvasWindow,
    *,
    header_height: float,
    group_height: float,
    group_ids: Sequence[Any],
) -> List[ShowMoreButton]:
    """Anchor each button at its slot start, at the bottom of its lane."""
    out: List[ShowMoreButton] = []
    for button in buttons:
        try:
            index = list(group_ids).index(button.group_id)
        except ValueError:
            continue
        left = round(time_to_pixel(button.slot_time, window.canvas_time_start, window.ratio)) + BUTTON_LEFT_OFFSET
        top = header_height + group_height * (index + 1) - BUTTON_BOTTOM_OFFSET
        out.append(replace(button, left=left, top=top))
    return out
