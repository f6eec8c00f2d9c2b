from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from dimensions import group_items_by_order
from geometry import collides, overlaps_horizontally
from overflow import bucket_hidden_items
from timeline_models import (
    DimensionItem,
    Dimensions,
    FixedHeightStacking,
    FreeStacking,
    LayoutResult,
    NoStacking,
    StackingMode,
)

logger = logging.getLogger(__name__)

DEFAULT_ITEM_SPACING = 3
# Lane positions from which a visible item may be pulled up next to a sibling.
REANCHOR_FROM_INDEX = 4


def _with_dimensions(it: DimensionItem, dims: Dimensions) -> DimensionItem:
    return replace(it, dimensions=dims)


def _reset_tops(items: Iterable[DimensionItem]) -> List[DimensionItem]:
    return [_with_dimensions(it, replace(it.dimensions, top=None)) for it in items]


def _resolve_top(candidate: Dimensions, placed: Sequence[Dimensions], step: float) -> float:
    """
    Push candidate down past the first placed rectangle it collides with,
    `step` below that rectangle's top, until nothing collides.
    """
    top = candidate.top
    while True:
        trial = replace(candidate, top=top)
        collider = next((other for other in placed if collides(trial, other)), None)
        if collider is None:
            return top
        next_top = collider.top + step
        top = next_top if next_top > top else top + step


def stack(
    items: Sequence[DimensionItem],
    group_count: int,
    line_height: float,
    header_height: float,
    force: bool = False,
) -> LayoutResult:
    """
    Free stacking: lanes grow to fit their deepest stack.

    Items are centered in a line_height row. A stackable item without a top
    is bumped one line_height below whatever stackable item it collides with,
    until it collides with nothing. Items that kept a top from an earlier pass
    stay put unless `force` is set. Non-stackable items sit on the first row
    and are ignored for collisions.
    """
    if force:
        items = _reset_tops(items)

    total_height = header_height
    group_heights: List[float] = []
    group_tops: List[float] = []
    grouped_out: List[List[DimensionItem]] = []

    for lane in group_items_by_order(items, group_count):
        group_tops.append(total_height)
        dims = [it.dimensions for it in lane]
        lane_bottom = 0.0

        for i, d in enumerate(dims):
            margin = (line_height - d.height) / 2
            if d.top is None:
                candidate = replace(d, top=total_height + margin)
                if d.stack:
                    placed = [o for j, o in enumerate(dims) if j != i and o.top is not None and o.stack]
                    candidate = replace(candidate, top=_resolve_top(candidate, placed, line_height))
                dims[i] = candidate
            lane_bottom = max(lane_bottom, dims[i].top + dims[i].height + margin - total_height)

        lane_height = max(lane_bottom, line_height)
        group_heights.append(lane_height)
        total_height += lane_height
        grouped_out.append([_with_dimensions(it, d) for it, d in zip(lane, dims)])

    logger.debug(f"Stacked {len(items)} items into {group_count} lanes, height={total_height}")
    return LayoutResult(
        height=total_height,
        group_heights=group_heights,
        group_tops=group_tops,
        grouped_items=grouped_out,
    )


def nostack(
    items: Sequence[DimensionItem],
    group_count: int,
    line_height: float,
    header_height: float,
    force: bool = False,
) -> LayoutResult:
    """Every item is centered on its lane's single row; overlaps draw over each other."""
    if force:
        items = _reset_tops(items)

    total_height = header_height
    group_heights: List[float] = []
    group_tops: List[float] = []
    grouped_out: List[List[DimensionItem]] = []

    for lane in group_items_by_order(items, group_count):
        group_tops.append(total_height)
        out_lane: List[DimensionItem] = []
        for it in lane:
            d = it.dimensions
            if d.top is None:
                d = replace(d, top=total_height + (line_height - d.height) / 2)
            out_lane.append(_with_dimensions(it, d))
        group_heights.append(line_height)
        total_height += line_height
        grouped_out.append(out_lane)

    return LayoutResult(
        height=total_height,
        group_heights=group_heights,
        group_tops=group_tops,
        grouped_items=grouped_out,
    )


def _reanchor(d: Dimensions, index: int, dims: Sequence[Dimensions], hidden: Sequence[bool]) -> Dimensions:
    # Heuristic: move up to the row of an earlier visible sibling that does
    # not share any horizontal extent, if that row is free.
    others = [o for j, o in enumerate(dims) if j != index and o.top is not None and not hidden[j]]
    for j in range(index):
        sibling = dims[j]
        if hidden[j] or sibling.top is None or sibling.top >= d.top:
            continue
        if overlaps_horizontally(sibling, d):
            continue
        moved = replace(d, top=sibling.top)
        if not any(collides(moved, o) for o in others):
            return moved
    return d


def stack_fixed_height(
    items: Sequence[DimensionItem],
    group_count: int,
    line_height: float,
    header_height: float,
    force: bool = False,
    group_height: float = 0.0,
    *,
    item_spacing: float = DEFAULT_ITEM_SPACING,
    group_ids: Optional[Sequence[Any]] = None,
    timeframe: str = "day",
    tz: str = "UTC",
    week_start_day: str = "Mon",
) -> LayoutResult:
    """
    Stacking inside lanes of a fixed height, with overflow into show-more buckets.

    Rules (per lane, items in input order):
      - all tops are reset; the first row starts item_spacing below the lane top
      - each item is bumped by item height + item_spacing past colliding items
      - an item whose bottom falls below the lane is hidden, and so is the item
        right before it, which leaves room for the show-more control
      - hidden items stop taking part in collisions and are bucketed per
        `timeframe` unit they span
      - a visible item at lane position 4 or later moves up to the top of an
        earlier, horizontally disjoint sibling when that slot is free; with
        uniform item heights the bump loop already lands on the first free
        row, so this only changes lanes of mixed heights

    `force` is accepted for a uniform strategy signature; tops are always reset.
    """
    total_height = header_height
    group_heights: List[float] = []
    group_tops: List[float] = []
    grouped_out: List[List[DimensionItem]] = []
    hidden_items: List[Tuple[Any, DimensionItem]] = []
    ids = list(group_ids) if group_ids is not None else list(range(group_count))

    for lane_index, lane in enumerate(group_items_by_order(items, group_count)):
        lane_top = total_height
        group_tops.append(lane_top)
        dims = [replace(it.dimensions, top=None, hide=False) for it in lane]
        hidden = [False] * len(dims)

        for i, d in enumerate(dims):
            placed = [o for j, o in enumerate(dims) if j != i and o.top is not None and not hidden[j]]
            candidate = replace(d, top=lane_top + item_spacing)
            d = replace(candidate, top=_resolve_top(candidate, placed, d.height + item_spacing))

            if d.top + d.height > lane_top + group_height:
                hidden[i] = True
                if i > 0:
                    hidden[i - 1] = True
            elif i >= REANCHOR_FROM_INDEX:
                d = _reanchor(d, i, dims, hidden)
            dims[i] = d

        out_lane: List[DimensionItem] = []
        for it, d, is_hidden in zip(lane, dims, hidden):
            resolved = _with_dimensions(it, replace(d, hide=is_hidden))
            out_lane.append(resolved)
            if is_hidden:
                hidden_items.append((ids[lane_index], resolved))

        group_heights.append(group_height)
        total_height += group_height
        grouped_out.append(out_lane)

    buttons = bucket_hidden_items(hidden_items, timeframe, tz=tz, week_start_day=week_start_day)
    logger.debug(f"Fixed-height stacking hid {len(hidden_items)} of {len(items)} items")
    return LayoutResult(
        height=total_height,
        group_heights=group_heights,
        group_tops=group_tops,
        grouped_items=grouped_out,
        show_more_buttons=buttons,
    )


def stack_items(
    mode: StackingMode,
    items: Sequence[DimensionItem],
    *,
    group_count: int,
    line_height: float,
    header_height: float,
    force: bool = False,
    item_spacing: float = DEFAULT_ITEM_SPACING,
    group_ids: Optional[Sequence[Any]] = None,
    timeframe: str = "day",
    tz: str = "UTC",
    week_start_day: str = "Mon",
) -> LayoutResult:
    """Dispatch to the strategy selected by `mode`."""
    if isinstance(mode, FixedHeightStacking):
        return stack_fixed_height(
            items,
            group_count,
            line_height,
            header_height,
            force,
            mode.height,
            item_spacing=item_spacing,
            group_ids=group_ids,
            timeframe=timeframe,
            tz=tz,
            week_start_day=week_start_day,
        )
    if isinstance(mode, FreeStacking):
        return stack(items, group_count, line_height, header_height, force)
    if isinstance(mode, NoStacking):
        return nostack(items, group_count, line_height, header_height, force)
    raise TypeError(f"unknown stacking mode: {mode!r}")


def validate_no_overlaps_per_lane(result: LayoutResult, *, stacked_only: bool = True) -> Tuple[bool, str]:
    """
    Utility for tests/debug: confirms no two visible items in a lane collide.

    With stacked_only, items flagged stack=False are ignored (free stacking
    lets them overlap). Returns (ok, message).
    """
    for order, lane in enumerate(result.grouped_items):
        live = [it for it in lane if not it.dimensions.hide and (it.dimensions.stack or not stacked_only)]
        for i, a in enumerate(live):
            for b in live[i + 1:]:
                if collides(a.dimensions, b.dimensions):
                    return False, f"Overlap detected in lane={order}: {a.id} vs {b.id}"
    return True, "ok"
