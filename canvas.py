from __future__ import annotations

import math
from typing import Literal, Sequence, Tuple

from geometry import pixel_to_time
from timeline_models import CanvasWindow

# The canvas is three visible windows wide: one off-screen on each side.
CANVAS_FACTOR = 3


def canvas_for_visible(visible_time_start: float, visible_time_end: float, width: float) -> CanvasWindow:
    """Center a fresh 3x canvas on the visible window."""
    zoom = visible_time_end - visible_time_start
    canvas_time_start = visible_time_start - zoom
    return CanvasWindow(
        canvas_time_start=canvas_time_start,
        canvas_time_end=canvas_time_start + zoom * CANVAS_FACTOR,
        canvas_width=width * CANVAS_FACTOR,
        visible_time_start=visible_time_start,
        visible_time_end=visible_time_end,
        width=width,
    )


def can_keep_canvas(
    old_canvas_time_start: float,
    old_zoom: float,
    visible_time_start: float,
    visible_time_end: float,
) -> bool:
    """
    True while the visible window still sits around the canvas' middle third:
    its start within [0.5, 1.5] and its end within [1.5, 2.5] old zooms from
    the canvas start.
    """
    return (
        old_canvas_time_start + old_zoom * 0.5 <= visible_time_start <= old_canvas_time_start + old_zoom * 1.5
        and old_canvas_time_start + old_zoom * 1.5 <= visible_time_end <= old_canvas_time_start + old_zoom * 2.5
    )


def update_canvas(window: CanvasWindow, visible_time_start: float, visible_time_end: float) -> Tuple[CanvasWindow, bool]:
    """
    Move the visible window. Returns (window, reset); the canvas is rebuilt
    around the new window when it drifted out of the middle third or the zoom
    changed (the scroll position would no longer line up).
    """
    new_zoom = visible_time_end - visible_time_start
    keep = can_keep_canvas(window.canvas_time_start, window.zoom, visible_time_start, visible_time_end)
    if keep and math.isclose(new_zoom, window.zoom):
        moved = CanvasWindow(
            canvas_time_start=window.canvas_time_start,
            canvas_time_end=window.canvas_time_end,
            canvas_width=window.canvas_width,
            visible_time_start=visible_time_start,
            visible_time_end=visible_time_end,
            width=window.width,
        )
        return moved, False
    return canvas_for_visible(visible_time_start, visible_time_end, window.width), True


def scroll_canvas(window: CanvasWindow, scroll_x: float) -> Tuple[CanvasWindow, float]:
    """
    Apply a horizontal scroll offset (px into the canvas).

    Scrolling into the outer halves shifts the canvas by one zoom so there is
    always room to keep panning. Returns (window, scroll_x adjusted for the
    shift).
    """
    zoom = window.zoom
    canvas_time_start = window.canvas_time_start
    visible_time_start = canvas_time_start + zoom * scroll_x / window.width

    if scroll_x < window.width * 0.5:
        canvas_time_start -= zoom
        scroll_x += window.width
    elif scroll_x > window.width * 1.5:
        canvas_time_start += zoom
        scroll_x -= window.width

    shifted = CanvasWindow(
        canvas_time_start=canvas_time_start,
        canvas_time_end=canvas_time_start + zoom * CANVAS_FACTOR,
        canvas_width=window.canvas_width,
        visible_time_start=visible_time_start,
        visible_time_end=visible_time_start + zoom,
        width=window.width,
    )
    return shifted, scroll_x


def change_zoom(
    visible_time_start: float,
    visible_time_end: float,
    scale: float,
    offset: float = 0.5,
    *,
    min_zoom: float,
    max_zoom: float,
) -> Tuple[float, float]:
    """Scale the visible span around `offset` (0 = left edge, 1 = right edge), clamped to the zoom range."""
    old_zoom = visible_time_end - visible_time_start
    new_zoom = min(max(round(old_zoom * scale), min_zoom), max_zoom)
    new_start = round(visible_time_start + (old_zoom - new_zoom) * offset)
    return new_start, new_start + new_zoom


def snap_time(time: float, drag_snap: float, mode: Literal["round", "floor"] = "round") -> float:
    if not drag_snap:
        return time
    if mode == "floor":
        return math.floor(time / drag_snap) * drag_snap
    return round(time / drag_snap) * drag_snap


def row_and_time(
    x: float,
    y: float,
    *,
    group_heights: Sequence[float],
    header_height: float,
    visible_time_start: float,
    visible_time_end: float,
    width: float,
    drag_snap: float,
) -> Tuple[int, float]:
    """
    Lane row and snapped time under a pointer position relative to the
    timeline's top-left corner. The row can equal len(group_heights) when the
    pointer is below the last lane.
    """
    row = 0
    remaining = y - header_height
    while row < len(group_heights) and remaining - group_heights[row] > 0:
        remaining -= group_heights[row]
        row += 1

    time = round(pixel_to_time(x, visible_time_start, (visible_time_end - visible_time_start) / width))
    return row, snap_time(time, drag_snap, "floor")


def group_at(y: float, group_tops: Sequence[float]) -> int:
    """Index of the last lane whose top is above `y` (0 when above every lane)."""
    index = 0
    for i, top in enumerate(group_tops):
        if y > top:
            index = i
        else:
            break
    return index
