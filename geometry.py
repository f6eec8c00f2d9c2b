from __future__ import annotations

from timeline_models import Dimensions

# Touching edges must not count as a collision after float rounding.
EPSILON = 0.001


def collides(a: Dimensions, b: Dimensions, epsilon: float = EPSILON) -> bool:
    """
    Rectangle collision between two placed items.

    Horizontal extent is the time-space collision box (collision_left/width),
    vertical extent is top..top+height in pixels. An item without a top has
    not been placed yet and collides with nothing.
    """
    if a.top is None or b.top is None:
        return False
    return (
        a.collision_left + epsilon < b.collision_left + b.collision_width
        and a.collision_left + a.collision_width - epsilon > b.collision_left
        and a.top + epsilon < b.top + b.height
        and a.top + a.height - epsilon > b.top
    )


def overlaps_horizontally(a: Dimensions, b: Dimensions, epsilon: float = EPSILON) -> bool:
    return (
        a.collision_left + epsilon < b.collision_left + b.collision_width
        and a.collision_left + a.collision_width - epsilon > b.collision_left
    )


def coordinate_to_time_ratio(canvas_time_start: float, canvas_time_end: float, canvas_width: float) -> float:
    """
    Time units per pixel on the canvas.

    Precondition: canvas_width > 0 and canvas_time_end > canvas_time_start.
    """
    return (canvas_time_end - canvas_time_start) / canvas_width


def time_to_pixel(time: float, canvas_time_start: float, ratio: float) -> float:
    return (time - canvas_time_start) * (1 / ratio)


def pixel_to_time(x: float, canvas_time_start: float, ratio: float) -> float:
    return canvas_time_start + x * ratio
