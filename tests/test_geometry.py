import pytest

from geometry import collides, coordinate_to_time_ratio, overlaps_horizontally, pixel_to_time, time_to_pixel
from timeline_models import Dimensions


def _dims(left, width, top=0.0, height=10.0):
    return Dimensions(
        left=left,
        width=width,
        collision_left=left,
        collision_width=width,
        original_left=left,
        top=top,
        height=height,
    )


def test_overlapping_rectangles_collide():
    assert collides(_dims(0, 100), _dims(50, 100))
    assert collides(_dims(50, 100), _dims(0, 100))


def test_touching_edges_do_not_collide():
    # Horizontally adjacent
    assert not collides(_dims(0, 100), _dims(100, 100))
    # Vertically adjacent
    assert not collides(_dims(0, 100, top=0, height=10), _dims(0, 100, top=10, height=10))


def test_overlap_smaller_than_epsilon_is_ignored():
    assert not collides(_dims(0, 100.0005), _dims(100, 100))


def test_unplaced_rectangle_never_collides():
    unplaced = Dimensions(left=0, width=100, collision_left=0, collision_width=100, original_left=0, height=10)
    assert not collides(unplaced, _dims(0, 100))
    assert not collides(_dims(0, 100), unplaced)


def test_horizontal_overlap_ignores_tops():
    assert overlaps_horizontally(_dims(0, 100, top=0), _dims(50, 100, top=500))
    assert not overlaps_horizontally(_dims(0, 100), _dims(100, 10))


def test_time_pixel_conversion():
    ratio = coordinate_to_time_ratio(1000, 5000, 400)
    assert ratio == 10
    assert time_to_pixel(2000, 1000, ratio) == 100
    assert pixel_to_time(100, 1000, ratio) == 2000


def test_zero_canvas_width_is_a_caller_error():
    with pytest.raises(ZeroDivisionError):
        coordinate_to_time_ratio(0, 1000, 0)
