import copy
from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from accessors import AttributeAccessor, KeyedContainerAccessor, MappingAccessor
from canvas import canvas_for_visible
from layout import compute_layout
from scheduler import validate_no_overlaps_per_lane
from timeline_models import HOUR, InteractionState, Keys, TimelineSettings

WINDOW = canvas_for_visible(10 * HOUR, 20 * HOUR, 1000)
GROUPS = [{"id": "a", "title": "Lane A"}, {"id": "b", "title": "Lane B"}]


def _items():
    return [
        {"id": 1, "group": "a", "start_time": 11 * HOUR, "end_time": 13 * HOUR},
        {"id": 2, "group": "a", "start_time": 12 * HOUR, "end_time": 14 * HOUR},
        {"id": 3, "group": "b", "start_time": 12 * HOUR, "end_time": 14 * HOUR, "is_overlay": True},
        {"id": 4, "group": "a", "start_time": 50 * HOUR, "end_time": 51 * HOUR},  # outside the canvas
    ]


def test_free_stacking_pipeline():
    settings = TimelineSettings(stack_items=True)
    items = _items()
    before = copy.deepcopy(items)

    result = compute_layout(items, GROUPS, settings, WINDOW)
    by_id = result.by_id()

    assert set(by_id) == {1, 2, 3}
    assert by_id[2].dimensions.top - by_id[1].dimensions.top == 30
    assert by_id[1].dimensions.height == 30 * 0.65
    assert not by_id[3].dimensions.stack
    assert by_id[1].group_id == "a"
    assert result.group_heights == [60, 30]
    assert result.group_tops == [60, 120]
    assert result.height == 150
    assert result.warnings == {"unknown_group": []}

    # 11h is 1h into the visible window: 100px into it, 1100px into the canvas
    assert by_id[1].dimensions.left == pytest.approx(1100)
    assert by_id[1].dimensions.width == pytest.approx(200)

    ok, msg = validate_no_overlaps_per_lane(result)
    assert ok, msg
    assert items == before


def test_no_stacking_is_the_default():
    result = compute_layout(_items(), GROUPS, TimelineSettings(), WINDOW)
    by_id = result.by_id()
    assert by_id[1].dimensions.top == by_id[2].dimensions.top
    assert result.group_heights == [30, 30]


def test_no_groups_means_empty_layout():
    result = compute_layout(_items(), [], TimelineSettings(), WINDOW)
    assert result.height == 0
    assert result.grouped_items == []


def test_items_of_unknown_groups_are_reported_and_skipped():
    items = _items() + [{"id": 9, "group": "zz", "start_time": 12 * HOUR, "end_time": 13 * HOUR}]
    result = compute_layout(items, GROUPS, TimelineSettings(stack_items=True), WINDOW)

    assert 9 not in result.by_id()
    assert len(result.warnings["unknown_group"]) == 1
    assert "zz" in result.warnings["unknown_group"][0]


def test_group_order_follows_input_list():
    result = compute_layout(_items(), list(reversed(GROUPS)), TimelineSettings(stack_items=True), WINDOW)
    assert result.group_ids == ["b", "a"]
    assert [it.id for it in result.grouped_items[0]] == [3]
    assert result.group_heights == [30, 60]


def test_dragged_item_moves_to_target_lane():
    interaction = InteractionState(dragging_item=1, drag_time=15 * HOUR, new_group_order=1)
    result = compute_layout(_items(), GROUPS, TimelineSettings(stack_items=True, drag_snap=0), WINDOW, interaction)

    assert [it.id for it in result.grouped_items[0]] == [2]
    dragged = result.by_id()[1]
    assert dragged.group_id == "b"
    assert dragged.dimensions.is_dragging
    assert dragged.dimensions.left == pytest.approx(1500)


def test_resize_changes_only_the_resized_item():
    interaction = InteractionState(resizing_item=2, resizing_edge="right", resize_time=18 * HOUR)
    result = compute_layout(_items(), GROUPS, TimelineSettings(), WINDOW, interaction)
    by_id = result.by_id()
    assert by_id[2].dimensions.width == pytest.approx(600)
    assert by_id[1].dimensions.width == pytest.approx(200)


def test_fixed_height_lanes_position_show_more_buttons():
    items = [
        {"id": i, "group": "b", "start_time": 11 * HOUR, "end_time": 12 * HOUR} for i in range(5)
    ]
    settings = TimelineSettings(stack_items=True, group_height=50)
    result = compute_layout(items, GROUPS, settings, WINDOW)

    assert result.group_heights == [50, 50]
    hidden = [it.id for it in result.items if it.dimensions.hide]
    assert hidden
    assert all(it.dimensions.height == 20 for it in result.items)

    assert len(result.show_more_buttons) == 1
    button = result.show_more_buttons[0]
    assert button.group_id == "b"
    assert set(hidden) <= set(button.items)
    assert button.top == 60 + 50 * 2 - 18
    assert button.left is not None


def test_attribute_accessor_and_datetimes():
    @dataclass
    class Row:
        id: int
        group: str
        start_time: datetime
        end_time: datetime

    base = datetime(1970, 1, 1, tzinfo=timezone.utc)
    rows = [Row(1, "a", base.replace(hour=11), base.replace(hour=13))]
    groups = [Row(0, "a", base, base)]
    keys = Keys(group_id_key="group")

    result = compute_layout(rows, groups, TimelineSettings(), WINDOW, keys=keys, accessor=AttributeAccessor())
    assert result.by_id()[1].dimensions.left == pytest.approx(1100)


class _Record:
    def __init__(self, **fields):
        self._fields = fields

    def get(self, key):
        return self._fields.get(key)


class _RecordList:
    def __init__(self, records):
        self._records = list(records)

    def count(self):
        return len(self._records)

    def get(self, index):
        return self._records[index]


def test_keyed_container_items_with_plain_groups():
    items = _RecordList(_Record(**it) for it in _items())
    result = compute_layout(
        items,
        GROUPS,
        TimelineSettings(stack_items=True),
        WINDOW,
        accessor=KeyedContainerAccessor(),
        group_accessor=MappingAccessor(),
    )
    assert set(result.by_id()) == {1, 2, 3}
