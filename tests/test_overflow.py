import pytest

from canvas import canvas_for_visible
from date_utils import to_millis
from overflow import bucket_hidden_items, position_show_more_buttons
from timeline_models import DAY, DimensionItem, Dimensions, ShowMoreButton


def _hidden(item_id, start, end):
    start, end = to_millis(start), to_millis(end)
    dims = Dimensions(left=0, width=3, collision_left=start, collision_width=end - start, original_left=start, hide=True)
    return DimensionItem(id=item_id, start_time=start, end_time=end, dimensions=dims)


def test_item_spanning_several_days_lands_in_each_bucket():
    buttons = bucket_hidden_items([("g1", _hidden("a", "2025-01-01T10:00", "2025-01-03T09:00"))], "day")

    assert [b.id for b in buttons] == [
        "g1-2025-01-01T00:00:00",
        "g1-2025-01-02T00:00:00",
        "g1-2025-01-03T00:00:00",
    ]
    assert all(b.items == ["a"] for b in buttons)
    assert buttons[1].slot_time == to_millis("2025-01-02")


def test_items_sharing_a_slot_share_a_button():
    hidden = [
        ("g1", _hidden("a", "2025-01-01T10:00", "2025-01-01T11:00")),
        ("g1", _hidden("b", "2025-01-01T15:00", "2025-01-01T16:00")),
        ("g2", _hidden("c", "2025-01-01T15:00", "2025-01-01T16:00")),
    ]
    buttons = bucket_hidden_items(hidden, "day")

    assert [(b.group_id, b.items) for b in buttons] == [("g1", ["a", "b"]), ("g2", ["c"])]


def test_hour_buckets():
    buttons = bucket_hidden_items([("g", _hidden("a", "2025-01-01T10:30", "2025-01-01T12:10"))], "hour")
    assert [b.slot for b in buttons] == ["2025-01-01T10:00:00", "2025-01-01T11:00:00", "2025-01-01T12:00:00"]


def test_week_buckets_follow_week_start_day():
    # 2025-01-05 is a Sunday
    item = ("g", _hidden("a", "2025-01-05T10:00", "2025-01-05T11:00"))
    assert bucket_hidden_items([item], "week", week_start_day="Mon")[0].slot == "2024-12-30T00:00:00"
    assert bucket_hidden_items([item], "week", week_start_day="Sun")[0].slot == "2025-01-05T00:00:00"


def test_quarter_and_inverted_interval():
    buttons = bucket_hidden_items([("g", _hidden("a", "2025-05-10", "2025-02-01"))], "quarter")
    assert [b.slot for b in buttons] == ["2025-04-01T00:00:00"]


def test_unknown_timeframe_is_rejected():
    with pytest.raises(ValueError):
        bucket_hidden_items([("g", _hidden("a", "2025-01-01", "2025-01-02"))], "fortnight")


def test_buttons_are_anchored_at_slot_start_on_lane_bottom():
    window = canvas_for_visible(DAY, 2 * DAY, 1000)
    buttons = bucket_hidden_items([("g2", _hidden("a", "1970-01-02T05:00", "1970-01-02T06:00"))], "day")
    buttons.append(ShowMoreButton(id="zz-x", group_id="zz", slot="x", slot_time=0))

    placed = position_show_more_buttons(buttons, window, header_height=60, group_height=50, group_ids=["g1", "g2"])

    assert len(placed) == 1
    assert placed[0].left == 1000 + 6
    assert placed[0].top == 60 + 50 * 2 - 18
    assert placed[0].items == ["a"]
