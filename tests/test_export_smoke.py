import matplotlib.pyplot as plt

from canvas import canvas_for_visible
from export import export_pdf_bytes, export_png_bytes, preview_png_bytes
from layout import compute_layout
from renderer import header_cells, lane_labels, render_layout
from timeline_models import HOUR, TimelineSettings

GROUPS = [{"id": "a", "title": "Build"}, {"id": "b", "title": "Launch"}]
ITEMS = [
    {"id": "T1", "group": "a", "start_time": 9 * HOUR, "end_time": 14 * HOUR},
    {"id": "T2", "group": "a", "start_time": 10 * HOUR, "end_time": 12 * HOUR},
    {"id": "T3", "group": "a", "start_time": 11 * HOUR, "end_time": 13 * HOUR},
    {"id": "T4", "group": "a", "start_time": 11 * HOUR, "end_time": 16 * HOUR},
    {"id": "M1", "group": "b", "start_time": 12 * HOUR, "end_time": 12 * HOUR},
]


def _layout(**settings_kwargs):
    settings = TimelineSettings(**settings_kwargs)
    window = canvas_for_visible(8 * HOUR, 18 * HOUR, 800)
    return compute_layout(ITEMS, GROUPS, settings, window), window, settings


def test_header_rows_cover_visible_window():
    _, window, settings = _layout()
    rows = header_cells(window, settings)

    units = [unit for unit, _ in rows]
    # 10 hours over 800px: minutes are the finest unit, grouped by hour
    assert units == ["hour", "minute"]
    hour_cells = rows[0][1]
    assert len(hour_cells) == 10
    assert hour_cells[0][2] == "01 Jan 08:00"
    assert len(rows[1][1]) == 600


def test_render_reports_hidden_items():
    result, window, settings = _layout(stack_items=True, group_height=50)
    fig, notes = render_layout(result, window, settings, group_titles={g["id"]: g["title"] for g in GROUPS})
    plt.close(fig)

    assert notes["hidden"] == ["T2", "T3"]


def test_empty_lane_is_labelled_with_its_group_id():
    settings = TimelineSettings()
    window = canvas_for_visible(8 * HOUR, 18 * HOUR, 800)
    groups = GROUPS + [{"id": "c", "title": "Support"}]
    result = compute_layout(ITEMS, groups, settings, window)

    assert result.grouped_items[2] == []
    assert lane_labels(result) == [("a", "a"), ("b", "b"), ("c", "c")]
    assert [label for _, label in lane_labels(result, {"a": "Build", "c": "Support"})] == ["Build", "b", "Support"]

    fig, _ = render_layout(result, window, settings)
    plt.close(fig)


def test_exports_produce_bytes():
    result, window, settings = _layout(stack_items=True)
    titles = {g["id"]: g["title"] for g in GROUPS}

    preview = preview_png_bytes(result, window, settings, group_titles=titles)
    assert isinstance(preview, (bytes, bytearray))
    assert preview[:8] == b"\x89PNG\r\n\x1a\n"

    png = export_png_bytes(result, window, settings, group_titles=titles, item_titles={it["id"]: it["id"] for it in ITEMS})
    assert png[:8] == b"\x89PNG\r\n\x1a\n"
    assert len(png) > len(preview)

    pdf = export_pdf_bytes(result, window, settings, group_titles=titles)
    assert pdf[:4] == b"%PDF"
