from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import matplotlib
import matplotlib.colors as mcolors
import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch, Rectangle

from date_utils import from_millis
from time_units import iterate_times, minimum_unit, next_unit
from timeline_models import CanvasWindow, LayoutResult, TimelineSettings


DEFAULT_PALETTE = [
    "#1F77B4",  # blue
    "#FF7F0E",  # orange
    "#2CA02C",  # green
    "#D62728",  # red
    "#9467BD",  # purple
    "#8C564B",  # brown
    "#E377C2",  # pink
    "#7F7F7F",  # gray
    "#BCBD22",  # olive
    "#17BECF",  # cyan
    "#AEC7E8",  # sky blue (light)
    "#FFBB78",  # peach (light)
]

# strftime per header unit; the top row uses the next coarser unit.
_UNIT_LABELS = {
    "second": "%S",
    "minute": "%H:%M",
    "hour": "%H:00",
    "day": "%d",
    "month": "%b",
    "year": "%Y",
}
_GROUP_LABELS = {
    "minute": "%H:%M",
    "hour": "%d %b %H:00",
    "day": "%d %b %Y",
    "month": "%b %Y",
    "year": "%Y",
}


def _font_family_available(family: str) -> bool:
    family = (family or "").strip()
    if not family:
        return False
    fam_lower = family.lower()
    from matplotlib import font_manager as fm
    for f in fm.fontManager.ttflist:
        if f.name.lower() == fam_lower:
            return True
    return False


def resolve_font_family(preferred: str) -> str:
    """
    Returns a font family name that matplotlib can actually render.
    Priority:
      1) preferred, if available
      2) DejaVu Sans (matplotlib default)
    """
    preferred = (preferred or "").strip()
    if preferred and _font_family_available(preferred):
        return preferred
    return "DejaVu Sans"


def _lighten_hex(hex_color: str, amount: float) -> str:
    """Blend a color with white. amount in [0, 1]."""
    try:
        r, g, b = mcolors.to_rgb(hex_color)
    except ValueError:
        return hex_color
    r = r + (1.0 - r) * amount
    g = g + (1.0 - g) * amount
    b = b + (1.0 - b) * amount
    return mcolors.to_hex((r, g, b))


def _pick_group_colors(group_ids: Sequence[Any], colors: Optional[Mapping[Any, str]] = None) -> Dict[Any, str]:
    out: Dict[Any, str] = {}
    i = 0
    for gid in group_ids:
        if colors and colors.get(gid):
            out[gid] = colors[gid]
        else:
            out[gid] = DEFAULT_PALETTE[i % len(DEFAULT_PALETTE)]
            i += 1
    return out


def header_cells(
    window: CanvasWindow,
    settings: TimelineSettings,
) -> List[Tuple[str, List[Tuple[float, float, str]]]]:
    """
    Header rows for the visible window: the coarser unit on top, the minimum
    unit below. Each row is (unit, [(x0_px, x1_px, label)]).
    """
    unit = minimum_unit(window.zoom, window.width, settings.time_steps)
    rows: List[Tuple[str, List[Tuple[float, float, str]]]] = []
    for row_unit, formats in ((next_unit(unit), _GROUP_LABELS), (unit, _UNIT_LABELS)):
        if not row_unit:
            continue
        cells: List[Tuple[float, float, str]] = []
        for t0, t1 in iterate_times(
            window.visible_time_start, window.visible_time_end, row_unit, settings.time_steps, tz=settings.timezone
        ):
            x0 = max((t0 - window.canvas_time_start) / window.ratio, 0.0)
            x1 = min((t1 - window.canvas_time_start) / window.ratio, window.canvas_width)
            label = from_millis(t0, settings.timezone).strftime(formats.get(row_unit, "%Y-%m-%d"))
            cells.append((x0, x1, label))
        rows.append((row_unit, cells))
    return rows


def lane_labels(result: LayoutResult, group_titles: Optional[Mapping[Any, str]] = None) -> List[Tuple[Any, str]]:
    """(group id, label) per lane; the label falls back to the id."""
    titles = group_titles or {}
    out: List[Tuple[Any, str]] = []
    for i in range(len(result.grouped_items)):
        gid = result.group_ids[i] if i < len(result.group_ids) else i
        title = titles.get(gid)
        out.append((gid, str(gid) if title is None else str(title)))
    return out


def render_layout(
    result: LayoutResult,
    window: CanvasWindow,
    settings: TimelineSettings,
    *,
    group_titles: Optional[Mapping[Any, str]] = None,
    group_colors: Optional[Mapping[Any, str]] = None,
    item_titles: Optional[Mapping[Any, str]] = None,
    dpi: int = 100,
    font_family: str = "DejaVu Sans",
) -> Tuple[plt.Figure, Dict[str, List[str]]]:
    """
    Draws one layout pass as it would appear on screen: header rows, lane
    bands, item rectangles and show-more anchors, cropped to the visible
    window. Pixel units map 1:1 onto the figure at the given dpi.

    Returns (fig, notes). notes["hidden"] lists hidden item ids,
    notes["clipped"] the ids clipped at a window edge.
    """
    matplotlib.rcParams["font.family"] = resolve_font_family(font_family)

    labels = lane_labels(result, group_titles)
    group_ids = [gid for gid, _ in labels]
    color_map = _pick_group_colors(group_ids, group_colors)

    x0 = (window.visible_time_start - window.canvas_time_start) / window.ratio
    x1 = x0 + window.width
    total_height = max(result.height, settings.header_height + 1)
    sidebar = settings.sidebar_width or 0

    fig_w = (window.width + sidebar) / dpi
    fig_h = total_height / dpi
    fig = plt.figure(figsize=(max(fig_w, 1.0), max(fig_h, 1.0)), dpi=dpi)
    gs = fig.add_gridspec(nrows=1, ncols=2, width_ratios=[max(sidebar, 1), window.width], wspace=0.0)
    ax_labels = fig.add_subplot(gs[0, 0])
    ax_main = fig.add_subplot(gs[0, 1], sharey=ax_labels)

    ax_main.set_xlim(x0, x1)
    ax_main.set_ylim(total_height, 0)
    ax_labels.set_xlim(0, 1)
    for ax in (ax_main, ax_labels):
        ax.spines[:].set_visible(False)
        ax.tick_params(left=False, labelleft=False, bottom=False, labelbottom=False)
        ax.set_xticks([])
        ax.set_yticks([])
    ax_labels.set_facecolor("#F6F8FB")

    # Header rows
    border = "#DADADA"
    rows = header_cells(window, settings)
    row_h = settings.header_height / max(len(rows), 1)
    for r_idx, (unit, cells) in enumerate(rows):
        ry0 = r_idx * row_h
        for i, (cx0, cx1, label) in enumerate(cells):
            ax_main.add_patch(
                Rectangle(
                    (cx0, ry0),
                    cx1 - cx0,
                    row_h,
                    facecolor="#FFFFFF" if i % 2 == 0 else "#F7F7F7",
                    edgecolor=border,
                    linewidth=0.8,
                    zorder=2,
                )
            )
            if cx1 - cx0 >= 14:
                ax_main.text((cx0 + cx1) / 2.0, ry0 + row_h * 0.52, label, ha="center", va="center", fontsize=7, color="#333333", zorder=3)

    # Lane bands
    sep_color = "#D0D0D0"
    for i, (top, height) in enumerate(zip(result.group_tops, result.group_heights)):
        if i % 2 == 0:
            ax_main.add_patch(Rectangle((x0, top), x1 - x0, height, facecolor="#FAFAFA", edgecolor="none", zorder=0))
        ax_main.hlines(top + height, x0, x1, colors=sep_color, linewidth=1.0, zorder=1)
        gid, title = labels[i] if i < len(labels) else (i, str(i))
        ax_labels.add_patch(Rectangle((0.02, top), 0.025, height, facecolor=color_map.get(gid, DEFAULT_PALETTE[0]), edgecolor="none", zorder=2))
        ax_labels.text(0.06, top + height / 2.0, title, ha="left", va="center", fontsize=8, fontweight="bold", color="#222222")

    # Items
    notes: Dict[str, List[str]] = {"hidden": [], "clipped": []}
    for it in result.items:
        d = it.dimensions
        if d.hide:
            notes["hidden"].append(str(it.id))
            continue
        if d.top is None:
            continue
        if d.clipped_left or d.clipped_right:
            notes["clipped"].append(str(it.id))

        face = color_map.get(it.group_id, DEFAULT_PALETTE[0])
        if not d.stack:
            face = _lighten_hex(face, 0.55)
        ax_main.add_patch(
            FancyBboxPatch(
                (d.left, d.top),
                d.width,
                d.height,
                boxstyle="round,pad=0,rounding_size=2",
                linewidth=1.8 if d.is_dragging else 0.8,
                edgecolor="#2563EB" if d.is_dragging else "#3A3A3A",
                linestyle=(0, (4, 2)) if d.is_dragging else "solid",
                facecolor=face,
                alpha=0.95,
                zorder=5,
            )
        )
        title = (item_titles or {}).get(it.id)
        if title and d.width >= 24:
            ax_main.text(d.left + 3, d.top + d.height / 2.0, title, ha="left", va="center", fontsize=6, color="#1A1A1A", clip_on=True, zorder=6)

    for button in result.show_more_buttons:
        if button.left is None or button.top is None:
            continue
        ax_main.text(button.left, button.top, f"+{len(button.items)} more", ha="left", va="top", fontsize=6, color="#2563EB", zorder=7)

    return fig, notes
