from __future__ import annotations

from io import BytesIO
from typing import Any, Mapping, Optional

import matplotlib.pyplot as plt

from renderer import render_layout
from timeline_models import CanvasWindow, LayoutResult, TimelineSettings


def _render_bytes(
    result: LayoutResult,
    window: CanvasWindow,
    settings: TimelineSettings,
    fmt: str,
    dpi: int,
    group_titles: Optional[Mapping[Any, str]],
    item_titles: Optional[Mapping[Any, str]],
) -> bytes:
    fig, _ = render_layout(result, window, settings, group_titles=group_titles, item_titles=item_titles, dpi=dpi)
    bio = BytesIO()
    try:
        fig.savefig(bio, format=fmt, dpi=dpi, facecolor="white")
    finally:
        # Close to avoid figure accumulation across repeated exports
        plt.close(fig)
    return bio.getvalue()


def export_png_bytes(
    result: LayoutResult,
    window: CanvasWindow,
    settings: TimelineSettings,
    *,
    group_titles: Optional[Mapping[Any, str]] = None,
    item_titles: Optional[Mapping[Any, str]] = None,
    dpi: int = 200,
) -> bytes:
    return _render_bytes(result, window, settings, "png", dpi, group_titles, item_titles)


def export_pdf_bytes(
    result: LayoutResult,
    window: CanvasWindow,
    settings: TimelineSettings,
    *,
    group_titles: Optional[Mapping[Any, str]] = None,
    item_titles: Optional[Mapping[Any, str]] = None,
) -> bytes:
    return _render_bytes(result, window, settings, "pdf", 100, group_titles, item_titles)


def preview_png_bytes(
    result: LayoutResult,
    window: CanvasWindow,
    settings: TimelineSettings,
    *,
    group_titles: Optional[Mapping[Any, str]] = None,
    dpi: int = 100,
) -> bytes:
    """Low-res PNG without item titles, for quick inspection."""
    return _render_bytes(result, window, settings, "png", dpi, group_titles, None)
