from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.datavalidation import DataValidation

from date_utils import from_millis, to_millis

GROUP_COLUMNS = ["id", "title"]

ITEM_COLUMNS = [
    "id",
    "group",
    "title",
    "start_time",
    "end_time",
    "is_overlay",
]

DATETIME_FORMAT = "yyyy-mm-dd hh:mm"


@dataclass(frozen=True)
class TimelinePayload:
    groups: List[Dict[str, Any]]
    items: List[Dict[str, Any]]


def _is_blank(value: Any) -> bool:
    """True if value is None/NaN/NaT/pd.NA or an empty/whitespace string."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _style_header(ws) -> None:
    header_fill = PatternFill(start_color="F0F0F0", end_color="F0F0F0", fill_type="solid")
    for c in ws[1]:
        c.font = Font(bold=True)
        c.fill = header_fill
        c.alignment = Alignment(horizontal="left")
    ws.freeze_panes = "A2"


def build_template_workbook() -> Workbook:
    """Blank workbook with the Groups and Items sheets."""
    wb = Workbook()
    wb.remove(wb.active)

    ws_g = wb.create_sheet("Groups")
    ws_g.append(GROUP_COLUMNS)
    _style_header(ws_g)
    ws_g.column_dimensions["A"].width = 14
    ws_g.column_dimensions["B"].width = 30

    ws_i = wb.create_sheet("Items")
    ws_i.append(ITEM_COLUMNS)
    _style_header(ws_i)
    col_widths = {
        "A": 14,  # id
        "B": 14,  # group
        "C": 30,  # title
        "D": 18,  # start
        "E": 18,  # end
        "F": 12,  # is_overlay
    }
    for col, w in col_widths.items():
        ws_i.column_dimensions[col].width = w

    dv_bool = DataValidation(type="list", formula1='"TRUE,FALSE"', allow_blank=True)
    ws_i.add_data_validation(dv_bool)
    dv_bool.add("F2:F1000")

    for cell_range in ("D2:D1000", "E2:E1000"):
        for row in ws_i[cell_range]:
            for cell in row:
                cell.number_format = DATETIME_FORMAT

    return wb


def template_bytes() -> bytes:
    wb = build_template_workbook()
    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def _excel_datetime(value: Any, tz: str):
    # openpyxl cannot store tz-aware datetimes; write local wall time.
    return from_millis(to_millis(value), tz).tz_localize(None).to_pydatetime()


def write_timeline_excel_bytes(
    groups: Sequence[Mapping[str, Any]],
    items: Sequence[Mapping[str, Any]],
    *,
    tz: str = "UTC",
) -> bytes:
    """
    Serialize groups and items (plain mappings keyed by the column names)
    into an .xlsx workbook. Times may be ms, datetimes or ISO strings.
    """
    wb = build_template_workbook()

    ws_g = wb["Groups"]
    for g in groups:
        gid = g.get("id")
        if _is_blank(gid):
            continue
        title = g.get("title")
        ws_g.append([gid, None if _is_blank(title) else str(title)])

    ws_i = wb["Items"]
    # Clear template rows (keep header)
    if ws_i.max_row > 1:
        ws_i.delete_rows(2, ws_i.max_row - 1)

    for it in items:
        if all(_is_blank(it.get(c)) for c in ("id", "group", "start_time", "end_time")):
            continue
        out_row = []
        for c in ITEM_COLUMNS:
            v = it.get(c)
            if _is_blank(v):
                out_row.append(None)
            elif c in {"start_time", "end_time"}:
                out_row.append(_excel_datetime(v, tz))
            elif c == "is_overlay":
                out_row.append(bool(v))
            else:
                out_row.append(v.strip() if isinstance(v, str) else v)
        ws_i.append(out_row)

    for r in range(2, ws_i.max_row + 1):
        ws_i.cell(row=r, column=4).number_format = DATETIME_FORMAT
        ws_i.cell(row=r, column=5).number_format = DATETIME_FORMAT

    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def _coerce_bool(value: Any) -> bool:
    if _is_blank(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1", "y"}
    return bool(value)


def _local_millis(value: Any, tz: str) -> float:
    # Excel stores datetimes as day fractions; drop sub-millisecond noise.
    ts = pd.Timestamp(value).round("ms")
    if ts.tzinfo is None:
        ts = ts.tz_localize(tz, ambiguous=False, nonexistent="shift_forward")
    return ts.value / 1_000_000


def read_timeline_excel(excel_bytes: bytes, *, tz: str = "UTC") -> TimelinePayload:
    """
    Reads the two-sheet workbook into group and item records.

    Item times come back as epoch ms; cells without a timezone are read as
    wall time in `tz`. Rows missing an id, group or either time are rejected
    with a ValueError naming the row.
    """
    buf = BytesIO(excel_bytes)
    try:
        wb = load_workbook(buf, read_only=True)
        sheetnames = set(wb.sheetnames)
        wb.close()
    except Exception as e:
        raise ValueError(f"Unable to read .xlsx file. Make sure it's an Excel workbook (.xlsx). Details: {e}") from e

    missing = {"Groups", "Items"} - sheetnames
    if missing:
        raise ValueError(f"Missing required sheet(s): {', '.join(sorted(missing))}. Expected: Groups, Items.")

    buf.seek(0)
    try:
        groups_df = pd.read_excel(buf, sheet_name="Groups", engine="openpyxl")
        buf.seek(0)
        items_df = pd.read_excel(buf, sheet_name="Items", engine="openpyxl")
    except Exception as e:
        raise ValueError(f"Unable to parse Groups/Items sheets. Details: {e}") from e

    for col in GROUP_COLUMNS:
        if col not in groups_df.columns:
            groups_df[col] = pd.NA
    for col in ITEM_COLUMNS:
        if col not in items_df.columns:
            items_df[col] = pd.NA

    groups: List[Dict[str, Any]] = []
    for _, row in groups_df[GROUP_COLUMNS].iterrows():
        if _is_blank(row["id"]):
            continue
        groups.append({"id": row["id"], "title": None if _is_blank(row["title"]) else str(row["title"])})

    items: List[Dict[str, Any]] = []
    for idx, row in items_df[ITEM_COLUMNS].iterrows():
        if all(_is_blank(row[c]) for c in ITEM_COLUMNS):
            continue
        excel_row = int(idx) + 2
        for c in ("id", "group", "start_time", "end_time"):
            if _is_blank(row[c]):
                raise ValueError(f"Items row {excel_row}: '{c}' is required.")
        try:
            start = _local_millis(row["start_time"], tz)
            end = _local_millis(row["end_time"], tz)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Items row {excel_row}: invalid start_time/end_time. Details: {e}") from e
        items.append(
            {
                "id": row["id"],
                "group": row["group"],
                "title": None if _is_blank(row["title"]) else str(row["title"]),
                "start_time": start,
                "end_time": end,
                "is_overlay": _coerce_bool(row["is_overlay"]),
            }
        )

    return TimelinePayload(groups=groups, items=items)
