from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional, Tuple

import pandas as pd

from date_utils import local_to_millis, to_local_naive
from timeline_models import DEFAULT_TIME_STEPS

# How many of the previous unit make up one of this unit (month/year approximate).
TIME_DIVIDERS: Dict[str, int] = {
    "second": 1000,
    "minute": 60,
    "hour": 60,
    "day": 24,
    "month": 30,
    "year": 12,
}

MIN_CELL_WIDTH = 17

_NEXT_UNIT = {
    "second": "minute",
    "minute": "hour",
    "hour": "day",
    "day": "month",
    "month": "year",
}

_PERIOD_FREQ = {
    "second": "s",
    "minute": "min",
    "hour": "h",
    "day": "D",
    "month": "M",
    "year": "Y",
}


def _step(time_steps: Mapping[str, int], unit: str) -> int:
    return time_steps.get(unit) or 1


def minimum_unit(zoom: float, width: float, time_steps: Optional[Mapping[str, int]] = None) -> str:
    """
    Finest header unit for a visible span of `zoom` ms drawn `width` px wide.

    Walking from seconds up, each unit's cell count is compared with how many
    MIN_CELL_WIDTH cells fit in `width` (3x wider cells for multi-step units).
    The result is the last unit that still has at least that many cells before
    the first unit that has fewer; "second" if seconds already fall short,
    "year" if nothing does.

    Example: 2 hours over 800 px -> 7200 s, 120 min, 2 h against 47 cells
    needed -> "minute".
    """
    steps = time_steps if time_steps is not None else DEFAULT_TIME_STEPS
    break_count = zoom
    previous: Optional[str] = None

    for unit, divider in TIME_DIVIDERS.items():
        break_count = break_count / divider
        step = _step(steps, unit)
        cell_count = break_count / step
        count_needed = width / (3 * MIN_CELL_WIDTH if step > 1 else MIN_CELL_WIDTH)
        if cell_count < count_needed:
            return previous or unit
        previous = unit

    return "year"


def next_unit(unit: str) -> str:
    return _NEXT_UNIT.get(unit, "")


def _unit_value(ts: pd.Timestamp, unit: str) -> int:
    if unit == "day":
        return ts.day - 1
    if unit == "month":
        return ts.month - 1
    return getattr(ts, unit)


def iterate_times(
    start: float,
    end: float,
    unit: str,
    time_steps: Optional[Mapping[str, int]] = None,
    *,
    tz: str = "UTC",
) -> Iterator[Tuple[float, float]]:
    """
    Yield (cell_start, cell_end) ms pairs covering [start, end) in `unit`
    cells, each `time_steps[unit]` units wide and aligned to a multiple of it.
    """
    steps = time_steps if time_steps is not None else DEFAULT_TIME_STEPS
    step = _step(steps, unit)

    time = to_local_naive(start, tz).to_period(_PERIOD_FREQ[unit]).start_time
    if step > 1:
        back = _unit_value(time, unit) % step
        time = time - pd.DateOffset(**{f"{unit}s": back})

    offset = pd.DateOffset(**{f"{unit}s": step})
    current = local_to_millis(time, tz)
    while current < end:
        time_next = time + offset
        next_ms = local_to_millis(time_next, tz)
        # Wall times inside a DST gap shift onto the same instant.
        if next_ms > current:
            yield current, next_ms
        time, current = time_next, next_ms
