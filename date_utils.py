from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterator, Tuple

import pandas as pd

# pandas Period frequencies for the show-more timeframes.
_TIMEFRAME_FREQ = {
    "hour": "h",
    "day": "D",
    "month": "M",
    "quarter": "Q",
    "year": "Y",
}
_WEEK_FREQ = {"Mon": "W-SUN", "Sun": "W-SAT"}


def to_millis(value: Any) -> float:
    """
    Normalize a timestamp to epoch milliseconds.

    Numbers are taken as already being milliseconds. Naive datetimes and dates
    are read as UTC.
    """
    if isinstance(value, bool):
        raise TypeError("a bool is not a timestamp")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, (datetime, date, pd.Timestamp, str)):
        ts = pd.Timestamp(value)
        if ts.tzinfo is None:
            ts = ts.tz_localize("UTC")
        return ts.value / 1_000_000
    raise TypeError(f"unsupported timestamp type: {type(value).__name__}")


def from_millis(ms: float, tz: str = "UTC") -> pd.Timestamp:
    return pd.Timestamp(int(ms), unit="ms", tz="UTC").tz_convert(tz)


def to_local_naive(ms: float, tz: str) -> pd.Timestamp:
    return from_millis(ms, tz).tz_localize(None)


def local_to_millis(ts: pd.Timestamp, tz: str) -> float:
    aware = ts.tz_localize(tz, ambiguous=False, nonexistent="shift_forward")
    return aware.value / 1_000_000


def timeframe_freq(timeframe: str, week_start_day: str = "Mon") -> str:
    if timeframe == "week":
        return _WEEK_FREQ[week_start_day]
    try:
        return _TIMEFRAME_FREQ[timeframe]
    except KeyError:
        raise ValueError(f"unknown timeframe: {timeframe}") from None


def iter_periods(
    start_ms: float,
    end_ms: float,
    timeframe: str,
    *,
    tz: str = "UTC",
    week_start_day: str = "Mon",
) -> Iterator[Tuple[str, float]]:
    """
    Yield (label, start_ms) for every timeframe unit touched by [start, end].

    An inverted interval only touches the unit of its start.
    """
    freq = timeframe_freq(timeframe, week_start_day)
    first = to_local_naive(start_ms, tz).to_period(freq)
    last = to_local_naive(max(start_ms, end_ms), tz).to_period(freq)
    for p in pd.period_range(start=first, end=last, freq=freq):
        s = p.start_time
        yield s.isoformat(), local_to_millis(s, tz)
