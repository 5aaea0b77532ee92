from __future__ import annotations

import calendar
import math
from datetime import date, datetime
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta


def excel_round(x, decimals: int = 2):
    """Excel ROUND: half away from zero (vectorized)."""
    m = 10 ** decimals
    x = np.asarray(x, dtype=float)
    return np.sign(x) * (np.floor(np.abs(x) * m + 0.5) / m)


def round2(value: float) -> float:
    """Round a money value to cents, half away from zero."""
    return float(excel_round(value, 2))


def finite_or_zero(value) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0


def non_negative(value) -> float:
    return max(finite_or_zero(value), 0.0)


def clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


def to_day_of_month(value, fallback: int) -> int:
    """Return ``value`` when it is an integral day in [1, 31], else ``fallback``."""
    if value is None or isinstance(value, bool):
        return fallback
    try:
        v = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(v) or v != int(v) or not 1 <= v <= 31:
        return fallback
    return int(v)


def to_day(value) -> date:
    """
    Strip anything date-like down to a calendar day.

    Accepts ``date``, ``datetime``/``pd.Timestamp`` (time of day dropped), ISO
    strings, and integer epoch milliseconds as written by the storage layer.
    """
    if isinstance(value, datetime):  # includes pd.Timestamp
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
        return pd.Timestamp(int(value), unit="ms").date()
    if isinstance(value, str):
        ts = pd.to_datetime(value, errors="coerce")
        if pd.isna(ts):
            raise ValueError(f"Unparseable date: {value!r}")
        return ts.date()
    raise TypeError(f"Cannot interpret {type(value).__name__} as a date")


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamped_date(year: int, month: int, day: int) -> date:
    """Date for ``day`` in the given month, pulled back to the month's last day."""
    return date(year, month, min(max(int(day), 1), days_in_month(year, month)))


def month_start(d: date) -> date:
    return date(d.year, d.month, 1)


def add_months(d: date, months: int) -> date:
    """Month arithmetic keeping the day where possible (Jan 31 + 1 → Feb 28/29)."""
    return d + relativedelta(months=months)


def months_between(start: date, end: date) -> int:
    """Calendar-month distance, ignoring days."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def cycle_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def parse_cycle_key(key: str) -> Optional[Tuple[int, int]]:
    """Parse ``"YYYY-MM"``; None when malformed."""
    if not isinstance(key, str) or len(key) != 7 or key[4] != "-":
        return None
    year, month = key[:4], key[5:]
    if not (year.isdigit() and month.isdigit()):
        return None
    y, m = int(year), int(month)
    if not 1 <= m <= 12:
        return None
    return y, m


def lookback_cycle_keys(anchor_key: str, months: int) -> list:
    """``months`` cycle keys ending at ``anchor_key``, newest first."""
    parsed = parse_cycle_key(anchor_key)
    if parsed is None:
        raise ValueError(f"Invalid cycle key: {anchor_key!r}")
    cursor = date(parsed[0], parsed[1], 1)
    keys = []
    for _ in range(months):
        keys.append(cycle_key(cursor))
        cursor = add_months(cursor, -1)
    return keys
