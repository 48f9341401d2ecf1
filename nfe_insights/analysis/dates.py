from __future__ import annotations

import numbers
import re
import warnings
from datetime import date, datetime
from typing import Any

import pandas as pd

"""Best-effort date normalization for spreadsheet cells.

Cells arrive as `datetime` objects (when the reader detects a date cell),
Excel serial numbers, or free-form strings. Everything is reduced to a plain
`datetime.date`; anything unparseable becomes None.
"""

__all__ = [
    "parse",
    "to_comparable_number",
    "bucket_key",
    "month_sort_key",
    "month_start",
]

# Excel's day zero (accounts for the 1900 leap-year bug)
EXCEL_EPOCH = "1899-12-30"
# Serial numbers outside this window are not treated as dates
_SERIAL_MIN = 1
_SERIAL_MAX = 2958465

_BUCKET_KEY = re.compile(r"^\s*(\d{1,2})-(\d{4})\s*$")


def _from_serial(value: float) -> date | None:
    if not (_SERIAL_MIN <= value <= _SERIAL_MAX):
        return None
    ts = pd.to_datetime(value, unit="D", origin=EXCEL_EPOCH, errors="coerce")
    return None if pd.isna(ts) else ts.date()


def _from_text(text: str) -> date | None:
    cleaned = text.strip().lstrip("'")
    if not cleaned:
        return None
    with warnings.catch_warnings():
        # pandas warns when it has to guess a format per element
        warnings.simplefilter("ignore", UserWarning)
        ts = pd.to_datetime(cleaned, errors="coerce")
        if pd.isna(ts):
            ts = pd.to_datetime(cleaned, dayfirst=True, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def parse(raw: Any) -> date | None:
    """Parse a cell value into a calendar date, or None.

    Never raises: malformed input of any type yields None.
    """
    if raw is None or raw is pd.NaT or isinstance(raw, bool):
        return None
    try:
        if isinstance(raw, pd.Timestamp):
            return None if pd.isna(raw) else raw.date()
        if isinstance(raw, datetime):
            return raw.date()
        if isinstance(raw, date):
            return raw
        if isinstance(raw, numbers.Real):
            if raw != raw:  # NaN
                return None
            return _from_serial(float(raw))
        if isinstance(raw, str):
            return _from_text(raw)
    except (ValueError, TypeError, OverflowError):
        return None
    return None


def to_comparable_number(value: date | None) -> int | None:
    """Return the date as a YYYYMMDD integer for ordering comparisons."""
    if value is None:
        return None
    return value.year * 10000 + value.month * 100 + value.day


def bucket_key(value: date) -> str:
    """Return the zero-padded MM-YYYY month bucket for a date."""
    return f"{value.month:02d}-{value.year}"


def month_sort_key(key: str) -> tuple[int, int]:
    """Sort key (year, month) for a MM-YYYY bucket key; malformed keys sort first."""
    m = _BUCKET_KEY.match(key or "")
    if not m:
        return (0, 0)
    return (int(m.group(2)), int(m.group(1)))


def month_start(key: str) -> date | None:
    """First day of the month named by a MM-YYYY key, or None."""
    year, month = month_sort_key(key)
    if not year or not 1 <= month <= 12:
        return None
    return date(year, month, 1)
