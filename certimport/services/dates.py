from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

"""Date normalization for spreadsheet cells.

Cells reach the importer as spreadsheet serial numbers, free text or native
date values (openpyxl hands formatted date cells over as datetimes). All of
them are normalized to `YYYY-MM-DD`; anything unusable becomes None and the
caller decides whether None means "absent" or "malformed".
"""

__all__ = [
    "normalize_date",
    "serial_to_date",
]

# Serial 1 is 1900-01-01
SERIAL_EPOCH = date(1899, 12, 31)
# Serial 60 is the 1900-02-29 that never existed; later serials are one day ahead
LEAP_BUG_SERIAL = 59

# an optional time of day is accepted and dropped
_TIME = r"(?:[ T][0-9]{1,2}:[0-9]{2}(?::[0-9]{2}(?:\.[0-9]+)?)?)?"
_DAY_FIRST = re.compile(r"([0-9]{1,2})[/-]([0-9]{1,2})[/-]([0-9]{4})" + _TIME)
_ISO = re.compile(r"([0-9]{4})-([0-9]{1,2})-([0-9]{1,2})" + _TIME)


def serial_to_date(serial: float) -> date | None:
    """Convert a spreadsheet serial day number; the time-of-day fraction is dropped."""
    if not math.isfinite(serial) or serial < 1:
        return None
    days = int(serial)
    if days > LEAP_BUG_SERIAL:
        days -= 1
    try:
        return SERIAL_EPOCH + timedelta(days=days)
    except OverflowError:
        return None


def _parse_text(text: str) -> date | None:
    m = _DAY_FIRST.fullmatch(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None
    m = _ISO.fullmatch(text)
    if m:
        year, month, day = (int(g) for g in m.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None
    try:
        parsed = pd.to_datetime(text, errors="coerce", dayfirst=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


def normalize_date(value: Any) -> str | None:
    """Return `YYYY-MM-DD` for a serial number, date text or date object, else None.

    Empty text is treated like a missing value. Never raises.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (datetime, date)):
        # pd.NaT is a datetime instance too
        if value is pd.NaT:
            return None
        if isinstance(value, datetime):
            return value.date().isoformat()
        return value.isoformat()

    if isinstance(value, numbers.Real):
        try:
            serial = float(value)
        except OverflowError:
            return None
        result = serial_to_date(serial)
        return result.isoformat() if result else None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        result = _parse_text(text)
        return result.isoformat() if result else None

    return None
