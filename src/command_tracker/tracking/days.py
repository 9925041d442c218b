"""``YYYYMMDD`` day numbers and their display formats."""

import enum
from datetime import date
from typing import Optional


class DateFormat(str, enum.Enum):
    """Display formats for a day number."""

    YYYYMMDD = "yyyy/mm/dd"
    MMDDYYYY = "mm/dd/yyyy"
    DDMMYYYY = "dd/mm/yyyy"


def to_day_number(value: date) -> int:
    """Encode a date as ``YYYYMMDD``."""
    return value.year * 10000 + value.month * 100 + value.day


def format_day(day: Optional[int], date_format: DateFormat = DateFormat.YYYYMMDD) -> str:
    """Render a day number for display, or ``""`` when there is none."""
    if not day:
        return ""
    text = f"{day:08d}"
    yyyy, mm, dd = text[:4], text[4:6], text[6:]
    if date_format is DateFormat.MMDDYYYY:
        return f"{mm}/{dd}/{yyyy}"
    if date_format is DateFormat.DDMMYYYY:
        return f"{dd}/{mm}/{yyyy}"
    return f"{yyyy}/{mm}/{dd}"
