"""
Time Helpers Module

Record timestamps are ISO-8601 instants stored as UTC strings
(``YYYY-MM-DDTHH:MM:SS.mmmZ``). Date-only inputs denote UTC calendar days.
"""

from datetime import datetime, date, time, timezone, timedelta
from typing import Union

DateLike = Union[str, date, datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_instant(value: datetime) -> str:
    """Millisecond-precision UTC ISO string with a Z suffix"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_instant(value: DateLike) -> datetime:
    """Parse an ISO timestamp (or date) into an aware UTC datetime"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_day(value: DateLike) -> date:
    """Calendar day named by a date string, date or timestamp"""
    if isinstance(value, datetime):
        return parse_instant(value).date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return parse_instant(text).date()


def start_of_day(value: DateLike) -> datetime:
    return datetime.combine(parse_day(value), time(0, 0, 0), tzinfo=timezone.utc)


def end_of_day(value: DateLike) -> datetime:
    """Last second of the given day; any time portion of the input is ignored"""
    return datetime.combine(parse_day(value), time(23, 59, 59), tzinfo=timezone.utc)


def day_key(value: DateLike) -> str:
    """YYYY-MM-DD of the instant's UTC calendar date"""
    return parse_instant(value).date().isoformat()


def shift_days(day: date, days: int) -> date:
    return day + timedelta(days=days)
