"""Week boundary helpers. Weeks start on Monday (ISO)."""
from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from kitchen.utilities.config import WORKING_DAYS
from kitchen.utilities.constants import DATE_FORMAT

DateLike = Union[date, datetime, str]


def parse_iso_date(value: DateLike) -> Optional[date]:
    """Parse 'YYYY-MM-DD' (or a full ISO timestamp). Returns None when invalid."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.strptime(text[:10], DATE_FORMAT).date()
    except ValueError:
        return None


def to_date(value: DateLike) -> date:
    parsed = parse_iso_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed


def get_week_start(value: DateLike) -> date:
    """Monday of the ISO week containing ``value``."""
    d = to_date(value)
    return d - timedelta(days=d.isoweekday() - 1)


def get_week_dates(week_start: DateLike, days: int = WORKING_DAYS) -> List[date]:
    monday = get_week_start(week_start)
    return [monday + timedelta(days=i) for i in range(days)]


def format_date_iso(value: DateLike) -> str:
    return to_date(value).strftime(DATE_FORMAT)


__all__ = ["parse_iso_date", "to_date", "get_week_start", "get_week_dates", "format_date_iso"]
