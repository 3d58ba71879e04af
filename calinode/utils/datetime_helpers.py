"""
Calendar-day helpers

Streaks, quest regeneration and archives all reason in whole calendar days
in the configured user timezone. Stored timestamps are timezone-aware;
naive datetimes are assumed to already be in the user timezone.
"""

import logging
from datetime import datetime, date
from typing import Optional, Union
from zoneinfo import ZoneInfo

from calinode.config import USER_TIMEZONE

logger = logging.getLogger(__name__)

# yyyy-MM-dd, used for streak day-sets and archive document ids
DATE_KEY_FORMAT = "%Y-%m-%d"

DEFAULT_TIMEZONE = "UTC"


def get_user_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """Resolve a timezone name, falling back to UTC on invalid input"""
    tz_str = tz_name or USER_TIMEZONE or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(tz_str)
    except Exception as e:
        logger.error(f"Invalid timezone '{tz_str}': {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_user_timezone(tz_name: Optional[str] = None) -> datetime:
    """Current time in the user timezone (timezone-aware)"""
    return datetime.now(get_user_timezone(tz_name))


def to_local_date(value: Union[datetime, date], tz_name: Optional[str] = None) -> date:
    """
    Calendar day of a datetime in the user timezone

    Plain dates are returned unchanged.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(get_user_timezone(tz_name)).date()
    return value


def format_date_key(value: Union[datetime, date], tz_name: Optional[str] = None) -> str:
    """Format as yyyy-MM-dd"""
    return to_local_date(value, tz_name).strftime(DATE_KEY_FORMAT)


def parse_date_key(value: str) -> Optional[date]:
    """Parse a yyyy-MM-dd key, returning None for malformed input"""
    try:
        return datetime.strptime(value, DATE_KEY_FORMAT).date()
    except (TypeError, ValueError):
        logger.warning(f"Ignoring malformed date key: {value!r}")
        return None


def is_same_day(a: Union[datetime, date], b: Union[datetime, date], tz_name: Optional[str] = None) -> bool:
    """True when both values fall on the same calendar day"""
    return to_local_date(a, tz_name) == to_local_date(b, tz_name)


def start_of_month(value: date) -> date:
    """First day of value's month"""
    return value.replace(day=1)
