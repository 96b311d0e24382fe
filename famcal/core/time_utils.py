"""Wall-clock helpers bound to the configured household timezone.

Activities are stored as naive local wall-clock strings ("2024-01-01T14:30",
"08:00"). Everything here turns them into aware datetimes in
``settings.timezone`` so comparisons against "now" are unambiguous.
"""

import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from famcal.core.config import settings


_TIME_OF_DAY_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def household_tz() -> ZoneInfo:
    """Return the configured household timezone."""
    return ZoneInfo(settings.timezone)


def local_now() -> datetime:
    """Current time as an aware datetime in the household timezone."""
    return datetime.now(household_tz())


def to_local(value: datetime) -> datetime:
    """Attach or convert a datetime to the household timezone."""
    if value.tzinfo is None:
        return value.replace(tzinfo=household_tz())
    return value.astimezone(household_tz())


def today_str(now: datetime | None = None) -> str:
    """Local calendar date of ``now`` as ``YYYY-MM-DD``."""
    return to_local(now or local_now()).date().isoformat()


def parse_time_of_day(value: str | None) -> time | None:
    """Parse ``HH:MM``; returns None for empty or malformed input."""
    if not value:
        return None
    match = _TIME_OF_DAY_RE.match(value.strip())
    if not match:
        return None
    return time(int(match.group(1)), int(match.group(2)))


def parse_local_datetime(value: str | None) -> datetime | None:
    """Parse a stored ISO date-time into an aware local datetime, None if unusable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    return to_local(parsed)


def combine_local(day: date, tod: time) -> datetime:
    """Combine a calendar date and a time-of-day in the household timezone."""
    return datetime.combine(day, tod, tzinfo=household_tz())


def format_hhmm(value: datetime) -> str:
    """24-hour ``HH:MM`` in the household timezone."""
    return to_local(value).strftime("%H:%M")
