"""HH:MM parsing and wall-clock helpers shared by the booking engine."""

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from gymbook.booking.errors import ValidationError

MINUTES_PER_DAY = 24 * 60

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight.

    "24:00" is accepted as the end of the day so a closing time can sit on
    midnight. Anything else outside 00:00-23:59 is rejected.
    """
    match = _HHMM.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValidationError("invalid_time", f"Invalid time '{value}', expected HH:MM", time=value)
    hours, minutes = int(match.group(1)), int(match.group(2))
    total = hours * 60 + minutes
    if minutes >= 60 or total > MINUTES_PER_DAY:
        raise ValidationError("invalid_time", f"Invalid time '{value}', expected HH:MM", time=value)
    return total


def minutes_to_time_str(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time_str(value: str) -> str:
    """Return the canonical zero-padded form ("8:00" -> "08:00")."""
    return minutes_to_time_str(time_str_to_minutes(value))


def weekday_sunday_first(day: date) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


def slot_start(day: date, start_time: str) -> datetime:
    return datetime.combine(day, datetime.min.time()) + timedelta(
        minutes=time_str_to_minutes(start_time)
    )


def gym_now(tz_name: str) -> datetime:
    """Current wall-clock time at the gym, as a naive datetime."""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)
