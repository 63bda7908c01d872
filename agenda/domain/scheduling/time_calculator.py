"""
Clock arithmetic for the scheduling engine.

Times of day are plain integers counting minutes since local midnight
(0-1439) in the provider's timezone. Intervals are half-open [start, end),
so an appointment ending at 10:00 and one starting at 10:00 do not overlap.
Every caller that needs "HH:MM" <-> minutes conversion or an end time goes
through this module.
"""

import re
from dataclasses import dataclass
from datetime import datetime, time

from .errors import OutOfRangeError, ValidationError

MINUTES_PER_DAY = 24 * 60
LAST_MINUTE = MINUTES_PER_DAY - 1

_CLOCK_24H = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_CLOCK_12H = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$")


def _check_time_of_day(t) -> None:
    if isinstance(t, bool) or not isinstance(t, int):
        raise ValidationError(f"Time of day must be an integer number of minutes, got {t!r}")
    if not 0 <= t <= LAST_MINUTE:
        raise OutOfRangeError(f"Time of day must be within 0-{LAST_MINUTE} minutes, got {t!r}")


@dataclass(frozen=True, order=True)
class TimeWindow:
    start: int
    end: int

    def __post_init__(self):
        _check_time_of_day(self.start)
        _check_time_of_day(self.end)
        if self.start >= self.end:
            raise ValidationError(
                f"Time window must end after it starts ({format_clock(self.start)} >= {format_clock(self.end)})"
            )

    @property
    def duration(self) -> int:
        return self.end - self.start

    @classmethod
    def from_clock(cls, start, end) -> "TimeWindow":
        return cls(parse_clock(start), parse_clock(end))

    def __str__(self):
        return f"{format_clock(self.start)}-{format_clock(self.end)}"


def add_minutes(t: int, d: int) -> int:
    """Shift a time of day forward. Raises OutOfRangeError at or past midnight."""
    _check_time_of_day(t)
    if d < 0:
        raise ValidationError("Cannot add a negative number of minutes")
    shifted = t + d
    if shifted >= MINUTES_PER_DAY:
        raise OutOfRangeError(
            f"{format_clock(t)} + {d} min crosses midnight; bookings cannot span two days"
        )
    return shifted


def end_time_for(start: int, duration_minutes: int) -> int:
    """End of an appointment starting at `start` and lasting `duration_minutes`."""
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError("Duration must be a positive number of minutes")
    return add_minutes(start, duration_minutes)


def overlaps(a: TimeWindow, b: TimeWindow) -> bool:
    return a.start < b.end and b.start < a.end


def within(inner: TimeWindow, outer: TimeWindow) -> bool:
    return outer.start <= inner.start and inner.end <= outer.end


def parse_clock(value) -> int:
    """Parse "HH:MM", "HH:MM:SS", "H:MM AM" or a datetime.time into minutes."""
    if isinstance(value, time):
        if value.second or value.microsecond:
            raise ValidationError(f"Times must fall on a whole minute, got {value!r}")
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise ValidationError(f"Invalid time value: {value!r}")

    raw = value.strip()
    match = _CLOCK_24H.match(raw)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            raise ValidationError(f"Invalid time: {value!r}")
        # Schedules have minute precision; "HH:MM:00" is accepted, anything finer is not
        if match.group(3) and int(match.group(3)) != 0:
            raise ValidationError(f"Times must fall on a whole minute, got {value!r}")
        return hours * 60 + minutes

    match = _CLOCK_12H.match(raw)
    if match:
        hours, minutes, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
        if not 1 <= hours <= 12 or minutes > 59:
            raise ValidationError(f"Invalid time: {value!r}")
        hours = hours % 12 + (12 if period == "PM" else 0)
        return hours * 60 + minutes

    raise ValidationError(f"Invalid time format: {value!r} (expected HH:MM)")


def format_clock(minutes: int) -> str:
    _check_time_of_day(minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_of(moment: datetime) -> int:
    """Minutes since midnight of a (local) datetime, seconds truncated."""
    return moment.hour * 60 + moment.minute
