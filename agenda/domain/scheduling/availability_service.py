"""
Availability calculation.

Turns a provider's weekly business hours, time off and existing
appointments into the bookable slots for one service on one date.
The clock is injected so that "now" is explicit for every computation.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from ...cache import get_schedule_config_cached, set_schedule_config_cached
from ...config import DEFAULT_PROVIDER_TIMEZONE, DEFAULT_SLOT_GRANULARITY
from ...models import Provider, Service
from .conflict_resolver import resolve_conflicts
from .errors import NotFoundError, ValidationError
from .repository import SchedulingRepository
from .statuses import ACTIVE_STATUSES
from .time_calculator import MINUTES_PER_DAY, TimeWindow, minutes_of, overlaps

logger = logging.getLogger(__name__)

Clock = Callable[[ZoneInfo], datetime]


def system_clock(tz: ZoneInfo) -> datetime:
    return datetime.now(tz)


def day_of_week(day: date) -> int:
    """0 = Sunday ... 6 = Saturday"""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class DayHours:
    day_of_week: int
    start_time: str
    end_time: str
    is_working: bool = True
    break_start: Optional[str] = None
    break_end: Optional[str] = None

    @classmethod
    def from_model(cls, hours) -> "DayHours":
        return cls(
            day_of_week=hours.day_of_week,
            start_time=hours.start_time,
            end_time=hours.end_time,
            is_working=bool(hours.is_working),
            break_start=hours.break_start,
            break_end=hours.break_end,
        )

    @property
    def window(self) -> TimeWindow:
        return TimeWindow.from_clock(self.start_time, self.end_time)

    @property
    def break_window(self) -> Optional[TimeWindow]:
        if self.break_start and self.break_end:
            return TimeWindow.from_clock(self.break_start, self.break_end)
        return None


@dataclass(frozen=True)
class TimeOffPeriod:
    start_date: date
    end_date: date
    is_recurring: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @classmethod
    def from_model(cls, entry) -> "TimeOffPeriod":
        return cls(
            start_date=entry.start_date,
            end_date=entry.end_date,
            is_recurring=bool(entry.is_recurring),
            start_time=entry.start_time,
            end_time=entry.end_time,
        )

    @property
    def is_all_day(self) -> bool:
        return not (self.start_time and self.end_time)

    def covers(self, day: date) -> bool:
        if not self.is_recurring:
            return self.start_date <= day <= self.end_date

        # Annual repeat: compare (month, day), allowing a range that wraps the new year
        start = (self.start_date.month, self.start_date.day)
        end = (self.end_date.month, self.end_date.day)
        current = (day.month, day.day)
        if start <= end:
            return start <= current <= end
        return current >= start or current <= end

    def window(self) -> TimeWindow:
        """Blocked interval of a partial-day entry."""
        return TimeWindow.from_clock(self.start_time, self.end_time)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat()
        data["end_date"] = self.end_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TimeOffPeriod":
        return cls(
            start_date=date.fromisoformat(data["start_date"]),
            end_date=date.fromisoformat(data["end_date"]),
            is_recurring=data.get("is_recurring", False),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
        )


def blocked_windows(periods: Iterable[TimeOffPeriod], day: date) -> Optional[list[TimeWindow]]:
    """Time-off windows on `day`; None when the whole day is off."""
    windows = []
    for period in periods:
        if not period.covers(day):
            continue
        if period.is_all_day:
            return None
        windows.append(period.window())
    return windows


def generate_slots(
    hours: Optional[DayHours],
    duration_minutes: int,
    granularity: int,
    time_off: Iterable[TimeOffPeriod],
    day: date,
    now_local: Optional[datetime] = None,
) -> list[TimeWindow]:
    """Candidate slots for one day before appointments are considered.

    Starts step by `granularity` from the opening time while the whole
    service still fits before closing. Closed days, a duration longer than
    the open window and dates in the past all yield an empty list.
    """
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError("Service duration must be a positive number of minutes")
    if not 0 < granularity <= MINUTES_PER_DAY:
        raise ValidationError(f"Granularity must be between 1 and {MINUTES_PER_DAY} minutes")

    if hours is None or not hours.is_working:
        return []

    earliest = None
    if now_local is not None:
        today = now_local.date()
        if day < today:
            return []
        if day == today:
            earliest = minutes_of(now_local)

    blocked = blocked_windows(time_off, day)
    if blocked is None:
        return []
    if hours.break_window:
        blocked.append(hours.break_window)

    open_window = hours.window
    slots = []
    for start in range(open_window.start, open_window.end - duration_minutes + 1, granularity):
        if earliest is not None and start <= earliest:
            continue
        slot = TimeWindow(start, start + duration_minutes)
        if any(overlaps(slot, b) for b in blocked):
            continue
        slots.append(slot)
    return slots


class AvailabilityService:
    """Bookable slots for a provider, service and date"""

    def __init__(self, db: Session, clock: Clock = system_clock, use_cache: bool = True):
        self.db = db
        self.clock = clock
        self.use_cache = use_cache
        self.repo = SchedulingRepository()

    def provider_now(self, provider: Provider) -> datetime:
        try:
            tz = ZoneInfo(provider.timezone or DEFAULT_PROVIDER_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"⚠️ Unknown timezone '{provider.timezone}' for provider {provider.id}, using UTC")
            tz = ZoneInfo("UTC")
        return self.clock(tz)

    def load_provider_and_service(self, provider_id: int, service_id: int) -> tuple[Provider, Service]:
        provider = self.repo.get_provider(self.db, provider_id)
        if not provider:
            raise NotFoundError("Provider not found")
        service = self.repo.get_service(self.db, provider_id, service_id)
        if not service or not service.is_active:
            raise NotFoundError("Service not found")
        return provider, service

    def _schedule_config(self, provider_id: int, day: date) -> tuple[Optional[DayHours], list[TimeOffPeriod]]:
        """Business hours for the weekday plus time off, from cache when allowed."""
        dow = day_of_week(day)

        if self.use_cache:
            cached = get_schedule_config_cached(provider_id)
            if cached is not None:
                hours = next((DayHours(**h) for h in cached["hours"] if h["day_of_week"] == dow), None)
                return hours, [TimeOffPeriod.from_dict(t) for t in cached["time_off"]]

            weekly = [DayHours.from_model(h) for h in self.repo.get_weekly_hours(self.db, provider_id)]
            periods = [TimeOffPeriod.from_model(t) for t in self.repo.get_time_off(self.db, provider_id)]
            set_schedule_config_cached(
                provider_id,
                {"hours": [asdict(h) for h in weekly], "time_off": [p.to_dict() for p in periods]},
            )
            return next((h for h in weekly if h.day_of_week == dow), None), periods

        row = self.repo.get_business_hours(self.db, provider_id, dow)
        hours = DayHours.from_model(row) if row else None
        periods = [TimeOffPeriod.from_model(t) for t in self.repo.get_time_off(self.db, provider_id, day, day)]
        return hours, periods

    def candidate_slots(
        self, provider: Provider, duration_minutes: int, day: date, granularity: int
    ) -> list[TimeWindow]:
        hours, periods = self._schedule_config(provider.id, day)
        return generate_slots(hours, duration_minutes, granularity, periods, day, self.provider_now(provider))

    def open_slots(
        self, provider: Provider, service: Service, day: date, granularity: int
    ) -> list[TimeWindow]:
        """Candidates minus slots taken by scheduled, confirmed or completed appointments."""
        candidates = self.candidate_slots(provider, service.duration_minutes, day, granularity)
        if not candidates:
            return []
        appointments = self.repo.get_appointments(self.db, provider.id, day, ACTIVE_STATUSES)
        return resolve_conflicts(candidates, appointments)

    def get_available_slots(
        self,
        provider_id: int,
        service_id: int,
        day: date,
        granularity: int = DEFAULT_SLOT_GRANULARITY,
    ) -> list[TimeWindow]:
        provider, service = self.load_provider_and_service(provider_id, service_id)
        slots = self.open_slots(provider, service, day, granularity)
        logger.debug(
            f"📅 {len(slots)} slots for provider {provider_id}, service {service_id} on {day} "
            f"(granularity {granularity})"
        )
        return slots

