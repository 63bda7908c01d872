"""Conflict resolution: drop candidate slots that collide with booked appointments."""

from collections.abc import Iterable, Sequence

from .statuses import AppointmentStatus
from .time_calculator import TimeWindow, overlaps, parse_clock


def appointment_window(appointment) -> TimeWindow:
    """Interval occupied by an appointment, from its stored start and end times."""
    return TimeWindow(parse_clock(appointment.start_time), parse_clock(appointment.end_time))


def busy_windows(appointments: Iterable) -> list[TimeWindow]:
    """Intervals of the appointments that still hold their time.

    Cancelled and no-show appointments are skipped even if the caller passed
    them in, so a stale status filter upstream cannot hide a free slot.
    """
    return [
        appointment_window(a)
        for a in appointments
        if AppointmentStatus(a.status).blocks_time
    ]


def resolve_conflicts(slots: Sequence[TimeWindow], appointments: Iterable) -> list[TimeWindow]:
    """Return `slots` (order kept) minus any slot overlapping an active appointment."""
    busy = busy_windows(appointments)
    if not busy:
        return list(slots)
    return [slot for slot in slots if not any(overlaps(slot, b) for b in busy)]
