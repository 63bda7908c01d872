"""Closed status families for appointments and their payments."""

from enum import Enum


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def blocks_time(self) -> bool:
        """Whether an appointment in this status occupies its interval."""
        return self in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    def can_transition_to(self, target: "AppointmentStatus") -> bool:
        return target in _TRANSITIONS[self]

    def allowed_transitions(self) -> frozenset:
        return _TRANSITIONS[self]


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


# Every status must have an entry; forward-only except cancellation.
_TRANSITIONS: dict[AppointmentStatus, frozenset] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

ACTIVE_STATUSES = frozenset(
    {AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED}
)
ACTIVE_STATUS_VALUES = tuple(sorted(s.value for s in ACTIVE_STATUSES))
