"""Scheduling error taxonomy.

Pure time arithmetic, availability and conflict resolution only raise
OutOfRangeError / ValidationError (plus NotFoundError on lookups).
SlotUnavailableError and TransactionTimeoutError originate solely in the
booking transaction.
"""


class SchedulingError(Exception):
    """Base class; `code` and `status_code` drive the HTTP error mapping."""

    code = "scheduling_error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(SchedulingError):
    """Malformed input: non-positive duration, end before start, bad clock text."""

    code = "validation_error"
    status_code = 422


class OutOfRangeError(SchedulingError):
    """Time arithmetic would cross the day boundary."""

    code = "out_of_range"
    status_code = 422


class InvalidTransitionError(ValidationError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change appointment status from '{current}' to '{target}'")
        self.current = current
        self.target = target


class NotFoundError(SchedulingError):
    code = "not_found"
    status_code = 404


class SlotUnavailableError(SchedulingError):
    """Requested interval is no longer free. Refetch availability, do not retry the same slot."""

    code = "slot_unavailable"
    status_code = 409


class TransactionTimeoutError(SchedulingError):
    """Schedule lock not acquired in time. Transient; the whole operation may be retried once."""

    code = "transaction_timeout"
    status_code = 503
