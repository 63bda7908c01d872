"""Booking service - atomic slot reservation and appointment lifecycle"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ...config import BOOKING_LOCK_TIMEOUT_SECONDS, DEFAULT_SLOT_GRANULARITY
from ...database import WRITE_LOCK_OPTIONS
from ...models import Appointment
from .availability_service import AvailabilityService, Clock, system_clock
from .errors import (
    InvalidTransitionError,
    NotFoundError,
    SchedulingError,
    TransactionTimeoutError,
    ValidationError,
)
from .repository import SchedulingRepository, is_lock_timeout
from .statuses import AppointmentStatus, PaymentStatus
from .time_calculator import TimeWindow, end_time_for, format_clock, parse_clock

logger = logging.getLogger(__name__)


@dataclass
class BookingRequest:
    provider_id: int
    service_id: int
    appointment_date: date
    start_time: str
    client_name: str
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    notes: Optional[str] = None
    granularity: int = DEFAULT_SLOT_GRANULARITY


class BookingService:
    """Service layer for booking business logic"""

    def __init__(
        self,
        db: Session,
        clock: Clock = system_clock,
        lock_timeout: float = BOOKING_LOCK_TIMEOUT_SECONDS,
    ):
        self.db = db
        self.repo = SchedulingRepository()
        self.lock_timeout = lock_timeout
        # Bookings always read committed state, never the schedule cache
        self.availability = AvailabilityService(db, clock=clock, use_cache=False)

    def book(self, request: BookingRequest, source: str = "client") -> Appointment:
        """Reserve the requested slot or raise SlotUnavailableError.

        Availability is recomputed inside the booking transaction after the
        provider/date lock is held, so a slot list fetched earlier by the
        client is never trusted.
        """
        if not request.client_name or not request.client_name.strip():
            raise ValidationError("Client name is required")

        return self._in_write_transaction(self._book, request, source)

    def _in_write_transaction(self, operation, *args):
        """Run `operation` in a fresh transaction that owns the write lock.

        On SQLite the lock is taken at BEGIN and waits up to the connect
        timeout; on PostgreSQL the schedule lock row bounds the wait. Either
        timeout surfaces as TransactionTimeoutError.
        """
        try:
            if self.db.in_transaction():
                # Lookups made earlier on this session ran in a read transaction
                self.db.rollback()
            self.db.connection(execution_options=WRITE_LOCK_OPTIONS)
            return operation(*args)
        except OperationalError as e:
            self.db.rollback()
            if is_lock_timeout(e):
                logger.warning(f"⏳ Timed out waiting for the write lock: {operation.__name__}")
                raise TransactionTimeoutError("The schedule is busy, please try again in a moment") from e
            raise
        except SchedulingError:
            self.db.rollback()
            raise

    def _book(self, request: BookingRequest, source: str) -> Appointment:
        provider, service = self.availability.load_provider_and_service(
            request.provider_id, request.service_id
        )

        start = parse_clock(request.start_time)
        end = end_time_for(start, service.duration_minutes)
        requested = TimeWindow(start, end)

        appointment = Appointment(
            provider_id=provider.id,
            service_id=service.id,
            client_name=request.client_name.strip(),
            client_email=request.client_email,
            client_phone=request.client_phone,
            appointment_date=request.appointment_date,
            start_time=format_clock(start),
            end_time=format_clock(end),
            duration_minutes=service.duration_minutes,
            payment_amount=service.price,
            status=AppointmentStatus.SCHEDULED.value,
            payment_status=PaymentStatus.PENDING.value,
            notes=request.notes,
            source=source,
        )

        def is_available() -> bool:
            slots = self.availability.open_slots(
                provider, service, request.appointment_date, request.granularity
            )
            return requested in slots

        logger.info(
            f"📅 Booking {requested} on {request.appointment_date} for provider {provider.id} "
            f"(service {service.id}, source {source})"
        )
        created = self.repo.insert_appointment_if_available(
            self.db, appointment, is_available, self.lock_timeout
        )
        logger.info(f"✅ Appointment {created.id} booked for provider {provider.id}")
        return created

    def get_appointment(self, provider_id: int, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment(self.db, provider_id, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def list_appointments(
        self,
        provider_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> list[Appointment]:
        return self.repo.list_appointments(self.db, provider_id, start_date, end_date, status)

    def change_status(
        self,
        provider_id: int,
        appointment_id: int,
        target: AppointmentStatus,
        reason: Optional[str] = None,
    ) -> Appointment:
        """Apply one step of the appointment state machine.

        Cancellation releases the interval: the next availability read no
        longer counts the appointment as busy.
        """
        target = AppointmentStatus(target)
        return self._in_write_transaction(self._change_status, provider_id, appointment_id, target, reason)

    def _change_status(
        self, provider_id: int, appointment_id: int, target: AppointmentStatus, reason: Optional[str]
    ) -> Appointment:
        appointment = self.repo.get_appointment(self.db, provider_id, appointment_id, for_update=True)
        if not appointment:
            raise NotFoundError("Appointment not found")

        current = AppointmentStatus(appointment.status)
        if not current.can_transition_to(target):
            raise InvalidTransitionError(current.value, target.value)

        appointment.status = target.value
        if target is AppointmentStatus.CANCELLED:
            appointment.cancelled_at = datetime.utcnow()
            appointment.cancellation_reason = reason
            if appointment.payment_status == PaymentStatus.PENDING.value:
                appointment.payment_status = PaymentStatus.CANCELLED.value

        self.db.commit()
        self.db.refresh(appointment)
        logger.info(
            f"🔄 Appointment {appointment.id} status {current.value} -> {target.value} "
            f"(provider {provider_id})"
        )
        return appointment

    def cancel(self, provider_id: int, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        return self.change_status(provider_id, appointment_id, AppointmentStatus.CANCELLED, reason)

    def mark_paid(self, provider_id: int, appointment_id: int) -> Appointment:
        return self._in_write_transaction(self._mark_paid, provider_id, appointment_id)

    def _mark_paid(self, provider_id: int, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment(self.db, provider_id, appointment_id, for_update=True)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if appointment.status == AppointmentStatus.CANCELLED.value:
            raise ValidationError("A cancelled appointment cannot be marked as paid")

        appointment.payment_status = PaymentStatus.PAID.value
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"💰 Appointment {appointment.id} marked as paid")
        return appointment
