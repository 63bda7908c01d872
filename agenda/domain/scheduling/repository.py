"""Scheduling repository - Database operations for availability and bookings"""

import logging
from collections.abc import Callable, Iterable
from datetime import date
from typing import Optional

from sqlalchemy import and_, or_, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ...models import Appointment, BusinessHours, Client, Provider, ScheduleLock, Service, TimeOff
from .errors import SchedulingError, SlotUnavailableError, TransactionTimeoutError
from .statuses import AppointmentStatus

logger = logging.getLogger(__name__)


def is_lock_timeout(exc: OperationalError) -> bool:
    # PostgreSQL: "canceling statement due to lock timeout"; SQLite: "database is locked"
    message = str(getattr(exc, "orig", exc)).lower()
    return "lock" in message


class SchedulingRepository:
    """Repository for scheduling database operations"""

    @staticmethod
    def get_provider(db: Session, provider_id: int) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.id == provider_id).first()

    @staticmethod
    def get_provider_by_public_id(db: Session, public_id: str) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.public_id == public_id).first()

    @staticmethod
    def get_service(db: Session, provider_id: int, service_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def get_business_hours(db: Session, provider_id: int, day_of_week: int) -> Optional[BusinessHours]:
        return (
            db.query(BusinessHours)
            .filter(BusinessHours.provider_id == provider_id, BusinessHours.day_of_week == day_of_week)
            .first()
        )

    @staticmethod
    def get_weekly_hours(db: Session, provider_id: int) -> list[BusinessHours]:
        return (
            db.query(BusinessHours)
            .filter(BusinessHours.provider_id == provider_id)
            .order_by(BusinessHours.day_of_week)
            .all()
        )

    @staticmethod
    def get_time_off(
        db: Session, provider_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[TimeOff]:
        """Time off entries that may touch [start_date, end_date].

        Recurring entries are always returned because their stored year is
        irrelevant; callers decide coverage per date.
        """
        query = db.query(TimeOff).filter(TimeOff.provider_id == provider_id)
        if start_date and end_date:
            query = query.filter(
                or_(
                    TimeOff.is_recurring.is_(True),
                    and_(TimeOff.start_date <= end_date, TimeOff.end_date >= start_date),
                )
            )
        return query.order_by(TimeOff.start_date).all()

    @staticmethod
    def get_appointments(
        db: Session, provider_id: int, day: date, statuses: Optional[Iterable[AppointmentStatus]] = None
    ) -> list[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.provider_id == provider_id, Appointment.appointment_date == day
        )
        if statuses is not None:
            query = query.filter(Appointment.status.in_([AppointmentStatus(s).value for s in statuses]))
        return query.order_by(Appointment.start_time).all()

    @staticmethod
    def list_appointments(
        db: Session,
        provider_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> list[Appointment]:
        query = db.query(Appointment).filter(Appointment.provider_id == provider_id)
        if start_date:
            query = query.filter(Appointment.appointment_date >= start_date)
        if end_date:
            query = query.filter(Appointment.appointment_date <= end_date)
        if status:
            query = query.filter(Appointment.status == AppointmentStatus(status).value)
        return query.order_by(Appointment.appointment_date, Appointment.start_time).all()

    @staticmethod
    def get_appointment(
        db: Session, provider_id: int, appointment_id: int, for_update: bool = False
    ) -> Optional[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.id == appointment_id, Appointment.provider_id == provider_id
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def find_or_create_client(
        db: Session, provider_id: int, name: str, email: Optional[str], phone: Optional[str]
    ) -> Optional[Client]:
        """Match the booking's contact to an existing client of the provider by email."""
        if not email:
            return None
        client = (
            db.query(Client)
            .filter(Client.provider_id == provider_id, Client.email == email.lower())
            .first()
        )
        if client:
            if phone and not client.phone:
                client.phone = phone
            return client

        client = Client(provider_id=provider_id, name=name, email=email.lower(), phone=phone)
        db.add(client)
        db.flush()
        logger.info(f"👤 New client {client.id} created for provider {provider_id}")
        return client

    # ------------------------------------------------------------------
    # Booking primitive
    # ------------------------------------------------------------------

    @staticmethod
    def lock_schedule_day(db: Session, provider_id: int, day: date, lock_timeout: float) -> ScheduleLock:
        """Take the provider/date partition lock, creating its row on first use."""
        if db.get_bind().dialect.name == "postgresql":
            # SET does not take bind parameters
            db.execute(text(f"SET LOCAL lock_timeout = '{int(lock_timeout * 1000)}ms'"))

        def select_lock():
            return (
                db.query(ScheduleLock)
                .filter(ScheduleLock.provider_id == provider_id, ScheduleLock.lock_date == day)
                .with_for_update()
                .first()
            )

        lock = select_lock()
        if lock is None:
            try:
                with db.begin_nested():
                    db.add(ScheduleLock(provider_id=provider_id, lock_date=day, version=0))
            except IntegrityError:
                # Another transaction created the row first
                logger.debug(f"Schedule lock row for provider {provider_id} on {day} already exists")
            lock = select_lock()
        return lock

    @staticmethod
    def insert_appointment_if_available(
        db: Session,
        appointment: Appointment,
        is_available: Callable[[], bool],
        lock_timeout: float,
    ) -> Appointment:
        """Atomically verify-and-insert an appointment.

        Locks the provider/date partition, asks `is_available` to recompute
        availability against committed state, inserts, bumps the partition
        version with a compare-and-set and commits. Any failure rolls the
        whole transaction back.
        """
        provider_id = appointment.provider_id
        day = appointment.appointment_date
        try:
            lock = SchedulingRepository.lock_schedule_day(db, provider_id, day, lock_timeout)
            seen_version = lock.version

            if not is_available():
                raise SlotUnavailableError(
                    f"{appointment.start_time}-{appointment.end_time} on {day} is no longer available"
                )

            client = SchedulingRepository.find_or_create_client(
                db, provider_id, appointment.client_name, appointment.client_email, appointment.client_phone
            )
            if client:
                appointment.client_id = client.id

            db.add(appointment)
            db.flush()

            bumped = (
                db.query(ScheduleLock)
                .filter(ScheduleLock.id == lock.id, ScheduleLock.version == seen_version)
                .update({ScheduleLock.version: ScheduleLock.version + 1}, synchronize_session=False)
            )
            if bumped != 1:
                raise SlotUnavailableError(
                    f"Schedule for {day} changed while booking {appointment.start_time}"
                )

            db.commit()
        except SchedulingError:
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"⚠️ Unique slot constraint rejected booking for provider {provider_id} on {day}")
            raise SlotUnavailableError(
                f"{appointment.start_time} on {day} was booked by another request"
            ) from e
        except OperationalError as e:
            db.rollback()
            if is_lock_timeout(e):
                logger.warning(f"⏳ Timed out waiting for schedule lock: provider {provider_id} on {day}")
                raise TransactionTimeoutError(
                    "The schedule is busy, please try again in a moment"
                ) from e
            raise

        db.refresh(appointment)
        return appointment
