import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .config import DEFAULT_PROVIDER_TIMEZONE
from .database import Base
from .domain.scheduling.statuses import ACTIVE_STATUS_VALUES, AppointmentStatus, PaymentStatus


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


_ACTIVE_STATUS_SQL = "status IN ({})".format(", ".join(f"'{s}'" for s in ACTIVE_STATUS_VALUES))


class Provider(Base):
    """A business account (salon, clinic, trainer) that owns the schedule."""

    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=True)
    email = Column(String(255), nullable=True)
    business_name = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    timezone = Column(String(64), nullable=False, default=DEFAULT_PROVIDER_TIMEZONE)  # IANA name, e.g. America/Sao_Paulo
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    services = relationship("Service", back_populates="provider", cascade="all, delete-orphan")
    business_hours = relationship(
        "BusinessHours", back_populates="provider", cascade="all, delete-orphan"
    )
    time_off = relationship("TimeOff", back_populates="provider", cascade="all, delete-orphan")
    clients = relationship("Client", back_populates="provider", cascade="all, delete-orphan")
    appointments = relationship(
        "Appointment", back_populates="provider", cascade="all, delete-orphan"
    )


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    color = Column(String(7), nullable=True)  # Hex color code for calendar display
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="services")


class BusinessHours(Base):
    """Weekly opening hours; day_of_week 0 = Sunday ... 6 = Saturday."""

    __tablename__ = "business_hours"
    __table_args__ = (UniqueConstraint("provider_id", "day_of_week", name="uq_business_hours_day"),)

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    is_working = Column(Boolean, default=True, nullable=False)
    break_start = Column(String(5), nullable=True)  # e.g. lunch 12:00-13:00
    break_end = Column(String(5), nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="business_hours")


class TimeOff(Base):
    """Closed date range (inclusive), optionally repeating every year."""

    __tablename__ = "time_off"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    # Partial-day block applied on each covered date; both null means all day
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    is_recurring = Column(Boolean, default=False, nullable=False)
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("Provider", back_populates="time_off")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="clients")
    appointments = relationship("Appointment", back_populates="client", passive_deletes=True)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Storage-level backstop: one active appointment per provider/date/start
        Index(
            "uq_appointments_active_start",
            "provider_id",
            "appointment_date",
            "start_time",
            unique=True,
            postgresql_where=text(_ACTIVE_STATUS_SQL),
            sqlite_where=text(_ACTIVE_STATUS_SQL),
        ),
        Index("ix_appointments_provider_date", "provider_id", "appointment_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    appointment_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # start + duration, stored at booking time
    duration_minutes = Column(Integer, nullable=False)  # snapshot of service duration
    status = Column(String(20), default=AppointmentStatus.SCHEDULED.value, nullable=False)
    payment_status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False)
    payment_amount = Column(Float, nullable=True)  # snapshot of service price
    notes = Column(String(1000), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    source = Column(String(20), default="client", nullable=False)  # client, staff
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="appointments")
    service = relationship("Service")
    client = relationship("Client", back_populates="appointments")


class ScheduleLock(Base):
    """One row per provider/date; booking transactions lock and version it."""

    __tablename__ = "schedule_locks"
    __table_args__ = (UniqueConstraint("provider_id", "lock_date", name="uq_schedule_lock_day"),)

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False)
    lock_date = Column(Date, nullable=False)
    version = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
