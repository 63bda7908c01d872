"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...config import DEFAULT_SLOT_GRANULARITY
from ...shared.validators import validate_email, validate_phone
from .statuses import AppointmentStatus, PaymentStatus
from .time_calculator import TimeWindow, format_clock


class SlotResponse(BaseModel):
    """A bookable [start, end) interval"""

    start: str
    end: str

    @classmethod
    def from_window(cls, window: TimeWindow) -> "SlotResponse":
        return cls(start=format_clock(window.start), end=format_clock(window.end))


class AvailabilityResponse(BaseModel):
    providerId: str
    serviceId: int
    date: date
    granularity: int
    durationMinutes: int
    slots: list[SlotResponse]


class AppointmentCreate(BaseModel):
    """Public booking request"""

    providerId: str
    serviceId: int
    date: date
    startTime: str = Field(..., description="HH:MM (or HH:MM:00), as returned by the availability endpoint")
    clientName: str = Field(..., min_length=2, max_length=255)
    clientEmail: Optional[str] = None
    clientPhone: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)
    granularity: int = Field(DEFAULT_SLOT_GRANULARITY, gt=0, le=1440)

    @field_validator("clientEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("clientPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class StaffAppointmentCreate(BaseModel):
    """Booking entered by the provider's staff from the dashboard"""

    serviceId: int
    date: date
    startTime: str
    clientName: str = Field(..., min_length=1, max_length=255)
    clientEmail: Optional[str] = None
    clientPhone: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)
    granularity: int = Field(DEFAULT_SLOT_GRANULARITY, gt=0, le=1440)

    @field_validator("clientEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("clientPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class StatusUpdate(BaseModel):
    status: AppointmentStatus
    reason: Optional[str] = Field(None, max_length=500)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class AppointmentResponse(BaseModel):
    id: int
    serviceId: int
    clientId: Optional[int] = None
    clientName: str
    clientEmail: Optional[str] = None
    clientPhone: Optional[str] = None
    date: date
    startTime: str
    endTime: str
    durationMinutes: int
    status: AppointmentStatus
    paymentStatus: PaymentStatus
    paymentAmount: Optional[float] = None
    notes: Optional[str] = None
    cancellationReason: Optional[str] = None
    source: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, a) -> "AppointmentResponse":
        return cls(
            id=a.id,
            serviceId=a.service_id,
            clientId=a.client_id,
            clientName=a.client_name,
            clientEmail=a.client_email,
            clientPhone=a.client_phone,
            date=a.appointment_date,
            startTime=a.start_time,
            endTime=a.end_time,
            durationMinutes=a.duration_minutes,
            status=a.status,
            paymentStatus=a.payment_status,
            paymentAmount=a.payment_amount,
            notes=a.notes,
            cancellationReason=a.cancellation_reason,
            source=a.source,
            created_at=a.created_at,
        )


class BookingConfirmation(BaseModel):
    """Public response to a successful booking; no staff-only fields"""

    id: int
    date: date
    startTime: str
    endTime: str
    status: AppointmentStatus
