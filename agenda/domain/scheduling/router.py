"""Scheduling router - public availability/booking and staff appointment endpoints"""

import logging
from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ...auth import get_current_provider
from ...config import DEFAULT_SLOT_GRANULARITY
from ...database import get_db
from ...models import Provider
from ...rate_limiter import booking_rate_limiter
from ...services.notification_service import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_CREATED,
    notify_appointment_event,
)
from .availability_service import AvailabilityService
from .booking_service import BookingRequest, BookingService
from .errors import NotFoundError
from .repository import SchedulingRepository
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AvailabilityResponse,
    BookingConfirmation,
    CancelRequest,
    SlotResponse,
    StaffAppointmentCreate,
    StatusUpdate,
)
from .statuses import AppointmentStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scheduling"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def _resolve_public_provider(db: Session, public_id: str) -> Provider:
    provider = SchedulingRepository.get_provider_by_public_id(db, public_id)
    if not provider:
        raise NotFoundError("Provider not found")
    return provider


def _confirmation(appointment) -> BookingConfirmation:
    return BookingConfirmation(
        id=appointment.id,
        date=appointment.appointment_date,
        startTime=appointment.start_time,
        endTime=appointment.end_time,
        status=appointment.status,
    )


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    provider_id: str = Query(..., description="Provider public id"),
    service_id: int = Query(...),
    date: date_type = Query(...),
    granularity: int = Query(DEFAULT_SLOT_GRANULARITY, gt=0, le=1440),
    db: Session = Depends(get_db),
    availability: AvailabilityService = Depends(get_availability_service),
):
    """Bookable slots for a service on a date. Empty list when nothing is free."""
    provider = _resolve_public_provider(db, provider_id)
    provider, service = availability.load_provider_and_service(provider.id, service_id)
    slots = availability.open_slots(provider, service, date, granularity)
    return AvailabilityResponse(
        providerId=provider.public_id,
        serviceId=service_id,
        date=date,
        granularity=granularity,
        durationMinutes=service.duration_minutes,
        slots=[SlotResponse.from_window(s) for s in slots],
    )


@router.post(
    "/appointments",
    response_model=BookingConfirmation,
    status_code=201,
    dependencies=[Depends(booking_rate_limiter)],
)
async def create_appointment(
    data: AppointmentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    booking: BookingService = Depends(get_booking_service),
):
    """Book a slot. 409 when the slot was taken meanwhile, 503 when the schedule is busy."""
    provider = _resolve_public_provider(db, data.providerId)
    request = BookingRequest(
        provider_id=provider.id,
        service_id=data.serviceId,
        appointment_date=data.date,
        start_time=data.startTime,
        client_name=data.clientName,
        client_email=data.clientEmail,
        client_phone=data.clientPhone,
        notes=data.notes,
        granularity=data.granularity,
    )
    # Waiting for the schedule write lock blocks, keep it off the event loop
    appointment = await run_in_threadpool(booking.book, request, "client")
    background_tasks.add_task(notify_appointment_event, appointment.id, APPOINTMENT_CREATED)
    return _confirmation(appointment)


# ============================================================================
# STAFF ENDPOINTS
# ============================================================================


@router.get("/appointments", response_model=list[AppointmentResponse])
async def list_appointments(
    date: Optional[date_type] = Query(None),
    start_date: Optional[date_type] = Query(None),
    end_date: Optional[date_type] = Query(None),
    status: Optional[AppointmentStatus] = Query(None),
    current_provider: Provider = Depends(get_current_provider),
    booking: BookingService = Depends(get_booking_service),
):
    """Appointments of the current provider, for one date or a date range"""
    if date:
        start_date = end_date = date
    appointments = booking.list_appointments(current_provider.id, start_date, end_date, status)
    return [AppointmentResponse.from_model(a) for a in appointments]


@router.post("/appointments/staff", response_model=AppointmentResponse, status_code=201)
async def create_staff_appointment(
    data: StaffAppointmentCreate,
    background_tasks: BackgroundTasks,
    current_provider: Provider = Depends(get_current_provider),
    booking: BookingService = Depends(get_booking_service),
):
    """Book on behalf of a client from the dashboard; same checks as public booking"""
    request = BookingRequest(
        provider_id=current_provider.id,
        service_id=data.serviceId,
        appointment_date=data.date,
        start_time=data.startTime,
        client_name=data.clientName,
        client_email=data.clientEmail,
        client_phone=data.clientPhone,
        notes=data.notes,
        granularity=data.granularity,
    )
    appointment = await run_in_threadpool(booking.book, request, "staff")
    background_tasks.add_task(notify_appointment_event, appointment.id, APPOINTMENT_CREATED)
    return AppointmentResponse.from_model(appointment)


@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_provider: Provider = Depends(get_current_provider),
    booking: BookingService = Depends(get_booking_service),
):
    appointment = booking.get_appointment(current_provider.id, appointment_id)
    return AppointmentResponse.from_model(appointment)


@router.post("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: StatusUpdate,
    background_tasks: BackgroundTasks,
    current_provider: Provider = Depends(get_current_provider),
    booking: BookingService = Depends(get_booking_service),
):
    """Move an appointment along scheduled -> confirmed -> completed (or cancelled / no_show)"""
    appointment = await run_in_threadpool(
        booking.change_status, current_provider.id, appointment_id, data.status, data.reason
    )
    if data.status is AppointmentStatus.CANCELLED:
        background_tasks.add_task(notify_appointment_event, appointment.id, APPOINTMENT_CANCELLED)
    return AppointmentResponse.from_model(appointment)


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[CancelRequest] = None,
    current_provider: Provider = Depends(get_current_provider),
    booking: BookingService = Depends(get_booking_service),
):
    """Cancel an appointment; its time shows up as available again right away"""
    reason = data.reason if data else None
    appointment = await run_in_threadpool(booking.cancel, current_provider.id, appointment_id, reason)
    background_tasks.add_task(notify_appointment_event, appointment.id, APPOINTMENT_CANCELLED)
    return AppointmentResponse.from_model(appointment)


@router.post("/appointments/{appointment_id}/payment", response_model=AppointmentResponse)
async def mark_appointment_paid(
    appointment_id: int,
    current_provider: Provider = Depends(get_current_provider),
    booking: BookingService = Depends(get_booking_service),
):
    appointment = await run_in_threadpool(booking.mark_paid, current_provider.id, appointment_id)
    return AppointmentResponse.from_model(appointment)
