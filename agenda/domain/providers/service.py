"""Provider service - Business logic for provider settings"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_schedule_config_cache
from ...models import BusinessHours, Provider, Service, TimeOff
from ..scheduling.errors import NotFoundError, ValidationError
from ..scheduling.time_calculator import TimeWindow, format_clock, parse_clock, within
from .repository import ProviderRepository
from .schemas import (
    BusinessHoursDay,
    ProviderCreate,
    ProviderUpdate,
    ServiceCreate,
    ServiceUpdate,
    TimeOffCreate,
)

logger = logging.getLogger(__name__)


class ProviderService:
    """Service layer for provider profile, services and schedule settings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def create_provider(self, firebase_uid: str, token_email: Optional[str], data: ProviderCreate) -> Provider:
        if self.repo.get_by_firebase_uid(self.db, firebase_uid):
            raise HTTPException(status_code=409, detail="Provider profile already exists")

        logger.info(f"🆕 Creating provider profile: {data.businessName}")
        return self.repo.create_provider(
            self.db,
            firebase_uid=firebase_uid,
            email=data.email or (token_email.lower() if token_email else None),
            business_name=data.businessName,
            first_name=data.firstName,
            last_name=data.lastName,
            phone=data.phone,
            timezone=data.timezone,
        )

    def update_provider(self, provider: Provider, data: ProviderUpdate) -> Provider:
        field_map = {
            "businessName": "business_name",
            "firstName": "first_name",
            "lastName": "last_name",
            "email": "email",
            "phone": "phone",
            "timezone": "timezone",
        }
        updates = {}
        for field, column in field_map.items():
            value = getattr(data, field)
            if value is not None:
                updates[column] = value
        if not updates:
            return provider
        return self.repo.update(self.db, provider, **updates)

    def get_public_profile(self, public_id: str) -> tuple[Provider, list[Service]]:
        provider = self.repo.get_by_public_id(self.db, public_id)
        if not provider:
            raise NotFoundError("Provider not found")
        return provider, self.repo.get_services(self.db, provider.id, active_only=True)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def list_services(self, provider: Provider) -> list[Service]:
        return self.repo.get_services(self.db, provider.id)

    def create_service(self, provider: Provider, data: ServiceCreate) -> Service:
        service = self.repo.create_service(
            self.db,
            provider.id,
            name=data.name,
            description=data.description,
            duration_minutes=data.durationMinutes,
            price=data.price,
            color=data.color,
            is_active=data.isActive,
        )
        logger.info(f"✅ Service {service.id} created for provider {provider.id}")
        return service

    def update_service(self, provider: Provider, service_id: int, data: ServiceUpdate) -> Service:
        """Update a service.

        Booked appointments snapshot duration and price, and the service row
        is what staff see next to them, so those two fields are frozen once
        any appointment references the service. Create a new service instead.
        """
        service = self.repo.get_service(self.db, provider.id, service_id)
        if not service:
            raise NotFoundError("Service not found")

        changes_terms = (
            data.durationMinutes is not None and data.durationMinutes != service.duration_minutes
        ) or (data.price is not None and data.price != service.price)
        if changes_terms and self.repo.service_has_appointments(self.db, service.id):
            raise ValidationError(
                "Duration and price cannot change once the service has appointments; create a new service"
            )

        updates = {}
        if data.name is not None:
            updates["name"] = data.name
        if data.description is not None:
            updates["description"] = data.description
        if data.durationMinutes is not None:
            updates["duration_minutes"] = data.durationMinutes
        if data.price is not None:
            updates["price"] = data.price
        if data.color is not None:
            updates["color"] = data.color
        if data.isActive is not None:
            updates["is_active"] = data.isActive

        return self.repo.update(self.db, service, **updates)

    # ------------------------------------------------------------------
    # Business hours
    # ------------------------------------------------------------------

    def get_business_hours(self, provider: Provider) -> list[BusinessHours]:
        return self.repo.get_business_hours(self.db, provider.id)

    def set_business_hours(self, provider: Provider, days: list[BusinessHoursDay]) -> list[BusinessHours]:
        seen = set()
        rows = []
        for day in days:
            if day.dayOfWeek in seen:
                raise ValidationError(f"Day {day.dayOfWeek} is listed more than once")
            seen.add(day.dayOfWeek)

            hours = TimeWindow.from_clock(day.startTime, day.endTime)
            break_start = break_end = None
            if day.breakStart or day.breakEnd:
                if not (day.breakStart and day.breakEnd):
                    raise ValidationError("A break needs both a start and an end time")
                pause = TimeWindow.from_clock(day.breakStart, day.breakEnd)
                if not within(pause, hours):
                    raise ValidationError(f"Break {pause} falls outside business hours {hours}")
                break_start, break_end = format_clock(pause.start), format_clock(pause.end)

            rows.append(
                {
                    "day_of_week": day.dayOfWeek,
                    "start_time": format_clock(hours.start),
                    "end_time": format_clock(hours.end),
                    "is_working": day.isWorking,
                    "break_start": break_start,
                    "break_end": break_end,
                }
            )

        saved = self.repo.replace_business_hours(self.db, provider.id, rows)
        invalidate_schedule_config_cache(provider.id)
        logger.info(f"🕘 Business hours updated for provider {provider.id} ({len(rows)} days)")
        return saved

    # ------------------------------------------------------------------
    # Time off
    # ------------------------------------------------------------------

    def list_time_off(self, provider: Provider) -> list[TimeOff]:
        return self.repo.get_time_off(self.db, provider.id)

    def create_time_off(self, provider: Provider, data: TimeOffCreate) -> TimeOff:
        if data.endDate < data.startDate:
            raise ValidationError("Time off cannot end before it starts")

        start_time = end_time = None
        if data.startTime or data.endTime:
            if not (data.startTime and data.endTime):
                raise ValidationError("Partial-day time off needs both a start and an end time")
            window = TimeWindow.from_clock(data.startTime, data.endTime)
            start_time, end_time = format_clock(window.start), format_clock(window.end)

        entry = self.repo.create_time_off(
            self.db,
            provider.id,
            start_date=data.startDate,
            end_date=data.endDate,
            start_time=start_time,
            end_time=end_time,
            is_recurring=data.isRecurring,
            reason=data.reason,
        )
        invalidate_schedule_config_cache(provider.id)
        logger.info(f"🏖️ Time off {entry.id} added for provider {provider.id}: {data.startDate} - {data.endDate}")
        return entry

    def delete_time_off(self, provider: Provider, time_off_id: int) -> None:
        entry = self.repo.get_time_off_entry(self.db, provider.id, time_off_id)
        if not entry:
            raise NotFoundError("Time off entry not found")
        self.repo.delete(self.db, entry)
        invalidate_schedule_config_cache(provider.id)
        logger.info(f"🗑️ Time off {time_off_id} removed for provider {provider.id}")
