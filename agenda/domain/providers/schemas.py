"""Provider domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_hex_color, validate_phone, validate_timezone


class ProviderCreate(BaseModel):
    """Schema for creating the provider profile of the signed-in user"""

    businessName: str = Field(..., min_length=1, max_length=255)
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    timezone: str = "UTC"

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        return validate_timezone(v)


class ProviderUpdate(BaseModel):
    businessName: Optional[str] = Field(None, min_length=1, max_length=255)
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        return validate_timezone(v) if v is not None else v


class ProviderResponse(BaseModel):
    id: int
    public_id: str
    businessName: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    timezone: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, p) -> "ProviderResponse":
        return cls(
            id=p.id,
            public_id=p.public_id,
            businessName=p.business_name,
            firstName=p.first_name,
            lastName=p.last_name,
            email=p.email,
            phone=p.phone,
            timezone=p.timezone,
            created_at=p.created_at,
        )


# ============================================================================
# SERVICES
# ============================================================================


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    durationMinutes: int = Field(..., gt=0, lt=1440)
    price: float = Field(0.0, ge=0)
    color: Optional[str] = None
    isActive: bool = True

    @field_validator("color")
    @classmethod
    def check_color(cls, v):
        return validate_hex_color(v)


class ServiceUpdate(BaseModel):
    """Duration and price can only change while no appointment references the service"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    durationMinutes: Optional[int] = Field(None, gt=0, lt=1440)
    price: Optional[float] = Field(None, ge=0)
    color: Optional[str] = None
    isActive: Optional[bool] = None

    @field_validator("color")
    @classmethod
    def check_color(cls, v):
        return validate_hex_color(v)


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    durationMinutes: int
    price: float
    color: Optional[str] = None
    isActive: bool

    @classmethod
    def from_model(cls, s) -> "ServiceResponse":
        return cls(
            id=s.id,
            name=s.name,
            description=s.description,
            durationMinutes=s.duration_minutes,
            price=s.price,
            color=s.color,
            isActive=s.is_active,
        )


class PublicProviderResponse(BaseModel):
    """What the public booking page needs to render a provider"""

    public_id: str
    businessName: str
    timezone: str
    services: list[ServiceResponse]


# ============================================================================
# BUSINESS HOURS
# ============================================================================


class BusinessHoursDay(BaseModel):
    dayOfWeek: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    isWorking: bool = True
    startTime: str = "09:00"
    endTime: str = "17:00"
    breakStart: Optional[str] = None
    breakEnd: Optional[str] = None

    @classmethod
    def from_model(cls, h) -> "BusinessHoursDay":
        return cls(
            dayOfWeek=h.day_of_week,
            isWorking=h.is_working,
            startTime=h.start_time,
            endTime=h.end_time,
            breakStart=h.break_start,
            breakEnd=h.break_end,
        )


class BusinessHoursUpdate(BaseModel):
    """Full weekly schedule; days left out are closed"""

    days: list[BusinessHoursDay]


# ============================================================================
# TIME OFF
# ============================================================================


class TimeOffCreate(BaseModel):
    startDate: date
    endDate: date
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    isRecurring: bool = False
    reason: Optional[str] = Field(None, max_length=255)


class TimeOffResponse(BaseModel):
    id: int
    startDate: date
    endDate: date
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    isRecurring: bool
    reason: Optional[str] = None

    @classmethod
    def from_model(cls, t) -> "TimeOffResponse":
        return cls(
            id=t.id,
            startDate=t.start_date,
            endDate=t.end_date,
            startTime=t.start_time,
            endTime=t.end_time,
            isRecurring=t.is_recurring,
            reason=t.reason,
        )
