"""Provider router - FastAPI endpoints for provider settings"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_provider, get_firebase_claims
from ...database import get_db
from ...models import Provider
from .schemas import (
    BusinessHoursDay,
    BusinessHoursUpdate,
    ProviderCreate,
    ProviderResponse,
    ProviderUpdate,
    PublicProviderResponse,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
    TimeOffCreate,
    TimeOffResponse,
)
from .service import ProviderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    """Dependency injection for ProviderService"""
    return ProviderService(db)


@router.get("/public/{public_id}", response_model=PublicProviderResponse)
async def get_public_provider(
    public_id: str,
    service: ProviderService = Depends(get_provider_service),
):
    """Public booking page data: business name and active services"""
    provider, services = service.get_public_profile(public_id)
    return PublicProviderResponse(
        public_id=provider.public_id,
        businessName=provider.business_name,
        timezone=provider.timezone,
        services=[ServiceResponse.from_model(s) for s in services],
    )


# ============================================================================
# PROFILE
# ============================================================================


@router.post("/me", response_model=ProviderResponse, status_code=201)
async def create_provider(
    data: ProviderCreate,
    claims: dict = Depends(get_firebase_claims),
    service: ProviderService = Depends(get_provider_service),
):
    provider = service.create_provider(claims["uid"], claims.get("email"), data)
    return ProviderResponse.from_model(provider)


@router.get("/me", response_model=ProviderResponse)
async def get_provider(current_provider: Provider = Depends(get_current_provider)):
    return ProviderResponse.from_model(current_provider)


@router.patch("/me", response_model=ProviderResponse)
async def update_provider(
    data: ProviderUpdate,
    current_provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    provider = service.update_provider(current_provider, data)
    return ProviderResponse.from_model(provider)


# ============================================================================
# BUSINESS HOURS
# ============================================================================


@router.get("/me/business-hours", response_model=list[BusinessHoursDay])
async def get_business_hours(
    current_provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return [BusinessHoursDay.from_model(h) for h in service.get_business_hours(current_provider)]


@router.put("/me/business-hours", response_model=list[BusinessHoursDay])
async def set_business_hours(
    data: BusinessHoursUpdate,
    current_provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    """Replace the weekly schedule"""
    hours = service.set_business_hours(current_provider, data.days)
    return [BusinessHoursDay.from_model(h) for h in hours]


# ============================================================================
# TIME OFF
# ============================================================================


@router.get("/me/time-off", response_model=list[TimeOffResponse])
async def list_time_off(
    current_provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return [TimeOffResponse.from_model(t) for t in service.list_time_off(current_provider)]


@router.post("/me/time-off", response_model=TimeOffResponse, status_code=201)
async def create_time_off(
    data: TimeOffCreate,
    current_provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return TimeOffResponse.from_model(service.create_time_off(current_provider, data))


@router.delete("/me/time-off/{time_off_id}", status_code=204)
async def delete_time_off(
    time_off_id: int,
    current_provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    service.delete_time_off(current_provider, time_off_id)


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/me/services", response_model=list[ServiceResponse])
async def list_services(
    current_provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return [ServiceResponse.from_model(s) for s in service.list_services(current_provider)]


@router.post("/me/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    current_provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return ServiceResponse.from_model(service.create_service(current_provider, data))


@router.patch("/me/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return ServiceResponse.from_model(service.update_service(current_provider, service_id, data))
