"""Provider repository - Database operations for provider settings"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment, BusinessHours, Provider, Service, TimeOff


class ProviderRepository:
    """Repository for provider, service, business hours and time off records"""

    @staticmethod
    def get_by_firebase_uid(db: Session, firebase_uid: str) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.firebase_uid == firebase_uid).first()

    @staticmethod
    def get_by_public_id(db: Session, public_id: str) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.public_id == public_id).first()

    @staticmethod
    def create_provider(db: Session, **provider_data) -> Provider:
        provider = Provider(**provider_data)
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def update(db: Session, obj, **updates):
        """Apply field updates to any provider-owned record"""
        for key, value in updates.items():
            setattr(obj, key, value)
        db.commit()
        db.refresh(obj)
        return obj

    # Services

    @staticmethod
    def get_services(db: Session, provider_id: int, active_only: bool = False) -> list[Service]:
        query = db.query(Service).filter(Service.provider_id == provider_id)
        if active_only:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.name).all()

    @staticmethod
    def get_service(db: Session, provider_id: int, service_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def create_service(db: Session, provider_id: int, **service_data) -> Service:
        service = Service(provider_id=provider_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def service_has_appointments(db: Session, service_id: int) -> bool:
        return db.query(Appointment.id).filter(Appointment.service_id == service_id).first() is not None

    # Business hours

    @staticmethod
    def get_business_hours(db: Session, provider_id: int) -> list[BusinessHours]:
        return (
            db.query(BusinessHours)
            .filter(BusinessHours.provider_id == provider_id)
            .order_by(BusinessHours.day_of_week)
            .all()
        )

    @staticmethod
    def replace_business_hours(db: Session, provider_id: int, rows: list[dict]) -> list[BusinessHours]:
        """Swap the whole weekly schedule in one transaction"""
        db.query(BusinessHours).filter(BusinessHours.provider_id == provider_id).delete(
            synchronize_session=False
        )
        db.add_all(BusinessHours(provider_id=provider_id, **row) for row in rows)
        db.commit()
        return ProviderRepository.get_business_hours(db, provider_id)

    # Time off

    @staticmethod
    def get_time_off(db: Session, provider_id: int) -> list[TimeOff]:
        return (
            db.query(TimeOff)
            .filter(TimeOff.provider_id == provider_id)
            .order_by(TimeOff.start_date)
            .all()
        )

    @staticmethod
    def get_time_off_entry(db: Session, provider_id: int, time_off_id: int) -> Optional[TimeOff]:
        return (
            db.query(TimeOff)
            .filter(TimeOff.id == time_off_id, TimeOff.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def create_time_off(db: Session, provider_id: int, **data) -> TimeOff:
        entry = TimeOff(provider_id=provider_id, **data)
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def delete(db: Session, obj) -> None:
        db.delete(obj)
        db.commit()
