import os
import tempfile
from datetime import datetime
from types import SimpleNamespace

# Configuration is read at import time, so it has to be in place first
os.environ["DATABASE_URL"] = f"sqlite:///{tempfile.gettempdir()}/agenda_test_app.db"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["FIREBASE_PROJECT_ID"] = "agenda-test"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from agenda.auth import get_current_provider, get_firebase_claims
from agenda.database import Base, build_engine, get_db
from agenda.domain.scheduling import router as scheduling_router
from agenda.domain.scheduling.availability_service import AvailabilityService
from agenda.domain.scheduling.booking_service import BookingService
from agenda.main import app
from agenda.models import Appointment, BusinessHours, Provider, Service

# Monday 2 June 2025, 08:00 provider local time
FIXED_NOW = datetime(2025, 6, 2, 8, 0)
MONDAY = FIXED_NOW.date()


def fixed_clock(tz):
    return FIXED_NOW.replace(tzinfo=tz)


def make_clock(now: datetime):
    def clock(tz):
        return now.replace(tzinfo=tz)

    return clock


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'agenda.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def add_appointment(session_factory, provider_id, service_id, day, start, end, status="scheduled"):
    with session_factory() as s:
        appointment = Appointment(
            provider_id=provider_id,
            service_id=service_id,
            client_name="Existing Client",
            appointment_date=day,
            start_time=start,
            end_time=end,
            duration_minutes=30,
            status=status,
        )
        s.add(appointment)
        s.commit()
        return appointment.id


@pytest.fixture
def schedule(session_factory):
    """Provider open Monday-Friday 09:00-18:00 with a 30 minute, 50.00 service"""
    with session_factory() as s:
        provider = Provider(
            firebase_uid="staff-uid",
            email="owner@studio.test",
            business_name="Studio Bella",
            timezone="UTC",
        )
        s.add(provider)
        s.flush()

        haircut = Service(provider_id=provider.id, name="Haircut", duration_minutes=30, price=50.0)
        massage = Service(provider_id=provider.id, name="Massage", duration_minutes=45, price=80.0)
        s.add_all([haircut, massage])
        s.add_all(
            BusinessHours(provider_id=provider.id, day_of_week=dow, start_time="09:00", end_time="18:00")
            for dow in range(1, 6)
        )
        s.commit()

        return SimpleNamespace(
            provider_id=provider.id,
            public_id=provider.public_id,
            service_id=haircut.id,
            long_service_id=massage.id,
        )


@pytest.fixture
def notifications(monkeypatch):
    sent = []

    async def record(appointment_id, notification_type):
        sent.append((appointment_id, notification_type))
        return True

    monkeypatch.setattr(scheduling_router, "notify_appointment_event", record)
    return sent


@pytest.fixture
def client(session_factory, schedule, notifications):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_current_provider(db: Session = Depends(get_db)):
        return db.query(Provider).filter(Provider.id == schedule.provider_id).first()

    def override_availability_service(db: Session = Depends(get_db)):
        return AvailabilityService(db, clock=fixed_clock)

    def override_booking_service(db: Session = Depends(get_db)):
        return BookingService(db, clock=fixed_clock)

    def override_claims():
        return {"uid": "new-staff-uid", "email": "New.Owner@Studio.test"}

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_provider] = override_current_provider
    app.dependency_overrides[scheduling_router.get_availability_service] = override_availability_service
    app.dependency_overrides[scheduling_router.get_booking_service] = override_booking_service
    app.dependency_overrides[get_firebase_claims] = override_claims

    yield TestClient(app)

    app.dependency_overrides.clear()
