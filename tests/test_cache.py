from datetime import timedelta

import pytest

from agenda import cache as cache_module
from agenda.domain.scheduling.availability_service import AvailabilityService
from agenda.domain.scheduling.time_calculator import format_clock
from agenda.models import BusinessHours

from .conftest import MONDAY, fixed_clock

NEXT_MONDAY = MONDAY + timedelta(days=7)


class FakeRedis:
    def __init__(self):
        self.values = {}

    def get(self, key):
        return self.values.get(key)

    def setex(self, key, ttl, value):
        self.values[key] = value

    def delete(self, key):
        self.values.pop(key, None)


@pytest.fixture
def redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_module.cache, "enabled", True)
    monkeypatch.setattr(cache_module.cache, "redis_client", fake)
    return fake


def starts(slots):
    return [format_clock(s.start) for s in slots]


def test_disabled_cache_is_always_a_miss():
    assert cache_module.Cache(enabled=False).get("anything") is None
    assert cache_module.Cache(enabled=False).set("anything", 1) is False


def test_schedule_config_is_cached(db, session_factory, schedule, redis):
    service = AvailabilityService(db, clock=fixed_clock)
    first = service.get_available_slots(schedule.provider_id, schedule.service_id, NEXT_MONDAY, 30)
    assert cache_module.schedule_config_key(schedule.provider_id) in redis.values

    cached = cache_module.get_schedule_config_cached(schedule.provider_id)
    assert [h["day_of_week"] for h in cached["hours"]] == [1, 2, 3, 4, 5]

    # Served from the cache even though the table changed underneath
    db.query(BusinessHours).filter(BusinessHours.provider_id == schedule.provider_id).delete()
    db.commit()
    second = service.get_available_slots(schedule.provider_id, schedule.service_id, NEXT_MONDAY, 30)
    assert starts(second) == starts(first)

    cache_module.invalidate_schedule_config_cache(schedule.provider_id)
    assert service.get_available_slots(schedule.provider_id, schedule.service_id, NEXT_MONDAY, 30) == []


def test_schedule_writes_invalidate_the_cache(client, schedule, redis):
    def slots():
        return client.get(
            "/availability",
            params={
                "provider_id": schedule.public_id,
                "service_id": schedule.service_id,
                "date": NEXT_MONDAY.isoformat(),
                "granularity": 30,
            },
        ).json()["slots"]

    assert len(slots()) == 18
    client.post(
        "/providers/me/time-off",
        json={"startDate": NEXT_MONDAY.isoformat(), "endDate": NEXT_MONDAY.isoformat()},
    )
    assert slots() == []
