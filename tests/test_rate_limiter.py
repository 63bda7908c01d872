import pytest

from agenda import rate_limiter
from agenda.rate_limiter import check_rate_limit


class FakeRedis:
    def __init__(self):
        self.values = {}

    def get(self, key):
        value = self.values.get(key)
        return str(value[0]) if value else None

    def ttl(self, key):
        return self.values[key][1] if key in self.values else -2

    def set(self, key, value, ex=None):
        self.values[key] = (value, ex)


@pytest.fixture(autouse=True)
def clear_memory_cache(monkeypatch):
    rate_limiter.memory_cache.clear()
    monkeypatch.setattr(rate_limiter, "last_cleanup_time", 0)
    yield
    rate_limiter.memory_cache.clear()


def test_allows_until_the_limit():
    results = [check_rate_limit("booking:1.2.3.4", 3, 60, None) for _ in range(4)]
    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert results[-1][1] == 3
    assert 0 < results[-1][2] <= 60


def test_keys_are_counted_separately():
    for _ in range(2):
        check_rate_limit("booking:a", 2, 60, None)
    assert check_rate_limit("booking:a", 2, 60, None)[0] is False
    assert check_rate_limit("booking:b", 2, 60, None)[0] is True


def test_window_reset(monkeypatch):
    now = [1_000_000]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])

    check_rate_limit("booking:x", 1, 60, None)
    assert check_rate_limit("booking:x", 1, 60, None)[0] is False

    now[0] += 61
    assert check_rate_limit("booking:x", 1, 60, None)[0] is True


def test_count_is_shared_through_redis():
    redis = FakeRedis()
    check_rate_limit("booking:shared", 5, 60, redis)
    assert redis.values["booking:shared"][0] == 1

    # Another process starting fresh picks the count up from Redis
    rate_limiter.memory_cache.clear()
    redis.values["booking:shared"] = (5, 30)
    allowed, count, ttl = check_rate_limit("booking:shared", 5, 60, redis)
    assert allowed is False
    assert count == 5
    assert ttl == 30


def test_expired_entries_are_evicted(monkeypatch):
    now = [1_000_000]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])

    for i in range(500):
        check_rate_limit(f"booking:10.0.{i // 256}.{i % 256}", 10, 60, None)
    assert len(rate_limiter.memory_cache) == 500

    now[0] += 3600
    check_rate_limit("booking:192.168.0.1", 10, 60, None)
    assert list(rate_limiter.memory_cache) == ["booking:192.168.0.1"]


def test_live_entries_survive_cleanup(monkeypatch):
    now = [1_000_000]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])

    check_rate_limit("booking:short", 10, 60, None)
    check_rate_limit("booking:long", 10, 3600, None)

    now[0] += 120
    allowed, count, _ = check_rate_limit("booking:long", 10, 3600, None)
    assert allowed and count == 2
    assert "booking:short" not in rate_limiter.memory_cache
