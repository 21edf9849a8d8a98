from __future__ import annotations

import time

import redis

import propmap.services.cache as cache_mod
from propmap.services.cache import AmenityCache, CacheState


class Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_memory_entry_expires():
    clock = Clock()
    cache = AmenityCache(clock=clock)
    cache.set("k", {"v": 1}, 1)
    assert cache.get("k") == {"v": 1}
    clock.now += 1.1
    assert cache.get("k") is None
    # expired entries are dropped
    assert "k" not in cache._memory


def test_memory_entry_expires_in_real_time():
    cache = AmenityCache()
    cache.set("k", [1, 2], 1)
    assert cache.get("k") == [1, 2]
    time.sleep(1.1)
    assert cache.get("k") is None


def test_default_ttl():
    clock = Clock()
    cache = AmenityCache(clock=clock)
    cache.set("k", "v")
    clock.now += 3599
    assert cache.get("k") == "v"
    clock.now += 2
    assert cache.get("k") is None


def test_miss():
    assert AmenityCache().get("nope") is None


def test_no_url_stays_in_memory():
    cache = AmenityCache(redis_url=None)
    assert cache.connect() == CacheState.UNCONNECTED
    cache.set("k", 1)
    assert cache.get("k") == 1


class DeadRedis:
    def ping(self):
        raise redis.ConnectionError("refused")


def test_failed_connection_falls_back_and_is_not_retried(monkeypatch):
    attempts = []

    def from_url(url, **kwargs):
        attempts.append(url)
        return DeadRedis()

    monkeypatch.setattr(cache_mod.redis.Redis, "from_url", from_url)
    cache = AmenityCache(redis_url="redis://cache:6379/0")
    assert cache.connect() == CacheState.FAILED
    assert cache.connect() == CacheState.FAILED
    assert attempts == ["redis://cache:6379/0"]
    cache.set("k", {"a": 1})
    assert cache.get("k") == {"a": 1}


class FakeRedis:
    def __init__(self) -> None:
        self.data = {}
        self.ttls = {}
        self.broken = False

    def ping(self):
        return True

    def get(self, key):
        if self.broken:
            raise redis.ConnectionError("gone")
        return self.data.get(key)

    def setex(self, key, ttl, value):
        if self.broken:
            raise redis.ConnectionError("gone")
        self.ttls[key] = ttl
        self.data[key] = value.encode("utf-8")


def test_redis_backend(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_mod.redis.Redis, "from_url", lambda url, **kw: fake)
    cache = AmenityCache(redis_url="redis://cache:6379/0", default_ttl=60)
    assert cache.connect() == CacheState.CONNECTED
    cache.set("k", [{"id": 1}])
    assert fake.ttls["k"] == 60
    assert cache.get("k") == [{"id": 1}]
    cache.set("k2", "x", 5)
    assert fake.ttls["k2"] == 5


def test_redis_runtime_errors_behave_like_misses(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_mod.redis.Redis, "from_url", lambda url, **kw: fake)
    cache = AmenityCache(redis_url="redis://cache:6379/0")
    cache.connect()
    fake.broken = True
    cache.set("k", 1)
    assert cache.get("k") is None


def test_set_sweeps_expired_entries():
    clock = Clock()
    cache = AmenityCache(clock=clock)
    cache.set("old", 1, 10)
    cache.set("fresh", 2, 100)
    clock.now += 50
    cache.set("new", 3, 10)
    assert set(cache._memory) == {"fresh", "new"}
