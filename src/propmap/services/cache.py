from __future__ import annotations

import enum
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

import redis


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECS = 3600


class CacheState(str, enum.Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    FAILED = "failed"


class AmenityCache:
    """Best-effort TTL cache for amenity/place lookups.

    - Backend: Redis when ``redis_url`` is set and answers a PING at
      ``connect()``; values are JSON-encoded and expire natively (SETEX).
    - Fallback: in-process dict with expiry checked on read; expired entries
      are also swept on every write. Used when no URL is configured (state
      stays UNCONNECTED) or when the connection attempt failed (state FAILED).
      A failed connection is never retried.
    - Runtime Redis errors are logged and behave like a miss / dropped write.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        default_ttl: int = DEFAULT_TTL_SECS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self._clock = clock
        self._redis: Optional[redis.Redis] = None
        self._memory: Dict[str, Tuple[float, Any]] = {}
        self._resolved = False
        self.state = CacheState.UNCONNECTED

    def connect(self) -> CacheState:
        if self._resolved:
            return self.state
        self._resolved = True
        if not self.redis_url:
            return self.state
        try:
            client = redis.Redis.from_url(self.redis_url, socket_connect_timeout=5)
            client.ping()
        except (redis.RedisError, ValueError) as e:
            logger.warning("Redis connect failed, falling back to memory cache: %s", e)
            self.state = CacheState.FAILED
            return self.state
        self._redis = client
        self.state = CacheState.CONNECTED
        logger.info("Amenity cache connected to Redis")
        return self.state

    def get(self, key: str) -> Any:
        if self._redis is not None:
            try:
                raw = self._redis.get(key)
            except redis.RedisError as e:
                logger.warning("Redis get failed for %s: %s", key, e)
                return None
            if raw is None:
                return None
            try:
                return json.loads(raw)
            except ValueError:
                return None
        item = self._memory.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self._clock() > expires_at:
            self._memory.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = int(ttl_seconds if ttl_seconds is not None else self.default_ttl)
        if self._redis is not None:
            try:
                self._redis.setex(key, ttl, json.dumps(value))
            except (redis.RedisError, TypeError) as e:
                logger.warning("Redis set failed for %s: %s", key, e)
            return
        now = self._clock()
        self._sweep(now)
        self._memory[key] = (now + ttl, value)

    def _sweep(self, now: float) -> None:
        """Drop expired in-process entries so unread keys do not accumulate."""
        for k, (expires_at, _) in list(self._memory.items()):
            if now > expires_at:
                self._memory.pop(k, None)
