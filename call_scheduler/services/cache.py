"""
Keyed read-through cache on top of Redis.

Values are stored as JSON under versioned keys ("<key>:v<n>"). Writers call
invalidate(key), which bumps the version; readers resolve the version before
running the producer. A reader that loaded data before a write can only
store it under the old version, which no later reader asks for.

Redis being unreachable never fails a request: reads fall back to the
producer and invalidations are logged.
"""

import json
import logging
from typing import Any, Callable

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# Outlives every cached entry, so a version never restarts at 0 while
# entries of an older version 0 are still around.
VERSION_TTL = 7 * 24 * 3600


class RedisCache:
    """Cache collaborator injected into the stores."""

    def __init__(self, redis: Redis, prefix: str = "cs:cache", default_ttl: int = 3600):
        self.redis = redis
        self.prefix = prefix
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _version_key(self, key: str) -> str:
        return f"{self.prefix}:ver:{key}"

    def get(self, key: str) -> Any | None:
        try:
            raw = self.redis.get(self._key(key))
        except RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Invalid JSON in cache key {key}, dropping it")
            self.delete(key)
            return None

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        try:
            self.redis.setex(self._key(key), ttl or self.default_ttl, json.dumps(value))
            return True
        except RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            return bool(self.redis.delete(self._key(key)))
        except RedisError as e:
            logger.error(f"Cache delete failed for {key}: {e}")
            return False

    # ── Versioned entries ────────────────────────────────────────────────

    def version(self, key: str) -> int | None:
        """Current version of a logical key, None when Redis is unreachable."""
        try:
            raw = self.redis.get(self._version_key(key))
        except RedisError as e:
            logger.warning(f"Cache version read failed for {key}: {e}")
            return None
        return int(raw or 0)

    def invalidate(self, key: str) -> bool:
        """
        Retire every entry of a logical key.

        Returns:
            False if Redis could not be reached
        """
        version_key = self._version_key(key)
        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.incr(version_key)
            pipe.expire(version_key, VERSION_TTL)
            new_version, _ = pipe.execute()
        except RedisError as e:
            logger.error(f"Cache invalidation failed for {key}: {e}")
            return False

        self.delete(f"{key}:v{new_version - 1}")
        return True

    def remember(self, key: str, producer: Callable[[], Any], ttl: int | None = None) -> Any:
        """
        Return the cached value, or compute it with producer and cache it.
        """
        version = self.version(key)
        if version is None:
            return producer()

        entry_key = f"{key}:v{version}"
        value = self.get(entry_key)
        if value is not None:
            return value

        value = producer()
        self.set(entry_key, value, ttl)
        return value
