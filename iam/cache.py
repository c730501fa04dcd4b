"""
iam/cache.py -- Key-value cache store for entities and sessions.

CacheStore is the narrow protocol the resolver and session manager depend on;
RedisCacheStore is the production implementation over a synchronous redis-py
client (one client per process, its connection pool shared by all request
threads).

Unlike a best-effort cache, failures here are NOT swallowed: a connection
failure raises CacheConnectionError and any other Redis error raises
CacheStoreError. The callers decide what that means for the request.

Key format lives in entity_key() / session_key() so nothing else builds
cache keys by hand.

Layer rule: no imports from api/ or tasker/.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import redis

from iam.errors import CacheConnectionError, CacheStoreError

logger = logging.getLogger("nys.iam.cache")

ENTITY_PREFIX = "entity"
SESSION_PREFIX = "session"


def entity_key(entity_id: str) -> str:
    """Cache key for a serialized entity."""
    return f"{ENTITY_PREFIX}:{entity_id}"


def session_key(token: str) -> str:
    """Cache key for a session token -> entity id mapping."""
    return f"{SESSION_PREFIX}:{token}"


class CacheStore(Protocol):
    """What the identity layer needs from a cache backend."""

    def exists(self, key: str) -> bool:
        ...

    def get(self, key: str) -> Optional[str]:
        """Return the stored text, or None on a miss."""
        ...

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store value; ttl in seconds, None for no expiry."""
        ...

    def delete(self, key: str) -> None:
        ...


class RedisCacheStore:
    """CacheStore backed by Redis.

    Construct with an existing client (tests, DI) or via from_url() at startup.
    Call close() at shutdown.
    """

    def __init__(self, client: redis.Redis) -> None:
        self.redis = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 5.0) -> "RedisCacheStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
        )
        return cls(client)

    def _fail(self, op: str, key: str, exc: redis.RedisError) -> CacheStoreError:
        if isinstance(exc, (redis.ConnectionError, redis.TimeoutError)):
            logger.warning("Cache %s unavailable for key %s (Redis disconnected): %s", op, key, exc)
            return CacheConnectionError(f"cache {op} failed: {exc}")
        logger.error("Cache %s error for key %s: %s", op, key, exc)
        return CacheStoreError(f"cache {op} failed: {exc}")

    def exists(self, key: str) -> bool:
        try:
            return bool(self.redis.exists(key))
        except redis.RedisError as exc:
            raise self._fail("exists", key, exc) from exc

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(key)
        except redis.RedisError as exc:
            raise self._fail("get", key, exc) from exc
        logger.debug("Cache %s: %s", "HIT" if value is not None else "MISS", key)
        return value

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        try:
            if ttl:
                self.redis.setex(key, ttl, value)
            else:
                self.redis.set(key, value)
        except redis.RedisError as exc:
            raise self._fail("set", key, exc) from exc
        logger.debug("Cache SET: %s (TTL: %s)", key, ttl or "none")

    def delete(self, key: str) -> None:
        try:
            self.redis.delete(key)
        except redis.RedisError as exc:
            raise self._fail("delete", key, exc) from exc

    def ping(self) -> bool:
        """Return True if Redis answers PING. Used by /health."""
        try:
            return bool(self.redis.ping())
        except redis.RedisError:
            return False

    def close(self) -> None:
        self.redis.close()
