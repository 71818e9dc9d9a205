"""Redis-backed key/value store with per-key expiry."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config import REDIS_URL
from .errors import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    async def put(self, key: str, value: str, ttl_ms: int) -> None: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def delete(self, key: str) -> bool: ...


def create_redis_client(url: Optional[str] = None) -> redis.Redis:
    return redis.from_url(
        url or REDIS_URL,
        decode_responses=True,
        max_connections=20,
        socket_connect_timeout=5,
        socket_timeout=10,
    )


class RedisStore:
    """Expiring string store; every Redis failure surfaces as ``StorageError``."""

    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = create_redis_client()
        return self._client

    async def put(self, key: str, value: str, ttl_ms: int) -> None:
        try:
            await self.client.set(key, value, px=ttl_ms)
        except RedisError as exc:
            logger.error("Redis SET failed for %s: %s", _scope(key), exc)
            raise StorageError("key/value store unavailable") from exc

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.client.get(key)
        except RedisError as exc:
            logger.error("Redis GET failed for %s: %s", _scope(key), exc)
            raise StorageError("key/value store unavailable") from exc
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def delete(self, key: str) -> bool:
        """Remove ``key``; ``False`` means it was already gone."""
        try:
            removed = await self.client.delete(key)
        except RedisError as exc:
            logger.error("Redis DEL failed for %s: %s", _scope(key), exc)
            raise StorageError("key/value store unavailable") from exc
        return removed > 0

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _scope(key: str) -> str:
    # keys embed secrets after the prefix; only the prefix is safe to log
    return key.split(":", 1)[0] + ":*"
