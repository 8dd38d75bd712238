"""
Key-value cache access.

``CacheClient`` wraps a single ``redis.asyncio`` client (which pools its
own connections) and exposes the handful of operations the service
needs. Failures are logged here and surface as :class:`CacheError`.
"""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff

from .config import Settings
from .errors import cache_error_from

logger = logging.getLogger(__name__)

RETRY_ATTEMPTS = 3
RETRY_BACKOFF_BASE = 0.05
RETRY_BACKOFF_CAP = 2.0


class CacheClient:
    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheClient":
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            socket_connect_timeout=settings.redis_connect_timeout,
            socket_keepalive=True,
            retry_on_timeout=True,
            retry=Retry(
                ExponentialBackoff(cap=RETRY_BACKOFF_CAP, base=RETRY_BACKOFF_BASE),
                RETRY_ATTEMPTS,
            ),
            decode_responses=True,
        )
        return cls(client)

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except Exception as exc:
            raise cache_error_from(exc, logger) from None

    async def set(self, key: str, value: str, expiry: Optional[int] = None) -> bool:
        """Store ``value`` under ``key``; with ``expiry`` the entry lapses after that many seconds."""
        try:
            if expiry:
                return bool(await self._client.set(key, value, ex=expiry))
            return bool(await self._client.set(key, value))
        except Exception as exc:
            raise cache_error_from(exc, logger) from None

    async def delete(self, key: str) -> int:
        try:
            return await self._client.delete(key)
        except Exception as exc:
            raise cache_error_from(exc, logger) from None

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as exc:
            raise cache_error_from(exc, logger) from None

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis connection closed")
