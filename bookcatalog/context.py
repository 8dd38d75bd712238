"""
Process-scoped application context.

The context owns the store pool and the cache connection. It is built
once at startup, attached to ``app.state.context`` and handed to
endpoints through the :func:`get_context` dependency, so tests can
inject fakes instead of real connections.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from .cache import CacheClient
from .config import Settings
from .storage import StoreClient

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    store: StoreClient
    cache: CacheClient

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        return cls(
            settings=settings,
            store=StoreClient.from_settings(settings),
            cache=CacheClient.from_settings(settings),
        )

    async def close(self) -> None:
        """Close the store pool, then the cache connection.

        The first failure propagates; the cache is still closed if the
        store close fails.
        """
        try:
            await self.store.close()
        finally:
            await self.cache.close()


def get_context(request: Request) -> AppContext:
    return request.app.state.context
