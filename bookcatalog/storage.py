# bookcatalog/storage.py
import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .config import Settings
from .errors import store_error_from

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    # Requests beyond pool_size wait in the pool queue for up to pool_timeout.
    engine = create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
        connect_args={"connect_timeout": settings.db_connect_timeout},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        logger.info("New connection established")

    return engine


class StoreClient:
    """Thin wrapper around the shared SQLAlchemy connection pool."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> "StoreClient":
        return cls(create_engine_from_settings(settings))

    async def execute(
        self, sql: str, params: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Run ``sql`` with bound ``params`` and return rows as dicts."""
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(text(sql), dict(params or {}))
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings().all()]
        except Exception as exc:
            raise store_error_from(exc, logger) from None

    async def ping(self) -> None:
        await self.execute("SELECT 1")

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("Database connections closed")
