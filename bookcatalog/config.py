"""
Runtime configuration for the catalog service.

Every tunable comes from the environment (or a local ``.env`` file) so
that the same build can run against a developer laptop, CI containers
and production. Variable names match the ones the deployment already
exports (``DB_HOST``, ``REDIS_HOST``, ``JWT_SECRET`` ...), hence no
prefix.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEV_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Relational store
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "books"
    db_pool_size: int = 10
    db_pool_timeout: float = 10.0
    db_connect_timeout: int = 10

    # Key-value cache
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_connect_timeout: float = 10.0

    # Auth
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"

    # HTTP server
    frontend_url: str = "http://localhost:3306"
    host: str = "0.0.0.0"
    port: int = 3309
    max_body_bytes: int = 10 * 1024 * 1024
    shutdown_timeout: float = Field(default=15.0, gt=0)

    environment: str = "production"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def database_url(self) -> str:
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process."""
    settings = Settings()
    if settings.is_production and settings.jwt_secret == DEV_JWT_SECRET:
        logger.warning("JWT_SECRET is not set; using the development default")
    return settings


class ClientSettings(BaseSettings):
    """Settings for :mod:`bookcatalog.client`."""

    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    api_url: str = "http://localhost:3309"
    api_timeout: float = 5.0
