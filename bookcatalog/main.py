# bookcatalog/main.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .catalog import catalog_router
from .config import Settings, get_settings
from .context import AppContext
from .errors import AuthError, error_body
from .health import router as health_router
from .lifecycle import Lifecycle
from .middleware import (
    CORS_HEADERS,
    CORS_METHODS,
    BodySizeLimitMiddleware,
    log_requests,
    payload_too_large,
    security_headers,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    lifecycle: Lifecycle = app.state.lifecycle
    asyncio.get_running_loop().set_exception_handler(lifecycle.handle_loop_exception)

    if app.state.context is None:
        try:
            app.state.context = AppContext.from_settings(app.state.settings)
        except Exception:
            logger.exception("Failed to create database/cache clients")
            lifecycle.exit_code = 1
            raise
    logger.info("Server is running on port %s", app.state.settings.port)

    yield

    logger.info("HTTP server closed")
    await lifecycle.close_resources(app.state.context)


def create_app(
    settings: Optional[Settings] = None,
    context: Optional[AppContext] = None,
    lifecycle: Optional[Lifecycle] = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Book Catalog",
        description="Catalogue of active books, served through a read-through Redis cache.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.context = context
    app.state.lifecycle = lifecycle or Lifecycle(timeout=settings.shutdown_timeout)

    # Registered innermost first: the last one added wraps all the others.
    app.add_middleware(BaseHTTPMiddleware, dispatch=log_requests)
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )
    app.add_middleware(BaseHTTPMiddleware, dispatch=security_headers)

    app.include_router(health_router)
    app.include_router(catalog_router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Unknown paths and known paths with an unsupported method both read as "not found".
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404, content={"error": "Not Found", "code": "NOT_FOUND"}
            )
        if exc.status_code == 413:
            return payload_too_large()
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "code": f"HTTP_{exc.status_code}"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(AuthError)
    async def auth_error(request: Request, exc: AuthError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def server_error(request: Request, exc: Exception):
        logger.error("Unhandled error: %s", exc, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=error_body(
                "Internal Server Error",
                "SERVER_ERROR",
                str(exc),
                expose_detail=not settings.is_production,
            ),
        )

    return app
