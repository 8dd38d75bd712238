"""
HTTP middleware for the catalog service.

Each function here is a Starlette ``dispatch`` callable; ``main.create_app``
registers them with ``BaseHTTPMiddleware`` in the order they must wrap
the application. The body limit is a plain ASGI middleware because it has
to see the request body as it streams in.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]

# The API only serves JSON, so no Content-Security-Policy is set.
SECURITY_HEADERS: Dict[str, str] = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization"]


async def security_headers(request: Request, call_next: CallNext) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


class PayloadTooLarge(StarletteHTTPException):
    """Raised from ``receive`` once the streamed body passes the limit."""

    def __init__(self) -> None:
        super().__init__(status_code=413, detail="Payload Too Large")


def payload_too_large() -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={"error": "Payload Too Large", "code": "PAYLOAD_TOO_LARGE"},
    )


class BodySizeLimitMiddleware:
    """Reject request bodies larger than ``max_body_bytes``.

    A declared ``Content-Length`` is checked up front. Bodies sent without
    one (chunked uploads) are counted as the application reads them, and
    the request is answered with 413 as soon as the running total passes
    the limit.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None:
            try:
                too_large = int(declared) > self.max_body_bytes
            except ValueError:
                response = JSONResponse(
                    status_code=400,
                    content={"error": "Invalid Content-Length", "code": "BAD_REQUEST"},
                )
                await response(scope, receive, send)
                return
            if too_large:
                await payload_too_large()(scope, receive, send)
                return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    raise PayloadTooLarge()
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except PayloadTooLarge:
            if response_started:
                raise
            logger.info("Rejected request body over %s bytes", self.max_body_bytes)
            await payload_too_large()(scope, receive, send)


async def log_requests(request: Request, call_next: CallNext) -> Response:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    logger.info("%s %s", request.method, url)
    return await call_next(request)
