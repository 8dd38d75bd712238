"""
Startup/shutdown coordination.

Shutdown closes the store pool and then the cache connection. The exit
code is 0 when both close cleanly and 1 otherwise. A watchdog thread
started when shutdown is triggered terminates the process with code 1
if cleanup has not finished within ``timeout`` seconds; it runs off the
event loop so a stuck loop cannot hold it back.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
from typing import Any, Callable, Dict, Optional

from .context import AppContext

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 15.0

_LOG_ONLY_KEYS = frozenset({"future", "task", "transport"})


class Lifecycle:
    def __init__(
        self,
        timeout: float = SHUTDOWN_TIMEOUT,
        force_exit: Callable[[int], Any] = os._exit,
    ):
        self.timeout = timeout
        self.exit_code = 0
        self.closed = False
        self._force_exit = force_exit
        self._watchdog: Optional[threading.Timer] = None
        self._server = None

    def attach(self, server) -> None:
        """Register the server whose ``should_exit`` flag stops it accepting connections."""
        self._server = server

    # -- watchdog ---------------------------------------------------------

    def start_watchdog(self) -> None:
        if self._watchdog is not None:
            return
        self._watchdog = threading.Timer(self.timeout, self._expire)
        self._watchdog.daemon = True
        self._watchdog.start()

    def cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()

    def _expire(self) -> None:
        logger.error("Could not close connections in time, forcefully shutting down")
        self._force_exit(1)

    # -- triggers ---------------------------------------------------------

    def trigger(self, reason: str) -> None:
        logger.info("Shutting down: %s", reason)
        self.start_watchdog()
        if self._server is not None:
            self._server.should_exit = True

    def handle_uncaught(self, exc: BaseException) -> None:
        logger.critical(
            "Uncaught Exception: %s", exc, exc_info=(type(exc), exc, exc.__traceback__)
        )
        self.trigger("uncaught exception")

    def handle_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_value is None:
            return
        self.handle_uncaught(args.exc_value)

    def handle_main_exception(self, exc_type, exc, tb) -> None:
        if not issubclass(exc_type, Exception):
            sys.__excepthook__(exc_type, exc, tb)
            return
        self.handle_uncaught(exc.with_traceback(tb))

    def handle_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]
    ) -> None:
        exc = context.get("exception")
        if exc is not None and not _LOG_ONLY_KEYS.intersection(context):
            # Raised by a plain callback, so nothing else will ever see it.
            self.handle_uncaught(exc)
            return
        # Futures nobody awaited and per-connection transport errors are
        # reported but do not stop the server.
        logger.error(
            "Unhandled exception in event loop: %s",
            context.get("message"),
            exc_info=(type(exc), exc, exc.__traceback__) if exc is not None else None,
        )

    # -- cleanup ----------------------------------------------------------

    async def close_resources(self, context: AppContext) -> int:
        if self.closed:
            return self.exit_code
        self.closed = True
        try:
            await context.close()
        except Exception:
            logger.exception("Error during shutdown")
            self.exit_code = 1
        return self.exit_code

    async def shutdown(self, context: AppContext) -> int:
        """Run the full close sequence under the watchdog and return the exit code."""
        self.start_watchdog()
        try:
            return await self.close_resources(context)
        finally:
            self.cancel_watchdog()

    def finish(self) -> int:
        self.cancel_watchdog()
        return self.exit_code
