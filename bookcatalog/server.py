"""
Process entry point: run the API under uvicorn and turn the shutdown
outcome into the process exit code.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import threading
from typing import Optional

import uvicorn

from .config import Settings, get_settings
from .lifecycle import Lifecycle
from .logging_config import configure_logging
from .main import create_app

logger = logging.getLogger(__name__)


SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _signal_already_handled(sig: int, frame) -> None:
    # uvicorn re-raises the captured signal once it has stopped; the
    # shutdown already ran, so the exit code comes from the lifecycle.
    logger.debug("Ignoring re-raised signal %s after shutdown", sig)


class CatalogServer(uvicorn.Server):
    def __init__(self, config: uvicorn.Config, lifecycle: Lifecycle):
        super().__init__(config)
        self.lifecycle = lifecycle
        lifecycle.attach(self)

    def handle_exit(self, sig: int, frame) -> None:
        logger.info("Received shutdown signal (%s)", signal.Signals(sig).name)
        self.lifecycle.start_watchdog()
        super().handle_exit(sig, frame)


def serve(settings: Optional[Settings] = None, lifecycle: Optional[Lifecycle] = None) -> int:
    """Run the server until it stops and return the process exit code."""
    settings = settings or get_settings()
    lifecycle = lifecycle or Lifecycle(timeout=settings.shutdown_timeout)
    app = create_app(settings, lifecycle=lifecycle)

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        lifespan="on",
        log_config=None,
        server_header=False,
    )
    server = CatalogServer(config, lifecycle)

    previous_hooks = (sys.excepthook, threading.excepthook)
    sys.excepthook = lifecycle.handle_main_exception
    threading.excepthook = lifecycle.handle_thread_exception
    previous_handlers = {
        sig: signal.signal(sig, _signal_already_handled) for sig in SHUTDOWN_SIGNALS
    }
    try:
        server.run()
        if not server.started:
            lifecycle.exit_code = 1
    except Exception as exc:
        lifecycle.handle_uncaught(exc)
        if app.state.context is not None:
            asyncio.run(lifecycle.close_resources(app.state.context))
    finally:
        sys.excepthook, threading.excepthook = previous_hooks
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    return lifecycle.finish()


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    sys.exit(serve(settings))


if __name__ == "__main__":
    main()
