"""Graceful shutdown on SIGTERM / SIGINT."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable

import structlog

logger = structlog.get_logger()

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def install_signal_handlers(shutdown_event: asyncio.Event) -> Callable[[], None]:
    """Set *shutdown_event* when the process is asked to stop.

    Must be called from inside the running event loop.  Returns a callable
    that restores the default handlers once the service has stopped; a
    second signal while the spool is still draining is only logged.
    """
    loop = asyncio.get_running_loop()

    def _handle(sig: signal.Signals) -> None:
        if shutdown_event.is_set():
            logger.warning("shutdown_in_progress", signal=sig.name)
            return
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    for sig in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, _handle, sig)

    def _remove() -> None:
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)

    return _remove
