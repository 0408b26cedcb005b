"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

# Third-party loggers that are chatty at INFO while a watch loop is polling.
_NOISY_LOGGERS = ("uvicorn.access",)


def setup_logging(*, json: bool = True, level: str = "INFO", service: str = "mailspool") -> None:
    """Configure structlog for the mailspool process.

    Parameters
    ----------
    json:
        If *True* (the default), emit JSON lines.  If *False*, use the
        console renderer, which is easier to read when running locally
        next to a capture listener.
    level:
        Root log level name, case-insensitive (e.g. ``"debug"``).
    service:
        Bound into every event as ``service`` so spool logs can be told
        apart from the listener writing the files.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
