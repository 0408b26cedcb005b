"""MailSpoolService — wires ingestion, storage and controls, runs until shutdown."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path

import structlog
import uvicorn

from .config import MailSpoolConfig
from .coordinator import CaptureServer, ControlStateCoordinator
from .health import create_health_app
from .ingestor import MailIngestor
from .logging import setup_logging
from .models import ControlState, IngestionError
from .shutdown import install_signal_handlers
from .store import MailStore
from .watcher import DirectoryWatcher

logger = structlog.get_logger()


class MailSpoolService:
    """Owns one ingestor, its store, the directory watcher and the coordinator.

    *capture* is the external listener; without one, ``start_capture``
    is refused with ``ControlErrorKind.UNKNOWN`` and only loading and
    watching are available.
    """

    def __init__(self, config: MailSpoolConfig, capture: CaptureServer | None = None) -> None:
        self.config = config
        self.ingestor = MailIngestor(preamble_lines=config.preamble_lines)
        self.store = MailStore(self.ingestor)
        self.watcher = DirectoryWatcher(
            self.ingestor,
            config.save_path,
            poll_interval_seconds=config.poll_interval_seconds,
        )
        self.coordinator = ControlStateCoordinator(
            capture,
            self.watcher,
            watch_requires_capture=config.watch_requires_capture,
        )
        self.loaded: bool = False
        self.start_time: float = time.monotonic()
        self._shutdown_event = asyncio.Event()
        self.ingestor.errors.subscribe(self._log_ingestion_error)

    def _log_ingestion_error(self, error: IngestionError) -> None:
        logger.warning("ingestion_error", path=error.path, kind=error.kind.value, reason=error.reason)

    async def load(self) -> int:
        """Run the initial directory load on a worker thread."""
        Path(self.config.save_path).mkdir(parents=True, exist_ok=True)
        published = await asyncio.to_thread(self.ingestor.load_all, self.config.save_path)
        self.loaded = True
        logger.info("initial_load_complete", messages=published)
        return published

    def start_capture(self) -> ControlState:
        """Start the capture listener on the configured host and port."""
        return self.coordinator.start_capture(self.config.host, self.config.port)

    async def _run_health_server(self) -> None:
        config = uvicorn.Config(
            create_health_app(self),
            host="0.0.0.0",
            port=self.config.health_port,
            log_level="warning",
        )
        server = uvicorn.Server(config)

        serve_task = asyncio.create_task(server.serve())
        await self._shutdown_event.wait()
        server.should_exit = True
        await serve_task

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    async def run(self) -> None:
        """Load, optionally capture and watch, and serve health probes until SIGTERM/SIGINT."""
        setup_logging(json=self.config.log_json, level=self.config.log_level)
        remove_signal_handlers = install_signal_handlers(self._shutdown_event)
        self.start_time = time.monotonic()
        logger.info("mailspool_starting", save_path=self.config.save_path)

        try:
            await self.load()
            if self.config.capture_on_start:
                self.start_capture()
            if self.config.watch_on_start:
                self.coordinator.toggle_watch()
            await self._run_health_server()
        finally:
            await asyncio.to_thread(self.coordinator.shutdown)
            remove_signal_handlers()
            logger.info("mailspool_stopped")
