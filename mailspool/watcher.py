"""DirectoryWatcher — follow the spool directory and ingest new arrivals."""

from __future__ import annotations

import os
import threading

import structlog

from .errors import DirectoryLoadError
from .ingestor import MailIngestor
from .models import IngestionError, IngestionErrorKind

logger = structlog.get_logger()


class DirectoryWatcher:
    """Polls a directory on a background thread.

    Files the ingestor has already published are considered seen; each
    poll ingests only paths that were not seen before.  Paths that
    disappear are forgotten, so a file re-created under the same name is
    ingested again.  Stopping is cooperative: the stop flag is checked
    between polls and between files, never mid-file.
    """

    def __init__(
        self,
        ingestor: MailIngestor,
        directory: str | os.PathLike[str],
        *,
        poll_interval_seconds: float = 1.0,
    ) -> None:
        self._ingestor = ingestor
        self._directory = directory
        self._poll_interval = poll_interval_seconds
        self._seen: set[str] = set()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Seed the seen set and start polling; the first poll picks up the backlog.

        Raises :class:`DirectoryLoadError` if the directory cannot be read.
        """
        if self.running:
            return
        self.seed()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"mailspool-watch-{os.fspath(self._directory)}",
            daemon=True,
        )
        self._thread.start()
        logger.info("watch_started", directory=os.fspath(self._directory), known=len(self._seen))

    def seed(self) -> int:
        """Mark files the ingestor already published as seen.

        Anything else on disk, such as files written while watching was
        off, is left for the next poll to ingest.
        """
        current = {str(p.absolute()) for p in self._ingestor.list_files(self._directory)}
        self._seen = current & self._ingestor.published_paths()
        return len(self._seen)

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("watch_stopped", directory=os.fspath(self._directory))

    def poll_once(self) -> int:
        """Ingest files that appeared since the last poll; returns how many were published."""
        current = [p.absolute() for p in self._ingestor.list_files(self._directory)]
        current_keys = {str(p) for p in current}
        self._seen &= current_keys

        published = 0
        for path in current:
            if self._stop_event.is_set():
                break
            key = str(path)
            if key in self._seen:
                continue
            self._seen.add(key)
            if self._ingestor.ingest_file(path) is not None:
                published += 1
        if published:
            logger.info("watch_ingested", directory=os.fspath(self._directory), published=published)
        return published

    def _run(self) -> None:
        while not self._stop_event.wait(self._poll_interval):
            try:
                self.poll_once()
            except DirectoryLoadError as exc:
                logger.warning("watch_poll_failed", directory=exc.path, reason=exc.reason)
                with self._ingestor.lock:
                    self._ingestor.errors.publish(
                        IngestionError(path=exc.path, kind=IngestionErrorKind.DIRECTORY, reason=exc.reason)
                    )
