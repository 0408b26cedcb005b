"""MailIngestor — walk the spool directory, parse each file, publish records.

Lock discipline
---------------
``MailIngestor.lock`` is the single mutual-exclusion region shared with
anything that deletes message files (see :class:`~mailspool.store.MailStore`).
The ingestor holds it while it:

* re-checks that the file still exists,
* attaches ``source_path`` to the parsed record,
* publishes the record to every subscriber.

Deleters must hold it while removing a file and the matching record.
Reading and parsing happen outside the lock to keep the critical section
short.  The lock is re-entrant, so a subscriber may delete records from
inside its callback.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import structlog

from .errors import DirectoryLoadError
from .models import IngestionError, IngestionErrorKind, MailRecord
from .notifier import Notifier
from .parser import PREAMBLE_LINES, MailFileParser

logger = structlog.get_logger()


class MailIngestor:
    """Loads message files and publishes one :class:`MailRecord` per file.

    Subscribers receive records on ``records`` and per-file or
    per-directory failures on ``errors``.  Both are invoked while
    ``lock`` is held and must not block for long.
    """

    def __init__(
        self,
        *,
        preamble_lines: int = PREAMBLE_LINES,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._parser = MailFileParser(preamble_lines=preamble_lines, clock=clock)
        self._lock = threading.RLock()
        self._published: set[str] = set()
        self.records: Notifier[MailRecord] = Notifier("mail_records")
        self.errors: Notifier[IngestionError] = Notifier("ingestion_errors")

    @property
    def lock(self) -> threading.RLock:
        """The lock shared with deletion routines."""
        return self._lock

    def published_paths(self) -> frozenset[str]:
        """Absolute paths of every file published and not since forgotten."""
        with self._lock:
            return frozenset(self._published)

    def forget(self, path: str | os.PathLike[str]) -> None:
        """Drop *path* from the published set once its file is deleted."""
        with self._lock:
            self._published.discard(str(Path(path).absolute()))

    def subscribe(
        self,
        handler: Callable[[MailRecord], None],
        on_error: Callable[[IngestionError], None] | None = None,
    ) -> Callable[[], None]:
        """Register record (and optionally error) handlers.

        Returns a callable that removes both registrations.
        """
        unsubscribers = [self.records.subscribe(handler)]
        if on_error is not None:
            unsubscribers.append(self.errors.subscribe(on_error))

        def _unsubscribe() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return _unsubscribe

    # ------------------------------------------------------------------
    # Directory traversal
    # ------------------------------------------------------------------

    def list_files(self, directory: str | os.PathLike[str]) -> list[Path]:
        """Return every regular file under *directory*, in a stable order.

        Raises :class:`DirectoryLoadError` if *directory* or any of its
        subdirectories cannot be enumerated.
        """
        root = Path(directory)
        if not root.is_dir():
            reason = "not a directory" if root.exists() else "no such directory"
            raise DirectoryLoadError(str(root), reason)

        def _on_error(exc: OSError) -> None:
            raise DirectoryLoadError(str(exc.filename or root), exc.strerror or str(exc))

        files: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            dirnames.sort()
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if path.is_file():
                    files.append(path)
        return files

    def load_all(
        self,
        directory: str | os.PathLike[str],
        *,
        stop_event: threading.Event | None = None,
    ) -> int:
        """Ingest every message file under *directory*.

        Returns the number of records published.  A failing file is
        reported on ``errors`` and skipped; a directory that cannot be
        enumerated is reported on ``errors`` and raised as
        :class:`DirectoryLoadError`.  If *stop_event* is set, the walk
        stops before the next file.
        """
        logger.info("mail_load_started", directory=str(directory))
        try:
            files = self.list_files(directory)
        except DirectoryLoadError as exc:
            logger.error("mail_directory_unreadable", directory=exc.path, reason=exc.reason)
            self.errors.publish(
                IngestionError(path=exc.path, kind=IngestionErrorKind.DIRECTORY, reason=exc.reason)
            )
            raise

        published = 0
        for path in files:
            if stop_event is not None and stop_event.is_set():
                logger.info("mail_load_cancelled", directory=str(directory), published=published)
                break
            if self.ingest_file(path) is not None:
                published += 1

        logger.info("mail_load_finished", directory=str(directory), files=len(files), published=published)
        return published

    # ------------------------------------------------------------------
    # Per-file procedure
    # ------------------------------------------------------------------

    def ingest_file(self, path: str | os.PathLike[str]) -> MailRecord | None:
        """Read, parse and publish one file.

        Returns the published record, or ``None`` if the file could not be
        read or disappeared before publication (both reported on ``errors``).
        """
        path = Path(path).absolute()
        logger.info("mail_loading", file_name=path.name)
        try:
            raw_bytes = path.read_bytes()
        except OSError as exc:
            logger.warning("mail_file_unreadable", path=str(path), error=str(exc))
            self._report_file_error(path, exc.strerror or str(exc))
            return None

        draft = self._parser.parse(raw_bytes, path.name)
        logger.debug(
            "mail_parsed",
            subject=draft.subject,
            from_address=draft.from_address,
            to_address=draft.to_address,
        )

        with self._lock:
            if not path.exists():
                logger.warning("mail_file_vanished", path=str(path))
                self._report_file_error(path, "deleted before publication")
                return None
            record = draft.model_copy(update={"source_path": str(path)})
            self._published.add(str(path))
            self.records.publish(record)
        return record

    def _report_file_error(self, path: Path, reason: str) -> None:
        with self._lock:
            self.errors.publish(
                IngestionError(path=str(path), kind=IngestionErrorKind.FILE, reason=reason)
            )
