"""MailStore — the set of currently known messages and their deletion."""

from __future__ import annotations

import os

import structlog

from .ingestor import MailIngestor
from .models import MailRecord
from .notifier import Notifier

logger = structlog.get_logger()


class MailStore:
    """Keeps every published record, keyed by its backing file.

    Adding (from the ingestor) and deleting (from a front-end) both go
    through the ingestor's lock, so a record is never listed for a file
    that a concurrent delete has already removed.
    """

    def __init__(self, ingestor: MailIngestor) -> None:
        self._ingestor = ingestor
        self._lock = ingestor.lock
        self._records: dict[str, MailRecord] = {}
        self.removed: Notifier[MailRecord] = Notifier("mail_removed")
        self._unsubscribe = ingestor.subscribe(self.add)

    def add(self, record: MailRecord) -> None:
        if record.source_path is None:
            raise ValueError("only published records (with source_path) can be stored")
        with self._lock:
            self._records[record.source_path] = record

    def get(self, source_path: str) -> MailRecord | None:
        with self._lock:
            return self._records.get(source_path)

    def records(self) -> list[MailRecord]:
        """Snapshot of known records, in publication order."""
        with self._lock:
            return list(self._records.values())

    def delete(self, source_path: str) -> bool:
        """Delete one message file and forget its record.

        Returns ``False`` if no record is known for *source_path*.  A file
        that is already gone from disk is not an error.
        """
        with self._lock:
            record = self._records.get(source_path)
            if record is None:
                return False
            self._remove_file(source_path)
            self._ingestor.forget(source_path)
            del self._records[source_path]
            self.removed.publish(record)
        logger.info("mail_deleted", path=source_path)
        return True

    def clear(self) -> int:
        """Delete every known message file; returns how many were removed."""
        with self._lock:
            records = list(self._records.values())
            for record in records:
                assert record.source_path is not None
                self._remove_file(record.source_path)
                self._ingestor.forget(record.source_path)
                del self._records[record.source_path]
                self.removed.publish(record)
        logger.info("mail_store_cleared", removed=len(records))
        return len(records)

    def close(self) -> None:
        """Stop receiving records from the ingestor."""
        self._unsubscribe()

    def _remove_file(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("mail_file_already_gone", path=path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
