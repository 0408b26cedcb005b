"""Mailspool — ingest captured mail-message files and coordinate capture/watch controls.

Public API re-exported here for convenience::

    from mailspool import MailIngestor, MailStore, ControlStateCoordinator
"""

from .config import MailSpoolConfig
from .coordinator import CaptureServer, ControlStateCoordinator, Watcher
from .dates import parse_file_date, parse_mail_date, resolve_received_date
from .errors import ControlError, ControlErrorKind, DirectoryLoadError
from .headers import extract_header, extract_headers
from .ingestor import MailIngestor
from .logging import setup_logging
from .models import (
    ControlPhase,
    ControlState,
    IngestionError,
    IngestionErrorKind,
    MailRecord,
)
from .notifier import Notifier
from .parser import MailFileParser
from .service import MailSpoolService
from .store import MailStore
from .watcher import DirectoryWatcher

__all__ = [
    "CaptureServer",
    "ControlError",
    "ControlErrorKind",
    "ControlPhase",
    "ControlState",
    "ControlStateCoordinator",
    "DirectoryLoadError",
    "DirectoryWatcher",
    "IngestionError",
    "IngestionErrorKind",
    "MailFileParser",
    "MailIngestor",
    "MailRecord",
    "MailSpoolConfig",
    "MailSpoolService",
    "MailStore",
    "Notifier",
    "Watcher",
    "extract_header",
    "extract_headers",
    "parse_file_date",
    "parse_mail_date",
    "resolve_received_date",
    "setup_logging",
]
