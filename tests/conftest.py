"""Shared test fixtures for the mailspool test suite."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from mailspool.config import MailSpoolConfig
from mailspool.ingestor import MailIngestor
from mailspool.models import IngestionError, MailRecord

# What the capture listener writes ahead of each message.
PREAMBLE = [
    "Received: from client.example.com (localhost [127.0.0.1])",
    "        by fakehost with SMTP",
    "        for <recipient@example.com>;",
    "        Mon, 1 Jan 2024 10:30:15 +0000 (UTC)",
]


def build_message(
    *,
    subject: str | None = "Test Subject",
    from_addr: str | None = "sender@example.com",
    to_addr: str | None = "recipient@example.com",
    date: str | None = "Mon, 01 Jan 2024 10:30:15 +0000",
    body: str = "Hello, World!",
    preamble: list[str] | None = None,
) -> str:
    """Build the text of a spooled message file (preamble + headers + body)."""
    lines = list(PREAMBLE if preamble is None else preamble)
    if from_addr is not None:
        lines.append(f"From: {from_addr}")
    if to_addr is not None:
        lines.append(f"To: {to_addr}")
    if subject is not None:
        lines.append(f"Subject: {subject}")
    if date is not None:
        lines.append(f"Date: {date}")
    lines.append("")
    lines.append(body)
    return "\n".join(lines) + "\n"


@pytest.fixture
def spool_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "received-emails"
    directory.mkdir()
    return directory


@pytest.fixture
def write_message(spool_dir: Path) -> Callable[..., Path]:
    """Factory writing a message file into ``spool_dir``."""

    def _write(name: str = "010124103015123.eml", directory: Path | None = None, **overrides) -> Path:
        path = (directory or spool_dir) / name
        path.write_text(build_message(**overrides), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def ingestor() -> MailIngestor:
    return MailIngestor()


class Collector:
    """Subscriber that remembers everything it was sent."""

    def __init__(self) -> None:
        self.records: list[MailRecord] = []
        self.errors: list[IngestionError] = []

    def on_record(self, record: MailRecord) -> None:
        self.records.append(record)

    def on_error(self, error: IngestionError) -> None:
        self.errors.append(error)


@pytest.fixture
def collector(ingestor: MailIngestor) -> Collector:
    c = Collector()
    ingestor.subscribe(c.on_record, on_error=c.on_error)
    return c


@pytest.fixture
def config(spool_dir: Path) -> MailSpoolConfig:
    return MailSpoolConfig(
        save_path=str(spool_dir),
        host="127.0.0.1",
        port=2525,
        poll_interval_seconds=0.05,
        health_port=18080,
        log_json=False,
    )
