"""Message-file parser: raw bytes from the spool directory → draft MailRecord."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from .dates import resolve_received_date
from .headers import extract_headers, split_lines
from .models import MailRecord

# Lines the capture listener writes ahead of the actual message.
PREAMBLE_LINES = 4


class MailFileParser:
    """Stateless parser for one spooled message file.

    Never raises on content: undecodable bytes are replaced, missing
    headers become empty strings and the date falls back as described in
    :func:`~mailspool.dates.resolve_received_date`.
    """

    def __init__(
        self,
        *,
        preamble_lines: int = PREAMBLE_LINES,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._preamble_lines = preamble_lines
        self._clock = clock

    def strip_preamble(self, text: str) -> str:
        """Drop the listener preamble and rejoin the rest with ``\\n``."""
        return "\n".join(split_lines(text)[self._preamble_lines:])

    def parse(self, raw_bytes: bytes, file_name: str) -> MailRecord:
        content = self.strip_preamble(raw_bytes.decode("utf-8", errors="replace"))
        headers = extract_headers(content)

        return MailRecord(
            from_address=headers["From"],
            to_address=headers["To"],
            subject=headers["Subject"],
            received_at=resolve_received_date(headers["Date"], file_name, clock=self._clock),
            raw_content=content,
        )
