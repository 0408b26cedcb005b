"""Line-oriented header lookup on raw message text.

Deliberately not ``email.parser``: a header matches only when a line is
exactly ``"<Field>: <value>"``.  The field name is case-sensitive, there
is exactly one space after the colon, and continuation lines are not
unfolded.  Absence is an empty string, never an error.
"""

from __future__ import annotations

import re

MAIL_HEADER_FIELDS = ("From", "To", "Subject", "Date")

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_lines(content: str) -> list[str]:
    """Split on ``\\n``, ``\\r\\n`` and ``\\r`` only (unlike ``str.splitlines``)."""
    return _LINE_BREAK.split(content)


def extract_header(field_name: str, content: str) -> str:
    """Return the value of the first ``field_name`` line in *content*, or ``""``."""
    prefix = f"{field_name}: "
    for line in split_lines(content):
        if line.startswith(prefix):
            return line[len(prefix):]
    return ""


def extract_headers(content: str, fields: tuple[str, ...] = MAIL_HEADER_FIELDS) -> dict[str, str]:
    """Look up several fields at once; missing fields map to ``""``."""
    return {name: extract_header(name, content) for name in fields}
