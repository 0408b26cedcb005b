"""Resolve a message timestamp: Date header, then file name, then now.

The capture listener names each file after its arrival time using the
``ddMMyyhhmmssSSS`` convention (e.g. ``010124103015123.eml``), which is
the fallback when the ``Date`` header is missing or malformed.
"""

from __future__ import annotations

import email.utils
import re
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

logger = structlog.get_logger()

_FILE_DATE = re.compile(r"^(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})(\d{3})")


def parse_mail_date(value: str) -> datetime | None:
    """Parse an RFC 2822 ``Date`` header value, or return ``None``.

    Named zones such as ``GMT`` and trailing comments such as ``(UTC)``
    are accepted.  A value without a zone offset is rejected.
    """
    try:
        parsed = email.utils.parsedate_to_datetime(value.strip())
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def _expand_two_digit_year(yy: int, today: datetime) -> int:
    # Window: up to 80 years back, 20 years ahead of today.
    year = today.year - today.year % 100 + yy
    if year > today.year + 20:
        year -= 100
    elif year <= today.year - 80:
        year += 100
    return year


def parse_file_date(file_name: str, *, now: datetime | None = None) -> datetime | None:
    """Decode a ``ddMMyyhhmmssSSS`` file-name prefix as local time.

    The hour field is read on a 24-hour clock (``12`` is noon, ``23`` is
    valid).  Anything after the first 15 digits (such as ``.eml``) is ignored.
    """
    match = _FILE_DATE.match(file_name)
    if match is None:
        return None
    day, month, yy, hour, minute, second, millis = (int(g) for g in match.groups())
    year = _expand_two_digit_year(yy, now or datetime.now())
    try:
        naive = datetime(year, month, day, hour, minute, second, millis * 1000)
    except ValueError:
        return None
    return naive.astimezone()


def resolve_received_date(
    date_header: str,
    file_name: str,
    *,
    clock: Callable[[], datetime] | None = None,
) -> datetime:
    """Return the first timestamp that can be resolved.

    Never raises: a failing stage is logged and the next one is tried,
    ending with the current time from *clock* (UTC now by default).
    """
    parsed = parse_mail_date(date_header)
    if parsed is not None:
        return parsed
    logger.info("mail_date_header_unparseable", date_header=date_header, file_name=file_name)

    parsed = parse_file_date(file_name)
    if parsed is not None:
        return parsed
    logger.info("mail_file_name_date_unparseable", file_name=file_name)

    logger.warning("mail_date_fallback_to_now", file_name=file_name)
    return clock() if clock is not None else datetime.now(UTC)
