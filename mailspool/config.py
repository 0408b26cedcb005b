"""Mailspool configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from .parser import PREAMBLE_LINES


class MailSpoolConfig(BaseSettings):
    """Spool directory, listener address and runtime settings.

    Every field can be overridden with a ``MAILSPOOL_``-prefixed env var.
    """

    model_config = {"env_prefix": "MAILSPOOL_"}

    save_path: str = Field(
        default="received-emails",
        description="Directory the capture listener writes message files to",
    )
    host: str = Field(
        default="",
        description="Address the capture listener binds to (empty for all interfaces)",
    )
    port: int = Field(default=25, description="Port the capture listener binds to")
    preamble_lines: int = Field(
        default=PREAMBLE_LINES,
        ge=0,
        description="Listener-inserted lines dropped from the top of each file",
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between directory polls while watching",
    )
    watch_requires_capture: bool = Field(
        default=False,
        description="Only allow watching while the capture listener is running",
    )
    capture_on_start: bool = Field(
        default=False,
        description="Start the capture listener on host/port right after the initial load",
    )
    watch_on_start: bool = Field(
        default=False,
        description="Start watching the spool directory right after the initial load",
    )
    health_port: int = Field(default=8080, description="Port for the health/status endpoints")
    log_json: bool = Field(default=True, description="Emit JSON log lines instead of console output")
    log_level: str = Field(default="INFO", description="Root log level")
