"""Value types published by the ingestor and the control coordinator."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MailRecord(BaseModel):
    """One parsed message file.

    Frozen: subscribers share the same instance and must not mutate it.
    ``source_path`` is ``None`` only on the draft built by the parser; the
    ingestor fills it in while holding its lock, right before publishing.
    """

    model_config = ConfigDict(frozen=True)

    from_address: str = Field(default="", description="Value of the From header, empty if absent")
    to_address: str = Field(default="", description="Value of the To header, empty if absent")
    subject: str = Field(default="", description="Value of the Subject header, empty if absent")
    received_at: datetime = Field(description="Resolved timestamp (header, filename, or now)")
    raw_content: str = Field(
        default="",
        description="Decoded file text without the listener preamble lines",
    )
    source_path: str | None = Field(
        default=None,
        description="Absolute path of the backing file at publication time",
    )


class IngestionErrorKind(str, Enum):
    """Whether a single file or the whole directory failed."""

    FILE = "file"
    DIRECTORY = "directory"


class IngestionError(BaseModel):
    """Notification that a file or directory could not be processed.

    This is an event value, not an exception; the directory-level
    counterpart is also raised as :class:`~mailspool.errors.DirectoryLoadError`.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="File or directory that failed")
    kind: IngestionErrorKind = Field(description="Scope of the failure")
    reason: str = Field(description="Human-readable cause")
    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the failure was observed (UTC)",
    )


class ControlPhase(str, Enum):
    """Combined capture/watch phase."""

    IDLE = "idle"
    CAPTURING = "capturing"
    WATCHING = "watching"
    CAPTURING_AND_WATCHING = "capturing_and_watching"


class ControlState(BaseModel):
    """Immutable snapshot of the capture and watch controls.

    The coordinator swaps whole snapshots, so reading ``state`` once and
    then inspecting its fields is consistent without locking.
    """

    model_config = ConfigDict(frozen=True)

    capturing: bool = False
    watching: bool = False
    host: str | None = None
    port: int | None = None
    watch_available: bool = True

    @property
    def phase(self) -> ControlPhase:
        if self.capturing and self.watching:
            return ControlPhase.CAPTURING_AND_WATCHING
        if self.capturing:
            return ControlPhase.CAPTURING
        if self.watching:
            return ControlPhase.WATCHING
        return ControlPhase.IDLE

    @property
    def port_input_enabled(self) -> bool:
        return not self.capturing
