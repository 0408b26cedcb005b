"""Error types raised to callers of the ingestion and control operations."""

from __future__ import annotations

from enum import Enum


class ControlErrorKind(str, Enum):
    """Why a capture/watch control transition was refused."""

    INVALID_HOST = "invalid_host"
    INVALID_PORT = "invalid_port"
    OUT_OF_RANGE_PORT = "out_of_range_port"
    BIND_PORT = "bind_port"
    INVALID_STATE = "invalid_state"
    UNKNOWN = "unknown"


class ControlError(Exception):
    """A refused control transition.

    One exception type for every failure; ``kind`` discriminates, and
    ``host`` / ``port`` carry the offending input when there was one.
    The coordinator's state is unchanged whenever this is raised.
    """

    def __init__(
        self,
        kind: ControlErrorKind,
        message: str,
        *,
        host: str | None = None,
        port: str | int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.host = host
        self.port = port

    def __repr__(self) -> str:
        return f"ControlError(kind={self.kind.value!r}, message={self.message!r}, host={self.host!r}, port={self.port!r})"


class DirectoryLoadError(Exception):
    """The message directory could not be enumerated."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot load messages from {path}: {reason}")
        self.path = path
        self.reason = reason
