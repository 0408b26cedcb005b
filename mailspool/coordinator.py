"""ControlStateCoordinator — keeps the Capture, Watch and PortInput controls consistent.

Capture is the external listener that writes message files; this module
only starts/stops it through :class:`CaptureServer` and tracks the result.
Watch follows the spool directory through :class:`Watcher`.  PortInput is
enabled exactly while Capture is stopped.

Phases and transitions::

    IDLE      --start_capture-->  CAPTURING
    CAPTURING --stop_capture--->  IDLE
    CAPTURING --toggle_watch--->  CAPTURING_AND_WATCHING  (and back)
    IDLE      --toggle_watch--->  WATCHING                (unless watch_requires_capture)

A refused transition raises :class:`ControlError`, is published on
``errors`` and leaves the state untouched.  A bind conflict is a plain
failure: nothing here can confirm that the process holding the port is
actually our listener.
"""

from __future__ import annotations

import errno
import socket
import threading
from collections.abc import Callable
from typing import NoReturn, Protocol

import structlog

from .errors import ControlError, ControlErrorKind
from .models import ControlState
from .notifier import Notifier

logger = structlog.get_logger()

MIN_PORT = 0
MAX_PORT = 65535


class CaptureServer(Protocol):
    """The external listener that writes message files."""

    def start(self, host: str, port: int) -> None: ...

    def stop(self) -> None: ...


class Watcher(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


def resolve_host(host: str) -> None:
    """Raise if *host* does not resolve.

    ``OSError`` for lookup failures; ``UnicodeError`` (a ``ValueError``) for
    names the IDNA codec rejects, such as a label over 63 characters.
    """
    socket.getaddrinfo(host, None)


class ControlStateCoordinator:
    """Single writer of the :class:`ControlState` snapshot."""

    def __init__(
        self,
        capture: CaptureServer | None,
        watcher: Watcher | None,
        *,
        watch_requires_capture: bool = False,
        host_resolver: Callable[[str], None] = resolve_host,
    ) -> None:
        self._capture = capture
        self._watcher = watcher
        self._watch_requires_capture = watch_requires_capture
        self._resolve_host = host_resolver
        self._transition_lock = threading.Lock()
        self._state = ControlState(watch_available=not watch_requires_capture)
        self.changes: Notifier[ControlState] = Notifier("control_state")
        self.errors: Notifier[ControlError] = Notifier("control_errors")

    @property
    def state(self) -> ControlState:
        return self._state

    @property
    def watch_requires_capture(self) -> bool:
        return self._watch_requires_capture

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_capture(self, host: str | None, port: str | int) -> ControlState:
        """Validate *host*/*port*, start the listener and enter CAPTURING."""
        with self._transition_lock:
            host = (host or "").strip()
            if self._state.capturing:
                self._fail(ControlErrorKind.INVALID_STATE, "capture is already running", host=host, port=port)

            port_number = self._parse_port(host, port)
            if host:
                try:
                    self._resolve_host(host)
                except (OSError, ValueError) as exc:
                    self._fail(ControlErrorKind.INVALID_HOST, f"cannot resolve host {host!r}: {exc}", host=host, port=port)

            if self._capture is None:
                self._fail(ControlErrorKind.UNKNOWN, "no capture listener is configured", host=host, port=port_number)
            try:
                self._capture.start(host, port_number)
            except ControlError as exc:
                self._fail(exc.kind, exc.message, host=host, port=port_number)
            except OSError as exc:
                if exc.errno == errno.EADDRINUSE:
                    self._fail(ControlErrorKind.BIND_PORT, f"port {port_number} is already in use", host=host, port=port_number)
                else:
                    self._fail(ControlErrorKind.UNKNOWN, str(exc), host=host, port=port_number)
            except Exception as exc:
                self._fail(ControlErrorKind.UNKNOWN, str(exc), host=host, port=port_number)

            logger.info("capture_started", host=host, port=port_number)
            return self._commit(capturing=True, host=host, port=port_number, watch_available=True)

    def stop_capture(self) -> ControlState:
        """Stop the listener and return to IDLE (or WATCHING)."""
        with self._transition_lock:
            if not self._state.capturing:
                self._fail(ControlErrorKind.INVALID_STATE, "capture is not running")
            assert self._capture is not None
            try:
                self._capture.stop()
            except Exception as exc:
                self._fail(ControlErrorKind.UNKNOWN, str(exc), host=self._state.host, port=self._state.port)

            watching = self._state.watching
            if watching and self._watch_requires_capture:
                self._stop_watcher()
                watching = False

            logger.info("capture_stopped", host=self._state.host, port=self._state.port)
            return self._commit(
                capturing=False,
                watching=watching,
                watch_available=not self._watch_requires_capture,
            )

    def toggle_watch(self) -> ControlState:
        """Start following the spool directory, or stop if already following."""
        with self._transition_lock:
            if self._state.watching:
                self._stop_watcher()
                logger.info("watch_disabled")
                return self._commit(watching=False)

            if not self._state.watch_available:
                self._fail(ControlErrorKind.INVALID_STATE, "watching requires an active capture")
            if self._watcher is None:
                self._fail(ControlErrorKind.UNKNOWN, "no directory watcher is configured")
            try:
                self._watcher.start()
            except Exception as exc:
                self._fail(ControlErrorKind.UNKNOWN, f"cannot watch directory: {exc}")

            logger.info("watch_enabled")
            return self._commit(watching=True)

    def shutdown(self) -> None:
        """Stop whatever is running; errors are logged, not raised."""
        state = self._state
        if state.watching:
            try:
                self.toggle_watch()
            except ControlError:
                logger.exception("shutdown_watch_stop_failed")
        if self._state.capturing:
            try:
                self.stop_capture()
            except ControlError:
                logger.exception("shutdown_capture_stop_failed")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _parse_port(self, host: str, port: str | int) -> int:
        try:
            port_number = int(str(port).strip())
        except ValueError:
            self._fail(ControlErrorKind.INVALID_PORT, f"invalid port {port!r}", host=host, port=port)
        if not MIN_PORT <= port_number <= MAX_PORT:
            self._fail(
                ControlErrorKind.OUT_OF_RANGE_PORT,
                f"port {port_number} is outside {MIN_PORT}-{MAX_PORT}",
                host=host,
                port=port_number,
            )
        return port_number

    def _stop_watcher(self) -> None:
        assert self._watcher is not None
        try:
            self._watcher.stop()
        except Exception as exc:
            self._fail(ControlErrorKind.UNKNOWN, f"cannot stop watching: {exc}")

    def _commit(self, **changes: object) -> ControlState:
        self._state = self._state.model_copy(update=changes)
        self.changes.publish(self._state)
        return self._state

    def _fail(
        self,
        kind: ControlErrorKind,
        message: str,
        *,
        host: str | None = None,
        port: str | int | None = None,
    ) -> NoReturn:
        error = ControlError(kind, message, host=host, port=port)
        logger.warning("control_transition_refused", kind=kind.value, reason=message, host=host, port=port)
        self.errors.publish(error)
        raise error
