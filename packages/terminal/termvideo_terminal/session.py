"""Terminal display-mode guard and frame output stream."""

from __future__ import annotations

import atexit
import logging
import os
import select
import signal
import sys
import termios
import threading
import tty
from contextlib import contextmanager
from typing import Any, BinaryIO, Iterator

from .geometry import CURSOR_QUERY, RESPONSE_LIMIT, parse_cursor_report, read_cursor_report
from .models import GeometryError, SessionState, TerminalGeometry

ENTER_ALT_SCREEN = b"\x1b[?1049h"
LEAVE_ALT_SCREEN = b"\x1b[?1049l"
HIDE_CURSOR = b"\x1b[?25l"
SHOW_CURSOR = b"\x1b[?25h"
CLEAR_SCREEN = b"\x1b[2J"

# SIGINT is left alone so Ctrl-C arrives as KeyboardInterrupt.
_TERMINATION_SIGNALS = tuple(
    sig for sig in (getattr(signal, name, None) for name in ("SIGTERM", "SIGHUP", "SIGQUIT")) if sig is not None
)

logger = logging.getLogger("termvideo.terminal")


class TerminalSession:
    """Owns the process-wide terminal mode for one playback session.

    ``enter()`` switches to the alternate screen with the cursor hidden and
    stdin in cbreak mode. ``restore()`` undoes all of it exactly once, from
    any thread, and is wired to interpreter exit and termination signals.
    After restoration frame writes are discarded.
    """

    def __init__(
        self,
        stdin_fd: int | None,
        stdout: BinaryIO,
        query_timeout_ms: int = 1000,
        response_limit: int = RESPONSE_LIMIT,
        install_signal_handlers: bool = True,
    ) -> None:
        self._stdin_fd = stdin_fd
        self._stdout = stdout
        self.query_timeout_ms = query_timeout_ms
        self.response_limit = response_limit
        self._install_signals = install_signal_handlers

        self._lock = threading.Lock()
        self._state = SessionState.CREATED
        self._saved_termios: list[Any] | None = None
        self._previous_handlers: dict[int, Any] = {}

    @classmethod
    def for_process(cls, **kwargs: Any) -> "TerminalSession":
        return cls(stdin_fd=sys.stdin.fileno(), stdout=sys.stdout.buffer, **kwargs)

    @property
    def state(self) -> SessionState:
        return self._state

    def _stdin_is_tty(self) -> bool:
        return self._stdin_fd is not None and os.isatty(self._stdin_fd)

    def _write_raw(self, payload: bytes) -> None:
        self._stdout.write(payload)
        self._stdout.flush()

    def _read_byte(self, timeout_s: float) -> bytes:
        ready, _, _ = select.select([self._stdin_fd], [], [], timeout_s)
        if not ready:
            return b""
        return os.read(self._stdin_fd, 1)

    @contextmanager
    def _cbreak(self) -> Iterator[None]:
        saved = termios.tcgetattr(self._stdin_fd)
        tty.setcbreak(self._stdin_fd)
        try:
            yield
        finally:
            termios.tcsetattr(self._stdin_fd, termios.TCSADRAIN, saved)

    def query_geometry(self) -> TerminalGeometry:
        if not self._stdin_is_tty():
            raise GeometryError("Standard input is not a terminal; cannot query its size")
        try:
            with self._cbreak():
                self._write_raw(CURSOR_QUERY)
                report = read_cursor_report(
                    self._read_byte,
                    timeout_s=self.query_timeout_ms / 1000,
                    limit=self.response_limit,
                )
        except (OSError, termios.error) as exc:
            raise GeometryError(f"Cursor position query failed: {exc}") from exc

        geometry = parse_cursor_report(report)
        logger.info(
            "terminal geometry %dx%d",
            geometry.columns,
            geometry.rows,
            extra={"event": "terminal_geometry"},
        )
        return geometry

    def enter(self) -> None:
        with self._lock:
            if self._state is not SessionState.CREATED:
                return
            self._state = SessionState.ACTIVE

        try:
            if self._stdin_is_tty():
                self._saved_termios = termios.tcgetattr(self._stdin_fd)
                tty.setcbreak(self._stdin_fd)
            self._register_signal_handlers()
            atexit.register(self.restore)
            self._write_raw(ENTER_ALT_SCREEN + HIDE_CURSOR + CLEAR_SCREEN)
        except BaseException:
            self.restore()
            raise
        logger.info("entered alternate screen", extra={"event": "terminal_enter"})

    def restore(self) -> None:
        with self._lock:
            if self._state is not SessionState.ACTIVE:
                return
            # Previous handlers go back first; _on_signal must not fire mid-teardown.
            self._restore_signal_handlers()
            try:
                try:
                    self._write_raw(SHOW_CURSOR + LEAVE_ALT_SCREEN)
                except (OSError, ValueError) as exc:
                    logger.warning("could not leave alternate screen: %s", exc, extra={"event": "terminal_restore_error"})
            finally:
                if self._saved_termios is not None:
                    try:
                        termios.tcsetattr(self._stdin_fd, termios.TCSADRAIN, self._saved_termios)
                    except (OSError, termios.error) as exc:
                        logger.warning("could not restore tty attributes: %s", exc, extra={"event": "terminal_restore_error"})
                    self._saved_termios = None
            # An interrupted teardown stays ACTIVE and is retried by the next call.
            self._state = SessionState.RESTORED

        atexit.unregister(self.restore)
        logger.info("terminal restored", extra={"event": "terminal_restore"})

    def write(self, payload: bytes) -> bool:
        """Write one encoded frame; returns False once the session is restored."""
        with self._lock:
            if self._state is SessionState.RESTORED:
                return False
            self._write_raw(payload)
            return True

    def wait_for_key(self) -> bytes:
        if self._stdin_fd is None:
            raise RuntimeError("TerminalSession has no input stream")
        return os.read(self._stdin_fd, 1)

    def _on_signal(self, signum: int, _frame: Any) -> None:
        logger.info("received signal %d", signum, extra={"event": "terminal_signal"})
        raise SystemExit(128 + signum)

    def _register_signal_handlers(self) -> None:
        if not self._install_signals or threading.current_thread() is not threading.main_thread():
            return
        for sig in _TERMINATION_SIGNALS:
            self._previous_handlers[sig] = signal.signal(sig, self._on_signal)

    def _restore_signal_handlers(self) -> None:
        if not self._previous_handlers or threading.current_thread() is not threading.main_thread():
            return
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers.clear()

    def __enter__(self) -> "TerminalSession":
        self.enter()
        return self

    def __exit__(self, *_exc: object) -> None:
        self.restore()
