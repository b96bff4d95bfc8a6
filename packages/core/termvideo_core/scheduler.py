"""Render scheduling: one frame in flight, drop on busy, never queue."""

from __future__ import annotations

import dataclasses
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from termvideo_media import FrameSource, PixelSurface, SurfaceLockError
from termvideo_media.surface import FrameLock
from termvideo_renderer import FrameView, encode_frame

from .logging_setup import get_logger


class RenderState(str, Enum):
    IDLE = "Idle"
    COPY_REQUESTED = "CopyRequested"
    COPYING = "Copying"
    ENCODING = "Encoding"
    FLUSHING = "Flushing"
    CLOSED = "Closed"


@dataclass
class RenderStats:
    notifications: int = 0
    rendered: int = 0
    dropped: int = 0
    failed: int = 0
    suppressed: int = 0
    bytes_written: int = 0
    fps: float = 0.0
    last_error: str | None = None


class RenderScheduler:
    """Drives copy, encode and write for each frame-available notification.

    The busy gate is a lock taken with a non-blocking acquire, so checking
    and claiming it is one atomic step. It is claimed on the notifying
    thread before any buffer access and released on the copy worker once
    the write has finished or the cycle failed. Notifications that find it
    taken are counted and discarded.
    """

    def __init__(
        self,
        source: FrameSource,
        surface: PixelSurface,
        write: Callable[[bytes], Any],
        encode: Callable[[FrameView], bytes] = encode_frame,
    ) -> None:
        self._source = source
        self._surface = surface
        self._write = write
        self._encode = encode

        self._busy = threading.Lock()
        self._state_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._state = RenderState.IDLE
        self._stats = RenderStats()
        self._closed = False
        self._gate_held = False
        self._last_flush: float | None = None
        self._logger = get_logger().getChild("scheduler")

    @property
    def state(self) -> RenderState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    @property
    def stats(self) -> RenderStats:
        with self._stats_lock:
            return dataclasses.replace(self._stats)

    def _set_state(self, state: RenderState, expected: RenderState | None = None) -> None:
        with self._state_lock:
            if expected is None or self._state is expected:
                self._state = state

    def on_frame_available(self) -> bool:
        """Start a render cycle; returns False when the notification was dropped."""
        with self._stats_lock:
            self._stats.notifications += 1

        if not self._busy.acquire(blocking=False):
            with self._stats_lock:
                self._stats.dropped += 1
            return False
        if self._closed:
            self._busy.release()
            with self._stats_lock:
                self._stats.dropped += 1
            return False

        self._set_state(RenderState.COPY_REQUESTED)
        try:
            future = self._surface.copy_frame(self._source)
        except SurfaceLockError as exc:
            self._finish("copy", exc)
            raise
        except Exception as exc:
            self._finish("copy", exc)
            return True

        self._set_state(RenderState.COPYING, expected=RenderState.COPY_REQUESTED)
        future.add_done_callback(self._on_copy_complete)
        return True

    def _on_copy_complete(self, future: Future[FrameLock]) -> None:
        try:
            frame_lock = future.result()
        except Exception as exc:
            self._finish("copy", exc)
            return

        stage = "encode"
        try:
            self._set_state(RenderState.ENCODING)
            with frame_lock as view:
                payload = self._encode(view)

            stage = "write"
            self._set_state(RenderState.FLUSHING)
            accepted = self._write(payload)
        except Exception as exc:
            frame_lock.release()
            self._finish(stage, exc)
            return

        self._finish(written=0 if accepted is False else len(payload), suppressed=accepted is False)

    def _finish(
        self,
        stage: str | None = None,
        error: BaseException | None = None,
        written: int = 0,
        suppressed: bool = False,
    ) -> None:
        now = time.perf_counter()
        with self._stats_lock:
            if error is not None:
                self._stats.failed += 1
                self._stats.last_error = f"{stage}: {error}"
            elif suppressed:
                self._stats.suppressed += 1
            else:
                self._stats.rendered += 1
                self._stats.bytes_written += written
                if self._last_flush is not None:
                    fps = 1.0 / max(now - self._last_flush, 1e-9)
                    prev = self._stats.fps
                    self._stats.fps = fps if prev == 0 else (0.75 * prev + 0.25 * fps)
                self._last_flush = now

        self._set_state(RenderState.CLOSED if self._closed else RenderState.IDLE)
        self._busy.release()

        if error is not None:
            self._logger.warning(
                "frame skipped at %s: %s",
                stage,
                error,
                extra={"event": "frame_skipped"},
            )

    def shutdown(self, timeout: float = 1.0) -> bool:
        """Wait for the in-flight cycle and refuse further ones.

        Returns False if the running cycle did not finish within ``timeout``;
        it still completes later, but no new cycle starts. Calling it again
        after the gate has been taken returns True at once.
        """
        if self._gate_held:
            return True
        self._closed = True
        acquired = self._busy.acquire(timeout=timeout)
        if acquired:
            self._gate_held = True
            self._set_state(RenderState.CLOSED)

        stats = self.stats
        self._logger.info(
            "scheduler closed rendered=%d dropped=%d failed=%d fps=%.1f",
            stats.rendered,
            stats.dropped,
            stats.failed,
            stats.fps,
            extra={"event": "scheduler_closed"},
        )
        return acquired
