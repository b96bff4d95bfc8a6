"""Playback engines that pace decoded frames and announce them."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from typing import Any, Callable, Iterator

import av
import numpy as np
from av.error import FFmpegError
from termvideo_renderer.patterns import PATTERN_NAMES, build_test_pattern, image_to_bgrx

from .models import FrameTransferError, MediaError, PlaybackState, VideoSurface

PATTERN_SCHEME = "pattern:"

logger = logging.getLogger("termvideo.media")


class PlaybackEngine:
    """Base engine: a playback thread that releases frames at their presentation time.

    Subclasses yield ``(seconds, frame)`` pairs from ``_frames`` and convert
    a frame to packed BGRX in ``_to_bgrx``. Each released frame becomes the
    current frame and the frame-available handler is called on the playback
    thread.
    """

    def __init__(self, width: int, height: int, late_frame_ms: int = 250) -> None:
        self.width = width
        self.height = height
        self.late_frame_ms = late_frame_ms

        self._handler: Callable[[], object] | None = None
        self._frame_lock = threading.Lock()
        self._current: Any = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._state = PlaybackState.IDLE

        self.frames_dispatched = 0
        self.late_resyncs = 0

    @property
    def state(self) -> PlaybackState:
        return self._state

    def set_frame_available_handler(self, handler: Callable[[], object] | None) -> None:
        self._handler = handler

    def play(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._state = PlaybackState.PLAYING
        self._thread = threading.Thread(target=self._run, name="termvideo-playback", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        if self._state is PlaybackState.PLAYING:
            self._state = PlaybackState.STOPPED
        if thread is None or not thread.is_alive():
            self.close()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until playback finishes; returns False on timeout."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def close(self) -> None:
        pass

    def copy_frame_to_surface(self, surface: VideoSurface) -> None:
        with self._frame_lock:
            frame = self._current
        if frame is None:
            raise FrameTransferError("No frame has been decoded yet")

        try:
            pixels = self._to_bgrx(frame, surface.width, surface.height)
        except Exception as exc:
            raise FrameTransferError(f"Frame conversion failed: {exc}") from exc
        if pixels.shape != surface.pixels.shape or pixels.dtype != surface.pixels.dtype:
            raise FrameTransferError(
                f"Frame format mismatch: got {pixels.shape} {pixels.dtype}, surface is {surface.pixels.shape}"
            )
        np.copyto(surface.pixels, pixels)

    def _frames(self) -> Iterator[tuple[float, Any]]:
        raise NotImplementedError

    def _to_bgrx(self, frame: Any, width: int, height: int) -> np.ndarray:
        raise NotImplementedError

    def _run(self) -> None:
        late_s = self.late_frame_ms / 1000
        clock_start = time.perf_counter()
        try:
            for pts, frame in self._frames():
                if self._stop.is_set():
                    break
                delay = clock_start + pts - time.perf_counter()
                if delay > 0:
                    if self._stop.wait(delay):
                        break
                elif -delay > late_s:
                    # Decoding fell behind; follow the decoder instead of racing to catch up.
                    clock_start -= delay
                    self.late_resyncs += 1

                with self._frame_lock:
                    self._current = frame
                self._dispatch()
        except Exception:
            self._state = PlaybackState.FAILED
            logger.exception("playback failed", extra={"event": "playback_failed"})
            return

        self._state = PlaybackState.STOPPED if self._stop.is_set() else PlaybackState.ENDED
        logger.info(
            "playback %s frames=%d resyncs=%d",
            self._state.value.lower(),
            self.frames_dispatched,
            self.late_resyncs,
            extra={"event": "playback_finished"},
        )

    def _dispatch(self) -> None:
        self.frames_dispatched += 1
        handler = self._handler
        if handler is None:
            return
        try:
            handler()
        except Exception:
            logger.exception("frame-available handler failed", extra={"event": "handler_error"})


class AvMediaPlayer(PlaybackEngine):
    """Decodes the first video stream of any FFmpeg-readable path or URL with PyAV."""

    def __init__(self, source: str, width: int, height: int, late_frame_ms: int = 250) -> None:
        super().__init__(width, height, late_frame_ms=late_frame_ms)
        self.source = source
        try:
            self._container = av.open(source)
        except (FFmpegError, OSError) as exc:
            raise MediaError(f"Cannot open {source}: {exc}") from exc

        if not self._container.streams.video:
            self._container.close()
            raise MediaError(f"{source} has no video stream")

        self._stream = self._container.streams.video[0]
        self._stream.thread_type = "AUTO"
        rate = self._stream.average_rate
        self.frame_interval = float(1 / rate) if rate else 1 / 30
        logger.info(
            "opened %s codec=%s %dx%d",
            source,
            self._stream.codec_context.name,
            self._stream.codec_context.width,
            self._stream.codec_context.height,
            extra={"event": "media_opened"},
        )

    def _frames(self) -> Iterator[tuple[float, Any]]:
        first: float | None = None
        for index, frame in enumerate(self._container.decode(self._stream)):
            pts = frame.time if frame.time is not None else index * self.frame_interval
            if first is None:
                first = pts
            yield pts - first, frame

    def _to_bgrx(self, frame: Any, width: int, height: int) -> np.ndarray:
        return frame.reformat(width=width, height=height, format="bgra").to_ndarray()

    def close(self) -> None:
        self._container.close()


class PatternPlayer(PlaybackEngine):
    """Plays built-in test patterns; ``cycle`` shows each one for a second."""

    def __init__(self, name: str, width: int, height: int, fps: float = 10.0, late_frame_ms: int = 250) -> None:
        super().__init__(width, height, late_frame_ms=late_frame_ms)
        names = PATTERN_NAMES if name == "cycle" else (name,)
        if name not in PATTERN_NAMES and name != "cycle":
            raise MediaError(f"Unknown test pattern: {name!r}")
        self.name = name
        self.fps = max(1.0, float(fps))
        self._patterns = [image_to_bgrx(build_test_pattern(n, width, height)) for n in names]

    def _frames(self) -> Iterator[tuple[float, Any]]:
        hold = max(1, round(self.fps))
        for index in itertools.count():
            yield index / self.fps, self._patterns[(index // hold) % len(self._patterns)]

    def _to_bgrx(self, frame: Any, width: int, height: int) -> np.ndarray:
        return frame


def open_source(
    uri: str,
    width: int,
    height: int,
    late_frame_ms: int = 250,
    pattern_fps: float = 10.0,
) -> PlaybackEngine:
    if uri.startswith(PATTERN_SCHEME):
        return PatternPlayer(uri[len(PATTERN_SCHEME) :], width, height, fps=pattern_fps, late_frame_ms=late_frame_ms)
    return AvMediaPlayer(uri, width, height, late_frame_ms=late_frame_ms)
