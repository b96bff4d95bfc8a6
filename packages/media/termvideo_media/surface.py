"""Double-buffered frame transfer from the engine surface to CPU memory."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

import numpy as np
from termvideo_renderer.models import FrameView

from .models import (
    BYTES_PER_PIXEL,
    FrameSource,
    FrameTransferError,
    SoftwareFrame,
    SurfaceError,
    SurfaceLockError,
    VideoSurface,
)

logger = logging.getLogger("termvideo.media")


class FrameLock:
    """Scoped read access to the software frame.

    Use as a context manager; the view is unusable after the scope ends and
    the next copy may only start once the lock is released.
    """

    def __init__(self, frame: SoftwareFrame, release: Callable[[], None]) -> None:
        self._view: FrameView | None = FrameView(
            buffer=memoryview(frame.data).toreadonly(),
            width=frame.width,
            height=frame.height,
            stride=frame.stride,
        )
        self._release = release

    @property
    def view(self) -> FrameView:
        if self._view is None:
            raise SurfaceLockError("Frame lock has already been released")
        return self._view

    @property
    def released(self) -> bool:
        return self._view is None

    def release(self) -> None:
        if self._view is None:
            return
        self._view = None
        self._release()

    def __enter__(self) -> FrameView:
        return self.view

    def __exit__(self, *_exc: object) -> None:
        self.release()


class PixelSurface:
    """Owns the surface target and the software frame plus the copy between them.

    ``copy_frame`` moves the source's current frame into the target on the
    caller's thread, then transfers target rows into the software frame on a
    dedicated worker. The returned future resolves to a :class:`FrameLock`.
    """

    def __init__(self, width: int, height: int, stride_align: int = 64) -> None:
        try:
            self.target = VideoSurface.allocate(width, height)
            self.frame = SoftwareFrame.allocate(width, height, stride_align)
        except (ValueError, MemoryError) as exc:
            raise SurfaceError(f"Cannot allocate {width}x{height} frame buffers: {exc}") from exc

        self._buffer_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="termvideo-copy")
        self.copies = 0
        self.failures = 0

    @property
    def locked(self) -> bool:
        return self._buffer_lock.locked()

    def copy_frame(self, source: FrameSource) -> Future[FrameLock]:
        if not self._buffer_lock.acquire(blocking=False):
            raise SurfaceLockError("Software frame is still locked; release the previous FrameLock first")

        try:
            source.copy_frame_to_surface(self.target)
            return self._executor.submit(self._transfer)
        except FrameTransferError:
            self._fail()
            raise
        except Exception as exc:
            self._fail()
            raise FrameTransferError(f"Frame copy could not start: {exc}") from exc

    def _transfer(self) -> FrameLock:
        try:
            rows = self.frame.rows()[:, : self.frame.width * BYTES_PER_PIXEL]
            np.copyto(rows, self.target.pixels.reshape(self.target.height, -1))
        except Exception as exc:
            self._fail()
            raise FrameTransferError(f"Surface transfer failed: {exc}") from exc
        self.copies += 1
        return FrameLock(self.frame, self._buffer_lock.release)

    def _fail(self) -> None:
        self.failures += 1
        self._buffer_lock.release()

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        logger.info(
            "pixel surface closed copies=%d failures=%d",
            self.copies,
            self.failures,
            extra={"event": "surface_closed"},
        )
