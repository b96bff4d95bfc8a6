"""Typed models for frame buffers and playback state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np

BYTES_PER_PIXEL = 4


class MediaError(RuntimeError):
    """The media source cannot be opened or has nothing to play."""


class SurfaceError(RuntimeError):
    pass


class SurfaceLockError(SurfaceError):
    """The software frame was requested while a previous lock is still held."""


class FrameTransferError(SurfaceError):
    """Moving a frame into the surface or the software frame failed."""


class PlaybackState(str, Enum):
    IDLE = "Idle"
    PLAYING = "Playing"
    ENDED = "Ended"
    STOPPED = "Stopped"
    FAILED = "Failed"


@dataclass(eq=False)
class VideoSurface:
    """Engine-facing frame target, packed BGRX, fixed size."""

    width: int
    height: int
    pixels: np.ndarray

    @classmethod
    def allocate(cls, width: int, height: int) -> "VideoSurface":
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        return cls(width=width, height=height, pixels=np.zeros((height, width, BYTES_PER_PIXEL), dtype=np.uint8))


@dataclass(eq=False)
class SoftwareFrame:
    """CPU-side copy of the surface; rows are ``stride`` bytes apart."""

    width: int
    height: int
    stride: int
    data: np.ndarray

    @classmethod
    def allocate(cls, width: int, height: int, stride_align: int = 64) -> "SoftwareFrame":
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame size must be positive, got {width}x{height}")
        align = max(1, stride_align)
        stride = -(-width * BYTES_PER_PIXEL // align) * align
        return cls(width=width, height=height, stride=stride, data=np.zeros(stride * height, dtype=np.uint8))

    def rows(self) -> np.ndarray:
        return self.data.reshape(self.height, self.stride)


class FrameSource(Protocol):
    def copy_frame_to_surface(self, surface: VideoSurface) -> None: ...
