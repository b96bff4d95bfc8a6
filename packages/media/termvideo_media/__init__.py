"""Media package: playback engines and the pixel surface they fill."""

from .models import (
    FrameSource,
    FrameTransferError,
    MediaError,
    PlaybackState,
    SoftwareFrame,
    SurfaceError,
    SurfaceLockError,
    VideoSurface,
)
from .player import PATTERN_SCHEME, AvMediaPlayer, PatternPlayer, PlaybackEngine, open_source
from .surface import FrameLock, PixelSurface

__all__ = [
    "AvMediaPlayer",
    "FrameLock",
    "FrameSource",
    "FrameTransferError",
    "MediaError",
    "PATTERN_SCHEME",
    "PatternPlayer",
    "PixelSurface",
    "PlaybackEngine",
    "PlaybackState",
    "SoftwareFrame",
    "SurfaceError",
    "SurfaceLockError",
    "VideoSurface",
    "open_source",
]
