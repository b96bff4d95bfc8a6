"""Typed renderer models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

BYTES_PER_PIXEL = 4

Buffer = Union[bytes, bytearray, memoryview]


class EncodeError(ValueError):
    """Raised when a frame view does not describe a drawable BGRX plane."""


@dataclass(frozen=True)
class FrameView:
    """Read-only plane description plus the bytes it describes."""

    buffer: Buffer
    width: int
    height: int
    stride: int

    def validate(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise EncodeError(f"Frame dimensions must be positive, got {self.width}x{self.height}")
        if self.height % 2 != 0:
            raise EncodeError(f"Frame height must be even, got {self.height}")
        if self.stride < self.width * BYTES_PER_PIXEL:
            raise EncodeError(f"Stride {self.stride} is smaller than one row of {self.width} pixels")
        needed = self.stride * (self.height - 1) + self.width * BYTES_PER_PIXEL
        if len(self.buffer) < needed:
            raise EncodeError(f"Buffer holds {len(self.buffer)} bytes, plane needs {needed}")
