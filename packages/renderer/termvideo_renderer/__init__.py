"""Renderer package turning BGRX frames into terminal escape sequences."""

from .ansi import CURSOR_HOME, ROW_END, UPPER_HALF_BLOCK, encode_frame
from .models import BYTES_PER_PIXEL, EncodeError, FrameView
from .patterns import PATTERN_NAMES, build_test_pattern, image_to_bgrx

__all__ = [
    "BYTES_PER_PIXEL",
    "CURSOR_HOME",
    "EncodeError",
    "FrameView",
    "PATTERN_NAMES",
    "ROW_END",
    "UPPER_HALF_BLOCK",
    "build_test_pattern",
    "encode_frame",
    "image_to_bgrx",
]
