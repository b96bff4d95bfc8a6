"""Deterministic test patterns for checking truecolor output without a video."""

from __future__ import annotations

import numpy as np
from PIL import Image, ImageDraw

PATTERN_NAMES = (
    "black",
    "white",
    "red",
    "green",
    "blue",
    "quadrants",
    "h-gradient",
    "v-gradient",
    "checkerboard",
)

_SOLIDS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 255, 0),
    "blue": (0, 0, 255),
}


def build_test_pattern(name: str, width: int, height: int) -> Image.Image:
    if width <= 0 or height <= 0:
        raise ValueError(f"Pattern size must be positive, got {width}x{height}")

    if name in _SOLIDS:
        return Image.new("RGB", (width, height), _SOLIDS[name])

    if name == "quadrants":
        img = Image.new("RGB", (width, height), (255, 255, 255))
        draw = ImageDraw.Draw(img)
        half_w, half_h = width // 2, height // 2
        if half_w and half_h:
            draw.rectangle((0, 0, half_w - 1, half_h - 1), fill=(255, 0, 0))
            draw.rectangle((half_w, 0, width - 1, half_h - 1), fill=(0, 255, 0))
            draw.rectangle((0, half_h, half_w - 1, height - 1), fill=(0, 0, 255))
        return img

    if name in ("h-gradient", "v-gradient"):
        # linear_gradient is a 256x256 top-to-bottom ramp.
        ramp = Image.linear_gradient("L")
        if name == "h-gradient":
            ramp = ramp.transpose(Image.Transpose.ROTATE_90)
        return ramp.resize((width, height), Image.Resampling.BILINEAR).convert("RGB")

    if name == "checkerboard":
        cell = max(1, min(width, height) // 8)
        img = Image.new("RGB", (width, height), (0, 0, 0))
        draw = ImageDraw.Draw(img)
        for y in range(0, height, cell):
            for x in range(0, width, cell):
                if (x // cell + y // cell) % 2 == 0:
                    draw.rectangle((x, y, x + cell - 1, y + cell - 1), fill=(255, 255, 255))
        return img

    raise ValueError(f"Unknown pattern: {name}")


def image_to_bgrx(image: Image.Image) -> np.ndarray:
    """Convert a Pillow image to a packed (height, width, 4) BGRX array."""
    rgb = np.asarray(image.convert("RGB"), dtype=np.uint8)
    out = np.zeros((rgb.shape[0], rgb.shape[1], 4), dtype=np.uint8)
    out[..., 0] = rgb[..., 2]
    out[..., 1] = rgb[..., 1]
    out[..., 2] = rgb[..., 0]
    return out
