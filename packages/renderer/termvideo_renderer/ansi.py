"""Half-block truecolor encoding of BGRX frames."""

from __future__ import annotations

from .models import BYTES_PER_PIXEL, FrameView

CURSOR_HOME = "\x1b[H"
ROW_END = "\x1b[0m\n"
UPPER_HALF_BLOCK = "▀"

_CELL = "\x1b[38;2;{};{};{}m\x1b[48;2;{};{};{}m" + UPPER_HALF_BLOCK


def encode_frame(view: FrameView) -> bytes:
    """Encode a frame as one full-screen redraw.

    Each terminal cell packs two vertically adjacent pixels: the upper pixel
    becomes the foreground of U+2580, the lower one the background. The
    output starts at the home position and has no trailing newline, so it
    overwrites the previous frame cell for cell without scrolling.
    """
    view.validate()
    data = view.buffer
    row_bytes = view.width * BYTES_PER_PIXEL
    parts: list[str] = [CURSOR_HOME]

    for y in range(0, view.height, 2):
        top_start = y * view.stride
        bottom_start = top_start + view.stride
        top = data[top_start : top_start + row_bytes]
        bottom = data[bottom_start : bottom_start + row_bytes]

        # BGRX: offsets 2, 1, 0 are R, G, B; X is skipped.
        for r0, g0, b0, r1, g1, b1 in zip(top[2::4], top[1::4], top[0::4], bottom[2::4], bottom[1::4], bottom[0::4]):
            parts.append(_CELL.format(r0, g0, b0, r1, g1, b1))
        parts.append(ROW_END)

    payload = "".join(parts)
    return payload[:-1].encode("utf-8")
