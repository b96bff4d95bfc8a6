"""Cursor position report query and parsing."""

from __future__ import annotations

import re
import time
from typing import Callable

from .models import GeometryError, TerminalGeometry

# Park the cursor at the far corner, then ask where it ended up.
CURSOR_QUERY = b"\x1b[9999;9999H\x1b[6n"
REPORT_TERMINATOR = b"R"
RESPONSE_LIMIT = 32

_REPORT_RE = re.compile(rb"(?:\x1b\[)?(\d{1,5});(\d{1,5})R")
_REPORT_TAIL_RE = re.compile(rb"\x1b\[\d{1,5};\d{1,5}R\Z")


def parse_cursor_report(data: bytes | str) -> TerminalGeometry:
    """Parse ``ESC[<rows>;<cols>R`` into a geometry.

    The ``ESC[`` prefix is optional. Anything else, including zero sizes,
    raises :class:`GeometryError`.
    """
    raw = data.encode("utf-8", "replace") if isinstance(data, str) else bytes(data)
    match = _REPORT_RE.fullmatch(raw)
    if match is None:
        raise GeometryError(f"Malformed cursor position report: {raw!r}")
    rows, columns = int(match.group(1)), int(match.group(2))
    if rows < 1 or columns < 1:
        raise GeometryError(f"Cursor position report has an empty grid: {raw!r}")
    return TerminalGeometry(columns=columns, rows=rows)


def read_cursor_report(
    read_byte: Callable[[float], bytes],
    timeout_s: float = 1.0,
    limit: int = RESPONSE_LIMIT,
) -> bytes:
    """Collect bytes until they end in a complete ``ESC[<rows>;<cols>R`` report.

    ``read_byte(remaining_s)`` returns one byte, or ``b""`` when nothing
    arrived in time. Keystrokes typed before the report, a stray ``R``
    included, are dropped.
    """
    deadline = time.monotonic() + timeout_s
    data = bytearray()
    while len(data) < limit:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise GeometryError("Timed out waiting for the cursor position report")
        chunk = read_byte(remaining)
        if not chunk:
            raise GeometryError("Terminal did not answer the cursor position query")
        data += chunk
        if data.endswith(REPORT_TERMINATOR):
            match = _REPORT_TAIL_RE.search(data)
            if match is not None:
                return bytes(data[match.start() :])
    raise GeometryError(f"No cursor position report within {limit} bytes")
