"""Terminal geometry discovery and display-mode session handling."""

from .geometry import CURSOR_QUERY, parse_cursor_report, read_cursor_report
from .models import GeometryError, SessionState, TerminalGeometry
from .session import TerminalSession

__all__ = [
    "CURSOR_QUERY",
    "GeometryError",
    "SessionState",
    "TerminalGeometry",
    "TerminalSession",
    "parse_cursor_report",
    "read_cursor_report",
]
