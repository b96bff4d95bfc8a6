"""Typed models for terminal geometry and session state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class GeometryError(RuntimeError):
    """Raised when the terminal cell grid cannot be determined."""


class SessionState(str, Enum):
    CREATED = "Created"
    ACTIVE = "Active"
    RESTORED = "Restored"


@dataclass(frozen=True)
class TerminalGeometry:
    columns: int
    rows: int

    @property
    def canvas_width(self) -> int:
        return self.columns

    @property
    def canvas_height(self) -> int:
        # Two pixel rows per cell, so always even.
        return self.rows * 2
