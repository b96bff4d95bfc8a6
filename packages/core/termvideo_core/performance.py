"""Process resource sampling against a playback budget."""

from __future__ import annotations

from dataclasses import dataclass

import psutil


@dataclass(frozen=True)
class PerformanceTargets:
    cpu_percent_max: float = 90.0
    rss_mb_max: float = 512.0
    fps_min: float = 10.0
    fps_max: float = 60.0


@dataclass(frozen=True)
class BudgetStatus:
    cpu_percent: float
    rss_mb: float
    fps: float
    overloaded: bool
    warning: str | None


class PerformanceController:
    def __init__(self, targets: PerformanceTargets | None = None) -> None:
        self.targets = targets or PerformanceTargets()
        self._process = psutil.Process()
        # Prime non-blocking CPU measurement.
        self._process.cpu_percent(interval=None)

    def sample(self, fps: float) -> BudgetStatus:
        cpu = float(self._process.cpu_percent(interval=None))
        rss_mb = float(self._process.memory_info().rss) / (1024 * 1024)
        overloaded = cpu > self.targets.cpu_percent_max or rss_mb > self.targets.rss_mb_max

        warning = None
        if overloaded:
            warning = "resource_overload"
        elif fps < self.targets.fps_min:
            warning = "below_fps_target"
        elif fps > self.targets.fps_max:
            warning = "above_fps_target"

        return BudgetStatus(
            cpu_percent=cpu,
            rss_mb=rss_mb,
            fps=float(fps),
            overloaded=overloaded,
            warning=warning,
        )
