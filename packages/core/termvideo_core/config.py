"""Runtime settings schema with defaults and range normalization.

Settings are built in code only; nothing is read from disk or the
environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TerminalConfig:
    query_timeout_ms: int = 1000
    response_limit: int = 32


@dataclass
class SurfaceConfig:
    stride_align: int = 64


@dataclass
class PlaybackConfig:
    late_frame_ms: int = 250
    pattern_fps: float = 10.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    keep_files: int = 7


@dataclass
class PerformanceConfig:
    cpu_percent_max: float = 90.0
    rss_mb_max: float = 512.0
    fps_min: float = 10.0
    fps_max: float = 60.0


@dataclass
class AppConfig:
    terminal: TerminalConfig = field(default_factory=TerminalConfig)
    surface: SurfaceConfig = field(default_factory=SurfaceConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)


DEFAULT_CONFIG = AppConfig()

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _merge(dataclass_type, raw: dict[str, Any] | None):
    defaults = dataclass_type()  # type: ignore[misc]
    for k, v in (raw or {}).items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_terminal(cfg: AppConfig) -> None:
    cfg.terminal.query_timeout_ms = max(50, min(10_000, int(cfg.terminal.query_timeout_ms)))
    # "\x1b[" + two five-digit fields + ";" + "R" is 14 bytes.
    cfg.terminal.response_limit = max(16, min(1024, int(cfg.terminal.response_limit)))


def _normalize_surface(cfg: AppConfig) -> None:
    cfg.surface.stride_align = max(1, min(4096, int(cfg.surface.stride_align)))


def _normalize_playback(cfg: AppConfig) -> None:
    cfg.playback.late_frame_ms = max(0, int(cfg.playback.late_frame_ms))
    cfg.playback.pattern_fps = float(max(1.0, min(120.0, cfg.playback.pattern_fps)))


def _normalize_logging(cfg: AppConfig) -> None:
    level = str(cfg.logging.level).upper()
    cfg.logging.level = level if level in _LOG_LEVELS else "INFO"
    cfg.logging.keep_files = max(2, int(cfg.logging.keep_files))


def _normalize_performance(cfg: AppConfig) -> None:
    cfg.performance.cpu_percent_max = float(max(1.0, cfg.performance.cpu_percent_max))
    cfg.performance.rss_mb_max = float(max(64.0, cfg.performance.rss_mb_max))
    cfg.performance.fps_min = float(max(1.0, cfg.performance.fps_min))
    cfg.performance.fps_max = float(max(cfg.performance.fps_min, cfg.performance.fps_max))


def config_from_mapping(raw: dict[str, Any] | None = None) -> AppConfig:
    """Build settings from a plain mapping, normalizing every range.

    The CLI calls this with no mapping and gets the defaults; embedding
    callers pass overrides per section, unknown keys are ignored.
    """
    data = dict(raw or {})
    cfg = AppConfig(
        terminal=_merge(TerminalConfig, data.get("terminal")),
        surface=_merge(SurfaceConfig, data.get("surface")),
        playback=_merge(PlaybackConfig, data.get("playback")),
        logging=_merge(LoggingConfig, data.get("logging")),
        performance=_merge(PerformanceConfig, data.get("performance")),
    )

    _normalize_terminal(cfg)
    _normalize_surface(cfg)
    _normalize_playback(cfg)
    _normalize_logging(cfg)
    _normalize_performance(cfg)
    return cfg
