"""Core services: render scheduling, settings, logging and performance sampling."""

from .config import DEFAULT_CONFIG, AppConfig, config_from_mapping
from .performance import BudgetStatus, PerformanceController, PerformanceTargets
from .scheduler import RenderScheduler, RenderState, RenderStats

__all__ = [
    "AppConfig",
    "BudgetStatus",
    "DEFAULT_CONFIG",
    "PerformanceController",
    "PerformanceTargets",
    "RenderScheduler",
    "RenderState",
    "RenderStats",
    "config_from_mapping",
]
