"""Structured file logging and crash hook setup.

The terminal is the render canvas, so log output goes to a rotating JSON
lines file instead of the console.
"""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import os
import platform
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


_LOGGER_NAME = "termvideo"
_EXTRA_FIELDS = ("event", "crash_id", "thread")


def _state_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "termvideo"
    if system == "Darwin":
        return Path.home() / "Library" / "Logs" / "termvideo"
    return Path.home() / ".local" / "state" / "termvideo"


def log_dir() -> Path:
    path = _state_root() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                payload[name] = getattr(record, name)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(
    keep_files: int = 7,
    level: str = "INFO",
    directory: Path | None = None,
) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    path = (directory or log_dir()) / "termvideo.log"
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(path),
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    # Keep records out of the root logger's last-resort stderr handler.
    logger.propagate = False
    logger.info("logging configured", extra={"event": "logging_configured"})
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def _install_fault_handler(logger: logging.Logger, directory: Path | None = None) -> None:
    fault_path = (directory or log_dir()) / "fault.log"
    fh = fault_path.open("a", encoding="utf-8")
    faulthandler.enable(file=fh, all_threads=True)
    logger.info("fault handler enabled", extra={"event": "fault_handler_enabled"})


def install_crash_hooks(directory: Path | None = None) -> None:
    """Send uncaught exceptions, including those on worker threads, to the log."""
    logger = get_logger()
    previous_hook = sys.excepthook

    def _log_uncaught(exc_type, exc_value, exc_tb) -> None:
        crash_id = str(uuid.uuid4())
        logger.critical(
            "uncaught exception crash_id=%s",
            crash_id,
            exc_info=(exc_type, exc_value, exc_tb),
            extra={"event": "uncaught_exception", "crash_id": crash_id},
        )
        previous_hook(exc_type, exc_value, exc_tb)

    def _thread_hook(args: threading.ExceptHookArgs) -> None:
        crash_id = str(uuid.uuid4())
        logger.critical(
            "thread exception crash_id=%s",
            crash_id,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
            extra={
                "event": "thread_exception",
                "crash_id": crash_id,
                "thread": args.thread.name if args.thread else None,
            },
        )

    sys.excepthook = _log_uncaught
    threading.excepthook = _thread_hook
    _install_fault_handler(logger, directory)
