#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Session debug log for raju.

Nothing is written unless ``--debug`` is given. When enabled, every
component logs through ``raju.<component>`` into one timestamped file under
the logs directory; structured events carry their data as JSON so a whole
task run (phases, HTTP calls, store operations) can be replayed afterwards.
"""

import json
import logging
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional

from raju import config

ROOT_LOGGER_NAME = "raju"
PREVIEW_CHARS = 500
LOG_FORMAT = "%(asctime)s | %(name)-20s | %(levelname)-8s | %(message)s"


def prune_old_logs(log_dir: Path, keep: int) -> None:
    """Delete all but the ``keep`` most recently modified ``*.log`` files."""
    if keep < 1 or not log_dir.exists():
        return

    by_age = sorted(
        (path for path in log_dir.glob("*.log") if path.is_file()),
        key=lambda path: path.stat().st_mtime,
    )
    for stale in by_age[:-keep]:
        try:
            stale.unlink()
        except OSError:
            continue


def _preview(text: Optional[str]) -> str:
    return (text or "")[:PREVIEW_CHARS]


class DebugLogger:
    """Process-wide session logger.

    One instance exists per process. Modules fetch it with ``get_logger()``
    whenever they log, and ``initialize(enabled=True)`` turns an existing
    disabled instance on rather than replacing it.
    """

    _instance: Optional['DebugLogger'] = None
    _loggers: Dict[str, logging.Logger] = {}

    def __init__(self, enabled: bool = False, log_dir: Optional[Path] = None):
        self._enabled = False
        self._log_file: Optional[Path] = None
        if enabled:
            self.enable(log_dir)

    @classmethod
    def initialize(cls, enabled: bool = False, log_dir: Optional[Path] = None) -> 'DebugLogger':
        """Return the process logger, enabling it when ``enabled`` is set."""
        if cls._instance is None:
            cls._instance = cls(enabled, log_dir)
        elif enabled:
            cls._instance.enable(log_dir)
        return cls._instance

    @classmethod
    def get_instance(cls) -> 'DebugLogger':
        if cls._instance is None:
            cls._instance = cls(enabled=False)
        return cls._instance

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def log_file_path(self) -> Optional[Path]:
        return self._log_file

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def enable(self, log_dir: Optional[Path] = None) -> None:
        """Open a new session file. Calling it on an enabled logger does nothing."""
        if self._enabled:
            return

        log_dir = log_dir if log_dir is not None else config.LOGS_DIR
        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._log_file = log_dir / f"raju_debug_{stamp}.log"

        handler = logging.FileHandler(self._log_file, mode="w", encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(logging.DEBUG)
        root.addHandler(handler)
        root.propagate = False

        self._enabled = True
        prune_old_logs(log_dir, config.LOG_RETENTION_LIMIT)
        self.log("system", "DEBUG_SESSION_START", {
            "timestamp": datetime.now().isoformat(),
            "log_file": str(self._log_file),
            "data_dir": str(config.RAJU_DIR),
        })

    def close(self) -> None:
        """Write the session end marker, release the file and disable logging."""
        if not self._enabled:
            return

        self.log("system", "DEBUG_SESSION_END", {"timestamp": datetime.now().isoformat()})
        for logger in [logging.getLogger(ROOT_LOGGER_NAME), *self._loggers.values()]:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
        self._enabled = False

    # ------------------------------------------------------------------
    # Structured events
    # ------------------------------------------------------------------

    def get_logger(self, component: str) -> logging.Logger:
        """Return the ``raju.<component>`` logger (e.g. 'store', 'agent', 'http')."""
        logger = self._loggers.get(component)
        if logger is None:
            logger = self._loggers[component] = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
        return logger

    def log(self, component: str, event: str, data: Optional[Dict[str, Any]] = None, level: str = "INFO"):
        """Write ``[EVENT]`` followed by ``data`` rendered as indented JSON."""
        if not self._enabled:
            return

        message = f"[{event}]"
        if data:
            message = f"{message} {json.dumps(data, indent=2, default=str)}"
        self.get_logger(component).log(getattr(logging, level.upper(), logging.INFO), message)

    def _event(self, component: str, event: str, level: str, data: Dict[str, Any],
               extra_key: str, extra: Optional[Dict[str, Any]]) -> None:
        if extra:
            data[extra_key] = extra
        self.log(component, event, data, level)

    def log_task_status(self, task_id: str, status: str, details: Optional[Dict[str, Any]] = None):
        """Record a transition of a task's execution state."""
        if self._enabled:
            self._event("agent", "TASK_STATUS_CHANGE", "INFO",
                        {"task_id": task_id, "status": status}, "details", details)

    def log_phase(self, task_id: str, phase: str, content: str, details: Optional[Dict[str, Any]] = None):
        if self._enabled:
            self._event("agent", "REASONING_PHASE", "DEBUG",
                        {"task_id": task_id, "phase": phase, "content_preview": _preview(content)},
                        "details", details)

    def log_error(self, component: str, error: Exception, context: Optional[Dict[str, Any]] = None):
        if self._enabled:
            self._event(component, "ERROR", "ERROR",
                        {"error_type": type(error).__name__, "error_message": str(error)},
                        "context", context)

    def log_http_request(self, provider: str, method: str, url: str, payload: Optional[Dict[str, Any]] = None):
        """Record an outbound provider call.

        The query string is dropped from ``url``: Gemini passes the API key there.
        """
        if not self._enabled:
            return
        data = {"provider": provider, "method": method, "url": url.split("?", 1)[0]}
        if payload:
            data["payload_preview"] = _preview(json.dumps(payload, default=str))
        self.log("http", "HTTP_REQUEST", data, "DEBUG")

    def log_http_response(self, provider: str, status_code: int, elapsed: float, body_preview: str = ""):
        if not self._enabled:
            return
        level = "DEBUG" if 200 <= status_code < 300 else "WARNING"
        self.log("http", "HTTP_RESPONSE", {
            "provider": provider,
            "status_code": status_code,
            "elapsed_seconds": round(elapsed, 3),
            "body_preview": _preview(body_preview),
        }, level)

    # ------------------------------------------------------------------
    # logging.Logger-style shims (component "general")
    # ------------------------------------------------------------------

    def _plain(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if self._enabled:
            self.get_logger("general").log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._plain(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._plain(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._plain(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._plain(logging.ERROR, msg, *args, **kwargs)


def log_function(component: str):
    """Decorator that records each call of the wrapped function as FUNCTION_CALL.

    Arguments are stringified and clipped to 200 characters.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = DebugLogger.get_instance()
            if logger.enabled:
                data: Dict[str, Any] = {
                    "function": func.__name__,
                    "args": [str(arg)[:200] for arg in args],
                }
                if kwargs:
                    data["kwargs"] = {name: str(value)[:200] for name, value in kwargs.items()}
                logger.log(component, "FUNCTION_CALL", data, "DEBUG")
            return func(*args, **kwargs)
        return wrapper
    return decorator


def get_logger() -> DebugLogger:
    """Return the process-wide DebugLogger."""
    return DebugLogger.get_instance()
