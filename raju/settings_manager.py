#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Persistent settings management for raju."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from raju import config
from raju.debug_logger import get_logger
from raju.models.experience import AgentMode, ExecutionMode


@dataclass
class RuntimeSetting:
    """Tunable setting persisted alongside the agent mode."""

    key: str
    description: str
    parser: Callable[[Any], Any]
    getter: Callable[[], Any]
    setter: Callable[[Any], None]
    default: Any


def _parse_positive_int(value: Any) -> int:
    """Parse and validate a positive integer setting."""

    parsed = int(str(value).strip())
    if parsed < 1:
        raise ValueError("Value must be at least 1")
    return parsed


RUNTIME_SETTINGS: Dict[str, RuntimeSetting] = {
    "log_retention": RuntimeSetting(
        key="log_retention",
        description="Number of debug log files to keep (newest preserved)",
        parser=_parse_positive_int,
        getter=lambda: config.LOG_RETENTION_LIMIT,
        setter=lambda value: setattr(config, "LOG_RETENTION_LIMIT", value),
        default=config.LOG_RETENTION_LIMIT_DEFAULT,
    ),
}


def set_runtime_setting(key: str, raw_value: Any) -> Any:
    """Update a runtime setting value using its parser for validation."""

    setting = RUNTIME_SETTINGS.get(key)
    if not setting:
        raise KeyError(key)

    parsed_value = setting.parser(raw_value)
    setting.setter(parsed_value)
    return parsed_value


def apply_runtime_settings(saved: Dict[str, Any]) -> None:
    """Apply persisted runtime values; unknown keys and invalid values are skipped."""
    if not isinstance(saved, dict):
        return
    for key, value in saved.items():
        setting = RUNTIME_SETTINGS.get(key)
        if not setting:
            continue
        try:
            setting.setter(setting.parser(value))
        except (TypeError, ValueError) as e:
            # Invalid persisted values fall back to the current value
            get_logger().log_error("settings", e, {"setting": key})


def get_default_mode() -> AgentMode:
    try:
        mode_type = ExecutionMode(config.DEFAULT_MODE)
    except ValueError:
        mode_type = ExecutionMode.OFFLINE
    active_provider = config.DEFAULT_PROVIDER if mode_type == ExecutionMode.CLOUD else None
    return AgentMode(type=mode_type, active_provider=active_provider)


def load_settings() -> Dict[str, Any]:
    """Load persisted settings from disk if they exist."""

    settings_file = config.SETTINGS_FILE
    try:
        if settings_file.exists():
            data = json.loads(settings_file.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
    except (OSError, ValueError) as e:
        # Fall back to defaults
        get_logger().log_error("settings", e, {"operation": "load_settings"})
        return {}
    return {}


def save_settings(mode: AgentMode) -> Path:
    """Persist the selected mode and runtime settings to disk."""

    settings_file = config.SETTINGS_FILE
    settings = {
        "mode": mode.to_dict(),
        "runtime_settings": {key: s.getter() for key, s in RUNTIME_SETTINGS.items()},
    }
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    settings_file.write_text(json.dumps(settings, indent=2), encoding="utf-8")
    get_logger().log("settings", "SETTINGS_SAVED", settings)
    return settings_file


def get_saved_mode() -> AgentMode:
    """Return the persisted mode, or the configured default when none is valid."""

    settings = load_settings()
    if settings.get("runtime_settings"):
        apply_runtime_settings(settings["runtime_settings"])

    saved = settings.get("mode")
    if not isinstance(saved, dict):
        return get_default_mode()
    try:
        return AgentMode.from_dict(saved)
    except ValueError as e:
        get_logger().log_error("settings", e, {"operation": "get_saved_mode"})
        return get_default_mode()


def reset_settings() -> Optional[Path]:
    """Remove persisted settings and restore runtime defaults."""

    for setting in RUNTIME_SETTINGS.values():
        setting.setter(setting.default)

    settings_file = config.SETTINGS_FILE
    if settings_file.exists():
        settings_file.unlink()
        return settings_file
    return None
