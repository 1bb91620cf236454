from pathlib import Path

import pytest

from raju import config
from raju.debug_logger import DebugLogger
from raju.llm.provider_factory import clear_provider_cache
from raju.memory.experience_store import reset_experience_store


@pytest.fixture(autouse=True)
def isolated_raju_home(tmp_path: Path, monkeypatch):
    """Point every raju path into tmp_path and drop provider keys from the environment."""
    home = tmp_path / ".raju"
    monkeypatch.setattr(config, "RAJU_DIR", home)
    monkeypatch.setattr(config, "STORAGE_DIR", home / "storage")
    monkeypatch.setattr(config, "LOGS_DIR", home / "logs")
    monkeypatch.setattr(config, "MODELS_DIR", home / "models")
    monkeypatch.setattr(config, "SECRETS_FILE", home / "secrets.json")
    monkeypatch.setattr(config, "SETTINGS_FILE", home / "settings.json")
    monkeypatch.setattr(config, "LOG_RETENTION_LIMIT", config.LOG_RETENTION_LIMIT)
    for env_var in config.PROVIDER_ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)

    clear_provider_cache()
    reset_experience_store()
    yield home
    clear_provider_cache()
    reset_experience_store()


@pytest.fixture(autouse=True)
def reset_debug_logger():
    """Reset the singleton logger before and after each test."""
    DebugLogger._instance = None
    DebugLogger._loggers = {}
    yield
    instance = DebugLogger._instance
    if instance and instance.enabled:
        instance.close()
    DebugLogger._instance = None
    DebugLogger._loggers = {}
