#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Configuration constants and settings for raju."""

import os
import pathlib
from typing import Dict, Tuple

# Configuration
ROOT = pathlib.Path(os.getcwd()).resolve()
RAJU_DIR = pathlib.Path(os.getenv("RAJU_HOME", str(ROOT / ".raju"))).expanduser()
STORAGE_DIR = RAJU_DIR / "storage"
LOGS_DIR = RAJU_DIR / "logs"
MODELS_DIR = RAJU_DIR / "models"
SECRETS_FILE = RAJU_DIR / "secrets.json"
SETTINGS_FILE = RAJU_DIR / "settings.json"

# Storage keys (one JSON blob per key)
EXPERIENCES_STORAGE_KEY = "raju_experiences"
MEMORY_STATS_KEY = "raju_memory_stats"
MODELS_STORAGE_KEY = "raju_models"
STORAGE_SCHEMA_VERSION = 1

# Experience retention
MAX_EXPERIENCES = int(os.getenv("RAJU_MAX_EXPERIENCES", "1000"))
# Fraction of MAX_EXPERIENCES kept (newest first) when the ceiling is reached
EVICTION_KEEP_RATIO = float(os.getenv("RAJU_EVICTION_KEEP_RATIO", "0.8"))

# Agent mode defaults
DEFAULT_MODE = os.getenv("RAJU_DEFAULT_MODE", "offline").lower()
DEFAULT_PROVIDER = os.getenv("RAJU_DEFAULT_PROVIDER", "openai").lower()
DEFAULT_MODEL_LABEL = "default"

# ============================================================================
# Remote provider configuration
# ============================================================================
SUPPORTED_PROVIDERS: Tuple[str, ...] = ("openai", "anthropic", "gemini")

PROVIDER_ENV_VARS: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

# OpenAI Configuration
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4-turbo")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
OPENAI_MAX_TOKENS = int(os.getenv("OPENAI_MAX_TOKENS", "2000"))

# Anthropic (Claude) Configuration
ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-3-opus-20240229")
ANTHROPIC_VERSION = os.getenv("ANTHROPIC_VERSION", "2023-06-01")
ANTHROPIC_MAX_TOKENS = int(os.getenv("ANTHROPIC_MAX_TOKENS", "2000"))

# Google Gemini Configuration
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-pro")

# Network behaviour. No retries by default: a failed remote call fails the task.
REQUEST_TIMEOUT_SECONDS = float(os.getenv("RAJU_REQUEST_TIMEOUT", "60"))
VERIFY_TIMEOUT_SECONDS = float(os.getenv("RAJU_VERIFY_TIMEOUT", "10"))
DOWNLOAD_TIMEOUT_SECONDS = float(os.getenv("RAJU_DOWNLOAD_TIMEOUT", "300"))
REMOTE_MAX_ATTEMPTS = int(os.getenv("RAJU_REMOTE_MAX_ATTEMPTS", "1"))
RETRY_BACKOFF_SECONDS = float(os.getenv("RAJU_RETRY_BACKOFF_SECONDS", "1.0"))
RETRY_BACKOFF_MAX_SECONDS = float(os.getenv("RAJU_RETRY_BACKOFF_MAX_SECONDS", "30.0"))

# ============================================================================
# Model downloads
# ============================================================================
MIN_MODEL_FILE_BYTES = 1024 * 1024  # 1MB floor for a plausible model file
MIN_FREE_SPACE_BYTES = int(os.getenv("RAJU_MIN_FREE_SPACE", str(100 * 1024 * 1024)))
DOWNLOAD_CHUNK_SIZE = int(os.getenv("RAJU_DOWNLOAD_CHUNK_SIZE", str(256 * 1024)))
MODEL_FILE_EXTENSION = ".gguf"

# Logging configuration
LOG_RETENTION_LIMIT_DEFAULT = int(os.getenv("RAJU_LOG_RETENTION", "7"))
LOG_RETENTION_LIMIT = LOG_RETENTION_LIMIT_DEFAULT


def is_supported_provider(provider: str) -> bool:
    """Return True if ``provider`` names one of the remote back-ends."""

    return (provider or "").lower().strip() in SUPPORTED_PROVIDERS


def ensure_data_dirs() -> None:
    """Create the raju data directories if they do not exist yet."""

    for directory in (RAJU_DIR, STORAGE_DIR, MODELS_DIR):
        directory.mkdir(parents=True, exist_ok=True)
