#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Credential vault for remote provider API keys.

Secrets live in a JSON file with owner-only permissions, separate from the
regular settings file. Environment variables take precedence over saved keys.
"""

import json
import os
import stat
from pathlib import Path
from typing import Any, Dict, List, Optional

from raju import config
from raju.debug_logger import get_logger
from raju.exceptions import StoreError


def _secrets_file() -> Path:
    return config.SECRETS_FILE


def _ensure_secure_permissions(file_path: Path) -> None:
    """Ensure the secrets file has secure permissions (600 - owner read/write only)."""
    if file_path.exists():
        try:
            os.chmod(file_path, stat.S_IRUSR | stat.S_IWUSR)
        except Exception:
            # Windows doesn't support Unix permissions, skip on error
            pass


def _normalize_provider(provider: str) -> str:
    provider = (provider or "").lower().strip()
    if not config.is_supported_provider(provider):
        raise ValueError(
            f"Unknown provider: {provider!r} (expected one of {', '.join(config.SUPPORTED_PROVIDERS)})"
        )
    return provider


def _secret_key(provider: str) -> str:
    return f"{provider}_api_key"


def _read_secrets_file() -> Dict[str, Any]:
    secrets_file = _secrets_file()
    if not secrets_file.exists():
        return {}
    _ensure_secure_permissions(secrets_file)
    with open(secrets_file, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def load_secrets() -> Dict[str, Any]:
    """Load secrets from the secrets file.

    Returns:
        Dict containing saved secrets, or empty dict if the file doesn't exist
        or cannot be read
    """
    try:
        return _read_secrets_file()
    except (OSError, ValueError) as e:
        get_logger().log_error("vault", e, {"operation": "load_secrets"})
        return {}


def _load_secrets_for_update() -> Dict[str, Any]:
    """Read the secrets file before a write, refusing to continue if it is unreadable."""
    try:
        return _read_secrets_file()
    except (OSError, ValueError) as e:
        get_logger().log_error("vault", e, {"operation": "load_secrets_for_update"})
        raise StoreError(f"Secrets file {_secrets_file()} is unreadable; not overwriting it ({e})") from e


def save_secrets(secrets: Dict[str, Any]) -> None:
    """Save secrets to the secrets file with secure permissions."""
    secrets_file = _secrets_file()
    secrets_file.parent.mkdir(parents=True, exist_ok=True)

    # Create with owner-only permissions before any secret is written
    fd = os.open(secrets_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, stat.S_IRUSR | stat.S_IWUSR)
    with os.fdopen(fd, 'w', encoding='utf-8') as f:
        json.dump(secrets, f, indent=2)

    _ensure_secure_permissions(secrets_file)


def get_secret(key: str, default: Any = None) -> Any:
    return load_secrets().get(key, default)


def set_secret(key: str, value: Any) -> None:
    secrets = _load_secrets_for_update()
    secrets[key] = value
    save_secrets(secrets)


def delete_secret(key: str) -> bool:
    """Delete a secret value.

    Returns:
        True if key was deleted, False if it didn't exist
    """
    secrets = _load_secrets_for_update()
    if key in secrets:
        del secrets[key]
        save_secrets(secrets)
        return True
    return False


# API Key management functions

def get_api_key(provider: str) -> Optional[str]:
    """Get API key for a provider.

    Checks in order:
    1. Environment variable (OPENAI_API_KEY, ANTHROPIC_API_KEY, GEMINI_API_KEY)
    2. Saved secrets file
    3. Returns None if not found
    """
    provider = _normalize_provider(provider)

    env_value = os.getenv(config.PROVIDER_ENV_VARS[provider], "").strip()
    if env_value:
        return env_value

    saved = get_secret(_secret_key(provider))
    return saved or None


def set_api_key(provider: str, api_key: str) -> None:
    """Save API key for a provider."""
    provider = _normalize_provider(provider)
    api_key = (api_key or "").strip()
    if not api_key:
        raise ValueError("API key must not be empty")
    set_secret(_secret_key(provider), api_key)
    get_logger().log("vault", "API_KEY_STORED", {"provider": provider, "key_preview": mask_api_key(api_key)})


def delete_api_key(provider: str) -> bool:
    """Delete the saved API key for a provider.

    Returns:
        True if key was deleted, False if it didn't exist
    """
    provider = _normalize_provider(provider)
    deleted = delete_secret(_secret_key(provider))
    if deleted:
        get_logger().log("vault", "API_KEY_DELETED", {"provider": provider})
    return deleted


def has_api_key(provider: str) -> bool:
    return get_api_key(provider) is not None


def verify_api_key(provider: str, api_key: Optional[str] = None) -> bool:
    """Check a key against the provider's model-listing endpoint.

    Uses the stored key when ``api_key`` is omitted. Returns False on any
    non-2xx status or transport failure.
    """
    from raju.llm.provider_factory import get_provider

    provider = _normalize_provider(provider)
    api_key = api_key or get_api_key(provider)
    if not api_key:
        return False
    valid = get_provider(provider).verify_key(api_key)
    get_logger().log("vault", "API_KEY_VERIFIED", {"provider": provider, "valid": valid})
    return valid


def list_api_keys() -> List[Dict[str, Any]]:
    """Describe configured keys without exposing them."""
    keys = []
    for provider in config.SUPPORTED_PROVIDERS:
        api_key = get_api_key(provider)
        if not api_key:
            continue
        source = "env" if os.getenv(config.PROVIDER_ENV_VARS[provider], "").strip() else "vault"
        keys.append({
            "provider": provider,
            "key": mask_api_key(api_key),
            "source": source,
        })
    return keys


def clear_all_api_keys() -> None:
    """Remove every saved provider key. Keys in the environment are untouched."""
    for provider in config.SUPPORTED_PROVIDERS:
        delete_api_key(provider)


def mask_api_key(api_key: str) -> str:
    """Mask an API key for display (show first/last 4 chars)."""
    if not api_key:
        return "(not set)"

    if len(api_key) <= 8:
        return "*" * len(api_key)

    return f"{api_key[:4]}...{api_key[-4:]}"
