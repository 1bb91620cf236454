import json
import os
import stat
import sys
from unittest.mock import patch

import pytest

from raju import config, secrets_manager
from raju.exceptions import StoreError


def test_get_api_key_is_none_when_unset():
    assert secrets_manager.get_api_key("openai") is None
    assert secrets_manager.has_api_key("openai") is False


def test_set_and_get_api_key():
    secrets_manager.set_api_key("anthropic", "  sk-ant-123456789  ")

    assert secrets_manager.get_api_key("anthropic") == "sk-ant-123456789"
    assert secrets_manager.get_api_key("ANTHROPIC") == "sk-ant-123456789"
    assert json.loads(config.SECRETS_FILE.read_text()) == {"anthropic_api_key": "sk-ant-123456789"}


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
def test_secrets_file_is_owner_only():
    secrets_manager.set_api_key("openai", "sk-123456789")
    mode = stat.S_IMODE(os.stat(config.SECRETS_FILE).st_mode)
    assert mode == 0o600


def test_environment_overrides_saved_key(monkeypatch):
    secrets_manager.set_api_key("gemini", "saved-key-123")
    monkeypatch.setenv("GEMINI_API_KEY", "env-key-456")

    assert secrets_manager.get_api_key("gemini") == "env-key-456"


def test_delete_api_key():
    secrets_manager.set_api_key("openai", "sk-123456789")

    assert secrets_manager.delete_api_key("openai") is True
    assert secrets_manager.delete_api_key("openai") is False
    assert secrets_manager.get_api_key("openai") is None


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError):
        secrets_manager.get_api_key("cohere")
    with pytest.raises(ValueError):
        secrets_manager.set_api_key("cohere", "key")


def test_empty_key_is_rejected():
    with pytest.raises(ValueError):
        secrets_manager.set_api_key("openai", "   ")


def test_corrupt_secrets_file_reads_as_empty():
    config.SECRETS_FILE.parent.mkdir(parents=True, exist_ok=True)
    config.SECRETS_FILE.write_text("{broken")

    assert secrets_manager.load_secrets() == {}
    assert secrets_manager.get_api_key("openai") is None


def test_list_api_keys_masks_values(monkeypatch):
    secrets_manager.set_api_key("openai", "sk-abcdefghijkl")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-zyxwvuts")

    keys = secrets_manager.list_api_keys()

    assert keys == [
        {"provider": "openai", "key": "sk-a...ijkl", "source": "vault"},
        {"provider": "anthropic", "key": "sk-a...vuts", "source": "env"},
    ]


def test_clear_all_api_keys_keeps_other_secrets():
    secrets_manager.set_secret("other", "value")
    secrets_manager.set_api_key("openai", "sk-123456789")
    secrets_manager.set_api_key("gemini", "g-123456789")

    secrets_manager.clear_all_api_keys()

    assert secrets_manager.load_secrets() == {"other": "value"}


def test_unreadable_secrets_file_is_not_overwritten():
    config.SECRETS_FILE.parent.mkdir(parents=True, exist_ok=True)
    config.SECRETS_FILE.write_text('{"openai_api_key": "sk-1234567890", ')

    with pytest.raises(StoreError):
        secrets_manager.set_api_key("gemini", "g-123456789")
    with pytest.raises(StoreError):
        secrets_manager.delete_api_key("openai")

    assert config.SECRETS_FILE.read_text() == '{"openai_api_key": "sk-1234567890", '


def test_non_object_secrets_file_reads_as_empty():
    config.SECRETS_FILE.parent.mkdir(parents=True, exist_ok=True)
    config.SECRETS_FILE.write_text('["sk-1234567890"]')

    assert secrets_manager.load_secrets() == {}
    with pytest.raises(StoreError):
        secrets_manager.set_secret("other", "value")


def test_mask_api_key():
    assert secrets_manager.mask_api_key("") == "(not set)"
    assert secrets_manager.mask_api_key("short") == "*****"
    assert secrets_manager.mask_api_key("sk-1234567890") == "sk-1...7890"


def test_verify_api_key_uses_provider():
    secrets_manager.set_api_key("openai", "sk-123456789")
    with patch("raju.llm.providers.openai_provider.OpenAIProvider.verify_key", return_value=True) as verify:
        assert secrets_manager.verify_api_key("openai") is True
    verify.assert_called_once_with("sk-123456789")


def test_verify_without_any_key_is_false():
    with patch("raju.llm.providers.base.requests.get") as mock_get:
        assert secrets_manager.verify_api_key("gemini") is False
    mock_get.assert_not_called()
