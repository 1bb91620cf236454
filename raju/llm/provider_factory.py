"""Provider factory for creating remote provider instances."""

from typing import Dict, List, Optional, Type

from raju import config
from raju.llm.providers.base import RemoteProvider
from raju.llm.providers.openai_provider import OpenAIProvider
from raju.llm.providers.anthropic_provider import AnthropicProvider
from raju.llm.providers.gemini_provider import GeminiProvider


_PROVIDER_CLASSES: Dict[str, Type[RemoteProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}

# Cache for provider instances (singleton pattern)
_provider_cache: Dict[str, RemoteProvider] = {}


def get_provider(provider_name: Optional[str] = None, force_new: bool = False) -> RemoteProvider:
    """Get a provider instance by name.

    Args:
        provider_name: openai, anthropic or gemini. Defaults to config.DEFAULT_PROVIDER.
        force_new: If True, creates a new instance instead of using the cached one.

    Raises:
        ValueError: If the provider name is not recognized.
    """
    if provider_name is None:
        provider_name = config.DEFAULT_PROVIDER

    provider_name = provider_name.lower().strip()

    if not force_new and provider_name in _provider_cache:
        return _provider_cache[provider_name]

    provider_class = _PROVIDER_CLASSES.get(provider_name)
    if provider_class is None:
        raise ValueError(f"Unknown provider: {provider_name}")

    provider = provider_class()
    _provider_cache[provider_name] = provider
    return provider


def list_available_providers() -> List[str]:
    return list(_PROVIDER_CLASSES)


def clear_provider_cache():
    """Clear the provider cache.

    Useful for testing or when base URLs change.
    """
    global _provider_cache
    _provider_cache = {}
