"""Remote completion providers for cloud mode."""

from .base import RemoteProvider, ErrorClass, ProviderError, RetryConfig
from .openai_provider import OpenAIProvider
from .anthropic_provider import AnthropicProvider
from .gemini_provider import GeminiProvider

__all__ = [
    "RemoteProvider",
    "ErrorClass",
    "ProviderError",
    "RetryConfig",
    "OpenAIProvider",
    "AnthropicProvider",
    "GeminiProvider",
]
