"""Remote LLM access for cloud mode."""

from raju.llm.provider_factory import (
    clear_provider_cache,
    get_provider,
    list_available_providers,
)
from raju.llm.retry import RetryHandler, create_retry_handler

__all__ = [
    "clear_provider_cache",
    "get_provider",
    "list_available_providers",
    "RetryHandler",
    "create_retry_handler",
]
