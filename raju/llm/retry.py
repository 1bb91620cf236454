#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Retry logic for remote provider requests."""

import time
from typing import Any, Callable, Optional

from raju.debug_logger import get_logger
from raju.exceptions import RemoteCallError
from raju.llm.providers.base import ProviderError, RetryConfig


class RetryHandler:
    """Retries RemoteCallError failures with exponential backoff.

    With ``max_attempts=1`` (the default configuration) the wrapped call runs
    exactly once. Whatever the budget, the last RemoteCallError propagates.
    """

    def __init__(self, config: RetryConfig, sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self._sleep = sleep

    def should_retry(self, error: ProviderError, attempt: int) -> bool:
        """Decide whether attempt ``attempt`` (1-indexed) should be followed by another."""
        if attempt >= max(1, self.config.max_attempts):
            return False

        if not error.retryable:
            get_logger().info(f"Error is not retryable: {error.error_class}")
            return False

        if error.error_class not in self.config.retry_on:
            get_logger().info(f"Error class {error.error_class} not in retry list")
            return False

        return True

    def get_backoff_delay(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Calculate backoff delay in seconds, capped at max_backoff."""
        if retry_after is not None and retry_after > 0:
            return min(retry_after, self.config.max_backoff)

        if self.config.exponential:
            delay = self.config.base_backoff * (2 ** (attempt - 1))
        else:
            delay = self.config.base_backoff

        return min(delay, self.config.max_backoff)

    def execute_with_retry(
        self,
        func: Callable[..., Any],
        classify: Callable[[Exception], ProviderError],
        *args,
        **kwargs
    ) -> Any:
        """Call ``func`` until it succeeds or the retry budget is spent.

        Only RemoteCallError is retried; anything else propagates at once.
        """
        attempt = 1
        while True:
            try:
                result = func(*args, **kwargs)
                if attempt > 1:
                    get_logger().info(f"Retry successful on attempt {attempt}")
                return result
            except RemoteCallError as e:
                provider_error = classify(e)
                provider_error.retryable = provider_error.retryable and e.retryable
                get_logger().warning(f"Attempt {attempt} failed: {e}")

                if not self.should_retry(provider_error, attempt):
                    raise

                delay = self.get_backoff_delay(attempt, provider_error.retry_after)
                get_logger().info(f"Retrying in {delay}s...")
                self._sleep(delay)
                attempt += 1


def create_retry_handler(
    max_attempts: int = 1,
    base_backoff: float = 1.0,
    max_backoff: float = 30.0,
    exponential: bool = True
) -> RetryHandler:
    """Create a retry handler with the given configuration."""
    return RetryHandler(RetryConfig(
        max_attempts=max_attempts,
        base_backoff=base_backoff,
        max_backoff=max_backoff,
        exponential=exponential,
    ))
