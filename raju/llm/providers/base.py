"""Base interface for remote completion providers."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import requests

from raju import config
from raju.debug_logger import get_logger
from raju.exceptions import RemoteCallError


class ErrorClass(Enum):
    """Standardized error categories across all providers."""
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    INVALID_REQUEST = "invalid_request"
    AUTH_ERROR = "auth_error"
    MODEL_NOT_FOUND = "model_not_found"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


@dataclass
class ProviderError:
    """Standardized error representation."""
    error_class: ErrorClass
    message: str
    retryable: bool
    retry_after: Optional[float] = None  # Seconds to wait before retry
    original_error: Optional[Exception] = None


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int
    base_backoff: float  # seconds
    max_backoff: float  # seconds
    exponential: bool = True
    retry_on: List[ErrorClass] = field(default_factory=lambda: [
        ErrorClass.RATE_LIMIT,
        ErrorClass.TIMEOUT,
        ErrorClass.SERVER_ERROR,
        ErrorClass.NETWORK_ERROR,
    ])


RequestSpec = Tuple[str, Dict[str, str], Dict[str, Any]]


class RemoteProvider(ABC):
    """Abstract base class for remote chat-completion back-ends.

    Subclasses describe the wire format (URL, headers, body and where the
    completion text lives in the response). Sending the request and mapping
    failures to RemoteCallError is shared here.
    """

    name = "base"
    display_name = "Base"

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or self.default_base_url()).rstrip("/")

    @abstractmethod
    def default_base_url(self) -> str:
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        pass

    @abstractmethod
    def build_completion_request(self, prompt: str, api_key: str, model: str) -> RequestSpec:
        """Return (url, headers, json_body) for a single-turn completion."""
        pass

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        """Pull the first completion's text out of a decoded response body.

        Raises KeyError, IndexError or TypeError when the body does not have
        the expected shape.
        """
        pass

    @abstractmethod
    def build_models_request(self, api_key: str) -> Tuple[str, Dict[str, str]]:
        """Return (url, headers) for the lightweight model-listing call."""
        pass

    def complete(
        self,
        prompt: str,
        api_key: str,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Issue one completion request and return the text of the first choice.

        Raises:
            RemoteCallError: on transport failure, non-2xx status or malformed body
        """
        logger = get_logger()
        model = model or self.default_model
        url, headers, payload = self.build_completion_request(prompt, api_key, model)
        logger.log_http_request(self.name, "POST", url, payload)

        started = time.time()
        try:
            response = requests.post(
                url,
                headers=headers,
                json=payload,
                timeout=timeout or config.REQUEST_TIMEOUT_SECONDS,
            )
        except requests.exceptions.RequestException as e:
            classified = self.classify_error(e)
            raise RemoteCallError(self.name, str(e), cause=e, retryable=classified.retryable) from e

        logger.log_http_response(self.name, response.status_code, time.time() - started, response.text)

        if not 200 <= response.status_code < 300:
            raise RemoteCallError(
                self.name,
                f"HTTP {response.status_code} {response.reason or ''}".strip(),
                status_code=response.status_code,
                retryable=response.status_code == 429 or response.status_code >= 500,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteCallError(self.name, "response body is not valid JSON", cause=e) from e

        try:
            text = self.extract_text(data)
        except (KeyError, IndexError, TypeError) as e:
            raise RemoteCallError(self.name, f"unexpected response shape ({e!r})", cause=e) from e

        if not text:
            return f"No response from {self.display_name}"
        if not isinstance(text, str):
            raise RemoteCallError(self.name, f"completion text has type {type(text).__name__}")
        return text

    def verify_key(self, api_key: str, timeout: Optional[float] = None) -> bool:
        """Return True if an authenticated model listing succeeds with a 2xx status."""
        url, headers = self.build_models_request(api_key)
        get_logger().log_http_request(self.name, "GET", url)
        try:
            response = requests.get(url, headers=headers, timeout=timeout or config.VERIFY_TIMEOUT_SECONDS)
        except requests.exceptions.RequestException as e:
            get_logger().log_error("http", e, {"provider": self.name, "operation": "verify_key"})
            return False
        return 200 <= response.status_code < 300

    def classify_error(self, error: Exception) -> ProviderError:
        """Classify an error into standard ErrorClass."""
        status_code = getattr(error, "status_code", None)
        cause = getattr(error, "cause", None) or error
        error_str = str(error).lower()

        if isinstance(cause, requests.exceptions.Timeout) or "timeout" in error_str:
            return ProviderError(ErrorClass.TIMEOUT, str(error), retryable=True, original_error=error)

        if isinstance(cause, requests.exceptions.ConnectionError) or "connection" in error_str:
            return ProviderError(ErrorClass.NETWORK_ERROR, str(error), retryable=True, original_error=error)

        if status_code == 429 or "rate limit" in error_str or "too many requests" in error_str:
            return ProviderError(
                ErrorClass.RATE_LIMIT,
                str(error),
                retryable=True,
                retry_after=60.0,
                original_error=error,
            )

        if status_code in (401, 403) or "unauthorized" in error_str:
            return ProviderError(ErrorClass.AUTH_ERROR, str(error), retryable=False, original_error=error)

        if status_code == 404:
            return ProviderError(ErrorClass.MODEL_NOT_FOUND, str(error), retryable=False, original_error=error)

        if status_code is not None and status_code >= 500:
            return ProviderError(ErrorClass.SERVER_ERROR, str(error), retryable=True, original_error=error)

        if status_code == 400:
            return ProviderError(ErrorClass.INVALID_REQUEST, str(error), retryable=False, original_error=error)

        if "unexpected response shape" in error_str or "not valid json" in error_str:
            return ProviderError(ErrorClass.MALFORMED_RESPONSE, str(error), retryable=False, original_error=error)

        return ProviderError(ErrorClass.UNKNOWN, str(error), retryable=False, original_error=error)

    def get_retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=config.REMOTE_MAX_ATTEMPTS,
            base_backoff=config.RETRY_BACKOFF_SECONDS,
            max_backoff=config.RETRY_BACKOFF_MAX_SECONDS,
        )

    def __str__(self) -> str:
        return f"{self.__class__.__name__}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', base_url='{self.base_url}')"
