#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Exception types shared across raju components."""

from typing import Optional


class RajuError(Exception):
    """Base class for all raju errors."""


class MissingCredentialError(RajuError):
    """Raised when cloud mode is selected but no API key is stored for the provider."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"No API key found for {provider}")


class RemoteCallError(RajuError):
    """A provider call failed: non-2xx status, transport failure or malformed body."""

    def __init__(
        self,
        provider: str,
        message: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        self.provider = provider
        self.cause = cause
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(f"{provider} call failed: {message}")


class StoreError(RajuError):
    """A persistence write, delete or export could not be completed."""


class StorageUnavailableError(RajuError):
    """The underlying storage medium could not be read or written."""


class DownloadError(RajuError):
    """A model download failed or the downloaded file did not pass integrity checks."""


class ModelNotFoundError(RajuError):
    """No model record exists for the requested id."""

    def __init__(self, model_id: str):
        self.model_id = model_id
        super().__init__(f"Model not found: {model_id}")
