"""
Custom exceptions for the resolver module.

Provider failures are always retryable and never escape the resolver.
Exhausted retries are reported as a value (RetryOutcome), not an exception.
"""

from typing import Optional


class ProviderError(Exception):
    """Raised when the metadata provider returns a non-2xx status or the request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderMissError(ProviderError):
    """Raised when a 2xx response carries no usable image URL."""
    pass


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its per-attempt deadline."""
    pass


class PersistenceError(Exception):
    """Raised on mapping file read/write failures."""
    pass
