"""
Resolver module for the CryptoPunks image API.

This module provides functionality for:
- Persisting resolved image URLs in a durable JSON mapping
- Spacing provider requests with a process-wide rate limiter
- Retrying provider calls with exponential backoff
- Fetching cached image URLs from the Alchemy NFT API
- Resolving ids to URLs with a deterministic fallback
- Running bulk resolutions in checkpointed batches

Main classes:
- ImageUrlResolver: High-level id -> URL resolution
- BatchRunner: Batched bulk resolution
- AlchemyClient: Alchemy metadata API wrapper
- MappingStore: Durable id -> URL mapping
- IntervalRateLimiter: Minimum-interval rate limiting
- RetryPolicy: Bounded retries with backoff

Errors:
- ProviderError: Non-2xx responses or transport failures
- ProviderMissError: 2xx responses without an image URL
- ProviderTimeoutError: Calls exceeding the per-attempt timeout
- PersistenceError: Mapping file read/write failures
"""

from .resolver_batch import BatchRunner, BatchSummary
from .resolver_client import AlchemyClient, CRYPTOPUNKS_CONTRACT
from .resolver_errors import (
    PersistenceError,
    ProviderError,
    ProviderMissError,
    ProviderTimeoutError,
)
from .resolver_rate_limiter import IntervalRateLimiter
from .resolver_retry import RetryOutcome, RetryPolicy
from .resolver_store import MappingStore, normalize_id
from .resolver_workflow import CRYPTOPUNKS_APP_TEMPLATE, ImageUrlResolver, format_template

__all__ = [
    # Main classes
    "ImageUrlResolver",
    "BatchRunner",
    "BatchSummary",
    "AlchemyClient",
    "MappingStore",
    "IntervalRateLimiter",
    "RetryPolicy",
    "RetryOutcome",

    # Helpers and constants
    "normalize_id",
    "format_template",
    "CRYPTOPUNKS_APP_TEMPLATE",
    "CRYPTOPUNKS_CONTRACT",

    # Errors
    "ProviderError",
    "ProviderMissError",
    "ProviderTimeoutError",
    "PersistenceError",
]

__version__ = "1.0.0"
