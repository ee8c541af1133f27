"""
High-level orchestrator for image URL resolution.

Coordinates the mapping store, rate limiter, retry policy and Alchemy
client for single ids, and falls back to a deterministic URL when the
provider cannot be reached.
"""

import threading
from typing import Dict, Iterable, Union

from ..config.logger_module import log_info, log_warning, log_error
from .resolver_client import AlchemyClient
from .resolver_errors import PersistenceError
from .resolver_rate_limiter import IntervalRateLimiter
from .resolver_retry import RetryPolicy
from .resolver_store import MappingStore, normalize_id


CRYPTOPUNKS_APP_TEMPLATE = "https://www.cryptopunks.app/images/cryptopunks/punk{padded_id}.png"


def format_template(template: str, punk_id: Union[str, int]) -> str:
    """Fill an image URL template with {id} and/or zero-padded {padded_id}."""
    key = normalize_id(punk_id)
    return template.format(id=key, padded_id=key.zfill(4))


class ImageUrlResolver:
    """
    Resolves a punk id to an image URL; never raises.

    Workflow:
    1. Return the stored URL when the id is already mapped
    2. Otherwise wait for rate limiter admission and fetch under retry
    3. Store a fetched URL durably and return it
    4. If retries are exhausted, return the fallback URL without storing it,
       so a later call tries the provider again
    """

    def __init__(self,
                 store: MappingStore,
                 client: AlchemyClient,
                 rate_limiter: IntervalRateLimiter = None,
                 retry_policy: RetryPolicy = None,
                 fallback_template: str = CRYPTOPUNKS_APP_TEMPLATE):
        """
        Initialize the resolver.

        Args:
            store: Loaded mapping store (owned by this resolver)
            client: Provider client
            rate_limiter: Process-wide limiter shared by all resolutions
            retry_policy: Retry/backoff policy around each fetch
            fallback_template: URL template used when resolution fails
        """
        self.store = store
        self.client = client
        self.rate_limiter = rate_limiter or IntervalRateLimiter()
        self.retry_policy = retry_policy or RetryPolicy()
        self.fallback_template = fallback_template

        self._stats = {
            "cache_hits": 0,
            "fetched": 0,
            "fallbacks": 0,
            "persistence_failures": 0,
        }
        self._stats_lock = threading.Lock()

        log_info(
            f"ImageUrlResolver initialized ({len(store)} mapped URLs, "
            f"max_attempts={self.retry_policy.max_attempts})"
        )

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    def fallback_url(self, punk_id: Union[str, int]) -> str:
        """Deterministic URL derived from the id alone."""
        return format_template(self.fallback_template, punk_id)

    def resolve(self, punk_id: Union[str, int]) -> str:
        """
        Get an image URL for a single punk.

        Args:
            punk_id: Item identifier

        Returns:
            Stored or freshly fetched URL, else the fallback URL
        """
        key = normalize_id(punk_id)

        cached_url = self.store.get(key)
        if cached_url is not None:
            self._count("cache_hits")
            return cached_url

        self.rate_limiter.admit()
        outcome = self.retry_policy.execute(
            lambda: self.client.fetch_metadata(key),
            label=f"Alchemy lookup for punk {key}"
        )

        if outcome.exhausted:
            log_warning(
                f"Using fallback image for punk {key} after "
                f"{outcome.attempts} failed attempts"
            )
            self._count("fallbacks")
            return self.fallback_url(key)

        self._count("fetched")
        try:
            self.store.put(key, outcome.value)
        except PersistenceError as e:
            # The in-memory entry is kept; the next durable write carries it
            log_error(f"Failed to persist URL for punk {key} (continuing): {e}")
            self._count("persistence_failures")

        return outcome.value

    def resolve_all(self, punk_ids: Iterable[Union[str, int]]) -> Dict[str, str]:
        """
        Resolve several ids sequentially.

        Returns:
            Dictionary mapping each normalized id to its URL
        """
        return {normalize_id(punk_id): self.resolve(punk_id) for punk_id in punk_ids}

    def get_stats(self) -> Dict[str, int]:
        """
        Get resolution counters and mapping size.

        Returns:
            Dictionary with counters and the number of mapped URLs
        """
        with self._stats_lock:
            stats = dict(self._stats)
        stats["mapped"] = len(self.store)
        return stats
