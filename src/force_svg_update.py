"""
Refresh every non-SVG mapping entry with a fresh Alchemy CDN URL.

Punks whose mapped URL is already an Alchemy SVG are left alone. All
others (unmapped, converted PNG, anything else) are refetched and the
mapping entry is replaced with the new image.cachedUrl. The mapping file
is rewritten after every batch, and the snapshot is regenerated at the end.

Usage:
    python src/force_svg_update.py
"""

import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config.config_module import ConfigError, load_config, validate_config
from src.config.logger_module import initialize_logger, log_info, log_warning, log_error
from src.config.settings import Settings
from src.punks.punks_dataset import PunkDataset
from src.punks.punks_snapshot import classify_url
from src.regenerate_snapshot import regenerate_snapshot
from src.resolver.resolver_batch import BatchRunner
from src.resolver.resolver_client import AlchemyClient
from src.resolver.resolver_errors import PersistenceError
from src.resolver.resolver_rate_limiter import IntervalRateLimiter
from src.resolver.resolver_retry import RetryPolicy
from src.resolver.resolver_store import MappingStore, write_json_atomic


SAMPLE_IDS = ["100", "101", "102", "103", "104"]


@dataclass
class SvgUpdateSummary:
    """Counters for one force_svg_update run."""

    total: int = 0
    already_svg: int = 0
    updated: int = 0
    failed: int = 0
    batches: int = 0


def needs_svg_refresh(url: Optional[str]) -> bool:
    """True when a mapped URL is missing or not an Alchemy CDN SVG."""
    return not url or classify_url(url) != "svg"


class SvgRefresher:
    """Refetches image.cachedUrl for single ids under the rate limit and retry policy."""

    def __init__(self,
                 client: AlchemyClient,
                 rate_limiter: IntervalRateLimiter,
                 retry_policy: RetryPolicy):
        self.client = client
        self.rate_limiter = rate_limiter
        self.retry_policy = retry_policy

    @classmethod
    def from_settings(cls, settings: Settings) -> "SvgRefresher":
        return cls(
            AlchemyClient(
                api_key=settings.alchemy_api_key,
                request_timeout=settings.request_timeout_seconds
            ),
            IntervalRateLimiter(
                min_interval=settings.rate_limit_interval,
                mode=settings.rate_limit_mode
            ),
            RetryPolicy(max_attempts=settings.max_retries),
        )

    def fetch(self, punk_id: str) -> Optional[str]:
        """Return a fresh cached URL, or None once retries are exhausted."""
        self.rate_limiter.admit()
        outcome = self.retry_policy.execute(
            lambda: self.client.fetch_metadata(punk_id),
            label=f"SVG fetch for punk {punk_id}"
        )
        return outcome.value


def _fetch_batch(refresher: SvgRefresher, batch: List[str], concurrency: int) -> List[Optional[str]]:
    if concurrency == 1:
        return [refresher.fetch(punk_id) for punk_id in batch]
    with ThreadPoolExecutor(max_workers=concurrency) as executor:
        return list(executor.map(refresher.fetch, batch))


def force_svg_update(settings: Settings,
                     refresher: SvgRefresher = None) -> SvgUpdateSummary:
    """
    Refresh non-SVG entries for every punk in the dataset.

    Args:
        settings: Resolved settings
        refresher: Prebuilt refresher (built from settings if not provided)

    Returns:
        Summary of the run
    """
    refresher = refresher or SvgRefresher.from_settings(settings)
    dataset = PunkDataset.from_file(settings.data_path)
    mapping: Dict[str, str] = MappingStore(settings.mapping_path).load().snapshot()

    all_ids = dataset.ids()
    stale = [punk_id for punk_id in all_ids if needs_svg_refresh(mapping.get(punk_id))]
    summary = SvgUpdateSummary(total=len(all_ids), already_svg=len(all_ids) - len(stale))
    log_info(f"{summary.already_svg} of {summary.total} punks already have SVG URLs")

    batches = BatchRunner.partition(stale, settings.batch_size)
    for index, batch in enumerate(batches, start=1):
        log_info(f"Processing batch {index}/{len(batches)} ({len(batch)} punks)...")

        for punk_id, url in zip(batch, _fetch_batch(refresher, batch, settings.batch_concurrency)):
            if url:
                mapping[punk_id] = url
                summary.updated += 1
            else:
                log_warning(f"Failed to get SVG URL for punk {punk_id}")
                summary.failed += 1

        write_json_atomic(settings.mapping_path, mapping)
        summary.batches += 1
        log_info(f"Progress saved: {summary.updated} URLs updated")

        if index < len(batches) and settings.batch_delay > 0:
            time.sleep(settings.batch_delay)

    regenerate_snapshot(settings, SAMPLE_IDS)
    return summary


def main():
    """Entry point for the SVG refresh tool."""
    load_config()

    try:
        validate_config(["ALCHEMY_API_KEY"])
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    initialize_logger(log_level=settings.log_level, log_file=settings.log_file)

    print("🔄 Updating mapping file to use SVG URLs...")

    try:
        summary = force_svg_update(settings)
    except (PersistenceError, OSError, ValueError) as e:
        log_error(f"SVG update failed: {e}")
        sys.exit(1)

    print("\n🎉 Mapping update completed!")
    print(f"  - Updated to SVG: {summary.updated}")
    print(f"  - Already SVG: {summary.already_svg}")
    print(f"  - Failed: {summary.failed}")


if __name__ == "__main__":
    main()
