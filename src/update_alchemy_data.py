"""
Fetch Alchemy image URLs for every punk and regenerate the snapshot.

Already-mapped punks are skipped, so rerunning after an interrupted run
only fetches what is still missing. Progress is checkpointed after every
batch.

Usage:
    python src/update_alchemy_data.py
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config.config_module import ConfigError, load_config, validate_config
from src.config.logger_module import initialize_logger, log_info, log_error
from src.config.settings import Settings
from src.punks.punks_api import build_resolver
from src.punks.punks_dataset import PunkDataset
from src.punks.punks_snapshot import build_snapshot, sample_report, write_snapshot
from src.resolver.resolver_batch import BatchRunner, BatchSummary
from src.resolver.resolver_errors import PersistenceError
from src.resolver.resolver_store import MappingStore


SAMPLE_IDS = ["100", "101", "102"]


def update_alchemy_data(settings: Settings, resolver=None) -> BatchSummary:
    """
    Run the bulk update end to end.

    Args:
        settings: Resolved settings
        resolver: Prebuilt resolver (built from settings if not provided)

    Returns:
        Summary of the batch run
    """
    dataset = PunkDataset.from_file(settings.data_path)

    if resolver is None:
        store = MappingStore(settings.mapping_path).load()
        resolver = build_resolver(settings, store)
    store = resolver.store

    log_info(f"Total punks: {len(dataset)}")
    log_info(f"Already have Alchemy URLs: {len(store)}")

    runner = BatchRunner(
        resolver,
        batch_size=settings.batch_size,
        batch_delay=settings.batch_delay,
        concurrency=settings.batch_concurrency
    )
    summary = runner.run_all(dataset.ids())

    snapshot = build_snapshot(dataset, store.snapshot(), resolver.fallback_url)
    write_snapshot(settings.snapshot_path, snapshot)

    for punk_id, kind, url in sample_report(snapshot, SAMPLE_IDS):
        log_info(f"Punk {punk_id}: {kind} - {url}")

    return summary


def main():
    """Entry point for the bulk update tool."""
    load_config()

    try:
        validate_config(["ALCHEMY_API_KEY"])
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        print("Please set ALCHEMY_API_KEY in your .env file")
        sys.exit(1)

    initialize_logger(log_level=settings.log_level, log_file=settings.log_file)

    print("🚀 Starting Alchemy data update...")

    try:
        summary = update_alchemy_data(settings)
    except (PersistenceError, OSError, ValueError) as e:
        log_error(f"Alchemy data update failed: {e}")
        sys.exit(1)

    print(f"\n🎉 Completed! Fetched {summary.resolved} new image URLs")
    print(f"  - Total punks: {summary.total}")
    print(f"  - Already mapped: {summary.skipped}")
    print(f"  - Fallback URLs needed: {summary.fallbacks}")


if __name__ == "__main__":
    main()
