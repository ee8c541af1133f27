"""
Regenerate cryptoPunkData-Alchemy.json from the dataset and the mapping.

No provider calls are made: mapped punks get their stored URL and the rest
the cryptopunks.app PNG. A few sample ids are reported as SVG, PNG or other.

Usage:
    python src/regenerate_snapshot.py
"""

import sys
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config.config_module import ConfigError, load_config
from src.config.logger_module import initialize_logger, log_info, log_error
from src.config.settings import Settings
from src.punks.punks_dataset import PunkDataset
from src.punks.punks_snapshot import build_snapshot, sample_report, write_snapshot
from src.resolver.resolver_errors import PersistenceError
from src.resolver.resolver_store import MappingStore
from src.resolver.resolver_workflow import CRYPTOPUNKS_APP_TEMPLATE, format_template


SAMPLE_IDS = ["100", "101", "102"]


def fallback_url(punk_id: str) -> str:
    return format_template(CRYPTOPUNKS_APP_TEMPLATE, punk_id)


def regenerate_snapshot(settings: Settings,
                        sample_ids: Sequence[str] = SAMPLE_IDS
                        ) -> Tuple[Dict[str, Dict[str, object]], List[Tuple[str, str, str]]]:
    """
    Rebuild and write the consolidated snapshot.

    Args:
        settings: Resolved settings (data, mapping and snapshot paths)
        sample_ids: Ids to describe in the report

    Returns:
        (snapshot, sample report of (id, kind, url))
    """
    dataset = PunkDataset.from_file(settings.data_path)
    mapping = MappingStore(settings.mapping_path).load().snapshot()

    snapshot = build_snapshot(dataset, mapping, fallback_url)
    write_snapshot(settings.snapshot_path, snapshot)

    report = sample_report(snapshot, list(sample_ids))
    for punk_id, kind, url in report:
        log_info(f"Punk {punk_id}: {kind} - {url}")

    return snapshot, report


def main():
    """Entry point for snapshot regeneration."""
    load_config()

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    initialize_logger(log_level=settings.log_level, log_file=settings.log_file)

    try:
        snapshot, report = regenerate_snapshot(settings)
    except (PersistenceError, OSError, ValueError) as e:
        log_error(f"Snapshot regeneration failed: {e}")
        sys.exit(1)

    print(f"✅ {settings.snapshot_path} regenerated")
    print(f"📊 Total entries: {len(snapshot)}")
    print("\n🔍 Sample URLs:")
    for punk_id, kind, url in report:
        print(f"Punk {punk_id}: {kind.upper()} - {url}")


if __name__ == "__main__":
    main()
