"""
Rewrite mapped Alchemy CDN URLs to their Cloudinary PNG equivalents.

Each PNG URL is probed with a HEAD request first; URLs whose PNG does not
answer are kept as they are. The mapping file is rewritten after every
batch and the snapshot is regenerated at the end.

Usage:
    python src/convert_to_png.py
"""

import sys
import time
from pathlib import Path
from typing import Dict, Tuple

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config.config_module import ConfigError, load_config, validate_config
from src.config.logger_module import initialize_logger, log_info, log_warning, log_error
from src.config.settings import Settings
from src.regenerate_snapshot import regenerate_snapshot
from src.resolver.resolver_client import AlchemyClient
from src.resolver.resolver_errors import PersistenceError
from src.resolver.resolver_store import MappingStore, write_json_atomic


def convert_url(client: AlchemyClient, punk_id: str, url: str) -> str:
    """Return the PNG URL when it resolves, otherwise the original URL."""
    if "convert-png" in url:
        return url

    png_url = client.png_url_for(url)
    if client.probe_url(png_url):
        log_info(f"Converted punk {punk_id} to PNG URL")
        return png_url

    log_warning(f"PNG URL failed for punk {punk_id}, keeping original")
    return url


def convert_mapping(client: AlchemyClient,
                    mapping_path: str,
                    batch_size: int = 50,
                    item_delay: float = 0.05) -> Tuple[Dict[str, str], int]:
    """
    Convert every URL in a mapping file, checkpointing after each batch.

    Returns:
        (converted mapping, number of URLs changed)
    """
    mapping = MappingStore(mapping_path).load().snapshot()

    ids = list(mapping.keys())
    updated = dict(mapping)
    converted = 0
    total_batches = (len(ids) + batch_size - 1) // batch_size

    for start in range(0, len(ids), batch_size):
        batch = ids[start:start + batch_size]
        log_info(f"Processing batch {start // batch_size + 1}/{total_batches}")

        for punk_id in batch:
            new_url = convert_url(client, punk_id, mapping[punk_id])
            if new_url != mapping[punk_id]:
                updated[punk_id] = new_url
                converted += 1
            if item_delay > 0:
                time.sleep(item_delay)

        write_json_atomic(mapping_path, updated)
        log_info(f"Progress saved: {start + len(batch)}/{len(ids)} URLs processed")

    return updated, converted


def main():
    """Entry point for the PNG conversion tool."""
    load_config()

    try:
        validate_config(["ALCHEMY_API_KEY"])
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    initialize_logger(log_level=settings.log_level, log_file=settings.log_file)

    try:
        client = AlchemyClient(
            api_key=settings.alchemy_api_key,
            request_timeout=settings.request_timeout_seconds
        )
        mapping, converted = convert_mapping(
            client, settings.mapping_path, batch_size=settings.batch_size
        )
        regenerate_snapshot(settings)
    except (PersistenceError, OSError, ValueError) as e:
        log_error(f"PNG conversion failed: {e}")
        sys.exit(1)

    print("\n🎉 Conversion completed!")
    print(f"  - Total URLs: {len(mapping)}")
    print(f"  - Converted to PNG: {converted}")
    print(f"  - Kept as is: {len(mapping) - converted}")


if __name__ == "__main__":
    main()
