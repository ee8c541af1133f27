"""
Consolidated snapshot generation.

Recombines the static dataset with the final mapping into
cryptoPunkData-Alchemy.json, using the fallback URL for unmapped ids.
"""

from typing import Callable, Dict, List, Tuple

from ..config.logger_module import log_info
from ..resolver.resolver_store import write_json_atomic
from .punks_dataset import PunkDataset


def build_snapshot(dataset: PunkDataset,
                   mapping: Dict[str, str],
                   fallback: Callable[[str], str]) -> Dict[str, Dict[str, object]]:
    """
    Build the consolidated {id: {type, accessories, image}} snapshot.

    Args:
        dataset: Static punk attributes
        mapping: Resolved id -> URL mapping
        fallback: Produces the URL for ids absent from the mapping
    """
    snapshot = {}
    for punk_id, record in dataset.items():
        snapshot[punk_id] = {
            "type": record.type,
            "accessories": list(record.accessories),
            "image": mapping.get(punk_id) or fallback(punk_id),
        }
    return snapshot


def write_snapshot(path: str, snapshot: Dict[str, Dict[str, object]]) -> None:
    """Write the consolidated snapshot file."""
    write_json_atomic(path, snapshot)
    log_info(f"Snapshot written: {len(snapshot)} punks to {path}")


def classify_url(url: str) -> str:
    """Classify an image URL as "svg" (Alchemy CDN), "png" (converted) or "other"."""
    if "convert-png" in url:
        return "png"
    if "nft-cdn.alchemy.com" in url:
        return "svg"
    return "other"


def sample_report(snapshot: Dict[str, Dict[str, object]],
                  sample_ids: List[str]) -> List[Tuple[str, str, str]]:
    """
    Describe the image URL of a few sample ids.

    Returns:
        List of (id, kind, url) for the sample ids present in the snapshot
    """
    report = []
    for punk_id in sample_ids:
        entry = snapshot.get(punk_id)
        if entry is None:
            continue
        url = str(entry["image"])
        report.append((punk_id, classify_url(url), url))
    return report
