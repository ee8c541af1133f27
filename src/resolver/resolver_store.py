"""
Durable id -> image URL mapping backed by a single JSON file.

The whole map is rewritten on every durable write using an atomic
temp-file-and-replace, so a crash never leaves a half-written mapping file.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from ..config.config_module import get_config
from ..config.logger_module import log_info, log_warning, log_error
from .resolver_errors import PersistenceError


def normalize_id(punk_id: Union[str, int]) -> str:
    """Normalize an item identifier to its canonical decimal string."""
    text = str(punk_id).strip()
    if not text.isdigit():
        raise ValueError(f"Invalid punk id: {punk_id!r}")
    return str(int(text))


def write_json_atomic(path: Union[str, Path], data: dict) -> None:
    """
    Replace a file with indented JSON via a temp file in the same directory.

    Readers see either the old or the new content, never a partial file.

    Raises:
        OSError: If the temp file cannot be written or moved into place
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise


class MappingStore:
    """
    In-memory mapping of punk id to resolved image URL with a durable JSON copy.

    Presence of a key means the URL was fetched from the provider and
    committed. Entries are only ever added; nothing in this class removes
    or rewrites an existing id.

    Failure contract: when the file write fails, put() raises
    PersistenceError but the in-memory entry is kept, so the process keeps
    serving the fetched URL. The next successful write persists it.
    """

    def __init__(self, path: str = None):
        """
        Initialize the store.

        Args:
            path: Mapping file location (MAPPING_PATH config if not provided)
        """
        self.path = Path(
            path or get_config("MAPPING_PATH", "openseaCdnMapping.json")
        )
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self) -> "MappingStore":
        """
        Load the mapping file into memory.

        A missing file is treated as an empty mapping.

        Returns:
            self, for chaining

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            log_warning(f"Mapping file {self.path} not found, starting empty")
            with self._lock:
                self._entries = {}
            return self

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log_error(f"Failed to read mapping file {self.path}: {e}")
            raise PersistenceError(f"Failed to read mapping file: {e}")

        if not isinstance(data, dict):
            raise PersistenceError(
                f"Mapping file {self.path} must hold a JSON object, "
                f"got {type(data).__name__}"
            )

        entries = {}
        for key, url in data.items():
            if not isinstance(url, str) or not url or not str(key).strip().isdigit():
                log_warning(f"Ignoring invalid mapping entry for id {key!r}")
                continue
            entries[normalize_id(key)] = url

        with self._lock:
            self._entries = entries

        log_info(f"Loaded {len(entries)} mapped URLs from {self.path}")
        return self

    def get(self, punk_id: Union[str, int]) -> Optional[str]:
        """Return the stored URL for an id, or None if unresolved."""
        with self._lock:
            return self._entries.get(normalize_id(punk_id))

    def contains(self, punk_id: Union[str, int]) -> bool:
        with self._lock:
            return normalize_id(punk_id) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self) -> Dict[str, str]:
        """Return a copy of the current in-memory mapping."""
        with self._lock:
            return dict(self._entries)

    def put(self, punk_id: Union[str, int], url: str) -> None:
        """
        Record a resolved URL and durably write the entire mapping.

        Args:
            punk_id: Item identifier
            url: Provider-resolved image URL

        Raises:
            ValueError: On an empty URL
            PersistenceError: If the file write fails (memory keeps the entry)
        """
        if not url:
            raise ValueError("Cannot store an empty URL")

        key = normalize_id(punk_id)
        with self._lock:
            self._entries[key] = url
            self._write_locked()

    def flush(self) -> None:
        """
        Write the current mapping to disk.

        Raises:
            PersistenceError: If the file write fails
        """
        with self._lock:
            self._write_locked()
            count = len(self._entries)
        log_info(f"Mapping flushed: {count} URLs in {self.path}")

    def _write_locked(self) -> None:
        """Serialize the full map and atomically replace the target file."""
        try:
            write_json_atomic(self.path, self._entries)
        except OSError as e:
            log_error(f"Failed to write mapping file {self.path}: {e}")
            raise PersistenceError(f"Failed to write mapping file: {e}")
