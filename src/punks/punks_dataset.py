"""
Static CryptoPunks attribute dataset.

Loads cryptoPunkData.json ({id: {type, accessories, image}}) and answers
the listing and filtering queries used by the HTTP API.
"""

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..config.logger_module import log_info, log_error


@dataclass
class PunkRecord:
    """Attributes of a single punk as stored in the dataset."""

    type: str
    accessories: List[str] = field(default_factory=list)
    image: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {"type": self.type, "image": self.image, "accessories": list(self.accessories)}


class PunkDataset:
    """Read-only collection of punk records keyed by id."""

    def __init__(self, records: Dict[str, PunkRecord]):
        self._records = records

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, object]]) -> "PunkDataset":
        records = {}
        for punk_id, raw in data.items():
            records[str(punk_id)] = PunkRecord(
                type=str(raw.get("type", "")),
                accessories=[str(a) for a in raw.get("accessories") or []],
                image=str(raw.get("image", "")),
            )
        return cls(records)

    @classmethod
    def from_file(cls, path: str) -> "PunkDataset":
        """
        Load the dataset from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not a JSON object
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            log_error(f"Invalid dataset file {path}: {e}")
            raise

        if not isinstance(data, dict):
            raise ValueError(f"Dataset file {path} must hold a JSON object")

        dataset = cls.from_dict(data)
        log_info(f"Loaded {len(dataset)} punks from {path}")
        return dataset

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, punk_id: object) -> bool:
        return str(punk_id) in self._records

    def ids(self) -> List[str]:
        return list(self._records.keys())

    def items(self) -> List[Tuple[str, PunkRecord]]:
        return list(self._records.items())

    def get(self, punk_id: str) -> Optional[PunkRecord]:
        return self._records.get(str(punk_id))

    def types(self) -> List[str]:
        """Distinct punk types in first-seen order."""
        return list(dict.fromkeys(record.type for record in self._records.values()))

    def accessories(self) -> List[str]:
        """Distinct non-empty accessories in first-seen order."""
        seen = dict.fromkeys(
            accessory
            for record in self._records.values()
            for accessory in record.accessories
            if accessory
        )
        return list(seen)

    def filter(self,
               punk_type: str,
               accessories: str,
               limit: int = 10,
               rng: random.Random = None) -> List[Tuple[str, PunkRecord]]:
        """
        Select a random sample of punks matching a type and accessories.

        Args:
            punk_type: Type name (case-insensitive) or "any"
            accessories: Comma-separated accessory fragments or "any"; every
                fragment must appear (case-insensitive substring) in one of
                the punk's accessories
            limit: Maximum number of results; a negative limit drops that
                many matches from the shuffled list instead
            rng: Random source for sampling

        Returns:
            List of (id, record) pairs in random order
        """
        normalized_type = None
        if punk_type.lower() != "any":
            normalized_type = punk_type.lower().capitalize()

        requested = []
        if accessories.lower() != "any":
            requested = [a.strip().lower() for a in accessories.split(",") if a.strip()]

        matches = []
        for punk_id, record in self._records.items():
            if normalized_type and record.type != normalized_type:
                continue
            owned = [a.lower() for a in record.accessories]
            if all(any(req in acc for acc in owned) for req in requested):
                matches.append((punk_id, record))

        rng = rng or random.Random()
        count = limit if limit >= 0 else len(matches) + limit
        return rng.sample(matches, min(max(count, 0), len(matches)))
