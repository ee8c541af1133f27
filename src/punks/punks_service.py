"""
Punk lookup service combining the static dataset with the image source.
"""

import random
from typing import Any, Dict, Iterable, List, Optional

from .punks_dataset import PunkDataset, PunkRecord
from .punks_image_source import ImageSource


class PunkService:
    """Service methods behind the /api/punks routes."""

    def __init__(self, dataset: PunkDataset, image_source: ImageSource):
        self.dataset = dataset
        self.image_source = image_source

    def _transform(self, punk_id: str, record: PunkRecord) -> Dict[str, Any]:
        return {
            "id": punk_id,
            "type": record.type,
            "accessories": list(record.accessories),
            "image": self.image_source.image_url(punk_id),
        }

    def find_all(self) -> List[Dict[str, Any]]:
        return [self._transform(punk_id, record) for punk_id, record in self.dataset.items()]

    def find(self, punk_id: str) -> Optional[Dict[str, Any]]:
        """Return one punk with its image URL, or None for an unknown id."""
        record = self.dataset.get(punk_id)
        if record is None:
            return None
        return self._transform(str(punk_id), record)

    def types(self) -> List[str]:
        return self.dataset.types()

    def accessories(self) -> List[str]:
        return self.dataset.accessories()

    def filter(self,
               punk_type: str,
               accessories: str,
               limit: int = 10,
               rng: random.Random = None) -> List[Dict[str, Any]]:
        """Filtered random sample; records keep their dataset image."""
        matches = self.dataset.filter(punk_type, accessories, limit=limit, rng=rng)
        return [{"id": punk_id, **record.to_dict()} for punk_id, record in matches]

    def resolve_all(self, punk_ids: Iterable[str]) -> Dict[str, str]:
        """Map each known id to its served image URL."""
        return {
            str(punk_id): self.image_source.image_url(punk_id)
            for punk_id in punk_ids
            if punk_id in self.dataset
        }
