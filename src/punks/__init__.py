"""
Punks module: static dataset, image source strategies, service and HTTP API.

Main classes:
- PunkDataset: Static attribute data loaded from cryptoPunkData.json
- PunkService: Lookups combining dataset records with image URLs
- DeterministicTemplate / ResolverBacked: Image URL strategies
"""

from .punks_dataset import PunkDataset, PunkRecord
from .punks_image_source import (
    DeterministicTemplate,
    ImageSource,
    ResolverBacked,
    build_image_source,
)
from .punks_service import PunkService

__all__ = [
    "PunkDataset",
    "PunkRecord",
    "PunkService",
    "ImageSource",
    "DeterministicTemplate",
    "ResolverBacked",
    "build_image_source",
]
