"""
Knowledge - static fishing reference data.

Provides:
- WorldPoint / WorldArea: tile geometry
- FishType, FishingSpotType, BankLocation, FishingLocation, Lodestone
- WaypointPath: tested walking routes, usable in either direction
- Catalog: YAML-backed lookups (get_catalog() for the packaged data)
"""

from .catalog import Catalog, find_path, get_catalog
from .geometry import WorldArea, WorldPoint
from .loader import CatalogError
from .models import (
    BankLocation,
    FishingAction,
    FishingBait,
    FishingEquipment,
    FishingLocation,
    FishingSpotType,
    FishType,
    Lodestone,
    WaypointPath,
)

__all__ = [
    "Catalog",
    "CatalogError",
    "find_path",
    "get_catalog",
    "WorldArea",
    "WorldPoint",
    "BankLocation",
    "FishingAction",
    "FishingBait",
    "FishingEquipment",
    "FishingLocation",
    "FishingSpotType",
    "FishType",
    "Lodestone",
    "WaypointPath",
]
