"""
Catalog - lookups over the static fishing reference data.

Usage:
    catalog = get_catalog()
    loc = catalog.fishing_location("catherby")
    path = catalog.find_path(player_pos, loc.area.center)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TypeVar

from . import loader
from .geometry import WorldPoint
from .models import (
    BankLocation,
    FishingLocation,
    FishingSpotType,
    FishType,
    Lodestone,
    WaypointPath,
)

logger = logging.getLogger(__name__)

DEFAULT_PATH_THRESHOLD = 20

T = TypeVar("T")


def _resolve(table: Dict[str, T], name: str, kind: str) -> T:
    """Find an entry by key, falling back to a case-insensitive display-name match."""
    if name in table:
        return table[name]
    needle = name.strip().lower()
    for entry in table.values():
        if getattr(entry, "name", "").lower() == needle:
            return entry
    raise loader.CatalogError(f"Unknown {kind}: {name!r}")


@dataclass
class Catalog:
    fish: Dict[str, FishType] = field(default_factory=dict)
    spot_types: Dict[str, FishingSpotType] = field(default_factory=dict)
    lodestones: Dict[str, Lodestone] = field(default_factory=dict)
    banks: Dict[str, BankLocation] = field(default_factory=dict)
    fishing_locations: Dict[str, FishingLocation] = field(default_factory=dict)
    paths: List[WaypointPath] = field(default_factory=list)

    @classmethod
    def load(cls, base_dir: Path = loader.KNOWLEDGE_DIR) -> "Catalog":
        fish = loader.load_fish(base_dir)
        lodestones = loader.load_lodestones(base_dir)
        spots = loader.load_spot_types(fish, base_dir)
        banks = loader.load_banks(lodestones, base_dir)
        locations = loader.load_fishing_locations(spots, banks, lodestones, base_dir)
        catalog = cls(
            fish=fish,
            spot_types=spots,
            lodestones=lodestones,
            banks=banks,
            fishing_locations=locations,
            paths=loader.load_paths(base_dir),
        )
        logger.debug(
            f"Catalog loaded: {len(fish)} fish, {len(spots)} spot types, "
            f"{len(banks)} banks, {len(locations)} locations, {len(catalog.paths)} paths"
        )
        return catalog

    # ============================================
    # NAMED LOOKUPS
    # ============================================

    def fish_type(self, name: str) -> FishType:
        return _resolve(self.fish, name, "fish")

    def spot_type(self, name: str) -> FishingSpotType:
        return _resolve(self.spot_types, name, "fishing spot type")

    def lodestone(self, name: str) -> Lodestone:
        return _resolve(self.lodestones, name, "lodestone")

    def bank(self, name: str) -> BankLocation:
        return _resolve(self.banks, name, "bank")

    def fishing_location(self, name: str) -> FishingLocation:
        return _resolve(self.fishing_locations, name, "fishing location")

    def fish_by_id(self, item_id: int) -> Optional[FishType]:
        for fish in self.fish.values():
            if fish.item_id == item_id:
                return fish
        return None

    # ============================================
    # QUERIES
    # ============================================

    def available_for_level(self, level: int) -> List[FishType]:
        """Fish catchable at a fishing level, highest requirement first."""
        available = [f for f in self.fish.values() if f.level_required <= level]
        return sorted(available, key=lambda f: f.level_required, reverse=True)

    def locations_for_fish(self, fish: FishType) -> List[FishingLocation]:
        return [loc for loc in self.fishing_locations.values() if fish in loc.spot_type.fish]

    def locations_with_bank(self) -> List[FishingLocation]:
        return [loc for loc in self.fishing_locations.values() if loc.nearest_bank is not None]

    def find_path(
        self,
        start: WorldPoint,
        end: WorldPoint,
        threshold: float = DEFAULT_PATH_THRESHOLD,
    ) -> Optional[WaypointPath]:
        """
        Find a predefined path between two points.

        A path matches when its start is within ``threshold`` of ``start`` and
        its end within ``threshold`` of ``end``. Paths are also tried reversed,
        so a single entry serves both directions. Returns None when no tested
        route exists.
        """
        return find_path(self.paths, start, end, threshold)


def find_path(
    paths: Iterable[WaypointPath],
    start: WorldPoint,
    end: WorldPoint,
    threshold: float = DEFAULT_PATH_THRESHOLD,
) -> Optional[WaypointPath]:
    for path in paths:
        if path.start.is_within(start, threshold) and path.end.is_within(end, threshold):
            return path
        reversed_path = path.reversed()
        if reversed_path.start.is_within(start, threshold) and reversed_path.end.is_within(end, threshold):
            return reversed_path
    return None


_catalog: Optional[Catalog] = None


def get_catalog() -> Catalog:
    """Get or load the packaged catalog."""
    global _catalog
    if _catalog is None:
        _catalog = Catalog.load()
    return _catalog
