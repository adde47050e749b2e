"""
Reference data for fishing: fish, spot types, banks, locations and paths.

Everything here is immutable and built once by the loader. Fishing spots
are NPCs in-game, so a spot type only knows the label to search for and
the action verb to use on it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .geometry import WorldArea, WorldPoint


class FishingAction(Enum):
    """Action verb shown on a fishing spot."""
    NET = "Net"
    BAIT = "Bait"
    LURE = "Lure"
    CAGE = "Cage"
    HARPOON = "Harpoon"
    BIG_NET = "Big net"
    BARBARIAN_FISH = "Use-rod"
    FRENZY = "Frenzy"


class FishingEquipment(Enum):
    NONE = "none"
    SMALL_FISHING_NET = "small_fishing_net"
    BIG_FISHING_NET = "big_fishing_net"
    FISHING_ROD = "fishing_rod"
    FLY_FISHING_ROD = "fly_fishing_rod"
    BARBARIAN_ROD = "barbarian_rod"
    HARPOON = "harpoon"
    LOBSTER_POT = "lobster_pot"
    CRAYFISH_CAGE = "crayfish_cage"
    FISHING_ROD_O_MATIC = "fishing_rod_o_matic"  # Invention item


class FishingBait(Enum):
    NONE = "none"
    FISHING_BAIT = "fishing_bait"
    FEATHERS = "feathers"               # Fly fishing
    STRIPY_FEATHERS = "stripy_feathers"  # Rainbow fish
    LIVING_MINERALS = "living_minerals"  # Rocktails
    ROE = "roe"                         # Barbarian
    CAVIAR = "caviar"                   # Barbarian
    OFFCUTS = "offcuts"


@dataclass(frozen=True)
class Lodestone:
    """Fast-travel anchor."""
    key: str
    name: str
    position: Optional[WorldPoint] = None


@dataclass(frozen=True)
class FishType:
    key: str
    name: str
    item_id: int
    level_required: int
    xp_per_catch: float
    action: FishingAction
    equipment: FishingEquipment
    bait: FishingBait = FishingBait.NONE


@dataclass(frozen=True)
class FishingSpotType:
    """Fish that can be caught together at the same spot."""
    key: str
    name: str
    spot_name: str          # NPC name of the fishing spot
    action: FishingAction
    fish: Tuple[FishType, ...] = ()

    @property
    def fish_ids(self) -> Tuple[int, ...]:
        return tuple(f.item_id for f in self.fish)


@dataclass(frozen=True)
class BankLocation:
    key: str
    name: str
    area: WorldArea
    nearest_lodestone: Optional[Lodestone] = None
    lodestone_distance: int = 0


@dataclass(frozen=True)
class FishingLocation:
    key: str
    name: str
    area: WorldArea
    spot_type: FishingSpotType
    nearest_bank: Optional[BankLocation] = None
    nearest_lodestone: Optional[Lodestone] = None
    requirements: Optional[str] = None


@dataclass(frozen=True)
class WaypointPath:
    """Tested route between two places, walked waypoint by waypoint."""
    name: str
    waypoints: Tuple[WorldPoint, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.waypoints) < 2:
            raise ValueError(f"Path {self.name!r} needs at least two waypoints")

    @property
    def start(self) -> WorldPoint:
        return self.waypoints[0]

    @property
    def end(self) -> WorldPoint:
        return self.waypoints[-1]

    def reversed(self) -> "WaypointPath":
        """Same route walked the other way (for return trips)."""
        return WaypointPath(f"{self.name} (Reversed)", tuple(reversed(self.waypoints)))
