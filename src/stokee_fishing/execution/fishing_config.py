"""
Fishing session configuration.

FishingConfig is built once (from YAML via stokee_fishing.config, or by
hand in tests) and treated as read-only once a machine owns it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..knowledge import BankLocation, FishingLocation, FishingSpotType, FishType
from .states import InventoryFullAction, ReturnToFishingMethod

# Items that teleport to (or next to) a bank when rubbed/operated
BANK_TELEPORT_ITEMS = (
    "Ring of duelling",
    "Ring of wealth",
    "TokKul-Zo",
    "Wicked hood",
)


class ConfigurationError(ValueError):
    """Raised when a session cannot start with the given configuration."""


@dataclass
class MachineTimings:
    """Delays and timeouts used by the machine, in seconds."""
    init_timeout: float = 60.0          # waiting for a ready, logged-in client
    fishing_start_grace: float = 3.0    # ignore idle animation right after clicking a spot
    drop_delay: float = 0.1
    bank_open_timeout: float = 1.0
    bank_poll_interval: float = 0.1
    deposit_wait: float = 0.5
    close_wait: float = 0.3
    idle_min: float = 2.0
    idle_max: float = 4.0
    max_consecutive_idles: int = 3
    walk_timeout: float = 30.0
    teleport_timeout: float = 15.0


@dataclass
class FishingConfig:
    fishing_location: Optional[FishingLocation] = None
    spot_type: Optional[FishingSpotType] = None
    target_fish: Optional[FishType] = None
    bank: Optional[BankLocation] = None

    inventory_full_action: InventoryFullAction = InventoryFullAction.DROP_FISH
    return_method: ReturnToFishingMethod = ReturnToFishingMethod.WALK

    use_boost_potions: bool = False
    boost_potion_name: Optional[str] = None
    boost_interval: float = 300.0

    bank_teleport_item_name: Optional[str] = None
    return_teleport_item_name: Optional[str] = None

    timings: MachineTimings = field(default_factory=MachineTimings)

    @classmethod
    def for_location(cls, location: FishingLocation, **kwargs) -> "FishingConfig":
        """Config with the location's own spot type and nearest bank filled in."""
        kwargs.setdefault("spot_type", location.spot_type)
        kwargs.setdefault("bank", location.nearest_bank)
        return cls(fishing_location=location, **kwargs)

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the config is usable."""
        problems = []
        if self.fishing_location is None:
            problems.append("No fishing location selected")
        if self.spot_type is None:
            problems.append("No fishing spot type selected")
        if self.inventory_full_action is not InventoryFullAction.DROP_FISH and self.bank is None:
            problems.append(
                f"Inventory action '{self.inventory_full_action.value}' needs a bank location"
            )
        if self.timings.idle_min > self.timings.idle_max:
            problems.append("idle_min must not exceed idle_max")
        return problems

    def is_valid(self) -> bool:
        return not self.validate()

    def bank_teleport_candidates(self) -> List[str]:
        """Configured bank teleport first, then the known ones."""
        names = [self.bank_teleport_item_name] if self.bank_teleport_item_name else []
        return names + [name for name in BANK_TELEPORT_ITEMS if name not in names]

    @property
    def fish_to_record(self) -> Optional[FishType]:
        """Fish credited for a catch: the target, else the spot's first fish."""
        if self.target_fish is not None:
            return self.target_fish
        if self.spot_type is not None and self.spot_type.fish:
            return self.spot_type.fish[0]
        return None
