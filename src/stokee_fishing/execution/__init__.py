"""Execution: the fishing state machine and its configuration."""

from .fishing_config import BANK_TELEPORT_ITEMS, ConfigurationError, FishingConfig, MachineTimings
from .machine import FishingMachine, TransitionRecord
from .states import FishingState, FishingTrigger, InventoryFullAction, ReturnToFishingMethod
from .transitions import TRANSITIONS, can_fire, destination, permitted_triggers

__all__ = [
    "BANK_TELEPORT_ITEMS",
    "ConfigurationError",
    "FishingConfig",
    "MachineTimings",
    "FishingMachine",
    "TransitionRecord",
    "FishingState",
    "FishingTrigger",
    "InventoryFullAction",
    "ReturnToFishingMethod",
    "TRANSITIONS",
    "can_fire",
    "destination",
    "permitted_triggers",
]
