"""World access: the snapshot/movement protocols and their two backends."""

from .bridge_client import BridgeClient
from .protocol import (
    BANK_BOOTH,
    BANK_INTERFACE,
    BANKER,
    Interactable,
    MovementDriver,
    SkillStats,
    WorldSnapshot,
)
from .simulated import SimEntity, SimItem, SimulatedWorld

__all__ = [
    "BANK_INTERFACE",
    "BANK_BOOTH",
    "BANKER",
    "BridgeClient",
    "Interactable",
    "MovementDriver",
    "SkillStats",
    "WorldSnapshot",
    "SimEntity",
    "SimItem",
    "SimulatedWorld",
]
