"""
Interfaces the agent consumes from the live game.

WorldSnapshot is polled every tick; MovementDriver calls block on a
navigation worker thread and must return promptly once ``cancel`` is set.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import List, Protocol, Sequence, Union

from ..knowledge import Lodestone, WorldPoint

BANK_INTERFACE = "bank"
BANK_BOOTH = "Bank booth"
BANKER = "Banker"


@dataclass(frozen=True)
class Interactable:
    """An NPC or object found near the player."""
    name: str
    position: WorldPoint
    distance: float


@dataclass(frozen=True)
class SkillStats:
    level: int
    xp: int
    xp_to_next_level: int


class WorldSnapshot(Protocol):
    def is_environment_ready(self) -> bool: ...

    def is_session_active(self) -> bool: ...

    def current_position(self) -> WorldPoint: ...

    def is_storage_full(self) -> bool: ...

    def free_storage_slots(self) -> int: ...

    def storage_item_count(self) -> int: ...

    def find_interactables(self, name: str) -> List[Interactable]: ...

    def interact(self, entity: Interactable, action_index: int) -> bool: ...

    def is_interface_open(self, kind: str) -> bool: ...

    def close_interface(self, kind: str) -> None: ...

    def deposit_all(self, kind: str) -> None: ...

    def remove_item(self, item_id: int) -> bool: ...

    def contains_item(self, item: Union[int, str]) -> bool: ...

    def is_animating(self) -> bool: ...

    def use_item(self, name: str) -> bool: ...

    def get_skill(self, name: str) -> SkillStats: ...


class MovementDriver(Protocol):
    def walk_to(
        self, target: WorldPoint, tolerance: int, timeout: float, cancel: threading.Event
    ) -> bool: ...

    def walk_path(
        self, waypoints: Sequence[WorldPoint], tolerance: int, timeout: float, cancel: threading.Event
    ) -> bool: ...

    def teleport(self, lodestone: Lodestone, timeout: float, cancel: threading.Event) -> bool: ...

    def item_teleport(self, item_name: str, timeout: float, cancel: threading.Event) -> bool: ...
