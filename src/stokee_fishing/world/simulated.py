"""
In-memory game world for dry runs and tests.

Implements both WorldSnapshot and MovementDriver. Movement completes
instantly unless ``move_delay`` is set, in which case it sleeps in small
steps and honours the cancel event. ``advance()`` rolls one fishing
attempt and is called by the CLI loop once per tick.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Union

from ..knowledge import FishingLocation, BankLocation, Lodestone, WorldPoint
from .protocol import BANK_BOOTH, BANK_INTERFACE, BANKER, Interactable, SkillStats

logger = logging.getLogger(__name__)

SIGHT_RANGE = 30


@dataclass
class SimItem:
    item_id: int
    name: str


@dataclass
class SimEntity:
    name: str
    position: WorldPoint


@dataclass
class SimulatedWorld:
    position: WorldPoint = field(default_factory=lambda: WorldPoint(0, 0))
    capacity: int = 28
    items: List[SimItem] = field(default_factory=list)
    entities: List[SimEntity] = field(default_factory=list)
    ready: bool = True
    logged_in: bool = True
    animating: bool = False
    open_interfaces: Set[str] = field(default_factory=set)
    skills: Dict[str, SkillStats] = field(default_factory=dict)
    lodestone_positions: Dict[str, WorldPoint] = field(default_factory=dict)
    item_teleports: Dict[str, WorldPoint] = field(default_factory=dict)

    # Fishing simulation
    catch_item: Optional[SimItem] = None
    catch_xp: float = 0.0
    catch_chance: float = 0.35

    # Failure injection
    interact_succeeds: bool = True
    walk_succeeds: bool = True
    teleport_succeeds: bool = True
    move_delay: float = 0.0

    used_items: List[str] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self) -> None:
        self._lock = threading.RLock()

    @classmethod
    def around(
        cls,
        location: FishingLocation,
        bank: Optional[BankLocation] = None,
        start: Optional[WorldPoint] = None,
        **kwargs,
    ) -> "SimulatedWorld":
        """Build a world with fishing spots at ``location`` and a booth at ``bank``."""
        center = location.area.center
        entities = [
            SimEntity(location.spot_type.spot_name, WorldPoint(center.x + dx, center.y, center.plane))
            for dx in (-2, 3)
        ]
        lodestones: Dict[str, WorldPoint] = {}
        _place_lodestone(lodestones, location.nearest_lodestone, center)
        if bank is not None:
            entities.append(SimEntity(BANK_BOOTH, bank.area.center))
            _place_lodestone(lodestones, bank.nearest_lodestone, bank.area.center)
        target = location.spot_type.fish[0] if location.spot_type.fish else None
        world = cls(
            position=start or center,
            entities=entities,
            lodestone_positions=lodestones,
            catch_item=SimItem(target.item_id, target.name) if target else None,
            catch_xp=target.xp_per_catch if target else 0.0,
            skills={"fishing": SkillStats(level=50, xp=101_333, xp_to_next_level=10_000)},
            **kwargs,
        )
        return world

    # ============================================
    # SIMULATION CONTROLS
    # ============================================

    def advance(self) -> None:
        """One fishing roll while animating."""
        with self._lock:
            if not self.animating or self.catch_item is None:
                return
            if self.is_storage_full():
                self.animating = False
                return
            if self.rng.random() < self.catch_chance:
                self.catch()

    def catch(self, count: int = 1) -> None:
        with self._lock:
            for _ in range(count):
                if self.catch_item is None or len(self.items) >= self.capacity:
                    break
                self.items.append(SimItem(self.catch_item.item_id, self.catch_item.name))
                self._gain_xp("fishing", int(self.catch_xp))
            if len(self.items) >= self.capacity:
                self.animating = False

    def exhaust_spot(self) -> None:
        with self._lock:
            self.animating = False

    def move_spot(self, old: WorldPoint, new: WorldPoint) -> None:
        """Relocate the entity at ``old``; anyone fishing it stops."""
        with self._lock:
            for i, entity in enumerate(self.entities):
                if entity.position == old:
                    self.entities[i] = SimEntity(entity.name, new)
                    self.animating = False
                    return
            raise ValueError(f"No entity at {old}")

    def fill_with(self, item: SimItem, count: int) -> None:
        with self._lock:
            for _ in range(count):
                self.items.append(SimItem(item.item_id, item.name))

    def _gain_xp(self, skill: str, amount: int) -> None:
        stats = self.skills.get(skill)
        if stats is None or amount <= 0:
            return
        remaining = stats.xp_to_next_level - amount
        level = stats.level
        while remaining <= 0:
            level += 1
            remaining += 10_000
        self.skills[skill] = SkillStats(level=level, xp=stats.xp + amount, xp_to_next_level=remaining)

    # ============================================
    # WORLD SNAPSHOT
    # ============================================

    def is_environment_ready(self) -> bool:
        return self.ready

    def is_session_active(self) -> bool:
        return self.logged_in

    def current_position(self) -> WorldPoint:
        with self._lock:
            return self.position

    def is_storage_full(self) -> bool:
        with self._lock:
            return len(self.items) >= self.capacity

    def free_storage_slots(self) -> int:
        with self._lock:
            return max(self.capacity - len(self.items), 0)

    def storage_item_count(self) -> int:
        with self._lock:
            return len(self.items)

    def find_interactables(self, name: str) -> List[Interactable]:
        with self._lock:
            found = []
            for entity in self.entities:
                if entity.name != name:
                    continue
                distance = self.position.distance_to(entity.position)
                if distance <= SIGHT_RANGE:
                    found.append(Interactable(entity.name, entity.position, distance))
            return found

    def interact(self, entity: Interactable, action_index: int) -> bool:
        with self._lock:
            if not self.interact_succeeds:
                return False
            if entity.name in (BANK_BOOTH, BANKER):
                self.open_interfaces.add(BANK_INTERFACE)
            else:
                self.animating = not self.is_storage_full()
            return True

    def is_interface_open(self, kind: str) -> bool:
        with self._lock:
            return kind in self.open_interfaces

    def close_interface(self, kind: str) -> None:
        with self._lock:
            self.open_interfaces.discard(kind)

    def deposit_all(self, kind: str) -> None:
        with self._lock:
            if kind in self.open_interfaces:
                self.items.clear()

    def remove_item(self, item_id: int) -> bool:
        with self._lock:
            for i, item in enumerate(self.items):
                if item.item_id == item_id:
                    del self.items[i]
                    return True
            return False

    def contains_item(self, item: Union[int, str]) -> bool:
        with self._lock:
            if isinstance(item, int):
                return any(i.item_id == item for i in self.items)
            needle = item.lower()
            return any(i.name.lower() == needle for i in self.items)

    def is_animating(self) -> bool:
        with self._lock:
            return self.animating

    def use_item(self, name: str) -> bool:
        with self._lock:
            if not self.contains_item(name):
                return False
            self.used_items.append(name)
            return True

    def get_skill(self, name: str) -> SkillStats:
        with self._lock:
            return self.skills.get(name, SkillStats(level=1, xp=0, xp_to_next_level=83))

    # ============================================
    # MOVEMENT DRIVER
    # ============================================

    def walk_to(self, target: WorldPoint, tolerance: int, timeout: float, cancel: threading.Event) -> bool:
        return self._travel(target, self.walk_succeeds, timeout, cancel)

    def walk_path(
        self, waypoints: Sequence[WorldPoint], tolerance: int, timeout: float, cancel: threading.Event
    ) -> bool:
        for point in waypoints:
            if not self._travel(point, self.walk_succeeds, timeout, cancel):
                return False
        return True

    def teleport(self, lodestone: Lodestone, timeout: float, cancel: threading.Event) -> bool:
        destination = self.lodestone_positions.get(lodestone.key) or lodestone.position
        if destination is None:
            logger.warning(f"Simulated world has no position for lodestone {lodestone.key}")
            return False
        return self._travel(destination, self.teleport_succeeds, timeout, cancel)

    def item_teleport(self, item_name: str, timeout: float, cancel: threading.Event) -> bool:
        destination = self.item_teleports.get(item_name)
        if destination is None or not self.use_item(item_name):
            return False
        return self._travel(destination, self.teleport_succeeds, timeout, cancel)

    def _travel(self, target: WorldPoint, succeeds: bool, timeout: float, cancel: threading.Event) -> bool:
        if self.move_delay > 0:
            # Wait in slices so cancellation is noticed quickly
            deadline = time.monotonic() + min(self.move_delay, timeout)
            while time.monotonic() < deadline:
                if cancel.wait(0.01):
                    return False
            if self.move_delay > timeout:
                return False
        if cancel.is_set() or not succeeds:
            return False
        with self._lock:
            self.position = target
            self.animating = False
        return True


def _place_lodestone(table: Dict[str, WorldPoint], lodestone: Optional[Lodestone], near: WorldPoint) -> None:
    if lodestone is None or lodestone.key in table:
        return
    table[lodestone.key] = lodestone.position or WorldPoint(near.x + 15, near.y + 15, near.plane)
