"""
Bridge Client - world snapshot and movement over the local game bridge.

The bridge is an in-client plugin exposing JSON over HTTP:

    GET  /state               player, inventory, open interfaces, skills
    GET  /objects?name=...    nearby NPCs/objects with that name
    POST /action              {"action": "walk", "x": .., "y": .., "plane": ..}

Every response is wrapped as {"success": bool, "data": ..., "error": ...}.

Usage:
    client = BridgeClient()  # Uses default localhost:8791
    if client.is_environment_ready():
        print(client.current_position())
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from ..knowledge import Lodestone, WorldPoint
from .protocol import Interactable, SkillStats

logger = logging.getLogger(__name__)

DEFAULT_BRIDGE_URL = "http://localhost:8791"
MOVE_POLL_INTERVAL = 0.25


class BridgeClient:
    """WorldSnapshot + MovementDriver backed by the HTTP bridge."""

    def __init__(
        self,
        base_url: str = DEFAULT_BRIDGE_URL,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        self._cache: Dict[str, tuple] = {}  # endpoint -> (data, timestamp)
        self._cache_ttl = 0.1  # 100ms cache to avoid hammering
        self._lock = threading.Lock()

    def close(self) -> None:
        self.client.close()

    # ============================================
    # HTTP HELPERS
    # ============================================

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, use_cache: bool = True) -> Optional[Any]:
        """GET request with optional caching."""
        cache_key = endpoint if not params else f"{endpoint}?{sorted(params.items())}"
        now = time.monotonic()

        with self._lock:
            if use_cache and cache_key in self._cache:
                data, ts = self._cache[cache_key]
                if now - ts < self._cache_ttl:
                    return data

        try:
            resp = self.client.get(endpoint, params=params)
        except httpx.HTTPError as e:
            logger.debug(f"Bridge {endpoint} error: {e}")
            return None
        if resp.status_code != 200:
            logger.warning(f"Bridge {endpoint} HTTP {resp.status_code}")
            return None
        try:
            result = resp.json()
        except ValueError:
            logger.warning(f"Bridge {endpoint} returned invalid JSON")
            return None
        if not result.get("success"):
            logger.warning(f"Bridge {endpoint} failed: {result.get('error')}")
            return None
        data = result.get("data")
        with self._lock:
            self._cache[cache_key] = (data, now)
        return data

    def _action(self, action: str, **payload: Any) -> bool:
        body = {"action": action, **payload}
        try:
            resp = self.client.post("/action", json=body)
        except httpx.HTTPError as e:
            logger.debug(f"Bridge action {action} error: {e}")
            return False
        self.clear_cache()
        if resp.status_code != 200:
            logger.warning(f"Bridge action {action} HTTP {resp.status_code}")
            return False
        try:
            result = resp.json()
        except ValueError:
            logger.warning(f"Bridge action {action} returned invalid JSON")
            return False
        if not result.get("success"):
            logger.info(f"Bridge action {action} rejected: {result.get('error')}")
            return False
        return True

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def _state(self, use_cache: bool = True) -> Dict[str, Any]:
        return self._get("/state", use_cache=use_cache) or {}

    def _inventory(self) -> Dict[str, Any]:
        return self._state().get("inventory") or {}

    # ============================================
    # WORLD SNAPSHOT
    # ============================================

    def is_environment_ready(self) -> bool:
        return bool(self._state().get("ready", False))

    def is_session_active(self) -> bool:
        return bool(self._state().get("loggedIn", False))

    def current_position(self) -> WorldPoint:
        return _parse_point(self._state().get("player") or {})

    def is_storage_full(self) -> bool:
        return self.free_storage_slots() == 0

    def free_storage_slots(self) -> int:
        inventory = self._inventory()
        capacity = int(inventory.get("capacity", 28))
        return max(capacity - len(inventory.get("items") or []), 0)

    def storage_item_count(self) -> int:
        return len(self._inventory().get("items") or [])

    def find_interactables(self, name: str) -> List[Interactable]:
        data = self._get("/objects", params={"name": name}, use_cache=False) or []
        return [
            Interactable(
                name=entry.get("name", name),
                position=_parse_point(entry),
                distance=float(entry.get("distance", 0.0)),
            )
            for entry in data
        ]

    def interact(self, entity: Interactable, action_index: int) -> bool:
        pos = entity.position
        return self._action(
            "interact", name=entity.name, x=pos.x, y=pos.y, plane=pos.plane, option=action_index
        )

    def is_interface_open(self, kind: str) -> bool:
        return kind in (self._state(use_cache=False).get("interfaces") or [])

    def close_interface(self, kind: str) -> None:
        self._action("close_interface", interface=kind)

    def deposit_all(self, kind: str) -> None:
        self._action("deposit_all", interface=kind)

    def remove_item(self, item_id: int) -> bool:
        return self._action("drop", id=item_id)

    def contains_item(self, item: Union[int, str]) -> bool:
        for entry in self._inventory().get("items") or []:
            if isinstance(item, int) and entry.get("id") == item:
                return True
            if isinstance(item, str) and str(entry.get("name", "")).lower() == item.lower():
                return True
        return False

    def is_animating(self) -> bool:
        return int((self._state(use_cache=False).get("player") or {}).get("animation", -1)) > 0

    def use_item(self, name: str) -> bool:
        return self._action("use_item", name=name)

    def get_skill(self, name: str) -> SkillStats:
        data = (self._state().get("skills") or {}).get(name) or {}
        return SkillStats(
            level=int(data.get("level", 1)),
            xp=int(data.get("xp", 0)),
            xp_to_next_level=int(data.get("xpToNextLevel", 0)),
        )

    # ============================================
    # MOVEMENT DRIVER
    # ============================================

    def walk_to(self, target: WorldPoint, tolerance: int, timeout: float, cancel: threading.Event) -> bool:
        deadline = time.monotonic() + timeout
        if not self._action("walk", x=target.x, y=target.y, plane=target.plane):
            return False
        return self._wait_for_arrival(target, tolerance, deadline, cancel)

    def walk_path(
        self, waypoints: Sequence[WorldPoint], tolerance: int, timeout: float, cancel: threading.Event
    ) -> bool:
        deadline = time.monotonic() + timeout
        for point in waypoints:
            if cancel.is_set() or time.monotonic() >= deadline:
                return False
            if not self._action("walk", x=point.x, y=point.y, plane=point.plane):
                return False
            if not self._wait_for_arrival(point, tolerance, deadline, cancel):
                return False
        return True

    def teleport(self, lodestone: Lodestone, timeout: float, cancel: threading.Event) -> bool:
        start = self.current_position()
        if not self._action("lodestone", destination=lodestone.key):
            return False
        return self._wait_for_relocation(start, time.monotonic() + timeout, cancel)

    def item_teleport(self, item_name: str, timeout: float, cancel: threading.Event) -> bool:
        start = self.current_position()
        if not self.use_item(item_name):
            return False
        return self._wait_for_relocation(start, time.monotonic() + timeout, cancel)

    def _wait_for_arrival(self, target: WorldPoint, tolerance: int, deadline: float, cancel: threading.Event) -> bool:
        while time.monotonic() < deadline:
            if self.current_position().is_within(target, tolerance):
                return True
            if cancel.wait(MOVE_POLL_INTERVAL):
                self._action("stop")
                return False
        logger.info(f"Timed out walking to {target}")
        return False

    def _wait_for_relocation(self, start: WorldPoint, deadline: float, cancel: threading.Event) -> bool:
        """Teleports land somewhere far away; any long jump counts as done."""
        while time.monotonic() < deadline:
            pos = self.current_position()
            if not pos.is_within(start, 30):
                return True
            if cancel.wait(MOVE_POLL_INTERVAL):
                return False
        return False


def _parse_point(data: Dict[str, Any]) -> WorldPoint:
    return WorldPoint(int(data.get("x", 0)), int(data.get("y", 0)), int(data.get("plane", 0)))
