"""
Navigation Service - one movement goal at a time, off the tick thread.

Goals run on a daemon worker thread and block inside the MovementDriver.
When a goal finishes, the worker posts a NavigationOutcome onto a queue;
the owner of the state machine calls dispatch_completions() on its own
thread to deliver callbacks. Starting a goal cancels the previous one, and
a cancelled goal never delivers a callback.

Usage:
    nav = NavigationService(driver, world, catalog.paths)
    nav.walk_to(bank.area.center, on_arrival=lambda ok: ...)

    # every tick, on the control thread
    nav.dispatch_completions()
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional

from ..knowledge import Lodestone, WaypointPath, WorldPoint, find_path
from ..world import MovementDriver, WorldSnapshot

logger = logging.getLogger(__name__)

WALK_TIMEOUT = 30.0
TELEPORT_TIMEOUT = 15.0
PATH_THRESHOLD = 20
PATH_TOLERANCE = 8      # arrival radius per waypoint
DIRECT_TOLERANCE = 5    # arrival radius for a straight walk

CompletionCallback = Callable[[bool], None]


class GoalKind(Enum):
    WALK = "walk"
    LODESTONE = "lodestone"
    ITEM_TELEPORT = "item_teleport"


@dataclass
class NavigationOutcome:
    """Result of one finished goal, delivered on the control thread."""
    generation: int
    kind: GoalKind
    description: str
    success: bool
    on_complete: Optional[CompletionCallback] = None
    finished_at: float = field(default_factory=time.monotonic)


@dataclass
class _Goal:
    generation: int
    kind: GoalKind
    description: str
    cancel: threading.Event
    on_complete: Optional[CompletionCallback]


class NavigationService:
    def __init__(
        self,
        driver: MovementDriver,
        world: WorldSnapshot,
        paths: Iterable[WaypointPath] = (),
        path_threshold: float = PATH_THRESHOLD,
    ):
        self._driver = driver
        self._world = world
        self._paths: List[WaypointPath] = list(paths)
        self._path_threshold = path_threshold
        self._completions: "queue.Queue[NavigationOutcome]" = queue.Queue()
        self._lock = threading.Lock()
        self._generation = 0
        self._goal: Optional[_Goal] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_navigating(self) -> bool:
        with self._lock:
            return self._goal is not None

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    # ============================================
    # GOALS
    # ============================================

    def walk_to(
        self,
        target: WorldPoint,
        on_arrival: Optional[CompletionCallback] = None,
        timeout: float = WALK_TIMEOUT,
    ) -> int:
        """Walk to a tile, following a tested path when one fits."""
        current = self._world.current_position()
        path = find_path(self._paths, current, target, self._path_threshold)

        if path is not None:
            description = f"path '{path.name}'"
            logger.info(f"Using predefined path: {path.name}")

            def run(cancel: threading.Event) -> bool:
                return self._driver.walk_path(path.waypoints, PATH_TOLERANCE, timeout, cancel)
        else:
            description = f"walk to {target}"
            logger.info(f"Walking directly to {target}")

            def run(cancel: threading.Event) -> bool:
                return self._driver.walk_to(target, DIRECT_TOLERANCE, timeout, cancel)

        return self._start(GoalKind.WALK, description, run, on_arrival)

    def use_lodestone(
        self,
        destination: Lodestone,
        on_complete: Optional[CompletionCallback] = None,
        timeout: float = TELEPORT_TIMEOUT,
    ) -> int:
        logger.info(f"Teleporting to {destination.name} lodestone...")
        return self._start(
            GoalKind.LODESTONE,
            f"{destination.name} lodestone",
            lambda cancel: self._driver.teleport(destination, timeout, cancel),
            on_complete,
        )

    def use_teleport_item(
        self,
        item_name: str,
        on_complete: Optional[CompletionCallback] = None,
        timeout: float = TELEPORT_TIMEOUT,
    ) -> int:
        logger.info(f"Teleporting with {item_name}...")
        return self._start(
            GoalKind.ITEM_TELEPORT,
            item_name,
            lambda cancel: self._driver.item_teleport(item_name, timeout, cancel),
            on_complete,
        )

    def cancel_navigation(self) -> None:
        """Stop the in-flight goal, if any. Safe to call repeatedly."""
        with self._lock:
            goal = self._goal
            self._goal = None
            self._generation += 1
        if goal is not None:
            goal.cancel.set()
            logger.info(f"Navigation cancelled ({goal.description})")

    # ============================================
    # COMPLETIONS
    # ============================================

    def dispatch_completions(self) -> List[NavigationOutcome]:
        """
        Deliver finished goals on the calling thread.

        Outcomes from goals that were cancelled or superseded after they
        were posted are dropped here as well.
        """
        delivered: List[NavigationOutcome] = []
        while True:
            try:
                outcome = self._completions.get_nowait()
            except queue.Empty:
                break
            if outcome.generation != self.generation:
                logger.debug(f"Dropping stale navigation result: {outcome.description}")
                continue
            delivered.append(outcome)
            if outcome.on_complete is not None:
                outcome.on_complete(outcome.success)
        return delivered

    def wait_idle(self, timeout: float = 5.0) -> bool:
        """Block until the worker thread exits. For shutdown and tests."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # ============================================
    # HELPERS
    # ============================================

    def current_position(self) -> WorldPoint:
        return self._world.current_position()

    def is_near(self, target: WorldPoint, distance: float = 10) -> bool:
        return self._world.current_position().is_within(target, distance)

    def _start(
        self,
        kind: GoalKind,
        description: str,
        run: Callable[[threading.Event], bool],
        on_complete: Optional[CompletionCallback],
    ) -> int:
        if self.is_navigating:
            logger.info("Already navigating, cancelling previous navigation...")
            self.cancel_navigation()

        with self._lock:
            self._generation += 1
            goal = _Goal(self._generation, kind, description, threading.Event(), on_complete)
            self._goal = goal

        thread = threading.Thread(
            target=self._worker,
            args=(goal, run),
            name=f"nav-{goal.generation}",
            daemon=True,
        )
        self._thread = thread
        thread.start()
        return goal.generation

    def _worker(self, goal: _Goal, run: Callable[[threading.Event], bool]) -> None:
        try:
            success = bool(run(goal.cancel))
        except Exception:
            logger.exception(f"Movement driver failed during {goal.description}")
            success = False

        with self._lock:
            if goal.cancel.is_set() or self._generation != goal.generation:
                return
            self._goal = None

        if success:
            logger.info(f"Arrived: {goal.description}")
        else:
            logger.warning(f"Failed: {goal.description}")
        self._completions.put(
            NavigationOutcome(goal.generation, goal.kind, goal.description, success, goal.on_complete)
        )
