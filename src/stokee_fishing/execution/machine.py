"""
Fishing Machine - the autonomous control loop.

A table-driven state machine: TRANSITIONS decides where a trigger leads,
entry handlers run once when a state is entered, and tick handlers run on
every tick() while the machine sits in a state. Triggers fired from inside
an entry handler are queued and processed after the current transition,
so a chain like INVENTORY_FULL -> DROPPING_FISH -> FINDING_FISHING_SPOT
happens within one call.

Navigation runs off-thread; its results arrive through
NavigationService.dispatch_completions(), which tick() drains first.

Usage:
    machine = FishingMachine(config, world, navigation, metrics)
    machine.start()
    while machine.is_running:
        machine.tick()
        time.sleep(0.5)
"""

from __future__ import annotations

import logging
import random
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Deque, Dict, List, Optional

from ..knowledge import WorldPoint
from ..metrics import MetricsService
from ..navigation import NavigationService
from ..world import BANK_BOOTH, BANK_INTERFACE, BANKER, Interactable, WorldSnapshot
from .fishing_config import ConfigurationError, FishingConfig
from .states import FishingState as S
from .states import FishingTrigger as T
from .states import InventoryFullAction, ReturnToFishingMethod
from .transitions import TRANSITIONS, can_fire

logger = logging.getLogger(__name__)

MAX_TRIGGER_CHAIN = 32
TRANSITION_LOG_SIZE = 200
NEAR_FISHING_DISTANCE = 100
NEAR_BANK_DISTANCE = 50
SPOT_ACTION_INDEX = 1
BANK_ACTION_INDEX = 1


@dataclass(frozen=True)
class TransitionRecord:
    source: S
    trigger: T
    destination: S
    timestamp: datetime

    def __str__(self) -> str:
        return f"{self.source.name} -> {self.destination.name} (via {self.trigger.name})"


TransitionListener = Callable[[TransitionRecord], None]


class FishingMachine:
    def __init__(
        self,
        config: FishingConfig,
        world: WorldSnapshot,
        navigation: NavigationService,
        metrics: MetricsService,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.world = world
        self.navigation = navigation
        self.metrics = metrics
        self._clock = clock
        self._rng = rng or random.Random()
        self._sleep = sleep

        self._state = S.STOPPED
        self._status = "Stopped"
        self._pending: Deque[T] = deque()
        self._firing = False
        self._log: Deque[TransitionRecord] = deque(maxlen=TRANSITION_LOG_SIZE)
        self._listeners: List[TransitionListener] = []

        self._error_reason: Optional[str] = None
        self._init_started_at = 0.0
        self._fishing_started_at = 0.0
        self._spot_position: Optional[WorldPoint] = None
        self._last_item_count = 0
        self._idle_count = 0
        self._idle_until: Optional[float] = None
        self._last_boost_at: Optional[float] = None
        self._last_boost_attempt: Optional[float] = None

        self._entry_handlers: Dict[S, Callable[[], None]] = {
            S.STOPPED: self._enter_stopped,
            S.INITIALIZING: self._enter_initializing,
            S.CHECKING_LOCATION: self._enter_checking_location,
            S.WALKING_TO_FISHING_SPOT: self._enter_walking_to_fishing_spot,
            S.TELEPORTING_TO_FISHING_AREA: self._enter_teleporting_to_fishing_area,
            S.FINDING_FISHING_SPOT: self._enter_finding_fishing_spot,
            S.FISHING: self._enter_fishing,
            S.WAITING_FOR_FISH: self._enter_waiting_for_fish,
            S.INVENTORY_FULL: self._enter_inventory_full,
            S.DROPPING_FISH: self._enter_dropping_fish,
            S.USING_BANK_TELEPORT: self._enter_using_bank_teleport,
            S.WALKING_TO_BANK: self._enter_walking_to_bank,
            S.TELEPORTING_TO_BANK: self._enter_teleporting_to_bank,
            S.OPENING_BANK: self._enter_opening_bank,
            S.BANKING: self._enter_banking,
            S.CLOSING_BANK: self._enter_closing_bank,
            S.RETURNING_TO_FISHING: self._enter_returning_to_fishing,
            S.USING_BOOST_POTION: self._enter_using_boost_potion,
            S.IDLING: self._enter_idling,
            S.ERROR: self._enter_error,
        }
        self._tick_handlers: Dict[S, Callable[[], None]] = {
            S.INITIALIZING: self._tick_initializing,
            S.FISHING: self._tick_gathering,
            S.WAITING_FOR_FISH: self._tick_gathering,
            S.IDLING: self._tick_idling,
        }

    # ============================================
    # PUBLIC SURFACE
    # ============================================

    @property
    def current_state(self) -> S:
        return self._state

    @property
    def status_message(self) -> str:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._state is not S.STOPPED

    @property
    def consecutive_idles(self) -> int:
        return self._idle_count

    @property
    def last_boost_at(self) -> Optional[float]:
        """Clock time of the last boost potion actually drunk."""
        return self._last_boost_at

    @property
    def transition_log(self) -> List[TransitionRecord]:
        return list(self._log)

    def add_transition_listener(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    def remove_transition_listener(self, listener: TransitionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def start(self) -> None:
        """Validate the config and leave STOPPED. Raises ConfigurationError."""
        problems = self.config.validate()
        if problems:
            raise ConfigurationError("Invalid fishing configuration: " + "; ".join(problems))
        if self._state is not S.STOPPED:
            logger.warning(f"Start ignored, already running ({self._state.name})")
            return
        logger.info(f"Starting fishing at {self.config.fishing_location.name}")
        self.fire(T.START)

    def stop(self) -> None:
        if self.fire(T.STOP):
            logger.info("Fishing stopped")

    def resolve_error(self) -> None:
        """Operator acknowledgement: leave ERROR and re-initialize."""
        self.fire(T.ERROR_RESOLVED)

    def tick(self) -> None:
        """One evaluation of the control loop. Never raises."""
        if self._state is S.STOPPED:
            return
        try:
            self.navigation.dispatch_completions()
            handler = self._tick_handlers.get(self._state)
            if handler is not None:
                handler()
        except Exception as e:
            logger.exception(f"Unexpected error while {self._state.name}")
            self._fail(f"{type(e).__name__}: {e}")

    def fire(self, trigger: T) -> bool:
        """
        Request a transition. Returns False (and changes nothing) when the
        trigger is not permitted in the current state.
        """
        if not can_fire(self._state, trigger):
            logger.debug(f"Ignoring {trigger.name} in {self._state.name}")
            return False
        self._pending.append(trigger)
        if self._firing:
            # Called from an entry handler; the outer loop picks it up
            return True

        self._firing = True
        try:
            steps = 0
            while self._pending:
                next_trigger = self._pending.popleft()
                if not can_fire(self._state, next_trigger):
                    logger.debug(f"Ignoring queued {next_trigger.name} in {self._state.name}")
                    continue
                steps += 1
                if steps > MAX_TRIGGER_CHAIN:
                    logger.warning(
                        f"Trigger chain longer than {MAX_TRIGGER_CHAIN} in {self._state.name}, "
                        f"dropping {len(self._pending) + 1} pending trigger(s)"
                    )
                    self._pending.clear()
                    self._error_reason = f"Trigger chain longer than {MAX_TRIGGER_CHAIN} in {self._state.name}"
                    if can_fire(self._state, T.ERROR_OCCURRED):
                        self._transition(T.ERROR_OCCURRED)
                    self._pending.clear()
                    break
                try:
                    self._transition(next_trigger)
                except Exception as e:
                    logger.exception(f"Unexpected error entering {self._state.name}")
                    self._pending.clear()
                    self._error_reason = f"{type(e).__name__}: {e}"
                    if can_fire(self._state, T.ERROR_OCCURRED):
                        self._pending.append(T.ERROR_OCCURRED)
        finally:
            self._firing = False
        return True

    # ============================================
    # TRANSITIONS
    # ============================================

    def _transition(self, trigger: T) -> None:
        source = self._state
        destination = TRANSITIONS[(source, trigger)]
        if trigger in (T.STOP, T.ERROR_OCCURRED):
            self.navigation.cancel_navigation()

        self._state = destination
        record = TransitionRecord(source, trigger, destination, datetime.now())
        self._log.append(record)
        logger.info(f"State: {record}")
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception:
                logger.exception(f"Transition listener failed on {record}")

        handler = self._entry_handlers.get(destination)
        if handler is not None:
            handler()

    def _fail(self, reason: str) -> None:
        self._error_reason = reason
        self.fire(T.ERROR_OCCURRED)

    def _set_status(self, message: str) -> None:
        self._status = message
        logger.debug(f"Status: {message}")

    def _navigation_done(self, on_success: T, on_failure: T) -> Callable[[bool], None]:
        """Completion callback that only counts while still in the state that started it."""
        origin = self._state

        def done(success: bool) -> None:
            if self._state is not origin:
                logger.debug(f"Navigation finished after leaving {origin.name}, ignoring")
                return
            self.fire(on_success if success else on_failure)

        return done

    # ============================================
    # LOCATION
    # ============================================

    def _enter_stopped(self) -> None:
        self._pending.clear()
        self._idle_until = None
        self._error_reason = None
        self._set_status("Stopped")

    def _enter_initializing(self) -> None:
        self._set_status("Initializing...")
        self._error_reason = None
        self._init_started_at = self._clock()
        self._check_ready()

    def _tick_initializing(self) -> None:
        if self._clock() - self._init_started_at >= self.config.timings.init_timeout:
            self._error_reason = "Game client not ready"
            logger.warning(f"Client not ready after {self.config.timings.init_timeout:.0f}s")
            self.fire(T.TIMEOUT)
            return
        self._check_ready()

    def _check_ready(self) -> None:
        if not self.world.is_environment_ready():
            self._set_status("Waiting for game client...")
            return
        if not self.world.is_session_active():
            self._set_status("Waiting for login...")
            return
        self._resolve_location()

    def _enter_checking_location(self) -> None:
        self._set_status("Checking location...")
        self._resolve_location()

    def _resolve_location(self) -> None:
        """Fixed priority: fishing area, near fishing, bank area, near bank, unknown."""
        pos = self.world.current_position()
        location = self.config.fishing_location
        bank = self.config.bank

        if location.area.contains(pos):
            self.fire(T.AT_FISHING_SPOT)
        elif pos.distance_to(location.area.center) < NEAR_FISHING_DISTANCE:
            self.fire(T.NEAR_FISHING_SPOT)
        elif bank is not None and bank.area.contains(pos):
            self.fire(T.AT_BANK)
        elif bank is not None and pos.distance_to(bank.area.center) < NEAR_BANK_DISTANCE:
            self.fire(T.NEAR_BANK)
        else:
            logger.info(f"Position {pos} is not near {location.name}")
            self.fire(T.LOCATION_UNKNOWN)

    def _enter_walking_to_fishing_spot(self) -> None:
        location = self.config.fishing_location
        self._set_status(f"Walking to {location.name}...")
        self.navigation.walk_to(
            location.area.center,
            on_arrival=self._navigation_done(T.ARRIVED_AT_DESTINATION, T.MOVEMENT_FAILED),
            timeout=self.config.timings.walk_timeout,
        )

    def _enter_teleporting_to_fishing_area(self) -> None:
        location = self.config.fishing_location
        lodestone = location.nearest_lodestone
        if lodestone is None:
            self._error_reason = f"No lodestone near {location.name}"
            logger.warning(self._error_reason)
            self.fire(T.TELEPORT_FAILED)
            return
        self._set_status(f"Teleporting to {lodestone.name}...")
        self.navigation.use_lodestone(
            lodestone,
            on_complete=self._navigation_done(T.TELEPORT_COMPLETE, T.TELEPORT_FAILED),
            timeout=self.config.timings.teleport_timeout,
        )

    # ============================================
    # FISHING
    # ============================================

    def _enter_finding_fishing_spot(self) -> None:
        self._set_status("Looking for a fishing spot...")
        if self.world.is_storage_full():
            self.fire(T.INVENTORY_FULL)
            return

        spots = self.world.find_interactables(self.config.spot_type.spot_name)
        if not spots:
            self.fire(T.FISHING_SPOT_NOT_FOUND)
            return

        spot = _nearest(spots)
        if self.world.interact(spot, SPOT_ACTION_INDEX):
            logger.debug(f"Clicked {spot.name} at {spot.position}")
            self._spot_position = spot.position
            self.fire(T.FISHING_SPOT_FOUND)
        else:
            logger.info(f"Could not interact with {spot.name} at {spot.position}")
            self.fire(T.FISHING_SPOT_NOT_FOUND)

    def _enter_fishing(self) -> None:
        self._idle_count = 0
        self._fishing_started_at = self._clock()
        self._last_item_count = self.world.storage_item_count()
        self._set_status(f"Fishing ({self.config.spot_type.action.value})")

    def _enter_waiting_for_fish(self) -> None:
        self._set_status(f"Fishing... {self.metrics.current_trip_fish} this trip")

    def _tick_gathering(self) -> None:
        count = self.world.storage_item_count()
        delta = count - self._last_item_count
        self._last_item_count = count
        if delta > 0:
            self._record_catch(delta)

        if self.world.is_storage_full():
            self.fire(T.INVENTORY_FULL)
            return
        if delta > 0:
            self.fire(T.CAUGHT_FISH)
            return

        in_grace = (
            self._state is S.FISHING
            and self._clock() - self._fishing_started_at < self.config.timings.fishing_start_grace
        )
        if self._state is S.FISHING and self._boost_due():
            self.fire(T.BOOST_NEEDED)
            return
        if not in_grace and not self.world.is_animating():
            self.fire(T.FISHING_SPOT_MOVED if self._spot_moved() else T.STOPPED_FISHING)

    def _spot_moved(self) -> bool:
        """True when the spot we clicked is no longer where it was."""
        if self._spot_position is None:
            return False
        spots = self.world.find_interactables(self.config.spot_type.spot_name)
        return all(s.position != self._spot_position for s in spots)

    def _record_catch(self, amount: int) -> None:
        fish = self.config.fish_to_record
        if fish is None:
            return
        for _ in range(amount):
            self.metrics.record_fish_caught(fish)
        logger.debug(f"Caught {amount} x {fish.name}")

    def _boost_due(self) -> bool:
        if not self.config.use_boost_potions:
            return False
        if self._last_boost_attempt is None:
            return True
        return self._clock() - self._last_boost_attempt >= self.config.boost_interval

    def _enter_using_boost_potion(self) -> None:
        name = self.config.boost_potion_name
        self._last_boost_attempt = self._clock()
        if name and self.world.contains_item(name) and self.world.use_item(name):
            self._last_boost_at = self._last_boost_attempt
            self._set_status(f"Used {name}")
            self.fire(T.BOOST_USED)
        else:
            logger.info(f"No boost potion available ({name or 'none configured'})")
            self.fire(T.NO_BOOST_AVAILABLE)

    def _enter_idling(self) -> None:
        timings = self.config.timings
        self._idle_count += 1
        if self._idle_count >= timings.max_consecutive_idles:
            logger.warning(
                f"No fishing spot found {self._idle_count} times in a row at "
                f"{self.config.fishing_location.name}"
            )
            self._idle_count = 0
        wait = self._rng.uniform(timings.idle_min, timings.idle_max)
        self._idle_until = self._clock() + wait
        self._set_status(f"No fishing spot, retrying in {wait:.1f}s")

    def _tick_idling(self) -> None:
        if self._idle_until is not None and self._clock() >= self._idle_until:
            self._idle_until = None
            self.fire(T.IDLE_COMPLETE)

    # ============================================
    # FULL INVENTORY
    # ============================================

    def _enter_inventory_full(self) -> None:
        self.metrics.record_trip_completed()
        action = self.config.inventory_full_action
        self._set_status(f"Inventory full ({action.value})")

        if action is InventoryFullAction.DROP_FISH:
            self.fire(T.HAS_FISH_TO_DROP)
        elif action is InventoryFullAction.USE_BANK_TELEPORT:
            has_teleport = self._bank_teleport_item() is not None
            self.fire(T.HAS_BANK_TELEPORT if has_teleport else T.NO_BANK_TELEPORT)
        elif action is InventoryFullAction.WALK_TO_BANK:
            self.fire(T.NEAR_BANK)
        elif action is InventoryFullAction.USE_LODESTONE:
            self.fire(T.NO_BANK_TELEPORT)

    def _bank_teleport_item(self) -> Optional[str]:
        for name in self.config.bank_teleport_candidates():
            if self.world.contains_item(name):
                return name
        return None

    def _enter_dropping_fish(self) -> None:
        self._set_status("Dropping fish...")
        capacity = self.world.storage_item_count() + self.world.free_storage_slots()
        dropped = 0
        for item_id in self.config.spot_type.fish_ids:
            removed = 0
            while removed < capacity and self.world.contains_item(item_id):
                if not self.world.remove_item(item_id):
                    logger.warning(f"Could not drop item {item_id}")
                    break
                removed += 1
                self._sleep(self.config.timings.drop_delay)
            dropped += removed
        logger.info(f"Dropped {dropped} fish")

        if self.world.is_storage_full():
            self._fail("Inventory full with nothing droppable")
        elif any(self.world.contains_item(i) for i in self.config.spot_type.fish_ids):
            # Some fish would not drop but there is room to keep fishing
            self.fire(T.INVENTORY_NOT_FULL)
        else:
            self.fire(T.ALL_FISH_DROPPED)

    # ============================================
    # BANKING
    # ============================================

    def _enter_using_bank_teleport(self) -> None:
        item = self._bank_teleport_item()
        if item is None:
            logger.info("No bank teleport item in inventory")
            self.fire(T.TELEPORT_FAILED)
            return
        self._set_status(f"Teleporting with {item}...")
        self.navigation.use_teleport_item(
            item,
            on_complete=self._navigation_done(T.TELEPORT_COMPLETE, T.TELEPORT_FAILED),
            timeout=self.config.timings.teleport_timeout,
        )

    def _enter_walking_to_bank(self) -> None:
        bank = self.config.bank
        if bank is None:
            self.fire(T.MOVEMENT_FAILED)
            return
        self._set_status(f"Walking to {bank.name} bank...")
        self.navigation.walk_to(
            bank.area.center,
            on_arrival=self._navigation_done(T.ARRIVED_AT_DESTINATION, T.MOVEMENT_FAILED),
            timeout=self.config.timings.walk_timeout,
        )

    def _enter_teleporting_to_bank(self) -> None:
        bank = self.config.bank
        lodestone = bank.nearest_lodestone if bank is not None else None
        if lodestone is None:
            self._error_reason = "No lodestone near the bank"
            logger.warning(self._error_reason)
            self.fire(T.TELEPORT_FAILED)
            return
        self._set_status(f"Teleporting to {lodestone.name}...")
        self.navigation.use_lodestone(
            lodestone,
            on_complete=self._navigation_done(T.TELEPORT_COMPLETE, T.TELEPORT_FAILED),
            timeout=self.config.timings.teleport_timeout,
        )

    def _enter_opening_bank(self) -> None:
        self._set_status("Opening bank...")
        self.fire(T.BANK_OPENED if self._open_bank() else T.BANK_FAILED)

    def _enter_banking(self) -> None:
        self._set_status("Depositing...")
        if not self.world.is_interface_open(BANK_INTERFACE) and not self._open_bank():
            self._error_reason = "Could not open the bank"
            self.fire(T.BANK_FAILED)
            return
        self.world.deposit_all(BANK_INTERFACE)
        self._sleep(self.config.timings.deposit_wait)
        self.fire(T.DEPOSIT_COMPLETE)

    def _enter_closing_bank(self) -> None:
        self._set_status("Closing bank...")
        self.world.close_interface(BANK_INTERFACE)
        self._sleep(self.config.timings.close_wait)
        self.fire(T.BANK_CLOSED)

    def _open_bank(self) -> bool:
        """Click the nearest booth (or banker) and poll briefly for the interface."""
        if self.world.is_interface_open(BANK_INTERFACE):
            return True

        target: Optional[Interactable] = None
        for name in (BANK_BOOTH, BANKER):
            found = self.world.find_interactables(name)
            if found:
                target = _nearest(found)
                break
        if target is None:
            logger.warning("No bank booth or banker in sight")
            return False
        if not self.world.interact(target, BANK_ACTION_INDEX):
            logger.info(f"Could not interact with {target.name}")
            return False

        timings = self.config.timings
        polls = max(1, int(timings.bank_open_timeout / timings.bank_poll_interval))
        for _ in range(polls):
            if self.world.is_interface_open(BANK_INTERFACE):
                return True
            self._sleep(timings.bank_poll_interval)
        return self.world.is_interface_open(BANK_INTERFACE)

    def _enter_returning_to_fishing(self) -> None:
        location = self.config.fishing_location
        method = self.config.return_method
        self._set_status(f"Returning to {location.name}...")
        teleported = self._navigation_done(T.TELEPORT_COMPLETE, T.TELEPORT_FAILED)
        timings = self.config.timings

        if method is ReturnToFishingMethod.USE_LODESTONE and location.nearest_lodestone is not None:
            self.navigation.use_lodestone(
                location.nearest_lodestone, on_complete=teleported, timeout=timings.teleport_timeout
            )
        elif method is ReturnToFishingMethod.USE_TELEPORT_ITEM:
            item = self.config.return_teleport_item_name
            if item and self.world.contains_item(item):
                self.navigation.use_teleport_item(item, on_complete=teleported, timeout=timings.teleport_timeout)
            else:
                logger.info(f"Return teleport item not available ({item or 'none configured'})")
                self.fire(T.ARRIVED_AT_DESTINATION)
        else:
            self.navigation.walk_to(
                location.area.center,
                on_arrival=self._navigation_done(T.ARRIVED_AT_DESTINATION, T.MOVEMENT_FAILED),
                timeout=timings.walk_timeout,
            )

    # ============================================
    # ERROR
    # ============================================

    def _enter_error(self) -> None:
        last = self._log[-1] if self._log else None
        reason = self._error_reason or (last.trigger.name.lower().replace("_", " ") if last else "unknown")
        self._set_status(f"Error: {reason}")
        logger.error(f"Fishing halted: {reason}. Call resolve_error() or stop().")


def _nearest(entities: List[Interactable]) -> Interactable:
    return min(entities, key=lambda e: e.distance)
