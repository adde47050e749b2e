"""
Transition table for the fishing machine.

Every permitted move is one entry in TRANSITIONS, keyed by
(source state, trigger). Anything not listed is dropped by can_fire().
"""

from typing import Dict, List, Optional, Tuple

from .states import FishingState as S
from .states import FishingTrigger as T

TRANSITIONS: Dict[Tuple[S, T], S] = {
    (S.STOPPED, T.START): S.INITIALIZING,

    (S.INITIALIZING, T.AT_FISHING_SPOT): S.FINDING_FISHING_SPOT,
    (S.INITIALIZING, T.NEAR_FISHING_SPOT): S.WALKING_TO_FISHING_SPOT,
    (S.INITIALIZING, T.AT_BANK): S.BANKING,
    (S.INITIALIZING, T.NEAR_BANK): S.WALKING_TO_BANK,
    (S.INITIALIZING, T.LOCATION_UNKNOWN): S.TELEPORTING_TO_FISHING_AREA,
    (S.INITIALIZING, T.TIMEOUT): S.ERROR,

    (S.CHECKING_LOCATION, T.AT_FISHING_SPOT): S.FINDING_FISHING_SPOT,
    (S.CHECKING_LOCATION, T.NEAR_FISHING_SPOT): S.WALKING_TO_FISHING_SPOT,
    (S.CHECKING_LOCATION, T.AT_BANK): S.BANKING,
    (S.CHECKING_LOCATION, T.NEAR_BANK): S.WALKING_TO_BANK,
    (S.CHECKING_LOCATION, T.LOCATION_UNKNOWN): S.TELEPORTING_TO_FISHING_AREA,

    (S.WALKING_TO_FISHING_SPOT, T.ARRIVED_AT_DESTINATION): S.FINDING_FISHING_SPOT,
    (S.WALKING_TO_FISHING_SPOT, T.MOVEMENT_FAILED): S.TELEPORTING_TO_FISHING_AREA,

    (S.TELEPORTING_TO_FISHING_AREA, T.TELEPORT_COMPLETE): S.WALKING_TO_FISHING_SPOT,
    (S.TELEPORTING_TO_FISHING_AREA, T.TELEPORT_FAILED): S.ERROR,

    (S.FINDING_FISHING_SPOT, T.FISHING_SPOT_FOUND): S.FISHING,
    (S.FINDING_FISHING_SPOT, T.FISHING_SPOT_NOT_FOUND): S.IDLING,
    (S.FINDING_FISHING_SPOT, T.INVENTORY_FULL): S.INVENTORY_FULL,

    (S.FISHING, T.CAUGHT_FISH): S.WAITING_FOR_FISH,
    (S.FISHING, T.FISHING_SPOT_MOVED): S.FINDING_FISHING_SPOT,
    (S.FISHING, T.STOPPED_FISHING): S.FINDING_FISHING_SPOT,
    (S.FISHING, T.INVENTORY_FULL): S.INVENTORY_FULL,
    (S.FISHING, T.BOOST_NEEDED): S.USING_BOOST_POTION,

    (S.WAITING_FOR_FISH, T.CAUGHT_FISH): S.WAITING_FOR_FISH,
    (S.WAITING_FOR_FISH, T.STOPPED_FISHING): S.FINDING_FISHING_SPOT,
    (S.WAITING_FOR_FISH, T.FISHING_SPOT_MOVED): S.FINDING_FISHING_SPOT,
    (S.WAITING_FOR_FISH, T.INVENTORY_FULL): S.INVENTORY_FULL,

    (S.INVENTORY_FULL, T.HAS_FISH_TO_DROP): S.DROPPING_FISH,
    (S.INVENTORY_FULL, T.HAS_BANK_TELEPORT): S.USING_BANK_TELEPORT,
    (S.INVENTORY_FULL, T.NEAR_BANK): S.WALKING_TO_BANK,
    (S.INVENTORY_FULL, T.NO_BANK_TELEPORT): S.TELEPORTING_TO_BANK,

    (S.DROPPING_FISH, T.ALL_FISH_DROPPED): S.FINDING_FISHING_SPOT,
    (S.DROPPING_FISH, T.INVENTORY_NOT_FULL): S.FINDING_FISHING_SPOT,

    (S.USING_BANK_TELEPORT, T.TELEPORT_COMPLETE): S.OPENING_BANK,
    (S.USING_BANK_TELEPORT, T.TELEPORT_FAILED): S.TELEPORTING_TO_BANK,

    (S.WALKING_TO_BANK, T.ARRIVED_AT_DESTINATION): S.OPENING_BANK,
    (S.WALKING_TO_BANK, T.MOVEMENT_FAILED): S.TELEPORTING_TO_BANK,

    (S.TELEPORTING_TO_BANK, T.TELEPORT_COMPLETE): S.WALKING_TO_BANK,
    (S.TELEPORTING_TO_BANK, T.TELEPORT_FAILED): S.ERROR,

    (S.OPENING_BANK, T.BANK_OPENED): S.BANKING,
    (S.OPENING_BANK, T.BANK_FAILED): S.WALKING_TO_BANK,

    (S.BANKING, T.DEPOSIT_COMPLETE): S.CLOSING_BANK,
    (S.BANKING, T.BANK_FAILED): S.ERROR,

    (S.CLOSING_BANK, T.BANK_CLOSED): S.RETURNING_TO_FISHING,

    (S.RETURNING_TO_FISHING, T.ARRIVED_AT_DESTINATION): S.FINDING_FISHING_SPOT,
    (S.RETURNING_TO_FISHING, T.TELEPORT_COMPLETE): S.WALKING_TO_FISHING_SPOT,
    (S.RETURNING_TO_FISHING, T.MOVEMENT_FAILED): S.CHECKING_LOCATION,
    (S.RETURNING_TO_FISHING, T.TELEPORT_FAILED): S.CHECKING_LOCATION,

    (S.USING_BOOST_POTION, T.BOOST_USED): S.FINDING_FISHING_SPOT,
    (S.USING_BOOST_POTION, T.NO_BOOST_AVAILABLE): S.FINDING_FISHING_SPOT,

    (S.IDLING, T.IDLE_COMPLETE): S.FINDING_FISHING_SPOT,

    (S.ERROR, T.ERROR_RESOLVED): S.INITIALIZING,
}

# STOP is accepted everywhere except STOPPED; ERROR_OCCURRED from every running state
for _state in S:
    if _state is not S.STOPPED:
        TRANSITIONS[(_state, T.STOP)] = S.STOPPED
    if _state not in (S.STOPPED, S.ERROR):
        TRANSITIONS[(_state, T.ERROR_OCCURRED)] = S.ERROR
del _state


def destination(state: S, trigger: T) -> Optional[S]:
    return TRANSITIONS.get((state, trigger))


def can_fire(state: S, trigger: T) -> bool:
    return (state, trigger) in TRANSITIONS


def permitted_triggers(state: S) -> List[T]:
    """Triggers accepted in ``state``, in declaration order."""
    return [trigger for trigger in T if (state, trigger) in TRANSITIONS]
