"""States, triggers and policy enums for the fishing machine."""

from enum import Enum


class FishingState(Enum):
    """State machine for one fishing session."""
    STOPPED = "stopped"
    INITIALIZING = "initializing"
    CHECKING_LOCATION = "checking_location"
    WALKING_TO_FISHING_SPOT = "walking_to_fishing_spot"
    TELEPORTING_TO_FISHING_AREA = "teleporting_to_fishing_area"
    FINDING_FISHING_SPOT = "finding_fishing_spot"
    FISHING = "fishing"
    WAITING_FOR_FISH = "waiting_for_fish"      # Catching, watching for more
    INVENTORY_FULL = "inventory_full"
    DROPPING_FISH = "dropping_fish"
    USING_BANK_TELEPORT = "using_bank_teleport"
    WALKING_TO_BANK = "walking_to_bank"
    TELEPORTING_TO_BANK = "teleporting_to_bank"
    OPENING_BANK = "opening_bank"
    BANKING = "banking"
    CLOSING_BANK = "closing_bank"
    RETURNING_TO_FISHING = "returning_to_fishing"
    USING_BOOST_POTION = "using_boost_potion"
    IDLING = "idling"                          # Short wait before retrying spot search
    ERROR = "error"                            # Needs operator resolve_error() or stop


class FishingTrigger(Enum):
    START = "start"
    STOP = "stop"

    # Location
    AT_FISHING_SPOT = "at_fishing_spot"
    NEAR_FISHING_SPOT = "near_fishing_spot"
    AT_BANK = "at_bank"
    NEAR_BANK = "near_bank"
    LOCATION_UNKNOWN = "location_unknown"

    # Movement
    ARRIVED_AT_DESTINATION = "arrived_at_destination"
    MOVEMENT_FAILED = "movement_failed"
    TELEPORT_COMPLETE = "teleport_complete"
    TELEPORT_FAILED = "teleport_failed"

    # Fishing
    FISHING_SPOT_FOUND = "fishing_spot_found"
    FISHING_SPOT_NOT_FOUND = "fishing_spot_not_found"
    CAUGHT_FISH = "caught_fish"
    FISHING_SPOT_MOVED = "fishing_spot_moved"
    STOPPED_FISHING = "stopped_fishing"

    # Inventory
    INVENTORY_FULL = "inventory_full"
    INVENTORY_NOT_FULL = "inventory_not_full"
    HAS_FISH_TO_DROP = "has_fish_to_drop"
    ALL_FISH_DROPPED = "all_fish_dropped"

    # Banking
    HAS_BANK_TELEPORT = "has_bank_teleport"
    NO_BANK_TELEPORT = "no_bank_teleport"
    BANK_OPENED = "bank_opened"
    DEPOSIT_COMPLETE = "deposit_complete"
    BANK_CLOSED = "bank_closed"
    BANK_FAILED = "bank_failed"

    # Boosts
    BOOST_NEEDED = "boost_needed"
    BOOST_USED = "boost_used"
    NO_BOOST_AVAILABLE = "no_boost_available"

    # Housekeeping
    IDLE_COMPLETE = "idle_complete"
    TIMEOUT = "timeout"
    ERROR_OCCURRED = "error_occurred"
    ERROR_RESOLVED = "error_resolved"


class InventoryFullAction(Enum):
    """What to do with a full inventory."""
    DROP_FISH = "drop_fish"
    WALK_TO_BANK = "walk_to_bank"
    USE_BANK_TELEPORT = "use_bank_teleport"
    USE_LODESTONE = "use_lodestone"


class ReturnToFishingMethod(Enum):
    """How to get back to the fishing area after banking."""
    WALK = "walk"
    USE_LODESTONE = "use_lodestone"
    USE_TELEPORT_ITEM = "use_teleport_item"
