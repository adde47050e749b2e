from stokee_fishing.execution import (
    TRANSITIONS,
    FishingState,
    FishingTrigger,
    can_fire,
    destination,
    permitted_triggers,
)

S = FishingState
T = FishingTrigger


def test_stop_allowed_from_every_running_state():
    for state in S:
        if state is S.STOPPED:
            assert not can_fire(state, T.STOP)
        else:
            assert destination(state, T.STOP) is S.STOPPED


def test_error_occurred_from_running_states_only():
    assert not can_fire(S.STOPPED, T.ERROR_OCCURRED)
    assert not can_fire(S.ERROR, T.ERROR_OCCURRED)
    assert destination(S.BANKING, T.ERROR_OCCURRED) is S.ERROR
    assert destination(S.IDLING, T.ERROR_OCCURRED) is S.ERROR


def test_stopped_only_accepts_start():
    assert permitted_triggers(S.STOPPED) == [T.START]


def test_error_leaves_only_by_resolve_or_stop():
    assert set(permitted_triggers(S.ERROR)) == {T.STOP, T.ERROR_RESOLVED}
    assert destination(S.ERROR, T.ERROR_RESOLVED) is S.INITIALIZING


def test_location_triggers_match_for_init_and_check():
    """INITIALIZING and CHECKING_LOCATION resolve location the same way."""
    for trigger in (T.AT_FISHING_SPOT, T.NEAR_FISHING_SPOT, T.AT_BANK, T.NEAR_BANK, T.LOCATION_UNKNOWN):
        assert destination(S.INITIALIZING, trigger) is destination(S.CHECKING_LOCATION, trigger)
    assert destination(S.INITIALIZING, T.TIMEOUT) is S.ERROR


def test_every_state_has_a_way_out():
    for state in S:
        assert permitted_triggers(state), state


def test_every_running_state_is_reachable():
    reachable = {dest for dest in TRANSITIONS.values()}
    for state in S:
        assert state in reachable, state


def test_invalid_trigger_has_no_destination():
    assert destination(S.FISHING, T.BANK_OPENED) is None
    assert not can_fire(S.IDLING, T.CAUGHT_FISH)


def test_waiting_for_fish_loops_on_catch():
    assert destination(S.WAITING_FOR_FISH, T.CAUGHT_FISH) is S.WAITING_FOR_FISH
