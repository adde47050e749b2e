import json
import threading

import httpx

from stokee_fishing.knowledge import WorldPoint
from stokee_fishing.world import BANK_INTERFACE, BridgeClient, Interactable

STATE = {
    "ready": True,
    "loggedIn": True,
    "player": {"x": 2840, "y": 3430, "plane": 0, "animation": 621},
    "inventory": {
        "capacity": 28,
        "items": [{"id": 359, "name": "Raw tuna", "amount": 1}] * 27,
    },
    "interfaces": ["bank"],
    "skills": {"fishing": {"level": 55, "xp": 170000, "xpToNextLevel": 4000}},
}


def _client(handler):
    return BridgeClient(transport=httpx.MockTransport(handler))


def _ok(data):
    return httpx.Response(200, json={"success": True, "data": data})


def test_state_parsing():
    """Snapshot queries read the wrapped /state payload."""
    client = _client(lambda request: _ok(STATE))
    assert client.is_environment_ready()
    assert client.is_session_active()
    assert client.current_position() == WorldPoint(2840, 3430, 0)
    assert client.storage_item_count() == 27
    assert client.free_storage_slots() == 1
    assert not client.is_storage_full()
    assert client.contains_item(359)
    assert client.contains_item("raw tuna")
    assert not client.contains_item("Ring of wealth")
    assert client.is_animating()
    assert client.is_interface_open(BANK_INTERFACE)
    skill = client.get_skill("fishing")
    assert skill.level == 55 and skill.xp_to_next_level == 4000


def test_failed_envelope_returns_defaults():
    """success=false or HTTP errors degrade to empty state, not exceptions."""
    client = _client(lambda request: httpx.Response(200, json={"success": False, "error": "not injected"}))
    assert not client.is_environment_ready()
    assert client.storage_item_count() == 0

    client = _client(lambda request: httpx.Response(500))
    assert client.find_interactables("Fishing spot") == []


def test_find_interactables_passes_name():
    seen = {}

    def handler(request):
        seen["name"] = request.url.params.get("name")
        return _ok([{"name": "Fishing spot", "x": 2845, "y": 3431, "plane": 0, "distance": 5.2}])

    spots = _client(handler).find_interactables("Fishing spot")
    assert seen["name"] == "Fishing spot"
    assert spots == [Interactable("Fishing spot", WorldPoint(2845, 3431, 0), 5.2)]


def test_interact_posts_action():
    posted = []

    def handler(request):
        posted.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    client = _client(handler)
    spot = Interactable("Fishing spot", WorldPoint(2845, 3431, 0), 5.0)
    assert client.interact(spot, 1)
    assert posted[0] == {"action": "interact", "name": "Fishing spot", "x": 2845, "y": 3431, "plane": 0, "option": 1}


def test_walk_to_waits_for_arrival():
    """Walking posts once, then polls /state until within tolerance."""
    positions = iter([(2800, 3400), (2820, 3420), (2834, 3430)])
    current = {"pos": (2800, 3400)}

    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, json={"success": True})
        current["pos"] = next(positions, current["pos"])
        x, y = current["pos"]
        return _ok({"player": {"x": x, "y": y, "plane": 0}})

    client = _client(handler)
    client._cache_ttl = 0
    assert client.walk_to(WorldPoint(2836, 3431), tolerance=5, timeout=5.0, cancel=threading.Event())


def test_walk_to_cancelled_returns_false():
    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, json={"success": True})
        return _ok({"player": {"x": 0, "y": 0, "plane": 0}})

    cancel = threading.Event()
    cancel.set()
    assert not _client(handler).walk_to(WorldPoint(100, 100), tolerance=5, timeout=5.0, cancel=cancel)
