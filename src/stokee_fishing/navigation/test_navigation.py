import threading

from stokee_fishing.knowledge import Lodestone, WaypointPath, WorldPoint
from stokee_fishing.navigation import GoalKind, NavigationService
from stokee_fishing.world import SimulatedWorld


class RecordingDriver:
    """Driver that records calls and blocks until released."""

    def __init__(self, world, result=True, block=False):
        self.world = world
        self.result = result
        self.release = threading.Event()
        if not block:
            self.release.set()
        self.calls = []

    def walk_to(self, target, tolerance, timeout, cancel):
        self.calls.append(("walk_to", target, tolerance))
        return self._finish(target, cancel)

    def walk_path(self, waypoints, tolerance, timeout, cancel):
        self.calls.append(("walk_path", tuple(waypoints), tolerance))
        return self._finish(waypoints[-1], cancel)

    def teleport(self, lodestone, timeout, cancel):
        self.calls.append(("teleport", lodestone.key))
        return self._finish(lodestone.position, cancel)

    def item_teleport(self, item_name, timeout, cancel):
        self.calls.append(("item_teleport", item_name))
        return self._finish(None, cancel)

    def _finish(self, target, cancel):
        while not self.release.wait(0.01):
            if cancel.is_set():
                return False
        if self.result and target is not None:
            self.world.position = target
        return self.result


def _service(driver, world, paths=()):
    return NavigationService(driver, world, paths)


def test_walk_uses_direct_walk_without_path():
    world = SimulatedWorld(position=WorldPoint(0, 0))
    driver = RecordingDriver(world)
    nav = _service(driver, world)
    results = []

    nav.walk_to(WorldPoint(50, 50), on_arrival=results.append)
    assert nav.wait_idle()
    outcomes = nav.dispatch_completions()

    assert driver.calls == [("walk_to", WorldPoint(50, 50), 5)]
    assert results == [True]
    assert outcomes[0].kind is GoalKind.WALK
    assert nav.current_position() == WorldPoint(50, 50)
    assert nav.is_near(WorldPoint(55, 50))
    assert not nav.is_near(WorldPoint(80, 50))
    assert not nav.is_navigating


def test_walk_follows_reversed_path():
    """A path stored bank->spot is used for the spot->bank walk."""
    path = WaypointPath("Bank to Spot", (WorldPoint(100, 100), WorldPoint(150, 120), WorldPoint(200, 150)))
    world = SimulatedWorld(position=WorldPoint(198, 151))
    driver = RecordingDriver(world)
    nav = _service(driver, world, [path])

    nav.walk_to(WorldPoint(101, 99))
    nav.wait_idle()
    nav.dispatch_completions()

    kind, waypoints, tolerance = driver.calls[0]
    assert kind == "walk_path"
    assert waypoints[0] == WorldPoint(200, 150)
    assert waypoints[-1] == WorldPoint(100, 100)
    assert tolerance == 8


def test_failure_reported_not_retried():
    world = SimulatedWorld()
    driver = RecordingDriver(world, result=False)
    nav = _service(driver, world)
    results = []

    nav.use_lodestone(Lodestone("catherby", "Catherby", WorldPoint(2811, 3449)), results.append)
    nav.wait_idle()
    nav.dispatch_completions()

    assert results == [False]
    assert len(driver.calls) == 1


def test_callbacks_only_run_on_dispatch():
    """Completion never touches the caller until it drains the queue."""
    world = SimulatedWorld()
    nav = _service(RecordingDriver(world), world)
    results = []

    nav.use_teleport_item("Ring of duelling", results.append)
    nav.wait_idle()
    assert results == []
    nav.dispatch_completions()
    assert results == [True]


def test_cancel_is_idempotent_and_suppresses_callback():
    world = SimulatedWorld()
    driver = RecordingDriver(world, block=True)
    nav = _service(driver, world)
    results = []

    nav.walk_to(WorldPoint(10, 10), on_arrival=results.append)
    assert nav.is_navigating
    nav.cancel_navigation()
    nav.cancel_navigation()
    assert not nav.is_navigating

    driver.release.set()
    nav.wait_idle()
    assert nav.dispatch_completions() == []
    assert results == []


def test_new_goal_supersedes_previous():
    """Last writer wins: only the newest goal reports back."""
    world = SimulatedWorld()
    driver = RecordingDriver(world, block=True)
    nav = _service(driver, world)
    first, second = [], []

    nav.walk_to(WorldPoint(10, 10), on_arrival=first.append)
    nav.walk_to(WorldPoint(20, 20), on_arrival=second.append)
    driver.release.set()
    nav.wait_idle()
    nav.dispatch_completions()

    assert first == []
    assert second == [True]
    assert world.position == WorldPoint(20, 20)


def test_driver_exception_is_failure():
    class ExplodingDriver(RecordingDriver):
        def walk_to(self, target, tolerance, timeout, cancel):
            raise RuntimeError("client detached")

    world = SimulatedWorld()
    nav = _service(ExplodingDriver(world), world)
    results = []
    nav.walk_to(WorldPoint(5, 5), on_arrival=results.append)
    nav.wait_idle()
    nav.dispatch_completions()
    assert results == [False]
    assert not nav.is_navigating
