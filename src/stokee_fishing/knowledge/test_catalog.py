import math

import pytest

from stokee_fishing.knowledge import (
    CatalogError,
    FishingAction,
    WaypointPath,
    WorldArea,
    WorldPoint,
    find_path,
    get_catalog,
)


def test_area_contains_and_center():
    """Corners can be given in any order; plane is part of containment."""
    area = WorldArea(WorldPoint(3238, 3254), WorldPoint(3248, 3242))
    assert area.contains(WorldPoint(3240, 3250))
    assert area.contains(WorldPoint(3248, 3242))
    assert not area.contains(WorldPoint(3240, 3250, 1))
    assert area.center == WorldPoint(3243, 3248)


def test_distance_across_planes_is_infinite():
    assert math.isinf(WorldPoint(0, 0, 0).distance_to(WorldPoint(0, 0, 1)))
    assert WorldPoint(0, 0).distance_to(WorldPoint(3, 4)) == 5


def test_path_reversal_renames_and_flips():
    path = WaypointPath("Bank to Spot", (WorldPoint(0, 0), WorldPoint(5, 5), WorldPoint(10, 10)))
    rev = path.reversed()
    assert rev.name == "Bank to Spot (Reversed)"
    assert rev.start == WorldPoint(10, 10)
    assert rev.end == WorldPoint(0, 0)


def test_path_needs_two_points():
    with pytest.raises(ValueError):
        WaypointPath("Stub", (WorldPoint(0, 0),))


def test_find_path_works_both_directions():
    """One path entry resolves from either end."""
    path = WaypointPath("Bank to Spot", (WorldPoint(100, 100), WorldPoint(200, 150)))
    forward = find_path([path], WorldPoint(105, 102), WorldPoint(195, 148))
    backward = find_path([path], WorldPoint(195, 148), WorldPoint(105, 102))
    assert forward is path
    assert backward is not None
    assert backward.name.endswith("(Reversed)")
    assert find_path([path], WorldPoint(150, 100), WorldPoint(195, 148)) is None


def test_packaged_catalog_resolves_entries():
    catalog = get_catalog()
    catherby = catalog.fishing_location("catherby")
    assert catherby.nearest_bank is catalog.bank("catherby")
    assert catherby.nearest_lodestone.key == "catherby"
    assert catherby.spot_type.action is FishingAction.HARPOON
    assert [f.key for f in catherby.spot_type.fish] == ["tuna", "swordfish"]
    # display names resolve too
    assert catalog.fish_type("Raw lobster").item_id == 377
    assert catalog.fish_by_id(371).key == "swordfish"
    assert catalog.fish_by_id(1) is None


def test_packaged_catalog_has_catherby_bank_route():
    catalog = get_catalog()
    bank = catalog.bank("catherby")
    spot = catalog.fishing_location("catherby")
    to_spot = catalog.find_path(bank.area.center, WorldPoint(2836, 3431))
    to_bank = catalog.find_path(WorldPoint(2836, 3431), bank.area.center)
    assert to_spot is not None and to_bank is not None
    assert to_bank.end.is_within(bank.area.center, 20)
    assert spot.area.contains(WorldPoint(2836, 3431))


def test_unknown_name_is_catalog_error():
    with pytest.raises(CatalogError):
        get_catalog().fishing_location("Atlantis")


def test_available_for_level_sorted_descending():
    fish = get_catalog().available_for_level(20)
    levels = [f.level_required for f in fish]
    assert levels == sorted(levels, reverse=True)
    assert all(level <= 20 for level in levels)
    assert "trout" in [f.key for f in fish]


def test_locations_with_bank():
    catalog = get_catalog()
    banked = catalog.locations_with_bank()
    assert catalog.fishing_location("catherby") in banked
    assert catalog.fishing_location("karamja_dock") not in banked
    lobster_spots = catalog.locations_for_fish(catalog.fish_type("lobster"))
    assert {loc.key for loc in lobster_spots} == {"karamja_dock", "catherby_cage"}
