"""Load the fishing catalog from the packaged YAML files."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .geometry import WorldArea, WorldPoint
from .models import (
    BankLocation,
    FishingAction,
    FishingBait,
    FishingEquipment,
    FishingLocation,
    FishingSpotType,
    FishType,
    Lodestone,
    WaypointPath,
)


KNOWLEDGE_DIR = Path(__file__).resolve().parent / "data"


class CatalogError(ValueError):
    """Malformed or inconsistent catalog data."""


def _load_yaml_list(filename: str, base_dir: Path = KNOWLEDGE_DIR) -> List[Dict[str, Any]]:
    path = base_dir / filename
    if not path.exists():
        return []
    data = yaml.safe_load(path.read_text()) or []
    if isinstance(data, list):
        return [entry for entry in data if isinstance(entry, dict)]
    return []


def _lookup(table: Dict[str, Any], key: Optional[str], kind: str, owner: str) -> Any:
    if key is None:
        return None
    try:
        return table[key]
    except KeyError:
        raise CatalogError(f"{owner}: unknown {kind} {key!r}") from None


def load_lodestones(base_dir: Path = KNOWLEDGE_DIR) -> Dict[str, Lodestone]:
    lodestones: Dict[str, Lodestone] = {}
    for entry in _load_yaml_list("lodestones.yaml", base_dir):
        key = str(entry["key"])
        position = entry.get("position")
        lodestones[key] = Lodestone(
            key=key,
            name=str(entry.get("name", key)).strip(),
            position=WorldPoint.parse(position) if position else None,
        )
    return lodestones


def load_fish(base_dir: Path = KNOWLEDGE_DIR) -> Dict[str, FishType]:
    fish: Dict[str, FishType] = {}
    for entry in _load_yaml_list("fish.yaml", base_dir):
        key = str(entry["key"])
        try:
            fish[key] = FishType(
                key=key,
                name=str(entry["name"]).strip(),
                item_id=int(entry["item_id"]),
                level_required=int(entry.get("level", 1)),
                xp_per_catch=float(entry.get("xp", 0)),
                action=FishingAction(entry["action"]),
                equipment=FishingEquipment(entry.get("equipment", "none")),
                bait=FishingBait(entry.get("bait", "none")),
            )
        except (KeyError, ValueError) as e:
            raise CatalogError(f"fish {key!r}: {e}") from e
    return fish


def load_spot_types(fish: Dict[str, FishType], base_dir: Path = KNOWLEDGE_DIR) -> Dict[str, FishingSpotType]:
    spots: Dict[str, FishingSpotType] = {}
    for entry in _load_yaml_list("spots.yaml", base_dir):
        key = str(entry["key"])
        members = tuple(
            _lookup(fish, fish_key, "fish", f"spot {key!r}")
            for fish_key in entry.get("fish") or []
        )
        try:
            action = FishingAction(entry["action"])
        except (KeyError, ValueError) as e:
            raise CatalogError(f"spot {key!r}: {e}") from e
        spots[key] = FishingSpotType(
            key=key,
            name=str(entry.get("name", key)).strip(),
            spot_name=str(entry.get("spot_name", "Fishing spot")).strip(),
            action=action,
            fish=members,
        )
    return spots


def load_banks(lodestones: Dict[str, Lodestone], base_dir: Path = KNOWLEDGE_DIR) -> Dict[str, BankLocation]:
    banks: Dict[str, BankLocation] = {}
    for entry in _load_yaml_list("banks.yaml", base_dir):
        key = str(entry["key"])
        banks[key] = BankLocation(
            key=key,
            name=str(entry.get("name", key)).strip(),
            area=_parse_area(entry, f"bank {key!r}"),
            nearest_lodestone=_lookup(lodestones, entry.get("lodestone"), "lodestone", f"bank {key!r}"),
            lodestone_distance=int(entry.get("lodestone_distance") or 0),
        )
    return banks


def load_fishing_locations(
    spots: Dict[str, FishingSpotType],
    banks: Dict[str, BankLocation],
    lodestones: Dict[str, Lodestone],
    base_dir: Path = KNOWLEDGE_DIR,
) -> Dict[str, FishingLocation]:
    locations: Dict[str, FishingLocation] = {}
    for entry in _load_yaml_list("locations.yaml", base_dir):
        key = str(entry["key"])
        owner = f"location {key!r}"
        spot = _lookup(spots, entry.get("spot"), "spot type", owner)
        if spot is None:
            raise CatalogError(f"{owner}: missing spot type")
        locations[key] = FishingLocation(
            key=key,
            name=str(entry.get("name", key)).strip(),
            area=_parse_area(entry, owner),
            spot_type=spot,
            nearest_bank=_lookup(banks, entry.get("bank"), "bank", owner),
            nearest_lodestone=_lookup(lodestones, entry.get("lodestone"), "lodestone", owner),
            requirements=entry.get("requirements"),
        )
    return locations


def load_paths(base_dir: Path = KNOWLEDGE_DIR) -> List[WaypointPath]:
    paths: List[WaypointPath] = []
    for entry in _load_yaml_list("paths.yaml", base_dir):
        name = str(entry.get("name", "")).strip()
        try:
            points = tuple(WorldPoint.parse(p) for p in entry.get("waypoints") or [])
            paths.append(WaypointPath(name, points))
        except ValueError as e:
            raise CatalogError(f"path {name!r}: {e}") from e
    return paths


def _parse_area(entry: Dict[str, Any], owner: str) -> WorldArea:
    try:
        return WorldArea.parse(entry["area"], plane=int(entry.get("plane", 0)))
    except (KeyError, TypeError, ValueError) as e:
        raise CatalogError(f"{owner}: bad area: {e}") from e
