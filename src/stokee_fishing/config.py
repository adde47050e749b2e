"""
Agent configuration loaded from config/settings.yaml.

Every section is optional; anything missing keeps its default. The
``session`` section names catalog entries, which build_fishing_config()
resolves into a FishingConfig.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .execution import (
    ConfigurationError,
    FishingConfig,
    InventoryFullAction,
    MachineTimings,
    ReturnToFishingMethod,
)
from .knowledge import Catalog, CatalogError
from .world.bridge_client import DEFAULT_BRIDGE_URL

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "./config/settings.yaml"


@dataclass
class AgentConfig:
    """Configuration loaded from settings.yaml."""

    # Bridge
    bridge_url: str = DEFAULT_BRIDGE_URL
    bridge_timeout: float = 5.0

    # Timing
    tick_interval: float = 0.5
    timings: MachineTimings = field(default_factory=MachineTimings)

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("./logs")

    # Session
    location: Optional[str] = None
    spot_type: Optional[str] = None
    fish: Optional[str] = None
    bank: Optional[str] = None
    inventory_full_action: str = InventoryFullAction.DROP_FISH.value
    return_method: str = ReturnToFishingMethod.WALK.value
    use_boost_potions: bool = False
    boost_potion_name: Optional[str] = None
    boost_interval: float = 300.0
    bank_teleport_item: Optional[str] = None
    return_teleport_item: Optional[str] = None

    # Prices
    prices_enabled: bool = True
    prices_timeout: float = 10.0
    prices_cache_minutes: float = 15.0

    @classmethod
    def from_yaml(cls, path: str = DEFAULT_CONFIG_PATH) -> "AgentConfig":
        """Load config from YAML file."""
        config = cls()

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Config file not found: {path}, using defaults")
            return config
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading config: {e}, using defaults")
            return config

        # Bridge
        if "bridge" in data:
            config.bridge_url = data["bridge"].get("url", config.bridge_url)
            config.bridge_timeout = data["bridge"].get("timeout", config.bridge_timeout)

        # Timing
        if "timing" in data:
            timing = data["timing"]
            config.tick_interval = timing.get("tick_interval", config.tick_interval)
            t = config.timings
            t.init_timeout = timing.get("init_timeout", t.init_timeout)
            t.fishing_start_grace = timing.get("fishing_start_grace", t.fishing_start_grace)
            t.drop_delay = timing.get("drop_delay", t.drop_delay)
            t.bank_open_timeout = timing.get("bank_open_timeout", t.bank_open_timeout)
            t.deposit_wait = timing.get("deposit_wait", t.deposit_wait)
            t.close_wait = timing.get("close_wait", t.close_wait)
            t.idle_min = timing.get("idle_min", t.idle_min)
            t.idle_max = timing.get("idle_max", t.idle_max)
            t.walk_timeout = timing.get("walk_timeout", t.walk_timeout)
            t.teleport_timeout = timing.get("teleport_timeout", t.teleport_timeout)

        # Logging
        if "logging" in data:
            config.log_level = str(data["logging"].get("level", config.log_level)).upper()
            config.log_dir = Path(data["logging"].get("dir", str(config.log_dir)))

        # Session
        if "session" in data:
            session = data["session"]
            config.location = session.get("location", config.location)
            config.spot_type = session.get("spot_type", config.spot_type)
            config.fish = session.get("fish", config.fish)
            config.bank = session.get("bank", config.bank)
            config.inventory_full_action = session.get("inventory_full_action", config.inventory_full_action)
            config.return_method = session.get("return_method", config.return_method)
            config.use_boost_potions = session.get("use_boost_potions", config.use_boost_potions)
            config.boost_potion_name = session.get("boost_potion_name", config.boost_potion_name)
            config.boost_interval = session.get("boost_interval", config.boost_interval)
            config.bank_teleport_item = session.get("bank_teleport_item", config.bank_teleport_item)
            config.return_teleport_item = session.get("return_teleport_item", config.return_teleport_item)

        # Prices
        if "prices" in data:
            config.prices_enabled = data["prices"].get("enabled", config.prices_enabled)
            config.prices_timeout = data["prices"].get("timeout", config.prices_timeout)
            config.prices_cache_minutes = data["prices"].get("cache_minutes", config.prices_cache_minutes)

        return config

    @property
    def log_file(self) -> Path:
        return self.log_dir / "stokee_fishing.log"

    def build_fishing_config(self, catalog: Catalog) -> FishingConfig:
        """Resolve session names against the catalog. Raises ConfigurationError."""
        if not self.location:
            raise ConfigurationError("session.location is not set")

        try:
            location = catalog.fishing_location(self.location)
            spot_type = catalog.spot_type(self.spot_type) if self.spot_type else location.spot_type
            fish = catalog.fish_type(self.fish) if self.fish else None
            bank = catalog.bank(self.bank) if self.bank else location.nearest_bank
        except CatalogError as e:
            raise ConfigurationError(str(e)) from e

        try:
            inventory_full_action = InventoryFullAction(self.inventory_full_action)
            return_method = ReturnToFishingMethod(self.return_method)
        except ValueError as e:
            raise ConfigurationError(f"Invalid session policy: {e}") from e

        return FishingConfig(
            fishing_location=location,
            spot_type=spot_type,
            target_fish=fish,
            bank=bank,
            inventory_full_action=inventory_full_action,
            return_method=return_method,
            use_boost_potions=bool(self.use_boost_potions),
            boost_potion_name=self.boost_potion_name,
            boost_interval=float(self.boost_interval),
            bank_teleport_item_name=self.bank_teleport_item,
            return_teleport_item_name=self.return_teleport_item,
            timings=self.timings,
        )
