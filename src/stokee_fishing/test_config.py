import pytest

from stokee_fishing.config import AgentConfig
from stokee_fishing.execution import ConfigurationError, InventoryFullAction, ReturnToFishingMethod
from stokee_fishing.knowledge import get_catalog


def _write(tmp_path, text):
    path = tmp_path / "settings.yaml"
    path.write_text(text)
    return str(path)


def test_missing_file_uses_defaults(tmp_path):
    config = AgentConfig.from_yaml(str(tmp_path / "nope.yaml"))
    assert config.bridge_url == "http://localhost:8791"
    assert config.tick_interval == 0.5
    assert config.timings.init_timeout == 60
    assert config.location is None


def test_sections_overlay_defaults(tmp_path):
    path = _write(tmp_path, """
bridge:
  url: http://127.0.0.1:9000
timing:
  tick_interval: 1.0
  idle_max: 6
logging:
  level: debug
session:
  location: Barbarian Village
  inventory_full_action: drop_fish
prices:
  enabled: false
""")
    config = AgentConfig.from_yaml(path)

    assert config.bridge_url == "http://127.0.0.1:9000"
    assert config.bridge_timeout == 5.0
    assert config.tick_interval == 1.0
    assert config.timings.idle_max == 6
    assert config.timings.idle_min == 2.0
    assert config.log_level == "DEBUG"
    assert config.location == "Barbarian Village"
    assert config.prices_enabled is False


def test_empty_file_uses_defaults(tmp_path):
    config = AgentConfig.from_yaml(_write(tmp_path, ""))
    assert config.inventory_full_action == "drop_fish"


def test_build_fishing_config_resolves_names():
    config = AgentConfig(
        location="catherby",
        fish="Raw swordfish",
        inventory_full_action="walk_to_bank",
        return_method="use_lodestone",
    )
    fishing = config.build_fishing_config(get_catalog())

    assert fishing.fishing_location.key == "catherby"
    assert fishing.spot_type.key == "harpoon_tuna_swordfish"
    assert fishing.target_fish.key == "swordfish"
    assert fishing.bank.key == "catherby"
    assert fishing.inventory_full_action is InventoryFullAction.WALK_TO_BANK
    assert fishing.return_method is ReturnToFishingMethod.USE_LODESTONE
    assert fishing.is_valid()


def test_unknown_names_are_configuration_errors():
    catalog = get_catalog()
    with pytest.raises(ConfigurationError):
        AgentConfig().build_fishing_config(catalog)
    with pytest.raises(ConfigurationError):
        AgentConfig(location="Atlantis").build_fishing_config(catalog)
    with pytest.raises(ConfigurationError):
        AgentConfig(location="catherby", inventory_full_action="eat_fish").build_fishing_config(catalog)
