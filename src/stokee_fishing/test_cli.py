from stokee_fishing.cli import main


def _settings(tmp_path, location="catherby"):
    path = tmp_path / "settings.yaml"
    path.write_text(f"""
logging:
  dir: {tmp_path / "logs"}
session:
  location: {location}
  inventory_full_action: walk_to_bank
""")
    return str(path)


def test_simulated_run_reaches_fishing(tmp_path, capsys):
    code = main([
        "--config", _settings(tmp_path),
        "--simulate", "--ticks", "5", "--tick-interval", "0", "--no-prices",
    ])
    out = capsys.readouterr().out

    assert code == 0
    assert "[FISHING]" in out or "[WAITING_FOR_FISH]" in out
    assert "Final:" in out
    assert (tmp_path / "logs" / "stokee_fishing.log").exists()


def test_unknown_location_exits_with_error(tmp_path):
    code = main(["--config", _settings(tmp_path), "--location", "Atlantis", "--simulate", "--no-prices"])
    assert code == 2


def test_list_locations(capsys):
    assert main(["--list-locations"]) == 0
    out = capsys.readouterr().out
    assert "catherby" in out
    assert "Fishing Guild" in out
