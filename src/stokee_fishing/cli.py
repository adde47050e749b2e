"""
Command-line driver: builds a session and ticks the machine at a fixed rate.

Run with: stokee-fishing --config ./config/settings.yaml
          stokee-fishing --simulate --ticks 600
"""

from __future__ import annotations

import argparse
import logging
import time
from typing import Callable, List, Optional, Tuple

from .config import DEFAULT_CONFIG_PATH, AgentConfig
from .execution import ConfigurationError, FishingMachine
from .knowledge import Catalog, get_catalog
from .metrics import GrandExchangeClient, MetricsService, SkillSession
from .navigation import NavigationService
from .world import BridgeClient, SimulatedWorld

logger = logging.getLogger(__name__)

SUMMARY_EVERY = 20  # ticks between metric summaries


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stokee-fishing", description="StokeeFishing autonomous fishing agent")
    parser.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH,
                        help="Path to config file")
    parser.add_argument("--location", "-l", default=None,
                        help="Override session.location from config")
    parser.add_argument("--simulate", action="store_true",
                        help="Run against the in-memory world instead of the bridge")
    parser.add_argument("--ticks", type=int, default=None,
                        help="Stop after this many ticks (default: run until Ctrl+C)")
    parser.add_argument("--tick-interval", type=float, default=None,
                        help="Override timing.tick_interval (seconds)")
    parser.add_argument("--list-locations", action="store_true",
                        help="List known fishing locations and exit")
    parser.add_argument("--no-prices", action="store_true",
                        help="Skip Grand Exchange price lookups")
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Override logging.level from config")
    return parser


def setup_logging(config: AgentConfig) -> None:
    config.log_dir.mkdir(parents=True, exist_ok=True)
    # Force reconfigure logging (libraries may have already configured it)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(config.log_file),
        ],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def list_locations(catalog: Catalog) -> None:
    print(f"{'KEY':<22} {'NAME':<30} {'SPOT':<24} BANK")
    for loc in catalog.fishing_locations.values():
        bank = loc.nearest_bank.name if loc.nearest_bank else "-"
        print(f"{loc.key:<22} {loc.name:<30} {loc.spot_type.name:<24} {bank}")
        if loc.requirements:
            print(f"{'':<22} requires: {loc.requirements}")


def build_session(
    config: AgentConfig,
    catalog: Catalog,
    simulate: bool,
    use_prices: bool,
) -> Tuple[FishingMachine, Optional[SimulatedWorld], List[Callable[[], None]]]:
    """Wire world, navigation, metrics and machine. Returns (machine, sim world, closers)."""
    fishing = config.build_fishing_config(catalog)
    closers: List[Callable[[], None]] = []

    sim_world: Optional[SimulatedWorld] = None
    if simulate:
        sim_world = SimulatedWorld.around(fishing.fishing_location, fishing.bank)
        world = driver = sim_world
    else:
        client = BridgeClient(config.bridge_url, timeout=config.bridge_timeout)
        closers.append(client.close)
        world = driver = client

    prices = None
    if use_prices:
        prices = GrandExchangeClient(
            timeout=config.prices_timeout,
            cache_expiry=config.prices_cache_minutes * 60,
        )
        prices.preload_in_background()
        closers.append(prices.close)

    metrics = MetricsService(SkillSession(lambda: world.get_skill("fishing")), prices)
    navigation = NavigationService(driver, world, catalog.paths)
    machine = FishingMachine(fishing, world, navigation, metrics)
    return machine, sim_world, closers


def run_session(
    machine: FishingMachine,
    sim_world: Optional[SimulatedWorld],
    tick_interval: float,
    max_ticks: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    machine.start()
    last_status = None
    ticks = 0
    try:
        while machine.is_running and (max_ticks is None or ticks < max_ticks):
            if sim_world is not None:
                sim_world.advance()
            machine.tick()
            ticks += 1

            status = (machine.current_state, machine.status_message)
            if status != last_status:
                print(f"[{machine.current_state.name}] {machine.status_message}")
                last_status = status
            if ticks % SUMMARY_EVERY == 0:
                print(f"   {machine.metrics.snapshot().summary()}")
            sleep(tick_interval)
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        machine.stop()
        machine.navigation.wait_idle(1.0)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list_locations:
        list_locations(get_catalog())
        return 0

    config = AgentConfig.from_yaml(args.config)
    if args.location:
        config.location = args.location
    if args.log_level:
        config.log_level = args.log_level
    if args.tick_interval is not None:
        config.tick_interval = args.tick_interval
    setup_logging(config)

    use_prices = config.prices_enabled and not args.no_prices
    try:
        machine, sim_world, closers = build_session(config, get_catalog(), args.simulate, use_prices)
        # Fail before printing the banner if the config cannot start
        problems = machine.config.validate()
        if problems:
            raise ConfigurationError("; ".join(problems))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    print("\n" + "=" * 60)
    print("   StokeeFishing - Autonomous Fishing Agent")
    print("=" * 60)
    print(f"   Location: {machine.config.fishing_location.name}")
    print(f"   Spot: {machine.config.spot_type.name}")
    print(f"   Full inventory: {machine.config.inventory_full_action.value}")
    print(f"   World: {'simulated' if args.simulate else config.bridge_url}")
    print("   Press Ctrl+C to stop")
    print("=" * 60 + "\n")

    try:
        run_session(machine, sim_world, config.tick_interval, args.ticks)
    finally:
        for close in closers:
            close()

    print(f"\nFinal: {machine.metrics.snapshot().summary()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
