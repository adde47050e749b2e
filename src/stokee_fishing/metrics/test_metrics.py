from datetime import timedelta

from stokee_fishing.knowledge import FishingAction, FishingEquipment, FishType
from stokee_fishing.metrics import GEItemPrice, MetricsService, SkillSession, format_gp, format_number
from stokee_fishing.world import SkillStats

LOBSTER = FishType("lobster", "Raw lobster", 377, 40, 90, FishingAction.CAGE, FishingEquipment.LOBSTER_POT)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FixedPrices:
    def __init__(self, prices):
        self.prices = prices

    def get_cached_price(self, item_id):
        price = self.prices.get(item_id)
        return GEItemPrice(item_id, "", price, 0.0) if price is not None else None


class SkillFeed:
    def __init__(self, level=50, xp=100_000, to_next=10_000):
        self.stats = SkillStats(level, xp, to_next)

    def gain(self, xp):
        self.stats = SkillStats(self.stats.level, self.stats.xp + xp, self.stats.xp_to_next_level - xp)

    def __call__(self):
        return self.stats


def test_rates_are_zero_at_start():
    """No time elapsed means every rate is exactly zero."""
    clock = FakeClock()
    metrics = MetricsService(prices=FixedPrices({377: 200}), clock=clock)
    metrics.record_fish_caught(377, 5)

    assert metrics.fish_per_hour == 0
    assert metrics.gp_per_hour == 0
    assert metrics.total_fish_caught == 5


def test_fish_per_hour_uses_elapsed_time():
    clock = FakeClock()
    metrics = MetricsService(clock=clock)
    metrics.record_fish_caught(LOBSTER, 30)
    clock.advance(1800)

    assert metrics.fish_per_hour == 60
    assert metrics.get_fish_count(377) == 30
    assert metrics.get_all_fish_counts() == {377: 30}
    assert metrics.runtime_formatted == "00:30:00"


def test_empty_trip_counts_but_is_not_averaged():
    """A trip with no fish still counts, but never drags the average down."""
    clock = FakeClock()
    metrics = MetricsService(clock=clock)

    metrics.record_fish_caught(377, 28)
    metrics.record_trip_completed()
    metrics.record_trip_completed()

    assert metrics.trip_count == 2
    assert metrics.current_trip_fish == 0
    assert metrics.average_fish_per_trip == 28


def test_average_fish_uses_current_trip_before_first_trip():
    metrics = MetricsService(clock=FakeClock())
    metrics.record_fish_caught(377, 7)
    assert metrics.average_fish_per_trip == 7


def test_trip_durations():
    clock = FakeClock()
    metrics = MetricsService(clock=clock)
    clock.advance(120)
    assert metrics.average_trip_duration == timedelta(seconds=120)

    metrics.record_trip_completed()
    clock.advance(30)
    assert metrics.current_trip_duration == timedelta(seconds=30)
    assert metrics.average_trip_duration == timedelta(seconds=150)


def test_gp_value_uses_cached_prices_only():
    clock = FakeClock()
    metrics = MetricsService(prices=FixedPrices({377: 250}), clock=clock)
    metrics.record_fish_caught(377, 4)
    metrics.record_fish_caught(999, 10)  # no price known
    clock.advance(3600)

    assert metrics.total_gp_value == 1000
    assert metrics.gp_per_hour == 1000
    assert metrics.total_gp_formatted == "1.0K"


def test_no_price_lookup_means_zero_value():
    metrics = MetricsService(clock=FakeClock())
    metrics.record_fish_caught(377, 4)
    assert metrics.total_gp_value == 0


def test_xp_tracking_and_time_to_level():
    clock = FakeClock()
    feed = SkillFeed(to_next=1000)
    metrics = MetricsService(SkillSession(feed, clock=clock), clock=clock)

    assert metrics.fishing_xp_gained == 0
    assert metrics.time_to_next_level is None
    assert metrics.time_to_next_level_formatted == "--:--:--"

    feed.gain(500)
    clock.advance(3600)

    assert metrics.fishing_xp_gained == 500
    assert metrics.fishing_xp_per_hour == 500
    assert metrics.xp_to_next_level == 500
    assert metrics.time_to_next_level == timedelta(hours=1)
    assert metrics.time_to_next_level_formatted == "01:00:00"


def test_time_to_level_past_a_day():
    clock = FakeClock()
    feed = SkillFeed(to_next=100_000)
    metrics = MetricsService(SkillSession(feed, clock=clock), clock=clock)
    metrics.fishing_xp_gained  # take baseline

    feed.gain(1000)
    clock.advance(3600)
    # 99,000 xp left at 1,000/hr = 99 hours
    assert metrics.time_to_next_level_formatted == "4d 3h 0m"


def test_skill_baseline_taken_on_first_read():
    clock = FakeClock()
    feed = SkillFeed(level=50, xp=100_000)
    session = SkillSession(feed, clock=clock)
    feed.stats = SkillStats(51, 120_000, 5_000)

    assert session.xp_gained == 0
    feed.stats = SkillStats(52, 130_000, 1_000)
    assert session.xp_gained == 10_000
    assert session.levels_gained == 1
    assert session.current_level == 52


def test_snapshot_names_fish():
    clock = FakeClock()
    metrics = MetricsService(clock=clock)
    metrics.record_fish_caught(LOBSTER, 3)
    metrics.record_fish_caught(371)

    snap = metrics.snapshot()
    assert snap.fish_caught == 4
    assert snap.fish_counts == {"Raw lobster": 3, "371": 1}
    assert snap.time_to_level == "--:--:--"
    assert "trips 0" in snap.summary()


def test_formatters():
    assert format_gp(950) == "950"
    assert format_gp(12_500) == "12.5K"
    assert format_gp(3_400_000) == "3.40M"
    assert format_gp(2_000_000_000) == "2.00B"
    assert format_number(999) == "999"
    assert format_number(1_500) == "1.5K"
    assert format_number(2_500_000) == "2.50M"
