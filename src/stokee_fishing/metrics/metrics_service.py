"""
Metrics Service - session throughput for operator feedback.

Counts fish per item id, completed trips and per-trip totals, and derives
hourly rates from wall-clock elapsed time. Experience figures come from a
SkillSession and coin values from an injected price lookup; both are
optional so a session can run offline.

Usage:
    metrics = MetricsService(SkillSession(lambda: world.get_skill("fishing")), ge_client)
    metrics.record_fish_caught(fish)
    print(metrics.snapshot().summary())
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Dict, List, Optional, Union

from ..knowledge import FishType
from .prices import PriceLookup, calculate_total_value
from .skill_session import SkillSession

logger = logging.getLogger(__name__)

NO_ESTIMATE = "--:--:--"


def format_duration(duration: timedelta) -> str:
    total = int(duration.total_seconds())
    hours, rem = divmod(total, 3600)
    minutes, seconds = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_gp(value: float) -> str:
    if value >= 1_000_000_000:
        return f"{value / 1_000_000_000:.2f}B"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{int(value)}"


def format_number(value: float) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{int(value)}"


@dataclass
class MetricsSnapshot:
    """Display-ready view of the session."""
    runtime: str
    fish_caught: int
    fish_per_hour: float
    xp_gained: int
    xp_per_hour: float
    levels_gained: int
    current_level: int
    time_to_level: str
    total_gp: str
    gp_per_hour: str
    trips: int
    current_trip_fish: int
    average_fish_per_trip: float
    fish_counts: Dict[str, int] = field(default_factory=dict)

    def summary(self) -> str:
        return (
            f"{self.runtime} | fish {self.fish_caught} ({self.fish_per_hour:.0f}/hr) | "
            f"xp {format_number(self.xp_gained)} ({format_number(self.xp_per_hour)}/hr) | "
            f"lvl {self.current_level} (+{self.levels_gained}, next {self.time_to_level}) | "
            f"gp {self.total_gp} ({self.gp_per_hour}/hr) | trips {self.trips}"
        )


class MetricsService:
    def __init__(
        self,
        skills: Optional[SkillSession] = None,
        prices: Optional[PriceLookup] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._skills = skills
        self._prices = prices
        self._clock = clock
        self._lock = threading.Lock()
        self._session_start = clock()
        self._fish_counts: Dict[int, int] = {}
        self._fish_names: Dict[int, str] = {}
        self._trip_count = 0
        self._current_trip_fish = 0
        self._trip_start = self._session_start
        self._trip_totals: List[int] = []

    # ============================================
    # RECORDING
    # ============================================

    def record_fish_caught(self, fish: Union[int, FishType], amount: int = 1) -> None:
        if isinstance(fish, FishType):
            item_id = fish.item_id
            name = fish.name
        else:
            item_id = int(fish)
            name = None
        with self._lock:
            self._fish_counts[item_id] = self._fish_counts.get(item_id, 0) + amount
            self._current_trip_fish += amount
            if name:
                self._fish_names[item_id] = name

    def record_trip_completed(self) -> None:
        with self._lock:
            if self._current_trip_fish > 0:
                self._trip_totals.append(self._current_trip_fish)
            self._trip_count += 1
            logger.info(f"Trip {self._trip_count} complete: {self._current_trip_fish} fish")
            self._current_trip_fish = 0
            self._trip_start = self._clock()

    # ============================================
    # TIME
    # ============================================

    def _elapsed_hours(self) -> float:
        return max(self._clock() - self._session_start, 0.0) / 3600

    @property
    def runtime(self) -> timedelta:
        return timedelta(seconds=max(self._clock() - self._session_start, 0.0))

    @property
    def runtime_formatted(self) -> str:
        return format_duration(self.runtime)

    # ============================================
    # FISH
    # ============================================

    @property
    def total_fish_caught(self) -> int:
        with self._lock:
            return sum(self._fish_counts.values())

    @property
    def fish_per_hour(self) -> float:
        hours = self._elapsed_hours()
        return self.total_fish_caught / hours if hours > 0 else 0.0

    def get_fish_count(self, item_id: int) -> int:
        with self._lock:
            return self._fish_counts.get(item_id, 0)

    def get_all_fish_counts(self) -> Dict[int, int]:
        with self._lock:
            return dict(self._fish_counts)

    # ============================================
    # EXPERIENCE
    # ============================================

    @property
    def fishing_xp_gained(self) -> int:
        return self._skills.xp_gained if self._skills else 0

    @property
    def fishing_xp_per_hour(self) -> float:
        return self._skills.xp_per_hour if self._skills else 0.0

    @property
    def fishing_levels_gained(self) -> int:
        return self._skills.levels_gained if self._skills else 0

    @property
    def current_fishing_level(self) -> int:
        return self._skills.current_level if self._skills else 0

    @property
    def xp_to_next_level(self) -> int:
        return self._skills.xp_to_next_level if self._skills else 0

    @property
    def time_to_next_level(self) -> Optional[timedelta]:
        return self._skills.time_to_next_level() if self._skills else None

    @property
    def time_to_next_level_formatted(self) -> str:
        remaining = self.time_to_next_level
        if remaining is None:
            return NO_ESTIMATE
        if remaining.days >= 1:
            hours, rem = divmod(remaining.seconds, 3600)
            return f"{remaining.days}d {hours}h {rem // 60}m"
        return format_duration(remaining)

    # ============================================
    # VALUE
    # ============================================

    @property
    def total_gp_value(self) -> int:
        if self._prices is None:
            return 0
        return calculate_total_value(self._prices, self.get_all_fish_counts().items())

    @property
    def gp_per_hour(self) -> float:
        hours = self._elapsed_hours()
        return self.total_gp_value / hours if hours > 0 else 0.0

    @property
    def total_gp_formatted(self) -> str:
        return format_gp(self.total_gp_value)

    @property
    def gp_per_hour_formatted(self) -> str:
        return format_gp(self.gp_per_hour)

    # ============================================
    # TRIPS
    # ============================================

    @property
    def trip_count(self) -> int:
        with self._lock:
            return self._trip_count

    @property
    def current_trip_fish(self) -> int:
        with self._lock:
            return self._current_trip_fish

    @property
    def current_trip_duration(self) -> timedelta:
        with self._lock:
            start = self._trip_start
        return timedelta(seconds=max(self._clock() - start, 0.0))

    @property
    def average_fish_per_trip(self) -> float:
        with self._lock:
            if not self._trip_totals:
                return float(self._current_trip_fish)
            return sum(self._trip_totals) / len(self._trip_totals)

    @property
    def average_trip_duration(self) -> timedelta:
        trips = self.trip_count
        if trips == 0:
            return self.current_trip_duration
        return self.runtime / trips

    # ============================================
    # DISPLAY
    # ============================================

    def snapshot(self) -> MetricsSnapshot:
        counts = self.get_all_fish_counts()
        with self._lock:
            names = dict(self._fish_names)
        return MetricsSnapshot(
            runtime=self.runtime_formatted,
            fish_caught=sum(counts.values()),
            fish_per_hour=self.fish_per_hour,
            xp_gained=self.fishing_xp_gained,
            xp_per_hour=self.fishing_xp_per_hour,
            levels_gained=self.fishing_levels_gained,
            current_level=self.current_fishing_level,
            time_to_level=self.time_to_next_level_formatted,
            total_gp=self.total_gp_formatted,
            gp_per_hour=self.gp_per_hour_formatted,
            trips=self.trip_count,
            current_trip_fish=self.current_trip_fish,
            average_fish_per_trip=self.average_fish_per_trip,
            fish_counts={names.get(item_id, str(item_id)): count for item_id, count in counts.items()},
        )
