"""Experience tracking relative to a session baseline."""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from typing import Callable, Optional

from ..world import SkillStats


class SkillSession:
    """
    Tracks one skill from the moment the session starts.

    The baseline is taken on the first read so a session created before
    login still measures from the first real value.
    """

    def __init__(self, read_skill: Callable[[], SkillStats], clock: Callable[[], float] = time.time):
        self._read_skill = read_skill
        self._clock = clock
        self._lock = threading.Lock()
        self._baseline: Optional[SkillStats] = None
        self._started_at: Optional[float] = None

    def _current(self) -> SkillStats:
        stats = self._read_skill()
        with self._lock:
            if self._baseline is None:
                self._baseline = stats
                self._started_at = self._clock()
        return stats

    @property
    def current_level(self) -> int:
        return self._current().level

    @property
    def xp_to_next_level(self) -> int:
        return self._current().xp_to_next_level

    @property
    def xp_gained(self) -> int:
        stats = self._current()
        return max(stats.xp - self._baseline.xp, 0)

    @property
    def levels_gained(self) -> int:
        stats = self._current()
        return max(stats.level - self._baseline.level, 0)

    @property
    def xp_per_hour(self) -> float:
        gained = self.xp_gained
        hours = (self._clock() - self._started_at) / 3600
        return gained / hours if hours > 0 else 0.0

    def time_to_next_level(self) -> Optional[timedelta]:
        """None when no xp has been gained yet."""
        rate = self.xp_per_hour
        if rate <= 0:
            return None
        return timedelta(hours=self.xp_to_next_level / rate)
