"""
Think-time scheduling.

- compute_movetime(): percentage-of-initial-clock table lookup with symmetric jitter,
  clamped to a minimum. Missing or malformed clock data falls back to the default.
- TimeScheduler.plan(): phase-aware wrapper. Gaslighting uses its own fixed movetime;
  smack mode uses the table, overridden by the critical-time movetime when the clock is low.

Clock values are seconds as reported by the game server; movetimes are integer ms.
"""
from __future__ import annotations

import logging
import math
import random
from typing import Iterable

from .config import Settings, ThresholdEntry
from .session import Phase

log = logging.getLogger("scheduler")


def _valid_clock(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value) and value >= 0


def jitter(base_ms: int, variance_ms: int, rng: random.Random) -> int:
    variance_ms = max(0, int(variance_ms))
    if not variance_ms:
        return int(base_ms)
    return int(base_ms) + rng.randint(-variance_ms, variance_ms)


def match_threshold(percent_remaining: float, table: Iterable[ThresholdEntry]) -> ThresholdEntry | None:
    """Highest floor first; the first entry whose floor is <= percent_remaining wins."""
    for entry in sorted(table, key=lambda e: e.floor, reverse=True):
        if entry.floor <= percent_remaining:
            return entry
    return None


def compute_movetime(
    remaining,
    initial_budget,
    table: Iterable[ThresholdEntry],
    minimum_movetime_ms: int,
    default_movetime_ms: int,
    rng: random.Random | None = None,
) -> int:
    rng = rng or random
    if not _valid_clock(remaining) or not _valid_clock(initial_budget) or not initial_budget:
        return max(minimum_movetime_ms, int(default_movetime_ms))
    percent = 100.0 * remaining / initial_budget
    entry = match_threshold(percent, table)
    if entry is None:
        log.debug("No time threshold matches %.1f%%; using default %dms", percent, default_movetime_ms)
        return max(minimum_movetime_ms, int(default_movetime_ms))
    movetime = jitter(entry.movetime_ms, entry.variance_ms, rng)
    log.debug("Clock %.1f%% -> floor %s: %dms", percent, entry.floor, movetime)
    return max(minimum_movetime_ms, movetime)


class TimeScheduler:
    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def plan(self, phase: Phase, remaining, initial_budget, settings: Settings) -> int:
        minimum = settings.minimum_movetime_ms
        if not settings.adjust_speed_enabled:
            return max(minimum, settings.default_movetime_ms)
        if phase is Phase.SMACK_MODE:
            if (settings.critical_time_enabled and _valid_clock(remaining)
                    and remaining < settings.critical_time_threshold):
                log.info("Critical time (%.1fs left): movetime %dms", remaining, settings.critical_time_movetime_ms)
                return max(minimum, settings.critical_time_movetime_ms)
        elif phase is Phase.GASLIGHTING:
            return max(minimum, jitter(settings.gaslight_movetime_ms, settings.gaslight_variance_ms, self.rng))
        return compute_movetime(
            remaining,
            initial_budget,
            settings.time_thresholds,
            minimum,
            settings.default_movetime_ms,
            self.rng,
        )
