"""
Smack mode: when to stop gaslighting and play at full strength.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .config import Settings
from .session import GameSession, Phase

log = logging.getLogger("smack")


@dataclass(frozen=True)
class SmackThresholds:
    min_moves: int
    max_moves: int
    min_time: float
    min_score: int
    max_score: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmackThresholds":
        return cls(
            min_moves=settings.smack_mode_min_moves,
            max_moves=settings.smack_mode_max_moves,
            min_time=settings.smack_mode_min_time,
            min_score=settings.smack_mode_min_score,
            max_score=settings.smack_mode_max_score,
        )


def should_escalate(move_counter: int, remaining, normalized_score: int, t: SmackThresholds) -> bool:
    clock_known = isinstance(remaining, (int, float)) and not isinstance(remaining, bool) and math.isfinite(remaining)
    if move_counter > t.max_moves:
        return True
    if clock_known and remaining < t.min_time:
        return True
    # Too far ahead to keep sandbagging convincingly
    if normalized_score > t.max_score:
        return True
    return move_counter >= t.min_moves and normalized_score <= t.min_score


class SmackModeController:
    """Escalates a session to SMACK_MODE; sticky for the rest of the game."""

    def evaluate(self, session: GameSession, remaining, normalized_score: int, thresholds: SmackThresholds) -> bool:
        if session.phase is Phase.SMACK_MODE:
            return True
        if not should_escalate(session.move_counter, remaining, normalized_score, thresholds):
            return False
        log.info("Smack mode: move=%d clock=%s score=%d", session.move_counter, remaining, normalized_score)
        session.escalate()
        return True
