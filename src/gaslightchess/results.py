"""
Game outcome bookkeeping: which finished games count, and a running scoreboard.
"""
from __future__ import annotations

from dataclasses import dataclass

MATE = "mate"
OUTOFTIME = "outoftime"
RESIGN = "resign"
ABORTED = "aborted"  # the server says "aborted", not "abort"
DRAW = "draw"

COUNTED_WIN_STATUSES = frozenset({MATE, OUTOFTIME, RESIGN})
COUNTED_LOSS_STATUSES = frozenset({MATE, OUTOFTIME})


def determine_game_result(winner: str | None, status: str | None, bot_color: str) -> str | None:
    """Return "win" | "draw" | "loss", or None when the game should not be counted."""
    if not winner:
        return "draw" if status != ABORTED else None
    if winner == bot_color:
        return "win" if status in COUNTED_WIN_STATUSES else None
    return "loss" if status in COUNTED_LOSS_STATUSES else None


@dataclass
class Scoreboard:
    wins: int = 0
    draws: int = 0
    losses: int = 0

    def record(self, result: str | None) -> None:
        if result == "win":
            self.wins += 1
        elif result == "draw":
            self.draws += 1
        elif result == "loss":
            self.losses += 1

    @property
    def games(self) -> int:
        return self.wins + self.draws + self.losses

    def __str__(self) -> str:
        return f"W={self.wins} D={self.draws} L={self.losses}"
