"""
RandomOpponent: uniformly random legal moves with a fixed think time.

Cheap baseline for local matches; needs no engine process.
"""
from __future__ import annotations

import random

import chess


class RandomOpponent:
    name: str = "Random"

    def __init__(self, think_s: float = 0.5, rng: random.Random | None = None):
        self.think_s = think_s
        self.rng = rng or random.Random()

    def choose(self, board: chess.Board) -> tuple[chess.Move, float]:
        legal = list(board.legal_moves)
        return (self.rng.choice(legal) if legal else chess.Move.null()), self.think_s

    def close(self):
        pass
