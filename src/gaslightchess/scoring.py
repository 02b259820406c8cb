"""
Score values and normalization.

- Score: a centipawn or mate-in-N evaluation from the side to move's point of view.
- normalize(): maps both units onto one signed integer scale where any winning mate
  outranks any centipawn score and any losing mate ranks below one.
- ranking_key(): normalize() plus a sub-centipawn tie-break so equal scores stay
  distinct keys when candidates are ranked.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass

import chess.engine

DEFAULT_MATE_BOOST = 10_000_000
TIE_BREAK_DIVISOR = 10_000


class ScoreUnit(str, enum.Enum):
    CENTIPAWN = "cp"
    MATE = "mate"


@dataclass(frozen=True)
class Score:
    value: int
    unit: ScoreUnit = ScoreUnit.CENTIPAWN

    @classmethod
    def cp(cls, value: int) -> "Score":
        return cls(int(value), ScoreUnit.CENTIPAWN)

    @classmethod
    def mate(cls, moves: int) -> "Score":
        return cls(int(moves), ScoreUnit.MATE)

    @classmethod
    def from_engine(cls, score: chess.engine.Score) -> "Score":
        """Convert a python-chess relative score (Cp or Mate)."""
        if score.is_mate():
            return cls.mate(score.mate())
        return cls.cp(score.score())

    @property
    def is_mate(self) -> bool:
        return self.unit is ScoreUnit.MATE

    def display(self) -> str:
        if self.is_mate:
            return f"#{self.value}"
        return f"{self.value / 100:+.2f}"


def normalize(score: Score, mate_boost: int = DEFAULT_MATE_BOOST) -> int:
    if not score.is_mate:
        return score.value
    if score.value > 0:
        return mate_boost - score.value
    # mate 0: side to move is already mated
    return -mate_boost - score.value


def ranking_key(score: Score, mate_boost: int, rank_from_worst: int) -> float:
    return normalize(score, mate_boost) + rank_from_worst / TIE_BREAK_DIVISOR
