"""
Move selection on top of an EngineClient.

- select_best(): single-line query, strongest move, no banding.
- select_gaslight(): MultiPV query; keeps the lines at the deepest depth reached and picks
  the worst-scoring line that still lies strictly inside the score band
  (max(best - max_score_loss, score_floor), best].
- pick_gaslight_line(): the band selection as a pure function over AnalysisLines.

Normalized scores are only used for ranking; callers get the engine's raw score and unit back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .engine_client import AnalysisLine, EngineClient, MoveUnavailable
from .scoring import DEFAULT_MATE_BOOST, Score, normalize, ranking_key

log = logging.getLogger("selector")


class NoCandidateMoves(MoveUnavailable):
    """The engine produced no usable line at the target depth."""


@dataclass(frozen=True)
class ScoreBand:
    max_score_loss: int
    score_floor: int
    mate_boost: int = DEFAULT_MATE_BOOST

    def __post_init__(self):
        if self.max_score_loss < 0:
            raise ValueError("max_score_loss must be non-negative")
        if self.mate_boost <= 0:
            raise ValueError("mate_boost must be positive")


@dataclass(frozen=True)
class ScoredMove:
    move: str
    score: Score
    depth: int
    normalized: int


def _deepest(lines: list[AnalysisLine]) -> list[AnalysisLine]:
    if not lines:
        return []
    max_depth = max(l.depth for l in lines)
    survivors: list[AnalysisLine] = []
    seen: set[str] = set()
    # Lines arrive best-first; a repeated move keeps its better-ranked entry
    for line in lines:
        if line.depth != max_depth or line.move in seen:
            continue
        seen.add(line.move)
        survivors.append(line)
    return survivors


def pick_gaslight_line(lines: list[AnalysisLine], band: ScoreBand) -> ScoredMove:
    survivors = _deepest(lines)
    if not survivors:
        raise NoCandidateMoves("engine returned no lines")
    n = len(survivors)
    # rank_from_worst: the engine's last-ranked line gets 1, its best-ranked gets n
    keyed = sorted(
        (
            (ranking_key(line.score, band.mate_boost, n - i), normalize(line.score, band.mate_boost), line)
            for i, line in enumerate(survivors)
        ),
        key=lambda entry: entry[0],
    )
    _, best_score, best_line = keyed[-1]
    min_acceptable = max(best_score - band.max_score_loss, band.score_floor)
    chosen, chosen_score = best_line, best_score
    # ascending: the first line inside the band is the worst acceptable one
    for _, score, line in keyed:
        if score > min_acceptable:
            chosen, chosen_score = line, score
            break
    log.debug("Gaslight band: best=%d min=%d candidates=%d chose=%s (%d)",
              best_score, min_acceptable, n, chosen.move, chosen_score)
    return ScoredMove(move=chosen.move, score=chosen.score, depth=chosen.depth, normalized=chosen_score)


class MoveSelector:
    def __init__(self, client: EngineClient):
        self.client = client

    def select_best(self, fen: str, movetime_ms: int, mate_boost: int = DEFAULT_MATE_BOOST) -> ScoredMove:
        lines = self.client.query(fen, movetime_ms, 1)
        if not lines:
            raise NoCandidateMoves(f"engine returned no lines for {fen}")
        best = max(lines, key=lambda l: normalize(l.score, mate_boost))
        return ScoredMove(move=best.move, score=best.score, depth=best.depth, normalized=normalize(best.score, mate_boost))

    def select_gaslight(self, fen: str, movetime_ms: int, line_count: int, band: ScoreBand) -> ScoredMove:
        lines = self.client.query(fen, movetime_ms, line_count)
        return pick_gaslight_line(lines, band)
