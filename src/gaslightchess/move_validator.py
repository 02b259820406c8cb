"""
Legality helpers backed by python-chess.

- is_legal_move(fen, from_sq, to_sq): the legality check used before committing to a
  scripted opening move. Accepts board-only or partial FENs the way the game server
  sends them (missing fields take python-chess defaults).
- split_uci(): "e2e4" -> ("e2", "e4").
"""
from __future__ import annotations

import re
from functools import lru_cache

import chess

UCI_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$", re.I)


@lru_cache(maxsize=8192)
def _legal_pairs(fen: str) -> frozenset[tuple[int, int]]:
    """Cache the (from, to) square pairs of every legal move in a position."""
    board = chess.Board(fen=fen)
    return frozenset((m.from_square, m.to_square) for m in board.legal_moves)


def split_uci(uci: str) -> tuple[str, str]:
    if not UCI_RE.match(uci or ""):
        raise ValueError(f"not a UCI move: {uci!r}")
    return uci[:2].lower(), uci[2:4].lower()


def is_legal_move(fen: str, from_sq: str, to_sq: str) -> bool:
    """True if some legal move in `fen` goes from `from_sq` to `to_sq` (any promotion)."""
    try:
        pair = (chess.parse_square(from_sq.lower()), chess.parse_square(to_sq.lower()))
        return pair in _legal_pairs(fen)
    except ValueError:
        # bad square name or unparseable FEN
        return False


__all__ = [
    "UCI_RE",
    "is_legal_move",
    "split_uci",
]
