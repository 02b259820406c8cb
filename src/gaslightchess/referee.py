"""
Referee for local matches: the authoritative board, clocks-agnostic.

- Owns a python-chess Board and applies moves from either side after a legality check.
- Reports the result in server terms (winner colour + status name) so the bot's
  game-end handling can be exercised locally.
- Exports PGN with headers and an optional termination comment.
"""
from __future__ import annotations

import datetime
from typing import Optional

import chess
import chess.pgn

from .results import DRAW, MATE, OUTOFTIME


class Referee:
    def __init__(self, starting_fen: str | None = None):
        self.board = chess.Board(fen=starting_fen) if starting_fen else chess.Board()
        self._headers: dict[str, str] = {}
        self._flagged: Optional[chess.Color] = None
        self._draw_reason: Optional[str] = None

    def set_headers(self, white: str = "?", black: str = "?", event: str = "Local gaslight match",
                    date: Optional[str] = None) -> None:
        self._headers.update({
            "Event": event,
            "Site": "local",
            "Date": date or datetime.date.today().strftime("%Y.%m.%d"),
            "Round": "?",
            "White": white,
            "Black": black,
        })

    # ---------------- Moves -----------------
    def apply_uci(self, uci: str) -> tuple[bool, str | None]:
        try:
            mv = chess.Move.from_uci(uci)
        except ValueError:
            return False, None
        if mv not in self.board.legal_moves:
            return False, None
        san = self.board.san(mv)
        self.board.push(mv)
        return True, san

    def board_fen(self) -> str:
        """Piece placement only, as the game server sends it."""
        return self.board.board_fen()

    # ---------------- Termination -----------------
    def flag(self, color: chess.Color) -> None:
        self._flagged = color

    def declare_draw(self, reason: str) -> None:
        self._draw_reason = reason

    def is_over(self) -> bool:
        return self._flagged is not None or self._draw_reason is not None or self.board.is_game_over()

    def outcome(self) -> tuple[str | None, str | None]:
        """Return (winner colour name or None, status name); (None, None) while the game runs."""
        if self._flagged is not None:
            return ("black" if self._flagged == chess.WHITE else "white"), OUTOFTIME
        if self._draw_reason is not None:
            return None, DRAW
        outcome = self.board.outcome()
        if outcome is None:
            return None, None
        if outcome.termination == chess.Termination.CHECKMATE:
            return ("white" if outcome.winner == chess.WHITE else "black"), MATE
        return None, DRAW

    def status(self) -> str:
        winner, status = self.outcome()
        if status is None:
            return "*"
        if winner is None:
            return "1/2-1/2"
        return "1-0" if winner == "white" else "0-1"

    def pgn(self) -> str:
        game = chess.pgn.Game()
        for k, v in self._headers.items():
            game.headers[k] = v
        game.headers["Result"] = self.status()
        node = game
        for mv in self.board.move_stack:
            node = node.add_variation(mv)
        winner, status = self.outcome()
        if status is not None:
            game.comment = f"Termination: {status}" + (f" ({self._draw_reason})" if self._draw_reason else "")
        exporter = chess.pgn.StringExporter(headers=True, variations=False, comments=True)
        return game.accept(exporter)
