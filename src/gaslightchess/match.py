"""
Local match harness: the bot against a local opponent with simulated clocks.

The harness plays the role of the game server. After every move it sends the bot a
MoveEvent carrying the piece placement only (no side to move) and both clocks, exactly
the information a browser bridge would forward. The bot answers through its sink.
Each side is charged the wall time it spent thinking; a flag fall ends the game.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import chess

from .bot import GaslightBot
from .events import MoveEvent
from .referee import Referee
from .scoring import Score


@dataclass
class MatchConfig:
    bot_color: str = "white"
    initial_time_s: float = 60.0
    increment_s: float = 0.0
    max_plies: int = 300
    # how often an event is re-sent when the bot produced no move
    max_retries: int = 2


class PendingMoveSink:
    """Sink that parks the bot's latest move until the harness collects it."""

    def __init__(self):
        self._pending: tuple[str, Score] | None = None

    def send_move(self, move: str, score: Score) -> None:
        self._pending = (move, score)

    def take(self) -> tuple[str, Score] | None:
        pending, self._pending = self._pending, None
        return pending


class LocalMatch:
    def __init__(self, bot: GaslightBot, opponent, cfg: MatchConfig | None = None):
        self.log = logging.getLogger("LocalMatch")
        self.bot = bot
        self.opp = opponent
        self.cfg = cfg or MatchConfig()
        self.sink = PendingMoveSink()
        self.bot.sink = self.sink
        self.bot_color = chess.WHITE if self.cfg.bot_color.lower() == "white" else chess.BLACK
        self.ref = Referee()
        bot_name = "GaslightBot"
        opp_name = getattr(opponent, "name", "Opponent")
        if self.bot_color == chess.WHITE:
            self.ref.set_headers(white=bot_name, black=opp_name)
        else:
            self.ref.set_headers(white=opp_name, black=bot_name)
        self.clocks = {chess.WHITE: float(self.cfg.initial_time_s), chess.BLACK: float(self.cfg.initial_time_s)}
        self.records: list[dict] = []
        self.termination_reason: str | None = None
        self._version = 0
        self.result: str | None = None
        self.bot_result: str | None = None

    def _notify(self, uci: str | None) -> float:
        """Send the bot the current position; returns the wall time the bot spent."""
        self._version += 1
        event = MoveEvent(
            fen=self.ref.board_fen(),
            move=uci,
            white_clock=round(self.clocks[chess.WHITE], 2),
            black_clock=round(self.clocks[chess.BLACK], 2),
            version=self._version,
        )
        t0 = time.time()
        self.bot.handle_event(event)
        return time.time() - t0

    def _charge(self, color: chess.Color, spent_s: float) -> bool:
        """Deduct think time; returns False if the flag fell."""
        self.clocks[color] -= spent_s
        if self.clocks[color] <= 0:
            self.clocks[color] = 0.0
            self.ref.flag(color)
            self.termination_reason = "outoftime"
            return False
        self.clocks[color] += self.cfg.increment_s
        return True

    def _bot_move(self, spent_s: float) -> str | None:
        pending = self.sink.take()
        retries = 0
        while pending is None and retries < self.cfg.max_retries:
            retries += 1
            self.log.warning("Bot produced no move; re-sending position (%d/%d)", retries, self.cfg.max_retries)
            spent_s += self._notify(None)
            pending = self.sink.take()
        if not self._charge(self.bot_color, spent_s):
            return None
        if pending is None:
            self.termination_reason = "bot_no_move"
            self.ref.flag(self.bot_color)
            return None
        move, score = pending
        ok, san = self.ref.apply_uci(move)
        self.records.append({"actor": "BOT", "uci": move, "san": san, "ok": ok, "score": score.display(),
                             "clock": round(self.clocks[self.bot_color], 2), "phase": self.bot.session.phase.name})
        if not ok:
            self.log.error("Bot sent illegal move %s", move)
            self.termination_reason = "illegal_bot_move"
            self.ref.flag(self.bot_color)
            return None
        self.log.info("[ply %d] BOT %s (%s) score=%s clock=%.1fs", len(self.ref.board.move_stack), san, move,
                      score.display(), self.clocks[self.bot_color])
        return move

    def _opp_move(self) -> str | None:
        color = not self.bot_color
        mv, spent_s = self.opp.choose(self.ref.board)
        if not self._charge(color, spent_s):
            return None
        uci = mv.uci()
        ok, san = self.ref.apply_uci(uci)
        self.records.append({"actor": "OPP", "uci": uci, "san": san, "ok": ok, "clock": round(self.clocks[color], 2)})
        if not ok:
            self.termination_reason = "illegal_opponent_move"
            self.ref.flag(color)
            return None
        self.log.debug("[ply %d] OPP %s", len(self.ref.board.move_stack), san)
        return uci

    def play(self) -> str:
        self.bot.new_game()
        self.bot.assign_color(self.bot_color == chess.WHITE)
        # The server announces the position before anyone has moved
        bot_spent = self._notify(None)
        plies = 0
        while not self.ref.is_over() and plies < self.cfg.max_plies:
            if self.ref.board.turn == self.bot_color:
                uci = self._bot_move(bot_spent)
                bot_spent = 0.0
            else:
                uci = self._opp_move()
            if uci is None:
                break
            plies += 1
            spent = self._notify(uci)
            if self.ref.board.turn == self.bot_color:
                bot_spent = spent
        if not self.ref.is_over():
            self.termination_reason = "max_plies_reached"
            self.ref.declare_draw(self.termination_reason)
        winner, status = self.ref.outcome()
        self.termination_reason = self.termination_reason or status
        self.result = self.ref.status()
        self.bot_result = self.bot.handle_game_end(winner, status)
        self.log.info("Match finished result=%s reason=%s plies=%d bot=%s", self.result, self.termination_reason,
                      plies, self.bot_result)
        return self.result

    def summary(self) -> dict:
        bot_moves = [r for r in self.records if r["actor"] == "BOT"]
        return {
            "result": self.result,
            "bot_result": self.bot_result,
            "termination_reason": self.termination_reason,
            "plies_total": len(self.records),
            "bot_moves": len(bot_moves),
            "clocks": {"white": round(self.clocks[chess.WHITE], 2), "black": round(self.clocks[chess.BLACK], 2)},
            "scoreboard": str(self.bot.scoreboard),
            "pgn": self.ref.pgn(),
        }
