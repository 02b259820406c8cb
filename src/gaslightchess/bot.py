"""
Bot driver: turns move notifications into moves.

- GaslightBot.handle_event(): session update -> movetime -> move selection -> smack-mode
  check -> dispatch to the sink. Settings are re-read on every decision.
- open_as_white(): the first move when the bot has White (no engine query).
- handle_game_end(): scores the finished game and starts a fresh session.

A decision that cannot be made (engine down, no candidate lines) is logged and skipped;
the next event simply tries again.
"""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable

import chess

from .config import ConfigError, Settings, load_settings
from .engine_client import EngineClient, MoveUnavailable
from .events import MoveDecision, MoveEvent, MoveSink
from .move_validator import is_legal_move
from .results import Scoreboard, determine_game_result
from .scheduler import TimeScheduler
from .scoring import Score
from .selector import MoveSelector, ScoreBand, ScoredMove
from .session import GameSession, Phase, Validator
from .smack import SmackModeController, SmackThresholds


class GaslightBot:
    def __init__(
        self,
        client: EngineClient,
        sink: MoveSink | None = None,
        validator: Validator = is_legal_move,
        settings_loader: Callable[[], Settings] = load_settings,
        scheduler: TimeScheduler | None = None,
    ):
        self.log = logging.getLogger("GaslightBot")
        self.selector = MoveSelector(client)
        self.sink = sink
        self.validator = validator
        self._settings_loader = settings_loader
        self.scheduler = scheduler or TimeScheduler()
        self.smack = SmackModeController()
        self.scoreboard = Scoreboard()
        self.settings = Settings()
        self.settings_now()
        self.records: list[dict] = []
        self.last_game_metrics: dict | None = None
        self.session = self._fresh_session()

    # ---------------- Settings / lifecycle -----------------
    def settings_now(self) -> Settings:
        """Reload settings; keep the last good snapshot if the file is broken."""
        try:
            self.settings = self._settings_loader()
        except ConfigError:
            self.log.exception("Settings reload failed; keeping previous values")
        return self.settings

    def _fresh_session(self) -> GameSession:
        s = self.settings
        return GameSession(
            opening_script_enabled=s.opening_script_enabled,
            gaslighting_enabled=s.gaslighting_enabled,
            opening_script=s.opening_script,
        )

    def new_game(self) -> GameSession:
        self.settings_now()
        self.session = self._fresh_session()
        self.records = []
        self.log.info("New game: phase=%s", self.session.phase.name)
        return self.session

    def assign_color(self, is_white: bool) -> bool:
        return self.session.assign_color(is_white)

    # ---------------- Decisions -----------------
    def open_as_white(self, fen: str = chess.STARTING_BOARD_FEN) -> MoveDecision | None:
        """Send the opening move as White, once per game. The script is checked like any other scripted move."""
        session = self.session
        if not session.bot_is_white or session.move_counter != 0 or session.first_move_sent:
            return None
        settings = self.settings_now()
        self._sync_phase_with_settings(settings)
        move, source = None, "script"
        if session.phase is Phase.SCRIPTED_OPENING:
            move = session.next_scripted_move(session.position_for(fen), self.validator)
        if not move:
            move, source = settings.default_white_opening_move, "default"
        self.log.info("Making first move as white: %s", move)
        decision = MoveDecision(move=move, score=Score.cp(0), movetime_ms=0, source=source, phase=session.phase.name)
        decision = self._dispatch(decision, settings)
        session.mark_first_move_sent()
        return decision

    def _sync_phase_with_settings(self, settings: Settings) -> None:
        session = self.session
        session.gaslighting_enabled = settings.gaslighting_enabled
        if session.phase is Phase.SCRIPTED_OPENING and not settings.opening_script_enabled:
            session.end_scripted_opening()
        if session.phase is Phase.GASLIGHTING and not settings.gaslighting_enabled:
            session.escalate()

    def handle_event(self, event: MoveEvent) -> MoveDecision | None:
        session = self.session
        settings = self.settings_now()
        session.record_move(event.move)
        self.log.debug("Event move=%s version=%s counter=%d", event.move, event.version, session.move_counter)

        if not session.color_known:
            self.log.warning("Bot colour not detected yet; ignoring event")
            return None
        if not session.is_bots_turn():
            return None
        if session.move_counter == 0:
            return self.open_as_white(event.fen)

        self._sync_phase_with_settings(settings)
        fen = session.position_for(event.fen)
        remaining = event.clock_for(session.bot_is_white)
        session.capture_clock(remaining)

        scripted = session.next_scripted_move(fen, self.validator)
        if scripted:
            decision = MoveDecision(move=scripted, score=Score.cp(0), movetime_ms=0, source="script", phase=session.phase.name)
            return self._dispatch(decision, settings)

        phase = session.phase
        movetime = self.scheduler.plan(phase, remaining, session.initial_clock_budget, settings)
        t0 = time.time()
        try:
            scored = self._select(phase, fen, movetime, settings)
        except MoveUnavailable as e:
            self.log.error("No move for counter %d: %s", session.move_counter, e)
            self.records.append({"counter": session.move_counter, "ok": False, "error": str(e), "phase": phase.name})
            return None
        if phase is Phase.GASLIGHTING:
            self.smack.evaluate(session, remaining, scored.normalized, SmackThresholds.from_settings(settings))
        self.log.info("[move %d] %s score=%s depth=%d movetime=%dms phase=%s (%.0fms)",
                      session.move_counter, scored.move, scored.score.display(), scored.depth,
                      movetime, phase.name, (time.time() - t0) * 1000)
        decision = MoveDecision(
            move=scored.move,
            score=scored.score,
            movetime_ms=movetime,
            source="engine",
            phase=phase.name,
            depth=scored.depth,
            normalized=scored.normalized,
        )
        return self._dispatch(decision, settings)

    def _select(self, phase: Phase, fen: str, movetime: int, settings: Settings) -> ScoredMove:
        if phase is Phase.GASLIGHTING:
            band = ScoreBand(settings.max_score_loss, settings.score_floor, settings.mate_boost)
            return self.selector.select_gaslight(fen, movetime, settings.gaslight_lines, band)
        return self.selector.select_best(fen, movetime, settings.mate_boost)

    def _dispatch(self, decision: MoveDecision, settings: Settings) -> MoveDecision:
        sent = False
        if settings.automove_enabled and self.sink is not None:
            self.sink.send_move(decision.move, decision.score)
            sent = True
        else:
            self.log.info("Automove disabled or no sink; %s not sent", decision.move)
        self.records.append({
            "counter": self.session.move_counter,
            "ok": True,
            "move": decision.move,
            "score": decision.score.value,
            "unit": decision.score.unit.value,
            "source": decision.source,
            "phase": decision.phase,
            "movetime_ms": decision.movetime_ms,
            "sent": sent,
        })
        return replace(decision, sent=sent)

    # ---------------- Game end / metrics -----------------
    def handle_game_end(self, winner: str | None, status: str | None) -> str | None:
        result = determine_game_result(winner, status, self.session.bot_color)
        self.log.info("Game over: winner=%s status=%s bot=%s -> %s", winner, status, self.session.bot_color, result or "not counted")
        self.scoreboard.record(result)
        self.last_game_metrics = self.metrics()
        self.new_game()
        return result

    def metrics(self) -> dict:
        decided = [r for r in self.records if r.get("ok")]
        return {
            "decisions": len(decided),
            "failures": sum(1 for r in self.records if not r.get("ok")),
            "scripted": sum(1 for r in decided if r.get("source") == "script"),
            "engine": sum(1 for r in decided if r.get("source") == "engine"),
            "phase": self.session.phase.name,
            "move_counter": self.session.move_counter,
            "scoreboard": str(self.scoreboard),
        }
