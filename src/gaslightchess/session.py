"""
Per-game session state.

Turn detection relies only on the local move counter: it is incremented for every move
notification that carries a concrete move, and an even count means White is to move.
Sequence numbers supplied by the game server are never consulted; they drift whenever
unrelated traffic (time-extension requests and the like) bumps them.

Phases advance ScriptedOpening -> Gaslighting -> SmackMode and never go back within a game.
"""
from __future__ import annotations

import enum
import logging
from typing import Callable

from .move_validator import split_uci

log = logging.getLogger("session")

Validator = Callable[[str, str, str], bool]


class Phase(enum.IntEnum):
    SCRIPTED_OPENING = 0
    GASLIGHTING = 1
    SMACK_MODE = 2


def initial_phase(opening_script_enabled: bool, gaslighting_enabled: bool) -> Phase:
    if opening_script_enabled:
        return Phase.SCRIPTED_OPENING
    return Phase.GASLIGHTING if gaslighting_enabled else Phase.SMACK_MODE


class GameSession:
    def __init__(self, opening_script_enabled: bool = True, gaslighting_enabled: bool = True,
                 opening_script: dict[int, str] | None = None):
        self.gaslighting_enabled = gaslighting_enabled
        self.opening_script = dict(opening_script or {})
        self.move_counter = 0
        self.phase = initial_phase(opening_script_enabled, gaslighting_enabled)
        self.initial_clock_budget: float | None = None
        self.first_move_sent = False
        self._bot_is_white: bool | None = None

    # ---------------- Colour -----------------
    @property
    def bot_is_white(self) -> bool:
        return bool(self._bot_is_white)

    @property
    def color_known(self) -> bool:
        return self._bot_is_white is not None

    @property
    def bot_color(self) -> str:
        return "white" if self.bot_is_white else "black"

    def assign_color(self, is_white: bool) -> bool:
        """Set the bot's colour once per game. Returns False if a different colour was already set."""
        if self._bot_is_white is None:
            self._bot_is_white = bool(is_white)
            log.info("Bot plays %s", self.bot_color)
            return True
        if self._bot_is_white != bool(is_white):
            log.warning("Ignoring colour change to %s; already playing %s",
                        "white" if is_white else "black", self.bot_color)
            return False
        return True

    # ---------------- Turn tracking -----------------
    def record_move(self, uci: str | None) -> bool:
        """Count a move notification. Only notifications with an actual move advance the counter."""
        if not uci:
            return False
        self.move_counter += 1
        log.debug("moveCounter=%d (%s)", self.move_counter, uci)
        return True

    def is_white_to_move(self) -> bool:
        return self.move_counter % 2 == 0

    def is_bots_turn(self) -> bool:
        return self.bot_is_white == self.is_white_to_move()

    def position_for(self, fen: str) -> str:
        """Complete a board-only FEN with the side to move derived from the counter."""
        parts = fen.split()
        if len(parts) == 1:
            return f"{parts[0]} {'w' if self.is_white_to_move() else 'b'}"
        return fen

    # ---------------- Clock -----------------
    def capture_clock(self, remaining) -> bool:
        """Record the first usable clock reading as the initial budget; never overwritten."""
        if self.initial_clock_budget is not None:
            return False
        if not isinstance(remaining, (int, float)) or isinstance(remaining, bool) or remaining <= 0:
            return False
        self.initial_clock_budget = float(remaining)
        log.info("Initial clock budget captured: %.1fs", self.initial_clock_budget)
        return True

    def mark_first_move_sent(self) -> None:
        self.first_move_sent = True

    # ---------------- Phases -----------------
    def _advance(self, to: Phase) -> None:
        if to <= self.phase:
            return
        log.info("Phase %s -> %s at move %d", self.phase.name, to.name, self.move_counter)
        self.phase = to

    def end_scripted_opening(self) -> None:
        if self.phase is Phase.SCRIPTED_OPENING:
            self._advance(Phase.GASLIGHTING if self.gaslighting_enabled else Phase.SMACK_MODE)

    def escalate(self) -> None:
        self._advance(Phase.SMACK_MODE)

    def next_scripted_move(self, fen: str, validator: Validator) -> str | None:
        """Scripted move for the current counter, or None once the script is exhausted or illegal."""
        if self.phase is not Phase.SCRIPTED_OPENING:
            return None
        move = self.opening_script.get(self.move_counter)
        if move:
            try:
                if validator(fen, *split_uci(move)):
                    return move
            except ValueError:
                pass
            log.info("Scripted move %s is illegal at move %d", move, self.move_counter)
        self.end_scripted_opening()
        return None
