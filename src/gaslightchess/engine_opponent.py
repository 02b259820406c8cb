"""
Stockfish-backed sparring partner for local matches.

- Resolves the engine binary the same way the analysis client does.
- choose(): plays at a fixed depth or movetime and reports how long it thought.
- close(): terminates the engine process.
"""
from __future__ import annotations

import time

import chess
import chess.engine

from .engine_client import EngineUnavailable, resolve_engine_path


class EngineOpponent:
    def __init__(self, depth: int = 6, movetime_ms: int | None = None, engine_path: str | None = None,
                 skill_level: int | None = None):
        self.engine_path = resolve_engine_path(engine_path)
        try:
            self.engine = chess.engine.SimpleEngine.popen_uci(self.engine_path)
        except (OSError, chess.engine.EngineError) as e:
            raise EngineUnavailable(f"Failed launching engine at '{self.engine_path}': {e}") from e
        if skill_level is not None:
            try:
                self.engine.configure({"Skill Level": int(skill_level)})
            except chess.engine.EngineError as e:
                self.engine.quit()
                raise EngineUnavailable(f"Engine at '{self.engine_path}' rejected Skill Level {skill_level}: {e}") from e
        self.depth = depth
        self.movetime_ms = movetime_ms
        self.name = f"Stockfish(d{depth})" if not movetime_ms else f"Stockfish({movetime_ms}ms)"

    def choose(self, board: chess.Board) -> tuple[chess.Move, float]:
        t0 = time.time()
        if self.movetime_ms:
            res = self.engine.play(board, chess.engine.Limit(time=self.movetime_ms / 1000))
        else:
            res = self.engine.play(board, chess.engine.Limit(depth=self.depth))
        return res.move, time.time() - t0

    def close(self):
        self.engine.quit()
