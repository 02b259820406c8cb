"""
Engine client: serialized MultiPV analysis queries against a UCI engine.

- AnalysisLine: first move of a principal variation, the depth it was searched to and
  its score (side to move's point of view).
- EngineClient: the query contract; anything with query(fen, movetime_ms, line_count)
  works (tests use scripted fakes).
- StockfishClient: python-chess SimpleEngine wrapper. Resolves the binary from an explicit
  path, STOCKFISH_PATH/settings, or the system PATH; signals a new game before every
  search; serializes queries with a lock; turns every engine failure into EngineUnavailable.
"""
from __future__ import annotations

import logging
import os
import shutil
import threading
from dataclasses import dataclass
from typing import Protocol

import chess
import chess.engine

from .scoring import Score

log = logging.getLogger("engine_client")


class MoveUnavailable(Exception):
    """Base for failures that mean "no move for this event"."""


class EngineUnavailable(MoveUnavailable):
    """Engine unreachable, crashed, timed out or produced unusable output."""


@dataclass(frozen=True)
class AnalysisLine:
    move: str
    depth: int
    score: Score


class EngineClient(Protocol):
    def query(self, fen: str, movetime_ms: int, line_count: int) -> list[AnalysisLine]:
        ...


def resolve_engine_path(engine_path: str | None = None) -> str:
    """Resolve the engine binary: explicit path, then STOCKFISH_PATH, then PATH lookup."""
    candidate = engine_path or os.environ.get("STOCKFISH_PATH") or "stockfish"
    resolved = shutil.which(candidate) or (candidate if os.path.isfile(candidate) else None)
    if resolved:
        return resolved
    auto = shutil.which("stockfish")
    if auto:
        return auto
    raise EngineUnavailable(
        f"Stockfish engine not found (candidate='{candidate}'). Install it, set STOCKFISH_PATH, "
        "or set engine_path in settings.yml."
    )


def lines_from_infos(infos: list[dict]) -> list[AnalysisLine]:
    """Convert python-chess InfoDicts into AnalysisLines, dropping malformed entries."""
    lines: list[AnalysisLine] = []
    for info in infos:
        pv = info.get("pv")
        pov = info.get("score")
        depth = info.get("depth")
        if not pv or pov is None or depth is None:
            log.warning("Dropping malformed engine line: %s", {k: info.get(k) for k in ("multipv", "depth", "score")})
            continue
        lines.append(AnalysisLine(move=pv[0].uci(), depth=int(depth), score=Score.from_engine(pov.relative)))
    return lines


class StockfishClient:
    """One engine process; queries against it never overlap."""

    def __init__(self, engine_path: str | None = None, options: dict | None = None, timeout_margin_s: float = 2.0):
        self.engine_path = resolve_engine_path(engine_path)
        self.options = dict(options or {})
        self.timeout_margin_s = timeout_margin_s
        self._lock = threading.Lock()
        self._engine: chess.engine.SimpleEngine | None = None

    def _open(self) -> chess.engine.SimpleEngine:
        # SimpleEngine bounds each time-limited search by limit.time + timeout
        try:
            engine = chess.engine.SimpleEngine.popen_uci(self.engine_path, timeout=self.timeout_margin_s)
        except (OSError, chess.engine.EngineError, TimeoutError) as e:
            raise EngineUnavailable(f"Failed launching engine at '{self.engine_path}': {e}") from e
        if self.options:
            try:
                engine.configure(self.options)
            except chess.engine.EngineError:
                engine.quit()
                raise
        log.info("Engine started: %s", engine.id.get("name", self.engine_path))
        return engine

    def _ensure_engine(self) -> chess.engine.SimpleEngine:
        if self._engine is None:
            self._engine = self._open()
            return self._engine
        try:
            self._engine.ping()
        except (chess.engine.EngineError, TimeoutError):
            log.warning("Engine not responding; restarting %s", self.engine_path)
            self._discard()
            self._engine = self._open()
        return self._engine

    def _discard(self) -> None:
        engine, self._engine = self._engine, None
        if engine is None:
            return
        try:
            engine.close()
        except (chess.engine.EngineError, OSError):
            log.debug("Ignoring error while closing dead engine", exc_info=True)

    def query(self, fen: str, movetime_ms: int, line_count: int) -> list[AnalysisLine]:
        try:
            board = chess.Board(fen)
        except ValueError as e:
            raise EngineUnavailable(f"Bad position '{fen}': {e}") from e
        limit = chess.engine.Limit(time=max(1, int(movetime_ms)) / 1000)
        with self._lock:
            try:
                engine = self._ensure_engine()
                # A fresh game token makes python-chess send ucinewgame before the search
                infos = engine.analyse(board, limit, multipv=max(1, int(line_count)), game=object())
            except (chess.engine.EngineError, TimeoutError, OSError) as e:
                self._discard()
                raise EngineUnavailable(f"Engine query failed: {e}") from e
        lines = lines_from_infos(infos)
        log.debug("Engine returned %d/%d lines for %s (movetime=%dms)", len(lines), len(infos), fen, movetime_ms)
        return lines

    def close(self) -> None:
        with self._lock:
            if self._engine is not None:
                try:
                    self._engine.quit()
                except (chess.engine.EngineError, TimeoutError):
                    pass
                self._engine = None
