"""
Inbound/outbound shapes shared by the bot driver and its collaborators.

- MoveEvent: one normalized move notification from the game server.
- MoveDecision: what the bot decided for an event (also handed to the sink).
- MoveSink: anything that can deliver a move (browser bridge, local match, HTTP client).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .scoring import Score


@dataclass(frozen=True)
class MoveEvent:
    fen: str
    move: str | None = None
    white_clock: float | None = None
    black_clock: float | None = None
    # Server sequence number; logged only, never used for turn detection
    version: int | None = None

    def clock_for(self, white: bool):
        return self.white_clock if white else self.black_clock


@dataclass(frozen=True)
class MoveDecision:
    move: str
    score: Score
    movetime_ms: int  # 0 when no engine search was made
    source: str  # "script" | "engine" | "default"
    phase: str
    depth: int | None = None
    normalized: int | None = None
    sent: bool = False


class MoveSink(Protocol):
    def send_move(self, move: str, score: Score) -> None:
        ...
