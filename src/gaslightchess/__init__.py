"""
Gaslight chess bot package.

Components:
- engine_client/scoring: serialized UCI analysis queries and mate/centipawn normalization
- selector: best move or a banded suboptimal ("gaslight") move
- scheduler: clock-aware movetime with jitter and critical-time override
- session/smack: per-game counters and phases, smack-mode escalation
- bot: the per-event driver tying the pieces together
- match/referee/engine_opponent/random_opponent: local matches with simulated clocks
- config: hot-reloaded settings.yml
"""
