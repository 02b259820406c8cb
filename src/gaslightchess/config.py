"""
Configuration loading for the gaslight bot.

- Reads settings.yml (YAML) from the repo root, or from GASLIGHTCHESS_SETTINGS if set.
- Falls back to environment variables, then to built-in defaults, key by key.
- load_settings() re-reads the file on every call so edits apply on the next decision.
- save_settings() writes a mapping back (used by the HTTP config endpoint).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, asdict
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger("config")


class ConfigError(Exception):
    """Raised when the settings file exists but cannot be used."""


def _repo_root() -> str:
    # this file: src/gaslightchess/config.py → repo root is two levels up
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def settings_path() -> str:
    return os.environ.get("GASLIGHTCHESS_SETTINGS") or os.path.join(_repo_root(), "settings.yml")


# Bongcloud king walk, keyed by move counter (even = White to move).
DEFAULT_OPENING_SCRIPT: dict[int, str] = {
    0: "e2e4", 2: "e1e2", 4: "e2e3", 6: "e3e2", 8: "e2e1",
    1: "e7e5", 3: "e8e7", 5: "e7e6", 7: "e6e7", 9: "e7e8",
}

# Tuned for bullet: floor (% of initial clock left) -> movetime / variance in ms
DEFAULT_TIME_THRESHOLDS: dict[int, dict[str, int]] = {
    61: {"movetime": 1500, "variance": 300},
    50: {"movetime": 3500, "variance": 500},
    40: {"movetime": 4500, "variance": 500},
    30: {"movetime": 2500, "variance": 400},
    5: {"movetime": 300, "variance": 100},
}


@dataclass(frozen=True)
class ThresholdEntry:
    floor: float
    movetime_ms: int
    variance_ms: int = 0


@dataclass(frozen=True)
class Settings:
    # Engine
    engine_path: str | None = None
    engine_options: dict = field(default_factory=dict)
    engine_timeout_margin_s: float = 2.0
    port: int = 3001

    # Score band (100 = one pawn)
    mate_boost: int = 10_000_000
    max_score_loss: int = 200
    score_floor: int = -700

    # Gaslighting
    gaslighting_enabled: bool = True
    gaslight_lines: int = 20
    gaslight_movetime_ms: int = 1000
    gaslight_variance_ms: int = 200

    # Scripted opening
    opening_script_enabled: bool = True
    opening_script: dict = field(default_factory=lambda: dict(DEFAULT_OPENING_SCRIPT))
    default_white_opening_move: str = "e2e4"

    # Time management (clocks in seconds, movetimes in ms)
    adjust_speed_enabled: bool = True
    default_movetime_ms: int = 1000
    minimum_movetime_ms: int = 100
    time_thresholds: tuple = field(default_factory=lambda: parse_time_thresholds(DEFAULT_TIME_THRESHOLDS))
    critical_time_enabled: bool = True
    critical_time_threshold: float = 5.0
    critical_time_movetime_ms: int = 100

    # Smack mode
    smack_mode_min_score: int = -900
    smack_mode_max_score: int = 900
    smack_mode_min_moves: int = 20
    smack_mode_max_moves: int = 40
    smack_mode_min_time: float = 11.0

    automove_enabled: bool = True
    log_level: str = "INFO"

    def as_dict(self) -> dict:
        d = asdict(self)
        d["time_thresholds"] = {
            _floor_key(e["floor"]): {"movetime": e["movetime_ms"], "variance": e["variance_ms"]}
            for e in d["time_thresholds"]
        }
        return d


def _floor_key(floor: float):
    return int(floor) if float(floor).is_integer() else floor


def _to_bool(val: Any) -> bool:
    if isinstance(val, str):
        return val.strip().lower() in {"1", "true", "yes", "on"}
    return bool(val)


def parse_time_thresholds(raw: Any) -> tuple[ThresholdEntry, ...]:
    """Accept {floor: movetime} or {floor: {movetime, variance}}; floors must be unique and 0-100."""
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        raise ConfigError("time_thresholds must be a mapping of floor -> movetime")
    entries: dict[float, ThresholdEntry] = {}
    for key, val in raw.items():
        try:
            floor = float(key)
        except (TypeError, ValueError):
            raise ConfigError(f"time_thresholds: bad floor {key!r}")
        if not 0 <= floor <= 100:
            raise ConfigError(f"time_thresholds: floor {key!r} outside 0-100")
        if floor in entries:
            raise ConfigError(f"time_thresholds: duplicate floor {key!r}")
        if isinstance(val, dict):
            movetime = int(val.get("movetime", 0))
            variance = int(val.get("variance", 0) or 0)
        else:
            movetime, variance = int(val), 0
        if movetime < 0 or variance < 0:
            raise ConfigError(f"time_thresholds: negative value at floor {key!r}")
        entries[floor] = ThresholdEntry(floor=floor, movetime_ms=movetime, variance_ms=variance)
    return tuple(entries.values())


def parse_opening_script(raw: Any) -> dict[int, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("opening_script must be a mapping of move counter -> uci move")
    try:
        return {int(k): str(v).strip().lower() for k, v in raw.items()}
    except (TypeError, ValueError) as e:
        raise ConfigError(f"opening_script: {e}")


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed reading {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at top level")
    return data


def _getter(cfg: dict) -> Callable[..., Any]:
    def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
        if name in cfg and cfg[name] is not None:
            val = cfg[name]
            return cast(val) if cast else val
        env = os.environ.get(f"GASLIGHTCHESS_{name.upper()}")
        if env is not None:
            return cast(env) if cast else env
        return default
    return _get


def settings_from_mapping(cfg: dict) -> Settings:
    d = Settings()
    _get = _getter(cfg)
    try:
        return Settings(
            engine_path=_get("engine_path", os.environ.get("STOCKFISH_PATH") or d.engine_path),
            engine_options=dict(_get("engine_options", {}) or {}),
            engine_timeout_margin_s=_get("engine_timeout_margin_s", d.engine_timeout_margin_s, float),
            port=_get("port", d.port, int),
            mate_boost=_get("mate_boost", d.mate_boost, int),
            max_score_loss=_get("max_score_loss", d.max_score_loss, int),
            score_floor=_get("score_floor", d.score_floor, int),
            gaslighting_enabled=_get("gaslighting_enabled", d.gaslighting_enabled, _to_bool),
            gaslight_lines=_get("gaslight_lines", d.gaslight_lines, int),
            gaslight_movetime_ms=_get("gaslight_movetime_ms", d.gaslight_movetime_ms, int),
            gaslight_variance_ms=_get("gaslight_variance_ms", d.gaslight_variance_ms, int),
            opening_script_enabled=_get("opening_script_enabled", d.opening_script_enabled, _to_bool),
            opening_script=parse_opening_script(_get("opening_script", DEFAULT_OPENING_SCRIPT)),
            default_white_opening_move=_get("default_white_opening_move", d.default_white_opening_move, str),
            adjust_speed_enabled=_get("adjust_speed_enabled", d.adjust_speed_enabled, _to_bool),
            default_movetime_ms=_get("default_movetime_ms", d.default_movetime_ms, int),
            minimum_movetime_ms=_get("minimum_movetime_ms", d.minimum_movetime_ms, int),
            time_thresholds=parse_time_thresholds(_get("time_thresholds", DEFAULT_TIME_THRESHOLDS)),
            critical_time_enabled=_get("critical_time_enabled", d.critical_time_enabled, _to_bool),
            critical_time_threshold=_get("critical_time_threshold", d.critical_time_threshold, float),
            critical_time_movetime_ms=_get("critical_time_movetime_ms", d.critical_time_movetime_ms, int),
            smack_mode_min_score=_get("smack_mode_min_score", d.smack_mode_min_score, int),
            smack_mode_max_score=_get("smack_mode_max_score", d.smack_mode_max_score, int),
            smack_mode_min_moves=_get("smack_mode_min_moves", d.smack_mode_min_moves, int),
            smack_mode_max_moves=_get("smack_mode_max_moves", d.smack_mode_max_moves, int),
            smack_mode_min_time=_get("smack_mode_min_time", d.smack_mode_min_time, float),
            automove_enabled=_get("automove_enabled", d.automove_enabled, _to_bool),
            log_level=str(_get("log_level", d.log_level)).upper(),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid setting value: {e}") from e


def load_settings(path: str | None = None) -> Settings:
    """Read the settings file fresh from disk and return a Settings snapshot."""
    return settings_from_mapping(_load_yaml(path or settings_path()))


def save_settings(values: dict, path: str | None = None) -> Settings:
    """Validate and persist a settings mapping; returns the parsed Settings."""
    if not isinstance(values, dict):
        raise ConfigError("settings payload must be a mapping")
    parsed = settings_from_mapping(values)
    target = path or settings_path()
    dir_path = os.path.dirname(target)
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        yaml.safe_dump(values, f, sort_keys=False)
    log.info("Saved settings to %s", target)
    return parsed
