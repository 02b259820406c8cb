"""
Minimal Flask API exposing the move selector over HTTP for browser-side bridges.

Endpoints:
- GET  /get-best-move?fen=&movetime=          -> {"moveInfo": {move, depth, score, scoreunit}}
- GET  /get-gaslight-move?fen=&movetime=&lines= -> same shape, banded suboptimal move
- GET  /get-config                            -> current settings (read fresh from disk)
- POST /update-config (alias /save-config)    -> persist new settings; active on the next request

One engine process serves every request; its client serializes the queries.
"""
from __future__ import annotations

import logging
import threading

from flask import Flask, jsonify, request

from src.gaslightchess.config import ConfigError, load_settings, save_settings
from src.gaslightchess.engine_client import MoveUnavailable, StockfishClient
from src.gaslightchess.selector import MoveSelector, ScoreBand, ScoredMove

log = logging.getLogger("server")

app = Flask(__name__)
_client_lock = threading.Lock()
_client = None


def get_client():
    """Start the engine on first use."""
    global _client
    with _client_lock:
        if _client is None:
            settings = load_settings()
            _client = StockfishClient(settings.engine_path, settings.engine_options, settings.engine_timeout_margin_s)
        return _client


def _move_info(scored: ScoredMove) -> dict:
    return {
        "move": scored.move,
        "depth": scored.depth,
        "score": scored.score.value,
        "scoreunit": scored.score.unit.value,
    }


def _int_arg(name: str) -> tuple[int | None, str | None]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None, f"Missing required parameter: {name}"
    try:
        val = int(raw)
    except ValueError:
        return None, f"Parameter {name} must be an integer"
    if val <= 0:
        return None, f"Parameter {name} must be positive"
    return val, None


@app.route("/get-best-move", methods=["GET"])
def get_best_move():
    fen = request.args.get("fen")
    if not fen:
        return jsonify({"error": "Missing required parameter: fen"}), 400
    movetime, err = _int_arg("movetime")
    if err:
        return jsonify({"error": err}), 400
    log.info("Received request to get BEST move")
    try:
        settings = load_settings()
        scored = MoveSelector(get_client()).select_best(fen, movetime, settings.mate_boost)
    except (MoveUnavailable, ConfigError) as e:
        log.error("Error computing best move: %s", e)
        return jsonify({"error": "engine_unavailable", "message": str(e)}), 503
    log.info("Lines-[1] | Movetime-[%s] | Depth-[%s] | Move-[%s] | Score-[%s]",
             movetime, scored.depth, scored.move, scored.score.display())
    return jsonify({"moveInfo": _move_info(scored)})


@app.route("/get-gaslight-move", methods=["GET"])
def get_gaslight_move():
    fen = request.args.get("fen")
    if not fen:
        return jsonify({"error": "Missing required parameter: fen"}), 400
    movetime, err = _int_arg("movetime")
    if err:
        return jsonify({"error": err}), 400
    lines, err = _int_arg("lines")
    if err:
        return jsonify({"error": err}), 400
    log.info("Received request to get GASLIGHT move")
    try:
        settings = load_settings()
        band = ScoreBand(settings.max_score_loss, settings.score_floor, settings.mate_boost)
        scored = MoveSelector(get_client()).select_gaslight(fen, movetime, lines, band)
    except (MoveUnavailable, ConfigError) as e:
        log.error("Error computing gaslight move: %s", e)
        return jsonify({"error": "engine_unavailable", "message": str(e)}), 503
    log.info("Lines-[%s] | Movetime-[%s] | Depth-[%s] | Move-[%s] | Score-[%s]",
             lines, movetime, scored.depth, scored.move, scored.score.display())
    return jsonify({"moveInfo": _move_info(scored)})


@app.route("/get-config", methods=["GET"])
def get_config():
    try:
        return jsonify(load_settings().as_dict())
    except ConfigError as e:
        return jsonify({"error": "bad_config", "message": str(e)}), 500


@app.route("/update-config", methods=["POST"])
@app.route("/save-config", methods=["POST"])
def update_config():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"success": False, "message": "Expected a JSON object"}), 400
    try:
        save_settings(payload)
    except ConfigError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    except OSError:
        log.exception("Failed to save configuration")
        return jsonify({"success": False, "message": "Failed to save configuration"}), 500
    return jsonify({"success": True, "message": "Configuration updated! Changes are now active."})


if __name__ == "__main__":
    settings = load_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log.info("Server is running on http://localhost:%d", settings.port)
    app.run(host="127.0.0.1", port=settings.port, threaded=True)
