import argparse
import json
import logging

from src.gaslightchess.bot import GaslightBot
from src.gaslightchess.config import load_settings
from src.gaslightchess.engine_client import EngineUnavailable, StockfishClient
from src.gaslightchess.engine_opponent import EngineOpponent
from src.gaslightchess.match import LocalMatch, MatchConfig
from src.gaslightchess.random_opponent import RandomOpponent


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Play one local game: gaslight bot vs a local opponent.")
    ap.add_argument("--opponent", choices=["engine", "random"], default="engine", help="Opponent type")
    ap.add_argument("--depth", type=int, default=6, help="Opponent engine search depth (ignored if --movetime provided)")
    ap.add_argument("--movetime", type=int, default=None, help="Opponent engine movetime in ms (overrides depth if set)")
    ap.add_argument("--skill", type=int, default=None, help="Opponent Stockfish 'Skill Level' (0-20)")
    ap.add_argument("--engine-path", default=None, help="Stockfish binary (defaults to settings.yml / STOCKFISH_PATH / PATH)")
    ap.add_argument("--bot-color", choices=["white", "black"], default="white", help="Which side the bot plays")
    ap.add_argument("--initial-time", type=float, default=60.0, help="Starting clock per side in seconds")
    ap.add_argument("--increment", type=float, default=0.0, help="Increment per move in seconds")
    ap.add_argument("--max-plies", type=int, default=300)
    ap.add_argument("--pgn-out", default=None, help="Optional path to write PGN at end")
    ap.add_argument("--log-level", default=None, help="Python logging level (e.g., INFO, DEBUG)")
    args = ap.parse_args()

    settings = load_settings()
    log_level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log = logging.getLogger("play_one")

    engine_path = args.engine_path or settings.engine_path
    try:
        client = StockfishClient(engine_path, settings.engine_options, settings.engine_timeout_margin_s)
        if args.opponent == "random":
            opp = RandomOpponent()
        else:
            opp = EngineOpponent(depth=args.depth, movetime_ms=args.movetime, engine_path=engine_path, skill_level=args.skill)
    except EngineUnavailable as e:
        log.error("%s", e)
        raise SystemExit(2)

    bot = GaslightBot(client)
    match = LocalMatch(bot, opp, MatchConfig(
        bot_color=args.bot_color,
        initial_time_s=args.initial_time,
        increment_s=args.increment,
        max_plies=args.max_plies,
    ))
    log.info("Starting game: bot=%s vs %s initial=%.0fs+%.0fs", args.bot_color, getattr(opp, "name", args.opponent),
             args.initial_time, args.increment)
    try:
        result = match.play()
    finally:
        opp.close()
        client.close()

    summary = match.summary()
    pgn = summary.pop("pgn")
    print("Result:", result)
    print("Termination:", match.termination_reason)
    print("Summary:", json.dumps(summary))
    print("Bot metrics:", json.dumps(bot.last_game_metrics))
    print("PGN:\n", pgn)

    if args.pgn_out:
        with open(args.pgn_out, "w", encoding="utf-8") as f:
            f.write(pgn)
        log.info("Wrote PGN to %s", args.pgn_out)
