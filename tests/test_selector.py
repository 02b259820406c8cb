import random
import unittest
from unittest.mock import MagicMock

from src.gaslightchess.engine_client import AnalysisLine, EngineUnavailable
from src.gaslightchess.scoring import Score
from src.gaslightchess.selector import MoveSelector, NoCandidateMoves, ScoreBand, pick_gaslight_line

FEN = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"


def _cp(move, cp, depth=12):
    return AnalysisLine(move=move, depth=depth, score=Score.cp(cp))


def _client(lines):
    client = MagicMock()
    client.query.return_value = lines
    return client


class PickGaslightLineTests(unittest.TestCase):
    def test_picks_worst_line_inside_band(self):
        lines = [_cp("e7e5", 300), _cp("c7c5", 150), _cp("g8f6", 50), _cp("a7a6", -50)]
        chosen = pick_gaslight_line(lines, ScoreBand(max_score_loss=200, score_floor=-700))
        self.assertEqual(chosen.move, "c7c5")
        self.assertEqual(chosen.normalized, 150)

    def test_shallower_lines_are_discarded(self):
        lines = [_cp("e7e5", 300), _cp("c7c5", 150), _cp("d7d5", 120, depth=11)]
        chosen = pick_gaslight_line(lines, ScoreBand(max_score_loss=200, score_floor=-700))
        self.assertEqual(chosen.move, "c7c5")
        self.assertEqual(chosen.depth, 12)

    def test_returns_raw_mate_score_not_normalized(self):
        lines = [AnalysisLine("d8h4", 20, Score.mate(3)), _cp("e7e5", 500, depth=20)]
        chosen = pick_gaslight_line(lines, ScoreBand(max_score_loss=200, score_floor=-700))
        self.assertEqual(chosen.move, "d8h4")
        self.assertEqual(chosen.score, Score.mate(3))
        self.assertEqual(chosen.normalized, 9_999_997)

    def test_falls_back_to_best_when_floor_excludes_everything(self):
        lines = [_cp("e7e5", -800), _cp("c7c5", -900)]
        chosen = pick_gaslight_line(lines, ScoreBand(max_score_loss=200, score_floor=-700))
        self.assertEqual(chosen.move, "e7e5")

    def test_zero_loss_plays_best(self):
        lines = [_cp("e7e5", 40), _cp("c7c5", 39)]
        chosen = pick_gaslight_line(lines, ScoreBand(max_score_loss=0, score_floor=-700))
        self.assertEqual(chosen.move, "e7e5")

    def test_equal_scores_break_by_engine_rank_not_move_name(self):
        lines = [_cp("e7e5", 300), _cp("a7a6", 100), _cp("h7h6", 100)]
        chosen = pick_gaslight_line(lines, ScoreBand(max_score_loss=250, score_floor=-700))
        # h7h6 is the engine's lowest-ranked of the two equal lines
        self.assertEqual(chosen.move, "h7h6")

    def test_duplicate_moves_keep_better_ranked_entry(self):
        lines = [_cp("e7e5", 300), _cp("c7c5", 150), _cp("c7c5", -400)]
        chosen = pick_gaslight_line(lines, ScoreBand(max_score_loss=500, score_floor=-700))
        self.assertEqual(chosen.move, "c7c5")
        self.assertEqual(chosen.score, Score.cp(150))

    def test_empty_lines_raise(self):
        with self.assertRaises(NoCandidateMoves):
            pick_gaslight_line([], ScoreBand(max_score_loss=200, score_floor=-700))

    def test_band_property_holds_for_random_candidate_sets(self):
        rng = random.Random(7)
        squares = "abcdefgh"
        for _ in range(300):
            n = rng.randint(1, 20)
            scores = sorted((rng.randint(-1500, 1500) for _ in range(n)), reverse=True)
            lines = [_cp(f"{squares[i % 8]}2{squares[i // 8 % 8]}{3 + i // 8}", s) for i, s in enumerate(scores)]
            best = scores[0]
            loss = rng.randint(0, 600)
            floor = rng.randint(-2000, best - 1)
            chosen = pick_gaslight_line(lines, ScoreBand(max_score_loss=loss, score_floor=floor))
            lower = max(best - loss, floor)
            if loss == 0:
                self.assertEqual(chosen.normalized, best)
            else:
                self.assertGreater(chosen.normalized, lower)
            self.assertLessEqual(chosen.normalized, best)

    def test_band_rejects_negative_loss(self):
        with self.assertRaises(ValueError):
            ScoreBand(max_score_loss=-1, score_floor=0)


class MoveSelectorTests(unittest.TestCase):
    def test_select_best_prefers_mate_for_side_to_move(self):
        client = _client([AnalysisLine("d8h4", 18, Score.mate(-1)), AnalysisLine("f1c4", 18, Score.mate(3))])
        best = MoveSelector(client).select_best(FEN, 500, mate_boost=10_000_000)
        self.assertEqual(best.move, "f1c4")
        self.assertEqual(best.normalized, 9_999_997)
        client.query.assert_called_once_with(FEN, 500, 1)

    def test_select_best_empty_raises(self):
        with self.assertRaises(NoCandidateMoves):
            MoveSelector(_client([])).select_best(FEN, 500)

    def test_select_gaslight_queries_requested_lines(self):
        client = _client([_cp("e7e5", 300), _cp("c7c5", 150), _cp("g8f6", 50), _cp("a7a6", -50)])
        chosen = MoveSelector(client).select_gaslight(FEN, 800, 20, ScoreBand(200, -700))
        self.assertEqual(chosen.move, "c7c5")
        client.query.assert_called_once_with(FEN, 800, 20)

    def test_engine_failure_propagates_as_engine_unavailable(self):
        client = MagicMock()
        client.query.side_effect = EngineUnavailable("engine died")
        with self.assertRaises(EngineUnavailable):
            MoveSelector(client).select_gaslight(FEN, 800, 20, ScoreBand(200, -700))


if __name__ == "__main__":
    unittest.main()
