import unittest

from src.gaslightchess.results import Scoreboard, determine_game_result


class GameResultTests(unittest.TestCase):
    def test_bot_wins(self):
        for status in ("mate", "outoftime", "resign"):
            self.assertEqual(determine_game_result("white", status, "white"), "win")
        self.assertIsNone(determine_game_result("white", "timeout", "white"))

    def test_bot_loses(self):
        self.assertEqual(determine_game_result("black", "mate", "white"), "loss")
        self.assertEqual(determine_game_result("black", "outoftime", "white"), "loss")
        self.assertIsNone(determine_game_result("black", "resign", "white"))

    def test_draws_and_aborts(self):
        self.assertEqual(determine_game_result(None, "draw", "black"), "draw")
        self.assertEqual(determine_game_result(None, "stalemate", "black"), "draw")
        self.assertIsNone(determine_game_result(None, "aborted", "black"))


class ScoreboardTests(unittest.TestCase):
    def test_counts(self):
        sb = Scoreboard()
        for r in ("win", "win", "draw", None, "loss"):
            sb.record(r)
        self.assertEqual((sb.wins, sb.draws, sb.losses), (2, 1, 1))
        self.assertEqual(sb.games, 4)
        self.assertEqual(str(sb), "W=2 D=1 L=1")


if __name__ == "__main__":
    unittest.main()
