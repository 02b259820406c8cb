import unittest

from src.gaslightchess.move_validator import is_legal_move, split_uci

START_BOARD = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b"
PROMOTION = "8/P7/8/8/8/8/8/k6K w - - 0 1"


class MoveValidatorTests(unittest.TestCase):
    def test_board_only_fen_assumes_white_to_move(self):
        self.assertTrue(is_legal_move(START_BOARD, "e2", "e4"))
        self.assertFalse(is_legal_move(START_BOARD, "e7", "e5"))

    def test_side_to_move_respected(self):
        self.assertTrue(is_legal_move(AFTER_E4, "e7", "e5"))
        self.assertFalse(is_legal_move(AFTER_E4, "d2", "d4"))

    def test_illegal_and_garbage_input(self):
        self.assertFalse(is_legal_move(START_BOARD, "e2", "e5"))
        self.assertFalse(is_legal_move(START_BOARD, "z9", "e4"))
        self.assertFalse(is_legal_move("not/a/fen", "e2", "e4"))

    def test_promotion_squares(self):
        self.assertTrue(is_legal_move(PROMOTION, "a7", "a8"))
        self.assertFalse(is_legal_move(PROMOTION, "a7", "b8"))

    def test_split_uci(self):
        self.assertEqual(split_uci("e2e4"), ("e2", "e4"))
        self.assertEqual(split_uci("A7A8Q"), ("a7", "a8"))
        with self.assertRaises(ValueError):
            split_uci("castle")


if __name__ == "__main__":
    unittest.main()
