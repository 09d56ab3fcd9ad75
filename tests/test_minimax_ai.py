import random
import unittest
from functools import lru_cache

from game_logic import Board, has_won, other_marker
from minimax_ai import MinimaxAI, minimax


@lru_cache(maxsize=None)
def game_value(cells, to_move):
    """Perfect-play outcome for `to_move`: 1 win, 0 draw, -1 loss."""
    if has_won(cells, other_marker(to_move)):
        return -1
    empty = [i for i, v in enumerate(cells) if v == ""]
    if not empty:
        return 0
    best = -1
    for i in empty:
        child = cells[:i] + (to_move,) + cells[i + 1:]
        best = max(best, -game_value(child, other_marker(to_move)))
    return best


def reachable_positions(to_move):
    """Every non-terminal position reachable from the empty board with `to_move` on turn (X starts)."""
    seen = set()
    stack = [(("",) * 9, "X")]
    while stack:
        cells, player = stack.pop()
        if (cells, player) in seen:
            continue
        seen.add((cells, player))
        if has_won(cells, "X") or has_won(cells, "O") or "" not in cells:
            continue
        if player == to_move:
            yield cells
        for i, v in enumerate(cells):
            if v == "":
                child = cells[:i] + (player,) + cells[i + 1:]
                stack.append((child, other_marker(player)))


class TestMinimax(unittest.TestCase):
    def test_terminal_scores_are_depth_biased(self):
        x_won = ["X", "X", "X", "O", "O", "", "", "", ""]
        self.assertEqual(minimax(x_won, "O", 0, "O"), (-1, -100))
        self.assertEqual(minimax(x_won, "O", 3, "O").score, -97)
        o_won = ["O", "O", "O", "X", "X", "", "X", "", ""]
        self.assertEqual(minimax(o_won, "X", 2, "O").score, 98)
        draw = ["X", "O", "X", "X", "O", "O", "O", "X", "X"]
        self.assertEqual(minimax(draw, "O", 5, "O").score, 0)

    def test_empty_board_as_first_player_picks_index_zero(self):
        result = minimax([""] * 9, "X", 0, "X")
        self.assertEqual(result, (0, 0))

    def test_prefers_quickest_win(self):
        # O wins now at 2; the score reflects a win one ply deep
        cells = ["O", "O", "", "X", "X", "", "X", "", ""]
        result = minimax(cells, "O", 0, "O")
        self.assertEqual(result.index, 2)
        self.assertEqual(result.score, 99)

    def test_does_not_mutate_the_board(self):
        board = Board(["X", "", "", "", "O", "", "", "", ""])
        before = board.snapshot()
        minimax(board, "X", 0, "O")
        self.assertEqual(board.cells, before)


class TestHardDifficulty(unittest.TestCase):
    def test_never_gives_away_the_game_value(self):
        ai = MinimaxAI("O")
        for cells in reachable_positions("O"):
            move = ai.get_best_move(list(cells), "hard")
            self.assertEqual(cells[move], "", cells)
            child = cells[:move] + ("O",) + cells[move + 1:]
            self.assertEqual(-game_value(child, "X"), game_value(cells, "O"), cells)

    def test_never_loses_as_first_player(self):
        ai = MinimaxAI("X")
        for cells in list(reachable_positions("X"))[:400]:
            move = ai.get_best_move(list(cells), "hard")
            child = cells[:move] + ("X",) + cells[move + 1:]
            self.assertEqual(-game_value(child, "O"), game_value(cells, "X"), cells)

    def test_terminal_or_full_board_returns_minus_one(self):
        ai = MinimaxAI("O")
        self.assertEqual(ai.get_best_move(["X", "O", "X", "X", "O", "O", "O", "X", "X"], "hard"), -1)
        won = ["X", "X", "X", "O", "O", "", "", "", ""]
        for difficulty in ("easy", "medium", "hard"):
            self.assertEqual(ai.get_best_move(won, difficulty), -1)

    def test_unknown_difficulty(self):
        with self.assertRaises(ValueError):
            MinimaxAI("O").get_best_move([""] * 9, "impossible")

    def test_invalid_marker(self):
        with self.assertRaises(ValueError):
            MinimaxAI("Z")


class TestHeuristicDifficulties(unittest.TestCase):
    def setUp(self):
        self.rng = random.Random(1234)

    def test_medium_blocks_imminent_loss(self):
        ai = MinimaxAI("O", rng=self.rng)
        self.assertEqual(ai.get_best_move(["X", "X", "", "", "O", "", "", "", ""], "medium"), 2)

    def test_win_takes_priority_over_block(self):
        cells = ["X", "X", "", "O", "O", "", "", "", ""]
        for difficulty in ("easy", "medium"):
            ai = MinimaxAI("O", rng=self.rng)
            self.assertEqual(ai.get_best_move(cells, difficulty), 5)

    def test_medium_prefers_center(self):
        ai = MinimaxAI("O", rng=self.rng)
        self.assertEqual(ai.get_best_move(["X", "", "", "", "", "", "", "", ""], "medium"), 4)

    def test_medium_falls_back_to_random_empty_cell(self):
        ai = MinimaxAI("O", rng=self.rng)
        cells = ["X", "", "", "", "X", "", "", "", "O"]
        # the only X pair, (0,4,8), is already blocked by O
        picks = {ai.get_best_move(cells, "medium") for _ in range(200)}
        self.assertTrue(picks)
        self.assertTrue(picks <= {1, 2, 3, 5, 6, 7})
        self.assertGreater(len(picks), 1)

    def test_easy_does_not_block_or_prefer_center(self):
        ai = MinimaxAI("O", rng=self.rng)
        cells = ["X", "X", "", "", "", "", "", "", ""]
        picks = [ai.get_best_move(cells, "easy") for _ in range(300)]
        self.assertTrue(set(picks) <= {2, 3, 4, 5, 6, 7, 8})
        self.assertTrue(any(p != 2 for p in picks))
        self.assertTrue(any(p != 4 for p in picks))
        self.assertEqual(len(set(picks)), 7)


if __name__ == "__main__":
    unittest.main()
