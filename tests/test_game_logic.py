import unittest

from game_logic import (
    WINNING_LINES,
    Board,
    find_two_in_a_row_gap,
    has_won,
    is_draw,
    other_marker,
    winning_line,
)

DRAW_BOARD = ["X", "O", "X", "X", "O", "O", "O", "X", "X"]


def relabel(cells):
    swap = {"X": "O", "O": "X", "": ""}
    return [swap[c] for c in cells]


class TestBoard(unittest.TestCase):
    def test_place_only_succeeds_once_per_cell(self):
        board = Board()
        self.assertTrue(board.place(4, "X"))
        self.assertFalse(board.place(4, "O"))
        self.assertEqual(board.cells[4], "X")

    def test_place_rejects_out_of_range_indices(self):
        board = Board()
        for index in (-1, 9, 42):
            self.assertFalse(board.place(index, "X"))
        self.assertFalse(board.place(True, "X"))
        self.assertTrue(board.is_blank())

    def test_empty_indices_are_ascending_and_recomputed(self):
        board = Board()
        first = board.empty_indices()
        self.assertEqual(first, list(range(9)))
        board.place(0, "X")
        board.place(5, "O")
        self.assertEqual(board.empty_indices(), [1, 2, 3, 4, 6, 7, 8])
        self.assertEqual(first, list(range(9)))

    def test_reset_clears_all_cells(self):
        board = Board(DRAW_BOARD)
        board.reset()
        self.assertEqual(board.cells, [""] * 9)

    def test_snapshot_is_independent_copy(self):
        board = Board()
        snap = board.snapshot()
        board.place(0, "X")
        self.assertEqual(snap[0], "")

    def test_place_rejects_unknown_markers(self):
        board = Board()
        for marker in ("Z", "", "x"):
            with self.assertRaises(ValueError):
                board.place(0, marker)
        self.assertTrue(board.is_blank())

    def test_restore_validates_cells(self):
        board = Board()
        board.restore(DRAW_BOARD)
        self.assertEqual(board.cells, DRAW_BOARD)
        with self.assertRaises(ValueError):
            board.restore(["X"] * 8)
        with self.assertRaises(ValueError):
            board.restore(["Z"] + [""] * 8)


class TestEvaluator(unittest.TestCase):
    def test_every_line_wins(self):
        for line in WINNING_LINES:
            cells = [""] * 9
            for i in line:
                cells[i] = "X"
            self.assertTrue(has_won(cells, "X"), line)
            self.assertFalse(has_won(cells, "O"), line)
            self.assertEqual(winning_line(cells, "X"), line)

    def test_has_won_symmetric_under_relabeling(self):
        boards = [
            ["X", "X", "X", "O", "O", "", "", "", ""],
            ["O", "X", "", "O", "X", "", "O", "", "X"],
            ["X", "O", "", "", "X", "O", "", "", "X"],
            DRAW_BOARD,
            [""] * 9,
        ]
        for cells in boards:
            for marker in ("X", "O"):
                self.assertEqual(has_won(cells, marker),
                                 has_won(relabel(cells), other_marker(marker)))

    def test_is_draw(self):
        self.assertTrue(is_draw(DRAW_BOARD))
        self.assertTrue(is_draw(Board(DRAW_BOARD)))
        self.assertFalse(is_draw(["X", "X", "X", "O", "O", "X", "O", "X", "O"]))
        self.assertFalse(is_draw(DRAW_BOARD[:8] + [""]))

    def test_two_in_a_row_gap(self):
        self.assertEqual(find_two_in_a_row_gap(["X", "X", "", "", "", "", "", "", ""], "X"), 2)
        self.assertEqual(find_two_in_a_row_gap(["X", "", "", "", "", "", "X", "", ""], "X"), 3)
        self.assertIsNone(find_two_in_a_row_gap(["X", "X", "O", "", "", "", "", "", ""], "X"))
        self.assertIsNone(find_two_in_a_row_gap([""] * 9, "O"))

    def test_two_in_a_row_gap_follows_line_order(self):
        # row (0,1,2) and diagonal (2,4,6) are both open; the row comes first
        cells = ["O", "O", "", "", "O", "", "", "", ""]
        self.assertEqual(find_two_in_a_row_gap(cells, "O"), 2)
        # column (1,4,7) precedes diagonal (0,4,8)
        cells = ["", "O", "", "", "O", "", "", "", ""]
        self.assertEqual(find_two_in_a_row_gap(cells, "O"), 7)

    def test_other_marker(self):
        self.assertEqual(other_marker("X"), "O")
        self.assertEqual(other_marker("O"), "X")
        with self.assertRaises(ValueError):
            other_marker("")


if __name__ == "__main__":
    unittest.main()
