#!/usr/bin/env python3
"""
game_logic.py

Board model and terminal-state evaluation for Tic-Tac-Toe.

Contents:
- WINNING_LINES: the 8 index triples (3 rows, 3 columns, 2 diagonals).
- Board: the 3x3 cell array and its single mutation primitive.
- has_won / is_draw / winning_line / find_two_in_a_row_gap: stateless
  evaluators shared by the session and the AI.
"""

from __future__ import annotations
from typing import Iterable, List, Optional, Sequence, Tuple


EMPTY = ""
X = "X"
O = "O"
MARKERS = (X, O)

# Enumeration order matters: find_two_in_a_row_gap returns the first match.
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)


def other_marker(marker: str) -> str:
    if marker not in MARKERS:
        raise ValueError(f"unknown marker: {marker!r}")
    return O if marker == X else X


# -------------------------
# Board: low-level utilities
# -------------------------
class Board:
    def __init__(self, cells: Optional[Iterable[str]] = None):
        # Use 'X', 'O', or '' for empty
        self.cells: List[str] = list(cells) if cells is not None else [EMPTY] * 9
        if len(self.cells) != 9:
            raise ValueError("a board has exactly 9 cells")

    def place(self, index: int, marker: str) -> bool:
        """Place marker at index (0-8). Returns False if out of range or occupied."""
        if marker not in MARKERS:
            raise ValueError(f"unknown marker: {marker!r}")
        if not isinstance(index, int) or isinstance(index, bool):
            return False
        if 0 <= index < 9 and self.cells[index] == EMPTY:
            self.cells[index] = marker
            return True
        return False

    def empty_indices(self) -> List[int]:
        return [i for i, v in enumerate(self.cells) if v == EMPTY]

    def is_full(self) -> bool:
        return EMPTY not in self.cells

    def is_blank(self) -> bool:
        return all(v == EMPTY for v in self.cells)

    def reset(self) -> None:
        self.cells = [EMPTY] * 9

    def snapshot(self) -> List[str]:
        return self.cells[:]

    def restore(self, cells: Sequence[str]) -> None:
        if len(cells) != 9:
            raise ValueError("a board has exactly 9 cells")
        if any(v not in (EMPTY, X, O) for v in cells):
            raise ValueError(f"invalid cell values: {list(cells)!r}")
        self.cells = list(cells)


# -------------------------
# Win / draw evaluation
# -------------------------
def _cells(board) -> Sequence[str]:
    return board.cells if isinstance(board, Board) else board


def has_won(board, marker: str) -> bool:
    cells = _cells(board)
    return any(cells[a] == cells[b] == cells[c] == marker for a, b, c in WINNING_LINES)


def winning_line(board, marker: str) -> Optional[Tuple[int, int, int]]:
    """The first line completed by marker, or None."""
    cells = _cells(board)
    for line in WINNING_LINES:
        a, b, c = line
        if cells[a] == cells[b] == cells[c] == marker:
            return line
    return None


def is_draw(board) -> bool:
    cells = _cells(board)
    if EMPTY in cells:
        return False
    return not (has_won(cells, X) or has_won(cells, O))


def find_two_in_a_row_gap(board, marker: str) -> Optional[int]:
    """
    Index of the empty cell in the first line holding two of marker and one
    empty cell, or None when no such line exists.
    """
    cells = _cells(board)
    for line in WINNING_LINES:
        values = [cells[i] for i in line]
        if values.count(marker) == 2 and values.count(EMPTY) == 1:
            return line[values.index(EMPTY)]
    return None
