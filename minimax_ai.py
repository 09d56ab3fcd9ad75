"""
minimax_ai.py

AI engine for Tic-Tac-Toe:
- minimax: exhaustive adversarial search, depth-biased scores.
- MinimaxAI: difficulty policy (easy / medium / hard) on top of it.
"""

from __future__ import annotations
import logging
import random
from functools import lru_cache
from typing import NamedTuple, Optional, Sequence, Tuple

from game_logic import (
    Board,
    EMPTY,
    MARKERS,
    O,
    find_two_in_a_row_gap,
    has_won,
    other_marker,
)

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")
CENTER = 4
WIN_SCORE = 100
DRAW_SCORE = 0


class SearchResult(NamedTuple):
    index: int   # -1 at terminal nodes
    score: int


@lru_cache(maxsize=None)
def _search(cells: Tuple[str, ...], player: str, ai_marker: str, depth: int) -> SearchResult:
    human_marker = other_marker(ai_marker)
    if has_won(cells, human_marker):
        return SearchResult(-1, -WIN_SCORE + depth)
    if has_won(cells, ai_marker):
        return SearchResult(-1, WIN_SCORE - depth)
    empty = [i for i, v in enumerate(cells) if v == EMPTY]
    if not empty:
        return SearchResult(-1, DRAW_SCORE)

    maximizing = player == ai_marker
    best: Optional[SearchResult] = None
    for index in empty:
        child = list(cells)
        child[index] = player
        score = _search(tuple(child), other_marker(player), ai_marker, depth + 1).score
        # strict comparison: first candidate in index order wins ties
        if best is None or (score > best.score if maximizing else score < best.score):
            best = SearchResult(index, score)
    return best


def minimax(board, player: str, depth: int = 0, ai_marker: str = O) -> SearchResult:
    """
    Best move and score for `player` to move on `board`.

    Scores are from the AI's point of view: +100 - depth for an AI win,
    -100 + depth for a human win, 0 for a draw. The AI maximizes, its
    opponent minimizes. The caller's board is never mutated.
    """
    cells = board.cells if isinstance(board, Board) else board
    return _search(tuple(cells), player, ai_marker, depth)


# -------------------------
# Minimax AI implementation
# -------------------------
class MinimaxAI:
    def __init__(self, ai_player: str = O, human_player: Optional[str] = None,
                 rng: Optional[random.Random] = None):
        if ai_player not in MARKERS:
            raise ValueError("ai_player must be 'X' or 'O'")
        self.ai_player = ai_player
        self.human_player = human_player if human_player in MARKERS else other_marker(ai_player)
        if self.human_player == self.ai_player:
            raise ValueError("ai_player and human_player must differ")
        self.rng = rng or random.Random()

    def get_best_move(self, board, difficulty: str = "hard") -> int:
        """
        difficulty: 'easy'   -> immediate win, else random
                    'medium' -> immediate win, block, center, else random
                    'hard'   -> full minimax (never loses)
        Returns -1 when the board is already decided or full.
        """
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"unknown difficulty: {difficulty!r}")
        cells: Sequence[str] = board.cells if isinstance(board, Board) else board
        moves = [i for i, v in enumerate(cells) if v == EMPTY]
        if not moves or has_won(cells, self.ai_player) or has_won(cells, self.human_player):
            return -1

        if difficulty == "hard":
            result = minimax(cells, self.ai_player, 0, self.ai_player)
            logger.debug("hard: %s plays %d (score %d)", self.ai_player, result.index, result.score)
            return result.index

        winning = find_two_in_a_row_gap(cells, self.ai_player)
        if winning is not None:
            return winning

        if difficulty == "medium":
            blocking = find_two_in_a_row_gap(cells, self.human_player)
            if blocking is not None:
                return blocking
            if cells[CENTER] == EMPTY:
                return CENTER

        return self.rng.choice(moves)
