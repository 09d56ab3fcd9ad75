"""
game_session.py

Turn controller for one Tic-Tac-Toe game.

GameSession owns the board, whose turn it is, the mode and difficulty, and
the in-progress/won/drawn status. Persistence and presentation are injected
collaborators; the session never touches a display or a storage medium
directly.
"""

from __future__ import annotations
import logging
import random
import time
from typing import Any, Callable, Dict, Optional, Tuple

from game_logic import (
    Board,
    EMPTY,
    MARKERS,
    O,
    X,
    has_won,
    is_draw,
    other_marker,
    winning_line,
)
from minimax_ai import DIFFICULTIES, MinimaxAI
from storage import STATE_KEY, LocalStore, StatsManager

logger = logging.getLogger(__name__)

MODES = ("pvai", "pvp")
STARTING_MARKER = X
DEFAULT_AI_MARKER = O

IN_PROGRESS = "in-progress"
WON = "won"
DRAWN = "drawn"
# a saved game is on offer; no moves until it is resumed or a new game starts
AWAITING_RESUME = "awaiting-resume"


class Presenter:
    """Callbacks the session invokes on state changes. All no-ops here."""

    def render(self, cells):
        pass

    def announce(self, message, active_marker):
        pass

    def show_outcome(self, message, winning_marker, line):
        pass

    def set_interactivity(self, enabled):
        pass

    def reflect_mode_and_difficulty(self, mode, difficulty):
        pass

    def prompt_resume(self, saved_state):
        pass


class AITurnTimer:
    """
    At most one pending AI move, due `delay` seconds after scheduling.
    Nothing fires by itself: the owner polls with pop_due().
    """

    def __init__(self, delay: float, clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self.clock = clock
        self._pending: Optional[Tuple[float, int]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, token: int) -> None:
        self._pending = (self.clock() + self.delay, token)

    def cancel(self) -> None:
        self._pending = None

    def seconds_remaining(self) -> float:
        if self._pending is None:
            return 0.0
        return max(0.0, self._pending[0] - self.clock())

    def pop_due(self, force: bool = False) -> Optional[int]:
        if self._pending is None:
            return None
        due, token = self._pending
        if not force and self.clock() < due:
            return None
        self._pending = None
        return token


class GameSession:
    def __init__(
        self,
        store: LocalStore,
        stats: Optional[StatsManager] = None,
        presenter: Optional[Presenter] = None,
        ai_delay: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        mode: str = "pvai",
        difficulty: str = "medium",
    ):
        _check_settings(mode, difficulty)
        self.store = store
        self.stats = stats or StatsManager(store)
        self.presenter = presenter or Presenter()
        self.rng = rng or random.Random()
        self.timer = AITurnTimer(ai_delay, clock)

        self.board = Board()
        self.mode = mode
        self.difficulty = difficulty
        self.current_marker = STARTING_MARKER
        self.ai = MinimaxAI(DEFAULT_AI_MARKER, rng=self.rng)
        self.status = IN_PROGRESS
        self.winner: Optional[str] = None
        self.winning_line: Optional[Tuple[int, int, int]] = None
        self._generation = 0

    # --- queries ---
    @property
    def active(self) -> bool:
        return self.status == IN_PROGRESS

    @property
    def ai_marker(self) -> str:
        return self.ai.ai_player

    @property
    def is_ai_turn(self) -> bool:
        return self.mode == "pvai" and self.active and self.current_marker == self.ai_marker

    def current_settings(self) -> Dict[str, str]:
        return {
            "mode": self.mode,
            "difficulty": self.difficulty,
            "current_marker": self.current_marker,
        }

    def saved_state(self) -> Dict[str, Any]:
        return {
            "board": self.board.snapshot(),
            "currentPlayer": self.current_marker,
            "mode": self.mode,
            "difficulty": self.difficulty,
            "aiMarker": self.ai_marker,
        }

    # --- lifecycle ---
    def load(self) -> Optional[Dict[str, Any]]:
        """
        Startup: load statistics, then either offer the saved game for
        resumption (returned) or start a fresh game (None returned).
        """
        self.stats.load()
        saved = self.store.load(STATE_KEY, None)
        if _is_resumable(saved):
            self.timer.cancel()
            self.status = AWAITING_RESUME
            self.presenter.set_interactivity(False)
            self.presenter.prompt_resume(saved)
            return saved
        self.start_new_game()
        return None

    def start_new_game(self, mode: Optional[str] = None, difficulty: Optional[str] = None,
                       fresh: bool = True, ai_first: Optional[bool] = None) -> None:
        mode = mode or self.mode
        difficulty = difficulty or self.difficulty
        _check_settings(mode, difficulty)

        # a kept board that is already decided cannot be played on
        decided = has_won(self.board, X) or has_won(self.board, O) or self.board.is_full()
        if fresh or decided:
            self.store.remove(STATE_KEY)
            self.board.reset()
        ai_marker = self.ai_marker
        if ai_first is not None:
            ai_marker = STARTING_MARKER if ai_first else other_marker(STARTING_MARKER)

        self._activate(mode, difficulty, STARTING_MARKER, ai_marker)
        logger.info("New %s game (difficulty=%s, ai=%s)", mode, difficulty, ai_marker)
        self._kick_off()

    def resume_game(self, saved: Any) -> bool:
        """Restore a saved game. Malformed data starts a fresh game instead."""
        try:
            cells, marker, mode, difficulty, ai_marker = _parse_saved(saved)
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("Cannot resume saved game (%s); starting a new one", e)
            self.start_new_game()
            return False

        self.board.restore(cells)
        if has_won(self.board, X) or has_won(self.board, O) or self.board.is_full():
            logger.warning("Saved game is already finished; starting a new one")
            self.start_new_game(mode, difficulty)
            return False

        self._activate(mode, difficulty, marker, ai_marker)
        logger.info("Resumed %s game (difficulty=%s, %s to move)", mode, difficulty, marker)
        self._kick_off()
        return True

    def _activate(self, mode, difficulty, marker, ai_marker) -> None:
        self.timer.cancel()
        self._generation += 1
        self.mode = mode
        self.difficulty = difficulty
        self.current_marker = marker
        if ai_marker != self.ai_marker:
            self.ai = MinimaxAI(ai_marker, rng=self.rng)
        self.status = IN_PROGRESS
        self.winner = None
        self.winning_line = None

    def _kick_off(self) -> None:
        self.presenter.render(self.board.snapshot())
        self.presenter.announce(f"Player {self.current_marker}'s turn", self.current_marker)
        self.presenter.reflect_mode_and_difficulty(self.mode, self.difficulty)
        self.presenter.set_interactivity(True)
        if self.is_ai_turn:
            self._schedule_ai_move()

    # --- moves ---
    def apply_move(self, index: int) -> bool:
        """Place the current marker at index. Invalid or stale moves return False."""
        if not self.active:
            return False
        mover = self.current_marker
        if not self.board.place(index, mover):
            logger.debug("Ignoring move %r by %s", index, mover)
            return False

        logger.debug("%s plays %d", mover, index)
        self.presenter.render(self.board.snapshot())
        if not self._check_result(mover):
            self._switch_marker()
        return True

    def _check_result(self, mover: str) -> bool:
        if has_won(self.board, mover):
            self.status = WON
            self.winner = mover
            self.winning_line = winning_line(self.board, mover)
            self._finish(f"Player {mover} WINS!", mover)
            return True
        if is_draw(self.board):
            self.status = DRAWN
            self._finish("It's a DRAW!", None)
            return True
        return False

    def _finish(self, message: str, winner: Optional[str]) -> None:
        self.timer.cancel()
        logger.info("Game over (%s): %s", self.mode, message)
        self.stats.record_game_result(winner, self.mode, self.difficulty,
                                      human_marker=other_marker(self.ai_marker))
        self.presenter.show_outcome(message, winner, self.winning_line)
        self.presenter.set_interactivity(False)
        self.store.remove(STATE_KEY)

    def _switch_marker(self) -> None:
        self.current_marker = other_marker(self.current_marker)
        self.presenter.announce(f"Player {self.current_marker}'s turn", self.current_marker)
        self.store.save(STATE_KEY, self.saved_state())
        if self.is_ai_turn:
            self._schedule_ai_move()
        elif self.mode == "pvai":
            self.presenter.set_interactivity(True)

    # --- AI turn ---
    def _schedule_ai_move(self) -> None:
        self.presenter.set_interactivity(False)
        if self.timer.delay <= 0:
            self._perform_ai_move(self._generation)
        else:
            self.timer.schedule(self._generation)

    def run_pending(self, force: bool = False) -> bool:
        """Apply the pending AI move if it is due (or if forced)."""
        token = self.timer.pop_due(force)
        if token is None:
            return False
        return self._perform_ai_move(token)

    def _perform_ai_move(self, token: int) -> bool:
        if token != self._generation or not self.is_ai_turn:
            logger.debug("Discarding stale AI move")
            return False
        index = self.ai.get_best_move(self.board, self.difficulty)
        if index == -1:
            return False
        return self.apply_move(index)


def _check_settings(mode: str, difficulty: str) -> None:
    if mode not in MODES:
        raise ValueError(f"mode must be one of {MODES}, got {mode!r}")
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"difficulty must be one of {DIFFICULTIES}, got {difficulty!r}")


def _is_resumable(saved: Any) -> bool:
    if not isinstance(saved, dict):
        return False
    board = saved.get("board")
    return isinstance(board, list) and any(cell != EMPTY for cell in board)


def _parse_saved(saved: Any):
    if not isinstance(saved, dict):
        raise TypeError(f"saved game must be an object, got {type(saved).__name__}")
    cells = saved["board"]
    if not isinstance(cells, list) or len(cells) != 9 or any(c not in (EMPTY, X, O) for c in cells):
        raise ValueError(f"invalid board: {cells!r}")
    marker = saved["currentPlayer"]
    if marker not in MARKERS:
        raise ValueError(f"invalid current player: {marker!r}")
    mode = saved["mode"]
    difficulty = saved["difficulty"]
    _check_settings(mode, difficulty)
    ai_marker = saved.get("aiMarker", DEFAULT_AI_MARKER)
    if ai_marker not in MARKERS:
        raise ValueError(f"invalid AI marker: {ai_marker!r}")
    return cells, marker, mode, difficulty, ai_marker
