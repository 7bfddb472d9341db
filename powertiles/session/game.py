"""Game session: turns, score, undo history and powerups."""

import logging
from enum import Enum
from typing import NamedTuple

from numpy import asarray, int64, ndarray
from numpy.random import default_rng

from powertiles.config import GameConfig
from powertiles.core.gameboard import apply_move, empty_board, fill_cells, has_won, is_done
from powertiles.core.gamemove import Direction, legal_actions
from powertiles.session.history import SessionState, UndoHistory
from powertiles.session.powerups import (
    NO_MODE,
    ActiveMode,
    Cell,
    DeleteMode,
    NoMode,
    PowerupBudget,
    PowerupKind,
    PowerupMode,
    SwapMode,
)
from powertiles.storage import KeyValueStore, SafeStore

# ##>: Settings key of the best score.
BEST_SCORE_KEY = '2048-best-score'

_logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    """Coarse state of a session."""

    IDLE = 'idle'
    ACTIVE = 'active'
    WON = 'won'
    OVER = 'over'


class MoveResult(NamedTuple):
    """
    Report of a directional move.

    Attributes
    ----------
    changed : bool
        False when the move was rejected or had no effect; nothing else changed then.
    score : int
        Score gained by the move.
    unlocked : tuple[PowerupKind, ...]
        Powerups granted by the move.
    won : bool
        True only on the move that first reached the target.
    over : bool
        Whether the board is finished after the move.
    """

    changed: bool
    score: int = 0
    unlocked: tuple[PowerupKind, ...] = ()
    won: bool = False
    over: bool = False


class GameSession:
    """
    Session of the tile-merging game.

    The session exclusively owns the board, the scores, the undo history and the powerup
    counters. Every operation runs to completion; inapplicable requests are no-ops reported
    through the return value.

    Parameters
    ----------
    config : GameConfig, optional
        Rules of the session (default is ``GameConfig()``).
    store : KeyValueStore, optional
        Settings backend used to load and save the best score.
    seed : int, optional
        Seed of the random generator spawning tiles.
    """

    def __init__(self, config: GameConfig | None = None, store: KeyValueStore | None = None, seed: int | None = None):
        self.config = config if config is not None else GameConfig()
        self._store = SafeStore.wrap(store)
        self._rng = default_rng(seed)

        self._board: ndarray = empty_board(self.config.size)
        self._score = 0
        self._best_score = self._load_best_score()
        self._started = False
        self._won = False
        self._over = False
        self._mode: ActiveMode = NO_MODE
        self._history = UndoHistory(self.config.history_size)
        self.budget = PowerupBudget.from_config(self.config)

        # ##: Reentrancy guard for directional input.
        self.is_processing_move = False

    # ##: State accessors.

    @property
    def board(self) -> ndarray:
        """Read-only view of the board."""
        view = self._board.view()
        view.flags.writeable = False
        return view

    @property
    def score(self) -> int:
        return self._score

    @property
    def best_score(self) -> int:
        return self._best_score

    @property
    def won(self) -> bool:
        return self._won

    @property
    def over(self) -> bool:
        return self._over

    @property
    def status(self) -> SessionStatus:
        """
        Get the coarse state of the session.

        Returns
        -------
        SessionStatus
            ``OVER`` takes precedence over ``WON``; ``IDLE`` until the first new game.
        """
        if not self._started:
            return SessionStatus.IDLE
        if self._over:
            return SessionStatus.OVER
        if self._won:
            return SessionStatus.WON
        return SessionStatus.ACTIVE

    @property
    def mode(self) -> ActiveMode:
        return self._mode

    @property
    def powerup_mode(self) -> PowerupMode:
        return self._mode.kind

    @property
    def selection(self) -> tuple[Cell, ...]:
        return self._mode.selection

    @property
    def history_size(self) -> int:
        return len(self._history)

    @property
    def legal_moves(self) -> list[Direction]:
        return legal_actions(self._board)

    def remaining(self, kind: PowerupKind | str) -> int:
        """Uses left of a powerup."""
        return self.budget[PowerupKind(kind)]

    # ##: Session lifecycle.

    def new_game(self) -> ndarray:
        """
        Start a new session: empty board with two random tiles.

        Score, flags, powerup mode, undo history and powerup counters are reset. The best
        score is kept.

        Returns
        -------
        ndarray
            The new board.
        """
        board = fill_cells(empty_board(self.config.size), number_tile=self.config.initial_tiles, rng=self._rng)
        self._start(board, score=0)
        _logger.info('New game started (best score %d)', self._best_score)
        return self.board

    def load(self, board: ndarray, score: int = 0) -> ndarray:
        """
        Start a new session from an explicit position.

        Parameters
        ----------
        board : ndarray
            Square board matching the configured size; 0 marks an empty cell.
        score : int, optional
            Cumulative score of the position (default is 0). It is not a score the player
            reached, so the best score is left unchanged.

        Raises
        ------
        ValueError
            If the board shape does not match the configuration or a cell is neither 0 nor a
            power of two of at least 2.
        """
        raw = asarray(board)
        cells = raw.astype(int64)
        tiles = cells[cells != 0]
        if (
            cells.shape != (self.config.size, self.config.size)
            or (raw != cells).any()
            or (tiles < 2).any()
            or (tiles & (tiles - 1)).any()
        ):
            raise ValueError(f'Expected a {self.config.size}x{self.config.size} board of 0 and powers of two')
        self._start(cells.copy(), score=int(score))
        self._won = has_won(self._board, self.config.target)
        self._over = is_done(self._board)
        return self.board

    def _start(self, board: ndarray, score: int) -> None:
        self._board = board
        self._score = score
        self._started = True
        self._won = False
        self._over = False
        self._mode = NO_MODE
        self._history.clear()
        self.budget = PowerupBudget.from_config(self.config)
        self.is_processing_move = False

    # ##: Turns.

    def move(self, direction: Direction | str | int, force: bool = False) -> MoveResult:
        """
        Play one turn in the given direction.

        Parameters
        ----------
        direction : Direction | str | int
            Direction of the move.
        force : bool, optional
            Play even if the game is over (default is False).

        Returns
        -------
        MoveResult
            ``changed`` is False when the move was rejected (guard held, no session, game over)
            or did not move any tile; the session is then left untouched.

        Notes
        -----
        - A successful move spawns one tile, adds its merges to the score and may unlock
          powerups based on the score of this move alone.
        - The reentrancy guard stays held until ``settle()`` unless ``settle_delay`` is 0.
        """
        direction = Direction.parse(direction)
        if self.is_processing_move:
            _logger.debug('Move %s ignored: previous move still settling', direction.name)
            return MoveResult(False)
        if not self._started or (self._over and not force):
            return MoveResult(False)

        self.is_processing_move = True
        snapshot = SessionState.capture(self._board, self._score)
        outcome = apply_move(self._board, direction)
        if not outcome.changed:
            self.is_processing_move = False
            return MoveResult(False)

        # ##: Commit the move.
        self._history.push(snapshot)
        self._board = fill_cells(outcome.board, number_tile=1, rng=self._rng)
        self._score += outcome.score
        self._update_best_score()
        unlocked = tuple(self.budget.unlock(outcome.score))
        if unlocked:
            _logger.info('Unlocked %s', ', '.join(kind.value for kind in unlocked))

        # ##: Terminal states.
        won_now = not self._won and has_won(self._board, self.config.target)
        if won_now:
            self._won = True
            _logger.info('Reached %d with score %d', self.config.target, self._score)
        self._over = is_done(self._board)
        if self._over:
            _logger.info('Game over with score %d', self._score)

        _logger.debug('Moved %s: +%d (score %d)', direction.name, outcome.score, self._score)
        if self.config.settle_delay == 0:
            self.is_processing_move = False
        return MoveResult(True, outcome.score, unlocked, won_now, self._over)

    def settle(self) -> None:
        """Release the reentrancy guard once the move has visually settled."""
        self.is_processing_move = False

    # ##: Powerups.

    def undo(self) -> bool:
        """
        Restore the board and score saved before the last move, swap or delete.

        Returns
        -------
        bool
            False if no undo is left or the history is empty.

        Notes
        -----
        Won and over flags are recomputed from the restored board and the powerup mode is
        cleared.
        """
        if self.budget[PowerupKind.UNDO] <= 0 or not len(self._history):
            return False

        state = self._history.pop()
        self._board = state.board.copy()
        self._score = state.score
        self.budget.use(PowerupKind.UNDO)
        self._won = has_won(self._board, self.config.target)
        self._over = is_done(self._board)
        self._mode = NO_MODE
        _logger.debug('Undo: score back to %d', self._score)
        return True

    def toggle_swap(self) -> bool:
        """Enter swap mode, or leave it if active; False if no swap is left."""
        return self._toggle(SwapMode, PowerupKind.SWAP)

    def toggle_delete(self) -> bool:
        """Enter delete mode, or leave it if active; False if no delete is left."""
        return self._toggle(DeleteMode, PowerupKind.DELETE)

    def _toggle(self, mode_type: type, kind: PowerupKind) -> bool:
        if isinstance(self._mode, mode_type):
            self._mode = NO_MODE
            return True
        if not self._started or self.budget[kind] <= 0:
            return False
        self._mode = mode_type()
        return True

    def cancel_powerup(self) -> bool:
        """Leave the current powerup mode; False if none is active."""
        if isinstance(self._mode, NoMode):
            return False
        self._mode = NO_MODE
        return True

    def click_tile(self, row: int, col: int) -> bool:
        """
        Apply a tile click according to the current powerup mode.

        Parameters
        ----------
        row : int
            Row of the clicked cell.
        col : int
            Column of the clicked cell.

        Returns
        -------
        bool
            True if the click selected, deselected, swapped or deleted tiles.

        Raises
        ------
        ValueError
            If the coordinates are outside the board.
        """
        size = self.config.size
        if not (0 <= row < size and 0 <= col < size):
            raise ValueError(f'Cell ({row}, {col}) is outside the {size}x{size} board')

        value = int(self._board[row, col])
        if value == 0:
            return False
        if isinstance(self._mode, SwapMode):
            return self._swap_click((row, col))
        if isinstance(self._mode, DeleteMode):
            return self._delete_value(value)
        return False

    def _swap_click(self, cell: Cell) -> bool:
        if self.budget[PowerupKind.SWAP] <= 0:
            self._mode = NO_MODE
            return False

        first = self._mode.selected
        if first is None:
            self._mode = SwapMode(selected=cell)
            return True
        if first == cell:
            self._mode = SwapMode()
            return True

        self._history.push(SessionState.capture(self._board, self._score))
        board = self._board.copy()
        board[first], board[cell] = self._board[cell], self._board[first]
        self._board = board
        self.budget.use(PowerupKind.SWAP)
        self._mode = NO_MODE
        self._over = is_done(self._board)
        _logger.debug('Swapped %s and %s', first, cell)
        return True

    def _delete_value(self, value: int) -> bool:
        if self.budget[PowerupKind.DELETE] <= 0:
            self._mode = NO_MODE
            return False

        self._history.push(SessionState.capture(self._board, self._score))
        board = self._board.copy()
        board[board == value] = 0

        # ##: Never leave an empty board behind.
        if not board.any():
            fill_cells(board, number_tile=self.config.initial_tiles, rng=self._rng)

        self._board = board
        self.budget.use(PowerupKind.DELETE)
        self._mode = NO_MODE
        self._over = is_done(self._board)
        _logger.debug('Deleted every %d tile', value)
        return True

    # ##: Best score.

    def _load_best_score(self) -> int:
        raw = self._store.get(BEST_SCORE_KEY)
        if raw is None:
            return 0
        try:
            return max(int(raw), 0)
        except ValueError:
            _logger.debug('Ignoring malformed best score %r', raw)
            return 0

    def _update_best_score(self) -> None:
        if self._score > self._best_score:
            self._best_score = self._score
            self._store.set(BEST_SCORE_KEY, str(self._best_score))

    def render(self) -> None:
        """
        Render the game board. This method prints the score and the board to the console.
        """
        print(f'score={self._score} best={self._best_score}')
        for row in self._board.tolist():
            print(' \t'.join(str(value) if value else '.' for value in row))
