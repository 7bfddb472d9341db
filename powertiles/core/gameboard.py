"""
Core rules of the game: line resolution, moves, tile spawning and terminal detection.

The board is a square ``int64`` array where ``0`` marks an empty cell and every other value
is a power of two.
"""

import logging
from typing import NamedTuple

from numpy import all as np_all
from numpy import any as np_any
from numpy import argwhere, asarray, int64, ndarray, rot90, zeros, zeros_like
from numpy.random import Generator, default_rng

from powertiles.core.gamemove import Direction, can_move

# ##>: Tile spawn probabilities (90% for 2, 10% for 4).
TILE_SPAWN_PROBS: dict[int, float] = {2: 0.9, 4: 0.1}

# ##>: Module-level generator used when the caller does not provide one.
_GENERATOR = default_rng()

_logger = logging.getLogger(__name__)


class MoveOutcome(NamedTuple):
    """
    Result of applying a move to a board, before any tile is spawned.

    Attributes
    ----------
    board : ndarray
        A new board holding the slid and merged tiles.
    score : int
        Sum of the values created by merges.
    changed : bool
        Whether at least one tile moved or merged.
    """

    board: ndarray
    score: int
    changed: bool


def empty_board(size: int = 4) -> ndarray:
    """Create a ``size`` x ``size`` board with no tiles."""
    return zeros((size, size), dtype=int64)


def merge_line(line: ndarray) -> tuple[int, ndarray]:
    """
    Slide the tiles of one line toward index 0 and merge adjacent equal values.

    Parameters
    ----------
    line : ndarray
        A 1D array already oriented so that index 0 is the destination edge.

    Returns
    -------
    score : int
        The sum of the merged values.
    merged_line : ndarray
        A new line of the same length, empty slots trailing.

    Notes
    -----
    - Merging is resolved left to right without re-scanning: ``[2, 2, 2, 0]`` becomes
      ``[4, 2, 0, 0]``.
    - A tile takes part in at most one merge per call.
    """
    line = asarray(line, dtype=int64)
    non_zero = line[line != 0]
    merged = zeros_like(line)

    score = 0
    position, i = 0, 0
    while i < len(non_zero):
        if i + 1 < len(non_zero) and non_zero[i] == non_zero[i + 1]:
            value = int(non_zero[i]) * 2
            score += value
            i += 2
        else:
            value = int(non_zero[i])
            i += 1
        merged[position] = value
        position += 1

    return score, merged


def slide_and_merge(board: ndarray) -> tuple[int, ndarray]:
    """
    Slide the game board to the left, merge adjacent cells, and compute the score.

    Parameters
    ----------
    board : ndarray
        The game board represented as a 2D NumPy array.

    Returns
    -------
    score : int
        The total score obtained from all merges.
    updated_board : ndarray
        The updated game board after sliding and merging.

    Notes
    -----
    The function operates on rows. For other directions, rotate the board first.
    """
    result = zeros_like(board)
    score = 0

    for i, row in enumerate(board):
        score_row, merged_row = merge_line(row)
        score += score_row
        result[i] = merged_row

    return score, result


def apply_move(board: ndarray, direction: Direction | str | int) -> MoveOutcome:
    """
    Apply a move to the board without spawning a new tile.

    Parameters
    ----------
    board : ndarray
        The current state of the game board. Not modified.
    direction : Direction | str | int
        The direction of the move.

    Returns
    -------
    MoveOutcome
        The new board, the score gained and whether anything changed.
    """
    direction = Direction.parse(direction)
    rotated = rot90(board, k=direction)

    # ##: Nothing can slide or merge: the move is a no-op.
    if not can_move(rotated):
        return MoveOutcome(board.copy(), 0, False)

    score, updated = slide_and_merge(rotated)
    return MoveOutcome(rot90(updated, k=-direction).copy(), score, True)


def fill_cells(state: ndarray, number_tile: int, rng: Generator | None = None) -> ndarray:
    """
    Fill empty cells with new tiles (2 or 4).

    Parameters
    ----------
    state : ndarray
        The current state of the game board. **Modified in-place.**
    number_tile : int
        Number of new tiles to add.
    rng : Generator, optional
        Random number generator; the module generator is used when omitted.

    Returns
    -------
    ndarray
        The same array reference with new tiles added.

    Notes
    -----
    - Cells are chosen uniformly among the empty ones.
    - If there are fewer empty cells than requested, it fills all available cells.
    - A full board is returned unchanged.
    """
    rng = rng if rng is not None else _GENERATOR

    # ##: Only if there are still available places.
    available_cells = argwhere(state == 0)
    number_tile = min(number_tile, len(available_cells))
    if number_tile > 0:
        values = rng.choice(list(TILE_SPAWN_PROBS), size=number_tile, p=list(TILE_SPAWN_PROBS.values()))

        # ##: Randomly choose cell positions in board.
        chosen_indices = rng.choice(len(available_cells), size=number_tile, replace=False)

        # ##: Fill empty cells.
        state[tuple(available_cells[chosen_indices].T)] = values
        _logger.debug('Spawned %s at %s', values.tolist(), available_cells[chosen_indices].tolist())
    return state


def spawn_tile(board: ndarray, rng: Generator | None = None) -> ndarray:
    """
    Return a copy of the board with exactly one new tile, or an unchanged copy if it is full.
    """
    return fill_cells(board.copy(), number_tile=1, rng=rng)


def has_won(state: ndarray, target: int = 2048) -> bool:
    """Check if any tile reached the target value."""
    return bool(np_any(state == target))


def is_done(state: ndarray) -> bool:
    """
    Check if the game has ended by determining if any moves are possible.

    Parameters
    ----------
    state : ndarray
        The current state of the game board.

    Returns
    -------
    bool
        True if the game is over (no moves possible), False otherwise.

    Notes
    -----
    The game is over when there are no empty cells AND no horizontally or vertically
    adjacent cells hold the same value.
    """
    return bool(
        np_all(state != 0) and not np_any(state[:-1] == state[1:]) and not np_any(state[:, :-1] == state[:, 1:])
    )
