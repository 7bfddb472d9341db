"""
Move directions and move applicability checks for the tile-merging game.
"""

from enum import IntEnum

from numpy import ndarray


class Direction(IntEnum):
    """
    Direction of a move.

    The integer value is the number of counter-clockwise quarter turns that bring the
    destination edge of the board to the left, so ``rot90(board, k=direction)`` orients
    every line toward index 0.
    """

    LEFT = 0
    UP = 1
    RIGHT = 2
    DOWN = 3

    @classmethod
    def parse(cls, value: 'Direction | str | int') -> 'Direction':
        """
        Convert a name (``"left"``, ``"UP"``...) or an integer into a direction.

        Raises
        ------
        ValueError
            If the value does not name a direction.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f'Unknown direction: {value!r}') from None
        return cls(value)


def legal_actions_mask(state: ndarray) -> tuple[bool, bool, bool, bool]:
    """
    Get a boolean mask for all four directions in a single pass.

    Parameters
    ----------
    state : ndarray
        The current state of the game board.

    Returns
    -------
    tuple[bool, bool, bool, bool]
        Mask for (left, up, right, down) where True means the move changes the board.

    Notes
    -----
    Horizontal and vertical adjacencies are computed once, then all four directions are
    derived from them.
    """
    # ##>: Compute horizontal adjacency once for left/right.
    left_cols, right_cols = state[:, :-1], state[:, 1:]
    h_can_merge = (left_cols != 0) & (left_cols == right_cols)

    # ##>: Compute vertical adjacency once for up/down.
    top_rows, bottom_rows = state[:-1, :], state[1:, :]
    v_can_merge = (top_rows != 0) & (top_rows == bottom_rows)

    # ##>: Check slide conditions per direction.
    left = (left_cols == 0) & (right_cols != 0)
    right = (right_cols == 0) & (left_cols != 0)
    up = (top_rows == 0) & (bottom_rows != 0)
    down = (bottom_rows == 0) & (top_rows != 0)

    return (
        bool(left.any() or h_can_merge.any()),
        bool(up.any() or v_can_merge.any()),
        bool(right.any() or h_can_merge.any()),
        bool(down.any() or v_can_merge.any()),
    )


def legal_actions(state: ndarray) -> list[Direction]:
    """
    Determine the directions that would change the board.

    Parameters
    ----------
    state : ndarray
        The current state of the game board.

    Returns
    -------
    list[Direction]
        Directions in which a move slides or merges at least one tile.
    """
    mask = legal_actions_mask(state)
    return [direction for direction in Direction if mask[direction]]


def can_move(board: ndarray) -> bool:
    """
    Check if any tile can move left on the given board.

    Parameters
    ----------
    board : ndarray
        The game board to check, already rotated so the destination edge is on the left.

    Returns
    -------
    bool
        True if a left move is possible, False otherwise.

    Notes
    -----
    A move is possible if there's an empty cell to the left of a non-empty cell,
    or if two adjacent cells hold the same non-zero value.
    """
    left_cols = board[:, :-1]
    right_cols = board[:, 1:]

    # ##>: Condition 1: Empty cell left of non-empty cell (can slide).
    can_slide = (left_cols == 0) & (right_cols != 0)
    if can_slide.any():
        return True

    # ##>: Condition 2: Two adjacent equal non-zero values (can merge).
    can_merge = (left_cols != 0) & (left_cols == right_cols)
    return bool(can_merge.any())
