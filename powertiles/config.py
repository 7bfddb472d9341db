"""
Configuration of a game session: board geometry, undo history and powerup rules.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GameConfig:
    """
    Tunable constants of a game session.

    Thresholds are compared with the score gained by a single move; crossing one grants one
    use of the matching powerup, up to its maximum.
    """

    # ##>: Board.
    size: int = 4
    target: int = 2048
    initial_tiles: int = 2

    # ##>: Undo history.
    history_size: int = 5

    # ##>: Powerup unlock thresholds.
    undo_threshold: int = 128
    swap_threshold: int = 256
    delete_threshold: int = 512

    # ##>: Powerup maxima.
    max_undo: int = 3
    max_swap: int = 2
    max_delete: int = 1

    # ##>: Powerup allotments at the start of a session.
    start_undo: int = 2
    start_swap: int = 1
    start_delete: int = 0

    # ##>: Seconds during which directional input stays blocked after a move.
    settle_delay: float = 0.15

    def __post_init__(self):
        if self.size < 2:
            raise ValueError(f'size must be at least 2, got {self.size}')
        if self.target < 4 or self.target & (self.target - 1):
            raise ValueError(f'target must be a power of two greater than 2, got {self.target}')
        if not 1 <= self.initial_tiles <= self.size * self.size:
            raise ValueError(f'initial_tiles must be between 1 and {self.size * self.size}, got {self.initial_tiles}')
        if self.history_size < 1:
            raise ValueError(f'history_size must be positive, got {self.history_size}')
        if self.settle_delay < 0:
            raise ValueError(f'settle_delay must not be negative, got {self.settle_delay}')
        for kind in ('undo', 'swap', 'delete'):
            start, maximum = getattr(self, f'start_{kind}'), getattr(self, f'max_{kind}')
            if not 0 <= start <= maximum:
                raise ValueError(f'start_{kind} must be between 0 and max_{kind} ({maximum}), got {start}')
