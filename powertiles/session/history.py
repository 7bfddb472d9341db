"""
Snapshots of a session and the bounded undo history holding them.
"""

from collections import deque
from typing import NamedTuple

from numpy import ndarray


class SessionState(NamedTuple):
    """
    Immutable snapshot of a session.

    Attributes
    ----------
    board : ndarray
        Read-only copy of the board.
    score : int
        Cumulative score at the time of the snapshot.
    """

    board: ndarray
    score: int

    @classmethod
    def capture(cls, board: ndarray, score: int) -> 'SessionState':
        """Copy the board and freeze it."""
        frozen = board.copy()
        frozen.flags.writeable = False
        return cls(frozen, int(score))


class UndoHistory:
    """
    Stack of snapshots keeping only the most recent ``capacity`` entries.

    Pushing onto a full history evicts the oldest snapshot.
    """

    def __init__(self, capacity: int = 5):
        if capacity < 1:
            raise ValueError(f'capacity must be positive, got {capacity}')
        self._states: deque = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._states.maxlen

    def push(self, state: SessionState) -> None:
        self._states.append(state)

    def pop(self) -> SessionState | None:
        """Remove and return the most recent snapshot, or None if the history is empty."""
        return self._states.pop() if self._states else None

    def peek(self) -> SessionState | None:
        return self._states[-1] if self._states else None

    def clear(self) -> None:
        self._states.clear()

    def __len__(self) -> int:
        return len(self._states)
