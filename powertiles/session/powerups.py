"""
Powerups: limited-use actions (undo, swap, delete) and the interaction mode gating tile clicks.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from powertiles.config import GameConfig

# ##>: A (row, column) coordinate on the board.
Cell = tuple[int, int]


class PowerupKind(str, Enum):
    """Kinds of powerup."""

    UNDO = 'undo'
    SWAP = 'swap'
    DELETE = 'delete'


@dataclass
class PowerupBudget:
    """
    Remaining uses of every powerup.

    A counter never drops below zero nor exceeds its maximum.

    Attributes
    ----------
    remaining : dict[PowerupKind, int]
        Uses left per kind.
    maximum : dict[PowerupKind, int]
        Cap applied when a use is granted.
    thresholds : dict[PowerupKind, int]
        Single-move score gain at or above which one use is granted.
    """

    remaining: dict[PowerupKind, int]
    maximum: dict[PowerupKind, int]
    thresholds: dict[PowerupKind, int] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: GameConfig) -> 'PowerupBudget':
        """Build the starting budget of a session."""
        return cls(
            remaining={kind: getattr(config, f'start_{kind.value}') for kind in PowerupKind},
            maximum={kind: getattr(config, f'max_{kind.value}') for kind in PowerupKind},
            thresholds={kind: getattr(config, f'{kind.value}_threshold') for kind in PowerupKind},
        )

    def __getitem__(self, kind: PowerupKind) -> int:
        return self.remaining[kind]

    def use(self, kind: PowerupKind) -> bool:
        """Consume one use; return False if none is left."""
        if self.remaining[kind] <= 0:
            return False
        self.remaining[kind] -= 1
        return True

    def grant(self, kind: PowerupKind) -> bool:
        """Add one use; return False if the counter is already at its maximum."""
        if self.remaining[kind] >= self.maximum[kind]:
            return False
        self.remaining[kind] += 1
        return True

    def unlock(self, score_gained: int) -> list[PowerupKind]:
        """
        Grant one use of every powerup whose threshold is reached by a single move's score.

        Parameters
        ----------
        score_gained : int
            Score gained by the move (not the cumulative score).

        Returns
        -------
        list[PowerupKind]
            Kinds whose counter actually increased.
        """
        return [
            kind for kind, threshold in self.thresholds.items() if score_gained >= threshold and self.grant(kind)
        ]


class PowerupMode(str, Enum):
    """Interaction mode deciding what a tile click does."""

    NONE = 'none'
    SWAP = 'swap'
    DELETE = 'delete'


@dataclass(frozen=True)
class NoMode:
    """Tile clicks do nothing."""

    kind: ClassVar[PowerupMode] = PowerupMode.NONE

    @property
    def selection(self) -> tuple[Cell, ...]:
        return ()


@dataclass(frozen=True)
class SwapMode:
    """Tile clicks select the tiles to exchange; ``selected`` holds the first pick."""

    kind: ClassVar[PowerupMode] = PowerupMode.SWAP
    selected: Cell | None = None

    @property
    def selection(self) -> tuple[Cell, ...]:
        return () if self.selected is None else (self.selected,)


@dataclass(frozen=True)
class DeleteMode:
    """A tile click removes every tile holding the clicked value."""

    kind: ClassVar[PowerupMode] = PowerupMode.DELETE

    @property
    def selection(self) -> tuple[Cell, ...]:
        return ()


ActiveMode = Union[NoMode, SwapMode, DeleteMode]

NO_MODE = NoMode()
