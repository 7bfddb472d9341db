# -*- coding: utf-8 -*-
"""
Rules of the tile-merging game.

It includes functions for sliding and merging lines and boards, applying a move in any direction,
spawning new tiles, and detecting won and finished boards.
"""

from .gameboard import (
    TILE_SPAWN_PROBS,
    MoveOutcome,
    apply_move,
    empty_board,
    fill_cells,
    has_won,
    is_done,
    merge_line,
    slide_and_merge,
    spawn_tile,
)
from .gamemove import Direction, legal_actions

__all__ = [
    "TILE_SPAWN_PROBS",
    "Direction",
    "MoveOutcome",
    "legal_actions",
    "merge_line",
    "slide_and_merge",
    "apply_move",
    "empty_board",
    "fill_cells",
    "spawn_tile",
    "has_won",
    "is_done",
]
