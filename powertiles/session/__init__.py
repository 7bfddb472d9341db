# -*- coding: utf-8 -*-
"""
Game session of the tile-merging game.

This module provides the `GameSession` class, which plays turns, keeps the score and best score,
manages the bounded undo history and mediates the swap and delete powerups.
"""

from .game import BEST_SCORE_KEY, GameSession, MoveResult, SessionStatus
from .history import SessionState, UndoHistory
from .powerups import DeleteMode, NoMode, PowerupBudget, PowerupKind, PowerupMode, SwapMode

__all__ = [
    "BEST_SCORE_KEY",
    "GameSession",
    "MoveResult",
    "SessionStatus",
    "SessionState",
    "UndoHistory",
    "PowerupBudget",
    "PowerupKind",
    "PowerupMode",
    "NoMode",
    "SwapMode",
    "DeleteMode",
]
