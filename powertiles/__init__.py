# -*- coding: utf-8 -*-
"""
Tile-merging puzzle game with undo, swap and delete powerups.
"""

from .config import GameConfig
from .core import Direction
from .session import GameSession, MoveResult, SessionStatus

__all__ = ["GameConfig", "Direction", "GameSession", "MoveResult", "SessionStatus"]

__version__ = "0.1.0"
