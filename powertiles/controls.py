"""
Keyboard bindings of the game.

Key names follow Matplotlib's ``KeyEvent.key`` strings (``"up"``, ``"ctrl+z"``, ``"escape"``...).
"""

import logging

from powertiles.core.gamemove import Direction
from powertiles.onboarding import Onboarding
from powertiles.session.game import GameSession
from powertiles.session.powerups import PowerupMode

# ##: Directional bindings: arrows and WASD.
KEY_DIRECTIONS: dict[str, Direction] = {
    'up': Direction.UP,
    'w': Direction.UP,
    'down': Direction.DOWN,
    's': Direction.DOWN,
    'left': Direction.LEFT,
    'a': Direction.LEFT,
    'right': Direction.RIGHT,
    'd': Direction.RIGHT,
}
RESET_KEYS = frozenset({'n', 'r'})
UNDO_KEYS = frozenset({'ctrl+z', 'cmd+z'})
CANCEL_KEYS = frozenset({'escape'})

_logger = logging.getLogger(__name__)


def handle_key(session: GameSession, key: str | None, onboarding: Onboarding | None = None) -> bool:
    """
    Dispatch a key press to the session.

    Parameters
    ----------
    session : GameSession
        The session receiving the command.
    key : str | None
        Name of the pressed key.
    onboarding : Onboarding, optional
        While it is modal every key is ignored.

    Returns
    -------
    bool
        True if the key changed the session.

    Notes
    -----
    - Every key is ignored while the previous move is settling.
    - Directional keys are ignored while a powerup mode is active.
    - Once the game is over only the reset keys are honoured.
    """
    if not key or (onboarding is not None and onboarding.is_modal) or session.is_processing_move:
        return False
    key = key.lower()

    if session.over and key not in RESET_KEYS:
        return False
    if key in RESET_KEYS:
        session.new_game()
        return True
    if key in UNDO_KEYS:
        return session.undo()
    if key in CANCEL_KEYS:
        return session.cancel_powerup()

    direction = KEY_DIRECTIONS.get(key)
    if direction is None or session.powerup_mode is not PowerupMode.NONE:
        return False
    result = session.move(direction)
    _logger.debug('Key %r: %s', key, result)
    return result.changed
