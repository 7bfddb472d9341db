# -*- coding: utf-8 -*-
"""
Play the game in a Matplotlib window.

Arrows or WASD move the tiles, N/R start a new game, Ctrl+Z undoes, 1/2/3 press the
undo/swap/delete buttons, Escape leaves the powerup mode and H shows the tutorial again.
"""
import logging
from typing import Any

from powertiles.controls import handle_key
from powertiles.onboarding import Onboarding
from powertiles.session import GameSession, PowerupKind, PowerupMode
from powertiles.storage import JsonFileStore, default_settings_path
from powertiles.utils import WindowBoard

# ##: Keys standing for the powerup buttons.
BUTTONS = {"1": GameSession.undo, "2": GameSession.toggle_swap, "3": GameSession.toggle_delete}

# ##: Key replaying the tutorial.
TUTORIAL_KEY = "h"

HINTS = {
    PowerupMode.NONE: "",
    PowerupMode.SWAP: "Select two tiles to swap (Esc to cancel)",
    PowerupMode.DELETE: "Click a tile to delete all matching numbers (Esc to cancel)",
}


def redraw(window: WindowBoard, session: GameSession):
    """
    Redraw the game board, the scores and the powerup counters.

    Parameters
    ----------
    window: WindowBoard
        Class to draw the game board

    session: GameSession
        The game session
    """
    counters = "  ".join(f"{kind.value}: {session.remaining(kind)}" for kind in PowerupKind)
    title = f"Score {session.score}   Best {session.best_score}   [{counters}]"
    if session.over:
        title += "   GAME OVER (N to restart)"
    elif session.won:
        title += "   YOU WIN!"
    window.set_status(title, HINTS[session.powerup_mode])
    window.show_image(session.board, session.selection)


def show_onboarding(onboarding: Onboarding):
    """Print the current page of the welcome flow."""
    step = onboarding.current_step
    if step is None:
        print("Welcome to 2048! Press Enter for the tutorial or Escape to play right away.")
    else:
        print(f"[{onboarding.step_index + 1}/{len(onboarding.steps)}] {step.title}: {step.description}")


def key_handler(session: GameSession, onboarding: Onboarding, window: WindowBoard, event: Any):
    """
    Handle the keyboard.

    Parameters
    ----------
    session: GameSession
        The game session

    onboarding: Onboarding
        The welcome flow, receiving keys while it is shown

    window: WindowBoard
        Class to draw the game board

    event: Any
        event to handle
    """
    if onboarding.is_modal:
        if event.key == "enter":
            onboarding.start_tutorial() or onboarding.next_step()
        elif event.key == "escape":
            onboarding.dismiss_welcome() or onboarding.skip()
        if onboarding.is_modal:
            show_onboarding(onboarding)
        else:
            redraw(window, session)
        return None

    if event.key == TUTORIAL_KEY:
        if onboarding.start_tutorial():
            show_onboarding(onboarding)
        return None

    if event.key in BUTTONS:
        if BUTTONS[event.key](session):
            redraw(window, session)
        return None

    moving = session.is_processing_move
    if handle_key(session, event.key, onboarding):
        redraw(window, session)
        if session.is_processing_move and not moving:
            window.schedule(session.config.settle_delay, session.settle)
    return None


def click_handler(session: GameSession, window: WindowBoard, row: int, col: int):
    """Forward a tile click to the active powerup."""
    if session.click_tile(row, col):
        redraw(window, session)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    store = JsonFileStore(default_settings_path())
    game = GameSession(store=store)
    welcome = Onboarding(store=store, on_complete=game.new_game)

    window_board = WindowBoard(title="2048 Game", size=game.config.size)
    window_board.register_key_handler(lambda event: key_handler(game, welcome, window_board, event))
    window_board.register_click_handler(lambda row, col: click_handler(game, window_board, row, col))

    if welcome.is_modal:
        show_onboarding(welcome)
    else:
        game.new_game()
    redraw(window_board, game)

    # Blocking event loop
    window_board.show(block=True)
