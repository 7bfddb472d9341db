# -*- coding: utf-8 -*-
"""
Graphical User Interface for the tile-merging game.

This module provides a Matplotlib window displaying the board, the scores and the powerup
counters of a session, and forwarding key presses and tile clicks to the caller.
"""
from typing import Callable, Optional

from matplotlib import pyplot as plt
from matplotlib.backend_bases import Event, MouseEvent
from numpy import ndarray

# ##: Default Matplotlib shortcuts colliding with the game bindings.
_GAME_KEYS = {"up", "down", "left", "right", "w", "a", "s", "d", "n", "r", "escape", "ctrl+z", "cmd+z"}


class WindowBoard:
    """
    A class for rendering the game board using Matplotlib.

    Methods
    -------
    show_image(board: np.ndarray, selection: tuple = ())
        Update the display with the current game board state.
    set_status(title: str, subtitle: str = "")
        Update the score line and the hint line.
    register_key_handler(key_handler: Callable)
        Register a function to handle keyboard events.
    register_click_handler(click_handler: Callable)
        Register a function receiving the (row, column) of clicked tiles.
    schedule(delay: float, callback: Callable)
        Run a callback once after a delay.
    show(block: bool = True)
        Display the game window.
    close()
        Close the game window.
    """

    # ##: Colors mapping for different tile values.
    COLORS = {
        0: "#CDC1B4",
        2: "#EEE4DA",
        4: "#EDE0C8",
        8: "#F2B179",
        16: "#F59563",
        32: "#F67C5F",
        64: "#F65E3B",
        128: "#EDCF72",
        256: "#EDCC61",
        512: "#EDC850",
        1024: "#EDC53F",
        2048: "#EDC22E",
    }
    SELECTED_COLOR = "#8F7A93"

    def __init__(self, title: str, size: int):
        """
        Initialize the game board window.

        Parameters
        ----------
        title : str
            The title of the window.
        size : int
            The size of the game board (e.g., 4 for a 4x4 board).
        """
        for name in [name for name in plt.rcParams if name.startswith("keymap.")]:
            plt.rcParams[name] = [key for key in plt.rcParams[name] if key not in _GAME_KEYS]

        self.size = size
        self.fig, self.axe = plt.subplots()
        self.fig.canvas.manager.set_window_title(title)
        self._setup_axes(size)
        self.closed = False
        self._timers = []
        self.fig.canvas.mpl_connect("close_event", self._close_handler)

    def _setup_axes(self, size: int):
        """
        Set up the axes for the game board, creating individual cells for each tile.

        Parameters
        ----------
        size : int
            The size of the game board.
        """
        self.fig.subplots_adjust(left=0.02, bottom=0.08, right=0.98, top=0.88, wspace=0.05, hspace=0.05)
        self.axe.set_facecolor("#BBADA0")
        self.axe.set_axis_off()

        self.title = self.fig.suptitle("", fontsize="large", fontweight="bold")
        self.hint = self.fig.text(0.5, 0.02, "", ha="center", va="bottom")

        self.texts = []
        self.axes = [self.fig.add_subplot(size, size, r * size + c + 1) for r in range(size) for c in range(size)]
        for ax in self.axes:
            text = ax.text(0.5, 0.5, "", ha="center", va="center", fontsize="x-large", fontweight="demibold")
            self.texts.append(text)
            ax.set_xticks([])
            ax.set_yticks([])

    def _close_handler(self, event: Optional[Event] = None):
        """Set the closed flag when the window is closed."""
        self.closed = True

    def cell_at(self, event: MouseEvent) -> Optional[tuple[int, int]]:
        """
        Get the cell under a mouse event.

        Returns
        -------
        Optional[tuple[int, int]]
            The (row, column) of the clicked tile, None outside the board.
        """
        if event.inaxes not in self.axes:
            return None
        return divmod(self.axes.index(event.inaxes), self.size)

    def show_image(self, board: ndarray, selection: tuple = ()):
        """
        Show or update the game board.

        Parameters
        ----------
        board : ndarray
            The current state of the game board to be displayed.
        selection : tuple, optional
            Cells to highlight, as (row, column) pairs.
        """
        for index, (ax, text, value) in enumerate(zip(self.axes, self.texts, board.flat)):
            value = int(value)
            text.set_text(str(value) if value != 0 else "")
            text.set_color("#776E65" if value in (2, 4) else "white")
            ax.set_facecolor(self.COLORS.get(value, "#3C3A32"))

            selected = divmod(index, self.size) in selection
            for spine in ax.spines.values():
                spine.set_color(self.SELECTED_COLOR if selected else "#BBADA0")
                spine.set_linewidth(4 if selected else 1)

        self.fig.canvas.draw_idle()
        self.fig.canvas.flush_events()
        plt.pause(0.001)

    def set_status(self, title: str, subtitle: str = ""):
        """Update the text above and below the board."""
        self.title.set_text(title)
        self.hint.set_text(subtitle)
        self.fig.canvas.draw_idle()

    def register_key_handler(self, key_handler: Callable):
        """
        Register a keyboard event handler.

        Parameters
        ----------
        key_handler : Callable
            A function to handle keyboard events.
        """
        self.fig.canvas.mpl_connect("key_press_event", key_handler)

    def register_click_handler(self, click_handler: Callable[[int, int], None]):
        """
        Register a tile click handler.

        Parameters
        ----------
        click_handler : Callable[[int, int], None]
            Called with the row and column of every clicked tile.
        """

        def _on_click(event: MouseEvent):
            cell = self.cell_at(event)
            if cell is not None:
                click_handler(*cell)

        self.fig.canvas.mpl_connect("button_press_event", _on_click)

    def schedule(self, delay: float, callback: Callable[[], None]):
        """
        Run a callback once after ``delay`` seconds using the canvas event loop.

        A zero delay runs the callback immediately.
        """
        if delay <= 0:
            callback()
            return

        timer = self.fig.canvas.new_timer(interval=int(delay * 1000))
        timer.single_shot = True

        def _fire():
            self._timers.remove(timer)
            callback()

        timer.add_callback(_fire)
        self._timers.append(timer)
        timer.start()

    @classmethod
    def show(cls, block: bool = True):
        """
        Show the window and start the Matplotlib event loop.

        Parameters
        ----------
        block : bool, optional
            If True, the event loop is blocking; otherwise, it's non-blocking (default is True).
        """
        if not block:
            plt.ion()
        plt.show()

    def close(self):
        """Close the window and set the closed flag."""
        plt.close(self.fig)
        self.closed = True
