"""
Tests for the game session: turns, terminal states, undo history, powerups and best score.
"""

from contextlib import redirect_stdout
from io import StringIO
from unittest import TestCase, main

import numpy as np

from powertiles.config import GameConfig
from powertiles.core import Direction
from powertiles.session import (
    BEST_SCORE_KEY,
    GameSession,
    PowerupKind,
    PowerupMode,
    SessionStatus,
)
from powertiles.storage import MemoryStore

# ##>: Sessions used in tests release the move guard immediately.
FAST = GameConfig(settle_delay=0)


def board_with(*tiles: tuple[int, int, int]) -> np.ndarray:
    """Build a 4x4 board from (row, col, value) triples."""
    board = np.zeros((4, 4), dtype=np.int64)
    for row, col, value in tiles:
        board[row, col] = value
    return board


class BrokenStore:
    """Settings backend that is never available."""

    def get(self, key):
        raise OSError("storage disabled")

    def set(self, key, value):
        raise OSError("storage disabled")


class TestLifecycle(TestCase):
    """New sessions and status reporting."""

    def test_idle_before_first_game(self):
        """A session does nothing until a game is started."""
        session = GameSession(config=FAST, seed=0)

        self.assertIs(session.status, SessionStatus.IDLE)
        self.assertFalse(session.move(Direction.LEFT).changed)

    def test_new_game(self):
        """A new game holds two tiles and the starting allotments."""
        session = GameSession(config=FAST, seed=42)
        board = session.new_game()

        self.assertEqual(np.count_nonzero(board), 2)
        self.assertTrue(np.all(np.isin(board[board != 0], [2, 4])))
        self.assertEqual(session.score, 0)
        self.assertIs(session.status, SessionStatus.ACTIVE)
        self.assertEqual(session.history_size, 0)
        self.assertEqual(session.remaining(PowerupKind.UNDO), 2)
        self.assertEqual(session.remaining("swap"), 1)
        self.assertEqual(session.remaining(PowerupKind.DELETE), 0)

    def test_seed_reproducibility(self):
        """Same seed produces identical initial boards."""
        first = GameSession(config=FAST, seed=3).new_game()
        second = GameSession(config=FAST, seed=3).new_game()
        np.testing.assert_array_equal(first, second)

    def test_new_game_resets_session(self):
        """Starting over clears score, flags, history, mode and counters."""
        session = GameSession(config=FAST, seed=1)
        session.load(board_with((0, 0, 2), (0, 1, 4)), score=40)
        session.toggle_swap()
        session.click_tile(0, 0)
        session.click_tile(0, 1)

        session.new_game()

        self.assertEqual(session.score, 0)
        self.assertEqual(session.best_score, 0)
        self.assertEqual(session.history_size, 0)
        self.assertIs(session.powerup_mode, PowerupMode.NONE)
        self.assertEqual(session.remaining(PowerupKind.SWAP), 1)

    def test_board_is_read_only(self):
        """Callers cannot mutate the session board."""
        session = GameSession(config=FAST, seed=0)
        session.new_game()
        with self.assertRaises(ValueError):
            session.board[0, 0] = 2048

    def test_render(self):
        """Rendering prints the scores and one line per row."""
        session = GameSession(config=FAST)
        session.load(board_with((0, 0, 2), (3, 3, 16)), score=12)
        output = StringIO()
        with redirect_stdout(output):
            session.render()

        lines = output.getvalue().splitlines()
        self.assertEqual(lines[0], "score=12 best=0")
        self.assertEqual(len(lines), 5)
        self.assertTrue(lines[4].endswith("16"))

    def test_load_rejects_bad_shape(self):
        """Positions must match the configured size."""
        session = GameSession(config=FAST)
        with self.assertRaises(ValueError):
            session.load(np.zeros((3, 3)))

    def test_load_rejects_bad_values(self):
        """Every cell is either empty or a power of two of at least 2."""
        session = GameSession(config=FAST)
        for value in (3, 1, -2, 2.5, 6):
            board = np.zeros((4, 4), dtype=np.asarray(value).dtype)
            board[1, 1] = value
            with self.assertRaises(ValueError):
                session.load(board)
        self.assertIs(session.status, SessionStatus.IDLE)

    def test_load_accepts_integral_floats(self):
        """Whole float values are stored as integers."""
        session = GameSession(config=FAST)
        board = session.load(board_with((0, 0, 2), (1, 1, 1024)).astype(float))

        self.assertEqual(board.dtype, np.int64)
        self.assertEqual(board[1, 1], 1024)


class TestMoves(TestCase):
    """Turn protocol."""

    def setUp(self):
        """Initialize a session before each test."""
        self.session = GameSession(config=FAST, seed=5)

    def test_merge_scenario(self):
        """Two 2-tiles moved left become a 4 and a new tile appears elsewhere."""
        self.session.load(board_with((0, 0, 2), (0, 1, 2)))
        result = self.session.move(Direction.LEFT)
        board = self.session.board

        self.assertTrue(result.changed)
        self.assertEqual(result.score, 4)
        self.assertEqual(board[0, 0], 4)
        self.assertEqual(self.session.score, 4)
        self.assertEqual(np.count_nonzero(board), 2)
        self.assertEqual(self.session.history_size, 1)

    def test_noop_move(self):
        """A move that shifts nothing leaves the session untouched."""
        start = board_with((0, 0, 2), (0, 1, 4), (0, 2, 2), (0, 3, 4))
        self.session.load(start, score=10)
        result = self.session.move("left")

        self.assertFalse(result.changed)
        np.testing.assert_array_equal(self.session.board, start)
        self.assertEqual(self.session.score, 10)
        self.assertEqual(self.session.history_size, 0)
        self.assertFalse(self.session.is_processing_move)

    def test_noop_move_keeps_full_history(self):
        """A rejected move does not evict anything from a full history."""
        config = GameConfig(settle_delay=0, max_undo=6, start_undo=6, max_swap=6, start_swap=6)
        session = GameSession(config=config, seed=5)
        start = board_with((0, 0, 2), (0, 1, 4), (0, 2, 8), (0, 3, 16))
        session.load(start)

        # ##>: Five swaps fill the history without spawning tiles.
        for _ in range(5):
            session.toggle_swap()
            session.click_tile(0, 0)
            session.click_tile(0, 1)
        self.assertEqual(session.history_size, 5)

        self.assertFalse(session.move(Direction.LEFT).changed)
        self.assertEqual(session.history_size, 5)

        # ##>: The oldest snapshot is still the loaded position.
        for _ in range(5):
            self.assertTrue(session.undo())
        np.testing.assert_array_equal(session.board, start)
        self.assertFalse(session.undo())

    def test_history_is_bounded(self):
        """Only the five most recent snapshots are kept."""
        self.session.new_game()
        for _ in range(8):
            self.session.move(self.session.legal_moves[0])
        self.assertEqual(self.session.history_size, 5)

    def test_move_unlocks_powerups(self):
        """A move gaining 256 grants one undo and one swap."""
        self.session.load(board_with((0, 0, 64), (0, 1, 64), (2, 0, 64), (2, 1, 64)))
        result = self.session.move(Direction.LEFT)

        # ##>: Both pairs merge in the same move: 256 points.
        self.assertEqual(result.score, 256)
        self.assertIn(PowerupKind.UNDO, result.unlocked)
        self.assertIn(PowerupKind.SWAP, result.unlocked)
        self.assertEqual(self.session.remaining(PowerupKind.UNDO), 3)
        self.assertEqual(self.session.remaining(PowerupKind.SWAP), 2)
        self.assertEqual(self.session.remaining(PowerupKind.DELETE), 0)

    def test_exact_threshold_unlocks_undo(self):
        """A move gaining exactly 128 grants one undo."""
        self.session.load(board_with((1, 2, 64), (1, 3, 64)))
        result = self.session.move(Direction.RIGHT)

        self.assertEqual(result.score, 128)
        self.assertEqual(result.unlocked, (PowerupKind.UNDO,))
        self.assertEqual(self.session.remaining(PowerupKind.UNDO), 3)

    def test_small_move_unlocks_nothing(self):
        """Cumulative score does not count, only the move's own gain."""
        self.session.load(board_with((0, 0, 32), (0, 1, 32)), score=5000)
        result = self.session.move(Direction.LEFT)

        self.assertEqual(result.unlocked, ())
        self.assertEqual(self.session.remaining(PowerupKind.UNDO), 2)

    def test_reentrancy_guard(self):
        """Directional input is rejected until the previous move settles."""
        session = GameSession(seed=5)
        session.load(board_with((0, 0, 2), (0, 1, 2)))

        self.assertTrue(session.move(Direction.LEFT).changed)
        self.assertTrue(session.is_processing_move)
        self.assertFalse(session.move(Direction.RIGHT).changed)

        session.settle()
        self.assertFalse(session.is_processing_move)
        self.assertTrue(session.move(Direction.RIGHT).changed)


class TestTerminalStates(TestCase):
    """Win and game over."""

    def setUp(self):
        """Initialize a session before each test."""
        self.session = GameSession(config=FAST, seed=11)

    def test_win_reported_once(self):
        """Reaching the target is reported on the merging move only."""
        self.session.load(board_with((0, 0, 1024), (0, 1, 1024)))
        first = self.session.move(Direction.LEFT)

        self.assertTrue(first.won)
        self.assertTrue(self.session.won)
        self.assertIs(self.session.status, SessionStatus.WON)

        # ##>: Winning does not block further moves.
        second = self.session.move(Direction.RIGHT)
        self.assertTrue(second.changed)
        self.assertFalse(second.won)
        self.assertTrue(self.session.won)

    def test_game_over(self):
        """Filling the last cell without any merge left ends the game."""
        start = np.array([[0, 8, 16, 32], [64, 128, 256, 512], [8, 16, 32, 64], [64, 128, 256, 1024]])
        self.session.load(start)
        result = self.session.move(Direction.LEFT)

        self.assertTrue(result.changed)
        self.assertTrue(result.over)
        self.assertIs(self.session.status, SessionStatus.OVER)

        # ##>: Once over, moves are rejected.
        self.assertFalse(self.session.move(Direction.RIGHT).changed)

    def test_undo_recovers_from_game_over(self):
        """Undoing the final move restores a playable board."""
        start = np.array([[0, 8, 16, 32], [64, 128, 256, 512], [8, 16, 32, 64], [64, 128, 256, 1024]])
        self.session.load(start)
        self.session.move(Direction.LEFT)

        self.assertTrue(self.session.undo())
        self.assertFalse(self.session.over)
        np.testing.assert_array_equal(self.session.board, start)

    def test_loaded_finished_board(self):
        """Loading a finished position reports it as over."""
        self.session.load(np.array([[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [4, 2, 4, 2]]))
        self.assertIs(self.session.status, SessionStatus.OVER)
        self.assertFalse(self.session.move(Direction.LEFT, force=True).changed)


class TestUndo(TestCase):
    """Undo powerup."""

    def test_round_trip(self):
        """Move then undo restores the exact board and score."""
        session = GameSession(config=FAST, seed=2)
        start = board_with((0, 0, 2), (0, 1, 2), (3, 3, 8))
        session.load(start, score=20)
        session.move(Direction.LEFT)

        self.assertTrue(session.undo())
        np.testing.assert_array_equal(session.board, start)
        self.assertEqual(session.score, 20)
        self.assertEqual(session.remaining(PowerupKind.UNDO), 1)
        self.assertEqual(session.history_size, 0)

    def test_undo_reverts_win(self):
        """Undoing the winning merge clears the win."""
        session = GameSession(config=FAST, seed=2)
        session.load(board_with((0, 0, 1024), (0, 1, 1024)))
        session.move(Direction.LEFT)

        self.assertTrue(session.undo())
        self.assertFalse(session.won)
        self.assertIs(session.status, SessionStatus.ACTIVE)

    def test_empty_history(self):
        """Nothing to undo is a no-op."""
        session = GameSession(config=FAST, seed=2)
        session.new_game()
        self.assertFalse(session.undo())
        self.assertEqual(session.remaining(PowerupKind.UNDO), 2)

    def test_no_undo_left(self):
        """Without remaining uses the history is kept intact."""
        session = GameSession(config=GameConfig(settle_delay=0, start_undo=0), seed=2)
        session.load(board_with((0, 0, 2), (0, 1, 2)))
        session.move(Direction.LEFT)

        self.assertFalse(session.undo())
        self.assertEqual(session.history_size, 1)

    def test_undo_clears_mode(self):
        """Undo leaves any powerup mode."""
        session = GameSession(config=FAST, seed=2)
        session.load(board_with((0, 0, 2), (0, 1, 2)))
        session.move(Direction.LEFT)
        session.toggle_swap()
        session.click_tile(0, 0)

        self.assertTrue(session.undo())
        self.assertIs(session.powerup_mode, PowerupMode.NONE)
        self.assertEqual(session.selection, ())


class TestSwap(TestCase):
    """Swap powerup."""

    def setUp(self):
        """Load a small position with a swap available."""
        self.session = GameSession(config=FAST, seed=4)
        self.start = board_with((0, 0, 2), (0, 1, 4), (2, 2, 8))
        self.session.load(self.start, score=8)

    def test_swap_two_tiles(self):
        """Two distinct tiles exchange their values."""
        self.assertTrue(self.session.toggle_swap())
        self.assertTrue(self.session.click_tile(0, 0))
        self.assertEqual(self.session.selection, ((0, 0),))
        self.assertTrue(self.session.click_tile(2, 2))

        board = self.session.board
        self.assertEqual(board[0, 0], 8)
        self.assertEqual(board[2, 2], 2)
        self.assertEqual(self.session.remaining(PowerupKind.SWAP), 0)
        self.assertIs(self.session.powerup_mode, PowerupMode.NONE)
        self.assertEqual(self.session.history_size, 1)

        # ##>: The swap can be undone.
        self.assertTrue(self.session.undo())
        np.testing.assert_array_equal(self.session.board, self.start)

    def test_same_tile_deselects(self):
        """Clicking the selected tile again clears the selection."""
        self.session.toggle_swap()
        self.session.click_tile(0, 0)
        self.assertTrue(self.session.click_tile(0, 0))

        self.assertEqual(self.session.selection, ())
        self.assertIs(self.session.powerup_mode, PowerupMode.SWAP)
        np.testing.assert_array_equal(self.session.board, self.start)
        self.assertEqual(self.session.remaining(PowerupKind.SWAP), 1)

    def test_empty_cell_ignored(self):
        """Empty cells cannot be selected."""
        self.session.toggle_swap()
        self.assertFalse(self.session.click_tile(3, 3))
        self.assertEqual(self.session.selection, ())

        self.session.click_tile(0, 0)
        self.assertFalse(self.session.click_tile(3, 3))
        self.assertEqual(self.session.selection, ((0, 0),))

    def test_toggle_off(self):
        """Toggling twice leaves swap mode."""
        self.session.toggle_swap()
        self.session.click_tile(0, 0)
        self.assertTrue(self.session.toggle_swap())
        self.assertIs(self.session.powerup_mode, PowerupMode.NONE)
        self.assertEqual(self.session.selection, ())

    def test_no_swap_left(self):
        """Swap mode cannot be entered without remaining uses."""
        session = GameSession(config=GameConfig(settle_delay=0, start_swap=0))
        session.load(self.start)
        self.assertFalse(session.toggle_swap())
        self.assertIs(session.powerup_mode, PowerupMode.NONE)

    def test_click_without_mode(self):
        """Tile clicks outside any powerup mode do nothing."""
        self.assertFalse(self.session.click_tile(0, 0))
        np.testing.assert_array_equal(self.session.board, self.start)

    def test_click_outside_board(self):
        """Coordinates must be on the board."""
        with self.assertRaises(ValueError):
            self.session.click_tile(4, 0)

    def test_swap_finishes_board(self):
        """A swap that leaves a full board without merges ends the game."""
        self.session.load(np.array([[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [4, 2, 2, 4]]))
        self.assertFalse(self.session.over)

        self.session.toggle_swap()
        self.session.click_tile(3, 2)
        self.assertTrue(self.session.click_tile(3, 3))

        self.assertTrue(self.session.over)
        self.assertIs(self.session.status, SessionStatus.OVER)

    def test_swap_unblocks_board(self):
        """A swap that creates a merge on a finished board resumes the game."""
        self.session.load(np.array([[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [4, 2, 4, 2]]))
        self.assertTrue(self.session.over)

        self.session.toggle_swap()
        self.session.click_tile(0, 0)
        self.session.click_tile(0, 1)

        self.assertFalse(self.session.over)
        self.assertTrue(self.session.move(Direction.LEFT).changed)

    def test_cancel(self):
        """Cancelling leaves the mode and drops the selection."""
        self.assertFalse(self.session.cancel_powerup())
        self.session.toggle_swap()
        self.session.click_tile(0, 0)

        self.assertTrue(self.session.cancel_powerup())
        self.assertIs(self.session.powerup_mode, PowerupMode.NONE)
        self.assertEqual(self.session.selection, ())


class TestDelete(TestCase):
    """Delete powerup."""

    def setUp(self):
        """Sessions with one delete available."""
        self.session = GameSession(config=GameConfig(settle_delay=0, start_delete=1), seed=9)

    def test_delete_value(self):
        """Every tile holding the clicked value disappears."""
        self.session.load(board_with((0, 0, 4), (1, 1, 4), (2, 2, 4), (3, 3, 8)))
        self.assertTrue(self.session.toggle_delete())
        self.assertTrue(self.session.click_tile(1, 1))

        np.testing.assert_array_equal(self.session.board, board_with((3, 3, 8)))
        self.assertEqual(self.session.remaining(PowerupKind.DELETE), 0)
        self.assertIs(self.session.powerup_mode, PowerupMode.NONE)
        self.assertEqual(self.session.history_size, 1)

    def test_delete_everything_respawns(self):
        """Deleting the last tiles spawns two new ones."""
        self.session.load(board_with((0, 0, 2), (3, 3, 2)))
        self.session.toggle_delete()
        self.session.click_tile(0, 0)

        board = self.session.board
        self.assertEqual(np.count_nonzero(board), 2)
        self.assertFalse(self.session.over)

    def test_delete_unblocks_board(self):
        """Deleting tiles from a finished board resumes the game."""
        self.session.load(np.array([[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [4, 2, 4, 2]]))
        self.assertTrue(self.session.over)

        self.session.toggle_delete()
        self.assertTrue(self.session.click_tile(0, 0))

        self.assertFalse(self.session.over)
        self.assertIs(self.session.status, SessionStatus.ACTIVE)
        self.assertEqual(np.count_nonzero(self.session.board), 8)

    def test_no_delete_left(self):
        """Without remaining uses delete mode is unavailable."""
        session = GameSession(config=FAST)
        session.load(board_with((0, 0, 2)))
        self.assertFalse(session.toggle_delete())
        self.assertFalse(session.click_tile(0, 0))

    def test_switch_mode(self):
        """Entering delete mode replaces swap mode."""
        self.session.load(board_with((0, 0, 2), (0, 1, 4)))
        self.session.toggle_swap()
        self.session.click_tile(0, 0)
        self.session.toggle_delete()

        self.assertIs(self.session.powerup_mode, PowerupMode.DELETE)
        self.assertEqual(self.session.selection, ())


class TestBestScore(TestCase):
    """Best score persistence."""

    def test_saved_when_beaten(self):
        """A higher score is written to the store."""
        store = MemoryStore()
        session = GameSession(config=FAST, store=store, seed=1)
        session.load(board_with((0, 0, 2), (0, 1, 2)))
        session.move(Direction.LEFT)

        self.assertEqual(session.best_score, 4)
        self.assertEqual(store.get(BEST_SCORE_KEY), "4")

    def test_loaded_from_store(self):
        """A saved best score is kept across sessions and not lowered."""
        store = MemoryStore({BEST_SCORE_KEY: "100"})
        session = GameSession(config=FAST, store=store, seed=1)
        session.load(board_with((0, 0, 2), (0, 1, 2)))
        session.move(Direction.LEFT)

        self.assertEqual(session.best_score, 100)
        self.assertEqual(store.get(BEST_SCORE_KEY), "100")

    def test_load_does_not_save(self):
        """The score of a loaded position is not a best score."""
        store = MemoryStore()
        session = GameSession(config=FAST, store=store, seed=1)
        session.load(board_with((0, 0, 2), (0, 1, 2)), score=900)

        self.assertEqual(session.best_score, 0)
        self.assertIsNone(store.get(BEST_SCORE_KEY))

        # ##>: The next move reports the running score.
        session.move(Direction.LEFT)
        self.assertEqual(session.best_score, 904)
        self.assertEqual(store.get(BEST_SCORE_KEY), "904")

    def test_malformed_value(self):
        """An unreadable saved value counts as no best score."""
        session = GameSession(config=FAST, store=MemoryStore({BEST_SCORE_KEY: "abc"}))
        self.assertEqual(session.best_score, 0)

    def test_unavailable_store(self):
        """A broken store never interferes with the game."""
        session = GameSession(config=FAST, store=BrokenStore(), seed=1)
        session.load(board_with((0, 0, 2), (0, 1, 2)))

        self.assertTrue(session.move(Direction.LEFT).changed)
        self.assertEqual(session.best_score, 4)


if __name__ == "__main__":
    main()
