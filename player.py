"""
Player Flow
===========

Resolves today's puzzle and checks a player's tile selection.

The backend is anything with the PuzzleService surface: the in-process
service used by the web pages, or PuzzleClient talking to a remote API.
"""

from datetime import datetime

from captcha_errors import CaptchaError, PuzzleNotFound
from tile_grid import TileGrid, tiles_match

SUCCESS_OVERLAY_SECONDS = 5
INCORRECT_MESSAGE = 'Incorrect selection. Please try again.'
LOAD_FAILED_MESSAGE = 'Failed to load puzzle'


def current_weekday(now=None):
    """Local-clock weekday, 0=Sunday..6=Saturday."""
    now = now or datetime.now()
    return (now.weekday() + 1) % 7


def load_todays_puzzle(backend, weekday, toasts=None):
    """
    Find the puzzle to show for a weekday.

    Falls back to the first puzzle of the unfiltered list when the slot is
    empty, so the page is never blank while any puzzle exists.

    Args:
        backend: PuzzleService or PuzzleClient
        weekday: 0=Sunday..6=Saturday
        toasts: optional list that receives an error toast on failure

    Returns:
        Wire-form puzzle dict, or None when no puzzle is available
    """
    try:
        try:
            return backend.get_puzzle_for_weekday(weekday)
        except PuzzleNotFound:
            puzzles = backend.list_puzzles()
            return puzzles[0] if puzzles else None
    except CaptchaError as e:
        print(f"Error fetching puzzle: {e}")
        if toasts is not None:
            toasts.append({'level': 'error', 'message': LOAD_FAILED_MESSAGE})
        return None


class PlayerSession:
    """One player's attempts at one puzzle."""

    def __init__(self, puzzle, attempts=0):
        self.puzzle = puzzle
        self.attempts = attempts
        self.show_success = False
        self.toasts = []

    @property
    def available(self):
        return self.puzzle is not None

    def tile_grid(self, selected=None):
        return TileGrid(
            self.puzzle['imageUrl'],
            self.puzzle['targetDescription'],
            admin_mode=False,
            initial_selected=selected,
            on_selection=self.verify,
        )

    def verify(self, selected):
        """
        Compare a submitted selection with the stored answer.

        Every call counts as an attempt. A wrong answer only adds a toast,
        the player can retry as often as they like.
        """
        if self.puzzle is None:
            return False

        self.attempts += 1

        if tiles_match(selected, self.puzzle['correctTiles']):
            self.show_success = True
            return True

        self.toasts.append({'level': 'error', 'message': INCORRECT_MESSAGE})
        return False

    def dismiss_success(self):
        self.show_success = False
