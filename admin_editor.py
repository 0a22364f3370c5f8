"""
Admin Editor
============

State machine behind the admin page: one puzzle per weekday, created,
edited and deleted through the puzzle backend.

States:
    idle               - browsing the weekday list
    editing-new        - weekday chosen, no puzzle in that slot yet
    editing-existing   - existing puzzle loaded into the draft
    uploading-image    - image upload in flight, returns to the editing state

Failures never leave the editor in a broken state: they become toasts.
"""

from captcha_errors import CaptchaError, PuzzleNotFound
from player import LOAD_FAILED_MESSAGE
from puzzle_service import WEEKDAY_NAMES
from settings import IMAGE_TOO_LARGE_MESSAGE, MAX_IMAGE_BYTES
from tile_grid import TileGrid

IDLE = 'idle'
EDITING_NEW = 'editing-new'
EDITING_EXISTING = 'editing-existing'
UPLOADING_IMAGE = 'uploading-image'


def empty_draft(weekday=0):
    return {
        'weekday': weekday,
        'imageUrl': '',
        'targetDescription': '',
        'correctTiles': [],
    }


class AdminEditor:
    def __init__(self, backend):
        self.backend = backend
        self.puzzles = []
        self.state = IDLE
        self.draft = empty_draft()
        self.editing_id = None
        self.toasts = []

    # -- helpers -------------------------------------------------------

    def _toast(self, level, message):
        self.toasts.append({'level': level, 'message': message})

    def _find(self, puzzle_id=None, weekday=None):
        for puzzle in self.puzzles:
            if puzzle_id is not None and puzzle['id'] == puzzle_id:
                return puzzle
            if weekday is not None and puzzle['weekday'] == weekday:
                return puzzle
        return None

    def _reset(self):
        self.state = IDLE
        self.draft = empty_draft()
        self.editing_id = None

    @property
    def editing(self):
        return self.state in (EDITING_NEW, EDITING_EXISTING)

    def weekday_slots(self):
        """(index, name, puzzle or None) for every day of the week."""
        return [(i, name, self._find(weekday=i)) for i, name in enumerate(WEEKDAY_NAMES)]

    # -- transitions ---------------------------------------------------

    def load(self):
        try:
            self.puzzles = self.backend.list_puzzles()
        except CaptchaError as e:
            print(f"Error loading puzzles: {e}")
            self._toast('error', 'Failed to load puzzles')
            return False
        return True

    def select_weekday(self, weekday):
        """Start editing a weekday slot; loads the existing puzzle if there is one."""
        existing = self._find(weekday=weekday)
        if existing:
            return self.edit(existing['id'])
        self.state = EDITING_NEW
        self.editing_id = None
        self.draft = empty_draft(weekday)
        return True

    def edit(self, puzzle_id):
        puzzle = self._find(puzzle_id=puzzle_id)
        if puzzle is None:
            try:
                puzzle = self.backend.get_puzzle(puzzle_id)
            except CaptchaError as e:
                print(f"Error loading puzzle {puzzle_id}: {e}")
                self._toast('error', LOAD_FAILED_MESSAGE)
                return False

        self.state = EDITING_EXISTING
        self.editing_id = puzzle['id']
        self.draft = {
            'weekday': puzzle['weekday'],
            'imageUrl': puzzle['imageUrl'],
            'targetDescription': puzzle['targetDescription'],
            'correctTiles': list(puzzle['correctTiles']),
        }
        return True

    def restore(self, draft, editing_id=None):
        """Resume an edit from a submitted form (the web pages are stateless)."""
        self.draft = dict(empty_draft(), **draft)
        self.editing_id = editing_id
        self.state = EDITING_EXISTING if editing_id is not None else EDITING_NEW

    def upload_image(self, filename, data, content_type):
        """Upload a new image for the draft. Size is checked before anything is sent."""
        if len(data) > MAX_IMAGE_BYTES:
            self._toast('error', IMAGE_TOO_LARGE_MESSAGE)
            return False

        previous_state = self.state
        self.state = UPLOADING_IMAGE
        try:
            result = self.backend.upload_image(filename, data, content_type)
        except CaptchaError as e:
            print(f"Upload error: {e}")
            self._toast('error', f"Upload failed: {e}")
            return False
        finally:
            self.state = previous_state

        self.draft['imageUrl'] = result['url']
        self._toast('success', 'Image uploaded successfully')
        return True

    def set_tiles(self, tiles):
        self.draft['correctTiles'] = list(tiles)

    def tile_grid(self):
        """Admin-mode grid; every toggle writes straight into the draft."""
        return TileGrid(
            self.draft['imageUrl'],
            self.draft['targetDescription'] or 'Please provide a description',
            admin_mode=True,
            initial_selected=self.draft['correctTiles'],
            on_selection=self.set_tiles,
        )

    def save(self):
        """Create or update the draft's puzzle, then refresh the list and go idle."""
        draft = self.draft
        if not draft['imageUrl'] or not draft['targetDescription'] or not draft['correctTiles']:
            self._toast('error', 'Please fill in all fields and select at least one correct tile')
            return False

        try:
            if self.editing_id is not None:
                self.backend.update_puzzle(self.editing_id, draft)
                self._toast('success', 'Puzzle updated successfully')
            else:
                # The API upserts by weekday, so this also covers an occupied slot
                self.backend.create_puzzle(draft)
                self._toast('success', 'Puzzle created successfully')
        except CaptchaError as e:
            print(f"Save puzzle error: {e}")
            self._toast('error', f"Error saving puzzle: {e}")
            return False

        self.load()
        self._reset()
        return True

    def cancel(self):
        self._reset()

    def delete(self, puzzle_id, confirmed=False):
        """Delete a puzzle once the admin has confirmed."""
        if not confirmed:
            return False

        try:
            self.backend.delete_puzzle(puzzle_id)
        except PuzzleNotFound:
            self._toast('error', 'Puzzle not found')
            return False
        except CaptchaError as e:
            print(f"Delete puzzle error: {e}")
            self._toast('error', 'Error deleting puzzle')
            return False

        self.puzzles = [p for p in self.puzzles if p['id'] != puzzle_id]
        if self.editing_id == puzzle_id:
            self._reset()
        self._toast('success', 'Puzzle deleted successfully')
        return True
