"""
Puzzle Service
==============

Domain layer between the HTTP routes and the store backends.

Everything going in and out of this module is in wire form (camelCase), the
store backends only ever see snake_case rows. The translation here is the
contract the player and admin pages depend on; keep it exact.

    store row                    wire
    ---------                    ----
    id                   <-->    id
    created_at           <-->    createdAt
    weekday              <-->    weekday
    image_url            <-->    imageUrl
    target_description   <-->    targetDescription
    correct_tiles        <-->    correctTiles
"""

import hashlib
import io
import os

from PIL import Image

from captcha_errors import PuzzleNotFound, StoreError, ValidationError
from settings import IMAGE_TOO_LARGE_MESSAGE, MAX_IMAGE_BYTES
from tile_grid import TILE_COUNT, tiles_match

FIELD_MAP = {
    'id': 'id',
    'created_at': 'createdAt',
    'weekday': 'weekday',
    'image_url': 'imageUrl',
    'target_description': 'targetDescription',
    'correct_tiles': 'correctTiles',
}
REVERSE_FIELD_MAP = {v: k for k, v in FIELD_MAP.items()}

WEEKDAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday',
                 'Thursday', 'Friday', 'Saturday']

# Pillow format name -> file extension where they differ
FORMAT_EXTENSIONS = {'JPEG': 'jpg', 'TIFF': 'tif'}


def to_client(row):
    """Translate a store row to its wire form."""
    return {FIELD_MAP[key]: value for key, value in row.items() if key in FIELD_MAP}


def to_store(payload):
    """Translate wire fields to store columns. Unknown keys are dropped."""
    return {REVERSE_FIELD_MAP[key]: value for key, value in payload.items()
            if key in REVERSE_FIELD_MAP}


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def parse_weekday(value):
    """Accept an int or an ASCII digit string; raise ValidationError unless it is 0-6."""
    if isinstance(value, str):
        digits = value.strip().lstrip('-')
        if digits.isascii() and digits.isdigit():
            value = int(value.strip())
    if not _is_int(value) or not 0 <= value <= 6:
        raise ValidationError(f"weekday must be an integer 0-6, got {value!r}")
    return value


def validate_tiles(tiles, field='correctTiles'):
    """Check a tile-index list: non-empty, unique ints within the grid."""
    if not isinstance(tiles, list) or not tiles:
        raise ValidationError(f"{field} must be a non-empty list of tile indices")
    for tile in tiles:
        if not _is_int(tile) or not 0 <= tile < TILE_COUNT:
            raise ValidationError(f"{field} values must be integers 0-{TILE_COUNT - 1}, got {tile!r}")
    if len(set(tiles)) != len(tiles):
        raise ValidationError(f"{field} must not contain duplicates")
    return list(tiles)


def validate_puzzle(payload, require_weekday=True):
    """
    Validate a create/update body.

    Args:
        payload: wire-form dict from the request body
        require_weekday: False for updates, where weekday is ignored

    Returns:
        Store record (snake_case) with the validated fields
    """
    if not isinstance(payload, dict):
        raise ValidationError("Missing required fields")

    record = {}
    if require_weekday:
        if payload.get('weekday') is None:
            raise ValidationError("Missing required fields: weekday")
        record['weekday'] = parse_weekday(payload['weekday'])

    for field in ('imageUrl', 'targetDescription'):
        value = payload.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"Missing required fields: {field}")
        record[REVERSE_FIELD_MAP[field]] = value.strip()

    record['correct_tiles'] = validate_tiles(payload.get('correctTiles'))
    return record


def image_object_name(filename, data, image_format):
    """Content-addressed object name: sha256 of the bytes plus an extension."""
    digest = hashlib.sha256(data).hexdigest()
    ext = os.path.splitext(filename or '')[1].lstrip('.').lower()
    if not ext:
        ext = FORMAT_EXTENSIONS.get(image_format, (image_format or 'bin').lower())
    return f"{digest}.{ext}"


class PuzzleService:
    """CRUD, upsert-by-weekday, tile verification and image upload over a store backend."""

    def __init__(self, store):
        self.store = store

    def list_puzzles(self):
        return [to_client(p) for p in self.store.list_puzzles()]

    def get_puzzle(self, puzzle_id):
        puzzle = self.store.get_puzzle(puzzle_id)
        if puzzle is None:
            raise PuzzleNotFound("Puzzle not found")
        return to_client(puzzle)

    def get_puzzle_for_weekday(self, weekday):
        puzzle = self.store.get_puzzle_for_weekday(parse_weekday(weekday))
        if puzzle is None:
            raise PuzzleNotFound("Puzzle not found for this day")
        return to_client(puzzle)

    def create_puzzle(self, payload):
        """Create the puzzle for a weekday, overwriting any puzzle already in that slot."""
        record = validate_puzzle(payload, require_weekday=True)
        return to_client(self.store.upsert_puzzle_for_weekday(record))

    def update_puzzle(self, puzzle_id, payload):
        """Replace image, description and tiles. The weekday never changes."""
        fields = validate_puzzle(payload, require_weekday=False)
        puzzle = self.store.update_puzzle(puzzle_id, fields)
        if puzzle is None:
            raise PuzzleNotFound("Puzzle not found")
        return to_client(puzzle)

    def delete_puzzle(self, puzzle_id):
        if not self.store.delete_puzzle(puzzle_id):
            raise PuzzleNotFound("Puzzle not found")
        return True

    def verify_selection(self, puzzle_id, selected_tiles):
        """True when the selection is exactly the stored tile set, in any order."""
        if not isinstance(selected_tiles, list):
            raise ValidationError("selectedTiles must be a list of tile indices")
        puzzle = self.get_puzzle(puzzle_id)
        return tiles_match(selected_tiles, puzzle['correctTiles'])

    def upload_image(self, filename, data, content_type=None):
        """
        Store an uploaded puzzle image.

        Args:
            filename: original filename, only its extension is kept
            data: raw bytes
            content_type: passed through to storage; derived from the image if empty

        Returns:
            Dict with 'path' (object name) and 'url' (public URL)
        """
        if not data:
            raise ValidationError("No image uploaded")
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationError(IMAGE_TOO_LARGE_MESSAGE)

        try:
            with Image.open(io.BytesIO(data)) as img:
                image_format = img.format
                img.verify()
        except (OSError, SyntaxError, ValueError) as e:
            raise ValidationError(f"Uploaded file is not a valid image: {e}") from e

        content_type = content_type or Image.MIME.get(image_format, 'application/octet-stream')
        path = image_object_name(filename, data, image_format)

        stored_path = self.store.upload_image(path, data, content_type)
        if not stored_path:
            raise StoreError("Upload succeeded but path is missing")

        return {'path': stored_path, 'url': self.store.get_public_url(stored_path)}
