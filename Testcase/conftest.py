"""
Shared fixtures: a local file store in tmp_path, the puzzle service over
it, and a Flask app/test client wired to the same store.
"""

import io
import os
import sys

import pytest
from PIL import Image

# Add parent directory to path so the server modules import
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from captcha_server import create_app
from puzzle_service import PuzzleService
from puzzle_store import PuzzleStore

IMAGE_BASE_URL = 'http://localhost/images'


@pytest.fixture
def store(tmp_path):
    return PuzzleStore(tmp_path / 'puzzles', image_base_url=IMAGE_BASE_URL)


@pytest.fixture
def service(store):
    return PuzzleService(store)


@pytest.fixture
def app(store):
    app = create_app(store)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def png_bytes():
    """A small valid PNG image."""
    buf = io.BytesIO()
    Image.new('RGB', (30, 30), (200, 30, 30)).save(buf, format='PNG')
    return buf.getvalue()


def make_puzzle(weekday=3, tiles=None, description='a traffic light'):
    """Wire-form create payload."""
    return {
        'weekday': weekday,
        'imageUrl': f'https://example.com/day{weekday}.jpg',
        'targetDescription': description,
        'correctTiles': [0, 4, 8] if tiles is None else tiles,
    }
