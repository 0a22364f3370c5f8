#!/usr/bin/env python3
"""
Puzzle Storage Manager
======================

Stores and retrieves CAPTCHA puzzles on the local filesystem. Same API as
PuzzleStoreSupabase; used for development and tests.

Storage structure:
    puzzles/
    ├── puzzles.json       # All puzzle rows (snake_case, as in Supabase)
    └── images/
        ├── 3f1c...e9.jpg  # Uploaded images, content-addressed names
        └── ...
"""

import json
import threading
from pathlib import Path
from datetime import datetime, timezone


class PuzzleStore:
    def __init__(self, base_path='puzzles', image_base_url='http://localhost:8080/images'):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.images_path = self.base_path / 'images'
        self.images_path.mkdir(exist_ok=True)
        self.puzzles_file = self.base_path / 'puzzles.json'
        self.image_base_url = image_base_url.rstrip('/')
        self._lock = threading.Lock()

    def _load(self):
        if not self.puzzles_file.exists():
            return {'next_id': 1, 'puzzles': []}
        with open(self.puzzles_file, 'r') as f:
            return json.load(f)

    def _save(self, data):
        tmp_file = self.puzzles_file.with_suffix('.tmp')
        with open(tmp_file, 'w') as f:
            json.dump(data, f, indent=2)
        tmp_file.replace(self.puzzles_file)

    def list_puzzles(self):
        """
        List all puzzles.

        Returns:
            List of puzzle rows sorted by weekday
        """
        with self._lock:
            puzzles = self._load()['puzzles']
        return sorted(puzzles, key=lambda p: p['weekday'])

    def get_puzzle(self, puzzle_id):
        with self._lock:
            for puzzle in self._load()['puzzles']:
                if puzzle['id'] == puzzle_id:
                    return puzzle
        return None

    def get_puzzle_for_weekday(self, weekday):
        with self._lock:
            for puzzle in self._load()['puzzles']:
                if puzzle['weekday'] == weekday:
                    return puzzle
        return None

    def upsert_puzzle_for_weekday(self, record):
        """
        Insert a puzzle, or overwrite the one already in its weekday slot.

        Lookup and write happen under one lock, so two saves for the same
        weekday cannot both insert.

        Returns:
            The stored row
        """
        with self._lock:
            data = self._load()

            for puzzle in data['puzzles']:
                if puzzle['weekday'] == record['weekday']:
                    puzzle.update(record)
                    self._save(data)
                    return dict(puzzle)

            puzzle = {
                'id': data['next_id'],
                'created_at': datetime.now(timezone.utc).isoformat(),
            }
            puzzle.update(record)
            data['next_id'] += 1
            data['puzzles'].append(puzzle)
            self._save(data)
            return dict(puzzle)

    def update_puzzle(self, puzzle_id, fields):
        """Update an existing puzzle. Returns the updated row, or None if no such id."""
        with self._lock:
            data = self._load()
            for puzzle in data['puzzles']:
                if puzzle['id'] == puzzle_id:
                    puzzle.update(fields)
                    self._save(data)
                    return dict(puzzle)
        return None

    def delete_puzzle(self, puzzle_id):
        """Delete a puzzle from storage."""
        with self._lock:
            data = self._load()
            remaining = [p for p in data['puzzles'] if p['id'] != puzzle_id]
            if len(remaining) == len(data['puzzles']):
                return False
            data['puzzles'] = remaining
            self._save(data)
        return True

    # Image storage

    def upload_image(self, path, data, content_type):
        """Write image bytes under images/. Overwrites an existing file of the same name."""
        target = self.images_path / Path(path).name
        with open(target, 'wb') as f:
            f.write(data)
        return target.name

    def get_public_url(self, path):
        return f"{self.image_base_url}/{path}"
