#!/usr/bin/env python3
"""
Puzzle Storage Manager - Supabase Backend
==========================================

Stores and retrieves CAPTCHA puzzles using Supabase PostgreSQL, and puzzle
images using Supabase Storage. Maintains same API as the file-based
PuzzleStore.

Tables:
    puzzles - one row per weekday (image, target description, correct tiles)

Buckets:
    puzzles - uploaded puzzle images, public read
"""

from typing import Optional, Dict, List

from postgrest.exceptions import APIError
from supabase import create_client, Client

from captcha_errors import StoreError
from settings import get_settings

PUZZLE_COLUMNS = 'id, created_at, weekday, image_url, target_description, correct_tiles'


class PuzzleStoreSupabase:
    """Supabase-backed puzzle storage with same API as file-based PuzzleStore."""

    def __init__(self, url: str = None, key: str = None, bucket: str = 'puzzles',
                 client: Client = None):
        if client is None:
            if not url or not key:
                raise ValueError(
                    "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) "
                    "must be set in environment")
            client = create_client(url, key)
        self.client = client
        self.bucket = bucket

    def _execute(self, query, action: str):
        """Run a query builder, re-raising PostgREST failures as StoreError."""
        try:
            return query.execute()
        except APIError as e:
            raise StoreError(f"Failed to {action}: {e.message}") from e

    def list_puzzles(self) -> List[Dict]:
        """All puzzles ordered by weekday ascending."""
        result = self._execute(
            self.client.table('puzzles').select(PUZZLE_COLUMNS).order('weekday'),
            'list puzzles')
        return result.data or []

    def get_puzzle(self, puzzle_id: int) -> Optional[Dict]:
        result = self._execute(
            self.client.table('puzzles').select(PUZZLE_COLUMNS).eq('id', puzzle_id).limit(1),
            f'fetch puzzle {puzzle_id}')
        return result.data[0] if result.data else None

    def get_puzzle_for_weekday(self, weekday: int) -> Optional[Dict]:
        result = self._execute(
            self.client.table('puzzles').select(PUZZLE_COLUMNS).eq('weekday', weekday).limit(1),
            f'fetch puzzle for weekday {weekday}')
        return result.data[0] if result.data else None

    def upsert_puzzle_for_weekday(self, record: Dict) -> Dict:
        """
        Insert a puzzle, or overwrite the one already in its weekday slot.

        Relies on the unique constraint on puzzles.weekday
        (migrations/001_create_puzzles.sql) so the write is a single
        statement.

        Args:
            record: Dict with weekday, image_url, target_description, correct_tiles

        Returns:
            The stored row
        """
        result = self._execute(
            self.client.table('puzzles').upsert(record, on_conflict='weekday'),
            f"save puzzle for weekday {record.get('weekday')}")

        if not result.data:
            raise StoreError("Failed to save puzzle: no row returned")

        return result.data[0]

    def update_puzzle(self, puzzle_id: int, fields: Dict) -> Optional[Dict]:
        """Update an existing puzzle. Returns the updated row, or None if no such id."""
        result = self._execute(
            self.client.table('puzzles').update(fields).eq('id', puzzle_id),
            f'update puzzle {puzzle_id}')
        return result.data[0] if result.data else None

    def delete_puzzle(self, puzzle_id: int) -> bool:
        """Delete a puzzle from storage."""
        result = self._execute(
            self.client.table('puzzles').delete().eq('id', puzzle_id),
            f'delete puzzle {puzzle_id}')
        return bool(result.data)

    # Image storage

    def upload_image(self, path: str, data: bytes, content_type: str) -> str:
        """
        Upload image bytes to the puzzle bucket.

        An existing object with the same path is overwritten.

        Returns:
            The stored object path
        """
        try:
            response = self.client.storage.from_(self.bucket).upload(
                path=path,
                file=data,
                file_options={'content-type': content_type, 'upsert': 'true'},
            )
        except Exception as e:
            raise StoreError(f"Upload failed: {e}") from e

        # Older storage clients return an httpx.Response without .path
        return getattr(response, 'path', None) or path

    def get_public_url(self, path: str) -> str:
        url = self.client.storage.from_(self.bucket).get_public_url(path)
        if not url:
            raise StoreError("Failed to get public URL")
        return url.rstrip('?')


# Factory function: PUZZLE_STORE picks the backend, no silent fallback
def get_puzzle_store(settings: Dict = None):
    """Get the configured puzzle store instance. Raises if not configured."""
    settings = settings or get_settings()
    store = settings['store']

    if store == 'local':
        from puzzle_store import PuzzleStore
        return PuzzleStore(settings['local_path'],
                           image_base_url=settings['local_image_base_url'])

    if store != 'supabase':
        raise ValueError(f"Unknown PUZZLE_STORE '{store}'. Expected 'supabase' or 'local'")

    if not settings['supabase_url']:
        raise ValueError("SUPABASE_URL not set in environment. Check .env file.")
    return PuzzleStoreSupabase(settings['supabase_url'], settings['supabase_key'],
                               bucket=settings['bucket'])
