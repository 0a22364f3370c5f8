#!/usr/bin/env python3
"""
Backup all puzzles from the configured store to a JSON file.

Dumps every puzzle (API field names) into backups/puzzles.json, or the
path given with --output. Images stay in storage; only their URLs are kept.

Usage:
    python3 backup_puzzles.py
    python3 backup_puzzles.py --output backups/2026-10-19.json
"""

import json
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from puzzle_service import PuzzleService
from puzzle_store_supabase import get_puzzle_store
from settings import load_env

DEFAULT_BACKUP = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'backups', 'puzzles.json')


def backup_puzzles(service, backup_path=DEFAULT_BACKUP):
    """Write all puzzles to backup_path. Returns the number of puzzles backed up."""
    puzzles = service.list_puzzles()

    os.makedirs(os.path.dirname(os.path.abspath(backup_path)), exist_ok=True)
    with open(backup_path, 'w') as f:
        json.dump({"puzzles": puzzles}, f, indent=2)

    print(f"Backed up {len(puzzles)} puzzles to {backup_path}")
    return len(puzzles)


def main():
    backup_path = DEFAULT_BACKUP
    if '--output' in sys.argv:
        idx = sys.argv.index('--output')
        if idx + 1 >= len(sys.argv):
            print("ERROR: --output requires a path")
            return 1
        backup_path = sys.argv[idx + 1]

    load_env()
    service = PuzzleService(get_puzzle_store())
    backup_puzzles(service, backup_path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
