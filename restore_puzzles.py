#!/usr/bin/env python3
"""
Restore puzzles from a backup JSON file to the configured store.

Reads backups/puzzles.json (or --input) and saves each puzzle into its
weekday slot, overwriting whatever is there. Ids and creation times are
assigned by the store, not taken from the backup.

Usage:
    python3 restore_puzzles.py
    python3 restore_puzzles.py --dry-run
    python3 restore_puzzles.py --input backups/2026-10-19.json
"""

import json
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from backup_puzzles import DEFAULT_BACKUP
from captcha_errors import ValidationError
from puzzle_service import PuzzleService, WEEKDAY_NAMES, validate_puzzle
from puzzle_store_supabase import get_puzzle_store
from settings import load_env


def restore_puzzles(service, backup_path=DEFAULT_BACKUP, dry_run=False):
    """
    Restore every puzzle in the backup file.

    Returns:
        (restored, errors) counts
    """
    with open(backup_path, 'r') as f:
        data = json.load(f)

    if 'puzzles' not in data:
        raise KeyError(f"{backup_path} missing 'puzzles'. Keys: {list(data.keys())}")

    restored = 0
    errors = 0
    for puzzle in data['puzzles']:
        try:
            record = validate_puzzle(puzzle)
        except ValidationError as e:
            label = puzzle.get('id') if isinstance(puzzle, dict) else repr(puzzle)
            print(f"  [ERROR] puzzle {label}: {e}")
            errors += 1
            continue

        day = WEEKDAY_NAMES[record['weekday']]
        if dry_run:
            print(f"  [DRY RUN] would restore {day}: {puzzle['targetDescription']}")
        else:
            service.create_puzzle(puzzle)
            print(f"  Restored {day}: {puzzle['targetDescription']}")
        restored += 1

    return restored, errors


def main():
    dry_run = '--dry-run' in sys.argv

    backup_path = DEFAULT_BACKUP
    if '--input' in sys.argv:
        idx = sys.argv.index('--input')
        if idx + 1 >= len(sys.argv):
            print("ERROR: --input requires a path")
            return 1
        backup_path = sys.argv[idx + 1]

    if not os.path.exists(backup_path):
        print(f"ERROR: No backup found at {backup_path}")
        return 1

    load_env()
    service = PuzzleService(get_puzzle_store())
    restored, errors = restore_puzzles(service, backup_path, dry_run=dry_run)

    print(f"{'Would restore' if dry_run else 'Restored'} {restored} puzzles, {errors} errors")
    return 0 if errors == 0 else 1


if __name__ == '__main__':
    sys.exit(main())
