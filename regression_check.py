#!/usr/bin/env python3
"""
Puzzle API Regression Check
===========================

Exercises every puzzle API endpoint against a running server:
create (upsert) for a weekday, fetch by weekday and id, verify right and
wrong selections, update tiles, delete, and confirm the 404s.

Whatever puzzle already occupies the weekday under test is put back
afterwards.

Usage:
    python3 regression_check.py
    python3 regression_check.py --server http://127.0.0.1:8080 --weekday 6

Requires: a running captcha_server.py instance.
"""

import sys

from captcha_errors import CaptchaError, PuzzleNotFound, ValidationError
from puzzle_client import PuzzleClient, DEFAULT_SERVER

DEFAULT_WEEKDAY = 6
IMAGE_URL = "https://example.com/regression-check.jpg"


# ---------------------------------------------------------------------------
# Checks - each returns (ok, message)
# ---------------------------------------------------------------------------

def check_create_and_fetch(client, weekday):
    submitted = {
        'weekday': weekday,
        'imageUrl': IMAGE_URL,
        'targetDescription': 'regression check',
        'correctTiles': [0, 4, 8],
    }
    created = client.create_puzzle(submitted)
    fetched = client.get_puzzle_for_weekday(weekday)

    for field, value in submitted.items():
        if fetched.get(field) != value:
            return False, f"{field}: expected {value!r}, got {fetched.get(field)!r}"
    if fetched['id'] != created['id']:
        return False, f"id mismatch: created {created['id']}, fetched {fetched['id']}"
    if client.get_puzzle(created['id']) != fetched:
        return False, "GET /puzzles/<id> differs from GET /puzzles?weekday="
    return True, ""


def check_upsert(client, weekday):
    first = client.get_puzzle_for_weekday(weekday)
    second = client.create_puzzle({
        'weekday': weekday,
        'imageUrl': IMAGE_URL,
        'targetDescription': 'regression check (second post)',
        'correctTiles': [0, 4, 8],
    })
    same_day = [p for p in client.list_puzzles() if p['weekday'] == weekday]
    if len(same_day) != 1:
        return False, f"expected 1 puzzle for weekday {weekday}, found {len(same_day)}"
    if second['id'] != first['id'] or same_day[0]['targetDescription'] != 'regression check (second post)':
        return False, "second POST did not overwrite the first"
    return True, ""


def check_verify(client, weekday):
    puzzle = client.get_puzzle_for_weekday(weekday)
    if not client.verify_selection(puzzle['id'], [4, 0, 8]):
        return False, "[4, 0, 8] rejected for correct tiles [0, 4, 8]"
    if client.verify_selection(puzzle['id'], [4, 0, 7]):
        return False, "[4, 0, 7] accepted for correct tiles [0, 4, 8]"
    return True, ""


def check_validation(client, weekday):
    for tiles in ([], [9], [1, 1]):
        try:
            client.create_puzzle({'weekday': weekday, 'imageUrl': IMAGE_URL,
                                  'targetDescription': 'x', 'correctTiles': tiles})
        except ValidationError:
            continue
        return False, f"correctTiles={tiles} was accepted"
    return True, ""


def check_update(client, weekday):
    puzzle = client.get_puzzle_for_weekday(weekday)
    client.update_puzzle(puzzle['id'], {
        'imageUrl': IMAGE_URL,
        'targetDescription': puzzle['targetDescription'],
        'correctTiles': [2, 3],
    })
    updated = client.get_puzzle_for_weekday(weekday)
    if updated['correctTiles'] != [2, 3]:
        return False, f"expected tiles [2, 3] after update, got {updated['correctTiles']}"
    if updated['weekday'] != weekday:
        return False, "update changed the weekday"
    return True, ""


def check_delete(client, weekday):
    puzzle = client.get_puzzle_for_weekday(weekday)
    client.delete_puzzle(puzzle['id'])
    try:
        client.delete_puzzle(puzzle['id'])
    except PuzzleNotFound:
        pass
    else:
        return False, "deleting a missing id did not return 404"
    try:
        client.get_puzzle_for_weekday(weekday)
    except PuzzleNotFound:
        return True, ""
    return False, "puzzle still present after delete"


ALL_CHECKS = [
    ("Create and fetch", check_create_and_fetch),
    ("Upsert by weekday", check_upsert),
    ("Verify selection", check_verify),
    ("Validation", check_validation),
    ("Update", check_update),
    ("Delete", check_delete),
]


def run_checks(server, weekday):
    client = PuzzleClient(server)
    passed = 0
    failed = 0

    print("=== Puzzle API Regression Check ===")
    print(f"Server: {server}  Weekday: {weekday}")
    print()

    try:
        original = client.get_puzzle_for_weekday(weekday)
        print(f"Saving existing puzzle {original['id']} for weekday {weekday}")
    except PuzzleNotFound:
        original = None

    for name, check in ALL_CHECKS:
        try:
            ok, msg = check(client, weekday)
        except CaptchaError as e:
            ok, msg = False, f"{type(e).__name__}: {e}"
        if ok:
            print(f"  [PASS] {name}")
            passed += 1
        else:
            print(f"  [FAIL] {name}: {msg}")
            failed += 1

    if original is not None:
        client.create_puzzle(original)
        print(f"\nRestored original puzzle for weekday {weekday}")

    print()
    print("=== Summary ===")
    print(f"Passed: {passed}/{passed + failed}")
    return failed == 0


if __name__ == "__main__":
    server = DEFAULT_SERVER
    weekday = DEFAULT_WEEKDAY

    args = sys.argv[1:]
    for i, arg in enumerate(args):
        if arg == "--server" and i + 1 < len(args):
            server = args[i + 1]
        elif arg.startswith("--server="):
            server = arg.split("=", 1)[1]
        elif arg == "--weekday" and i + 1 < len(args):
            weekday = int(args[i + 1])

    # Quick connectivity check
    try:
        PuzzleClient(server, timeout=5).status()
    except CaptchaError as e:
        print(f"Cannot connect to server at {server}: {e}")
        print("Make sure captcha_server.py is running.")
        sys.exit(1)

    success = run_checks(server, weekday)
    sys.exit(0 if success else 1)
