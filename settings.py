"""
Settings
========

Loads .env and exposes the environment configuration used by the server,
the store backends and the maintenance scripts.

Environment:
    PUZZLE_STORE              - 'supabase' (default) or 'local'
    SUPABASE_URL              - project URL
    SUPABASE_SERVICE_ROLE_KEY - preferred key (falls back to SUPABASE_ANON_KEY)
    PUZZLE_BUCKET             - storage bucket for puzzle images
    LOCAL_STORE_PATH          - directory for the local store
    LOCAL_IMAGE_BASE_URL      - public base URL for local images
    PORT                      - server port
"""

import os
import subprocess

from dotenv import load_dotenv

_script_dir = os.path.dirname(os.path.abspath(__file__))

MAX_IMAGE_BYTES = 10 * 1024 * 1024
IMAGE_TOO_LARGE_MESSAGE = "File size must be less than 10MB"
MAX_CONTENT_LENGTH = 16 * 1024 * 1024


def _find_dotenv():
    """Find .env file: local dir, then main git repo root."""
    local_env = os.path.join(_script_dir, '.env')
    if os.path.isfile(local_env):
        return local_env
    # Git worktrees don't share the main repo's .env
    try:
        main_tree = subprocess.check_output(
            ['git', 'worktree', 'list', '--porcelain'],
            cwd=_script_dir, stderr=subprocess.DEVNULL
        ).decode()
    except (OSError, subprocess.CalledProcessError):
        return None
    for line in main_tree.splitlines():
        if line.startswith('worktree '):
            candidate = os.path.join(line.split(' ', 1)[1], '.env')
            if os.path.isfile(candidate):
                return candidate
    return None


def load_env():
    """Load .env into os.environ if one exists. Returns the path or None."""
    env_path = _find_dotenv()
    if env_path:
        load_dotenv(env_path)
        print(f"Loaded .env from {env_path}")
    return env_path


def get_settings():
    """Snapshot of the configuration as a plain dict."""
    return {
        'store': os.environ.get('PUZZLE_STORE', 'supabase').lower(),
        'supabase_url': os.environ.get('SUPABASE_URL', ''),
        'supabase_key': (os.environ.get('SUPABASE_SERVICE_ROLE_KEY')
                         or os.environ.get('SUPABASE_ANON_KEY', '')),
        'bucket': os.environ.get('PUZZLE_BUCKET', 'puzzles'),
        'local_path': os.environ.get('LOCAL_STORE_PATH', 'puzzles'),
        'local_image_base_url': os.environ.get(
            'LOCAL_IMAGE_BASE_URL', 'http://localhost:8080/images'),
        'port': int(os.environ.get('PORT', '8080')),
    }
