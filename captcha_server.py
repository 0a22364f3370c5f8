#!/usr/bin/env python3
"""
CAPTCHA Web Server
==================

"I'm Not a Robot" tile CAPTCHA. Serves the player page (today's puzzle),
the admin page (one puzzle per weekday) and the JSON puzzle API.

Usage:
    python captcha_server.py

Then open http://localhost:8080 in your browser, or /admin to manage puzzles.
"""

from flask import Flask, render_template, request, jsonify, send_from_directory, abort
from werkzeug.exceptions import RequestEntityTooLarge

from admin_editor import AdminEditor
from captcha_errors import CaptchaError
from player import PlayerSession, current_weekday, load_todays_puzzle, SUCCESS_OVERLAY_SECONDS
from puzzle_routes import puzzles_bp
from puzzle_service import PuzzleService, WEEKDAY_NAMES
from puzzle_store import PuzzleStore
from puzzle_store_supabase import get_puzzle_store
from settings import IMAGE_TOO_LARGE_MESSAGE, MAX_CONTENT_LENGTH, load_env, get_settings
from tile_grid import TILE_COUNT


def _selected_tiles(form):
    """Tile indices ticked in a submitted grid, out-of-range values dropped."""
    return [t for t in form.getlist('tiles', type=int) if 0 <= t < TILE_COUNT]


def _draft_from_form(form):
    """Draft fields from the admin form. Tiles are applied separately."""
    return {
        'weekday': form.get('weekday', default=0, type=int),
        'imageUrl': form.get('image_url', '').strip(),
        'targetDescription': form.get('target_description', '').strip(),
        'correctTiles': [],
    }


def create_app(puzzle_store=None):
    """
    Build the Flask app.

    Args:
        puzzle_store: store backend; the configured one (PUZZLE_STORE) if omitted
    """
    if puzzle_store is None:
        load_env()
        puzzle_store = get_puzzle_store()
    print(f"Using puzzle store: {type(puzzle_store).__name__}")

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
    app.extensions['puzzle_service'] = PuzzleService(puzzle_store)

    app.register_blueprint(puzzles_bp)

    def service():
        return app.extensions['puzzle_service']

    def render_player(session, selected=None):
        grid = session.tile_grid(selected) if session.available else None
        return render_template(
            'index.html',
            session=session,
            grid=grid,
            overlay_seconds=SUCCESS_OVERLAY_SECONDS,
        )

    def render_admin(editor):
        grid = editor.tile_grid() if editor.editing and editor.draft['imageUrl'] else None
        return render_template(
            'admin.html',
            editor=editor,
            grid=grid,
            weekdays=WEEKDAY_NAMES,
        )

    def restored_editor():
        """Rebuild the editor from the submitted form; ticked tiles go through the grid binding."""
        editor = AdminEditor(service())
        editor.load()
        editor.restore(_draft_from_form(request.form),
                       editing_id=request.form.get('editing_id', type=int))
        grid = editor.tile_grid()
        for tile in dict.fromkeys(_selected_tiles(request.form)):
            grid.toggle(tile)
        return editor

    @app.errorhandler(RequestEntityTooLarge)
    def request_too_large(e):
        """Bodies over MAX_CONTENT_LENGTH never reach the upload handlers."""
        if request.path.startswith('/admin'):
            # The form is unreadable, so the draft cannot be restored
            editor = AdminEditor(service())
            editor.load()
            editor.toasts.append({'level': 'error', 'message': IMAGE_TOO_LARGE_MESSAGE})
            return render_admin(editor), 413
        return jsonify({'error': IMAGE_TOO_LARGE_MESSAGE}), 413

    # -- status -----------------------------------------------------------

    @app.route('/status')
    def status():
        """Return server status including storage backend type."""
        store = service().store
        return jsonify({
            'storage_backend': 'local' if isinstance(store, PuzzleStore) else 'supabase',
            'store_type': type(store).__name__,
            'connected': True,
        })

    @app.route('/images/<path:filename>')
    def local_image(filename):
        """Serve uploaded images when running on the local store."""
        store = service().store
        if not isinstance(store, PuzzleStore):
            abort(404)
        return send_from_directory(store.images_path, filename)

    # -- player -----------------------------------------------------------

    @app.route('/')
    def index():
        """Today's puzzle, or any puzzle if today's slot is empty."""
        toasts = []
        puzzle = load_todays_puzzle(service(), current_weekday(), toasts)
        session = PlayerSession(puzzle)
        session.toasts.extend(toasts)
        return render_player(session)

    @app.route('/verify', methods=['POST'])
    def verify():
        """Check the submitted tiles. The attempt count travels with the form."""
        selected = _selected_tiles(request.form)
        attempts = request.form.get('attempts', default=0, type=int)
        puzzle_id = request.form.get('puzzle_id', type=int)

        toasts = []
        try:
            puzzle = service().get_puzzle(puzzle_id)
        except CaptchaError as e:
            # Puzzle went away mid-attempt: show the current one, unverified
            print(f"Error fetching puzzle {puzzle_id}: {e}")
            puzzle = load_todays_puzzle(service(), current_weekday(), toasts)
            session = PlayerSession(puzzle, attempts=attempts)
            session.toasts.extend(toasts)
            return render_player(session)

        session = PlayerSession(puzzle, attempts=attempts)
        session.tile_grid(selected).verify()
        return render_player(session, selected)

    # -- admin ------------------------------------------------------------

    @app.route('/admin')
    def admin():
        editor = AdminEditor(service())
        editor.load()

        edit_id = request.args.get('edit', type=int)
        weekday = request.args.get('weekday', type=int)
        if edit_id is not None:
            editor.edit(edit_id)
        elif weekday is not None and 0 <= weekday < len(WEEKDAY_NAMES):
            editor.select_weekday(weekday)

        return render_admin(editor)

    @app.route('/admin/upload', methods=['POST'])
    def admin_upload():
        editor = restored_editor()
        image_file = request.files.get('image')
        if image_file is None or not image_file.filename:
            editor.toasts.append({'level': 'error', 'message': 'No image selected'})
        else:
            editor.upload_image(image_file.filename, image_file.read(), image_file.mimetype)
        return render_admin(editor)

    @app.route('/admin/save', methods=['POST'])
    def admin_save():
        editor = restored_editor()
        editor.save()
        return render_admin(editor)

    @app.route('/admin/cancel', methods=['POST'])
    def admin_cancel():
        """Discard the draft."""
        editor = restored_editor()
        editor.cancel()
        return render_admin(editor)

    @app.route('/admin/delete/<int:puzzle_id>', methods=['POST'])
    def admin_delete(puzzle_id):
        editor = AdminEditor(service())
        editor.load()
        editor.delete(puzzle_id, confirmed=request.form.get('confirmed') == '1')
        return render_admin(editor)

    return app


if __name__ == '__main__':
    app = create_app()
    port = get_settings()['port']
    print("Starting CAPTCHA Server...")
    print(f"Open http://localhost:{port} in your browser")
    print(f"Admin page: http://localhost:{port}/admin")
    app.run(debug=True, port=port, host='0.0.0.0')
