"""
Puzzle Routes - Flask Blueprint
================================

JSON API over the puzzle service. All bodies are camelCase.

Routes:
    GET    /puzzles                 - all puzzles by weekday (?weekday=N for one)
    GET    /puzzles/<id>            - one puzzle
    POST   /puzzles                 - create, or overwrite the weekday's puzzle
    PUT    /puzzles/<id>            - replace image, description, tiles
    DELETE /puzzles/<id>            - remove a puzzle
    POST   /puzzles/<id>/verify     - check a tile selection
    POST   /images                  - upload a puzzle image
"""

import traceback

from flask import Blueprint, current_app, request, jsonify

from captcha_errors import CaptchaError

puzzles_bp = Blueprint('puzzles', __name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def get_service():
    return current_app.extensions['puzzle_service']


def error_response(e):
    """Map an exception to a JSON error body and status code."""
    if isinstance(e, CaptchaError):
        if e.status_code >= 500:
            traceback.print_exc()
        return jsonify({'error': str(e)}), e.status_code
    traceback.print_exc()
    return jsonify({'error': str(e) or 'Internal server error'}), 500


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@puzzles_bp.route('/puzzles', methods=['GET'])
def list_puzzles():
    """List all puzzles, or the one for ?weekday=N."""
    weekday = request.args.get('weekday')

    try:
        if weekday is not None:
            return jsonify(get_service().get_puzzle_for_weekday(weekday))
        return jsonify(get_service().list_puzzles())
    except Exception as e:
        return error_response(e)


@puzzles_bp.route('/puzzles/<int:puzzle_id>', methods=['GET'])
def get_puzzle(puzzle_id):
    try:
        return jsonify(get_service().get_puzzle(puzzle_id))
    except Exception as e:
        return error_response(e)


@puzzles_bp.route('/puzzles', methods=['POST'])
def create_puzzle():
    """Create a puzzle. An existing puzzle for the same weekday is overwritten."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'No data provided'}), 400

    try:
        return jsonify(get_service().create_puzzle(data))
    except Exception as e:
        return error_response(e)


@puzzles_bp.route('/puzzles/<int:puzzle_id>', methods=['PUT'])
def update_puzzle(puzzle_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'No data provided'}), 400

    try:
        return jsonify(get_service().update_puzzle(puzzle_id, data))
    except Exception as e:
        return error_response(e)


@puzzles_bp.route('/puzzles/<int:puzzle_id>', methods=['DELETE'])
def delete_puzzle(puzzle_id):
    try:
        get_service().delete_puzzle(puzzle_id)
        return jsonify({'success': True})
    except Exception as e:
        return error_response(e)


@puzzles_bp.route('/puzzles/<int:puzzle_id>/verify', methods=['POST'])
def verify_puzzle(puzzle_id):
    """Check a player's tile selection against the stored answer."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'No data provided'}), 400

    try:
        correct = get_service().verify_selection(puzzle_id, data.get('selectedTiles'))
        return jsonify({'correct': correct})
    except Exception as e:
        return error_response(e)


@puzzles_bp.route('/images', methods=['POST'])
def upload_image():
    """Upload a puzzle image, returns its storage path and public URL."""
    if 'image' not in request.files or not request.files['image'].filename:
        return jsonify({'error': 'No image file uploaded'}), 400

    image_file = request.files['image']

    try:
        result = get_service().upload_image(
            image_file.filename, image_file.read(), image_file.mimetype)
        return jsonify(result)
    except Exception as e:
        return error_response(e)
