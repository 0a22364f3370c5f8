"""
Puzzle API Client
=================

HTTP client for the puzzle API with the same methods as PuzzleService, so
the player flow and admin editor can run against a remote server.

No retries: a failed call raises and the caller decides what to show.
Dependencies: stdlib only (urllib).
"""

import json
import urllib.error
import urllib.parse
import urllib.request
import uuid

from captcha_errors import NetworkError, PuzzleNotFound, StoreError, ValidationError

DEFAULT_SERVER = "http://127.0.0.1:8080"
DEFAULT_TIMEOUT = 30


def _error_message(raw, fallback):
    """The 'error' field of a JSON error body, else the HTTP reason."""
    try:
        body = json.loads(raw.decode("utf-8"))
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get('error'):
        return body['error']
    return fallback


def _multipart(field, filename, data, content_type):
    """Encode one file as a multipart/form-data body. Returns (body, content-type header)."""
    boundary = uuid.uuid4().hex
    # Quotes and line breaks would end the header early
    filename = filename.translate({ord(c): None for c in '"\r\n\\'})
    head = (f'--{boundary}\r\n'
            f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
            f'Content-Type: {content_type}\r\n\r\n')
    tail = f'\r\n--{boundary}--\r\n'
    body = head.encode("utf-8") + data + tail.encode("utf-8")
    return body, f'multipart/form-data; boundary={boundary}'


class PuzzleClient:
    def __init__(self, server=DEFAULT_SERVER, timeout=DEFAULT_TIMEOUT, opener=None):
        self.server = server.rstrip('/')
        self.timeout = timeout
        self.opener = opener or urllib.request.urlopen

    def _request(self, method, path, params=None, payload=None, data=None, content_type=None):
        """Send a request and return the decoded JSON body, raising CAPTCHA errors."""
        url = f"{self.server}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"

        headers = {}
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            content_type = "application/json"
        if content_type:
            headers["Content-Type"] = content_type
        req = urllib.request.Request(url, data=data, headers=headers, method=method)

        try:
            with self.opener(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            message = _error_message(e.read(), e.reason)
            if e.code == 404:
                raise PuzzleNotFound(message) from e
            if e.code == 400:
                raise ValidationError(message) from e
            raise StoreError(f"{e.code}: {message}") from e
        except OSError as e:
            # URLError, refused connections and timeouts
            raise NetworkError(f"{method} {url} failed: {e}") from e

        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise StoreError(f"{method} {url} returned invalid JSON") from e

    def list_puzzles(self):
        return self._request('GET', '/puzzles')

    def get_puzzle(self, puzzle_id):
        return self._request('GET', f'/puzzles/{puzzle_id}')

    def get_puzzle_for_weekday(self, weekday):
        return self._request('GET', '/puzzles', params={'weekday': weekday})

    def create_puzzle(self, payload):
        return self._request('POST', '/puzzles', payload=payload)

    def update_puzzle(self, puzzle_id, payload):
        return self._request('PUT', f'/puzzles/{puzzle_id}', payload=payload)

    def delete_puzzle(self, puzzle_id):
        self._request('DELETE', f'/puzzles/{puzzle_id}')
        return True

    def verify_selection(self, puzzle_id, selected_tiles):
        body = self._request('POST', f'/puzzles/{puzzle_id}/verify',
                             payload={'selectedTiles': list(selected_tiles)})
        return body['correct']

    def upload_image(self, filename, data, content_type=None):
        body, header = _multipart('image', filename, data,
                                  content_type or 'application/octet-stream')
        return self._request('POST', '/images', data=body, content_type=header)

    def status(self):
        return self._request('GET', '/status')
