"""
Tests for the HTTP client. A stub opener stands in for urlopen; one test
runs the client against the real Flask app through its test client.
"""

import io
import json
import socket
import urllib.error

import pytest

from captcha_errors import NetworkError, PuzzleNotFound, StoreError, ValidationError
from conftest import make_puzzle
from player import load_todays_puzzle
from puzzle_client import PuzzleClient


def http_error(url, code, body, reason='Bad'):
    raw = json.dumps(body).encode("utf-8") if body is not None else b'<html>oops</html>'
    return urllib.error.HTTPError(url, code, reason, {}, io.BytesIO(raw))


class StubOpener:
    """Records requests; replies with a JSON body or raises a prepared error."""

    def __init__(self, body=None, error=None):
        self.body = body
        self.error = error
        self.requests = []

    def __call__(self, req, timeout=None):
        self.requests.append((req, timeout))
        if self.error:
            raise self.error
        return io.BytesIO(json.dumps(self.body).encode("utf-8"))


class FlaskOpener:
    """Routes PuzzleClient requests into a Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client

    def __call__(self, req, timeout=None):
        path = req.full_url.replace('http://testserver', '')
        resp = self.test_client.open(path, method=req.get_method(), data=req.data,
                                     content_type=req.get_header('Content-type'))
        if resp.status_code >= 400:
            raise urllib.error.HTTPError(req.full_url, resp.status_code, resp.status,
                                         {}, io.BytesIO(resp.data))
        return io.BytesIO(resp.data)


def test_builds_urls_and_params():
    opener = StubOpener(make_puzzle())
    client = PuzzleClient('http://example.com/', opener=opener)

    client.get_puzzle_for_weekday(3)
    req, timeout = opener.requests[0]
    assert req.get_method() == 'GET'
    assert req.full_url == 'http://example.com/puzzles?weekday=3'
    assert timeout == 30


@pytest.mark.parametrize('error', [
    urllib.error.URLError('connection refused'),
    socket.timeout('timed out'),
])
def test_unreachable_server_is_network_error(error):
    client = PuzzleClient(opener=StubOpener(error=error))
    with pytest.raises(NetworkError):
        client.list_puzzles()


@pytest.mark.parametrize('status, error', [
    (404, PuzzleNotFound),
    (400, ValidationError),
    (500, StoreError),
    (502, StoreError),
])
def test_status_codes_map_to_errors(status, error):
    opener = StubOpener(error=http_error('http://x/puzzles/1', status, {'error': 'nope'}))
    with pytest.raises(error, match='nope'):
        PuzzleClient(opener=opener).get_puzzle(1)


def test_non_json_error_uses_reason():
    opener = StubOpener(error=http_error('http://x/puzzles', 503, None,
                                         reason='Service Unavailable'))
    with pytest.raises(StoreError, match='Service Unavailable'):
        PuzzleClient(opener=opener).list_puzzles()


def test_verify_and_upload_payloads():
    opener = StubOpener({'correct': True})
    client = PuzzleClient(opener=opener)

    assert client.verify_selection(7, (4, 0, 8)) is True
    req = opener.requests[0][0]
    assert req.get_method() == 'POST'
    assert req.get_header('Content-type') == 'application/json'
    assert json.loads(req.data) == {'selectedTiles': [4, 0, 8]}

    opener.body = {'path': 'a.png', 'url': 'u'}
    assert client.upload_image('a.png', b'PNGDATA', 'image/png')['path'] == 'a.png'
    req = opener.requests[1][0]
    assert req.get_header('Content-type').startswith('multipart/form-data; boundary=')
    assert b'filename="a.png"' in req.data
    assert b'PNGDATA' in req.data


def test_upload_filename_cannot_break_the_part_header():
    opener = StubOpener({'path': 'a.png', 'url': 'u'})
    PuzzleClient(opener=opener).upload_image('a"\r\nX-Evil: 1.png', b'PNGDATA', 'image/png')

    data = opener.requests[0][0].data
    header = data.split(b'\r\n\r\n', 1)[0]
    assert b'filename="aX-Evil: 1.png"' in header
    assert b'\r\nX-Evil' not in header


def test_client_against_app(client, png_bytes):
    api = PuzzleClient('http://testserver', opener=FlaskOpener(client))

    created = api.create_puzzle(make_puzzle(weekday=3))
    assert api.get_puzzle_for_weekday(3) == created
    assert api.verify_selection(created['id'], [8, 4, 0]) is True

    with pytest.raises(PuzzleNotFound):
        api.get_puzzle_for_weekday(1)
    assert load_todays_puzzle(api, 1) == created

    uploaded = api.upload_image('street.png', png_bytes, 'image/png')
    assert uploaded['path'].endswith('.png')

    assert api.delete_puzzle(created['id'])
    with pytest.raises(PuzzleNotFound):
        api.delete_puzzle(created['id'])
    assert load_todays_puzzle(api, 3) is None
