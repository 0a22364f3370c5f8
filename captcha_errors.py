"""
CAPTCHA Errors
==============

Exception types shared by the store backends, the puzzle service, the API
routes and the HTTP client.

    CaptchaError
    ├── PuzzleNotFound   - no record for the given id/weekday      (404)
    ├── ValidationError  - missing field, bad tile set, bad upload (400)
    ├── StoreError       - database or object storage failure      (500)
    └── NetworkError     - client could not reach the API
"""


class CaptchaError(Exception):
    """Base class for every error the CAPTCHA layers raise on purpose."""

    status_code = 500


class PuzzleNotFound(CaptchaError):
    status_code = 404


class ValidationError(CaptchaError, ValueError):
    status_code = 400


class StoreError(CaptchaError):
    status_code = 500


class NetworkError(CaptchaError):
    status_code = 503
