"""
Vercel serverless entry point.

Builds the Flask app from captcha_server.py and exposes it
as the WSGI application that Vercel's Python runtime expects.
"""

import sys
import os

# Add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from captcha_server import create_app

app = create_app()
