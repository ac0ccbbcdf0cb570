"""
routes/main.py — Frontend page.

Provides:
- GET / — The farm board page (frontend/index.html)

Other frontend files are served by the app's static folder at the site root.
"""

from flask import Blueprint, current_app

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """Farm board page."""
    return current_app.send_static_file('index.html')
