"""
app.py — Flask entry point for the farming game backend.

Builds the Flask app, loads (or creates) the stored farm board, re-arms
growth timers for plants that were growing when the server stopped, and
registers the API and frontend routes. If the board cannot be loaded the
app is not created.

Run: python app.py → localhost:3000
"""

import logging
import os
import sys

from flask import Flask, request

from board_service import BoardTimerService, current_time_ms, start_timer
from constants import PORT, GROWTH_TIME_MS, get_data_dir
from storage import JsonStorage
from routes.main import main_bp
from routes.api import api_bp

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    """Create and configure the Flask application."""
    base_dir = os.path.dirname(os.path.abspath(__file__))
    app = Flask(__name__, static_folder=os.path.join(base_dir, 'frontend'), static_url_path='')
    app.config['DATA_DIR'] = get_data_dir()
    app.config['GROWTH_TIME_MS'] = GROWTH_TIME_MS
    app.config['CLOCK'] = current_time_ms
    app.config['TIMER_FACTORY'] = start_timer

    if test_config:
        app.config.update(test_config)

    # Load the board before serving anything; PersistenceError aborts startup
    service = BoardTimerService(
        JsonStorage(app.config['DATA_DIR']),
        growth_time_ms=app.config['GROWTH_TIME_MS'],
        clock=app.config['CLOCK'],
        timer_factory=app.config['TIMER_FACTORY'],
    )
    service.initialize()
    app.extensions['board_service'] = service

    # Register blueprints
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp)

    @app.before_request
    def answer_preflight():
        """Reply to CORS preflight requests without hitting the routes."""
        if request.method == 'OPTIONS':
            return app.make_default_options_response()

    @app.after_request
    def allow_cross_origin(response):
        """Allow the frontend to be served from another origin."""
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
        return response

    return app


if __name__ == '__main__':
    logging.basicConfig(
        level=os.environ.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    try:
        app = create_app()
    except Exception:
        logger.exception("Failed to initialize storage or load game state")
        sys.exit(1)

    logger.info("Farming game backend listening at http://localhost:%d", PORT)
    # Debug mode: set FLASK_DEBUG=1 to enable. The reloader is off because it
    # would start a second process with its own growth timers.
    debug = os.environ.get('FLASK_DEBUG', '0') != '0'
    app.run(host='localhost', port=PORT, debug=debug, use_reloader=False)
