"""
routes/api.py — JSON API for the farm board.

Provides:
- GET /api/game-state — Current board: rows of {state, lastWateredTime}
- POST /api/plant — Plant a seed at {row, col}
- POST /api/water — Water the plant at {row, col}, starting its growth timer
- POST /api/harvest — Harvest the ready plant at {row, col}

Mutating endpoints answer {success, message}: 200 on success, 400 for bad
coordinates or an action the plot cannot take, 500 if the board could not
be saved.
"""

from flask import Blueprint, current_app, request, jsonify

from board_service import InvalidTransition, PersistenceError, ValidationError

api_bp = Blueprint('api', __name__, url_prefix='/api')


def get_board_service():
    """The process-wide BoardTimerService attached by create_app()."""
    return current_app.extensions['board_service']


def _coordinates():
    """Read row/col from the JSON body; missing values come back as None."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, None
    return data.get('row'), data.get('col')


def _run(operation):
    row, col = _coordinates()
    try:
        message = operation(row, col)
    except (ValidationError, InvalidTransition) as e:
        return jsonify({'success': False, 'message': e.message}), 400
    except PersistenceError as e:
        return jsonify({'success': False, 'message': e.message}), 500
    return jsonify({'success': True, 'message': message})


@api_bp.route('/game-state')
def game_state():
    """Return the whole board."""
    return jsonify(get_board_service().get_board())


@api_bp.route('/plant', methods=['POST'])
def plant():
    """Plant a seed in an empty plot."""
    return _run(get_board_service().plant)


@api_bp.route('/water', methods=['POST'])
def water():
    """Water a planted seed."""
    return _run(get_board_service().water)


@api_bp.route('/harvest', methods=['POST'])
def harvest():
    """Harvest a ready plant, emptying the plot."""
    return _run(get_board_service().harvest)
