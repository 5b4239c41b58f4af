from flask import Blueprint, current_app, jsonify

from soleil.services.games.scheduler import POSITIONS
from soleil.socketio_events import EXTENSION_KEY

game = Blueprint('game', __name__)


@game.route('/state', methods=['GET'])
def get_game_state():
    """Read-only snapshot of the running session."""
    session = current_app.extensions[EXTENSION_KEY]
    payload = session.snapshot()
    # Include durations so clients can show countdowns
    cfg = current_app.config
    payload['durations'] = {
        'countdown': int(cfg.get('COUNTDOWN_SEC', 5)),
        'round': int(cfg.get('ROUND_DURATION_SEC', 5)),
    }
    payload['positions'] = list(POSITIONS)
    return jsonify(payload)
