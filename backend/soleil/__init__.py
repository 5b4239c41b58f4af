from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

# always_connect lets the connect handler unicast a refusal before the
# connection is torn down
socketio = SocketIO(async_mode=None, always_connect=True)

def create_app(config_class=Config, timer=None):
    """Build the Flask app, bind Socket.IO and create the game session.

    ``timer`` overrides how the session arms its one-shot timers; tests pass
    a manual timer so rounds can be driven without sleeping.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from soleil.routes import main
    flask_app.register_blueprint(main)

    from soleil.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    # Handlers bind to the initialized socketio instance and to the
    # session stored on flask_app.extensions
    from soleil.socketio_events import register_socketio_handlers
    register_socketio_handlers(flask_app, timer=timer)

    return flask_app
