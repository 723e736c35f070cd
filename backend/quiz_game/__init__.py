from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from quiz_game.services.games.registry import registry, DEFAULT_IDLE_TTL, DEFAULT_COMPLETED_TTL
    registry.idle_ttl = float(flask_app.config.get('GAME_IDLE_TTL_SEC', DEFAULT_IDLE_TTL))
    registry.completed_ttl = float(flask_app.config.get('COMPLETED_GAME_TTL_SEC', DEFAULT_COMPLETED_TTL))

    # Import and register blueprints here
    from quiz_game.main import main
    flask_app.register_blueprint(main)

    from quiz_game.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from quiz_game.api.settings import settings
    flask_app.register_blueprint(settings, url_prefix='/api/settings')

    # Register Socket.IO event handlers
    from quiz_game.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    return flask_app
