import logging

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)

REGISTRY_KEY = 'cardduel.registry'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Process-scoped game services
    flask_app.extensions[REGISTRY_KEY] = build_registry(flask_app)

    from cardduel.main import main
    flask_app.register_blueprint(main)

    from cardduel.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from cardduel.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    return flask_app


def build_registry(flask_app):
    from cardduel.services.duel import RoomRegistry, RoundScheduler, SessionCoordinator, SocketIONotifier

    cfg = flask_app.config
    logger = flask_app.logger
    scheduler = RoundScheduler(
        start_task=socketio.start_background_task,
        sleep=socketio.sleep,
        delay=float(cfg.get('ROUND_TRANSITION_DELAY_SEC', 3)),
        logger=logger,
        # In tests run transitions inline for determinism
        synchronous=bool(cfg.get('TESTING')),
    )
    coordinator = SessionCoordinator(
        notifier=SocketIONotifier(socketio, logger),
        scheduler=scheduler,
        logger=logger,
        starting_health=int(cfg.get('STARTING_HEALTH', 7)),
        damage_cap=int(cfg.get('DAMAGE_CAP', 7)),
    )
    return RoomRegistry(coordinator, logger)


def get_registry(flask_app):
    return flask_app.extensions[REGISTRY_KEY]
