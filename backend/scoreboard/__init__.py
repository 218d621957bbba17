from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Per-process sync engine: cache, subscribers, tenant locks, fan-out
    from scoreboard.services.games.cache import GameStateCache
    from scoreboard.services.games.channels import ChannelRegistry
    from scoreboard.services.games.locks import TenantLocks
    from scoreboard.services.games.broadcast import Broadcaster
    cache = GameStateCache()
    channels = ChannelRegistry()
    flask_app.extensions['game_state_cache'] = cache
    flask_app.extensions['channel_registry'] = channels
    flask_app.extensions['tenant_locks'] = TenantLocks()
    flask_app.extensions['broadcaster'] = Broadcaster(socketio, cache, channels)

    from scoreboard.errors import register_error_handlers
    register_error_handlers(flask_app)

    from scoreboard.main import main
    flask_app.register_blueprint(main)

    from scoreboard.api.auth import auth
    flask_app.register_blueprint(auth, url_prefix='/api/auth')

    from scoreboard.api.game import game_api
    flask_app.register_blueprint(game_api, url_prefix='/api/game')

    from scoreboard.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from scoreboard.models import Streamer

    @login_manager.user_loader
    def load_user(user_id):
        streamer = db.session.get(Streamer, int(user_id))
        # Blocking takes effect on the very next request
        if streamer is None or not streamer.is_active or streamer.is_blocked:
            return None
        return streamer

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from scoreboard.services.games.repository import GameRepository
        from scoreboard.services.auth import create_streamer
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            GameRepository().ensure_default_sport()
            streamer = create_streamer('Demo Streamer', 'demo@example.com', 'password')
            print('Database has been reset and seeded!')
            print(f'Overlay key: {streamer.stream_key}  token: {streamer.stream_token}')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
