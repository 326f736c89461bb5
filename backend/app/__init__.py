from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def _parse_origins(raw):
    if not raw or raw == '*':
        return '*'
    return [o.strip() for o in raw.split(',') if o.strip()]


def build_rankings_engine(flask_app):
    """Create the store and engine described by the app config."""
    from app.models import KVRecord
    from app.services.rankings import MemoryStore, RankingsEngine, SQLAlchemyStore

    cfg = flask_app.config
    backend = cfg.get('RANKINGS_BACKEND', 'sql')
    if backend == 'memory':
        store = MemoryStore()
    elif backend == 'sql':
        store = SQLAlchemyStore(db, KVRecord)
    else:
        raise ValueError(f"Unknown RANKINGS_BACKEND: {backend}")

    engine = RankingsEngine(
        store,
        key=cfg.get('RANKINGS_KEY', 'rankings'),
        capacity=int(cfg.get('RANKINGS_CAPACITY', 100)),
        max_attempts=int(cfg.get('RANKINGS_MAX_ATTEMPTS', 5)),
        backoff_base=int(cfg.get('RANKINGS_BACKOFF_BASE_MS', 10)) / 1000.0,
        backoff_max=int(cfg.get('RANKINGS_BACKOFF_MAX_MS', 100)) / 1000.0,
        logger=flask_app.logger,
    )
    flask_app.logger.info(f"[rankings-init] backend={backend} key={engine.key} capacity={engine.capacity}")
    return engine


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = _parse_origins(flask_app.config.get('CORS_ORIGINS', '*'))

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    # A literal '*' rather than an echoed Origin when every origin is allowed
    CORS(flask_app, origins=allowed_origins, methods=['GET', 'POST', 'OPTIONS'], allow_headers=['Content-Type'],
         send_wildcard=allowed_origins == '*')

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One engine per app; it holds no leaderboard state between calls
    flask_app.extensions['rankings'] = build_rankings_engine(flask_app)

    from app.api.rankings import rankings
    flask_app.register_blueprint(rankings, url_prefix='/api/rankings')

    from app.api.inventory import inventory
    flask_app.register_blueprint(inventory, url_prefix='/api/inventory')

    from app.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the key-value table."""
        import app.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
