from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from latter.config import config
from latter.errors import LatterError

db = SQLAlchemy()
socketio = SocketIO()


def _parse_allowed_origins(raw_origins):
    if not raw_origins:
        return '*'

    if isinstance(raw_origins, (list, tuple, set)):
        cleaned = [origin for origin in raw_origins if origin]
        return cleaned or '*'

    raw_text = str(raw_origins).strip()
    if not raw_text or raw_text == '*':
        return '*'

    origins = [origin.strip() for origin in raw_text.split(',') if origin.strip()]
    return origins or '*'


def _handle_latter_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


def create_app(config_name='development'):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.logger.setLevel(str(app.config.get('LOG_LEVEL') or 'INFO').upper())

    allowed_origins = _parse_allowed_origins(app.config.get('CORS_ALLOWED_ORIGINS', '*'))
    if str(config_name).strip().lower() == 'production':
        secret_key = str(app.config.get('SECRET_KEY') or '').strip()
        if not secret_key or secret_key == 'dev-secret-key-change-in-prod':
            raise RuntimeError('SECRET_KEY must be set to a non-default value in production')
        if allowed_origins == '*':
            raise RuntimeError('CORS_ALLOWED_ORIGINS must be explicitly set in production')

    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins,
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE', 'threading'),
    )
    CORS(app, origins=allowed_origins, supports_credentials=allowed_origins != '*')

    from latter.auth_utils import enforce_authentication
    app.before_request(enforce_authentication)
    app.register_error_handler(LatterError, _handle_latter_error)

    from latter.routes.auth import auth_bp
    from latter.routes.players import players_bp
    from latter.routes.challenges import challenges_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(players_bp, url_prefix='/players')
    app.register_blueprint(challenges_bp, url_prefix='/challenges')

    with app.app_context():
        from latter import models  # noqa: F401
        db.create_all()

    return app
