"""
Application Factory
Creates and configures the Flask application
"""
import logging

from flask import Flask
from flask.logging import default_handler
from quizlink.config import get_config, DEFAULT_SECRET_KEY
from quizlink.extensions import db, socketio


LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def configure_logging(app):
    """Set app.logger to LOG_LEVEL and format Flask's default handler"""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    app.logger.setLevel(level)
    default_handler.setFormatter(logging.Formatter(LOG_FORMAT))


def create_app(config_name=None):
    """
    Application factory pattern
    Creates and configures Flask app
    """
    app = Flask(__name__, template_folder='../templates', static_folder='../static')

    # Load configuration
    if config_name:
        from quizlink.config import config
        app.config.from_object(config[config_name])
    else:
        app.config.from_object(get_config())

    if not app.debug and not app.testing and app.config['SECRET_KEY'] == DEFAULT_SECRET_KEY:
        raise RuntimeError('SECRET_KEY must be set in production')

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['SOCKETIO_CORS_ALLOWED_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE']
    )

    from quizlink.errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from quizlink.routes import auth_bp, admin_bp, quiz_bp, pages_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(quiz_bp, url_prefix='/api/quiz')
    app.register_blueprint(admin_bp, url_prefix='/api')
    app.register_blueprint(pages_bp)

    # Register Socket.IO events
    from quizlink.sockets import register_socket_events
    with app.app_context():
        register_socket_events()

    # Create database tables
    with app.app_context():
        db.create_all()
        app.logger.debug('Database tables created/verified')

    return app
