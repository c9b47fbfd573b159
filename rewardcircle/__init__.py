"""
RewardCircle Loyalty Platform
Flask application factory
"""
import os
import logging
from flask import Flask
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .extensions import db, migrate
from .config import get_config, validate_config
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, config_overrides: dict = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)
        config_overrides: Optional config values applied after the config class

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    # Setup logging before anything else
    setup_logging()

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if config_overrides:
        app.config.update(config_overrides)

    validate_config(config_name)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Initialize caching (Redis with graceful fallback)
    from .utils.cache import init_cache
    init_cache(app)

    CORS(
        app,
        origins=app.config.get('CORS_ORIGINS') or [],
        allow_headers=['Content-Type', 'Authorization', 'X-Request-ID', 'X-Dev-Key', 'X-Dev-Role'],
        expose_headers=['X-Request-ID'],
    )

    # Initialize request ID tracking for request tracing
    from .middleware import init_request_id_tracking
    init_request_id_tracking(app)

    # Register blueprints
    register_blueprints(app)

    # Register CLI commands
    from .commands import init_app as init_commands
    init_commands(app)

    # Register error handlers
    register_error_handlers(app)

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return {'status': 'healthy', 'service': 'rewardcircle'}

    logger.debug('RewardCircle app created (%s)', config_name)
    return app


def register_blueprints(app: Flask) -> None:
    """Register all API blueprints."""
    from .api import LOYALTY_URL_PREFIX, admin_bp, customer_bp, loyalty_bp, settings_bp

    # Staff console (earn / redeem)
    app.register_blueprint(loyalty_bp, url_prefix=LOYALTY_URL_PREFIX)

    # Owner admin (program settings, customers, overview)
    app.register_blueprint(settings_bp, url_prefix=LOYALTY_URL_PREFIX)
    app.register_blueprint(admin_bp, url_prefix=LOYALTY_URL_PREFIX)

    # Customer wallet lookup (public)
    app.register_blueprint(customer_bp, url_prefix=LOYALTY_URL_PREFIX)


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from .utils.errors import ErrorCode, error_response, exception_response
    from .utils.exceptions import RewardCircleError

    @app.errorhandler(RewardCircleError)
    def business_error(error):
        return exception_response(error)

    @app.errorhandler(400)
    def bad_request(error):
        return error_response(_describe(error, 'Bad request'), ErrorCode.INVALID_REQUEST, 400)

    @app.errorhandler(404)
    def not_found(error):
        return error_response('Not found', ErrorCode.NOT_FOUND, 404, log_error=False)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('Method not allowed', ErrorCode.METHOD_NOT_ALLOWED, 405, log_error=False)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return error_response('An unexpected error occurred', ErrorCode.INTERNAL_ERROR, 500)


def _describe(error, default: str) -> str:
    if isinstance(error, HTTPException) and error.description:
        return error.description
    return default
