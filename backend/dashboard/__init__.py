"""
Metrics dashboard backend

create_app() builds the Flask application together with the process-wide
sync state (integration registry, cooldown governor, progress tracker).
"""
import time

from flask import Flask, g, jsonify, request
from flask_cors import CORS

from .api import integrations_bp, sync_bp
from .config import get_config
from .extensions import db, migrate
from .integrations.http import get_api_session_pool
from .integrations.registry import IntegrationRegistry
from .services.sync import SyncCooldownGovernor, SyncEngine, SyncOrchestrator, SyncProgressTracker
from .utils.crypto import CredentialCrypto
from .utils.logger import get_logger, setup_logger
from .utils.responses import ApiResponse

SLOW_REQUEST_MS = 1000


def create_app(config_class=None, registry=None, clock=None):
    """Application factory.

    Args:
        config_class: config class; picked from FLASK_ENV when None
        registry: IntegrationRegistry replacing the built-in integrations
        clock: seconds-returning time source for the cooldown governor

    Returns:
        Flask app with the sync services in app.extensions
    """
    config_class = config_class or get_config()

    app = Flask(__name__)
    app.config.from_object(config_class)

    setup_logger(log_level=app.config.get('LOG_LEVEL', 'INFO'), log_file=app.config.get('LOG_FILE'))
    logger = get_logger('app')

    CORS(app, resources={r"/api/*": config_class.get_cors_config()})

    db.init_app(app)
    migrate.init_app(app, db)

    # Tables are created on first start; schema changes go through 'flask db upgrade'
    with app.app_context():
        db.create_all()

    _init_sync_services(app, registry, clock)

    app.register_blueprint(sync_bp, url_prefix='/api')
    app.register_blueprint(integrations_bp, url_prefix='/api')

    _register_error_handlers(app)
    _register_timing_hooks(app)

    @app.route('/api/health')
    def health_check():
        return jsonify({'status': 'healthy', 'service': 'dashboard-backend'})

    logger.info(f"Dashboard backend ready ({config_class.__name__})")
    return app


def _init_sync_services(app, registry=None, clock=None):
    """Build the sync state shared by every request of this process.

    Cooldowns and progress are lost on restart.
    """
    registry = registry or IntegrationRegistry()
    crypto = CredentialCrypto(app.config.get('CREDENTIAL_ENCRYPTION_KEY'))

    governor_kwargs = {'window_seconds': app.config.get('SYNC_COOLDOWN_SECONDS', 60)}
    if clock is not None:
        governor_kwargs['clock'] = clock
    governor = SyncCooldownGovernor(**governor_kwargs)

    progress = SyncProgressTracker(ttl_seconds=app.config.get('SYNC_PROGRESS_TTL_SECONDS', 600))
    engine = SyncEngine(registry, crypto, progress)

    get_api_session_pool().timeout = app.config.get('INTEGRATION_HTTP_TIMEOUT', 30)

    app.extensions['integration_registry'] = registry
    app.extensions['credential_crypto'] = crypto
    app.extensions['sync_engine'] = engine
    app.extensions['sync_orchestrator'] = SyncOrchestrator(
        registry,
        governor,
        engine,
        trusted_hosts=app.config.get('TRUSTED_HOSTS'),
    )


def _register_error_handlers(app):
    """Every error leaves as {"error", "code"} JSON."""

    @app.errorhandler(400)
    def bad_request(error):
        return ApiResponse.error('Bad request', 400, 'BAD_REQUEST')

    @app.errorhandler(404)
    def not_found(error):
        return ApiResponse.not_found('Resource not found')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return ApiResponse.error('Method not allowed', 405, 'METHOD_NOT_ALLOWED')

    @app.errorhandler(500)
    def internal_error(error):
        # Exception text may carry upstream secrets; only the type is logged
        cause = getattr(error, 'original_exception', None) or error
        get_logger('error').error(f"Unhandled {type(cause).__name__} on {request.method} {request.path}")
        return ApiResponse.server_error('Internal server error')


def _register_timing_hooks(app):
    """Warn about requests slower than SLOW_REQUEST_MS."""

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_slow_request(response):
        started = g.get('request_started')
        if started is not None:
            elapsed_ms = (time.perf_counter() - started) * 1000
            if elapsed_ms > SLOW_REQUEST_MS:
                get_logger('slow_request').warning(
                    f"Slow request: {request.method} {request.path} took {elapsed_ms:.0f}ms"
                )
        return response
