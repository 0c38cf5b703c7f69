"""ICT Platform Flask application.

    gunicorn 'ict_platform.app:create_app()'
"""
import os
from datetime import timedelta

from flask import Flask, jsonify, request
from flask_compress import Compress
from flask_login import LoginManager

from ict_platform.core.utils.logging_config import setup_logging, get_logger
from ict_platform.purchasing.approvals import (
    po_approvals_bp, EXTENSION_KEY, RULES_EXTENSION_KEY,
)
from ict_platform.purchasing.approvals.config import ApprovalConfig
from ict_platform.purchasing.approvals.notifier import HookNotifier

app_logger = get_logger('ict_platform.app')

compress = Compress()
login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id):
    from ict_platform.core.auth.models import User
    from ict_platform.core.auth.repositories import UserRepository

    user_data = UserRepository().get_by_id(int(user_id))
    return User(user_data) if user_data else None


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'error': 'Authentication required'}), 401


def create_app(engine=None, rule_service=None, init_database=True):
    """Build the Flask app.

    engine and rule_service default to the PostgreSQL-backed implementations;
    pass your own to run against other stores.
    """
    setup_logging(level=os.environ.get('LOG_LEVEL', 'INFO'))
    app_logger.info('ICT Platform app loading...')

    app = Flask(__name__)

    # Secret key is required in production; dev fallback only when FLASK_DEBUG=true
    secret_key = os.environ.get('FLASK_SECRET_KEY', os.environ.get('SECRET_KEY'))
    if not secret_key:
        if os.environ.get('FLASK_DEBUG', 'false').lower() == 'true':
            secret_key = 'dev-secret-key-for-local-only'
            app_logger.warning('Using development secret key — set FLASK_SECRET_KEY for production')
        else:
            raise RuntimeError('FLASK_SECRET_KEY environment variable is required')
    app.secret_key = secret_key

    app.config['REMEMBER_COOKIE_DURATION'] = timedelta(days=30)
    app.config['REMEMBER_COOKIE_SECURE'] = True
    app.config['REMEMBER_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SECURE'] = True
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    compress.init_app(app)
    login_manager.init_app(app)

    if engine is None or rule_service is None:
        from ict_platform.purchasing.approvals.engine import build_engine
        from ict_platform.purchasing.approvals.repositories import RuleRepository
        from ict_platform.purchasing.approvals.rules import RuleService

        if init_database:
            from ict_platform.database import init_db
            init_db()

        if engine is None:
            engine = build_engine(ApprovalConfig.from_env(), notifier=HookNotifier())
            engine.ensure_default_rules()
        if rule_service is None:
            rule_service = RuleService(RuleRepository())

    app.extensions[EXTENSION_KEY] = engine
    app.extensions[RULES_EXTENSION_KEY] = rule_service
    app.register_blueprint(po_approvals_bp, url_prefix='/po')

    _register_error_handlers(app)

    @app.route('/health')
    def health_check():
        """Health check for orchestrator probes. Only checks DB connectivity."""
        from ict_platform.database import ping_db

        db_ok = ping_db()
        status = 'healthy' if db_ok else 'unhealthy'
        if not db_ok:
            app_logger.error('Health check - database unreachable')
        return jsonify({'status': status, 'checks': {'database': db_ok}}), 200 if db_ok else 503

    app_logger.info(f'ICT Platform startup complete — {len(app.url_map._rules)} routes registered')
    return app


def _register_error_handlers(app):

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def handle_405(e):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def handle_500(e):
        app_logger.exception(f'Unhandled 500 error on {request.path}')
        return jsonify({'success': False, 'error': 'An internal error occurred'}), 500
