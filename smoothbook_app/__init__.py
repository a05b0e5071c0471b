__version__ = '0.10.0'

import importlib
import logging
import os
import sqlite3
from datetime import datetime
from pathlib import Path
from traceback import format_exc
from flask import Flask, Blueprint, render_template, jsonify, request
from flask_login import current_user
from werkzeug.exceptions import HTTPException
from smoothbook_app.extensions import login_manager, limiter
from smoothbook_app.models.database import get_db
from smoothbook_app.models.User import User

logger = logging.getLogger('smoothbook_app')

def create_app(config_name=None, config_overrides=None):
    """Application factory.

    ``config_name`` picks a class from ``config_map`` (default: ``FLASK_ENV``
    or development); ``config_overrides`` is applied on top of it.
    """
    app = Flask(__name__, static_folder='static', template_folder='templates')
    app.url_map.strict_slashes = False

    from smoothbook_app.config import config_map
    env = config_name or os.getenv('FLASK_ENV', 'development')
    app.config.from_object(config_map[env])
    if config_overrides:
        app.config.update(config_overrides)

    from smoothbook_app.utils.logging_config import setup_logging
    setup_logging(
        log_dir=app.config['LOG_DIR'],
        app_log_file=app.config['APP_LOG_FILE'],
        debug_log_file=app.config['DEBUG_LOG_FILE'],
        error_log_file=app.config['ERROR_LOG_FILE'],
        max_bytes=app.config['LOG_MAX_BYTES'],
        backup_count=app.config['LOG_BACKUP_COUNT'],
        level=app.config['LOG_LEVEL'],
    )
    logger.debug(f"Creating app with {config_map[env].__name__}")

    register_extensions(app)
    register_template_helpers(app)

    from smoothbook_app.models import database
    database.init_app(app)

    from smoothbook_app.services.locations import LocationService
    app.extensions['smoothbook.location_service'] = LocationService(
        industry_groups=app.config.get('LOCATION_INDUSTRY_GROUPS'),
        default_timezone=app.config['DEFAULT_LOCATION_TIMEZONE'],
    )

    @app.route('/health', methods=['GET'])
    def health_check():
        try:
            get_db().execute('SELECT 1')
        except sqlite3.Error as e:
            logger.error(f"Health check failed: {str(e)}")
            return jsonify({"status": "unhealthy", "message": str(e)}), 500
        return jsonify({"status": "healthy", "message": "Application is running"}), 200

    register_blueprints(app)

    from smoothbook_app.cli import register_commands
    register_commands(app)

    register_error_handlers(app)

    logger.info(f"Smooth Booking {__version__} ready ({env})")
    return app

def register_extensions(app):
    limiter.init_app(app)
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        try:
            return User.get(user_id)
        except sqlite3.DatabaseError as e:
            logger.error(f"Could not load user {user_id}: {str(e)}\n{format_exc()}")
            return None

def register_template_helpers(app):
    """Filters and globals used by the admin templates."""
    from smoothbook_app.utils.assets import render_enqueued_styles, render_enqueued_scripts
    from smoothbook_app.utils.constants import DB_DATETIME_FORMAT
    from smoothbook_app.utils.nonces import nonce_field
    from smoothbook_app.utils.settings import get_datetime_format

    @app.context_processor
    def inject_user_theme():
        return {'user_theme': current_user.theme if current_user.is_authenticated else 'light'}

    @app.template_filter('datetimeformat')
    def datetimeformat(value, fmt=None):
        """
        Format a stored 'YYYY-MM-DD HH:MM:SS' timestamp for display.

        Args:
            value: A string in the database datetime format.
            fmt: strftime pattern; defaults to the date and time format settings.

        Returns:
            The formatted string, or the value unchanged if it cannot be parsed.
        """
        if not value:
            return value
        try:
            return datetime.strptime(value, DB_DATETIME_FORMAT).strftime(fmt or get_datetime_format())
        except ValueError as e:
            logger.error(f"Failed to parse datetime '{value}': {e}")
            return value

    def media_url(image_id):
        return app.config['MEDIA_URL_TEMPLATE'].format(id=image_id)

    app.jinja_env.globals.update(
        nonce_field=nonce_field,
        enqueued_styles=render_enqueued_styles,
        enqueued_scripts=render_enqueued_scripts,
        media_url=media_url,
        app_version=__version__,
    )

def register_blueprints(app):
    """Import every module under ``routes/`` and register the blueprints it defines."""
    routes_dir = Path(__file__).parent / 'routes'
    for path in sorted(routes_dir.rglob('*.py')):
        if path.name.startswith('__'):
            continue
        module_name = '.'.join(('smoothbook_app',) + path.relative_to(routes_dir.parent).with_suffix('').parts)
        module = importlib.import_module(module_name)
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if isinstance(attr, Blueprint) and attr.name not in app.blueprints:
                app.register_blueprint(attr)
                logger.debug(f"Registered blueprint {attr.name} from {module_name}")

def register_error_handlers(app):
    @app.errorhandler(400)
    def bad_request_error(error):
        logger.warning(f"400 Bad Request: {error.description}, URL: {request.url}, Method: {request.method}")
        return render_template('common/error.html', error=error.description, title='Bad request'), 400

    @app.errorhandler(403)
    def forbidden_error(error):
        logger.warning(f"403 Forbidden: {error.description}, URL: {request.url}, Method: {request.method}")
        return render_template('common/403.html', message=error.description), 403

    @app.errorhandler(404)
    def page_not_found_error(error):
        logger.warning(f"404 Not Found: {request.url}, Referrer: {request.referrer}")
        return render_template('common/404.html'), 404

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        logger.warning(f"429 Rate Limit Exceeded: {str(error)}, URL: {request.url}")
        return render_template('common/429.html'), 429

    @app.errorhandler(Exception)
    def handle_error(error):
        if isinstance(error, HTTPException):
            return error
        logger.error(f"Unhandled error: {str(error)}\n{format_exc()}")
        message = str(error) if app.config['DEBUG'] else "An unexpected error occurred"
        return render_template('common/error.html', error=message, title='Error'), 500
