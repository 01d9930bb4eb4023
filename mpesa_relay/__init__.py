import os

import click
from flask import Flask, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from mpesa_relay.config import config, validate_config
from mpesa_relay.errors.exceptions import AppError, StartupConfigError
from mpesa_relay.extensions import db, cors
from mpesa_relay.services.audit_service import AuditLogger
from mpesa_relay.utils.logger import configure_app_logging

audit_logger = AuditLogger()


def create_app(config_name=None):
    """Application factory pattern"""
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)

    # Load and check configuration before touching the database
    app.config.from_object(config.get(config_name, config['default']))
    validate_config(app.config)

    configure_app_logging(app)

    # Initialize extensions
    try:
        db.init_app(app)
    except ImportError as e:
        raise StartupConfigError(f'Database driver is not installed: {str(e)}') from e

    cors.init_app(app, origins=_cors_origins(app.config.get('CORS_ORIGINS')))
    audit_logger.init_app(app)

    # Register blueprints
    from mpesa_relay.api import register_blueprints
    register_blueprints(app)

    register_error_handlers(app)
    register_commands(app)

    if app.config.get('VERIFY_DATABASE_ON_STARTUP'):
        verify_database(app)

    return app


def verify_database(app):
    """
    Make sure the database is reachable

    Raises:
        StartupConfigError: If the connection fails
    """
    with app.app_context():
        try:
            db.session.execute(text('SELECT 1'))
        except SQLAlchemyError as e:
            raise StartupConfigError(f'Error connecting to the database: {str(e)}') from e
        finally:
            db.session.remove()

    app.logger.info('Connected to the database')


def register_error_handlers(app):
    """Register error handlers"""

    @app.errorhandler(AppError)
    def app_error(error):
        if error.status_code >= 500:
            app.logger.error(f'{error.__class__.__name__}: {error.message}')
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'error': error.name}), error.code

        app.logger.exception(f'Error: {str(error)}')
        return jsonify({'error': 'Internal Server Error'}), 500


def register_commands(app):
    """Register CLI commands"""

    @app.cli.command('init-db')
    def init_db():
        """Create the transactions and api_logs tables."""
        db.create_all()
        click.echo('Database tables created')


def _cors_origins(value):
    if not value or value == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]
