"""
Health Check Endpoints
"""

from flask import Blueprint, jsonify
from datetime import datetime
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from mpesa_relay.extensions import db

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint

    Returns:
        200 if the database answers
        503 otherwise
    """
    health_status = {
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'service': 'mpesa-relay'
    }

    try:
        db.session.execute(text('SELECT 1'))
        health_status['database'] = 'healthy'
    except SQLAlchemyError as e:
        db.session.rollback()
        health_status['database'] = f'unhealthy: {e.__class__.__name__}'
        health_status['status'] = 'unhealthy'

    status_code = 200 if health_status['status'] == 'healthy' else 503

    return jsonify(health_status), status_code


@health_bp.route('/health/live', methods=['GET'])
def liveness_probe():
    """
    Liveness probe
    Returns 200 if the application is running
    """
    return jsonify({
        'status': 'alive',
        'timestamp': datetime.utcnow().isoformat()
    }), 200
