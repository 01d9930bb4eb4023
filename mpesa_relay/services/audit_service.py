"""
Audit Service
Records every HTTP exchange in the api_logs table
"""

import json
from typing import Optional

from flask import g, request

from mpesa_relay.extensions import db
from mpesa_relay.models import ApiLog
from mpesa_relay.utils.logger import get_logger

logger = get_logger(__name__)

# Paths with this prefix are never audited
EXEMPT_PREFIX = '/health'


class AuditService:
    """Service for writing audit log entries"""

    @staticmethod
    def log_exchange(
            endpoint: str,
            request_payload: Optional[str],
            response_payload: Optional[str],
            status_code: int
    ) -> bool:
        """
        Write one api_logs row

        Failures are logged and never raised; the caller's response is
        already decided by the time this runs.

        Returns:
            True if the row was written, False otherwise
        """
        entry = ApiLog(
            endpoint=endpoint,
            request_payload=request_payload,
            response_payload=response_payload,
            status_code=status_code
        )

        try:
            AuditService._persist(entry)
        except Exception as e:
            logger.error(f'Error logging API request: {str(e)}')
            return False

        return True

    @staticmethod
    def _persist(entry: ApiLog) -> None:
        # Uncommitted work left in the request session never rides along
        db.session.rollback()

        db.session.add(entry)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise


class AuditLogger:
    """Post-response hook that audits every non-health request"""

    def __init__(self, app=None):
        self.app = app
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Register capture and write hooks"""

        @app.after_request
        def capture_exchange(response):
            if is_exempt(request.path):
                return response

            g.audit_entry = {
                'endpoint': _endpoint(),
                'request_payload': _serialize_request(),
                'response_payload': _serialize_response(response),
                'status_code': response.status_code
            }
            return response

        @app.teardown_request
        def write_exchange(exc=None):
            entry = g.pop('audit_entry', None)
            if entry is not None:
                AuditService.log_exchange(**entry)


def is_exempt(path: str) -> bool:
    return path.startswith(EXEMPT_PREFIX)


def _endpoint() -> str:
    query = request.query_string.decode('utf-8', errors='replace')
    return f'{request.path}?{query}' if query else request.path


def _serialize_request() -> Optional[str]:
    data = request.get_json(silent=True)
    if data is not None:
        return json.dumps(data, default=str)

    raw = request.get_data(as_text=True)
    return raw or None


def _serialize_response(response) -> Optional[str]:
    if response.is_streamed or response.direct_passthrough:
        return None
    return response.get_data(as_text=True)
