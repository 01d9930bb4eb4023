from datetime import datetime

from mpesa_relay.extensions import db


class ApiLog(db.Model):
    __tablename__ = 'api_logs'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    # Exchange details
    endpoint = db.Column(db.String(2048), nullable=False)
    request_payload = db.Column(db.Text)
    response_payload = db.Column(db.Text)
    status_code = db.Column(db.Integer, nullable=False)

    # Timestamp
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'endpoint': self.endpoint,
            'request_payload': self.request_payload,
            'response_payload': self.response_payload,
            'status_code': self.status_code,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<ApiLog {self.endpoint} - {self.status_code}>'
