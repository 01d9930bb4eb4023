from datetime import datetime
from enum import Enum

from mpesa_relay.extensions import db


class TransactionStatus(str, Enum):
    PENDING = 'Pending'
    SUCCESS = 'Success'
    FAILED = 'Failed'


class Transaction(db.Model):
    __tablename__ = 'transactions'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    # CheckoutRequestID assigned by M-Pesa
    transaction_id = db.Column(db.String(255), unique=True, nullable=False, index=True)

    # Payment details
    phone_number = db.Column(db.String(20), nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=TransactionStatus.PENDING.value)
    description = db.Column(db.String(255))

    # Set by the callback
    mpesa_receipt_number = db.Column(db.String(50), nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'transaction_id': self.transaction_id,
            'phone_number': self.phone_number,
            'amount': str(self.amount) if self.amount is not None else None,
            'status': self.status,
            'description': self.description,
            'mpesa_receipt_number': self.mpesa_receipt_number,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return f'<Transaction {self.transaction_id} - {self.status}>'
