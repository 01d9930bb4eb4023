"""
Schemas Package
Marshmallow schemas for request/response validation
"""

from mpesa_relay.schemas.payment_schema import (
    InitiatePaymentSchema,
    format_errors
)
from mpesa_relay.schemas.callback_schema import (
    StkCallbackSchema
)

__all__ = [
    'InitiatePaymentSchema',
    'StkCallbackSchema',
    'format_errors'
]
