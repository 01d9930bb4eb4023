from marshmallow import Schema, fields, validate, validates, ValidationError, EXCLUDE

from mpesa_relay.utils.validators import validate_phone_number, validate_amount


class InitiatePaymentSchema(Schema):
    """STK push initiation request schema"""

    class Meta:
        unknown = EXCLUDE

    # Stored as sent, so it must fit transactions.phone_number
    phone_number = fields.Str(required=True, validate=validate.Length(max=20))
    amount = fields.Decimal(required=True)
    order_id = fields.Str(required=True, validate=validate.Length(min=1))
    customer_email = fields.Email(required=True)

    @validates('phone_number')
    def check_phone_number(self, value, **kwargs):
        is_valid, message = validate_phone_number(value)
        if not is_valid:
            raise ValidationError(message)

    @validates('amount')
    def check_amount(self, value, **kwargs):
        is_valid, message = validate_amount(value)
        if not is_valid:
            raise ValidationError(message)


def format_errors(messages) -> list:
    """
    Turn marshmallow error messages into a list of violated fields

    Returns:
        [{'field': 'amount', 'messages': ['...']}, ...]
    """
    if not isinstance(messages, dict):
        return [{'field': '_schema', 'messages': messages if isinstance(messages, list) else [messages]}]

    return [
        {'field': field, 'messages': errors if isinstance(errors, list) else [errors]}
        for field, errors in sorted(messages.items())
    ]
