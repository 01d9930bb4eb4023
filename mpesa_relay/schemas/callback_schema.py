"""
Callback Validation Schemas
"""

from marshmallow import Schema, fields, validate, validates, ValidationError, EXCLUDE


class StkCallbackSchema(Schema):
    """Flattened M-Pesa STK push callback"""

    class Meta:
        unknown = EXCLUDE

    ResultCode = fields.Raw(required=True, allow_none=False)
    CheckoutRequestID = fields.Str(required=True, validate=validate.Length(min=1))
    # Optional values pass through as sent; the service stores them as text
    MpesaReceiptNumber = fields.Raw(load_default=None, allow_none=True)
    ResultDesc = fields.Raw(load_default=None, allow_none=True)

    @validates('ResultCode')
    def validate_result_code(self, value, **kwargs):
        if isinstance(value, (dict, list)) or str(value).strip() == '':
            raise ValidationError('ResultCode must be a non-empty value')
