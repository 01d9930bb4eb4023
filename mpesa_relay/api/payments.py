from flask import Blueprint, request, jsonify
from marshmallow import ValidationError as SchemaValidationError

from mpesa_relay.errors.exceptions import ValidationError
from mpesa_relay.schemas.payment_schema import InitiatePaymentSchema, format_errors
from mpesa_relay.services.payment_service import PaymentService

payments_bp = Blueprint('payments', __name__)

initiate_schema = InitiatePaymentSchema()


@payments_bp.route('/initiate-payment', methods=['POST'])
def initiate_payment():
    """
    Initiate an M-Pesa STK push payment

    Body:
        {
            "phone_number": "254712345678",
            "amount": "100",
            "order_id": "ORD-12345",
            "customer_email": "customer@example.com"
        }

    Responses:
        200 - push sent, transaction recorded as Pending
        400 - validation error, nothing sent to M-Pesa
        502 - M-Pesa rejected the push
        503 - M-Pesa token could not be obtained
        500 - transaction could not be recorded
    """
    try:
        data = initiate_schema.load(request.get_json(silent=True) or {})
    except SchemaValidationError as e:
        raise ValidationError('Invalid payment request', errors=format_errors(e.messages))

    transaction, provider_response = PaymentService.initiate_payment(
        phone_number=data['phone_number'],
        amount=data['amount'],
        order_id=data['order_id'],
        customer_email=data['customer_email']
    )

    return jsonify({
        'message': 'Payment initiated successfully',
        'data': provider_response,
        'transactionId': transaction.id
    }), 200
