"""
Callback Endpoint
Receives STK push results from M-Pesa
"""

from flask import Blueprint, Response, request
from marshmallow import ValidationError as SchemaValidationError

from mpesa_relay.errors.exceptions import TransactionNotFound
from mpesa_relay.providers import MPesaProvider
from mpesa_relay.schemas.callback_schema import StkCallbackSchema
from mpesa_relay.services.callback_service import CallbackService
from mpesa_relay.utils.logger import get_logger

callbacks_bp = Blueprint('callbacks', __name__)
logger = get_logger(__name__)

callback_schema = StkCallbackSchema()


def _text(message: str, status: int) -> Response:
    return Response(message, status=status, mimetype='text/plain')


@callbacks_bp.route('/callback', methods=['POST'])
def mpesa_callback():
    """
    Receive an STK push result

    Body (flat):
        {"ResultCode": "0", "CheckoutRequestID": "ws_CO_...", "MpesaReceiptNumber": "..."}

    or the Daraja envelope:
        {"Body": {"stkCallback": {...}}}

    Responses are plain text:
        200 - transaction updated
        400 - ResultCode or CheckoutRequestID missing
        404 - no transaction with this CheckoutRequestID
    """
    payload = request.get_json(silent=True)
    logger.info(f'Payment Callback: {payload}')

    try:
        data = callback_schema.load(MPesaProvider.parse_callback(payload))
    except SchemaValidationError as e:
        logger.warning(f'Rejected callback: {e.messages}')
        return _text('Missing required callback data', 400)

    try:
        CallbackService.apply_callback(
            checkout_request_id=data['CheckoutRequestID'],
            result_code=data['ResultCode'],
            mpesa_receipt_number=data.get('MpesaReceiptNumber')
        )
    except TransactionNotFound:
        logger.warning(f'No transaction found for callback: {data["CheckoutRequestID"]}')
        return _text('Transaction not found', 404)

    return _text('Callback received and transaction status updated', 200)
