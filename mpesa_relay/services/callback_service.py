"""
Callback Service
Applies M-Pesa STK push results to stored transactions
"""

from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from mpesa_relay.errors.exceptions import StoreError, TransactionNotFound
from mpesa_relay.extensions import db
from mpesa_relay.models import Transaction
from mpesa_relay.providers import map_result_code
from mpesa_relay.utils.logger import get_logger

logger = get_logger(__name__)


class CallbackService:
    """Service for finalizing transactions from provider callbacks"""

    @staticmethod
    def apply_callback(
            checkout_request_id: str,
            result_code: Any,
            mpesa_receipt_number: Any = None
    ) -> str:
        """
        Set the final status of a transaction

        Redelivered callbacks overwrite the stored values; there is no
        guard against a terminal status changing.

        Args:
            checkout_request_id: CheckoutRequestID from the callback
            result_code: M-Pesa ResultCode
            mpesa_receipt_number: Receipt number, if M-Pesa sent one; stored as text

        Returns:
            The status written to the transaction

        Raises:
            TransactionNotFound: No transaction has this CheckoutRequestID
            StoreError: Database update failed
        """
        status = map_result_code(result_code)
        receipt = str(mpesa_receipt_number) if mpesa_receipt_number not in (None, '') else None

        try:
            updated = Transaction.query.filter_by(
                transaction_id=checkout_request_id
            ).update({
                Transaction.status: status,
                Transaction.mpesa_receipt_number: receipt
            })

            if updated == 0:
                db.session.rollback()
                raise TransactionNotFound(f'Transaction not found: {checkout_request_id}')

            db.session.commit()

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f'Error updating transaction status for {checkout_request_id}: {str(e)}')
            raise StoreError('Failed to update transaction') from e

        logger.info(f'Transaction {checkout_request_id} updated to {status}')

        return status
