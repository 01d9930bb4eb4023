from decimal import Decimal
from typing import Any, Dict, Tuple

from sqlalchemy.exc import SQLAlchemyError

from mpesa_relay.errors.exceptions import StoreError
from mpesa_relay.extensions import db
from mpesa_relay.models import Transaction, TransactionStatus
from mpesa_relay.providers import get_provider, build_description
from mpesa_relay.utils.logger import get_logger

logger = get_logger(__name__)


class PaymentService:
    """Core payment initiation service"""

    @staticmethod
    def initiate_payment(
            phone_number: str,
            amount: Decimal,
            order_id: str,
            customer_email: str
    ) -> Tuple[Transaction, Dict[str, Any]]:
        """
        Send an STK push and record the pending transaction

        Token, push and insert run in that order; the row is only written
        once M-Pesa has accepted the push.

        Args:
            phone_number: Payer's phone number
            amount: Payment amount
            order_id: Merchant order reference
            customer_email: Payer's email address

        Returns:
            Tuple of (created Transaction, raw M-Pesa response)

        Raises:
            UpstreamAuthError: Token request failed
            UpstreamPushError: STK push rejected
            StoreError: Transaction row could not be written
        """
        provider = get_provider()

        token = provider.fetch_token()
        result = provider.initiate(phone_number, amount, order_id, token)

        transaction = Transaction(
            transaction_id=result['checkout_id'],
            phone_number=phone_number,
            amount=amount,
            status=TransactionStatus.PENDING.value,
            description=build_description(order_id)
        )

        db.session.add(transaction)

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            # M-Pesa already holds this checkout; it is now orphaned
            logger.error(
                f'Failed to record transaction {result["checkout_id"]} '
                f'for order {order_id}: {str(e)}'
            )
            raise StoreError('Failed to record transaction') from e

        logger.info(
            f'Payment initiated for order {order_id} ({customer_email}): '
            f'checkout {transaction.transaction_id}, row {transaction.id}'
        )

        return transaction, result['raw_provider_response']
