from mpesa_relay.models.transaction import Transaction, TransactionStatus
from mpesa_relay.models.api_log import ApiLog

__all__ = ['Transaction', 'TransactionStatus', 'ApiLog']
