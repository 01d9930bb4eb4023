"""
Utils Package
Utility functions and helpers
"""

from mpesa_relay.utils.logger import get_logger, configure_app_logging
from mpesa_relay.utils.validators import (
    clean_phone_number,
    validate_phone_number,
    validate_amount
)

__all__ = [
    'get_logger',
    'configure_app_logging',
    'clean_phone_number',
    'validate_phone_number',
    'validate_amount'
]
