"""
Custom Validators
Validation functions for common data types
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

# Separators allowed in a phone number; removed before validating or dialing
PHONE_SEPARATORS = re.compile(r'[\s\-\(\)]')


def clean_phone_number(phone: str) -> str:
    """Strip separators from a phone number, keeping any leading +"""
    return PHONE_SEPARATORS.sub('', str(phone))


def validate_phone_number(phone: str) -> tuple[bool, Optional[str]]:
    """
    Validate mobile phone number format

    Args:
        phone: Phone number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not phone:
        return False, "Phone number is required"

    phone_clean = clean_phone_number(phone)

    # Check if phone contains only digits and optional leading +
    if not re.match(r'^\+?\d+$', phone_clean):
        return False, "Phone number must contain only digits and optional leading +"

    phone_digits = phone_clean.lstrip('+')

    # Kenya numbers: 254XXXXXXXXX or 0XXXXXXXXX
    if phone_digits.startswith('254') and len(phone_digits) != 12:
        return False, "Kenyan phone number with country code should be 12 digits (254XXXXXXXXX)"

    if len(phone_digits) < 7 or len(phone_digits) > 15:
        return False, "Phone number should be between 7 and 15 digits"

    return True, None


def validate_amount(amount: any, min_amount: float = 0.01, max_amount: float = 1000000.00) -> tuple[
    bool, Optional[str]]:
    """
    Validate payment amount

    Args:
        amount: Amount to validate
        min_amount: Minimum allowed amount
        max_amount: Maximum allowed amount

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        if isinstance(amount, bool):
            return False, "Amount must be a number, got bool"
        if isinstance(amount, str):
            amount_decimal = Decimal(amount)
        elif isinstance(amount, (int, float)):
            amount_decimal = Decimal(str(amount))
        elif isinstance(amount, Decimal):
            amount_decimal = amount
        else:
            return False, f"Amount must be a number, got {type(amount).__name__}"

        if not amount_decimal.is_finite():
            return False, "Amount must be a finite number"

        if amount_decimal <= 0:
            return False, "Amount must be greater than 0"

        if amount_decimal < Decimal(str(min_amount)):
            return False, f"Amount must be at least {min_amount}"

        if amount_decimal > Decimal(str(max_amount)):
            return False, f"Amount must not exceed {max_amount}"

        # Check decimal places (max 2)
        if amount_decimal.as_tuple().exponent < -2:
            return False, "Amount can have at most 2 decimal places"

        return True, None

    except (InvalidOperation, ValueError) as e:
        return False, f"Invalid amount format: {str(e)}"
