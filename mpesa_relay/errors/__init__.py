from mpesa_relay.errors.exceptions import (
    AppError,
    ValidationError,
    UpstreamAuthError,
    UpstreamPushError,
    TransactionNotFound,
    StoreError,
    StartupConfigError,
)

__all__= [
    'AppError',
    'ValidationError',
    'UpstreamAuthError',
    'UpstreamPushError',
    'TransactionNotFound',
    'StoreError',
    'StartupConfigError',
]
