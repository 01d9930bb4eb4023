class AppError(Exception):
    status_code = 500
    error = "Application error"

    def __init__(self, message, status_code=None):
        super().__init__(message)
        if status_code:
            self.status_code = status_code
        self.message = message

    def to_dict(self):
        return {'error': self.error}


class ValidationError(AppError):
    status_code = 400
    error = "Validation error"

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self):
        return {'error': self.error, 'errors': self.errors}


class UpstreamAuthError(AppError):
    """M-Pesa OAuth token could not be obtained"""
    status_code = 503
    error = "Service temporarily unavailable. Please try again later."


class UpstreamPushError(AppError):
    """M-Pesa rejected or failed the STK push request"""
    status_code = 502
    error = "Payment initiation failed. Please try again later."


class TransactionNotFound(AppError):
    status_code = 404
    error = "Transaction not found"


class StoreError(AppError):
    status_code = 500
    error = "Internal Server Error"


class StartupConfigError(Exception):
    """Missing configuration or unreachable database at boot"""
    pass
