from flask import current_app

from mpesa_relay.providers.mpesa_provider import (
    MPesaProvider,
    map_result_code,
    build_description,
)


def get_provider() -> MPesaProvider:
    """
    Build an M-Pesa provider from the Flask app config.

    Returns:
        Initialized provider instance
    """
    return MPesaProvider(_get_provider_config())


def _get_provider_config() -> dict:
    """Get provider configuration from Flask app config."""
    return {
        'consumer_key':    current_app.config.get('CONSUMER_KEY'),
        'consumer_secret': current_app.config.get('CONSUMER_SECRET'),
        'shortcode':       current_app.config.get('SHORT_CODE'),
        'passkey':         current_app.config.get('PASSKEY'),
        'callback_url':    current_app.config.get('CALLBACK_URL'),
        'environment':     current_app.config.get('MPESA_ENV', 'production'),
        'timeout':         current_app.config.get('MPESA_TIMEOUT', 30),
    }


__all__ = ['get_provider', 'MPesaProvider', 'map_result_code', 'build_description']
