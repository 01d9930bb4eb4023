"""
Pytest Configuration and Fixtures
"""
import json
import os
import tempfile
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest

os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='mpesa-relay-logs-'))

from mpesa_relay import create_app
from mpesa_relay.extensions import db as _db
from mpesa_relay.models import Transaction, TransactionStatus


def mock_http_response(json_data, status_code: int = 200) -> Mock:
    """Return a mock requests.Response whose .json() returns json_data."""
    resp = Mock()
    resp.ok = 200 <= status_code < 400
    resp.status_code = status_code
    if isinstance(json_data, Exception):
        resp.json.side_effect = json_data
        resp.text = 'not json'
    else:
        resp.json.return_value = json_data
        resp.text = json.dumps(json_data)
    resp.headers = {"Content-Type": "application/json"}
    return resp


def stk_push_response(checkout_id: str = 'ws_1') -> dict:
    return {
        'MerchantRequestID': '29115-34620561-1',
        'CheckoutRequestID': checkout_id,
        'ResponseCode': '0',
        'ResponseDescription': 'Success. Request accepted for processing',
        'CustomerMessage': 'Success. Request accepted for processing'
    }


@pytest.fixture(scope='function')
def app():
    """Create application for testing"""
    app = create_app('testing')

    # Establish application context
    ctx = app.app_context()
    ctx.push()

    yield app

    ctx.pop()


@pytest.fixture(scope='function')
def db(app):
    """Create database for testing"""
    _db.create_all()

    yield _db

    _db.session.remove()
    _db.drop_all()


@pytest.fixture(scope='function')
def client(app, db):
    """Create a test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def mock_daraja():
    """
    Patch the HTTP session used by MPesaProvider.

    Yields (mock_get, mock_post); by default the token call returns "T1"
    and the STK push returns CheckoutRequestID "ws_1".
    """
    with patch('mpesa_relay.providers.mpesa_provider.requests.Session.get') as mock_get, \
            patch('mpesa_relay.providers.mpesa_provider.requests.Session.post') as mock_post:
        mock_get.return_value = mock_http_response({'access_token': 'T1', 'expires_in': '3599'})
        mock_post.return_value = mock_http_response(stk_push_response('ws_1'))
        yield mock_get, mock_post


@pytest.fixture(scope='function')
def sample_transaction(db):
    """Create a pending transaction for testing"""
    transaction = Transaction(
        transaction_id='ws_1',
        phone_number='254712345678',
        amount=Decimal('100'),
        status=TransactionStatus.PENDING.value,
        description='Payment for Order ORD1'
    )

    db.session.add(transaction)
    db.session.commit()

    return transaction


@pytest.fixture
def valid_payment_request():
    return {
        'phone_number': '254712345678',
        'amount': '100',
        'order_id': 'ORD1',
        'customer_email': 'a@b.com'
    }


@pytest.fixture
def http_response():
    """Factory for mock Daraja HTTP responses"""
    return mock_http_response


@pytest.fixture
def stk_response():
    """Factory for accepted STK push response bodies"""
    return stk_push_response
