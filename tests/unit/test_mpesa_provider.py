"""
Unit Tests for the M-Pesa Provider
==================================
All HTTP calls go through provider._session.get / provider._session.post;
patch those on the instance.
"""

import base64
from decimal import Decimal
from unittest.mock import patch

import pytest
import requests

from mpesa_relay.errors.exceptions import UpstreamAuthError, UpstreamPushError
from mpesa_relay.providers.mpesa_provider import (
    MPesaProvider,
    _BASE_URLS,
    build_description,
    map_result_code,
)


class TestMPesaProvider:
    """Tests for the Daraja STK push adapter."""

    # ── fixtures ──────────────────────────────────────────────────────────

    @pytest.fixture
    def base_config(self):
        return {
            "environment":     "sandbox",
            "consumer_key":    "test_consumer_key",
            "consumer_secret": "test_consumer_secret",
            "shortcode":       "174379",
            "passkey":         "test_passkey",
            "callback_url":    "https://example.com/callback",
            "timeout":         10,
        }

    @pytest.fixture
    def provider(self, base_config):
        return MPesaProvider(base_config)

    # ── initialisation ────────────────────────────────────────────────────

    def test_initialization_sandbox(self, provider):
        assert provider.shortcode   == "174379"
        assert provider.environment == "sandbox"
        assert provider.base_url    == _BASE_URLS["sandbox"]

    def test_defaults_to_production(self, base_config):
        base_config.pop("environment")
        provider = MPesaProvider(base_config)
        assert provider.base_url == "https://api.safaricom.co.ke"

    def test_missing_credentials_raises(self, base_config):
        with pytest.raises(ValueError, match="consumer_key"):
            MPesaProvider({**base_config, "consumer_secret": ""})

    def test_unknown_environment_raises(self, base_config):
        with pytest.raises(ValueError, match="environment"):
            MPesaProvider({**base_config, "environment": "staging"})

    # ── fetch_token ───────────────────────────────────────────────────────

    def test_fetch_token_uses_basic_auth(self, provider, http_response):
        with patch.object(provider._session, "get") as mock_get:
            mock_get.return_value = http_response({"access_token": "T1", "expires_in": "3599"})

            assert provider.fetch_token() == "T1"

        args, kwargs = mock_get.call_args
        assert args[0] == (
            "https://sandbox.safaricom.co.ke/oauth/v1/generate?grant_type=client_credentials"
        )
        expected = base64.b64encode(b"test_consumer_key:test_consumer_secret").decode()
        assert kwargs["headers"]["Authorization"] == f"Basic {expected}"
        assert kwargs["timeout"] == 10

    def test_fetch_token_is_not_cached(self, provider, http_response):
        with patch.object(provider._session, "get") as mock_get:
            mock_get.return_value = http_response({"access_token": "T1"})

            provider.fetch_token()
            provider.fetch_token()

        assert mock_get.call_count == 2

    def test_fetch_token_network_error(self, provider):
        with patch.object(provider._session, "get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(UpstreamAuthError):
                provider.fetch_token()

    def test_fetch_token_http_error(self, provider, http_response):
        with patch.object(provider._session, "get") as mock_get:
            mock_get.return_value = http_response({"errorMessage": "Invalid credentials"}, 401)

            with pytest.raises(UpstreamAuthError, match="401"):
                provider.fetch_token()

    def test_fetch_token_invalid_json(self, provider, http_response):
        with patch.object(provider._session, "get") as mock_get:
            mock_get.return_value = http_response(ValueError("No JSON"))

            with pytest.raises(UpstreamAuthError):
                provider.fetch_token()

    def test_fetch_token_missing_access_token(self, provider, http_response):
        with patch.object(provider._session, "get") as mock_get:
            mock_get.return_value = http_response({"expires_in": "3599"})

            with pytest.raises(UpstreamAuthError, match="access_token"):
                provider.fetch_token()

    # ── initiate ──────────────────────────────────────────────────────────

    def test_initiate_sends_stk_push(self, provider, http_response, stk_response):
        with patch.object(provider._session, "post") as mock_post, \
                patch.object(provider, "_generate_password", return_value=("20240101120000", "cGFzcw==")):
            mock_post.return_value = http_response(stk_response("ws_1"))

            result = provider.initiate("254712345678", "100", "ORD1", "T1")

        assert result["checkout_id"] == "ws_1"
        assert result["raw_provider_response"] == stk_response("ws_1")

        args, kwargs = mock_post.call_args
        assert args[0] == "https://sandbox.safaricom.co.ke/mpesa/stkpush/v1/processrequest"
        assert kwargs["headers"]["Authorization"] == "Bearer T1"
        assert kwargs["json"] == {
            "BusinessShortCode": "174379",
            "Password":          "cGFzcw==",
            "Timestamp":         "20240101120000",
            "TransactionType":   "CustomerPayBillOnline",
            "Amount":            "100",
            "PartyA":            "254712345678",
            "PartyB":            "174379",
            "PhoneNumber":       "254712345678",
            "CallBackURL":       "https://example.com/callback",
            "AccountReference":  "ORD1",
            "TransactionDesc":   "Payment for Order ORD1",
        }

    def test_initiate_formats_decimal_amount(self, provider, http_response, stk_response):
        with patch.object(provider._session, "post") as mock_post:
            mock_post.return_value = http_response(stk_response())

            provider.initiate("254712345678", Decimal("150.50"), "ORD2", "T1")

        assert mock_post.call_args.kwargs["json"]["Amount"] == "150.50"

    def test_initiate_normalises_local_phone(self, provider, http_response, stk_response):
        with patch.object(provider._session, "post") as mock_post:
            mock_post.return_value = http_response(stk_response())

            provider.initiate("0712345678", "100", "ORD1", "T1")

        payload = mock_post.call_args.kwargs["json"]
        assert payload["PartyA"] == "254712345678"
        assert payload["PhoneNumber"] == "254712345678"

    def test_initiate_http_error(self, provider, http_response):
        with patch.object(provider._session, "post") as mock_post:
            mock_post.return_value = http_response(
                {"errorCode": "400.002.02", "errorMessage": "Bad Request - Invalid Amount"}, 400
            )

            with pytest.raises(UpstreamPushError, match="Invalid Amount"):
                provider.initiate("254712345678", "100", "ORD1", "T1")

    def test_initiate_error_code_in_success_body(self, provider, http_response):
        with patch.object(provider._session, "post") as mock_post:
            mock_post.return_value = http_response(
                {"errorCode": "500.001.1001", "errorMessage": "Unable to lock subscriber"}
            )

            with pytest.raises(UpstreamPushError, match="500.001.1001"):
                provider.initiate("254712345678", "100", "ORD1", "T1")

    def test_initiate_missing_checkout_id(self, provider, http_response):
        with patch.object(provider._session, "post") as mock_post:
            mock_post.return_value = http_response({"ResponseCode": "0"})

            with pytest.raises(UpstreamPushError, match="CheckoutRequestID"):
                provider.initiate("254712345678", "100", "ORD1", "T1")

    def test_initiate_invalid_json(self, provider, http_response):
        with patch.object(provider._session, "post") as mock_post:
            mock_post.return_value = http_response(ValueError("No JSON"), 502)

            with pytest.raises(UpstreamPushError):
                provider.initiate("254712345678", "100", "ORD1", "T1")

    def test_initiate_network_error(self, provider):
        with patch.object(provider._session, "post", side_effect=requests.Timeout("slow")):
            with pytest.raises(UpstreamPushError, match="network error"):
                provider.initiate("254712345678", "100", "ORD1", "T1")

    # ── password ──────────────────────────────────────────────────────────

    def test_generate_password(self, provider):
        timestamp, password = provider._generate_password("20240101120000")

        assert timestamp == "20240101120000"
        assert base64.b64decode(password).decode() == "174379test_passkey20240101120000"

    def test_generated_timestamp_format(self, provider):
        timestamp, _ = provider._generate_password()

        assert len(timestamp) == 14
        assert timestamp.isdigit()

    @pytest.mark.parametrize("raw, expected", [
        ("+254712345678", "254712345678"),
        ("0712345678",    "254712345678"),
        ("712345678",     "254712345678"),
        ("254 712-345678", "254712345678"),
        ("(0712) 345678",  "254712345678"),
        ("+1 (415) 555-2671", "14155552671"),
        ("+14155552671",   "14155552671"),
    ])
    def test_normalise_phone(self, raw, expected):
        assert MPesaProvider._normalise_phone(raw) == expected

    # ── callbacks ─────────────────────────────────────────────────────────

    def test_parse_callback_flat_payload(self):
        payload = {"ResultCode": "0", "CheckoutRequestID": "ws_1", "MpesaReceiptNumber": "R1"}

        assert MPesaProvider.parse_callback(payload) == payload

    def test_parse_callback_daraja_envelope(self):
        payload = {
            "Body": {
                "stkCallback": {
                    "MerchantRequestID": "29115-34620561-1",
                    "CheckoutRequestID": "ws_1",
                    "ResultCode": 0,
                    "ResultDesc": "The service request is processed successfully.",
                    "CallbackMetadata": {
                        "Item": [
                            {"Name": "Amount", "Value": 100},
                            {"Name": "MpesaReceiptNumber", "Value": "R1"},
                            {"Name": "PhoneNumber", "Value": 254712345678},
                        ]
                    },
                }
            }
        }

        flat = MPesaProvider.parse_callback(payload)

        assert flat["CheckoutRequestID"] == "ws_1"
        assert flat["ResultCode"] == 0
        assert flat["MpesaReceiptNumber"] == "R1"
        assert "CallbackMetadata" not in flat

    def test_parse_callback_cancelled_has_no_metadata(self):
        payload = {"Body": {"stkCallback": {"CheckoutRequestID": "ws_1", "ResultCode": 1032}}}

        flat = MPesaProvider.parse_callback(payload)

        assert flat == {"CheckoutRequestID": "ws_1", "ResultCode": 1032}

    @pytest.mark.parametrize("payload", [None, [], "text"])
    def test_parse_callback_non_object(self, payload):
        assert MPesaProvider.parse_callback(payload) == {}


class TestResultCodeMapping:

    @pytest.mark.parametrize("code", ["0", 0, " 0 "])
    def test_zero_is_success(self, code):
        assert map_result_code(code) == "Success"

    @pytest.mark.parametrize("code", ["1", "1032", 1037, "2001", "00"])
    def test_anything_else_is_failed(self, code):
        assert map_result_code(code) == "Failed"


def test_build_description():
    assert build_description("ORD1") == "Payment for Order ORD1"
