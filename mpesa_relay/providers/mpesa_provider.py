"""
M-Pesa Payment Provider
Based on the Safaricom Daraja API.

Supported flows
---------------
Authentication
    GET  /oauth/v1/generate?grant_type=client_credentials  (Basic auth)
    A fresh token is requested for every payment; tokens are not cached.

STK Push (Lipa na M-Pesa Online)
    POST /mpesa/stkpush/v1/processrequest                 (Bearer auth)

Callback
    Safaricom POSTs the payment outcome to CallBackURL. Both the raw Daraja
    envelope (Body.stkCallback) and an already-flattened body are accepted
    by parse_callback().

Required config keys
--------------------
    consumer_key        – From Safaricom Developer Portal app
    consumer_secret     – From Safaricom Developer Portal app
    shortcode           – Business shortcode (PayBill)
    passkey             – Lipa na M-Pesa Online passkey
    callback_url        – Publicly reachable callback endpoint

Optional config keys
--------------------
    environment         – "production" (default) | "sandbox"
    transaction_type    – "CustomerPayBillOnline" (default) | "CustomerBuyGoodsOnline"
    timeout             – Seconds to wait on each Daraja call (default 30)
"""

import base64
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

import requests

from mpesa_relay.errors.exceptions import UpstreamAuthError, UpstreamPushError
from mpesa_relay.models.transaction import TransactionStatus
from mpesa_relay.utils.logger import get_logger
from mpesa_relay.utils.validators import clean_phone_number

logger = get_logger(__name__)

# Daraja base URLs
_BASE_URLS = {
    "sandbox":    "https://sandbox.safaricom.co.ke",
    "production": "https://api.safaricom.co.ke",
}

# The only ResultCode Daraja uses for a completed payment
SUCCESS_RESULT_CODE = "0"


def map_result_code(result_code: Any) -> str:
    """Map an M-Pesa ResultCode to a transaction status."""
    if str(result_code).strip() == SUCCESS_RESULT_CODE:
        return TransactionStatus.SUCCESS.value
    return TransactionStatus.FAILED.value


def build_description(order_id: str) -> str:
    return f"Payment for Order {order_id}"


class MPesaProvider:
    """M-Pesa (Daraja API) STK Push adapter."""

    # Daraja endpoint paths
    _EP_AUTH     = "/oauth/v1/generate"
    _EP_STK_PUSH = "/mpesa/stkpush/v1/processrequest"

    def __init__(self, config: Dict[str, Any]):
        self.consumer_key     = config.get("consumer_key", "")
        self.consumer_secret  = config.get("consumer_secret", "")
        self.shortcode        = str(config.get("shortcode", ""))
        self.passkey          = config.get("passkey", "")
        self.callback_url     = config.get("callback_url", "")
        self.environment      = (config.get("environment") or "production").lower()
        self.transaction_type = config.get("transaction_type", "CustomerPayBillOnline")
        self.timeout          = config.get("timeout", 30)

        if not self.consumer_key or not self.consumer_secret:
            raise ValueError("MPesaProvider: 'consumer_key' and 'consumer_secret' are required")
        if self.environment not in _BASE_URLS:
            raise ValueError(f"MPesaProvider: environment must be 'sandbox' or 'production', got '{self.environment}'")

        self.base_url = _BASE_URLS[self.environment]

        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    # Token Provider

    def fetch_token(self) -> str:
        """
        Exchange the consumer key/secret for an OAuth access token.

        Raises:
            UpstreamAuthError: Network failure, non-2xx status or a body
                without an access_token.
        """
        credentials = f"{self.consumer_key}:{self.consumer_secret}"
        encoded = base64.b64encode(credentials.encode("utf-8")).decode("utf-8")
        url = f"{self.base_url}{self._EP_AUTH}?grant_type=client_credentials"

        try:
            resp = self._session.get(
                url,
                headers={"Authorization": f"Basic {encoded}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Error generating M-Pesa token: %s", exc)
            raise UpstreamAuthError(f"MPesaProvider: token request failed – {exc}") from exc

        if not resp.ok:
            logger.error("Error generating M-Pesa token: HTTP %s", resp.status_code)
            raise UpstreamAuthError(f"MPesaProvider: token request returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("Error generating M-Pesa token: invalid JSON body")
            raise UpstreamAuthError("MPesaProvider: token response is not JSON") from exc

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            logger.error("Error generating M-Pesa token: access_token missing")
            raise UpstreamAuthError("MPesaProvider: token response has no access_token")

        return token

    # Push-Payment Initiator

    def initiate(
        self,
        phone: str,
        amount: Any,
        order_id: str,
        token: str,
    ) -> Dict[str, Any]:
        """
        Send an STK Push prompt to the payer's phone.

        Returns:
            Dict containing:
                - checkout_id: CheckoutRequestID assigned by M-Pesa
                - raw_provider_response: Daraja response body

        Raises:
            UpstreamPushError: Network failure, non-2xx status, a Daraja
                error code or a body without a CheckoutRequestID.
        """
        timestamp, password = self._generate_password()
        phone = self._normalise_phone(phone)

        payload = {
            "BusinessShortCode": self.shortcode,
            "Password":          password,
            "Timestamp":         timestamp,
            "TransactionType":   self.transaction_type,
            "Amount":            self._format_amount(amount),
            "PartyA":            phone,
            "PartyB":            self.shortcode,
            "PhoneNumber":       phone,
            "CallBackURL":       self.callback_url,
            "AccountReference":  order_id,
            "TransactionDesc":   build_description(order_id),
        }

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type":  "application/json",
        }

        url = f"{self.base_url}{self._EP_STK_PUSH}"
        try:
            resp = self._session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Error initiating STK Push: %s", exc)
            raise UpstreamPushError(f"MPesaProvider [stk_push]: network error – {exc}") from exc

        data = self._handle_response(resp, "stk_push")

        checkout_id = data.get("CheckoutRequestID")
        if not checkout_id:
            logger.error("Error initiating STK Push: CheckoutRequestID missing")
            raise UpstreamPushError("MPesaProvider [stk_push]: response has no CheckoutRequestID")

        return {
            "checkout_id":           checkout_id,
            "raw_provider_response": data,
        }

    # Callback

    @staticmethod
    def parse_callback(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Flatten an STK Push callback.

        Accepts the Daraja envelope

            {"Body": {"stkCallback": {"ResultCode": 0, "CheckoutRequestID": "...",
                "CallbackMetadata": {"Item": [{"Name": "MpesaReceiptNumber", "Value": "..."}]}}}}

        or a body that already carries ResultCode / CheckoutRequestID /
        MpesaReceiptNumber at the top level.
        """
        if not isinstance(payload, dict):
            return {}

        body = payload.get("Body")
        stk = body.get("stkCallback") if isinstance(body, dict) else None
        if not isinstance(stk, dict):
            return dict(payload)

        flat = {key: value for key, value in stk.items() if key != "CallbackMetadata"}

        # CallbackMetadata items into flat keys
        metadata = stk.get("CallbackMetadata") or {}
        for item in metadata.get("Item", []) if isinstance(metadata, dict) else []:
            if isinstance(item, dict) and item.get("Name"):
                flat.setdefault(item["Name"], item.get("Value"))

        return flat

    # Private helpers

    def _handle_response(self, resp: requests.Response, context: str) -> Dict[str, Any]:
        """Parse Daraja response, raising on error codes."""
        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("Error initiating STK Push: HTTP %s with non-JSON body", resp.status_code)
            raise UpstreamPushError(
                f"MPesaProvider [{context}] HTTP {resp.status_code}: invalid JSON body"
            ) from exc

        if not isinstance(data, dict):
            raise UpstreamPushError(f"MPesaProvider [{context}]: unexpected response shape")

        logger.debug("MPesa [%s] HTTP %s: %s", context, resp.status_code, data)

        error_code = data.get("errorCode")
        error_msg  = (
            data.get("errorMessage")
            or data.get("ResponseDescription")
            or resp.text[:300]
        )

        if not resp.ok:
            logger.error("Error initiating STK Push: HTTP %s: %s", resp.status_code, error_msg)
            raise UpstreamPushError(
                f"MPesaProvider [{context}] HTTP {resp.status_code}: {error_msg}"
            )

        # Daraja error codes in 2xx responses (e.g. "500.001.1001")
        if error_code:
            logger.error("Error initiating STK Push: Daraja error %s: %s", error_code, error_msg)
            raise UpstreamPushError(
                f"MPesaProvider [{context}] Daraja error {error_code}: {error_msg}"
            )

        return data

    def _generate_password(self, timestamp: Optional[str] = None):
        """
        Generate the STK Push password and timestamp.

        Password = Base64(BusinessShortCode + Passkey + Timestamp)
        Timestamp = YYYYMMDDHHmmss (UTC)
        """
        timestamp = timestamp or datetime.utcnow().strftime("%Y%m%d%H%M%S")
        raw = f"{self.shortcode}{self.passkey}{timestamp}"
        password = base64.b64encode(raw.encode("utf-8")).decode("utf-8")
        return timestamp, password

    @staticmethod
    def _format_amount(amount: Any) -> str:
        if isinstance(amount, Decimal):
            return format(amount, "f")
        return str(amount)

    @staticmethod
    def _normalise_phone(phone: str) -> str:
        """
        Normalise a Kenyan phone number to Safaricom's format (2547XXXXXXXX).

        Kenyan forms: +254712345678, 254712345678, 0712345678, 712345678.
        Any other number is sent as its digits, without separators or "+".
        """
        if not phone:
            return ""
        phone = clean_phone_number(phone).lstrip("+")
        if phone.startswith("254"):
            return phone
        if phone.startswith("0") and len(phone) == 10:
            return "254" + phone[1:]
        if len(phone) == 9 and phone[0] in "17":
            return "254" + phone
        return phone
