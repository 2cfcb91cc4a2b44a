# app/core/payment_gateway.py
"""
Payment gateway integration (Razorpay Orders API).

Two pieces:
  - RazorpayGateway.create_intent(): synchronous, required by checkout.
    Transport failures are retried (connection errors only, so a request
    that may have reached the gateway is never replayed); anything else
    surfaces as UpstreamError.
  - PaymentVerifier.verify(): HMAC-SHA256 check of the callback. This is
    the only trust boundary for the unauthenticated callback endpoint.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Protocol

import requests
from requests import RequestException
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.ConnectionError),
    )


@dataclass(frozen=True)
class GatewayIntent:
    id: str
    amount: int
    currency: str


class PaymentGateway(Protocol):
    key_id: str

    def create_intent(self, amount_minor: int, currency: str, receipt: str) -> GatewayIntent:
        ...


class RazorpayGateway:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
    ):
        self.key_id = key_id
        self._key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _post_order(self, payload: dict) -> dict:
        url = f"{self.base_url}/orders"
        logger.info("Razorpay POST %s receipt=%s", url, payload.get("receipt"))

        resp = requests.post(
            url,
            json=payload,
            auth=(self.key_id, self._key_secret),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def create_intent(self, amount_minor: int, currency: str, receipt: str) -> GatewayIntent:
        """
        Create a gateway order for `amount_minor` (paise for INR).

        Raises:
            UpstreamError: gateway unreachable, timed out, or rejected the call.
        """
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        try:
            data = self._post_order(payload)
        except RequestException as e:
            logger.error("Razorpay order creation failed: %s", e)
            raise UpstreamError("Payment gateway is unavailable, please retry")

        try:
            return GatewayIntent(
                id=data["id"],
                amount=int(data["amount"]),
                currency=data["currency"],
            )
        except (KeyError, TypeError, ValueError):
            logger.error("Unexpected Razorpay response: %r", data)
            raise UpstreamError("Payment gateway returned an invalid response")


class PaymentVerifier:
    """
    Verifies `signature == hex(HMAC_SHA256(secret, order_id + "|" + payment_id))`.
    """

    def __init__(self, secret: str):
        self._secret = secret.encode("utf-8")

    def sign(self, order_id: str, payment_id: str) -> str:
        body = f"{order_id}|{payment_id}".encode("utf-8")
        return hmac.new(self._secret, body, hashlib.sha256).hexdigest()

    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        """
        Constant-time comparison. Never raises; malformed input is False.
        """
        if not all(isinstance(v, str) and v for v in (order_id, payment_id, signature)):
            return False
        try:
            expected = self.sign(order_id, payment_id)
            return hmac.compare_digest(expected, signature)
        except (TypeError, ValueError, UnicodeEncodeError):
            return False
