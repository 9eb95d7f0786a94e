# app/services/mpesa_client.py
import base64
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

import requests
from requests import RequestException

from app.domain.errors import PaymentProviderError
from app.utils import settings
from app.utils.logging import get_logger
from app.utils.retry import http_retry

logger = get_logger(__name__)


def normalize_phone(phone_no: str) -> str:
    """07XXXXXXXX / +2547XXXXXXXX / 2547XXXXXXXX -> 2547XXXXXXXX."""
    phone = phone_no.strip().lstrip("+")
    if phone.startswith("254"):
        return phone
    if phone.startswith("0"):
        return f"254{phone[1:]}"
    return phone


class MpesaClient:
    """Daraja (Safaricom) STK push client."""

    def __init__(
        self,
        base_url: str | None = None,
        consumer_key: str | None = None,
        consumer_secret: str | None = None,
        short_code: str | None = None,
        pass_key: str | None = None,
        callback_url: str | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url or settings.MPESA_BASE_URL).rstrip("/")
        self.consumer_key = consumer_key or settings.MPESA_CONSUMER_KEY
        self.consumer_secret = consumer_secret or settings.MPESA_CONSUMER_SECRET
        self.short_code = short_code or settings.MPESA_SHORT_CODE
        self.pass_key = pass_key or settings.MPESA_PASS_KEY
        self.callback_url = callback_url or settings.MPESA_CALLBACK_URL
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS

    @http_retry()
    def _fetch_access_token(self) -> str:
        url = f"{self.base_url}/oauth/v1/generate?grant_type=client_credentials"
        logger.info(f"MpesaClient GET {url}")

        resp = requests.get(url, auth=(self.consumer_key, self.consumer_secret), timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()["access_token"]

    def get_access_token(self) -> str:
        try:
            return self._fetch_access_token()
        except (RequestException, KeyError, ValueError) as e:
            logger.error(f"M-Pesa token request failed: {e}")
            raise PaymentProviderError("Could not authenticate with M-Pesa") from e

    def _password(self, timestamp: str) -> str:
        raw = f"{self.short_code}{self.pass_key}{timestamp}".encode("utf-8")
        return base64.b64encode(raw).decode("utf-8")

    def stk_push(self, phone_number: str, amount: Decimal, token: str, description: str = "Payment for order") -> dict:
        """Send the request-to-pay prompt; returns the raw Daraja response body.

        Not retried: a repeated push would prompt the customer twice.
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        # Daraja only takes whole shillings
        whole_amount = int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        payload = {
            "BusinessShortCode": self.short_code,
            "Password": self._password(timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": whole_amount,
            "PartyA": phone_number,
            "PartyB": self.short_code,
            "PhoneNumber": phone_number,
            "CallBackURL": self.callback_url,
            "AccountReference": settings.MPESA_ACCOUNT_REFERENCE,
            "TransactionDesc": description,
        }
        url = f"{self.base_url}/mpesa/stkpush/v1/processrequest"
        logger.info(f"MpesaClient POST {url} for {phone_number[:6]}***")

        try:
            resp = requests.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
            body = resp.json()
        except (RequestException, ValueError) as e:
            logger.error(f"M-Pesa STK push failed: {e}")
            raise PaymentProviderError("M-Pesa STK push request failed") from e

        # daraja reports rejections in the body, sometimes with a 4xx
        if not resp.ok and "ResponseCode" not in body:
            reason = body.get("errorMessage") or f"HTTP {resp.status_code}"
            return {"ResponseCode": str(body.get("errorCode", resp.status_code)), "ResponseDescription": reason}
        return body
