# storefront/services/payment_gateway.py
import base64
import hashlib
import json
import uuid
from decimal import Decimal, ROUND_HALF_UP

import requests
from requests import RequestException

from storefront.domain.errors import GatewayError
from storefront.utils.retry import http_retry
from storefront.utils.settings import (
    API_BASE_URL,
    HTTP_TIMEOUT_SECONDS,
    PHONEPE_HOST_URL,
    PHONEPE_MERCHANT_ID,
    PHONEPE_SALT_INDEX,
    PHONEPE_SALT_KEY,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PAY_PATH = "/pg/v1/pay"
STATUS_PATH = "/pg/v1/status"
SUCCESS_CODE = "PAYMENT_SUCCESS"


def checksum(body: str, path: str, salt_key: str, salt_index: str) -> str:
    """X-VERIFY header: sha256(body + path + salt_key) + '###' + salt_index."""
    digest = hashlib.sha256(f"{body}{path}{salt_key}".encode("utf-8")).hexdigest()
    return f"{digest}###{salt_index}"


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway:
    """
    PhonePe adapter.
    initiate  -> signed pay request, returns the launch url + transaction id
    check_status -> signed status read, True only for PAYMENT_SUCCESS
    """

    def __init__(
        self,
        host_url: str | None = None,
        merchant_id: str | None = None,
        salt_key: str | None = None,
        salt_index: str | None = None,
        callback_url: str | None = None,
        timeout: int = HTTP_TIMEOUT_SECONDS,
    ):
        self.host_url = (host_url or PHONEPE_HOST_URL).rstrip("/")
        self.merchant_id = merchant_id if merchant_id is not None else PHONEPE_MERCHANT_ID
        self.salt_key = salt_key if salt_key is not None else PHONEPE_SALT_KEY
        self.salt_index = salt_index if salt_index is not None else PHONEPE_SALT_INDEX
        self.callback_url = callback_url or f"{API_BASE_URL.rstrip('/')}/orders/callback"
        self.timeout = timeout

    def initiate(self, amount: Decimal, user_id: int, mobile_number: str | None) -> dict:
        transaction_id = f"TXN_{uuid.uuid4().hex}"

        payload = {
            "merchantId": self.merchant_id,
            "merchantTransactionId": transaction_id,
            "merchantUserId": f"USER_{user_id}",
            "amount": to_minor_units(amount),
            "redirectUrl": self.callback_url,
            "redirectMode": "POST",
            "callbackUrl": self.callback_url,
            "mobileNumber": mobile_number,
            "paymentInstrument": {"type": "PAY_PAGE"},
        }
        encoded = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")

        headers = {
            "Content-Type": "application/json",
            "X-VERIFY": checksum(encoded, PAY_PATH, self.salt_key, self.salt_index),
        }

        logger.info(f"PhonePe pay request {transaction_id} for user {user_id}, amount={payload['amount']}")
        try:
            resp = requests.post(
                f"{self.host_url}{PAY_PATH}",
                json={"request": encoded},
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payment_url = resp.json()["data"]["instrumentResponse"]["redirectInfo"]["url"]
        except (RequestException, ValueError, KeyError, TypeError) as e:
            logger.error(f"PhonePe init error for {transaction_id}: {e}")
            raise GatewayError(f"PhonePe init error: {e}")

        return {"payment_url": payment_url, "merchant_transaction_id": transaction_id}

    @http_retry()
    def _fetch_status(self, transaction_id: str) -> dict:
        path = f"{STATUS_PATH}/{self.merchant_id}/{transaction_id}"
        headers = {
            "Content-Type": "application/json",
            "X-VERIFY": checksum("", path, self.salt_key, self.salt_index),
            "X-MERCHANT-ID": self.merchant_id,
        }
        resp = requests.get(f"{self.host_url}{path}", headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def check_status(self, transaction_id: str | None) -> bool:
        """Any error reads as 'not confirmed yet', callers simply poll again."""
        if not transaction_id:
            return False
        try:
            data = self._fetch_status(transaction_id)
        except (RequestException, ValueError) as e:
            logger.warning(f"PhonePe status check failed for {transaction_id}: {e}")
            return False

        paid = data.get("code") == SUCCESS_CODE
        logger.info(f"PhonePe status {transaction_id}: {data.get('code')}")
        return paid
