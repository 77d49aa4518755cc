# storefront/services/fal_client.py
import requests
from requests import Response

from storefront.utils.settings import FAL_KEY, FAL_MODEL_ID, FAL_QUEUE_BASE_URL, HTTP_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class FalRequestError(Exception):
    """Non-2xx answer from the fal queue. `detail` is whatever the API put there."""

    def __init__(self, status_code: int, detail):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"fal.ai {status_code}: {detail}")

    @property
    def message(self) -> str:
        return str(self.detail)


def _detail(resp: Response):
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and "detail" in body:
        return body["detail"]
    return body


class FalClient:
    """
    fal.ai queue api.
    submit goes to the full model path, status polling to the model family
    ("fal-ai/fashn/tryon/v1.6" -> ".../fal-ai/fashn/requests/<id>").

    Submit is never retried, status reads are repeated by the poll loop.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model_id: str | None = None,
        timeout: int = HTTP_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key if api_key is not None else FAL_KEY
        self.base_url = (base_url or FAL_QUEUE_BASE_URL).rstrip("/")
        self.model_id = (model_id or FAL_MODEL_ID).strip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def submit_url(self) -> str:
        return f"{self.base_url}/{self.model_id}"

    def status_url(self, request_id: str) -> str:
        family = "/".join(self.model_id.split("/")[:2])
        return f"{self.base_url}/{family}/requests/{request_id}"

    def _headers(self) -> dict:
        return {"Authorization": f"Key {self.api_key}", "Content-Type": "application/json"}

    def submit(self, payload: dict) -> str:
        logger.info(f"FalClient POST {self.submit_url}")

        resp = requests.post(self.submit_url, json=payload, headers=self._headers(), timeout=self.timeout)
        if resp.status_code >= 400:
            raise FalRequestError(resp.status_code, _detail(resp))
        return resp.json()["request_id"]

    def fetch_status(self, request_id: str) -> dict:
        url = self.status_url(request_id)
        logger.debug(f"FalClient GET {url}")

        resp = requests.get(url, headers=self._headers(), timeout=self.timeout)
        if resp.status_code >= 400:
            raise FalRequestError(resp.status_code, _detail(resp))
        return resp.json()
