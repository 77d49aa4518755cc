# storefront/services/tryon_poller.py
from enum import Enum

from requests import RequestException
from sqlalchemy.orm import Session

from storefront.domain.enums import TryOnStatus
from storefront.repos.try_on_repo import TryOnRepo
from storefront.services.fal_client import FalClient, FalRequestError
from storefront.utils.settings import TRYON_MAX_POLL_ATTEMPTS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PollOutcome(str, Enum):
    CONTINUE = "CONTINUE"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"   # record gone or settled elsewhere


_SETTLED = {
    TryOnStatus.COMPLETED: PollOutcome.COMPLETED,
    TryOnStatus.FAILED: PollOutcome.FAILED,
    TryOnStatus.TIMEOUT: PollOutcome.TIMEOUT,
}


def first_image_url(data: dict) -> str | None:
    images = data.get("images") or []
    if images and isinstance(images[0], dict):
        return images[0].get("url")
    return None


class TryOnPoller:
    """
    One tick of the try-on poll loop. The caller (celery task) reschedules
    while the outcome is CONTINUE.

    - COMPLETED, or images without any status -> store first image, stop
    - FAILED                                  -> stop
    - 400 "in progress" / 404                 -> keep polling
    - any other http error, network error     -> FAILED, stop
    - attempt == max without an answer        -> TIMEOUT, stop

    Every tick reloads the record first, a deleted or already settled record
    ends the loop.
    """

    def __init__(self, db: Session, fal_client: FalClient, max_attempts: int = TRYON_MAX_POLL_ATTEMPTS):
        self.repo = TryOnRepo(db)
        self.fal = fal_client
        self.max_attempts = max_attempts

    def poll_once(self, record_id: int, request_id: str, attempt: int) -> PollOutcome:
        record = self.repo.get(record_id)
        if record is None or record.status != TryOnStatus.PROCESSING.value:
            logger.info(f"[POLL STOP] Record {record_id} is gone or settled, job {request_id} dropped")
            return PollOutcome.CANCELLED

        logger.debug(f"[POLL ATTEMPT {attempt}/{self.max_attempts}] job {request_id}")

        try:
            data = self.fal.fetch_status(request_id)
        except FalRequestError as e:
            if e.status_code == 400 and "in progress" in e.message.lower():
                logger.debug(f"[POLL WAIT] Job {request_id} still processing")
            elif e.status_code == 404:
                logger.warning(f"[POLL WAIT] Job {request_id} not in queue yet (404)")
            else:
                logger.error(f"[POLL FATAL] Job {request_id}: {e.status_code} {e.detail}")
                return self._settle(record_id, request_id, TryOnStatus.FAILED)
        except RequestException as e:
            logger.error(f"[POLL FATAL] Job {request_id}: {e}")
            return self._settle(record_id, request_id, TryOnStatus.FAILED)
        else:
            outcome = self._handle_answer(record_id, request_id, data)
            if outcome is not None:
                return outcome

        if attempt >= self.max_attempts:
            logger.warning(f"[POLL TIMEOUT] Job {request_id} after {attempt} attempts")
            return self._settle(record_id, request_id, TryOnStatus.TIMEOUT)

        return PollOutcome.CONTINUE

    def _handle_answer(self, record_id: int, request_id: str, data: dict) -> PollOutcome | None:
        status = data.get("status")

        if status == "COMPLETED" or (not status and data.get("images")):
            result = data.get("payload") or data
            url = first_image_url(result)
            if not url:
                logger.error(f"[POLL ERROR] Job {request_id} completed without an image url")
                return self._settle(record_id, request_id, TryOnStatus.FAILED)

            logger.info(f"[POLL SUCCESS] Job {request_id} is ready")
            return self._settle(record_id, request_id, TryOnStatus.COMPLETED, result_urls=[url])

        if status == "FAILED":
            logger.error(f"[POLL FAILED] Provider reported failure for job {request_id}")
            return self._settle(record_id, request_id, TryOnStatus.FAILED)

        return None

    def _settle(self, record_id: int, request_id: str, status: TryOnStatus, **values) -> PollOutcome:
        updated = self.repo.update_if_processing(record_id, status=status.value, **values)
        if not updated:
            logger.info(f"[POLL STOP] Record {record_id} changed under job {request_id}, not overwriting")
            return PollOutcome.CANCELLED

        logger.info(f"[DB UPDATE] Record {record_id} -> {status.value}")
        return _SETTLED[status]
