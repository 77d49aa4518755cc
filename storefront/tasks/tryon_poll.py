# storefront/tasks/tryon_poll.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.fal_client import FalClient
from storefront.services.tryon_poller import TryOnPoller, PollOutcome
from storefront.utils.settings import TRYON_POLL_INTERVAL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.tryon_poll.poll_tryon_job_task")
def poll_tryon_job_task(record_id: int, request_id: str, attempt: int = 1):
    """
    One poll tick per task run, the next tick is a new task with a countdown.
    Nothing is held between ticks.
    """
    db = SessionLocal()
    try:
        outcome = TryOnPoller(db, FalClient()).poll_once(record_id, request_id, attempt)
    finally:
        db.close()

    if outcome == PollOutcome.CONTINUE:
        poll_tryon_job_task.apply_async(
            args=(record_id, request_id, attempt + 1),
            countdown=TRYON_POLL_INTERVAL_SECONDS,
        )
    else:
        logger.info(f"[POLL END] Job {request_id} (record {record_id}): {outcome.value} after {attempt} attempts")

    return outcome.value


def schedule_poll(record_id: int, request_id: str):
    logger.debug(f"[POLL START] Monitoring job {request_id} for record {record_id}")
    poll_tryon_job_task.apply_async(
        args=(record_id, request_id, 1),
        countdown=TRYON_POLL_INTERVAL_SECONDS,
    )
