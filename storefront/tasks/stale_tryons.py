# storefront/tasks/stale_tryons.py
from datetime import datetime, timedelta, timezone

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.try_on_repo import TryOnRepo
from storefront.utils.settings import TRYON_STALE_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.stale_tryons.fail_stale_tryons_task")
def fail_stale_tryons_task():
    logger.info("Fail stale try-ons task started")

    db = SessionLocal()
    try:
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=TRYON_STALE_SECONDS)
        failed = TryOnRepo(db).fail_stale(cutoff)
        logger.info(f"Marked {failed} stale try-on records as FAILED")
        return failed
    finally:
        db.close()
