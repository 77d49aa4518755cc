# storefront/services/tryon_service.py
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

from requests import RequestException
from sqlalchemy.orm import Session

from storefront.data.models.try_on import TryOnModel
from storefront.data.models.user import UserModel
from storefront.domain.enums import TryOnStatus, TryOnType
from storefront.domain.errors import BadRequest, Conflict, GatewayError, NotFound
from storefront.domain.schemas import TryOnGenerateIn
from storefront.repos.product_repo import ProductRepo
from storefront.repos.try_on_repo import TryOnRepo
from storefront.services.fal_client import FalClient, FalRequestError
from storefront.services.lock_service import LockService
from storefront.tasks.tryon_poll import schedule_poll as schedule_tryon_poll
from storefront.utils.clock import ensure_utc
from storefront.utils.settings import TRYON_STALE_SECONDS
from storefront.utils.urls import public_url
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

SUBMIT_LOCK_TTL = 30


class TryOnService:
    """
    Virtual try-on.
    submit  -> at most one fresh PROCESSING job per user, job goes to fal.ai,
               record is stored and polling is scheduled, returns immediately
    uploads -> REFERENCE records with the user's own photos
    """

    def __init__(
        self,
        db: Session,
        fal_client: FalClient | None = None,
        lock_service: LockService | None = None,
        schedule_poll: Callable[[int, str], None] | None = None,
        stale_after: int = TRYON_STALE_SECONDS,
    ):
        self.repo = TryOnRepo(db)
        self.products = ProductRepo(db)
        self.fal = fal_client or FalClient()
        self.lock_service = lock_service or LockService()
        self.schedule_poll = schedule_poll or schedule_tryon_poll
        self.stale_after = timedelta(seconds=stale_after)

    # ---- uploads
    def save_uploads(self, user: UserModel, image_urls: list[str]) -> TryOnModel:
        if not image_urls:
            raise BadRequest("No files uploaded")

        record = self.repo.create(
            TryOnModel(
                user_id=user.id,
                type=TryOnType.REFERENCE.value,
                status=TryOnStatus.COMPLETED.value,
                source_urls=list(image_urls),
                result_urls=[],
            )
        )
        logger.info(f"Saved {len(image_urls)} reference images for user {user.id} (record {record.id})")
        return record

    # ---- generation
    def submit(self, user: UserModel, payload: TryOnGenerateIn) -> TryOnModel:
        if not self.fal.configured:
            raise GatewayError("Try-on service is not configured", status_code=503)

        token = uuid.uuid4().hex
        if not self.lock_service.acquire_tryon_lock(user.id, token, SUBMIT_LOCK_TTL):
            raise Conflict("A try-on is already being submitted. Please wait.")

        try:
            self._settle_active_job(user)

            product = None
            if payload.product_id:
                product = self.products.get_product(payload.product_id)

            source_urls = [public_url(u) for u in payload.user_image_urls]
            garment_urls = [public_url(u) for u in payload.garment_image_urls]

            logger.info(f"[SUBMIT] Starting try-on for user {user.id}")
            request_id = self._submit_job(source_urls[0], garment_urls[0], payload.category.value)
            logger.info(f"[SUBMIT] Job accepted. ID: {request_id}")

            record = self.repo.create(
                TryOnModel(
                    user_id=user.id,
                    product_id=product.id if product else None,
                    type=TryOnType.GENERATED.value,
                    status=TryOnStatus.PROCESSING.value,
                    request_id=request_id,
                    source_urls=source_urls,
                    garment_urls=garment_urls,
                    result_urls=[],
                    category=payload.category.value,
                )
            )
        finally:
            self.lock_service.release_tryon_lock(user.id, token)

        self.schedule_poll(record.id, request_id)
        return record

    def _settle_active_job(self, user: UserModel):
        active = self.repo.get_processing_for_user(user.id)
        if not active:
            return

        age = datetime.now(timezone.utc) - ensure_utc(active.created_at)
        if age <= self.stale_after:
            raise Conflict("A try-on is already in progress. Please wait.")

        logger.warning(f"Marking stale try-on {active.id} (job {active.request_id}) as FAILED")
        self.repo.update_if_processing(active.id, status=TryOnStatus.FAILED.value)

    def _submit_job(self, model_image: str, garment_image: str, category: str) -> str:
        job = {
            "model_image": model_image,
            "garment_image": garment_image,
            "category": category,
            "mode": "performance",
            "moderation_level": "permissive",
            "num_samples": 1,
        }
        try:
            return self.fal.submit(job)
        except FalRequestError as e:
            logger.error(f"[SUBMIT ERROR] {e.status_code}: {e.detail}")
            if e.status_code == 422 and isinstance(e.detail, list):
                first = e.detail[0] if e.detail else {}
                msg = first.get("msg") if isinstance(first, dict) else None
                raise BadRequest(f"AI validation error: {msg or 'Invalid input'}")
            if "Exhausted balance" in e.message:
                raise GatewayError("AI service quota exceeded. Please contact support.", status_code=503)
            raise GatewayError(f"Failed to submit try-on request: {e.message}")
        except (RequestException, KeyError, ValueError) as e:
            logger.error(f"[SUBMIT ERROR] {e}")
            raise GatewayError("Failed to submit try-on request")

    # ---- history
    def list_generated(self, user: UserModel) -> list[TryOnModel]:
        return self.repo.list_for_user(user.id, TryOnType.GENERATED.value)

    def list_uploads(self, user: UserModel) -> list[TryOnModel]:
        return self.repo.list_for_user(user.id, TryOnType.REFERENCE.value)

    # ---- delete
    def delete(self, record_id: int, user: UserModel, record_type: TryOnType):
        """
        Owner only. A PROCESSING record can be deleted, its poll loop sees the
        record gone on the next tick and stops.
        """
        record = self.repo.get_owned(record_id, user.id, record_type.value)
        if not record:
            label = "Image" if record_type == TryOnType.REFERENCE else "Try-on record"
            raise NotFound(f"{label} not found")

        self.repo.delete(record)
        logger.info(f"User {user.id} deleted try-on record {record_id}")
