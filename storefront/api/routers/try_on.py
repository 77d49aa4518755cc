# storefront/api/routers/try_on.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.enums import TryOnType
from storefront.domain.schemas import DeletedOut, TryOnGenerateIn, TryOnOut, TryOnUploadIn
from storefront.services.tryon_service import TryOnService

router = APIRouter(prefix="/try-on", tags=["try-on"])


def get_service(db: Session = Depends(get_db)) -> TryOnService:
    return TryOnService(db)


@router.post("/upload-images", response_model=TryOnOut, status_code=201)
def upload_images(
    payload: TryOnUploadIn,
    user: UserModel = Depends(get_current_user),
    svc: TryOnService = Depends(get_service),
):
    return svc.save_uploads(user, payload.image_urls)


@router.post("/generate", response_model=TryOnOut, status_code=202)
def generate(
    payload: TryOnGenerateIn,
    user: UserModel = Depends(get_current_user),
    svc: TryOnService = Depends(get_service),
):
    """Returns the PROCESSING record at once, the result is filled in by the poll task."""
    return svc.submit(user, payload)


@router.get("/uploads", response_model=List[TryOnOut])
def list_uploads(
    user: UserModel = Depends(get_current_user),
    svc: TryOnService = Depends(get_service),
):
    return svc.list_uploads(user)


@router.get("/history", response_model=List[TryOnOut])
def history(
    user: UserModel = Depends(get_current_user),
    svc: TryOnService = Depends(get_service),
):
    return svc.list_generated(user)


@router.delete("/uploads/{record_id}", response_model=DeletedOut)
def delete_upload(
    record_id: int,
    user: UserModel = Depends(get_current_user),
    svc: TryOnService = Depends(get_service),
):
    svc.delete(record_id, user, TryOnType.REFERENCE)
    return {"success": True}


@router.delete("/history/{record_id}", response_model=DeletedOut)
def delete_generated(
    record_id: int,
    user: UserModel = Depends(get_current_user),
    svc: TryOnService = Depends(get_service),
):
    svc.delete(record_id, user, TryOnType.GENERATED)
    return {"success": True}
