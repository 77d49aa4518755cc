# storefront/api/routers/favorites.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.schemas import FavoritePage, FavoriteStatusOut, FavoriteToggleOut
from storefront.services.favorite_service import FavoriteService

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.post("/{product_id}/toggle", response_model=FavoriteToggleOut)
def toggle(
    product_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return FavoriteService(db).toggle(user, product_id)


@router.get("/{product_id}", response_model=FavoriteStatusOut)
def is_favored(
    product_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"product_id": product_id, "is_favored": FavoriteService(db).is_favored(user, product_id)}


@router.get("/", response_model=FavoritePage)
def list_favorites(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return FavoriteService(db).list_favorites(user, page, limit)
