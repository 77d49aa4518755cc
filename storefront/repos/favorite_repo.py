# storefront/repos/favorite_repo.py
from sqlalchemy import select, func
from sqlalchemy.orm import Session, joinedload

from storefront.data.models.favorite import FavoriteModel
from storefront.data.models.product import ProductModel


class FavoriteRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int, product_id: int) -> FavoriteModel | None:
        return self.db.execute(
            select(FavoriteModel).where(
                FavoriteModel.user_id == user_id,
                FavoriteModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add(self, favorite: FavoriteModel):
        self.db.add(favorite)
        self.db.commit()

    def remove(self, favorite: FavoriteModel):
        self.db.delete(favorite)
        self.db.commit()

    def list_for_user(self, user_id: int, offset: int, limit: int) -> tuple[list[FavoriteModel], int]:
        filters = (FavoriteModel.user_id == user_id, ProductModel.is_archived.is_(False))

        total = self.db.scalar(
            select(func.count(FavoriteModel.id)).join(FavoriteModel.product).where(*filters)
        )
        rows = self.db.execute(
            select(FavoriteModel)
            .join(FavoriteModel.product)
            .where(*filters)
            .options(joinedload(FavoriteModel.product))
            .order_by(FavoriteModel.created_at.desc(), FavoriteModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()
        return list(rows), total
