# storefront/repos/cart_repo.py
from sqlalchemy import select, delete
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_lines(self, user_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.user_id == user_id)
                .options(selectinload(CartItemModel.product).selectinload(ProductModel.variants))
                .order_by(CartItemModel.created_at.desc(), CartItemModel.id.desc())
            ).scalars().all()
        )

    def get_line(self, user_id: int, product_id: int, size: str, color: str) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.user_id == user_id,
                CartItemModel.product_id == product_id,
                CartItemModel.size == size,
                CartItemModel.color == color,
            )
        ).scalar_one_or_none()

    def get_owned_line(self, line_id: int, user_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.id == line_id,
                CartItemModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def add_line(self, line: CartItemModel) -> CartItemModel:
        self.db.add(line)
        self.db.flush()
        return line

    def delete_owned_line(self, line_id: int, user_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.id == line_id,
                CartItemModel.user_id == user_id,
            )
        )
        return result.rowcount

    def clear(self, user_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.user_id == user_id)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
