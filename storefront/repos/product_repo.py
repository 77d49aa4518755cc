# storefront/repos/product_repo.py
from decimal import Decimal

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.data.models.product_variant import ProductVariantModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_SORTS = {
    "newest": ProductModel.created_at.desc(),
    "price_asc": ProductModel.price.asc(),
    "price_desc": ProductModel.price.desc(),
}


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    # ---- products
    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def list_products(
        self,
        gender: str | None = None,
        category: str | None = None,
        brand: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        sort: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[ProductModel], int]:
        filters = [ProductModel.is_archived.is_(False)]
        if gender:
            filters.append(ProductModel.gender == gender)
        if category:
            filters.append(ProductModel.category == category)
        if brand:
            filters.append(ProductModel.brand == brand)
        if min_price is not None:
            filters.append(ProductModel.price >= min_price)
        if max_price is not None:
            filters.append(ProductModel.price <= max_price)

        total = self.db.scalar(select(func.count(ProductModel.id)).where(*filters))
        stmt = (
            select(ProductModel)
            .where(*filters)
            .order_by(_SORTS.get(sort, ProductModel.id.asc()))
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all()), total

    def search(self, keyword: str, limit: int = 20) -> list[ProductModel]:
        pattern = f"%{keyword.lower()}%"
        stmt = (
            select(ProductModel)
            .where(
                ProductModel.is_archived.is_(False),
                or_(
                    func.lower(ProductModel.name).like(pattern),
                    func.lower(ProductModel.description).like(pattern),
                    func.lower(ProductModel.brand).like(pattern),
                ),
            )
            .order_by(ProductModel.id)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def trending(self, limit: int = 10) -> list[ProductModel]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.is_trending.is_(True), ProductModel.is_archived.is_(False))
            .order_by(ProductModel.updated_at.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def distinct_values(self, column) -> list[str]:
        stmt = (
            select(column)
            .where(ProductModel.is_archived.is_(False))
            .distinct()
            .order_by(column)
        )
        return list(self.db.execute(stmt).scalars().all())

    # ---- variants
    def get_variant(self, variant_id: int) -> ProductVariantModel | None:
        return self.db.get(ProductVariantModel, variant_id)

    def find_variant(self, product_id: int, size: str, color: str) -> ProductVariantModel | None:
        return self.db.execute(
            select(ProductVariantModel).where(
                ProductVariantModel.product_id == product_id,
                ProductVariantModel.size == size,
                ProductVariantModel.color == color,
            )
        ).scalar_one_or_none()

    def existing_skus(self, skus: list[str]) -> list[str]:
        if not skus:
            return []
        return list(
            self.db.execute(
                select(ProductVariantModel.sku).where(ProductVariantModel.sku.in_(skus))
            ).scalars().all()
        )

    def add_variant(self, variant: ProductVariantModel) -> ProductVariantModel:
        self.db.add(variant)
        self.db.flush()
        return variant

    def delete_variant(self, variant: ProductVariantModel):
        self.db.delete(variant)
        self.db.flush()

    def decrement_variant_stock(self, variant_id: int, quantity: int) -> int:
        """
        Atomic conditional update:
        UPDATE product_variants SET stock = stock - :qty WHERE id = :id AND stock >= :qty
        Returns the rowcount, 0 means the stock could not cover the quantity.
        """
        result = self.db.execute(
            ProductVariantModel.__table__.update()
            .where(
                ProductVariantModel.id == variant_id,
                ProductVariantModel.stock >= quantity,
            )
            .values(stock=ProductVariantModel.stock - quantity)
        )
        return result.rowcount

    def sync_aggregates(self, product_id: int) -> ProductModel | None:
        """
        Recomputes Product.stock (sum of variant stock) and Product.colors
        (distinct variant colors, first-seen order). Runs inside the caller's
        transaction, the caller commits.
        """
        self.db.flush()

        total = self.db.scalar(
            select(func.coalesce(func.sum(ProductVariantModel.stock), 0))
            .where(ProductVariantModel.product_id == product_id)
        )
        colors = self.db.execute(
            select(ProductVariantModel.color)
            .where(ProductVariantModel.product_id == product_id)
            .order_by(ProductVariantModel.id)
        ).scalars().all()

        product = self.db.get(ProductModel, product_id)
        if product is None:
            return None

        product.stock = int(total or 0)
        product.colors = list(dict.fromkeys(colors))
        self.db.flush()

        logger.info(f"Synced product {product_id}: stock={product.stock} colors={product.colors}")
        return product

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
