# storefront/services/product_service.py
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.data.models.product_variant import ProductVariantModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import Conflict, NotFound, ValidationError
from storefront.domain.schemas import ProductCreate, ProductUpdate, VariantIn, VariantUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.services.authz import require_role, ADMIN_ROLES
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """
    Catalog store.
    Every variant write ends with ProductRepo.sync_aggregates in the same
    transaction, so Product.stock / Product.colors never drift from the variants.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    #query
    def get_product(self, product_id: int, include_archived: bool = False) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product or (product.is_archived and not include_archived):
            raise NotFound(f"Product with ID {product_id} not found")
        return product

    def list_products(
        self,
        page: int = 1,
        limit: int = 10,
        gender: str | None = None,
        category: str | None = None,
        brand: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        sort: str | None = None,
    ) -> dict:
        page = max(page, 1)
        data, total = self.repo.list_products(
            gender=gender,
            category=category,
            brand=brand,
            min_price=min_price,
            max_price=max_price,
            sort=sort,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return {"data": data, "total": total, "page": page, "limit": limit}

    def search(self, keyword: str) -> list[ProductModel]:
        return self.repo.search(keyword)

    def trending(self) -> list[ProductModel]:
        return self.repo.trending()

    def categories(self) -> list[str]:
        return self.repo.distinct_values(ProductModel.category)

    def brands(self) -> list[str]:
        return self.repo.distinct_values(ProductModel.brand)

    #commands (admin)
    def create_product(self, caller: UserModel, payload: ProductCreate) -> ProductModel:
        require_role(caller, *ADMIN_ROLES)

        skus = [v.sku for v in payload.variants]
        if len(skus) != len(set(skus)):
            raise ValidationError("Duplicate SKU in variant list")

        pairs = [(v.size, v.color) for v in payload.variants]
        if len(pairs) != len(set(pairs)):
            raise ValidationError("Duplicate size/color combination in variant list")

        taken = self.repo.existing_skus(skus)
        if taken:
            raise ValidationError(f"SKU already registered: {', '.join(sorted(taken))}")

        product = ProductModel(
            name=payload.name,
            description=payload.description,
            price=payload.price,
            gender=payload.gender.value,
            category=payload.category,
            brand=payload.brand,
            images=list(payload.images),
            is_trending=payload.is_trending,
            stock=0,
            colors=[],
        )

        try:
            self.repo.add_product(product)
            for v in payload.variants:
                self.repo.add_variant(self._variant_from(product.id, v))
            self.repo.sync_aggregates(product.id)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise ValidationError("SKU or size/color combination already registered")

        logger.info(
            f"Product {product.id} created with {len(payload.variants)} variants, stock={product.stock}"
        )
        return product

    def update_product(self, caller: UserModel, product_id: int, payload: ProductUpdate) -> ProductModel:
        require_role(caller, *ADMIN_ROLES)
        product = self.get_product(product_id, include_archived=True)

        changes = payload.model_dump(exclude_unset=True)
        if "gender" in changes and changes["gender"] is not None:
            changes["gender"] = changes["gender"].value
        for field, value in changes.items():
            setattr(product, field, value)

        self.repo.commit()
        logger.info(f"Product {product_id} updated: {sorted(changes)}")
        return product

    def archive_product(self, caller: UserModel, product_id: int) -> ProductModel:
        """Soft delete, orders keep pointing at the variants."""
        require_role(caller, *ADMIN_ROLES)
        product = self.get_product(product_id, include_archived=True)

        product.is_archived = True
        self.repo.commit()
        logger.info(f"Product {product_id} archived")
        return product

    def add_variant(self, caller: UserModel, product_id: int, payload: VariantIn) -> ProductVariantModel:
        require_role(caller, *ADMIN_ROLES)

        if not self.repo.get_product(product_id):
            raise NotFound(f"Product with ID {product_id} not found")
        if self.repo.existing_skus([payload.sku]):
            raise Conflict(f"SKU {payload.sku} already exists")
        if self.repo.find_variant(product_id, payload.size, payload.color):
            raise Conflict(f"Variant {payload.size}/{payload.color} already exists for product {product_id}")

        try:
            variant = self.repo.add_variant(self._variant_from(product_id, payload))
            self.repo.sync_aggregates(product_id)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise Conflict(f"Variant {payload.sku} ({payload.size}/{payload.color}) already exists")

        logger.info(f"Variant {variant.id} ({variant.sku}) added to product {product_id}")
        return variant

    def update_variant(self, caller: UserModel, variant_id: int, payload: VariantUpdate) -> ProductVariantModel:
        require_role(caller, *ADMIN_ROLES)

        variant = self.repo.get_variant(variant_id)
        if not variant:
            raise NotFound(f"Variant with ID {variant_id} not found")

        #explicit nulls mean "leave as is"
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        size = changes.get("size", variant.size)
        color = changes.get("color", variant.color)
        clash = self.repo.find_variant(variant.product_id, size, color)
        if clash is not None and clash.id != variant.id:
            raise Conflict(f"Variant {size}/{color} already exists for product {variant.product_id}")

        for field, value in changes.items():
            setattr(variant, field, value)

        try:
            self.repo.sync_aggregates(variant.product_id)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise ValidationError(f"Variant {variant_id} update violates catalog constraints")
        return variant

    def remove_variant(self, caller: UserModel, variant_id: int):
        require_role(caller, *ADMIN_ROLES)

        variant = self.repo.get_variant(variant_id)
        if not variant:
            raise NotFound(f"Variant with ID {variant_id} not found")

        product_id = variant.product_id
        self.repo.delete_variant(variant)
        self.repo.sync_aggregates(product_id)
        self.repo.commit()
        logger.info(f"Variant {variant_id} removed from product {product_id}")

    @staticmethod
    def _variant_from(product_id: int, payload: VariantIn) -> ProductVariantModel:
        return ProductVariantModel(
            product_id=product_id,
            size=payload.size,
            color=payload.color,
            sku=payload.sku,
            stock=payload.stock,
            price_override=payload.price_override,
        )
