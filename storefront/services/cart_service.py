# storefront/services/cart_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel
from storefront.data.models.product_variant import ProductVariantModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import BadRequest, NotFound, OutOfStock
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def unit_price(product: ProductModel, variant: ProductVariantModel | None) -> Decimal:
    if variant is not None and variant.price_override is not None:
        return Decimal(variant.price_override)
    return Decimal(product.price)


def match_variant(product: ProductModel, size: str, color: str) -> ProductVariantModel | None:
    return next(
        (v for v in product.variants if v.size == size and v.color == color),
        None,
    )


class CartService:
    """
    One cart per user: lines keyed by (product, size, color).
    commands (add, set quantity, remove, clear) modify state
    query (summary) is read only
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query
    def get_summary(self, user: UserModel) -> Dict[str, Any]:
        lines = self.repo.get_lines(user.id)

        items = [self._line_dict(line) for line in lines]
        #archived products stay visible but are not charged
        total = sum(
            (i["line_total"] for i in items if not i["is_archived"]),
            Decimal("0.00"),
        )

        return {
            "items": items,
            "total_amount": total,
            "total_items": sum(i["quantity"] for i in items),
        }

    #commands
    def add_or_increment(
        self,
        user: UserModel,
        product_id: int,
        quantity: int,
        size: str,
        color: str,
    ) -> Dict[str, Any]:
        if quantity <= 0:
            raise BadRequest("Quantity must be greater than 0")

        product = self.products.get_product(product_id)
        if not product or product.is_archived:
            raise NotFound("Product not found or unavailable")

        variant = self.products.find_variant(product_id, size, color)
        if not variant:
            raise BadRequest(f"{product.name} is not available in size {size} / {color}")

        line = self.repo.get_line(user.id, product_id, size, color)
        requested = quantity + (line.quantity if line else 0)

        if variant.stock < requested:
            raise OutOfStock(f"Not enough stock. Only {variant.stock} left.")

        if line:
            logger.info(
                f"Product {product_id} ({size}/{color}) already in cart of user {user.id}, "
                f"quantity {line.quantity} -> {requested}"
            )
            line.quantity = requested
        else:
            logger.info(f"Adding product {product_id} ({size}/{color}) to cart of user {user.id}")
            line = self.repo.add_line(
                CartItemModel(
                    user_id=user.id,
                    product_id=product_id,
                    size=size,
                    color=color,
                    quantity=quantity,
                )
            )

        self.repo.commit()
        return self._line_dict(line)

    def set_quantity(self, line_id: int, quantity: int, user: UserModel) -> Dict[str, Any]:
        line = self.repo.get_owned_line(line_id, user.id)
        if not line:
            raise NotFound("Cart item not found")

        if quantity <= 0:
            self.remove_line(line_id, user)
            return {"removed": True, "item": None}

        variant = match_variant(line.product, line.size, line.color)
        if not variant or variant.stock < quantity:
            raise OutOfStock("Not enough stock available")

        line.quantity = quantity
        self.repo.commit()
        return {"removed": False, "item": self._line_dict(line)}

    def remove_line(self, line_id: int, user: UserModel):
        if self.repo.delete_owned_line(line_id, user.id) == 0:
            raise NotFound("Cart item not found")
        self.repo.commit()
        logger.info(f"Cart line {line_id} removed for user {user.id}")

    def clear(self, user_id: int, commit: bool = True) -> int:
        """
        Bulk delete. The order flow calls it with commit=False from inside the
        payment confirmation transaction.
        """
        removed = self.repo.clear(user_id)
        if commit:
            self.repo.commit()
        logger.info(f"Cleared {removed} cart lines for user {user_id}")
        return removed

    @staticmethod
    def _line_dict(line: CartItemModel) -> Dict[str, Any]:
        product = line.product
        price = unit_price(product, match_variant(product, line.size, line.color))
        return {
            "id": line.id,
            "product_id": line.product_id,
            "product_name": product.name,
            "size": line.size,
            "color": line.color,
            "quantity": line.quantity,
            "unit_price": price,
            "line_total": price * line.quantity,
            "is_archived": product.is_archived,
        }
