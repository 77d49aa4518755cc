# storefront/services/favorite_service.py
from sqlalchemy.orm import Session

from storefront.data.models.favorite import FavoriteModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import NotFound
from storefront.repos.favorite_repo import FavoriteRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class FavoriteService:
    def __init__(self, db: Session):
        self.repo = FavoriteRepo(db)
        self.products = ProductRepo(db)

    def toggle(self, user: UserModel, product_id: int) -> dict:
        """Like / unlike in one call."""
        product = self.products.get_product(product_id)
        if not product or product.is_archived:
            raise NotFound("Product not found or unavailable")

        existing = self.repo.get(user.id, product_id)
        if existing:
            self.repo.remove(existing)
            logger.info(f"User {user.id} unfavored product {product_id}")
            return {"status": "removed"}

        self.repo.add(FavoriteModel(user_id=user.id, product_id=product_id))
        logger.info(f"User {user.id} favored product {product_id}")
        return {"status": "added"}

    def is_favored(self, user: UserModel, product_id: int) -> bool:
        return self.repo.get(user.id, product_id) is not None

    def list_favorites(self, user: UserModel, page: int = 1, limit: int = 10) -> dict:
        page = max(page, 1)
        data, total = self.repo.list_for_user(user.id, (page - 1) * limit, limit)
        return {"data": data, "total": total, "page": page, "limit": limit}
