#import all models so SQLAlchemy registers them in Base.metadata

from storefront.data.models.user import UserModel
from storefront.data.models.address import AddressModel
from storefront.data.models.product import ProductModel
from storefront.data.models.product_variant import ProductVariantModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.favorite import FavoriteModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.order_timeline import OrderTimelineModel
from storefront.data.models.try_on import TryOnModel

__all__ = [
    "UserModel",
    "AddressModel",
    "ProductModel",
    "ProductVariantModel",
    "CartItemModel",
    "FavoriteModel",
    "OrderModel",
    "OrderItemModel",
    "OrderTimelineModel",
    "TryOnModel",
]
