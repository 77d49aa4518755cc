# storefront/data/models/product_variant.py
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class ProductVariantModel(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    size = Column(String(20), nullable=False)
    color = Column(String(50), nullable=False)
    sku = Column(String(100), nullable=False, unique=True)
    stock = Column(Integer, nullable=False, default=0)
    price_override = Column(Numeric(10, 2), nullable=True)

    product = relationship("ProductModel", back_populates="variants")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_variant_stock_non_negative"),
        # cart lines and order items resolve the variant by (product, size, color)
        UniqueConstraint("product_id", "size", "color", name="u_variant_size_color"),
    )
