# storefront/data/models/product.py
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Numeric, JSON
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.enums import Gender


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)

    gender = Column(String(10), nullable=False, default=Gender.UNISEX.value)
    category = Column(String(100), nullable=False, index=True)
    brand = Column(String(100), nullable=False, index=True)

    # derived from variants, see ProductRepo.sync_aggregates
    stock = Column(Integer, nullable=False, default=0)
    colors = Column(JSON, nullable=False, default=list)

    images = Column(JSON, nullable=False, default=list)
    is_trending = Column(Boolean, nullable=False, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    variants = relationship(
        "ProductVariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariantModel.id",
    )
