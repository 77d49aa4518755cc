# storefront/data/models/try_on.py
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, JSON
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.enums import TryOnType, TryOnStatus


class TryOnModel(Base):
    __tablename__ = "try_on_records"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    type = Column(String(20), nullable=False, default=TryOnType.REFERENCE.value)
    status = Column(String(20), nullable=False, default=TryOnStatus.COMPLETED.value)
    request_id = Column(String(100), nullable=True)  # provider job id

    source_urls = Column(JSON, nullable=False, default=list)
    garment_urls = Column(JSON, nullable=True)
    result_urls = Column(JSON, nullable=False, default=list)
    category = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    product = relationship("ProductModel")
